"""
Tournament service: state machine, registration guards, fixture generation,
standings and bracket progression.
Start tournament: generate round-robin fixtures or a seeded knockout bracket.
Match completed: advance the bracket winner, complete the tournament when done.
"""
from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Any

from clubhouse.models import (
    MatchStatus,
    NotificationType,
    Match,
    Tournament,
    TournamentParticipant,
    TournamentStatus,
    TournamentType,
    User,
)
from clubhouse.permissions import is_super_admin
from clubhouse.persistence.repositories import (
    ClubRepository,
    MatchEventRepository,
    MatchRepository,
    TeamRepository,
    TournamentParticipantRepository,
    TournamentRepository,
)
from clubhouse.services.club_service import ClubService
from clubhouse.services.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
)
from clubhouse.services.notification_service import NotificationService
from clubhouse.services.scheduling import (
    generate_round_robin_schedule,
    generate_single_elimination_bracket,
    next_bracket_slot,
    total_bracket_rounds,
)
from clubhouse.statistics import compute_standings, top_scorers

logger = logging.getLogger(__name__)

MIN_TEAMS = 2

# ---------- Valid transitions ----------

_VALID_TRANSITIONS: dict[str, set[str]] = {
    TournamentStatus.DRAFT.value: {TournamentStatus.REGISTRATION_OPEN.value, TournamentStatus.CANCELLED.value},
    TournamentStatus.REGISTRATION_OPEN.value: {
        TournamentStatus.REGISTRATION_CLOSED.value,
        TournamentStatus.CANCELLED.value,
    },
    TournamentStatus.REGISTRATION_CLOSED.value: {
        TournamentStatus.REGISTRATION_OPEN.value,  # reopen before the draw
        TournamentStatus.IN_PROGRESS.value,
        TournamentStatus.CANCELLED.value,
    },
    TournamentStatus.IN_PROGRESS.value: {TournamentStatus.COMPLETED.value, TournamentStatus.CANCELLED.value},
    TournamentStatus.COMPLETED.value: set(),
    TournamentStatus.CANCELLED.value: set(),
}

_FINISHED_MATCH = (MatchStatus.COMPLETED.value, MatchStatus.CANCELLED.value)


def _aware(dt: datetime | None) -> datetime | None:
    if dt is None or dt.tzinfo is not None:
        return dt
    return dt.replace(tzinfo=timezone.utc)


def round_name(round_number: int, total_rounds: int) -> str:
    remaining = total_rounds - round_number
    if remaining == 0:
        return "Final"
    if remaining == 1:
        return "Semi-finals"
    if remaining == 2:
        return "Quarter-finals"
    return f"Round {round_number}"


class TournamentService:
    """
    Domain logic for tournaments: status transitions, registration rules,
    fixtures. Persistence is delegated to repositories.
    """

    def __init__(self) -> None:
        self._tournament_repo = TournamentRepository()
        self._participant_repo = TournamentParticipantRepository()
        self._match_repo = MatchRepository()
        self._event_repo = MatchEventRepository()
        self._team_repo = TeamRepository()
        self._club_repo = ClubRepository()
        self._clubs = ClubService()
        self._notifications = NotificationService()

    # ---------- Lookups & guards ----------

    def get_tournament(self, conn: sqlite3.Connection, tournament_id: str) -> Tournament:
        t = self._tournament_repo.get(conn, tournament_id)
        if t is None:
            raise NotFoundError(f"Tournament not found: {tournament_id}")
        return t

    def list_tournaments(
        self, conn: sqlite3.Connection, club_id: str | None = None, status: str | None = None
    ) -> list[Tournament]:
        return self._tournament_repo.list(conn, club_id=club_id, status=status)

    def participants(self, conn: sqlite3.Connection, tournament_id: str) -> list[TournamentParticipant]:
        self.get_tournament(conn, tournament_id)
        return self._participant_repo.list_by_tournament(conn, tournament_id)

    def can_manage(self, conn: sqlite3.Connection, actor: User, tournament: Tournament) -> bool:
        if is_super_admin(actor.role) or actor.id == tournament.organizer_id:
            return True
        return self._clubs.is_club_admin(conn, actor, tournament.club_id)

    def assert_can_manage(self, conn: sqlite3.Connection, actor: User, tournament: Tournament) -> None:
        if not self.can_manage(conn, actor, tournament):
            logger.warning("User %s denied management of tournament %s", actor.id, tournament.id)
            raise PermissionDeniedError("Only the organizer or club admins can manage this tournament")

    def can_register(self, conn: sqlite3.Connection, tournament: Tournament, now: datetime | None = None) -> bool:
        """Registration requires status registration_open, deadline not passed, and a free slot."""
        if tournament.status != TournamentStatus.REGISTRATION_OPEN.value:
            return False
        now = now or datetime.now(timezone.utc)
        if tournament.registration_deadline is not None and now > tournament.registration_deadline:
            return False
        return len(self._participant_repo.list_by_tournament(conn, tournament.id)) < tournament.max_teams

    # ---------- Create & transitions ----------

    def create_tournament(
        self,
        conn: sqlite3.Connection,
        actor: User,
        club_id: str,
        name: str,
        type: str,
        max_teams: int,
        min_teams: int = MIN_TEAMS,
        description: str = "",
        registration_deadline: datetime | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        entry_fee: float | None = None,
    ) -> Tournament:
        self._clubs.get_club(conn, club_id)
        self._clubs.assert_club_admin(conn, actor, club_id)
        try:
            TournamentType(type)
        except ValueError:
            raise ServiceError(f"Invalid tournament type: {type}") from None
        if not name.strip():
            raise ServiceError("Tournament name is required")
        if min_teams < MIN_TEAMS:
            raise ServiceError(f"A tournament needs at least {MIN_TEAMS} teams")
        if max_teams < min_teams:
            raise ServiceError("max_teams must be at least min_teams")
        registration_deadline, start_date, end_date = (
            _aware(registration_deadline), _aware(start_date), _aware(end_date)
        )
        if start_date and end_date and end_date < start_date:
            raise ServiceError("end_date must not be before start_date")
        if registration_deadline and start_date and registration_deadline > start_date:
            raise ServiceError("registration_deadline must not be after start_date")
        if entry_fee is not None and entry_fee < 0:
            raise ServiceError("entry_fee must not be negative")
        t = self._tournament_repo.create(
            conn, name.strip(), club_id, actor.id, type, max_teams,
            min_teams=min_teams, description=description,
            registration_deadline=registration_deadline, start_date=start_date,
            end_date=end_date, entry_fee=entry_fee,
        )
        logger.info("Tournament %s (%s) created in club %s", t.id, type, club_id)
        return t

    def transition_status(
        self, conn: sqlite3.Connection, actor: User, tournament_id: str, new_status: str
    ) -> Tournament:
        """
        Move a tournament along draft → registration_open → registration_closed →
        in_progress → completed; any non-terminal status may be cancelled.
        in_progress runs start(); completed requires every match to be finished.
        """
        t = self.get_tournament(conn, tournament_id)
        self.assert_can_manage(conn, actor, t)
        try:
            new_status = TournamentStatus(new_status).value
        except ValueError:
            raise ServiceError(f"Invalid tournament status: {new_status}") from None
        allowed = _VALID_TRANSITIONS.get(t.status, set())
        if new_status not in allowed:
            raise InvalidTransitionError(
                f"Invalid transition: {t.status} -> {new_status}. Allowed from {t.status}: {sorted(allowed)}"
            )
        if new_status == TournamentStatus.IN_PROGRESS.value:
            return self.start(conn, actor, tournament_id)
        if new_status == TournamentStatus.COMPLETED.value:
            return self.complete(conn, actor, tournament_id)
        if new_status == TournamentStatus.CANCELLED.value:
            return self.cancel(conn, actor, tournament_id)
        self._tournament_repo.update_status(conn, tournament_id, new_status)
        logger.info("Tournament %s: %s -> %s", tournament_id, t.status, new_status)
        return self.get_tournament(conn, tournament_id)

    def cancel(self, conn: sqlite3.Connection, actor: User, tournament_id: str) -> Tournament:
        t = self.get_tournament(conn, tournament_id)
        self.assert_can_manage(conn, actor, t)
        if t.status in (TournamentStatus.COMPLETED.value, TournamentStatus.CANCELLED.value):
            raise InvalidTransitionError(f"Cannot cancel a {t.status} tournament")
        for m in self._match_repo.list(conn, tournament_id=tournament_id):
            if m.status not in _FINISHED_MATCH:
                self._match_repo.update_status(conn, m.id, MatchStatus.CANCELLED.value)
        self._tournament_repo.update_status(conn, tournament_id, TournamentStatus.CANCELLED.value)
        self._notify_participants(conn, t, "Tournament cancelled", f"{t.name} has been cancelled")
        logger.info("Tournament %s cancelled", tournament_id)
        return self.get_tournament(conn, tournament_id)

    # ---------- Registration ----------

    def register_team(
        self,
        conn: sqlite3.Connection,
        actor: User,
        tournament_id: str,
        team_id: str,
        seed: int | None = None,
    ) -> TournamentParticipant:
        t = self.get_tournament(conn, tournament_id)
        team = self._clubs.get_team(conn, team_id)
        self._clubs.assert_club_admin(conn, actor, team.club_id)
        if t.status != TournamentStatus.REGISTRATION_OPEN.value:
            raise InvalidTransitionError(f"Registration is not open (current: {t.status})")
        now = datetime.now(timezone.utc)
        if t.registration_deadline is not None and now > t.registration_deadline:
            raise InvalidTransitionError("Registration deadline has passed")
        existing = self._participant_repo.get(conn, tournament_id, team_id)
        if existing is not None and existing.status == "registered":
            raise ConflictError("Team is already registered")
        if len(self._participant_repo.list_by_tournament(conn, tournament_id)) >= t.max_teams:
            raise ConflictError(f"Tournament is full ({t.max_teams} teams)")
        if seed is not None and seed < 1:
            raise ServiceError("seed must be 1 or greater")
        p = self._participant_repo.add(conn, tournament_id, team_id, seed=seed)
        self._notifications.notify_team_members(
            conn, [team_id], NotificationType.TOURNAMENT.value,
            "Tournament registration", f"{team.name} is registered for {t.name}",
            {"tournament_id": tournament_id, "team_id": team_id},
        )
        return p

    def withdraw_team(self, conn: sqlite3.Connection, actor: User, tournament_id: str, team_id: str) -> None:
        t = self.get_tournament(conn, tournament_id)
        team = self._clubs.get_team(conn, team_id)
        if not (self._clubs.is_club_admin(conn, actor, team.club_id) or self.can_manage(conn, actor, t)):
            raise PermissionDeniedError("Only the team's club admins or the organizer can withdraw a team")
        if t.status not in (TournamentStatus.REGISTRATION_OPEN.value, TournamentStatus.REGISTRATION_CLOSED.value):
            raise InvalidTransitionError(f"Cannot withdraw once the tournament is {t.status}")
        p = self._participant_repo.get(conn, tournament_id, team_id)
        if p is None or p.status != "registered":
            raise NotFoundError(f"Team {team_id} is not registered")
        self._participant_repo.update_status(conn, tournament_id, team_id, "withdrawn")

    # ---------- Start & fixtures ----------

    def start(self, conn: sqlite3.Connection, actor: User, tournament_id: str) -> Tournament:
        """
        registration_closed -> in_progress. Generates every fixture up front:
        round robin by the circle method, or the full knockout bracket.
        """
        t = self.get_tournament(conn, tournament_id)
        self.assert_can_manage(conn, actor, t)
        if t.status != TournamentStatus.REGISTRATION_CLOSED.value:
            raise InvalidTransitionError(f"Tournament must be registration_closed to start (current: {t.status})")
        team_ids = [p.team_id for p in self._participant_repo.list_by_tournament(conn, tournament_id)]
        if len(team_ids) < t.min_teams:
            raise ServiceError(f"Need at least {t.min_teams} registered teams to start (have {len(team_ids)})")
        created: list[Match] = []
        if t.type == TournamentType.ROUND_ROBIN.value:
            for f in generate_round_robin_schedule(team_ids):
                created.append(self._match_repo.create(
                    conn, f["home_team_id"], f["away_team_id"],
                    tournament_id=tournament_id,
                    round_number=f["round_number"],
                    scheduled_at=self._round_date(t, f["round_number"]),
                    created_by=actor.id,
                ))
        else:
            for f in generate_single_elimination_bracket(team_ids):
                created.append(self._match_repo.create(
                    conn, f["home_team_id"], f["away_team_id"],
                    tournament_id=tournament_id,
                    round_number=f["round_number"],
                    bracket_position=f["bracket_position"],
                    scheduled_at=self._round_date(t, f["round_number"]),
                    created_by=actor.id,
                ))
        if not created:
            raise ServiceError("Fixture generation produced no matches")
        self._tournament_repo.update_status(conn, tournament_id, TournamentStatus.IN_PROGRESS.value)
        self._tournament_repo.update_started_at(conn, tournament_id, datetime.now(timezone.utc))
        for m in created:
            if m.home_team_id and m.away_team_id:
                self._notifications.match_scheduled(conn, m)
        logger.info("Tournament %s started with %d teams, %d matches", tournament_id, len(team_ids), len(created))
        return self.get_tournament(conn, tournament_id)

    @staticmethod
    def _round_date(t: Tournament, round_number: int) -> datetime | None:
        """One round per week from start_date."""
        if t.start_date is None:
            return None
        return t.start_date + timedelta(weeks=round_number - 1)

    # ---------- Progression ----------

    def on_match_completed(self, conn: sqlite3.Connection, match: Match) -> None:
        """Advance the knockout winner or close out the round robin. No-op for friendlies."""
        if match.tournament_id is None:
            return
        t = self._tournament_repo.get(conn, match.tournament_id)
        if t is None or t.status != TournamentStatus.IN_PROGRESS.value:
            return
        if t.type == TournamentType.SINGLE_ELIMINATION.value:
            self._advance_bracket(conn, t, match)
        else:
            self._maybe_complete_round_robin(conn, t)

    def _advance_bracket(self, conn: sqlite3.Connection, t: Tournament, match: Match) -> None:
        if match.winner_team_id is None or match.round_number is None or match.bracket_position is None:
            return
        team_count = len(self._participant_repo.list_by_tournament(conn, t.id))
        rounds = total_bracket_rounds(team_count)
        if match.round_number >= rounds:
            self._finish(conn, t, match.winner_team_id)
            return
        nxt_round, nxt_pos, side = next_bracket_slot(match.round_number, match.bracket_position)
        nxt = self._match_repo.get_by_bracket_slot(conn, t.id, nxt_round, nxt_pos)
        if nxt is None:
            logger.warning("Tournament %s: missing bracket slot r%d p%d", t.id, nxt_round, nxt_pos)
            return
        self._match_repo.set_team(conn, nxt.id, side, match.winner_team_id)
        filled = self._match_repo.get(conn, nxt.id)
        if filled is not None and filled.home_team_id and filled.away_team_id:
            self._notifications.match_scheduled(conn, filled)

    def _maybe_complete_round_robin(self, conn: sqlite3.Connection, t: Tournament) -> None:
        matches = self._match_repo.list(conn, tournament_id=t.id)
        if any(m.status not in _FINISHED_MATCH for m in matches):
            return
        table = self.standings(conn, t.id)
        self._finish(conn, t, table[0]["team_id"] if table else None)

    def _finish(self, conn: sqlite3.Connection, t: Tournament, winner_team_id: str | None) -> None:
        self._tournament_repo.update_winner(conn, t.id, winner_team_id)
        self._tournament_repo.update_status(conn, t.id, TournamentStatus.COMPLETED.value)
        winner = self._team_repo.get(conn, winner_team_id) if winner_team_id else None
        body = f"{winner.name} won {t.name}!" if winner else f"{t.name} is complete"
        self._notify_participants(conn, t, "Tournament complete", body)
        logger.info("Tournament %s completed, winner %s", t.id, winner_team_id)

    def complete(self, conn: sqlite3.Connection, actor: User, tournament_id: str) -> Tournament:
        """Manual completion. Every match must be completed or cancelled."""
        t = self.get_tournament(conn, tournament_id)
        self.assert_can_manage(conn, actor, t)
        if t.status != TournamentStatus.IN_PROGRESS.value:
            raise InvalidTransitionError(f"Tournament must be in_progress to complete (current: {t.status})")
        matches = self._match_repo.list(conn, tournament_id=tournament_id)
        pending = [m for m in matches if m.status not in _FINISHED_MATCH]
        if pending:
            raise InvalidTransitionError(f"{len(pending)} matches are not finished")
        winner: str | None = None
        if t.type == TournamentType.ROUND_ROBIN.value:
            table = self.standings(conn, tournament_id)
            winner = table[0]["team_id"] if table else None
        else:
            finals = [m for m in matches if m.round_number == max((x.round_number or 0) for x in matches)]
            winner = finals[0].winner_team_id if finals else None
        self._finish(conn, t, winner)
        return self.get_tournament(conn, tournament_id)

    def _notify_participants(self, conn: sqlite3.Connection, t: Tournament, title: str, body: str) -> None:
        team_ids = [p.team_id for p in self._participant_repo.list_by_tournament(conn, t.id)]
        self._notifications.notify_team_members(
            conn, team_ids, NotificationType.TOURNAMENT.value, title, body, {"tournament_id": t.id}
        )

    # ---------- Views ----------

    def _team_names(self, conn: sqlite3.Connection, team_ids: list[str]) -> dict[str, str]:
        names: dict[str, str] = {}
        for tid in team_ids:
            team = self._team_repo.get(conn, tid)
            names[tid] = team.name if team else tid
        return names

    def standings(self, conn: sqlite3.Connection, tournament_id: str) -> list[dict[str, Any]]:
        """League table over completed matches; every registered team is listed."""
        self.get_tournament(conn, tournament_id)
        team_ids = [p.team_id for p in self._participant_repo.list_by_tournament(conn, tournament_id)]
        matches = self._match_repo.list(conn, tournament_id=tournament_id)
        rows = compute_standings(team_ids, matches)
        names = self._team_names(conn, team_ids)
        for r in rows:
            r["team_name"] = names.get(r["team_id"], r["team_id"])
        return rows

    def bracket(self, conn: sqlite3.Connection, tournament_id: str) -> dict[str, Any]:
        """Matches grouped by round, each round named (Final, Semi-finals, ...)."""
        t = self.get_tournament(conn, tournament_id)
        matches = self._match_repo.list(conn, tournament_id=tournament_id)
        if t.type == TournamentType.SINGLE_ELIMINATION.value:
            total = total_bracket_rounds(len(self._participant_repo.list_by_tournament(conn, tournament_id)))
        else:
            total = max((m.round_number or 0 for m in matches), default=0)
        team_ids = sorted({tid for m in matches for tid in (m.home_team_id, m.away_team_id) if tid})
        names = self._team_names(conn, team_ids)
        rounds: list[dict[str, Any]] = []
        for rnd in range(1, total + 1):
            in_round = [m for m in matches if m.round_number == rnd]
            rounds.append({
                "round_number": rnd,
                "name": round_name(rnd, total) if t.type == TournamentType.SINGLE_ELIMINATION.value else f"Round {rnd}",
                "matches": [
                    {
                        **m.to_dict(),
                        "home_team_name": names.get(m.home_team_id or "", None),
                        "away_team_name": names.get(m.away_team_id or "", None),
                    }
                    for m in in_round
                ],
            })
        return {"tournament_id": tournament_id, "type": t.type, "status": t.status,
                "winner_team_id": t.winner_team_id, "rounds": rounds}

    def top_scorers(self, conn: sqlite3.Connection, tournament_id: str, limit: int = 10) -> list[dict[str, Any]]:
        self.get_tournament(conn, tournament_id)
        match_ids = [m.id for m in self._match_repo.list(conn, tournament_id=tournament_id)]
        return top_scorers(self._event_repo.list_by_matches(conn, match_ids), limit=limit)

    def progress(self, conn: sqlite3.Connection, tournament_id: str) -> dict[str, Any]:
        t = self.get_tournament(conn, tournament_id)
        matches = self._match_repo.list(conn, tournament_id=tournament_id)
        done = sum(1 for m in matches if m.status == MatchStatus.COMPLETED.value)
        return {
            "tournament_id": t.id,
            "name": t.name,
            "status": t.status,
            "completed_matches": done,
            "total_matches": len(matches),
            "percent": round(100 * done / len(matches), 1) if matches else 0.0,
        }
