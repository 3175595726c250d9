"""
Live match service: lifecycle state machine, event recording with validation,
undo with score recomputation, and the live state pushed to subscribers.
The score is always derived from the event timeline, never edited directly.
"""
from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any

from clubhouse.config import get_settings
from clubhouse.models import (
    Match,
    MatchEvent,
    MatchEventType,
    MatchStatus,
    PERIOD_MARKERS,
    TeamRole,
    TournamentType,
    User,
)
from clubhouse.permissions import Permission, has_permission, is_super_admin
from clubhouse.persistence.repositories import (
    MatchEventRepository,
    MatchRepository,
    TeamMemberRepository,
    TeamRepository,
    TournamentRepository,
    UserRepository,
)
from clubhouse.services.club_service import ClubService
from clubhouse.services.errors import (
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
    ValidationFailedError,
)
from clubhouse.services.event_validation import EventDraft, EventValidationResult, validate_event
from clubhouse.services.notification_service import NotificationService
from clubhouse.services.tournament_service import TournamentService
from clubhouse.statistics import (
    compute_match_stats,
    compute_player_match_stats,
    compute_player_season_stats,
    compute_score,
    compute_team_season_stats,
    generate_match_report,
)

logger = logging.getLogger(__name__)

HALFTIME_MINUTE = 45

# ---------- Valid transitions ----------

_VALID_TRANSITIONS: dict[str, set[str]] = {
    MatchStatus.SCHEDULED.value: {
        MatchStatus.IN_PROGRESS.value,
        MatchStatus.CANCELLED.value,
        MatchStatus.POSTPONED.value,
    },
    MatchStatus.POSTPONED.value: {MatchStatus.SCHEDULED.value, MatchStatus.CANCELLED.value},
    MatchStatus.IN_PROGRESS.value: {
        MatchStatus.HALFTIME.value,
        MatchStatus.COMPLETED.value,
        MatchStatus.CANCELLED.value,
    },
    MatchStatus.HALFTIME.value: {MatchStatus.IN_PROGRESS.value},
    MatchStatus.COMPLETED.value: set(),
    MatchStatus.CANCELLED.value: set(),
}

_LIVE = (MatchStatus.IN_PROGRESS.value, MatchStatus.HALFTIME.value)

# Event types that produce a notification to both rosters
_NOTIFY_TYPES = frozenset(t.value for t in (
    MatchEventType.GOAL,
    MatchEventType.PENALTY_GOAL,
    MatchEventType.OWN_GOAL,
    MatchEventType.ASSIST,
    MatchEventType.YELLOW_CARD,
    MatchEventType.RED_CARD,
    MatchEventType.SUBSTITUTION,
))


class MatchService:
    """
    Domain logic for matches: status transitions, officiating guards,
    event timeline. Persistence is delegated to repositories.
    """

    def __init__(self) -> None:
        self._match_repo = MatchRepository()
        self._event_repo = MatchEventRepository()
        self._team_repo = TeamRepository()
        self._team_member_repo = TeamMemberRepository()
        self._tournament_repo = TournamentRepository()
        self._user_repo = UserRepository()
        self._clubs = ClubService()
        self._tournaments = TournamentService()
        self._notifications = NotificationService()

    # ---------- Lookups & guards ----------

    def get_match(self, conn: sqlite3.Connection, match_id: str) -> Match:
        m = self._match_repo.get(conn, match_id)
        if m is None:
            raise NotFoundError(f"Match not found: {match_id}")
        return m

    def list_matches(
        self,
        conn: sqlite3.Connection,
        tournament_id: str | None = None,
        status: str | None = None,
        team_id: str | None = None,
    ) -> list[Match]:
        return self._match_repo.list(conn, tournament_id=tournament_id, status=status, team_id=team_id)

    def can_officiate(self, conn: sqlite3.Connection, actor: User, match: Match) -> bool:
        """
        Super admins, the assigned referee, the tournament organizer, and staff
        (admins, coaches) of either club holding manage_events.
        """
        if is_super_admin(actor.role) or (match.referee_id and match.referee_id == actor.id):
            return True
        if match.tournament_id:
            t = self._tournament_repo.get(conn, match.tournament_id)
            if t is not None and t.organizer_id == actor.id:
                return True
        if not has_permission(actor.role, Permission.MANAGE_EVENTS):
            return False
        for team_id in (match.home_team_id, match.away_team_id):
            if not team_id:
                continue
            team = self._team_repo.get(conn, team_id)
            if team is not None and self._clubs.is_club_staff(conn, actor, team.club_id):
                return True
        return False

    def assert_can_officiate(self, conn: sqlite3.Connection, actor: User, match: Match) -> None:
        if not self.can_officiate(conn, actor, match):
            logger.warning("User %s denied officiating match %s", actor.id, match.id)
            raise PermissionDeniedError("Not allowed to manage this match")

    def _assert_transition(self, match: Match, new_status: str) -> None:
        allowed = _VALID_TRANSITIONS.get(match.status, set())
        if new_status not in allowed:
            raise InvalidTransitionError(
                f"Invalid transition: {match.status} -> {new_status}. Allowed from {match.status}: {sorted(allowed)}"
            )

    def _is_knockout(self, conn: sqlite3.Connection, match: Match) -> bool:
        if not match.tournament_id:
            return False
        t = self._tournament_repo.get(conn, match.tournament_id)
        return t is not None and t.type == TournamentType.SINGLE_ELIMINATION.value

    # ---------- Create ----------

    def create_match(
        self,
        conn: sqlite3.Connection,
        actor: User,
        home_team_id: str,
        away_team_id: str,
        scheduled_at: datetime | None = None,
        venue: str | None = None,
        referee_id: str | None = None,
    ) -> Match:
        """Friendly match. The actor must be staff of one of the two clubs."""
        if home_team_id == away_team_id:
            raise ServiceError("A team cannot play itself")
        home = self._clubs.get_team(conn, home_team_id)
        away = self._clubs.get_team(conn, away_team_id)
        if not (self._clubs.is_club_staff(conn, actor, home.club_id) or self._clubs.is_club_staff(conn, actor, away.club_id)):
            raise PermissionDeniedError("Only staff of one of the clubs can schedule this match")
        m = self._match_repo.create(
            conn, home_team_id, away_team_id,
            scheduled_at=scheduled_at, venue=venue, referee_id=referee_id, created_by=actor.id,
        )
        self._notifications.match_scheduled(conn, m)
        logger.info("Match %s scheduled: %s vs %s", m.id, home.name, away.name)
        return m

    def update_schedule(
        self,
        conn: sqlite3.Connection,
        actor: User,
        match_id: str,
        scheduled_at: datetime | None = None,
        venue: str | None = None,
        referee_id: str | None = None,
    ) -> Match:
        m = self.get_match(conn, match_id)
        self.assert_can_officiate(conn, actor, m)
        if m.status not in (MatchStatus.SCHEDULED.value, MatchStatus.POSTPONED.value):
            raise InvalidTransitionError(f"Cannot reschedule a {m.status} match")
        self._match_repo.update_schedule(conn, match_id, scheduled_at=scheduled_at, venue=venue, referee_id=referee_id)
        return self.get_match(conn, match_id)

    # ---------- Lifecycle ----------

    def start_match(self, conn: sqlite3.Connection, actor: User, match_id: str) -> Match:
        m = self.get_match(conn, match_id)
        self.assert_can_officiate(conn, actor, m)
        if m.status != MatchStatus.SCHEDULED.value:
            raise InvalidTransitionError(f"Match must be scheduled to start (current: {m.status})")
        if not m.home_team_id or not m.away_team_id:
            raise InvalidTransitionError("Both teams must be decided before kick-off")
        self._match_repo.update_status(
            conn, match_id, MatchStatus.IN_PROGRESS.value, started_at=datetime.now(timezone.utc)
        )
        self._event_repo.create(conn, match_id, MatchEventType.MATCH_START.value, 0, created_by=actor.id)
        started = self.get_match(conn, match_id)
        self._notifications.match_started(conn, started)
        logger.info("Match %s started", match_id)
        return started

    def start_halftime(self, conn: sqlite3.Connection, actor: User, match_id: str) -> Match:
        m = self.get_match(conn, match_id)
        self.assert_can_officiate(conn, actor, m)
        self._assert_transition(m, MatchStatus.HALFTIME.value)
        self._match_repo.update_status(conn, match_id, MatchStatus.HALFTIME.value)
        self._event_repo.create(conn, match_id, MatchEventType.HALFTIME_START.value, HALFTIME_MINUTE, created_by=actor.id)
        return self.get_match(conn, match_id)

    def resume_match(self, conn: sqlite3.Connection, actor: User, match_id: str) -> Match:
        m = self.get_match(conn, match_id)
        self.assert_can_officiate(conn, actor, m)
        if m.status != MatchStatus.HALFTIME.value:
            raise InvalidTransitionError(f"Match must be at halftime to resume (current: {m.status})")
        self._match_repo.update_status(conn, match_id, MatchStatus.IN_PROGRESS.value)
        self._event_repo.create(conn, match_id, MatchEventType.HALFTIME_END.value, HALFTIME_MINUTE, created_by=actor.id)
        return self.get_match(conn, match_id)

    def end_match(
        self, conn: sqlite3.Connection, actor: User, match_id: str, winner_team_id: str | None = None
    ) -> Match:
        """
        in_progress -> completed. The winner follows the score; a knockout match
        that ends level needs winner_team_id (decided by shootout).
        """
        m = self.get_match(conn, match_id)
        self.assert_can_officiate(conn, actor, m)
        self._assert_transition(m, MatchStatus.COMPLETED.value)
        if winner_team_id is not None and m.side_of(winner_team_id) is None:
            raise ServiceError("Winner must be one of the two teams")
        if m.home_score > m.away_score:
            winner = m.home_team_id
        elif m.away_score > m.home_score:
            winner = m.away_team_id
        elif self._is_knockout(conn, m):
            if winner_team_id is None:
                raise ServiceError("Knockout match is level: winner_team_id (shootout winner) is required")
            winner = winner_team_id
        else:
            winner = None
        events = self._event_repo.list_by_match(conn, match_id)
        last_minute = max((e.minute for e in events), default=0)
        end_minute = max(get_settings().match_duration_minutes, last_minute)
        self._event_repo.create(
            conn, match_id, MatchEventType.MATCH_END.value, end_minute,
            data={"shootout_winner": winner_team_id} if winner_team_id and m.home_score == m.away_score else None,
            created_by=actor.id,
        )
        self._match_repo.update_winner(conn, match_id, winner)
        self._match_repo.update_status(
            conn, match_id, MatchStatus.COMPLETED.value, ended_at=datetime.now(timezone.utc)
        )
        ended = self.get_match(conn, match_id)
        self._notifications.match_ended(conn, ended)
        self._tournaments.on_match_completed(conn, ended)
        logger.info("Match %s ended %d-%d", match_id, ended.home_score, ended.away_score)
        return ended

    def _change_status(self, conn: sqlite3.Connection, actor: User, match_id: str, new_status: str) -> Match:
        m = self.get_match(conn, match_id)
        self.assert_can_officiate(conn, actor, m)
        self._assert_transition(m, new_status)
        self._match_repo.update_status(conn, match_id, new_status)
        changed = self.get_match(conn, match_id)
        self._notifications.match_status_changed(conn, changed, m.status)
        logger.info("Match %s: %s -> %s", match_id, m.status, new_status)
        return changed

    def cancel_match(self, conn: sqlite3.Connection, actor: User, match_id: str) -> Match:
        return self._change_status(conn, actor, match_id, MatchStatus.CANCELLED.value)

    def postpone_match(self, conn: sqlite3.Connection, actor: User, match_id: str) -> Match:
        return self._change_status(conn, actor, match_id, MatchStatus.POSTPONED.value)

    def reschedule_match(
        self, conn: sqlite3.Connection, actor: User, match_id: str, scheduled_at: datetime | None = None
    ) -> Match:
        """postponed -> scheduled, optionally with a new date."""
        m = self._change_status(conn, actor, match_id, MatchStatus.SCHEDULED.value)
        if scheduled_at is not None:
            self._match_repo.update_schedule(conn, match_id, scheduled_at=scheduled_at)
            m = self.get_match(conn, match_id)
        return m

    # ---------- Events ----------

    def _rosters(self, conn: sqlite3.Connection, match: Match) -> dict[str, set[str]]:
        rosters: dict[str, set[str]] = {}
        for team_id in (match.home_team_id, match.away_team_id):
            if team_id:
                rosters[team_id] = {
                    m.user_id for m in self._team_member_repo.list_by_team(conn, team_id)
                    if m.role == TeamRole.PLAYER.value
                }
        return rosters

    @staticmethod
    def _sent_off(events: list[MatchEvent]) -> set[str]:
        return {e.player_id for e in events if e.type == MatchEventType.RED_CARD.value and e.player_id}

    def validate(self, conn: sqlite3.Connection, match_id: str, draft: EventDraft) -> EventValidationResult:
        """Dry run of record_event's checks against the current match state."""
        m = self.get_match(conn, match_id)
        events = self._event_repo.list_by_match(conn, match_id)
        return validate_event(draft, match=m, rosters=self._rosters(conn, m), sent_off=self._sent_off(events))

    def record_event(
        self, conn: sqlite3.Connection, actor: User, match_id: str, draft: EventDraft
    ) -> tuple[list[MatchEvent], EventValidationResult]:
        """
        Validate and append an event while the match is live. Goals update the
        score; a second yellow for the same player appends an automatic red card.
        Returns the created events (the submitted one first) and the validation
        result with its warnings and suggestions.
        """
        m = self.get_match(conn, match_id)
        self.assert_can_officiate(conn, actor, m)
        if m.status not in _LIVE:
            raise InvalidTransitionError(f"Events can only be recorded while the match is live (current: {m.status})")
        events = self._event_repo.list_by_match(conn, match_id)
        result = validate_event(draft, match=m, rosters=self._rosters(conn, m), sent_off=self._sent_off(events))
        if not result.is_valid:
            logger.warning("Event rejected for match %s: %s", match_id, "; ".join(result.errors))
            raise ValidationFailedError(result)
        event_type = MatchEventType(draft.type).value
        created = [self._event_repo.create(
            conn, match_id, event_type, draft.minute,
            team_id=draft.team_id, player_id=draft.player_id,
            secondary_player_id=draft.secondary_player_id, data=draft.data, created_by=actor.id,
        )]
        if event_type == MatchEventType.YELLOW_CARD.value:
            yellows = sum(
                1 for e in events
                if e.type == MatchEventType.YELLOW_CARD.value and e.player_id == draft.player_id
            )
            if yellows + 1 == 2:
                created.append(self._event_repo.create(
                    conn, match_id, MatchEventType.RED_CARD.value, draft.minute,
                    team_id=draft.team_id, player_id=draft.player_id,
                    data={"card_type": "second_yellow", "automatic": True, "triggered_by": created[0].id},
                    created_by=actor.id,
                ))
        self._recompute_score(conn, match_id)
        updated = self.get_match(conn, match_id)
        for ev in created:
            if ev.type in _NOTIFY_TYPES:
                self._notifications.match_event(conn, updated, ev)
        return created, result

    def delete_event(self, conn: sqlite3.Connection, actor: User, match_id: str, event_id: str) -> Match:
        """Undo an event (and any automatic red card it triggered), then rebuild the score."""
        m = self.get_match(conn, match_id)
        self.assert_can_officiate(conn, actor, m)
        if m.status not in _LIVE:
            raise InvalidTransitionError(f"Events can only be undone while the match is live (current: {m.status})")
        ev = self._event_repo.get(conn, event_id)
        if ev is None or ev.match_id != match_id:
            raise NotFoundError(f"Event not found: {event_id}")
        if ev.type in PERIOD_MARKERS:
            raise ServiceError("Period markers cannot be removed")
        for other in self._event_repo.list_by_match(conn, match_id):
            if other.data.get("triggered_by") == event_id:
                self._event_repo.delete(conn, other.id)
        self._event_repo.delete(conn, event_id)
        if ev.type == MatchEventType.YELLOW_CARD.value and ev.player_id:
            self._drop_stale_second_yellow_reds(conn, match_id, ev.player_id)
        self._recompute_score(conn, match_id)
        logger.info("Event %s removed from match %s", event_id, match_id)
        return self.get_match(conn, match_id)

    def _drop_stale_second_yellow_reds(self, conn: sqlite3.Connection, match_id: str, player_id: str) -> None:
        """An automatic red stands only while the player still has two yellows."""
        events = [e for e in self._event_repo.list_by_match(conn, match_id) if e.player_id == player_id]
        yellows = sum(1 for e in events if e.type == MatchEventType.YELLOW_CARD.value)
        if yellows >= 2:
            return
        for e in events:
            if e.type == MatchEventType.RED_CARD.value and e.data.get("card_type") == "second_yellow":
                self._event_repo.delete(conn, e.id)

    def _recompute_score(self, conn: sqlite3.Connection, match_id: str) -> None:
        m = self.get_match(conn, match_id)
        home, away = compute_score(m, self._event_repo.list_by_match(conn, match_id))
        self._match_repo.update_score(conn, match_id, home, away)

    def timeline(self, conn: sqlite3.Connection, match_id: str) -> list[MatchEvent]:
        self.get_match(conn, match_id)
        return self._event_repo.list_by_match(conn, match_id)

    # ---------- Views ----------

    def _team_names(self, conn: sqlite3.Connection, match: Match) -> dict[str, str]:
        names: dict[str, str] = {}
        for tid in (match.home_team_id, match.away_team_id):
            if tid:
                team = self._team_repo.get(conn, tid)
                names[tid] = team.name if team else tid
        return names

    def live_state(self, conn: sqlite3.Connection, match_id: str) -> dict[str, Any]:
        """Full snapshot for WebSocket pushes and late joiners."""
        m = self.get_match(conn, match_id)
        events = self._event_repo.list_by_match(conn, match_id)
        names = self._team_names(conn, m)
        return {
            "type": "live_update",
            "match": m.to_dict(),
            "home_team_name": names.get(m.home_team_id or "", None),
            "away_team_name": names.get(m.away_team_id or "", None),
            "minute": max((e.minute for e in events), default=0),
            "events": [e.to_dict() for e in events],
            "stats": compute_match_stats(m, events),
        }

    def match_stats(self, conn: sqlite3.Connection, match_id: str) -> dict[str, Any]:
        m = self.get_match(conn, match_id)
        return compute_match_stats(m, self._event_repo.list_by_match(conn, match_id))

    def player_stats(self, conn: sqlite3.Connection, match_id: str) -> list[dict[str, Any]]:
        m = self.get_match(conn, match_id)
        events = self._event_repo.list_by_match(conn, match_id)
        return list(compute_player_match_stats(m, events, get_settings().match_duration_minutes).values())

    def match_report(self, conn: sqlite3.Connection, match_id: str) -> dict[str, Any]:
        m = self.get_match(conn, match_id)
        events = self._event_repo.list_by_match(conn, match_id)
        return generate_match_report(m, events, self._team_names(conn, m), get_settings().match_duration_minutes)

    def team_stats(self, conn: sqlite3.Connection, team_id: str) -> dict[str, Any]:
        self._clubs.get_team(conn, team_id)
        return compute_team_season_stats(team_id, self._match_repo.list(conn, team_id=team_id))

    def player_season_stats(self, conn: sqlite3.Connection, player_id: str) -> dict[str, Any]:
        """Career totals for one player over every completed match they featured in."""
        if self._user_repo.get(conn, player_id) is None:
            raise NotFoundError(f"User not found: {player_id}")
        match_ids = self._event_repo.match_ids_for_player(conn, player_id)
        matches = [m for m in (self._match_repo.get(conn, mid) for mid in match_ids) if m is not None]
        events: dict[str, list[MatchEvent]] = {}
        for e in self._event_repo.list_by_matches(conn, [m.id for m in matches]):
            events.setdefault(e.match_id, []).append(e)
        return compute_player_season_stats(player_id, matches, events, get_settings().match_duration_minutes)
