"""
Clubs, club membership, teams and rosters.
Club-level rights come from club_members (role admin); super admins may act on any club.
"""
from __future__ import annotations

import logging
import sqlite3
from typing import Any

from clubhouse.models import (
    Club,
    ClubMember,
    ClubRole,
    ClubStatus,
    NotificationType,
    Team,
    TeamMember,
    TeamRole,
    User,
)
from clubhouse.permissions import is_super_admin
from clubhouse.persistence.repositories import (
    ClubMemberRepository,
    ClubRepository,
    MatchRepository,
    TeamMemberRepository,
    TeamRepository,
    TournamentRepository,
    UserRepository,
)
from clubhouse.services.errors import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ServiceError,
)
from clubhouse.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

JERSEY_MIN = 0
JERSEY_MAX = 99

_TEAM_ROLE_TO_CLUB_ROLE = {
    TeamRole.PLAYER: ClubRole.PLAYER,
    TeamRole.COACH: ClubRole.COACH,
    TeamRole.MANAGER: ClubRole.MEMBER,
}


class ClubService:
    """
    Domain logic for clubs and teams: ownership guards, capacity limits,
    jersey uniqueness. Persistence is delegated to repositories.
    """

    def __init__(self) -> None:
        self._club_repo = ClubRepository()
        self._club_member_repo = ClubMemberRepository()
        self._team_repo = TeamRepository()
        self._team_member_repo = TeamMemberRepository()
        self._user_repo = UserRepository()
        self._match_repo = MatchRepository()
        self._tournament_repo = TournamentRepository()
        self._notifications = NotificationService()

    # ---------- Guards ----------

    def get_club(self, conn: sqlite3.Connection, club_id: str) -> Club:
        club = self._club_repo.get(conn, club_id)
        if club is None:
            raise NotFoundError(f"Club not found: {club_id}")
        return club

    def get_team(self, conn: sqlite3.Connection, team_id: str) -> Team:
        team = self._team_repo.get(conn, team_id)
        if team is None:
            raise NotFoundError(f"Team not found: {team_id}")
        return team

    def club_role(self, conn: sqlite3.Connection, user_id: str, club_id: str) -> str | None:
        member = self._club_member_repo.get(conn, club_id, user_id)
        return member.role if member else None

    def is_club_admin(self, conn: sqlite3.Connection, user: User, club_id: str) -> bool:
        if is_super_admin(user.role):
            return True
        return self.club_role(conn, user.id, club_id) == ClubRole.ADMIN.value

    def is_club_staff(self, conn: sqlite3.Connection, user: User, club_id: str) -> bool:
        """Admins and coaches of the club."""
        if is_super_admin(user.role):
            return True
        return self.club_role(conn, user.id, club_id) in (ClubRole.ADMIN.value, ClubRole.COACH.value)

    def assert_club_admin(self, conn: sqlite3.Connection, user: User, club_id: str) -> None:
        if not self.is_club_admin(conn, user, club_id):
            logger.warning("User %s denied admin action on club %s", user.id, club_id)
            raise PermissionDeniedError("Only club admins can manage this club")

    # ---------- Clubs ----------

    def create_club(
        self,
        conn: sqlite3.Connection,
        actor: User,
        name: str,
        description: str = "",
        city: str | None = None,
        level: str = "recreational",
        is_public: bool = True,
        max_teams: int = 20,
        max_players_per_team: int = 25,
    ) -> Club:
        """New clubs start pending until verified. The creator becomes the club's first admin."""
        name = name.strip()
        if not name:
            raise ServiceError("Club name is required")
        if any(c.name.lower() == name.lower() for c in self._club_repo.list(conn, search=name)):
            raise ConflictError(f"A club named {name!r} already exists")
        club = self._club_repo.create(
            conn, name, actor.id,
            description=description, city=city, level=level, is_public=is_public,
            max_teams=max_teams, max_players_per_team=max_players_per_team,
        )
        self._club_member_repo.add(conn, club.id, actor.id, ClubRole.ADMIN.value)
        logger.info("Club %s created by %s", club.id, actor.id)
        return club

    def update_club(self, conn: sqlite3.Connection, actor: User, club_id: str, **fields: Any) -> Club:
        self.get_club(conn, club_id)
        self.assert_club_admin(conn, actor, club_id)
        # verification and status belong to platform admins
        fields.pop("verified", None)
        fields.pop("status", None)
        self._club_repo.update(conn, club_id, **fields)
        return self.get_club(conn, club_id)

    def verify_club(self, conn: sqlite3.Connection, actor: User, club_id: str) -> Club:
        """Platform admin approves a club: verified and active."""
        self.get_club(conn, club_id)
        if not is_super_admin(actor.role):
            raise PermissionDeniedError("Only platform admins can verify clubs")
        self._club_repo.update(conn, club_id, verified=True, status=ClubStatus.ACTIVE.value)
        logger.info("Club %s verified by %s", club_id, actor.id)
        return self.get_club(conn, club_id)

    def set_club_status(self, conn: sqlite3.Connection, actor: User, club_id: str, status: str) -> Club:
        self.get_club(conn, club_id)
        if not is_super_admin(actor.role):
            raise PermissionDeniedError("Only platform admins can change club status")
        try:
            ClubStatus(status)
        except ValueError:
            raise ServiceError(f"Invalid club status: {status}") from None
        self._club_repo.update(conn, club_id, status=status)
        return self.get_club(conn, club_id)

    def list_clubs(
        self,
        conn: sqlite3.Connection,
        city: str | None = None,
        level: str | None = None,
        status: str | None = None,
        search: str | None = None,
    ) -> list[Club]:
        return self._club_repo.list(conn, city=city, level=level, status=status, search=search)

    def list_clubs_for_user(self, conn: sqlite3.Connection, user_id: str) -> list[Club]:
        clubs = []
        for m in self._club_member_repo.list_by_user(conn, user_id):
            club = self._club_repo.get(conn, m.club_id)
            if club is not None:
                clubs.append(club)
        return clubs

    # ---------- Club members ----------

    def list_club_members(self, conn: sqlite3.Connection, club_id: str) -> list[ClubMember]:
        self.get_club(conn, club_id)
        return self._club_member_repo.list_by_club(conn, club_id)

    def add_club_member(
        self, conn: sqlite3.Connection, actor: User, club_id: str, user_id: str, role: str = "member"
    ) -> ClubMember:
        self.get_club(conn, club_id)
        self.assert_club_admin(conn, actor, club_id)
        if self._user_repo.get(conn, user_id) is None:
            raise NotFoundError(f"User not found: {user_id}")
        try:
            ClubRole(role)
        except ValueError:
            raise ServiceError(f"Invalid club role: {role}") from None
        return self._club_member_repo.add(conn, club_id, user_id, role)

    def remove_club_member(self, conn: sqlite3.Connection, actor: User, club_id: str, user_id: str) -> None:
        self.get_club(conn, club_id)
        self.assert_club_admin(conn, actor, club_id)
        member = self._club_member_repo.get(conn, club_id, user_id)
        if member is None:
            raise NotFoundError(f"User {user_id} is not a member of club {club_id}")
        if member.role == ClubRole.ADMIN.value:
            admins = [m for m in self._club_member_repo.list_by_club(conn, club_id) if m.role == ClubRole.ADMIN.value]
            if len(admins) <= 1:
                raise ConflictError("Cannot remove the last club admin")
        for team in self._team_repo.list_by_club(conn, club_id):
            self._team_member_repo.deactivate(conn, team.id, user_id)
        self._club_member_repo.remove(conn, club_id, user_id)

    # ---------- Teams ----------

    def create_team(
        self,
        conn: sqlite3.Connection,
        actor: User,
        club_id: str,
        name: str,
        age_group: str | None = None,
        gender: str = "coed",
        level: str | None = None,
        division: str | None = None,
        season: str | None = None,
        max_players: int | None = None,
    ) -> Team:
        club = self.get_club(conn, club_id)
        self.assert_club_admin(conn, actor, club_id)
        if not name.strip():
            raise ServiceError("Team name is required")
        if gender not in ("male", "female", "coed"):
            raise ServiceError(f"Invalid gender: {gender}")
        if self._team_repo.count_by_club(conn, club_id) >= club.max_teams:
            raise ConflictError(f"Club already has the maximum of {club.max_teams} teams")
        limit = club.max_players_per_team if max_players is None else min(max_players, club.max_players_per_team)
        team = self._team_repo.create(
            conn, club_id, name.strip(), actor.id,
            age_group=age_group, gender=gender, level=level or club.level,
            division=division, season=season, max_players=limit,
        )
        logger.info("Team %s created in club %s", team.id, club_id)
        return team

    def update_team(self, conn: sqlite3.Connection, actor: User, team_id: str, **fields: Any) -> Team:
        team = self.get_team(conn, team_id)
        self.assert_club_admin(conn, actor, team.club_id)
        if fields.get("max_players") is not None:
            club = self.get_club(conn, team.club_id)
            active_players = self._team_member_repo.count_active(conn, team_id, role=TeamRole.PLAYER.value)
            if fields["max_players"] > club.max_players_per_team:
                raise ServiceError(f"max_players cannot exceed the club limit of {club.max_players_per_team}")
            if fields["max_players"] < active_players:
                raise ConflictError(f"Team already has {active_players} players")
        self._team_repo.update(conn, team_id, **fields)
        return self.get_team(conn, team_id)

    def list_teams(self, conn: sqlite3.Connection, club_id: str) -> list[Team]:
        self.get_club(conn, club_id)
        return self._team_repo.list_by_club(conn, club_id)

    def list_teams_for_user(self, conn: sqlite3.Connection, user_id: str) -> list[Team]:
        return self._team_repo.list_by_user(conn, user_id)

    # ---------- Rosters ----------

    def roster(self, conn: sqlite3.Connection, team_id: str) -> list[TeamMember]:
        self.get_team(conn, team_id)
        return self._team_member_repo.list_by_team(conn, team_id)

    def is_on_roster(self, conn: sqlite3.Connection, team_id: str, user_id: str) -> bool:
        member = self._team_member_repo.get(conn, team_id, user_id)
        return member is not None and member.is_active

    def add_team_member(
        self,
        conn: sqlite3.Connection,
        actor: User,
        team_id: str,
        user_id: str,
        role: str = "player",
        position: str | None = None,
        jersey_number: int | None = None,
    ) -> TeamMember:
        """
        Add or update a roster entry. Players count against max_players;
        jersey numbers are 0-99 and unique among active members.
        The user is added to the club if not already a member.
        """
        team = self.get_team(conn, team_id)
        self.assert_club_admin(conn, actor, team.club_id)
        user = self._user_repo.get(conn, user_id)
        if user is None:
            raise NotFoundError(f"User not found: {user_id}")
        try:
            team_role = TeamRole(role)
        except ValueError:
            raise ServiceError(f"Invalid team role: {role}") from None
        if jersey_number is not None:
            if not JERSEY_MIN <= jersey_number <= JERSEY_MAX:
                raise ServiceError(f"Jersey number must be between {JERSEY_MIN} and {JERSEY_MAX}")
            holder = self._team_member_repo.jersey_holder(conn, team_id, jersey_number)
            if holder is not None and holder != user_id:
                raise ConflictError(f"Jersey number {jersey_number} is already taken")
        existing = self._team_member_repo.get(conn, team_id, user_id)
        already_counted = (
            existing is not None and existing.is_active and existing.role == TeamRole.PLAYER.value
        )
        if team_role == TeamRole.PLAYER and not already_counted:
            if self._team_member_repo.count_active(conn, team_id, role=TeamRole.PLAYER.value) >= team.max_players:
                raise ConflictError(f"Team roster is full ({team.max_players} players)")
        member = self._team_member_repo.add(
            conn, team_id, user_id, role=team_role.value, position=position, jersey_number=jersey_number
        )
        if self._club_member_repo.get(conn, team.club_id, user_id) is None:
            self._club_member_repo.add(conn, team.club_id, user_id, _TEAM_ROLE_TO_CLUB_ROLE[team_role].value)
        if existing is None or not existing.is_active:
            self._notifications.notify(
                conn, user_id, NotificationType.TEAM.value,
                "Added to team", f"You have been added to {team.name}",
                {"team_id": team_id, "role": team_role.value},
            )
        return member

    def remove_team_member(self, conn: sqlite3.Connection, actor: User, team_id: str, user_id: str) -> None:
        team = self.get_team(conn, team_id)
        self.assert_club_admin(conn, actor, team.club_id)
        if not self._team_member_repo.deactivate(conn, team_id, user_id):
            raise NotFoundError(f"User {user_id} is not on team {team_id}")

    # ---------- Stats ----------

    def club_stats(self, conn: sqlite3.Connection, club_id: str) -> dict[str, Any]:
        """Headline counts for a club dashboard."""
        self.get_club(conn, club_id)
        teams = self._team_repo.list_by_club(conn, club_id)
        players: set[str] = set()
        coaches: set[str] = set()
        for team in teams:
            for m in self._team_member_repo.list_by_team(conn, team.id):
                if m.role == TeamRole.PLAYER.value:
                    players.add(m.user_id)
                elif m.role == TeamRole.COACH.value:
                    coaches.add(m.user_id)
        match_ids: set[str] = set()
        completed = 0
        for team in teams:
            for match in self._match_repo.list(conn, team_id=team.id):
                if match.id in match_ids:
                    continue
                match_ids.add(match.id)
                if match.status == "completed":
                    completed += 1
        return {
            "club_id": club_id,
            "teams": len(teams),
            "active_teams": sum(1 for t in teams if t.status == "active"),
            "members": len(self._club_member_repo.list_by_club(conn, club_id)),
            "players": len(players),
            "coaches": len(coaches),
            "matches": len(match_ids),
            "completed_matches": completed,
            "tournaments": len(self._tournament_repo.list(conn, club_id=club_id)),
        }
