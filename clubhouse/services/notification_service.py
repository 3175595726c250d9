"""
In-app notifications: stored per user, fanned out to team rosters.
Delivery beyond the database (push, email) is out of scope; live clients get
match updates over the match WebSocket instead.
"""
from __future__ import annotations

import logging
import sqlite3
from typing import Any, Iterable

from clubhouse.models import Match, MatchEvent, MatchEventType, Notification, NotificationType
from clubhouse.persistence.repositories import (
    NotificationRepository,
    TeamMemberRepository,
    TeamRepository,
    UserRepository,
)
from clubhouse.services.errors import NotFoundError, PermissionDeniedError

logger = logging.getLogger(__name__)

_EVENT_TITLES = {
    MatchEventType.GOAL: "Goal!",
    MatchEventType.PENALTY_GOAL: "Goal!",
    MatchEventType.ASSIST: "Assist!",
    MatchEventType.YELLOW_CARD: "Yellow Card",
    MatchEventType.RED_CARD: "Red Card",
    MatchEventType.SUBSTITUTION: "Substitution",
}


def event_title(event_type: str) -> str:
    try:
        return _EVENT_TITLES.get(MatchEventType(event_type), "Match Event")
    except ValueError:
        return "Match Event"


def event_description(
    event_type: str,
    player_name: str | None = None,
    secondary_name: str | None = None,
    description: str | None = None,
) -> str:
    """One-line body text for a match event notification."""
    player = player_name or "Player"
    if event_type in (MatchEventType.GOAL, MatchEventType.PENALTY_GOAL):
        return f"{player} scored!"
    if event_type == MatchEventType.ASSIST:
        return f"{player} with the assist!"
    if event_type == MatchEventType.YELLOW_CARD:
        return f"{player} received a yellow card"
    if event_type == MatchEventType.RED_CARD:
        return f"{player} received a red card"
    if event_type == MatchEventType.SUBSTITUTION:
        # player_id comes on, secondary_player_id goes off
        return f"{secondary_name or 'Player'} replaced by {player}"
    return description or "Match event occurred"


class NotificationService:
    def __init__(self) -> None:
        self._repo = NotificationRepository()
        self._team_repo = TeamRepository()
        self._member_repo = TeamMemberRepository()
        self._user_repo = UserRepository()

    # ---------- Sending ----------

    def notify(
        self,
        conn: sqlite3.Connection,
        user_id: str,
        type: str,
        title: str,
        body: str,
        data: dict[str, Any] | None = None,
    ) -> Notification:
        return self._repo.create(conn, user_id, type, title, body, data)

    def notify_users(
        self,
        conn: sqlite3.Connection,
        user_ids: Iterable[str],
        type: str,
        title: str,
        body: str,
        data: dict[str, Any] | None = None,
    ) -> int:
        """Create one notification per distinct user. Single commit. Returns count."""
        seen: set[str] = set()
        for uid in user_ids:
            if uid in seen:
                continue
            seen.add(uid)
            self._repo.create(conn, uid, type, title, body, data, commit=False)
        conn.commit()
        return len(seen)

    def team_member_ids(
        self, conn: sqlite3.Connection, team_ids: Iterable[str | None], exclude_user_id: str | None = None
    ) -> list[str]:
        ids: list[str] = []
        for tid in team_ids:
            if not tid:
                continue
            for m in self._member_repo.list_by_team(conn, tid):
                if m.user_id != exclude_user_id and m.user_id not in ids:
                    ids.append(m.user_id)
        return ids

    def notify_team_members(
        self,
        conn: sqlite3.Connection,
        team_ids: Iterable[str | None],
        type: str,
        title: str,
        body: str,
        data: dict[str, Any] | None = None,
        exclude_user_id: str | None = None,
    ) -> int:
        recipients = self.team_member_ids(conn, team_ids, exclude_user_id)
        return self.notify_users(conn, recipients, type, title, body, data)

    # ---------- Match notifications ----------

    def _team_name(self, conn: sqlite3.Connection, team_id: str | None) -> str:
        if not team_id:
            return "TBD"
        team = self._team_repo.get(conn, team_id)
        return team.name if team else "Unknown team"

    def _player_name(self, conn: sqlite3.Connection, user_id: str | None) -> str | None:
        if not user_id:
            return None
        user = self._user_repo.get(conn, user_id)
        return user.display_name if user else None

    def match_scheduled(self, conn: sqlite3.Connection, match: Match) -> int:
        home = self._team_name(conn, match.home_team_id)
        away = self._team_name(conn, match.away_team_id)
        when = match.scheduled_at.date().isoformat() if match.scheduled_at else "a date to be confirmed"
        return self.notify_team_members(
            conn,
            [match.home_team_id, match.away_team_id],
            NotificationType.MATCH_SCHEDULED.value,
            "New Match Scheduled",
            f"{home} vs {away} on {when}",
            {"match_id": match.id, "home_team_id": match.home_team_id, "away_team_id": match.away_team_id},
        )

    def match_started(self, conn: sqlite3.Connection, match: Match) -> int:
        home = self._team_name(conn, match.home_team_id)
        away = self._team_name(conn, match.away_team_id)
        return self.notify_team_members(
            conn,
            [match.home_team_id, match.away_team_id],
            NotificationType.MATCH_STARTED.value,
            "Match Started",
            f"{home} vs {away} has begun!",
            {"match_id": match.id},
        )

    def match_ended(self, conn: sqlite3.Connection, match: Match) -> int:
        home = self._team_name(conn, match.home_team_id)
        away = self._team_name(conn, match.away_team_id)
        return self.notify_team_members(
            conn,
            [match.home_team_id, match.away_team_id],
            NotificationType.MATCH_ENDED.value,
            "Match Ended",
            f"Final Score: {home} {match.home_score} - {match.away_score} {away}",
            {"match_id": match.id, "home_score": match.home_score, "away_score": match.away_score},
        )

    def match_status_changed(self, conn: sqlite3.Connection, match: Match, old_status: str) -> int:
        return self.notify_team_members(
            conn,
            [match.home_team_id, match.away_team_id],
            NotificationType.MATCH_EVENT.value,
            "Match Status Updated",
            f"Match status changed to {match.status}",
            {"match_id": match.id, "old_status": old_status, "new_status": match.status},
        )

    def match_event(self, conn: sqlite3.Connection, match: Match, event: MatchEvent) -> int:
        body = event_description(
            event.type,
            player_name=self._player_name(conn, event.player_id),
            secondary_name=self._player_name(conn, event.secondary_player_id),
            description=event.data.get("description"),
        )
        return self.notify_team_members(
            conn,
            [match.home_team_id, match.away_team_id],
            NotificationType.MATCH_EVENT.value,
            event_title(event.type),
            body,
            {
                "match_id": match.id,
                "event_id": event.id,
                "event_type": event.type,
                "player_id": event.player_id or "",
                "team_id": event.team_id or "",
            },
        )

    def broadcast_system(
        self, conn: sqlite3.Connection, title: str, body: str, role: str | None = None
    ) -> int:
        """System notice to every active user (optionally only one role)."""
        users = self._user_repo.list_all(conn, role=role, status="active")
        count = self.notify_users(conn, [u.id for u in users], NotificationType.SYSTEM.value, title, body)
        logger.info("System notice sent to %d users", count)
        return count

    # ---------- Reading ----------

    def list_for_user(
        self, conn: sqlite3.Connection, user_id: str, unread_only: bool = False, limit: int = 50
    ) -> list[Notification]:
        return self._repo.list_by_user(conn, user_id, unread_only=unread_only, limit=limit)

    def unread_count(self, conn: sqlite3.Connection, user_id: str) -> int:
        return self._repo.count_unread(conn, user_id)

    def mark_read(self, conn: sqlite3.Connection, user_id: str, notification_id: str) -> Notification:
        n = self._repo.get(conn, notification_id)
        if n is None:
            raise NotFoundError(f"Notification not found: {notification_id}")
        if n.user_id != user_id:
            raise PermissionDeniedError("Cannot mark another user's notification as read")
        self._repo.mark_read(conn, notification_id)
        updated = self._repo.get(conn, notification_id)
        if updated is None:
            raise NotFoundError(f"Notification not found: {notification_id}")
        return updated

    def mark_all_read(self, conn: sqlite3.Connection, user_id: str) -> int:
        return self._repo.mark_all_read(conn, user_id)
