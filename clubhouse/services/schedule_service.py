"""
Calendar events for clubs and teams, with RSVPs.
"""
from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone

from clubhouse.models import (
    AttendeeStatus,
    EventAttendee,
    NotificationType,
    ScheduleEvent,
    ScheduleEventStatus,
    ScheduleEventType,
    User,
)
from clubhouse.persistence.repositories import (
    EventAttendeeRepository,
    ScheduleEventRepository,
    TeamRepository,
)
from clubhouse.services.club_service import ClubService
from clubhouse.services.errors import InvalidTransitionError, NotFoundError, PermissionDeniedError, ServiceError
from clubhouse.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class ScheduleService:
    def __init__(self) -> None:
        self._event_repo = ScheduleEventRepository()
        self._attendee_repo = EventAttendeeRepository()
        self._team_repo = TeamRepository()
        self._clubs = ClubService()
        self._notifications = NotificationService()

    def get_event(self, conn: sqlite3.Connection, event_id: str) -> ScheduleEvent:
        ev = self._event_repo.get(conn, event_id)
        if ev is None:
            raise NotFoundError(f"Event not found: {event_id}")
        return ev

    def _assert_staff(self, conn: sqlite3.Connection, actor: User, club_id: str) -> None:
        if not self._clubs.is_club_staff(conn, actor, club_id):
            raise PermissionDeniedError("Only club admins and coaches can manage the schedule")

    def create_event(
        self,
        conn: sqlite3.Connection,
        actor: User,
        title: str,
        start_time: datetime,
        type: str = ScheduleEventType.PRACTICE.value,
        club_id: str | None = None,
        team_id: str | None = None,
        duration_minutes: int = 60,
        location: str | None = None,
    ) -> ScheduleEvent:
        """A team event inherits the team's club. Team members are notified."""
        if team_id:
            team = self._clubs.get_team(conn, team_id)
            if club_id and club_id != team.club_id:
                raise ServiceError("Team does not belong to the given club")
            club_id = team.club_id
        if not club_id:
            raise ServiceError("An event needs a club or a team")
        self._clubs.get_club(conn, club_id)
        self._assert_staff(conn, actor, club_id)
        try:
            ScheduleEventType(type)
        except ValueError:
            raise ServiceError(f"Invalid event type: {type}") from None
        if duration_minutes <= 0:
            raise ServiceError("duration_minutes must be positive")
        if not title.strip():
            raise ServiceError("Event title is required")
        ev = self._event_repo.create(
            conn, title.strip(), start_time, actor.id, type=type, club_id=club_id, team_id=team_id,
            duration_minutes=duration_minutes, location=location,
        )
        if team_id:
            self._notifications.notify_team_members(
                conn, [team_id], NotificationType.TEAM.value,
                f"New {type}", f"{ev.title} on {ev.start_time.date().isoformat()}",
                {"event_id": ev.id}, exclude_user_id=actor.id,
            )
        return ev

    def list_events(
        self,
        conn: sqlite3.Connection,
        team_id: str | None = None,
        club_id: str | None = None,
        status: str | None = None,
        upcoming_only: bool = False,
    ) -> list[ScheduleEvent]:
        start_from = datetime.now(timezone.utc) if upcoming_only else None
        return self._event_repo.list(conn, team_id=team_id, club_id=club_id, status=status, start_from=start_from)

    def upcoming_for_user(self, conn: sqlite3.Connection, user_id: str) -> list[ScheduleEvent]:
        """Scheduled events of every team the user plays or coaches for."""
        team_ids = [t.id for t in self._team_repo.list_by_user(conn, user_id)]
        return self._event_repo.list(
            conn, team_ids=team_ids, status=ScheduleEventStatus.SCHEDULED.value,
            start_from=datetime.now(timezone.utc),
        )

    def rsvp(
        self, conn: sqlite3.Connection, actor: User, event_id: str, status: str, notes: str | None = None
    ) -> EventAttendee:
        ev = self.get_event(conn, event_id)
        if ev.status != ScheduleEventStatus.SCHEDULED.value:
            raise InvalidTransitionError(f"Cannot respond to a {ev.status} event")
        try:
            AttendeeStatus(status)
        except ValueError:
            raise ServiceError(f"Invalid RSVP status: {status}") from None
        return self._attendee_repo.upsert(conn, event_id, actor.id, status, notes)

    def attendees(self, conn: sqlite3.Connection, event_id: str) -> list[EventAttendee]:
        self.get_event(conn, event_id)
        return self._attendee_repo.list_by_event(conn, event_id)

    def cancel_event(self, conn: sqlite3.Connection, actor: User, event_id: str) -> ScheduleEvent:
        ev = self.get_event(conn, event_id)
        if ev.club_id:
            self._assert_staff(conn, actor, ev.club_id)
        if ev.status != ScheduleEventStatus.SCHEDULED.value:
            raise InvalidTransitionError(f"Cannot cancel a {ev.status} event")
        self._event_repo.update_status(conn, event_id, ScheduleEventStatus.CANCELLED.value)
        if ev.team_id:
            self._notifications.notify_team_members(
                conn, [ev.team_id], NotificationType.TEAM.value,
                "Event cancelled", f"{ev.title} has been cancelled", {"event_id": ev.id},
                exclude_user_id=actor.id,
            )
        return self.get_event(conn, event_id)

    def complete_event(
        self, conn: sqlite3.Connection, actor: User, event_id: str, attendance: int | None = None
    ) -> ScheduleEvent:
        """Mark done. Attendance defaults to the number of 'going' responses."""
        ev = self.get_event(conn, event_id)
        if ev.club_id:
            self._assert_staff(conn, actor, ev.club_id)
        if ev.status != ScheduleEventStatus.SCHEDULED.value:
            raise InvalidTransitionError(f"Cannot complete a {ev.status} event")
        if attendance is None:
            attendance = self._attendee_repo.count_by_status(conn, event_id, AttendeeStatus.GOING.value)
        if attendance < 0:
            raise ServiceError("attendance must not be negative")
        self._event_repo.update_status(conn, event_id, ScheduleEventStatus.COMPLETED.value, attendance=attendance)
        return self.get_event(conn, event_id)
