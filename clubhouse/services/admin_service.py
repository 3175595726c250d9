"""
Admin analytics: platform-wide metrics snapshots, insights, audit trail,
system health, security summary and business-intelligence series.

generate_analytics reads every collection, runs the metric helpers and
persists one snapshot. The helpers are plain functions over model lists so
they can be tested without a database.
"""
from __future__ import annotations

import logging
import sqlite3
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any

from clubhouse.auth import hash_password
from clubhouse.models import (
    AnalyticsPeriod,
    AnalyticsSnapshot,
    AuditLog,
    Club,
    ClubStatus,
    MatchStatus,
    Payment,
    PaymentStatus,
    ScheduleEvent,
    ScheduleEventStatus,
    SystemHealth,
    Team,
    TeamMember,
    TournamentStatus,
    User,
    UserRole,
    UserStatus,
)
from clubhouse.permissions import Permission, has_permission
from clubhouse.persistence.repositories import (
    AnalyticsSnapshotRepository,
    AuditLogRepository,
    ClubMemberRepository,
    ClubRepository,
    MatchEventRepository,
    MatchRepository,
    NotificationRepository,
    PaymentRepository,
    ScheduleEventRepository,
    SystemHealthRepository,
    TeamMemberRepository,
    TeamRepository,
    TournamentRepository,
    UserRepository,
    delete_rows_with_id_prefix,
    utcnow,
)
from clubhouse.services.errors import ConflictError, NotFoundError, PermissionDeniedError, ServiceError

logger = logging.getLogger(__name__)

ACTIVE_DAYS = 7
NEW_DAYS = 30

USER_GROWTH_THRESHOLD = 10.0
CLUB_GROWTH_THRESHOLD = 5.0
PAYMENT_CONVERSION_TARGET = 90.0
ERROR_RATE_THRESHOLD = 1.0

STORAGE_LIMIT_BYTES = 100_000_000_000
BANDWIDTH_LIMIT_BYTES = 5_000_000_000

FAILED_LOGIN_CRITICAL = 5
FAILED_LOGIN_HIGH = 3

SAMPLE_PREFIX = "sample-"

PERIOD_WINDOWS = {
    AnalyticsPeriod.DAILY.value: timedelta(days=1),
    AnalyticsPeriod.WEEKLY.value: timedelta(days=7),
    AnalyticsPeriod.MONTHLY.value: timedelta(days=30),
    AnalyticsPeriod.YEARLY.value: timedelta(days=365),
}

SECURITY_RANGES = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
}


def _pct(part: float, whole: float) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


def _avg(total: float, count: int, digits: int = 1) -> float:
    return round(total / count, digits) if count else 0.0


def _aware(dt: datetime) -> datetime:
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


# ---------- Metric helpers ----------


def calculate_user_metrics(users: list[User], now: datetime | None = None) -> dict[str, Any]:
    now = _aware(now or utcnow())
    active_since = now - timedelta(days=ACTIVE_DAYS)
    new_since = now - timedelta(days=NEW_DAYS)
    total = len(users)
    active = sum(1 for u in users if u.last_activity is not None and u.last_activity > active_since)
    new = sum(1 for u in users if u.created_at > new_since)
    retention = _pct(active, total)
    return {
        "total": total,
        "active": active,
        "new": new,
        "verified": sum(1 for u in users if u.email_verified),
        "by_role": dict(Counter(u.role or UserRole.PLAYER.value for u in users)),
        "by_status": dict(Counter(u.status or UserStatus.ACTIVE.value for u in users)),
        "growth": _pct(new, total),
        "retention": retention,
        "churn": round(100 - retention, 1) if total else 0.0,
    }


def calculate_club_metrics(
    clubs: list[Club],
    teams: list[Team],
    member_counts: dict[str, int],
    now: datetime | None = None,
) -> dict[str, Any]:
    """member_counts maps club id to its number of club members."""
    now = _aware(now or utcnow())
    new_since = now - timedelta(days=NEW_DAYS)
    total = len(clubs)
    club_ids = {c.id for c in clubs}
    teams_in_clubs = sum(1 for t in teams if t.club_id in club_ids)
    players = sum(member_counts.get(c.id, 0) for c in clubs)
    return {
        "total": total,
        "active": sum(1 for c in clubs if c.status == ClubStatus.ACTIVE.value),
        "pending": sum(1 for c in clubs if c.status == ClubStatus.PENDING.value),
        "verified": sum(1 for c in clubs if c.verified),
        "by_level": dict(Counter(c.level or "recreational" for c in clubs)),
        "by_location": dict(Counter(c.city or "Unknown" for c in clubs)),
        "growth": _pct(sum(1 for c in clubs if c.created_at > new_since), total),
        "average_teams": _avg(teams_in_clubs, total),
        "average_players": _avg(players, total),
    }


def calculate_team_metrics(
    teams: list[Team], members: list[TeamMember], events: list[ScheduleEvent]
) -> dict[str, Any]:
    total = len(teams)
    team_ids = {t.id for t in teams}
    players = sum(1 for m in members if m.team_id in team_ids and m.role == "player")
    team_events = sum(1 for e in events if e.team_id in team_ids)
    return {
        "total": total,
        "active": sum(1 for t in teams if t.status == "active"),
        "by_age_group": dict(Counter(t.age_group or "Unknown" for t in teams)),
        "by_gender": dict(Counter(t.gender or "coed" for t in teams)),
        "by_level": dict(Counter(t.level or "recreational" for t in teams)),
        "average_players": _avg(players, total),
        "average_events": _avg(team_events, total),
    }


def calculate_event_metrics(events: list[ScheduleEvent], now: datetime | None = None) -> dict[str, Any]:
    now = _aware(now or utcnow())
    total = len(events)
    return {
        "total": total,
        "upcoming": sum(1 for e in events if e.start_time > now),
        "completed": sum(1 for e in events if e.status == ScheduleEventStatus.COMPLETED.value),
        "cancelled": sum(1 for e in events if e.status == ScheduleEventStatus.CANCELLED.value),
        "by_type": dict(Counter(e.type or "other" for e in events)),
        "by_status": dict(Counter(e.status or "scheduled" for e in events)),
        "average_attendance": _avg(sum(e.attendance or 0 for e in events), total),
        "average_duration": round(sum(e.duration_minutes or 0 for e in events) / total) if total else 0,
    }


def calculate_payment_metrics(payments: list[Payment]) -> dict[str, Any]:
    total = len(payments)
    succeeded = [p for p in payments if p.status == PaymentStatus.SUCCEEDED.value]
    amount = round(sum(p.amount for p in payments), 2)
    currencies = Counter(p.currency for p in payments)
    return {
        "total": total,
        "amount": amount,
        "successful_amount": round(sum(p.amount for p in succeeded), 2),
        "currency": currencies.most_common(1)[0][0] if currencies else "USD",
        "successful": len(succeeded),
        "failed": sum(1 for p in payments if p.status == PaymentStatus.FAILED.value),
        "pending": sum(1 for p in payments if p.status == PaymentStatus.PENDING.value),
        "refunded": sum(1 for p in payments if p.status == PaymentStatus.REFUNDED.value),
        "by_method": dict(Counter(p.method or "unknown" for p in payments)),
        "average_amount": _avg(amount, total, 2),
        "conversion_rate": _pct(len(succeeded), total),
    }


def calculate_system_metrics(health: SystemHealth | None, active_connections: int = 0) -> dict[str, Any]:
    """disk is a used fraction (0..1); error_count is errors per hundred requests."""
    if health is None:
        return {
            "uptime": 99.8,
            "response_time_ms": 245.0,
            "error_rate": 0.2,
            "active_connections": active_connections,
            "storage_used": STORAGE_LIMIT_BYTES // 2,
            "storage_limit": STORAGE_LIMIT_BYTES,
            "bandwidth_used": 1_000_000_000,
            "bandwidth_limit": BANDWIDTH_LIMIT_BYTES,
            "status": "unknown",
        }
    return {
        "uptime": health.uptime,
        "response_time_ms": health.response_time_ms,
        "error_rate": round(min(float(health.error_count), 100.0), 1),
        "active_connections": active_connections,
        "storage_used": int(health.disk * STORAGE_LIMIT_BYTES),
        "storage_limit": STORAGE_LIMIT_BYTES,
        "bandwidth_used": health.network_bytes,
        "bandwidth_limit": BANDWIDTH_LIMIT_BYTES,
        "status": health.status,
    }


def calculate_engagement_metrics(
    users: list[User],
    logins: int,
    match_events: int,
    notifications_sent: int,
    notifications_read: int,
    window_start: datetime,
) -> dict[str, Any]:
    window_start = _aware(window_start)
    active = sum(1 for u in users if u.last_activity is not None and u.last_activity >= window_start)
    return {
        "logins": logins,
        "active_users": active,
        "logins_per_active_user": _avg(logins, active, 2),
        "match_events_recorded": match_events,
        "notifications_sent": notifications_sent,
        "notifications_read": notifications_read,
        "notification_read_rate": _pct(notifications_read, notifications_sent),
    }


def generate_insights(
    user_metrics: dict[str, Any],
    club_metrics: dict[str, Any],
    payment_metrics: dict[str, Any],
    system_metrics: dict[str, Any],
) -> list[dict[str, Any]]:
    insights: list[dict[str, Any]] = []
    if user_metrics["growth"] > USER_GROWTH_THRESHOLD:
        insights.append({
            "type": "trend",
            "title": "Strong User Growth",
            "description": f"User registrations have increased by {user_metrics['growth']}% this period",
            "severity": "low",
            "category": "users",
            "data": {"growth": user_metrics["growth"]},
            "actionable": True,
        })
    if club_metrics["growth"] > CLUB_GROWTH_THRESHOLD:
        insights.append({
            "type": "trend",
            "title": "Club Growth Increasing",
            "description": f"New club registrations have increased by {club_metrics['growth']}%",
            "severity": "low",
            "category": "clubs",
            "data": {"growth": club_metrics["growth"]},
            "actionable": True,
        })
    if payment_metrics["total"] >= 1 and payment_metrics["conversion_rate"] < PAYMENT_CONVERSION_TARGET:
        insights.append({
            "type": "anomaly",
            "title": "Low Payment Conversion",
            "description": f"Payment conversion rate is {payment_metrics['conversion_rate']}%, below target",
            "severity": "high",
            "category": "payments",
            "data": {"conversion_rate": payment_metrics["conversion_rate"]},
            "actionable": True,
        })
    if system_metrics["error_rate"] > ERROR_RATE_THRESHOLD:
        insights.append({
            "type": "anomaly",
            "title": "High Error Rate Detected",
            "description": f"System error rate is {system_metrics['error_rate']}%",
            "severity": "high",
            "category": "system",
            "data": {"error_rate": system_metrics["error_rate"]},
            "actionable": True,
        })
    for i, insight in enumerate(insights, start=1):
        insight["id"] = str(i)
    return insights


# ---------- Service ----------


class AdminService:
    def __init__(self) -> None:
        self._user_repo = UserRepository()
        self._club_repo = ClubRepository()
        self._club_member_repo = ClubMemberRepository()
        self._team_repo = TeamRepository()
        self._team_member_repo = TeamMemberRepository()
        self._event_repo = ScheduleEventRepository()
        self._payment_repo = PaymentRepository()
        self._match_repo = MatchRepository()
        self._match_event_repo = MatchEventRepository()
        self._tournament_repo = TournamentRepository()
        self._notification_repo = NotificationRepository()
        self._audit_repo = AuditLogRepository()
        self._health_repo = SystemHealthRepository()
        self._snapshot_repo = AnalyticsSnapshotRepository()

    # ----- analytics -----

    def generate_analytics(
        self,
        conn: sqlite3.Connection,
        period: str = AnalyticsPeriod.DAILY.value,
        date: datetime | None = None,
    ) -> AnalyticsSnapshot:
        """Compute every metric group and persist a snapshot for (period, date)."""
        try:
            period = AnalyticsPeriod(period).value
        except ValueError:
            raise ServiceError(f"Invalid analytics period: {period}") from None
        target = _aware(date or utcnow())
        window_start = target - PERIOD_WINDOWS[period]
        try:
            users = self._user_repo.list_all(conn)
            clubs = self._club_repo.list(conn)
            teams = self._team_repo.list_all(conn)
            team_members = self._team_member_repo.list_all(conn)
            events = self._event_repo.list(conn)
            payments = self._payment_repo.list(conn)
            health = self._health_repo.get_latest(conn)
            member_counts = {c.id: len(self._club_member_repo.list_by_club(conn, c.id)) for c in clubs}

            user_metrics = calculate_user_metrics(users, target)
            club_metrics = calculate_club_metrics(clubs, teams, member_counts, target)
            team_metrics = calculate_team_metrics(teams, team_members, events)
            event_metrics = calculate_event_metrics(events, target)
            payment_metrics = calculate_payment_metrics(payments)
            system_metrics = calculate_system_metrics(health, user_metrics["active"])

            logins = len(self._audit_repo.list(
                conn, action="login", success=True, start=window_start, end=target, limit=None
            ))
            sent, read = self._notification_repo.count_between(conn, window_start, target)
            engagement = calculate_engagement_metrics(
                users,
                logins=logins,
                match_events=self._match_event_repo.count_between(conn, window_start, target),
                notifications_sent=sent,
                notifications_read=read,
                window_start=window_start,
            )
            insights = generate_insights(user_metrics, club_metrics, payment_metrics, system_metrics)
            snapshot = self._snapshot_repo.create(
                conn,
                period,
                target,
                {
                    "users": user_metrics,
                    "clubs": club_metrics,
                    "teams": team_metrics,
                    "events": event_metrics,
                    "payments": payment_metrics,
                    "engagement": engagement,
                    "system": system_metrics,
                },
                insights,
            )
        except Exception:
            logger.exception("Analytics generation failed for period %s", period)
            raise
        logger.info("Generated %s analytics %s with %d insights", period, snapshot.id, len(insights))
        return snapshot

    def get_analytics(
        self, conn: sqlite3.Connection, period: str = AnalyticsPeriod.DAILY.value
    ) -> AnalyticsSnapshot:
        snap = self._snapshot_repo.get_latest(conn, period)
        if snap is None:
            raise NotFoundError(f"No {period} analytics generated yet")
        return snap

    def list_analytics(
        self, conn: sqlite3.Connection, period: str | None = None, limit: int = 30
    ) -> list[AnalyticsSnapshot]:
        return self._snapshot_repo.list(conn, period=period, limit=limit)

    # ----- users -----

    def list_users(
        self, conn: sqlite3.Connection, role: str | None = None, status: str | None = None
    ) -> list[User]:
        return self._user_repo.list_all(conn, role=role, status=status)

    def update_user(
        self,
        conn: sqlite3.Connection,
        actor: User,
        user_id: str,
        role: str | None = None,
        status: str | None = None,
    ) -> User:
        if not has_permission(actor.role, Permission.MANAGE_USERS):
            raise PermissionDeniedError("Not allowed to manage users")
        user = self._user_repo.get(conn, user_id)
        if user is None:
            raise NotFoundError(f"User not found: {user_id}")
        if role is not None:
            try:
                UserRole(role)
            except ValueError:
                raise ServiceError(f"Invalid role: {role}") from None
        if status is not None:
            try:
                UserStatus(status)
            except ValueError:
                raise ServiceError(f"Invalid status: {status}") from None
        if user_id == actor.id and (
            (role is not None and role != UserRole.SUPER_ADMIN.value)
            or status == UserStatus.SUSPENDED.value
        ):
            raise ServiceError("Admins cannot demote or suspend themselves")
        self._user_repo.update(conn, user_id, role=role, status=status)
        logger.info("User %s updated by %s: role=%s status=%s", user_id, actor.id, role, status)
        updated = self._user_repo.get(conn, user_id)
        if updated is None:
            raise NotFoundError(f"User not found: {user_id}")
        return updated

    # ----- audit -----

    def log_audit_event(
        self,
        conn: sqlite3.Connection,
        action: str,
        resource: str,
        user: User | None = None,
        resource_id: str | None = None,
        details: dict[str, Any] | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
        success: bool = True,
        error_message: str | None = None,
        username: str | None = None,
    ) -> AuditLog:
        """username covers failed logins, where no user is resolved."""
        return self._audit_repo.create(
            conn,
            action,
            resource,
            user_id=user.id if user else None,
            username=user.username if user else username,
            resource_id=resource_id,
            details=details,
            ip_address=ip_address,
            user_agent=user_agent,
            success=success,
            error_message=error_message,
        )

    def get_audit_logs(
        self,
        conn: sqlite3.Connection,
        user_id: str | None = None,
        action: str | None = None,
        resource: str | None = None,
        success: bool | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int = 100,
    ) -> list[AuditLog]:
        return self._audit_repo.list(
            conn, user_id=user_id, action=action, resource=resource, success=success,
            start=start, end=end, limit=limit,
        )

    # ----- system health -----

    def record_system_health(
        self,
        conn: sqlite3.Connection,
        status: str,
        uptime: float,
        response_time_ms: float,
        error_count: int = 0,
        cpu: float = 0.0,
        memory: float = 0.0,
        disk: float = 0.0,
        network_bytes: int = 0,
    ) -> SystemHealth:
        if status not in ("healthy", "degraded", "down"):
            raise ServiceError(f"Invalid health status: {status}")
        for name, value in (("cpu", cpu), ("memory", memory), ("disk", disk)):
            if not 0.0 <= value <= 1.0:
                raise ServiceError(f"{name} must be a fraction between 0 and 1")
        health = self._health_repo.create(
            conn, status, uptime, response_time_ms, error_count=error_count,
            cpu=cpu, memory=memory, disk=disk, network_bytes=network_bytes,
        )
        if status != "healthy":
            logger.warning("System health reported %s (errors=%d)", status, error_count)
        return health

    def get_system_health(self, conn: sqlite3.Connection) -> SystemHealth | None:
        return self._health_repo.get_latest(conn)

    # ----- security -----

    def security_summary(self, conn: sqlite3.Connection, range: str = "7d") -> dict[str, Any]:
        if range not in SECURITY_RANGES:
            raise ServiceError(f"Invalid range: {range}. Allowed: {sorted(SECURITY_RANGES)}")
        now = utcnow()
        logs = self._audit_repo.list(conn, start=now - SECURITY_RANGES[range], limit=None)
        failures = [log for log in logs if not log.success]
        by_user = Counter(log.username or log.user_id or "anonymous" for log in logs)
        failed_logins = Counter(
            log.username or log.ip_address or "unknown" for log in failures if log.action == "login"
        )
        alerts = []
        for subject, count in failed_logins.most_common():
            if count >= FAILED_LOGIN_CRITICAL:
                severity = "critical"
            elif count >= FAILED_LOGIN_HIGH:
                severity = "high"
            else:
                continue
            alerts.append({
                "type": "failed_logins",
                "severity": severity,
                "subject": subject,
                "count": count,
                "message": f"{count} failed login attempts for {subject}",
            })
        return {
            "range": range,
            "total_events": len(logs),
            "failed_events": len(failures),
            "failure_rate": _pct(len(failures), len(logs)),
            "by_action": dict(Counter(log.action for log in logs)),
            "by_resource": dict(Counter(log.resource for log in logs)),
            "top_users": [{"user": u, "events": n} for u, n in by_user.most_common(5)],
            "alerts": alerts,
        }

    # ----- business intelligence -----

    def matches_over_time(self, conn: sqlite3.Connection, days: int = 30) -> list[dict[str, Any]]:
        """One row per day (oldest first) with matches played and goals, by kickoff date."""
        if days < 1:
            raise ServiceError("days must be at least 1")
        today = utcnow().date()
        series = {today - timedelta(days=days - 1 - i): {"matches": 0, "goals": 0} for i in range(days)}
        for m in self._match_repo.list(conn):
            kickoff = m.started_at or m.scheduled_at
            if kickoff is None or m.status in (MatchStatus.CANCELLED.value, MatchStatus.POSTPONED.value):
                continue
            day = kickoff.astimezone(timezone.utc).date()
            if day in series:
                series[day]["matches"] += 1
                series[day]["goals"] += m.home_score + m.away_score
        return [{"date": d.isoformat(), **v} for d, v in series.items()]

    def registration_trends(self, conn: sqlite3.Connection, months: int = 6) -> list[dict[str, Any]]:
        """New users per calendar month, oldest first, ending with the current month."""
        if months < 1:
            raise ServiceError("months must be at least 1")
        now = utcnow()
        year, month = now.year, now.month
        starts = []
        for _ in range(months):
            starts.append(datetime(year, month, 1, tzinfo=timezone.utc))
            year, month = (year - 1, 12) if month == 1 else (year, month - 1)
        starts.reverse()
        rows = []
        for i, start in enumerate(starts):
            if i + 1 < len(starts):
                end = starts[i + 1]
            else:
                end = datetime(start.year + (start.month == 12), start.month % 12 + 1, 1, tzinfo=timezone.utc)
            rows.append({
                "month": start.strftime("%Y-%m"),
                "registrations": self._user_repo.count_created_between(conn, start, end),
            })
        return rows

    def tournament_progress(self, conn: sqlite3.Connection) -> list[dict[str, Any]]:
        rows = []
        for t in self._tournament_repo.list(conn, status=TournamentStatus.IN_PROGRESS.value):
            matches = self._match_repo.list(conn, tournament_id=t.id)
            done = sum(1 for m in matches if m.status == MatchStatus.COMPLETED.value)
            rows.append({
                "tournament_id": t.id,
                "name": t.name,
                "completed_matches": done,
                "total_matches": len(matches),
                "progress": _pct(done, len(matches)),
            })
        return rows

    # ----- sample data -----

    def create_sample_data(self, conn: sqlite3.Connection) -> dict[str, int]:
        """Insert a small fixed data set, ids prefixed with 'sample-'. Replaces any earlier sample set."""
        self.clear_sample_data(conn)
        now = utcnow()
        day = timedelta(days=1)
        password = hash_password("sample-password")
        users = [
            ("john.doe", "John Doe", UserRole.PLAYER.value, UserStatus.ACTIVE.value, True, now - 30 * day, now),
            ("jane.smith", "Jane Smith", UserRole.COACH.value, UserStatus.ACTIVE.value, True, now - 15 * day, now),
            ("mike.wilson", "Mike Wilson", UserRole.CLUB_ADMIN.value, UserStatus.ACTIVE.value, True, now - 7 * day, now),
            ("sarah.jones", "Sarah Jones", UserRole.PARENT.value, UserStatus.PENDING.value, False, now, None),
        ]
        for username, *_ in users:
            if self._user_repo.get_by_username(conn, username) is not None:
                raise ConflictError(f"Sample username already taken: {username}")
        for username, name, role, status, verified, created, active in users:
            self._user_repo.create(
                conn, username, password_hash=password, display_name=name,
                email=f"{username}@example.com", role=role, status=status, email_verified=verified,
                created_at=created, last_activity=active, id=f"{SAMPLE_PREFIX}{username}",
            )
        admin_id = f"{SAMPLE_PREFIX}mike.wilson"
        clubs = [
            ("springfield", "Springfield Soccer Club", "Springfield", "recreational", "active", True, now - 365 * day),
            ("chicago", "Chicago Elite FC", "Chicago", "elite", "active", True, now - 730 * day),
            ("pending", "New Club Pending", "Other", "competitive", "pending", False, now),
        ]
        for key, name, city, level, status, verified, created in clubs:
            club_id = f"{SAMPLE_PREFIX}club-{key}"
            self._club_repo.create(
                conn, name, admin_id, city=city, level=level, status=status, verified=verified,
                created_at=created, id=club_id,
            )
            self._club_member_repo.add(conn, club_id, admin_id, "admin")
        springfield = f"{SAMPLE_PREFIX}club-springfield"
        teams = [
            ("u12-boys", springfield, "U12 Boys", "U12", "male", "recreational"),
            ("u14-girls", springfield, "U14 Girls", "U14", "female", "competitive"),
            ("adult-coed", f"{SAMPLE_PREFIX}club-chicago", "Adult Coed", "Adult", "coed", "recreational"),
        ]
        for key, club_id, name, age_group, gender, level in teams:
            self._team_repo.create(
                conn, club_id, name, admin_id, age_group=age_group, gender=gender, level=level,
                id=f"{SAMPLE_PREFIX}team-{key}",
            )
        u12 = f"{SAMPLE_PREFIX}team-u12-boys"
        self._team_member_repo.add(conn, u12, f"{SAMPLE_PREFIX}jane.smith", "coach")
        self._team_member_repo.add(conn, u12, f"{SAMPLE_PREFIX}john.doe", "player", jersey_number=9)
        self._club_member_repo.add(conn, springfield, f"{SAMPLE_PREFIX}jane.smith", "coach")
        self._club_member_repo.add(conn, springfield, f"{SAMPLE_PREFIX}john.doe", "player")
        events = [
            ("practice", "Practice Session", "practice", "completed", now - 7 * day, 90, 15),
            ("league-game", "League Game", "game", "completed", now - 3 * day, 120, 25),
            ("tournament", "Upcoming Tournament", "tournament", "scheduled", now + 7 * day, 480, None),
            ("meeting", "Team Meeting", "meeting", "scheduled", now + 2 * day, 60, None),
        ]
        for key, title, type_, status, start, duration, attendance in events:
            self._event_repo.create(
                conn, title, start, admin_id, type=type_, status=status, club_id=springfield,
                team_id=u12, duration_minutes=duration, attendance=attendance, id=f"{SAMPLE_PREFIX}event-{key}",
            )
        payments = [
            (50.0, "succeeded", "stripe", "john.doe"),
            (75.0, "succeeded", "paypal", "jane.smith"),
            (100.0, "pending", "bank", "sarah.jones"),
            (25.0, "failed", "stripe", "john.doe"),
        ]
        for i, (amount, status, method, username) in enumerate(payments, start=1):
            self._payment_repo.create(
                conn, f"{SAMPLE_PREFIX}{username}", amount, currency="USD", method=method, status=status,
                club_id=springfield, description="Season dues", id=f"{SAMPLE_PREFIX}payment-{i}",
            )
        counts = {
            "users": len(users),
            "clubs": len(clubs),
            "teams": len(teams),
            "events": len(events),
            "payments": len(payments),
        }
        logger.info("Sample data created: %s", counts)
        return counts

    def clear_sample_data(self, conn: sqlite3.Connection) -> dict[str, int]:
        """Delete only rows created by create_sample_data."""
        counts = delete_rows_with_id_prefix(conn, SAMPLE_PREFIX)
        removed = sum(counts.values())
        if removed:
            logger.info("Sample data cleared: %d rows", removed)
        return counts
