"""
Tests for admin analytics, audit, security summary, system health and sample data.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from clubhouse.models import Payment, User
from clubhouse.persistence.db import get_connection, init_db, set_db_path
from clubhouse.persistence.repositories import UserRepository
from clubhouse.services.admin_service import (
    AdminService,
    calculate_payment_metrics,
    calculate_system_metrics,
    calculate_user_metrics,
    generate_insights,
)
from clubhouse.services.errors import ConflictError, NotFoundError, PermissionDeniedError, ServiceError

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def db_conn(tmp_path):
    db_path = tmp_path / "admin_test.db"
    set_db_path(db_path)
    init_db(db_path=db_path)
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture
def service():
    return AdminService()


def _user(id, days_old, active_days_ago=None, role="player", verified=False):
    return User(
        id=id,
        username=id,
        display_name=id,
        role=role,
        status="active",
        created_at=NOW - timedelta(days=days_old),
        email_verified=verified,
        last_activity=None if active_days_ago is None else NOW - timedelta(days=active_days_ago),
    )


def _payment(id, amount, status, currency="USD"):
    return Payment(id=id, user_id="u", amount=amount, currency=currency, method="card", status=status, created_at=NOW)


# ---------- pure metric helpers ----------


def test_user_metrics():
    users = [
        _user("a", 100, active_days_ago=1, verified=True),
        _user("b", 10, active_days_ago=20),
        _user("c", 2, role="coach"),
        _user("d", 200, active_days_ago=3),
    ]
    m = calculate_user_metrics(users, NOW)
    assert m["total"] == 4
    assert m["active"] == 2
    assert m["new"] == 2
    assert m["verified"] == 1
    assert m["by_role"] == {"player": 3, "coach": 1}
    assert m["growth"] == 50.0
    assert m["retention"] == 50.0
    assert m["churn"] == 50.0


def test_user_metrics_empty():
    m = calculate_user_metrics([], NOW)
    assert m["growth"] == 0.0
    assert m["churn"] == 0.0


def test_payment_metrics():
    m = calculate_payment_metrics([
        _payment("p1", 50, "succeeded"),
        _payment("p2", 75, "succeeded", "EUR"),
        _payment("p3", 100, "pending"),
        _payment("p4", 25, "failed"),
    ])
    assert m["amount"] == 250.0
    assert m["successful_amount"] == 125.0
    assert m["currency"] == "USD"
    assert (m["successful"], m["pending"], m["failed"]) == (2, 1, 1)
    assert m["average_amount"] == 62.5
    assert m["conversion_rate"] == 50.0


def test_system_metrics_defaults_without_samples():
    m = calculate_system_metrics(None, active_connections=3)
    assert m["status"] == "unknown"
    assert m["active_connections"] == 3
    assert m["error_rate"] == 0.2


def test_insights_thresholds():
    users = {"growth": 12.0}
    clubs = {"growth": 5.0}
    payments = {"total": 4, "conversion_rate": 50.0}
    system = {"error_rate": 2.0}
    insights = generate_insights(users, clubs, payments, system)
    assert [i["title"] for i in insights] == [
        "Strong User Growth",
        "Low Payment Conversion",
        "High Error Rate Detected",
    ]
    assert [i["id"] for i in insights] == ["1", "2", "3"]


def test_no_conversion_insight_without_payments():
    insights = generate_insights({"growth": 0}, {"growth": 0}, {"total": 0, "conversion_rate": 0.0}, {"error_rate": 0})
    assert insights == []


# ---------- analytics snapshots ----------


def test_generate_analytics_from_sample_data(db_conn, service):
    service.create_sample_data(db_conn)
    snap = service.generate_analytics(db_conn, "daily")
    metrics = snap.metrics
    assert metrics["users"]["total"] == 4
    assert metrics["users"]["active"] == 3
    assert metrics["clubs"]["total"] == 3
    assert metrics["clubs"]["pending"] == 1
    assert metrics["clubs"]["verified"] == 2
    assert metrics["teams"]["total"] == 3
    assert metrics["events"]["total"] == 4
    assert metrics["events"]["upcoming"] == 2
    assert metrics["payments"]["conversion_rate"] == 50.0
    assert metrics["system"]["status"] == "unknown"
    assert set(metrics) == {"users", "clubs", "teams", "events", "payments", "engagement", "system"}
    assert "Low Payment Conversion" in [i["title"] for i in snap.insights]
    assert service.get_analytics(db_conn, "daily").id == snap.id
    assert [s.id for s in service.list_analytics(db_conn)] == [snap.id]


def test_engagement_counts_successful_logins(db_conn, service):
    user = UserRepository().create(db_conn, "someone")
    service.log_audit_event(db_conn, "login", "auth", user=user)
    service.log_audit_event(db_conn, "login", "auth", username="someone", success=False)
    snap = service.generate_analytics(db_conn, "weekly")
    assert snap.metrics["engagement"]["logins"] == 1


def test_analytics_period_validation(db_conn, service):
    with pytest.raises(ServiceError):
        service.generate_analytics(db_conn, "hourly")
    with pytest.raises(NotFoundError):
        service.get_analytics(db_conn, "monthly")


# ---------- users ----------


def test_update_user_rules(db_conn, service):
    users = UserRepository()
    root = users.create(db_conn, "root", role="super_admin")
    player = users.create(db_conn, "player")
    assert service.update_user(db_conn, root, player.id, role="coach").role == "coach"
    assert service.update_user(db_conn, root, player.id, status="suspended").status == "suspended"
    with pytest.raises(ServiceError):
        service.update_user(db_conn, root, player.id, role="overlord")
    with pytest.raises(ServiceError):
        service.update_user(db_conn, root, root.id, role="player")
    with pytest.raises(PermissionDeniedError):
        service.update_user(db_conn, player, root.id, status="suspended")
    with pytest.raises(NotFoundError):
        service.update_user(db_conn, root, "ghost", role="coach")


def test_update_user_reports_user_gone_after_write(db_conn, service, monkeypatch):
    users = UserRepository()
    root = users.create(db_conn, "root", role="super_admin")
    player = users.create(db_conn, "player")

    def vanish(conn, user_id, **_):
        conn.execute("DELETE FROM users WHERE id = ?", (user_id,))

    monkeypatch.setattr(service._user_repo, "update", vanish)
    with pytest.raises(NotFoundError):
        service.update_user(db_conn, root, player.id, role="coach")


# ---------- audit & security ----------


def test_audit_log_filters(db_conn, service):
    user = UserRepository().create(db_conn, "auditor")
    service.log_audit_event(db_conn, "create", "club", user=user, resource_id="c1", ip_address="10.0.0.1")
    service.log_audit_event(db_conn, "delete", "club", user=user, resource_id="c1", success=False, error_message="nope")
    assert len(service.get_audit_logs(db_conn, user_id=user.id)) == 2
    failed = service.get_audit_logs(db_conn, success=False)
    assert [log.action for log in failed] == ["delete"]
    assert failed[0].username == "auditor"


def test_security_summary_alerts(db_conn, service):
    for _ in range(5):
        service.log_audit_event(db_conn, "login", "auth", username="mallory", success=False, ip_address="1.2.3.4")
    for _ in range(3):
        service.log_audit_event(db_conn, "login", "auth", username="bob", success=False)
    service.log_audit_event(db_conn, "login", "auth", username="alice", success=False)
    service.log_audit_event(db_conn, "login", "auth", username="alice")
    summary = service.security_summary(db_conn, "24h")
    assert summary["total_events"] == 10
    assert summary["failed_events"] == 9
    assert summary["failure_rate"] == 90.0
    assert summary["by_action"] == {"login": 10}
    assert summary["top_users"][0] == {"user": "mallory", "events": 5}
    assert [(a["subject"], a["severity"]) for a in summary["alerts"]] == [("mallory", "critical"), ("bob", "high")]


def test_security_summary_range_validation(db_conn, service):
    with pytest.raises(ServiceError):
        service.security_summary(db_conn, "1y")


# ---------- system health ----------


def test_system_health(db_conn, service):
    assert service.get_system_health(db_conn) is None
    with pytest.raises(ServiceError):
        service.record_system_health(db_conn, "on_fire", 99.0, 100.0)
    with pytest.raises(ServiceError):
        service.record_system_health(db_conn, "healthy", 99.0, 100.0, cpu=1.5)
    service.record_system_health(db_conn, "degraded", 97.5, 480.0, error_count=3, disk=0.25)
    latest = service.get_system_health(db_conn)
    assert latest.status == "degraded"
    m = calculate_system_metrics(latest)
    assert m["error_rate"] == 3.0
    assert m["storage_used"] == 25_000_000_000


# ---------- business intelligence ----------


def test_series_shapes(db_conn, service):
    UserRepository().create(db_conn, "fresh")
    matches = service.matches_over_time(db_conn, days=7)
    assert len(matches) == 7
    assert matches[-1]["date"] == datetime.now(timezone.utc).date().isoformat()
    assert all(row["matches"] == 0 for row in matches)
    trends = service.registration_trends(db_conn, months=3)
    assert len(trends) == 3
    assert trends[-1]["registrations"] == 1
    assert trends[-1]["month"] == datetime.now(timezone.utc).strftime("%Y-%m")
    assert service.tournament_progress(db_conn) == []
    with pytest.raises(ServiceError):
        service.matches_over_time(db_conn, days=0)


# ---------- sample data ----------


def test_sample_data_is_replaceable_and_removable(db_conn, service):
    keep = UserRepository().create(db_conn, "real-user")
    counts = service.create_sample_data(db_conn)
    assert counts == {"users": 4, "clubs": 3, "teams": 3, "events": 4, "payments": 4}
    service.create_sample_data(db_conn)
    assert len(service.list_users(db_conn)) == 5
    cleared = service.clear_sample_data(db_conn)
    assert cleared["users"] == 4
    assert cleared["payments"] == 4
    assert [u.id for u in service.list_users(db_conn)] == [keep.id]


def test_sample_data_refuses_taken_usernames(db_conn, service):
    UserRepository().create(db_conn, "john.doe")
    with pytest.raises(ConflictError):
        service.create_sample_data(db_conn)
    assert [u.username for u in service.list_users(db_conn)] == ["john.doe"]
