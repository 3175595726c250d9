"""
Tests for payment records and their status transitions.
"""
from __future__ import annotations

import pytest

from clubhouse.persistence.db import get_connection, init_db, set_db_path
from clubhouse.persistence.repositories import UserRepository
from clubhouse.services.club_service import ClubService
from clubhouse.services.errors import InvalidTransitionError, PermissionDeniedError, ServiceError
from clubhouse.services.payment_service import PaymentService


@pytest.fixture
def db_conn(tmp_path):
    db_path = tmp_path / "payments_test.db"
    set_db_path(db_path)
    init_db(db_path=db_path)
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture
def service():
    return PaymentService()


@pytest.fixture
def setup(db_conn):
    users = UserRepository()
    owner = users.create(db_conn, "treasurer", role="club_admin")
    club = ClubService().create_club(db_conn, owner, "Southbank")
    return {
        "owner": owner,
        "club": club,
        "member": users.create(db_conn, "member"),
        "other": users.create(db_conn, "other"),
    }


def test_member_records_own_payment(db_conn, service, setup):
    p = service.record_payment(db_conn, setup["member"], 49.999, club_id=setup["club"].id, currency="gbp")
    assert p.status == "pending"
    assert p.amount == 50.0
    assert p.currency == "GBP"
    assert p.user_id == setup["member"].id


def test_cannot_record_for_someone_else(db_conn, service, setup):
    with pytest.raises(PermissionDeniedError):
        service.record_payment(db_conn, setup["member"], 10, user_id=setup["other"].id)
    p = service.record_payment(db_conn, setup["owner"], 10, user_id=setup["other"].id, club_id=setup["club"].id)
    assert p.user_id == setup["other"].id


@pytest.mark.parametrize("amount,currency", [(0, "USD"), (-5, "USD"), (10, "EURO")])
def test_record_validation(db_conn, service, setup, amount, currency):
    with pytest.raises(ServiceError):
        service.record_payment(db_conn, setup["member"], amount, currency=currency)


def test_status_transitions(db_conn, service, setup):
    p = service.record_payment(db_conn, setup["member"], 25, club_id=setup["club"].id)
    with pytest.raises(PermissionDeniedError):
        service.mark_succeeded(db_conn, setup["member"], p.id)
    with pytest.raises(InvalidTransitionError):
        service.refund(db_conn, setup["owner"], p.id)
    assert service.mark_failed(db_conn, setup["owner"], p.id).status == "failed"
    assert service.set_status(db_conn, setup["owner"], p.id, "pending").status == "pending"
    assert service.mark_succeeded(db_conn, setup["owner"], p.id).status == "succeeded"
    assert service.refund(db_conn, setup["owner"], p.id).status == "refunded"
    with pytest.raises(InvalidTransitionError):
        service.mark_succeeded(db_conn, setup["owner"], p.id)


def test_list_visibility(db_conn, service, setup):
    club_id = setup["club"].id
    service.record_payment(db_conn, setup["member"], 10, club_id=club_id)
    service.record_payment(db_conn, setup["other"], 20, club_id=club_id)
    assert len(service.list_payments(db_conn, setup["member"])) == 1
    assert len(service.list_payments(db_conn, setup["owner"], club_id=club_id)) == 2
    with pytest.raises(PermissionDeniedError):
        service.list_payments(db_conn, setup["member"], club_id=club_id)
    with pytest.raises(PermissionDeniedError):
        service.list_payments(db_conn, setup["member"], user_id=setup["other"].id)
