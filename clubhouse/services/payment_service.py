"""
Payment records: dues, registration fees. No payment provider; status is set by callers.
"""
from __future__ import annotations

import logging
import sqlite3

from clubhouse.models import Payment, PaymentStatus, User
from clubhouse.permissions import Permission, has_permission, is_super_admin
from clubhouse.persistence.repositories import PaymentRepository, UserRepository
from clubhouse.services.club_service import ClubService
from clubhouse.services.errors import InvalidTransitionError, NotFoundError, PermissionDeniedError, ServiceError

logger = logging.getLogger(__name__)

_VALID_TRANSITIONS: dict[str, set[str]] = {
    PaymentStatus.PENDING.value: {PaymentStatus.SUCCEEDED.value, PaymentStatus.FAILED.value},
    PaymentStatus.FAILED.value: {PaymentStatus.PENDING.value},  # retry
    PaymentStatus.SUCCEEDED.value: {PaymentStatus.REFUNDED.value},
    PaymentStatus.REFUNDED.value: set(),
}


class PaymentService:
    def __init__(self) -> None:
        self._repo = PaymentRepository()
        self._user_repo = UserRepository()
        self._clubs = ClubService()

    def get_payment(self, conn: sqlite3.Connection, payment_id: str) -> Payment:
        p = self._repo.get(conn, payment_id)
        if p is None:
            raise NotFoundError(f"Payment not found: {payment_id}")
        return p

    def can_manage(self, conn: sqlite3.Connection, actor: User, club_id: str | None) -> bool:
        if is_super_admin(actor.role):
            return True
        if club_id is None or not has_permission(actor.role, Permission.MANAGE_PAYMENTS):
            return False
        return self._clubs.is_club_admin(conn, actor, club_id)

    def record_payment(
        self,
        conn: sqlite3.Connection,
        actor: User,
        amount: float,
        user_id: str | None = None,
        club_id: str | None = None,
        currency: str = "USD",
        method: str = "card",
        description: str | None = None,
    ) -> Payment:
        """Users record their own payments; club payment managers may record for members."""
        payer = user_id or actor.id
        if payer != actor.id and not self.can_manage(conn, actor, club_id):
            raise PermissionDeniedError("Cannot record payments for other users")
        if self._user_repo.get(conn, payer) is None:
            raise NotFoundError(f"User not found: {payer}")
        if club_id is not None:
            self._clubs.get_club(conn, club_id)
        if amount <= 0:
            raise ServiceError("amount must be positive")
        if len(currency) != 3:
            raise ServiceError("currency must be a 3-letter code")
        p = self._repo.create(
            conn, payer, round(amount, 2), currency=currency.upper(), method=method,
            club_id=club_id, description=description,
        )
        logger.info("Payment %s recorded: %.2f %s", p.id, p.amount, p.currency)
        return p

    def set_status(self, conn: sqlite3.Connection, actor: User, payment_id: str, new_status: str) -> Payment:
        p = self.get_payment(conn, payment_id)
        if not self.can_manage(conn, actor, p.club_id):
            raise PermissionDeniedError("Not allowed to manage this payment")
        allowed = _VALID_TRANSITIONS.get(p.status, set())
        if new_status not in allowed:
            raise InvalidTransitionError(
                f"Invalid transition: {p.status} -> {new_status}. Allowed from {p.status}: {sorted(allowed)}"
            )
        self._repo.update_status(conn, payment_id, new_status)
        logger.info("Payment %s: %s -> %s", payment_id, p.status, new_status)
        return self.get_payment(conn, payment_id)

    def mark_succeeded(self, conn: sqlite3.Connection, actor: User, payment_id: str) -> Payment:
        return self.set_status(conn, actor, payment_id, PaymentStatus.SUCCEEDED.value)

    def mark_failed(self, conn: sqlite3.Connection, actor: User, payment_id: str) -> Payment:
        return self.set_status(conn, actor, payment_id, PaymentStatus.FAILED.value)

    def refund(self, conn: sqlite3.Connection, actor: User, payment_id: str) -> Payment:
        """Only succeeded payments can be refunded."""
        return self.set_status(conn, actor, payment_id, PaymentStatus.REFUNDED.value)

    def list_payments(
        self,
        conn: sqlite3.Connection,
        actor: User,
        club_id: str | None = None,
        user_id: str | None = None,
        status: str | None = None,
    ) -> list[Payment]:
        """Club views need payment management rights; otherwise users see only their own."""
        if club_id is not None:
            if not self.can_manage(conn, actor, club_id):
                raise PermissionDeniedError("Not allowed to view this club's payments")
            return self._repo.list(conn, club_id=club_id, user_id=user_id, status=status)
        if user_id is not None and user_id != actor.id and not is_super_admin(actor.role):
            raise PermissionDeniedError("Cannot view other users' payments")
        if user_id is None and is_super_admin(actor.role):
            return self._repo.list(conn, status=status)
        return self._repo.list(conn, user_id=user_id or actor.id, status=status)
