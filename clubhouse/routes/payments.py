from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request

from clubhouse.deps import audit, audit_failures, db_conn, get_current_user
from clubhouse.models import User
from clubhouse.schemas import CreatePaymentRequest, PaymentStatusRequest
from clubhouse.services import PaymentService

router = APIRouter(tags=["payments"])


@router.post("/payments")
def record_payment(req: CreatePaymentRequest, request: Request, user: User = Depends(get_current_user)) -> dict[str, Any]:
    with db_conn() as conn, audit_failures(conn, request, "create", "payment", user=user):
        p = PaymentService().record_payment(conn, user, **req.model_dump())
        audit(conn, request, "create", "payment", user=user, resource_id=p.id, details={"amount": p.amount})
        return p.to_dict()


@router.get("/payments")
def list_payments(
    club_id: str | None = None,
    user_id: str | None = None,
    status: str | None = None,
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    with db_conn() as conn:
        payments = PaymentService().list_payments(conn, user, club_id=club_id, user_id=user_id, status=status)
        return {"payments": [p.to_dict() for p in payments]}


@router.post("/payments/{payment_id}/status")
def set_payment_status(
    payment_id: str, req: PaymentStatusRequest, request: Request, user: User = Depends(get_current_user)
) -> dict[str, Any]:
    with db_conn() as conn, audit_failures(conn, request, "status", "payment", user=user, resource_id=payment_id):
        p = PaymentService().set_status(conn, user, payment_id, req.status)
        audit(conn, request, "status", "payment", user=user, resource_id=payment_id, details={"status": req.status})
        return p.to_dict()
