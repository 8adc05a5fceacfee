from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.auth import ADMIN, User, get_current_user, require_role
from app.schemas.invoice import InvoiceOut
from app.schemas.payment import PaymentCreate, PaymentOut, RefundCreate, RefundOut, TotalCostOut
from app.services import invoices, payments

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("", response_model=PaymentOut, status_code=status.HTTP_201_CREATED)
def create_payment(
    payload: PaymentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return payments.create_payment(db, current_user, **payload.model_dump())


@router.get("/user/history", response_model=List[PaymentOut])
def payment_history(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    return payments.list_user_payments(db, current_user.id, limit=limit, offset=offset)


@router.get("/admin/refunds/stuck", response_model=List[RefundOut])
def stuck_refunds(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(ADMIN)),
):
    return payments.report_stuck_refunds(db)


@router.get("/rental/{rental_id}", response_model=List[PaymentOut])
def rental_payments(
    rental_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return payments.list_rental_payments(db, current_user, rental_id)


@router.get("/rental/{rental_id}/invoice", response_model=InvoiceOut)
def rental_invoice(
    rental_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return invoices.generate_invoice(db, current_user, rental_id)


@router.get("/rental/{rental_id}/total-cost", response_model=TotalCostOut)
def rental_total_cost(
    rental_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"rental_id": rental_id, "total_cost": payments.calculate_total_cost(db, current_user, rental_id)}


@router.get("/{payment_id}", response_model=PaymentOut)
def get_payment(
    payment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return payments.get_payment(db, current_user, payment_id)


@router.post("/{payment_id}/refund", response_model=RefundOut, status_code=status.HTTP_201_CREATED)
def refund_payment(
    payment_id: int,
    payload: RefundCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return payments.refund_payment(db, current_user, payment_id, payload.amount, payload.reason)


@router.get("/{payment_id}/refunds", response_model=List[RefundOut])
def payment_refunds(
    payment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return payments.list_payment_refunds(db, current_user, payment_id)
