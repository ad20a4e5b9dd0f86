from __future__ import annotations

from decimal import Decimal
from typing import Optional, Protocol

from groupsplit.db.models import Payment, PaymentStatus
from groupsplit.logging import get_logger
from groupsplit.services.authz import AuthorizationError, Repository, is_group_admin


class PaymentNotFoundError(LookupError):
    pass


class PaymentStateError(ValueError):
    pass


class PaymentRepository(Protocol):
    db: Repository

    async def get_payment(self, payment_id: int) -> Optional[Payment]: ...

    async def set_payment_status(
        self,
        payment_id: int,
        status: PaymentStatus,
        approved_by: Optional[int] = None,
    ) -> None: ...


def validate_payment(from_user_id: int, to_user_id: int, amount: Decimal) -> None:
    if amount <= 0:
        raise ValueError("Payment amount must be positive")
    if from_user_id == to_user_id:
        raise ValueError("Cannot pay yourself")


async def _load_pending(repo: PaymentRepository, payment_id: int) -> Payment:
    payment = await repo.get_payment(payment_id)
    if payment is None:
        raise PaymentNotFoundError(f"Payment {payment_id} not found")
    if payment.status != PaymentStatus.PENDING:
        raise PaymentStateError(f"Payment {payment_id} is already {payment.status.value}")
    return payment


async def confirm_payment(repo: PaymentRepository, payment_id: int, actor_id: int) -> Payment:
    """Mark a pending payment as completed.

    Only the recipient or a group admin may confirm that money arrived.
    """
    payment = await _load_pending(repo, payment_id)
    if actor_id != payment.to_user_id and not await is_group_admin(repo.db, actor_id, payment.group_id):
        raise AuthorizationError("Only the recipient or a group admin can confirm this payment.")

    await repo.set_payment_status(payment_id, PaymentStatus.COMPLETED, approved_by=actor_id)
    payment.status = PaymentStatus.COMPLETED
    payment.approved_by = actor_id
    get_logger(__name__).info(
        "payment.status_changed",
        payment_id=payment_id,
        status=payment.status.value,
        actor_id=actor_id,
    )
    return payment


async def cancel_payment(repo: PaymentRepository, payment_id: int, actor_id: int) -> Payment:
    payment = await _load_pending(repo, payment_id)
    involved = actor_id in (payment.from_user_id, payment.to_user_id)
    if not involved and not await is_group_admin(repo.db, actor_id, payment.group_id):
        raise AuthorizationError("Only the payer, the recipient or a group admin can cancel this payment.")

    await repo.set_payment_status(payment_id, PaymentStatus.CANCELLED)
    payment.status = PaymentStatus.CANCELLED
    get_logger(__name__).info(
        "payment.status_changed",
        payment_id=payment_id,
        status=payment.status.value,
        actor_id=actor_id,
    )
    return payment
