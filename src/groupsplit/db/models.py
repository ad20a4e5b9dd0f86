from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class ParticipantRole(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BudgetPeriod(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


@dataclass(frozen=True, slots=True)
class Participant:
    user_id: int
    role: ParticipantRole = ParticipantRole.MEMBER


@dataclass(slots=True)
class Group:
    id: int
    name: str
    description: Optional[str] = None
    participants: tuple[Participant, ...] = ()


@dataclass(frozen=True, slots=True)
class SplitDetail:
    user_id: int
    amount_assigned: Decimal


@dataclass(slots=True)
class Expense:
    id: int
    group_id: int
    payer_id: int
    amount: Decimal
    date: datetime
    description: str = ""
    budget_id: Optional[int] = None
    split_details: tuple[SplitDetail, ...] = field(default_factory=tuple)


@dataclass(slots=True)
class Payment:
    id: int
    group_id: int
    from_user_id: int
    to_user_id: int
    amount: Decimal
    status: PaymentStatus = PaymentStatus.PENDING
    method: Optional[str] = None
    note: Optional[str] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None


@dataclass(slots=True)
class Budget:
    id: int
    group_id: int
    category: str
    limit: Decimal
    spent: Decimal = Decimal("0")
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    start_date: Optional[date] = None
    end_date: Optional[date] = None
