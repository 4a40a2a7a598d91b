## common/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from constants.statuses import (
    Availability,
    EngagementStatus,
    JobStatus,
    MessageDirection,
    MessageType,
    PayoutStatus,
)


@dataclass(frozen=True)
class CostBreakdown:
    parts: float = 0.0
    labor: float = 0.0
    travel: float = 0.0
    other: float = 0.0


@dataclass(frozen=True)
class Engagement:
    id: str
    created: datetime
    customer_name: Optional[str] = None
    status: Optional[EngagementStatus] = None
    status_raw: Optional[str] = None
    is_actual_lead: bool = False

    # Money (non-negative)
    service_call_amount: float = 0.0
    project_value: float = 0.0
    quote_amount: float = 0.0
    total_invoiced: float = 0.0
    total_cost: float = 0.0
    costs: CostBreakdown = field(default_factory=CostBreakdown)

    # Derived upstream, may be negative
    profit: float = 0.0
    profit_margin: float = 0.0

    source: str = "Unknown"
    lead_type: str = "-"

    @property
    def amount(self) -> float:
        """Service call + project value; the ledger figure used for revenue totals."""
        return self.service_call_amount + self.project_value

    @property
    def deal_amount(self) -> float:
        return self.total_invoiced if self.total_invoiced > 0 else self.amount

    def display_name(self, default: str = "Unknown") -> str:
        return self.customer_name or default


@dataclass(frozen=True)
class Job:
    id: str
    name: str = "Job"
    status: Optional[JobStatus] = None
    status_raw: Optional[str] = None
    assigned_tech_id: Optional[str] = None  # weak reference, lookup only


@dataclass(frozen=True)
class Technician:
    id: str
    name: str = "Unknown"
    availability: Availability = Availability.unknown


@dataclass(frozen=True)
class Message:
    id: str
    timestamp: datetime
    direction: Optional[MessageDirection] = None
    type: MessageType = MessageType.sms
    sender: str = "Unknown"
    engagement_id: Optional[str] = None  # correlation key, not enforced

    @property
    def label(self) -> str:
        direction = self.direction.value if self.direction else ""
        return f"{direction} {self.type.value}".strip()


@dataclass(frozen=True)
class ExternalTransaction:
    id: str
    amount: float
    created: datetime
    status: str = "succeeded"
    currency: str = "AUD"
    customer_name: str = "Unknown"
    customer_email: str = ""


@dataclass(frozen=True)
class Payout:
    id: str
    amount: float
    created: datetime
    arrival_date: datetime
    status: Optional[PayoutStatus] = None
    currency: str = "AUD"


@dataclass(frozen=True)
class MonthlyRevenue:
    month: str   # short month label, e.g. "Oct"
    year: int
    total: float


@dataclass(frozen=True)
class Balance:
    available: float = 0.0
    pending: float = 0.0


@dataclass(frozen=True)
class ExternalFinancials:
    """Snapshot of the payment processor; absent entirely when unreachable."""
    balance: Balance = field(default_factory=Balance)
    charges: List[ExternalTransaction] = field(default_factory=list)
    payouts: List[Payout] = field(default_factory=list)
    monthly_revenue: List[MonthlyRevenue] = field(default_factory=list)  # oldest first

    @property
    def charges_total(self) -> float:
        return sum(c.amount for c in self.charges)
