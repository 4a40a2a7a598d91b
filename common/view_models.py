## common/view_models.py
"""
Dashboard view-model. Plain numbers, labels and datetimes only; currency
symbols, HTML and localization belong to whatever renders it.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from common.models import Balance, CostBreakdown, ExternalTransaction, MonthlyRevenue, Payout


@dataclass(frozen=True)
class RevenueFigure:
    amount: float
    source: str  # "stripe" | "internal"


@dataclass(frozen=True)
class Kpis:
    total_leads: int
    converted_count: int
    conversion_rate: float
    revenue: RevenueFigure
    revenue_this_month: RevenueFigure
    active_jobs: int
    completed_jobs: int
    available_techs: int
    average_job_value: float
    leads_this_week: int
    leads_this_month: int


@dataclass(frozen=True)
class RevenueSummary:
    total_quoted: float
    total_paid: float
    pending_payments: float
    collection_rate: float


@dataclass(frozen=True)
class LeadPipeline:
    counts: Dict[str, int]        # vocabulary order
    unrecognized: int = 0         # actual leads whose status is outside the vocabulary
    colors: Dict[str, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.counts.values())


@dataclass(frozen=True)
class SalesActivity:
    leads: Dict[str, int]
    quotes_out: Dict[str, int]
    quotes_value: Dict[str, float]
    deals_closed: Dict[str, int]
    deals_value: Dict[str, float]


@dataclass(frozen=True)
class QuotedVsActual:
    name: str
    quoted: float
    invoiced: float
    cost: float


@dataclass(frozen=True)
class Profitability:
    total_profit: float
    avg_margin: float
    missing_costs_count: int
    total_variation: float
    pipeline_value: float
    cost_breakdown: CostBreakdown
    quoted_vs_actual: List[QuotedVsActual] = field(default_factory=list)


@dataclass(frozen=True)
class FunnelStage:
    stage: str
    count: int
    color: str


@dataclass(frozen=True)
class TechUtilization:
    id: str
    name: str
    availability: str
    job_count: int
    color: str


@dataclass(frozen=True)
class ActivityItem:
    kind: str          # "lead" | "message"
    name: str
    status: str
    time: datetime


@dataclass(frozen=True)
class RecentLead:
    name: str
    status: str
    source: str
    lead_type: str
    time: datetime
    color: str


@dataclass(frozen=True)
class ExternalSummary:
    balance: Balance
    charges: List[ExternalTransaction]
    payouts: List[Payout]
    monthly_revenue: List[MonthlyRevenue]
    sparkline: List[MonthlyRevenue]
    payout_colors: Dict[str, str]  # payout status -> color


@dataclass(frozen=True)
class AttentionItem:
    kind: str
    severity: str
    color: str
    message: str


@dataclass(frozen=True)
class DashboardMetrics:
    generated_at: datetime
    brand: str
    kpis: Kpis
    revenue: RevenueSummary
    lead_pipeline: LeadPipeline
    lead_sources: List[Dict[str, Any]]
    jobs_overview: Dict[str, int]
    job_status_colors: Dict[str, str]
    sales_activity: SalesActivity
    profitability: Profitability
    conversion_funnel: List[FunnelStage]
    technicians: List[TechUtilization]
    availability_counts: Dict[str, int]
    recent_activity: List[ActivityItem]
    recent_leads: List[RecentLead]
    attention: List[AttentionItem]
    stripe_available: bool
    stripe: Optional[ExternalSummary] = None

    def to_dict(self) -> Dict[str, Any]:
        return _plain(dataclasses.asdict(self))


def _plain(v: Any) -> Any:
    if isinstance(v, dict):
        return {str(_plain(k)): _plain(x) for k, x in v.items()}
    if isinstance(v, (list, tuple)):
        return [_plain(x) for x in v]
    if isinstance(v, Enum):
        return v.value
    if isinstance(v, datetime):
        return v.isoformat()
    return v
