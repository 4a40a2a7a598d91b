"""
Attention rules
---------------
A fixed, ordered catalog of independent business rules. Each rule looks at
the normalized records (plus this month's revenue and the processor's monthly
series) and yields zero or more AttentionItem. No rule suppresses another.

Catalog (in order):
  1. stale_quote          Quote Sent, no payment after N days
  2. uncontacted_lead     New Lead not contacted after N days
  3. unassigned_job       Pending/Scheduled job with no tech
  4. revenue_drop         this month below X% of last month (processor data only)
  5. missing_costs        Completed + invoiced but no cost recorded

When nothing fires, a single all_clear item is returned.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from business_profile import DASHBOARD_PROFILE, profile_get
from common.models import Engagement, ExternalFinancials, Job
from common.view_models import AttentionItem
from constants.statuses import EngagementStatus, UNASSIGNED_ALERT_JOB_STATUSES

_DAY = timedelta(days=1)


# ---------- severity table ----------
# kind -> (severity, color)
ATTENTION_STYLES: Dict[str, tuple] = {
    "stale_quote": ("warning", "#ffa726"),
    "uncontacted_lead": ("high", "#ef5350"),
    "unassigned_job": ("warning", "#ab47bc"),
    "revenue_drop": ("high", "#ef5350"),
    "missing_costs": ("data_quality", "#ff7043"),
    "all_clear": ("ok", "#66bb6a"),
}

ALL_CLEAR_MESSAGE = "All clear - nothing needs immediate attention"


def _item(kind: str, message: str) -> AttentionItem:
    severity, color = ATTENTION_STYLES[kind]
    return AttentionItem(kind=kind, severity=severity, color=color, message=message)


@dataclass(frozen=True)
class AttentionContext:
    engagements: Sequence[Engagement]
    jobs: Sequence[Job]
    now: datetime
    revenue_this_month: float
    external: Optional[ExternalFinancials] = None
    profile: Optional[Dict[str, Any]] = None

    def setting(self, key: str) -> Any:
        return profile_get(self.profile or DASHBOARD_PROFILE, "attention", key)

    def days_since(self, ts: datetime) -> int:
        return math.floor((self.now - ts) / _DAY)


# ---------- rules ----------
def stale_quotes(ctx: AttentionContext) -> Iterator[AttentionItem]:
    cutoff = ctx.now - ctx.setting("quote_stale_days") * _DAY
    for e in ctx.engagements:
        if e.status == EngagementStatus.quote_sent and e.created < cutoff:
            yield _item(
                "stale_quote",
                f"{e.display_name()} - Quote sent {ctx.days_since(e.created)} days ago, no payment",
            )


def uncontacted_leads(ctx: AttentionContext) -> Iterator[AttentionItem]:
    cutoff = ctx.now - ctx.setting("uncontacted_lead_days") * _DAY
    for e in ctx.engagements:
        if e.status == EngagementStatus.new_lead and e.created < cutoff:
            yield _item(
                "uncontacted_lead",
                f"New Lead {e.display_name()} - not contacted, {ctx.days_since(e.created)}d ago",
            )


def unassigned_jobs(ctx: AttentionContext) -> Iterator[AttentionItem]:
    for j in ctx.jobs:
        if j.status in UNASSIGNED_ALERT_JOB_STATUSES and not j.assigned_tech_id:
            yield _item("unassigned_job", f"{j.name} {j.status.value} - no tech assigned")


def revenue_drop(ctx: AttentionContext) -> Iterator[AttentionItem]:
    ext = ctx.external
    if ext is None or len(ext.monthly_revenue) < 2:
        return
    last_month = ext.monthly_revenue[-2].total
    if last_month <= 0:
        return
    # half-up, so 74.5 reports as 75
    pct = math.floor(ctx.revenue_this_month * 100 / last_month + 0.5)
    if pct < ctx.setting("revenue_drop_pct"):
        yield _item("revenue_drop", f"Revenue at {pct}% of last month")


def missing_costs(ctx: AttentionContext) -> Iterator[AttentionItem]:
    for e in ctx.engagements:
        if e.status == EngagementStatus.completed and e.total_invoiced > 0 and e.total_cost == 0:
            yield _item("missing_costs", f"{e.display_name()} - completed, no costs recorded")


RULES: List[Callable[[AttentionContext], Iterator[AttentionItem]]] = [
    stale_quotes,
    uncontacted_leads,
    unassigned_jobs,
    revenue_drop,
    missing_costs,
]


def evaluate(ctx: AttentionContext) -> List[AttentionItem]:
    items: List[AttentionItem] = []
    for rule in RULES:
        items.extend(rule(ctx))
    if not items:
        return [_item("all_clear", ALL_CLEAR_MESSAGE)]
    return items
