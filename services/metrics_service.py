"""
Dashboard metrics aggregation.

Pure transform: normalized records (plus optional payment-processor data and
a reference instant) in, DashboardMetrics out. Each metric group is its own
function so it can be tested alone; aggregate() composes them.

Design goals:
- Safe defaults: malformed fields were already defaulted by the normalizer,
  zero denominators yield 0.0, unresolved references are skipped.
- Processor data is optional. Without it headline revenue comes from the
  ledger and the processor-only sections are omitted (stripe=None).

NOTE: This module does not format currency or render HTML.
"""
from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from business_profile import DASHBOARD_PROFILE, profile_get
from common.models import CostBreakdown, Engagement, ExternalFinancials, Job, Message, Technician
from common.utils import _tz
from common.view_models import (
    ActivityItem,
    DashboardMetrics,
    ExternalSummary,
    FunnelStage,
    Kpis,
    LeadPipeline,
    Profitability,
    QuotedVsActual,
    RecentLead,
    RevenueSummary,
    SalesActivity,
    TechUtilization,
)
from constants.statuses import (
    ACTIVE_JOB_STATUSES,
    AVAILABILITIES,
    AVAILABILITY_COLORS,
    Availability,
    CLOSED_STATUSES,
    DEFAULT_COLOR,
    EngagementStatus,
    FUNNEL_COLORS,
    FUNNEL_STAGES,
    JOB_STATUS_COLORS,
    JOB_STATUSES,
    JobStatus,
    LEAD_STATUSES,
    MessageDirection,
    OPEN_STATUSES,
    PAID_STATUSES,
    PAYOUT_STATUS_COLORS,
    PayoutStatus,
    QUOTED_OR_BEYOND,
    STATUS_COLORS,
)
from services import attention
from services.normalizer import normalize_records
from services.periods import PeriodBounds, empty_period_totals
from services.revenue import headline_revenue, internal_paid_total, revenue_this_month

logger = logging.getLogger("ops-dashboard")


def _pct(num: float, den: float) -> float:
    return round(num / den * 100, 1) if den > 0 else 0.0


def _recent(profile: Dict[str, Any], key: str) -> int:
    return int(profile_get(profile, "recent", key))


def actual_leads(engagements: Iterable[Engagement]) -> List[Engagement]:
    return [e for e in engagements if e.is_actual_lead]


# -----------------------------------------------------------------------------
#  Pipeline & revenue
# -----------------------------------------------------------------------------

def lead_pipeline(leads: Sequence[Engagement]) -> LeadPipeline:
    counts = {s.value: 0 for s in LEAD_STATUSES}
    unrecognized = 0
    for e in leads:
        if e.status is None:
            unrecognized += 1
        else:
            counts[e.status.value] += 1
    return LeadPipeline(
        counts=counts,
        unrecognized=unrecognized,
        colors={s.value: STATUS_COLORS.get(s, DEFAULT_COLOR) for s in LEAD_STATUSES},
    )


def revenue_summary(engagements: Iterable[Engagement]) -> RevenueSummary:
    total_quoted = 0.0
    total_paid = 0.0
    pending = 0.0
    for e in engagements:
        amount = e.amount
        if amount > 0:
            total_quoted += amount
        if e.status in PAID_STATUSES:
            total_paid += amount
        elif e.status == EngagementStatus.quote_sent:
            pending += amount
    return RevenueSummary(
        total_quoted=total_quoted,
        total_paid=total_paid,
        pending_payments=pending,
        collection_rate=_pct(total_paid, total_quoted),
    )


def lead_sources(leads: Iterable[Engagement]) -> List[Dict[str, Any]]:
    counts = Counter(e.source for e in leads)
    # stable: ties keep first-seen order
    return [{"source": s, "count": c} for s, c in sorted(counts.items(), key=lambda kv: -kv[1])]


def jobs_overview(jobs: Iterable[Job]) -> Dict[str, int]:
    out = {s.value: 0 for s in JOB_STATUSES}
    for j in jobs:
        if j.status is not None:
            out[j.status.value] += 1
    return out


def job_status_colors() -> Dict[str, str]:
    return {s.value: JOB_STATUS_COLORS.get(s, DEFAULT_COLOR) for s in JOB_STATUSES}


# -----------------------------------------------------------------------------
#  Period activity
# -----------------------------------------------------------------------------

def sales_activity(leads: Iterable[Engagement], bounds: PeriodBounds) -> SalesActivity:
    leads_n = empty_period_totals(0)
    quotes_out = empty_period_totals(0)
    quotes_value = empty_period_totals(0.0)
    deals_closed = empty_period_totals(0)
    deals_value = empty_period_totals(0.0)

    for e in leads:
        quoted = e.status in QUOTED_OR_BEYOND and e.quote_amount > 0
        closed = e.status in CLOSED_STATUSES
        for p in bounds.classify(e.created):
            leads_n[p] += 1
            if quoted:
                quotes_out[p] += 1
                quotes_value[p] += e.quote_amount
            if closed:
                deals_closed[p] += 1
                deals_value[p] += e.deal_amount

    return SalesActivity(
        leads=leads_n,
        quotes_out=quotes_out,
        quotes_value=quotes_value,
        deals_closed=deals_closed,
        deals_value=deals_value,
    )


# -----------------------------------------------------------------------------
#  Profitability
# -----------------------------------------------------------------------------

def profitability(engagements: Sequence[Engagement], *, top_n: int = 8) -> Profitability:
    total_profit = 0.0
    margin_sum = 0.0
    margin_count = 0
    missing = 0
    variation = 0.0
    pipeline_value = 0.0
    parts = labor = travel = other = 0.0

    for e in engagements:
        parts += e.costs.parts
        labor += e.costs.labor
        travel += e.costs.travel
        other += e.costs.other

        invoiced = e.total_invoiced > 0
        if invoiced:
            total_profit += e.profit
        if e.status == EngagementStatus.completed and invoiced:
            margin_sum += e.profit_margin
            margin_count += 1
            if e.total_cost == 0:
                missing += 1
        # only overruns count; under-quote deltas are dropped, not netted
        if invoiced and e.quote_amount > 0:
            delta = e.total_invoiced - e.quote_amount
            if delta > 0:
                variation += delta
        if e.status in OPEN_STATUSES and e.quote_amount > 0:
            pipeline_value += e.quote_amount

    comparison = sorted(
        (
            QuotedVsActual(
                name=e.display_name("Job"),
                quoted=e.quote_amount,
                invoiced=e.total_invoiced,
                cost=e.total_cost,
            )
            for e in engagements
            if e.status == EngagementStatus.completed and e.quote_amount > 0
        ),
        key=lambda q: q.invoiced,
        reverse=True,
    )[:top_n]

    return Profitability(
        total_profit=total_profit,
        avg_margin=round(margin_sum / margin_count, 1) if margin_count else 0.0,
        missing_costs_count=missing,
        total_variation=variation,
        pipeline_value=pipeline_value,
        cost_breakdown=CostBreakdown(parts=parts, labor=labor, travel=travel, other=other),
        quoted_vs_actual=comparison,
    )


def conversion_funnel(leads: Sequence[Engagement]) -> List[FunnelStage]:
    return [
        FunnelStage(
            stage=stage,
            count=sum(1 for e in leads if e.status in members),
            color=FUNNEL_COLORS.get(stage, DEFAULT_COLOR),
        )
        for stage, members in FUNNEL_STAGES
    ]


# -----------------------------------------------------------------------------
#  Technicians
# -----------------------------------------------------------------------------

def technician_utilization(technicians: Sequence[Technician], jobs: Iterable[Job]) -> List[TechUtilization]:
    counts: Dict[str, int] = {t.id: 0 for t in technicians}
    for j in jobs:
        if j.assigned_tech_id in counts:
            counts[j.assigned_tech_id] += 1
        elif j.assigned_tech_id:
            logger.debug("job %s references unknown tech %s", j.id, j.assigned_tech_id)
    return [
        TechUtilization(
            id=t.id,
            name=t.name,
            availability=t.availability.value,
            job_count=counts[t.id],
            color=AVAILABILITY_COLORS.get(t.availability, DEFAULT_COLOR),
        )
        for t in technicians
    ]


def availability_counts(technicians: Iterable[Technician]) -> Dict[str, int]:
    out = {a.value: 0 for a in AVAILABILITIES}
    for t in technicians:
        out[t.availability.value] += 1
    return out


# -----------------------------------------------------------------------------
#  Recency
# -----------------------------------------------------------------------------

def recent_activity(
    engagements: Iterable[Engagement],
    messages: Iterable[Message],
    *,
    lead_limit: int = 10,
    message_limit: int = 10,
    limit: int = 15,
) -> List[ActivityItem]:
    leads = sorted(
        (
            ActivityItem(
                kind="lead",
                name=e.display_name("New Lead"),
                status=e.status.value if e.status else (e.status_raw or "Unknown"),
                time=e.created,
            )
            for e in engagements
        ),
        key=lambda a: a.time,
        reverse=True,
    )[:lead_limit]
    inbound = sorted(
        (
            ActivityItem(kind="message", name=m.sender, status=m.label, time=m.timestamp)
            for m in messages
            if m.direction == MessageDirection.inbound
        ),
        key=lambda a: a.time,
        reverse=True,
    )[:message_limit]
    return sorted(leads + inbound, key=lambda a: a.time, reverse=True)[:limit]


def recent_leads(leads: Iterable[Engagement], *, limit: int = 15) -> List[RecentLead]:
    ordered = sorted(leads, key=lambda e: e.created, reverse=True)[:limit]
    return [
        RecentLead(
            name=e.display_name("New Lead"),
            status=e.status.value if e.status else (e.status_raw or "Unknown"),
            source=e.source,
            lead_type=e.lead_type,
            time=e.created,
            color=STATUS_COLORS.get(e.status, DEFAULT_COLOR) if e.status else DEFAULT_COLOR,
        )
        for e in ordered
    ]


def external_summary(external: Optional[ExternalFinancials], *, sparkline_months: int = 3) -> Optional[ExternalSummary]:
    if external is None:
        return None
    return ExternalSummary(
        balance=external.balance,
        charges=list(external.charges),
        payouts=list(external.payouts),
        monthly_revenue=list(external.monthly_revenue),
        sparkline=list(external.monthly_revenue[-sparkline_months:]),
        payout_colors={s.value: PAYOUT_STATUS_COLORS.get(s, DEFAULT_COLOR) for s in PayoutStatus},
    )


# -----------------------------------------------------------------------------
#  Entry point
# -----------------------------------------------------------------------------

def aggregate(
    engagements: Optional[Iterable[Any]],
    jobs: Optional[Iterable[Any]],
    technicians: Optional[Iterable[Any]],
    messages: Optional[Iterable[Any]],
    external: Optional[ExternalFinancials],
    now: datetime,
    *,
    profile: Optional[Dict[str, Any]] = None,
) -> DashboardMetrics:
    """Compute the full dashboard view-model.

    Records may be raw Airtable dicts or already-normalized dataclasses.
    `now` is required; a naive value is read in the profile's timezone.
    """
    if now is None:
        raise ValueError("now is required")
    if not isinstance(now, datetime):
        raise TypeError(f"now must be a datetime, got {type(now).__name__}")
    profile = profile or DASHBOARD_PROFILE
    # buckets are cut at local midnight of the reporting timezone
    local_tz = _tz(profile.get("timezone"))
    now = now.replace(tzinfo=local_tz) if now.tzinfo is None else now.astimezone(local_tz)

    engs, job_list, techs, msgs = normalize_records(engagements, jobs, technicians, messages, now)
    bounds = PeriodBounds.from_now(now)
    leads = actual_leads(engs)

    paid_total, converted = internal_paid_total(leads)
    revenue = revenue_summary(engs)
    activity = sales_activity(leads, bounds)
    month_revenue = revenue_this_month(engs, external, bounds)
    overview = jobs_overview(job_list)
    avail = availability_counts(techs)

    kpis = Kpis(
        total_leads=len(leads),
        converted_count=converted,
        conversion_rate=_pct(converted, len(leads)),
        revenue=headline_revenue(paid_total, external),
        revenue_this_month=month_revenue,
        active_jobs=sum(1 for j in job_list if j.status in ACTIVE_JOB_STATUSES),
        completed_jobs=overview[JobStatus.completed.value],
        available_techs=avail[Availability.available.value],
        average_job_value=revenue.total_paid / converted if converted else 0.0,
        leads_this_week=activity.leads["week"],
        leads_this_month=activity.leads["month"],
    )

    alerts = attention.evaluate(
        attention.AttentionContext(
            engagements=engs,
            jobs=job_list,
            now=now,
            revenue_this_month=month_revenue.amount,
            external=external,
            profile=profile,
        )
    )

    logger.info(
        "dashboard aggregated: engagements=%d leads=%d jobs=%d techs=%d messages=%d stripe=%s alerts=%d",
        len(engs), len(leads), len(job_list), len(techs), len(msgs),
        external is not None, len(alerts),
    )

    return DashboardMetrics(
        generated_at=now,
        brand=str(profile.get("brand") or ""),
        kpis=kpis,
        revenue=revenue,
        lead_pipeline=lead_pipeline(leads),
        lead_sources=lead_sources(leads),
        jobs_overview=overview,
        job_status_colors=job_status_colors(),
        sales_activity=activity,
        profitability=profitability(engs, top_n=_recent(profile, "quoted_vs_actual")),
        conversion_funnel=conversion_funnel(leads),
        technicians=technician_utilization(techs, job_list),
        availability_counts=avail,
        recent_activity=recent_activity(
            engs,
            msgs,
            lead_limit=_recent(profile, "leads"),
            message_limit=_recent(profile, "messages"),
            limit=_recent(profile, "activity"),
        ),
        recent_leads=recent_leads(leads, limit=_recent(profile, "lead_list")),
        attention=alerts,
        stripe_available=external is not None,
        stripe=external_summary(external, sparkline_months=_recent(profile, "sparkline_months")),
    )
