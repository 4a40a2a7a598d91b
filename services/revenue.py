"""
Revenue reconciliation between the internal ledger (engagement amounts) and
the payment processor. When the processor answered with data it wins for
headline figures; otherwise the ledger is used. The two are never blended.
"""
from __future__ import annotations

from typing import Iterable, Optional, Tuple

from common.models import Engagement, ExternalFinancials
from common.view_models import RevenueFigure
from constants.statuses import PAID_STATUSES
from services.periods import PeriodBounds

SOURCE_STRIPE = "stripe"
SOURCE_INTERNAL = "internal"


def internal_paid_total(actual_leads: Iterable[Engagement]) -> Tuple[float, int]:
    """(sum of amounts, count) over actual leads in a paid status."""
    total = 0.0
    count = 0
    for e in actual_leads:
        if e.status in PAID_STATUSES:
            total += e.amount
            count += 1
    return total, count


def headline_revenue(internal_total: float, external: Optional[ExternalFinancials]) -> RevenueFigure:
    if external is not None and external.charges:
        return RevenueFigure(external.charges_total, SOURCE_STRIPE)
    return RevenueFigure(internal_total, SOURCE_INTERNAL)


def revenue_this_month(
    engagements: Iterable[Engagement],
    external: Optional[ExternalFinancials],
    bounds: PeriodBounds,
) -> RevenueFigure:
    if external is not None and external.monthly_revenue:
        return RevenueFigure(external.monthly_revenue[-1].total, SOURCE_STRIPE)
    total = sum(
        e.amount
        for e in engagements
        if e.status in PAID_STATUSES and bounds.month <= e.created
    )
    return RevenueFigure(total, SOURCE_INTERNAL)
