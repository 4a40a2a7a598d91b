"""
Dashboard orchestration
-----------------------
Fetch every input concurrently, degrade gracefully when Stripe is
unreachable, then hand the snapshot to the (synchronous) metrics engine.

Exports:
  - DashboardService(airtable, stripe, profile)
  - DashboardService.fetch_external(now)     # None on any Stripe failure
  - DashboardService.build(now=None)         # -> DashboardMetrics
  - from_config(cfg)                         # wire clients from config + env
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from business_profile import build_profile, profile_get
from common.config_loader import cfg_get
from common.models import ExternalFinancials
from common.utils import _tz
from common.view_models import DashboardMetrics
from services.airtable_service import AirtableClient, AirtableConfig
from services.metrics_service import aggregate
from services.stripe_service import StripeClient, StripeConfig, StripeError

logger = logging.getLogger("ops-dashboard")


class DashboardService:
    def __init__(
        self,
        airtable: AirtableClient,
        stripe: Optional[StripeClient] = None,
        profile: Optional[Dict[str, Any]] = None,
    ):
        self.airtable = airtable
        self.stripe = stripe
        self.profile = profile or build_profile()

    def now(self) -> datetime:
        return datetime.now(_tz(self.profile.get("timezone")))

    async def fetch_external(self, now: datetime) -> Optional[ExternalFinancials]:
        if self.stripe is None:
            return None
        try:
            return await self.stripe.fetch_financials(
                now,
                charges=int(profile_get(self.profile, "stripe", "recent_charges")),
                payouts=int(profile_get(self.profile, "stripe", "payouts")),
                months=int(profile_get(self.profile, "stripe", "monthly_revenue_months")),
            )
        except StripeError as e:
            logger.error("Stripe dashboard data error: %s", e)
            return None

    async def build(self, now: Optional[datetime] = None) -> DashboardMetrics:
        now = now or self.now()
        local_tz = _tz(self.profile.get("timezone"))
        now = now.replace(tzinfo=local_tz) if now.tzinfo is None else now.astimezone(local_tz)

        # Airtable failures propagate; Stripe failures become None.
        tables, external = await asyncio.gather(
            self.airtable.fetch_all(),
            self.fetch_external(now),
        )
        return aggregate(
            tables.get("engagements"),
            tables.get("jobs"),
            tables.get("techs"),
            tables.get("messages"),
            external,
            now,
            profile=self.profile,
        )


def from_config(cfg: Optional[Dict[str, Any]] = None) -> DashboardService:
    cfg = cfg or {}
    profile = build_profile(cfg_get(cfg, "dashboard", {}))
    stripe_cfg = StripeConfig.from_env(cfg, currency=profile.get("currency"))
    if not stripe_cfg.secret_key:
        logger.warning("STRIPE_SECRET_KEY not set - revenue will come from Airtable only")
    return DashboardService(
        airtable=AirtableClient(AirtableConfig.from_env(cfg)),
        stripe=StripeClient(stripe_cfg) if stripe_cfg.secret_key else None,
        profile=profile,
    )
