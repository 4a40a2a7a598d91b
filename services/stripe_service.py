"""
Stripe financial summary (async, read-only)
-------------------------------------------
Exports:
  - StripeConfig.from_env(cfg, currency)
  - StripeClient.get_balance()
  - StripeClient.get_recent_charges(limit=10)
  - StripeClient.get_payouts(limit=5)
  - StripeClient.get_monthly_revenue(now, months=6)
  - StripeClient.fetch_financials(now)      # all of the above, concurrently

Notes:
  - Amounts arrive in cents and are returned in currency units.
  - Only charges/payouts/balances in the configured currency are kept.
  - Any failure raises StripeError; callers decide whether to degrade.
"""
from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from common.config_loader import cfg_get, mask_key
from common.models import Balance, ExternalFinancials, ExternalTransaction, MonthlyRevenue, Payout
from services.normalizer import normalize_payout, normalize_transaction

logger = logging.getLogger("ops-dashboard")

API_URL = "https://api.stripe.com/v1"


class StripeError(RuntimeError):
    """Stripe could not be read (missing key, auth, HTTP or transport failure)."""


@dataclass
class StripeConfig:
    secret_key: Optional[str]
    currency: str = "aud"
    base_url: str = API_URL
    timeout: float = 20.0

    @staticmethod
    def from_env(cfg: Optional[Dict[str, Any]] = None, currency: str = "aud") -> "StripeConfig":
        """Key from the environment; `currency` is the business profile's reporting currency."""
        cfg = cfg or {}
        return StripeConfig(
            secret_key=os.getenv("STRIPE_SECRET_KEY"),
            currency=str(currency or "aud").lower(),
            base_url=cfg_get(cfg, "stripe.base_url", API_URL),
            timeout=float(cfg_get(cfg, "stripe.timeout", 20.0)),
        )


# ---------- helpers ----------
def _month_start(year: int, month: int, tzinfo) -> datetime:
    # month may run below 1 when walking back; fold it into the year
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    return datetime(year, month, 1, tzinfo=tzinfo)


def month_windows(now: datetime, months: int) -> List[tuple]:
    """[(start, end), ...] for the last `months` calendar months, oldest first."""
    out = []
    for i in range(months - 1, -1, -1):
        start = _month_start(now.year, now.month - i, now.tzinfo)
        end = _month_start(now.year, now.month - i + 1, now.tzinfo)
        out.append((start, end))
    return out


class StripeClient:
    def __init__(self, config: StripeConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._transport = transport
        logger.debug("Stripe client key=%s currency=%s", mask_key(config.secret_key), config.currency)

    def _client(self) -> httpx.AsyncClient:
        if not self.config.secret_key:
            raise StripeError("STRIPE_SECRET_KEY is not set")
        return httpx.AsyncClient(
            base_url=self.config.base_url,
            auth=(self.config.secret_key, ""),
            timeout=self.config.timeout,
            transport=self._transport,
        )

    async def _get(self, client: httpx.AsyncClient, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            resp = await client.get(path, params=params)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise StripeError(f"Stripe {path} returned {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise StripeError(f"Stripe {path} request failed: {e}") from e
        if not isinstance(data, dict):
            raise StripeError(f"Stripe {path} returned {type(data).__name__}, expected an object")
        return data

    async def _iter_list(self, client: httpx.AsyncClient, path: str, params: Dict[str, Any]):
        """Yield list objects across pages (`has_more` / `starting_after`)."""
        params = dict(params)
        while True:
            page = await self._get(client, path, params)
            data = page.get("data") or []
            for obj in data:
                yield obj
            if not page.get("has_more") or not data:
                return
            params["starting_after"] = data[-1].get("id")

    # ---------- public API ----------
    async def get_balance(self, client: httpx.AsyncClient) -> Balance:
        data = await self._get(client, "/balance")

        def _pick(entries) -> float:
            for b in entries or []:
                if str(b.get("currency", "")).lower() == self.config.currency:
                    return (b.get("amount") or 0) / 100
            return 0.0

        return Balance(available=_pick(data.get("available")), pending=_pick(data.get("pending")))

    async def get_recent_charges(self, client: httpx.AsyncClient, now: datetime, limit: int = 10) -> List[ExternalTransaction]:
        out: List[ExternalTransaction] = []
        params = {"limit": 100, "expand[]": "data.customer"}
        async for c in self._iter_list(client, "/charges", params):
            if c.get("status") == "succeeded" and str(c.get("currency", "")).lower() == self.config.currency:
                out.append(normalize_transaction(c, now))
                if len(out) >= limit:
                    break
        return out

    async def get_payouts(self, client: httpx.AsyncClient, now: datetime, limit: int = 5) -> List[Payout]:
        page = await self._get(client, "/payouts", {"limit": limit})
        return [
            normalize_payout(p, now)
            for p in page.get("data") or []
            if str(p.get("currency", "")).lower() == self.config.currency
        ]

    async def get_monthly_revenue(self, client: httpx.AsyncClient, now: datetime, months: int = 6) -> List[MonthlyRevenue]:
        results: List[MonthlyRevenue] = []
        for start, end in month_windows(now, months):
            params = {
                "limit": 100,
                "created[gte]": int(start.timestamp()),
                "created[lt]": int(end.timestamp()),
            }
            cents = 0
            async for c in self._iter_list(client, "/charges", params):
                if c.get("status") == "succeeded" and str(c.get("currency", "")).lower() == self.config.currency:
                    cents += c.get("amount") or 0
            results.append(MonthlyRevenue(month=start.strftime("%b"), year=start.year, total=cents / 100))
        return results

    async def fetch_financials(self, now: datetime, *, charges: int = 10, payouts: int = 5, months: int = 6) -> ExternalFinancials:
        async with self._client() as client:
            balance, recent, paid_out, monthly = await asyncio.gather(
                self.get_balance(client),
                self.get_recent_charges(client, now, charges),
                self.get_payouts(client, now, payouts),
                self.get_monthly_revenue(client, now, months),
            )
        return ExternalFinancials(balance=balance, charges=recent, payouts=paid_out, monthly_revenue=monthly)
