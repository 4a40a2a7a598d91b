"""
Airtable record fetcher (async, read-only)
------------------------------------------
Functions / classes:
  - AirtableConfig.from_env(cfg)
  - AirtableClient.list_records(table)      # follows `offset` pagination
  - AirtableClient.fetch_all()              # the four dashboard tables, concurrently

Env (read):
  AIRTABLE_API_KEY, AIRTABLE_BASE_ID,
  AIRTABLE_ENGAGEMENTS_TABLE, AIRTABLE_JOBS_TABLE,
  AIRTABLE_MESSAGES_TABLE, AIRTABLE_TECHS_TABLE

Records are returned exactly as Airtable sends them
({"id", "createdTime", "fields"}); services.normalizer types them.
"""
from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from common.config_loader import cfg_get, mask_key

logger = logging.getLogger("ops-dashboard")

API_URL = "https://api.airtable.com/v0"

TABLE_KEYS = ("engagements", "jobs", "messages", "techs")


class AirtableError(RuntimeError):
    """Airtable could not be read (auth, HTTP or transport failure)."""


@dataclass
class AirtableConfig:
    api_key: Optional[str]
    base_id: Optional[str]
    tables: Dict[str, str] = field(default_factory=dict)
    base_url: str = API_URL
    timeout: float = 30.0
    page_size: int = 100

    @staticmethod
    def from_env(cfg: Optional[Dict[str, Any]] = None) -> "AirtableConfig":
        cfg = cfg or {}
        tables = {}
        for key in TABLE_KEYS:
            env_name = f"AIRTABLE_{key.upper()}_TABLE"
            tables[key] = os.getenv(env_name) or cfg_get(cfg, f"airtable.tables.{key}") or key.capitalize()
        return AirtableConfig(
            api_key=os.getenv("AIRTABLE_API_KEY"),
            base_id=os.getenv("AIRTABLE_BASE_ID") or cfg_get(cfg, "airtable.base_id"),
            tables=tables,
            base_url=cfg_get(cfg, "airtable.base_url", API_URL),
            timeout=float(cfg_get(cfg, "airtable.timeout", 30.0)),
        )


class AirtableClient:
    def __init__(self, config: AirtableConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._transport = transport
        if not config.api_key:
            logger.warning("AIRTABLE_API_KEY not set - record fetches will fail authentication")
        logger.debug("Airtable client base=%s key=%s", config.base_id, mask_key(config.api_key))

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{self.config.base_url}/{self.config.base_id}",
            headers={"Authorization": f"Bearer {self.config.api_key or ''}"},
            timeout=self.config.timeout,
            transport=self._transport,
        )

    async def list_records(self, table_key: str, client: Optional[httpx.AsyncClient] = None) -> List[Dict[str, Any]]:
        table = self.config.tables.get(table_key, table_key)
        if client is None:
            async with self._client() as own:
                return await self.list_records(table_key, own)

        records: List[Dict[str, Any]] = []
        params: Dict[str, Any] = {"pageSize": self.config.page_size}
        while True:
            try:
                resp = await client.get(f"/{table}", params=params)
                resp.raise_for_status()
                data = resp.json()
            except httpx.HTTPStatusError as e:
                raise AirtableError(f"Airtable {table} returned {e.response.status_code}") from e
            except (httpx.HTTPError, ValueError) as e:
                raise AirtableError(f"Airtable {table} request failed: {e}") from e

            records.extend(data.get("records") or [])
            offset = data.get("offset")
            if not offset:
                break
            params = {"pageSize": self.config.page_size, "offset": offset}

        logger.debug("Airtable %s: %d records", table, len(records))
        return records

    async def fetch_all(self) -> Dict[str, List[Dict[str, Any]]]:
        """All dashboard tables, fetched concurrently. Any failure propagates."""
        async with self._client() as client:
            results = await asyncio.gather(*(self.list_records(k, client) for k in TABLE_KEYS))
        return dict(zip(TABLE_KEYS, results))
