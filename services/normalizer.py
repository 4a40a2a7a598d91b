"""
Record normalizer
-----------------
Turns loosely-typed Airtable/Stripe records into the typed records in
common.models. Every parse path has a default; nothing here raises for
malformed business data.

Exports:
  - normalize_engagement(raw, now)
  - normalize_job(raw)
  - normalize_technician(raw)
  - normalize_message(raw, now)
  - normalize_transaction(raw, now)
  - normalize_payout(raw, now)
  - normalize_records(engagements, jobs, technicians, messages, now)

Raw Airtable records look like {"id": ..., "createdTime": ..., "fields": {...}}.
A bare field mapping (no "fields" key) is also accepted.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from common.models import (
    CostBreakdown,
    Engagement,
    ExternalTransaction,
    Job,
    Message,
    Payout,
    Technician,
)
from common.utils import _dt_utc, _first_field, _link_id, _money, _num, _text
from constants.statuses import (
    parse_availability,
    parse_direction,
    parse_engagement_status,
    parse_job_status,
    parse_message_type,
    parse_payout_status,
)

logger = logging.getLogger("ops-dashboard")


# ---------- field alias tables ----------
CUSTOMER_NAME_FIELDS = ("Customer Name", "First Name")
SOURCE_FIELDS = (" Source", "Source")  # upstream column has a leading space
LEAD_TYPE_FIELDS = ("Lead Type", "Service Type")
ENGAGEMENT_DATE_FIELDS = ("Created",)
JOB_NAME_FIELDS = ("Job Name", "Job Title")
MESSAGE_DATE_FIELDS = ("Timestamp", "Created")


# ---------- helpers ----------
def _fields(raw: Mapping[str, Any]) -> Mapping[str, Any]:
    f = raw.get("fields")
    return f if isinstance(f, Mapping) else raw


def _created_time(raw: Mapping[str, Any]) -> Any:
    if "createdTime" in raw:
        return raw.get("createdTime")
    raw_json = raw.get("_rawJson")
    if isinstance(raw_json, Mapping):
        return raw_json.get("createdTime")
    return None


def _timestamp(raw: Mapping[str, Any], names: Sequence[str], now: datetime) -> datetime:
    """Business timestamp field, then record creation time, then `now`."""
    fields = _fields(raw)
    for n in names:
        dt = _dt_utc(fields.get(n), now.tzinfo)
        if dt is not None:
            return dt
    dt = _dt_utc(_created_time(raw))
    if dt is not None:
        return dt
    logger.debug("record %s has no usable timestamp; using reference now", raw.get("id"))
    return now


def _record_id(raw: Mapping[str, Any]) -> str:
    return _text(raw.get("id")) or ""


# ---------- public API ----------
def normalize_engagement(raw: Mapping[str, Any], now: datetime) -> Engagement:
    f = _fields(raw)
    status_raw = _text(f.get("Status"))
    status = parse_engagement_status(status_raw)
    if status_raw and status is None:
        logger.debug("engagement %s has unrecognized status %r", raw.get("id"), status_raw)

    return Engagement(
        id=_record_id(raw),
        created=_timestamp(raw, ENGAGEMENT_DATE_FIELDS, now),
        customer_name=_first_field(f, CUSTOMER_NAME_FIELDS),
        status=status,
        status_raw=status_raw,
        is_actual_lead=bool(f.get("Actual Lead")),
        service_call_amount=_money(f.get("Service Call Amount")),
        project_value=_money(f.get("Project Value")),
        quote_amount=_money(f.get("Quote Amount")),
        total_invoiced=_money(f.get("Total Invoiced")),
        total_cost=_money(f.get("Total Cost")),
        costs=CostBreakdown(
            parts=_money(f.get("Parts Cost")),
            labor=_money(f.get("Labor Cost")),
            travel=_money(f.get("Travel Cost")),
            other=_money(f.get("Other Costs")),
        ),
        profit=_num(f.get("Profit")),
        profit_margin=_num(f.get("Profit Margin")),
        source=_first_field(f, SOURCE_FIELDS, "Unknown"),
        lead_type=_first_field(f, LEAD_TYPE_FIELDS, "-"),
    )


def normalize_job(raw: Mapping[str, Any]) -> Job:
    f = _fields(raw)
    status_raw = _text(f.get("Job Status"))
    return Job(
        id=_record_id(raw),
        name=_first_field(f, JOB_NAME_FIELDS, "Job"),
        status=parse_job_status(status_raw),
        status_raw=status_raw,
        assigned_tech_id=_link_id(f.get("Assigned Tech")),
    )


def normalize_technician(raw: Mapping[str, Any]) -> Technician:
    f = _fields(raw)
    name = _text(f.get("Name"))
    if name is None:
        parts = [_text(f.get("First Name")), _text(f.get("Last Name"))]
        name = " ".join(p for p in parts if p) or "Unknown"
    return Technician(
        id=_record_id(raw),
        name=name,
        availability=parse_availability(f.get("Availability Status")),
    )


def normalize_message(raw: Mapping[str, Any], now: datetime) -> Message:
    f = _fields(raw)
    return Message(
        id=_record_id(raw),
        timestamp=_timestamp(raw, MESSAGE_DATE_FIELDS, now),
        direction=parse_direction(f.get("Direction")),
        type=parse_message_type(f.get("Type")),
        sender=_first_field(f, ("From",), "Unknown"),
        engagement_id=_link_id(f.get("Engagement")),
    )


def normalize_transaction(raw: Mapping[str, Any], now: datetime) -> ExternalTransaction:
    """Stripe charge object (amount in cents) -> ExternalTransaction (amount in units)."""
    customer = raw.get("customer")
    billing = raw.get("billing_details") or {}
    cust = customer if isinstance(customer, Mapping) else {}
    return ExternalTransaction(
        id=_record_id(raw),
        amount=_money(raw.get("amount")) / 100,
        created=_dt_utc(raw.get("created")) or now,
        status=_text(raw.get("status")) or "unknown",
        currency=(_text(raw.get("currency")) or "").upper(),
        customer_name=_text(cust.get("name")) or _text(billing.get("name")) or "Unknown",
        customer_email=_text(cust.get("email")) or _text(billing.get("email")) or "",
    )


def normalize_payout(raw: Mapping[str, Any], now: datetime) -> Payout:
    created = _dt_utc(raw.get("created")) or now
    return Payout(
        id=_record_id(raw),
        amount=_money(raw.get("amount")) / 100,
        created=created,
        arrival_date=_dt_utc(raw.get("arrival_date")) or created,
        status=parse_payout_status(raw.get("status")),
        currency=(_text(raw.get("currency")) or "").upper(),
    )


def _coerce(items: Optional[Iterable[Any]], typed: type, fn) -> List[Any]:
    out: List[Any] = []
    for item in items or ():
        if isinstance(item, typed):
            out.append(item)
        elif isinstance(item, Mapping):
            out.append(fn(item))
        else:
            logger.debug("skipping non-record %r while normalizing %s", type(item), typed.__name__)
    return out


def normalize_records(
    engagements: Optional[Iterable[Any]],
    jobs: Optional[Iterable[Any]],
    technicians: Optional[Iterable[Any]],
    messages: Optional[Iterable[Any]],
    now: datetime,
) -> Tuple[List[Engagement], List[Job], List[Technician], List[Message]]:
    """Normalize each collection once. Already-typed records pass through."""
    return (
        _coerce(engagements, Engagement, lambda r: normalize_engagement(r, now)),
        _coerce(jobs, Job, normalize_job),
        _coerce(technicians, Technician, normalize_technician),
        _coerce(messages, Message, lambda r: normalize_message(r, now)),
    )


__all__ = [
    "normalize_engagement",
    "normalize_job",
    "normalize_technician",
    "normalize_message",
    "normalize_transaction",
    "normalize_payout",
    "normalize_records",
]
