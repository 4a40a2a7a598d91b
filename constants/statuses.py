from __future__ import annotations

from enum import Enum as PyEnum
from typing import Dict, FrozenSet, List, Optional, Tuple


# ---------- Enums ----------
class EngagementStatus(str, PyEnum):
    new_lead = "New Lead"
    lead_contacted = "Lead Contacted"
    site_visit_scheduled = "Site Visit Scheduled"
    photos_requested = "Photos Requested"
    quote_sent = "Quote Sent"
    initial_parts_ordered = "Initial Parts Ordered"
    completed = "Completed ✨"
    positive_review = "Positive Review Received"
    negative_review = "Negative Review Received"
    lost = "Lost"


class JobStatus(str, PyEnum):
    draft = "Draft"
    pending = "Pending"
    scheduled = "Scheduled"
    tech_assigned = "Tech Assigned"
    in_progress = "In Progress"
    payment_received = "Payment Received"
    completed = "Completed"


class Availability(str, PyEnum):
    available = "Available"
    busy = "Busy"
    unavailable = "Unavailable"
    unknown = "Unknown"


class MessageDirection(str, PyEnum):
    inbound = "Inbound"
    outbound = "Outbound"
    internal = "Internal"


class MessageType(str, PyEnum):
    sms = "SMS"
    email = "Email"
    call = "Call"
    system = "System"
    note = "Note"


class PayoutStatus(str, PyEnum):
    paid = "paid"
    pending = "pending"
    in_transit = "in_transit"
    canceled = "canceled"
    failed = "failed"


# ---------- Vocabularies (display order) ----------
LEAD_STATUSES: Tuple[EngagementStatus, ...] = tuple(EngagementStatus)
JOB_STATUSES: Tuple[JobStatus, ...] = tuple(JobStatus)
AVAILABILITIES: Tuple[Availability, ...] = tuple(Availability)

_S = EngagementStatus

PAID_STATUSES: FrozenSet[EngagementStatus] = frozenset({
    _S.initial_parts_ordered,
    _S.completed,
    _S.positive_review,
    _S.negative_review,
})
CLOSED_STATUSES = PAID_STATUSES
QUOTED_OR_BEYOND: FrozenSet[EngagementStatus] = PAID_STATUSES | {_S.quote_sent}
OPEN_STATUSES: FrozenSet[EngagementStatus] = frozenset({
    _S.new_lead,
    _S.lead_contacted,
    _S.site_visit_scheduled,
    _S.photos_requested,
    _S.quote_sent,
})

ACTIVE_JOB_STATUSES: FrozenSet[JobStatus] = frozenset({
    JobStatus.pending,
    JobStatus.scheduled,
    JobStatus.tech_assigned,
    JobStatus.in_progress,
})
UNASSIGNED_ALERT_JOB_STATUSES: FrozenSet[JobStatus] = frozenset({JobStatus.pending, JobStatus.scheduled})

# Inclusive status sets per funnel stage, in funnel order.
FUNNEL_STAGES: List[Tuple[str, FrozenSet[EngagementStatus]]] = [
    ("All Leads", frozenset(LEAD_STATUSES)),
    ("Contacted", QUOTED_OR_BEYOND | {_S.lead_contacted, _S.site_visit_scheduled, _S.photos_requested}),
    ("Quote Sent", QUOTED_OR_BEYOND),
    ("Paid/Ordered", PAID_STATUSES),
    ("Completed", frozenset({_S.completed, _S.positive_review, _S.negative_review})),
]


# ---------- Colors ----------
STATUS_COLORS: Dict[EngagementStatus, str] = {
    _S.new_lead: "#00d4ff",
    _S.lead_contacted: "#ffa726",
    _S.site_visit_scheduled: "#42a5f5",
    _S.photos_requested: "#ab47bc",
    _S.quote_sent: "#ce93d8",
    _S.initial_parts_ordered: "#66bb6a",
    _S.completed: "#26a69a",
    _S.positive_review: "#4caf50",
    _S.negative_review: "#ff7043",
    _S.lost: "#ef5350",
}

JOB_STATUS_COLORS: Dict[JobStatus, str] = {
    JobStatus.draft: "#78909c",
    JobStatus.pending: "#ffa726",
    JobStatus.scheduled: "#42a5f5",
    JobStatus.tech_assigned: "#ab47bc",
    JobStatus.in_progress: "#ffca28",
    JobStatus.payment_received: "#66bb6a",
    JobStatus.completed: "#26a69a",
}

AVAILABILITY_COLORS: Dict[Availability, str] = {
    Availability.available: "#66bb6a",
    Availability.busy: "#ffa726",
    Availability.unavailable: "#ef5350",
    Availability.unknown: "#78909c",
}

PAYOUT_STATUS_COLORS: Dict[PayoutStatus, str] = {
    PayoutStatus.paid: "#66bb6a",
    PayoutStatus.pending: "#ffa726",
    PayoutStatus.in_transit: "#42a5f5",
    PayoutStatus.canceled: "#78909c",
    PayoutStatus.failed: "#ef5350",
}

FUNNEL_COLORS: Dict[str, str] = {
    "All Leads": "#00d4ff",
    "Contacted": "#ffa726",
    "Quote Sent": "#ce93d8",
    "Paid/Ordered": "#66bb6a",
    "Completed": "#26a69a",
}

DEFAULT_COLOR = "#78909c"


# ---------- Parsing ----------
# Upstream labels that differ from the canonical enum value.
_ENGAGEMENT_ALIASES: Dict[str, EngagementStatus] = {
    "completed": _S.completed,
    "completed ✨": _S.completed,
}


def _lookup(enum_cls, value: object, aliases: Optional[Dict[str, PyEnum]] = None):
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    try:
        return enum_cls(s)
    except ValueError:
        pass
    low = s.lower()
    if aliases and low in aliases:
        return aliases[low]
    for member in enum_cls:
        if member.value.lower() == low:
            return member
    return None


def parse_engagement_status(value: object) -> Optional[EngagementStatus]:
    return _lookup(EngagementStatus, value, _ENGAGEMENT_ALIASES)


def parse_job_status(value: object) -> Optional[JobStatus]:
    return _lookup(JobStatus, value)


def parse_availability(value: object) -> Availability:
    return _lookup(Availability, value) or Availability.unknown


def parse_direction(value: object) -> Optional[MessageDirection]:
    return _lookup(MessageDirection, value)


def parse_message_type(value: object) -> MessageType:
    return _lookup(MessageType, value) or MessageType.sms


def parse_payout_status(value: object) -> Optional[PayoutStatus]:
    return _lookup(PayoutStatus, value)


__all__ = [
    "EngagementStatus",
    "JobStatus",
    "Availability",
    "MessageDirection",
    "MessageType",
    "PayoutStatus",
    "LEAD_STATUSES",
    "JOB_STATUSES",
    "AVAILABILITIES",
    "PAID_STATUSES",
    "CLOSED_STATUSES",
    "QUOTED_OR_BEYOND",
    "OPEN_STATUSES",
    "ACTIVE_JOB_STATUSES",
    "UNASSIGNED_ALERT_JOB_STATUSES",
    "FUNNEL_STAGES",
    "STATUS_COLORS",
    "JOB_STATUS_COLORS",
    "AVAILABILITY_COLORS",
    "PAYOUT_STATUS_COLORS",
    "FUNNEL_COLORS",
    "DEFAULT_COLOR",
    "parse_engagement_status",
    "parse_job_status",
    "parse_availability",
    "parse_direction",
    "parse_message_type",
    "parse_payout_status",
]
