# tests/test_normalizer.py
from datetime import datetime, timedelta, timezone

import pytest

from common.models import Engagement
from common.utils import _dt_utc, _num
from constants.statuses import Availability, EngagementStatus, JobStatus, MessageDirection, MessageType
from services.normalizer import (
    normalize_engagement,
    normalize_job,
    normalize_message,
    normalize_payout,
    normalize_records,
    normalize_technician,
    normalize_transaction,
)
from tests.helpers import LOCAL_TZ, NOW, engagement


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1200", 1200.0),
        ("$1,250.50", 1250.5),
        (99, 99.0),
        (12.5, 12.5),
        ([300], 300.0),
        ("abc", 0.0),
        ("", 0.0),
        (None, 0.0),
        (True, 0.0),
        (float("nan"), 0.0),
        ("inf", 0.0),
        ([1, 2], 0.0),
    ],
)
def test_num_defaults_to_zero(raw, expected):
    assert _num(raw) == expected


def test_dt_utc_formats():
    assert _dt_utc("2026-10-01T00:00:00.000Z") == datetime(2026, 10, 1, tzinfo=timezone.utc)
    assert _dt_utc("2026-10-01 09:30") == datetime(2026, 10, 1, 9, 30, tzinfo=timezone.utc)
    assert _dt_utc(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)
    assert _dt_utc("not a date") is None
    assert _dt_utc(None) is None


def test_date_only_value_is_local_midnight():
    e = normalize_engagement({"id": "r1", "fields": {"Created": "2026-10-11"}}, NOW)
    assert e.created == datetime(2026, 10, 11, tzinfo=LOCAL_TZ)
    assert _dt_utc("2026-10-11") == datetime(2026, 10, 11, tzinfo=timezone.utc)
    assert _dt_utc("2026-13-45") is None


def test_engagement_fields_and_aliases():
    raw = engagement(
        "Quote Sent",
        days_ago=2,
        First_Name="Dana",
        Quote_Amount="500",
        Service_Call_Amount="99",
        Project_Value="-40",
        Profit="-25",
        Parts_Cost="10",
    )
    raw["fields"][" Source"] = "Google Ads"
    e = normalize_engagement(raw, NOW)

    assert e.customer_name == "Dana"
    assert e.status is EngagementStatus.quote_sent
    assert e.is_actual_lead is True
    assert e.quote_amount == 500.0
    assert e.project_value == 0.0      # money clamps at zero
    assert e.profit == -25.0           # profit keeps its sign
    assert e.amount == 99.0
    assert e.costs.parts == 10.0
    assert e.source == "Google Ads"
    assert e.lead_type == "-"
    assert e.created == (NOW - timedelta(days=2)).astimezone(timezone.utc)


def test_customer_name_prefers_customer_name_over_first_name():
    raw = engagement("New Lead", Customer_Name="Acme Pty", First_Name="Dana")
    assert normalize_engagement(raw, NOW).customer_name == "Acme Pty"
    assert normalize_engagement(engagement("New Lead"), NOW).display_name() == "Unknown"


def test_engagement_completed_alias_and_unknown_status():
    assert normalize_engagement(engagement("Completed"), NOW).status is EngagementStatus.completed
    assert normalize_engagement(engagement("Completed ✨"), NOW).status is EngagementStatus.completed

    e = normalize_engagement(engagement("Awaiting Council"), NOW)
    assert e.status is None
    assert e.status_raw == "Awaiting Council"


def test_timestamp_fallback_chain():
    explicit = {"id": "r1", "createdTime": "2026-01-01T00:00:00Z", "fields": {"Created": "2026-05-05T00:00:00Z"}}
    assert normalize_engagement(explicit, NOW).created == datetime(2026, 5, 5, tzinfo=timezone.utc)

    created_only = {"id": "r2", "createdTime": "2026-01-01T00:00:00Z", "fields": {"Created": "garbage"}}
    assert normalize_engagement(created_only, NOW).created == datetime(2026, 1, 1, tzinfo=timezone.utc)

    nothing = {"id": "r3", "fields": {}}
    assert normalize_engagement(nothing, NOW).created == NOW


def test_job_link_and_name_fallback():
    j = normalize_job({"id": "j1", "fields": {"Job Status": "Pending", "Assigned Tech": ["tech1", "tech2"], "Job Title": "Gate"}})
    assert j.status is JobStatus.pending
    assert j.assigned_tech_id == "tech1"
    assert j.name == "Gate"

    bare = normalize_job({"id": "j2", "fields": {"Assigned Tech": []}})
    assert bare.assigned_tech_id is None
    assert bare.name == "Job"
    assert bare.status is None


def test_technician_name_chain_and_availability_default():
    t = normalize_technician({"id": "t1", "fields": {"First Name": "Sam", "Last Name": "Lee", "Availability Status": "Busy"}})
    assert t.name == "Sam Lee"
    assert t.availability is Availability.busy

    t2 = normalize_technician({"id": "t2", "fields": {"Availability Status": "On Leave"}})
    assert t2.name == "Unknown"
    assert t2.availability is Availability.unknown


def test_message_fields():
    m = normalize_message(
        {"id": "m1", "createdTime": "2026-10-01T00:00:00Z", "fields": {"Direction": "inbound", "Type": "Email", "From": "a@b.co", "Engagement": ["rec1"]}},
        NOW,
    )
    assert m.direction is MessageDirection.inbound
    assert m.type is MessageType.email
    assert m.label == "Inbound Email"
    assert m.engagement_id == "rec1"
    assert m.timestamp == datetime(2026, 10, 1, tzinfo=timezone.utc)

    default = normalize_message({"id": "m2", "fields": {}}, NOW)
    assert default.type is MessageType.sms
    assert default.sender == "Unknown"
    assert default.timestamp == NOW


def test_stripe_objects_convert_cents():
    charge = {
        "id": "ch_1",
        "amount": 12345,
        "currency": "aud",
        "status": "succeeded",
        "created": 1760000000,
        "customer": None,
        "billing_details": {"name": "Pat", "email": "pat@example.com"},
    }
    tx = normalize_transaction(charge, NOW)
    assert tx.amount == 123.45
    assert tx.currency == "AUD"
    assert tx.customer_name == "Pat"
    assert tx.created == datetime.fromtimestamp(1760000000, tz=timezone.utc)

    payout = normalize_payout({"id": "po_1", "amount": 5000, "currency": "aud", "status": "in_transit", "created": 1760000000}, NOW)
    assert payout.amount == 50.0
    assert payout.arrival_date == payout.created
    assert payout.status.value == "in_transit"


def test_normalize_records_passes_typed_records_through():
    typed = Engagement(id="x", created=NOW)
    engs, jobs, techs, msgs = normalize_records([typed, engagement("Lost"), "junk"], None, [], None, NOW)
    assert engs[0] is typed
    assert len(engs) == 2
    assert jobs == [] and techs == [] and msgs == []
