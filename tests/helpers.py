# tests/helpers.py
import itertools
from datetime import datetime, timedelta, timezone


# Wednesday 14 Oct 2026, 15:30 at UTC+11 (Sydney daylight time).
# Week starts Sun 11 Oct, month 1 Oct, year 1 Jan.
LOCAL_TZ = timezone(timedelta(hours=11))
NOW = datetime(2026, 10, 14, 15, 30, tzinfo=LOCAL_TZ)

_ids = itertools.count(1)


def _iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def airtable_record(prefix: str, fields: dict, created: datetime = None) -> dict:
    rec = {"id": f"{prefix}{next(_ids):04d}", "fields": dict(fields)}
    if created is not None:
        rec["createdTime"] = _iso(created)
    return rec


def engagement(status=None, *, days_ago: float = 0, actual=True, created=None, **fields) -> dict:
    """Raw engagement record. Keyword fields use Airtable column names with _ for spaces."""
    f = {k.replace("_", " "): v for k, v in fields.items()}
    if status is not None:
        f["Status"] = status
    if actual:
        f["Actual Lead"] = True
    when = created if created is not None else NOW - timedelta(days=days_ago)
    return airtable_record("rec", f, when)


def job(status=None, *, tech=None, name=None) -> dict:
    f = {}
    if status is not None:
        f["Job Status"] = status
    if tech is not None:
        f["Assigned Tech"] = [tech]
    if name is not None:
        f["Job Name"] = name
    return airtable_record("job", f, NOW - timedelta(days=1))


def tech(rec_id: str, name: str, availability=None) -> dict:
    f = {"Name": name}
    if availability is not None:
        f["Availability Status"] = availability
    return {"id": rec_id, "fields": f}


def message(direction="Inbound", *, minutes_ago: float = 5, sender="+61400000000", type_="SMS") -> dict:
    return airtable_record(
        "msg",
        {"Direction": direction, "Type": type_, "From": sender, "Timestamp": _iso(NOW - timedelta(minutes=minutes_ago))},
    )


