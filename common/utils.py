## common/utils.py

import logging
import math
import re
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from typing import Any, Iterable, Mapping, Optional, Union

logger = logging.getLogger("ops-dashboard")

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _dt_utc(s: Optional[Union[str, int, float, datetime]], local_tz=None) -> Optional[datetime]:
    """
    Parse s into a timezone-aware UTC datetime, or None when it can't be parsed.
    A date-only string is midnight in `local_tz` (UTC when not given).
    Accepts:
      - datetime (naive or tz-aware)
      - epoch seconds (int/float, as the payment processor sends them)
      - ISO strings (with or without 'Z')
      - 'YYYY-MM-DD HH:MM' / 'YYYY-MM-DDTHH:MM' / 'YYYY-MM-DD HH:MM:SS'
    """
    if s is None or s == "" or isinstance(s, bool):
        return None

    if isinstance(s, datetime):
        dt = s
    elif isinstance(s, (int, float)):
        if not math.isfinite(s):
            return None
        try:
            return datetime.fromtimestamp(s, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    else:
        s2 = str(s).strip()
        if _DATE_ONLY.match(s2):
            try:
                d = datetime.strptime(s2, "%Y-%m-%d")
            except ValueError:
                return None
            return d.replace(tzinfo=local_tz or timezone.utc).astimezone(timezone.utc)
        # Normalize trailing 'Z' to +00:00 for fromisoformat
        if s2.endswith("Z"):
            s2 = s2[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(s2)
        except ValueError:
            for fmt in ("%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M", "%Y-%m-%d %H:%M:%S"):
                try:
                    dt = datetime.strptime(s2, fmt)
                    break
                except ValueError:
                    continue
            else:
                return None

    # If naive, assume UTC; otherwise convert to UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _num(v: Any) -> float:
    """Lenient decimal parse. Anything unparsable (or NaN/inf) is 0.0."""
    if isinstance(v, (list, tuple)):
        # Airtable lookups/rollups arrive as single-element arrays
        v = v[0] if len(v) == 1 else None
    if v is None or isinstance(v, bool):
        return 0.0
    if isinstance(v, (int, float)):
        out = float(v)
    else:
        s = str(v).strip().replace(",", "").replace("$", "")
        if s.endswith("%"):
            s = s[:-1]
        try:
            out = float(s)
        except ValueError:
            return 0.0
    return out if math.isfinite(out) else 0.0


def _money(v: Any) -> float:
    return max(_num(v), 0.0)


def _text(v: Any) -> Optional[str]:
    if isinstance(v, (list, tuple)):
        v = v[0] if v else None
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def _first_field(fields: Mapping[str, Any], names: Iterable[str], default: Any = None) -> Any:
    """Return the first non-empty text value among `names`, else default."""
    for n in names:
        v = _text(fields.get(n))
        if v is not None:
            return v
    return default


def _link_id(v: Any) -> Optional[str]:
    """Linked-record fields hold a list of record ids; we only use the first."""
    if isinstance(v, (list, tuple)):
        return _text(v[0]) if v else None
    return _text(v)


def _tz(name: Optional[str]):
    if not name:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r; falling back to UTC", name)
        return timezone.utc


__all__ = [
    "_dt_utc",
    "_num",
    "_money",
    "_text",
    "_first_field",
    "_link_id",
    "_tz",
]
