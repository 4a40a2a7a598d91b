"""
Business profile: central place to declare brand, currency, reporting
timezone and the thresholds used by the dashboard metrics and attention
rules. Services read from here instead of hardcoding. Swap this out per
brand/location, or override keys from the `dashboard:` section of config.yaml.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

DASHBOARD_PROFILE: Dict[str, Any] = {
    "brand": "GWS Security",
    "currency": "aud",
    "timezone": "Australia/Sydney",
    "attention": {
        "quote_stale_days": 3,
        "uncontacted_lead_days": 1,
        "revenue_drop_pct": 75,
    },
    "recent": {
        "leads": 10,
        "messages": 10,
        "activity": 15,
        "lead_list": 15,
        "quoted_vs_actual": 8,
        "sparkline_months": 3,
    },
    "stripe": {
        "recent_charges": 10,
        "payouts": 5,
        "monthly_revenue_months": 6,
    },
}


def build_profile(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return DASHBOARD_PROFILE with one level of nested overrides applied."""
    out: Dict[str, Any] = {}
    overrides = overrides or {}
    for key, value in DASHBOARD_PROFILE.items():
        over = overrides.get(key)
        if isinstance(value, dict):
            merged = dict(value)
            if isinstance(over, dict):
                merged.update(over)
            out[key] = merged
        else:
            out[key] = value if over is None else over
    return out


def profile_get(profile: Dict[str, Any], section: str, key: str) -> Any:
    """Fetch profile[section][key], falling back to the built-in default."""
    sect = profile.get(section)
    if isinstance(sect, dict) and key in sect:
        return sect[key]
    return DASHBOARD_PROFILE[section][key]
