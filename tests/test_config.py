# tests/test_config.py
import logging

from business_profile import DASHBOARD_PROFILE, build_profile, profile_get
from common.config_loader import cfg_get, load_config, mask_key
from common.logging_config import configure_logging


def test_load_config_reads_yaml(tmp_path, monkeypatch):
    p = tmp_path / "config.yaml"
    p.write_text("airtable:\n  base_id: appXYZ\n  tables:\n    jobs: Service Jobs\n", encoding="utf-8")
    monkeypatch.setenv("CONFIG_PATH", str(p))
    cfg = load_config()
    assert cfg_get(cfg, "airtable.base_id") == "appXYZ"
    assert cfg_get(cfg, "airtable.tables.jobs") == "Service Jobs"
    assert cfg_get(cfg, "airtable.tables.techs", "Techs") == "Techs"


def test_load_config_missing_or_broken_falls_back(tmp_path, monkeypatch):
    monkeypatch.setenv("CONFIG_PATH", str(tmp_path / "nope.yaml"))
    assert load_config() == {}

    bad = tmp_path / "bad.yaml"
    bad.write_text("just a string", encoding="utf-8")
    monkeypatch.setenv("CONFIG_PATH", str(bad))
    assert load_config() == {}


def test_mask_key_never_leaks_secret():
    assert mask_key(None) == "<none>"
    masked = mask_key("sk_live_secret")
    assert masked.startswith("sha256:")
    assert "secret" not in masked


def test_build_profile_merges_one_level():
    p = build_profile({"timezone": "UTC", "attention": {"revenue_drop_pct": 50}})
    assert p["timezone"] == "UTC"
    assert p["attention"]["revenue_drop_pct"] == 50
    assert p["attention"]["quote_stale_days"] == 3
    assert DASHBOARD_PROFILE["attention"]["revenue_drop_pct"] == 75


def test_profile_get_falls_back_to_defaults():
    assert profile_get({}, "recent", "lead_list") == 15
    assert profile_get({"recent": {"lead_list": 5}}, "recent", "lead_list") == 5


def test_configure_logging_reads_level_and_adds_one_handler(monkeypatch):
    monkeypatch.setenv("LOGLEVEL", "debug")
    logger = configure_logging()
    configure_logging()
    assert logger.name == "ops-dashboard"
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
    assert all(h.level == logging.DEBUG for h in logger.handlers)
    configure_logging(logging.INFO)
