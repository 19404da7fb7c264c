"""
UNIT TESTS - CONFIGURATION AND STORAGE
======================================
Tests for ledger/config.py and ledger/storage.py
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import json

import pytest
import yaml

from ledger.config import (
    DEFAULT_CONFIG_PATH,
    build_oracle,
    create_ledger,
    load_config,
    validate_config,
)
from ledger.oracle import OpenMeteoOracle, StaticOracle
from ledger.storage import load_ledger, save_ledger


def write_config(tmp_path, **overrides):
    config = {
        "ADMIN": "admin",
        "RAINFALL_THRESHOLD": 50,
        "TEMPERATURE_THRESHOLD": 35,
        "ORACLE": {"SOURCE": "static", "RAINFALL": 60, "TEMPERATURE": 20},
        "STATE_PATH": str(tmp_path / "state.json"),
        "AUDIT_LOG_PATH": str(tmp_path / "audit.jsonl"),
    }
    config.update(overrides)
    path = tmp_path / "ledger.yaml"
    path.write_text(yaml.safe_dump(config), encoding="utf-8")
    return path


class TestLoadConfig:

    def test_default_config_is_valid(self):
        config = load_config(DEFAULT_CONFIG_PATH)
        assert config["RAINFALL_THRESHOLD"] == 50
        assert config["TEMPERATURE_THRESHOLD"] == 35

    def test_env_overrides_admin(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LEDGER_ADMIN", "ops-admin")
        config = load_config(write_config(tmp_path))
        assert config["ADMIN"] == "ops-admin"

    def test_missing_keys_rejected(self, tmp_path, monkeypatch):
        monkeypatch.delenv("LEDGER_ADMIN", raising=False)
        path = tmp_path / "ledger.yaml"
        path.write_text(yaml.safe_dump({"ADMIN": "admin"}), encoding="utf-8")

        with pytest.raises(ValueError) as exc_info:
            load_config(path)
        assert "RAINFALL_THRESHOLD" in str(exc_info.value)

    def test_empty_file_rejected(self, tmp_path):
        path = tmp_path / "ledger.yaml"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ValueError):
            load_config(path)

    def test_unknown_oracle_source_rejected(self):
        with pytest.raises(ValueError):
            validate_config({
                "ADMIN": "admin",
                "RAINFALL_THRESHOLD": 1,
                "TEMPERATURE_THRESHOLD": 1,
                "ORACLE": {"SOURCE": "carrier-pigeon"},
            })

    def test_open_meteo_requires_coordinates(self):
        with pytest.raises(ValueError) as exc_info:
            validate_config({
                "ADMIN": "admin",
                "RAINFALL_THRESHOLD": 1,
                "TEMPERATURE_THRESHOLD": 1,
                "ORACLE": {"SOURCE": "open_meteo"},
            })
        assert "LATITUDE" in str(exc_info.value)


class TestFactories:

    def test_build_static_oracle(self):
        oracle = build_oracle({"ORACLE": {"SOURCE": "static", "RAINFALL": 30, "TEMPERATURE": 38}})
        assert isinstance(oracle, StaticOracle)
        assert oracle.fetch_measurement().rainfall == 30

    def test_build_open_meteo_oracle(self):
        oracle = build_oracle({"ORACLE": {"SOURCE": "open_meteo", "LATITUDE": 1.5, "LONGITUDE": 2.5}})
        assert isinstance(oracle, OpenMeteoOracle)
        assert oracle.latitude == 1.5

    def test_create_ledger(self, tmp_path, monkeypatch):
        monkeypatch.delenv("LEDGER_ADMIN", raising=False)
        ledger = create_ledger(load_config(write_config(tmp_path)))

        assert ledger.get_admin() == "admin"
        assert ledger.get_thresholds().rainfall_threshold == 50
        assert ledger.audit.log_path == tmp_path / "audit.jsonl"


class TestStorage:

    def test_snapshot_round_trip(self, tmp_path, ledger, oracle):
        ledger.register("alice", 100)
        ledger.register("bob", 200)
        ledger.accept_funds("treasury", 50)
        path = tmp_path / "state.json"

        save_ledger(ledger, path, "test")
        restored = load_ledger(path, oracle)

        assert restored.snapshot() == ledger.snapshot()
        assert [p.identity for p in restored.list_policies()] == ["alice", "bob"]
        assert restored.get_escrow_balance() == 350

    def test_restore_appends_no_audit_records(self, tmp_path, ledger, oracle):
        ledger.register("alice", 100)
        path = tmp_path / "state.json"
        save_ledger(ledger, path)

        restored = load_ledger(path, oracle)

        assert len(restored.audit) == 0

    def test_no_temp_file_left_behind(self, tmp_path, ledger):
        path = tmp_path / "state.json"
        save_ledger(ledger, path)
        assert [p.name for p in tmp_path.iterdir()] == ["state.json"]

    def test_missing_snapshot(self, tmp_path, oracle):
        with pytest.raises(FileNotFoundError):
            load_ledger(tmp_path / "missing.json", oracle)

    def test_wrong_version_rejected(self, tmp_path, oracle):
        path = tmp_path / "state.json"
        path.write_text(json.dumps({"_metadata": {"version": 99}, "ledger": {}}), encoding="utf-8")
        with pytest.raises(ValueError):
            load_ledger(path, oracle)

    def test_duplicate_policy_rejected(self, tmp_path, ledger, oracle):
        ledger.register("alice", 100)
        path = tmp_path / "state.json"
        save_ledger(ledger, path)

        data = json.loads(path.read_text(encoding="utf-8"))
        data["ledger"]["policies"].append(data["ledger"]["policies"][0])
        path.write_text(json.dumps(data), encoding="utf-8")

        with pytest.raises(ValueError):
            load_ledger(path, oracle)

    @pytest.mark.parametrize("field,value", [
        ("premium_paid", 0),
        ("premium_paid", -5),
        ("premium_paid", "100"),
        ("premium_paid", 1.5),
        ("claim_paid", "yes"),
        ("claim_paid", 1),
        ("identity", ""),
    ])
    def test_hand_edited_policy_rejected(self, tmp_path, ledger, oracle, field, value):
        ledger.register("alice", 100)
        path = tmp_path / "state.json"
        save_ledger(ledger, path)

        data = json.loads(path.read_text(encoding="utf-8"))
        data["ledger"]["policies"][0][field] = value
        path.write_text(json.dumps(data), encoding="utf-8")

        with pytest.raises(ValueError):
            load_ledger(path, oracle)

    def test_paid_policy_without_payout_rejected(self, tmp_path, ledger, oracle):
        ledger.register("alice", 100)
        path = tmp_path / "state.json"
        save_ledger(ledger, path)

        data = json.loads(path.read_text(encoding="utf-8"))
        data["ledger"]["policies"][0]["claim_paid"] = True
        path.write_text(json.dumps(data), encoding="utf-8")

        with pytest.raises(ValueError):
            load_ledger(path, oracle)
