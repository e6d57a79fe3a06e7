"""
Tests for IPO definition files and application settings.
"""

from decimal import Decimal
from pathlib import Path

import pytest

from ipo_pool.config import (
    ConfigurationError,
    load_ipo_config,
    load_settings,
    write_ipo_config,
)
from ipo_pool.models import IPODetails, IPOLotTerms


class TestLoadIPOConfig:
    """Tests for the load_ipo_config function."""

    def test_load_config(self, tmp_path: Path):
        path = tmp_path / "ipo.yaml"
        path.write_text("name: Example Tech\nlot_price: 14000\nshares_per_lot: 10\n")

        details = load_ipo_config(path)

        assert details.name == "Example Tech"
        assert details.lot_terms.lot_price == Decimal("14000")
        assert details.lot_terms.issue_price == Decimal("1400")

    def test_missing_field(self, tmp_path: Path):
        path = tmp_path / "ipo.yaml"
        path.write_text("name: Example Tech\nlot_price: 14000\n")

        with pytest.raises(ConfigurationError, match="shares_per_lot"):
            load_ipo_config(path)

    def test_negative_lot_price(self, tmp_path: Path):
        path = tmp_path / "ipo.yaml"
        path.write_text("name: Example\nlot_price: -1\nshares_per_lot: 10\n")

        with pytest.raises(ConfigurationError, match="lot_price"):
            load_ipo_config(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "ipo.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ConfigurationError, match="mapping"):
            load_ipo_config(path)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_ipo_config(tmp_path / "nope.yaml")

    def test_write_then_load(self, tmp_path: Path):
        details = IPODetails(
            name="Example Tech",
            lot_terms=IPOLotTerms.create(Decimal("14999.50"), 7),
        )
        path = tmp_path / "out" / "ipo.yaml"

        write_ipo_config(details, path)

        assert load_ipo_config(path) == details


class TestLoadSettings:
    """Tests for the load_settings function."""

    def test_defaults(self, tmp_path: Path, clean_env):
        settings = load_settings(
            settings_file=tmp_path / "missing.yaml",
            env_file=tmp_path / "missing.env",
        )

        assert settings.data_dir == "data"
        assert settings.workbook_path == Path("data") / "workbook.json"
        assert settings.default_commission_rate == Decimal("0")

    def test_sources_in_priority_order(self, tmp_path: Path, clean_env, monkeypatch):
        """Test YAML, then .env, then the environment."""
        yaml_file = tmp_path / "settings.yaml"
        yaml_file.write_text(
            "data_dir: from_yaml\nworkbook_file: book.json\ndefault_commission_rate: 1\n"
        )
        env_file = tmp_path / ".env"
        env_file.write_text("IPO_POOL_DATA_DIR=from_env_file\nIPO_POOL_DEFAULT_COMMISSION=2\n")

        settings = load_settings(settings_file=yaml_file, env_file=env_file)
        assert settings.data_dir == "from_env_file"
        assert settings.workbook_file == "book.json"
        assert settings.default_commission_rate == Decimal("2")

        monkeypatch.setenv("IPO_POOL_DATA_DIR", "from_environ")
        settings = load_settings(settings_file=yaml_file, env_file=env_file)
        assert settings.data_dir == "from_environ"
        assert settings.decision_log_path == Path("from_environ") / "decision_log.jsonl"

    def test_commission_out_of_range(self, tmp_path: Path, clean_env, monkeypatch):
        monkeypatch.setenv("IPO_POOL_DEFAULT_COMMISSION", "150")

        with pytest.raises(ConfigurationError, match="default_commission_rate"):
            load_settings(
                settings_file=tmp_path / "missing.yaml",
                env_file=tmp_path / "missing.env",
            )
