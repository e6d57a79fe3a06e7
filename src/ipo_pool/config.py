"""
Configuration loading and management for the IPO Pool Tracker.

This module handles loading IPO definitions from YAML files, application
settings from YAML, .env and the environment, and validation of
configuration parameters.
"""

import os
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values

from ipo_pool.models import AppSettings, IPODetails, IPOLotTerms


# Default paths for configuration files
PROJECT_ROOT = Path(__file__).parent.parent.parent
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"
DEFAULT_SETTINGS_FILE = PROJECT_ROOT / "config" / "settings.yaml"

ENV_DATA_DIR = "IPO_POOL_DATA_DIR"
ENV_DEFAULT_COMMISSION = "IPO_POOL_DEFAULT_COMMISSION"


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""
    pass


def load_settings(
    settings_file: str | Path | None = None,
    env_file: str | Path | None = None,
) -> AppSettings:
    """
    Load application settings from multiple sources with priority.

    Sources are checked in this order (later sources override earlier):
    1. config/settings.yaml file
    2. .env file in project root
    3. Environment variables

    Args:
        settings_file: Path to settings YAML (defaults to config/settings.yaml)
        env_file: Path to .env file (defaults to project root .env)

    Returns:
        AppSettings with all sources applied

    Raises:
        ConfigurationError: If a source holds an invalid value

    Example:
        >>> settings = load_settings()
        >>> settings.workbook_path
        PosixPath('data/workbook.json')
    """
    values: dict[str, Any] = {}

    # 1. Load from config/settings.yaml
    yaml_path = Path(settings_file) if settings_file else DEFAULT_SETTINGS_FILE
    if yaml_path.exists():
        raw = _read_yaml(yaml_path)
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Settings file must be a mapping: {yaml_path}")
        for key in ("data_dir", "workbook_file", "decision_log_file", "default_commission_rate"):
            if key in raw and raw[key] is not None:
                values[key] = raw[key]

    # 2. Load from .env file
    env_path = Path(env_file) if env_file else DEFAULT_ENV_FILE
    if env_path.exists():
        values.update(_settings_from_env(dotenv_values(env_path)))

    # 3. Override with environment variables (highest priority)
    values.update(_settings_from_env(os.environ))

    settings = AppSettings()
    if "data_dir" in values:
        settings.data_dir = str(values["data_dir"])
    if "workbook_file" in values:
        settings.workbook_file = str(values["workbook_file"])
    if "decision_log_file" in values:
        settings.decision_log_file = str(values["decision_log_file"])
    if "default_commission_rate" in values:
        settings.default_commission_rate = _parse_decimal(
            values["default_commission_rate"],
            "default_commission_rate",
            min_val=Decimal("0"),
            max_val=Decimal("100"),
        )

    return settings


def _settings_from_env(env: Any) -> dict[str, str]:
    result: dict[str, str] = {}
    if env.get(ENV_DATA_DIR):
        result["data_dir"] = str(env[ENV_DATA_DIR])
    if env.get(ENV_DEFAULT_COMMISSION):
        result["default_commission_rate"] = str(env[ENV_DEFAULT_COMMISSION])
    return result


def load_ipo_config(config_path: str | Path) -> IPODetails:
    """
    Load an IPO definition from a YAML file.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        IPODetails with the issue price derived from the lot terms

    Raises:
        ConfigurationError: If the file cannot be loaded or is invalid
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    raw_config = _read_yaml(config_path)
    if not isinstance(raw_config, dict):
        raise ConfigurationError(f"IPO configuration must be a mapping: {config_path}")

    return _parse_ipo_config(raw_config)


def _parse_ipo_config(raw: dict[str, Any]) -> IPODetails:
    """
    Parse and validate raw configuration dictionary into IPODetails.

    Args:
        raw: Dictionary loaded from YAML

    Returns:
        Validated IPODetails

    Raises:
        ConfigurationError: If required fields are missing or invalid
    """
    required_fields = ["name", "lot_price", "shares_per_lot"]
    for field in required_fields:
        if field not in raw:
            raise ConfigurationError(f"Missing required configuration field: {field}")

    name = str(raw["name"]).strip()
    if not name:
        raise ConfigurationError("name cannot be empty")

    lot_price = _parse_decimal(raw["lot_price"], "lot_price", min_val=Decimal("0"))

    try:
        shares_per_lot = int(raw["shares_per_lot"])
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"Invalid integer value for shares_per_lot: {raw['shares_per_lot']}"
        )
    if shares_per_lot < 0:
        raise ConfigurationError(f"shares_per_lot must be >= 0, got {shares_per_lot}")

    return IPODetails(
        name=name,
        lot_terms=IPOLotTerms.create(lot_price=lot_price, shares_per_lot=shares_per_lot),
    )


def _read_yaml(path: Path) -> Any:
    try:
        with open(path, "r") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}")


def _parse_decimal(
    value: Any,
    field_name: str,
    min_val: Decimal | None = None,
    max_val: Decimal | None = None,
) -> Decimal:
    """
    Parse a decimal value with optional range validation.

    Args:
        value: The value to parse
        field_name: Name of the field for error messages
        min_val: Minimum allowed value (inclusive)
        max_val: Maximum allowed value (inclusive)

    Returns:
        Parsed Decimal

    Raises:
        ConfigurationError: If the value is invalid or out of range
    """
    try:
        decimal_value = Decimal(str(value))
    except InvalidOperation:
        raise ConfigurationError(f"Invalid decimal value for {field_name}: {value}")

    if not decimal_value.is_finite():
        raise ConfigurationError(f"Invalid decimal value for {field_name}: {value}")

    if min_val is not None and decimal_value < min_val:
        raise ConfigurationError(
            f"{field_name} must be >= {min_val}, got {decimal_value}"
        )

    if max_val is not None and decimal_value > max_val:
        raise ConfigurationError(
            f"{field_name} must be <= {max_val}, got {decimal_value}"
        )

    return decimal_value


def write_ipo_config(details: IPODetails, output_path: str | Path) -> None:
    """
    Write an IPO definition to a YAML file.

    The issue price is not written; it is derived again on load.

    Args:
        details: The IPO to write
        output_path: Path to write the YAML file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    config_dict = {
        "name": details.name,
        "lot_price": str(details.lot_terms.lot_price),
        "shares_per_lot": details.lot_terms.shares_per_lot,
    }

    with open(output_path, "w") as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)
