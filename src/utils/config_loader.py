"""
Configuration loader for carrier dispatch (bot webhooks, timeouts, status polling)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from src.integrations.contracts.carriers import CarrierType

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "dispatch_config.yml"

_WEBHOOK_ENV = {
    CarrierType.ENCOVA: "ENCOVA_WEBHOOK_URL",
    CarrierType.GUARD: "GUARD_WEBHOOK_URL",
    CarrierType.COLUMBIA: "COLUMBIA_WEBHOOK_URL",
}
SHEET_WEBHOOK_ENV = "NOVATAE_SHEET_WEBHOOK_URL"


class CarrierEndpointConfig(BaseModel):
    """One carrier bot's webhook"""

    webhook_url: str = ""
    enabled: bool = True


class SpreadsheetConfig(BaseModel):
    """Premium rating sheet service"""

    webhook_url: str = ""
    timeout_seconds: float = Field(default=60.0, gt=0)
    effective_date_offset_days: int = Field(default=2, ge=0, le=365)


class StatusConfig(BaseModel):
    """Client-side polling and simulated progress timings"""

    poll_interval_seconds: float = Field(default=5.0, gt=0)
    accept_dwell_seconds: float = Field(default=2.0, ge=0)
    run_dwell_seconds: float = Field(default=5.0, ge=0)
    expected_run_seconds: float = Field(default=240.0, gt=0)


class DispatchConfig(BaseModel):
    """Complete dispatch configuration"""

    timeout_seconds: float = Field(default=30.0, gt=0, le=600)
    carriers: Dict[CarrierType, CarrierEndpointConfig] = Field(
        default_factory=lambda: {carrier: CarrierEndpointConfig() for carrier in CarrierType}
    )
    spreadsheet: SpreadsheetConfig = Field(default_factory=SpreadsheetConfig)
    status: StatusConfig = Field(default_factory=StatusConfig)

    def endpoint(self, carrier: CarrierType) -> CarrierEndpointConfig:
        return self.carriers.get(carrier) or CarrierEndpointConfig()

    def webhook_url(self, carrier: CarrierType) -> str:
        return self.endpoint(carrier).webhook_url

    def has_any_webhook(self) -> bool:
        return any(self.webhook_url(carrier) for carrier in CarrierType) or bool(self.spreadsheet.webhook_url)


def _apply_env_overrides(config: DispatchConfig) -> DispatchConfig:
    for carrier, env_name in _WEBHOOK_ENV.items():
        url = os.getenv(env_name)
        if url:
            endpoint = config.endpoint(carrier).model_copy(update={"webhook_url": url.strip()})
            config.carriers[carrier] = endpoint

    sheet_url = os.getenv(SHEET_WEBHOOK_ENV)
    if sheet_url:
        config.spreadsheet.webhook_url = sheet_url.strip()

    timeout = os.getenv("DISPATCH_TIMEOUT_SECONDS")
    if timeout:
        try:
            config = DispatchConfig.model_validate({**config.model_dump(), "timeout_seconds": timeout})
        except ValidationError:
            logger.warning("Ignoring invalid DISPATCH_TIMEOUT_SECONDS=%r", timeout)

    return config


def load_dispatch_config(config_path: Optional[Path] = None) -> DispatchConfig:
    """
    Load and validate dispatch configuration from YAML file, then apply env overrides

    Args:
        config_path: Path to config file. Defaults to $DISPATCH_CONFIG_PATH or
            config/dispatch_config.yml

    Returns:
        Validated DispatchConfig object

    Raises:
        ValidationError: If config doesn't match schema
    """
    if config_path is None:
        env_path = os.getenv("DISPATCH_CONFIG_PATH")
        config_path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH

    data: dict = {}
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    else:
        logger.warning("Dispatch config file not found: %s (using defaults)", config_path)

    try:
        config = DispatchConfig(**data)
    except ValidationError as e:
        logger.error("Dispatch config validation failed: %s", e)
        raise

    config = _apply_env_overrides(config)
    logger.info("Loaded dispatch config from %s", config_path)
    return config
