import pytest
from pydantic import ValidationError

from src.integrations.contracts.carriers import CarrierType
from src.utils.config_loader import DEFAULT_CONFIG_PATH, load_dispatch_config

ENV_VARS = (
    "ENCOVA_WEBHOOK_URL",
    "GUARD_WEBHOOK_URL",
    "COLUMBIA_WEBHOOK_URL",
    "NOVATAE_SHEET_WEBHOOK_URL",
    "DISPATCH_TIMEOUT_SECONDS",
    "DISPATCH_CONFIG_PATH",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_shipped_config_loads_with_defaults():
    config = load_dispatch_config(DEFAULT_CONFIG_PATH)

    assert config.timeout_seconds == 30
    assert config.status.poll_interval_seconds == 5
    assert config.status.accept_dwell_seconds == 2
    assert config.status.run_dwell_seconds == 5
    assert config.spreadsheet.effective_date_offset_days == 2
    assert set(config.carriers) == set(CarrierType)


def test_missing_file_falls_back_to_defaults(tmp_path):
    config = load_dispatch_config(tmp_path / "missing.yml")

    assert config.timeout_seconds == 30
    assert not config.has_any_webhook()
    assert config.webhook_url(CarrierType.GUARD) == ""


def test_yaml_values_and_env_overrides(tmp_path, monkeypatch):
    path = tmp_path / "dispatch.yml"
    path.write_text(
        "timeout_seconds: 45\n"
        "carriers:\n"
        "  guard:\n"
        "    webhook_url: https://bots.example/guard\n"
        "    enabled: false\n"
        "spreadsheet:\n"
        "  effective_date_offset_days: 3\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("ENCOVA_WEBHOOK_URL", " https://bots.example/encova ")
    monkeypatch.setenv("NOVATAE_SHEET_WEBHOOK_URL", "https://sheets.example/hook")

    config = load_dispatch_config(path)

    assert config.timeout_seconds == 45
    assert config.endpoint(CarrierType.GUARD).enabled is False
    assert config.webhook_url(CarrierType.GUARD) == "https://bots.example/guard"
    assert config.webhook_url(CarrierType.ENCOVA) == "https://bots.example/encova"
    assert config.spreadsheet.webhook_url == "https://sheets.example/hook"
    assert config.spreadsheet.effective_date_offset_days == 3
    assert config.has_any_webhook()


def test_config_path_from_env(tmp_path, monkeypatch):
    path = tmp_path / "alt.yml"
    path.write_text("timeout_seconds: 12\n", encoding="utf-8")
    monkeypatch.setenv("DISPATCH_CONFIG_PATH", str(path))

    assert load_dispatch_config().timeout_seconds == 12


def test_timeout_override(tmp_path, monkeypatch):
    monkeypatch.setenv("DISPATCH_TIMEOUT_SECONDS", "7.5")
    assert load_dispatch_config(tmp_path / "missing.yml").timeout_seconds == 7.5

    monkeypatch.setenv("DISPATCH_TIMEOUT_SECONDS", "soon")
    assert load_dispatch_config(tmp_path / "missing.yml").timeout_seconds == 30


@pytest.mark.parametrize("value", ["0", "-3", "601"])
def test_out_of_range_timeout_override_is_ignored(tmp_path, monkeypatch, value):
    path = tmp_path / "dispatch.yml"
    path.write_text("timeout_seconds: 20\n", encoding="utf-8")
    monkeypatch.setenv("DISPATCH_TIMEOUT_SECONDS", value)
    monkeypatch.setenv("GUARD_WEBHOOK_URL", "https://bots.example/guard")

    config = load_dispatch_config(path)

    assert config.timeout_seconds == 20
    assert config.webhook_url(CarrierType.GUARD) == "https://bots.example/guard"


def test_invalid_config_is_rejected(tmp_path):
    path = tmp_path / "dispatch.yml"
    path.write_text("timeout_seconds: -1\n", encoding="utf-8")

    with pytest.raises(ValidationError):
        load_dispatch_config(path)
