from __future__ import annotations

import json
from pathlib import Path

import allure
import pytest

from codex_delegate.config import (
    DelegateSettings,
    OptionsError,
    config_path,
    ensure_config,
    read_config,
    resolve_log_path,
    validate_options,
    write_config,
)

pytestmark = [
    allure.epic("Configuration"),
    allure.feature("Delegate Settings"),
]


def test_read_config_missing_file_returns_defaults(project_dir: Path) -> None:
    assert read_config(project_dir) == DelegateSettings()


def test_read_config_invalid_json_returns_defaults(project_dir: Path) -> None:
    path = config_path(project_dir)
    path.parent.mkdir(parents=True)
    path.write_text("{not json", "utf-8")

    assert read_config(project_dir) == DelegateSettings()


def test_read_config_non_object_returns_defaults(project_dir: Path) -> None:
    path = config_path(project_dir)
    path.parent.mkdir(parents=True)
    path.write_text("[1, 2]", "utf-8")

    assert read_config(project_dir) == DelegateSettings()


def test_read_config_keeps_known_keys_with_valid_types(project_dir: Path) -> None:
    path = config_path(project_dir)
    path.parent.mkdir(parents=True)
    path.write_text(
        json.dumps(
            {
                "model": "gpt-5-codex",
                "reasoning": "high",
                "workingDir": "sub",
                "network": False,
                "verbose": "yes",
                "maxItems": 3,
                "timeoutMinutes": 0,
                "webSearch": "cached",
                "unknownKey": "ignored",
            },
        ),
        "utf-8",
    )

    settings = read_config(project_dir)

    assert settings.model == "gpt-5-codex"
    assert settings.reasoning == "high"
    assert settings.working_dir == "sub"
    assert settings.network is False
    assert settings.verbose is False
    assert settings.max_items == 3
    assert settings.timeout_minutes == 10.0
    assert settings.web_search == "cached"


def test_ensure_config_creates_defaults_once(project_dir: Path) -> None:
    settings, created = ensure_config(project_dir)

    assert created is True
    assert settings == DelegateSettings()
    on_disk = json.loads(config_path(project_dir).read_text("utf-8"))
    assert on_disk["sandbox"] == "danger-full-access"
    assert on_disk["approval"] == "never"
    assert on_disk["timeoutMinutes"] == 10.0
    assert "model" not in on_disk

    config_path(project_dir).write_text(json.dumps({"model": "custom"}), "utf-8")
    settings, created = ensure_config(project_dir)

    assert created is False
    assert settings.model == "custom"
    assert json.loads(config_path(project_dir).read_text("utf-8")) == {"model": "custom"}


def test_write_config_round_trips_camel_case(project_dir: Path) -> None:
    settings = DelegateSettings(schema_file="schema.json", override_wire_api=False, max_items=2)

    write_config(settings, project_dir)

    raw = json.loads(config_path(project_dir).read_text("utf-8"))
    assert raw["schemaFile"] == "schema.json"
    assert raw["overrideWireApi"] is False
    assert read_config(project_dir) == settings


def test_env_overrides_parse_each_kind(project_dir: Path, monkeypatch) -> None:
    monkeypatch.setenv("CODEX_DELEGATE_MODEL", "env-model")
    monkeypatch.setenv("CODEX_DELEGATE_NETWORK", "off")
    monkeypatch.setenv("CODEX_DELEGATE_MAX_ITEMS", "4")
    monkeypatch.setenv("CODEX_DELEGATE_TIMEOUT_MINUTES", "2.5")
    monkeypatch.setenv("CODEX_DELEGATE_SANDBOX", "   ")

    settings = DelegateSettings().with_env_overrides()

    assert settings.model == "env-model"
    assert settings.network is False
    assert settings.max_items == 4
    assert settings.timeout_minutes == 2.5
    assert settings.sandbox == "danger-full-access"
    assert settings.timeout_seconds == 150.0


@pytest.mark.parametrize(
    ("name", "value", "message"),
    [
        ("CODEX_DELEGATE_VERBOSE", "maybe", "Invalid boolean value"),
        ("CODEX_DELEGATE_MAX_ITEMS", "many", "Invalid integer value"),
        ("CODEX_DELEGATE_TIMEOUT_MINUTES", "0", "must be > 0"),
    ],
)
def test_env_overrides_reject_bad_values(
    project_dir: Path,
    monkeypatch,
    name: str,
    value: str,
    message: str,
) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(OptionsError, match=message):
        DelegateSettings().with_env_overrides()


def test_validate_options_accepts_defaults() -> None:
    validate_options(DelegateSettings(reasoning="xhigh"))


@pytest.mark.parametrize(
    ("settings", "message"),
    [
        (
            DelegateSettings(reasoning="extreme"),
            'Invalid --reasoning value "extreme". Expected one of: minimal, low, medium, high, '
            "xhigh.",
        ),
        (
            DelegateSettings(sandbox="none"),
            'Invalid --sandbox value "none". Expected one of: read-only, workspace-write, '
            "danger-full-access.",
        ),
        (
            DelegateSettings(approval="always"),
            'Invalid --approval value "always". Expected one of: never, on-request, on-failure, '
            "untrusted.",
        ),
        (
            DelegateSettings(web_search="sometimes"),
            'Invalid --web-search value "sometimes". Expected one of: disabled, cached, live.',
        ),
    ],
)
def test_validate_options_rejects_unknown_literals(
    settings: DelegateSettings,
    message: str,
) -> None:
    with pytest.raises(OptionsError) as error_info:
        validate_options(settings)

    assert str(error_info.value) == message


def test_validate_options_rejects_non_positive_timeout() -> None:
    with pytest.raises(OptionsError, match="timeout"):
        validate_options(DelegateSettings(timeout_minutes=0))


def test_resolve_log_path_disabled_without_verbose_or_log_file(project_dir: Path) -> None:
    assert resolve_log_path(DelegateSettings(), project_dir) is None


def test_resolve_log_path_defaults_when_verbose(project_dir: Path) -> None:
    path = resolve_log_path(DelegateSettings(verbose=True), project_dir)

    assert path == project_dir.resolve() / "codex-delegate.log"


def test_resolve_log_path_accepts_nested_file(project_dir: Path) -> None:
    path = resolve_log_path(DelegateSettings(log_file="logs/run.log"), project_dir)

    assert path == project_dir.resolve() / "logs" / "run.log"


def test_resolve_log_path_rejects_outside_project(project_dir: Path) -> None:
    with pytest.raises(OptionsError, match="Log file must be inside project directory"):
        resolve_log_path(DelegateSettings(log_file="../outside.log"), project_dir)
