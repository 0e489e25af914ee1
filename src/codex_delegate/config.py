"""Runtime configuration for delegated Codex runs."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".codex"
CONFIG_FILE_NAME = "codex-delegate-config.json"
DEFAULT_LOG_FILE_NAME = "codex-delegate.log"

REASONING_LEVELS: tuple[str, ...] = ("minimal", "low", "medium", "high", "xhigh")
SANDBOX_MODES: tuple[str, ...] = ("read-only", "workspace-write", "danger-full-access")
APPROVAL_POLICIES: tuple[str, ...] = ("never", "on-request", "on-failure", "untrusted")
WEB_SEARCH_MODES: tuple[str, ...] = ("disabled", "cached", "live")


class OptionsError(ValueError):
    """Invalid or inconsistent delegate options."""


@dataclass(slots=True)
class DelegateSettings:
    """Persistable delegate options (everything except role/task/instructions)."""

    model: str | None = None
    reasoning: str | None = None
    working_dir: str | None = None
    sandbox: str = "danger-full-access"
    approval: str = "never"
    network: bool = True
    web_search: str = "live"
    verbose: bool = False
    structured: bool = False
    schema_file: str | None = None
    log_file: str | None = None
    max_items: int | None = None
    override_wire_api: bool = True
    timeout_minutes: float = 10.0
    codex_command: str = "codex"

    def with_env_overrides(self) -> DelegateSettings:
        """Apply non-blank ``CODEX_DELEGATE_<FIELD>`` environment variables."""

        overrides: dict[str, Any] = {}
        for key, parse in _ENV_PARSERS.items():
            name = f"CODEX_DELEGATE_{key.upper()}"
            raw = os.getenv(name)
            if raw is None or not raw.strip():
                continue
            overrides[key] = parse(name, raw.strip())
        return replace(self, **overrides)

    def to_json_dict(self) -> dict[str, Any]:
        return {
            _JSON_KEYS[key]: value
            for key, value in asdict(self).items()
            if value is not None
        }

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_minutes * 60


@dataclass(slots=True)
class DelegateOptions:
    """Fully resolved options for one run."""

    task: str
    role: str = "implementation"
    instructions: str = ""
    settings: DelegateSettings = field(default_factory=DelegateSettings)


def config_dir(project_dir: Path | None = None) -> Path:
    return (project_dir or Path.cwd()) / CONFIG_DIR_NAME


def config_path(project_dir: Path | None = None) -> Path:
    return config_dir(project_dir) / CONFIG_FILE_NAME


def read_config(project_dir: Path | None = None) -> DelegateSettings:
    """Read the project config file; missing or malformed files yield defaults."""

    defaults = DelegateSettings()
    path = config_path(project_dir)
    try:
        parsed = json.loads(path.read_text("utf-8"))
    except FileNotFoundError:
        return defaults
    except json.JSONDecodeError:
        return defaults
    except OSError as error:
        logger.warning("Failed to read config file %s, using defaults: %s", path, error)
        return defaults
    if not isinstance(parsed, dict):
        return defaults
    return replace(defaults, **normalise_config(parsed))


def normalise_config(raw: dict[str, Any]) -> dict[str, Any]:
    """Keep known keys whose values have the expected JSON type."""

    normalised: dict[str, Any] = {}
    for settings_field in fields(DelegateSettings):
        json_key = _JSON_KEYS[settings_field.name]
        if json_key not in raw:
            continue
        value = raw[json_key]
        kind = _FIELD_KINDS[settings_field.name]
        if kind == "str" and isinstance(value, str):
            normalised[settings_field.name] = value
        elif kind == "bool" and isinstance(value, bool):
            normalised[settings_field.name] = value
        elif kind == "int" and _is_number(value):
            normalised[settings_field.name] = int(value)
        elif kind == "positive" and _is_number(value) and value > 0:
            normalised[settings_field.name] = float(value)
    return normalised


def write_config(settings: DelegateSettings, project_dir: Path | None = None) -> Path:
    path = config_path(project_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(settings.to_json_dict(), indent=2), "utf-8")
    return path


def ensure_config(project_dir: Path | None = None) -> tuple[DelegateSettings, bool]:
    """Return the project config, creating it with defaults when missing.

    The boolean is True when the file was created by this call.
    """

    path = config_path(project_dir)
    if path.exists():
        return read_config(project_dir), False
    defaults = DelegateSettings()
    write_config(defaults, project_dir)
    return defaults, True


def validate_options(settings: DelegateSettings) -> None:
    """Raise ``OptionsError`` when an option literal is outside its allowed set."""

    _check_choice("--reasoning", settings.reasoning, REASONING_LEVELS)
    _check_choice("--sandbox", settings.sandbox, SANDBOX_MODES)
    _check_choice("--approval", settings.approval, APPROVAL_POLICIES)
    _check_choice("--web-search", settings.web_search, WEB_SEARCH_MODES)
    if settings.timeout_minutes <= 0:
        raise OptionsError("--timeout-minutes must be > 0.")


def resolve_log_path(settings: DelegateSettings, project_dir: Path | None = None) -> Path | None:
    """Return the event log path, or None when event logging is disabled.

    Logging is enabled by ``verbose`` or an explicit ``log_file``; the path must
    stay inside the project directory.
    """

    if not settings.verbose and not settings.log_file:
        return None
    root = (project_dir or Path.cwd()).resolve()
    candidate = Path(settings.log_file) if settings.log_file else Path(DEFAULT_LOG_FILE_NAME)
    if not candidate.is_absolute():
        candidate = root / candidate
    resolved = candidate.resolve()
    if not resolved.is_relative_to(root):
        raise OptionsError(f"Log file must be inside project directory: {settings.log_file}")
    return resolved


def _check_choice(flag: str, value: str | None, allowed: tuple[str, ...]) -> None:
    if value is None or value in allowed:
        return
    raise OptionsError(f'Invalid {flag} value "{value}". Expected one of: {", ".join(allowed)}.')


def _is_number(value: object) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _env_str(_name: str, value: str) -> str:
    return value


def _env_bool(name: str, value: str) -> bool:
    normalized = value.lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise OptionsError(f"Invalid boolean value for {name}: {value!r}")


def _env_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as error:
        raise OptionsError(f"Invalid integer value for {name}: {value!r}") from error


def _env_positive(name: str, value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as error:
        raise OptionsError(f"Invalid number for {name}: {value!r}") from error
    if parsed <= 0:
        raise OptionsError(f"{name} must be > 0.")
    return parsed


_FIELD_KINDS: dict[str, str] = {
    "model": "str",
    "reasoning": "str",
    "working_dir": "str",
    "sandbox": "str",
    "approval": "str",
    "network": "bool",
    "web_search": "str",
    "verbose": "bool",
    "structured": "bool",
    "schema_file": "str",
    "log_file": "str",
    "max_items": "int",
    "override_wire_api": "bool",
    "timeout_minutes": "positive",
    "codex_command": "str",
}

_JSON_KEYS: dict[str, str] = {
    "model": "model",
    "reasoning": "reasoning",
    "working_dir": "workingDir",
    "sandbox": "sandbox",
    "approval": "approval",
    "network": "network",
    "web_search": "webSearch",
    "verbose": "verbose",
    "structured": "structured",
    "schema_file": "schemaFile",
    "log_file": "logFile",
    "max_items": "maxItems",
    "override_wire_api": "overrideWireApi",
    "timeout_minutes": "timeoutMinutes",
    "codex_command": "codexCommand",
}

_ENV_PARSERS = {
    name: {"str": _env_str, "bool": _env_bool, "int": _env_int, "positive": _env_positive}[kind]
    for name, kind in _FIELD_KINDS.items()
}
