"""User settings for the list engine and its Markdown projection."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Sequence

__all__ = ["Settings", "SettingsStore", "active_env_overrides", "parse_overrides"]

LOGGER = logging.getLogger(__name__)

_APP_DIR = Path.home() / ".jotter"
_SETTINGS_FILE = _APP_DIR / "settings.json"
_SCHEMA_VERSION = 1
_ENV_PREFIX = "JOTTER_"
_TRUTHY = frozenset({"1", "true", "yes", "on", "debug"})
_FALSY = frozenset({"0", "false", "no", "off", "disabled"})
_DEFAULT_TRIGGER = "/-"
_DEFAULT_BULLET = "-"


def _env_text(raw: str) -> str:
    return raw


def _env_flag(raw: str) -> bool:
    return raw.strip().lower() in _TRUTHY


def _env_int(raw: str) -> int:
    return int(raw.strip(), 10)


# Environment variable -> (settings field, parser).
_ENV_FIELDS: Mapping[str, tuple[str, Callable[[str], Any]]] = {
    "JOTTER_CONVERT_TRIGGER": ("convert_trigger", _env_text),
    "JOTTER_BULLET": ("bullet", _env_text),
    "JOTTER_INDENT_WIDTH": ("indent_width", _env_int),
    "JOTTER_PREVIEW_MAX_CHARS": ("preview_max_chars", _env_int),
    "JOTTER_DEBUG_LOGGING": ("debug_logging", _env_flag),
}


@dataclass(slots=True)
class Settings:
    """Knobs read by the engine, the projection and the CLI.

    ``convert_trigger`` is the paragraph text that turns into a list when the
    space key is pressed. ``bullet`` and ``indent_width`` shape the Markdown
    output; ``preview_max_chars`` bounds the HTML preview.
    """

    convert_trigger: str = _DEFAULT_TRIGGER
    bullet: str = _DEFAULT_BULLET
    indent_width: int = 2
    preview_max_chars: int = 20_000
    debug_logging: bool = False
    log_dir: str | None = None


class SettingsStore:
    """Reads and writes :class:`Settings` as a versioned JSON file."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or _SETTINGS_FILE

    @property
    def path(self) -> Path:
        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> Settings:
        """Return the effective settings.

        Precedence, lowest first: defaults, the settings file, ``overrides``
        (from the command line), then ``JOTTER_*`` environment variables.
        """

        stored = self._read_file()
        settings = _settings_from_mapping(stored)
        if stored and stored.get("version") != _SCHEMA_VERSION:
            self._rewrite_outdated(settings)
        if overrides:
            settings = _merge(settings, overrides, source="CLI")
        env_values = _collect_env_values()
        if env_values:
            settings = _merge(settings, env_values, source="environment")
        return _normalize(settings)

    def save(self, settings: Settings) -> Path:
        """Write ``settings`` through a temporary file and swap it into place."""

        document = {**asdict(settings), "version": _SCHEMA_VERSION}
        self._path.parent.mkdir(parents=True, exist_ok=True)
        staging = self._path.with_suffix(".tmp")
        staging.write_text(json.dumps(document, indent=2, sort_keys=True), encoding="utf-8")
        staging.replace(self._path)
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    def _read_file(self) -> Dict[str, Any]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if isinstance(decoded, dict):
            return decoded
        LOGGER.warning("Settings file %s does not contain an object", self._path)
        return {}

    def _rewrite_outdated(self, settings: Settings) -> None:
        try:
            self.save(settings)
        except OSError as exc:
            LOGGER.warning("Could not upgrade settings file %s: %s", self._path, exc)


def active_env_overrides() -> list[str]:
    """Return the names of ``JOTTER_*`` variables present in the environment."""

    return sorted(name for name in os.environ if name.startswith(_ENV_PREFIX))


def _field_names() -> set[str]:
    return {item.name for item in fields(Settings)}


def _settings_from_mapping(stored: Mapping[str, Any]) -> Settings:
    known = _field_names()
    ignored = sorted(key for key in stored if key not in known and key != "version")
    if ignored:
        LOGGER.warning("Ignoring unknown settings keys: %s", ", ".join(ignored))
    values = {key: value for key, value in stored.items() if key in known}
    return Settings(**values)


def _merge(settings: Settings, values: Mapping[str, Any], *, source: str) -> Settings:
    known = _field_names()
    accepted = {key: value for key, value in values.items() if key in known and value is not None}
    if not accepted:
        return settings
    LOGGER.debug("Applying %s settings overrides: %s", source, sorted(accepted))
    return replace(settings, **accepted)


def _collect_env_values() -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for env_name, (field_name, parse) in _ENV_FIELDS.items():
        raw = os.environ.get(env_name)
        if raw is None:
            continue
        try:
            values[field_name] = parse(raw)
        except ValueError:
            LOGGER.warning("Ignoring %s=%r: expected an integer", env_name, raw)
    return values


def _normalize(settings: Settings) -> Settings:
    """Fill blank markers and widen the indent so nested bullets stay nested."""

    trigger = (settings.convert_trigger or "").strip() or _DEFAULT_TRIGGER
    bullet = (settings.bullet or "").strip() or _DEFAULT_BULLET
    width = max(int(settings.indent_width), len(bullet) + 1)
    return replace(settings, convert_trigger=trigger, bullet=bullet, indent_width=width)


def parse_overrides(entries: Sequence[str]) -> Dict[str, Any]:
    """Turn ``KEY=VALUE`` strings into typed values for :class:`Settings`.

    Values are converted according to the field annotation; optional fields
    accept ``none``/``null``. Raises :class:`ValueError` on malformed entries,
    unknown keys or values that do not fit the field type.
    """

    annotations = {item.name: str(item.type) for item in fields(Settings)}
    parsed: Dict[str, Any] = {}
    for entry in entries:
        key, separator, raw = entry.partition("=")
        key = key.strip()
        if not separator:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        if not key:
            raise ValueError("Override is missing a field name.")
        annotation = annotations.get(key)
        if annotation is None:
            raise ValueError(f"Unknown setting '{key}'.")
        parsed[key] = _typed_value(key, annotation, raw.strip())
    return parsed


def _typed_value(key: str, annotation: str, raw: str) -> Any:
    base, _, rest = annotation.partition("|")
    base = base.strip()
    if "None" in rest and raw.lower() in {"none", "null"}:
        return None
    if base == "bool":
        lowered = raw.lower()
        if lowered in _TRUTHY:
            return True
        if lowered in _FALSY:
            return False
        raise ValueError(f"Setting '{key}' expects a boolean, got '{raw}'.")
    if base == "int":
        try:
            return int(raw, 10)
        except ValueError as exc:
            raise ValueError(f"Setting '{key}' expects an integer, got '{raw}'.") from exc
    return raw
