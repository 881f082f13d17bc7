"""Configuration for translators and the command line.

Settings are merged from three layers, later layers overriding earlier
ones:

1. Defaults of :class:`TranslatorConfig`
2. A configuration file (YAML, JSON or TOML)
3. Environment variables prefixed with ``TSCATALOG_``

Example:
    # tscatalog.yaml
    locale: ja
    domain: dash
    catalog_dirs: [src/qt/locale]
    integrity_policy: drop

    >>> config = load_config("tscatalog.yaml")
    >>> translator = Translator.from_config(config)

    Environment overrides:
        TSCATALOG_LOCALE=ja_JP
        TSCATALOG_CATALOG_DIRS=locale:extra/locale
        TSCATALOG_STRICT_PLACEHOLDERS=true
"""

from __future__ import annotations

import json
import os
import tomllib
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from tscatalog.exceptions import ConfigError
from tscatalog.loader import IntegrityPolicy
from tscatalog.locale import detect_system_locale, normalize_locale

ENV_PREFIX = "TSCATALOG"

DEFAULT_CONFIG_FILES = ("tscatalog.yaml", "tscatalog.yml", "tscatalog.json", "tscatalog.toml")

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# =============================================================================
# Configuration Sources
# =============================================================================


class ConfigSource(ABC):
    """A provider of raw configuration values."""

    @abstractmethod
    def load(self) -> dict[str, Any]:
        """Load configuration values.

        Returns:
            Flat dictionary of setting name to value.
        """


class EnvConfigSource(ConfigSource):
    """Reads ``TSCATALOG_*`` environment variables.

    ``TSCATALOG_STRICT_PLACEHOLDERS=1`` becomes
    ``{"strict_placeholders": "1"}``. Values stay strings; empty values
    and "none" are treated as unset.
    """

    def __init__(
        self,
        prefix: str = ENV_PREFIX,
        environ: Mapping[str, str] | None = None,
        keys: set[str] | None = None,
    ) -> None:
        self._prefix = f"{prefix}_"
        self._environ = environ
        self._keys = keys

    def load(self) -> dict[str, Any]:
        env = os.environ if self._environ is None else self._environ
        result: dict[str, Any] = {}
        for key, value in env.items():
            if not key.startswith(self._prefix):
                continue
            name = key[len(self._prefix):].lower()
            if self._keys is None or name in self._keys:
                result[name] = self._parse_value(value)
        return result

    def _parse_value(self, value: str) -> Any:
        # Typed coercion happens in TranslatorConfig.from_dict; "no" is a
        # valid locale code
        if value.strip().lower() in ("null", "none", ""):
            return None
        return value


class FileConfigSource(ConfigSource):
    """YAML, JSON or TOML configuration file.

    Args:
        path: Configuration file.
        required: Raise ConfigError if the file does not exist.
    """

    def __init__(self, path: str | Path, *, required: bool = False) -> None:
        self._path = Path(path)
        self._required = required

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, Any]:
        if not self._path.exists():
            if self._required:
                raise ConfigError(f"Configuration file not found: {self._path}")
            return {}

        content = self._path.read_text(encoding="utf-8")
        suffix = self._path.suffix.lower()
        try:
            if suffix in (".yaml", ".yml"):
                data = yaml.safe_load(content) or {}
            elif suffix == ".json":
                data = json.loads(content)
            elif suffix == ".toml":
                data = tomllib.loads(content)
            else:
                raise ConfigError(f"Unsupported configuration format: {suffix}")
        except (yaml.YAMLError, json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
            raise ConfigError(f"Failed to parse {self._path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"{self._path} must contain a mapping")
        # Allow the settings to live under a [tscatalog] table
        section = data.get("tscatalog")
        return dict(section) if isinstance(section, dict) else data


# =============================================================================
# Typed Configuration
# =============================================================================


@dataclass
class TranslatorConfig:
    """Settings for building a :class:`tscatalog.translator.Translator`.

    Attributes:
        locale: Active locale; detected from the environment when unset.
        catalog_dirs: Directories searched for catalog files.
        domain: Catalog file prefix, e.g. "dash" for ``dash_ja.ts``.
        integrity_policy: "strict" rejects a catalog with an invalid entry,
            "drop" loads it without that entry.
        strict_placeholders: Raise on ``%N`` without an argument instead of
            rendering an empty string.
        include_unfinished: Use translations marked unfinished.
        log_level: Level for :func:`tscatalog.log.configure_logging`,
            applied by the command line unless ``--log-level`` is given.
    """

    locale: str = field(default_factory=detect_system_locale)
    catalog_dirs: list[Path] = field(default_factory=list)
    domain: str | None = None
    integrity_policy: IntegrityPolicy = IntegrityPolicy.STRICT
    strict_placeholders: bool = False
    include_unfinished: bool = True
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        try:
            self.locale = normalize_locale(self.locale)
            self.integrity_policy = IntegrityPolicy.from_string(self.integrity_policy)
        except ValueError as e:
            raise ConfigError(str(e)) from e
        self.catalog_dirs = [Path(p) for p in self.catalog_dirs]
        self.log_level = str(self.log_level).upper()
        if self.log_level not in _LOG_LEVELS:
            valid = ", ".join(_LOG_LEVELS)
            raise ConfigError(f"Unknown log level {self.log_level!r} (expected one of: {valid})")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TranslatorConfig":
        """Create from a flat mapping, ignoring unset (None) values.

        Raises:
            ConfigError: On unknown keys or values of the wrong type.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

        values = {k: v for k, v in data.items() if v is not None}
        if "catalog_dirs" in values:
            values["catalog_dirs"] = _as_path_list(values["catalog_dirs"])
        for flag in ("strict_placeholders", "include_unfinished"):
            if flag in values:
                values[flag] = _as_bool(flag, values[flag])
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["catalog_dirs"] = [str(p) for p in self.catalog_dirs]
        data["integrity_policy"] = self.integrity_policy.value
        return data


def _as_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in ("true", "yes", "1", "on"):
        return True
    if lowered in ("false", "no", "0", "off"):
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def _as_path_list(value: Any) -> list[Path]:
    if isinstance(value, (str, Path)):
        # Environment variables use the OS path separator
        return [Path(p) for p in str(value).split(os.pathsep) if p]
    if isinstance(value, list):
        return [Path(p) for p in value]
    raise ConfigError(f"catalog_dirs must be a path or a list of paths, got {value!r}")


def find_config_file(directory: Path | str = ".") -> Path | None:
    """Find a default configuration file in ``directory``."""
    directory = Path(directory)
    for name in DEFAULT_CONFIG_FILES:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


def load_config(
    path: Path | str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> TranslatorConfig:
    """Load configuration from file and environment.

    Args:
        path: Configuration file. When None, a default file in the current
            directory is used if present.
        environ: Environment to read instead of ``os.environ``.
        overrides: Values applied last, e.g. from command line options.

    Raises:
        ConfigError: If the file is unreadable or a value is invalid.
    """
    sources: list[ConfigSource] = []
    if path is not None:
        sources.append(FileConfigSource(path, required=True))
    else:
        default_file = find_config_file()
        if default_file is not None:
            sources.append(FileConfigSource(default_file))
    sources.append(
        EnvConfigSource(environ=environ, keys={f.name for f in fields(TranslatorConfig)})
    )

    merged: dict[str, Any] = {}
    for source in sources:
        merged.update({k: v for k, v in source.load().items() if v is not None})
    if overrides:
        merged.update({k: v for k, v in overrides.items() if v is not None})

    if "locale" not in merged:
        merged["locale"] = detect_system_locale(environ)
    return TranslatorConfig.from_dict(merged)
