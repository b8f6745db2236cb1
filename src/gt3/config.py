"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import os
import re
import tomllib
from dataclasses import dataclass
from pathlib import Path

CONFIG_FILE_NAME = "gt3.toml"
MAX_WORKERS_CAP = 64

DEFAULT_INCLUDE_EXTENSIONS = (".hbs",)
DEFAULT_IGNORED_NAMES = (
    "node_modules",
    "bower_components",
    ".DS_Store",
    ".git",
    ".svn",
    "Thumbs.db",
    ".yarn-cache",
)
DEFAULT_EXCLUDE_GLOBS = tuple(f"**/{name}/**" for name in DEFAULT_IGNORED_NAMES) + (
    "**/.DS_Store",
    "**/Thumbs.db",
)
DEFAULT_LOCALES_DIRECTORY = "locales"
DEFAULT_HELPER_NAME = "t"

_HELPER_NAME_PATTERN = re.compile(r"^[^\s!\"#%&'()*+,./;<=>@\[\\\]^`{|}~]+$")
_LOCALE_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


@dataclass(slots=True, frozen=True)
class ScanConfig:
    """Template discovery settings."""

    include_extensions: tuple[str, ...]
    exclude_globs: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class LocalesConfig:
    """Where catalogs live and which one, if any, defines the expected keys."""

    directory: str
    base_locale: str | None


@dataclass(slots=True, frozen=True)
class HelperConfig:
    """Name of the translation helper recognized and written by the tools."""

    name: str


@dataclass(slots=True, frozen=True)
class RunConfig:
    """Concurrency settings for reading and writing files."""

    workers: int


@dataclass(slots=True, frozen=True)
class LoggingConfig:
    """Optional run log and masked-source debug output."""

    audit_log: Path | None
    debug_dir: Path | None


@dataclass(slots=True, frozen=True)
class ToolConfig:
    """Fully merged toolkit configuration."""

    theme_root: Path
    scan: ScanConfig
    locales: LocalesConfig
    helper: HelperConfig
    run: RunConfig
    logging: LoggingConfig


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional command-line overrides applied at highest precedence."""

    base_locale: str | None = None
    helper_name: str | None = None
    workers: int | None = None
    audit_log: Path | None = None
    debug_dir: Path | None = None


def default_workers() -> int:
    """Mirror the thread pool's own default worker count."""
    return min(32, (os.cpu_count() or 1) + 4)


def default_config(theme_root: Path) -> ToolConfig:
    """Build default config for a given theme root."""
    return ToolConfig(
        theme_root=theme_root.resolve(),
        scan=ScanConfig(
            include_extensions=DEFAULT_INCLUDE_EXTENSIONS,
            exclude_globs=DEFAULT_EXCLUDE_GLOBS,
        ),
        locales=LocalesConfig(directory=DEFAULT_LOCALES_DIRECTORY, base_locale=None),
        helper=HelperConfig(name=DEFAULT_HELPER_NAME),
        run=RunConfig(workers=default_workers()),
        logging=LoggingConfig(audit_log=None, debug_dir=None),
    )


def load_theme_config_file(theme_root: Path) -> dict[str, object]:
    """Load optional gt3.toml from the theme root."""
    config_path = theme_root / CONFIG_FILE_NAME
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{CONFIG_FILE_NAME} must contain a top-level table.")
    return payload


def merge_config(
    base: ToolConfig, theme_payload: dict[str, object], overrides: CliOverrides
) -> ToolConfig:
    """Merge defaults, theme config, then command-line overrides."""
    scan_payload = _get_table(theme_payload, "scan")
    locales_payload = _get_table(theme_payload, "locales")
    helper_payload = _get_table(theme_payload, "helper")
    run_payload = _get_table(theme_payload, "run")
    logging_payload = _get_table(theme_payload, "logging")

    include_extensions = base.scan.include_extensions
    if "include_extensions" in scan_payload:
        include_extensions = tuple(
            extension.lower()
            for extension in _tuple_of_strings(
                scan_payload["include_extensions"], "scan", "include_extensions"
            )
        )
        for extension in include_extensions:
            if not extension.startswith("."):
                raise ValueError(
                    "Config field 'scan.include_extensions' entries must start with '.'."
                )
    exclude_globs = base.scan.exclude_globs
    if "exclude_globs" in scan_payload:
        exclude_globs = _tuple_of_strings(scan_payload["exclude_globs"], "scan", "exclude_globs")

    directory = base.locales.directory
    if "directory" in locales_payload:
        directory = _relative_dir(locales_payload["directory"], "locales.directory")
    base_locale = _optional_locale(
        locales_payload.get("base_locale"), "locales.base_locale", base.locales.base_locale
    )

    helper_name = _optional_helper_name(helper_payload.get("name"), "helper.name", base.helper.name)
    workers = _optional_positive_int_with_cap(
        run_payload.get("workers"), "run.workers", base.run.workers, MAX_WORKERS_CAP
    )

    audit_log = _optional_path(
        logging_payload.get("audit_log"),
        "logging.audit_log",
        base.theme_root,
        base.logging.audit_log,
    )
    debug_dir = _optional_path(
        logging_payload.get("debug_dir"),
        "logging.debug_dir",
        base.theme_root,
        base.logging.debug_dir,
    )

    merged = ToolConfig(
        theme_root=base.theme_root,
        scan=ScanConfig(include_extensions=include_extensions, exclude_globs=exclude_globs),
        locales=LocalesConfig(directory=directory, base_locale=base_locale),
        helper=HelperConfig(name=helper_name),
        run=RunConfig(workers=workers),
        logging=LoggingConfig(audit_log=audit_log, debug_dir=debug_dir),
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: ToolConfig, overrides: CliOverrides) -> ToolConfig:
    """Apply command-line overrides at highest precedence."""
    base_locale = _optional_locale(
        overrides.base_locale, "overrides.base_locale", config.locales.base_locale
    )
    helper_name = _optional_helper_name(
        overrides.helper_name, "overrides.helper_name", config.helper.name
    )
    workers = _optional_positive_int_with_cap(
        overrides.workers, "overrides.workers", config.run.workers, MAX_WORKERS_CAP
    )
    audit_log = overrides.audit_log.resolve() if overrides.audit_log else config.logging.audit_log
    debug_dir = overrides.debug_dir.resolve() if overrides.debug_dir else config.logging.debug_dir
    return ToolConfig(
        theme_root=config.theme_root,
        scan=config.scan,
        locales=LocalesConfig(directory=config.locales.directory, base_locale=base_locale),
        helper=HelperConfig(name=helper_name),
        run=RunConfig(workers=workers),
        logging=LoggingConfig(audit_log=audit_log, debug_dir=debug_dir),
    )


def load_effective_config(theme_root: Path, overrides: CliOverrides | None = None) -> ToolConfig:
    """Load effective config using merge order defaults -> theme config -> overrides."""
    resolved_root = theme_root.resolve()
    base = default_config(resolved_root)
    payload = load_theme_config_file(resolved_root)
    return merge_config(base, payload, overrides or CliOverrides())


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _tuple_of_strings(value: object, section: str, field: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Config field '{section}.{field}' must be a list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"Config field '{section}.{field}' must contain only strings.")
        output.append(item)
    return tuple(output)


def _relative_dir(value: object, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Config field '{name}' must be a non-empty string.")
    normalized = value.replace("\\", "/").strip("/")
    if not normalized or normalized.startswith("/") or ".." in normalized.split("/"):
        raise ValueError(f"Config field '{name}' must be a path inside the theme.")
    return normalized


def _optional_locale(value: object, name: str, default: str | None) -> str | None:
    if value is None:
        return default
    if not isinstance(value, str) or not _LOCALE_PATTERN.match(value):
        raise ValueError(f"Config field '{name}' must be a locale code such as 'en'.")
    return value


def _optional_helper_name(value: object, name: str, default: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str) or not _HELPER_NAME_PATTERN.match(value):
        raise ValueError(f"Config field '{name}' must be a bare helper name such as 't'.")
    return value


def _optional_path(value: object, name: str, root: Path, default: Path | None) -> Path | None:
    if value is None:
        return default
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Config field '{name}' must be a non-empty string.")
    return (root / value).resolve()


def _optional_positive_int_with_cap(
    value: object,
    name: str,
    default: int,
    cap: int | None,
) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"Config field '{name}' must be a positive integer.")
    if cap is not None and value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap}.")
    return value