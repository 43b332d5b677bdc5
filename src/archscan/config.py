"""Configuration loading and management for archscan.

Configuration sources are merged in priority order:
    1. Defaults (defined in ScanConfig)
    2. Global config (~/.archscan.toml)
    3. Project config (./archscan.toml)
    4. Explicit config file
    5. Environment variables (ARCHSCAN_* prefix)
    6. CLI overrides (passed as kwargs)

Rule definitions live in the same TOML files as ``[[rules]]`` tables. They
are carried through untouched as ``ScanConfig.rule_tables`` and compiled by
``archscan.rules.loader``.

Example:
    >>> config = load_config(workers=4, scope_mode="single")
    >>> config.workers
    4
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]
ScopeMode = Literal["stack", "single"]

ENV_PREFIX = "ARCHSCAN_"

# Ordered path-segment markers; the first one found in a path names its layer.
DEFAULT_LAYERS = [
    "Core",
    "Execution",
    "Drivers",
    "Ingress",
    "Communication",
    "Application",
    "Observability",
    "Simulation",
    "Host",
    "Analyzers",
]

_SCOPE_MODES = ("stack", "single")
_VERBOSITIES = ("quiet", "normal", "verbose")


@dataclass(frozen=True)
class ScanConfig:
    """Configuration for one scan invocation.

    Attributes:
        File selection:
            extensions: Source file suffixes to scan
            excluded_dirs: Build-output directory names skipped anywhere in
                the tree (matched case-insensitively per path segment)
            source_dirs: Sub-directories of the root to scan (empty = root)
            max_file_size_mb: Larger files are skipped with a notice
            encoding: Text encoding used to read sources

        Scanning:
            scope_mode: "stack" (nested containers) or "single" (one
                outstanding container per file, the legacy tracker)
            workers: Thread pool size (None = auto-detect)
            parallel_threshold: Below this many files the scan is sequential

        Rules and report:
            use_default_rules: Fall back to the built-in rule pack when no
                ``[[rules]]`` are configured
            layers: Ordered path-segment markers used for layer grouping
            output_format: Default formatter name
            verbosity: Logging verbosity level
    """

    extensions: List[str] = field(default_factory=lambda: [".cs"])
    excluded_dirs: List[str] = field(default_factory=lambda: ["obj", "bin"])
    source_dirs: List[str] = field(default_factory=list)
    max_file_size_mb: float = 10.0
    encoding: str = "utf-8"

    scope_mode: ScopeMode = "stack"
    workers: Optional[int] = None
    parallel_threshold: int = 10

    use_default_rules: bool = True
    layers: List[str] = field(default_factory=lambda: list(DEFAULT_LAYERS))
    output_format: str = "markdown"
    verbosity: Verbosity = "normal"

    rule_tables: List[Dict[str, Any]] = field(default_factory=list, compare=False)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.extensions:
            raise InvalidConfigError("extensions", self.extensions, "at least one extension required")
        for ext in self.extensions:
            if not ext.startswith("."):
                raise InvalidConfigError("extensions", ext, "extensions must start with '.'")

        if self.scope_mode not in _SCOPE_MODES:
            raise InvalidConfigError(
                "scope_mode", self.scope_mode, f"expected one of {', '.join(_SCOPE_MODES)}"
            )
        if self.verbosity not in _VERBOSITIES:
            raise InvalidConfigError(
                "verbosity", self.verbosity, f"expected one of {', '.join(_VERBOSITIES)}"
            )

        if self.workers is not None and self.workers < 1:
            raise InvalidConfigError("workers", self.workers, "must be at least 1")
        if self.parallel_threshold < 1:
            raise InvalidConfigError("parallel_threshold", self.parallel_threshold, "must be at least 1")
        if self.max_file_size_mb <= 0:
            raise InvalidConfigError("max_file_size_mb", self.max_file_size_mb, "must be positive")

        if not self.layers:
            raise InvalidConfigError("layers", self.layers, "at least one layer marker required")

    @property
    def max_file_size_bytes(self) -> int:
        """Get max file size in bytes."""
        return int(self.max_file_size_mb * 1024 * 1024)

    @property
    def normalized_excluded_dirs(self) -> frozenset[str]:
        """Excluded directory names, lowercased for matching."""
        return frozenset(d.lower() for d in self.excluded_dirs)


def load_config(config_file: Optional[Path] = None, **overrides) -> ScanConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags). ``None``
            values are ignored so unset CLI options keep file values.

    Returns:
        Validated ScanConfig instance

    Raises:
        ConfigurationError: If a config file is invalid or missing
    """
    merged: dict = {}

    global_config = Path.home() / ".archscan.toml"
    if global_config.exists():
        merged.update(read_config_file(global_config, "global config"))

    project_config = Path.cwd() / "archscan.toml"
    if project_config.exists():
        merged.update(read_config_file(project_config, "project config"))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        merged.update(read_config_file(config_file, "config file"))

    merged.update(_load_env_vars())

    if overrides.pop("verbose", False):
        overrides["verbosity"] = "verbose"
    if overrides.pop("quiet", False):
        overrides["verbosity"] = "quiet"
    merged.update({k: v for k, v in overrides.items() if v is not None})

    rules = merged.pop("rules", None)
    if rules is not None:
        if not isinstance(rules, list) or not all(isinstance(r, dict) for r in rules):
            raise InvalidConfigError("rules", type(rules).__name__, "expected an array of tables")
        merged["rule_tables"] = rules

    try:
        return ScanConfig(**merged)
    except TypeError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")


def read_config_file(path: Path, label: str) -> dict:
    try:
        return _load_toml_file(path)
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Invalid {label} '{path}': {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from ARCHSCAN_* environment variables.

    Supported: every scalar ScanConfig field, e.g. ARCHSCAN_WORKERS,
    ARCHSCAN_SCOPE_MODE, ARCHSCAN_USE_DEFAULT_RULES. List fields take a
    comma-separated value (ARCHSCAN_EXTENSIONS=".cs,.csx").
    """
    type_hints = get_type_hints(ScanConfig)

    result: dict[str, Any] = {}

    for field_name in ScanConfig.__dataclass_fields__:
        if field_name == "rule_tables":
            continue
        env_key = f"{ENV_PREFIX}{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
            if parsed is not None:
                result[field_name] = parsed
        except ValueError as e:
            raise ConfigurationError(f"Invalid {env_key}: {e}")

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse environment variable string to the field's type.

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    # Optional[X] is Union[X, None]
    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]
            origin = getattr(type_hint, "__origin__", None)

    if origin is list:
        return [part.strip() for part in value.split(",") if part.strip()]

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    # String (including Literal types like ScopeMode)
    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    Raises:
        ConfigurationError: If tomllib/tomli not available
    """
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        try:
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ConfigurationError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )

    with open(path, "rb") as f:
        return tomllib.load(f)


default_config = ScanConfig()
