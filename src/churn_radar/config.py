"""Configuration loading and management for Churn Radar.

Configuration sources are merged in priority order:
    1. Defaults (defined in RadarConfig / AnalysisThresholds)
    2. Global config (~/.churn-radar.toml)
    3. Project config (./churn-radar.toml)
    4. Explicit config file
    5. Environment variables (RISKCALC_* prefix, 3SC_* universal fallback)
    6. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(alert_threshold=3)
    >>> config.thresholds.alert_threshold
    3
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Literal, Optional

from .exceptions import ConfigFileError, InvalidConfigError

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

TOOL_PREFIX = "RISKCALC_"
UNIVERSAL_PREFIX = "3SC_"

# Fields that also honour the universal 3SC_* variables shared by pipeline tools
_UNIVERSAL_FIELDS = frozenset({"verbose", "log_level"})


@dataclass(frozen=True)
class AnalysisThresholds:
    """Risk scoring and decision tuning parameters.

    Attributes:
        Decision policy:
            alert_threshold: Rank positions an area must climb to raise an ALERT
            fail_threshold: Rank positions an area must climb to FAIL the run
            alert_on_new_entries: ALERT when an area first enters the rankings

        Ranking:
            minimum_percentile: Areas below this percentile (0-100) get no rank
            excluded_areas: Path prefixes never tracked (e.g. "vendor/")

        Scoring:
            decay_constant: k in exp(-k * days_since_last_change)
            min_age_days: Floor for the age used in the frequency term
    """

    alert_threshold: int = 2
    fail_threshold: int = 5
    alert_on_new_entries: bool = True

    minimum_percentile: float = 70.0
    excluded_areas: tuple[str, ...] = ()

    decay_constant: float = 0.1
    min_age_days: float = 1.0

    def __post_init__(self) -> None:
        """Validate threshold configuration."""
        # Lists from TOML arrive as lists; freeze them
        if not isinstance(self.excluded_areas, tuple):
            object.__setattr__(self, "excluded_areas", tuple(self.excluded_areas))

        if self.alert_threshold < 1:
            raise InvalidConfigError("alert_threshold", self.alert_threshold, "must be at least 1")
        if self.fail_threshold < 1:
            raise InvalidConfigError("fail_threshold", self.fail_threshold, "must be at least 1")
        if self.alert_threshold > self.fail_threshold:
            raise InvalidConfigError(
                "alert_threshold",
                self.alert_threshold,
                f"must not exceed fail_threshold ({self.fail_threshold})",
            )
        if not 0.0 <= self.minimum_percentile <= 100.0:
            raise InvalidConfigError(
                "minimum_percentile", self.minimum_percentile, "must be between 0 and 100"
            )
        if self.decay_constant <= 0:
            raise InvalidConfigError("decay_constant", self.decay_constant, "must be positive")
        if self.min_age_days <= 0:
            raise InvalidConfigError("min_age_days", self.min_age_days, "must be positive")


@dataclass(frozen=True)
class RadarConfig:
    """Configuration for a pipeline run.

    Attributes:
        Repository:
            repo_path: Working tree of the analyzed repository
            state_file: State document path, relative to repo_path
            watermark_tag: Tag marking the last fully analyzed commit
            push: Push the state commit and watermark tag to origin
            git_timeout_seconds: Timeout for each git subprocess

        Output control:
            verbose: Print the full rankings and blast radius report
            log_level: Base logging level

        Algorithm thresholds (nested config)
    """

    repo_path: str = "."
    state_file: str = "change-analysis.json"
    watermark_tag: str = "change-analysis-last-run"
    push: bool = True
    git_timeout_seconds: int = 60

    verbose: bool = False
    log_level: LogLevel = "INFO"

    thresholds: AnalysisThresholds = field(default_factory=AnalysisThresholds)

    def __post_init__(self) -> None:
        if self.git_timeout_seconds < 1:
            raise InvalidConfigError(
                "git_timeout_seconds", self.git_timeout_seconds, "must be at least 1"
            )
        if not self.state_file:
            raise InvalidConfigError("state_file", self.state_file, "must not be empty")
        if not self.watermark_tag:
            raise InvalidConfigError("watermark_tag", self.watermark_tag, "must not be empty")
        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise InvalidConfigError("log_level", self.log_level, "unknown log level")

    @property
    def state_path(self) -> Path:
        """Absolute path of the state document."""
        return Path(self.repo_path).resolve() / self.state_file


def load_config(config_file: Optional[Path] = None, **overrides: Any) -> RadarConfig:
    """Load configuration with auto-discovery and merging.

    Threshold fields may be passed as flat overrides (``alert_threshold=3``)
    or nested under a ``[thresholds]`` TOML table.

    Raises:
        ConfigFileError: If a config file is missing or not valid TOML
        InvalidConfigError: If a value is unknown or out of range
    """
    merged: dict[str, Any] = {}

    global_config = Path.home() / ".churn-radar.toml"
    if global_config.exists():
        _merge(merged, _load_toml_file(global_config))

    project_config = Path.cwd() / "churn-radar.toml"
    if project_config.exists():
        _merge(merged, _load_toml_file(project_config))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigFileError(config_file, "file not found")
        _merge(merged, _load_toml_file(config_file))

    _merge(merged, _load_env_vars())
    _merge(merged, {k: v for k, v in overrides.items() if v is not None})

    return _build(merged)


_THRESHOLD_FIELDS = {f.name for f in fields(AnalysisThresholds)}
_RADAR_FIELDS = {f.name for f in fields(RadarConfig)} - {"thresholds"}


def _merge(target: dict[str, Any], source: dict[str, Any]) -> None:
    """Merge source into target, folding flat threshold keys into 'thresholds'."""
    for key, value in source.items():
        if key == "thresholds" and isinstance(value, dict):
            target.setdefault("thresholds", {}).update(value)
        elif key in _THRESHOLD_FIELDS:
            target.setdefault("thresholds", {})[key] = value
        else:
            target[key] = value


def _build(merged: dict[str, Any]) -> RadarConfig:
    thresholds_dict = merged.pop("thresholds", {})
    unknown = (set(merged) - _RADAR_FIELDS) | (set(thresholds_dict) - _THRESHOLD_FIELDS)
    if unknown:
        key = sorted(unknown)[0]
        raise InvalidConfigError(key, merged.get(key, thresholds_dict.get(key)), "unknown setting")

    try:
        thresholds = AnalysisThresholds(**thresholds_dict)
        return RadarConfig(thresholds=thresholds, **merged)
    except TypeError as e:
        raise InvalidConfigError("config", merged, str(e))


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from RISKCALC_* environment variables.

    Every RadarConfig and AnalysisThresholds field maps to RISKCALC_<FIELD>,
    e.g. RISKCALC_ALERT_THRESHOLD. RISKCALC_EXCLUDED_AREAS is a
    ';'-separated prefix list. VERBOSE and LOG_LEVEL fall back to
    3SC_VERBOSE / 3SC_LOG_LEVEL.
    """
    result: dict[str, Any] = {}

    specs = [(f.name, f.type) for f in fields(RadarConfig) if f.name != "thresholds"]
    specs += [(f.name, f.type) for f in fields(AnalysisThresholds)]

    for field_name, type_name in specs:
        env_key = TOOL_PREFIX + field_name.upper()
        raw = os.environ.get(env_key)
        if not raw and field_name in _UNIVERSAL_FIELDS:
            env_key = UNIVERSAL_PREFIX + field_name.upper()
            raw = os.environ.get(env_key)
        if not raw:
            continue
        result[field_name] = _parse_env_value(raw, str(type_name), env_key)

    return result


def _parse_env_value(value: str, type_name: str, env_key: str) -> Any:
    """Parse an environment string according to the field's annotation."""
    if type_name == "bool":
        lower = value.strip().lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        if lower in ("false", "0", "no", "off"):
            return False
        raise InvalidConfigError(env_key, value, "expected true/false")

    if type_name == "int":
        try:
            return int(value)
        except ValueError:
            raise InvalidConfigError(env_key, value, "expected an integer")

    if type_name == "float":
        try:
            return float(value)
        except ValueError:
            raise InvalidConfigError(env_key, value, "expected a number")

    if type_name.startswith("tuple"):
        return tuple(part.strip() for part in value.split(";") if part.strip())

    if type_name == "LogLevel":
        return value.strip().upper()

    return value


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict."""
    try:
        # Python 3.11+ has tomllib in stdlib
        import tomllib
    except ModuleNotFoundError:
        # Backport for Python 3.9-3.10
        import tomli as tomllib  # type: ignore

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigFileError(path, str(e))
