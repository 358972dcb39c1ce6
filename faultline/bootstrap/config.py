"""
bootstrap/config.py - Engine configuration

Module 6: Bootstrap Layer

Provides configuration loading from files (JSON or YAML), environment
variables, and defaults.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from pathlib import Path
import os
import json
import logging

import yaml

from faultline.errors.exceptions import ConfigError
from faultline.errors.taxonomy import ErrorCategory, ErrorSeverity
from faultline.errors.recovery import DEFAULT_LATENCY_RANGE, STEPS_BY_SEVERITY

logger = logging.getLogger("bootstrap.config")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    if value in (None, ""):
        return None
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}", field=name)


def _env_float(name: str, default: str) -> float:
    value = os.getenv(name, default)
    try:
        return float(value)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {value!r}", field=name)


def parse_category_weights(raw: Any) -> Dict[ErrorCategory, float]:
    """
    Accept "network=2,sync=1" or a mapping of category name to weight.

    Unknown categories are rejected rather than mapped to generic.
    """
    if not raw:
        return {}

    if isinstance(raw, str):
        pairs = {}
        for item in raw.split(","):
            if not item.strip():
                continue
            name, sep, weight = item.partition("=")
            if not sep:
                raise ConfigError(f"Expected category=weight, got {item!r}", field="category_weights")
            pairs[name.strip()] = weight.strip()
        raw = pairs

    if not isinstance(raw, dict):
        raise ConfigError("category_weights must be a mapping", field="category_weights")

    weights: Dict[ErrorCategory, float] = {}
    for name, weight in raw.items():
        try:
            category = name if isinstance(name, ErrorCategory) else ErrorCategory(str(name))
        except ValueError:
            raise ConfigError(f"Unknown error category: {name}", field="category_weights")
        try:
            weights[category] = float(weight)
        except (TypeError, ValueError):
            raise ConfigError(f"Weight for {name} must be a number", field="category_weights")
    return weights


def parse_steps_by_severity(raw: Any) -> Dict[ErrorSeverity, int]:
    if not raw:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError("steps_by_severity must be a mapping", field="steps_by_severity")

    steps: Dict[ErrorSeverity, int] = {}
    for name, count in raw.items():
        try:
            severity = name if isinstance(name, ErrorSeverity) else ErrorSeverity(str(name))
        except ValueError:
            raise ConfigError(f"Unknown severity: {name}", field="steps_by_severity")
        steps[severity] = int(count)
    return steps


@dataclass
class GeneratorConfig:
    """Error generator configuration."""

    seed: Optional[int] = None
    category_weights: Dict[ErrorCategory, float] = field(default_factory=dict)
    scenario_interval_seconds: Optional[float] = None  # Overrides per-scenario intervals

    @classmethod
    def from_env(cls) -> "GeneratorConfig":
        interval = os.getenv("FAULTLINE_SCENARIO_INTERVAL")
        return cls(
            seed=_env_int("FAULTLINE_GENERATOR_SEED"),
            category_weights=parse_category_weights(os.getenv("FAULTLINE_CATEGORY_WEIGHTS", "")),
            scenario_interval_seconds=float(interval) if interval else None,
        )


@dataclass
class RecoveryConfig:
    """Recovery manager configuration."""

    seed: Optional[int] = None
    latency_min_seconds: float = DEFAULT_LATENCY_RANGE[0]
    latency_max_seconds: float = DEFAULT_LATENCY_RANGE[1]
    steps_by_severity: Dict[ErrorSeverity, int] = field(default_factory=lambda: dict(STEPS_BY_SEVERITY))

    @classmethod
    def from_env(cls) -> "RecoveryConfig":
        return cls(
            seed=_env_int("FAULTLINE_RECOVERY_SEED"),
            latency_min_seconds=_env_float("FAULTLINE_LATENCY_MIN", str(DEFAULT_LATENCY_RANGE[0])),
            latency_max_seconds=_env_float("FAULTLINE_LATENCY_MAX", str(DEFAULT_LATENCY_RANGE[1])),
        )


@dataclass
class CoordinatorConfig:
    """Handling coordinator configuration."""

    enabled: bool = True
    demo_interval_seconds: float = 3.0
    suppression_enabled: bool = False

    @classmethod
    def from_env(cls) -> "CoordinatorConfig":
        return cls(
            enabled=_env_bool("FAULTLINE_ENABLED", "true"),
            demo_interval_seconds=_env_float("FAULTLINE_DEMO_INTERVAL", "3.0"),
            suppression_enabled=_env_bool("FAULTLINE_SUPPRESSION", "false"),
        )


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_file: Optional[str] = None
    json_logs: bool = False

    @classmethod
    def from_env(cls) -> "LoggingConfig":
        return cls(
            level=os.getenv("FAULTLINE_LOG_LEVEL", "WARNING"),
            format=os.getenv("FAULTLINE_LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
            log_file=os.getenv("FAULTLINE_LOG_FILE"),
            json_logs=_env_bool("FAULTLINE_JSON_LOGS", "false"),
        )


@dataclass
class FaultlineConfig:
    """Root configuration for the engine."""

    environment: str = "development"
    debug: bool = False
    version: str = "1.0.0"

    generator: GeneratorConfig = field(default_factory=GeneratorConfig)
    recovery: RecoveryConfig = field(default_factory=RecoveryConfig)
    coordinator: CoordinatorConfig = field(default_factory=CoordinatorConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls) -> "FaultlineConfig":
        """Create configuration from environment variables."""
        return cls(
            environment=os.getenv("FAULTLINE_ENVIRONMENT", "development"),
            debug=_env_bool("FAULTLINE_DEBUG", "false"),
            generator=GeneratorConfig.from_env(),
            recovery=RecoveryConfig.from_env(),
            coordinator=CoordinatorConfig.from_env(),
            logging=LoggingConfig.from_env(),
        )

    @classmethod
    def from_file(cls, filepath: str) -> "FaultlineConfig":
        """Load configuration from a JSON or YAML file."""
        path = Path(filepath)
        if not path.exists():
            logger.warning(f"Config file not found: {filepath}, using defaults")
            return cls.from_env()

        try:
            with open(path) as f:
                if path.suffix.lower() in (".yaml", ".yml"):
                    data = yaml.safe_load(f) or {}
                else:
                    data = json.load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot parse config file: {e}", path=str(path))

        if not isinstance(data, dict):
            raise ConfigError("Config file must contain a mapping", path=str(path))

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "FaultlineConfig":
        """Create config from dictionary."""
        config = cls.from_env()

        # Override with file values
        if "environment" in data:
            config.environment = data["environment"]
        if "debug" in data:
            config.debug = bool(data["debug"])

        generator = dict(data.get("generator") or {})
        if "category_weights" in generator:
            config.generator.category_weights = parse_category_weights(generator.pop("category_weights"))
        _apply(config.generator, generator)

        recovery = dict(data.get("recovery") or {})
        if "steps_by_severity" in recovery:
            config.recovery.steps_by_severity.update(parse_steps_by_severity(recovery.pop("steps_by_severity")))
        _apply(config.recovery, recovery)

        _apply(config.coordinator, data.get("coordinator") or {})
        _apply(config.logging, data.get("logging") or {})

        return config

    def validate(self) -> "FaultlineConfig":
        """
        Check values for consistency.

        Raises:
            ConfigError: on the first invalid value
        """
        r = self.recovery
        if r.latency_min_seconds < 0 or r.latency_max_seconds < 0:
            raise ConfigError("Recovery latency must be non-negative", field="recovery.latency")
        if r.latency_min_seconds > r.latency_max_seconds:
            raise ConfigError("latency_min_seconds exceeds latency_max_seconds", field="recovery.latency")
        for severity, steps in r.steps_by_severity.items():
            if steps < 1:
                raise ConfigError(f"Steps for {severity.value} must be at least 1", field="recovery.steps_by_severity")

        g = self.generator
        if any(w < 0 for w in g.category_weights.values()):
            raise ConfigError("Category weights must be non-negative", field="generator.category_weights")
        if g.scenario_interval_seconds is not None and g.scenario_interval_seconds <= 0:
            raise ConfigError("Scenario interval must be positive", field="generator.scenario_interval_seconds")

        if self.coordinator.demo_interval_seconds < 0:
            raise ConfigError("Demo interval must be non-negative", field="coordinator.demo_interval_seconds")

        if self.logging.level.upper() not in LOG_LEVELS:
            raise ConfigError(f"Unknown log level: {self.logging.level}", field="logging.level")

        return self

    def to_dict(self) -> Dict[str, Any]:
        """Serialize config to dictionary."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "version": self.version,
            "generator": {
                "seed": self.generator.seed,
                "category_weights": {c.value: w for c, w in self.generator.category_weights.items()},
                "scenario_interval_seconds": self.generator.scenario_interval_seconds,
            },
            "recovery": {
                "seed": self.recovery.seed,
                "latency_min_seconds": self.recovery.latency_min_seconds,
                "latency_max_seconds": self.recovery.latency_max_seconds,
                "steps_by_severity": {s.value: n for s, n in self.recovery.steps_by_severity.items()},
            },
            "coordinator": {
                "enabled": self.coordinator.enabled,
                "demo_interval_seconds": self.coordinator.demo_interval_seconds,
                "suppression_enabled": self.coordinator.suppression_enabled,
            },
            "logging": {
                "level": self.logging.level,
                "log_file": self.logging.log_file,
                "json_logs": self.logging.json_logs,
            },
        }


def _apply(section: Any, values: Dict[str, Any]) -> None:
    for key, value in values.items():
        if hasattr(section, key):
            setattr(section, key, value)
        else:
            logger.warning(f"Ignoring unknown config key: {key}")


def load_config(filepath: str = None) -> FaultlineConfig:
    """
    Load configuration from file or environment.

    Args:
        filepath: Optional path to a JSON or YAML config file

    Returns:
        Validated FaultlineConfig
    """
    if filepath:
        config = FaultlineConfig.from_file(filepath)
    else:
        # Try default locations
        default_paths = [
            "./faultline.yaml",
            "./faultline.json",
            "./config/faultline.yaml",
            os.path.expanduser("~/.faultline/config.yaml"),
        ]

        config = None
        for path in default_paths:
            if Path(path).exists():
                logger.info(f"Loading config from: {path}")
                config = FaultlineConfig.from_file(path)
                break

        if config is None:
            config = FaultlineConfig.from_env()

    logger.info(f"Configuration loaded: environment={config.environment}")
    return config.validate()
