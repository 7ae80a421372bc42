"""
ZeekScope Configuration Module
Handles loading and managing YAML configuration files and ZEEK_* environment overrides.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

LOG_FORMATS = ("json", "tsv")


@dataclass
class ZeekConfig:
    """Where Zeek logs live and how many results a query may return."""
    log_dir: Path = field(default_factory=lambda: Path("/opt/zeek/logs/current"))
    log_archive: Path = field(default_factory=lambda: Path("/opt/zeek/logs"))
    log_format: str = "json"
    max_results: int = 1000

    def validate(self) -> None:
        """Raise ValueError if the format or result ceiling is unusable."""
        if self.log_format not in LOG_FORMATS:
            raise ValueError(
                f'Invalid ZEEK_LOG_FORMAT: "{self.log_format}". Must be "json" or "tsv".'
            )
        if isinstance(self.max_results, bool) or not isinstance(self.max_results, int) or self.max_results < 1:
            raise ValueError(
                f'Invalid ZEEK_MAX_RESULTS: "{self.max_results}". Must be a positive integer.'
            )


@dataclass
class AnalyticsConfig:
    """Default thresholds for the detectors."""
    beacon_min_connections: int = 10
    beacon_max_jitter_percent: float = 30.0
    entropy_threshold: float = 3.5


@dataclass
class Config:
    """Main ZeekScope configuration."""
    zeek: ZeekConfig = field(default_factory=ZeekConfig)
    analytics: AnalyticsConfig = field(default_factory=AnalyticsConfig)

    # Global settings
    log_file: Path = field(default_factory=lambda: Path("logs/zeekscope.log"))
    log_level: str = "INFO"

    @classmethod
    def load(cls, config_path: Path | str) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to YAML config file

        Returns:
            Config instance with loaded values
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        return cls._from_dict(data)

    @classmethod
    def load_or_default(cls, config_path: Path | str | None = None) -> "Config":
        """
        Load configuration from file or return defaults.

        Args:
            config_path: Optional path to config file

        Returns:
            Config instance
        """
        if config_path is None:
            default_paths = [
                Path("config/config.yaml"),
                Path("config.yaml"),
                Path.home() / ".config" / "zeekscope" / "config.yaml",
            ]
            for path in default_paths:
                if path.exists():
                    return cls.load(path)
            return cls()

        return cls.load(config_path)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        config = cls()

        if "zeek" in data:
            zc = data["zeek"] or {}
            config.zeek = ZeekConfig(
                log_dir=Path(zc.get("log_dir", "/opt/zeek/logs/current")),
                log_archive=Path(zc.get("log_archive", "/opt/zeek/logs")),
                log_format=zc.get("log_format", "json"),
                max_results=zc.get("max_results", 1000),
            )
            config.zeek.validate()

        if "analytics" in data:
            ac = data["analytics"] or {}
            config.analytics = AnalyticsConfig(
                beacon_min_connections=ac.get("beacon_min_connections", 10),
                beacon_max_jitter_percent=ac.get("beacon_max_jitter_percent", 30.0),
                entropy_threshold=ac.get("entropy_threshold", 3.5),
            )

        config.log_file = Path(data.get("log_file", "logs/zeekscope.log"))
        config.log_level = data.get("log_level", "INFO")

        return config

    def apply_env(self, env: dict[str, str] | None = None) -> "Config":
        """
        Override Zeek settings from ZEEK_* environment variables.

        A .env file in the working directory is loaded first when reading
        the process environment.

        Args:
            env: Mapping to read instead of os.environ (tests)

        Returns:
            self, for chaining
        """
        if env is None:
            load_dotenv(dotenv_path=Path.cwd() / ".env")
            env = dict(os.environ)

        if env.get("ZEEK_LOG_DIR"):
            self.zeek.log_dir = Path(env["ZEEK_LOG_DIR"])
        if env.get("ZEEK_LOG_ARCHIVE"):
            self.zeek.log_archive = Path(env["ZEEK_LOG_ARCHIVE"])
        if env.get("ZEEK_LOG_FORMAT"):
            self.zeek.log_format = env["ZEEK_LOG_FORMAT"]
        if env.get("ZEEK_MAX_RESULTS"):
            raw = env["ZEEK_MAX_RESULTS"]
            try:
                self.zeek.max_results = int(raw)
            except ValueError:
                raise ValueError(
                    f'Invalid ZEEK_MAX_RESULTS: "{raw}". Must be a positive integer.'
                ) from None

        self.zeek.validate()
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for serialization."""
        return {
            "log_file": str(self.log_file),
            "log_level": self.log_level,
            "zeek": {
                "log_dir": str(self.zeek.log_dir),
                "log_archive": str(self.zeek.log_archive),
                "log_format": self.zeek.log_format,
                "max_results": self.zeek.max_results,
            },
            "analytics": {
                "beacon_min_connections": self.analytics.beacon_min_connections,
                "beacon_max_jitter_percent": self.analytics.beacon_max_jitter_percent,
                "entropy_threshold": self.analytics.entropy_threshold,
            },
        }

    def save(self, config_path: Path | str) -> None:
        """Save configuration to YAML file."""
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
