"""
Configuration loader.

Loads settings from config/settings.yaml and .env,
merges them, and provides a typed Settings object
accessible everywhere via `get_settings()`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from dotenv import load_dotenv

# Project root = 2 levels up from src/lab_compliance/
ROOT = Path(__file__).resolve().parent.parent.parent


def _config_dir() -> Path:
    return Path(os.getenv("LAB_COMPLIANCE_CONFIG_DIR", ROOT / "config"))


@dataclass
class PathSettings:
    report_dir: Path = field(default_factory=lambda: ROOT / "outputs" / "reports")
    log_dir: Path = field(default_factory=lambda: ROOT / "outputs" / "logs")


@dataclass
class EvaluationSettings:
    fail_first: bool = True  # known failures outrank pending parameters
    numeric_tolerance: float = 1e-3


@dataclass
class ReportSettings:
    output_format: str = "both"  # "md", "json", "both"
    top_failures: int = 3


@dataclass
class Settings:
    """Top-level settings object."""

    paths: PathSettings = field(default_factory=PathSettings)
    evaluation: EvaluationSettings = field(default_factory=EvaluationSettings)
    report: ReportSettings = field(default_factory=ReportSettings)
    log_level: str = "INFO"

    def ensure_dirs(self) -> None:
        """Create all output directories if they don't exist."""
        for p in [self.paths.report_dir, self.paths.log_dir]:
            Path(p).mkdir(parents=True, exist_ok=True)


# ── Singleton ─────────────────────────────────────────

_settings: Settings | None = None


def _load_yaml() -> dict:
    """Load the YAML config file."""
    settings_file = _config_dir() / "settings.yaml"
    if settings_file.exists():
        with open(settings_file, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    return {}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def get_settings() -> Settings:
    """Get the global Settings instance (lazy-loaded singleton)."""
    global _settings
    if _settings is not None:
        return _settings

    # Load .env
    load_dotenv(ROOT / ".env")

    # Load YAML
    raw = _load_yaml()

    paths_raw = raw.get("paths", {})
    paths = PathSettings(**{k: ROOT / v for k, v in paths_raw.items()}) if paths_raw else PathSettings()

    eval_raw = raw.get("evaluation", {})
    evaluation = EvaluationSettings(
        fail_first=_env_flag("FAIL_FIRST", bool(eval_raw.get("fail_first", True))),
        numeric_tolerance=float(eval_raw.get("numeric_tolerance", 1e-3)),
    )

    rep_raw = raw.get("report", {})
    report = ReportSettings(
        output_format=rep_raw.get("output_format", "both"),
        top_failures=int(rep_raw.get("top_failures", 3)),
    )

    log_raw = raw.get("logging", {})

    _settings = Settings(
        paths=paths,
        evaluation=evaluation,
        report=report,
        log_level=os.getenv("LOG_LEVEL", log_raw.get("level", "INFO")),
    )

    return _settings


def reload_settings() -> Settings:
    """Force reload of settings (clears the singleton)."""
    global _settings
    _settings = None
    return get_settings()
