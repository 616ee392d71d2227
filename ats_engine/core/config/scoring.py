from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

_DEFAULT_PATH = Path(__file__).resolve().parents[3] / "config" / "scoring.yaml"
_REQUIRED_SECTIONS = ("scoring", "ats_systems", "industries")

_cache: dict[str, Any] | None = None


def scoring_config_path() -> Path:
    """config/scoring.yaml at the repo root unless ATS_SCORING_CONFIG points elsewhere."""
    override = (os.getenv("ATS_SCORING_CONFIG") or "").strip()
    return Path(override) if override else _DEFAULT_PATH


def _load(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise RuntimeError(f"Scoring config not found at '{path}'. Expected file: config/scoring.yaml")

    try:
        parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise RuntimeError(f"Failed to read scoring config '{path}': {exc}") from exc
    except yaml.YAMLError as exc:
        raise RuntimeError(f"Invalid YAML in scoring config '{path}': {exc}") from exc

    if not isinstance(parsed, dict):
        raise RuntimeError(f"Invalid scoring config '{path}': expected a top-level mapping.")

    missing = [section for section in _REQUIRED_SECTIONS if not isinstance(parsed.get(section), dict)]
    if missing:
        raise RuntimeError(f"Scoring config '{path}' is missing sections: {', '.join(missing)}")
    return parsed


def get_scoring_config() -> dict[str, Any]:
    """Tunable engine constants, read once per process."""
    global _cache
    if _cache is None:
        _cache = _load(scoring_config_path())
    return _cache


def reset_scoring_config() -> None:
    global _cache
    _cache = None


def get_scoring_value(path: str, default: Any = None) -> Any:
    """Nested lookup by dot path, e.g. 'verification.max_score_adjustment'."""
    if not path:
        return default

    current: Any = get_scoring_config()
    for key in path.split("."):
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    return current
