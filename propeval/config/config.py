from __future__ import annotations

"""Configuration loading and validation for propeval.

This module loads YAML configuration, applies defaults, and validates
that enumerations and values are sane for the CLI.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

ALLOWED_RESULT_FORMATS = {"parquet", "json", "none"}
ALLOWED_LANGUAGES = {"en", "ro"}
DEFAULT_MAX_AGE_MS = 24 * 60 * 60 * 1000


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        print(f"ERROR: Config file not found: {path}", file=sys.stderr)
        sys.exit(1)
    except yaml.YAMLError as e:
        print(f"ERROR: Cannot parse config file {path}: {e}", file=sys.stderr)
        sys.exit(1)


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML or defaults.

    Args:
        path: Optional path to a YAML config. If None, use package defaults.

    Returns:
        A dictionary with configuration values.
    """
    if path:
        return _load_yaml(Path(path))
    return _load_yaml(Path(__file__).with_name("defaults.yml"))


def validate_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Apply defaults and validate configuration values.

    Args:
        cfg: The raw configuration dictionary.

    Returns:
        The validated and merged configuration dictionary.
    """
    cfg.setdefault("session", {})
    cfg.setdefault("results", {})
    cfg.setdefault("report", {})
    cfg.setdefault("ui", {})

    session = cfg["session"]
    results = cfg["results"]
    report = cfg["report"]
    ui = cfg["ui"]

    session.setdefault("max_age_ms", DEFAULT_MAX_AGE_MS)
    session.setdefault("storage_dir", "./.propeval/sessions")

    results.setdefault("format", "parquet")
    results.setdefault("output_path", "./.propeval/results")

    report.setdefault("improvement_limit", None)

    ui.setdefault("language", "en")

    try:
        max_age = int(session["max_age_ms"])
    except (TypeError, ValueError):
        max_age = -1
    if max_age <= 0:
        logger.warning("Invalid session.max_age_ms %r, using %s.", session["max_age_ms"], DEFAULT_MAX_AGE_MS)
        max_age = DEFAULT_MAX_AGE_MS
    session["max_age_ms"] = max_age

    fmt = str(results.get("format", "")).lower()
    if fmt not in ALLOWED_RESULT_FORMATS:
        logger.warning("Unsupported results format %r, using 'parquet'.", results.get("format"))
        fmt = "parquet"
    results["format"] = fmt

    lang = ui.get("language")
    if lang not in ALLOWED_LANGUAGES:
        logger.warning("Unsupported language %r, using 'en'.", lang)
        ui["language"] = "en"

    limit = report.get("improvement_limit")
    if limit is not None:
        try:
            limit = int(limit)
        except (TypeError, ValueError):
            limit = 0
        if limit <= 0:
            logger.warning("Invalid report.improvement_limit %r, listing every category.", report["improvement_limit"])
            limit = None
    report["improvement_limit"] = limit

    return cfg
