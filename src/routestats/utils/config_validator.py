"""
Configuration validation for dashboard runs.

This module provides validation for:
- Source (ingestion mode) configuration
- Display configuration (chart limits, instance merging, filters)
- Status classifier bands
- Metrics and output configuration
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

VALID_MODES = {"bulk", "realtime"}
CHART_STYLES = {"pie", "column", "line", "area"}


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""
    pass


class ClassifierConfigValidator:
    """Validates status classifier bands."""

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> List[str]:
        errors = []
        bands = config.get("bands")
        if bands is None:
            return errors
        if not isinstance(bands, list) or not bands:
            errors.append("classifier.bands must be a non-empty list")
            return errors

        for i, band in enumerate(bands):
            if not isinstance(band, dict):
                errors.append(f"classifier band {i} must be a mapping with low/high/name")
                continue
            missing = {"low", "high", "name"} - set(band.keys())
            if missing:
                errors.append(f"classifier band {i} missing fields: {missing}")
                continue
            if not isinstance(band["low"], int) or not isinstance(band["high"], int):
                errors.append(f"classifier band {i}: low/high must be integers")
            elif band["low"] > band["high"]:
                errors.append(f"classifier band {i}: low {band['low']} > high {band['high']}")
            if band["name"] == "other":
                errors.append(f"classifier band {i}: 'other' is reserved for unclassified codes")

        return errors


class DashboardConfigValidator:
    """Validates complete dashboard configuration."""

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """Validate complete dashboard configuration."""
        all_errors = []

        if not isinstance(config, dict):
            return False, ["Configuration must be a mapping"]

        if "source" not in config:
            all_errors.append("Missing top-level field: source")
            return False, all_errors

        all_errors.extend(cls._validate_source(config["source"]))
        all_errors.extend(cls._validate_display(config.get("display", {})))
        all_errors.extend(cls._validate_filters(config.get("filters", {})))
        all_errors.extend(ClassifierConfigValidator.validate(config.get("classifier", {})))
        all_errors.extend(cls._validate_metrics(config.get("metrics_config", {})))

        return len(all_errors) == 0, all_errors

    @classmethod
    def _validate_source(cls, source: Dict[str, Any]) -> List[str]:
        errors = []

        mode = source.get("mode")
        if mode not in VALID_MODES:
            errors.append(f"Invalid source.mode: {mode} (must be bulk/realtime)")
        elif mode == "bulk" and not source.get("bulk_path"):
            errors.append("source.bulk_path is required for bulk mode")
        elif mode == "realtime" and not source.get("stream_path"):
            errors.append("source.stream_path is required for realtime mode")

        return errors

    @classmethod
    def _validate_display(cls, display: Dict[str, Any]) -> List[str]:
        errors = []

        chart_limits = display.get("chart_limits", {})
        for style, limit in chart_limits.items():
            if style not in CHART_STYLES:
                errors.append(f"Unknown chart style: {style}")
            if not isinstance(limit, int) or limit <= 0:
                errors.append(f"Invalid chart limit for {style}: {limit}")

        if "merge_instances" in display and not isinstance(display["merge_instances"], bool):
            errors.append("display.merge_instances must be true or false")

        return errors

    @classmethod
    def _validate_filters(cls, filters: Dict[str, Any]) -> List[str]:
        errors = []

        unknown = set(filters.keys()) - {"by_route", "by_instance", "by_status_code"}
        if unknown:
            errors.append(f"Unknown filters: {unknown}")

        code = filters.get("by_status_code")
        if code not in (None, "", "*") and not str(code).strip().isdecimal():
            errors.append(f"Invalid filters.by_status_code: {code}")

        return errors

    @classmethod
    def _validate_metrics(cls, metrics: Dict[str, Any]) -> List[str]:
        errors = []

        for p in metrics.get("percentiles_to_calculate", []):
            if not isinstance(p, (int, float)) or not 0 < p <= 1:
                errors.append(f"Invalid percentile: {p} (must be in (0, 1])")

        return errors


def apply_defaults(config: Dict[str, Any]) -> Dict[str, Any]:
    """Fill in optional sections with their defaults, in place."""
    display = config.setdefault("display", {})
    if "chart_limits" not in display:
        display["chart_limits"] = {"pie": 15, "column": 10, "line": 8, "area": 5}
        logger.debug("Added default display.chart_limits")
    display.setdefault("merge_instances", True)

    config.setdefault("filters", {})
    config.setdefault("classifier", {})
    config.setdefault("metrics_config", {}).setdefault(
        "percentiles_to_calculate", [0.5, 0.9, 0.95, 0.99]
    )
    config.setdefault("output", {})
    return config


def load_config_file(config_path: str) -> Dict[str, Any]:
    """Load a YAML or JSON configuration file."""
    config_file = Path(config_path)

    with open(config_file) as f:
        if config_file.suffix in [".yaml", ".yml"]:
            return yaml.safe_load(f)
        return json.load(f)


def validate_and_fix_config(config_path: str) -> Tuple[bool, List[str], Optional[Dict[str, Any]]]:
    """
    Load, validate, and fill defaults for a configuration file.

    Returns:
        (is_valid, errors, fixed_config)
    """
    config = load_config_file(config_path)

    is_valid, errors = DashboardConfigValidator.validate(config)
    if isinstance(config, dict):
        apply_defaults(config)

    if not is_valid:
        logger.warning(f"Configuration has {len(errors)} validation errors")
        for error in errors[:10]:
            logger.warning(f"  - {error}")
        if len(errors) > 10:
            logger.warning(f"  ... and {len(errors) - 10} more errors")

    return is_valid, errors, config
