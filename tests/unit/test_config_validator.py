"""
Unit tests for configuration validation system.
"""

import json

import pytest
import yaml

from routestats.utils.config_validator import (
    ClassifierConfigValidator,
    DashboardConfigValidator,
    apply_defaults,
    validate_and_fix_config,
)


def valid_config():
    return {
        "source": {"mode": "bulk", "bulk_path": "data/lastDayStatistics.json"},
        "display": {"chart_limits": {"pie": 15, "column": 10}, "merge_instances": True},
        "filters": {"by_route": None, "by_instance": "*", "by_status_code": "404"},
        "metrics_config": {"percentiles_to_calculate": [0.5, 0.99]},
    }


class TestDashboardConfigValidator:
    """Test dashboard configuration validation."""

    def test_valid_config(self):
        is_valid, errors = DashboardConfigValidator.validate(valid_config())
        assert is_valid
        assert errors == []

    def test_missing_source(self):
        is_valid, errors = DashboardConfigValidator.validate({"display": {}})
        assert not is_valid
        assert any("source" in e for e in errors)

    def test_not_a_mapping(self):
        is_valid, errors = DashboardConfigValidator.validate(None)
        assert not is_valid

    def test_invalid_mode(self):
        config = valid_config()
        config["source"]["mode"] = "both"

        is_valid, errors = DashboardConfigValidator.validate(config)
        assert any("Invalid source.mode" in e for e in errors)

    def test_realtime_requires_stream_path(self):
        config = valid_config()
        config["source"] = {"mode": "realtime"}

        is_valid, errors = DashboardConfigValidator.validate(config)
        assert any("stream_path" in e for e in errors)

    def test_invalid_chart_limits(self):
        config = valid_config()
        config["display"]["chart_limits"] = {"pie": 0, "donut": 5}

        is_valid, errors = DashboardConfigValidator.validate(config)
        assert any("Invalid chart limit for pie" in e for e in errors)
        assert any("Unknown chart style: donut" in e for e in errors)

    def test_invalid_status_code_filter(self):
        config = valid_config()
        config["filters"]["by_status_code"] = "2xx"

        is_valid, errors = DashboardConfigValidator.validate(config)
        assert any("by_status_code" in e for e in errors)

    def test_invalid_percentile(self):
        config = valid_config()
        config["metrics_config"]["percentiles_to_calculate"] = [0.5, 99]

        is_valid, errors = DashboardConfigValidator.validate(config)
        assert any("Invalid percentile: 99" in e for e in errors)


class TestClassifierConfigValidator:
    """Test classifier band validation."""

    def test_default_when_absent(self):
        assert ClassifierConfigValidator.validate({}) == []

    def test_valid_bands(self):
        config = {"bands": [{"low": 404, "high": 404, "name": "not_found"}]}
        assert ClassifierConfigValidator.validate(config) == []

    def test_reversed_band(self):
        config = {"bands": [{"low": 500, "high": 400, "name": "broken"}]}
        errors = ClassifierConfigValidator.validate(config)
        assert any("low 500 > high 400" in e for e in errors)

    def test_missing_fields_and_reserved_name(self):
        config = {"bands": [{"low": 200}, {"low": 0, "high": 99, "name": "other"}]}
        errors = ClassifierConfigValidator.validate(config)
        assert any("missing fields" in e for e in errors)
        assert any("reserved" in e for e in errors)

    def test_empty_band_list(self):
        assert ClassifierConfigValidator.validate({"bands": []})


class TestDefaultsAndFiles:
    """Test default filling and file loading."""

    def test_apply_defaults(self):
        config = apply_defaults({"source": {"mode": "bulk", "bulk_path": "x.json"}})

        assert config["display"]["chart_limits"] == {"pie": 15, "column": 10, "line": 8, "area": 5}
        assert config["display"]["merge_instances"] is True
        assert config["metrics_config"]["percentiles_to_calculate"] == [0.5, 0.9, 0.95, 0.99]
        assert config["output"] == {}

    def test_validate_yaml_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump(valid_config()))

        is_valid, errors, config = validate_and_fix_config(str(path))

        assert is_valid
        assert config["display"]["chart_limits"] == {"pie": 15, "column": 10}

    def test_validate_json_file_with_errors(self, tmp_path):
        config = valid_config()
        config["source"]["mode"] = "stream"
        path = tmp_path / "config.json"
        path.write_text(json.dumps(config))

        is_valid, errors, loaded = validate_and_fix_config(str(path))

        assert not is_valid
        assert len(errors) == 1
        assert loaded["source"]["mode"] == "stream"
