"""Unit tests for derived response type and response time statistics."""

import math

from routestats.metrics.classifier import StatusClassifier
from routestats.metrics.models import RouteRecord, RouteUrlEntry
from routestats.pipeline.derived import build_cache, safe_rate


def entry(raw, response_types=()):
    return RouteUrlEntry.from_raw(raw, response_types)


class TestSafeRate:
    def test_division(self):
        assert safe_rate(1000, 10) == 100

    def test_zero_count_is_nan(self):
        assert math.isnan(safe_rate(0, 0))
        assert math.isnan(safe_rate(50, 0))


class TestBuildCache:
    """Test per-entry and per-record derivation."""

    def test_response_time(self):
        """Test 10 requests over 1000ms average to 100ms."""
        records = [RouteRecord(instance="a", urls=[entry({"url": "/", "200": 10, "totalResponseTime": 1000})])]

        build_cache(records)

        assert records[0].urls[0].response_time == 100
        assert records[0].urls[0].requests == 10
        assert records[0].response_time == 100

    def test_conservation(self):
        """Test per-type totals sum to the per-status totals."""
        route = entry({"url": "/", "200": 3, "302": 4, "404": 2, "503": 1, "700": 5, "totalResponseTime": 10})
        status_total = route.status_total()

        build_cache([RouteRecord(instance="a", urls=[route])])

        assert sum(route.response_types.values()) == status_total == 15
        assert route.response_types == {
            "informational": 0,
            "success": 3,
            "redirect": 4,
            "client_error": 2,
            "server_error": 1,
            "other": 5,
        }

    def test_zero_requests_does_not_stop_the_pass(self):
        """Test an entry without requests gets NaN and later entries still derive."""
        empty = entry({"url": "/empty", "totalResponseTime": 0})
        busy = entry({"url": "/busy", "200": 4, "totalResponseTime": 40})
        records = [RouteRecord(instance="a", urls=[empty, busy])]

        build_cache(records)

        assert math.isnan(empty.response_time)
        assert empty.requests == 0
        assert all(count == 0 for count in empty.response_types.values())
        assert busy.response_time == 10
        assert records[0].response_time == 10

    def test_record_without_entries(self):
        records = [RouteRecord(instance="a", urls=[])]
        build_cache(records)

        assert records[0].requests == 0
        assert math.isnan(records[0].response_time)
        assert records[0].response_types["success"] == 0

    def test_record_totals(self):
        records = [RouteRecord(instance="a", urls=[
            entry({"url": "/a", "200": 2, "500": 2, "totalResponseTime": 80}),
            entry({"url": "/b", "404": 4, "totalResponseTime": 20}),
        ])]

        build_cache(records)

        assert records[0].requests == 8
        assert records[0].response_time == 100 / 8
        assert records[0].response_types["success"] == 2
        assert records[0].response_types["client_error"] == 4
        assert records[0].response_types["server_error"] == 2

    def test_pre_aggregated_type_counts(self):
        """Test already-aggregated type fields add to totals directly."""
        route = entry({"url": "/", "success": 6, "200": 2, "totalResponseTime": 80}, ["success"])
        records = [RouteRecord(instance="a", urls=[route])]

        build_cache(records)

        assert route.response_types["success"] == 8
        assert route.requests == 8
        assert route.response_time == 10
        assert records[0].response_types["success"] == 8

    def test_idempotent(self):
        records = [RouteRecord(instance="a", urls=[entry({"url": "/", "200": 10, "totalResponseTime": 1000})])]

        build_cache(records)
        first = records[0].to_dict()
        build_cache(records)

        assert records[0].to_dict() == first
        assert records[0].urls[0].response_types["success"] == 10

    def test_custom_classifier(self):
        classifier = StatusClassifier([(404, 404, "not_found"), (400, 499, "client_error")])
        route = entry({"url": "/", "404": 3, "403": 1, "200": 2})

        build_cache([RouteRecord(instance="a", urls=[route])], classifier)

        assert route.response_types == {"not_found": 3, "client_error": 1, "other": 2}

    def test_derived_fields_in_output(self):
        records = [RouteRecord(instance="a", urls=[entry({"url": "/", "totalResponseTime": 0})])]
        build_cache(records)

        data = records[0].to_dict()
        assert data["responseTime"] is None
        assert data["urls"][0]["responseTime"] is None
        assert data["urls"][0]["success"] == 0
