"""Prometheus export endpoint contract tests.

Validates that the scrape endpoint is reachable on the configured path and
returns the request histogram in text exposition format.
"""

from fastapi.testclient import TestClient
from prometheus_client import CONTENT_TYPE_LATEST

from routemetrics.core.config import MetricsSettings


def test_prometheus_metrics_endpoint_returns_200(client):
    client.get("/items/1")
    r = client.get("/metrics")
    assert r.status_code == 200
    assert r.headers["content-type"] == CONTENT_TYPE_LATEST
    assert "# HELP test_request_duration_seconds request latencies" in r.text
    assert 'test_request_duration_seconds_count{code="200",endpoint="GET_/items/{item_id}"} 1.0' in r.text


def test_metrics_route_not_in_openapi(client):
    paths = client.get("/openapi.json").json()["paths"]
    assert "/metrics" not in paths
    assert "/items/{item_id}" in paths


def test_custom_metrics_path(make_app, registry, observed):
    c = TestClient(make_app(MetricsSettings(subsystem="test", metrics_path="/internal/metrics"), registry))

    r = c.get("/internal/metrics")
    assert r.status_code == 200
    assert "test_request_duration_seconds" in r.text

    # the default path is just another unknown route now
    assert c.get("/metrics").status_code == 404
    assert observed("404", "404_GET") == 1
