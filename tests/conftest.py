import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

from routemetrics.api.main import create_app
from routemetrics.core.config import MetricsSettings


def add_shop_routes(app):
    @app.get("/items/{item_id}")
    def get_item(item_id: str):
        if item_id == "missing":
            raise HTTPException(status_code=404, detail="Item not found")
        return {"id": item_id}

    @app.post("/items", status_code=201)
    def create_item():
        return {"ok": True}

    @app.get("/users/{user_id:int}/orders")
    def list_orders(user_id: int):
        return {"user_id": user_id, "orders": []}

    @app.get("/boom")
    def boom():
        raise RuntimeError("kaboom")

    return app


@pytest.fixture()
def registry():
    # Fresh registry per test so histograms never collide
    return CollectorRegistry()


@pytest.fixture()
def settings():
    return MetricsSettings(subsystem="test")


@pytest.fixture()
def make_app():
    """Build the app with the shop routes added; stops any metrics listener afterwards."""
    built = []

    def _make(settings=None, registry=None):
        settings = settings or MetricsSettings(subsystem="test")
        registry = registry if registry is not None else CollectorRegistry()
        app = add_shop_routes(create_app(settings, registry=registry))
        built.append(app)
        return app

    yield _make
    for app in built:
        app.state.metrics.shutdown()


@pytest.fixture()
def app(make_app, settings, registry):
    return make_app(settings, registry)


@pytest.fixture()
def client(app):
    return TestClient(app)


@pytest.fixture()
def observed(registry, settings):
    """Observation count for one (code, endpoint) pair."""

    def _count(code: str, endpoint: str) -> float:
        name = f"{settings.subsystem}_request_duration_seconds_count" if settings.subsystem else "request_duration_seconds_count"
        return registry.get_sample_value(name, {"code": code, "endpoint": endpoint}) or 0

    return _count


@pytest.fixture()
def endpoints(registry):
    """All (code, endpoint) label pairs recorded so far."""

    def _labels() -> set:
        found = set()
        for metric in registry.collect():
            for sample in metric.samples:
                if sample.name.endswith("_request_duration_seconds_count"):
                    found.add((sample.labels["code"], sample.labels["endpoint"]))
        return found

    return _labels


@pytest.fixture()
def total_observations(registry):
    def _total() -> float:
        total = 0.0
        for metric in registry.collect():
            for sample in metric.samples:
                if sample.name.endswith("_request_duration_seconds_count"):
                    total += sample.value
        return total

    return _total
