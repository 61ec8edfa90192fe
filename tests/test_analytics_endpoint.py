# tests/test_analytics_endpoint.py
import datetime
import json
import os

import pytest
from fastapi.testclient import TestClient
from jsonschema import validate

from backend.app import app
from backend import app as app_module
from backend.schemas import Entry
from backend.store import InMemoryEntryStore

HERE = os.path.dirname(__file__)
with open(os.path.join(HERE, "..", "schemas", "analytics_schema.json"), "r") as f:
    ANALYTICS_SCHEMA = json.load(f)


@pytest.fixture
def store(monkeypatch):
    s = InMemoryEntryStore()
    monkeypatch.setattr(app_module.service, "store", s)
    return s


@pytest.fixture
def client(store):
    return TestClient(app)


def _seed_old(store, days_ago):
    created = datetime.datetime.now(datetime.timezone.utc) - datetime.timedelta(days=days_ago)
    store.append(Entry(
        id=f"old-{days_ago}",
        raw_text="Old relay failure",
        created_at=created,
        category="issue",
        severity="low",
        entities=["relay"],
        metrics={},
    ))


def test_analytics_empty(client):
    r = client.get("/api/analytics")
    assert r.status_code == 200
    j = r.json()
    validate(instance=j, schema=ANALYTICS_SCHEMA)
    assert j["total"] == 0
    assert j["by_category"] == {}
    assert j["by_severity"] == {}
    assert j["top_entities"] == {}
    assert [p["count"] for p in j["recent_trend"]] == [0] * 7


def test_analytics_after_submissions(client):
    for text in (
        "Motor overheating after 3 hours",
        "Motor failure causing delay",
        "Delay in shipment from vendor X",
    ):
        client.post("/api/entries", json={"raw_text": text})

    j = client.get("/api/analytics").json()
    validate(instance=j, schema=ANALYTICS_SCHEMA)
    assert j["total"] == 3
    assert j["by_category"] == {"issue": 2, "delay": 1}
    assert j["by_severity"] == {"low": 3}
    assert list(j["top_entities"].items())[0] == ("Motor", 2)


def test_trends_default_window(client, store):
    client.post("/api/entries", json={"raw_text": "Urgent sensor fault"})
    client.post("/api/entries", json={"raw_text": "QA inspection passed"})
    _seed_old(store, 45)

    j = client.get("/api/trends").json()
    assert j["period_days"] == 30
    assert j["total_entries"] == 2
    assert j["avg_per_day"] == "0.07"
    assert j["categories"] == {"event": 1, "quality": 1}
    assert j["severities"] == {"high": 1, "low": 1}


def test_trends_custom_and_bad_days(client, store):
    _seed_old(store, 5)

    j = client.get("/api/trends", params={"days": "7"}).json()
    assert j["period_days"] == 7
    assert j["total_entries"] == 1

    j = client.get("/api/trends", params={"days": "3"}).json()
    assert j["total_entries"] == 0
    assert j["avg_per_day"] == "0.00"

    j = client.get("/api/trends", params={"days": "abc"}).json()
    assert j["period_days"] == 30


def test_trends_huge_days(client, store):
    _seed_old(store, 400)
    r = client.get("/api/trends", params={"days": "1000000"})
    assert r.status_code == 200
    j = r.json()
    assert j["period_days"] == 1000000
    assert j["total_entries"] == 1
    assert j["avg_per_day"] == "0.00"
