# tests/test_service.py
import datetime

import pytest

import backend.processors.interpreter as interpreter_module
from backend.schemas import Annotation, Category, Severity
from backend.service import EntryService, InvalidInputError, EntryNotFoundError
from backend.store import InMemoryEntryStore


@pytest.fixture
def service():
    return EntryService(InMemoryEntryStore())


def test_create_entry_trims_and_stamps(service):
    before = datetime.datetime.now(datetime.timezone.utc)
    entry = service.create_entry("  PCB board version 2 failed QA inspection \n")
    after = datetime.datetime.now(datetime.timezone.utc)

    assert entry.raw_text == "PCB board version 2 failed QA inspection"
    assert before <= entry.created_at <= after
    assert entry.category == Category.ISSUE
    assert entry.entities == ["PCB", "board", "version 2"]
    assert service.get_entry(entry.id) == entry


def test_ids_are_unique(service):
    ids = {service.create_entry("Shift handover").id for _ in range(5)}
    assert len(ids) == 5


@pytest.mark.parametrize("raw", [None, "", "  \t", 7, ["motor"]])
def test_create_entry_rejects_blank_or_non_string(service, raw):
    with pytest.raises(InvalidInputError) as ei:
        service.create_entry(raw)
    assert ei.value.error_code == "E_INVALID_INPUT"
    assert service.count() == 0


def test_interpreter_runs_once_per_submission(service, monkeypatch):
    calls = []

    def fake_interpret(text):
        calls.append(text)
        return Annotation(category=Category.DELAY, severity=Severity.MEDIUM)

    monkeypatch.setattr(interpreter_module, "interpret", fake_interpret)
    entry = service.create_entry("anything")
    service.list_entries()
    service.analytics()
    assert calls == ["anything"]
    assert entry.category == Category.DELAY


def test_entry_is_immutable(service):
    entry = service.create_entry("Motor overheating after 3 hours")
    with pytest.raises(Exception):
        entry.category = Category.EVENT


def test_missing_entry(service):
    with pytest.raises(EntryNotFoundError):
        service.get_entry("missing")
    with pytest.raises(EntryNotFoundError):
        service.delete_entry("missing")


def test_analytics_and_trends_use_store(service):
    service.create_entry("Urgent: relay malfunction")
    service.create_entry("Relay delay")
    snap = service.analytics()
    assert snap.total == 2
    assert snap.by_category == {"issue": 1, "delay": 1}
    report = service.trends("7")
    assert report.period_days == 7
    assert report.total_entries == 2


def test_stored_annotation_cannot_be_edited_through_returned_entries(service):
    entry = service.create_entry("Motor failure after 3 hours")
    entry.entities.append("X")
    entry.metrics["duration"] = "99 hours"

    fetched = service.get_entry(entry.id)
    assert fetched.entities == ["Motor"]
    assert fetched.metrics == {"duration": "3 hours"}

    fetched.entities.clear()
    service.list_entries()[0].metrics.clear()
    again = service.get_entry(entry.id)
    assert again.entities == ["Motor"]
    assert again.metrics == {"duration": "3 hours"}
