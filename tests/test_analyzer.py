from datetime import datetime, timezone

import pytest

from diagwatch.analyzer import (
    AnalysisRow,
    Analyzer,
    Event,
    EventType,
    PacketAnalysis,
    Severity,
)

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_warning_event_to_dict():
    event = Event(EventType(Severity.HIGH), "Detected 2G downgrade")
    assert event.to_dict() == {
        "event_type": {"type": "QualitativeWarning", "severity": "High"},
        "message": "Detected 2G downgrade",
    }


def test_informational_event_to_dict():
    event = Event(EventType(), "just info")
    assert event.to_dict() == {
        "event_type": {"type": "Informational"},
        "message": "just info",
    }


def test_analyzer_is_abstract():
    with pytest.raises(TypeError):
        Analyzer()


def test_empty_row():
    row = AnalysisRow(timestamp=NOW)
    assert row.is_empty() is True
    assert row.contains_warnings() is False


def test_row_with_skipped_reason_is_not_empty():
    row = AnalysisRow(timestamp=NOW, skipped_message_reasons=["bad"])
    assert row.is_empty() is False


def test_row_with_only_informational_has_no_warnings():
    row = AnalysisRow(
        timestamp=NOW,
        analysis=[PacketAnalysis(NOW, [None, Event(EventType(), "info")])],
    )
    assert row.is_empty() is False
    assert row.contains_warnings() is False


def test_row_with_warning():
    row = AnalysisRow(
        timestamp=NOW,
        analysis=[
            PacketAnalysis(NOW, [None]),
            PacketAnalysis(NOW, [Event(EventType(Severity.LOW), "warn"), None]),
        ],
    )
    assert row.contains_warnings() is True