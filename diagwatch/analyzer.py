"""Analyzer interface and the events and reports analyzers produce."""

from __future__ import annotations

import abc
import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from .information_element import InformationElement
from .util import RuntimeMetadata

__all__ = [
    "Severity",
    "EventType",
    "Event",
    "Analyzer",
    "AnalyzerMetadata",
    "ReportMetadata",
    "PacketAnalysis",
    "AnalysisRow",
]


class Severity(enum.Enum):
    """How severe a warning is.

    LOW: worth investigating alongside many other warnings.
    MEDIUM: worth investigating alongside a few other warnings.
    HIGH: worth investigating on its own.
    """

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


@dataclass(frozen=True)
class EventType:
    """Informational when ``severity`` is None, otherwise a qualitative warning."""

    severity: Optional[Severity] = None


@dataclass(frozen=True)
class Event:
    """A user-facing signal emitted by an analyzer."""

    event_type: EventType
    message: str

    def to_dict(self) -> dict[str, Any]:
        """A JSON-ready representation of the event."""
        if self.event_type.severity is None:
            event_type: dict[str, Any] = {"type": "Informational"}
        else:
            event_type = {
                "type": "QualitativeWarning",
                "severity": self.event_type.severity.value,
            }
        return {"event_type": event_type, "message": self.message}


class Analyzer(abc.ABC):
    """One heuristic for detecting a cell-site simulator."""

    @abc.abstractmethod
    def name(self) -> str:
        """A concise, user-friendly name for the heuristic."""

    @abc.abstractmethod
    def description(self) -> str:
        """What the heuristic looks for and its known false positives."""

    @abc.abstractmethod
    def analyze_information_element(self, ie: InformationElement) -> Optional[Event]:
        """Analyze one information element, possibly returning an event."""


@dataclass(frozen=True)
class AnalyzerMetadata:
    name: str
    description: str


@dataclass
class ReportMetadata:
    analyzers: list[AnalyzerMetadata]
    rayhunter: RuntimeMetadata


@dataclass
class PacketAnalysis:
    """Events for one packet, one entry per analyzer."""

    timestamp: datetime
    events: list[Optional[Event]]


@dataclass
class AnalysisRow:
    """The analysis of one message container."""

    timestamp: datetime
    skipped_message_reasons: list[str] = field(default_factory=list)
    analysis: list[PacketAnalysis] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.skipped_message_reasons and not self.analysis

    def contains_warnings(self) -> bool:
        return any(
            event is not None and event.event_type.severity is not None
            for packet in self.analysis
            for event in packet.events
        )