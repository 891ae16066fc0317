"""
Core types for the research pipeline.

This module defines the data structures shared across the system:
- Enums for pipeline steps, stage keys and link statuses
- Frozen dataclasses for immutable data (Artifact, HistoryEntry, LinkCheck)
- Mutable dataclass for run tracking (RunState)
- Helper functions for ID generation and timestamps
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from uuid6 import uuid7


def generate_id(prefix: str = "") -> str:
    """Generate a time-ordered unique ID using UUID7.

    Args:
        prefix: Optional prefix for the ID (e.g., "run").

    Returns:
        A unique ID string, optionally prefixed.
    """
    uid = str(uuid7())
    return f"{prefix}_{uid}" if prefix else uid


def utc_now() -> datetime:
    """Get current UTC time with timezone info."""
    return datetime.now(timezone.utc)


class ResearchStep(str, Enum):
    """Steps of the research pipeline."""

    IDLE = "idle"
    SOURCING_DOCUMENTS = "sourcing_documents"
    DRAFTING_REPORT = "drafting_report"
    DRAFTING_MEMO = "drafting_memo"
    COMPLETED = "completed"
    FAILED = "failed"


class StageKey(str, Enum):
    """Generation stages, in execution order."""

    SOURCES = "sources"
    REPORT = "report"
    MEMO = "memo"

    @property
    def display_title(self) -> str:
        return _STAGE_TITLES[self]

    def filename(self, subject_name: str) -> str:
        """Output filename for this stage's artifact."""
        return f"{subject_name}_{self.value}.md"


_STAGE_TITLES = {
    StageKey.SOURCES: "Document Sources",
    StageKey.REPORT: "Equity Analyst Report",
    StageKey.MEMO: "Investment Memo",
}


class LinkStatus(str, Enum):
    """Outcome of a single link probe."""

    VERIFIED = "verified"  # success status and expected content type
    INVALID = "invalid"  # success status, wrong content type
    DEAD = "dead"  # non-success status
    UNVERIFIABLE = "unverifiable"  # probe raised (timeout, network, refused)


@dataclass(frozen=True)
class Artifact:
    """Immutable titled text output of one stage."""

    id: StageKey
    title: str
    filename: str
    content: str

    @classmethod
    def create(cls, stage: StageKey, subject_name: str, content: str) -> Artifact:
        """Factory method deriving title and filename from the stage."""
        return cls(
            id=stage,
            title=stage.display_title,
            filename=stage.filename(subject_name),
            content=content,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id.value,
            "title": self.title,
            "filename": self.filename,
            "content": self.content,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Artifact:
        return cls(
            id=StageKey(data["id"]),
            title=data["title"],
            filename=data["filename"],
            content=data["content"],
        )


@dataclass(frozen=True)
class HistoryEntry:
    """A completed run as persisted by the history store."""

    subject_name: str
    completed_at: datetime
    artifacts: tuple[Artifact, ...]

    @classmethod
    def create(cls, subject_name: str, artifacts: list[Artifact] | tuple[Artifact, ...]) -> HistoryEntry:
        """Factory method stamping the completion time."""
        return cls(
            subject_name=subject_name,
            completed_at=utc_now(),
            artifacts=tuple(artifacts),
        )

    @property
    def key(self) -> str:
        """Case-insensitive identity of the subject."""
        return self.subject_name.casefold()

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject_name": self.subject_name,
            # Milliseconds since epoch
            "timestamp": int(self.completed_at.timestamp() * 1000),
            "artifacts": [a.to_dict() for a in self.artifacts],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryEntry:
        return cls(
            subject_name=data["subject_name"],
            completed_at=datetime.fromtimestamp(data["timestamp"] / 1000, tz=timezone.utc),
            artifacts=tuple(Artifact.from_dict(a) for a in data.get("artifacts", [])),
        )


@dataclass(frozen=True)
class LinkCheck:
    """Result of probing one URL."""

    url: str
    status: LinkStatus
    status_code: int | None = None
    content_type: str | None = None
    error: str | None = None


@dataclass
class RunState:
    """Mutable state for a research run.

    Owned by the orchestrator and advanced only through its transitions.
    Observers receive snapshots from `snapshot()`, never this instance.
    """

    subject_name: str = ""
    step: ResearchStep = ResearchStep.IDLE
    artifacts: list[Artifact] = field(default_factory=list)
    error: str | None = None
    is_processing: bool = False
    run_id: str | None = None
    started_at: datetime | None = None

    @classmethod
    def create(cls, subject_name: str) -> RunState:
        """Factory method for a run that is about to start."""
        return cls(
            subject_name=subject_name,
            step=ResearchStep.SOURCING_DOCUMENTS,
            is_processing=True,
            run_id=generate_id("run"),
            started_at=utc_now(),
        )

    def snapshot(self) -> RunStateSnapshot:
        """Return a read-only copy of the current state."""
        return RunStateSnapshot(
            subject_name=self.subject_name,
            step=self.step,
            artifacts=tuple(self.artifacts),
            error=self.error,
            is_processing=self.is_processing,
            run_id=self.run_id,
            started_at=self.started_at,
        )


@dataclass(frozen=True)
class RunStateSnapshot:
    """Frozen view of a RunState handed to observers and callers."""

    subject_name: str
    step: ResearchStep
    artifacts: tuple[Artifact, ...]
    error: str | None
    is_processing: bool
    run_id: str | None = None
    started_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.step in (ResearchStep.COMPLETED, ResearchStep.FAILED, ResearchStep.IDLE)
