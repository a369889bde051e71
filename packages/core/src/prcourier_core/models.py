"""Data models shared by the planner and the delivery pipeline.

Findings come from an external reviewer process and are never mutated.
A CommentPlan is derived once from findings plus a position index and only
consumed afterwards; DeliveryOutcome is the one mutable record, filled in
while the pipeline runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field

SEVERITIES = ("error", "warning", "info")

# path -> {new-file line number -> diff coordinate}
PositionIndex = dict[str, dict[int, int]]


@dataclass(frozen=True)
class Finding:
    """A single review finding against a file, optionally anchored to a line."""

    file: str
    message: str
    severity: str = "info"
    line: int | None = None
    suggestion: str | None = None
    code: str | None = None


@dataclass(frozen=True)
class LineComment:
    path: str
    position: int
    body: str
    line: int | None = None  # new-file line the finding named; not sent to the API

    def as_api_dict(self) -> dict:
        return {"path": self.path, "position": self.position, "body": self.body}


@dataclass(frozen=True)
class SkippedComment:
    """A line finding that could not be resolved to a diff coordinate."""

    file: str
    line: int
    finding: Finding


@dataclass(frozen=True)
class CommentPlan:
    line_comments: tuple[LineComment, ...] = ()
    file_comments: dict[str, tuple[Finding, ...]] = field(default_factory=dict)
    skipped: tuple[SkippedComment, ...] = ()

    @property
    def total(self) -> int:
        return (
            len(self.line_comments)
            + sum(len(findings) for findings in self.file_comments.values())
            + len(self.skipped)
        )

    def skipped_by_file(self) -> dict[str, list[SkippedComment]]:
        grouped: dict[str, list[SkippedComment]] = {}
        for item in self.skipped:
            grouped.setdefault(item.file, []).append(item)
        return grouped


@dataclass
class DeliveryOutcome:
    """Counters accumulated over one pipeline run, reported once at the end."""

    line_comments_posted: int = 0
    line_comments_failed: int = 0
    line_comments_rescued: int = 0  # rejected inline, posted as a file comment instead
    file_comments_posted: int = 0
    file_comments_failed: int = 0
    skipped: int = 0
    skipped_reports_posted: int = 0
    skipped_reports_failed: int = 0
    summary_posted: bool = False

    @property
    def failed(self) -> int:
        return self.line_comments_failed + self.file_comments_failed + self.skipped_reports_failed
