"""Routing of findings into line comments, file comments and skipped comments."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from prcourier_core.diff.resolver import MAX_LINE_DISTANCE, resolve
from prcourier_core.formatting import format_issue_comment
from prcourier_core.models import CommentPlan, Finding, LineComment, PositionIndex, SkippedComment

logger = logging.getLogger(__name__)


def plan_comments(
    findings: Iterable[Finding],
    index: PositionIndex,
    render: Callable[[Finding], str] = format_issue_comment,
    max_distance: int = MAX_LINE_DISTANCE,
) -> CommentPlan:
    """Classify every finding into exactly one delivery bucket.

    Findings without a line go to the file-level bucket, grouped by file.
    Findings with a line become positioned comments when the resolver finds
    a coordinate, and are skipped otherwise. Input order is preserved
    inside each bucket.
    """
    line_comments: list[LineComment] = []
    file_comments: dict[str, list[Finding]] = {}
    skipped: list[SkippedComment] = []

    for finding in findings:
        if finding.line is None:
            file_comments.setdefault(finding.file, []).append(finding)
            continue
        position = resolve(finding.file, finding.line, index, max_distance=max_distance)
        if position is None:
            logger.debug("No diff position for %s:%d, skipping", finding.file, finding.line)
            skipped.append(SkippedComment(file=finding.file, line=finding.line, finding=finding))
        else:
            line_comments.append(
                LineComment(path=finding.file, position=position, body=render(finding), line=finding.line)
            )

    return CommentPlan(
        line_comments=tuple(line_comments),
        file_comments={file: tuple(items) for file, items in file_comments.items()},
        skipped=tuple(skipped),
    )
