"""Delivery of a CommentPlan to a pull request.

The pipeline runs four stages strictly in order: batched line comments,
file-level comments, the skipped-line escalation and the final summary.
Every submission finishes before the next one starts, and the pauses
between them are plain ``sleep`` calls to stay under GitHub's secondary
rate limits. File comments, skipped-line reports and the summary share
the issue-comment endpoint, so every top-level comment after the first
waits ``comment_delay`` regardless of which stage posts it.

Errors from the API (``GithubException``) and from the transport
(``requests.RequestException``) are logged and counted per stage; they
never stop a later stage, and the final summary is always attempted so
the PR gets a health report even when delivery partly failed. Anything
else is a bug and propagates.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence

import requests
from github import GithubException
from rich.console import Console

from prcourier_core.formatting import (
    format_file_comment,
    format_final_summary,
    format_line_fallback_comment,
    format_skipped_comment,
)
from prcourier_core.gh.pull_request import post_issue_comment, submit_review_comments
from prcourier_core.models import CommentPlan, DeliveryOutcome, LineComment

console = Console()
logger = logging.getLogger(__name__)

BATCH_SIZE = 10
BATCH_DELAY = 1.5
ITEM_DELAY = 0.5
COMMENT_DELAY = 1.0

_DELIVERY_ERRORS = (GithubException, requests.RequestException)


def _describe(error: Exception) -> str:
    if isinstance(error, GithubException):
        return f"{error.status} {error.data}"
    return f"{type(error).__name__}: {error}"


class DeliveryPipeline:
    """Posts one plan to one pull request, anchored to a commit captured up front.

    The commit is fetched once by the caller and reused for every batch so
    all comments of a run land on the same snapshot even if the branch
    moves while we are posting.
    """

    def __init__(
        self,
        pr,
        commit,
        batch_size: int = BATCH_SIZE,
        batch_delay: float = BATCH_DELAY,
        item_delay: float = ITEM_DELAY,
        comment_delay: float = COMMENT_DELAY,
        file_comment_fallback: bool = False,
        sleep: Callable[[float], None] | None = None,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        self.pr = pr
        self.commit = commit
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.item_delay = item_delay
        self.comment_delay = comment_delay
        self.file_comment_fallback = file_comment_fallback
        self._sleep = sleep or time.sleep
        self._top_level_sent = 0

    def deliver(self, plan: CommentPlan, files_reviewed: int, total_findings: int) -> DeliveryOutcome:
        outcome = DeliveryOutcome(skipped=len(plan.skipped))
        self._top_level_sent = 0

        if plan.line_comments:
            self._submit_line_comments(plan.line_comments, outcome)
        else:
            logger.info("No line comments to submit")

        if plan.file_comments:
            bodies = [format_file_comment(file, findings) for file, findings in plan.file_comments.items()]
            posted, failed = self._post_comments(bodies, "file comment")
            outcome.file_comments_posted += posted
            outcome.file_comments_failed += failed

        if plan.skipped:
            logger.warning("%d comment(s) could not be anchored to a diff position", len(plan.skipped))
            bodies = [format_skipped_comment(file, items) for file, items in plan.skipped_by_file().items()]
            posted, failed = self._post_comments(bodies, "skipped-line report")
            outcome.skipped_reports_posted += posted
            outcome.skipped_reports_failed += failed

        summary = format_final_summary(files_reviewed, total_findings, outcome)
        try:
            self._post_top_level(summary)
            outcome.summary_posted = True
        except _DELIVERY_ERRORS as e:
            logger.error("Final summary could not be posted: %s", _describe(e))

        return outcome

    # ------------------------------------------------------------------ #
    # Stage 1: line comments                                               #
    # ------------------------------------------------------------------ #

    def _submit_line_comments(self, comments: Sequence[LineComment], outcome: DeliveryOutcome) -> None:
        batches = [comments[i : i + self.batch_size] for i in range(0, len(comments), self.batch_size)]
        logger.debug("Submitting %d line comment(s) in %d batch(es)", len(comments), len(batches))

        for number, batch in enumerate(batches, 1):
            try:
                submit_review_comments(self.pr, self.commit, [c.as_api_dict() for c in batch])
                outcome.line_comments_posted += len(batch)
                logger.debug("Batch %d posted (%d comment(s))", number, len(batch))
            except GithubException as e:
                if e.status == 422:
                    # At least one position in the batch is stale or invalid.
                    # Post one by one so the valid ones still land.
                    logger.warning("Batch %d rejected (422), retrying comments individually", number)
                    self._submit_individually(batch, outcome)
                else:
                    logger.warning("Batch %d failed: %s", number, _describe(e))
                    outcome.line_comments_failed += len(batch)
            except requests.RequestException as e:
                logger.warning("Batch %d failed: %s", number, _describe(e))
                outcome.line_comments_failed += len(batch)

            if number < len(batches):
                self._sleep(self.batch_delay)

        console.print(
            f"  Line comments: {outcome.line_comments_posted} posted, {outcome.line_comments_failed} failed."
        )

    def _submit_individually(self, batch: Sequence[LineComment], outcome: DeliveryOutcome) -> None:
        for i, comment in enumerate(batch):
            if i:
                self._sleep(self.item_delay)
            try:
                submit_review_comments(self.pr, self.commit, [comment.as_api_dict()])
                outcome.line_comments_posted += 1
                logger.debug("Posted %s (position %d)", comment.path, comment.position)
            except _DELIVERY_ERRORS as e:
                logger.warning("Comment on %s (position %d) failed: %s", comment.path, comment.position, _describe(e))
                if self.file_comment_fallback and self._rescue(comment):
                    outcome.line_comments_rescued += 1
                else:
                    outcome.line_comments_failed += 1

    def _rescue(self, comment: LineComment) -> bool:
        """Repost a rejected inline comment as a file comment so the finding still shows."""
        try:
            self._post_top_level(format_line_fallback_comment(comment))
        except _DELIVERY_ERRORS as e:
            logger.warning("File comment fallback for %s failed: %s", comment.path, _describe(e))
            return False
        logger.debug("Posted %s line %s as a file comment", comment.path, comment.line)
        return True

    # ------------------------------------------------------------------ #
    # Stages 2 to 4: top-level comments                                    #
    # ------------------------------------------------------------------ #

    def _post_top_level(self, body: str) -> None:
        if self._top_level_sent:
            self._sleep(self.comment_delay)
        self._top_level_sent += 1
        post_issue_comment(self.pr, body)

    def _post_comments(self, bodies: Sequence[str], kind: str) -> tuple[int, int]:
        posted = failed = 0
        for body in bodies:
            try:
                self._post_top_level(body)
                posted += 1
            except _DELIVERY_ERRORS as e:
                failed += 1
                logger.warning("Could not post %s: %s", kind, _describe(e))
        console.print(f"  {kind.capitalize()}s: {posted} posted, {failed} failed.")
        return posted, failed
