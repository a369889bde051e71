"""Markdown bodies for the comments posted back to the pull request."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from prcourier_core.models import SEVERITIES, DeliveryOutcome, Finding, LineComment, SkippedComment

_SEVERITY_ICON = {"error": "❌", "warning": "⚠️", "info": "ℹ️"}
_SEVERITY_LABEL = {"error": ("error", "errors"), "warning": ("warning", "warnings"), "info": ("info", "info")}


def _icon(severity: str) -> str:
    return _SEVERITY_ICON.get(severity, _SEVERITY_ICON["info"])


def format_issue_comment(finding: Finding) -> str:
    """Render one finding as an inline review comment body."""
    body = f"{_icon(finding.severity)} **{finding.message}**\n\n"
    if finding.suggestion:
        body += f"💡 Suggestion: {finding.suggestion}\n\n"
    if finding.code:
        body += f"Example:\n```\n{finding.code}\n```\n"
    return body


def severity_counts(findings: Iterable[Finding]) -> dict[str, int]:
    counts = {s: 0 for s in SEVERITIES}
    for finding in findings:
        counts[finding.severity if finding.severity in counts else "info"] += 1
    return counts


def _counts_text(counts: dict[str, int]) -> str:
    parts = []
    for severity in SEVERITIES:
        count = counts[severity]
        if count:
            singular, plural = _SEVERITY_LABEL[severity]
            parts.append(f"{_icon(severity)} {count} {singular if count == 1 else plural}")
    return ", ".join(parts)


def format_file_comment(file: str, findings: Sequence[Finding]) -> str:
    """Aggregate the line-less findings of one file into a single comment."""
    body = f"## 📄 {file} ({_counts_text(severity_counts(findings))})\n\n"
    for i, finding in enumerate(findings):
        body += f"{_icon(finding.severity)} **{finding.message}**\n\n"
        if finding.suggestion:
            body += f"💡 Suggestion: {finding.suggestion}\n\n"
        if finding.code:
            body += f"```\n{finding.code}\n```\n\n"
        if i < len(findings) - 1:
            body += "---\n\n"
    return body


def format_line_fallback_comment(comment: LineComment) -> str:
    """Wrap an inline comment GitHub rejected so it can be posted on the PR itself."""
    where = f" (line {comment.line})" if comment.line is not None else ""
    return f"## 📄 {comment.path}{where}\n\n{comment.body}"


def format_skipped_comment(file: str, skipped: Sequence[SkippedComment]) -> str:
    """List the findings of one file whose line could not be found in the diff."""
    lines = [f"- Line {item.line}: {item.finding.message}" for item in skipped]
    return (
        f"## ⚠️ {file}: could not locate exact line\n\n"
        "These comments could not be anchored to a position in the diff and are listed here instead:\n\n"
        + "\n".join(lines)
    )


def format_final_summary(files_reviewed: int, total_findings: int, outcome: DeliveryOutcome) -> str:
    lines = [
        "## 📊 Code review complete\n",
        "**Statistics**",
        f"- Files reviewed: {files_reviewed}",
        f"- Findings: {total_findings}",
        f"- Line comments: {outcome.line_comments_posted}",
        f"- File comments: {outcome.file_comments_posted}",
        f"- Skipped comments: {outcome.skipped}",
    ]
    if outcome.line_comments_rescued:
        lines.append(f"- Line comments posted as file comments: {outcome.line_comments_rescued}")
    if outcome.failed:
        failures = []
        if outcome.line_comments_failed:
            failures.append(f"{outcome.line_comments_failed} line comment(s)")
        if outcome.file_comments_failed:
            failures.append(f"{outcome.file_comments_failed} file comment(s)")
        if outcome.skipped_reports_failed:
            failures.append(f"{outcome.skipped_reports_failed} skipped-line report(s)")
        lines.append(f"- Failed to post: {', '.join(failures)}")
    lines.append("\n**See the comments above for details.**")
    return "\n".join(lines)
