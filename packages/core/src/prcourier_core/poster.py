"""Top-level orchestration: fetch prerequisites, plan, deliver."""

from __future__ import annotations

import logging

import requests
from github import GithubException
from rich.console import Console
from rich.markup import escape

from prcourier_core.delivery import DeliveryPipeline
from prcourier_core.diff.positions import get_index_builder
from prcourier_core.gh.pull_request import get_diff_text, get_head_commit, get_pull, get_repo
from prcourier_core.models import CommentPlan, DeliveryOutcome, Finding
from prcourier_core.planner import plan_comments

console = Console()
logger = logging.getLogger(__name__)


class PrerequisiteError(RuntimeError):
    """The PR, its head commit or its diff could not be fetched; nothing was posted."""


def print_plan(plan: CommentPlan) -> None:
    """Print the delivery plan to the terminal without posting to GitHub."""
    _severity_color = {"error": "red", "warning": "yellow", "info": "blue"}
    if not plan.total:
        console.print("[yellow]Dry run: no findings to post.[/yellow]")
        return
    console.print(
        f"\n[bold]Dry run: {len(plan.line_comments)} line comment(s), "
        f"{len(plan.file_comments)} file comment(s), {len(plan.skipped)} skipped (not posted)[/bold]\n"
    )
    for c in plan.line_comments:
        console.print(f"[bold cyan]{escape(c.path)}[/bold cyan]  position [bold]{c.position}[/bold]")
        console.print(f"  {escape(c.body.strip())}")
    for file, findings in plan.file_comments.items():
        console.print(f"[bold cyan]{escape(file)}[/bold cyan]  [dim]file-level[/dim]")
        for f in findings:
            color = _severity_color.get(f.severity, "white")
            console.print(f"  [{color}]{f.severity.upper()}[/{color}] {escape(f.message)}")
    for s in plan.skipped:
        console.print(f"[bold cyan]{escape(s.file)}[/bold cyan]  line [bold]{s.line}[/bold]  [yellow]no diff position[/yellow]")
        console.print(f"  {escape(s.finding.message)}")


def run_delivery(
    repo: str,
    pr_number: int,
    findings: list[Finding],
    config: dict,
    reviewed_files: list[str] | None = None,
    dry_run: bool = False,
    repo_obj=None,
) -> DeliveryOutcome | None:
    """Post ``findings`` to a pull request and return the delivery outcome.

    Fetching the PR, its head commit and its diff are prerequisites for
    every stage; if any of them fails a PrerequisiteError is raised before
    anything is posted. After that, delivery is best effort and the
    outcome carries the failure counts. Returns None in dry-run mode.
    """
    build_index = get_index_builder(config.get("coordinate", "position"))

    try:
        this_repo = (
            repo_obj
            if repo_obj is not None
            else get_repo(repo, token=config["github_token"], base_url=config.get("github_base_url"))
        )
        this_pr = get_pull(this_repo, pr_number)
        commit = get_head_commit(this_repo, this_pr)
        diff_text = get_diff_text(this_pr)
    except (GithubException, requests.RequestException) as e:
        raise PrerequisiteError(f"Could not load PR #{pr_number} in {repo}: {e}") from e

    index = build_index(diff_text)
    logger.debug("Built coordinate index for %d file(s)", len(index))

    plan = plan_comments(findings, index, max_distance=config.get("max_line_distance", 3))
    files_reviewed = len(reviewed_files) if reviewed_files is not None else len({f.file for f in findings})
    console.print(
        f"Planned {len(plan.line_comments)} line comment(s), "
        f"{len(plan.file_comments)} file comment(s), {len(plan.skipped)} skipped."
    )

    if dry_run:
        print_plan(plan)
        return None

    pipeline = DeliveryPipeline(
        this_pr,
        commit,
        batch_size=config.get("batch_size", 10),
        batch_delay=config.get("batch_delay", 1.5),
        item_delay=config.get("item_delay", 0.5),
        comment_delay=config.get("comment_delay", 1.0),
        file_comment_fallback=config.get("file_comment_fallback", False),
    )
    outcome = pipeline.deliver(plan, files_reviewed=files_reviewed, total_findings=len(findings))

    if outcome.failed:
        console.print(f"[yellow]Delivery finished with {outcome.failed} failure(s).[/yellow]")
    else:
        console.print("[green]Delivery complete.[/green]")
    return outcome
