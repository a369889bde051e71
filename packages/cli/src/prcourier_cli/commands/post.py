"""post command: deliver review findings to a pull request."""

from __future__ import annotations

import click
from rich.console import Console

from prcourier_core.findings import FindingsError, load_findings
from prcourier_core.poster import PrerequisiteError, run_delivery

console = Console()


@click.command("post")
@click.option("--repo", required=True, help="GitHub repository in owner/name format.")
@click.option("--pr", "pr_number", type=int, required=True, help="Pull request number.")
@click.option(
    "--findings",
    "findings_path",
    required=True,
    type=click.Path(dir_okay=False),
    help="JSON file with the findings to post.",
)
@click.option(
    "--coordinate",
    type=click.Choice(["position", "line"]),
    default=None,
    help="How comments are anchored in the diff. Overrides config file.",
)
@click.option("--batch-size", type=int, default=None, help="Line comments per review request. Overrides config file.")
@click.option("--yes", "-y", is_flag=True, help="Skip the confirmation prompt.")
@click.option(
    "--dry-run",
    "-n",
    "dry_run",
    is_flag=True,
    help="Print the delivery plan without posting to GitHub.",
)
@click.pass_context
def post_cmd(
    ctx,
    repo: str,
    pr_number: int,
    findings_path: str,
    coordinate: str | None,
    batch_size: int | None,
    yes: bool,
    dry_run: bool,
):
    """Post review findings onto a GitHub pull request.

    Line findings become inline review comments anchored to the diff,
    findings without a line become one comment per file, and findings whose
    line is not in the diff are listed in a separate comment. A summary
    comment is always posted last.

    \b
    Required environment variables:
      GITHUB_TOKEN         GitHub personal access token (or use gh CLI)
    """
    config = dict(ctx.obj["config"])
    if coordinate is not None:
        config["coordinate"] = coordinate
    if batch_size is not None:
        config["batch_size"] = batch_size

    if not config.get("github_token"):
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )

    try:
        findings, reviewed_files = load_findings(findings_path)
    except FindingsError as e:
        raise click.ClickException(str(e))

    if not dry_run and not yes:
        if not click.confirm(f"Post {len(findings)} finding(s) to {repo}#{pr_number}?", default=False):
            return

    try:
        outcome = run_delivery(
            repo=repo,
            pr_number=pr_number,
            findings=findings,
            config=config,
            reviewed_files=reviewed_files,
            dry_run=dry_run,
        )
    except PrerequisiteError as e:
        raise click.ClickException(str(e))

    if outcome is not None:
        console.print(
            f"Line comments: {outcome.line_comments_posted} posted, {outcome.line_comments_failed} failed · "
            f"file comments: {outcome.file_comments_posted} posted, {outcome.file_comments_failed} failed · "
            f"skipped: {outcome.skipped}"
        )
