from __future__ import annotations

from github import Github

from prcourier_core.diff.positions import assemble_diff_text


def get_repo(repo_name: str, token: str, base_url: str | None = None):
    if base_url:
        return Github(token, base_url=base_url).get_repo(repo_name)
    return Github(token).get_repo(repo_name)


def get_pull(repo, pr_number: int):
    return repo.get_pull(pr_number)


def get_head_commit(repo, pr):
    """Return the Commit object for the PR head, the anchor for every review comment."""
    return repo.get_commit(pr.head.sha)


def get_diff(pr):
    return pr.get_files()


def get_diff_text(pr) -> str:
    """Return the PR's changes as one multi-file unified diff."""
    return assemble_diff_text(get_diff(pr))


def submit_review_comments(pr, commit, comments: list[dict]):
    """Post one COMMENT review carrying ``comments`` (``path``/``position``/``body`` dicts)."""
    return pr.create_review(commit=commit, event="COMMENT", comments=comments)


def post_issue_comment(pr, body: str):
    return pr.create_issue_comment(body)
