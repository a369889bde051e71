"""GitHub token lookup for the CLI.

In CI the token is injected as GITHUB_TOKEN. Locally, anyone logged in with
the GitHub CLI already has a token stored by `gh auth login`, so we ask gh
for it before giving up.
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)


def _token_from_gh() -> str | None:
    try:
        result = subprocess.run(["gh", "auth", "token"], capture_output=True, text=True, timeout=5)
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def resolve_github_token() -> str | None:
    """Return GITHUB_TOKEN, else the gh CLI session token, else None."""
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        return token

    token = _token_from_gh()
    if token:
        logger.debug("Using GitHub token from the gh CLI session.")
    return token
