import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "batch_size": 10,  # line comments per review request
    "batch_delay": 1.5,  # seconds between review batches
    "item_delay": 0.5,  # seconds between single-comment fallback requests
    "comment_delay": 1.0,  # seconds between top-level comments
    "file_comment_fallback": False,  # repost inline comments GitHub rejects as file comments
    "max_line_distance": 3,  # how far a finding's line may drift from an added line
    "coordinate": "position",  # "position" (GitHub diff position) or "line" (new-file line number)
    "github_base_url": None,  # None = api.github.com; set for GitHub Enterprise
}


def load_config(config_path: str = ".prcourier.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .prcourier.yml in the current directory
      3. CLI argument overrides
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Resolve credentials from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")

    return config
