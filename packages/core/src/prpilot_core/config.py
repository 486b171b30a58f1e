import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_COMMANDS = ["/apply-suggestions", "/create-pr-from-suggestions"]

DEFAULT_CONFIG: dict = {
    "model": "anthropic",
    "bot_username": "github-actions[bot]",
    "branch_prefix": "ai-suggested-changes",
    "commands": DEFAULT_COMMANDS,
    "max_chars_per_file": 60000,  # larger files are left out of the snapshot rather than truncated
    "exclude": [],  # fnmatch patterns or directory names to skip (e.g. "migrations/", "*.min.js")
    "suggestion_temperature": 0.2,
    "suggestion_max_tokens": 16384,
    "review_temperature": 0.7,
}


def load_config(config_path: str = ".prpilot.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .prpilot.yml in the current directory
      3. CLI argument overrides
    """
    config = {
        **DEFAULT_CONFIG,
        "commands": list(DEFAULT_CONFIG["commands"]),
        "exclude": list(DEFAULT_CONFIG["exclude"]),
    }

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
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")
    config["openai_api_key"] = os.environ.get("OPENAI_API_KEY")

    # The bot login is deployment-specific: an env var beats the file.
    bot_username = os.environ.get("GITHUB_BOT_USERNAME")
    if bot_username:
        config["bot_username"] = bot_username

    return config
