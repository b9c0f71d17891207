import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from reviewthis_core.prompt import DEFAULT_POLICY
from reviewthis_core.utils.code import DEBUG_LOG_NAME

MODES = ("working", "branch")

DEFAULT_CONFIG: dict = {
    "mode": "working",
    "branch": "develop",
    "model": "codellama",
    "host": "http://localhost:11434",
    "temperature": 0.2,
    "modelfile": None,  # None = use built-in default policy; set to a path string to override
    "report_path": "review_results.json",
    "exclude": [],  # fnmatch patterns or directory names to skip (e.g. "migrations/", "*.min.js")
    "request_timeout": None,  # seconds; None waits for the server as long as it takes
    "debug": False,
    "debug_log_path": DEBUG_LOG_NAME,
}

# Matches the SYSTEM instruction of a modelfile in its three accepted shapes:
#   SYSTEM """            SYSTEM """text"""          SYSTEM text
#   text                                               (single line)
#   """
_SYSTEM_BLOCK_RE = re.compile(r'^SYSTEM[ \t]+"""(.*?)"""', re.MULTILINE | re.DOTALL)
_SYSTEM_LINE_RE = re.compile(r'^SYSTEM[ \t]+([^"\s].*)$', re.MULTILINE)


@dataclass(frozen=True)
class ReviewConfig:
    """Run configuration, built once at startup and passed to every component."""

    mode: str = "working"
    branch: str = "develop"
    model: str = "codellama"
    host: str = "http://localhost:11434"
    temperature: float = 0.2
    policy: str = DEFAULT_POLICY
    report_path: str = "review_results.json"
    exclude: tuple[str, ...] = field(default_factory=tuple)
    request_timeout: Optional[float] = None
    debug: bool = False
    debug_log_path: str = DEBUG_LOG_NAME


def load_config(config_path: str = ".review-this.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .review-this.yml in the current directory
      3. OLLAMA_HOST environment variable
      4. CLI argument overrides
    """
    config = {**DEFAULT_CONFIG, "exclude": list(DEFAULT_CONFIG["exclude"])}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    host = os.environ.get("OLLAMA_HOST")
    if host:
        config["host"] = host

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # "branch:<ref>" carries the ref inline.
    mode = str(config["mode"])
    if mode.startswith("branch:"):
        config["mode"], config["branch"] = "branch", mode.split(":", 1)[1]

    return config


def validate_config(config: dict) -> None:
    """Raise ValueError for settings the run cannot start with."""
    if config["mode"] not in MODES:
        raise ValueError(f"Invalid mode: {config['mode']!r}. Choose 'working' or 'branch'.")
    if config["mode"] == "branch" and not config.get("branch"):
        raise ValueError("Branch mode requires a branch to compare against.")

    temperature = config["temperature"]
    if isinstance(temperature, bool) or not isinstance(temperature, (int, float)):
        try:
            temperature = float(temperature)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid temperature: {config['temperature']!r}. Must be a number between 0 and 2.")
    if not 0 <= temperature <= 2:
        raise ValueError(f"Invalid temperature: {temperature}. Must be between 0 and 2.")
    config["temperature"] = float(temperature)


def build_config(config: dict) -> ReviewConfig:
    """Validate a merged config dict and freeze it, loading the review policy."""
    validate_config(config)
    return ReviewConfig(
        mode=config["mode"],
        branch=config["branch"],
        model=config["model"],
        host=str(config["host"]).rstrip("/"),
        temperature=config["temperature"],
        policy=load_policy(config.get("modelfile")),
        report_path=str(config["report_path"]),
        exclude=tuple(config.get("exclude") or ()),
        request_timeout=config.get("request_timeout"),
        debug=bool(config.get("debug", False)),
        debug_log_path=str(config.get("debug_log_path") or DEBUG_LOG_NAME),
    )


def parse_modelfile(text: str) -> str:
    """Extract the SYSTEM instruction text from a modelfile."""
    match = _SYSTEM_BLOCK_RE.search(text)
    if match is None:
        match = _SYSTEM_LINE_RE.search(text)
    policy = match.group(1).strip() if match else ""
    if not policy:
        raise ValueError("No SYSTEM instructions found in modelfile.")
    return policy


def load_policy(modelfile: Optional[str]) -> str:
    """
    Load the review policy.

    If ``modelfile`` is set, extracts the SYSTEM block from that path
    (relative to cwd). Otherwise falls back to the built-in default.
    """
    if not modelfile:
        return DEFAULT_POLICY

    p = Path(modelfile)
    if not p.exists():
        raise FileNotFoundError(f"Modelfile not found: {modelfile}")
    try:
        return parse_modelfile(p.read_text(encoding="utf-8"))
    except ValueError as e:
        raise ValueError(f"{e} ({modelfile})") from e
