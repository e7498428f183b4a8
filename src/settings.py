"""Static configuration for linelens.

All user-editable settings (engine limits, issue precedence, extra language
profiles, logging) live in a single JSON file for quick edits without
touching Python.
"""

import json
import os

from dotenv import load_dotenv

from core.config import DEFAULT_MAX_LINE_LENGTH, DEFAULT_PATTERN_MARKERS

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# LINELENS_CONFIG points at an alternative config file (e.g. per project).
CONFIG_PATH = os.getenv("LINELENS_CONFIG") or os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema.

    A missing file means defaults everywhere; a malformed one is an error.
    """

    if not os.path.exists(CONFIG_PATH):
        return {}

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        loaded = json.load(handle)
    if not isinstance(loaded, dict):
        raise ValueError(f"Config root must be an object: {CONFIG_PATH}")
    return loaded


_CONFIG = _load_json_config()

# Segmentation limits. Lines at or above MAX_LINE_LENGTH are shown as plain
# text to bound the cost of minified input.
_engine = _CONFIG.get("engine", {})
MAX_LINE_LENGTH = int(_engine.get("max_line_length", DEFAULT_MAX_LINE_LENGTH))
DEFAULT_PROFILE = _engine.get("default_profile", "c-family")

# Substrings of an issue's detection reason that mark a pattern-based
# security hit; those win a line over any other issue.
_issues = _CONFIG.get("issues", {})
PATTERN_MARKERS = tuple(_issues.get("pattern_markers", DEFAULT_PATTERN_MARKERS))
SECRET_SCAN_ENABLED = bool(_issues.get("secret_scan", True))

# Extra language profiles, registered after the built-in ones.
PROFILES_CONFIG = _CONFIG.get("profiles", [])

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
