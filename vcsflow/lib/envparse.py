"""
Parser for .vcsflow.env settings files.

KEY=value lines, read as data and never handed to a shell. Values that
look like shell expansion or command chaining are rejected so the same
file stays safe to `source` from scripts.

    # comments and blank lines are skipped
    export READY_MAX_POLLS=60        # optional `export`, trailing comment
    NEW_BRANCH_PREFIX="nb/publish"   # quotes are stripped
"""

import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)

# Shell syntax a settings value may not contain
UNSAFE_VALUE = re.compile(r"`|\$\(|\$\{|;|&&|\|")

LINE_PATTERN = re.compile(r"^(?:export\s+)?(?P<key>[^=\s]+)\s*=\s*(?P<value>.*)$")
KEY_PATTERN = re.compile(r"^[A-Z][A-Z0-9_]*$")
QUOTES = ('"', "'")


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] in QUOTES and value[-1] == value[0]:
        return value[1:-1]
    # unquoted values may carry a trailing " # comment"
    return value.split(" #", 1)[0].rstrip()


def parse_env(text: str) -> dict[str, str]:
    """
    Parse settings-file text into {KEY: value}.

    A key given twice keeps its last value.

    Raises:
        ValueError: naming the offending line on bad syntax, a bad key or an
            unsafe value
    """
    values: dict[str, str] = {}

    for lineno, raw in enumerate(text.splitlines(), 1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        match = LINE_PATTERN.match(line)
        if match is None:
            raise ValueError(f"Line {lineno}: Invalid syntax (expected KEY=value)")

        key = match["key"]
        if not KEY_PATTERN.match(key):
            raise ValueError(f"Line {lineno}: Invalid key '{key}'")

        value = _unquote(match["value"].strip())
        if UNSAFE_VALUE.search(value):
            raise ValueError(f"Line {lineno}: Forbidden pattern in value of {key}")

        if key in values:
            logger.warning(f"[CONFIG] Line {lineno}: {key} set again, keeping the later value")
        values[key] = value

    return values


def load_env(filepath: str) -> dict[str, str]:
    """
    Read and parse a settings file.

    Raises:
        FileNotFoundError: if the file doesn't exist
        ValueError: see parse_env
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {filepath}")
    return parse_env(path.read_text())
