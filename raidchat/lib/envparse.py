"""
Safe parser for chat.env files.

Reads KEY=value lines without ever invoking a shell. Values containing
shell syntax (substitution, expansion, chaining, pipes) are rejected
outright, since chat.env files are often sourced by deployment scripts too.
"""

import re
from pathlib import Path

SHELL_SYNTAX = re.compile(
    r"`"          # backtick substitution
    r"|\$[({]"    # $(...) and ${...}
    r"|;|&&|\|"   # chaining and pipes
)

KEY_PATTERN = re.compile(r'^[A-Z][A-Z0-9_]*$')

QUOTES = ('"', "'")


def _parse_line(lineno: int, line: str) -> tuple[str, str]:
    key, sep, raw_value = line.partition('=')
    if not sep:
        raise ValueError(f"Line {lineno}: Invalid syntax (no '=')")

    key = key.strip()
    if not KEY_PATTERN.match(key):
        raise ValueError(f"Line {lineno}: Invalid key '{key}'")

    value = raw_value.strip()
    if len(value) >= 2 and value[0] in QUOTES and value[-1] == value[0]:
        value = value[1:-1]

    if SHELL_SYNTAX.search(value):
        raise ValueError(f"Line {lineno}: Forbidden pattern in value for {key}")
    return key, value


def parse_env(text: str) -> dict[str, str]:
    """
    Parse env-file text into {KEY: value}. Later lines win on duplicate keys.

    Raises:
        ValueError: naming the line for bad syntax, bad keys or shell syntax
    """
    env: dict[str, str] = {}
    for lineno, line in enumerate(text.splitlines(), 1):
        stripped = line.strip()
        if stripped and not stripped.startswith('#'):
            key, value = _parse_line(lineno, stripped)
            env[key] = value
    return env


def load_env(filepath: Path) -> dict[str, str]:
    """
    Read and parse an env file.

    Raises:
        FileNotFoundError: if filepath is missing
        ValueError: see parse_env
    """
    path = Path(filepath)
    if not path.is_file():
        raise FileNotFoundError(f"Env file not found: {filepath}")
    return parse_env(path.read_text())
