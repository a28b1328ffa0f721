"""Configuration for crawler-novgo.

Every value can be overridden through the environment; CLI flags take
precedence over both.  A malformed numeric override falls back to the
default and is recorded in ``ENV_ERRORS`` so the CLI can refuse to run.
"""

import os

ENV_ERRORS: list[str] = []


def _env_number(name, default, cast):
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw)
    except ValueError:
        ENV_ERRORS.append(f"{name}={raw!r} is not a valid {cast.__name__}")
        return default


BASE_URL = os.environ.get("NOVGO_BASE_URL", "https://novgo.net")

HEADERS = {
    "user-agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/131.0.0.0 Safari/537.36"
    ),
    "accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "accept-language": "en-US,en;q=0.9",
}

DEFAULT_CONCURRENCY = _env_number("NOVGO_CONCURRENCY", 5, int)
MAX_RETRIES = _env_number("NOVGO_MAX_RETRIES", 3, int)
RETRY_DELAY = _env_number("NOVGO_RETRY_DELAY", 2.0, float)  # seconds between attempts
REQUEST_DELAY = _env_number("NOVGO_REQUEST_DELAY", 0.5, float)  # seconds after each chapter
REQUEST_TIMEOUT = _env_number("NOVGO_TIMEOUT", 30.0, float)

OUTPUT_DIR = os.environ.get("NOVGO_OUTPUT_DIR", "results")
OUTPUT_FORMATS = ("epub", "json")

LOG_LEVEL = os.environ.get("NOVGO_LOG_LEVEL", "")
