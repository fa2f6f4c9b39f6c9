"""Browsing-session identifiers."""

import secrets
import time

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def generate_session_id() -> str:
    """Generate a session id of the form ``session_<epoch-ms>_<base36 suffix>``."""
    timestamp = time.time_ns() // 1_000_000
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(13))
    return f"session_{timestamp}_{suffix}"
