from __future__ import annotations

import secrets
import string

STATE_ALPHABET = string.ascii_uppercase + string.digits


def generate_state(length: int = 16) -> str:
    """Return an unguessable CSRF state value drawn from ``STATE_ALPHABET``."""
    if length < 1:
        raise ValueError("State length must be a positive integer.")
    return "".join(secrets.choice(STATE_ALPHABET) for _ in range(length))
