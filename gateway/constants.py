from __future__ import annotations

import logging
from pathlib import Path

LOGGER = logging.getLogger("gateway.oauth")
APP_VERSION = "0.1.0"
STATUS_MESSAGE = "authorization code gateway running"

DEFAULT_SCOPE = "user-top-read"
DEFAULT_STATE_LENGTH = 16
DEFAULT_PENDING_TTL_SECONDS = 600

ENV_FILE = Path(__file__).resolve().parent.parent / ".env"
