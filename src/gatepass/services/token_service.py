"""Registration token minting and scanned-payload parsing.

Tokens are the only thing a scanner ever sees, so check-in lookup is a
single equality query on ``registrations.token``. Uniqueness is backed by the
unique constraint on that column; the random suffix just keeps collisions
rare enough that the bounded retry in the registration service never runs
out in practice.
"""

import json
import logging
import secrets
import time
from typing import Optional

from gatepass.errors import RegistrationNotFoundError

logger = logging.getLogger(__name__)

PAYLOAD_VERSION = 1

# Keys under which older clients wrapped the token, most specific first
TOKEN_KEYS = (
    "token",
    "registrationId",
    "registration_id",
    "qrCode",
    "qr_code",
    "code",
    "id",
)

RANDOM_SUFFIX_BYTES = 5


def generate_token() -> str:
    """Mint a new registration token: hex millisecond timestamp + random hex"""
    millis = int(time.time() * 1000)
    return f"{millis:x}{secrets.token_hex(RANDOM_SUFFIX_BYTES)}"


def encode_payload(token: str) -> str:
    """Canonical scannable payload for a token"""
    return json.dumps({"v": PAYLOAD_VERSION, "token": token}, separators=(",", ":"))


def _token_from_json(raw: str) -> Optional[str]:
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, ValueError):
        return None

    if not isinstance(data, dict):
        return None

    for key in TOKEN_KEYS:
        value = data.get(key)
        # bool is an int subclass, never a token
        if isinstance(value, bool):
            continue
        if isinstance(value, (str, int)):
            value = str(value).strip()
            if value:
                return value
    return None


def parse_scanned_value(raw: Optional[str]) -> str:
    """
    Resolve whatever the scanner read into a registration token.

    Accepts the bare token, the canonical payload, or a JSON object exposing
    the token under any historically used key. Anything that is not such an
    object is taken verbatim.

    Raises:
        RegistrationNotFoundError: If the scanned value is empty
    """
    value = (raw or "").strip()
    if not value:
        raise RegistrationNotFoundError("Scanned code is empty")

    token = _token_from_json(value)
    if token is None:
        return value

    logger.debug("Resolved token from structured payload")
    return token
