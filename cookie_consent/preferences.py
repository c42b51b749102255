"""
Consent preferences value object and its cookie codec.

The stored form is a compact JSON object:

    {"categories": {"essential": true, "analytics": false},
     "version": "1.0.0",
     "timestamp": "2026-10-19T09:30:00+00:00"}

Decoding never raises: anything that cannot be read back is treated as
"no stored preference".
"""

import json
import logging
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr

logger = logging.getLogger(__name__)

# Browsers cap a single cookie (name + value + attributes) at roughly 4KB
MAX_ENCODED_BYTES = 4096


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConsentPreferences(BaseModel):
    """A user's per-category decision made under one policy version."""

    model_config = ConfigDict(frozen=True)

    categories: dict[str, StrictBool]
    version: StrictStr
    timestamp: datetime = Field(default_factory=_utcnow)

    def has_consent(self, identifier: str) -> bool:
        return self.categories.get(identifier) is True

    def accepted_categories(self) -> list[str]:
        return [identifier for identifier, consented in self.categories.items() if consented]

    def to_dict(self) -> dict:
        return {
            "categories": dict(self.categories),
            "version": self.version,
            "timestamp": self.timestamp.isoformat(),
        }


def encode(preferences: ConsentPreferences) -> str:
    """Serialize preferences to the JSON string stored in the consent cookie."""
    encoded = json.dumps(preferences.to_dict(), separators=(",", ":"), ensure_ascii=False)
    size = len(encoded.encode("utf-8"))
    if size > MAX_ENCODED_BYTES:
        logger.warning(
            "Encoded consent preferences are %d bytes (limit %d); browsers may drop the cookie",
            size,
            MAX_ENCODED_BYTES,
        )
    return encoded


def decode(raw: str | None) -> ConsentPreferences | None:
    """
    Parse a stored consent value.

    Returns None for empty, malformed or incomplete values so the caller
    falls back to the "no consent yet" state.
    """
    if not raw:
        return None

    try:
        data = json.loads(raw)
        return ConsentPreferences.model_validate(data)
    except (ValueError, RecursionError) as e:
        # JSONDecodeError and pydantic ValidationError are ValueErrors; deep nesting is a RecursionError
        logger.debug(f"Ignoring malformed consent preference: {e}")
        return None
