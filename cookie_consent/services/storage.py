"""
Consent cookie storage.

Reads the consent cookie from the incoming request and writes or clears it
on the outgoing response. The cookie value is the URL-encoded JSON produced
by the preference codec.
"""

import logging
from urllib.parse import quote, unquote

from fastapi import Request, Response

from cookie_consent import preferences as codec
from cookie_consent.config import Settings, settings as default_settings
from cookie_consent.preferences import ConsentPreferences

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


class ConsentStorageHandler:
    """Cookie-backed persistence for a single client's ConsentPreferences."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or default_settings

    @property
    def cookie_name(self) -> str:
        return self.settings.consent_cookie_name

    def get_consent(self, request: Request) -> ConsentPreferences | None:
        raw = request.cookies.get(self.cookie_name)
        if not raw:
            return None
        return codec.decode(unquote(raw))

    def save_consent(self, preferences: ConsentPreferences, response: Response) -> None:
        response.set_cookie(
            key=self.cookie_name,
            value=quote(codec.encode(preferences), safe=""),
            max_age=self.settings.consent_cookie_lifetime * SECONDS_PER_DAY,
            path=self.settings.consent_cookie_path,
            domain=self.settings.consent_cookie_domain,
            secure=self.settings.consent_cookie_secure,
            httponly=self.settings.consent_cookie_http_only,
            samesite=self.settings.consent_cookie_same_site,
        )

    def clear_consent(self, response: Response) -> None:
        response.delete_cookie(
            key=self.cookie_name,
            path=self.settings.consent_cookie_path,
            domain=self.settings.consent_cookie_domain,
            secure=self.settings.consent_cookie_secure,
            httponly=self.settings.consent_cookie_http_only,
            samesite=self.settings.consent_cookie_same_site,
        )
