from .consent_log import ConsentLog
from .policy import Cookie, CookieCategory, CookiePolicy, ThirdPartyService

__all__ = [
    "ConsentLog",
    "Cookie",
    "CookieCategory",
    "CookiePolicy",
    "ThirdPartyService",
]
