"""
Script injection gate.

Turns the scripts attached to a category's cookies into descriptors or
ready-to-emit <script> tags, but only when the current consent decision
allows that category. Holds no state of its own.
"""

from dataclasses import dataclass

from markupsafe import escape

from cookie_consent.models.policy import CookieCategory
from cookie_consent.services.consent_service import ConsentManager


@dataclass(frozen=True)
class ScriptDescriptor:
    type: str  # "external" or "inline"
    name: str
    src: str | None = None
    is_async: bool = False
    code: str | None = None

    def to_dict(self) -> dict:
        if self.type == "external":
            return {"type": self.type, "src": self.src, "async": self.is_async, "name": self.name}
        return {"type": self.type, "code": self.code, "name": self.name}


def collect_scripts(category: CookieCategory) -> list[ScriptDescriptor]:
    """All scripts of a category in cookie order, external before inline per cookie."""
    scripts: list[ScriptDescriptor] = []
    for cookie in category.cookies:
        if cookie.script_src:
            scripts.append(
                ScriptDescriptor(type="external", name=cookie.name, src=cookie.script_src, is_async=cookie.script_async)
            )
        if cookie.init_code:
            scripts.append(ScriptDescriptor(type="inline", name=cookie.name, code=cookie.init_code))
    return scripts


class ScriptInjectionService:
    def __init__(self, consent_manager: ConsentManager):
        self.consent_manager = consent_manager

    def should_inject(self, category_identifier: str) -> bool:
        return self.consent_manager.has_consent(category_identifier)

    def scripts_for(self, category: CookieCategory) -> list[ScriptDescriptor]:
        if not self.should_inject(category.identifier):
            return []
        return collect_scripts(category)

    def render_script_tags(self, category: CookieCategory) -> str:
        """
        HTML for the category's scripts, or '' without consent.

        Attribute values are escaped; inline code is administrator-authored
        and emitted as is.
        """
        identifier = escape(category.identifier)
        tags = []
        for script in self.scripts_for(category):
            if script.type == "external":
                async_attr = " async" if script.is_async else ""
                tags.append(f'<script src="{escape(script.src)}"{async_attr} data-consent-category="{identifier}"></script>\n')
            else:
                tags.append(f'<script data-consent-category="{identifier}">{script.code}</script>\n')
        return "".join(tags)
