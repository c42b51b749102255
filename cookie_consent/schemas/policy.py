"""
Cookie policy schemas.

Two JSON shapes are described here: the public policy document served to the
banner (`PolicyResponse`) and the export/import document used by the admin
CLI (`PolicyDocument`). Both use camelCase field names on the wire.
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ── Public API ────────────────────────────────────────────────────────────────


class CookieInfo(CamelModel):
    name: str
    purpose: str
    provider: str
    expiry: str


class CategoryResponse(CamelModel):
    id: str
    name: str
    description: str
    required: bool
    default_enabled: bool = Field(alias="defaultEnabled")
    cookies: list[CookieInfo] = []


class ThirdPartyServiceResponse(CamelModel):
    id: str
    name: str
    category: str
    description: str
    privacy_policy_url: str = Field(alias="privacyPolicyUrl")


class PolicyResponse(CamelModel):
    version: str
    last_updated: str = Field(alias="lastUpdated")
    expiration_days: int = Field(alias="expirationDays")
    cookie_prefix: str = Field(alias="cookiePrefix")
    categories: list[CategoryResponse]
    third_party_services: list[ThirdPartyServiceResponse] = Field(alias="thirdPartyServices")


class CategoryListResponse(BaseModel):
    categories: list[CategoryResponse]


class ScriptsResponse(CamelModel):
    category: str
    scripts: list[dict]
    should_inject: bool = Field(alias="shouldInject")


# ── Export / import document ──────────────────────────────────────────────────


class ScriptDocument(CamelModel):
    src: str | None = None
    script_async: bool = Field(default=False, alias="async")
    init_code: str | None = Field(default=None, alias="initCode")


class CookieDocument(CamelModel):
    name: str
    purpose: str = ""
    provider: str = ""
    expiry: str = ""
    script: ScriptDocument | None = None


class CategoryDocument(CamelModel):
    id: str = Field(min_length=1, max_length=50)
    name: str
    description: str = ""
    required: bool = False
    default_enabled: bool = Field(default=False, alias="defaultEnabled")
    cookies: list[CookieDocument] = []


class ThirdPartyServiceDocument(CamelModel):
    id: str = Field(min_length=1, max_length=50)
    name: str
    category: str
    description: str = ""
    privacy_policy: str = Field(default="", alias="privacyPolicy")
    config_key: str = Field(default="", alias="configKey")
    config_value: str = Field(default="", alias="configValue")


class PolicyBody(CamelModel):
    version: str = Field(min_length=1, max_length=20)
    last_updated: date = Field(alias="lastUpdated")
    expiration_days: int = Field(default=365, alias="expirationDays", ge=1)
    cookie_prefix: str = Field(default="", alias="cookiePrefix")
    categories: list[CategoryDocument] = []
    third_party_services: list[ThirdPartyServiceDocument] = Field(default=[], alias="thirdPartyServices")


class PolicyDocument(CamelModel):
    cookie_policy: PolicyBody = Field(alias="cookiePolicy")
