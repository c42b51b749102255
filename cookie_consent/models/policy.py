"""
Cookie policy models.

A policy owns its categories and third-party services; a category owns its
cookies. Ownership runs one way only (parent -> children, keyed by
identifier), so none of the child models carries a relationship back to its
parent.
"""

from datetime import date, datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship

from cookie_consent.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CookiePolicy(Base):
    __tablename__ = "consent_cookie_policies"

    id = Column(Integer, primary_key=True, index=True)
    version = Column(String(20), nullable=False, unique=True)
    last_updated = Column(Date, nullable=False, default=date.today)
    expiration_days = Column(Integer, nullable=False, default=365)
    cookie_prefix = Column(String(50), nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    categories = relationship(
        "CookieCategory",
        order_by="CookieCategory.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    third_party_services = relationship(
        "ThirdPartyService",
        order_by="ThirdPartyService.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    # At most one row may carry is_active = true
    __table_args__ = (
        Index(
            "uq_consent_policy_single_active",
            "is_active",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active"),
        ),
    )

    def get_category(self, identifier: str) -> "CookieCategory | None":
        for category in self.categories:
            if category.identifier == identifier:
                return category
        return None

    def __repr__(self) -> str:
        return f"<CookiePolicy version={self.version!r} active={self.is_active}>"


class CookieCategory(Base):
    __tablename__ = "consent_cookie_categories"

    id = Column(Integer, primary_key=True, index=True)
    policy_id = Column(
        Integer,
        ForeignKey("consent_cookie_policies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    identifier = Column(String(50), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False, default="")
    required = Column(Boolean, nullable=False, default=False)
    default_enabled = Column(Boolean, nullable=False, default=False)
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    cookies = relationship(
        "Cookie",
        order_by="Cookie.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (UniqueConstraint("policy_id", "identifier", name="uq_consent_category_policy_identifier"),)

    def __repr__(self) -> str:
        return f"<CookieCategory identifier={self.identifier!r} required={self.required}>"


class Cookie(Base):
    __tablename__ = "consent_cookies"

    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(
        Integer,
        ForeignKey("consent_cookie_categories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(100), nullable=False, index=True)
    purpose = Column(Text, nullable=False, default="")
    provider = Column(String(100), nullable=False, default="")
    expiry = Column(String(50), nullable=False, default="")
    script_src = Column(String(500), nullable=True)
    script_async = Column(Boolean, nullable=False, default=False)
    init_code = Column(Text, nullable=True)
    position = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    @property
    def has_script(self) -> bool:
        return bool(self.script_src or self.init_code)


class ThirdPartyService(Base):
    __tablename__ = "consent_third_party_services"

    id = Column(Integer, primary_key=True, index=True)
    policy_id = Column(
        Integer,
        ForeignKey("consent_cookie_policies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    identifier = Column(String(50), nullable=False)
    name = Column(String(100), nullable=False)
    # Identifier of the CookieCategory this service belongs to
    category = Column(String(50), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    privacy_policy_url = Column(String(500), nullable=False, default="")
    config_key = Column(String(100), nullable=False, default="")
    config_value = Column(String(255), nullable=False, default="")
    preset_type = Column(String(50), nullable=True)
    enabled = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (UniqueConstraint("policy_id", "identifier", name="uq_consent_service_policy_identifier"),)
