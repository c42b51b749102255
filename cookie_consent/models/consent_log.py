"""
ConsentLog model for the consent audit trail.

Every accept / reject / save action writes one row. Rows are append-only:
nothing in the service updates or deletes them outside retention cleanup.
"""

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String

from cookie_consent.database import Base


class ConsentLog(Base):
    """A single consent decision as it was made."""

    __tablename__ = "consent_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=True)
    session_id = Column(String(255), nullable=False)
    policy_version = Column(String(20), nullable=False)
    # Snapshot of {category identifier: bool}
    preferences = Column(JSON, nullable=False, default=dict)
    # IPv6 addresses can be up to 39 chars; 45 allows for mapped IPv4 addresses
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("idx_consent_log_session", "session_id"),
        Index("idx_consent_log_user", "user_id"),
        Index("idx_consent_log_created_at", "created_at"),
    )
