"""
Consent Audit Service

Append-only record of consent decisions for compliance, plus the read side
used by reporting. Writing is best-effort: a failed insert is logged and
rolled back, never raised to the consent action that triggered it.
"""

import ipaddress
import logging
from collections import Counter, defaultdict
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from cookie_consent.config import Settings, settings as default_settings
from cookie_consent.models.consent_log import ConsentLog

logger = logging.getLogger(__name__)


def anonymize_ip(ip_address: str | None) -> str | None:
    """
    Zero the last IPv4 octet or the last IPv6 group.

    Unparseable input yields None so a raw value is never stored.
    """
    if not ip_address:
        return None

    try:
        parsed = ipaddress.ip_address(ip_address)
    except ValueError:
        logger.debug("Not anonymizing unparseable IP address %r", ip_address)
        return None

    if parsed.version == 6:
        parts = ip_address.split(":")
        parts[-1] = "0"
        return ":".join(parts)

    parts = ip_address.split(".")
    parts[-1] = "0"
    return ".".join(parts)


async def record_consent(
    db: AsyncSession,
    session_id: str,
    policy_version: str,
    categories: dict[str, bool],
    user_id: int | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    settings: Settings | None = None,
) -> ConsentLog | None:
    """
    Append a consent decision to the audit log.

    IP address and user agent are kept, dropped or anonymized according to
    the consent_log_* settings. Returns the stored row, or None when the
    write failed.
    """
    settings = settings or default_settings

    if not settings.consent_log_ip_address:
        ip_address = None
    elif settings.consent_log_anonymize_ip:
        ip_address = anonymize_ip(ip_address)

    if not settings.consent_log_user_agent:
        user_agent = None
    elif user_agent:
        user_agent = user_agent[:500]

    try:
        entry = ConsentLog(
            session_id=session_id,
            policy_version=policy_version,
            preferences=dict(categories),
            user_id=user_id,
            ip_address=ip_address,
            user_agent=user_agent,
            created_at=datetime.now(timezone.utc),
        )
        db.add(entry)
        await db.commit()
        await db.refresh(entry)
    except Exception as e:
        logger.error(f"Failed to record consent for session {session_id}: {e}")
        try:
            await db.rollback()
        except Exception as rollback_error:
            logger.warning(f"Rollback after failed consent log also failed: {rollback_error}")
        return None

    logger.info(
        "Consent recorded: session=%s version=%s",
        session_id,
        policy_version,
    )
    return entry


async def get_logs_for_session(db: AsyncSession, session_id: str) -> list[ConsentLog]:
    """Return the session's consent records, newest first."""
    result = await db.execute(
        select(ConsentLog)
        .where(ConsentLog.session_id == session_id)
        .order_by(ConsentLog.created_at.desc(), ConsentLog.id.desc())
    )
    return list(result.scalars().all())


async def get_latest_log_for_session(db: AsyncSession, session_id: str) -> ConsentLog | None:
    logs = await get_logs_for_session(db, session_id)
    return logs[0] if logs else None


async def get_logs_for_user(db: AsyncSession, user_id: int) -> list[ConsentLog]:
    """Return the user's consent records, newest first."""
    result = await db.execute(
        select(ConsentLog)
        .where(ConsentLog.user_id == user_id)
        .order_by(ConsentLog.created_at.desc(), ConsentLog.id.desc())
    )
    return list(result.scalars().all())


async def get_consent_statistics(
    db: AsyncSession,
    date_from: datetime,
    date_to: datetime,
) -> dict:
    """
    Summarize decisions recorded between date_from and date_to (inclusive).

    Returns the total number of decisions, counts per policy version, and
    accepted/rejected counts per category.
    """
    result = await db.execute(
        select(ConsentLog).where(ConsentLog.created_at >= date_from, ConsentLog.created_at <= date_to)
    )
    logs = result.scalars().all()

    by_version: Counter[str] = Counter()
    categories: dict[str, dict[str, int]] = defaultdict(lambda: {"accepted": 0, "rejected": 0})
    for log in logs:
        by_version[log.policy_version] += 1
        for identifier, consented in (log.preferences or {}).items():
            categories[identifier]["accepted" if consented else "rejected"] += 1

    return {
        "total": len(logs),
        "by_version": dict(by_version),
        "categories": dict(categories),
    }


async def enforce_log_retention(db: AsyncSession, retention_days: int) -> int:
    """
    Delete consent records older than retention_days.

    Returns the count of deleted rows.
    """
    cutoff = datetime.now(timezone.utc) - timedelta(days=retention_days)
    result = await db.execute(delete(ConsentLog).where(ConsentLog.created_at < cutoff))
    await db.commit()
    deleted_count = result.rowcount
    logger.info(
        "consent_log_retention: deleted %d rows older than %s (%d days)",
        deleted_count,
        cutoff.isoformat(),
        retention_days,
    )
    return deleted_count
