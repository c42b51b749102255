"""
Cookie Policy Service

Lookup, activation and import/export of versioned cookie policies. The
active policy is always read from the database; nothing here caches it.
Activation runs as a single "deactivate all, activate one" transaction and
the partial unique index on is_active rejects any interleaving that would
leave two active rows.
"""

import logging

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cookie_consent.exceptions import (
    ActivePolicyDeletionError,
    CategoryNotFoundError,
    DatabaseError,
    DuplicateResourceError,
    PolicyNotFoundError,
    ValidationError,
)
from cookie_consent.models.policy import Cookie, CookieCategory, CookiePolicy, ThirdPartyService
from cookie_consent.schemas.policy import (
    CategoryResponse,
    CookieInfo,
    PolicyBody,
    PolicyDocument,
    PolicyResponse,
    ThirdPartyServiceResponse,
)
from cookie_consent.services import preset_service

logger = logging.getLogger(__name__)


# ── Lookup ────────────────────────────────────────────────────────────────────


async def get_active_policy(db: AsyncSession) -> CookiePolicy | None:
    result = await db.execute(select(CookiePolicy).where(CookiePolicy.is_active.is_(True)))
    return result.scalars().first()


async def get_policy_by_version(db: AsyncSession, version: str) -> CookiePolicy | None:
    result = await db.execute(select(CookiePolicy).where(CookiePolicy.version == version))
    return result.scalars().first()


async def list_policies(db: AsyncSession) -> list[CookiePolicy]:
    result = await db.execute(select(CookiePolicy).order_by(CookiePolicy.created_at, CookiePolicy.id))
    return list(result.scalars().all())


async def count_active_policies(db: AsyncSession) -> int:
    result = await db.execute(
        select(func.count()).select_from(CookiePolicy).where(CookiePolicy.is_active.is_(True))
    )
    return result.scalar_one()


# ── Mutation ──────────────────────────────────────────────────────────────────


async def save_policy(db: AsyncSession, policy: CookiePolicy) -> CookiePolicy:
    """Persist a new or modified policy. New policies are never activated here."""
    if policy.id is None:
        existing = await get_policy_by_version(db, policy.version)
        if existing:
            raise DuplicateResourceError("Cookie policy", "version", policy.version)
        policy.is_active = False

    try:
        db.add(policy)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to save cookie policy {policy.version}: {e}")
        raise DatabaseError("Failed to save cookie policy", operation="save_policy") from e

    await db.refresh(policy)
    return policy


async def activate_policy(db: AsyncSession, version: str) -> CookiePolicy:
    """
    Make `version` the only active policy.

    Both updates commit together; concurrent readers see either the old
    active policy or the new one, never zero or two.
    """
    policy = await get_policy_by_version(db, version)
    if not policy:
        raise PolicyNotFoundError(version)

    try:
        await db.execute(update(CookiePolicy).values(is_active=False))
        await db.execute(update(CookiePolicy).where(CookiePolicy.version == version).values(is_active=True))
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to activate cookie policy {version}: {e}")
        raise DatabaseError("Failed to activate cookie policy", operation="activate_policy") from e

    await db.refresh(policy)
    logger.info("Cookie policy %s activated", version)
    return policy


async def deactivate_policy(db: AsyncSession, version: str) -> CookiePolicy:
    policy = await get_policy_by_version(db, version)
    if not policy:
        raise PolicyNotFoundError(version)

    policy.is_active = False
    await db.commit()
    await db.refresh(policy)
    logger.info("Cookie policy %s deactivated", version)
    return policy


async def delete_policy(db: AsyncSession, version: str) -> None:
    """Delete an inactive policy together with its categories, cookies and services."""
    policy = await get_policy_by_version(db, version)
    if not policy:
        raise PolicyNotFoundError(version)
    if policy.is_active:
        raise ActivePolicyDeletionError(version)

    await db.delete(policy)
    await db.commit()
    logger.info("Cookie policy %s deleted", version)


# ── Third-party services ──────────────────────────────────────────────────────


async def add_third_party_service(
    db: AsyncSession,
    policy: CookiePolicy,
    identifier: str,
    name: str,
    category: str,
    description: str = "",
    privacy_policy_url: str = "",
    config_key: str = "",
    config_value: str = "",
    preset_type: str | None = None,
    enabled: bool = True,
) -> ThirdPartyService:
    """
    Attach a third-party service to a policy.

    When preset_type names a known preset, the preset's cookies are added to
    the service's category (cookies already listed there are kept as is).
    """
    if any(service.identifier == identifier for service in policy.third_party_services):
        raise DuplicateResourceError("Third-party service", "identifier", identifier)

    service = ThirdPartyService(
        identifier=identifier,
        name=name,
        category=category,
        description=description,
        privacy_policy_url=privacy_policy_url,
        config_key=config_key,
        config_value=config_value,
        preset_type=preset_type,
        enabled=enabled,
    )
    policy.third_party_services.append(service)

    if preset_type:
        apply_preset_cookies(policy, service)

    await db.commit()
    await db.refresh(service)
    return service


def apply_preset_cookies(policy: CookiePolicy, service: ThirdPartyService) -> list[Cookie]:
    """Create the cookies declared by the service's preset. Returns the new cookies."""
    preset = preset_service.get_preset(service.preset_type)
    if not preset:
        logger.warning(
            "Preset not found for third-party service",
            extra={"service": service.identifier, "preset_type": service.preset_type},
        )
        return []

    category = policy.get_category(service.category)
    if not category:
        logger.warning(
            "Category not found for third-party service",
            extra={"service": service.identifier, "category_identifier": service.category},
        )
        return []

    existing_names = {cookie.name for cookie in category.cookies}
    created: list[Cookie] = []
    for cookie_data in preset["cookies"]:
        if cookie_data["name"] in existing_names:
            logger.info("Cookie %s already exists in %s, skipping", cookie_data["name"], category.identifier)
            continue

        cookie = Cookie(
            name=cookie_data["name"],
            purpose=cookie_data["purpose"],
            provider=preset["name"],
            expiry=cookie_data["expiry"],
            position=len(category.cookies),
        )
        category.cookies.append(cookie)
        existing_names.add(cookie.name)
        created.append(cookie)
        logger.info("Created cookie %s from preset %s", cookie.name, service.preset_type)

    return created


# ── Serialization ─────────────────────────────────────────────────────────────


def build_category_response(category: CookieCategory, include_cookies: bool = True) -> CategoryResponse:
    cookies = (
        [
            CookieInfo(name=cookie.name, purpose=cookie.purpose, provider=cookie.provider, expiry=cookie.expiry)
            for cookie in category.cookies
        ]
        if include_cookies
        else []
    )
    return CategoryResponse(
        id=category.identifier,
        name=category.name,
        description=category.description,
        required=category.required,
        default_enabled=category.default_enabled,
        cookies=cookies,
    )


def build_policy_response(policy: CookiePolicy) -> PolicyResponse:
    """The public policy document served to the banner. Disabled services are omitted."""
    return PolicyResponse(
        version=policy.version,
        last_updated=policy.last_updated.isoformat(),
        expiration_days=policy.expiration_days,
        cookie_prefix=policy.cookie_prefix,
        categories=[build_category_response(category) for category in policy.categories],
        third_party_services=[
            ThirdPartyServiceResponse(
                id=service.identifier,
                name=service.name,
                category=service.category,
                description=service.description,
                privacy_policy_url=service.privacy_policy_url,
            )
            for service in policy.third_party_services
            if service.enabled
        ],
    )


def export_policy(policy: CookiePolicy) -> dict:
    """Serialize a policy to the {"cookiePolicy": {...}} document read by import_policy."""
    categories = []
    for category in policy.categories:
        cookies = []
        for cookie in category.cookies:
            cookie_data = {
                "name": cookie.name,
                "purpose": cookie.purpose,
                "provider": cookie.provider,
                "expiry": cookie.expiry,
            }
            if cookie.has_script:
                script: dict = {}
                if cookie.script_src:
                    script["src"] = cookie.script_src
                    script["async"] = cookie.script_async
                if cookie.init_code:
                    script["initCode"] = cookie.init_code
                cookie_data["script"] = script
            cookies.append(cookie_data)

        categories.append(
            {
                "id": category.identifier,
                "name": category.name,
                "description": category.description,
                "required": category.required,
                "defaultEnabled": category.default_enabled,
                "cookies": cookies,
            }
        )

    services = [
        {
            "id": service.identifier,
            "name": service.name,
            "category": service.category,
            "description": service.description,
            "privacyPolicy": service.privacy_policy_url,
            "configKey": service.config_key,
            "configValue": service.config_value,
        }
        for service in policy.third_party_services
    ]

    return {
        "cookiePolicy": {
            "version": policy.version,
            "lastUpdated": policy.last_updated.isoformat(),
            "expirationDays": policy.expiration_days,
            "cookiePrefix": policy.cookie_prefix,
            "categories": categories,
            "thirdPartyServices": services,
        }
    }


def parse_policy_document(data: dict) -> PolicyBody:
    """Validate an import document; raises ValidationError on bad shape or duplicate identifiers."""
    try:
        document = PolicyDocument.model_validate(data)
    except PydanticValidationError as e:
        errors = [
            {"field": ".".join(str(loc) for loc in error["loc"]), "message": error["msg"]} for error in e.errors()
        ]
        raise ValidationError("Invalid cookie policy document", details={"validation_errors": errors}) from e

    body = document.cookie_policy
    category_ids = [category.id for category in body.categories]
    if len(category_ids) != len(set(category_ids)):
        raise ValidationError("Category identifiers must be unique within a policy", field="categories")

    service_ids = [service.id for service in body.third_party_services]
    if len(service_ids) != len(set(service_ids)):
        raise ValidationError("Service identifiers must be unique within a policy", field="thirdPartyServices")

    return body


def build_policy(body: PolicyBody) -> CookiePolicy:
    policy = CookiePolicy(
        version=body.version,
        last_updated=body.last_updated,
        expiration_days=body.expiration_days,
        cookie_prefix=body.cookie_prefix,
        is_active=False,
    )

    for position, category_data in enumerate(body.categories):
        category = CookieCategory(
            identifier=category_data.id,
            name=category_data.name,
            description=category_data.description,
            required=category_data.required,
            default_enabled=category_data.default_enabled,
            position=position,
        )
        for cookie_position, cookie_data in enumerate(category_data.cookies):
            cookie = Cookie(
                name=cookie_data.name,
                purpose=cookie_data.purpose,
                provider=cookie_data.provider,
                expiry=cookie_data.expiry,
                position=cookie_position,
                script_async=False,
            )
            if cookie_data.script:
                cookie.script_src = cookie_data.script.src
                cookie.script_async = cookie_data.script.script_async
                cookie.init_code = cookie_data.script.init_code
            category.cookies.append(cookie)
        policy.categories.append(category)

    for service_data in body.third_party_services:
        policy.third_party_services.append(
            ThirdPartyService(
                identifier=service_data.id,
                name=service_data.name,
                category=service_data.category,
                description=service_data.description,
                privacy_policy_url=service_data.privacy_policy,
                config_key=service_data.config_key,
                config_value=service_data.config_value,
                enabled=True,
            )
        )

    return policy


async def import_policy(
    db: AsyncSession,
    data: dict,
    force: bool = False,
    activate: bool = False,
) -> CookiePolicy:
    """
    Create a policy from an export document.

    An existing policy with the same version is only replaced with force;
    a replaced policy that was active stays active. With activate, all
    other policies are deactivated in the same transaction.
    """
    body = parse_policy_document(data)

    existing = await get_policy_by_version(db, body.version)
    if existing and not force:
        raise DuplicateResourceError("Cookie policy", "version", body.version)

    policy = build_policy(body)

    try:
        if existing:
            logger.warning("Replacing existing cookie policy %s", body.version)
            activate = activate or existing.is_active
            await db.delete(existing)
            await db.flush()

        if activate:
            await db.execute(update(CookiePolicy).values(is_active=False))
            policy.is_active = True

        db.add(policy)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to import cookie policy {body.version}: {e}")
        raise DatabaseError("Failed to import cookie policy", operation="import_policy") from e

    await db.refresh(policy)
    logger.info(
        "Cookie policy %s imported%s (%d categories, %d services)",
        policy.version,
        " and activated" if activate else "",
        len(policy.categories),
        len(policy.third_party_services),
    )
    return policy


def find_category(policy: CookiePolicy, identifier: str) -> CookieCategory:
    category = policy.get_category(identifier)
    if not category:
        raise CategoryNotFoundError(identifier)
    return category
