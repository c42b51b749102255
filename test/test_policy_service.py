"""
Tests for the cookie policy service

Covers activation, deletion, import/export and preset handling against the
test database.
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from cookie_consent.exceptions import (
    ActivePolicyDeletionError,
    CategoryNotFoundError,
    DuplicateResourceError,
    PolicyNotFoundError,
    ValidationError,
)
from cookie_consent.models import Cookie, CookieCategory, CookiePolicy
from cookie_consent.services import policy_service, preset_service
from utils.mock_utils import make_policy, policy_document


async def active_versions(db) -> list[str]:
    result = await db.execute(select(CookiePolicy.version).where(CookiePolicy.is_active.is_(True)))
    return list(result.scalars().all())


class TestActivation:
    async def test_activating_leaves_exactly_one_active(self, test_db, policy_store):
        await policy_store("1.0.0", is_active=True)
        await policy_store("1.1.0", is_active=False)

        policy = await policy_service.activate_policy(test_db, "1.1.0")

        assert policy.is_active is True
        assert await active_versions(test_db) == ["1.1.0"]
        assert await policy_service.count_active_policies(test_db) == 1

    async def test_count_active_policies_without_active(self, test_db, policy_store):
        await policy_store("1.0.0", is_active=False)
        await policy_store("1.1.0", is_active=False)

        assert await policy_service.count_active_policies(test_db) == 0

    async def test_reactivating_active_policy(self, test_db, policy_store):
        await policy_store("1.0.0", is_active=True)

        await policy_service.activate_policy(test_db, "1.0.0")

        assert await active_versions(test_db) == ["1.0.0"]

    async def test_activate_unknown_version(self, test_db):
        with pytest.raises(PolicyNotFoundError):
            await policy_service.activate_policy(test_db, "9.9.9")

    async def test_second_active_row_rejected_by_store(self, test_db, policy_store):
        await policy_store("1.0.0", is_active=True)

        test_db.add(make_policy("1.1.0", is_active=True))
        with pytest.raises(IntegrityError):
            await test_db.commit()
        await test_db.rollback()

    async def test_deactivate(self, test_db, policy_store):
        await policy_store("1.0.0", is_active=True)

        await policy_service.deactivate_policy(test_db, "1.0.0")

        assert await policy_service.get_active_policy(test_db) is None


class TestLookup:
    async def test_get_active_policy_loads_categories_in_order(self, test_db, active_policy):
        policy = await policy_service.get_active_policy(test_db)

        assert policy.version == "1.0.0"
        assert [category.identifier for category in policy.categories] == ["essential", "analytics"]
        assert policy.get_category("analytics").cookies[0].name == "_ga"
        assert policy.get_category("missing") is None

    async def test_find_category_raises_for_unknown(self, test_db, active_policy):
        policy = await policy_service.get_active_policy(test_db)

        with pytest.raises(CategoryNotFoundError):
            policy_service.find_category(policy, "marketing")

    async def test_list_policies(self, test_db, policy_store):
        await policy_store("1.0.0")
        await policy_store("1.1.0")

        policies = await policy_service.list_policies(test_db)

        assert [policy.version for policy in policies] == ["1.0.0", "1.1.0"]


class TestSaveAndDelete:
    async def test_new_policy_is_saved_inactive(self, test_db):
        policy = await policy_service.save_policy(test_db, make_policy("1.0.0", is_active=True))

        assert policy.id is not None
        assert policy.is_active is False

    async def test_duplicate_version_rejected(self, test_db, policy_store):
        await policy_store("1.0.0")

        with pytest.raises(DuplicateResourceError):
            await policy_service.save_policy(test_db, make_policy("1.0.0"))

    async def test_delete_active_policy_rejected(self, test_db, active_policy):
        with pytest.raises(ActivePolicyDeletionError):
            await policy_service.delete_policy(test_db, "1.0.0")

        assert await policy_service.get_policy_by_version(test_db, "1.0.0") is not None

    async def test_delete_removes_categories_and_cookies(self, test_db, policy_store):
        await policy_store("1.0.0")

        await policy_service.delete_policy(test_db, "1.0.0")

        assert await policy_service.get_policy_by_version(test_db, "1.0.0") is None
        assert (await test_db.execute(select(func.count(CookieCategory.id)))).scalar() == 0
        assert (await test_db.execute(select(func.count(Cookie.id)))).scalar() == 0

    async def test_delete_unknown_policy(self, test_db):
        with pytest.raises(PolicyNotFoundError):
            await policy_service.delete_policy(test_db, "9.9.9")


class TestImportExport:
    async def test_import_then_export_reproduces_document(self, test_db):
        document = policy_document("2.0.0")

        policy = await policy_service.import_policy(test_db, document)

        assert policy.is_active is False
        assert policy_service.export_policy(policy) == document

    async def test_imported_scripts(self, test_db):
        policy = await policy_service.import_policy(test_db, policy_document())

        cookie = policy.get_category("analytics").cookies[0]
        assert cookie.script_src == "https://www.googletagmanager.com/gtag/js?id=G-TEST"
        assert cookie.script_async is True
        assert cookie.init_code == "gtag('config', 'G-TEST');"
        assert policy.get_category("essential").cookies[0].has_script is False

    async def test_import_existing_version_requires_force(self, test_db, policy_store):
        await policy_store("2.0.0")

        with pytest.raises(DuplicateResourceError):
            await policy_service.import_policy(test_db, policy_document("2.0.0"))

    async def test_force_import_replaces_policy(self, test_db, policy_store):
        await policy_store("2.0.0")
        document = policy_document("2.0.0")
        document["cookiePolicy"]["categories"][1]["name"] = "Statistics"

        policy = await policy_service.import_policy(test_db, document, force=True)

        assert policy.get_category("analytics").name == "Statistics"
        assert len(await policy_service.list_policies(test_db)) == 1

    async def test_force_replacing_active_policy_keeps_it_active(self, test_db, policy_store):
        await policy_store("2.0.0", is_active=True)

        policy = await policy_service.import_policy(test_db, policy_document("2.0.0"), force=True)

        assert policy.is_active is True
        assert await active_versions(test_db) == ["2.0.0"]

    async def test_import_and_activate(self, test_db, active_policy):
        await policy_service.import_policy(test_db, policy_document("2.0.0"), activate=True)

        assert await active_versions(test_db) == ["2.0.0"]

    async def test_invalid_document(self, test_db):
        document = policy_document()
        del document["cookiePolicy"]["version"]

        with pytest.raises(ValidationError) as exc_info:
            await policy_service.import_policy(test_db, document)

        fields = [error["field"] for error in exc_info.value.details["validation_errors"]]
        assert "cookiePolicy.version" in fields

    async def test_duplicate_category_identifiers(self, test_db):
        document = policy_document()
        categories = document["cookiePolicy"]["categories"]
        categories.append(dict(categories[0]))

        with pytest.raises(ValidationError):
            await policy_service.import_policy(test_db, document)


class TestPolicyResponse:
    async def test_disabled_services_are_hidden(self, test_db):
        policy = await policy_service.import_policy(test_db, policy_document())
        policy.third_party_services[0].enabled = False

        response = policy_service.build_policy_response(policy)

        assert response.third_party_services == []
        assert response.last_updated == "2026-10-01"

    async def test_category_without_cookies(self, test_db, active_policy):
        policy = await policy_service.get_active_policy(test_db)

        response = policy_service.build_category_response(policy.categories[0], include_cookies=False)

        assert response.id == "essential"
        assert response.required is True
        assert response.cookies == []


class TestPresets:
    def test_preset_identifiers(self):
        assert set(preset_service.get_preset_identifiers()) == {
            "google_analytics",
            "google_tag_manager",
            "facebook_pixel",
            "hotjar",
            "linkedin_insight",
        }

    def test_script_for_preset_fills_service_id(self):
        script = preset_service.get_script_for_preset("google_analytics", "G-12345")

        assert "G-12345" in script
        assert preset_service.SERVICE_ID_PLACEHOLDER not in script

    def test_unknown_preset(self):
        assert preset_service.get_preset("unknown") is None
        assert preset_service.get_cookies_for_preset("unknown") == []
        assert preset_service.get_script_for_preset("unknown", "X") == ""

    async def test_service_with_preset_adds_missing_cookies(self, test_db, active_policy):
        policy = await policy_service.get_active_policy(test_db)

        service = await policy_service.add_third_party_service(
            test_db,
            policy,
            identifier="ga",
            name="Google Analytics",
            category="analytics",
            config_key="measurement_id",
            config_value="G-12345",
            preset_type="google_analytics",
        )

        analytics = policy.get_category("analytics")
        assert service.id is not None
        assert [cookie.name for cookie in analytics.cookies] == ["_ga", "_gid", "_gat"]
        # existing cookie kept as authored
        assert analytics.cookies[0].provider == "Google"
        assert analytics.cookies[1].provider == "Google Analytics"

    async def test_service_with_unknown_category_adds_no_cookies(self, test_db, active_policy):
        policy = await policy_service.get_active_policy(test_db)

        await policy_service.add_third_party_service(
            test_db, policy, identifier="hj", name="Hotjar", category="marketing", preset_type="hotjar"
        )

        assert sum(len(category.cookies) for category in policy.categories) == 2

    async def test_duplicate_service_identifier(self, test_db, active_policy):
        policy = await policy_service.get_active_policy(test_db)
        await policy_service.add_third_party_service(test_db, policy, identifier="ga", name="GA", category="analytics")

        with pytest.raises(DuplicateResourceError):
            await policy_service.add_third_party_service(
                test_db, policy, identifier="ga", name="GA", category="analytics"
            )
