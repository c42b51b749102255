"""
Consent API Routes

Endpoints used by the consent banner and preferences dialog:
- Current consent status (including policy-version drift)
- Accept all / reject non-essential / save custom choices
- Revoke consent
- Per-category consent check

The decision itself travels in the consent cookie set on each response.
"""

import json
import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from cookie_consent.dependencies import get_consent_manager
from cookie_consent.exceptions import ConsentError, ValidationError
from cookie_consent.schemas.consent import CategoryCheckResponse, ConsentActionResponse
from cookie_consent.services.consent_service import ConsentManager

router = APIRouter(tags=["Consent"])

logger = logging.getLogger(__name__)


def _action_response(message: str) -> JSONResponse:
    return JSONResponse(ConsentActionResponse(success=True, message=message).model_dump())


def _failure_response(exc: ConsentError) -> JSONResponse:
    logger.warning(f"Consent action failed: {exc.message}")
    body = ConsentActionResponse(success=False, message=exc.message)
    return JSONResponse(body.model_dump(), status_code=exc.status_code)


async def _read_requested_categories(request: Request) -> dict[str, bool]:
    """Extract {"categories": {id: bool}} from the request body."""
    try:
        data = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as e:
        raise ValidationError("Invalid request: body must be JSON") from e

    if not isinstance(data, dict) or not isinstance(data.get("categories"), dict):
        raise ValidationError("Invalid request: categories object required", field="categories")

    categories = data["categories"]
    invalid = [identifier for identifier, value in categories.items() if not isinstance(value, bool)]
    if invalid:
        raise ValidationError(
            "Invalid request: category choices must be true or false",
            field="categories",
            details={"invalid_categories": invalid},
        )
    return categories


@router.get("/status")
async def get_status(consent_manager: ConsentManager = Depends(get_consent_manager)) -> dict:
    """
    Report whether the client has a stored decision.

    `needsUpdate` is present once a decision exists and is true when it was
    made under a different policy version than the active one.
    """
    return await consent_manager.get_status()


@router.post("/accept", response_model=ConsentActionResponse)
async def accept_all(consent_manager: ConsentManager = Depends(get_consent_manager)) -> JSONResponse:
    """Consent to every category of the active policy."""
    response = _action_response("All cookies accepted")
    try:
        await consent_manager.accept_all(response)
    except ConsentError as e:
        return _failure_response(e)
    return response


@router.post("/reject", response_model=ConsentActionResponse)
async def reject_non_essential(consent_manager: ConsentManager = Depends(get_consent_manager)) -> JSONResponse:
    """Keep only required categories."""
    response = _action_response("Non-essential cookies rejected")
    try:
        await consent_manager.reject_non_essential(response)
    except ConsentError as e:
        return _failure_response(e)
    return response


@router.post("/preferences", response_model=ConsentActionResponse)
async def save_preferences(
    request: Request,
    consent_manager: ConsentManager = Depends(get_consent_manager),
) -> JSONResponse:
    """Save per-category choices; required categories stay enabled."""
    response = _action_response("Preferences saved")
    try:
        categories = await _read_requested_categories(request)
        await consent_manager.update_preferences(categories, response)
    except ConsentError as e:
        return _failure_response(e)
    return response


@router.api_route("/revoke", methods=["POST", "DELETE"], response_model=ConsentActionResponse)
async def revoke_consent(consent_manager: ConsentManager = Depends(get_consent_manager)) -> JSONResponse:
    """Forget the stored decision; the banner will show again."""
    response = _action_response("Consent revoked")
    try:
        await consent_manager.revoke(response)
    except ConsentError as e:
        return _failure_response(e)
    return response


@router.get("/check/{category}", response_model=CategoryCheckResponse, status_code=status.HTTP_200_OK)
async def check_category(
    category: str,
    consent_manager: ConsentManager = Depends(get_consent_manager),
) -> CategoryCheckResponse:
    return CategoryCheckResponse(category=category, has_consent=consent_manager.has_consent(category))
