"""
Cookie Policy Routes

Read-only views of the active policy for the banner, and the script gate
endpoint that tells the page which scripts a category may load.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cookie_consent.database import get_db
from cookie_consent.dependencies import get_script_service
from cookie_consent.exceptions import PolicyNotFoundError
from cookie_consent.schemas.policy import CategoryListResponse, PolicyResponse, ScriptsResponse
from cookie_consent.services import policy_service
from cookie_consent.services.script_service import ScriptInjectionService

router = APIRouter(tags=["Cookie Policy"])


@router.get("/policy", response_model=PolicyResponse)
async def get_policy(db: AsyncSession = Depends(get_db)) -> PolicyResponse:
    policy = await policy_service.get_active_policy(db)
    if not policy:
        raise PolicyNotFoundError()
    return policy_service.build_policy_response(policy)


@router.get("/categories", response_model=CategoryListResponse)
async def get_categories(db: AsyncSession = Depends(get_db)) -> CategoryListResponse:
    policy = await policy_service.get_active_policy(db)
    if not policy:
        raise PolicyNotFoundError()
    return CategoryListResponse(
        categories=[
            policy_service.build_category_response(category, include_cookies=False) for category in policy.categories
        ]
    )


@router.get("/scripts/{category}", response_model=ScriptsResponse)
async def get_scripts(
    category: str,
    script_service: ScriptInjectionService = Depends(get_script_service),
) -> ScriptsResponse:
    policy = await script_service.consent_manager.get_active_policy()
    if not policy:
        raise PolicyNotFoundError()

    cookie_category = policy_service.find_category(policy, category)
    return ScriptsResponse(
        category=category,
        scripts=[script.to_dict() for script in script_service.scripts_for(cookie_category)],
        should_inject=script_service.should_inject(category),
    )
