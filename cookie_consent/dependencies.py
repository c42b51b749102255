from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from cookie_consent.database import get_db
from cookie_consent.services.consent_service import ConsentManager
from cookie_consent.services.script_service import ScriptInjectionService


async def get_consent_manager(request: Request, db: AsyncSession = Depends(get_db)) -> ConsentManager:
    # create_app stores the settings it was built with
    settings = getattr(request.app.state, "settings", None)
    return ConsentManager(db=db, request=request, settings=settings)


async def get_script_service(
    consent_manager: ConsentManager = Depends(get_consent_manager),
) -> ScriptInjectionService:
    return ScriptInjectionService(consent_manager)
