"""
Company Settings Endpoints

The company block printed on invoices. Everyone signed in can read it,
managers can change it.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException

from restaurantos.core.security import get_current_user, require_roles
from restaurantos.models import User, UserRole
from restaurantos.schemas import CompanySettings, ErrorResponse
from restaurantos.services.company_settings import CompanySettingsStore, SettingsValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/company-settings", tags=["Company Settings"])


@router.get("", response_model=CompanySettings)
async def get_company_settings(user: User = Depends(get_current_user)) -> CompanySettings:
    return await asyncio.to_thread(CompanySettingsStore.load)


@router.put("", response_model=CompanySettings, responses={400: {"model": ErrorResponse}})
async def save_company_settings(
    data: CompanySettings,
    user: User = Depends(require_roles(UserRole.MANAGER)),
) -> CompanySettings:
    try:
        saved = await asyncio.to_thread(CompanySettingsStore.save, data)
    except SettingsValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"🏢 Company settings updated by {user.email}")
    return saved
