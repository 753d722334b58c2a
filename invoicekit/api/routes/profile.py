"""
Business profile and account endpoints.
"""

from fastapi import APIRouter, Depends

from invoicekit.api.dependencies import get_current_user_id, get_purge, get_usr_store
from invoicekit.application.dto.requests import BusinessProfileRequest
from invoicekit.application.dto.responses import (
    BusinessProfileResponse,
    ErrorResponse,
    PurgeResponse,
)
from invoicekit.core.entities import BusinessProfile
from invoicekit.core.services import AccountPurgeService
from invoicekit.infrastructure.storage.sqlite import SQLiteUserStore

router = APIRouter(prefix="/api/profile", tags=["profile"])


def _entity_to_response(profile: BusinessProfile) -> BusinessProfileResponse:
    return BusinessProfileResponse(
        business_name=profile.business_name,
        email=profile.email,
        phone=profile.phone,
        address=profile.address,
        website=profile.website,
        logo_url=profile.logo_url,
        updated_at=profile.updated_at,
    )


@router.get("/business", response_model=BusinessProfileResponse)
async def get_business_profile(
    user_id: int = Depends(get_current_user_id),
    store: SQLiteUserStore = Depends(get_usr_store),
) -> BusinessProfileResponse:
    """Sender details; an empty profile when none has been saved."""
    profile = await store.get_profile(user_id) or BusinessProfile(user_id=user_id)
    return _entity_to_response(profile)


@router.put("/business", response_model=BusinessProfileResponse)
async def update_business_profile(
    request: BusinessProfileRequest,
    user_id: int = Depends(get_current_user_id),
    store: SQLiteUserStore = Depends(get_usr_store),
) -> BusinessProfileResponse:
    saved = await store.upsert_profile(
        BusinessProfile(user_id=user_id, **request.model_dump())
    )
    return _entity_to_response(saved)


@router.delete(
    "",
    response_model=PurgeResponse,
    responses={500: {"model": ErrorResponse}},
)
async def delete_account(
    user_id: int = Depends(get_current_user_id),
    purge: AccountPurgeService = Depends(get_purge),
) -> PurgeResponse:
    """Delete the account and every row it owns."""
    result = await purge.purge(user_id)
    return PurgeResponse(
        user_id=result.user_id,
        total_deleted=result.total_deleted,
        deleted=result.deleted,
        missing_tables=result.missing_tables,
    )
