"""Settings router: company and billing profile."""

from fastapi import APIRouter, Depends

from app.auth.dependencies import get_current_user
from app.auth.schemas import CurrentUser
from app.core.config import BillingProfile, get_billing_profile

router = APIRouter(prefix="/api/v1/settings", tags=["settings"])


@router.get("/profile", response_model=BillingProfile)
async def get_profile(
    current_user: CurrentUser = Depends(get_current_user),
    profile: BillingProfile = Depends(get_billing_profile),
) -> BillingProfile:
    return profile
