# =============================================================================
# app/routers/access.py - Feature Access Endpoints
# =============================================================================
# Lets clients ask the gate what the current user may see of a feature,
# and start the free trial.
# =============================================================================

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Path

from app.auth import AuthUser, get_current_user, get_current_user_optional
from core.models.access import AccessDecision
from core.services.access_service import FeatureAccessService
from core.services.trial_service import TrialService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{feature_key}", response_model=AccessDecision)
async def check_feature_access(
    feature_key: Annotated[str, Path(description="Feature key, e.g. suppliers_list")],
    user: Optional[AuthUser] = Depends(get_current_user_optional),
):
    """
    Get the access decision for a feature.

    Anonymous requests get the non-subscriber rule. Lookup failures
    answer "none" rather than an error.
    """
    user_id = str(user.id) if user else None
    return FeatureAccessService.check_access(user_id, feature_key)


@router.post("/trial/start")
async def start_trial(user: AuthUser = Depends(get_current_user)) -> dict:
    """
    Start the free trial for the current user.

    Only users that never had a trial are affected.
    """
    started = TrialService.auto_start_trial(user.id)
    return {"user_id": str(user.id), "started": started}
