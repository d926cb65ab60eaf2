# =============================================================================
# app/routers/suppliers.py - Supplier Directory Endpoint
# =============================================================================
# Lists suppliers through the feature-access gate: suppliers outside the
# user's allowance are kept as locked teasers with their contact details
# replaced by placeholders.
# =============================================================================

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.auth import AuthUser, get_current_user_optional
from app.config import settings
from core.models.access import FeatureAccessLevel
from core.services.access_service import FeatureAccessService
from core.services.supplier_service import SupplierService
from lib.access import LOCKED_SUPPLIER_PLACEHOLDERS, lock_entities

logger = logging.getLogger(__name__)

router = APIRouter()


class SupplierListResponse(BaseModel):
    """Supplier directory page as seen by the current user."""
    suppliers: list[dict]
    total: int
    access: FeatureAccessLevel
    locked_count: int
    message: str | None = None


@router.get("", response_model=SupplierListResponse)
async def list_suppliers(
    user: Optional[AuthUser] = Depends(get_current_user_optional),
):
    """
    List visible suppliers with is_locked flags applied.

    Locked suppliers are listed after the unlocked ones.
    """
    user_id = str(user.id) if user else None
    decision = FeatureAccessService.check_access(user_id, settings.SUPPLIERS_FEATURE_KEY)

    suppliers = lock_entities(
        SupplierService.list_suppliers(),
        decision,
        LOCKED_SUPPLIER_PLACEHOLDERS,
    )
    locked_count = sum(1 for supplier in suppliers if supplier["is_locked"])

    return SupplierListResponse(
        suppliers=suppliers,
        total=len(suppliers),
        access=decision.access,
        locked_count=locked_count,
        message=decision.message if locked_count else None,
    )
