"""Operator endpoints for carts that were claimed but never emailed."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.deps import DBSession, verify_cron_secret
from app.core.security import mask_email
from app.models.abandoned_cart import CartStatus
from app.schemas.recovery import FailedCartResponse, ReleaseClaimResponse
from app.services.cart_repository import CartRepository

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(verify_cron_secret)])


@router.get("/carts/failed", response_model=list[FailedCartResponse])
async def list_failed_carts(
    db: DBSession,
    limit: int = Query(100, ge=1, le=500),
) -> list[FailedCartResponse]:
    """Carts whose recovery email failed after they were claimed."""
    carts = await CartRepository(db).list_failed(limit)
    return [
        FailedCartResponse(
            id=cart.id,
            email=mask_email(cart.email),
            status=cart.status,
            last_error=cart.last_error,
            email_sent_at=cart.email_sent_at,
        )
        for cart in carts
    ]


@router.post("/carts/{cart_id}/release", response_model=ReleaseClaimResponse)
async def release_cart_claim(cart_id: str, db: DBSession) -> ReleaseClaimResponse:
    """Re-arm a claimed cart so the next sweep may email it again."""
    repo = CartRepository(db)
    cart = await repo.get(cart_id)
    if not cart:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Cart not found")

    if not await repo.release_claim(cart_id):
        raise HTTPException(status.HTTP_409_CONFLICT, "Cart is not claimed or already recovered")

    return ReleaseClaimResponse(id=cart_id, status=CartStatus.RECOVERY_EMAIL_RELEASED.value)
