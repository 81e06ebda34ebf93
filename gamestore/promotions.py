# gamestore/promotions.py
"""Admin management of discount codes.

Listing first flips Active discounts whose expiry has passed to Expired, so
the back office never shows a stale Active code.
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .admin import search_clause
from .auth import require_admin
from .database import get_session
from .identifiers import DISCOUNT_PREFIX, id_ordering, next_identifier
from .models import Discount, DiscountStatus, DiscountType
from .schemas import PromotionIn, PromotionOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/promotions", tags=["promotions"], dependencies=[Depends(require_admin)])

PROMOTION_COLUMNS = {
    "promoId": Discount.id,
    "code": Discount.code,
    "type": Discount.type,
    "value": Discount.value,
    "status": Discount.status,
    "maxUses": Discount.max_uses,
    "effectiveFrom": Discount.effective_from,
    "effectiveUntil": Discount.expires_at,
}
PROMOTION_SEARCH_ALL = ("code", "type", "value", "status")


def parse_discount_value(value) -> Tuple[DiscountType, Decimal]:
    text = str(value).strip()
    try:
        if text.endswith("%"):
            kind, amount = DiscountType.PERCENTAGE, Decimal(text[:-1].strip()) / 100
        else:
            kind, amount = DiscountType.FIXED, Decimal(text)
    except InvalidOperation:
        raise HTTPException(status_code=400, detail=f"Invalid discount value: {value}")
    if not amount.is_finite() or amount < 0:
        raise HTTPException(status_code=400, detail=f"Invalid discount value: {value}")
    if kind is DiscountType.PERCENTAGE and amount > 1:
        raise HTTPException(status_code=400, detail="A percentage discount cannot exceed 100%")
    return kind, amount


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _checked_status(value: Optional[str], default: str) -> str:
    if value is None:
        return default
    if value not in {s.value for s in DiscountStatus}:
        raise HTTPException(status_code=400, detail=f"Invalid promotion status: {value}")
    return value


def _promotion_values(payload: PromotionIn, default_status: str) -> dict:
    kind, amount = parse_discount_value(payload.value)
    starts, ends = _as_utc(payload.effective_from), _as_utc(payload.effective_until)
    if ends < starts:
        raise HTTPException(status_code=400, detail="effectiveUntil must not be before effectiveFrom")
    return {
        "code": payload.code,
        "type": kind.value,
        "value": amount,
        "max_uses": payload.max_uses,
        "status": _checked_status(payload.status, default_status),
        "effective_from": starts,
        "expires_at": ends,
    }


def promotion_out(discount: Discount) -> PromotionOut:
    return PromotionOut(
        promo_id=discount.id,
        code=discount.code,
        type=discount.type,
        value=float(discount.value),
        max_uses=discount.max_uses,
        status=discount.status,
        effective_from=discount.effective_from,
        effective_until=discount.expires_at,
    )


async def expire_promotions(session: AsyncSession) -> int:
    result = await session.execute(
        update(Discount)
        .where(
            Discount.status == DiscountStatus.ACTIVE.value,
            Discount.expires_at < datetime.now(timezone.utc),
        )
        .values(status=DiscountStatus.EXPIRED.value)
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    if result.rowcount:
        logger.info("Auto-expired %d promotions", result.rowcount)
    return result.rowcount


@router.get("", response_model=List[PromotionOut])
async def list_promotions(
    term: Optional[str] = None,
    field: str = "all",
    session: AsyncSession = Depends(get_session),
):
    try:
        await expire_promotions(session)
    except SQLAlchemyError:
        # listing still works, the codes just show their stored status
        logger.exception("Failed during promotion expiration check")
        await session.rollback()

    stmt = select(Discount)
    clause = search_clause(PROMOTION_COLUMNS, PROMOTION_SEARCH_ALL, field, term)
    if clause is not None:
        stmt = stmt.where(clause)
    result = await session.execute(stmt.order_by(*id_ordering(Discount.id)))
    return [promotion_out(d) for d in result.scalars().all()]


@router.post("", response_model=PromotionOut, status_code=status.HTTP_201_CREATED)
async def create_promotion(payload: PromotionIn, session: AsyncSession = Depends(get_session)):
    values = _promotion_values(payload, DiscountStatus.INACTIVE.value)
    discount = Discount(id=await next_identifier(session, DISCOUNT_PREFIX, Discount.id), **values)
    session.add(discount)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise HTTPException(status_code=400, detail=f"Promotion code '{payload.code}' already exists")
    await session.refresh(discount)
    logger.info("New promotion added with ID %s", discount.id)
    return promotion_out(discount)


@router.put("/{promo_id}")
async def update_promotion(promo_id: str, payload: PromotionIn, session: AsyncSession = Depends(get_session)):
    discount = await session.get(Discount, promo_id)
    if not discount:
        raise HTTPException(status_code=404, detail=f"Promotion {promo_id} not found")

    for name, value in _promotion_values(payload, discount.status).items():
        setattr(discount, name, value)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise HTTPException(status_code=400, detail=f"Promotion code '{payload.code}' already exists")
    return {"message": f"Promotion with ID {promo_id} updated successfully."}


@router.delete("/{promo_id}", status_code=204)
async def delete_promotion(promo_id: str, session: AsyncSession = Depends(get_session)):
    discount = await session.get(Discount, promo_id)
    if not discount:
        raise HTTPException(status_code=404, detail=f"Promotion {promo_id} not found")
    await session.delete(discount)
    await session.commit()
    return
