# gamestore/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from .auth import get_current_user
from .database import get_session
from .models import User
from .order_service import create_order, get_latest_order_id, list_user_orders
from .schemas import OrderCreate, OrderCreated, OrderSummary

router = APIRouter(prefix="/api/orders", tags=["orders"])


# ✅ Checkout: one package -> Order + OrderItem + Payment in a single transaction
@router.post("", response_model=OrderCreated, status_code=status.HTTP_201_CREATED)
async def place_order(
    payload: OrderCreate,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    # errors from the order service are rendered by the OrderError handler in main
    return await create_order(session, payload, current_user.id)


# 🧾 Most recent order of the current user
@router.get("/latest")
async def latest_order(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order_id = await get_latest_order_id(session, current_user.id)
    if order_id is None:
        raise HTTPException(status_code=404, detail="No orders found for this user.")
    return {"orderId": order_id}


# 🧾 Order history of the current user
@router.get("", response_model=List[OrderSummary])
async def my_orders(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return await list_user_orders(session, current_user.id)
