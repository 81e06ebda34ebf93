# gamestore/admin.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import String, cast, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .auth import require_admin
from .database import get_session
from .identifiers import CATEGORY_PREFIX, PACKAGE_PREFIX, PRODUCT_PREFIX, id_ordering, next_identifier
from .models import (
    Category, Order, OrderItem, OrderStatus, Payment, PaymentStatus,
    Product, ProductPackage, User, UserRole,
)
from .schemas import (
    CategoryCreate, CategoryOut, OrderLogOut, PackageCreate, PackageOut,
    PaymentLogOut, ProductCreate, ProductOut, StatusUpdate, UserOut,
)

logger = logging.getLogger(__name__)

# every route here is admin-only
router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin)])

ORDER_LOG_COLUMNS = {
    "orderId": Order.id,
    "customerId": User.id,
    "customerName": User.full_name,
    "gameUid": Order.game_uid,
    "productId": OrderItem.product_id,
    "productName": Product.name,
    "datePurchased": Order.purchase_date,
    "status": Order.status,
}
ORDER_LOG_SEARCH_ALL = ("orderId", "customerName", "gameUid", "productName", "status")

PAYMENT_LOG_COLUMNS = {
    "paymentId": Payment.id,
    "customerId": User.id,
    "customerName": User.full_name,
    "payment": Payment.method,
    "amount": Payment.amount,
    "paymentDate": Payment.payment_date,
    "status": Payment.status,
}
PAYMENT_LOG_SEARCH_ALL = ("paymentId", "customerName", "payment", "status")


def search_clause(columns: dict, search_all: tuple, field: str, term: Optional[str]):
    """LIKE filter for a log search, or None when nothing should be filtered.

    ``field == "all"`` matches the term against every column in ``search_all``;
    an unknown field name filters nothing.
    """
    if not term:
        return None
    pattern = f"%{term}%"
    if field == "all":
        return or_(*(cast(columns[name], String).ilike(pattern) for name in search_all))
    column = columns.get(field)
    if column is None:
        return None
    return cast(column, String).ilike(pattern)


# 🧾 Order logs
@router.get("/order-logs", response_model=List[OrderLogOut])
async def order_logs(
    term: Optional[str] = None,
    field: str = "all",
    session: AsyncSession = Depends(get_session),
):
    stmt = (
        select(
            Order.id, User.id, User.full_name, Order.game_uid,
            OrderItem.product_id, Product.name, Order.purchase_date, Order.status,
        )
        .join(User, Order.user_id == User.id)
        .join(OrderItem, OrderItem.order_id == Order.id)
        .join(Product, OrderItem.product_id == Product.id)
    )
    clause = search_clause(ORDER_LOG_COLUMNS, ORDER_LOG_SEARCH_ALL, field, term)
    if clause is not None:
        stmt = stmt.where(clause)

    result = await session.execute(stmt.order_by(*id_ordering(Order.id)))
    return [
        OrderLogOut(
            order_id=row[0], customer_id=row[1], customer_name=row[2], game_uid=row[3],
            product_id=row[4], product_name=row[5], date_purchased=row[6], status=row[7],
        )
        for row in result.all()
    ]


@router.put("/order-logs/{order_id}")
async def update_order_status(order_id: str, payload: StatusUpdate, session: AsyncSession = Depends(get_session)):
    if payload.status not in {s.value for s in OrderStatus}:
        raise HTTPException(status_code=400, detail=f"Invalid order status: {payload.status}")

    result = await session.execute(update(Order).where(Order.id == order_id).values(status=payload.status))
    if result.rowcount == 0:
        await session.rollback()
        raise HTTPException(status_code=404, detail=f"Order {order_id} not found")
    await session.commit()
    logger.info("Order %s status set to %s", order_id, payload.status)
    return {"message": f"Order log with ID {order_id} updated successfully."}


# 💳 Payment logs
@router.get("/payment-logs", response_model=List[PaymentLogOut])
async def payment_logs(
    term: Optional[str] = None,
    field: str = "all",
    session: AsyncSession = Depends(get_session),
):
    stmt = (
        select(
            Payment.id, User.id, User.full_name, Payment.method,
            Payment.amount, Payment.payment_date, Payment.status,
        )
        .join(Order, Payment.order_id == Order.id)
        .join(User, Order.user_id == User.id)
    )
    clause = search_clause(PAYMENT_LOG_COLUMNS, PAYMENT_LOG_SEARCH_ALL, field, term)
    if clause is not None:
        stmt = stmt.where(clause)

    result = await session.execute(stmt.order_by(*id_ordering(Payment.id)))
    return [
        PaymentLogOut(
            payment_id=row[0], customer_id=row[1], customer_name=row[2], payment=row[3],
            amount=str(row[4]), payment_date=row[5], status=row[6],
        )
        for row in result.all()
    ]


@router.put("/payment-logs/{payment_id}")
async def update_payment_status(payment_id: str, payload: StatusUpdate, session: AsyncSession = Depends(get_session)):
    if payload.status not in {s.value for s in PaymentStatus}:
        raise HTTPException(status_code=400, detail=f"Invalid payment status: {payload.status}")

    result = await session.execute(update(Payment).where(Payment.id == payment_id).values(status=payload.status))
    if result.rowcount == 0:
        await session.rollback()
        raise HTTPException(status_code=404, detail=f"Payment {payment_id} not found")
    await session.commit()
    logger.info("Payment %s status set to %s", payment_id, payload.status)
    return {"message": f"Payment log with ID {payment_id} updated successfully."}


# 👥 Customers
@router.get("/customers", response_model=List[UserOut])
async def list_customers(session: AsyncSession = Depends(get_session)):
    result = await session.execute(
        select(User).where(User.role == UserRole.CUSTOMER.value).order_by(User.id)
    )
    return result.scalars().all()


# 🗂️ Categories
@router.post("/categories", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
async def create_category(payload: CategoryCreate, session: AsyncSession = Depends(get_session)):
    category = Category(
        id=await next_identifier(session, CATEGORY_PREFIX, Category.id),
        name=payload.name,
    )
    session.add(category)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise HTTPException(status_code=400, detail=f"Category '{payload.name}' already exists")
    return category


@router.delete("/categories/{category_id}", status_code=204)
async def delete_category(category_id: str, session: AsyncSession = Depends(get_session)):
    category = await session.get(Category, category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    # products keep existing without a category
    await session.execute(update(Product).where(Product.category_id == category_id).values(category_id=None))
    await session.delete(category)
    await session.commit()
    return


# 🎮 Products
async def _check_category(session: AsyncSession, category_id: Optional[str]) -> None:
    if category_id and not await session.get(Category, category_id):
        raise HTTPException(status_code=400, detail=f"Category {category_id} does not exist")


async def _commit_product(session: AsyncSession, product: Product) -> None:
    try:
        await session.commit()
    except IntegrityError:
        # category removed between the check and the commit
        await session.rollback()
        raise HTTPException(status_code=400, detail=f"Category {product.category_id} does not exist")
    await session.refresh(product)


@router.post("/products", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
async def create_product(payload: ProductCreate, session: AsyncSession = Depends(get_session)):
    await _check_category(session, payload.category_id)
    product = Product(
        id=await next_identifier(session, PRODUCT_PREFIX, Product.id),
        sold_quantity=0,
        **payload.model_dump(),
    )
    session.add(product)
    await _commit_product(session, product)
    return product


@router.put("/products/{product_id}", response_model=ProductOut)
async def update_product(product_id: str, payload: ProductCreate, session: AsyncSession = Depends(get_session)):
    product = await session.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    await _check_category(session, payload.category_id)

    for name, value in payload.model_dump().items():
        setattr(product, name, value)
    await _commit_product(session, product)
    return product


@router.delete("/products/{product_id}", status_code=204)
async def delete_product(product_id: str, session: AsyncSession = Depends(get_session)):
    product = await session.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    await session.delete(product)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise HTTPException(status_code=400, detail="Product has orders and cannot be deleted")
    return


# 📦 Packages
@router.post("/products/{product_id}/packages", response_model=PackageOut, status_code=status.HTTP_201_CREATED)
async def create_package(product_id: str, payload: PackageCreate, session: AsyncSession = Depends(get_session)):
    if not await session.get(Product, product_id):
        raise HTTPException(status_code=404, detail="Product not found")

    package = ProductPackage(
        id=await next_identifier(session, PACKAGE_PREFIX, ProductPackage.id),
        product_id=product_id,
        **payload.model_dump(),
    )
    session.add(package)
    await session.commit()
    await session.refresh(package)
    return package


@router.put("/packages/{package_id}", response_model=PackageOut)
async def update_package(package_id: str, payload: PackageCreate, session: AsyncSession = Depends(get_session)):
    package = await session.get(ProductPackage, package_id)
    if not package:
        raise HTTPException(status_code=404, detail="Package not found")

    for name, value in payload.model_dump().items():
        setattr(package, name, value)
    await session.commit()
    await session.refresh(package)
    return package


@router.delete("/packages/{package_id}", status_code=204)
async def delete_package(package_id: str, session: AsyncSession = Depends(get_session)):
    package = await session.get(ProductPackage, package_id)
    if not package:
        raise HTTPException(status_code=404, detail="Package not found")

    await session.delete(package)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise HTTPException(status_code=400, detail="Package has orders and cannot be deleted")
    return
