# gamestore/order_service.py
"""Order creation: one order, its line item and its payment in one transaction.

The session is passed in by the caller; this module never opens its own
connection.  Any failure rolls the whole unit back and is reported as one of
the errors in :mod:`gamestore.errors`.
"""
import logging
import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional

from sqlalchemy import insert, select
from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .errors import (
    ConstraintError,
    DuplicateIdentifierError,
    InvalidPaymentMethodError,
    OrderError,
    PriceVerificationError,
    TransactionError,
    ValidationError,
)
from .identifiers import ORDER_PREFIX, PAYMENT_PREFIX, id_ordering, next_identifier
from .models import (
    Order, OrderItem, OrderStatus, Payment, PaymentMethod, PaymentStatus, ProductPackage,
)
from .schemas import OrderCreate, OrderCreated, OrderSummary, PaymentDetails

logger = logging.getLogger(__name__)

# storefront token -> stored payment method
PAYMENT_METHODS = {
    "creditcard": PaymentMethod.CREDIT_CARD,
    "banktransfer": PaymentMethod.BANK_TRANSFER,
    "promptpay": PaymentMethod.PROMPTPAY,
    "truewallet": PaymentMethod.TRUE_WALLET,
}

PRICE_TOLERANCE = Decimal("0.01")
QUANTITY = 1


def map_payment_method(token: str) -> PaymentMethod:
    method = PAYMENT_METHODS.get(str(token).strip().lower())
    if method is None:
        raise InvalidPaymentMethodError(f"Invalid payment method: {token}")
    return method


def card_last_four(number: Optional[str]) -> Optional[str]:
    digits = re.sub(r"\D", "", number or "")
    return digits[-4:] or None


def payment_detail_columns(method: PaymentMethod, details: PaymentDetails) -> dict:
    """Keep only the customer detail that belongs to ``method``; the rest stay NULL."""
    columns = dict.fromkeys((
        "customer_bank_account",
        "customer_true_wallet_number",
        "customer_promptpay_number",
        "customer_card_number",
        "proof_path",
    ))
    if method is PaymentMethod.BANK_TRANSFER:
        columns["customer_bank_account"] = details.customer_bank_account_number
        columns["proof_path"] = details.payment_proof_path
    elif method is PaymentMethod.PROMPTPAY:
        columns["customer_promptpay_number"] = details.customer_promptpay_number
    elif method is PaymentMethod.TRUE_WALLET:
        # older storefront builds send the wallet number in the promptpay field
        columns["customer_true_wallet_number"] = (
            details.customer_true_wallet_number or details.customer_promptpay_number
        )
    elif method is PaymentMethod.CREDIT_CARD:
        columns["customer_card_number"] = card_last_four(details.customer_card_number)
    return columns


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_order_request(payload: OrderCreate, user_id) -> None:
    required = (
        ("productId", payload.product_id),
        ("packageId", payload.package_id),
        ("packagePrice", payload.package_price),
        ("userId", user_id),
        ("paymentMethod", payload.payment_method),
    )
    missing = [name for name, value in required if _is_blank(value)]
    if missing:
        raise ValidationError(f"Missing required order fields ({', '.join(missing)}).")


def parse_client_price(value) -> Optional[Decimal]:
    # storefront may send formatted strings such as "฿295.00"
    cleaned = re.sub(r"[^0-9.]", "", str(value))
    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return None


async def verify_price(session: AsyncSession, product_id: str, package_id: str) -> Decimal:
    try:
        res = await session.execute(
            select(ProductPackage.price).where(
                ProductPackage.id == package_id,
                ProductPackage.product_id == product_id,
            )
        )
        price = res.scalar_one_or_none()
    except SQLAlchemyError as exc:
        raise PriceVerificationError(f"Failed to verify package price: {exc}") from exc
    if price is None:
        raise PriceVerificationError(
            f"Failed to verify package price: Package ID {package_id} not found for Product ID {product_id}."
        )
    return Decimal(price)


def _warn_on_price_mismatch(order_id: str, client_price, verified: Decimal) -> None:
    parsed = parse_client_price(client_price)
    if parsed is None or abs(parsed - verified) > PRICE_TOLERANCE:
        logger.warning(
            "Price mismatch for order %s: client sent %r, catalog price %s",
            order_id, client_price, verified,
        )
    else:
        logger.info("Price verified for order %s: %s", order_id, verified)


async def _insert_one(session: AsyncSession, model, values: dict, what: str) -> None:
    res = await session.execute(insert(model.__table__).values(**values))
    if res.rowcount != 1:
        raise TransactionError(f"Failed to create {what}.")


async def _rollback(session: AsyncSession) -> None:
    try:
        await session.rollback()
        logger.info("Transaction rolled back")
    except Exception:
        # the original failure is what the caller gets
        logger.exception("Error during transaction rollback")


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    if getattr(orig, "sqlstate", None) == "23505" or getattr(orig, "pgcode", None) == "23505":
        return True
    text = str(orig).lower()
    return "unique constraint" in text or "duplicate key" in text


def translate_db_error(exc: Exception, order_id: Optional[str], payment_id: Optional[str]) -> OrderError:
    if isinstance(exc, IntegrityError):
        text = str(exc.orig)
        if _is_unique_violation(exc):
            if (order_id and order_id in text) or "orders.id" in text or "orders_pkey" in text:
                field = "Order ID"
            elif (payment_id and payment_id in text) or "payments.id" in text or "payments_pkey" in text:
                field = "Payment ID"
            else:
                field = "ID"
            return DuplicateIdentifierError(
                f"Failed to create order: Duplicate {field} detected. "
                "This might be due to concurrent requests. Please try again."
            )
        return ConstraintError(f"Failed to create order: {text}")
    if isinstance(exc, DataError):
        return ConstraintError(
            "Failed to create order: Data too long for a field. "
            f"Please check input lengths. Details: {exc.orig}"
        )
    return TransactionError(f"Failed to create order: {exc}")


async def create_order(session: AsyncSession, payload: OrderCreate, user_id) -> OrderCreated:
    """Record a one-package purchase for ``user_id`` and return the new ids."""
    validate_order_request(payload, user_id)

    order_id = payment_id = None
    try:
        if not session.in_transaction():
            await session.begin()
        logger.info("Transaction started for new order (user %s)", user_id)

        order_id = await next_identifier(session, ORDER_PREFIX, Order.id)
        payment_id = await next_identifier(session, PAYMENT_PREFIX, Payment.id)
        logger.info("Generated order id %s, payment id %s", order_id, payment_id)

        price = await verify_price(session, payload.product_id, payload.package_id)
        _warn_on_price_mismatch(order_id, payload.package_price, price)

        now = datetime.now(timezone.utc)
        await _insert_one(session, Order, {
            "id": order_id,
            "user_id": user_id,
            "game_uid": payload.game_uid or None,
            "game_server": payload.game_server or None,
            "purchase_date": now,
            "status": OrderStatus.IN_PROGRESS.value,
        }, "order record")

        await _insert_one(session, OrderItem, {
            "order_id": order_id,
            "product_id": payload.product_id,
            "package_id": payload.package_id,
            "quantity": QUANTITY,
            "price_per_item": price,
            "subtotal": price * QUANTITY,
        }, "order item")

        method = map_payment_method(payload.payment_method)
        await _insert_one(session, Payment, {
            "id": payment_id,
            "order_id": order_id,
            "method": method.value,
            "amount": price,
            "status": PaymentStatus.IN_PROGRESS.value,
            "payment_date": now,
            "transaction_id": None,  # filled in on settlement
            **payment_detail_columns(method, payload.payment_details),
        }, "payment record")

        await session.commit()
    except OrderError as exc:
        logger.error("Order creation failed: %s", exc.message)
        await _rollback(session)
        raise
    except Exception as exc:
        logger.exception("Error during order creation transaction")
        await _rollback(session)
        raise translate_db_error(exc, order_id, payment_id) from exc

    logger.info("Transaction committed for order %s", order_id)
    return OrderCreated(message="Order created successfully", order_id=order_id, payment_id=payment_id)


async def get_latest_order_id(session: AsyncSession, user_id) -> Optional[str]:
    if _is_blank(user_id):
        raise ValidationError("User ID is required to fetch the latest order.")
    res = await session.execute(
        select(Order.id)
        .where(Order.user_id == user_id)
        .order_by(Order.purchase_date.desc(), *id_ordering(Order.id, descending=True))
        .limit(1)
    )
    return res.scalar_one_or_none()


async def list_user_orders(session: AsyncSession, user_id) -> list:
    res = await session.execute(
        select(Order)
        .options(selectinload(Order.items), selectinload(Order.payment))
        .where(Order.user_id == user_id)
        .order_by(Order.purchase_date.desc(), *id_ordering(Order.id, descending=True))
    )
    out = []
    for o in res.scalars().all():
        item = o.items[0] if o.items else None
        out.append(OrderSummary(
            order_id=o.id,
            status=o.status,
            purchase_date=o.purchase_date,
            game_uid=o.game_uid,
            product_id=item.product_id if item else None,
            package_id=item.package_id if item else None,
            subtotal=str(item.subtotal) if item else None,
            payment_id=o.payment.id if o.payment else None,
            payment_method=o.payment.method if o.payment else None,
            payment_status=o.payment.status if o.payment else None,
        ))
    return out
