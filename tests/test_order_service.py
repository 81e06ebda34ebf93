import asyncio
import re
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from gamestore.errors import (
    InvalidPaymentMethodError,
    PriceVerificationError,
    TransactionError,
    ValidationError,
)
from gamestore.models import Order, OrderItem, Payment
from gamestore.order_service import create_order, get_latest_order_id, list_user_orders
from gamestore.schemas import OrderCreate


def make_request(**overrides) -> OrderCreate:
    data = {
        "productId": "PRD001",
        "packageId": "PKG002",
        "packagePrice": "฿149.00",
        "gameUID": "800123456",
        "gameServer": "Asia",
        "paymentMethod": "promptpay",
        "paymentDetails": {"customerPromptpayNumber": "0812345678"},
    }
    data.update(overrides)
    return OrderCreate.model_validate(data)


async def count_rows(session_maker):
    async with session_maker() as s:
        counts = []
        for model in (Order, OrderItem, Payment):
            res = await s.execute(select(func.count()).select_from(model))
            counts.append(res.scalar_one())
        return tuple(counts)


@pytest.mark.asyncio
async def test_create_order_writes_order_item_and_payment(session, session_maker):
    result = await create_order(session, make_request(), user_id=1)

    assert result.message == "Order created successfully"
    async with session_maker() as s:
        order = await s.get(Order, result.order_id)
        payment = await s.get(Payment, result.payment_id)
        items = (await s.execute(select(OrderItem).where(OrderItem.order_id == result.order_id))).scalars().all()

    assert order.user_id == 1
    assert order.status == "In Progress"
    assert order.game_uid == "800123456"
    assert len(items) == 1
    assert items[0].quantity == 1
    assert payment.order_id == result.order_id
    assert payment.method == "Promptpay"
    assert payment.status == "In Progress"
    assert payment.transaction_id is None
    assert payment.customer_promptpay_number == "0812345678"


@pytest.mark.asyncio
async def test_stored_price_comes_from_catalog_not_client(session, session_maker):
    result = await create_order(session, make_request(packagePrice="1.00"), user_id=1)

    async with session_maker() as s:
        payment = await s.get(Payment, result.payment_id)
        item = (await s.execute(select(OrderItem).where(OrderItem.order_id == result.order_id))).scalar_one()

    assert item.price_per_item == Decimal("149.00")
    assert item.subtotal == Decimal("149.00")
    assert payment.amount == Decimal("149.00")


@pytest.mark.asyncio
async def test_identifiers_are_formatted_and_increasing(session_maker):
    order_numbers, payment_numbers = [], []
    for _ in range(3):
        async with session_maker() as s:
            result = await create_order(s, make_request(), user_id=1)
        assert re.match(r"^ORD\d+$", result.order_id)
        assert re.match(r"^PAY\d+$", result.payment_id)
        order_numbers.append(int(result.order_id[3:]))
        payment_numbers.append(int(result.payment_id[3:]))

    assert order_numbers == sorted(set(order_numbers))
    assert payment_numbers == sorted(set(payment_numbers))
    assert order_numbers[0] == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("product_id,package_id", [
    ("PRD001", "PKG999"),
    ("PRD001", "PKG004"),  # exists, but belongs to another product
])
async def test_unknown_package_fails_price_verification(session, session_maker, product_id, package_id):
    with pytest.raises(PriceVerificationError):
        await create_order(session, make_request(productId=product_id, packageId=package_id), user_id=1)

    assert await count_rows(session_maker) == (0, 0, 0)


@pytest.mark.asyncio
async def test_missing_payment_method_fails_before_any_database_call():
    session = AsyncMock(spec=AsyncSession)

    with pytest.raises(ValidationError) as exc_info:
        await create_order(session, make_request(paymentMethod=None), user_id=1)

    assert "paymentMethod" in exc_info.value.message
    session.begin.assert_not_called()
    session.execute.assert_not_awaited()
    session.commit.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize("overrides,user_id", [
    ({"productId": None}, 1),
    ({"packageId": ""}, 1),
    ({"packagePrice": "  "}, 1),
    ({}, None),
])
async def test_other_required_fields(overrides, user_id):
    session = AsyncMock(spec=AsyncSession)
    with pytest.raises(ValidationError):
        await create_order(session, make_request(**overrides), user_id=user_id)
    session.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_unknown_payment_method_rolls_back(session, session_maker):
    with pytest.raises(InvalidPaymentMethodError):
        await create_order(session, make_request(paymentMethod="bitcoin"), user_id=1)

    assert await count_rows(session_maker) == (0, 0, 0)


@pytest.mark.asyncio
async def test_payment_insert_failure_rolls_back_order_and_item(session, session_maker):
    real_execute = session.execute

    async def failing_execute(statement, *args, **kwargs):
        if getattr(statement, "table", None) is Payment.__table__:
            raise OperationalError("INSERT INTO payments", {}, Exception("disk I/O error"))
        return await real_execute(statement, *args, **kwargs)

    with patch.object(session, "execute", new=failing_execute):
        with pytest.raises(TransactionError):
            await create_order(session, make_request(), user_id=1)

    assert await count_rows(session_maker) == (0, 0, 0)

    # the numbers handed out inside the failed transaction are reused
    async with session_maker() as s:
        result = await create_order(s, make_request(), user_id=1)
    assert result.order_id == "ORD001"


@pytest.mark.asyncio
async def test_rollback_failure_keeps_original_error(session):
    with patch.object(session, "rollback", new=AsyncMock(side_effect=OperationalError("ROLLBACK", {}, Exception("gone")))):
        with pytest.raises(PriceVerificationError):
            await create_order(session, make_request(packageId="PKG999"), user_id=1)


@pytest.mark.asyncio
async def test_concurrent_orders_never_share_an_id(session_maker):
    # the first order seeds the counters
    async with session_maker() as s:
        await create_order(s, make_request(), user_id=1)

    async def place():
        async with session_maker() as s:
            return await create_order(s, make_request(), user_id=1)

    results = await asyncio.gather(*(place() for _ in range(5)))

    order_ids = [r.order_id for r in results]
    payment_ids = [r.payment_id for r in results]
    assert len(set(order_ids)) == 5
    assert len(set(payment_ids)) == 5
    assert await count_rows(session_maker) == (6, 6, 6)


@pytest.mark.asyncio
async def test_payment_details_are_filtered_by_method(session_maker):
    details = {
        "customerBankAccountNumber": "123-4-56789-0",
        "customerPromptpayNumber": "0812345678",
        "customerCardNumber": "4111 1111 1111 1234",
        "paymentProofPath": "/uploads/slips/slip.png",
    }
    async with session_maker() as s:
        bank = await create_order(s, make_request(paymentMethod="banktransfer", paymentDetails=details), user_id=1)
    async with session_maker() as s:
        card = await create_order(s, make_request(paymentMethod="creditcard", paymentDetails=details), user_id=1)
    async with session_maker() as s:
        wallet = await create_order(s, make_request(paymentMethod="truewallet", paymentDetails=details), user_id=1)

    async with session_maker() as s:
        bank_payment = await s.get(Payment, bank.payment_id)
        card_payment = await s.get(Payment, card.payment_id)
        wallet_payment = await s.get(Payment, wallet.payment_id)

    assert bank_payment.method == "Bank Transfer"
    assert bank_payment.customer_bank_account == "123-4-56789-0"
    assert bank_payment.proof_path == "/uploads/slips/slip.png"
    assert bank_payment.customer_promptpay_number is None
    assert bank_payment.customer_card_number is None

    assert card_payment.method == "Credit/Debit Card"
    assert card_payment.customer_card_number == "1234"
    assert card_payment.customer_bank_account is None
    assert card_payment.proof_path is None

    assert wallet_payment.method == "True Wallet"
    assert wallet_payment.customer_true_wallet_number == "0812345678"
    assert wallet_payment.customer_promptpay_number is None


@pytest.mark.asyncio
async def test_latest_order_and_history(session_maker):
    async with session_maker() as s:
        assert await get_latest_order_id(s, 1) is None

    for _ in range(2):
        async with session_maker() as s:
            last = await create_order(s, make_request(), user_id=1)

    async with session_maker() as s:
        assert await get_latest_order_id(s, 1) == last.order_id
        history = await list_user_orders(s, 1)

    assert [o.order_id for o in history] == [last.order_id, "ORD001"]
    assert history[0].payment_method == "Promptpay"
    assert Decimal(history[0].subtotal) == Decimal("149.00")


@pytest.mark.asyncio
async def test_latest_order_requires_user():
    with pytest.raises(ValidationError):
        await get_latest_order_id(AsyncMock(spec=AsyncSession), None)


@pytest.mark.asyncio
async def test_latest_order_compares_ids_by_number(session_maker):
    placed = datetime(2026, 1, 1, tzinfo=timezone.utc)
    async with session_maker() as s:
        for order_id in ("ORD999", "ORD1000"):
            s.add(Order(id=order_id, user_id=1, purchase_date=placed, status="In Progress"))
            s.add(OrderItem(
                order_id=order_id, product_id="PRD001", package_id="PKG001",
                quantity=1, price_per_item=Decimal("35.00"), subtotal=Decimal("35.00"),
            ))
        await s.commit()

    async with session_maker() as s:
        assert await get_latest_order_id(s, 1) == "ORD1000"
        history = await list_user_orders(s, 1)

    assert [o.order_id for o in history] == ["ORD1000", "ORD999"]
