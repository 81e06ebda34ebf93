from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gamestore.errors import DuplicateIdentifierError
from gamestore.identifiers import (
    CATEGORY_PREFIX, ORDER_PREFIX, PACKAGE_PREFIX, allocate_number, format_identifier, next_identifier,
)
from gamestore.models import Category, IdentifierCounter, Order, Product, ProductPackage
from gamestore.seed import seed_catalog


def test_format_identifier_pads_to_three_digits():
    assert format_identifier("ORD", 1) == "ORD001"
    assert format_identifier("PAY", 42) == "PAY042"
    assert format_identifier("ORD", 1234) == "ORD1234"


@pytest.mark.asyncio
async def test_first_allocation_continues_after_existing_rows(session):
    # the demo catalog already holds PKG001..PKG006
    assert await next_identifier(session, PACKAGE_PREFIX, ProductPackage.id) == "PKG007"
    assert await next_identifier(session, PACKAGE_PREFIX, ProductPackage.id) == "PKG008"
    await session.commit()

    counter = await session.get(IdentifierCounter, PACKAGE_PREFIX)
    assert counter.value == 8


@pytest.mark.asyncio
async def test_rolled_back_allocation_is_handed_out_again(session_maker):
    async with session_maker() as s:
        assert await allocate_number(s, CATEGORY_PREFIX, Category.id) == 3
        await s.commit()

    async with session_maker() as s:
        assert await allocate_number(s, CATEGORY_PREFIX, Category.id) == 4
        await s.rollback()

    async with session_maker() as s:
        assert await allocate_number(s, CATEGORY_PREFIX, Category.id) == 4


def result_of(value):
    res = MagicMock()
    res.scalar_one_or_none.return_value = value
    return res


@pytest.mark.asyncio
async def test_counter_seeded_concurrently_is_a_retryable_duplicate():
    session = AsyncMock(spec=AsyncSession)
    session.execute.side_effect = [
        result_of(None),  # no counter row yet
        result_of(41),    # highest ORD already stored
        IntegrityError(
            "INSERT INTO identifier_counters", {},
            Exception("UNIQUE constraint failed: identifier_counters.prefix"),
        ),
    ]

    with pytest.raises(DuplicateIdentifierError) as exc_info:
        await allocate_number(session, ORDER_PREFIX, Order.id)

    assert exc_info.value.retryable
    assert exc_info.value.status_code == 409
    assert session.execute.await_count == 3


@pytest.mark.asyncio
async def test_seeding_takes_ids_from_the_counters(engine):
    maker = async_sessionmaker(engine, expire_on_commit=False)
    async with maker() as s:
        s.add(Category(id=await next_identifier(s, CATEGORY_PREFIX, Category.id), name="Console"))
        await s.commit()

    for _ in range(2):
        async with maker() as s:
            await seed_catalog(s)

    async with maker() as s:
        assert (await s.get(Category, "CAT001")).name == "Console"
        mobile = (await s.execute(select(Category).where(Category.name == "Mobile"))).scalar_one()
        genshin = (await s.execute(select(Product).where(Product.name == "Genshin Impact"))).scalar_one()
        package_count = (await s.execute(select(func.count()).select_from(ProductPackage))).scalar_one()
        counter = await s.get(IdentifierCounter, CATEGORY_PREFIX)

    assert mobile.id == "CAT002"
    assert genshin.category_id == "CAT002"
    assert package_count == 6
    assert counter.value == 3
