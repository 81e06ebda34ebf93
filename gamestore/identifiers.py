# gamestore/identifiers.py
"""Human-readable sequential identifiers (ORD001, PAY001, PKG001 ...).

The number comes from a per-prefix counter row that is bumped with a single
``UPDATE ... RETURNING``.  The update keeps the counter row locked until the
surrounding transaction ends, so two requests can never receive the same
number, and a rolled back transaction hands its number back.
"""
import logging

from sqlalchemy import Integer, cast, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .config import ID_PAD_WIDTH
from .errors import DuplicateIdentifierError
from .models import IdentifierCounter

logger = logging.getLogger(__name__)

ORDER_PREFIX = "ORD"
PAYMENT_PREFIX = "PAY"
PRODUCT_PREFIX = "PRD"
PACKAGE_PREFIX = "PKG"
CATEGORY_PREFIX = "CAT"
DISCOUNT_PREFIX = "DIS"

counters = IdentifierCounter.__table__


def format_identifier(prefix: str, number: int, width: int = ID_PAD_WIDTH) -> str:
    return f"{prefix}{number:0{width}d}"


def id_ordering(column, descending: bool = False) -> tuple:
    """ORDER BY terms that sort ids of one prefix by number, so ORD999 < ORD1000."""
    terms = (func.length(column), column)
    if descending:
        return tuple(term.desc() for term in terms)
    return terms


async def _highest_existing(session: AsyncSession, prefix: str, column) -> int:
    suffix = func.substr(column, len(prefix) + 1)
    res = await session.execute(
        select(func.max(cast(suffix, Integer))).where(column.like(f"{prefix}%"))
    )
    return res.scalar_one_or_none() or 0


async def allocate_number(session: AsyncSession, prefix: str, column) -> int:
    """Reserve the next number for ``prefix`` inside the session's transaction.

    ``column`` is the id column of the table the prefix belongs to; it is only
    read the first time a prefix is used, so rows created before the counter
    existed are never reissued.
    """
    res = await session.execute(
        update(counters)
        .where(counters.c.prefix == prefix)
        .values(value=counters.c.value + 1)
        .returning(counters.c.value)
    )
    number = res.scalar_one_or_none()
    if number is not None:
        return number

    # first use of this prefix: continue after whatever is already stored
    number = await _highest_existing(session, prefix, column) + 1
    try:
        await session.execute(insert(counters).values(prefix=prefix, value=number))
    except IntegrityError as exc:
        # another transaction seeded the same counter first
        raise DuplicateIdentifierError(
            f"Identifier counter {prefix} was created concurrently. Please try again."
        ) from exc
    logger.info("Seeded identifier counter %s at %d", prefix, number)
    return number


async def next_identifier(session: AsyncSession, prefix: str, column) -> str:
    return format_identifier(prefix, await allocate_number(session, prefix, column))
