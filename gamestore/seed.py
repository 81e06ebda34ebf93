# gamestore/seed.py
"""Demo catalog and accounts.

Idempotent: categories and products are matched by name, packages by name
within their product, users by email.  New rows take their ids from the
identifier counters, so seeding never reuses an id the admin already
handed out.
"""
import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .auth import get_password_hash
from .identifiers import CATEGORY_PREFIX, PACKAGE_PREFIX, PRODUCT_PREFIX, next_identifier
from .models import Category, Product, ProductPackage, User, UserRole

logger = logging.getLogger(__name__)

# On an empty database these come out as CAT001-002, PRD001-003, PKG001-006
CATEGORIES = ["Mobile", "PC"]

PRODUCTS = [
    {
        "name": "Genshin Impact", "category": "Mobile",
        "detail": "Genesis Crystals top-up, delivered to your UID.",
        "price": Decimal("35.00"), "instock_quantity": 999, "rating": Decimal("4.80"),
        "packages": [
            ("60 Genesis Crystals", Decimal("35.00"), None),
            ("300 Genesis Crystals", Decimal("149.00"), "+30 bonus"),
            ("980 Genesis Crystals", Decimal("449.00"), "+110 bonus"),
        ],
    },
    {
        "name": "Valorant", "category": "PC",
        "detail": "Valorant Points for the Riot account region TH.",
        "price": Decimal("100.00"), "instock_quantity": 999, "rating": Decimal("4.60"),
        "packages": [
            ("475 VP", Decimal("100.00"), None),
            ("1000 VP", Decimal("200.00"), "+50 bonus"),
        ],
    },
    {
        "name": "ROV", "category": "Mobile",
        "detail": "Vouchers for Arena of Valor.",
        "price": Decimal("29.00"), "instock_quantity": 0, "rating": Decimal("4.10"),
        "packages": [
            ("30 Vouchers", Decimal("29.00"), None),
        ],
    },
]

DEMO_USERS = [
    ("admin@example.com", "Store Admin", "adminpass123", UserRole.ADMIN),
    ("demo@example.com", "Demo Customer", "password123", UserRole.CUSTOMER),
]


async def _category(session: AsyncSession, name: str) -> Category:
    res = await session.execute(select(Category).where(Category.name == name))
    category = res.scalar_one_or_none()
    if category is None:
        category = Category(id=await next_identifier(session, CATEGORY_PREFIX, Category.id), name=name)
        session.add(category)
    return category


async def _product(session: AsyncSession, data: dict, category: Category) -> Product:
    res = await session.execute(select(Product).where(Product.name == data["name"]))
    product = res.scalar_one_or_none()
    if product is None:
        product = Product(
            id=await next_identifier(session, PRODUCT_PREFIX, Product.id),
            category_id=category.id,
            sold_quantity=0,
            **data,
        )
        session.add(product)
    return product


async def seed_catalog(session: AsyncSession) -> None:
    categories = {}
    for name in CATEGORIES:
        categories[name] = await _category(session, name)

    for item in PRODUCTS:
        data = dict(item)
        packages = data.pop("packages")
        category = categories[data.pop("category")]
        product = await _product(session, data, category)

        for name, price, bonus in packages:
            res = await session.execute(
                select(ProductPackage.id).where(
                    ProductPackage.product_id == product.id,
                    ProductPackage.name == name,
                )
            )
            if res.scalar_one_or_none() is None:
                session.add(ProductPackage(
                    id=await next_identifier(session, PACKAGE_PREFIX, ProductPackage.id),
                    product_id=product.id, name=name,
                    price=price, bonus_description=bonus,
                ))

    await session.commit()
    logger.info("Seeded %d categories, %d products", len(CATEGORIES), len(PRODUCTS))


async def seed_users(session: AsyncSession, users=DEMO_USERS) -> None:
    for email, full_name, password, role in users:
        res = await session.execute(select(User).where(User.email == email))
        if res.scalar_one_or_none():
            continue
        session.add(User(
            email=email, full_name=full_name,
            password_hash=get_password_hash(password), role=role.value,
        ))
    await session.commit()
    logger.info("Seeded %d demo users", len(users))
