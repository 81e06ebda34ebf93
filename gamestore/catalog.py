# gamestore/catalog.py
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .database import get_session
from .models import Category, Product, ProductPackage
from .schemas import CategoryOut, PackageOut, ProductDetailOut, ProductOut

router = APIRouter(prefix="/api", tags=["catalog"])


def product_out(product: Product, category_name: Optional[str] = None) -> dict:
    data = ProductOut.model_validate(product).model_dump()
    data["category_name"] = category_name
    return data


@router.get("/categories", response_model=List[CategoryOut])
async def list_categories(session: AsyncSession = Depends(get_session)):
    result = await session.execute(select(Category).order_by(Category.name))
    return result.scalars().all()


@router.get("/products", response_model=List[ProductOut])
async def list_products(
    search: Optional[str] = None,
    category: Optional[str] = None,
    price_min: Optional[float] = Query(None, alias="priceMin"),
    price_max: Optional[float] = Query(None, alias="priceMax"),
    available: bool = False,
    session: AsyncSession = Depends(get_session),
):
    stmt = select(Product, Category.name).outerjoin(Category, Product.category_id == Category.id)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(or_(
            Product.name.ilike(pattern),
            Product.detail.ilike(pattern),
            Category.name.ilike(pattern),
        ))
    if category:
        stmt = stmt.where(Product.category_id == category)
    if price_min is not None:
        stmt = stmt.where(Product.price >= price_min)
    if price_max is not None:
        stmt = stmt.where(Product.price <= price_max)
    if available:
        stmt = stmt.where(Product.instock_quantity > 0)

    result = await session.execute(stmt.order_by(Product.name.asc()))
    return [product_out(product, category_name) for product, category_name in result.all()]


@router.get("/products/{product_id}", response_model=ProductDetailOut)
async def get_product(product_id: str, session: AsyncSession = Depends(get_session)):
    result = await session.execute(
        select(Product)
        .options(selectinload(Product.packages), selectinload(Product.category))
        .where(Product.id == product_id)
    )
    product = result.scalar_one_or_none()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    data = product_out(product, product.category.name if product.category else None)
    data["packages"] = [PackageOut.model_validate(p) for p in product.packages]
    return data


@router.get("/products/{product_id}/packages", response_model=List[PackageOut])
async def list_packages(product_id: str, session: AsyncSession = Depends(get_session)):
    result = await session.execute(
        select(ProductPackage)
        .where(ProductPackage.product_id == product_id)
        .order_by(ProductPackage.price.asc())
    )
    return result.scalars().all()


@router.get("/packages/{package_id}", response_model=PackageOut)
async def get_package(package_id: str, session: AsyncSession = Depends(get_session)):
    package = await session.get(ProductPackage, package_id)
    if not package:
        raise HTTPException(status_code=404, detail="Package not found")
    return package
