import enum

from sqlalchemy import (
    Column, Integer, String, Text, ForeignKey, Date, DateTime, func,
    Numeric, CheckConstraint, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship

from .database import Base


class OrderStatus(str, enum.Enum):
    IN_PROGRESS = "In Progress"
    SUCCESS = "Success"
    CANCEL = "Cancel"


class PaymentStatus(str, enum.Enum):
    IN_PROGRESS = "In Progress"
    SUCCESS = "Success"
    CANCEL = "Cancel"


class PaymentMethod(str, enum.Enum):
    CREDIT_CARD = "Credit/Debit Card"
    BANK_TRANSFER = "Bank Transfer"
    PROMPTPAY = "Promptpay"
    TRUE_WALLET = "True Wallet"


class UserRole(str, enum.Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"


class DiscountType(str, enum.Enum):
    PERCENTAGE = "Percentage"
    FIXED = "Fixed"


class DiscountStatus(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    EXPIRED = "Expired"


# 👤 User
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.CUSTOMER.value)

    orders = relationship("Order", back_populates="user")


class IdentifierCounter(Base):
    """Last number handed out for a display-id prefix (ORD, PAY, PRD ...)."""

    __tablename__ = "identifier_counters"

    prefix = Column(String(10), primary_key=True)
    value = Column(Integer, nullable=False, default=0)


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(20), primary_key=True)
    name = Column(String(100), unique=True, nullable=False)

    products = relationship("Product", back_populates="category", passive_deletes=True)


class Product(Base):
    __tablename__ = "products"

    id = Column(String(20), primary_key=True)
    name = Column(String(255), nullable=False)
    category_id = Column(String(20), ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    detail = Column(Text, nullable=True)
    instock_quantity = Column(Integer, nullable=False, default=0)
    sold_quantity = Column(Integer, nullable=False, default=0)
    price = Column(Numeric(10, 2), nullable=False, default=0)  # 💰 "starting from" price shown in listings
    rating = Column(Numeric(3, 2), nullable=True)
    photo_path = Column(String(255), nullable=True)

    category = relationship("Category", back_populates="products")
    packages = relationship(
        "ProductPackage", back_populates="product",
        cascade="all, delete-orphan", passive_deletes=True,
        order_by="ProductPackage.price",
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_products_price_nonneg"),
        CheckConstraint("instock_quantity >= 0", name="ck_products_stock_nonneg"),
        Index("ix_products_category_name", "category_id", "name"),
    )


class ProductPackage(Base):
    """A purchasable top-up tier of a product; the authoritative price source."""

    __tablename__ = "product_packages"

    id = Column(String(20), primary_key=True)
    product_id = Column(String(20), ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    bonus_description = Column(String(255), nullable=True)

    product = relationship("Product", back_populates="packages")

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_packages_price_nonneg"),
        Index("ix_packages_product_price", "product_id", "price"),
    )


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(20), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    game_uid = Column(String(100), nullable=True)
    game_server = Column(String(100), nullable=True)
    purchase_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    status = Column(String(20), nullable=False, default=OrderStatus.IN_PROGRESS.value)

    user = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", passive_deletes=True)
    payment = relationship("Payment", back_populates="order", uselist=False, passive_deletes=True)

    __table_args__ = (
        Index("ix_orders_user_purchase", "user_id", "purchase_date"),
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(String(20), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(String(20), ForeignKey("products.id"), nullable=False)
    package_id = Column(String(20), ForeignKey("product_packages.id"), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    price_per_item = Column(Numeric(10, 2), nullable=False)  # 💰 price at the moment of purchase
    subtotal = Column(Numeric(12, 2), nullable=False)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")
    package = relationship("ProductPackage")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_orderitem_quantity_pos"),
        CheckConstraint("price_per_item >= 0", name="ck_orderitem_price_nonneg"),
    )


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(20), primary_key=True)
    order_id = Column(String(20), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    method = Column(String(30), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String(20), nullable=False, default=PaymentStatus.IN_PROGRESS.value)
    payment_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    customer_bank_account = Column(String(50), nullable=True)
    customer_true_wallet_number = Column(String(20), nullable=True)
    customer_promptpay_number = Column(String(20), nullable=True)
    customer_card_number = Column(String(4), nullable=True)  # last four digits only
    transaction_id = Column(String(100), nullable=True)
    proof_path = Column(String(255), nullable=True)

    order = relationship("Order", back_populates="payment")

    __table_args__ = (
        UniqueConstraint("order_id", name="uq_payments_order"),  # 1:1 with orders
        CheckConstraint("amount >= 0", name="ck_payments_amount_nonneg"),
    )


# 🏷️ Promotions
class Discount(Base):
    __tablename__ = "discounts"

    id = Column(String(20), primary_key=True)
    code = Column(String(50), unique=True, nullable=False)
    type = Column(String(20), nullable=False, default=DiscountType.FIXED.value)
    value = Column(Numeric(10, 4), nullable=False)  # percentages as a fraction: 25% -> 0.25
    max_uses = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=DiscountStatus.INACTIVE.value)
    effective_from = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint("value >= 0", name="ck_discounts_value_nonneg"),
        CheckConstraint("max_uses >= 0", name="ck_discounts_max_uses_nonneg"),
        Index("ix_discounts_status_expires", "status", "expires_at"),
    )
