# gamestore/schemas.py
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Union

from pydantic import BaseModel, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """JSON uses camelCase keys; Python code uses the snake_case names."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


# 👤 User
class UserBase(CamelModel):
    email: EmailStr
    full_name: str
    phone: Optional[str] = None


class UserCreate(UserBase):
    password: str


class UserOut(UserBase):
    id: int
    role: str
    date_of_birth: Optional[date] = None


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserUpdate(CamelModel):
    """Partial profile update: only the keys present in the body are changed."""

    full_name: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    date_of_birth: Optional[date] = None

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def blank_date_clears(cls, value):
        return None if value == "" else value


class ProfileUpdated(CamelModel):
    message: str
    user: UserOut
    # reissued when the email (the token subject) changes
    access_token: Optional[str] = Field(None, alias="access_token")


class PasswordChange(CamelModel):
    current_password: str
    new_password: str


# 🗂️ Category
class CategoryCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)


class CategoryOut(CamelModel):
    id: str
    name: str


# 📦 Package (pricing tier)
class PackageCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    bonus_description: Optional[str] = None


class PackageOut(CamelModel):
    id: str
    product_id: str
    name: str
    price: float
    bonus_description: Optional[str] = None


# 🎮 Product
class ProductBase(CamelModel):
    name: str
    category_id: Optional[str] = None
    detail: Optional[str] = None
    price: float = 0
    rating: Optional[float] = None
    photo_path: Optional[str] = None


class ProductCreate(ProductBase):
    instock_quantity: int = Field(0, ge=0)


class ProductOut(ProductBase):
    id: str
    instock_quantity: int
    sold_quantity: int
    category_name: Optional[str] = None


class ProductDetailOut(ProductOut):
    packages: List[PackageOut] = []


# 🧾 Order creation
class PaymentDetails(CamelModel):
    customer_bank_account_number: Optional[str] = None
    customer_promptpay_number: Optional[str] = None
    customer_true_wallet_number: Optional[str] = None
    customer_card_number: Optional[str] = None  # last 4 digits only
    payment_proof_path: Optional[str] = None


class OrderCreate(CamelModel):
    # everything is optional here so that missing fields are reported by the
    # order service as a ValidationError (400) rather than a schema error
    product_id: Optional[str] = None
    package_id: Optional[str] = None
    package_price: Optional[Union[str, float]] = None  # advisory only, never stored
    game_uid: Optional[str] = Field(None, alias="gameUID")
    game_server: Optional[str] = None
    payment_method: Optional[str] = None
    payment_details: PaymentDetails = Field(default_factory=PaymentDetails)


class OrderCreated(CamelModel):
    message: str
    order_id: str
    payment_id: str


class OrderSummary(CamelModel):
    order_id: str
    status: str
    purchase_date: datetime
    game_uid: Optional[str] = None
    product_id: Optional[str] = None
    package_id: Optional[str] = None
    subtotal: Optional[str] = None
    payment_id: Optional[str] = None
    payment_method: Optional[str] = None
    payment_status: Optional[str] = None


# 🛠️ Admin logs
class StatusUpdate(CamelModel):
    status: str


class OrderLogOut(CamelModel):
    order_id: str
    customer_id: int
    customer_name: str
    game_uid: Optional[str] = None
    product_id: str
    product_name: str
    date_purchased: datetime
    status: str


class PaymentLogOut(CamelModel):
    payment_id: str
    customer_id: int
    customer_name: str
    payment: str
    amount: str
    payment_date: datetime
    status: str


# 🏷️ Promotions
class PromotionIn(CamelModel):
    code: str = Field(..., min_length=1, max_length=50)
    # "25%" is a percentage discount, a bare number a fixed amount
    value: Union[str, float]
    status: Optional[str] = None
    max_uses: int = Field(0, ge=0)
    effective_from: datetime
    effective_until: datetime


class PromotionOut(CamelModel):
    promo_id: str
    code: str
    type: str
    value: float
    max_uses: int
    status: str
    effective_from: datetime
    effective_until: datetime
