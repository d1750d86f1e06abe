"""Pydantic schemas for store service."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from libs.common.validation import is_valid_phone, validate_password
from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)
from services.store_service.models import (
    AddressType,
    CheckoutStepName,
    CheckoutStepStatus,
    DiscountType,
    OrderStatus,
    PaymentStatus,
    sorted_images,
)


def _check_password(value: str) -> str:
    check = validate_password(value)
    if not check.is_valid:
        raise ValueError("; ".join(check.errors))
    return value


def _check_phone(value: Optional[str]) -> Optional[str]:
    if value and not is_valid_phone(value):
        raise ValueError("Invalid phone number")
    return value


# ============================================================================
# CATEGORY SCHEMAS
# ============================================================================


class CategoryBase(BaseModel):
    name: str = Field(..., max_length=255)
    description: Optional[str] = None
    image_url: Optional[str] = Field(None, max_length=1024)
    display_order: int = 0
    is_active: bool = True


class CategoryCreate(CategoryBase):
    slug: Optional[str] = Field(None, max_length=255)  # Generated from name if blank


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    image_url: Optional[str] = Field(None, max_length=1024)
    display_order: Optional[int] = None
    is_active: Optional[bool] = None


class CategoryResponse(CategoryBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    slug: str
    created_at: datetime
    updated_at: datetime


class CategoryWithCount(CategoryResponse):
    product_count: int = 0


# ============================================================================
# PRODUCT SCHEMAS
# ============================================================================


class ProductImageBase(BaseModel):
    image_url: str = Field(..., max_length=1024)
    alt_text: Optional[str] = Field(None, max_length=255)
    display_order: int = 0
    is_primary: bool = False


class ProductImageCreate(ProductImageBase):
    pass


class ProductImageResponse(ProductImageBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID


class ProductVariantBase(BaseModel):
    size: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, max_length=50)
    sku: Optional[str] = Field(None, max_length=100)
    price_adjustment_usd: Decimal = Decimal("0")
    inventory_quantity: int = Field(0, ge=0)
    is_active: bool = True


class ProductVariantCreate(ProductVariantBase):
    pass


class ProductVariantResponse(ProductVariantBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    # Stock may be negative once oversold
    inventory_quantity: int = 0


class ProductBase(BaseModel):
    name: str = Field(..., max_length=255)
    category_id: Optional[uuid.UUID] = None
    sku: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    price_usd: Decimal = Field(..., ge=0)
    compare_at_price_usd: Optional[Decimal] = Field(None, ge=0)
    inventory_quantity: int = 0
    track_inventory: bool = True
    low_stock_threshold: int = Field(5, ge=0)
    is_active: bool = True
    is_featured: bool = False


class ProductCreate(ProductBase):
    slug: Optional[str] = Field(None, max_length=255)  # Generated from name if blank
    images: list[ProductImageCreate] = []
    variants: list[ProductVariantCreate] = []


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    category_id: Optional[uuid.UUID] = None
    sku: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    price_usd: Optional[Decimal] = Field(None, ge=0)
    compare_at_price_usd: Optional[Decimal] = Field(None, ge=0)
    inventory_quantity: Optional[int] = None
    track_inventory: Optional[bool] = None
    low_stock_threshold: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    # When present, these replace the product's images / variants
    images: Optional[list[ProductImageCreate]] = None
    variants: Optional[list[ProductVariantCreate]] = None


class ProductSummary(ProductBase):
    """Product columns only (no relationships loaded)."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    slug: str
    created_at: datetime
    updated_at: datetime


class ProductWithImages(ProductSummary):
    images: list[ProductImageResponse] = []

    @field_validator("images", mode="before")
    @classmethod
    def primary_first(cls, value):
        return sorted_images(value) if value else []


class ProductResponse(ProductWithImages):
    variants: list[ProductVariantResponse] = []


class ProductDetail(ProductResponse):
    category: Optional[CategoryResponse] = None


class AvailabilityResponse(BaseModel):
    product_id: uuid.UUID
    variant_id: Optional[uuid.UUID] = None
    quantity: int
    available: bool
    in_stock: int


# ============================================================================
# CART SCHEMAS
# ============================================================================


class CartItemCreate(BaseModel):
    product_id: uuid.UUID
    variant_id: Optional[uuid.UUID] = None
    quantity: int = Field(1, ge=1)


class CartItemUpdate(BaseModel):
    quantity: int = Field(..., ge=0)  # 0 removes the line


class CartLineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    quantity: int
    unit_price: Decimal
    line_total: Decimal
    product: ProductWithImages
    variant: Optional[ProductVariantResponse] = None


class CartResponse(BaseModel):
    items: list[CartLineResponse] = []
    subtotal: Decimal = Decimal("0.00")
    item_count: int = 0


class CartItemValidation(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    item_id: uuid.UUID
    valid: bool
    message: Optional[str] = None


class CartMergeResponse(BaseModel):
    merged: int
    cart: CartResponse


# ============================================================================
# ADDRESS SCHEMAS
# ============================================================================


class AddressFields(BaseModel):
    full_name: str = Field(..., max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    address_line1: str = Field(..., max_length=255)
    address_line2: Optional[str] = Field(None, max_length=255)
    city: str = Field(..., max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    country: str = Field(..., max_length=100)

    @field_validator("phone")
    @classmethod
    def valid_phone(cls, value: Optional[str]) -> Optional[str]:
        return _check_phone(value)


class AddressCreate(AddressFields):
    address_type: AddressType = AddressType.SHIPPING
    is_default: bool = False


class AddressUpdate(BaseModel):
    address_type: Optional[AddressType] = None
    full_name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    address_line1: Optional[str] = Field(None, max_length=255)
    address_line2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)
    postal_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, max_length=100)
    is_default: Optional[bool] = None


class AddressResponse(AddressCreate):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime


# ============================================================================
# CHECKOUT SCHEMAS
# ============================================================================


class CustomerInfoIn(BaseModel):
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    nationality: Optional[str] = Field(None, max_length=100)

    @field_validator("phone")
    @classmethod
    def valid_phone(cls, value: Optional[str]) -> Optional[str]:
        return _check_phone(value)


class CheckoutRequest(BaseModel):
    customer: CustomerInfoIn
    shipping_address: AddressFields
    billing_address: Optional[AddressFields] = None  # Defaults to shipping
    coupon_code: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


class CouponCheckRequest(BaseModel):
    code: str = Field(..., max_length=50)


class TotalsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    subtotal: Decimal
    discount: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal


class CouponCheckResponse(BaseModel):
    code: str
    discount_type: DiscountType
    discount_value: Decimal
    totals: TotalsResponse


class PopupParamsResponse(BaseModel):
    """Values for PaystackPop.setup on the client (amount in kobo)."""

    model_config = ConfigDict(from_attributes=True)

    key: str
    email: str
    amount: int
    currency: str
    reference: str
    metadata: dict[str, Any]


class CheckoutResponse(BaseModel):
    order_id: uuid.UUID
    order_number: str
    total_usd: Decimal
    total_ngn: Optional[Decimal] = None
    exchange_rate: Optional[Decimal] = None
    requires_payment: bool
    payment: Optional[PopupParamsResponse] = None
    redirect_url: Optional[str] = None


class PaymentConfirmRequest(BaseModel):
    reference: str = Field(..., min_length=1, max_length=100)


class PaymentOutcomeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    success: bool
    order_id: uuid.UUID
    reference: str
    redirect_url: str
    redirect_delay: int = 0
    message: Optional[str] = None
    failed_step: Optional[CheckoutStepName] = None
    steps: dict[str, str] = {}


class CheckoutStepResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    step: CheckoutStepName
    status: CheckoutStepStatus
    attempts: int
    last_error: Optional[str] = None
    updated_at: datetime


# ============================================================================
# ORDER SCHEMAS
# ============================================================================


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: Optional[uuid.UUID]
    variant_id: Optional[uuid.UUID]
    product_name: str
    product_sku: Optional[str]
    variant_size: Optional[str]
    variant_color: Optional[str]
    price_usd: Decimal
    quantity: int
    subtotal_usd: Decimal


class OrderSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_number: str
    customer_email: str
    customer_name: str
    total_usd: Decimal
    status: OrderStatus
    payment_status: PaymentStatus
    created_at: datetime


class OrderResponse(OrderSummary):
    user_id: Optional[uuid.UUID]
    customer_phone: Optional[str]
    customer_nationality: Optional[str]
    shipping_address: Optional[dict]
    billing_address: Optional[dict]
    coupon_code: Optional[str]

    subtotal_usd: Decimal
    discount_usd: Decimal
    shipping_usd: Decimal
    tax_usd: Decimal
    exchange_rate: Optional[Decimal]
    total_ngn: Optional[Decimal]
    currency_paid: str

    payment_reference: Optional[str]
    tracking_number: Optional[str]
    notes: Optional[str]
    paid_at: Optional[datetime]
    shipped_at: Optional[datetime]
    delivered_at: Optional[datetime]
    updated_at: datetime

    items: list[OrderItemResponse] = []


class OrderStatusUpdate(BaseModel):
    """Update order status (admin)."""

    status: OrderStatus


class TrackingUpdate(BaseModel):
    tracking_number: str = Field(..., min_length=1, max_length=100)


class OrderNotesUpdate(BaseModel):
    notes: Optional[str] = None


class GuestOrderLookup(BaseModel):
    order_number: str = Field(..., max_length=30)
    email: EmailStr


# ============================================================================
# COUPON SCHEMAS
# ============================================================================


class CouponBase(BaseModel):
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: Decimal = Field(..., gt=0)
    minimum_purchase_usd: Optional[Decimal] = Field(None, ge=0)
    maximum_discount_usd: Optional[Decimal] = Field(None, ge=0)
    usage_limit: Optional[int] = Field(None, ge=1)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    is_active: bool = True


class CouponCreate(CouponBase):
    code: str = Field(..., min_length=1, max_length=50)

    @field_validator("code")
    @classmethod
    def upper_code(cls, value: str) -> str:
        return value.strip().upper()

    @model_validator(mode="after")
    def percentage_at_most_100(self):
        if (
            self.discount_type == DiscountType.PERCENTAGE
            and self.discount_value > 100
        ):
            raise ValueError("Percentage discount cannot exceed 100")
        return self


class CouponUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, gt=0)
    minimum_purchase_usd: Optional[Decimal] = Field(None, ge=0)
    maximum_discount_usd: Optional[Decimal] = Field(None, ge=0)
    usage_limit: Optional[int] = Field(None, ge=1)
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    is_active: Optional[bool] = None

    @field_validator("code")
    @classmethod
    def upper_code(cls, value: Optional[str]) -> Optional[str]:
        return value.strip().upper() if value else value


class CouponResponse(CouponBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    code: str
    usage_count: int
    created_at: datetime


# ============================================================================
# ACCOUNT / AUTH SCHEMAS
# ============================================================================


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: Optional[str]
    full_name: Optional[str]
    phone: Optional[str]
    nationality: Optional[str]
    is_admin: bool
    created_at: datetime


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    nationality: Optional[str] = Field(None, max_length=100)

    @field_validator("phone")
    @classmethod
    def valid_phone(cls, value: Optional[str]) -> Optional[str]:
        return _check_phone(value)


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str
    full_name: str = Field(..., min_length=1, max_length=255)

    @field_validator("password")
    @classmethod
    def strong_password(cls, value: str) -> str:
        return _check_password(value)


class SignInRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordUpdate(BaseModel):
    new_password: str

    @field_validator("new_password")
    @classmethod
    def strong_password(cls, value: str) -> str:
        return _check_password(value)


class VerifyOtpRequest(BaseModel):
    token_hash: str = Field(..., min_length=1)
    type: str = Field("signup", pattern="^(signup|email|recovery|invite|email_change)$")


class SessionResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    user_id: str
    email: Optional[str] = None


class AuthResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    session: Optional[SessionResponse] = None
    profile: Optional[ProfileResponse] = None
    is_admin: bool = False


# ============================================================================
# ADMIN SCHEMAS
# ============================================================================


class CustomerResponse(BaseModel):
    profile: ProfileResponse
    order_count: int
    total_spent: Decimal


class DashboardResponse(BaseModel):
    total_orders: int
    total_revenue: Decimal
    pending_orders: int
    total_customers: int
    total_products: int
    recent_orders: list[OrderSummary] = []
    low_stock_products: list[ProductSummary] = []


class ImageUploadResponse(BaseModel):
    url: str
