# orderpipe/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import List, Optional
from decimal import Decimal
from datetime import datetime

from orderpipe.domain.order_status import OrderStatus


class CartItemIn(BaseModel):
    """Add a menu to the cart, or overwrite its quantity if already present."""

    store_id: int = Field(..., gt=0, description="Store the menu belongs to")
    menu_id: int = Field(..., gt=0, description="Menu id")
    quantity: int = Field(..., description="Quantity to set (must be >= 1)")


class CartItemQuantityIn(BaseModel):
    """Overwrite the quantity of an existing cart line."""

    quantity: int = Field(..., description="New quantity (must be >= 1)")


class CartItemOut(BaseModel):
    """One cart line joined with the live menu data."""

    cart_item_id: int
    menu_id: int
    menu_name: Optional[str] = None
    menu_description: Optional[str] = None
    menu_price: Decimal
    menu_image_url: Optional[str] = None
    quantity: int
    item_total_price: Decimal
    available: bool = True
    added_at: Optional[datetime] = None


class CartOut(BaseModel):
    """Cart view. Prices are live catalog prices, never snapshots."""

    cart_id: Optional[int] = None
    store_id: Optional[int] = None
    store_name: Optional[str] = None
    store_image_url: Optional[str] = None
    items: List[CartItemOut] = []
    total_item_count: int = 0
    total_quantity: int = 0
    total_price: Decimal = Decimal("0")
    delivery_fee: Decimal = Decimal("0")
    final_price: Decimal = Decimal("0")
    is_empty: bool = True


class OrderCreateIn(BaseModel):
    """Delivery data for committing the caller's cart into an order."""

    delivery_zipcode: str = Field(..., min_length=1, max_length=10)
    delivery_address1: str = Field(..., min_length=1, max_length=255)
    delivery_address2: Optional[str] = Field(None, max_length=255)
    phone_number: Optional[str] = Field(None, max_length=20)
    requests: Optional[str] = Field(None, max_length=500)

    @field_validator("delivery_zipcode", "delivery_address1")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()

    @field_validator("requests")
    @classmethod
    def blank_requests_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip()


class OrderStatusUpdateIn(BaseModel):
    new_status: OrderStatus


class OrderItemOut(BaseModel):
    """Order line: snapshotted price, live name/image for display."""

    order_item_id: int
    menu_id: int
    menu_name: str
    menu_description: Optional[str] = None
    menu_image_url: Optional[str] = None
    quantity: int
    price_at_order: Decimal
    item_total_price: Decimal


class OrderOut(BaseModel):
    """Order detail."""

    order_id: int
    user_id: int
    store_id: int
    store_name: Optional[str] = None
    store_image_url: Optional[str] = None
    status: OrderStatus
    status_display_name: str
    subtotal_amount: Decimal
    delivery_fee: Decimal
    discount_amount: Decimal = Decimal("0")
    points_used: Decimal = Decimal("0")
    total_price: Decimal
    delivery_zipcode: str
    delivery_address1: str
    delivery_address2: Optional[str] = None
    full_delivery_address: str
    phone_number: Optional[str] = None
    requests: Optional[str] = None
    payment_method: str
    payment_transaction_id: Optional[str] = None
    order_items: List[OrderItemOut]
    total_item_count: int
    total_quantity: int
    created_at: datetime
    updated_at: datetime


class OrderSummaryOut(BaseModel):
    """Order list entry for both customer and owner listings."""

    order_id: int
    user_id: int
    store_id: int
    store_name: Optional[str] = None
    store_image_url: Optional[str] = None
    status: OrderStatus
    status_display_name: str
    subtotal_amount: Decimal
    delivery_fee_at_order: Decimal
    total_price: Decimal
    representative_menu_name: str
    total_menu_count: int
    total_quantity: int
    delivery_address1: str
    delivery_address2: Optional[str] = None
    requests: Optional[str] = None
    ordered_at: datetime


class OrderPageOut(BaseModel):
    items: List[OrderSummaryOut]
    page: int
    size: int
    total_elements: int
    total_pages: int


class StoreInfoOut(BaseModel):
    """Catalog store record as served by the catalog service."""

    id: int
    owner_id: int
    name: str
    image_url: Optional[str] = None
    delivery_fee: Decimal
    is_deleted: bool
    is_open: bool

    model_config = ConfigDict(from_attributes=True)


class MenuInfoOut(BaseModel):
    """Catalog menu record as served by the catalog service."""

    id: int
    store_id: int
    name: str
    description: Optional[str] = None
    price: Decimal
    image_url: Optional[str] = None
    is_deleted: bool
    is_available: bool

    model_config = ConfigDict(from_attributes=True)


class ErrorOut(BaseModel):
    error: str
    message: str
