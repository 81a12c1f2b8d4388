"""
Order models for the retail API.

Requests are sent with snake_case field names and integer enum codes;
responses arrive camelCase with string enums. Unset request fields are
omitted from the wire body.

Models:
    Order: An order as reported by the venue
    Execution: A single execution report
    CreateOrderRequest / CreateOrderResponse
    PreviewOrderRequest / PreviewOrderResponse
    GetOpenOrdersResponse, GetOrderResponse
    CancelOrderRequest, CancelOpenOrdersRequest, CancelOpenOrdersResponse
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_serializer, model_validator

from retail_client.models.common import (
    Amount,
    ApiModel,
    MarketMetadata,
    OrderIntentRequest,
    OrderTypeRequest,
    TimeInForceRequest,
)


class Order(ApiModel):
    """
    An order in the system.

    Quantities are share counts; prices are per-share amounts in [0, 1].
    """

    id: str = Field(..., description="Order ID")
    market_slug: str = Field(default="", description="Market slug")
    side: str = Field(default="", description="OrderSide value")
    type: str = Field(default="", description="OrderType value")
    price: Optional[Amount] = None
    quantity: Decimal = Field(default=Decimal("0"), ge=Decimal("0"))
    cum_quantity: Decimal = Field(default=Decimal("0"), ge=Decimal("0"))
    leaves_quantity: Decimal = Field(default=Decimal("0"), ge=Decimal("0"))
    tif: Optional[str] = None
    good_till_time: Optional[str] = None
    intent: str = Field(default="", description="OrderIntent value")
    market_metadata: Optional[MarketMetadata] = None
    state: str = Field(default="", description="OrderState value")
    avg_px: Optional[Amount] = None
    insert_time: Optional[str] = None
    create_time: Optional[str] = None


class Execution(ApiModel):
    """An order execution report."""

    id: str = Field(..., description="Execution ID")
    order: Optional[Order] = None
    last_shares: Optional[Decimal] = None
    last_px: Optional[Amount] = None
    type: str = Field(default="", description="ExecutionType value")
    text: Optional[str] = None
    order_reject_reason: Optional[str] = None
    transact_time: Optional[str] = None
    trade_id: Optional[str] = None
    aggressor: bool = False


class CreateOrderRequest(BaseModel):
    """
    Request to create a new order.

    Serialized with snake_case names and integer codes. Fields left at
    their zero value are omitted.

    Example:
        >>> req = CreateOrderRequest(
        ...     market_slug="will-it-rain",
        ...     intent=OrderIntentRequest.BUY_YES,
        ...     type=OrderTypeRequest.LIMIT,
        ...     price=Amount(value=Decimal("0.01")),
        ...     quantity=Decimal("10"),
        ...     tif=TimeInForceRequest.GTC,
        ... )
    """

    model_config = {"frozen": True, "extra": "forbid"}

    market_slug: str = Field(..., min_length=1)
    intent: OrderIntentRequest
    type: Optional[OrderTypeRequest] = None
    price: Optional[Amount] = None
    quantity: Optional[Decimal] = Field(default=None, gt=Decimal("0"))
    tif: Optional[TimeInForceRequest] = None
    good_till_time: Optional[str] = None
    cash_order_qty: Optional[Amount] = None
    participate_dont_initiate: bool = False
    synchronous_execution: bool = False
    max_block_time: Optional[str] = None
    manual_order_indicator: Optional[str] = None

    @field_serializer("quantity")
    def _serialize_quantity(self, quantity: Optional[Decimal]) -> Optional[Union[int, float]]:
        if quantity is None:
            return None
        if quantity == quantity.to_integral_value():
            return int(quantity)
        return float(quantity)

    def to_wire(self) -> Dict[str, Any]:
        """Render the JSON body, omitting unset and false fields."""
        body = self.model_dump(mode="json", exclude_none=True)
        for flag in ("participate_dont_initiate", "synchronous_execution"):
            if not body.get(flag):
                body.pop(flag, None)
        return body


class CreateOrderResponse(ApiModel):
    """Response from creating an order."""

    id: str
    executions: List[Execution] = Field(default_factory=list)


class PreviewOrderRequest(BaseModel):
    """Wraps a CreateOrderRequest for the preview endpoint."""

    model_config = {"frozen": True, "extra": "forbid"}

    request: CreateOrderRequest

    def to_wire(self) -> Dict[str, Any]:
        """Render the JSON body."""
        return {"request": self.request.to_wire()}


class PreviewOrderResponse(ApiModel):
    """Response from previewing an order."""

    order: Optional[Order] = None


class GetOpenOrdersResponse(ApiModel):
    """Response listing open orders."""

    orders: List[Order] = Field(default_factory=list)


class GetOrderResponse(ApiModel):
    """Response for a single order lookup."""

    order: Optional[Order] = None


class CancelOrderRequest(ApiModel):
    """Request to cancel one order."""

    market_slug: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        """Render the JSON body (camelCase)."""
        return self.model_dump(by_alias=True, exclude_none=True)


class CancelOpenOrdersRequest(ApiModel):
    """Request to cancel all open orders, optionally limited to markets."""

    slugs: Optional[List[str]] = None

    @model_validator(mode="after")
    def _drop_empty(self) -> "CancelOpenOrdersRequest":
        if self.slugs is not None and not self.slugs:
            object.__setattr__(self, "slugs", None)
        return self

    def to_wire(self) -> Dict[str, Any]:
        """Render the JSON body."""
        return self.model_dump(by_alias=True, exclude_none=True)


class CancelOpenOrdersResponse(ApiModel):
    """Response from cancelling open orders."""

    canceled_order_ids: List[str] = Field(default_factory=list)
