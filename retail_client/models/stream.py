"""
Streaming models: subscription control frames and inbound payloads.

The private stream carries order, position and balance payloads; the
markets stream carries order book, price summary and trade payloads.
Every inbound frame is decoded into one InboundMessage, which holds at
most one populated payload field.

Models:
    SubscriptionKind: What to subscribe to, and which socket serves it
    SubscriptionRequest / UnsubscribeRequest: Outbound control frames
    InboundMessage: Decoded inbound frame (tagged union)
    MessageKind: Discriminator for InboundMessage
    SessionState: Streaming session lifecycle state
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from retail_client.models.account import Balance, UserPosition
from retail_client.models.common import Amount, ApiModel
from retail_client.models.orders import Execution, Order

PRIVATE_STREAM_PATH = "/v1/ws/private"
MARKETS_STREAM_PATH = "/v1/ws/markets"


# =============================================================================
# SESSION STATE
# =============================================================================


class SessionState(str, Enum):
    """
    Streaming session lifecycle.

    UNCONNECTED -> CONNECTING -> CONNECTED -> CLOSED. A failed connect
    returns to UNCONNECTED. CLOSED is final.
    """

    UNCONNECTED = "unconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"


# =============================================================================
# SUBSCRIPTIONS
# =============================================================================


class SubscriptionKind(str, Enum):
    """
    Subscription kinds.

    The wire type codes are socket-local: the private and markets sockets
    each number their own subscription types.
    """

    ORDER = "order"
    POSITION = "position"
    ACCOUNT_BALANCE = "account_balance"
    MARKET_DATA = "market_data"
    MARKET_DATA_LITE = "market_data_lite"
    TRADE = "trade"

    @property
    def is_private(self) -> bool:
        """Check if this kind is served by the private (account) socket."""
        return self in _PRIVATE_KINDS

    @property
    def wire_type(self) -> int:
        """Integer subscription_type sent on the wire."""
        return _WIRE_TYPES[self]

    @property
    def request_prefix(self) -> str:
        """Prefix used for session-generated request ids."""
        return _REQUEST_PREFIXES[self]


_PRIVATE_KINDS = frozenset(
    {SubscriptionKind.ORDER, SubscriptionKind.POSITION, SubscriptionKind.ACCOUNT_BALANCE}
)

# Private socket: 2 is the order snapshot type, which the client never requests.
_WIRE_TYPES = {
    SubscriptionKind.ORDER: 1,
    SubscriptionKind.POSITION: 3,
    SubscriptionKind.ACCOUNT_BALANCE: 4,
    SubscriptionKind.MARKET_DATA: 1,
    SubscriptionKind.MARKET_DATA_LITE: 2,
    SubscriptionKind.TRADE: 3,
}

_REQUEST_PREFIXES = {
    SubscriptionKind.ORDER: "order",
    SubscriptionKind.POSITION: "position",
    SubscriptionKind.ACCOUNT_BALANCE: "balance",
    SubscriptionKind.MARKET_DATA: "marketdata",
    SubscriptionKind.MARKET_DATA_LITE: "marketdatalite",
    SubscriptionKind.TRADE: "trade",
}


class SubscriptionRequest(BaseModel):
    """
    A subscription request as sent on the wire.

    Example:
        >>> req = SubscriptionRequest(
        ...     request_id="marketdata-1",
        ...     subscription_type=1,
        ...     market_slugs=["will-it-rain"],
        ...     responses_debounced=True,
        ... )
    """

    model_config = {"frozen": True, "extra": "forbid"}

    request_id: str = Field(..., min_length=1, description="Correlation id")
    subscription_type: int = Field(..., ge=1, description="Socket-local type code")
    market_slugs: List[str] = Field(default_factory=list, description="Empty means all markets")
    responses_debounced: bool = Field(default=False, description="Ask the server to coalesce updates")

    def to_wire(self) -> Dict[str, Any]:
        """Render the subscribe frame, omitting empty filters."""
        body: Dict[str, Any] = {
            "request_id": self.request_id,
            "subscription_type": self.subscription_type,
        }
        if self.market_slugs:
            body["market_slugs"] = list(self.market_slugs)
        if self.responses_debounced:
            body["responses_debounced"] = True
        return {"subscribe": body}


class UnsubscribeRequest(BaseModel):
    """An unsubscribe request referencing an earlier request id."""

    model_config = {"frozen": True, "extra": "forbid"}

    request_id: str = Field(..., min_length=1)

    def to_wire(self) -> Dict[str, Any]:
        """Render the unsubscribe frame."""
        return {"unsubscribe": {"request_id": self.request_id}}


# =============================================================================
# PRIVATE STREAM PAYLOADS
# =============================================================================


class OrderSnapshot(ApiModel):
    """Initial snapshot of open orders."""

    orders: List[Order] = Field(default_factory=list)
    eof: bool = False


class OrderUpdate(ApiModel):
    """Execution report for one order."""

    execution: Optional[Execution] = None


class PositionUpdate(ApiModel):
    """Position change, with before and after state."""

    before_position: Optional[UserPosition] = None
    after_position: Optional[UserPosition] = None
    update_time: Optional[str] = None
    entry_type: Optional[str] = None
    trade_id: Optional[str] = None


class BalanceSnapshot(ApiModel):
    """Initial snapshot of account balances."""

    balances: List[Balance] = Field(default_factory=list)


class BalanceChange(ApiModel):
    """A single balance change."""

    before_balance: Optional[Balance] = None
    after_balance: Optional[Balance] = None
    description: Optional[str] = None
    update_time: Optional[str] = None
    entry_type: Optional[str] = None


class BalanceUpdate(ApiModel):
    """Wrapper for a balance change."""

    balance_change: Optional[BalanceChange] = None


# =============================================================================
# MARKETS STREAM PAYLOADS
# =============================================================================


class BookLevel(ApiModel):
    """One price level of the order book."""

    px: Optional[Amount] = None
    qty: str = "0"


class MarketStats(ApiModel):
    """Session statistics for a market."""

    last_trade_px: Optional[Amount] = None
    shares_traded: Optional[str] = None
    open_interest: Optional[str] = None
    high_px: Optional[Amount] = None
    low_px: Optional[Amount] = None


class MarketDataUpdate(ApiModel):
    """Full order book update."""

    market_slug: str = ""
    bids: List[BookLevel] = Field(default_factory=list)
    offers: List[BookLevel] = Field(default_factory=list)
    state: Optional[str] = None
    stats: Optional[MarketStats] = None
    transact_time: Optional[str] = None

    @property
    def best_bid(self) -> Optional[BookLevel]:
        """Top bid level, if any."""
        return self.bids[0] if self.bids else None

    @property
    def best_offer(self) -> Optional[BookLevel]:
        """Top offer level, if any."""
        return self.offers[0] if self.offers else None


class MarketDataLiteUpdate(ApiModel):
    """Lightweight price summary."""

    market_slug: str = ""
    current_px: Optional[Amount] = None
    last_trade_px: Optional[Amount] = None
    best_bid: Optional[Amount] = None
    best_ask: Optional[Amount] = None
    bid_depth: int = 0
    ask_depth: int = 0
    shares_traded: Optional[str] = None
    open_interest: Optional[str] = None


class TradeParty(ApiModel):
    """Side and intent of one party to a public trade."""

    side: str = ""
    intent: str = ""


class TradeUpdate(ApiModel):
    """A public trade."""

    market_slug: str = ""
    price: Optional[Amount] = None
    quantity: Optional[Amount] = None
    trade_time: Optional[str] = None
    maker: Optional[TradeParty] = None
    taker: Optional[TradeParty] = None


# =============================================================================
# INBOUND FRAME
# =============================================================================


class MessageKind(str, Enum):
    """Which variant of InboundMessage is populated."""

    HEARTBEAT = "heartbeat"
    ERROR = "error"
    ORDER_SNAPSHOT = "order_snapshot"
    ORDER_UPDATE = "order_update"
    POSITION_UPDATE = "position_update"
    BALANCE_SNAPSHOT = "balance_snapshot"
    BALANCE_UPDATE = "balance_update"
    MARKET_DATA = "market_data"
    MARKET_DATA_LITE = "market_data_lite"
    TRADE = "trade"


# Payload attribute per kind, in discrimination order.
_PAYLOAD_FIELDS = (
    (MessageKind.ORDER_SNAPSHOT, "order_subscription_snapshot"),
    (MessageKind.ORDER_UPDATE, "order_subscription_update"),
    (MessageKind.POSITION_UPDATE, "position_subscription"),
    (MessageKind.BALANCE_SNAPSHOT, "account_balances_snapshot"),
    (MessageKind.BALANCE_UPDATE, "account_balances_update"),
    (MessageKind.MARKET_DATA, "market_data"),
    (MessageKind.MARKET_DATA_LITE, "market_data_lite"),
    (MessageKind.TRADE, "trade"),
)


class InboundMessage(ApiModel):
    """
    A decoded inbound frame.

    At most one payload field is populated. ``heartbeat`` is set (to any
    non-null value, usually ``{}``) on keep-alive frames.

    Attributes:
        request_id: Correlation id echoed by the server, if any.
        subscription_type: Server's name for the subscription, if any.
        error: Error text for a rejected request.
    """

    request_id: Optional[str] = None
    subscription_type: Optional[str] = None
    error: Optional[str] = None
    heartbeat: Optional[Any] = None

    order_subscription_snapshot: Optional[OrderSnapshot] = None
    order_subscription_update: Optional[OrderUpdate] = None
    position_subscription: Optional[PositionUpdate] = None
    account_balances_snapshot: Optional[BalanceSnapshot] = None
    account_balances_update: Optional[BalanceUpdate] = None
    market_data: Optional[MarketDataUpdate] = None
    market_data_lite: Optional[MarketDataLiteUpdate] = None
    trade: Optional[TradeUpdate] = None

    @property
    def kind(self) -> Optional[MessageKind]:
        """
        Classify the frame.

        Returns:
            Optional[MessageKind]: The populated variant, or None for
                frames that carry no known payload (e.g. acknowledgements).
                A heartbeat wins over every other field, so it is never
                surfaced as an error.
        """
        if self.heartbeat is not None:
            return MessageKind.HEARTBEAT
        if self.error:
            return MessageKind.ERROR
        for kind, attr in _PAYLOAD_FIELDS:
            if getattr(self, attr) is not None:
                return kind
        return None

    @property
    def payload(self) -> Optional[ApiModel]:
        """The populated payload model, or None."""
        for _, attr in _PAYLOAD_FIELDS:
            value = getattr(self, attr)
            if value is not None:
                return value
        return None
