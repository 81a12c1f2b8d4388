"""
Pydantic data models for the retail client.

All monetary values and quantities use Decimal.

Modules:
    common: Shared value types and enumerations
    orders: Order requests, responses and executions
    account: Balances, positions and activity history
    markets: Market reference data
    stream: Subscription frames and inbound stream payloads
    health: Streaming session health snapshots

Example:
    >>> from retail_client.models import CreateOrderRequest, OrderIntentRequest
    >>> from retail_client.models import InboundMessage, MessageKind
"""

# Common models
from retail_client.models.common import (
    Amount,
    ApiModel,
    ExecutionType,
    LedgerEntryType,
    MarketMetadata,
    MarketState,
    OrderIntent,
    OrderIntentRequest,
    OrderSide,
    OrderState,
    OrderType,
    OrderTypeRequest,
    TimeInForce,
    TimeInForceRequest,
    amount_value,
)

# Order models
from retail_client.models.orders import (
    CancelOpenOrdersRequest,
    CancelOpenOrdersResponse,
    CancelOrderRequest,
    CreateOrderRequest,
    CreateOrderResponse,
    Execution,
    GetOpenOrdersResponse,
    GetOrderResponse,
    Order,
    PreviewOrderRequest,
    PreviewOrderResponse,
)

# Account models
from retail_client.models.account import (
    AccountBalanceChange,
    Activity,
    Balance,
    GetActivitiesResponse,
    GetBalancesResponse,
    GetPositionsResponse,
    PendingWithdrawal,
    PositionResolution,
    Trade,
    UserPosition,
)

# Market models
from retail_client.models.markets import (
    GetMarketsResponse,
    Market,
    MarketSettlement,
)

# Stream models
from retail_client.models.stream import (
    MARKETS_STREAM_PATH,
    PRIVATE_STREAM_PATH,
    BalanceChange,
    BalanceSnapshot,
    BalanceUpdate,
    BookLevel,
    InboundMessage,
    MarketDataLiteUpdate,
    MarketDataUpdate,
    MarketStats,
    MessageKind,
    OrderSnapshot,
    OrderUpdate,
    PositionUpdate,
    SessionState,
    SubscriptionKind,
    SubscriptionRequest,
    TradeParty,
    TradeUpdate,
    UnsubscribeRequest,
)

# Health models
from retail_client.models.health import (
    SessionHealth,
    SocketHealth,
)

__all__ = [
    # Common
    "Amount",
    "ApiModel",
    "ExecutionType",
    "LedgerEntryType",
    "MarketMetadata",
    "MarketState",
    "OrderIntent",
    "OrderIntentRequest",
    "OrderSide",
    "OrderState",
    "OrderType",
    "OrderTypeRequest",
    "TimeInForce",
    "TimeInForceRequest",
    "amount_value",
    # Orders
    "CancelOpenOrdersRequest",
    "CancelOpenOrdersResponse",
    "CancelOrderRequest",
    "CreateOrderRequest",
    "CreateOrderResponse",
    "Execution",
    "GetOpenOrdersResponse",
    "GetOrderResponse",
    "Order",
    "PreviewOrderRequest",
    "PreviewOrderResponse",
    # Account
    "AccountBalanceChange",
    "Activity",
    "Balance",
    "GetActivitiesResponse",
    "GetBalancesResponse",
    "GetPositionsResponse",
    "PendingWithdrawal",
    "PositionResolution",
    "Trade",
    "UserPosition",
    # Markets
    "GetMarketsResponse",
    "Market",
    "MarketSettlement",
    # Stream
    "MARKETS_STREAM_PATH",
    "PRIVATE_STREAM_PATH",
    "BalanceChange",
    "BalanceSnapshot",
    "BalanceUpdate",
    "BookLevel",
    "InboundMessage",
    "MarketDataLiteUpdate",
    "MarketDataUpdate",
    "MarketStats",
    "MessageKind",
    "OrderSnapshot",
    "OrderUpdate",
    "PositionUpdate",
    "SessionState",
    "SubscriptionKind",
    "SubscriptionRequest",
    "TradeParty",
    "TradeUpdate",
    "UnsubscribeRequest",
    # Health
    "SessionHealth",
    "SocketHealth",
]
