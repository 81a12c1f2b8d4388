"""
Shared value types and enumerations for the retail API.

The API uses two encodings for the same concepts: responses carry string
enums ("ORDER_SIDE_BUY"), requests carry integer codes (1 = limit order).
Both are modelled here. Response models keep these fields as plain strings
and compare against the string enums, so an unknown server value never
fails decoding.

Models:
    ApiModel: Base for response payloads (camelCase wire names, extra ignored)
    Amount: Monetary amount with currency
    MarketMetadata: Market descriptor attached to orders and positions
"""

from decimal import Decimal
from enum import Enum, IntEnum
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """
    Base model for API payloads.

    Wire names are camelCase; Python attributes are snake_case. Fields the
    client does not know about are ignored rather than rejected.
    """

    model_config = {
        "frozen": True,
        "extra": "ignore",
        "populate_by_name": True,
        "alias_generator": to_camel,
    }


# =============================================================================
# RESPONSE ENUMS (string encoded)
# =============================================================================


class OrderType(str, Enum):
    """Order type as reported in responses."""

    LIMIT = "ORDER_TYPE_LIMIT"
    MARKET = "ORDER_TYPE_MARKET"


class OrderSide(str, Enum):
    """Order side as reported in responses."""

    BUY = "ORDER_SIDE_BUY"
    SELL = "ORDER_SIDE_SELL"


class OrderIntent(str, Enum):
    """Position direction of an order."""

    BUY_LONG = "ORDER_INTENT_BUY_LONG"
    SELL_LONG = "ORDER_INTENT_SELL_LONG"
    BUY_SHORT = "ORDER_INTENT_BUY_SHORT"
    SELL_SHORT = "ORDER_INTENT_SELL_SHORT"


class TimeInForce(str, Enum):
    """Order duration as reported in responses."""

    GOOD_TILL_CANCEL = "TIME_IN_FORCE_GOOD_TILL_CANCEL"
    GOOD_TILL_DATE = "TIME_IN_FORCE_GOOD_TILL_DATE"
    IMMEDIATE_OR_CANCEL = "TIME_IN_FORCE_IMMEDIATE_OR_CANCEL"
    FILL_OR_KILL = "TIME_IN_FORCE_FILL_OR_KILL"


class OrderState(str, Enum):
    """
    Lifecycle state of an order.

    Terminal states are FILLED, CANCELED, REJECTED, EXPIRED and REPLACED.
    """

    PENDING_NEW = "ORDER_STATE_PENDING_NEW"
    PARTIALLY_FILLED = "ORDER_STATE_PARTIALLY_FILLED"
    FILLED = "ORDER_STATE_FILLED"
    CANCELED = "ORDER_STATE_CANCELED"
    REJECTED = "ORDER_STATE_REJECTED"
    EXPIRED = "ORDER_STATE_EXPIRED"
    PENDING_CANCEL = "ORDER_STATE_PENDING_CANCEL"
    PENDING_REPLACE = "ORDER_STATE_PENDING_REPLACE"
    PENDING_RISK = "ORDER_STATE_PENDING_RISK"
    REPLACED = "ORDER_STATE_REPLACED"

    @property
    def is_terminal(self) -> bool:
        """Check if no further executions can occur."""
        return self in (
            OrderState.FILLED,
            OrderState.CANCELED,
            OrderState.REJECTED,
            OrderState.EXPIRED,
            OrderState.REPLACED,
        )


class ExecutionType(str, Enum):
    """Type of an order execution report."""

    PARTIAL_FILL = "EXECUTION_TYPE_PARTIAL_FILL"
    FILL = "EXECUTION_TYPE_FILL"
    CANCELED = "EXECUTION_TYPE_CANCELED"
    REJECTED = "EXECUTION_TYPE_REJECTED"
    EXPIRED = "EXECUTION_TYPE_EXPIRED"
    REPLACE = "EXECUTION_TYPE_REPLACE"
    DONE_FOR_DAY = "EXECUTION_TYPE_DONE_FOR_DAY"


class MarketState(str, Enum):
    """Trading state of a market on the markets stream."""

    OPEN = "MARKET_STATE_OPEN"
    PREOPEN = "MARKET_STATE_PREOPEN"
    SUSPENDED = "MARKET_STATE_SUSPENDED"
    HALTED = "MARKET_STATE_HALTED"
    EXPIRED = "MARKET_STATE_EXPIRED"
    TERMINATED = "MARKET_STATE_TERMINATED"


class LedgerEntryType(str, Enum):
    """Ledger entry types on balance and position updates."""

    ORDER_EXECUTION = "LEDGER_ENTRY_TYPE_ORDER_EXECUTION"
    DEPOSIT = "LEDGER_ENTRY_TYPE_DEPOSIT"
    WITHDRAWAL = "LEDGER_ENTRY_TYPE_WITHDRAWAL"
    RESOLUTION = "LEDGER_ENTRY_TYPE_RESOLUTION"
    COMMISSION = "LEDGER_ENTRY_TYPE_COMMISSION"


# =============================================================================
# REQUEST ENUMS (integer encoded)
# =============================================================================


class OrderTypeRequest(IntEnum):
    """Order type code for requests."""

    LIMIT = 1
    MARKET = 2


class OrderIntentRequest(IntEnum):
    """Order intent code for requests."""

    BUY_YES = 1
    SELL_YES = 2
    BUY_NO = 3
    SELL_NO = 4


class TimeInForceRequest(IntEnum):
    """Time-in-force code for requests."""

    GTC = 1  # Good till cancel
    GTD = 2  # Good till date
    IOC = 3  # Immediate or cancel
    FOK = 4  # Fill or kill


# =============================================================================
# VALUE TYPES
# =============================================================================


class Amount(ApiModel):
    """
    Monetary amount with currency.

    Example:
        >>> Amount(value=Decimal("0.55"), currency="USD")
    """

    value: Decimal = Field(
        ...,
        description="Decimal amount",
        examples=["0.55"],
    )
    currency: str = Field(
        default="USD",
        description="Currency code",
    )


class MarketMetadata(ApiModel):
    """Market descriptor attached to orders and positions."""

    slug: str = Field(..., description="Market slug")
    icon: Optional[str] = None
    title: Optional[str] = None
    outcome: Optional[str] = None
    event_slug: Optional[str] = None


def amount_value(amount: Optional[Amount]) -> str:
    """Render an optional amount's value for display, "N/A" when absent."""
    if amount is None:
        return "N/A"
    return str(amount.value)
