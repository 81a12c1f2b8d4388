"""
Account and portfolio models.

Models:
    Balance: Account balance for one currency
    PendingWithdrawal: Withdrawal awaiting settlement
    GetBalancesResponse: Response from the balances endpoint
    UserPosition: A position in one market
    GetPositionsResponse: Positions keyed by market slug, paginated
    Activity: One portfolio activity entry (trade, resolution or balance change)
    GetActivitiesResponse: Paginated activity list
"""

from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import Field

from retail_client.models.common import Amount, ApiModel, MarketMetadata


class PendingWithdrawal(ApiModel):
    """A withdrawal that has not settled yet."""

    id: str
    balance: Decimal = Decimal("0")
    status: str = ""
    creation_time: Optional[str] = None


class Balance(ApiModel):
    """
    Account balance for one currency.

    Attributes:
        current_balance: Ledger balance.
        buying_power: Funds available for new orders.
        open_orders: Funds reserved by resting orders.
    """

    current_balance: Decimal = Field(default=Decimal("0"), description="Ledger balance")
    currency: str = Field(default="USD", description="Currency code")
    buying_power: Decimal = Field(default=Decimal("0"), description="Funds available to trade")
    asset_notional: Decimal = Decimal("0")
    asset_available: Decimal = Decimal("0")
    pending_credit: Decimal = Decimal("0")
    open_orders: Decimal = Decimal("0")
    unsettled_funds: Decimal = Decimal("0")
    margin_requirement: Decimal = Decimal("0")
    last_updated: Optional[str] = None
    pending_withdrawals: List[PendingWithdrawal] = Field(default_factory=list)


class GetBalancesResponse(ApiModel):
    """Response from GET /v1/account/balances."""

    balances: List[Balance] = Field(default_factory=list)


class UserPosition(ApiModel):
    """
    A user's position in one market.

    Share quantities arrive as decimal strings; a negative net position
    is short.
    """

    net_position: Decimal = Field(default=Decimal("0"), description="Net shares held")
    qty_bought: Decimal = Decimal("0")
    qty_sold: Decimal = Decimal("0")
    cost: Optional[Amount] = None
    realized: Optional[Amount] = None
    bod_position: Decimal = Field(default=Decimal("0"), description="Beginning-of-day position")
    expired: bool = False
    update_time: Optional[str] = None
    cash_value: Optional[Amount] = None
    qty_available: Decimal = Decimal("0")
    market_metadata: Optional[MarketMetadata] = None


class GetPositionsResponse(ApiModel):
    """
    Response from GET /v1/portfolio/positions.

    Positions are keyed by market slug. ``next_cursor`` is set while more
    pages remain.
    """

    positions: Dict[str, UserPosition] = Field(default_factory=dict)
    next_cursor: Optional[str] = None
    eof: bool = False
    available_positions: List[str] = Field(default_factory=list)


class Trade(ApiModel):
    """A trade in the user's activity history."""

    id: str
    market_slug: str = ""
    state: str = ""
    create_time: Optional[str] = None
    update_time: Optional[str] = None
    price: Optional[Amount] = None
    qty: Decimal = Decimal("0")
    is_aggressor: bool = False
    cost_basis: Optional[Amount] = None
    realized_pnl: Optional[Amount] = None


class PositionResolution(ApiModel):
    """A position change caused by market resolution."""

    market_slug: str = ""
    before_position: Optional[UserPosition] = None
    after_position: Optional[UserPosition] = None
    update_time: Optional[str] = None
    trade_id: Optional[str] = None
    side: Optional[str] = None


class AccountBalanceChange(ApiModel):
    """A deposit, withdrawal or other cash movement."""

    transaction_id: str = ""
    status: str = ""
    amount: Optional[Amount] = None
    update_time: Optional[str] = None
    create_time: Optional[str] = None


class Activity(ApiModel):
    """
    One portfolio activity entry.

    ``type`` names the activity; at most one of the detail fields is set.
    """

    type: str = ""
    trade: Optional[Trade] = None
    position_resolution: Optional[PositionResolution] = None
    account_balance_change: Optional[AccountBalanceChange] = None


class GetActivitiesResponse(ApiModel):
    """Response from GET /v1/portfolio/activities."""

    activities: List[Activity] = Field(default_factory=list)
    next_cursor: Optional[str] = None
    eof: bool = False
