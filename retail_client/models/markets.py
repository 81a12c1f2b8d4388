"""
Market reference data models.

Models:
    Market: A tradable binary market
    GetMarketsResponse: Market listing
    MarketSettlement: Settlement value of a resolved market
"""

from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from retail_client.models.common import ApiModel


class Market(ApiModel):
    """
    A binary prediction market.

    Prices are probabilities in [0, 1]. Volume windows are USD notionals.

    Example:
        >>> market = Market.model_validate(
        ...     {"id": "1", "slug": "will-it-rain", "question": "Will it rain?",
        ...      "active": True, "bestBid": 0.42, "bestAsk": 0.44}
        ... )
    """

    id: str = Field(..., description="Market ID")
    slug: str = Field(..., description="Market slug")
    question: str = Field(default="", description="Market question")
    description: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    active: bool = False
    closed: bool = False
    archived: bool = False
    last_trade_price: Optional[Decimal] = None
    best_bid: Optional[Decimal] = None
    best_ask: Optional[Decimal] = None
    spread: Optional[Decimal] = None
    one_day_price_change: Optional[Decimal] = None
    one_week_price_change: Optional[Decimal] = None
    liquidity: Optional[str] = None
    liquidity_num: Optional[Decimal] = None
    volume: Optional[str] = None
    volume_num: Optional[Decimal] = None
    # Explicit aliases: the camelCase generator would produce "volume24Hr".
    volume_24hr: Optional[Decimal] = Field(default=None, alias="volume24hr")
    volume_1wk: Optional[Decimal] = Field(default=None, alias="volume1wk")
    volume_1mo: Optional[Decimal] = Field(default=None, alias="volume1mo")
    sports_market_type_v2: Optional[str] = Field(default=None, alias="sportsMarketTypeV2")
    game_id: Optional[str] = None
    line: Optional[float] = None
    prop_type: Optional[str] = None
    outcome_team_a: Optional[int] = Field(default=None, alias="outcomeTeamA")
    outcome_team_b: Optional[int] = Field(default=None, alias="outcomeTeamB")

    @property
    def is_tradable(self) -> bool:
        """Check if the market accepts orders."""
        return self.active and not self.closed and not self.archived


class GetMarketsResponse(ApiModel):
    """Response from GET /v1/markets."""

    markets: List[Market] = Field(default_factory=list)


class MarketSettlement(ApiModel):
    """Settlement value of a market: 1 if YES won, 0 if NO won."""

    slug: str
    settlement: Decimal
