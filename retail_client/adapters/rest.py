"""
Retail REST API client.

Signed request/response calls for markets, account, portfolio and order
endpoints. Every request carries fresh Ed25519 headers over
``{timestamp}{METHOD}{path}``; query parameters are sent separately and
are not part of the signature.

Endpoints:
    GET  /v1/markets                        list markets
    GET  /v1/market/slug/{slug}             market by slug
    GET  /v1/markets/{slug}/settlement      settlement value
    GET  /v1/account/balances               balances
    GET  /v1/portfolio/positions            positions
    GET  /v1/portfolio/activities           activity history
    POST /v1/orders                         create order
    POST /v1/order/preview                  preview order
    GET  /v1/orders/open                    open orders
    GET  /v1/order/{id}                     order by id
    POST /v1/order/{id}/cancel              cancel order
    POST /v1/orders/open/cancel             cancel all open orders

Errors:
    - Non-2xx: ApiError(status, body)
    - 429: RateLimitError (carries retry_after)
    - Network failure or timeout: ConnectionError
"""

import asyncio
import json
import ssl
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote, unquote

import aiohttp
import structlog
from pydantic import ValidationError

from retail_client.auth.signer import RequestSigner, load_signing_key
from retail_client.config.models import ClientConfig
from retail_client.errors import ApiError, RateLimitError
from retail_client.models.account import (
    GetActivitiesResponse,
    GetBalancesResponse,
    GetPositionsResponse,
)
from retail_client.models.markets import GetMarketsResponse, Market, MarketSettlement
from retail_client.models.orders import (
    CancelOpenOrdersRequest,
    CancelOpenOrdersResponse,
    CancelOrderRequest,
    CreateOrderRequest,
    CreateOrderResponse,
    GetOpenOrdersResponse,
    GetOrderResponse,
    PreviewOrderRequest,
    PreviewOrderResponse,
)

logger = structlog.get_logger(__name__)


def _segment(value: str) -> str:
    """Escape one URL path segment."""
    return quote(value, safe="")


class RetailRestClient:
    """
    Async REST API client for the retail venue.

    Attributes:
        base_url: REST API base URL.
        rate_limit_per_second: Maximum requests per second.
        timeout_seconds: Total request timeout.

    Example:
        >>> client = RetailRestClient("https://api.polymarket.us", signer)
        >>> markets = await client.get_markets(limit=10, active=True)
        >>> for market in markets.markets:
        ...     print(market.slug, market.best_bid, market.best_ask)
        >>> await client.close()
    """

    def __init__(
        self,
        base_url: str,
        signer: RequestSigner,
        rate_limit_per_second: int = 10,
        timeout_seconds: float = 30.0,
        insecure_skip_verify: bool = False,
    ):
        """
        Initialize REST client.

        Args:
            base_url: REST API base URL.
            signer: Produces signed headers for each request.
            rate_limit_per_second: Maximum requests per second.
            timeout_seconds: Request timeout in seconds.
            insecure_skip_verify: Skip TLS verification (staging only).
        """
        self.base_url = base_url.rstrip("/")
        self.rate_limit_per_second = rate_limit_per_second
        self.timeout_seconds = timeout_seconds
        self.insecure_skip_verify = insecure_skip_verify

        self._signer = signer
        self._session: Optional[aiohttp.ClientSession] = None
        self._last_request_time: float = 0.0
        self._request_interval = 1.0 / rate_limit_per_second
        self._rate_lock = asyncio.Lock()

        logger.info(
            "rest_client_initialized",
            base_url=self.base_url,
            rate_limit=rate_limit_per_second,
            insecure_skip_verify=insecure_skip_verify,
        )

    @classmethod
    def from_config(
        cls, config: ClientConfig, signer: Optional[RequestSigner] = None
    ) -> "RetailRestClient":
        """Build a client from loaded configuration."""
        if signer is None:
            key = load_signing_key(config.credentials.private_key.get_secret_value())
            signer = RequestSigner(config.credentials.api_key, key)
        return cls(
            config.endpoints.base_url,
            signer,
            rate_limit_per_second=config.rest.rate_limit_per_second,
            timeout_seconds=config.rest.timeout_seconds,
            insecure_skip_verify=config.endpoints.insecure_skip_verify,
        )

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure aiohttp session is created."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            connector = None
            if self.insecure_skip_verify:
                context = ssl.create_default_context()
                context.check_hostname = False
                context.verify_mode = ssl.CERT_NONE
                connector = aiohttp.TCPConnector(ssl=context)
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                connector=connector,
                headers={"User-Agent": "retail-client/0.1"},
            )
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            logger.debug("rest_client_session_closed", base_url=self.base_url)

    async def __aenter__(self) -> "RetailRestClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _rate_limit(self) -> None:
        """
        Apply rate limiting using simple time-based throttling.

        Ensures minimum interval between requests.
        """
        async with self._rate_lock:
            loop = asyncio.get_running_loop()
            time_since_last = loop.time() - self._last_request_time

            if time_since_last < self._request_interval:
                await asyncio.sleep(self._request_interval - time_since_last)

            self._last_request_time = loop.time()

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Make a signed HTTP request.

        Args:
            method: HTTP method (GET, POST).
            path: API path, without query string. Segments arrive
                percent-escaped; the signature covers the decoded path.
            params: Query parameters.
            body: JSON body.

        Returns:
            Any: Parsed JSON response, or None for an empty body.

        Raises:
            RateLimitError: If rate limited (HTTP 429).
            ApiError: On any other non-2xx status.
            ConnectionError: If the request fails or times out.
        """
        await self._rate_limit()

        session = await self._ensure_session()
        url = f"{self.base_url}{path}"
        headers = self._signer.rest_headers(method, unquote(path))
        data = None
        if body is not None:
            headers["Content-Type"] = "application/json"
            data = json.dumps(body)

        try:
            async with session.request(
                method, url, params=params, data=data, headers=headers
            ) as response:
                text = await response.text()

                if response.status == 429:
                    try:
                        retry_after = int(response.headers.get("Retry-After", 60))
                    except ValueError:
                        retry_after = 60
                    logger.warning(
                        "rest_rate_limited",
                        path=path,
                        retry_after=retry_after,
                    )
                    raise RateLimitError(response.status, text, retry_after=retry_after)

                if response.status < 200 or response.status >= 300:
                    logger.error(
                        "rest_request_failed",
                        method=method,
                        path=path,
                        status=response.status,
                        error=text[:500],
                    )
                    raise ApiError(response.status, text)

                logger.debug("rest_request_ok", method=method, path=path, status=response.status)
                if not text.strip():
                    return None
                return json.loads(text)

        except aiohttp.ClientError as e:
            logger.error("rest_client_error", method=method, path=path, error=str(e))
            raise ConnectionError(f"REST request failed: {e}") from e
        except asyncio.TimeoutError as e:
            logger.error("rest_timeout", method=method, path=path, timeout=self.timeout_seconds)
            raise ConnectionError(
                f"REST request timeout after {self.timeout_seconds}s"
            ) from e
        except json.JSONDecodeError as e:
            logger.error("rest_invalid_json", method=method, path=path, error=str(e))
            raise ValueError(f"failed to parse response from {path}: {e}") from e

    @staticmethod
    def _parse(model, data: Any, path: str):
        """Validate a response body into ``model``."""
        try:
            return model.model_validate(data if data is not None else {})
        except ValidationError as e:
            logger.error("rest_response_invalid", path=path, error=str(e))
            raise ValueError(f"failed to parse response from {path}: {e}") from e

    # =========================================================================
    # MARKETS
    # =========================================================================

    async def get_markets(
        self, limit: int = 0, active: Optional[bool] = None
    ) -> GetMarketsResponse:
        """
        List markets.

        Args:
            limit: Maximum markets to return; 0 for the server default.
            active: Filter on active status; None for no filter.
        """
        params: Dict[str, str] = {}
        if limit > 0:
            params["limit"] = str(limit)
        if active is not None:
            params["active"] = "true" if active else "false"
        path = "/v1/markets"
        return self._parse(GetMarketsResponse, await self._request("GET", path, params), path)

    async def get_market_by_slug(self, slug: str) -> Market:
        """
        Fetch one market by slug.

        Raises:
            ApiError: 404 if the market does not exist.
        """
        path = f"/v1/market/slug/{_segment(slug)}"
        data = await self._request("GET", path)
        if isinstance(data, dict) and isinstance(data.get("market"), dict):
            data = data["market"]
        return self._parse(Market, data, path)

    async def get_market_settlement(self, slug: str) -> MarketSettlement:
        """Fetch the settlement value of a resolved market."""
        path = f"/v1/markets/{_segment(slug)}/settlement"
        return self._parse(MarketSettlement, await self._request("GET", path), path)

    # =========================================================================
    # ACCOUNT AND PORTFOLIO
    # =========================================================================

    async def get_balances(self) -> GetBalancesResponse:
        """Fetch account balances."""
        path = "/v1/account/balances"
        return self._parse(GetBalancesResponse, await self._request("GET", path), path)

    async def get_positions(
        self, market: str = "", limit: int = 0, cursor: str = ""
    ) -> GetPositionsResponse:
        """
        Fetch positions, keyed by market slug.

        Args:
            market: Restrict to one market slug.
            limit: Page size; 0 for the server default.
            cursor: Pagination cursor from a previous page.
        """
        params: Dict[str, str] = {}
        if market:
            params["market"] = market
        if limit > 0:
            params["limit"] = str(limit)
        if cursor:
            params["cursor"] = cursor
        path = "/v1/portfolio/positions"
        return self._parse(GetPositionsResponse, await self._request("GET", path, params), path)

    async def get_activities(
        self,
        market_slug: str = "",
        types: Optional[Sequence[str]] = None,
        limit: int = 0,
        cursor: str = "",
        sort_order: str = "",
    ) -> GetActivitiesResponse:
        """
        Fetch activity history (trades, resolutions, balance changes).

        Args:
            market_slug: Restrict to one market.
            types: Activity types to include.
            limit: Page size; 0 for the server default.
            cursor: Pagination cursor.
            sort_order: Server sort order name.
        """
        params: Dict[str, str] = {}
        if market_slug:
            params["marketSlug"] = market_slug
        if types:
            params["types"] = ",".join(types)
        if limit > 0:
            params["limit"] = str(limit)
        if cursor:
            params["cursor"] = cursor
        if sort_order:
            params["sortOrder"] = sort_order
        path = "/v1/portfolio/activities"
        return self._parse(GetActivitiesResponse, await self._request("GET", path, params), path)

    # =========================================================================
    # ORDERS
    # =========================================================================

    async def create_order(self, request: CreateOrderRequest) -> CreateOrderResponse:
        """
        Place an order.

        Example:
            >>> resp = await client.create_order(CreateOrderRequest(
            ...     market_slug="will-it-rain",
            ...     intent=OrderIntentRequest.BUY_YES,
            ...     type=OrderTypeRequest.LIMIT,
            ...     price=Amount(value=Decimal("0.01")),
            ...     quantity=Decimal("10"),
            ...     tif=TimeInForceRequest.GTC,
            ... ))
            >>> print(resp.id)
        """
        path = "/v1/orders"
        data = await self._request("POST", path, body=request.to_wire())
        response = self._parse(CreateOrderResponse, data, path)
        logger.info(
            "order_created",
            order_id=response.id,
            market=request.market_slug,
            executions=len(response.executions),
        )
        return response

    async def preview_order(self, request: CreateOrderRequest) -> PreviewOrderResponse:
        """Preview an order without placing it."""
        path = "/v1/order/preview"
        body = PreviewOrderRequest(request=request).to_wire()
        return self._parse(PreviewOrderResponse, await self._request("POST", path, body=body), path)

    async def get_open_orders(
        self, slugs: Optional[Sequence[str]] = None
    ) -> GetOpenOrdersResponse:
        """List open orders, optionally restricted to some markets."""
        params: Dict[str, str] = {}
        if slugs:
            params["slugs"] = ",".join(slugs)
        path = "/v1/orders/open"
        return self._parse(GetOpenOrdersResponse, await self._request("GET", path, params), path)

    async def get_order(self, order_id: str) -> GetOrderResponse:
        """Fetch one order by id."""
        path = f"/v1/order/{_segment(order_id)}"
        return self._parse(GetOrderResponse, await self._request("GET", path), path)

    async def cancel_order(self, order_id: str, market_slug: str = "") -> None:
        """
        Cancel one order.

        Raises:
            ApiError: If the order cannot be cancelled.
        """
        path = f"/v1/order/{_segment(order_id)}/cancel"
        body = CancelOrderRequest(market_slug=market_slug or None).to_wire()
        await self._request("POST", path, body=body)
        logger.info("order_cancelled", order_id=order_id, market=market_slug)

    async def cancel_all_open_orders(
        self, slugs: Optional[List[str]] = None
    ) -> CancelOpenOrdersResponse:
        """Cancel all open orders, optionally restricted to some markets."""
        path = "/v1/orders/open/cancel"
        body = CancelOpenOrdersRequest(slugs=slugs).to_wire()
        response = self._parse(
            CancelOpenOrdersResponse, await self._request("POST", path, body=body), path
        )
        logger.info("open_orders_cancelled", count=len(response.canceled_order_ids))
        return response

    def __repr__(self) -> str:
        """Return string representation."""
        return f"RetailRestClient(base_url={self.base_url})"
