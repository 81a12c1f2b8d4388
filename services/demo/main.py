"""
Retail client demo.

Walks through the REST and streaming APIs against a live venue:
market lookup, balances and positions, stream subscriptions, a resting
limit order placed far from the market and then cancelled, activity
history and a summary of the market data received.

Every step is independent: a failure is logged as a warning and the
workflow moves on. SIGINT/SIGTERM stop the workflow early; the streaming
session and REST client are closed either way.

Usage:
    python -m services.demo.main
    retail-demo

Environment Variables:
    POLYMARKET_API_KEY: API key id (or TEST_API_KEY_ID)
    POLYMARKET_PRIVATE_KEY: Base64 Ed25519 key (or TEST_API_SECRET_KEY)
    POLYMARKET_SYMBOL: Market slug to trade (or TEST_MARKET_SLUG)
    POLYMARKET_BASE_URL: REST base URL (default: https://api.polymarket.us)
    LOG_LEVEL: Logging level (default: INFO)
    CONFIG_PATH: Optional YAML settings file
"""

import asyncio
import signal
import sys
from collections import deque
from decimal import Decimal
from typing import Any, Awaitable, Deque, List, Optional

import structlog

from retail_client.adapters.rest import RetailRestClient
from retail_client.adapters.stream import StreamingSession
from retail_client.auth.signer import RequestSigner, load_signing_key
from retail_client.config import ClientConfig, ConfigLoadError, load_config
from retail_client.logging_config import setup_logging
from retail_client.models import (
    Amount,
    CreateOrderRequest,
    InboundMessage,
    MessageKind,
    OrderIntentRequest,
    OrderTypeRequest,
    TimeInForceRequest,
    amount_value,
)

logger = structlog.get_logger(__name__)

# Far below any realistic ask, so the order rests on the book.
DEMO_ORDER_PRICE = Decimal("0.01")
DEMO_ORDER_QUANTITY = Decimal("10")
SUMMARY_SIZE = 10


def truncate(text: str, max_len: int) -> str:
    """Shorten ``text`` to ``max_len`` characters, ending in ``...`` if cut."""
    if len(text) <= max_len:
        return text
    if max_len <= 3:
        return text[:max_len]
    return text[: max_len - 3] + "..."


def summarize(message: InboundMessage) -> Optional[str]:
    """One-line summary of a market-side message, or None for other kinds."""
    kind = message.kind
    if kind is MessageKind.MARKET_DATA:
        md = message.market_data
        return f"{md.market_slug}: {len(md.bids)} bids, {len(md.offers)} offers, state={md.state}"
    if kind is MessageKind.MARKET_DATA_LITE:
        lite = message.market_data_lite
        return (
            f"{lite.market_slug}: bid={amount_value(lite.best_bid)} "
            f"ask={amount_value(lite.best_ask)}"
        )
    if kind is MessageKind.TRADE:
        trade = message.trade
        return (
            f"{trade.market_slug}: trade @ {amount_value(trade.price)} "
            f"qty={amount_value(trade.quantity)} at {trade.trade_time}"
        )
    return None


class DemoWorkflow:
    """
    Runs the demo steps in order against one market.

    Attributes:
        config: Loaded client configuration.
        rest: REST client.
        stream: Streaming session.
        shutdown_event: Set by signal handlers to stop early.
        summaries: Last market-side message summaries.
    """

    def __init__(
        self,
        config: ClientConfig,
        rest: Optional[RetailRestClient] = None,
        stream: Optional[StreamingSession] = None,
    ) -> None:
        self.config = config
        self.symbol = config.symbol

        signer = None
        if rest is None or stream is None:
            key = load_signing_key(config.credentials.private_key.get_secret_value())
            signer = RequestSigner(config.credentials.api_key, key)
        self.rest = rest or RetailRestClient.from_config(config, signer=signer)
        self.stream = stream or StreamingSession.from_config(config, signer=signer)

        self.shutdown_event = asyncio.Event()
        self.summaries: Deque[str] = deque(maxlen=SUMMARY_SIZE)
        self.message_count = 0
        self.order_id: Optional[str] = None
        self.failed_steps: List[str] = []
        self._consumer_task: Optional[asyncio.Task] = None

    def request_shutdown(self) -> None:
        """Stop the workflow after the current step."""
        if not self.shutdown_event.is_set():
            logger.info("demo_shutdown_requested")
            self.shutdown_event.set()

    async def _step(self, name: str, action: Awaitable[Any]) -> Any:
        """Run one step; log and continue on failure."""
        try:
            return await action
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.failed_steps.append(name)
            logger.warning("demo_step_failed", step=name, error=str(e), error_type=type(e).__name__)
            return None

    async def _pause(self, seconds: float) -> None:
        """Sleep, waking early on shutdown."""
        try:
            await asyncio.wait_for(self.shutdown_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def _consume(self) -> None:
        """Drain the stream and keep market-data summaries."""
        async for message in self.stream.messages():
            self.message_count += 1
            kind = message.kind
            if kind is MessageKind.ERROR:
                logger.warning("stream_error_message", request_id=message.request_id, error=message.error)
                continue

            summary = summarize(message)
            if summary is not None:
                self.summaries.append(summary)
                continue

            if kind is MessageKind.ORDER_SNAPSHOT:
                logger.info("order_snapshot", orders=len(message.order_subscription_snapshot.orders))
            elif kind is MessageKind.ORDER_UPDATE:
                execution = message.order_subscription_update.execution
                logger.info(
                    "order_update",
                    execution_type=execution.type if execution else None,
                    order_id=execution.order.id if execution and execution.order else None,
                )
            elif kind is MessageKind.POSITION_UPDATE:
                after = message.position_subscription.after_position
                logger.info(
                    "position_update",
                    net_position=str(after.net_position) if after else None,
                )
            elif kind is MessageKind.BALANCE_SNAPSHOT:
                logger.info("balance_snapshot", balances=len(message.account_balances_snapshot.balances))
            elif kind is MessageKind.BALANCE_UPDATE:
                change = message.account_balances_update.balance_change
                logger.info(
                    "balance_update",
                    current_balance=(
                        str(change.after_balance.current_balance)
                        if change and change.after_balance
                        else None
                    ),
                )
            else:
                logger.debug("stream_message", request_id=message.request_id, kind=kind)

    # =========================================================================
    # STEPS
    # =========================================================================

    async def list_markets(self) -> None:
        response = await self.rest.get_markets(limit=10, active=True)
        logger.info("markets_listed", count=len(response.markets))
        for market in response.markets[:5]:
            logger.info(
                "market",
                slug=market.slug,
                question=truncate(market.question, 40),
                best_bid=str(market.best_bid),
                best_ask=str(market.best_ask),
            )

    async def show_market(self) -> None:
        market = await self.rest.get_market_by_slug(self.symbol)
        logger.info(
            "market_details",
            slug=market.slug,
            question=market.question,
            active=market.active,
            closed=market.closed,
            best_bid=str(market.best_bid),
            best_ask=str(market.best_ask),
            volume_24hr=str(market.volume_24hr),
        )

    async def show_balances(self, label: str) -> None:
        response = await self.rest.get_balances()
        for balance in response.balances:
            logger.info(
                "balance",
                when=label,
                currency=balance.currency,
                current_balance=str(balance.current_balance),
                buying_power=str(balance.buying_power),
                open_orders=str(balance.open_orders),
            )

    async def show_positions(self) -> None:
        response = await self.rest.get_positions(limit=10)
        logger.info("positions_listed", count=len(response.positions), eof=response.eof)
        for slug, position in response.positions.items():
            logger.info(
                "position",
                market=slug,
                net_position=str(position.net_position),
                cost=amount_value(position.cost),
                realized=amount_value(position.realized),
            )

    async def start_stream(self) -> None:
        await self.stream.connect()
        self._consumer_task = asyncio.create_task(self._consume(), name="demo-consumer")

    async def subscribe_private(self) -> None:
        await self.stream.subscribe_orders()
        await self.stream.subscribe_positions([self.symbol])
        await self.stream.subscribe_balances()

    async def subscribe_markets(self) -> None:
        await self.stream.subscribe_market_data([self.symbol], debounced=True)
        await self.stream.subscribe_trades([self.symbol])

    async def place_order(self) -> None:
        request = CreateOrderRequest(
            market_slug=self.symbol,
            intent=OrderIntentRequest.BUY_YES,
            type=OrderTypeRequest.LIMIT,
            price=Amount(value=DEMO_ORDER_PRICE, currency="USD"),
            quantity=DEMO_ORDER_QUANTITY,
            tif=TimeInForceRequest.GTC,
        )
        response = await self.rest.create_order(request)
        self.order_id = response.id
        logger.info("demo_order_placed", order_id=response.id, executions=len(response.executions))

    async def show_order(self) -> None:
        response = await self.rest.get_order(self.order_id)
        order = response.order
        if order is None:
            logger.warning("order_not_returned", order_id=self.order_id)
            return
        logger.info(
            "order_details",
            order_id=order.id,
            state=order.state,
            price=amount_value(order.price),
            quantity=str(order.quantity),
            leaves_quantity=str(order.leaves_quantity),
        )

    async def show_open_orders(self) -> None:
        response = await self.rest.get_open_orders()
        logger.info("open_orders_listed", count=len(response.orders))
        for order in response.orders:
            logger.info("open_order", order_id=order.id, market=order.market_slug, state=order.state)

    async def cancel_order(self) -> None:
        await self.rest.cancel_order(self.order_id, self.symbol)

    async def show_activities(self) -> None:
        response = await self.rest.get_activities(limit=5)
        logger.info("activities_listed", count=len(response.activities))
        for activity in response.activities:
            if activity.trade is not None:
                logger.info(
                    "activity_trade",
                    market=activity.trade.market_slug,
                    price=amount_value(activity.trade.price),
                    qty=str(activity.trade.qty),
                )
            elif activity.position_resolution is not None:
                logger.info(
                    "activity_position_resolution",
                    market=activity.position_resolution.market_slug,
                    side=activity.position_resolution.side,
                )
            elif activity.account_balance_change is not None:
                logger.info(
                    "activity_balance_change",
                    amount=amount_value(activity.account_balance_change.amount),
                    status=activity.account_balance_change.status,
                )
            else:
                logger.info("activity", type=activity.type)

    def show_summary(self) -> None:
        logger.info("market_data_summary", messages=self.message_count, recent=len(self.summaries))
        for line in self.summaries:
            logger.info("market_data_update", summary=line)

    # =========================================================================
    # RUN
    # =========================================================================

    async def run(self) -> None:
        """Run all steps, then close the stream and REST client."""
        logger.info(
            "demo_starting",
            api_key=self.config.credentials.api_key_prefix + "...",
            symbol=self.symbol,
            base_url=self.config.endpoints.base_url,
        )

        steps = [
            ("list_markets", self.list_markets),
            ("show_market", self.show_market),
            ("initial_balances", lambda: self.show_balances("initial")),
            ("positions", self.show_positions),
            ("connect_stream", self.start_stream),
            ("subscribe_private", self.subscribe_private),
            ("subscribe_markets", self.subscribe_markets),
            ("wait_for_market_data", lambda: self._pause(2)),
            ("place_order", self.place_order),
            ("wait_after_order", lambda: self._pause(3)),
            ("get_order", self.show_order),
            ("open_orders", self.show_open_orders),
            ("cancel_order", self.cancel_order),
            ("wait_after_cancel", lambda: self._pause(3)),
            ("final_balances", lambda: self.show_balances("final")),
            ("activities", self.show_activities),
        ]
        needs_order = {"get_order", "cancel_order"}

        try:
            for name, action in steps:
                if self.shutdown_event.is_set():
                    logger.info("demo_stopped_early", next_step=name)
                    break
                if name in needs_order and self.order_id is None:
                    logger.info("demo_step_skipped", step=name, reason="no order placed")
                    continue
                await self._step(name, action())
            self.show_summary()
        finally:
            await self.shutdown()

        logger.info("demo_complete", failed_steps=self.failed_steps)

    async def shutdown(self) -> None:
        """Close the streaming session and REST client."""
        await self._step("close_stream", self.stream.close())
        if self._consumer_task is not None:
            await self._step("stop_consumer", asyncio.wait_for(self._consumer_task, timeout=5))
        await self._step("close_rest", self.rest.close())


async def run_demo(config: ClientConfig) -> DemoWorkflow:
    """Run the demo with SIGINT/SIGTERM wired to an early stop."""
    workflow = DemoWorkflow(config)
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, workflow.request_shutdown)
        except NotImplementedError:
            logger.debug("signal_handler_unavailable", signal=sig.name)
    try:
        await workflow.run()
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.remove_signal_handler(sig)
            except NotImplementedError:
                pass
    return workflow


def main() -> None:
    """Main entry point."""
    try:
        config = load_config()
    except ConfigLoadError as e:
        setup_logging()
        logger.error("config_load_failed", error=str(e))
        sys.exit(1)

    setup_logging(config.logging.level, config.logging.format)
    try:
        asyncio.run(run_demo(config))
    except ValueError as e:
        logger.error("demo_failed", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
