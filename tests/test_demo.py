"""
Tests for the demo workflow with a mocked REST client and fake sockets.
"""

import json
from unittest.mock import AsyncMock, Mock

import pytest

from retail_client.adapters.stream import StreamingSession
from retail_client.config import load_config
from retail_client.errors import ApiError
from retail_client.models import (
    CreateOrderResponse,
    GetActivitiesResponse,
    GetBalancesResponse,
    GetMarketsResponse,
    GetOpenOrdersResponse,
    GetOrderResponse,
    GetPositionsResponse,
    InboundMessage,
    Market,
)
from services.demo.main import DemoWorkflow, summarize, truncate

ENV = {
    "POLYMARKET_API_KEY": "demo-key-123",
    "POLYMARKET_PRIVATE_KEY": "AAECAwQFBgcICQoLDA0ODxAREhMUFRYXGBkaGxwdHh8=",
    "POLYMARKET_SYMBOL": "will-it-rain",
}


@pytest.fixture
def config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return load_config(environ=ENV)


@pytest.fixture
def mock_rest():
    rest = Mock()
    rest.get_markets = AsyncMock(return_value=GetMarketsResponse(markets=[Market(id="1", slug="will-it-rain")]))
    rest.get_market_by_slug = AsyncMock(return_value=Market(id="1", slug="will-it-rain"))
    rest.get_balances = AsyncMock(return_value=GetBalancesResponse())
    rest.get_positions = AsyncMock(return_value=GetPositionsResponse())
    rest.create_order = AsyncMock(return_value=CreateOrderResponse(id="ord-1"))
    rest.get_order = AsyncMock(return_value=GetOrderResponse.model_validate({"order": {"id": "ord-1"}}))
    rest.get_open_orders = AsyncMock(return_value=GetOpenOrdersResponse())
    rest.cancel_order = AsyncMock(return_value=None)
    rest.get_activities = AsyncMock(return_value=GetActivitiesResponse())
    rest.close = AsyncMock()
    return rest


@pytest.fixture
def no_pause(monkeypatch):
    monkeypatch.setattr(DemoWorkflow, "_pause", AsyncMock())


class TestHelpers:
    """Test display helpers"""

    def test_truncate(self):
        assert truncate("short", 40) == "short"
        assert truncate("x" * 50, 40) == "x" * 37 + "..."
        assert len(truncate("x" * 50, 40)) == 40

    def test_summarize_market_data(self):
        msg = InboundMessage.model_validate({
            "marketData": {
                "marketSlug": "m",
                "bids": [{"qty": "1"}, {"qty": "2"}],
                "offers": [{"qty": "3"}],
                "state": "MARKET_STATE_OPEN",
            }
        })
        assert summarize(msg) == "m: 2 bids, 1 offers, state=MARKET_STATE_OPEN"

    def test_summarize_lite(self):
        msg = InboundMessage.model_validate({
            "marketDataLite": {"marketSlug": "m", "bestBid": {"value": "0.4", "currency": "USD"}}
        })
        assert summarize(msg) == "m: bid=0.4 ask=N/A"

    def test_summarize_trade(self):
        msg = InboundMessage.model_validate({
            "trade": {
                "marketSlug": "m",
                "price": {"value": "0.5", "currency": "USD"},
                "quantity": {"value": "2", "currency": "USD"},
                "tradeTime": "T",
            }
        })
        assert summarize(msg) == "m: trade @ 0.5 qty=2 at T"

    def test_summarize_ignores_private(self):
        assert summarize(InboundMessage.model_validate({"orderSubscriptionSnapshot": {}})) is None


@pytest.mark.asyncio
class TestDemoWorkflow:
    """Test the demo step sequence"""

    async def test_full_run(self, config, mock_rest, signer, fake_factory, no_pause):
        stream = StreamingSession.from_config(config, signer=signer, transport_factory=fake_factory)
        workflow = DemoWorkflow(config, rest=mock_rest, stream=stream)

        await workflow.run()

        assert workflow.failed_steps == []
        mock_rest.create_order.assert_awaited_once()
        request = mock_rest.create_order.await_args.args[0]
        assert request.market_slug == "will-it-rain"
        mock_rest.cancel_order.assert_awaited_once_with("ord-1", "will-it-rain")
        mock_rest.close.assert_awaited_once()

        private = [json.loads(f)["subscribe"]["subscription_type"] for f in fake_factory.transports["private"].sent]
        markets = [json.loads(f)["subscribe"] for f in fake_factory.transports["markets"].sent]
        assert private == [1, 3, 4]
        assert markets[0]["responses_debounced"] is True
        assert stream.active_readers == 0

    async def test_failures_do_not_abort(self, config, mock_rest, signer, fake_factory, no_pause):
        mock_rest.get_markets.side_effect = ApiError(500, "boom")
        mock_rest.get_open_orders.side_effect = ConnectionError("reset")
        stream = StreamingSession.from_config(config, signer=signer, transport_factory=fake_factory)
        workflow = DemoWorkflow(config, rest=mock_rest, stream=stream)

        await workflow.run()

        assert workflow.failed_steps == ["list_markets", "open_orders"]
        mock_rest.cancel_order.assert_awaited_once()
        mock_rest.get_activities.assert_awaited_once()

    async def test_order_steps_skipped_without_order(self, config, mock_rest, signer, fake_factory, no_pause):
        mock_rest.create_order.side_effect = ApiError(400, "insufficient funds")
        stream = StreamingSession.from_config(config, signer=signer, transport_factory=fake_factory)
        workflow = DemoWorkflow(config, rest=mock_rest, stream=stream)

        await workflow.run()

        mock_rest.get_order.assert_not_awaited()
        mock_rest.cancel_order.assert_not_awaited()
        mock_rest.get_activities.assert_awaited_once()

    async def test_stream_failure_continues_with_rest(self, config, mock_rest, signer, no_pause):
        from tests.conftest import FakeFactory

        stream = StreamingSession.from_config(
            config, signer=signer, transport_factory=FakeFactory(fail={"markets"})
        )
        workflow = DemoWorkflow(config, rest=mock_rest, stream=stream)

        await workflow.run()

        assert workflow.failed_steps[:3] == ["connect_stream", "subscribe_private", "subscribe_markets"]
        mock_rest.cancel_order.assert_awaited_once()
        mock_rest.close.assert_awaited_once()

    async def test_shutdown_request_stops_early(self, config, mock_rest, signer, fake_factory, no_pause):
        stream = StreamingSession.from_config(config, signer=signer, transport_factory=fake_factory)
        workflow = DemoWorkflow(config, rest=mock_rest, stream=stream)
        mock_rest.get_balances.side_effect = lambda: workflow.request_shutdown() or GetBalancesResponse()

        await workflow.run()

        mock_rest.get_positions.assert_not_awaited()
        mock_rest.create_order.assert_not_awaited()
        mock_rest.close.assert_awaited_once()
