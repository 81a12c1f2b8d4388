"""
Unit tests for data models.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from retail_client.models import (
    Amount,
    CancelOpenOrdersRequest,
    CancelOrderRequest,
    CreateOrderRequest,
    InboundMessage,
    Market,
    MessageKind,
    OrderIntentRequest,
    OrderState,
    OrderTypeRequest,
    SessionHealth,
    SessionState,
    SocketHealth,
    SubscriptionKind,
    amount_value,
)


class TestSubscriptionKind:
    """Test subscription kind routing attributes"""

    @pytest.mark.parametrize(
        "kind,private,wire_type,prefix",
        [
            (SubscriptionKind.ORDER, True, 1, "order"),
            (SubscriptionKind.POSITION, True, 3, "position"),
            (SubscriptionKind.ACCOUNT_BALANCE, True, 4, "balance"),
            (SubscriptionKind.MARKET_DATA, False, 1, "marketdata"),
            (SubscriptionKind.MARKET_DATA_LITE, False, 2, "marketdatalite"),
            (SubscriptionKind.TRADE, False, 3, "trade"),
        ],
    )
    def test_attributes(self, kind, private, wire_type, prefix):
        assert kind.is_private is private
        assert kind.wire_type == wire_type
        assert kind.request_prefix == prefix


class TestInboundMessage:
    """Test inbound message classification"""

    def test_error_takes_precedence(self):
        msg = InboundMessage.model_validate({"error": "denied", "trade": {"marketSlug": "x"}})
        assert msg.kind is MessageKind.ERROR

    def test_heartbeat_wins_over_error(self):
        msg = InboundMessage.model_validate({"heartbeat": {}, "error": "stale"})
        assert msg.kind is MessageKind.HEARTBEAT

    def test_empty_heartbeat_object(self):
        assert InboundMessage.model_validate({"heartbeat": {}}).kind is MessageKind.HEARTBEAT

    def test_null_heartbeat_is_not_heartbeat(self):
        assert InboundMessage.model_validate({"heartbeat": None}).kind is None

    def test_position_update(self):
        msg = InboundMessage.model_validate({
            "positionSubscription": {"afterPosition": {"netPosition": "4"}, "tradeId": "t1"}
        })

        assert msg.kind is MessageKind.POSITION_UPDATE
        assert msg.payload.after_position.net_position == Decimal("4")

    def test_frozen(self):
        msg = InboundMessage.model_validate({"requestId": "a"})
        with pytest.raises(ValidationError):
            msg.request_id = "b"


class TestCreateOrderRequest:
    """Test order request serialization"""

    def test_minimal_body(self):
        request = CreateOrderRequest(market_slug="m", intent=OrderIntentRequest.SELL_NO)
        assert request.to_wire() == {"market_slug": "m", "intent": 4}

    def test_flags_sent_when_true(self):
        request = CreateOrderRequest(
            market_slug="m",
            intent=OrderIntentRequest.BUY_YES,
            type=OrderTypeRequest.MARKET,
            quantity=Decimal("2.5"),
            participate_dont_initiate=True,
        )
        body = request.to_wire()

        assert body["participate_dont_initiate"] is True
        assert "synchronous_execution" not in body
        assert body["quantity"] == 2.5
        assert body["type"] == 2

    def test_rejects_empty_slug(self):
        with pytest.raises(ValidationError):
            CreateOrderRequest(market_slug="", intent=OrderIntentRequest.BUY_YES)

    def test_rejects_non_positive_quantity(self):
        with pytest.raises(ValidationError):
            CreateOrderRequest(market_slug="m", intent=OrderIntentRequest.BUY_YES, quantity=Decimal("0"))


class TestCancelRequests:
    """Test cancel request bodies"""

    def test_cancel_order_camel_case(self):
        assert CancelOrderRequest(market_slug="m").to_wire() == {"marketSlug": "m"}

    def test_cancel_open_orders_empty_slugs(self):
        assert CancelOpenOrdersRequest(slugs=[]).to_wire() == {}


class TestMarket:
    """Test market decoding"""

    def test_numeric_suffix_aliases(self):
        market = Market.model_validate({
            "id": "1",
            "slug": "s",
            "volume24hr": "10",
            "volume1wk": "70",
            "outcomeTeamA": 1,
        })

        assert market.volume_24hr == Decimal("10")
        assert market.volume_1wk == Decimal("70")
        assert market.outcome_team_a == 1

    def test_closed_market_not_tradable(self):
        market = Market.model_validate({"id": "1", "slug": "s", "active": True, "closed": True})
        assert not market.is_tradable


class TestValues:
    """Test small value helpers"""

    def test_amount_value(self):
        assert amount_value(None) == "N/A"
        assert amount_value(Amount(value=Decimal("0.42"))) == "0.42"

    def test_terminal_states(self):
        assert OrderState.FILLED.is_terminal
        assert OrderState.CANCELED.is_terminal
        assert not OrderState.PARTIALLY_FILLED.is_terminal
        assert not OrderState.PENDING_CANCEL.is_terminal


class TestHealth:
    """Test health snapshots"""

    def test_session_health(self):
        now = datetime.now(timezone.utc)
        health = SessionHealth(
            state=SessionState.CONNECTED,
            queue_depth=3,
            queue_capacity=3,
            sockets={
                "private": SocketHealth(name="private", connected=True, reader_running=True, dropped=2),
                "markets": SocketHealth(
                    name="markets",
                    connected=True,
                    reader_running=True,
                    dropped=1,
                    last_message_at=now - timedelta(seconds=5),
                ),
            },
        )

        assert health.all_sockets_healthy
        assert health.total_dropped == 3
        assert health.queue_full
        assert health.sockets["markets"].seconds_since_message >= 5
        assert health.sockets["private"].seconds_since_message is None

    def test_dead_reader_unhealthy(self):
        socket = SocketHealth(name="markets", connected=True, reader_running=False)
        assert not socket.is_healthy
