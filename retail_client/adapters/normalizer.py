"""
Stream frame normalizer.

Pure functions between raw WebSocket text and typed models, so the
decode / classify / route pipeline can be tested without a socket.

Inbound frame (at most one payload key, plus optional control fields):
    {
        "requestId": "marketdata-4",
        "subscriptionType": "SUBSCRIPTION_TYPE_MARKET_DATA",
        "marketData": {
            "marketSlug": "will-it-rain",
            "bids": [{"px": {"value": "0.42", "currency": "USD"}, "qty": "100"}],
            "offers": [...],
            "state": "MARKET_STATE_OPEN"
        }
    }

Heartbeat:
    {"heartbeat": {}}

Error:
    {"requestId": "order-1", "error": "invalid market slug"}

Outbound frames:
    {"subscribe": {"request_id": "marketdata-4", "subscription_type": 1,
                   "market_slugs": ["will-it-rain"], "responses_debounced": true}}
    {"unsubscribe": {"request_id": "marketdata-4"}}
"""

import json
from typing import Any, Dict, Optional, Sequence

import structlog
from pydantic import ValidationError

from retail_client.errors import DecodeError
from retail_client.models.stream import (
    InboundMessage,
    MessageKind,
    SubscriptionKind,
    SubscriptionRequest,
    UnsubscribeRequest,
)

logger = structlog.get_logger(__name__)

# How much of a bad frame to keep for logs
_FRAME_PREVIEW = 200


class FrameNormalizer:
    """
    Converts between raw stream frames and typed models.

    Example:
        >>> msg = FrameNormalizer.decode_frame('{"heartbeat": {}}')
        >>> FrameNormalizer.is_heartbeat(msg)
        True
    """

    @staticmethod
    def decode_frame(raw: str | bytes) -> InboundMessage:
        """
        Decode one inbound frame.

        Unknown keys are ignored. A frame with no known payload key still
        decodes (its ``kind`` is None).

        Args:
            raw: Frame text, or the raw bytes of a binary frame.

        Returns:
            InboundMessage: The decoded frame.

        Raises:
            DecodeError: If the frame is not a JSON object, or a known
                payload has the wrong structure.
        """
        preview = raw[:_FRAME_PREVIEW] if isinstance(raw, str) else repr(raw[:_FRAME_PREVIEW])
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DecodeError(f"invalid JSON: {e}", frame=preview) from e

        if not isinstance(data, dict):
            raise DecodeError(
                f"expected a JSON object, got {type(data).__name__}",
                frame=preview,
            )

        try:
            return InboundMessage.model_validate(data)
        except ValidationError as e:
            raise DecodeError(
                f"malformed payload: {e.error_count()} validation error(s)",
                frame=preview,
            ) from e

    @staticmethod
    def is_heartbeat(message: InboundMessage) -> bool:
        """Check if a decoded frame is a keep-alive heartbeat."""
        return message.kind is MessageKind.HEARTBEAT

    @staticmethod
    def build_subscription(
        kind: SubscriptionKind,
        request_id: str,
        market_ids: Optional[Sequence[str]] = None,
        debounce: bool = False,
    ) -> SubscriptionRequest:
        """
        Build a subscription request for ``kind``.

        Args:
            kind: What to subscribe to.
            request_id: Correlation id.
            market_ids: Market slugs to filter on; empty means all.
            debounce: Ask the server to coalesce rapid updates.
        """
        return SubscriptionRequest(
            request_id=request_id,
            subscription_type=kind.wire_type,
            market_slugs=list(market_ids or []),
            responses_debounced=debounce,
        )

    @staticmethod
    def encode_subscribe(request: SubscriptionRequest) -> str:
        """Encode a subscribe frame."""
        return json.dumps(request.to_wire(), separators=(",", ":"))

    @staticmethod
    def encode_unsubscribe(request_id: str) -> str:
        """Encode an unsubscribe frame."""
        return json.dumps(
            UnsubscribeRequest(request_id=request_id).to_wire(),
            separators=(",", ":"),
        )

    @staticmethod
    def decode_subscribe(raw: str) -> SubscriptionRequest:
        """
        Decode a subscribe frame, as a server would.

        Raises:
            DecodeError: If the frame is not a valid subscribe frame.
        """
        try:
            data: Dict[str, Any] = json.loads(raw)
            return SubscriptionRequest.model_validate(data["subscribe"])
        except (json.JSONDecodeError, KeyError, TypeError, ValidationError) as e:
            raise DecodeError(f"invalid subscribe frame: {e}", frame=raw[:_FRAME_PREVIEW]) from e
