"""
Venue adapters for the retail client.

Modules:
    rest: Signed REST API client
    websocket: WebSocket transport for one authenticated connection
    normalizer: Raw stream frames to typed models and back
    stream: Two-socket streaming session with a shared inbound queue
"""

from retail_client.adapters.normalizer import FrameNormalizer
from retail_client.adapters.rest import RetailRestClient
from retail_client.adapters.stream import StreamingSession, websocket_factory
from retail_client.adapters.websocket import WebSocketTransport

__all__: list[str] = [
    "FrameNormalizer",
    "RetailRestClient",
    "StreamingSession",
    "WebSocketTransport",
    "websocket_factory",
]
