"""
Abstract interfaces for the retail client.

The key interface is TransportSocket, the contract the streaming session
relies on for each of its two connections. The production implementation
is WebSocketTransport; tests substitute in-memory transports.

Modules:
    transport: TransportSocket ABC and TransportFactory type
"""

from retail_client.interfaces.transport import TransportFactory, TransportSocket

__all__: list[str] = [
    "TransportFactory",
    "TransportSocket",
]
