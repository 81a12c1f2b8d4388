"""
Retail Trading API Client.

An async client for a retail prediction-market trading venue: signed REST
calls for markets, orders, balances and positions, and an authenticated
dual-WebSocket streaming session that multiplexes the private (account)
stream and the public (markets) stream into a single message sequence.

This package provides:
- Ed25519 request signing
- REST client for markets, account, portfolio and order endpoints
- Streaming session with bounded fan-in queue and heartbeat filtering
- Pydantic models for every request, response and stream payload
- Configuration management and structured logging setup
"""

__version__ = "0.1.0"
