"""
Demo workflow for the retail client.

Usage:
    python -m services.demo.main
    retail-demo
"""

__all__: list[str] = []
