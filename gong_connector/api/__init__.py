"""HTTP surface of the Gong connector.

This module contains:
- Webhook ingress (POST /webhook)
- Subscription block lifecycle endpoints
- Block catalogue and action block execution
- Health check endpoints
"""

from gong_connector.api.app import create_app, register_routes

__all__ = [
    "create_app",
    "register_routes",
]
