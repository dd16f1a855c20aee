"""
Webhook Package

This package contains webhook handling components:
- handler: FastAPI route handler running the relay pipeline
- security: Webhook signature verification
- filters: Owner/visibility/repository allow-list checks
"""

from ghrelay.webhook.handler import router

__all__ = ["router"]
