"""
GitHub to Telegram Webhook Relay

Receives GitHub webhook deliveries, verifies their signature, filters them
against operator allow-lists and posts a formatted notification to a
Telegram chat.
"""

__version__ = "1.0.0"
