"""Subscription platform backend: products, plans, users and subscriptions behind
product API keys and admin Basic auth."""

__version__ = "1.0.0"
