"""Adapters for external HTTP services."""

from .currency_gateway import HttpCurrencyGateway

__all__ = ["HttpCurrencyGateway"]
