"""API route handlers."""
from . import app_settings, holdings, portfolio, quotes

__all__ = ["app_settings", "holdings", "portfolio", "quotes"]
