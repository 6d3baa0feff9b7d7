"""
Data models for the shortlink application.

This module imports and exports all SQLModel models used in the application.
"""

from shortlink.models.url import (
    URLAnalytics,
    URLMapping,
    URLMappingBase,
    utcnow,
)

__all__ = [
    "URLAnalytics",
    "URLMapping",
    "URLMappingBase",
    "utcnow",
]
