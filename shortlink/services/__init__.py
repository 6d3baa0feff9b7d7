"""Service layer for the shortlink application.

This package contains the business logic of the application: URL
validation, short code generation, shortening and redirect resolution.
Services depend on the URLStore capability rather than on a database.
"""

from shortlink.services.accessor import AccessService, AnalyticsReport
from shortlink.services.shortener import ShortenerService, ShortenResult

__all__ = ["AccessService", "AnalyticsReport", "ShortenerService", "ShortenResult"]
