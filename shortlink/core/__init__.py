"""Core module for the shortlink application."""

from shortlink.core.config import settings

__all__ = ["settings"]
