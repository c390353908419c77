"""Configuration package for the AptoMizer service."""

from .settings import AppSettings, get_settings

__all__ = ["AppSettings", "get_settings"]
