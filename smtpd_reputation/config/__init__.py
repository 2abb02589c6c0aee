"""
Configuration management for smtpd-reputation.

Loads settings from environment variables and an optional .env file.
Exposes a single source of truth for strategy selection and store bounds.
"""

from smtpd_reputation.config.settings import Settings, get_settings, reset_settings_cache  # noqa: F401

__all__ = ["Settings", "get_settings", "reset_settings_cache"]
