"""
Configuration and environment setup.

Settings are read from environment variables (and a local .env file)
through pydantic-settings; see settings.py.
"""

from .settings import Settings, settings, get_settings

__all__ = ['Settings', 'settings', 'get_settings']
