"""
Core module initialization.
Exports configuration, logging and security utilities.
"""

from restaurantos.core.config import get_settings, Settings, EnvironmentMode, setup_logging

__all__ = ["get_settings", "Settings", "EnvironmentMode", "setup_logging"]
