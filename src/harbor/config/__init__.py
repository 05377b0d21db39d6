"""
HARBOR Configuration Module

Provides centralized configuration management with:
- Environment-based settings loading
- Independently tunable scoring thresholds
- Secure handling of secrets
"""

from harbor.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
