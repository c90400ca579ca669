"""
Chirpy identity core.

Password hashing, access-token minting and validation, renewal-token
generation and Authorization header parsing for the chirpy service.

The HTTP tier calls ``configure_logging`` once at startup.
"""

from chirpy.logging_config import configure_logging, get_logger

__version__ = "1.0.0"

__all__ = ["configure_logging", "get_logger", "__version__"]
