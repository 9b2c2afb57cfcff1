"""API Discovery Module

Resolves the Gemini Cloud Assist REST methods from the published discovery document.
"""

from .api_discovery import (
    ApiDescriptor,
    ApiDiscovery,
    ApiMethod,
    parse_discovery_document,
)

__all__ = [
    "ApiDescriptor",
    "ApiDiscovery",
    "ApiMethod",
    "parse_discovery_document",
]
