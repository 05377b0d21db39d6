"""Crisis resource catalog package."""

from harbor.services.resources.catalog import CUSTOM_ID_PREFIX, ResourceCatalog
from harbor.services.resources.builtin import (
    BUILT_IN_CONTACTS,
    BUILT_IN_RESOURCES,
    CRITICAL_CONTACT_IDS,
    CRITICAL_RESOURCE_IDS,
)

__all__ = [
    "ResourceCatalog",
    "CUSTOM_ID_PREFIX",
    # Compiled-in set
    "BUILT_IN_RESOURCES",
    "BUILT_IN_CONTACTS",
    "CRITICAL_RESOURCE_IDS",
    "CRITICAL_CONTACT_IDS",
]
