"""
Resources module - catalog and configuration files.

Exports:
- CatalogDatabase: Loads and validates skill tree catalogs from JSON
"""

from skilltrees.resources.database import CatalogDatabase

__all__ = [
    "CatalogDatabase",
]
