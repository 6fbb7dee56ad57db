"""
Catalogue Module

Read-only product, option, availability and vendor-balance lookups.
"""

from .service import CatalogueService

__all__ = ["CatalogueService"]
