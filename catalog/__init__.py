"""
Catalog Package - Target table metadata for merge planning
"""

from .metadata import (
    TypeCategory,
    TargetTable,
    StaticCatalog,
    PostgresCatalog,
    CatalogError,
    categorize_type,
)

__all__ = [
    'TypeCategory',
    'TargetTable',
    'StaticCatalog',
    'PostgresCatalog',
    'CatalogError',
    'categorize_type',
]
