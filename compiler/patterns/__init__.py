"""
Pattern Factory - Creates the reconciliation pattern for a destination
"""

from catalog import TargetTable
from compiler.destination import Destination
from .base_pattern import BasePattern, GENERATED_SQL_MARKER
from .merge_upsert import MergeUpsertPattern
from .insert_only import InsertOnlyPattern


class PatternFactory:
    """Factory for creating pattern instances"""

    # Registry of available patterns
    _patterns = {
        'MERGE_UPSERT': MergeUpsertPattern,
        'INSERT_ONLY': InsertOnlyPattern,
    }

    @classmethod
    def pattern_type_for(cls, destination: Destination) -> str:
        """Increment fields switch the merge into update+insert mode"""
        return 'MERGE_UPSERT' if destination.is_incremental else 'INSERT_ONLY'

    @classmethod
    def create_pattern(cls, destination: Destination, target_table: TargetTable) -> BasePattern:
        """
        Create pattern instance for a destination

        Args:
            destination: Merge destination configuration
            target_table: Metadata of the target table

        Returns:
            Pattern instance
        """
        pattern_class = cls._patterns[cls.pattern_type_for(destination)]
        return pattern_class(destination, target_table)

    @classmethod
    def get_supported_patterns(cls) -> list:
        """Get list of supported pattern types"""
        return list(cls._patterns.keys())


# Export all patterns
__all__ = [
    'PatternFactory',
    'BasePattern',
    'GENERATED_SQL_MARKER',
    'MergeUpsertPattern',
    'InsertOnlyPattern',
]
