"""
Insert-Only Pattern - Append every staged row to the target table
"""

from typing import List

from compiler.context import MergeContext
from compiler.expressions import STAGED_ALIAS
from compiler.script import Statement, INSERT
from .base_pattern import BasePattern


class InsertOnlyPattern(BasePattern):
    """
    Plain insertion, used when no increment fields are declared.

    No existence check is made: running the same merge twice inserts the
    staged rows twice. Callers rely on upstream grouping or a storage
    level unique constraint to avoid duplicates.
    """

    pattern_type = 'INSERT_ONLY'

    def validate_config(self) -> List[str]:
        """Validate insert-only configuration"""
        errors = []

        if not self.destination.key_fields and not self.destination.matching_expr:
            errors.append("Insert-only merge requires 'key_fields' or 'matching_expr'")

        return errors

    def reconcile_statement(self, staging_table: str) -> Statement:
        target_fields = self.get_target_fields()
        sql = (
            f"INSERT INTO {self.get_target_fqn()} ({target_fields})\n"
            f"SELECT {target_fields}\n"
            f"FROM {staging_table} AS {STAGED_ALIAS};"
        )
        return Statement(INSERT, sql)

    def get_preview_queries(self, context: MergeContext) -> List[str]:
        """Generate preview queries"""
        return [
            self.staged_count_query(context),
            f"""SELECT 'Records to Insert' AS metric, COUNT(*) AS value
FROM (
    {self.staged_select(context)}
) AS {STAGED_ALIAS}""",
        ]
