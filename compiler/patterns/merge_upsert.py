"""
Merge/Upsert Pattern - Combine matched rows and insert the rest
"""

from typing import List

from compiler.context import MergeContext
from compiler.expressions import (
    STAGED_ALIAS,
    TARGET_ALIAS,
    build_extra_conditions,
    build_matching_expression,
    build_updating_expression,
)
from compiler.script import Statement, UPSERT
from .base_pattern import BasePattern


class MergeUpsertPattern(BasePattern):
    """
    Update matched target rows with increment semantics, then insert
    every staged row that matched none of the updated rows.

    The update runs in a data-modifying CTE so the insert sees exactly
    the rows the update touched. A native upsert is not usable because
    the matching predicate may be an arbitrary expression.

    ``conditions`` are evaluated once, by the update, against the target
    row as it was before the merge. The anti-match then checks the
    captured rows with the matching predicate alone: those rows already
    hold updated values, so re-evaluating a condition on an incremented
    column there would see the new value and insert a duplicate. A
    staged row is inserted exactly when no target row was updated for
    it. The matching predicate itself is evaluated on updated values
    too, so a ``matching_expr`` must not reference increment fields.
    """

    pattern_type = 'MERGE_UPSERT'

    def validate_config(self) -> List[str]:
        """Validate merge configuration"""
        errors = []

        if not self.destination.key_fields and not self.destination.matching_expr:
            errors.append("Merge/upsert requires 'key_fields' or 'matching_expr'")

        for field in self.destination.increment_fields:
            if self.column_category(field) is None:
                errors.append(
                    f"Cannot resolve storage type of increment field '{field}' "
                    f"in {self.destination.target}"
                )

        return errors

    def matching_expression(self) -> str:
        return build_matching_expression(self.destination.key_fields, self.destination.matching_expr)

    def updating_expression(self) -> str:
        return build_updating_expression(
            self.destination.increment_fields,
            self.column_category,
            self.destination.value_delimiter,
        )

    def reconcile_statement(self, staging_table: str) -> Statement:
        target = self.get_target_fqn()
        target_fields = self.get_target_fields()
        matching = self.matching_expression()
        extra_conditions = build_extra_conditions(self.destination.conditions)
        extra_line = f"\n      {extra_conditions}" if extra_conditions else ''

        sql = f"""WITH updated AS (
    UPDATE {target} AS {TARGET_ALIAS}
    SET {self.updating_expression()}
    FROM {staging_table} AS {STAGED_ALIAS}
    WHERE {matching}{extra_line}
    RETURNING {TARGET_ALIAS}.*
)
INSERT INTO {target} ({target_fields})
SELECT {target_fields}
FROM {staging_table} AS {STAGED_ALIAS}
WHERE NOT EXISTS (
    SELECT 1
    FROM updated AS {TARGET_ALIAS}
    WHERE {matching}
);"""
        return Statement(UPSERT, sql)

    def get_preview_queries(self, context: MergeContext) -> List[str]:
        """Generate preview queries"""
        matching = self.matching_expression()
        extra_conditions = build_extra_conditions(self.destination.conditions)
        staged = self.staged_select(context)
        target = self.get_target_fqn()

        matched_filter = f"""EXISTS (
        SELECT 1
        FROM {target} AS {TARGET_ALIAS}
        WHERE {matching}
          {extra_conditions}
    )"""

        queries = [
            self.staged_count_query(context),
            # Records to update
            f"""SELECT 'Records to Update' AS metric, COUNT(*) AS value
FROM (
    {staged}
) AS {STAGED_ALIAS}
WHERE {matched_filter}""",
            # Records to insert
            f"""SELECT 'Records to Insert' AS metric, COUNT(*) AS value
FROM (
    {staged}
) AS {STAGED_ALIAS}
WHERE NOT {matched_filter}""",
        ]

        return queries
