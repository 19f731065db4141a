"""
Merge Script - Ordered statements produced by the planner
"""

from dataclasses import dataclass
from typing import List, Tuple

STAGE = 'stage'
UPSERT = 'upsert'
INSERT = 'insert'
RELEASE = 'release'

RECONCILE_KINDS = (UPSERT, INSERT)


@dataclass(frozen=True)
class Statement:
    """One statement of a merge script"""
    kind: str
    sql: str


@dataclass(frozen=True)
class MergeScript:
    """
    Complete merge script

    Statements always run in the order stage, reconcile, release.
    """
    header: str
    statements: Tuple[Statement, ...]
    staging_table: str
    pattern_type: str

    @property
    def kinds(self) -> List[str]:
        return [statement.kind for statement in self.statements]

    @property
    def reconcile_statement(self) -> Statement:
        for statement in self.statements:
            if statement.kind in RECONCILE_KINDS:
                return statement
        raise LookupError("Merge script has no reconcile statement")

    @property
    def sql(self) -> str:
        body = '\n'.join(statement.sql for statement in self.statements)
        return f"{self.header}\n{body}"
