"""
Base Pattern - Abstract base class for merge reconciliation patterns
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from catalog import TargetTable, TypeCategory
from compiler.context import MergeContext
from compiler.destination import Destination
from compiler.expressions import (
    STAGED_ALIAS,
    build_group_by,
    build_selected_fields,
    build_source_conditions,
    resolve_fields_map,
    staging_table_name,
)
from compiler.script import MergeScript, Statement, STAGE, RELEASE

GENERATED_SQL_MARKER = '-- MERGE PLANNER GENERATED SQL'


class BasePattern(ABC):
    """Abstract base class for merge SQL generation patterns"""

    pattern_type: str = ''

    def __init__(self, destination: Destination, target_table: TargetTable):
        """
        Initialize pattern

        Args:
            destination: Merge destination configuration
            target_table: Metadata of the destination's target table
        """
        self.destination = destination
        self.target_table = target_table

    @abstractmethod
    def validate_config(self) -> List[str]:
        """
        Validate pattern-specific configuration

        Returns:
            List of validation errors (empty if valid)
        """
        pass

    @abstractmethod
    def reconcile_statement(self, staging_table: str) -> Statement:
        """Statement moving staged rows into the target table"""
        pass

    @abstractmethod
    def get_preview_queries(self, context: MergeContext) -> List[str]:
        """
        Generate read-only impact queries

        Args:
            context: Merge context

        Returns:
            List of preview SQL queries, each returning (metric, value)
        """
        pass

    def column_category(self, field: str) -> Optional[TypeCategory]:
        return self.target_table.column_category(field)

    def get_target_fqn(self) -> str:
        """Quoted name of the target table"""
        return self.target_table.quoted_name

    def get_target_fields(self) -> str:
        """Comma-separated list of written target fields"""
        return ', '.join(self.destination.fields)

    def full_fields_map(self) -> Dict[str, str]:
        return resolve_fields_map(self.destination.fields, self.destination.fields_map)

    def get_staging_table(self, context: MergeContext) -> str:
        return staging_table_name(context.source_table, context.staging_token)

    def staged_select(self, context: MergeContext) -> str:
        """Projected, filtered and grouped snapshot of the source table"""
        clauses = [
            f"SELECT {build_selected_fields(self.full_fields_map())}",
            f"FROM {context.source_table}",
            build_source_conditions(self.destination.source_conditions),
            build_group_by(self.destination.group_by),
        ]
        return '\n    '.join(clause for clause in clauses if clause)

    def stage_statement(self, context: MergeContext, staging_table: str) -> Statement:
        sql = (
            f"CREATE TEMP TABLE {staging_table} ON COMMIT DROP AS\n"
            f"    {self.staged_select(context)};"
        )
        return Statement(STAGE, sql)

    def release_statement(self, staging_table: str) -> Statement:
        return Statement(RELEASE, f"DROP TABLE IF EXISTS {staging_table};")

    def generate_sql_header(self, context: MergeContext) -> str:
        """Header comment identifying generated merge scripts"""
        return (
            f"{GENERATED_SQL_MARKER}\n"
            f"-- Generated: {context.generated_at}\n"
            f"-- target: {self.destination.target}\n"
            f"-- source: {context.source_table}\n"
            f"-- pattern: {self.pattern_type}\n"
            f"-- execution_id: {context.execution_id or 'preview'}\n"
        )

    def generate_script(self, context: MergeContext) -> MergeScript:
        """Assemble stage, reconcile and release statements"""
        staging_table = self.get_staging_table(context)
        statements = (
            self.stage_statement(context, staging_table),
            self.reconcile_statement(staging_table),
            self.release_statement(staging_table),
        )
        return MergeScript(
            header=self.generate_sql_header(context),
            statements=statements,
            staging_table=staging_table,
            pattern_type=self.pattern_type,
        )

    def generate_sql(self, context: MergeContext) -> str:
        return self.generate_script(context).sql

    def staged_count_query(self, context: MergeContext) -> str:
        return (
            "SELECT 'Staged Rows' AS metric, COUNT(*) AS value\n"
            f"FROM (\n    {self.staged_select(context)}\n) AS {STAGED_ALIAS}"
        )
