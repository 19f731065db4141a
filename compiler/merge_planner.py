"""
Merge Planner - Plans destination merges into ordered SQL scripts
"""

from typing import Any, Dict, List, Optional, Tuple

import structlog

from catalog import CatalogError, TargetTable
from compiler.context import MergeContext
from compiler.destination import Destination
from compiler.guardrails import SQLGuardrails
from compiler.patterns import PatternFactory, BasePattern
from compiler.script import MergeScript

logger = structlog.get_logger()


class CompilationError(Exception):
    """Raised when compilation fails"""
    pass


class ConfigurationError(CompilationError):
    """Raised when a destination cannot be planned as configured"""
    pass


class MergePlanner:
    """Plans destination merges into executable SQL"""

    def __init__(self, catalog, strict_guardrails: bool = True):
        """
        Initialize planner

        Args:
            catalog: Resolves target table names to TargetTable metadata
            strict_guardrails: Whether to enforce guardrails strictly
        """
        self.catalog = catalog
        self.guardrails = SQLGuardrails(strict_mode=strict_guardrails)
        self.strict_guardrails = strict_guardrails

    def validate_destination(self, destination: Destination) -> List[str]:
        """
        Validate destination without planning

        Returns:
            List of configuration errors (empty if valid)
        """
        errors = self._validate_fields(destination)

        try:
            target_table = self.catalog.get_table(destination.target)
        except CatalogError as e:
            errors.append(str(e))
            return errors

        pattern = PatternFactory.create_pattern(destination, target_table)
        errors.extend(pattern.validate_config())
        return errors

    def _validate_fields(self, destination: Destination) -> List[str]:
        errors = []

        if not destination.fields:
            errors.append("Destination requires at least one field in 'fields'")

        if len(set(destination.fields)) != len(destination.fields):
            errors.append("Duplicate fields in 'fields'")

        for attribute in ('key_fields', 'increment_fields'):
            for field in getattr(destination, attribute):
                if field not in destination.fields:
                    errors.append(f"Field '{field}' in '{attribute}' is not listed in 'fields'")

        return errors

    def _create_pattern(self, destination: Destination) -> BasePattern:
        errors = self._validate_fields(destination)
        if errors:
            raise ConfigurationError(f"Destination validation failed: {'; '.join(errors)}")

        try:
            target_table: TargetTable = self.catalog.get_table(destination.target)
        except CatalogError as e:
            raise ConfigurationError(str(e)) from e

        pattern = PatternFactory.create_pattern(destination, target_table)

        config_errors = pattern.validate_config()
        if config_errors:
            raise ConfigurationError(f"Pattern validation failed: {'; '.join(config_errors)}")

        return pattern

    def plan(self, destination: Destination, context: MergeContext) -> MergeScript:
        """
        Plan a merge

        Args:
            destination: Merge destination configuration
            context: Merge context of this invocation

        Returns:
            Ordered merge script

        Raises:
            ConfigurationError: If the destination is misconfigured
            CompilationError: If SQL generation fails
        """
        pattern = self._create_pattern(destination)

        try:
            script = pattern.generate_script(context)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        if self.strict_guardrails:
            self.guardrails.validate_and_raise(script)

        logger.info(
            "merge_planned",
            target=destination.target,
            source=context.source_table,
            pattern=script.pattern_type,
            staging_table=script.staging_table,
            execution_id=context.execution_id,
        )
        logger.debug("merge_sql", sql=script.sql)
        return script

    def compile(self, destination: Destination, context: Optional[MergeContext] = None,
                source_table: Optional[str] = None) -> str:
        """
        Compile destination to SQL text

        Args:
            destination: Merge destination configuration
            context: Merge context (optional, created from source_table if absent)
            source_table: Source relation used when no context is given
        """
        if context is None:
            if not source_table:
                raise CompilationError("Compilation requires a context or a source_table")
            context = MergeContext.create(source_table)
        return self.plan(destination, context).sql

    def compile_safe(self, destination: Destination,
                     context: Optional[MergeContext] = None,
                     source_table: Optional[str] = None) -> Tuple[bool, str, List[str]]:
        """
        Safely compile destination (doesn't raise exceptions)

        Returns:
            Tuple of (success, sql, errors)
        """
        try:
            sql = self.compile(destination, context, source_table)
            return (True, sql, [])
        except Exception as e:
            return (False, "", [str(e)])

    def preview_queries(self, destination: Destination, context: MergeContext) -> List[str]:
        """Read-only impact queries for a destination"""
        pattern = self._create_pattern(destination)
        try:
            return pattern.get_preview_queries(context)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    def describe(self, destination: Destination, context: MergeContext) -> Dict[str, Any]:
        """Summary of what a merge would do"""
        script = self.plan(destination, context)
        return {
            'target': destination.target,
            'source': context.source_table,
            'pattern_type': script.pattern_type,
            'staging_table': script.staging_table,
            'statements': script.kinds,
            'sql': script.sql,
        }

    def get_supported_patterns(self) -> List[str]:
        """Get list of supported patterns"""
        return PatternFactory.get_supported_patterns()


# Export
__all__ = ['MergePlanner', 'CompilationError', 'ConfigurationError']
