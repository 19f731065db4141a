"""
Preview Mode - Safe preview of merge execution without side effects
"""

from typing import Dict, Any, List
from datetime import datetime, timezone

import structlog

from compiler import MergePlanner, MergeContext, Destination

logger = structlog.get_logger()


class PreviewError(Exception):
    """Exception raised during preview"""
    pass


class PreviewEngine:
    """Generates safe previews of merge execution"""

    def __init__(self, planner: MergePlanner, connection=None):
        """
        Initialize preview engine

        Args:
            planner: Merge planner
            connection: Optional psycopg2 connection for impact counts
        """
        self.planner = planner
        self.connection = connection

    def preview(self, destination: Destination, context: MergeContext,
                include_counts: bool = True) -> Dict[str, Any]:
        """
        Generate preview of a merge

        Args:
            destination: Merge destination
            context: Merge context
            include_counts: Whether to run read-only impact queries

        Returns:
            Preview result dictionary
        """
        preview_result = {
            'target': destination.target,
            'source': context.source_table,
            'execution_id': context.execution_id,
            'preview_timestamp': datetime.now(timezone.utc).isoformat(),
            'validation': {},
            'compilation': {},
            'impact_analysis': {},
            'warnings': [],
            'errors': [],
        }

        errors = self.planner.validate_destination(destination)
        preview_result['validation'] = {
            'is_valid': not errors,
            'errors': errors,
        }
        if errors:
            return preview_result

        preview_result['compilation'] = self._compile(destination, context)
        if not preview_result['compilation']['success']:
            preview_result['errors'].append(preview_result['compilation']['error'])
            return preview_result

        preview_result['warnings'] = self._generate_warnings(destination)

        if include_counts and self.connection is not None:
            try:
                queries = self.planner.preview_queries(destination, context)
                preview_result['impact_analysis'] = self._run_impact_queries(queries, context)
            except Exception as e:
                logger.warning("merge_preview_failed", target=destination.target, error=str(e))
                preview_result['errors'].append(f"Preview error: {e}")

        return preview_result

    def _compile(self, destination: Destination, context: MergeContext) -> Dict[str, Any]:
        try:
            script = self.planner.plan(destination, context)
        except Exception as e:
            return {
                'success': False,
                'error': str(e),
                'sql': None,
            }

        return {
            'success': True,
            'sql': script.sql,
            'pattern_type': script.pattern_type,
            'statements': script.kinds,
            'staging_table': script.staging_table,
        }

    def _run_impact_queries(self, queries: List[str], context: MergeContext) -> Dict[str, Any]:
        """Run preview queries in a transaction that is always rolled back"""
        metrics = {}
        params = dict(context.params) or None

        try:
            with self.connection.cursor() as cursor:
                for query in queries:
                    cursor.execute(query, params)
                    metric, value = cursor.fetchone()
                    metrics[metric] = value
        except Exception as e:
            raise PreviewError(f"Impact query failed: {e}") from e
        finally:
            self.connection.rollback()

        return metrics

    def _generate_warnings(self, destination: Destination) -> List[str]:
        """Generate warnings for potential issues"""
        warnings = []

        if not destination.is_incremental:
            warnings.append(
                "No increment fields: every staged row is inserted without an existence check"
            )

        if destination.is_incremental and not destination.group_by:
            warnings.append(
                "No group_by: duplicate keys in the source update and insert the same entity more than once"
            )

        return warnings
