"""
Merge Executor - Runs planned merge scripts on PostgreSQL
"""

import time
from typing import Any, Dict, Optional

import psycopg2
import structlog

from compiler.context import MergeContext
from compiler.destination import Destination
from compiler.script import MergeScript, RECONCILE_KINDS
from .retry_handler import RetryHandler

logger = structlog.get_logger()


class ExecutionError(Exception):
    """Exception raised during SQL execution"""
    pass


class MergeExecutor:
    """
    Executes merge scripts in a single transaction with retry

    Named parameters of the merge context are substituted by psycopg2,
    so condition fragments reference them as ``%(name)s``. Literal
    percent signs in fragments must be doubled when parameters are given.
    """

    def __init__(self,
                 connection,
                 planner=None,
                 retry_handler: Optional[RetryHandler] = None,
                 statement_timeout_ms: Optional[int] = None):
        """
        Initialize merge executor

        Args:
            connection: psycopg2 connection with autocommit disabled
            planner: MergePlanner used by merge()
            retry_handler: Optional retry handler (creates default if not provided)
            statement_timeout_ms: Optional per-transaction statement timeout
        """
        self.connection = connection
        self.planner = planner
        self.retry_handler = retry_handler or RetryHandler()
        self.statement_timeout_ms = statement_timeout_ms

    def merge(self, destination: Destination, context: MergeContext) -> Dict[str, Any]:
        """
        Plan and execute a merge

        Raises:
            ConfigurationError: If the destination is misconfigured (nothing is executed)
            ExecutionError: If execution fails
        """
        if self.planner is None:
            raise ExecutionError("MergeExecutor.merge requires a planner")

        script = self.planner.plan(destination, context)
        result = self.execute(script, context)
        result['target'] = destination.target
        return result

    def execute(self, script: MergeScript, context: MergeContext) -> Dict[str, Any]:
        """
        Execute a merge script

        Args:
            script: Planned merge script
            context: Merge context supplying named parameters

        Returns:
            Execution result dictionary

        Raises:
            ExecutionError: If execution fails
        """
        if getattr(self.connection, 'autocommit', False) is True:
            raise ExecutionError(
                "Merge requires a transactional connection; disable autocommit "
                "so the staging table lives until the merge commits"
            )

        logger.info(
            "merge_execution_started",
            execution_id=context.execution_id,
            pattern=script.pattern_type,
            staging_table=script.staging_table,
        )

        try:
            return self.retry_handler.execute_with_retry(
                self._execute_script,
                script,
                dict(context.params),
                context.execution_id,
            )
        except Exception as e:
            logger.error(
                "merge_execution_failed",
                execution_id=context.execution_id,
                error=str(e),
            )
            raise ExecutionError(f"Execution failed: {e}") from e

    def _execute_script(self, script: MergeScript, params: Dict[str, Any],
                        execution_id: str) -> Dict[str, Any]:
        """Run all statements of a script and commit, rolling back on failure"""
        start_time = time.time()
        rows_inserted = None

        try:
            with self.connection.cursor() as cursor:
                if self.statement_timeout_ms:
                    cursor.execute(f"SET LOCAL statement_timeout = {int(self.statement_timeout_ms)}")

                for statement in script.statements:
                    cursor.execute(statement.sql, params or None)
                    if statement.kind in RECONCILE_KINDS and cursor.rowcount >= 0:
                        rows_inserted = cursor.rowcount

            self.connection.commit()
        except Exception:
            try:
                self.connection.rollback()
            except psycopg2.Error as rollback_error:
                # The statement failure propagates, not the rollback failure
                logger.warning("merge_rollback_failed", execution_id=execution_id, error=str(rollback_error))
            raise

        execution_time = time.time() - start_time
        logger.info(
            "merge_execution_succeeded",
            execution_id=execution_id,
            rows_inserted=rows_inserted,
            execution_time_seconds=round(execution_time, 3),
        )

        return {
            'execution_id': execution_id,
            'state': 'SUCCESS',
            'pattern_type': script.pattern_type,
            'rows_inserted': rows_inserted,
            'execution_time_seconds': execution_time,
        }
