"""
Execution Package - Runs merge scripts with transaction and retry handling
"""

from .executor import MergeExecutor, ExecutionError
from .retry_handler import RetryHandler, RetryStrategy

__all__ = [
    'MergeExecutor',
    'ExecutionError',
    'RetryHandler',
    'RetryStrategy',
]
