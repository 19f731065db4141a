"""
Compiler Package - Merge planning into SQL scripts
"""

from .destination import Destination
from .context import MergeContext
from .script import MergeScript, Statement
from .merge_planner import MergePlanner, CompilationError, ConfigurationError
from .guardrails import SQLGuardrails, SQLGuardrailError
from .patterns import PatternFactory

__all__ = [
    'Destination',
    'MergeContext',
    'MergeScript',
    'Statement',
    'MergePlanner',
    'CompilationError',
    'ConfigurationError',
    'SQLGuardrails',
    'SQLGuardrailError',
    'PatternFactory',
]
