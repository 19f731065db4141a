"""
Preview Package - Dry runs of merges
"""

from .preview_engine import PreviewEngine, PreviewError

__all__ = ['PreviewEngine', 'PreviewError']
