"""
Merge Context - Per-invocation inputs supplied by the calling engine
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional
import hashlib
import re
import uuid

STAGING_TOKEN_LENGTH = 12


@dataclass(frozen=True)
class MergeContext:
    """
    Immutable context of one merge invocation

    Attributes:
        source_table: Identifier of the already materialized source relation
        params: Named parameters available to condition fragments
        execution_id: Unique id of this invocation, used to name the staging table
        generated_at: ISO timestamp written into the script header
    """
    source_table: str
    params: Mapping[str, Any] = field(default_factory=dict)
    execution_id: str = ''
    generated_at: str = ''

    def __post_init__(self):
        object.__setattr__(self, 'params', MappingProxyType(dict(self.params or {})))

    @classmethod
    def create(cls,
               source_table: str,
               params: Optional[Dict[str, Any]] = None,
               execution_id: Optional[str] = None,
               generated_at: Optional[str] = None) -> 'MergeContext':
        """Create a context, generating the execution id and timestamp if absent"""
        return cls(
            source_table=source_table,
            params=params or {},
            execution_id=execution_id or str(uuid.uuid4()),
            generated_at=generated_at or datetime.now(timezone.utc).isoformat(),
        )

    @property
    def staging_token(self) -> str:
        """
        Short identifier-safe token that keeps staging tables of concurrent
        merges apart

        Short ids keep their alphanumeric characters so the staging table
        stays recognizable. Longer ids such as uuids or timestamps are
        hashed instead of cut, so ids sharing a prefix get distinct tokens.
        """
        cleaned = re.sub(r'[^0-9a-z]', '', self.execution_id.lower())
        if cleaned and len(cleaned) <= STAGING_TOKEN_LENGTH:
            return cleaned
        return hashlib.sha1(self.execution_id.encode('utf-8')).hexdigest()[:STAGING_TOKEN_LENGTH]
