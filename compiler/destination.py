"""
Destination - Describes how staged data is merged into a target table
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

DEFAULT_VALUE_DELIMITER = ','


@dataclass(frozen=True)
class Destination:
    """
    Merge destination configuration

    All field names (``fields``, ``key_fields``, ``increment_fields``,
    ``conditions``) are target table names. ``fields_map`` only tells
    which staged column feeds a target field when the names differ::

        fields_map = {'pages': 'value', 'date': 'start_month_date'}

    ``conditions`` and ``source_conditions`` are raw SQL fragments joined
    with AND. They may reference named parameters (``%(name)s``) from
    the merge context.
    """
    target: str
    fields: Tuple[str, ...]
    key_fields: Tuple[str, ...] = ()
    increment_fields: Tuple[str, ...] = ()
    fields_map: Mapping[str, str] = field(default_factory=dict)
    group_by: Tuple[str, ...] = ()
    conditions: Tuple[str, ...] = ()
    source_conditions: Tuple[str, ...] = ()
    matching_expr: Optional[str] = None
    value_delimiter: str = DEFAULT_VALUE_DELIMITER

    def __post_init__(self):
        for name in ('fields', 'key_fields', 'increment_fields', 'group_by',
                     'conditions', 'source_conditions'):
            object.__setattr__(self, name, tuple(getattr(self, name) or ()))
        object.__setattr__(self, 'fields_map', MappingProxyType(dict(self.fields_map or {})))
        if self.value_delimiter is None:
            object.__setattr__(self, 'value_delimiter', DEFAULT_VALUE_DELIMITER)

    @property
    def is_incremental(self) -> bool:
        """True when matched rows are updated rather than blindly inserted"""
        return bool(self.increment_fields)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'Destination':
        """Build a destination from a plain configuration dictionary"""
        return cls(
            target=config['target'],
            fields=config.get('fields', ()),
            key_fields=config.get('key_fields', ()),
            increment_fields=config.get('increment_fields', ()),
            fields_map=config.get('fields_map', {}),
            group_by=config.get('group_by', ()),
            conditions=config.get('conditions', ()),
            source_conditions=config.get('source_conditions', ()),
            matching_expr=config.get('matching_expr'),
            value_delimiter=config.get('value_delimiter', DEFAULT_VALUE_DELIMITER),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'target': self.target,
            'fields': list(self.fields),
            'key_fields': list(self.key_fields),
            'increment_fields': list(self.increment_fields),
            'fields_map': dict(self.fields_map),
            'group_by': list(self.group_by),
            'conditions': list(self.conditions),
            'source_conditions': list(self.source_conditions),
            'matching_expr': self.matching_expr,
            'value_delimiter': self.value_delimiter,
        }
