"""
Expression Builders - SQL fragments shared by all merge patterns

The staged relation is always aliased ``source`` and the target relation
``target``; caller supplied ``matching_expr`` and ``conditions`` rely on
these aliases.
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Mapping, Optional, Sequence, Union

from catalog import TypeCategory

STAGED_ALIAS = 'source'
TARGET_ALIAS = 'target'
STAGING_PREFIX = '_source_'

# PostgreSQL truncates identifiers beyond NAMEDATALEN - 1 bytes
MAX_IDENTIFIER_LENGTH = 63


def resolve_fields_map(fields: Sequence[str], fields_map: Mapping[str, str]) -> Dict[str, str]:
    """
    Resolve the staged column feeding each target field

    Fields missing from ``fields_map`` map onto themselves. Extra entries
    of ``fields_map`` are appended after the declared fields so that
    conditions can still reference them on the staged relation.

    Returns:
        Ordered mapping of target field to staged column expression
    """
    resolved = {target_field: fields_map.get(target_field, target_field) for target_field in fields}
    for target_field, source_field in fields_map.items():
        if target_field not in resolved:
            resolved[target_field] = source_field
    return resolved


def build_selected_fields(full_fields_map: Mapping[str, str]) -> str:
    """Projection list of the staging query"""
    return ', '.join(
        f"{source_field} AS {target_field}"
        for target_field, source_field in full_fields_map.items()
    )


def quote_literal(value: str) -> str:
    """Render a string as a SQL literal"""
    return "'{}'".format(value.replace("'", "''"))


@dataclass(frozen=True)
class Overwrite:
    """Last write wins: the staged value replaces the target value"""

    def render(self, field: str) -> str:
        return f"{field} = {STAGED_ALIAS}.{field}"


@dataclass(frozen=True)
class Concatenate:
    """Staged value joined in front of the existing target value"""
    delimiter: str

    def render(self, field: str) -> str:
        return (
            f"{field} = array_to_string("
            f"ARRAY[{STAGED_ALIAS}.{field}, {TARGET_ALIAS}.{field}], {quote_literal(self.delimiter)})"
        )


@dataclass(frozen=True)
class Add:
    """Staged value added to the target value, NULL counting as zero"""

    def render(self, field: str) -> str:
        return f"{field} = COALESCE({TARGET_ALIAS}.{field}, 0) + {STAGED_ALIAS}.{field}"


UpdateStrategy = Union[Overwrite, Concatenate, Add]


def strategy_for(category: TypeCategory, delimiter: str) -> UpdateStrategy:
    """Pick the update strategy of an increment field from its type category"""
    if category is TypeCategory.TEMPORAL:
        return Overwrite()
    if category is TypeCategory.TEXTUAL:
        return Concatenate(delimiter)
    return Add()


def build_updating_expression(increment_fields: Iterable[str],
                              category_of: Callable[[str], Optional[TypeCategory]],
                              delimiter: str) -> str:
    """
    Build the SET list of the update phase

    Args:
        increment_fields: Target fields combined on update
        category_of: Resolves a target field to its type category
        delimiter: Separator for textual fields

    Raises:
        ValueError: If a field's type category cannot be resolved
    """
    expressions = []
    for field in increment_fields:
        category = category_of(field)
        if category is None:
            raise ValueError(f"Cannot resolve storage type of increment field '{field}'")
        expressions.append(strategy_for(category, delimiter).render(field))
    return ', '.join(expressions)


def build_matching_expression(key_fields: Sequence[str], matching_expr: Optional[str] = None) -> str:
    """
    Predicate telling whether a staged row and a target row are the same entity

    An explicit ``matching_expr`` replaces the key tuple comparison entirely.

    Raises:
        ValueError: If neither key fields nor a matching expression are given
    """
    if matching_expr and matching_expr.strip():
        return matching_expr.strip()

    if not key_fields:
        raise ValueError("Matching requires key_fields or matching_expr")

    staged_keys = ', '.join(f"{STAGED_ALIAS}.{field}" for field in key_fields)
    target_keys = ', '.join(f"{TARGET_ALIAS}.{field}" for field in key_fields)
    return f"({staged_keys}) = ({target_keys})"


def _join_conditions(conditions: Iterable[str]) -> str:
    return ' AND '.join(f"({condition})" for condition in conditions if condition and condition.strip())


def build_extra_conditions(conditions: Iterable[str]) -> str:
    """Conditions appended to the matching predicate, or an empty string"""
    joined = _join_conditions(conditions)
    return f"AND {joined}" if joined else ''


def build_source_conditions(source_conditions: Iterable[str]) -> str:
    """WHERE clause of the staging query, or an empty string"""
    joined = _join_conditions(source_conditions)
    return f"WHERE {joined}" if joined else ''


def build_group_by(group_by: Sequence[str]) -> str:
    """GROUP BY clause of the staging query, or an empty string"""
    if not group_by:
        return ''
    return 'GROUP BY {}'.format(', '.join(group_by))


def staging_table_name(source_table: str, token: str = '') -> str:
    """
    Name of the temporary staging table of one merge

    Derived from the source table plus a per-invocation token, so two
    merges of the same source in one session do not collide.
    """
    base = re.sub(r'[^A-Za-z0-9_]', '_', source_table.replace('"', '')).lower()
    token = re.sub(r'[^a-z0-9_]', '', token.lower())
    suffix = f"_{token}" if token else ''
    name = f"{STAGING_PREFIX}{base}"
    return name[:MAX_IDENTIFIER_LENGTH - len(suffix)] + suffix
