"""
Target Metadata - Column types and quoted names of merge targets
"""

from dataclasses import dataclass, field
from enum import Enum
import re
from typing import Dict, List, Mapping, Optional
from types import MappingProxyType

import structlog
from psycopg2 import sql

logger = structlog.get_logger()


class CatalogError(Exception):
    """Raised when target metadata cannot be resolved"""
    pass


class TypeCategory(Enum):
    """Storage type categories that drive increment behaviour"""
    TEMPORAL = "temporal"
    TEXTUAL = "textual"
    OTHER = "other"


TEMPORAL_TYPES = {
    'date',
    'timestamp',
    'timestamp without time zone',
    'timestamp with time zone',
    'timestamptz',
    'time',
    'time without time zone',
    'time with time zone',
    'timetz',
}

TEXTUAL_TYPES = {
    'text',
    'character varying',
    'varchar',
    'character',
    'char',
    'bpchar',
    'citext',
    'name',
}


def categorize_type(data_type: str) -> TypeCategory:
    """
    Map a PostgreSQL data type to its increment category

    Length and precision modifiers are ignored, so ``varchar(64)`` and
    ``timestamp(3) with time zone`` resolve like their bare types.
    """
    normalized = data_type.strip().lower()
    if '(' in normalized:
        head, _, rest = normalized.partition('(')
        normalized = f"{head.strip()} {rest.partition(')')[2].strip()}".strip()

    if normalized in TEMPORAL_TYPES:
        return TypeCategory.TEMPORAL
    if normalized in TEXTUAL_TYPES:
        return TypeCategory.TEXTUAL
    return TypeCategory.OTHER


@dataclass(frozen=True)
class TargetTable:
    """Metadata of a persistent merge target"""
    name: str
    quoted_name: str
    column_types: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'column_types', MappingProxyType(dict(self.column_types)))

    def column_category(self, column: str) -> Optional[TypeCategory]:
        """Category of a column, or None when the column is unknown"""
        data_type = self.column_types.get(column)
        if data_type is None:
            return None
        return categorize_type(data_type)


_NAME_PART = re.compile(r'"((?:[^"]|"")*)"|([^.]+)')


def split_qualified_name(name: str) -> List[str]:
    """
    Split a dotted relation name the way PostgreSQL resolves it

    Quoted parts keep their case and lose the quotes, unquoted parts are
    folded to lower case.
    """
    parts = []
    for match in _NAME_PART.finditer(name):
        quoted, bare = match.groups()
        if quoted is not None:
            parts.append(quoted.replace('""', '"'))
        elif bare.strip():
            parts.append(bare.strip().lower())
    return parts


def quote_qualified_name(name: str) -> str:
    """Double-quote each dotted part of a relation name"""
    parts = split_qualified_name(name)
    return '.'.join('"{}"'.format(part.replace('"', '""')) for part in parts)


class StaticCatalog:
    """In-memory catalog built from declared column types"""

    def __init__(self, tables: Optional[Dict[str, Dict[str, str]]] = None):
        """
        Args:
            tables: Mapping of relation name to ``{column: data_type}``
        """
        self._tables: Dict[str, TargetTable] = {}
        for name, columns in (tables or {}).items():
            self.register(name, columns)

    def register(self, name: str, column_types: Dict[str, str]) -> TargetTable:
        table = TargetTable(
            name=name,
            quoted_name=quote_qualified_name(name),
            column_types=column_types,
        )
        self._tables[name] = table
        return table

    def get_table(self, name: str) -> TargetTable:
        try:
            return self._tables[name]
        except KeyError:
            raise CatalogError(f"Unknown target table: {name}")


class PostgresCatalog:
    """Catalog backed by information_schema of a live PostgreSQL connection"""

    COLUMNS_QUERY = """
        SELECT column_name, data_type
        FROM information_schema.columns
        WHERE table_schema = %s AND table_name = %s
        ORDER BY ordinal_position
    """

    def __init__(self, connection, default_schema: str = 'public'):
        """
        Args:
            connection: psycopg2 connection used for introspection
            default_schema: Schema assumed for unqualified table names
        """
        self.connection = connection
        self.default_schema = default_schema
        self._cache: Dict[str, TargetTable] = {}

    def get_table(self, name: str) -> TargetTable:
        if name in self._cache:
            return self._cache[name]

        parts = split_qualified_name(name)
        if not parts:
            raise CatalogError(f"Unknown target table: {name}")
        table = parts[-1]
        schema = parts[-2] if len(parts) > 1 else self.default_schema

        with self.connection.cursor() as cursor:
            cursor.execute(self.COLUMNS_QUERY, (schema, table))
            rows = cursor.fetchall()

        if not rows:
            raise CatalogError(f"Unknown target table: {schema}.{table}")

        quoted_name = sql.Identifier(schema, table).as_string(self.connection)
        target = TargetTable(
            name=name,
            quoted_name=quoted_name,
            column_types={column: data_type for column, data_type in rows},
        )

        logger.debug("catalog_table_loaded", table=name, columns=len(rows))
        self._cache[name] = target
        return target
