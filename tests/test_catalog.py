"""
Test Suite for Target Metadata
"""

from unittest.mock import MagicMock, patch

import pytest

from catalog import CatalogError, PostgresCatalog, StaticCatalog, TypeCategory, categorize_type
from catalog.metadata import quote_qualified_name, split_qualified_name


class TestCategorizeType:
    """Test PostgreSQL type categorization"""

    @pytest.mark.parametrize('data_type', [
        'date',
        'timestamp without time zone',
        'timestamp with time zone',
        'timestamptz',
        'TIMESTAMP(3) WITH TIME ZONE',
        'time',
    ])
    def test_temporal(self, data_type):
        assert categorize_type(data_type) is TypeCategory.TEMPORAL

    @pytest.mark.parametrize('data_type', ['text', 'character varying', 'varchar(64)', 'character(2)', 'citext'])
    def test_textual(self, data_type):
        assert categorize_type(data_type) is TypeCategory.TEXTUAL

    @pytest.mark.parametrize('data_type', ['integer', 'bigint', 'numeric(10,2)', 'double precision', 'interval'])
    def test_other(self, data_type):
        assert categorize_type(data_type) is TypeCategory.OTHER


class TestQualifiedNames:
    """Test relation name resolution"""

    @pytest.mark.parametrize('name, parts', [
        ('public.daily_clicks', ['public', 'daily_clicks']),
        ('Public.Daily_Clicks', ['public', 'daily_clicks']),
        ('"Analytics"."Daily"', ['Analytics', 'Daily']),
        ('"my.schema".clicks', ['my.schema', 'clicks']),
        ('"odd""name"', ['odd"name']),
    ])
    def test_split(self, name, parts):
        assert split_qualified_name(name) == parts

    def test_quote_keeps_quoted_case(self):
        assert quote_qualified_name('"Analytics".Daily') == '"Analytics"."daily"'


class TestStaticCatalog:
    """Test in-memory catalog"""

    def test_get_table(self):
        catalog = StaticCatalog({'public.daily_clicks': {'clicks': 'bigint'}})

        table = catalog.get_table('public.daily_clicks')

        assert table.quoted_name == '"public"."daily_clicks"'
        assert table.column_category('clicks') is TypeCategory.OTHER
        assert table.column_category('missing') is None

    def test_quotes_embedded_quotes(self):
        table = StaticCatalog().register('odd"name', {})

        assert table.quoted_name == '"odd""name"'

    def test_unknown_table(self):
        with pytest.raises(CatalogError, match='Unknown target table'):
            StaticCatalog().get_table('public.missing')

    def test_column_types_read_only(self):
        table = StaticCatalog({'t': {'a': 'text'}}).get_table('t')

        with pytest.raises(TypeError):
            table.column_types['b'] = 'text'


class TestPostgresCatalog:
    """Test information_schema backed catalog"""

    @pytest.fixture
    def connection(self):
        connection = MagicMock()
        cursor = connection.cursor.return_value.__enter__.return_value
        cursor.fetchall.return_value = [('company_id', 'integer'), ('referer', 'text')]
        return connection

    def test_get_table_introspects_columns(self, connection):
        with patch('catalog.metadata.sql.Identifier') as identifier:
            identifier.return_value.as_string.return_value = '"analytics"."daily_clicks"'
            table = PostgresCatalog(connection).get_table('analytics.daily_clicks')

        cursor = connection.cursor.return_value.__enter__.return_value
        assert cursor.execute.call_args[0][1] == ('analytics', 'daily_clicks')
        identifier.assert_called_once_with('analytics', 'daily_clicks')
        assert table.quoted_name == '"analytics"."daily_clicks"'
        assert table.column_category('referer') is TypeCategory.TEXTUAL

    def test_default_schema(self, connection):
        with patch('catalog.metadata.sql.Identifier'):
            PostgresCatalog(connection, default_schema='stats').get_table('daily_clicks')

        cursor = connection.cursor.return_value.__enter__.return_value
        assert cursor.execute.call_args[0][1] == ('stats', 'daily_clicks')

    def test_quoted_mixed_case_name(self, connection):
        with patch('catalog.metadata.sql.Identifier') as identifier:
            PostgresCatalog(connection).get_table('"Analytics"."Daily"')

        cursor = connection.cursor.return_value.__enter__.return_value
        assert cursor.execute.call_args[0][1] == ('Analytics', 'Daily')
        identifier.assert_called_once_with('Analytics', 'Daily')

    def test_unquoted_name_folded_to_lower_case(self, connection):
        with patch('catalog.metadata.sql.Identifier'):
            PostgresCatalog(connection).get_table('Analytics.Daily_Clicks')

        cursor = connection.cursor.return_value.__enter__.return_value
        assert cursor.execute.call_args[0][1] == ('analytics', 'daily_clicks')

    def test_tables_are_cached(self, connection):
        with patch('catalog.metadata.sql.Identifier'):
            catalog = PostgresCatalog(connection)
            catalog.get_table('daily_clicks')
            catalog.get_table('daily_clicks')

        assert connection.cursor.call_count == 1

    def test_missing_table(self, connection):
        connection.cursor.return_value.__enter__.return_value.fetchall.return_value = []

        with pytest.raises(CatalogError):
            PostgresCatalog(connection).get_table('public.missing')
