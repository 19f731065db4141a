"""
Test Suite for Destination Document Validation
"""

import json

import pytest
import yaml

from compiler import Destination
from destination_schema.v1.validator import (
    DestinationValidationError,
    DestinationValidator,
    load_destination,
    split_fields,
)


@pytest.fixture
def validator():
    return DestinationValidator()


@pytest.fixture
def document():
    """Valid destination document"""
    return {
        'schema_version': '1.0',
        'name': 'daily_clicks',
        'target': 'public.daily_clicks',
        'fields': ['company_id', 'date', 'clicks'],
        'key_fields': ['company_id', 'date'],
        'increment_fields': ['clicks'],
        'fields_map': {'clicks': 'SUM(value)'},
        'group_by': ['company_id', 'date'],
        'conditions': ['target.date >= %(date)s'],
        'source_conditions': ['date >= %(date)s'],
        'value_delimiter': ';',
    }


class TestSchemaValidation:
    """Test JSON schema validation"""

    def test_valid_document(self, validator, document):
        is_valid, errors = validator.validate(document)

        assert is_valid, f"Validation failed: {errors}"

    def test_missing_required_field(self, validator, document):
        del document['target']

        is_valid, errors = validator.validate(document)

        assert not is_valid
        assert any('target' in error for error in errors)

    def test_unknown_property(self, validator, document):
        document['write_mode'] = 'merge'

        is_valid, errors = validator.validate(document)

        assert not is_valid
        assert any('write_mode' in error for error in errors)

    def test_wrong_type(self, validator, document):
        document['conditions'] = 'a = 1'

        is_valid, errors = validator.validate(document)

        assert not is_valid
        assert any('conditions' in error for error in errors)


class TestSemanticValidation:
    """Test semantic rules"""

    def test_keys_or_matching_expr_required(self, validator, document):
        del document['key_fields']

        is_valid, errors = validator.validate(document)

        assert not is_valid
        assert any('matching_expr' in error for error in errors)

    def test_matching_expr_without_keys(self, validator, document):
        del document['key_fields']
        document['matching_expr'] = '(source.company_id, source.date) = (target.company_id, target.date)'

        is_valid, errors = validator.validate(document)

        assert is_valid, errors

    def test_increment_field_must_be_listed(self, validator, document):
        document['increment_fields'] = ['views']

        is_valid, errors = validator.validate(document)

        assert not is_valid
        assert "Field 'views' in 'increment_fields' is not listed in 'fields'" in errors

    def test_empty_fields(self, validator, document):
        document['fields'] = []
        document['key_fields'] = []
        document['increment_fields'] = []

        is_valid, errors = validator.validate(document)

        assert not is_valid

    def test_comma_separated_lists(self, validator, document):
        document['fields'] = 'company_id, date, clicks'
        document['key_fields'] = 'company_id,date'

        destination = validator.validate_and_build(document)

        assert destination.fields == ('company_id', 'date', 'clicks')
        assert destination.key_fields == ('company_id', 'date')

    def test_split_fields_drops_blanks(self):
        assert split_fields(' company_id, ,date ,') == ['company_id', 'date']


class TestBuildDestination:
    """Test conversion into Destination"""

    def test_validate_and_build(self, validator, document):
        destination = validator.validate_and_build(document)

        assert isinstance(destination, Destination)
        assert destination.increment_fields == ('clicks',)
        assert destination.fields_map['clicks'] == 'SUM(value)'
        assert destination.value_delimiter == ';'

    def test_validate_and_build_raises(self, validator, document):
        del document['fields']

        with pytest.raises(DestinationValidationError):
            validator.validate_and_build(document)

    def test_load_yaml(self, tmp_path, document):
        path = tmp_path / 'daily_clicks.yaml'
        path.write_text(yaml.dump(document))

        destination = load_destination(str(path))

        assert destination.target == 'public.daily_clicks'

    def test_load_json(self, tmp_path, document):
        path = tmp_path / 'daily_clicks.json'
        path.write_text(json.dumps(document))

        assert load_destination(str(path)).group_by == ('company_id', 'date')

    def test_load_non_mapping(self, tmp_path):
        path = tmp_path / 'broken.yaml'
        path.write_text('- just\n- a list\n')

        with pytest.raises(DestinationValidationError):
            load_destination(str(path))

    def test_default_delimiter(self, validator, document):
        del document['value_delimiter']

        assert validator.validate_and_build(document).value_delimiter == ','
