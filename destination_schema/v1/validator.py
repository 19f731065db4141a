"""
Destination Validator - Validates destination documents against JSON schema and semantic rules
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from jsonschema import Draft7Validator

from compiler.destination import Destination

DEFAULT_SCHEMA_PATH = Path(__file__).parent / 'destination.schema.json'

FIELD_LIST_KEYS = ('fields', 'key_fields', 'increment_fields', 'group_by')


class DestinationValidationError(Exception):
    """Raised when destination validation fails"""
    pass


class DestinationValidator:
    """Validates destination documents against schema and semantic rules"""

    def __init__(self, schema_path: Optional[str] = None):
        """
        Initialize validator with schema

        Args:
            schema_path: Path to JSON schema file (defaults to the bundled v1 schema)
        """
        self.schema_path = Path(schema_path) if schema_path else DEFAULT_SCHEMA_PATH
        self.schema = self._load_schema()

    def _load_schema(self) -> Dict[str, Any]:
        """Load JSON schema from file"""
        try:
            with open(self.schema_path, 'r') as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise DestinationValidationError(f"Failed to load schema: {e}")

    def validate(self, document: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """
        Validate destination document against schema and semantic rules

        Args:
            document: Destination document to validate

        Returns:
            Tuple of (is_valid, list_of_errors)
        """
        errors = self._validate_schema(document)

        # Semantic validation only if schema is valid
        if not errors:
            errors.extend(self._validate_semantic(normalize_document(document)))

        return (len(errors) == 0, errors)

    def _validate_schema(self, document: Dict[str, Any]) -> List[str]:
        """Validate against JSON schema"""
        errors = []
        validator = Draft7Validator(self.schema)

        for error in sorted(validator.iter_errors(document), key=lambda e: list(e.absolute_path)):
            path = '.'.join(str(p) for p in error.absolute_path) if error.absolute_path else 'root'
            errors.append(f"Schema validation error at {path}: {error.message}")

        return errors

    def _validate_semantic(self, document: Dict[str, Any]) -> List[str]:
        """Validate semantic rules"""
        errors = []

        fields = document.get('fields', [])
        if not fields:
            errors.append("Destination requires at least one field in 'fields'")

        if len(fields) != len(set(fields)):
            errors.append("Duplicate fields in 'fields'")

        for key in ('key_fields', 'increment_fields'):
            for field in document.get(key, []):
                if field not in fields:
                    errors.append(f"Field '{field}' in '{key}' is not listed in 'fields'")

        if not document.get('key_fields') and not document.get('matching_expr'):
            errors.append("Destination requires 'key_fields' or 'matching_expr'")

        return errors

    def validate_and_build(self, document: Dict[str, Any]) -> Destination:
        """
        Validate document and convert it into a Destination

        Raises:
            DestinationValidationError: If validation fails
        """
        is_valid, errors = self.validate(document)
        if not is_valid:
            raise DestinationValidationError(f"Destination validation failed: {'; '.join(errors)}")
        return Destination.from_dict(normalize_document(document))


def split_fields(value: str) -> List[str]:
    """Split a comma separated field list"""
    return [part.strip() for part in value.split(',') if part.strip()]


def normalize_document(document: Dict[str, Any]) -> Dict[str, Any]:
    """Expand comma separated field lists into lists"""
    normalized = dict(document)
    for key in FIELD_LIST_KEYS:
        value = normalized.get(key)
        if isinstance(value, str):
            normalized[key] = split_fields(value)
    return normalized


def load_destination(path: str, schema_path: Optional[str] = None) -> Destination:
    """
    Load destination from YAML/JSON file and validate

    Args:
        path: Path to destination file
        schema_path: Optional override of the JSON schema

    Returns:
        Validated destination

    Raises:
        DestinationValidationError: If validation fails
    """
    with open(path, 'r') as f:
        if str(path).endswith(('.yaml', '.yml')):
            document = yaml.safe_load(f)
        else:
            document = json.load(f)

    if not isinstance(document, dict):
        raise DestinationValidationError(f"Destination file must contain a mapping: {path}")

    return DestinationValidator(schema_path).validate_and_build(document)
