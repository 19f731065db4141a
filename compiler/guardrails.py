"""
SQL Guardrails - Enforce safety rules on generated merge scripts
"""

import re
from typing import List, Tuple

from compiler.patterns.base_pattern import GENERATED_SQL_MARKER
from compiler.script import MergeScript, STAGE, RELEASE, RECONCILE_KINDS


class SQLGuardrailError(Exception):
    """Raised when SQL violates guardrails"""
    pass


class SQLGuardrails:
    """Enforces safety guardrails on generated merge scripts"""

    # Blocked SQL operations
    BLOCKED_OPERATIONS = [
        r'\bDROP\s+DATABASE\b',
        r'\bDROP\s+SCHEMA\b',
        r'\bTRUNCATE\b',
        r'\bALTER\s+TABLE\b',
    ]

    # Operations requiring WHERE clause
    REQUIRE_WHERE = [
        r'\bDELETE\s+FROM\b',
    ]

    DROP_TABLE = re.compile(r'\bDROP\s+TABLE\s+(?:IF\s+EXISTS\s+)?([^\s;]+)', re.IGNORECASE)

    # String literals, quoted identifiers and comments
    NON_CODE = re.compile(r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"|--[^\n]*|/\*.*?\*/", re.DOTALL)

    def __init__(self, strict_mode: bool = True):
        """
        Initialize guardrails

        Args:
            strict_mode: If True, raise on violations. If False, just return violations.
        """
        self.strict_mode = strict_mode

    def validate_script(self, script: MergeScript) -> Tuple[bool, List[str]]:
        """
        Validate a merge script against guardrails

        Args:
            script: Generated merge script

        Returns:
            Tuple of (is_valid, list_of_violations)
        """
        violations = []

        if GENERATED_SQL_MARKER not in script.header:
            violations.append("SQL must have merge planner header (generated SQL only)")

        kinds = script.kinds
        if len(kinds) != 3 or kinds[0] != STAGE or kinds[1] not in RECONCILE_KINDS or kinds[2] != RELEASE:
            violations.append(f"Statements must run stage, reconcile, release; got {', '.join(kinds)}")

        code = self._strip_non_code(script.sql)

        for pattern in self.BLOCKED_OPERATIONS:
            if re.search(pattern, code, re.IGNORECASE):
                violations.append(f"Blocked operation detected: {pattern}")

        # Only the staging table may be dropped
        for dropped in self.DROP_TABLE.findall(code):
            if dropped != script.staging_table:
                violations.append(f"Blocked operation detected: DROP TABLE {dropped}")

        for pattern in self.REQUIRE_WHERE:
            for match in re.finditer(pattern + r'.*?(?=;|$)', code, re.IGNORECASE | re.DOTALL):
                if not re.search(r'\bWHERE\b', match.group(0), re.IGNORECASE):
                    violations.append(f"Operation requires WHERE clause: {pattern}")

        is_valid = len(violations) == 0
        return (is_valid, violations)

    def _strip_non_code(self, sql: str) -> str:
        """
        Blank out comments and the contents of string literals and quoted
        identifiers, so keywords appearing as data are not mistaken for
        operations
        """
        def blank(match):
            token = match.group(0)
            if token[0] in ("'", '"'):
                return token[0] * 2
            return ' '

        return self.NON_CODE.sub(blank, sql)

    def validate_and_raise(self, script: MergeScript):
        """
        Validate script and raise if violations found

        Raises:
            SQLGuardrailError: If violations found
        """
        is_valid, violations = self.validate_script(script)

        if not is_valid:
            raise SQLGuardrailError(
                "SQL guardrail violations:\n" + "\n".join(f"  - {v}" for v in violations)
            )
