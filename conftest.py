"""
Pytest configuration and fixtures
Loads environment variables and sets up test infrastructure
"""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv


def pytest_configure(config):
    """Configure pytest and load environment"""
    env_file = Path(__file__).parent / '.env.test'
    if env_file.exists():
        # Variables already set in the environment win
        load_dotenv(env_file, override=False)

    config.addinivalue_line(
        "markers", "postgres: marks tests as requiring a PostgreSQL connection"
    )


@pytest.fixture(scope="session")
def postgres_dsn():
    """DSN of the integration database, skipping the test when unset"""
    dsn = os.getenv("MERGE_PLANNER_TEST_DSN", "")
    if not dsn:
        pytest.skip("PostgreSQL not configured (set MERGE_PLANNER_TEST_DSN)")
    return dsn
