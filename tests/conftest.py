"""
Shared fixtures for merge planner tests
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from catalog import StaticCatalog
from compiler import Destination, MergeContext, MergePlanner


TARGET = 'public.daily_clicks'

TARGET_COLUMNS = {
    'company_id': 'integer',
    'date': 'date',
    'clicks': 'bigint',
    'referer': 'text',
    'last_seen_at': 'timestamp without time zone',
}


@pytest.fixture
def catalog():
    """In-memory catalog with the daily_clicks target"""
    return StaticCatalog({TARGET: TARGET_COLUMNS})


@pytest.fixture
def planner(catalog):
    return MergePlanner(catalog, strict_guardrails=True)


@pytest.fixture
def context():
    """Deterministic merge context"""
    return MergeContext.create(
        'counters_tmp',
        params={'date': '2024-01-01'},
        execution_id='test-123',
        generated_at='2024-01-02T10:00:00+00:00',
    )


@pytest.fixture
def clicks_destination():
    """Destination incrementing clicks per company and date"""
    return Destination(
        target=TARGET,
        fields=['company_id', 'date', 'clicks'],
        key_fields=['company_id', 'date'],
        increment_fields=['clicks'],
    )


@pytest.fixture
def insert_only_destination():
    return Destination(
        target=TARGET,
        fields=['company_id', 'date', 'clicks'],
        key_fields=['company_id', 'date'],
    )
