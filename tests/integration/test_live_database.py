"""
Integration tests against a live database server

Configure the server with SCHEMA_CRUD_DATABASE__* environment variables;
the tests are skipped otherwise. They only read.
"""
import os

import pytest

from schema_crud.core.config import Config
from schema_crud.core.database import Database

pytestmark = pytest.mark.integration


@pytest.fixture(scope="module")
def live_db():
    """Database facade over the configured server"""
    if not os.environ.get('SCHEMA_CRUD_DATABASE__TYPE'):
        pytest.skip("No live database configured")

    database = Database.from_config(Config.from_env())
    database.set_json_output(False)
    yield database
    database.close()


def test_schema_is_scanned(live_db):
    """Test every table has column metadata"""
    for table in live_db.catalog.table_names:
        assert live_db.catalog.get_table(table).columns_by_name


def test_count_and_simple_select_agree(live_db):
    """Test the derived reads on every table with a primary key"""
    for table in sorted(live_db.catalog.table_names):
        if not live_db.catalog.primary_key_of(table):
            continue
        rows = live_db.simple_select(table)
        assert len(rows) == live_db.count_from_table(table)


def test_empty_transaction_batch(live_db):
    """Test the no-op batch"""
    assert live_db.execute_transaction([]) is False
