"""
Unit tests for SQL generation
"""
import pytest

from schema_crud.core.exceptions import MissingField, UnsupportedMethod
from schema_crud.core.query_builder import Dialect, as_count, build, insert_parameters
from schema_crud.models.descriptor import Method, QueryDescriptor


class TestSelect:
    """Test SELECT generation"""

    def test_select_with_where_order_and_limit(self):
        """Test filtered, ordered and limited select"""
        sql = build({
            'method': 'SELECT',
            'table': 'users',
            'fields': ['id', 'name'],
            'where': 'active = 1',
            'order_by': 'name ASC',
            'limit': 10
        })
        assert sql == "SELECT id, name FROM users WHERE active = 1 ORDER BY name ASC LIMIT 10"

    def test_select_defaults_to_star(self):
        """Test select without fields"""
        assert build(QueryDescriptor(Method.SELECT, 'users')) == "SELECT * FROM users"

    def test_clause_order_is_fixed(self):
        """Test every clause lands in its fixed position"""
        descriptor = QueryDescriptor(
            Method.SELECT, 'orders',
            fields=['user_id', 'COUNT(*) AS n'],
            joins=['JOIN users ON users.id = orders.user_id'],
            where='orders.total > 10',
            group_by='user_id',
            having='COUNT(*) > 1',
            order_by='n DESC',
            limit='5',
            offset='10'
        )
        assert build(descriptor) == (
            "SELECT user_id, COUNT(*) AS n FROM orders "
            "JOIN users ON users.id = orders.user_id "
            "WHERE orders.total > 10 GROUP BY user_id HAVING COUNT(*) > 1 "
            "ORDER BY n DESC LIMIT 5 OFFSET 10"
        )

    def test_same_descriptor_gives_same_sql(self):
        """Test output is deterministic"""
        descriptor = QueryDescriptor(Method.SELECT, 'users', fields=['id'], where='id > 1')
        assert build(descriptor) == build(descriptor)

    @pytest.mark.parametrize('limit', ['ten', -1, 1.5, True, None, 0])
    def test_non_numeric_limit_is_omitted(self, limit):
        """Test invalid limits drop the clause"""
        sql = build(QueryDescriptor(Method.SELECT, 'users', limit=limit, offset='x'))
        assert sql == "SELECT * FROM users"

    def test_sqlserver_paging(self):
        """Test OFFSET/FETCH paging for SQL Server"""
        descriptor = QueryDescriptor(Method.SELECT, 'users', limit=10, offset=20)
        assert build(descriptor, Dialect.SQLSERVER) == (
            "SELECT * FROM users ORDER BY (SELECT NULL) OFFSET 20 ROWS FETCH NEXT 10 ROWS ONLY"
        )

    def test_sqlserver_without_paging_matches_generic(self):
        """Test dialects only differ in paging"""
        descriptor = QueryDescriptor(Method.SELECT, 'users', order_by='name')
        assert build(descriptor, Dialect.SQLSERVER) == build(descriptor)

    def test_paginate(self):
        """Test page to limit/offset conversion"""
        page = QueryDescriptor(Method.SELECT, 'users').paginate(3, 25)
        assert build(page) == "SELECT * FROM users LIMIT 25 OFFSET 50"

    def test_paginate_rejects_page_zero(self):
        """Test pages are numbered from 1"""
        with pytest.raises(ValueError):
            QueryDescriptor(Method.SELECT, 'users').paginate(0, 25)


class TestInsert:
    """Test INSERT generation"""

    def test_multi_row_insert(self):
        """Test one placeholder tuple per row"""
        sql = build({'method': 'INSERT', 'table': 'users', 'fields': ['name', 'email'], 'row_count': 2})
        assert sql == "INSERT INTO users (name, email) VALUES (:name_0, :email_0), (:name_1, :email_1)"

    def test_values_to_insert_alias(self):
        """Test the values_to_insert spelling of row_count"""
        sql = build({'method': 'insert', 'table': 't', 'fields': ['a'], 'values_to_insert': 3})
        assert sql == "INSERT INTO t (a) VALUES (:a_0), (:a_1), (:a_2)"

    def test_default_single_row(self):
        """Test row count defaults to one"""
        assert build(QueryDescriptor(Method.INSERT, 't', fields=['a', 'b'])) == (
            "INSERT INTO t (a, b) VALUES (:a_0, :b_0)"
        )

    def test_requires_fields(self):
        """Test insert without fields"""
        with pytest.raises(MissingField):
            build(QueryDescriptor(Method.INSERT, 'users'))

    def test_zero_rows(self):
        """Test row count of zero"""
        with pytest.raises(MissingField):
            build(QueryDescriptor(Method.INSERT, 'users', fields=['a'], row_count=0))

    def test_insert_parameters(self):
        """Test row values map onto suffixed names"""
        params = insert_parameters(['name'], [{'name': 'Ana'}, {'name': 'Bo'}])
        assert params == {'name_0': 'Ana', 'name_1': 'Bo'}


class TestUpdateDelete:
    """Test UPDATE and DELETE generation"""

    def test_update(self):
        """Test update with join and where"""
        descriptor = QueryDescriptor(
            Method.UPDATE, 'users', fields=['name', 'email'],
            joins=['JOIN teams ON teams.id = users.team_id'], where='users.id = :id'
        )
        assert build(descriptor) == (
            "UPDATE users SET name = :name, email = :email "
            "JOIN teams ON teams.id = users.team_id WHERE users.id = :id"
        )

    def test_update_without_where(self):
        """Test update of every row"""
        assert build(QueryDescriptor(Method.UPDATE, 'users', fields=['a'])) == "UPDATE users SET a = :a"

    def test_update_requires_fields(self):
        """Test update without fields"""
        with pytest.raises(MissingField):
            build(QueryDescriptor(Method.UPDATE, 'users', where='id = 1'))

    def test_delete(self):
        """Test delete with ordering and limit"""
        descriptor = QueryDescriptor(
            Method.DELETE, 'logs', where='level = :level', order_by='created_at', limit=100
        )
        assert build(descriptor) == (
            "DELETE FROM logs WHERE level = :level ORDER BY created_at LIMIT 100"
        )

    @pytest.mark.parametrize('limit', [0, -3, 'all'])
    def test_delete_drops_non_positive_limit(self, limit):
        """Test non-positive delete limits"""
        assert build(QueryDescriptor(Method.DELETE, 'logs', limit=limit)) == "DELETE FROM logs"


class TestDescriptorErrors:
    """Test descriptor validation"""

    @pytest.mark.parametrize('method', [None, '', 'MERGE'])
    def test_unsupported_method(self, method):
        """Test missing or unknown methods"""
        with pytest.raises(UnsupportedMethod):
            build(QueryDescriptor(method, 'users'))

    def test_missing_table(self):
        """Test descriptor without table"""
        with pytest.raises(MissingField):
            build(QueryDescriptor(Method.SELECT))

    def test_as_count(self):
        """Test count parsing"""
        assert as_count(7) == 7
        assert as_count(' 12 ') == 12
        assert as_count('1e3') is None
        assert as_count(False) is None
