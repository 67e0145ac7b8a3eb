import sqlite3

import pytest

from smarthome.pool import ConnectionPool
from smarthome.query import DatabaseQuery, QueryError


@pytest.fixture
def query(tmp_path):
    db_path = tmp_path / "home.db"
    with sqlite3.connect(db_path) as setup:
        setup.execute(
            "create table user (user_id, user_name TEXT, age INTEGER, birthday TEXT, gender)"
        )
    pool = ConnectionPool(lambda name: sqlite3.connect(db_path))
    yield DatabaseQuery(pool)
    pool.close_all()


INSERT = "insert into user (user_id, user_name, age, birthday, gender) values (?,?,?,?,?)"


def test_insert_then_select_converts_fields(query):
    assert query.execute_non_query(INSERT, ["1001", "alice", 30, "2001-03-15", "1"]) == 1
    rows = query.execute_query("select * from user where user_id=?", ["1001"])
    assert rows == [
        {"user_id": "1001", "user_name": "alice", "age": 30, "birthday": "03-15", "gender": 1}
    ]


def test_null_and_numeric_values_become_text(query):
    query.execute_non_query(INSERT, [42, None, None, None, None])
    (row,) = query.execute_query("select * from user")
    assert row["user_id"] == "42"
    assert row["user_name"] == ""
    assert row["age"] == 0
    assert row["birthday"] == ""


def test_empty_result(query):
    assert query.execute_query("select * from user where user_id=?", ["nobody"]) == []


def test_bad_statements_raise(query):
    with pytest.raises(QueryError):
        query.execute_query("select * from missing_table")
    with pytest.raises(QueryError):
        query.execute_non_query("insert into missing_table values (?)", [1])


def test_transaction_commits_on_true(query):
    def work(conn):
        query.execute_non_query(INSERT, ["7", "bob", 20, "1999-12-01", 0], conn)
        return True

    assert query.execute_transaction(work) is True
    rows = query.execute_query("select user_name from user where user_id=?", ["7"])
    assert rows == [{"user_name": "bob"}]


def test_transaction_rolls_back_on_false(query):
    def work(conn):
        query.execute_non_query(INSERT, ["8", "carol", 20, None, 0], conn)
        assert query.execute_query("select user_id from user", [], conn) == [{"user_id": "8"}]
        return False

    assert query.execute_transaction(work) is False
    assert query.execute_query("select * from user") == []


def test_transaction_rolls_back_and_reraises(query):
    def work(conn):
        query.execute_non_query(INSERT, ["9", "dave", 20, None, 0], conn)
        raise KeyError("boom")

    with pytest.raises(KeyError):
        query.execute_transaction(work)
    assert query.execute_query("select * from user") == []