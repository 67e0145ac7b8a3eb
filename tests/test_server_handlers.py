import io
import sqlite3

import pytest
from PIL import Image

from smarthome.avatars import AvatarStore
from smarthome.dbutils import query_user_detail, validate_password
from smarthome.packets import parse_data_packets
from smarthome.pool import ConnectionPool
from smarthome.query import DatabaseQuery
from smarthome.server_handlers import HttpResponse, ServerHandlers

SCHEMA = (
    "create table user (user_id text primary key, user_name text, password text, "
    "avatar_path text, confidential text, age integer, gender integer, birthday text)"
)


def _pool(db_path, with_schema=True):
    if with_schema:
        conn = sqlite3.connect(db_path)
        conn.execute(SCHEMA)
        conn.commit()
        conn.close()
    return ConnectionPool(lambda name: sqlite3.connect(db_path, check_same_thread=False))


@pytest.fixture
def setup(tmp_path):
    pool = _pool(tmp_path / "db.sqlite")
    query = DatabaseQuery(pool)
    avatars = AvatarStore(tmp_path / "store")
    yield ServerHandlers(query, avatars), query, avatars
    pool.close_all()


def _register(handlers):
    password = "password"
    response = handlers.handle_register(
        {"user_name": "alice", "password": password, "confidential": "placeholder"}, b""
    )
    assert response is not None
    return response


def test_register_replies_with_credentials(setup):
    handlers, query, _ = setup
    response = _register(handlers)
    assert response.content_type == "application/json"
    document = response.json()
    assert document["type"] == "registerSuccess"
    user_id = document["params"]["user_id"]
    assert len(user_id) == 10 and user_id.isdigit()
    assert document["params"]["password"] == "password"
    assert validate_password(user_id, "password", query) is True


def test_register_without_table_gives_no_reply(tmp_path):
    pool = _pool(tmp_path / "empty.sqlite", with_schema=False)
    handlers = ServerHandlers(DatabaseQuery(pool), AvatarStore(tmp_path / "store"))
    password = "password"
    assert handlers.handle_register({"user_name": "x", "password": password}) is None
    pool.close_all()


def test_query_user_returns_binary_packet(setup):
    handlers, _, _ = setup
    user_id = _register(handlers).json()["params"]["user_id"]
    response = handlers.handle_query_user({"query_id": user_id, "user_id": user_id}, b"")
    assert response.content_type == "application/octet-stream"
    packets = parse_data_packets(response.body)
    assert len(packets) == 1
    assert packets[0].type == "queryUser"
    assert packets[0].params["user_id"] == user_id
    assert packets[0].params["user_name"] == "alice"
    assert packets[0].params["size"] == 0
    assert packets[0].data == b""


def test_password_change_with_right_answer(setup):
    handlers, query, _ = setup
    user_id = _register(handlers).json()["params"]["user_id"]
    new_password = "secret"
    response = handlers.handle_password_change(
        {"user_id": user_id, "confidential": "placeholder", "password": new_password}
    )
    assert response.json() == {"type": "passwordChange", "params": {"error": False}}
    assert validate_password(user_id, new_password, query) is True


def test_password_change_with_wrong_answer(setup):
    handlers, query, _ = setup
    user_id = _register(handlers).json()["params"]["user_id"]
    new_password = "secret"
    response = handlers.handle_password_change(
        {"user_id": user_id, "confidential": "token", "password": new_password}
    )
    assert response.json()["params"]["error"] is True
    assert validate_password(user_id, "password", query) is True
    assert query_user_detail(user_id, query)["password"] == "password"


def test_update_avatar_saves_and_forwards(setup):
    handlers, _, avatars = setup
    buffer = io.BytesIO()
    Image.new("RGB", (4, 3), (255, 0, 0)).save(buffer, format="PNG")
    png = buffer.getvalue()
    payload = handlers.handle_update_user_avatar({"user_id": "55"}, png)
    packets = parse_data_packets(payload)
    assert [p.type for p in packets] == ["updateUserAvatar"]
    assert packets[0].data == png
    assert packets[0].params["user_id"] == "55"
    saved = avatars.user_folder() / "55.png"
    with Image.open(saved) as image:
        assert image.size == (4, 3)


def test_update_avatar_rejects_garbage(setup):
    handlers, _, avatars = setup
    assert handlers.handle_update_user_avatar({"user_id": "56"}, b"not an image") is None
    assert not (avatars.user_folder() / "56.png").exists()


def test_http_response_json_round_trip():
    response = HttpResponse.from_json({"a": [1, 2]})
    assert response.json() == {"a": [1, 2]}
    assert response.content_type == "application/json"