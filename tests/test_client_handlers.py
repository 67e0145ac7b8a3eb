import io

import pytest
from PIL import Image

from smarthome.client_handlers import ClientHandlers
from smarthome.client_images import ClientAvatarStore
from smarthome.eventbus import EventBus


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def handlers(bus, tmp_path):
    return ClientHandlers(bus, ClientAvatarStore(tmp_path))


def _png(size=(4, 3)):
    buffer = io.BytesIO()
    Image.new("RGB", size, (10, 20, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


def test_login_validation_success_emits(handlers, bus):
    got = []
    bus.login_validation_success.connect(got.append)
    handlers.handle_login_validation_success({"user_id": "u1", "token": "token"})
    assert got == [{"user_id": "u1", "token": "token"}]


def test_register_success_emits(handlers, bus):
    got = []
    bus.register_success.connect(got.append)
    handlers.handle_register_success({"user_id": "u2", "password": "password"})
    assert got == [{"user_id": "u2", "password": "password"}]


def test_login_success_saves_avatar_and_announces(handlers, bus, tmp_path):
    got = []
    bus.login_user_init.connect(got.append)
    params = {"user_id": "u7", "user_name": "Ann"}
    assert handlers.handle_login_success(params, b"avatar-bytes").result() is True
    saved = tmp_path / "avatars" / "u7" / "user_avatar" / "u7.png"
    assert saved.read_bytes() == b"avatar-bytes"
    assert got == [params]


def test_update_avatar_emits_decoded_image(handlers, bus):
    got = []
    bus.update_user_avatar.connect(lambda user_id, image: got.append((user_id, image.size)))
    result = handlers.handle_update_user_avatar({"user_id": "u3"}, _png((4, 3)))
    assert result.size == (4, 3)
    assert got == [("u3", (4, 3))]


def test_update_avatar_rejects_bad_data(handlers, bus):
    got = []
    bus.update_user_avatar.connect(lambda *args: got.append(args))
    assert handlers.handle_update_user_avatar({"user_id": "u3"}, b"not an image") is None
    assert got == []