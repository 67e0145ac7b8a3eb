import threading

import pytest
from PIL import Image

from smarthome.client_images import ClientAvatarStore, circular_image, rounded_image


def _solid(size, color):
    return Image.new("RGB", size, color)


def test_rounded_image_none_returns_none():
    assert rounded_image(None, (10, 10), 3) is None


def test_rounded_image_invalid_size():
    with pytest.raises(ValueError):
        rounded_image(_solid((4, 4), "red"), (0, 10), 2)


def test_rounded_image_corners_transparent_center_opaque():
    result = rounded_image(_solid((20, 20), (255, 0, 0)), (10, 10), 3)
    assert result.size == (10, 10)
    assert result.getpixel((0, 0))[3] == 0
    assert result.getpixel((5, 5)) == (255, 0, 0, 255)


def test_rounded_image_keeps_top_left_when_expanding():
    source = Image.new("RGB", (40, 20), (0, 0, 255))
    source.paste((255, 0, 0), (20, 0, 40, 20))
    result = rounded_image(source, (10, 10), 0)
    r, g, b, a = result.getpixel((5, 5))
    assert r < 10 and b > 245 and a == 255


def test_circular_image():
    result = circular_image(_solid((30, 30), (0, 255, 0)), (20, 20))
    assert result.size == (20, 20)
    assert result.getpixel((0, 0))[3] == 0
    assert result.getpixel((19, 19))[3] == 0
    assert result.getpixel((10, 10))[3] == 255


def test_folder_per_login_user(tmp_path):
    store = ClientAvatarStore(tmp_path)
    store.set_login_user("u1")
    folder = store.folder()
    assert folder == tmp_path / "avatars" / "u1" / "user_avatar"
    assert folder.is_dir()


def test_save_bytes_writes_file_and_calls_back(tmp_path):
    store = ClientAvatarStore(tmp_path)
    store.set_login_user("me")
    called = threading.Event()
    assert store.save_bytes(b"raw", "friend", called.set).result() is True
    assert called.is_set()
    assert (store.folder() / "friend.png").read_bytes() == b"raw"


def test_save_image_none_fails_without_callback(tmp_path):
    store = ClientAvatarStore(tmp_path)
    called = threading.Event()
    assert store.save_image(None, "x", called.set).result() is False
    assert not called.is_set()


def test_save_from_missing_path_fails(tmp_path):
    store = ClientAvatarStore(tmp_path)
    assert store.save_from_path(tmp_path / "missing.png", "x").result() is False


def test_save_from_path_roundtrip(tmp_path):
    source = tmp_path / "src.jpg"
    _solid((7, 5), "white").save(source)
    store = ClientAvatarStore(tmp_path)
    assert store.save_from_path(source, "abc").result() is True
    with Image.open(store.folder() / "abc.png") as saved:
        assert saved.format == "PNG"
        assert saved.size == (7, 5)


def test_load_missing_file_uses_default(tmp_path):
    default = tmp_path / "default.png"
    _solid((3, 4), "blue").save(default)
    store = ClientAvatarStore(tmp_path, default)
    received = []
    image = store.load_from_file(tmp_path / "nope.png", received.append).result()
    assert image.size == (3, 4)
    assert received[0].size == (3, 4)


def test_load_unreadable_file_gives_none(tmp_path):
    broken = tmp_path / "broken.png"
    broken.write_bytes(b"not an image")
    store = ClientAvatarStore(tmp_path)
    received = []
    assert store.load_from_file(broken, received.append).result() is None
    assert received == [None]


def test_get_user_avatar_saved_and_default(tmp_path):
    default = tmp_path / "default.png"
    _solid((2, 2), "black").save(default)
    store = ClientAvatarStore(tmp_path, default)
    store.set_login_user("me")
    store.save_image(_solid((6, 6), "red"), "friend").result()

    saved, fallback = [], []
    store.get_user_avatar("friend", saved.append).result()
    store.get_user_avatar("stranger", fallback.append).result()
    assert saved[0].size == (6, 6)
    assert fallback[0].size == (2, 2)