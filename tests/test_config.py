from smarthome.config import ConfigFile


def test_value_round_trips_through_file(tmp_path):
    path = tmp_path / "config.ini"
    ConfigFile(path).set_value("user_id", "1234")
    assert ConfigFile(path).value("user_id") == "1234"


def test_missing_key_returns_default(tmp_path):
    config = ConfigFile(tmp_path / "config.ini")
    assert config.value("absent") is None
    assert config.value("absent", "fallback") == "fallback"


def test_remove_value(tmp_path):
    path = tmp_path / "config.ini"
    config = ConfigFile(path)
    config.set_value("token", "token")
    config.remove_value("token")
    assert config.value("token") is None
    assert ConfigFile(path).value("token") is None


def test_grouped_keys_are_separate(tmp_path):
    path = tmp_path / "config.ini"
    config = ConfigFile(path)
    config.set_value("net/host", "localhost")
    config.set_value("host", "other")
    reread = ConfigFile(path)
    assert reread.value("net/host") == "localhost"
    assert reread.value("host") == "other"


def test_key_case_is_kept(tmp_path):
    path = tmp_path / "config.ini"
    ConfigFile(path).set_value("UserName", "Ann")
    reread = ConfigFile(path)
    assert reread.value("UserName") == "Ann"
    assert reread.value("username") is None


def test_booleans_are_stored_as_words(tmp_path):
    path = tmp_path / "config.ini"
    ConfigFile(path).set_value("remember", True)
    assert ConfigFile(path).value("remember") == "true"


def test_new_file_is_open(tmp_path):
    assert ConfigFile(tmp_path / "new.ini").is_open() is True


def test_ungrouped_file_is_read(tmp_path):
    path = tmp_path / "plain.ini"
    path.write_text("user_id=99\n", encoding="utf-8")
    config = ConfigFile(path)
    assert config.is_open() is True
    assert config.value("user_id") == "99"


def test_malformed_file_is_not_open(tmp_path):
    path = tmp_path / "bad.ini"
    path.write_text("[unterminated\n", encoding="utf-8")
    config = ConfigFile(path)
    assert config.is_open() is False
    assert config.value("anything", "d") == "d"