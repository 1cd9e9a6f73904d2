import pytest

from clientcast.client.errors import ConfigError
from clientcast.config import load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ("LOGIN", "PASSWORD", "BOT_ID", "LANG", "BASE_URL"):
        monkeypatch.delenv(f"CLIENTCAST_{key}", raising=False)
    # Keep a developer's .env out of the tests
    monkeypatch.setattr("clientcast.config.load_dotenv", lambda: False)


def test_load_yaml_config(tmp_path):
    yaml_text = """
login: operator
password: secret
bot_id: "42"
lang: en
detail_workers: 50
pace_seconds: 0.2
test_recipient: 796508261
campaign: spring
"""
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text(yaml_text)
    cfg = load_config(cfg_path, use_env=False)
    assert cfg.login == "operator"
    assert cfg.bot_id == "42"
    assert cfg.lang == "en"
    assert cfg.detail_workers == 50
    assert cfg.send_workers == 10
    assert cfg.pace_seconds == 0.2
    assert cfg.test_recipient == "796508261"
    assert cfg.extra["campaign"] == "spring"
    assert cfg.credentials.login == "operator"
    assert cfg.credentials.lang == "en"


def test_load_legacy_json_config(tmp_path):
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text(
        '{"botId": "7", "bolangtId": "ru", "login": "op", "password": "pw"}'
    )
    cfg = load_config(cfg_path, use_env=False)
    assert cfg.bot_id == "7"
    assert cfg.lang == "ru"
    assert cfg.output_dir == "users_json"


def test_env_overrides_file(tmp_path, monkeypatch):
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text("login: file-user\npassword: file-pw\n")
    monkeypatch.setenv("CLIENTCAST_PASSWORD", "env-pw")
    monkeypatch.setenv("CLIENTCAST_BASE_URL", "https://env.test/api")
    cfg = load_config(cfg_path)
    assert cfg.login == "file-user"
    assert cfg.password == "env-pw"
    assert cfg.base_url == "https://env.test/api"


def test_env_only(monkeypatch):
    monkeypatch.setenv("CLIENTCAST_LOGIN", "env-user")
    monkeypatch.setenv("CLIENTCAST_PASSWORD", "env-pw")
    cfg = load_config(None)
    assert cfg.login == "env-user"


def test_missing_credentials(tmp_path):
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text("bot_id: 1\n")
    with pytest.raises(ConfigError):
        load_config(cfg_path, use_env=False)


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope.yaml", use_env=False)


def test_invalid_values(tmp_path):
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text("login: a\npassword: b\nsend_workers: 0\n")
    with pytest.raises(ConfigError):
        load_config(cfg_path, use_env=False)

    cfg_path.write_text("login: a\npassword: b\ndetail_workers: many\n")
    with pytest.raises(ConfigError):
        load_config(cfg_path, use_env=False)


def test_not_a_mapping(tmp_path):
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text("- just\n- a list\n")
    with pytest.raises(ConfigError):
        load_config(cfg_path, use_env=False)


def test_message_file(tmp_path):
    message_path = tmp_path / "message.html"
    message_path.write_text("<b>ВНИМАНИЕ</b>", encoding="utf-8")
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text(f"login: a\npassword: b\nmessage: inline\nmessage_file: {message_path}\n")
    cfg = load_config(cfg_path, use_env=False)
    assert cfg.read_message() == "<b>ВНИМАНИЕ</b>"


def test_message_file_not_utf8(tmp_path):
    message_path = tmp_path / "message.html"
    message_path.write_bytes("ВНИМАНИЕ".encode("cp1251"))
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text(f"login: a\npassword: b\nmessage_file: {message_path}\n")
    cfg = load_config(cfg_path, use_env=False)
    with pytest.raises(ConfigError):
        cfg.read_message()
