import logging

import pytest

from pocketchat import __version__
from pocketchat.cli import main
from pocketchat.config import get_settings


@pytest.fixture(autouse=True)
def reset_logging():
    """main() points the root logger at the captured stderr; undo that."""
    root = logging.getLogger()
    saved = root.handlers[:], root.level
    yield
    root.handlers[:], root.level = saved[0], saved[1]


def run(db_path, *args):
    return main(["--db", db_path, *args])


def test_register_login_and_chat(db_path, capsys):
    assert run(db_path, "register", "alice", "pw1") == 0
    assert run(db_path, "register", "bob", "pw2") == 0
    assert run(db_path, "login", "alice", "pw1") == 0
    assert run(db_path, "send", "alice", "bob", "--text", "hi") == 0
    assert run(db_path, "send", "bob", "alice", "--image", "file://img.jpg") == 0
    capsys.readouterr()

    assert run(db_path, "chat", "bob", "alice") == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 2
    assert "alice -> bob: hi" in lines[0]
    assert "<image file://img.jpg>" in lines[1]


def test_failures_exit_with_one(db_path, capsys):
    run(db_path, "register", "alice", "pw1")
    capsys.readouterr()

    assert run(db_path, "register", "alice", "pw1") == 1
    assert "already exists" in capsys.readouterr().err

    assert run(db_path, "login", "alice", "nope") == 1
    assert "Invalid username or password" in capsys.readouterr().err

    assert run(db_path, "send", "alice", "bob") == 1
    assert "text or an image" in capsys.readouterr().err

    assert run(db_path, "photo", "carol", "file://p.jpg") == 1


def test_users_and_photo(db_path, capsys):
    for name in ("alice", "bob", "carol"):
        run(db_path, "register", name, "pw")
    run(db_path, "photo", "bob", "file://bob.jpg")
    capsys.readouterr()

    assert run(db_path, "users", "alice") == 0
    assert capsys.readouterr().out.splitlines() == ["bob  file://bob.jpg", "carol"]

    assert run(db_path, "photo", "bob") == 0
    assert capsys.readouterr().out.strip() == "file://bob.jpg"


def test_migrate_reports_schema(db_path, capsys):
    assert run(db_path, "migrate") == 0
    out = capsys.readouterr().out
    assert "Schema version: 4" in out
    assert "users: id, username, password, photo" in out
    assert "Integrity: ok" in out


def test_default_database_comes_from_settings(capsys):
    assert main(["register", "alice", "pw1"]) == 0
    assert "User registered: alice" in capsys.readouterr().out


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--version"])
    assert exc.value.code == 0
    assert __version__ in capsys.readouterr().out


def test_invalid_settings_exit_with_one(db_path, monkeypatch, capsys):
    monkeypatch.setenv("LOG_LEVEL", "LOUD")
    get_settings.cache_clear()

    assert run(db_path, "migrate") == 1
    assert "Error:" in capsys.readouterr().err
