import json

import pytest

from hajimi.main import main, read_system_prompt
from hajimi.errors import HajimiError


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """Run from an empty directory with no user settings, no API key and closed stdin."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    def _eof(prompt=""):
        raise EOFError()

    monkeypatch.setattr("builtins.input", _eof)
    return tmp_path


def test_help(capsys):
    main(["--help"])
    assert "Usage: hajimi" in capsys.readouterr().out


def test_unknown_argument_exits(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--bogus"])
    assert exc.value.code == 2


def test_flag_without_value_exits():
    with pytest.raises(SystemExit) as exc:
        main(["--model"])
    assert exc.value.code == 2


def test_missing_api_key_exits(isolated, capsys):
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 1
    assert "API key" in capsys.readouterr().err


def test_dotenv_supplies_api_key_and_session_ends_on_eof(isolated, capsys, monkeypatch):
    (isolated / ".env").write_text("GEMINI_API_KEY=from-dotenv\n", encoding="utf-8")
    main(["-m", "gemini-2.5-pro"])
    out = capsys.readouterr().out
    assert "Model: gemini-2.5-pro" in out
    assert "Goodbye." in out


def test_load_flag_restores_conversation(isolated, capsys, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "k")
    saved = isolated / "conv.json"
    saved.write_text(json.dumps([{"role": "user", "parts": [{"text": "q"}]}, {"role": "model", "parts": [{"text": "a"}]}]), encoding="utf-8")
    main([f"--load={saved}"])
    out = capsys.readouterr().out
    assert "Loaded 2 turn(s)" in out
    assert "model:\na" in out


def test_missing_system_prompt_file_exits(isolated, monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "k")
    with pytest.raises(SystemExit) as exc:
        main(["-s", str(isolated / "missing.txt")])
    assert exc.value.code == 1


def test_read_system_prompt(tmp_path):
    p = tmp_path / "sys.txt"
    p.write_text("You are a cat.", encoding="utf-8")
    assert read_system_prompt(str(p)) == "You are a cat."
    assert read_system_prompt("") == ""
    with pytest.raises(HajimiError):
        read_system_prompt(str(tmp_path / "nope.txt"))
