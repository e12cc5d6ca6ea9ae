"""
Tests for console channels
"""

import pytest

from toybank import console as console_module
from toybank.console import ScriptedConsole, TerminalConsole


class TestScriptedConsole:
    """Test canned responses and recorded output"""

    def test_replays_responses_in_order(self):
        console = ScriptedConsole(["demo", "secret", "y"])

        assert console.prompt("user: ") == "demo"
        assert console.prompt_secret("password: ") == "secret"
        assert console.remaining == 1
        assert console.prompts == ["user: ", "password: "]

    def test_raises_eof_when_exhausted(self):
        console = ScriptedConsole([])
        with pytest.raises(EOFError):
            console.prompt("anything? ")

    def test_records_output(self):
        console = ScriptedConsole([])
        console.write("first")
        console.write()
        console.write("second")
        assert console.output == ["first", "", "second"]
        assert console.transcript == "first\n\nsecond"


class TestTerminalConsole:
    """Test the terminal binding without a terminal"""

    def test_prompt_uses_input(self, monkeypatch):
        monkeypatch.setattr("builtins.input", lambda text: f"answer to {text}")
        assert TerminalConsole().prompt("q") == "answer to q"

    def test_secret_uses_getpass(self, monkeypatch):
        monkeypatch.setattr(console_module.getpass, "getpass", lambda text: "hidden")
        assert TerminalConsole().prompt_secret("password: ") == "hidden"

    def test_write_prints(self, capsys):
        TerminalConsole().write("Loan # 100 in the amount of $500.00")
        TerminalConsole().write()
        assert capsys.readouterr().out == "Loan # 100 in the amount of $500.00\n\n"
