"""Tests for the CLI connector."""

import io

import pytest

from stepflow.connectors.base import Connector, IncomingMessage
from stepflow.connectors.cli import CLIConnector
from stepflow.skills.base import SkillResponse


class TestCLIConnector:
    def test_is_connector(self):
        assert isinstance(CLIConnector(user_id="me"), Connector)

    @pytest.mark.asyncio
    async def test_reply_prints_prompt(self, capsys):
        await CLIConnector(user_id="me").reply("cli", SkillResponse("What now?", "shopping", 0))
        assert "shopping: What now?" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_reply_empty_prompt(self, capsys):
        await CLIConnector(user_id="me").reply("cli", SkillResponse("", "shopping", 1))
        assert "(noted)" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_start_feeds_lines_until_exit(self, monkeypatch, capsys):
        lines = iter(["socks", "", "exit"])
        cli = CLIConnector(user_id="me", package="shopping")
        monkeypatch.setattr(cli, "_read_input", lambda: next(lines))
        seen: list[IncomingMessage] = []

        async def handler(msg: IncomingMessage) -> SkillResponse:
            seen.append(msg)
            return SkillResponse("ok", "shopping", 0)

        await cli.start(handler)
        assert [m.text for m in seen] == ["socks"]
        assert seen[0].user_id == "me"
        assert seen[0].metadata == {"package": "shopping"}
        assert "Bye!" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_greeting_names_skill_and_user(self, monkeypatch, capsys):
        cli = CLIConnector(user_id="me", package="shopping")
        monkeypatch.setattr(cli, "_read_input", lambda: None)

        async def handler(msg: IncomingMessage) -> SkillResponse:
            raise AssertionError("no input expected")

        await cli.start(handler)
        out = capsys.readouterr().out
        assert "stepflow: shopping as me." in out
        assert "Bye!" in out

    def test_read_input_prompts_with_user(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.TextIOWrapper(io.BytesIO("chaussettes\n".encode())))
        assert CLIConnector(user_id="me")._read_input() == "chaussettes"
        assert capsys.readouterr().out.endswith("me> ")

    def test_read_input_eof(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.TextIOWrapper(io.BytesIO(b"")))
        assert CLIConnector(user_id="me")._read_input() is None
