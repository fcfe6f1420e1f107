from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path

import pytest

from conftest import ListReader
from slackpipe import main as entry
from slackpipe.exceptions import DeliveryError

CONFIG_TOML = """
[user]
name = "ci-runner"

[channels.chatops]
url = "https://hooks.slack.test/services/chatops"
channel = "#chatops"

[channels.alerts]
url = "https://hooks.slack.test/services/alerts"
channel = "#alerts"
"""


class FakeRelay:
    instances: list["FakeRelay"] = []
    error: Exception | None = None

    def __init__(self, config, target, username="", icon="") -> None:
        self.config = config
        self.target = target
        self.username = username
        self.icon = icon
        self.sent: list[str] = []
        self.streamed = None
        FakeRelay.instances.append(self)

    async def __aenter__(self) -> "FakeRelay":
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None

    async def send_text(self, text: str) -> int:
        if FakeRelay.error is not None:
            raise FakeRelay.error
        self.sent.append(text)
        return 1

    async def stream(self, reader) -> None:
        if FakeRelay.error is not None:
            raise FakeRelay.error
        self.streamed = reader


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "slackchannels.toml"
    path.write_text(CONFIG_TOML, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def fake_relay(monkeypatch):
    FakeRelay.instances = []
    FakeRelay.error = None
    monkeypatch.setattr(entry, "SlackRelay", FakeRelay)
    return FakeRelay


def test_parse_args() -> None:
    args = entry.parse_args(["-c", "alerts", "-n", "bot", "-i", ":fire:", "disk", "full"])

    assert args.channel == "alerts"
    assert args.name == "bot"
    assert args.icon == ":fire:"
    assert args.message == ["disk", "full"]
    assert args.quiet is False


def test_parse_args_streaming_defaults() -> None:
    args = entry.parse_args(["--quiet"])

    assert args.message == []
    assert args.channel is None
    assert args.quiet is True


def test_single_shot_message(config_file: Path) -> None:
    code = asyncio.run(
        entry.main(["--config-file", str(config_file), "-c", "alerts", "deploy", "finished"])
    )

    relay = FakeRelay.instances[0]
    assert code == 0
    assert relay.sent == ["deploy finished"]
    assert relay.target.channel == "#alerts"
    assert relay.username == "ci-runner"


def test_streaming_mode_reads_stdin(config_file: Path, monkeypatch) -> None:
    reader = ListReader([b"line\n"])

    @asynccontextmanager
    async def fake_open(stream):
        yield reader

    monkeypatch.setattr(entry, "open_line_reader", fake_open)

    code = asyncio.run(entry.main(["--config-file", str(config_file), "-q"]))

    relay = FakeRelay.instances[0]
    assert code == 0
    assert relay.streamed is reader
    assert relay.target.channel == "#chatops"
    assert relay.config.echo is False


def test_unknown_channel_exits_before_relaying(config_file: Path) -> None:
    code = asyncio.run(entry.main(["--config-file", str(config_file), "-c", "nowhere", "hi"]))

    assert code == 1
    assert FakeRelay.instances == []


def test_missing_config_file_exits(tmp_path: Path) -> None:
    code = asyncio.run(entry.main(["--config-file", str(tmp_path / "none.toml"), "hi"]))

    assert code == 1
    assert FakeRelay.instances == []


def test_fatal_delivery_error_exits_nonzero(config_file: Path) -> None:
    FakeRelay.error = DeliveryError("Post failed: invalid_token, status: 403", status_code=403)

    code = asyncio.run(entry.main(["--config-file", str(config_file), "hello"]))

    assert code == 1
