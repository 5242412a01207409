from __future__ import annotations

import pytest

from racetime_client.__main__ import build_parser


def test_help_lists_commands(capsys):
    with pytest.raises(SystemExit) as excinfo:
        build_parser().parse_args(["--help"])

    assert excinfo.value.code == 0
    out = capsys.readouterr().out
    for command in ("races", "race", "watch", "say", "cancel"):
        assert command in out


def test_say_parses_pin_flag():
    args = build_parser().parse_args(["--category", "cat", "say", "/cat/race-1", "hello", "--pin"])

    assert args.command == "say"
    assert args.category == "cat"
    assert args.url == "/cat/race-1"
    assert args.text == "hello"
    assert args.pin is True


def test_command_is_required():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])
