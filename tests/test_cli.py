import json

from conftest import RAW_ATTRIBUTES
from testing_utils import unreachable_url

from py_n5.cli import build_parser, main


def test_cli_exists(group_url, capsys):
    assert main([group_url, "exists", "raw"]) == 0
    assert capsys.readouterr().out.strip() == "true"

    assert main([group_url, "exists", "missing"]) == 1
    assert capsys.readouterr().out.strip() == "false"


def test_cli_attributes(group_url, capsys):
    assert main([group_url, "attributes", "raw"]) == 0
    assert json.loads(capsys.readouterr().out) == RAW_ATTRIBUTES


def test_cli_block(group_url, capsys):
    assert main([group_url, "--read-timeout", "5", "block", "raw", "0", "0", "1"]) == 0
    out = capsys.readouterr().out
    assert "Block size: [2, 3, 1]" in out
    assert "Elements: 6" in out
    assert "Data type: uint16" in out


def test_cli_block_of_a_group(group_url, capsys):
    assert main([group_url, "block", "group", "0"]) == 1
    assert "not a dataset" in capsys.readouterr().err


def test_cli_errors(capsys):
    assert main([unreachable_url(), "--connect-timeout", "1", "attributes", "raw"]) == 2
    assert "An error occurred" in capsys.readouterr().err


def test_cli_defaults():
    args = build_parser().parse_args(["http://example.org/data.n5", "exists", "raw"])
    assert args.connect_timeout == 10.0
    assert args.read_timeout == 60.0
    assert not args.verbose
