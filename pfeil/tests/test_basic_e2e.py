"""Basic smoke tests for pfeil.

Quick sanity checks that the package imports and the CLI is wired up. For
end-to-end runs, see test_comprehensive_e2e.py.
"""

import pytest

import pfeil
from pfeil.cli import build_parser, main, parse_args


def test_version_exposed():
    """Smoke test: version is accessible."""
    assert hasattr(pfeil, '__version__')
    assert isinstance(pfeil.__version__, str)
    assert len(pfeil.__version__) > 0


def test_version_option(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--version"])
    assert excinfo.value.code == 0
    assert pfeil.__version__ in capsys.readouterr().out


def test_parser_splits_operation_and_command():
    args = build_parser().parse_args(["-v", "-t", "a=1", "op", "ls", "-la"])
    assert args.verbose
    assert args.tags == ["a=1"]
    assert args.operation == "op"
    assert args.command == ["ls", "-la"]


def test_options_after_operation():
    args = parse_args(["-y", "op", "-t", "a=1", "-vs", "svc", "--tag=b=2", "ls", "-la"])
    assert args.sample
    assert args.verbose
    assert args.service == "svc"
    assert args.tags == ["a=1", "b=2"]
    assert args.operation == "op"
    assert args.command == ["ls", "-la"]


def test_double_dash_ends_options():
    args = parse_args(["op", "-t", "a=1", "--", "-t", "b=2"])
    assert args.tags == ["a=1"]
    assert args.command == ["-t", "b=2"]


def test_unknown_option_after_operation():
    with pytest.raises(SystemExit) as excinfo:
        parse_args(["op", "--bogus", "ls"])
    assert excinfo.value.code == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
