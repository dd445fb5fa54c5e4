"""Tests for CLI output helpers."""

from __future__ import annotations

import json

import pytest

from seatkeeper.frontends.cli.output import error_exit, output_json, print_table


class TestErrorExit:
    def test_prints_to_stderr_and_exits(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            error_exit("cannot connect to logind")

        assert exc_info.value.code == 1
        captured = capsys.readouterr()
        assert captured.err == "Error: cannot connect to logind\n"
        assert captured.out == ""

    def test_custom_code(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            error_exit("bad", code=2)

        assert exc_info.value.code == 2


class TestOutputJson:
    def test_sorted_keys(self, capsys):
        output_json({"b": 1, "a": 2})

        out = capsys.readouterr().out
        assert json.loads(out) == {"a": 2, "b": 1}
        assert out.index('"a"') < out.index('"b"')


class TestPrintTable:
    def test_columns_are_aligned(self, capsys):
        print_table(["ID", "PATH"], [["2", "/s/_32"], ["c10", "/s/c10"]])

        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "ID  PATH"
        assert lines[2] == "2   /s/_32"
        assert lines[3] == "c10 /s/c10"
