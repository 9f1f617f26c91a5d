import io
import sys

import pytest

from teachos.fold import fold, main


def _fold(data, width):
    out = io.BytesIO()
    fold(io.BytesIO(data), out, width)
    return out.getvalue()


def test_fold_breaks_at_width():
    assert _fold(b"abcdef", 3) == b"abc\ndef\n\n"


@pytest.mark.parametrize("width", [1, 5, 17, 80])
def test_fold_invariants(width):
    data = b"the quick brown fox\njumps over\n\nthe lazy dog\n" * 20
    result = _fold(data, width)
    assert result.endswith(b"\n")
    assert all(len(line) <= width for line in result.split(b"\n"))
    assert result.replace(b"\n", b"") == data.replace(b"\n", b"")


def test_fold_drops_empty_lines():
    result = _fold(b"a\n\n\nb\n", 80)
    assert b"\n\n\n" not in result
    assert result.split(b"\n")[:2] == [b"a", b"b"]


def test_main_width_option(tmp_path, capsysbinary):
    path = tmp_path / "in"
    data = b"0123456789" * 3 + b"\n"
    path.write_bytes(data)
    assert main(["-w", "4", str(path)]) == 0
    assert capsysbinary.readouterr().out == _fold(data, 4)


def test_main_attached_width(tmp_path, capsysbinary):
    path = tmp_path / "in"
    data = b"x" * 25
    path.write_bytes(data)
    assert main(["-w6", str(path)]) == 0
    assert capsysbinary.readouterr().out == _fold(data, 6)


def test_main_dash_number(tmp_path, capsysbinary):
    path = tmp_path / "in"
    data = b"y" * 25
    path.write_bytes(data)
    assert main(["-7", str(path)]) == 0
    assert capsysbinary.readouterr().out == _fold(data, 7)


def test_main_default_width_from_stdin(monkeypatch, capsysbinary):
    data = b"a" * 100
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(data)))
    assert main([]) == 0
    assert capsysbinary.readouterr().out == _fold(data, 80)


def test_main_missing_file(tmp_path, capsysbinary):
    missing = tmp_path / "none"
    assert main([str(missing)]) == 1
    assert capsysbinary.readouterr().out == f"fold: cannot open {missing}\n".encode()


def test_main_w_without_value(capsysbinary):
    assert main(["-w"]) == 1
    assert b"fold:" in capsysbinary.readouterr().err