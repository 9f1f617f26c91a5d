import io
import os

from teachos.layout import DIRSIZ, InodeType
from teachos.ls import fmtname, ls, main


def test_fmtname_pads_short_names():
    assert fmtname("a/b") == "b" + " " * (DIRSIZ - 1)
    assert len(fmtname("x")) == DIRSIZ


def test_fmtname_keeps_long_names():
    name = "n" * (DIRSIZ + 3)
    assert fmtname("dir/" + name) == name


def test_ls_file(tmp_path):
    f = tmp_path / "data"
    f.write_bytes(b"abc")
    out, err = io.StringIO(), io.StringIO()
    ls(str(f), out, err)
    fields = out.getvalue().split()
    assert fields == ["data", str(int(InodeType.FILE)), str(os.stat(f).st_ino), "3"]
    assert out.getvalue().startswith(fmtname(str(f)))
    assert err.getvalue() == ""


def test_ls_directory_lists_entries(tmp_path):
    (tmp_path / "f").write_bytes(b"hello")
    (tmp_path / "sub").mkdir()
    out, err = io.StringIO(), io.StringIO()
    ls(str(tmp_path), out, err)
    lines = out.getvalue().splitlines()
    rows = {line.split()[0]: line.split()[1:] for line in lines}
    assert rows["f"][0] == str(int(InodeType.FILE))
    assert rows["f"][2] == "5"
    assert rows["sub"][0] == str(int(InodeType.DIR))
    assert rows["."][0] == str(int(InodeType.DIR))
    assert ".." in rows
    assert len(lines) == 4


def test_ls_missing_path(tmp_path):
    missing = str(tmp_path / "nope")
    out, err = io.StringIO(), io.StringIO()
    ls(missing, out, err)
    assert err.getvalue() == f"ls: cannot open {missing}\n"
    assert out.getvalue() == ""


def test_ls_path_too_long(tmp_path):
    path = str(tmp_path) + "/." * 260
    out, err = io.StringIO(), io.StringIO()
    ls(path, out, err)
    assert out.getvalue() == "ls: path too long\n"


def test_main_defaults_to_current_dir(tmp_path, monkeypatch, capsys):
    (tmp_path / "only").write_bytes(b"")
    monkeypatch.chdir(tmp_path)
    assert main([]) == 0
    names = [line.split()[0] for line in capsys.readouterr().out.splitlines()]
    assert "only" in names