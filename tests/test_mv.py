import io

from teachos.mv import main, move_all, move_dir, move_file, move_one


def _tree(root):
    (root / "sub").mkdir(parents=True)
    (root / "a").write_bytes(b"A")
    (root / "sub" / "b").write_bytes(b"B")


def test_move_file_renames(tmp_path):
    src = tmp_path / "src"
    src.write_bytes(b"payload")
    move_file(str(src), str(tmp_path / "dst"), io.StringIO())
    assert (tmp_path / "dst").read_bytes() == b"payload"
    assert not src.exists()


def test_move_file_into_directory(tmp_path):
    src = tmp_path / "f"
    src.write_bytes(b"data")
    (tmp_path / "d").mkdir()
    move_file(str(src), str(tmp_path / "d"), io.StringIO())
    assert (tmp_path / "d" / "f").read_bytes() == b"data"
    assert not src.exists()


def test_move_file_missing_source(tmp_path):
    missing = str(tmp_path / "none")
    out = io.StringIO()
    move_file(missing, str(tmp_path / "dst"), out)
    assert out.getvalue() == f"mv: cannot open {missing}\n"
    assert not (tmp_path / "dst").exists()


def test_move_dir_moves_tree(tmp_path):
    _tree(tmp_path / "src")
    (tmp_path / "dest").mkdir()
    move_dir(str(tmp_path / "src"), str(tmp_path / "dest"), io.StringIO())
    assert (tmp_path / "dest" / "src" / "a").read_bytes() == b"A"
    assert (tmp_path / "dest" / "src" / "sub" / "b").read_bytes() == b"B"
    assert not (tmp_path / "src").exists()


def test_move_dir_missing_source(tmp_path, capsys):
    missing = str(tmp_path / "gone")
    move_dir(missing, str(tmp_path / "t"), io.StringIO())
    assert capsys.readouterr().err == f"mv: cannot open {missing}\n"


def test_move_one_dispatches(tmp_path):
    _tree(tmp_path / "src")
    move_one(str(tmp_path / "src" / "a"), str(tmp_path / "moved"), io.StringIO())
    assert (tmp_path / "moved").read_bytes() == b"A"
    move_one(str(tmp_path / "src"), str(tmp_path / "newdir"), io.StringIO())
    assert (tmp_path / "newdir" / "sub" / "b").read_bytes() == b"B"
    assert not (tmp_path / "src").exists()


def test_move_all_empties_current_dir(tmp_path, monkeypatch):
    work = tmp_path / "work"
    _tree(work)
    monkeypatch.chdir(work)
    target = tmp_path / "out"
    move_all(str(target), io.StringIO())
    assert (target / "a").read_bytes() == b"A"
    assert (target / "sub" / "b").read_bytes() == b"B"
    assert list(work.iterdir()) == []


def test_main_missing_operands(capsys):
    assert main([]) == 1
    assert capsys.readouterr().err == "mv: missing file operand\n"
    assert main(["x"]) == 1
    assert capsys.readouterr().err == "mv: missing destination file operand after 'x'\n"


def test_main_many_sources_need_directory(tmp_path, capsys):
    (tmp_path / "a").write_bytes(b"1")
    (tmp_path / "b").write_bytes(b"2")
    target = str(tmp_path / "c")
    assert main([str(tmp_path / "a"), str(tmp_path / "b"), target]) == 1
    assert capsys.readouterr().err == f"mv: target '{target}' is not a directory\n"
    assert (tmp_path / "a").exists()


def test_main_moves_into_directory(tmp_path):
    (tmp_path / "a").write_bytes(b"1")
    (tmp_path / "b").write_bytes(b"2")
    (tmp_path / "d").mkdir()
    assert main([str(tmp_path / "a"), str(tmp_path / "b"), str(tmp_path / "d")]) == 0
    assert (tmp_path / "d" / "a").read_bytes() == b"1"
    assert (tmp_path / "d" / "b").read_bytes() == b"2"
    assert not (tmp_path / "a").exists()