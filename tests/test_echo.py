import io

from teachos.echo import echo, main


def test_echo_joins_words():
    out = io.StringIO()
    echo(["hello", "world"], out)
    assert out.getvalue() == "hello world\n"


def test_echo_single_word():
    out = io.StringIO()
    echo(["x"], out)
    assert out.getvalue() == "x\n"


def test_echo_nothing_prints_nothing():
    out = io.StringIO()
    echo([], out)
    assert out.getvalue() == ""


def test_main(capsys):
    assert main(["a", "b", "c"]) == 0
    assert capsys.readouterr().out == "a b c\n"