import io

from colorama import Fore

from tchart import __version__
from tchart.cli import main


def _write(tmp_path, *lines):
    path = tmp_path / "input.txt"
    path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")
    return str(path)


def test_hist(tmp_path, capsys):
    path = _write(tmp_path, "1", "2", "2", "3", "3", "3", "oops")
    rc = main(["hist", path, "-w", "110", "-i", "2", "-p", "1"])
    out = capsys.readouterr().out
    assert rc == 0
    assert "Samples = 6; Min = 1.0; Max = 3.0\n" in out
    assert "[1.0 .. 2.0] [1] ∎\n" in out
    assert "[2.0 .. 3.0] [5] ∎∎∎∎∎\n" in out


def test_hist_range(tmp_path, capsys):
    path = _write(tmp_path, "1", "2", "2", "3", "3", "3")
    rc = main(["hist", path, "-w", "110", "-m", "2", "-M", "3"])
    assert rc == 0
    assert "Samples = 2;" in capsys.readouterr().out


def test_hist_log_scale(tmp_path, capsys):
    path = _write(tmp_path, "-1", "0.5", "2", "6", "15")
    rc = main(["hist", path, "-w", "110", "-i", "4", "-l"])
    assert rc == 0
    assert "Samples = 5;" in capsys.readouterr().out


def test_hist_without_data(tmp_path, capsys):
    rc = main(["hist", _write(tmp_path, "foo")])
    assert rc == 1
    assert "[WARNING] Not enough data to process" in capsys.readouterr().err


def test_hist_invalid_range(tmp_path, capsys):
    rc = main(["hist", _write(tmp_path, "1"), "-m", "5", "-M", "1"])
    assert rc == 2
    assert "[ERROR] Minimum should be smaller than maximum" in capsys.readouterr().err


def test_hist_invalid_regex(tmp_path, capsys):
    rc = main(["hist", _write(tmp_path, "1"), "-R", "("])
    assert rc == 2
    assert "Failed to parse regex (" in capsys.readouterr().err


def test_hist_missing_file(tmp_path, capsys):
    rc = main(["hist", str(tmp_path / "missing.txt")])
    assert rc == 1
    assert "[ERROR] Could not read" in capsys.readouterr().err


def test_hist_verbose(tmp_path, capsys):
    rc = main(["-v", "hist", _write(tmp_path, "1", "oops"), "-w", "110"])
    assert rc == 0
    assert "[DEBUG] Cannot parse float" in capsys.readouterr().err


def test_plot(tmp_path, capsys):
    path = _write(tmp_path, "-1", "0", "1", "2", "3", "4", "-1")
    rc = main(["plot", path, "-w", "3", "-H", "5", "-p", "3"])
    out = capsys.readouterr().out
    assert rc == 0
    assert "[ 3.000]   ● \n" in out
    assert "[-1.000] ●  ●\n" in out


def test_matches(tmp_path, capsys):
    path = _write(tmp_path, "foo", "bar", "foobar")
    rc = main(["matches", path, "foo", "bar", "baz", "-w", "110"])
    out = capsys.readouterr().out
    assert rc == 0
    assert "Matches: 4." in out
    assert "[foo] [2] ∎∎\n" in out
    assert "[baz] [0] \n" in out


def test_matches_with_color(tmp_path, capsys):
    rc = main(["-c", "yes", "matches", _write(tmp_path, "foo"), "foo", "-w", "110"])
    assert rc == 0
    assert Fore.BLUE in capsys.readouterr().out


def test_timehist(tmp_path, capsys):
    path = _write(tmp_path,
                  "[2021-04-15T06:25:31+00:00] foo",
                  "[2021-04-15T06:26:31+00:00] bar",
                  "[2021-04-15T06:27:31+00:00] foo")
    rc = main(["timehist", path, "-i", "2", "-w", "110", "-R", "foo"])
    out = capsys.readouterr().out
    assert rc == 0
    assert "Matches: 2." in out
    assert "[06:25:31.000] [1] ∎\n" in out
    assert "[06:26:31.000] [1] ∎\n" in out


def test_timehist_not_enough_data(tmp_path, capsys):
    rc = main(["timehist", _write(tmp_path, "[2021-04-15T06:25:31+00:00] foo")])
    captured = capsys.readouterr()
    assert rc == 0
    assert captured.out == ""
    assert "Not enough data to process" in captured.err


def test_timehist_undetectable(tmp_path, capsys):
    rc = main(["timehist", _write(tmp_path, "no timestamp")])
    assert rc == 0
    assert "[ERROR] Could not figure out parsing strategy" in capsys.readouterr().err


def test_timehist_invalid_duration(tmp_path, capsys):
    rc = main(["timehist", _write(tmp_path, "1"), "--duration", "soon"])
    assert rc == 2
    assert "Failed to parse duration soon" in capsys.readouterr().err


def test_split_timehist(monkeypatch, capsys):
    stdin = "1619655527.888165 A\n1619655528.888165 A\n1619655527.888165 B\n"
    monkeypatch.setattr("sys.stdin", io.StringIO(stdin))
    rc = main(["split-timehist", "A", "B", "C", "-i", "2", "-w", "110"])
    out = capsys.readouterr().out
    assert rc == 0
    assert "[00:18:47.888165] [1/1/0] ∎∎\n" in out
    assert "[00:18:48.388165] [1/0/0] ∎\n" in out


def test_split_timehist_too_many_labels(capsys):
    rc = main(["split-timehist", "A", "B", "C", "D", "E", "F"])
    assert rc == 2
    assert "Only 5 different sub-groups are supported" in capsys.readouterr().err


def test_common_terms(tmp_path, capsys):
    path = _write(tmp_path, "GET /a", "GET /b", "POST /a", "GET /a")
    rc = main(["common-terms", path, "-R", r"^\w+ (/\w+)", "-w", "110"])
    out = capsys.readouterr().out
    assert rc == 0
    assert "[/a] [3] ∎∎∎\n" in out
    assert "[/b] [1] ∎\n" in out


def test_common_terms_invalid_lines(tmp_path, capsys):
    rc = main(["common-terms", _write(tmp_path, "a"), "-l", "0"])
    assert rc == 2


def test_invalid_intervals(tmp_path, capsys):
    rc = main(["hist", _write(tmp_path, "1"), "-i", "0"])
    assert rc == 2
    assert "Intervals should be a positive number" in capsys.readouterr().err


def test_version(capsys):
    assert main(["-V"]) == 0
    assert f"tchart {__version__}" in capsys.readouterr().out


def test_usage_error(capsys):
    assert main([]) == 2
    assert main(["nope"]) == 2


def test_hist_many_log_intervals(tmp_path, capsys):
    path = _write(tmp_path, *(str(i) for i in range(1100)))
    rc = main(["hist", "-l", "-i", "1100", "-w", "100", path])
    assert rc == 0
    assert "Samples = 1100;" in capsys.readouterr().out
