"""End-to-end tests for the timetracker command line."""

from datetime import datetime

import pytest

from timetracker import cli
from timetracker.ledger import NOT_STARTED
from timetracker.models import Annotate, ListRecent, PrintDay, Punch, QuittingTime, Repair, Undo
from timetracker.storage import CONFIG_ENV_VAR


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    monkeypatch.setenv(CONFIG_ENV_VAR, str(config_path))
    return config_path


@pytest.fixture
def clock(monkeypatch):
    moment = {"now": datetime(2024, 1, 1, 9, 0, 0)}
    monkeypatch.setattr(cli, "current_time", lambda: moment["now"])
    return moment


@pytest.fixture
def ledger(tmp_path):
    return tmp_path / "timesheet.txt"


def parse(*argv):
    return cli.request_from_args(cli.build_parser(cli.Config()).parse_args(list(argv)))


def test_default_request_is_punch():
    request = parse("time.txt")
    assert request.operation == Punch()
    assert request.save


def test_print_defaults_to_empty_pattern():
    request = parse("time.txt", "-p")
    assert request.operation == PrintDay("")
    assert not request.save


def test_quitting_time_default_hours():
    assert parse("time.txt", "-q").operation == QuittingTime(8.0)
    assert parse("time.txt", "-q", "7.5").operation == QuittingTime(7.5)


def test_message_is_normalized():
    assert parse("time.txt", "-m", "  two\t\twords \n").operation == Annotate("two words")


def test_empty_message_still_annotates():
    assert parse("time.txt", "-m", "").operation == Annotate("")


def test_count_defaults():
    assert parse("time.txt", "-l").operation == ListRecent(5)
    assert parse("time.txt", "-l", "-c", "2").operation == ListRecent(2)
    assert parse("time.txt", "-l", "-c").operation == ListRecent(5)


def test_precedence_chain():
    assert parse("time.txt", "-p", "-q", "-m", "x").operation == PrintDay("")
    assert parse("time.txt", "-q", "-m", "x", "-r").operation == QuittingTime(8.0)
    assert parse("time.txt", "-m", "x", "-r", "-u").operation == Annotate("x")
    assert parse("time.txt", "-r", "-u", "-l").operation == Repair()
    assert parse("time.txt", "-u", "-l").operation == Undo()


def test_list_flag_suppresses_save_for_other_operations():
    request = parse("time.txt", "-m", "note", "-l")
    assert request.operation == Annotate("note")
    assert not request.save


def test_dry_run_suppresses_save():
    assert not parse("time.txt", "-d").save
    assert not parse("time.txt", "-r", "-d").save


def test_punch_creates_file(ledger, clock, capsys):
    assert cli.main([str(ledger)]) == 0
    assert ledger.read_text() == "2024-01-01    0.0    09:00:00\n"
    assert capsys.readouterr().out == "2024-01-01    0.0    09:00:00\n"


def test_punch_then_message(ledger, clock, capsys):
    cli.main([str(ledger)])
    assert cli.main([str(ledger), "-m", "standup notes"]) == 0
    assert ledger.read_text() == "2024-01-01    0.0    09:00:00    standup notes\n"


def test_second_punch_closes_day(ledger, clock):
    cli.main([str(ledger)])
    clock["now"] = datetime(2024, 1, 1, 17, 30, 0)
    cli.main([str(ledger)])
    assert ledger.read_text() == "2024-01-01    8.5    09:00:00    17:30:00\n"


def test_dry_run_does_not_write(ledger, clock, capsys):
    assert cli.main([str(ledger), "-d"]) == 0
    assert not ledger.exists()
    assert "09:00:00" in capsys.readouterr().out


def test_quitting_time_output(ledger, clock, capsys):
    ledger.write_text("2024-01-01    0.0    09:00:00\n")
    assert cli.main([str(ledger), "-q"]) == 0
    assert capsys.readouterr().out == "17:00:00\n"
    assert ledger.read_text() == "2024-01-01    0.0    09:00:00\n"


def test_quitting_time_before_start(ledger, clock, capsys):
    assert cli.main([str(ledger), "-q"]) == 1
    assert capsys.readouterr().out == f"{NOT_STARTED}\n"
    assert not ledger.exists()


def test_list_recent(ledger, clock, capsys):
    ledger.write_text("a    0.0\nb    0.0\nc    0.0\n")
    assert cli.main([str(ledger), "-l"]) == 0
    assert capsys.readouterr().out == "a    0.0\nb    0.0\nc    0.0\n"


def test_undo_and_repair(ledger, clock):
    ledger.write_text("2024-01-01    9.0    08:00:00    12:00:00\n")
    cli.main([str(ledger), "-u"])
    assert ledger.read_text() == "2024-01-01    0.0    08:00:00\n"
    ledger.write_text("2024-01-01    9.0    08:00:00    12:00:00\n")
    cli.main([str(ledger), "-r"])
    assert ledger.read_text() == "2024-01-01    4.0    08:00:00    12:00:00\n"


def test_invalid_print_pattern(ledger, clock, capsys):
    ledger.write_text("2024-01-01    0.0\n")
    assert cli.main([str(ledger), "-p", "(2024"]) == 2
    assert "Invalid date pattern" in capsys.readouterr().err


def test_missing_file_argument(capsys):
    assert cli.main([]) == 1
    assert cli.MISSING_FILE_MESSAGE in capsys.readouterr().err


def test_unknown_flag_exits_with_usage(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["time.txt", "--bogus"])
    assert excinfo.value.code == 2
    assert "usage:" in capsys.readouterr().err


@pytest.mark.parametrize("flag", ["-h", "-?", "--help"])
def test_help_exits_zero(flag, capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main([flag])
    assert excinfo.value.code == 0
    assert "--quitting-time" in capsys.readouterr().out


def test_config_changes_defaults(ledger, clock, capsys, isolated_config):
    isolated_config.write_text("default_hours: 4\n")
    ledger.write_text("2024-01-01    0.0    09:00:00\n")
    assert cli.main([str(ledger), "-q"]) == 0
    assert capsys.readouterr().out == "13:00:00\n"


def test_config_list_count_sets_default(ledger, clock, capsys, isolated_config):
    isolated_config.write_text("list_count: 2\n")
    ledger.write_text("a    0.0\nb    0.0\nc    0.0\n")
    assert cli.main([str(ledger), "-l"]) == 0
    assert capsys.readouterr().out == "b    0.0\nc    0.0\n"
    assert cli.main([str(ledger), "-l", "-c"]) == 0
    assert capsys.readouterr().out == "b    0.0\nc    0.0\n"
    assert cli.main([str(ledger), "-l", "-c", "1"]) == 0
    assert capsys.readouterr().out == "c    0.0\n"


def test_unknown_log_level_stops_before_io(ledger, clock, capsys, isolated_config):
    isolated_config.write_text("log_level: basic_format\n")
    assert cli.main([str(ledger)]) == 2
    assert not ledger.exists()
    assert "Unknown log_level" in capsys.readouterr().err


def test_bad_config_stops_before_io(ledger, clock, capsys, isolated_config):
    isolated_config.write_text("- not\n- a mapping\n")
    assert cli.main([str(ledger)]) == 2
    assert not ledger.exists()
    assert "must be a mapping" in capsys.readouterr().err
