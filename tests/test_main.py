"""Test the command-line entry point."""
import io
from pathlib import Path
import zipfile

import pytest

from infix_calculator.common.settings import get_settings
from infix_calculator.main import (
    FILE_NOT_FOUND_MESSAGE,
    FILE_NOT_READABLE_MESSAGE,
    RESULTS_NOT_WRITABLE_MESSAGE,
    PROMPT,
    build_output_path,
    main,
    parse_args,
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Run every test without .env file nor environment overrides."""
    for name in ("DECIMAL_PLACES", "LOG_LEVEL", "RESULTS_SUFFIX"):
        monkeypatch.delenv(f"INFIX_CALCULATOR_{name}", raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def ops_file(tmp_path: Path) -> Path:
    """Create an operations file mixing valid and invalid expressions."""
    path = tmp_path / "ops.txt"
    path.write_text("3 + 4 * 2\n(3 + 4) * 2\n3 ++ 4\n\n2 ^ 3 ^ 2\n(3 + 4\n")
    return path


def test_main_with_file(ops_file: Path, capsys) -> None:
    """Valid lines go to stdout, invalid ones are echoed to stderr."""
    assert main([str(ops_file)]) == 0

    captured = capsys.readouterr()
    assert captured.out.splitlines() == [
        "11.000 = 3 + 4 * 2",
        "14.000 = (3 + 4) * 2",
        "64.000 = 2 ^ 3 ^ 2",
    ]
    assert captured.err.splitlines() == ["3 ++ 4", "(3 + 4"]


def test_main_with_stdin(monkeypatch, capsys) -> None:
    """Without a file, expressions are read from standard input until end of input."""
    monkeypatch.setattr("sys.stdin", io.StringIO("1 + 1\n3.1.2 + 4\n10 / 4\n"))

    assert main([]) == 0

    captured = capsys.readouterr()
    assert captured.out.splitlines() == [PROMPT, "2.000 = 1 + 1", "2.500 = 10 / 4"]
    assert captured.err.splitlines() == ["3.1.2 + 4"]


def test_main_missing_file(tmp_path: Path, capsys) -> None:
    """A missing file is reported on stdout and the exit status stays 0."""
    assert main([str(tmp_path / "missing.txt")]) == 0

    assert capsys.readouterr().out.strip() == FILE_NOT_FOUND_MESSAGE


def test_main_unreadable_archive(tmp_path: Path, capsys) -> None:
    """An archive without a .txt file cannot be opened."""
    zip_path = tmp_path / "ops.zip"
    with zipfile.ZipFile(zip_path, "w") as zf:
        zf.writestr("data.bin", b"\x00\x01")

    assert main([str(zip_path)]) == 0

    assert capsys.readouterr().out.strip() == FILE_NOT_READABLE_MESSAGE


@pytest.mark.parametrize("name,content", [
    ("ops.txt", b"\xff\xfe1+1"),
    ("ops.zip", b"not a zip at all"),
    ("ops.tar.xz", b"garbage"),
    ("ops.7z", b"garbage"),
])
def test_main_unreadable_input(tmp_path: Path, capsys, name: str, content: bytes) -> None:
    """Undecodable text and corrupt archives cannot be opened, the exit status stays 0."""
    path = tmp_path / name
    path.write_bytes(content)

    assert main([str(path)]) == 0

    assert capsys.readouterr().out.strip() == FILE_NOT_READABLE_MESSAGE


def test_main_results_file_not_writable(ops_file: Path, capsys) -> None:
    """A results file that cannot be created is reported and the exit status stays 0."""
    # A directory in the way of the results file
    ops_file.with_name("ops_txt_results.txt").mkdir()

    assert main([str(ops_file), "--results"]) == 0

    assert capsys.readouterr().out.strip() == RESULTS_NOT_WRITABLE_MESSAGE


@pytest.mark.parametrize("name,value", [
    ("INFIX_CALCULATOR_LOG_LEVEL", "LOUD"),
    ("INFIX_CALCULATOR_DECIMAL_PLACES", "-1"),
])
def test_main_invalid_settings(ops_file: Path, monkeypatch, capsys, name: str, value: str) -> None:
    """Invalid settings are a usage error reported on stderr."""
    monkeypatch.setenv(name, value)

    with pytest.raises(SystemExit) as exc_info:
        main([str(ops_file)])

    assert exc_info.value.code == 2
    assert "invalid settings" in capsys.readouterr().err


def test_main_writes_results_file(ops_file: Path) -> None:
    """--results writes every outcome next to the input file."""
    assert main([str(ops_file), "--results"]) == 0

    results_file = ops_file.with_name("ops_txt_results.txt")
    assert results_file.read_text().splitlines() == [
        "11.000 = 3 + 4 * 2",
        "14.000 = (3 + 4) * 2",
        "3 ++ 4 -> ERROR: CONSECUTIVE_OPERATORS",
        "64.000 = 2 ^ 3 ^ 2",
        "(3 + 4 -> ERROR: UNBALANCED_BRACKETS",
    ]


def test_main_decimal_places_flag(ops_file: Path, capsys) -> None:
    """--decimal-places overrides the default precision."""
    main([str(ops_file), "--decimal-places", "0"])

    assert capsys.readouterr().out.splitlines()[0] == "11 = 3 + 4 * 2"


def test_main_decimal_places_from_environment(ops_file: Path, monkeypatch, capsys) -> None:
    """The precision can be configured through the environment."""
    monkeypatch.setenv("INFIX_CALCULATOR_DECIMAL_PLACES", "1")

    main([str(ops_file)])

    assert capsys.readouterr().out.splitlines()[0] == "11.0 = 3 + 4 * 2"


def test_parse_args_results_requires_file() -> None:
    """--results without a file is a usage error."""
    with pytest.raises(SystemExit):
        parse_args(["--results"])


def test_parse_args_rejects_negative_decimal_places(ops_file: Path) -> None:
    """Out of range precision is a usage error."""
    with pytest.raises(SystemExit):
        parse_args([str(ops_file), "--decimal-places", "-2"])


def test_parse_args_missing_file(tmp_path: Path) -> None:
    """A path that does not exist is reported as FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        parse_args([str(tmp_path / "missing.txt")])


@pytest.mark.parametrize("name,expected", [
    ("ops.txt", "ops_txt_results.txt"),
    ("ops.tar.xz", "ops_tar_xz_results.txt"),
    ("ops", "ops_results.txt"),
])
def test_build_output_path(tmp_path: Path, name: str, expected: str) -> None:
    """The results file sits next to the input with its extensions folded into the name."""
    assert build_output_path(tmp_path / name) == tmp_path / expected
