"""
Command-line entry point of the infix calculator.

This script:
- Reads expressions from a file or archive given as argument, or from standard input
- Evaluates each expression independently
- Prints ``<result> = <expression>`` for each success and echoes failures to stderr

Usage:
    infix-calculator 2>errors.txt
    infix-calculator operations.txt 2>errors.txt
"""

import argparse
from pathlib import Path
import sys
from typing import List, Optional

from pydantic import BaseModel, Field, FilePath, ValidationError

from infix_calculator.batch.reader import ExpressionReader
from infix_calculator.batch.runner import BatchRunner
from infix_calculator.common.logger import configure_logging, logger
from infix_calculator.common.models import OperationRequest
from infix_calculator.common.settings import get_settings

PROMPT = "Enter expressions (1 per line). When done, press Ctrl-D"
FILE_NOT_FOUND_MESSAGE = "The file you provided could not be found."
FILE_NOT_READABLE_MESSAGE = "The file you provided cannot be opened."
RESULTS_NOT_WRITABLE_MESSAGE = "The results file cannot be written."


class CliArgs(BaseModel):
    """
    Pydantic model used to validate CLI arguments.

    Attributes
    ----------
    file_path : FilePath, optional
        Path to the file containing arithmetic expressions. Standard input is read when missing.
    results : bool
        Whether to also write a results file next to the input file.
    decimal_places : int, optional
        Digits printed after the decimal point, overrides the settings.
    """

    file_path: Optional[FilePath] = None
    results: bool = False
    decimal_places: Optional[int] = Field(default=None, ge=0, le=15)


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="infix-calculator",
        description="Evaluate infix arithmetic expressions, one per line",
    )
    parser.add_argument(
        "file_path",
        nargs="?",
        default=None,
        help="File (.txt, .zip, .tar.xz or .7z) containing one expression per line; stdin is read when omitted",
    )
    parser.add_argument(
        "--results",
        action="store_true",
        help="Also write every outcome to a results file next to the input file",
    )
    parser.add_argument(
        "--decimal-places",
        type=int,
        default=None,
        help="Digits printed after the decimal point (default: 3)",
    )
    return parser


def parse_args(argv: Optional[List[str]] = None) -> CliArgs:
    """
    Parse and validate command-line arguments.

    :param argv: Arguments to parse, ``sys.argv[1:]`` when None

    :return: Validated CLI arguments
    :rtype: CliArgs
    :raises FileNotFoundError: If the given file does not exist
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.results and args.file_path is None:
        parser.error("--results requires a file path")

    try:
        return CliArgs(**vars(args))
    except ValidationError as exc:
        if any(error["loc"][:1] == ("file_path",) for error in exc.errors()):
            raise FileNotFoundError(args.file_path) from exc
        parser.error(str(exc))


def build_output_path(input_path: Path, suffix: str = "_results.txt") -> Path:
    """
    Construct the results file path based on the input file.

    - Preserves the original folder
    - Replaces dots in extensions with underscores
    - Appends ``suffix`` at the end

    Examples
    --------
    input: resources/operations.tar.xz
    output: resources/operations_tar_xz_results.txt

    :param input_path: Path to the input file
    :param suffix: Ending of the results file name

    :return: Path to the results file
    """
    extensions = "".join(input_path.suffixes)
    base = input_path.name[: len(input_path.name) - len(extensions)]
    return input_path.with_name(f"{base}{extensions.replace('.', '_')}{suffix}")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the calculator.

    The exit status is 0 even when expressions fail or the input file cannot be read.
    Invalid settings or arguments are usage errors and exit with status 2.
    """
    try:
        settings = get_settings()
    except ValidationError as exc:
        build_parser().error(f"invalid settings in environment or .env file:\n{exc}")

    configure_logging(settings.log_level)

    try:
        cli_args = parse_args(argv)
    except FileNotFoundError as exc:
        logger.error("📄❌ File not found: %s", exc)
        print(FILE_NOT_FOUND_MESSAGE)
        return 0

    reader = ExpressionReader()
    results_file: Optional[Path] = None
    requests: List[OperationRequest]

    if cli_args.file_path is None:
        print(PROMPT)
        requests = reader.read_stream(sys.stdin)
    else:
        try:
            requests = reader.read_file(cli_args.file_path)
        except (OSError, ValueError) as exc:
            logger.error("📄❌ Cannot read %s: %s", cli_args.file_path, exc)
            print(FILE_NOT_READABLE_MESSAGE)
            return 0
        if cli_args.results:
            results_file = build_output_path(cli_args.file_path, settings.results_suffix)

    decimal_places = settings.decimal_places if cli_args.decimal_places is None else cli_args.decimal_places
    runner = BatchRunner(decimal_places=decimal_places, results_file=results_file)
    try:
        outcomes = runner.run(requests)
    except OSError as exc:
        logger.error("💾❌ Cannot write %s: %s", results_file, exc)
        print(RESULTS_NOT_WRITABLE_MESSAGE)
        return 0

    failures = sum(1 for outcome in outcomes if not outcome.ok)
    logger.info("🏁 Evaluated %d expressions, %d failed", len(outcomes), failures)
    return 0


if __name__ == "__main__":
    sys.exit(main())
