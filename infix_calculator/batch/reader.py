"""Load arithmetic expressions from text files, archives or a stream."""
import lzma
from pathlib import Path
import tarfile
import tempfile
from typing import Iterable, List, TextIO
import zipfile

import py7zr
from pydantic import BaseModel, ConfigDict, FilePath

from infix_calculator.common.logger import logger
from infix_calculator.common.models import OperationRequest


ARCHIVE_SUFFIXES = (".zip", ".xz", ".7z")

# Raised by the archive libraries on truncated or corrupt input
CORRUPT_ARCHIVE_ERRORS = (zipfile.BadZipFile, tarfile.TarError, py7zr.Bad7zFile, lzma.LZMAError, EOFError)


class ExpressionReader(BaseModel):
    """
    Reads arithmetic expressions, one per line.

    The reader:
    - reads a plain text file directly
    - extracts the first .txt file of a .zip, .tar.xz or .7z archive
    - reads an interactive stream (standard input) until end of input
    - skips blank lines and keeps every other line exactly as written
    """

    model_config = ConfigDict(frozen=True)

    encoding: str = "utf-8"

    def read_file(self, input_file: FilePath) -> List[OperationRequest]:
        """
        Read the expressions of a plain text file or of an archive.

        :param FilePath input_file: Path to the input file or archive

        :return: One request per non-blank line
        :rtype: List[OperationRequest]
        :raises ValueError: If the archive format is unsupported or contains no .txt file
        :raises OSError: If the file cannot be read
        """
        input_file = Path(input_file)
        if input_file.suffix in ARCHIVE_SUFFIXES:
            content = self._extract_archive(input_file)
        else:
            content = input_file.read_text(encoding=self.encoding)

        requests = self.to_requests(content.splitlines())
        logger.info("📄 Read %d expressions from %s", len(requests), input_file)
        return requests

    def read_stream(self, stream: TextIO) -> List[OperationRequest]:
        """
        Read expressions from a stream until end of input.

        :param TextIO stream: Stream to read, usually ``sys.stdin``

        :return: One request per non-blank line
        :rtype: List[OperationRequest]
        """
        return self.to_requests(line.rstrip("\r\n") for line in stream)

    @staticmethod
    def to_requests(lines: Iterable[str]) -> List[OperationRequest]:
        """
        Turn raw lines into requests numbered after their position in the input.

        :param Iterable[str] lines: Raw input lines

        :return: One request per non-blank line
        :rtype: List[OperationRequest]
        """
        return [
            OperationRequest(expression=line, line_number=line_number)
            for line_number, line in enumerate(lines, start=1)
            if line.strip()
        ]

    def _extract_archive(self, archive_path: Path) -> str:
        """
        Extract the first .txt file found in a supported archive and return its content as a string.

        Supported formats:
        - .zip
        - .tar.xz
        - .7z

        :param Path archive_path: Path to the archive file

        :return: Content of the extracted .txt file
        :rtype: str
        :raises ValueError: If the archive is corrupt, holds no .txt file or its format is unsupported
        """
        kind = self._archive_kind(archive_path)
        extract = {
            "zip": self._extract_zip,
            "tar.xz": self._extract_tar_xz,
            "7z": self._extract_7z,
        }[kind]

        try:
            with tempfile.TemporaryDirectory() as tmpdir:
                return extract(archive_path, Path(tmpdir)).read_text(encoding=self.encoding)
        except CORRUPT_ARCHIVE_ERRORS as exc:
            raise ValueError(f"📄❌ Corrupt {kind} archive {archive_path.name}: {exc}") from exc

    @staticmethod
    def _archive_kind(archive_path: Path) -> str:
        if archive_path.suffix == ".zip":
            return "zip"
        if archive_path.suffixes[-2:] == [".tar", ".xz"]:
            return "tar.xz"
        if archive_path.suffix == ".7z":
            return "7z"
        raise ValueError(f"📄❌ Unsupported archive format: {''.join(archive_path.suffixes)}")

    @staticmethod
    def _first_text_file(names: List[str], kind: str) -> str:
        for name in names:
            if name.endswith(".txt"):
                return name
        raise ValueError(f"📄❌ No .txt file found in {kind} archive")

    def _extract_zip(self, archive_path: Path, destination: Path) -> Path:
        with zipfile.ZipFile(archive_path, "r") as zf:
            name = self._first_text_file(zf.namelist(), "zip")
            return Path(zf.extract(name, path=destination))

    def _extract_tar_xz(self, archive_path: Path, destination: Path) -> Path:
        with tarfile.open(archive_path, "r:xz") as tf:
            # Only regular files, a directory named "x.txt" has nothing to read
            files = [m.name for m in tf.getmembers() if m.isfile()]
            name = self._first_text_file(files, "tar.xz")
            tf.extract(name, path=destination, filter="data")
            return destination / name

    def _extract_7z(self, archive_path: Path, destination: Path) -> Path:
        with py7zr.SevenZipFile(archive_path, mode="r") as archive:
            name = self._first_text_file(archive.getnames(), "7z")
            archive.extract(path=destination, targets=[name])
            return destination / name
