"""File storage for dumped messages.

Two layouts are supported:

- per-message: ``msg-0000``, ``msg-0001``, ... holding the raw bodies, with
  ``msg-0000-headers+properties.json`` next to each one in full mode.
- single file: ``messages.json`` holding every body as an element of one
  JSON array, with ``messages-headers+properties.json`` collecting the
  metadata documents in full mode.

Writers return the paths they opened for the first time so the caller can
report each distinct file exactly once.
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List

from dump_queue.exceptions import PersistenceError
from dump_queue.metadata import build_metadata, serialize_metadata
from dump_queue.schemas import DumpConfig, DumpedMessage

logger = logging.getLogger(__name__)

FILE_MODE = 0o644
METADATA_SUFFIX = "-headers+properties"
AGGREGATED_BODY_FILENAME = "messages.json"

ARRAY_OPEN = b"[\n"
ARRAY_SEPARATOR = b",\n"
ARRAY_CLOSE = b"\n]"


def get_message_file_path(output_dir: Path, index: int) -> Path:
    """
    Generate the body file path for the message at a given position.

    Example:
        >>> get_message_file_path(Path("out"), 7)
        PosixPath('out/msg-0007')
    """
    return Path(output_dir) / f"msg-{index:04d}"


def metadata_path_for(body_path: Path) -> Path:
    """
    Derive the properties+headers file path from a body file path.

    The suffix token goes before the body file's extension; bodies without
    an extension get ``.json``.

    Example:
        >>> metadata_path_for(Path("out/msg-0000"))
        PosixPath('out/msg-0000-headers+properties.json')
        >>> metadata_path_for(Path("out/messages.json"))
        PosixPath('out/messages-headers+properties.json')
    """
    extension = body_path.suffix or ".json"
    return body_path.with_name(f"{body_path.stem}{METADATA_SUFFIX}{extension}")


def write_file(path: Path, data: bytes, append: bool = False) -> None:
    """
    Write bytes to a file created with mode 0644.

    Args:
        path: Target file
        data: Bytes to write
        append: Append to the file instead of truncating it

    Raises:
        OSError: If the file cannot be opened or written
    """
    flags = os.O_WRONLY | os.O_CREAT
    flags |= os.O_APPEND if append else os.O_TRUNC
    fd = os.open(path, flags, FILE_MODE)
    with os.fdopen(fd, "wb") as handle:
        handle.write(data)


def _reject_constant(name: str) -> None:
    raise ValueError(f"Non-standard JSON constant: {name}")


def body_as_json_element(body: bytes) -> bytes:
    """
    Encode a body as one element of a JSON array.

    Bodies that already are strict JSON documents in UTF-8 without a byte
    order mark are kept verbatim. Anything else, including NaN or Infinity
    literals, becomes a JSON string of its UTF-8 decoding.
    """
    try:
        text = body.decode("utf-8")
        if text.startswith("\ufeff"):
            raise ValueError("Byte order mark before JSON document")
        json.loads(text, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return json.dumps(
            body.decode("utf-8", errors="replace"), ensure_ascii=False
        ).encode("utf-8")
    return body


class MessageWriter(ABC):
    """Base class for the output layouts."""

    def __init__(self, output_dir: Path, full: bool = False):
        self.output_dir = Path(output_dir)
        self.full = full

    @abstractmethod
    def write(self, message: DumpedMessage, index: int) -> List[Path]:
        """
        Persist one message.

        Args:
            message: Message to persist
            index: Zero-based position of the message in this run

        Returns:
            Paths opened for the first time by this call, in write order

        Raises:
            PersistenceError: If any file cannot be written; its ``written``
                attribute lists the paths completed before the failure
        """

    def finalize(self) -> List[Path]:
        """Complete the output after the last message; returns newly opened paths."""
        return []


class PerMessageWriter(MessageWriter):
    """One body file, and optionally one metadata file, per message."""

    def write(self, message: DumpedMessage, index: int) -> List[Path]:
        body_path = get_message_file_path(self.output_dir, index)
        try:
            write_file(body_path, message.body)
        except OSError as e:
            raise PersistenceError(f"Save message: {e}") from e
        logger.debug(f"Saved message body: {body_path} ({len(message.body)} bytes)")

        written = [body_path]

        if self.full:
            metadata_path = metadata_path_for(body_path)
            try:
                data = serialize_metadata(build_metadata(message))
                write_file(metadata_path, data)
            except (OSError, TypeError, ValueError) as e:
                raise PersistenceError(
                    f"Save props and headers: {e}", written=written
                ) from e
            written.append(metadata_path)

        return written


class AggregatedWriter(MessageWriter):
    """All bodies in one JSON array file, metadata in a second one."""

    def __init__(self, output_dir: Path, full: bool = False):
        super().__init__(output_dir, full)
        self.body_path = self.output_dir / AGGREGATED_BODY_FILENAME
        self.metadata_path = metadata_path_for(self.body_path)
        self.elements_written = {self.body_path: 0, self.metadata_path: 0}
        self.finalized = False

    def _append_element(self, path: Path, element: bytes) -> bool:
        """Append one array element; returns True when the file was just created."""
        first = self.elements_written[path] == 0
        if first:
            write_file(path, ARRAY_OPEN + element)
        else:
            write_file(path, ARRAY_SEPARATOR + element, append=True)
        self.elements_written[path] += 1
        return first

    def write(self, message: DumpedMessage, index: int) -> List[Path]:
        written: List[Path] = []

        try:
            if self._append_element(self.body_path, body_as_json_element(message.body)):
                written.append(self.body_path)
        except OSError as e:
            raise PersistenceError(f"Save message: {e}") from e

        if self.full:
            try:
                data = serialize_metadata(build_metadata(message))
                if self._append_element(self.metadata_path, data):
                    written.append(self.metadata_path)
            except (OSError, TypeError, ValueError) as e:
                raise PersistenceError(
                    f"Save props and headers: {e}", written=written
                ) from e

        logger.debug(f"Appended message {index} to {self.body_path}")
        return written

    def finalize(self) -> List[Path]:
        """
        Close the JSON array(s).

        Runs once; with no message written it creates the files holding
        an empty array.
        """
        if self.finalized:
            return []
        self.finalized = True

        paths = [self.body_path]
        if self.full:
            paths.append(self.metadata_path)

        opened: List[Path] = []
        try:
            for path in paths:
                if self.elements_written[path] == 0:
                    write_file(path, ARRAY_OPEN + ARRAY_CLOSE)
                    opened.append(path)
                else:
                    write_file(path, ARRAY_CLOSE, append=True)
                logger.debug(
                    f"Closed JSON array in {path} ({self.elements_written[path]} elements)"
                )
        except OSError as e:
            raise PersistenceError(f"Close aggregated file: {e}") from e

        return opened


def make_writer(config: DumpConfig) -> MessageWriter:
    """Pick the output layout for a run."""
    if config.single_file:
        return AggregatedWriter(config.output_dir, full=config.full)
    return PerMessageWriter(config.output_dir, full=config.full)
