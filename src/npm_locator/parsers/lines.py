"""Incremental line splitting over a chunked byte stream."""

from __future__ import annotations

import codecs
from contextlib import closing
from typing import Generic, Protocol, TypeVar
from collections.abc import Callable, Generator, Iterator

CHUNK_SIZE = 64 * 1024

T = TypeVar("T")


class ByteStream(Protocol):
    """Readable body such as a ``requests.Response`` opened with ``stream=True``."""

    def iter_content(self, chunk_size: int | None = ...) -> Iterator[bytes]: ...

    def close(self) -> None: ...


def iter_lines(stream: ByteStream, chunk_size: int = CHUNK_SIZE) -> Iterator[tuple[int, str]]:
    """Yield ``(line_number, line)`` pairs, numbering from 1.

    Bytes are decoded as UTF-8 as they arrive; invalid sequences are replaced
    rather than raised. A trailing line without a newline is yielded last.
    The stream is closed when the generator finishes, fails or is closed.
    """
    with closing(stream):
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        buffer = ""
        line_number = 0
        for chunk in stream.iter_content(chunk_size=chunk_size):
            if not chunk:
                continue
            buffer += decoder.decode(chunk)
            *complete, buffer = buffer.split("\n")
            for line in complete:
                line_number += 1
                yield line_number, _strip_cr(line)

        buffer += decoder.decode(b"", final=True)
        if buffer:
            line_number += 1
            yield line_number, _strip_cr(buffer)


def _strip_cr(line: str) -> str:
    return line[:-1] if line.endswith("\r") else line


class StreamScan(Generic[T]):
    """Iterator over ``scan(lines)`` that owns ``stream`` from construction.

    Once iteration starts, ``iter_lines`` releases the stream on every exit.
    Closing before the first item is pulled releases it directly.
    """

    def __init__(
        self,
        stream: ByteStream,
        scan: Callable[[Iterator[tuple[int, str]]], Generator[T, None, None]],
    ) -> None:
        self._stream = stream
        self._matches = scan(iter_lines(stream))
        self._started = False

    def __iter__(self) -> StreamScan[T]:
        return self

    def __next__(self) -> T:
        self._started = True
        return next(self._matches)

    def close(self) -> None:
        self._matches.close()
        if not self._started:
            self._started = True
            self._stream.close()
