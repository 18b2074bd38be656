"""Incremental SSE reader that folds plan events into a PlanProgress.

The UTF-8 decoder and the partial-line buffer live for the whole response
body, so a chunk boundary anywhere (inside a character or a JSON line)
gives the same result as receiving the body in one piece.
"""

import codecs
import json
from typing import AsyncIterable, Iterable

from ..core.events import SSE_PREFIX, decode_event
from .progress import PlanProgress


class SSELineDecoder:
    """Turns raw body chunks into decoded ``data:`` payloads."""

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes) -> list:
        """Decode one chunk, returning payloads of every line it completed."""
        return self._drain(self._decoder.decode(chunk), final=False)

    def close(self) -> list:
        """Flush the decoder and any unterminated last line."""
        return self._drain(self._decoder.decode(b"", final=True), final=True)

    def _drain(self, text: str, final: bool) -> list:
        self._buffer += text
        lines = self._buffer.split("\n")
        self._buffer = "" if final else lines.pop()

        payloads = []
        for line in lines:
            line = line.rstrip("\r")
            if not line.startswith(SSE_PREFIX):
                continue
            try:
                payloads.append(json.loads(line[len(SSE_PREFIX):]))
            except json.JSONDecodeError:
                # Malformed fragment; skip it and keep reading
                continue
        return payloads


def consume_plan_stream(
    chunks: Iterable[bytes],
    progress: PlanProgress | None = None,
) -> PlanProgress:
    """Read a plan SSE body to its terminal event.

    Raises PlanStreamError if the stream ends in a request-level error.
    """
    progress = progress if progress is not None else PlanProgress()
    progress.begin()
    decoder = SSELineDecoder()

    for chunk in chunks:
        if _fold(progress, decoder.feed(chunk)):
            break
    else:
        _fold(progress, decoder.close())

    progress.finish()
    progress.raise_for_error()
    return progress


async def aconsume_plan_stream(
    chunks: AsyncIterable[bytes],
    progress: PlanProgress | None = None,
) -> PlanProgress:
    """Async counterpart of consume_plan_stream."""
    progress = progress if progress is not None else PlanProgress()
    progress.begin()
    decoder = SSELineDecoder()

    stopped = False
    async for chunk in chunks:
        if _fold(progress, decoder.feed(chunk)):
            stopped = True
            break
    if not stopped:
        _fold(progress, decoder.close())

    progress.finish()
    progress.raise_for_error()
    return progress


def _fold(progress: PlanProgress, payloads: list) -> bool:
    """Apply decoded payloads in order. Returns True once no more updates are wanted."""
    for data in payloads:
        if progress.done:
            return True
        event = decode_event(data)
        if event is not None:
            progress.apply(event)
    return progress.done
