"""
Stream aggregation: relay streamed text to a callback and assemble the full reply.
"""
import asyncio
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional, Union

ChunkCallback = Callable[[str], Union[None, Awaitable[None]]]


async def notify(callback: Optional[Callable[[Any], Any]], value: Any) -> None:
    """Invoke a sync or async callback with one value."""
    if callback is None:
        return
    result = callback(value)
    if asyncio.iscoroutine(result):
        await result


class StreamAggregator:
    """
    Drains a stream of text chunks, forwarding each one to a callback
    while accumulating the full text.

    Chunks are delivered in arrival order, at most once each. Empty chunks
    are skipped without a callback. Chunk boundaries carry no meaning: a
    chunk may end mid-word or mid-character sequence.
    """

    def __init__(self, on_chunk: Optional[ChunkCallback] = None):
        self.on_chunk = on_chunk
        self._parts: List[str] = []

    @property
    def text(self) -> str:
        """Text accumulated so far."""
        return "".join(self._parts)

    async def aggregate(self, chunks: AsyncIterator[str]) -> str:
        """
        Consume `chunks` to the end and return the concatenated text.

        Any error raised by the stream (or by the callback) propagates to the
        caller. The stream is closed on every exit path, so an abandoned or
        failed stream never keeps its transport open.

        Args:
            chunks: Async iterator of text fragments.

        Returns:
            str: All non-empty fragments joined in arrival order.
        """
        self._parts = []
        try:
            async for chunk in chunks:
                if not chunk:
                    continue
                await notify(self.on_chunk, chunk)
                self._parts.append(chunk)
        finally:
            aclose = getattr(chunks, "aclose", None)
            if aclose is not None:
                await aclose()
        return self.text
