"""Serialized response delivery."""
import asyncio
from typing import TextIO

from .codec import encode_response
from .models import JSONRPCResponse


class ResponseWriter:
    """Writes one encoded response at a time to an output stream.

    The lock covers encode, write and flush so concurrent senders never
    interleave envelopes on the wire.
    """

    def __init__(self, stream: TextIO):
        self.stream = stream
        self._lock = asyncio.Lock()

    async def write(self, response: JSONRPCResponse) -> None:
        async with self._lock:
            self.stream.write(encode_response(response))
            self.stream.flush()
