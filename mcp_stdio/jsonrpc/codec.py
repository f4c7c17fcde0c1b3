"""Streaming decoder and encoder for JSON-RPC envelopes."""
import asyncio
import codecs
import json
import re
from json.decoder import scanstring
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel

from .models import JSONRPCRequest, JSONRPCResponse, RequestID
from ..utils.errors import TransportError

WHITESPACE = re.compile(r"[ \t\n\r]*")
# A number or literal that may still be growing at the end of the buffer
TRAILING_TOKEN = re.compile(r"[-+.\w]*\Z")

DEFAULT_CHUNK_SIZE = 64 * 1024


class InvalidEnvelope(Exception):
    """A complete JSON object was read but its members have the wrong types."""

    def __init__(self, message: str, id: Optional[RequestID] = None, method: str = ""):
        super().__init__(message)
        self.message = message
        self.id = id
        self.method = method


def clone_id(id: Optional[RequestID]) -> Optional[RequestID]:
    """Copy a request identifier so a response never shares it with its request."""
    if id is None:
        return None
    return RequestID(id.raw)


class EnvelopeDecoder:
    """Reads one JSON-RPC envelope at a time from a byte stream.

    Messages may be separated by whitespace or newlines, or simply
    concatenated. Each call to :meth:`decode` consumes exactly one
    structurally complete JSON object.
    """

    def __init__(self, reader: asyncio.StreamReader, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.reader = reader
        self.chunk_size = chunk_size
        self._utf8 = codecs.getincrementaldecoder("utf-8")()
        self._json = json.JSONDecoder()
        self._buffer = ""
        self._eof = False
        # Resumable scan state for the object at the head of the buffer
        self._scan_pos = 0
        self._closers: List[str] = []
        self._in_string = False
        self._string_start = 0
        self._escape = False

    async def decode(self) -> Optional[JSONRPCRequest]:
        """Decode the next envelope.

        Returns:
            The decoded request, or None on a clean end of stream.

        Raises:
            TransportError: the stream is malformed or ends mid-message.
            InvalidEnvelope: the message is valid JSON but not a usable envelope.
        """
        while True:
            self._buffer = self._buffer[WHITESPACE.match(self._buffer).end():]
            if self._buffer:
                if self._buffer[0] != "{":
                    raise TransportError(
                        f"decode request: expected JSON object, found {self._buffer[0]!r}"
                    )
                end = self._scan()
                if end is not None:
                    text = self._buffer[:end]
                    self._buffer = self._buffer[end:]
                    self._reset_scan()
                    return self._parse(text)
                self._check_prefix()

            if self._eof:
                if self._buffer:
                    raise TransportError("decode request: unexpected end of stream")
                return None

            await self._fill()

    async def _fill(self) -> None:
        chunk = await self.reader.read(self.chunk_size)
        try:
            if chunk:
                self._buffer += self._utf8.decode(chunk)
            else:
                self._eof = True
                self._buffer += self._utf8.decode(b"", final=True)
        except UnicodeDecodeError as e:
            raise TransportError(f"decode request: {e}") from e

    def _scan(self) -> Optional[int]:
        """Return the end offset of the object at the head of the buffer, if complete."""
        buf = self._buffer
        i = self._scan_pos
        while i < len(buf):
            c = buf[i]
            if self._in_string:
                if self._escape:
                    self._escape = False
                elif c == "\\":
                    self._escape = True
                elif c == '"':
                    self._in_string = False
            elif c == '"':
                self._in_string = True
                self._string_start = i
            elif c == "{":
                self._closers.append("}")
            elif c == "[":
                self._closers.append("]")
            elif c in "}]":
                if self._closers.pop() != c:
                    raise TransportError(
                        f"decode request: unexpected {c!r} at offset {i}"
                    )
                if not self._closers:
                    return i + 1
            i += 1
        self._scan_pos = i
        return None

    def _check_prefix(self) -> None:
        """Fail as soon as the unfinished object at the head of the buffer is malformed.

        Only an error inside the open string or the trailing token can still
        be cured by more input.
        """
        try:
            self._json.raw_decode(self._buffer)
        except json.JSONDecodeError as e:
            if self._in_string:
                tail = self._string_start
            else:
                tail = TRAILING_TOKEN.search(self._buffer).start()
            if e.pos < tail:
                raise TransportError(f"decode request: {e}") from e

    def _reset_scan(self) -> None:
        self._scan_pos = 0
        self._closers = []
        self._in_string = False
        self._escape = False

    def _parse(self, text: str) -> JSONRPCRequest:
        try:
            members = self._members(text)
        except (ValueError, IndexError) as e:
            raise TransportError(f"decode request: {e}") from e

        id = None
        if "id" in members:
            id = RequestID(members["id"][1])

        method, _ = members.get("method", ("", ""))
        if not isinstance(method, str):
            raise InvalidEnvelope("method must be a string", id=id)

        version, _ = members.get("jsonrpc", (None, ""))
        if version is not None and not isinstance(version, str):
            raise InvalidEnvelope("jsonrpc must be a string", id=id, method=method)

        params = None
        if "params" in members:
            value, raw = members["params"]
            if value is not None:
                params = raw

        return JSONRPCRequest(jsonrpc=version, method=method, params=params, id=id)

    def _members(self, text: str) -> Dict[str, Tuple[Any, str]]:
        """Split a JSON object into its members, keeping each value's literal text."""
        members: Dict[str, Tuple[Any, str]] = {}
        idx = WHITESPACE.match(text, 1).end()
        if text[idx] == "}":
            idx += 1
        else:
            while True:
                if text[idx] != '"':
                    raise json.JSONDecodeError("Expecting property name", text, idx)
                key, idx = scanstring(text, idx + 1)
                idx = WHITESPACE.match(text, idx).end()
                if text[idx] != ":":
                    raise json.JSONDecodeError("Expecting ':' delimiter", text, idx)
                idx = WHITESPACE.match(text, idx + 1).end()
                value, end = self._json.raw_decode(text, idx)
                members[key] = (value, text[idx:end])
                idx = WHITESPACE.match(text, end).end()
                if text[idx] == ",":
                    idx = WHITESPACE.match(text, idx + 1).end()
                elif text[idx] == "}":
                    idx += 1
                    break
                else:
                    raise json.JSONDecodeError("Expecting ',' delimiter", text, idx)
        if idx != len(text):
            raise json.JSONDecodeError("Extra data", text, idx)
        return members


def _dumps(value: Any) -> str:
    # Text content is compared verbatim by clients, so nothing is escaped.
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def _plain(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_none=True)
    return value


def encode_response(response: JSONRPCResponse) -> str:
    """Encode a response as one newline-terminated line of compact JSON."""
    id_text = response.id.raw if response.id is not None else "null"
    if response.error is not None:
        body = '"error":' + _dumps(response.error.model_dump(exclude_none=True))
    else:
        result = {} if response.result is None else _plain(response.result)
        body = '"result":' + _dumps(result)
    return '{"jsonrpc":' + _dumps(response.jsonrpc) + ',"id":' + id_text + "," + body + "}\n"
