"""
A peekable, token-level view of a JSON document.

Responses are walked one token at a time so that a page is never
materialised as a tree. Real responses are tokenised by ijson straight off
the HTTP byte stream; tests can drive the same walkers with synthetic
token sequences.
"""

import enum
import json
from typing import Any, AsyncIterator, Iterable, NamedTuple, Optional

import ijson

from ..application.exceptions import EnvelopeDecodeError


class TokenKind(enum.Enum):
    BEGIN_OBJECT = "start_map"
    END_OBJECT = "end_map"
    BEGIN_ARRAY = "start_array"
    END_ARRAY = "end_array"
    NAME = "map_key"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"


SCALARS = frozenset(
    {TokenKind.STRING, TokenKind.NUMBER, TokenKind.BOOLEAN, TokenKind.NULL}
)

# ijson reports numbers under several event names depending on the backend.
_EVENTS = {
    "start_map": TokenKind.BEGIN_OBJECT,
    "end_map": TokenKind.END_OBJECT,
    "start_array": TokenKind.BEGIN_ARRAY,
    "end_array": TokenKind.END_ARRAY,
    "map_key": TokenKind.NAME,
    "string": TokenKind.STRING,
    "number": TokenKind.NUMBER,
    "integer": TokenKind.NUMBER,
    "double": TokenKind.NUMBER,
    "boolean": TokenKind.BOOLEAN,
    "null": TokenKind.NULL,
}


class Token(NamedTuple):
    kind: TokenKind
    value: Any = None


class AsyncByteReader:
    """Adapts an async iterator of byte chunks to an async read() method."""

    def __init__(self, chunks: AsyncIterator[bytes]):
        self._chunks = chunks.__aiter__()
        self._buffer = b""
        self._exhausted = False

    async def read(self, size: int = -1) -> bytes:
        while not self._exhausted and (size < 0 or len(self._buffer) < size):
            try:
                self._buffer += await self._chunks.__anext__()
            except StopAsyncIteration:
                self._exhausted = True
        if size < 0:
            data, self._buffer = self._buffer, b""
        else:
            data, self._buffer = self._buffer[:size], self._buffer[size:]
        return data

    @classmethod
    def from_bytes(cls, payload: bytes, chunk_size: int = 64) -> "AsyncByteReader":
        async def _chunks():
            for i in range(0, len(payload), chunk_size):
                yield payload[i:i + chunk_size]

        return cls(_chunks())


async def _from_ijson(reader) -> AsyncIterator[Token]:
    async for event, value in ijson.basic_parse_async(reader, use_float=True):
        yield Token(_EVENTS[event], value)


async def _from_iterable(tokens: Iterable) -> AsyncIterator[Token]:
    for token in tokens:
        yield token if isinstance(token, Token) else Token(*token)


class TokenStream:
    """An async token iterator with one token of look-ahead."""

    def __init__(self, tokens: AsyncIterator[Token]):
        self._tokens = tokens.__aiter__()
        self._lookahead: Optional[Token] = None
        self._exhausted = False

    @classmethod
    def from_reader(cls, reader) -> "TokenStream":
        """Tokenises a byte reader exposing an async read(size) method."""
        return cls(_from_ijson(reader))

    @classmethod
    def from_tokens(cls, tokens: Iterable) -> "TokenStream":
        """Wraps a synthetic sequence of Token or (kind, value) pairs."""
        return cls(_from_iterable(tokens))

    @classmethod
    def from_json(cls, document: Any) -> "TokenStream":
        """Tokenises an in-memory document (str, bytes or a JSON value)."""
        if not isinstance(document, (str, bytes)):
            document = json.dumps(document)
        if isinstance(document, str):
            document = document.encode("utf-8")
        return cls.from_reader(AsyncByteReader.from_bytes(document))

    async def _pull(self) -> Optional[Token]:
        if self._exhausted:
            return None
        try:
            return await self._tokens.__anext__()
        except StopAsyncIteration:
            self._exhausted = True
            return None
        except ijson.JSONError as e:
            raise EnvelopeDecodeError(f"Malformed JSON in response: {e}") from e

    async def peek(self) -> Optional[Token]:
        """Returns the next token without consuming it, None at the end."""
        if self._lookahead is None:
            self._lookahead = await self._pull()
        return self._lookahead

    async def at_end(self) -> bool:
        return await self.peek() is None

    async def next(self) -> Token:
        token = await self.peek()
        if token is None:
            raise EnvelopeDecodeError("Unexpected end of JSON stream")
        self._lookahead = None
        return token

    async def expect(self, kind: TokenKind) -> Any:
        """Consumes a token of the given kind and returns its value."""
        token = await self.next()
        if token.kind is not kind:
            raise EnvelopeDecodeError(
                f"Expected {kind.name} but found {token.kind.name} "
                f"({token.value!r})"
            )
        return token.value

    async def next_is(self, kind: TokenKind) -> bool:
        token = await self.peek()
        return token is not None and token.kind is kind

    async def skip_value(self):
        """Consumes one complete value, including any nested structure."""
        depth = 0
        while True:
            token = await self.next()
            if token.kind in (TokenKind.BEGIN_OBJECT, TokenKind.BEGIN_ARRAY):
                depth += 1
            elif token.kind in (TokenKind.END_OBJECT, TokenKind.END_ARRAY):
                depth -= 1
            elif token.kind is TokenKind.NAME:
                continue
            if depth <= 0:
                if depth < 0:
                    raise EnvelopeDecodeError(
                        f"Unbalanced {token.kind.name} while skipping a value"
                    )
                return

    async def read_value(self) -> Any:
        """Materialises one (small) value: an object, array or scalar."""
        token = await self.next()
        if token.kind is TokenKind.BEGIN_OBJECT:
            result = {}
            while not await self.next_is(TokenKind.END_OBJECT):
                name = await self.expect(TokenKind.NAME)
                result[name] = await self.read_value()
            await self.next()
            return result
        if token.kind is TokenKind.BEGIN_ARRAY:
            items = []
            while not await self.next_is(TokenKind.END_ARRAY):
                items.append(await self.read_value())
            await self.next()
            return items
        if token.kind in SCALARS:
            return token.value
        raise EnvelopeDecodeError(
            f"Expected a value but found {token.kind.name} ({token.value!r})"
        )
