"""
Unit tests for the token stream abstraction.
"""

import pytest

from wb_connector.application.exceptions import EnvelopeDecodeError
from wb_connector.infrastructure.tokens import (
    AsyncByteReader,
    Token,
    TokenKind,
    TokenStream,
)


async def _drain(stream):
    tokens = []
    while not await stream.at_end():
        tokens.append(await stream.next())
    return tokens


class TestAsyncByteReader:

    @pytest.mark.asyncio
    async def test_read_reassembles_chunks(self):
        reader = AsyncByteReader.from_bytes(b"abcdefghij", chunk_size=3)

        assert await reader.read(4) == b"abcd"
        assert await reader.read(4) == b"efgh"
        assert await reader.read(4) == b"ij"
        assert await reader.read(4) == b""

    @pytest.mark.asyncio
    async def test_read_all(self):
        reader = AsyncByteReader.from_bytes(b"abcdefghij", chunk_size=3)

        assert await reader.read() == b"abcdefghij"
        assert await reader.read() == b""


class TestTokenStream:

    @pytest.mark.asyncio
    async def test_tokenises_json(self):
        stream = TokenStream.from_json(
            '[{"a": 1, "b": "x", "c": null, "d": true}]'
        )

        tokens = await _drain(stream)

        assert [t.kind for t in tokens] == [
            TokenKind.BEGIN_ARRAY,
            TokenKind.BEGIN_OBJECT,
            TokenKind.NAME,
            TokenKind.NUMBER,
            TokenKind.NAME,
            TokenKind.STRING,
            TokenKind.NAME,
            TokenKind.NULL,
            TokenKind.NAME,
            TokenKind.BOOLEAN,
            TokenKind.END_OBJECT,
            TokenKind.END_ARRAY,
        ]
        assert tokens[3].value == 1
        assert tokens[5].value == "x"

    @pytest.mark.asyncio
    async def test_peek_does_not_consume(self):
        stream = TokenStream.from_tokens([(TokenKind.STRING, "x")])

        assert await stream.peek() == Token(TokenKind.STRING, "x")
        assert await stream.peek() == Token(TokenKind.STRING, "x")
        assert await stream.next() == Token(TokenKind.STRING, "x")
        assert await stream.peek() is None
        assert await stream.at_end()

    @pytest.mark.asyncio
    async def test_next_past_end_raises(self):
        stream = TokenStream.from_tokens([])

        with pytest.raises(EnvelopeDecodeError, match="Unexpected end"):
            await stream.next()

    @pytest.mark.asyncio
    async def test_expect_wrong_kind_raises(self):
        stream = TokenStream.from_tokens([(TokenKind.BEGIN_OBJECT, None)])

        with pytest.raises(EnvelopeDecodeError, match="Expected BEGIN_ARRAY"):
            await stream.expect(TokenKind.BEGIN_ARRAY)

    @pytest.mark.asyncio
    async def test_skip_value_skips_nested_structure(self):
        stream = TokenStream.from_json('[{"a": [1, {"b": 2}]}, "after"]')
        await stream.expect(TokenKind.BEGIN_ARRAY)

        await stream.skip_value()

        assert await stream.next() == Token(TokenKind.STRING, "after")

    @pytest.mark.asyncio
    async def test_skip_value_skips_scalar(self):
        stream = TokenStream.from_json('[1, 2]')
        await stream.expect(TokenKind.BEGIN_ARRAY)

        await stream.skip_value()

        assert (await stream.next()).value == 2

    @pytest.mark.asyncio
    async def test_read_value_materialises_subtree(self):
        stream = TokenStream.from_json('[{"a": [1, 2.5], "b": {"c": null}}, 3]')
        await stream.expect(TokenKind.BEGIN_ARRAY)

        value = await stream.read_value()

        assert value == {"a": [1, 2.5], "b": {"c": None}}
        assert (await stream.next()).value == 3

    @pytest.mark.asyncio
    async def test_malformed_json_raises_decode_error(self):
        stream = TokenStream.from_json(b'[{"a": 1,,}]')

        with pytest.raises(EnvelopeDecodeError, match="Malformed JSON"):
            await _drain(stream)
