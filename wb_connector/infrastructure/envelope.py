"""
Parsing of the envelope (header) that precedes the records of a response.

The World Bank APIs wrap their records in incompatible ways, so the parser
is told which EnvelopeShape to expect once per call. Every path leaves the
token stream positioned at the first token of the record sequence.
"""

import logging
from typing import Optional

from pydantic import ValidationError

from ..application.domain import EnvelopeShape, ResponseHeader
from ..application.exceptions import ApiError, EnvelopeDecodeError

from .api_models import HeaderPayload
from .tokens import TokenKind, TokenStream

logger = logging.getLogger(__name__)

_CATALOG_ATTRIBUTES = 5
_CATALOG_MARKER = "datacatalog"


async def parse_header(
    stream: TokenStream, shape: EnvelopeShape
) -> Optional[ResponseHeader]:
    """
    Consumes the envelope of a response body.

    Args:
        stream: Token stream positioned at the start of the body.
        shape: The envelope layout the endpoint uses.

    Returns:
        The decoded header, or None when the endpoint answered with a bare
        null, meaning there is no data at all.

    Raises:
        EnvelopeDecodeError: If the envelope does not have the expected shape.
        ApiError: If the API sent an error message in place of a header.
    """
    if shape is EnvelopeShape.GENERIC:
        return await _parse_generic(stream)
    if shape is EnvelopeShape.CATALOG:
        return await _parse_catalog(stream)
    if shape is EnvelopeShape.BARE_ARRAY:
        await stream.expect(TokenKind.BEGIN_ARRAY)
        return ResponseHeader.empty()
    raise ValueError(f"Unsupported envelope shape: {shape}")


async def _parse_generic(stream: TokenStream) -> Optional[ResponseHeader]:
    if await stream.next_is(TokenKind.NULL):
        await stream.next()
        return None

    await stream.expect(TokenKind.BEGIN_ARRAY)
    if not await stream.next_is(TokenKind.BEGIN_OBJECT):
        token = await stream.peek()
        raise EnvelopeDecodeError(
            f"Expected a header object, found {token.kind.name if token else 'EOF'}"
        )

    raw_header = await stream.read_value()
    try:
        payload = HeaderPayload.model_validate(raw_header)
    except ValidationError as e:
        raise EnvelopeDecodeError(f"Invalid response header: {e}") from e

    if payload.message:
        notice = "; ".join(
            m.value or m.key or "Unknown API error" for m in payload.message
        )
        raise ApiError(f"World Bank API error: {notice}")

    # Some endpoints wrap the records in a second array, others do not.
    if await stream.next_is(TokenKind.BEGIN_ARRAY):
        await stream.next()

    return ResponseHeader(
        page_number=payload.page,
        page_count=payload.pages,
        record_count=payload.per_page,
        total_records=payload.total,
    )


async def _parse_catalog(stream: TokenStream) -> ResponseHeader:
    page_number = -1
    page_count = -1
    per_page = -1
    total_records = -1

    await stream.expect(TokenKind.BEGIN_OBJECT)
    for _ in range(_CATALOG_ATTRIBUTES):
        name = (await stream.expect(TokenKind.NAME)).lower()
        if name == "page":
            page_number = await _expect_int(stream, name)
        elif name == "pages":
            page_count = await _expect_int(stream, name)
        elif name == "per_page":
            per_page = await _expect_int(stream, name)
        elif name == "total":
            total_records = await _expect_int(stream, name)
        elif name == _CATALOG_MARKER:
            await stream.expect(TokenKind.BEGIN_ARRAY)
        else:
            raise EnvelopeDecodeError(f"Unexpected attribute in json: {name}")

    logger.debug(
        f"Catalog header: page {page_number}/{page_count}, "
        f"{total_records} records"
    )
    return ResponseHeader(page_number, page_count, per_page, total_records)


async def _expect_int(stream: TokenStream, name: str) -> int:
    token = await stream.next()
    if token.kind in (TokenKind.NUMBER, TokenKind.STRING):
        try:
            return int(token.value)
        except ValueError:
            pass
    raise EnvelopeDecodeError(
        f"Expected an integer for '{name}', found {token.value!r}"
    )
