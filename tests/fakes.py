"""
In-memory Transport and a fake World Bank indicator API for tests.
"""

import asyncio
import json
import math
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, urlsplit

from wb_connector.application.domain import Transport
from wb_connector.application.exceptions import TransportError
from wb_connector.infrastructure.tokens import AsyncByteReader

API_BASE = "https://api.test/v2"
CLIMATE_BASE = "https://climate.test/mavg"


def indicator_record(country, date, value, indicator="NY.GDP.PCAP.CD"):
    """One observation in the shape the indicator endpoint returns."""
    return {
        "indicator": {"id": indicator, "value": "GDP per capita (current US$)"},
        "country": {"id": country, "value": f"Country {country}"},
        "value": value,
        "decimal": "0",
        "date": date,
    }


def indicator_page(records, page=1, pages=1, per_page=50, total=None):
    """A generic envelope: header object followed by the record array."""
    header = {
        "page": page,
        "pages": pages,
        "per_page": str(per_page),
        "total": len(records) if total is None else total,
    }
    return [header, records]


class FakeTransport(Transport):
    """
    Serves canned responses and records how requests were issued.

    The route callable maps a URL to (status, body bytes). A status other
    than 200 is reported the way HttpTransport reports exhausted retries.
    """

    def __init__(
        self,
        route: Callable[[str], Tuple[int, bytes]],
        delay: Optional[Callable[[str], float]] = None,
    ):
        self.route = route
        self.delay = delay or (lambda url: 0.0)
        self.requests: List[str] = []
        self.completed: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def get(self, url, handler, retry_count=None):
        self.requests.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay(url))
            status, body = self.route(url)
            if status >= 400:
                raise TransportError(
                    f"World Bank API responded with status code {status} to {url}",
                    url=url,
                    status_code=status,
                )
            result = await handler(status, AsyncByteReader.from_bytes(body))
            self.completed.append(url)
            return result
        finally:
            self.in_flight -= 1


class FakeIndicatorApi:
    """
    Paginates a list of indicator records like the real endpoint does.

    total_override lets a test claim more records than are served, so that
    large page plans can be exercised with small bodies.
    """

    def __init__(
        self,
        records_by_country: Dict[str, List[dict]],
        total_override: Optional[int] = None,
    ):
        self.records_by_country = records_by_country
        self.total_override = total_override

    def _records(self, country: str) -> List[dict]:
        if country == "all":
            return [r for rs in self.records_by_country.values() for r in rs]
        return self.records_by_country.get(country, [])

    def __call__(self, url: str) -> Tuple[int, bytes]:
        parts = urlsplit(url)
        query = parse_qs(parts.query)
        country = parts.path.split("/countries/")[1].split("/")[0]
        page = int(query["page"][0])
        per_page = int(query["per_page"][0])

        records = self._records(country)
        total = len(records) if self.total_override is None else self.total_override
        pages = max(1, math.ceil(total / per_page))
        served = records[(page - 1) * per_page:page * per_page]
        body = indicator_page(served, page, pages, per_page, total)
        return 200, json.dumps(body).encode("utf-8")


def page_of(url: str) -> int:
    return int(parse_qs(urlsplit(url).query)["page"][0])
