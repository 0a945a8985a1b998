"""
Entry point for the wb_connector component.
"""

import argparse
import asyncio
import datetime
import logging
import sys
from pathlib import Path

from .application.climate import Gcm, Scenario, Variable
from .application.domain import ClimateQuery, IndicatorQuery
from .application.exceptions import ConnectorError
from .infrastructure.containers import Container

logger = logging.getLogger(__name__)


def setup_logging(level: str):
    """Applies basic logging configuration."""
    logging.basicConfig(level=level)


async def _query(container: Container, args: argparse.Namespace):
    """Runs the query selected on the command line."""
    if args.command == "indicator":
        query = IndicatorQuery(
            indicator=args.indicator,
            start_date=args.start,
            end_date=args.end,
            countries=tuple(args.countries or ()),
            batch_size=(
                args.batch_size
                or container.config().connector.default_batch_size
            ),
        )
        return await container.indicator_service().fetch(query)
    if args.command == "climate":
        query = ClimateQuery(
            country=args.country,
            variable=Variable.from_code(args.variable),
            gcm=Gcm.from_code(args.gcm) if args.gcm else None,
            scenario=Scenario.from_code(args.scenario) if args.scenario else None,
        )
        return await container.climate_service().fetch(query)
    return await container.catalog_service().fetch()


async def run_application(args: argparse.Namespace):
    """Wires and runs the application using the DI container."""

    container = Container()
    container.cli_args.from_dict(vars(args))
    setup_logging(level=container.config().logging.level)

    try:
        envelope = await _query(container, args)
        if args.output:
            await container.exporter().to_parquet(envelope.body, args.output)
        else:
            print(envelope.body.to_string(max_rows=args.max_rows))
    except ConnectorError as e:
        logger.error(f"An application error occurred: {e}")
        sys.exit(1)
    finally:
        await container.http_client().aclose()


def _date(value: str) -> datetime.date:
    return datetime.date.fromisoformat(value)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="World Bank data connector")

    parser.add_argument(
        "--output",
        type=Path,
        help="Write the result to this Parquet file instead of printing it.",
    )
    parser.add_argument(
        "--max-rows",
        type=int,
        default=60,
        help="Rows to print when no --output is given.",
    )
    parser.add_argument(
        "--no-progress",
        dest="show_progress",
        action="store_false",
        help="Hide progress bars for concurrent page requests.",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    indicator = commands.add_parser(
        "indicator", help="Time series of one indicator, dates x countries."
    )
    indicator.add_argument("indicator", help="Indicator code, e.g. NY.GDP.PCAP.CD")
    indicator.add_argument(
        "--countries",
        nargs="+",
        help="ISO2 country codes; all countries when omitted.",
    )
    indicator.add_argument("--start", type=_date, help="Start date, YYYY-MM-DD")
    indicator.add_argument("--end", type=_date, help="End date, YYYY-MM-DD")
    indicator.add_argument("--batch-size", type=int, help="Records per page.")

    climate = commands.add_parser(
        "climate", help="Monthly climate averages for one country."
    )
    climate.add_argument("country", help="ISO3 country code, e.g. USA")
    climate.add_argument(
        "--variable",
        required=True,
        choices=[v.code for v in Variable],
        help="tas (temperature) or pr (precipitation).",
    )
    climate.add_argument("--gcm", help="General Circulation Model code.")
    climate.add_argument("--scenario", help="Emissions scenario code.")

    commands.add_parser("catalog", help="The World Bank data catalog.")

    return parser


if __name__ == "__main__":
    cli_args = build_parser().parse_args()

    asyncio.run(run_application(cli_args))
