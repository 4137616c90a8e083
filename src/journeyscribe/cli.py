"""CLI interface for JourneyScribe travel-data lookups"""

import asyncio
import dataclasses
import json
import logging
from pathlib import Path
from typing import Any, Optional, Tuple

import click

from journeyscribe.application.activity_service import ActivityService
from journeyscribe.application.flight_search_service import FlightSearchService
from journeyscribe.application.hotel_offer_service import HotelOfferService
from journeyscribe.domain.models.flight import FlightSearch
from journeyscribe.infrastructure.amadeus.client import AmadeusClient
from journeyscribe.infrastructure.config.config_manager import ConfigManager
from journeyscribe.infrastructure.currency import CurrencyConverter
from journeyscribe.infrastructure.errors import FetchError
from journeyscribe.infrastructure.http_client import (
    RequestOptions,
    ResilientFetcher,
    retry_policy_from_dict,
)
from journeyscribe.infrastructure.places import PlacesClient
from journeyscribe.infrastructure.timezone import TimezoneConverter

logger = logging.getLogger(__name__)

CONVERTED_PRICE_KEYS = ("totalConverted", "convertedCurrency")


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def parse_header(raw: str) -> Tuple[str, str]:
    """Parse a 'Name: value' header argument"""
    name, sep, value = raw.partition(":")
    if not sep or not name.strip():
        raise click.BadParameter(f"Invalid header {raw!r}, expected 'Name: value'")
    return name.strip(), value.strip()


def _to_jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        if hasattr(value, "to_dict"):
            return value.to_dict()
        return dataclasses.asdict(value)
    if isinstance(value, list):
        return [_to_jsonable(item) for item in value]
    return value


def _echo_json(value: Any) -> None:
    click.echo(json.dumps(_to_jsonable(value), indent=2, default=str, ensure_ascii=False))


def _create_fetcher(config_manager: ConfigManager) -> ResilientFetcher:
    """Create the shared retrying fetcher from config"""
    return ResilientFetcher.from_config(
        config_manager.get_retry_policy(), config_manager.get_http_config()
    )


def _create_amadeus_client(config_manager: ConfigManager, fetcher: ResilientFetcher) -> AmadeusClient:
    amadeus_config = config_manager.get_amadeus_config()
    return AmadeusClient.create(
        fetcher,
        amadeus_config.api_key,
        amadeus_config.api_secret,
        base_url=amadeus_config.base_url,
        refresh_margin=amadeus_config.token_refresh_margin,
    )


def _create_converter(config_manager: ConfigManager, fetcher: ResilientFetcher) -> CurrencyConverter:
    return CurrencyConverter(fetcher, base_url=config_manager.get_currency_config().base_url)


def _create_timezone_converter(config_manager: ConfigManager, fetcher: ResilientFetcher) -> TimezoneConverter:
    timezone_config = config_manager.get_timezone_config()
    return TimezoneConverter(
        fetcher,
        timezone_config.api_key,
        base_url=timezone_config.base_url,
        position_url=timezone_config.position_url,
    )


def _run(ctx: click.Context, coro_fn, *args: Any) -> Any:
    """Load config, run ``coro_fn(config_manager, fetcher, *args)`` and close the fetcher"""
    verbose = ctx.obj.get("verbose", False)
    try:
        config_manager = ConfigManager(config_path=ctx.obj.get("config_path"))
    except Exception as e:
        _die(f"Invalid configuration: {e}", verbose=verbose, exc=e)

    async def _main() -> Any:
        async with _create_fetcher(config_manager) as fetcher:
            return await coro_fn(config_manager, fetcher, *args)

    try:
        return asyncio.run(_main())
    except click.ClickException:
        raise
    except Exception as e:
        _die(f"Fatal error: {e}", verbose=verbose, exc=e)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .journeyscribe.yml config file",
)
@click.pass_context
def cli(ctx, verbose: bool, config: Path):
    """JourneyScribe - travel data lookups with rate-limit aware retries"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument("url")
@click.option("--method", "-X", default="GET", show_default=True, help="HTTP method")
@click.option("--header", "-H", "headers", multiple=True, help="Request header as 'Name: value'")
@click.option("--data", "-d", help="Request body (sent unchanged on every attempt)")
@click.option("--max-attempts", type=int, help="Total attempts. Overrides config.")
@click.option("--initial-delay", type=float, help="First backoff delay in seconds. Overrides config.")
@click.option("--backoff", type=float, help="Backoff multiplier. Overrides config.")
@click.option("--timeout", type=float, help="Overall deadline in seconds, backoff included")
@click.pass_context
def fetch(
    ctx,
    url: str,
    method: str,
    headers: Tuple[str, ...],
    data: Optional[str],
    max_attempts: Optional[int],
    initial_delay: Optional[float],
    backoff: Optional[float],
    timeout: Optional[float],
):
    """Fetch URL with rate-limit aware retries and print the response.

    URL: Absolute URL to request
    """
    options = RequestOptions(
        method=method.upper(),
        headers=dict(parse_header(h) for h in headers),
        content=data,
    )

    async def _fetch(config_manager: ConfigManager, fetcher: ResilientFetcher):
        policy_dict = config_manager.get_retry_policy().model_dump()
        if max_attempts is not None:
            policy_dict["max_attempts"] = max_attempts
        if initial_delay is not None:
            policy_dict["initial_delay"] = initial_delay
        if backoff is not None:
            policy_dict["backoff_multiplier"] = backoff
        policy = retry_policy_from_dict(policy_dict)
        try:
            return await fetcher.fetch(url, options, policy=policy, timeout=timeout)
        except FetchError as e:
            raise click.ClickException(str(e)) from e

    response = _run(ctx, _fetch)
    click.echo(f"HTTP {response.status_code} {response.reason_phrase}")
    click.echo(response.text)


@cli.command()
@click.argument("keyword")
@click.option("--airports", is_flag=True, help="Include airports (location search)")
@click.pass_context
def cities(ctx, keyword: str, airports: bool):
    """Search cities by name.

    KEYWORD: At least 2 characters of the city name
    """

    async def _search(config_manager: ConfigManager, fetcher: ResilientFetcher):
        amadeus = _create_amadeus_client(config_manager, fetcher)
        if airports:
            return await amadeus.search_locations(keyword)
        return await amadeus.search_cities(keyword)

    _echo_json(_run(ctx, _search))


@cli.command()
@click.argument("origin")
@click.argument("destination")
@click.argument("departure_date")
@click.option("--return-date", help="Return date (YYYY-MM-DD)")
@click.option("--adults", type=int, default=1, show_default=True)
@click.option("--children", type=int)
@click.option("--infants", type=int)
@click.option(
    "--travel-class",
    type=click.Choice(["ECONOMY", "PREMIUM_ECONOMY", "BUSINESS", "FIRST"], case_sensitive=False),
)
@click.option("--nonstop", is_flag=True, help="Only direct flights")
@click.pass_context
def flights(
    ctx,
    origin: str,
    destination: str,
    departure_date: str,
    return_date: Optional[str],
    adults: int,
    children: Optional[int],
    infants: Optional[int],
    travel_class: Optional[str],
    nonstop: bool,
):
    """Search flight offers with converted prices.

    ORIGIN, DESTINATION: IATA codes; DEPARTURE_DATE: YYYY-MM-DD
    """
    try:
        search = FlightSearch(
            origin=origin.upper(),
            destination=destination.upper(),
            departure_date=departure_date,
            return_date=return_date,
            adults=adults,
            children=children,
            infants=infants,
            travel_class=travel_class.upper() if travel_class else None,
            nonstop=nonstop,
        )
    except ValueError as e:
        raise click.BadParameter(str(e)) from e

    async def _search(config_manager: ConfigManager, fetcher: ResilientFetcher):
        service = FlightSearchService(
            _create_amadeus_client(config_manager, fetcher),
            _create_converter(config_manager, fetcher),
            target_currency=config_manager.get_currency_config().target_currency,
        )
        return await service.search(search)

    _echo_json(_run(ctx, _search))


@cli.command()
@click.argument("city_code")
@click.option("--ratings", help="Comma-separated star ratings, e.g. 4,5")
@click.option("--amenities", help="Comma-separated amenities, e.g. WIFI,PARKING")
@click.option("--radius", type=int, default=10, show_default=True, help="Radius in km")
@click.pass_context
def hotels(ctx, city_code: str, ratings: Optional[str], amenities: Optional[str], radius: int):
    """List hotels in a city.

    CITY_CODE: IATA city code
    """

    async def _list(config_manager: ConfigManager, fetcher: ResilientFetcher):
        service = HotelOfferService(
            _create_amadeus_client(config_manager, fetcher),
            _create_converter(config_manager, fetcher),
            target_currency=config_manager.get_currency_config().target_currency,
        )
        return await service.list_hotels(city_code.upper(), ratings=ratings, amenities=amenities, radius=radius)

    _echo_json(_run(ctx, _list))


@cli.command()
@click.argument("city_code")
@click.option("--keyword", help="Filter activities by name")
@click.option("--limit", type=int, default=30, show_default=True)
@click.pass_context
def activities(ctx, city_code: str, keyword: Optional[str], limit: int):
    """Find tours and activities around a city.

    CITY_CODE: City name or IATA code
    """

    async def _find(config_manager: ConfigManager, fetcher: ResilientFetcher):
        service = ActivityService(_create_amadeus_client(config_manager, fetcher))
        return await service.find(city_code, keyword=keyword, limit=limit)

    _echo_json(_run(ctx, _find))


@cli.command()
@click.argument("amount")
@click.argument("from_currency")
@click.argument("to_currency", required=False)
@click.pass_context
def convert(ctx, amount: str, from_currency: str, to_currency: Optional[str]):
    """Convert an amount between currencies.

    AMOUNT FROM_CURRENCY [TO_CURRENCY]: TO_CURRENCY defaults to the configured target
    """

    async def _convert(config_manager: ConfigManager, fetcher: ResilientFetcher):
        target = to_currency or config_manager.get_currency_config().target_currency
        return await _create_converter(config_manager, fetcher).convert(amount, from_currency, target)

    conversion = _run(ctx, _convert)
    click.echo(
        f"{conversion.amount} {conversion.from_currency} = "
        f"{conversion.converted_amount} {conversion.to_currency} (rate {conversion.rate})"
    )


@cli.command()
@click.argument("from_zone")
@click.argument("to_zone")
@click.option("--time", "at", type=int, help="Unix timestamp in FROM_ZONE (default: now)")
@click.pass_context
def timezone(ctx, from_zone: str, to_zone: str, at: Optional[int]):
    """Convert a time between two zones.

    FROM_ZONE, TO_ZONE: Zone names, e.g. Asia/Dhaka
    """

    async def _convert(config_manager: ConfigManager, fetcher: ResilientFetcher):
        return await _create_timezone_converter(config_manager, fetcher).convert(from_zone, to_zone, at)

    result = _run(ctx, _convert)
    click.echo(f"{result.from_zone} ({result.from_abbreviation}): {result.from_iso}")
    click.echo(f"{result.to_zone} ({result.to_abbreviation}): {result.to_iso}")
    click.echo(f"Offset: {result.offset}s")


@cli.command("timezone-at")
@click.argument("latitude", type=float)
@click.argument("longitude", type=float)
@click.pass_context
def timezone_at(ctx, latitude: float, longitude: float):
    """Print the time zone name of a coordinate.

    LATITUDE, LONGITUDE: Decimal degrees
    """

    async def _lookup(config_manager: ConfigManager, fetcher: ResilientFetcher):
        return await _create_timezone_converter(config_manager, fetcher).zone_for_position(latitude, longitude)

    click.echo(_run(ctx, _lookup))


@cli.command()
@click.argument("latitude", type=float)
@click.argument("longitude", type=float)
@click.option("--type", "place_type", help="Google place type (default from config, e.g. restaurant)")
@click.pass_context
def places(ctx, latitude: float, longitude: float, place_type: Optional[str]):
    """Find places near a coordinate.

    LATITUDE, LONGITUDE: Decimal degrees
    """

    async def _nearby(config_manager: ConfigManager, fetcher: ResilientFetcher):
        places_config = config_manager.get_places_config()
        client = PlacesClient(
            fetcher,
            places_config.api_key,
            base_url=places_config.base_url,
            radius=places_config.radius,
            default_type=places_config.default_type,
        )
        return await client.nearby(latitude, longitude, place_type)

    _echo_json(_run(ctx, _nearby))


@cli.command("price-flight")
@click.argument("offer_file", type=click.File("r"))
@click.pass_context
def price_flight(ctx, offer_file):
    """Re-price a flight offer printed by the flights command.

    OFFER_FILE: JSON file holding the offer, or {"flightOffer": ...}; "-" reads stdin
    """
    try:
        offer = json.load(offer_file)
    except ValueError as e:
        raise click.BadParameter(f"Invalid JSON: {e}", param_hint="OFFER_FILE") from e
    if isinstance(offer, dict) and "flightOffer" in offer:
        offer = offer["flightOffer"]
    if not isinstance(offer, dict) or not offer:
        raise click.BadParameter("Missing flight offer.", param_hint="OFFER_FILE")
    # Converted totals are added by the flights command, Amadeus does not know them
    price = offer.get("price")
    if isinstance(price, dict):
        offer = {**offer, "price": {k: v for k, v in price.items() if k not in CONVERTED_PRICE_KEYS}}

    async def _price(config_manager: ConfigManager, fetcher: ResilientFetcher):
        return await _create_amadeus_client(config_manager, fetcher).price_flight_offer(offer)

    _echo_json(_run(ctx, _price))


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
