"""CLI entrypoint for territory_geo."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from territory_geo.logging_config import setup_logging


def main() -> None:
    setup_logging()

    parser = argparse.ArgumentParser(prog="territory-geo")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("serve")
    sub.add_parser("run")
    sub.add_parser("migrate")

    resolve_parser = sub.add_parser("resolve")
    resolve_parser.add_argument("--lat", type=float)
    resolve_parser.add_argument("--lng", type=float)
    resolve_parser.add_argument("--address")
    resolve_parser.add_argument("--city")
    resolve_parser.add_argument("--county")
    resolve_parser.add_argument("--name")

    validate_parser = sub.add_parser("validate")
    validate_parser.add_argument("territory", help="stored territory ('' for none)")
    validate_parser.add_argument("--lat", type=float)
    validate_parser.add_argument("--lng", type=float)
    validate_parser.add_argument("--name")
    validate_parser.add_argument("--city")
    validate_parser.add_argument("--country")

    dissolve_parser = sub.add_parser("dissolve")
    dissolve_parser.add_argument("path", help="GeoJSON file, or - for stdin")
    dissolve_parser.add_argument("--territory")

    args = parser.parse_args()

    if args.command == "serve":
        _serve()
    elif args.command == "run":
        asyncio.run(_run_once())
    elif args.command == "migrate":
        asyncio.run(_migrate())
    elif args.command == "resolve":
        _resolve(args)
    elif args.command == "validate":
        _validate(args)
    elif args.command == "dissolve":
        _dissolve(args.path, args.territory)


def _serve() -> None:
    import uvicorn

    from territory_geo.config import get_settings

    settings = get_settings()
    uvicorn.run(
        "territory_geo.api:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=(settings.env == "development"),
        log_level=settings.log_level.lower(),
    )


async def _run_once() -> None:
    from territory_geo.scheduler import run_once

    stats = await run_once()
    print(f"Pipeline completed: {stats}")


async def _migrate() -> None:
    from territory_geo.db import close_pool, get_pool, run_migrations

    await get_pool()
    await run_migrations()
    await close_pool()
    print("Migrations applied successfully.")


def _print(model) -> None:
    print(json.dumps(model.model_dump(mode="json"), ensure_ascii=True, indent=2))


def _resolve(args: argparse.Namespace) -> None:
    from territory_geo.cascade import resolve
    from territory_geo.models import LocationRecord

    record = LocationRecord(
        latitude=args.lat,
        longitude=args.lng,
        address=args.address,
        city=args.city,
        county=args.county,
        name=args.name,
    )
    _print(resolve(record))


def _validate(args: argparse.Namespace) -> None:
    from territory_geo.validate import validate

    metadata = {"name": args.name, "city": args.city, "country": args.country}
    _print(validate(args.territory or None, args.lat, args.lng, metadata))


def _dissolve(path: str, territory: str | None) -> None:
    from territory_geo.dissolve import dissolve
    from territory_geo.errors import GeometryError

    if path == "-":
        geometry = json.load(sys.stdin)
    else:
        with open(path) as f:
            geometry = json.load(f)
    try:
        _print(dissolve(geometry, territory))
    except GeometryError as e:
        print(f"Dissolve failed: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
