#!/usr/bin/env python3
"""Dump everything jollykite can fetch for the configured spot.

Prints the latest reading from every configured source, its safety
verdict, the filtered forecast and the current trend, so you can check
unit conversion and field mapping against the upstream JSON.

Usage
-----
Set environment variables and run::

    export KITE_AMBIENT_API_KEY="..."
    export KITE_AMBIENT_APP_KEY="..."
    export KITE_PROXY_BASE_URL="https://your-backend.example"   # optional
    python scripts/dump_all.py

Options::

    --json               Output as machine-readable JSON
    --output FILE        Write output to FILE instead of stdout
    --skip-forecast      Skip the Open-Meteo forecast
    --language ru|en     Labels for units (default: en)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import traceback
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from jollykite import KiteClient, KiteConfig, KiteError, Measurement, degrees_to_cardinal  # noqa: E402
from jollykite.units import SpeedUnit, speed_unit_label  # noqa: E402

# ── helpers ──────────────────────────────────────────────────


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


def _format_field(key: str, value: Any, indent: int = 2) -> str:
    prefix = " " * indent
    if isinstance(value, float):
        return f"{prefix}{key}: {value:.2f}"
    return f"{prefix}{key}: {value}"


def _print_measurement(measurement: Measurement, out: list[str], language: str) -> None:
    unit = speed_unit_label(SpeedUnit.KNOTS, language)
    out.append(_format_field("timestamp", measurement.timestamp.isoformat()))
    out.append(_format_field(f"speed ({unit})", measurement.wind_speed_knots))
    out.append(_format_field(f"gust ({unit})", measurement.wind_gust_knots))
    out.append(
        _format_field(
            "direction",
            f"{measurement.wind_direction_deg:.0f}° {degrees_to_cardinal(measurement.wind_direction_deg)}"
            f" (avg {measurement.wind_direction_avg_deg:.0f}°)",
        )
    )
    out.append(_format_field("temperature_f", measurement.temperature_f))
    out.append(_format_field("humidity_pct", measurement.humidity_pct))
    out.append(_format_field("pressure_inhg", measurement.pressure_inhg))
    out.append(_format_field("safety", f"{measurement.safety.level.value} - {measurement.safety.label}"))


# ── main ─────────────────────────────────────────────────────


async def dump_sources(client: KiteClient, *, json_mode: bool, language: str) -> dict[str, Any]:
    """Fetch the latest reading from each configured source."""
    out: list[str] = []
    readings: dict[str, Any] = {}
    for source_id in client.available_sources:
        out.append(_section(f"SOURCE  {source_id}"))
        try:
            client.switch_source(source_id).cancel()
            measurement = await client.refresh_wind()
        except KiteError as exc:
            out.append(f"  !! {source_id} failed: {exc}")
            readings[source_id] = {"error": str(exc), "traceback": traceback.format_exc()}
            continue
        if measurement is None:
            continue
        _print_measurement(measurement, out, language)
        readings[source_id] = measurement.model_dump(mode="json")

    if not json_mode:
        print("\n".join(out))
    return readings


async def main() -> None:
    parser = argparse.ArgumentParser(
        description="Dump all data jollykite can fetch for debugging / development.",
    )
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--output", "-o", help="Write output to FILE instead of stdout")
    parser.add_argument("--skip-forecast", action="store_true", help="Skip the Open-Meteo forecast")
    parser.add_argument("--language", choices=("ru", "en"), default="en", help="Unit label language")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    config = KiteConfig.from_env()
    result: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "location": {
            "latitude": config.location.latitude,
            "longitude": config.location.longitude,
            "timezone": config.location.timezone,
        },
    }

    out: list[str] = [_section("jollykite dump_all")]
    out.append(f"  time      : {result['timestamp']}")
    out.append(f"  spot      : {config.location.latitude}, {config.location.longitude} ({config.location.timezone})")

    async with KiteClient(config) as client:
        out.append(f"  sources   : {', '.join(client.available_sources)}")
        if not args.json_mode:
            print("\n".join(out))

        result["readings"] = await dump_sources(client, json_mode=args.json_mode, language=args.language)

        # ── Trend ──
        trend = client.analyze_trend()
        result["trend"] = trend.model_dump(mode="json")
        if not args.json_mode:
            print(_section("TREND"))
            print(_format_field("trend", f"{trend.icon} {trend.trend.value}"))
            if trend.has_data:
                print(_format_field("change", trend.change))
                print(_format_field("percent_change", trend.percent_change))

        # ── Forecast ──
        if not args.skip_forecast:
            try:
                points = await client.get_forecast()
            except KiteError as exc:
                result["forecast"] = {"error": str(exc)}
                if not args.json_mode:
                    print(f"  !! forecast failed: {exc}")
            else:
                result["forecast"] = [point.model_dump(mode="json") for point in points]
                if not args.json_mode:
                    print(_section(f"FORECAST  {len(points)} points"))
                    for point in points:
                        gust = "-" if point.gust_knots is None else f"{point.gust_knots:.1f}"
                        print(
                            f"  {point.date:%a %d %b %H:%M}  {point.speed_knots:5.1f} kt  gust {gust:>5}"
                            f"  {point.direction_deg:3.0f}° {degrees_to_cardinal(point.direction_deg)}"
                        )

    # ── Output ──
    if args.json_mode:
        payload = json.dumps(result, indent=2, default=str, ensure_ascii=False)
        if args.output:
            Path(args.output).write_text(payload, encoding="utf-8")
            print(f"JSON written to {args.output}", file=sys.stderr)
        else:
            print(payload)
    elif args.output:
        Path(args.output).write_text(
            json.dumps(result, indent=2, default=str, ensure_ascii=False),
            encoding="utf-8",
        )
        print(f"JSON written to {args.output}")


if __name__ == "__main__":
    asyncio.run(main())
