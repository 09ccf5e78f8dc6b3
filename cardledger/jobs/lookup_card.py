"""
Look up a card from the command line.

Runs the same fallback chain as the API and prints the ranked candidates,
which is handy for checking source credentials and name matching.

Usage:
    python -m cardledger.jobs.lookup_card "Pikachu VMAX" --set "Vivid Voltage"
"""

import argparse
import asyncio
import logging

from cardledger.config import DEFAULT_RESOLUTION_LIMIT, settings
from cardledger.models.card import CardQuery
from cardledger.models.resolution import ResolutionResult
from cardledger.sources.registry import build_http_client, build_resolver

logger = logging.getLogger(__name__)


def format_result(result: ResolutionResult) -> str:
    """Render a resolution as plain text lines."""
    lines = [f"status: {result.status.value}"]
    if result.source_tag is not None:
        lines.append(f"source: {result.source_tag.value}")

    for index, card in enumerate(result.candidates, start=1):
        price = f"${card.price}" if card.price is not None else "price unknown"
        printing = f" [{card.printing}]" if card.printing else ""
        lines.append(f"{index:>2}. {card.name} | {card.set_name} #{card.number}{printing} | {price}")

    for warning in result.warnings:
        lines.append(f"warning: {warning.source_tag.value} ({warning.kind.value}): {warning.message}")

    return "\n".join(lines)


async def run_lookup(query: CardQuery, limit: int) -> ResolutionResult:
    """Resolve one card against the configured sources."""
    async with build_http_client(settings) as client:
        resolver = build_resolver(settings, client)
        return await resolver.resolve(query, limit)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Resolve a card name to catalog candidates.")
    parser.add_argument("name", help="Card name")
    parser.add_argument("--set", dest="set_name", default=None, help="Set name hint")
    parser.add_argument("--language", default="en", help="Card language code (default: en)")
    parser.add_argument("--condition", default=None, help="Condition hint")
    parser.add_argument("--limit", type=int, default=DEFAULT_RESOLUTION_LIMIT)
    return parser


def main() -> None:
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    args = build_parser().parse_args()
    query = CardQuery(
        name=args.name,
        language=args.language,
        set_name=args.set_name,
        condition=args.condition,
    )

    try:
        result = asyncio.run(run_lookup(query, args.limit))
    except Exception as e:
        logger.error("Lookup failed: %s", e)
        raise

    print(format_result(result))


if __name__ == "__main__":
    main()
