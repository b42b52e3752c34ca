"""Dining enricher CLI: discover dining venues near ski resorts with an LLM."""
import argparse
import asyncio
import sys
from typing import List, Optional

from loguru import logger

from dining_enricher.config import GCS_ENABLED, LOG_LEVEL, EnrichmentConfig, validate_config
from dining_enricher.errors import ConfigError
from dining_enricher.clients import GCSAuditStore, OpenAIClient, SupabaseStore
from dining_enricher.enricher import DiningEnricher, VenueLLMClient

COMMANDS = ("enrich-all", "enrich-resort", "enrich-region", "replay-resort", "status")
TARGET_COMMANDS = {"enrich-resort": "resort identifier", "enrich-region": "region code", "replay-resort": "resort identifier"}

EPILOG = """
Examples:
  python main.py enrich-all --radius 15
  python main.py enrich-resort vail
  python main.py enrich-region CO --limit 5
  python main.py enrich-all --dry-run

Environment Variables:
  SUPABASE_URL                  Supabase project URL
  SUPABASE_SERVICE_ROLE_KEY     Supabase service role key
  OPENAI_API_KEY                OpenAI API key
  SEARCH_RADIUS_MILES           Default search radius (default: 20)
  MAX_VENUES_PER_RESORT         Max venues to fetch per resort (default: 15)
  OPENAI_MODEL                  OpenAI model (default: gpt-4o-mini)
  GCS_ENABLED                   Write audit documents to GCS (default: true)
"""


def parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=__doc__,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("target", nargs="?", default=None, help="Resort identifier or region code")
    parser.add_argument("--radius", "-r", type=float, default=None, help="Search radius in miles")
    parser.add_argument("--max-venues", "-m", type=int, default=None, help="Venues to request per resort")
    parser.add_argument("--limit", "-l", type=int, default=None, help="Limit number of resorts to process")
    parser.add_argument("--dry-run", "-d", action="store_true", help="Show what would be done without making changes")
    parser.add_argument("--skip-existing", action="store_true", help="Skip resorts that already have an audit document")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    if args.command in TARGET_COMMANDS and not args.target:
        parser.error(f"{args.command} requires a {TARGET_COMMANDS[args.command]}")
    return args


def configure_logging(verbose: bool = False) -> None:
    logger.remove()  # Remove default handler
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else LOG_LEVEL,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <7}</level> | <level>{message}</level>",
    )


def build_enricher(config: EnrichmentConfig) -> DiningEnricher:
    """Wire the enricher to Supabase, OpenAI and (outside dry runs) GCS."""
    store = SupabaseStore()
    llm_client = VenueLLMClient(OpenAIClient(), model=config.openai_model)
    audit_store = None
    if GCS_ENABLED and not config.dry_run:
        try:
            audit_store = GCSAuditStore()
        except Exception as e:
            logger.warning(f"GCS unavailable, audit documents disabled for this run: {e}")
    return DiningEnricher(
        resort_source=store,
        store=store,
        llm_client=llm_client,
        audit_store=audit_store,
        config=config,
    )


async def run_command(args: argparse.Namespace, enricher: DiningEnricher) -> None:
    if args.command == "enrich-all":
        await enricher.enrich_all(limit=args.limit)
    elif args.command == "enrich-resort":
        await enricher.enrich_resort_by_id(args.target)
    elif args.command == "enrich-region":
        await enricher.enrich_region(args.target, limit=args.limit)
    elif args.command == "replay-resort":
        await enricher.replay_resort(args.target)
    elif args.command == "status":
        enricher.status()
    else:
        raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.verbose)

    try:
        validate_config()
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    config = EnrichmentConfig.from_env(
        search_radius_miles=args.radius,
        max_venues_per_resort=args.max_venues,
        dry_run=args.dry_run,
        skip_existing=args.skip_existing,
    )
    enricher = build_enricher(config)

    try:
        asyncio.run(run_command(args, enricher))
    except KeyboardInterrupt:
        logger.warning("Interrupted, stopping run")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
