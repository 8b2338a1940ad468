"""Command-line interface for reviewmatch."""

import argparse
import json
import logging
import sys

from .core.config import settings
from .core.constants import FileConstants
from .core.exceptions import ConfigurationError, ReviewMatchError, ValidationError
from .services.operations import (
    CallerContext,
    analyze_reviews,
    fetch_reviews,
    generate_aspects,
    resolve_locations,
)
from .utils.data_prep import export_to_json, load_json, prepare_export

logger = logging.getLogger(__name__)


def setup_logging():
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=FileConstants.LOG_FORMAT,
    )


def _emit(kind, result, out=None):
    if out:
        export_to_json(prepare_export(kind, result), out)
        print(f"Results exported to {out}")
    else:
        print(json.dumps(result, indent=2, ensure_ascii=False))


def _read_places(filename):
    """Accept either a bare list of places or a ``fetch`` export."""
    try:
        data = load_json(filename)
    except FileNotFoundError:
        raise ValidationError(f"Input file {filename} not found")
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON in input file: {e}")
    if isinstance(data, dict):
        data = data.get("reviews")
    return data


def cmd_fetch(args):
    """Fetch command."""
    result = fetch_reviews(CallerContext.local(), args.urls)
    print(f"Fetched reviews for {len(result['reviews'])} of {len(args.urls)} locations", file=sys.stderr)
    _emit("reviews", result, args.out)


def cmd_analyze(args):
    """Analyze command."""
    places = _read_places(args.input_file)
    result = analyze_reviews(CallerContext.local(), places, args.criteria, args.red_flags)
    _emit("analysis", result, args.out)


def cmd_aspects(args):
    """Aspects command."""
    result = generate_aspects(CallerContext.local(), args.location_type)
    _emit("aspects", result, args.out)


def cmd_resolve(args):
    """Resolve command."""
    result = resolve_locations(CallerContext.local(), args.query)
    _emit("locations", result, args.out)


def build_parser():
    parser = argparse.ArgumentParser(description="reviewmatch - Match locations to what you care about")
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Fetch command
    fetch_parser = subparsers.add_parser('fetch', help='Scrape reviews for place URLs')
    fetch_parser.add_argument('urls', nargs='+', help='Google Maps place URLs')
    fetch_parser.add_argument('--out', help='Output JSON file')

    # Analyze command
    analyze_parser = subparsers.add_parser('analyze', help='Score scraped reviews against criteria')
    analyze_parser.add_argument('--in', dest='input_file', required=True, help='Input JSON file from fetch')
    analyze_parser.add_argument('--criteria', required=True, help='What you care about')
    analyze_parser.add_argument('--red-flags', dest='red_flags', help='What you want to avoid')
    analyze_parser.add_argument('--out', help='Output JSON file')

    # Aspects command
    aspects_parser = subparsers.add_parser('aspects', help='Suggest aspects for a location type')
    aspects_parser.add_argument('location_type', help='Type of location, e.g. "coffee shop"')
    aspects_parser.add_argument('--out', help='Output JSON file')

    # Resolve command
    resolve_parser = subparsers.add_parser('resolve', help='Resolve a description to real places')
    resolve_parser.add_argument('query', help='Place description')
    resolve_parser.add_argument('--out', help='Output JSON file')

    return parser


COMMANDS = {
    'fetch': cmd_fetch,
    'analyze': cmd_analyze,
    'aspects': cmd_aspects,
    'resolve': cmd_resolve,
}


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    setup_logging()

    try:
        COMMANDS[args.command](args)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
    except ReviewMatchError as e:
        logger.error(f"Command failed: {e.detail}")
        print(json.dumps({"error": e.to_dict()}), file=sys.stderr)
        sys.exit(2 if isinstance(e, ConfigurationError) else 1)
    except Exception as e:
        logger.error(f"Command failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
