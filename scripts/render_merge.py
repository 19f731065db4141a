#!/usr/bin/env python3
"""
Render, preview or run a destination merge

Usage:
    python scripts/render_merge.py destination.yaml --source counters_tmp
    python scripts/render_merge.py destination.yaml --source counters_tmp --param date=2024-01-01 --execute

Target metadata comes from the database in MERGE_PLANNER_DSN, or from
--column NAME=TYPE declarations when rendering offline.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent.parent / '.env')

import psycopg2
import structlog

from catalog import PostgresCatalog, StaticCatalog
from compiler import MergeContext, MergePlanner
from config import MergeConfig
from destination_schema.v1.validator import load_destination
from execution import MergeExecutor, RetryHandler
from preview import PreviewEngine


def configure_logging(level: str = MergeConfig.LOG_LEVEL):
    """Send log events to stderr so stdout carries only the rendered result"""
    structlog.configure(
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level, logging.INFO)),
    )


def parse_pairs(pairs, option):
    result = {}
    for pair in pairs or []:
        if '=' not in pair:
            raise SystemExit(f"{option} expects NAME=VALUE, got {pair!r}")
        key, value = pair.split('=', 1)
        result[key.strip()] = value
    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument('destination', help='Destination YAML or JSON file')
    parser.add_argument('--source', required=True, help='Source relation to merge from')
    parser.add_argument('--param', action='append', help='Named parameter NAME=VALUE')
    parser.add_argument('--column', action='append', help='Offline target column type NAME=TYPE')
    parser.add_argument('--dsn', default=MergeConfig.DSN, help='PostgreSQL DSN (default: MERGE_PLANNER_DSN)')
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('--execute', action='store_true', help='Execute the merge')
    mode.add_argument('--preview', action='store_true', help='Show impact counts without writing')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    destination = load_destination(args.destination)
    context = MergeContext.create(args.source, parse_pairs(args.param, '--param'))

    connection = None
    if args.column:
        catalog = StaticCatalog({destination.target: parse_pairs(args.column, '--column')})
    elif args.dsn:
        connection = psycopg2.connect(args.dsn)
        catalog = PostgresCatalog(connection)
    else:
        raise SystemExit("Target metadata needed: pass --column NAME=TYPE or set MERGE_PLANNER_DSN")

    planner = MergePlanner(catalog, strict_guardrails=MergeConfig.STRICT_GUARDRAILS)

    try:
        if args.preview:
            result = PreviewEngine(planner, connection).preview(destination, context)
            print(json.dumps(result, indent=2, default=str))
        elif args.execute:
            if connection is None:
                raise SystemExit("--execute requires a database connection (--dsn)")
            executor = MergeExecutor(
                connection,
                planner=planner,
                retry_handler=RetryHandler(
                    max_retries=MergeConfig.MAX_RETRIES,
                    base_delay_seconds=MergeConfig.RETRY_DELAY_SECONDS,
                ),
                statement_timeout_ms=MergeConfig.STATEMENT_TIMEOUT_MS,
            )
            result = executor.merge(destination, context)
            print(json.dumps(result, indent=2, default=str))
        else:
            print(planner.plan(destination, context).sql)
    finally:
        if connection is not None:
            connection.close()

    return 0


if __name__ == '__main__':
    sys.exit(main())
