"""Command line search over a JSON collection.

Loads a JSON array (or JSON lines) of records, builds an engine over the
requested fields and prints one JSON line per result.

Example:
    object-search issuers.json "acme corp" --field name:1:60 --field code:2:0:exact --hierarchy
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
import logging
from pathlib import Path
import sys
from typing import Any

import orjson

from object_search.config import get_settings
from object_search.engine import ObjectSearchEngine
from object_search.exceptions import ObjectSearchError
from object_search.observability.logging import configure_logging
from object_search.search.relations import HierarchyRelationExpander, NoRelationExpander, RelationExpander
from object_search.search.schema import SearchableField


logger = logging.getLogger(__name__)


def parse_field(spec: str) -> SearchableField:
    """Parse ``name[:priority[:threshold[:exact]]]`` into a field declaration."""
    parts = spec.split(":")
    if not parts[0] or len(parts) > 4:
        raise argparse.ArgumentTypeError(f"Invalid field spec: {spec!r}")
    try:
        priority = int(parts[1]) if len(parts) > 1 and parts[1] else 1
        threshold = int(parts[2]) if len(parts) > 2 and parts[2] else 0
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid field spec: {spec!r}") from exc
    exact = len(parts) > 3 and parts[3].lower() == "exact"
    try:
        return SearchableField.attribute(parts[0], priority=priority, match_threshold=threshold, exact_match_only=exact)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid field spec: {spec!r}") from exc


def load_records(path: Path) -> list[Any]:
    """Read a JSON array, or JSON lines when the file is not a single array."""
    raw = path.read_bytes()
    try:
        data = orjson.loads(raw)
    except orjson.JSONDecodeError:
        return [orjson.loads(line) for line in raw.splitlines() if line.strip()]
    if isinstance(data, list):
        return data
    return [data]


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="object-search", description="Fuzzy search over a JSON collection")
    parser.add_argument("source", type=Path, help="JSON array or JSON lines file of records")
    parser.add_argument("query", help="Search text")
    parser.add_argument(
        "--field",
        dest="fields",
        action="append",
        type=parse_field,
        required=True,
        help="Searchable field as name[:priority[:threshold[:exact]]]; repeatable",
    )
    parser.add_argument("--max-results", type=int, default=None, help="Maximum results to print")
    parser.add_argument(
        "--hierarchy",
        action="store_true",
        help="Append records sharing a code/parent_code hierarchy with the matches",
    )
    return parser


def _relation_expander(records: Sequence[Any], enabled: bool, score: float) -> RelationExpander:
    if not enabled:
        return NoRelationExpander()
    expander = HierarchyRelationExpander.for_objects(records, score=score)
    if isinstance(expander, NoRelationExpander):
        logger.warning("Records have no code/parent_code attributes; hierarchy expansion disabled")
    return expander


def main(argv: Sequence[str] | None = None) -> int:
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)
    args = build_argument_parser().parse_args(argv)

    try:
        records = load_records(args.source)
    except OSError as exc:
        logger.error("Cannot read source %s: %s", args.source, exc)
        return 1
    except orjson.JSONDecodeError as exc:
        logger.error("Invalid JSON in %s: %s", args.source, exc)
        return 1

    try:
        with ObjectSearchEngine(
            records,
            fields=args.fields,
            relation_expander=_relation_expander(records, args.hierarchy, settings.relation_score),
            settings=settings,
            name=args.source.stem,
        ) as engine:
            results = engine.search(args.query, args.max_results)
    except ObjectSearchError as exc:
        logger.error("Search failed: %s", exc)
        return 2

    for result in results:
        sys.stdout.write(orjson.dumps(result.to_dict()).decode("utf-8") + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
