"""Index entities from a JSON-lines file and run one search against them."""

# ruff: noqa: T201  # CLI prints its JSON result to stdout

from __future__ import annotations

import argparse
from collections.abc import Iterator, Sequence
import logging
from pathlib import Path
from typing import Any

import orjson
from pydantic import ValidationError

from entity_search.bootstrap import build_search_stack
from entity_search.config import Settings
from entity_search.domain.kinds import EntityKind
from entity_search.exceptions import EntitySearchError, InvalidQueryError
from entity_search.observability.logging import configure_logging
from entity_search.observability.metrics import write_metrics
from entity_search.observability.tracing import init_tracing


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INVALID_QUERY = 2


class EntityFileError(ValueError):
    """Raised when the entities file cannot be read."""


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="entity-search", description=__doc__)
    parser.add_argument("text", help="Free-text query")
    parser.add_argument(
        "--entities",
        type=Path,
        required=True,
        help="JSON-lines file, one entity per line with at least 'id' and 'type'",
    )
    parser.add_argument(
        "--kind",
        choices=[kind.value for kind in EntityKind],
        help="Restrict the search to one entity kind (default: all kinds)",
    )
    parser.add_argument("--offset", type=int, default=0, help="Number of ranked hits to skip (default: 0)")
    parser.add_argument(
        "--size",
        type=int,
        default=None,
        help="Page size (default: ENTITY_SEARCH_DEFAULT_PAGE_SIZE)",
    )
    parser.add_argument("--log-level", default=None, help="Override ENTITY_SEARCH_LOG_LEVEL")
    parser.add_argument(
        "--metrics-file",
        type=Path,
        default=None,
        help="Write Prometheus metrics of this run to a textfile-collector file",
    )
    return parser


def load_entities(path: Path) -> Iterator[dict[str, Any]]:
    """Yield one entity per non-empty line of ``path``.

    Raises:
        EntityFileError: the file is missing or a line is not a JSON object.
    """
    try:
        handle = path.open("rb")
    except OSError as exc:
        raise EntityFileError(f"Cannot read {path}: {exc}") from exc
    with handle:
        for line_number, line in enumerate(handle, start=1):
            if not line.strip():
                continue
            try:
                payload = orjson.loads(line)
            except orjson.JSONDecodeError as exc:
                raise EntityFileError(f"{path}:{line_number}: invalid JSON ({exc})") from exc
            if not isinstance(payload, dict):
                raise EntityFileError(f"{path}:{line_number}: expected a JSON object")
            yield payload


def _emit(payload: dict[str, Any]) -> None:
    print(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode("utf-8"))


def _error(status: str, message: str) -> dict[str, Any]:
    return {"status": status, "error": message}


def _export_metrics(path: Path) -> None:
    try:
        write_metrics(path)
    except OSError as exc:
        logger.warning("Cannot write metrics to %s: %s", path, exc)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings()
    except ValidationError as exc:
        _emit(_error("error", f"Invalid configuration: {exc}"))
        return EXIT_ERROR

    configure_logging(args.log_level or settings.log_level, settings.log_json)
    init_tracing()

    stack = build_search_stack(settings)
    try:
        try:
            report = stack.indexer.index_all(load_entities(args.entities))
        except EntityFileError as exc:
            _emit(_error("error", str(exc)))
            return EXIT_ERROR

        kind = EntityKind(args.kind) if args.kind else None
        try:
            result = stack.search(args.text, kind, offset=args.offset, size=args.size)
        except ValidationError as exc:
            _emit(_error("invalid_query", f"Invalid page window: {exc.errors()[0]['msg']}"))
            return EXIT_INVALID_QUERY
        except InvalidQueryError as exc:
            _emit(_error("invalid_query", exc.diagnostic))
            return EXIT_INVALID_QUERY
        except EntitySearchError as exc:
            _emit(_error("error", str(exc)))
            return EXIT_ERROR
    finally:
        stack.close()
        if args.metrics_file is not None:
            _export_metrics(args.metrics_file)

    _emit(
        {
            "status": "partial" if result.is_partial() else "ok",
            "kind": kind.value if kind else None,
            "total_hits": result.total_hits,
            "document_ids": list(result.document_ids),
            "failed_kinds": [failed.value for failed in result.failed_kinds],
            "indexed": report.documents_indexed,
            "skipped": report.documents_skipped,
        }
    )
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
