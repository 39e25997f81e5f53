from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from goldenlink.app import build_mdm_service, ingest_file
from goldenlink.config import ConfigurationError, configure_logging
from goldenlink.domain.errors import MdmError
from goldenlink.domain.model import AssuranceLevel, LinkSource, MatchResult

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

    from goldenlink.domain.mdm import MdmService

log = logging.getLogger(__name__)

_LINKABLE_RESULTS = [result.value for result in MatchResult if result is not MatchResult.REDIRECT]


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Resolve and link person records")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Match FHIR Patient/Practitioner resources")
    ingest.add_argument("file", type=Path, help="JSON resource, Bundle or array of resources")

    link = subparsers.add_parser("link", help="Create or update a link")
    link.add_argument("golden", help="Golden record id")
    link.add_argument("source", help="Source record id")
    link.add_argument(
        "--result",
        choices=_LINKABLE_RESULTS,
        default=MatchResult.MATCH.value,
        help="Match result to record (default: %(default)s)",
    )
    link.add_argument(
        "--link-source",
        choices=[source.value for source in LinkSource],
        default=LinkSource.MANUAL.value,
        help="Who made the decision (default: %(default)s)",
    )
    link.add_argument(
        "--assurance",
        choices=[level.value for level in AssuranceLevel],
        help="Explicit identity assurance level",
    )

    unlink = subparsers.add_parser("unlink", help="Remove a link")
    unlink.add_argument("golden", help="Golden record id")
    unlink.add_argument("source", help="Source record id")

    assurance = subparsers.add_parser("assurance", help="Change a link's assurance level")
    assurance.add_argument("golden", help="Golden record id")
    assurance.add_argument("source", help="Source record id")
    assurance.add_argument("level", choices=[level.value for level in AssuranceLevel])

    merge = subparsers.add_parser("merge", help="Merge one golden record into another")
    merge.add_argument("from_id", metavar="FROM", help="Golden record that is retired")
    merge.add_argument("to_id", metavar="TO", help="Golden record that survives")
    merge.add_argument("--by", dest="created_by", help="Operator recorded on the merge audit")

    conflicts = subparsers.add_parser(
        "conflicts", help="Check two golden records for conflicting enterprise identifiers"
    )
    conflicts.add_argument("a", help="First golden record id")
    conflicts.add_argument("b", help="Second golden record id")

    links = subparsers.add_parser("links", help="List the links of a golden record")
    links.add_argument("golden", help="Golden record id")

    duplicates = subparsers.add_parser("duplicates", help="List duplicate candidates")
    duplicates.add_argument("golden", help="Golden record id")

    return parser.parse_args(list(argv))


def _run_command(args: argparse.Namespace, service: MdmService) -> int:
    match args.command:
        case "ingest":
            outcomes = ingest_file(args.file, service=service)
            for outcome in outcomes:
                log.info(
                    "%s -> %s%s",
                    outcome.source.reference,
                    outcome.golden.reference if outcome.golden is not None else "(not matched)",
                    " (new)" if outcome.created_golden else "",
                )
        case "link":
            created = service.upsert_link(
                args.golden,
                args.source,
                MatchResult(args.result),
                LinkSource(args.link_source),
                AssuranceLevel(args.assurance) if args.assurance else None,
            )
            log.info(
                "Link %s: %s %s %s",
                created.id,
                created.match_result,
                created.link_source,
                created.assurance_level,
            )
        case "unlink":
            removed = service.remove_link(args.golden, args.source)
            log.info("Removed link" if removed else "No link to remove")
        case "assurance":
            updated = service.set_assurance_level(
                args.golden, args.source, AssuranceLevel(args.level)
            )
            log.info("Link %s now at %s", updated.id, updated.assurance_level)
        case "merge":
            survivor = service.merge(args.from_id, args.to_id, created_by=args.created_by)
            log.info("Merged into %s", survivor.reference)
        case "conflicts":
            conflicting = service.flags_as_conflicting(args.a, args.b)
            log.info("Conflicting enterprise identifiers: %s", "yes" if conflicting else "no")
            return 3 if conflicting else 0
        case "links":
            for existing in service.links_for_golden(args.golden):
                log.info(
                    "%s source=%s %s %s %s",
                    existing.id,
                    existing.source_id,
                    existing.match_result,
                    existing.link_source,
                    existing.assurance_level,
                )
        case "duplicates":
            for candidate in service.review_duplicates(args.golden):
                log.info("%s: %s", candidate.other.reference, candidate.reason)
        case _:
            raise ValueError(f"Unsupported command: {args.command}")
    return 0


def main(
    argv: Sequence[str] | None = None,
    *,
    service_factory: Callable[[], MdmService] = build_mdm_service,
) -> int:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        service = service_factory()
    except ConfigurationError:
        log.exception("Configuration error")
        return 2

    try:
        return _run_command(parsed_args, service)
    except MdmError as exc:
        log.error("%s: %s", type(exc).__name__, exc)  # noqa: TRY400
        return 1
    except Exception:
        log.exception("Fatal error")
        return 1


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    sys.exit(main())


if __name__ == "__main__":
    run()
