from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv

from spotcheck.app import (
    add_mismatch_issue_id,
    clear_mismatch_issue_ids,
    find_mismatches,
    mismatch_content_type_summary,
    mismatch_status_summary,
    mismatch_type_summary,
    remove_mismatch_issue_id,
    replace_mismatch_issue_id,
    set_mismatch_ignore_status,
    show_mismatch,
)
from spotcheck.config import configure_logging
from spotcheck.domain.model import (
    IgnoreStatus,
    InvalidArgumentError,
    MismatchOrderBy,
    MismatchStatus,
    SortOrder,
    SpotCheckContentType,
    SpotCheckDataSource,
    codec_for,
)
from spotcheck.domain.time_windows import today

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from spotcheck.domain.model import DeNormSpotCheckMismatch

log = logging.getLogger(__name__)


def _add_scope_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--date",
        type=str,
        help="Report date (YYYY-MM-DD, defaults to today in UTC)",
    )
    parser.add_argument(
        "--datasource",
        type=SpotCheckDataSource,
        choices=list(SpotCheckDataSource),
        help="Datasource to inspect (defaults to config)",
    )
    parser.add_argument(
        "--ignore",
        type=IgnoreStatus,
        choices=list(IgnoreStatus),
        action="append",
        default=[],
        help="Exclude rows with this ignore status (repeatable)",
    )


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:  # noqa: PLR0915
    parser = argparse.ArgumentParser(description="Inspect and curate the spotcheck mismatch ledger")
    subparsers = parser.add_subparsers(dest="command", required=True)

    summary = subparsers.add_parser("summary", help="Mismatch summaries")
    summary_sub = summary.add_subparsers(dest="summary_command", required=True)

    summary_status = summary_sub.add_parser("status", help="Counts per mismatch state")
    _add_scope_arguments(summary_status)
    summary_status.add_argument(
        "--content-type",
        type=SpotCheckContentType,
        choices=list(SpotCheckContentType),
        help="Restrict counts to one content type",
    )

    summary_types = summary_sub.add_parser("types", help="Counts per mismatch type")
    _add_scope_arguments(summary_types)
    summary_types.add_argument(
        "--content-type",
        type=SpotCheckContentType,
        choices=list(SpotCheckContentType),
        required=True,
        help="Content type whose mismatch types are counted",
    )
    summary_types.add_argument(
        "--status",
        type=MismatchStatus,
        choices=list(MismatchStatus),
        default=MismatchStatus.OPEN,
        help="Logical status to count (default: %(default)s)",
    )

    summary_content = summary_sub.add_parser("content-types", help="Counts per content type")
    _add_scope_arguments(summary_content)

    mismatch = subparsers.add_parser("mismatch", help="Ledger row commands")
    mismatch_sub = mismatch.add_subparsers(dest="mismatch_command", required=True)

    mismatch_list = mismatch_sub.add_parser("list", help="List active mismatches")
    _add_scope_arguments(mismatch_list)
    mismatch_list.add_argument(
        "--status",
        type=MismatchStatus,
        choices=list(MismatchStatus),
        default=MismatchStatus.OPEN,
        help="Logical status to list (default: %(default)s)",
    )
    mismatch_list.add_argument(
        "--content-type",
        type=SpotCheckContentType,
        choices=list(SpotCheckContentType),
        action="append",
        help="Restrict to a content type (repeatable)",
    )
    mismatch_list.add_argument(
        "--order-by",
        type=MismatchOrderBy,
        choices=list(MismatchOrderBy),
        help="Sort column",
    )
    mismatch_list.add_argument(
        "--sort",
        type=SortOrder,
        choices=list(SortOrder),
        help="Sort direction",
    )
    mismatch_list.add_argument(
        "--limit",
        type=int,
        help="Page size, 0 for everything (defaults to config)",
    )
    mismatch_list.add_argument("--offset", type=int, default=0, help="Rows to skip")

    mismatch_show = mismatch_sub.add_parser("show", help="Show one ledger row")
    mismatch_show.add_argument("mismatch_id", type=int)

    mismatch_ignore = mismatch_sub.add_parser("ignore", help="Set a row's ignore status")
    mismatch_ignore.add_argument("mismatch_id", type=int)
    mismatch_ignore.add_argument("status", type=str, help="One of: " + ", ".join(IgnoreStatus))

    mismatch_add_issue = mismatch_sub.add_parser("add-issue", help="Attach a tracker issue id")
    mismatch_add_issue.add_argument("mismatch_id", type=int)
    mismatch_add_issue.add_argument("issue_id", type=str)

    mismatch_set_issue = mismatch_sub.add_parser(
        "set-issue", help="Replace every tracker issue id with one"
    )
    mismatch_set_issue.add_argument("mismatch_id", type=int)
    mismatch_set_issue.add_argument("issue_id", type=str)

    mismatch_remove_issue = mismatch_sub.add_parser(
        "remove-issue", help="Detach a tracker issue id"
    )
    mismatch_remove_issue.add_argument("mismatch_id", type=int)
    mismatch_remove_issue.add_argument("issue_id", type=str)

    mismatch_clear = mismatch_sub.add_parser("clear-issues", help="Detach every issue id")
    mismatch_clear.add_argument("mismatch_id", type=int)

    return parser.parse_args(list(argv))


def _parse_report_date(value: str | None) -> date:
    if value is None:
        return today()
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid report date: {value}") from exc


def _validate(args: argparse.Namespace) -> None:
    if hasattr(args, "date"):
        args.report_date = _parse_report_date(args.date)
    if getattr(args, "limit", None) is not None and args.limit < 0:
        raise ValueError("Limit must be non-negative")
    if getattr(args, "offset", 0) < 0:
        raise ValueError("Offset must be non-negative")


def _describe(row: DeNormSpotCheckMismatch[Any]) -> str:
    key = codec_for(row.content_type).to_map(row.key)
    key_text = ", ".join(f"{field}={value}" for field, value in sorted(key.items()))
    issues = ",".join(sorted(row.issue_ids)) or "-"
    return (
        f"#{row.mismatch_id} {row.mismatch_type} [{key_text}] state={row.state} "
        f"ignore={row.ignore_status} first_seen={row.first_seen_date_time.isoformat()} "
        f"observed={row.observed_date_time.isoformat()} issues={issues}"
    )


def _run_summary(args: argparse.Namespace) -> None:
    if args.summary_command == "status":
        status_summary = mismatch_status_summary(
            args.report_date,
            datasource=args.datasource,
            content_type=args.content_type,
            ignored_statuses=args.ignore,
        )
        for state, count in status_summary.counts.items():
            log.info("%s: %s", state, count)
        log.info("open: %s", status_summary.open)
        log.info("total: %s", status_summary.total)
    elif args.summary_command == "types":
        type_summary = mismatch_type_summary(
            args.report_date,
            args.content_type,
            args.status,
            datasource=args.datasource,
            ignored_statuses=args.ignore,
        )
        for mismatch_type, count in type_summary.counts.items():
            log.info("%s: %s", mismatch_type, count)
        log.info("all: %s", type_summary.all)
    elif args.summary_command == "content-types":
        content_summary = mismatch_content_type_summary(
            args.report_date,
            datasource=args.datasource,
            ignored_statuses=args.ignore,
        )
        for content_type, count in content_summary.counts.items():
            log.info("%s: %s", content_type, count)
        log.info("total: %s", content_summary.total)
    else:
        raise ValueError(f"Unsupported summary command: {args.summary_command}")


def _run_mismatch(args: argparse.Namespace) -> None:
    command = args.mismatch_command
    if command == "list":
        page = find_mismatches(
            report_date=args.report_date,
            status=args.status,
            datasource=args.datasource,
            content_types=args.content_type,
            ignored_statuses=args.ignore,
            order_by=args.order_by,
            sort_order=args.sort,
            limit=args.limit,
            offset=args.offset,
        )
        for row in page.results:
            log.info(_describe(row))
        log.info(
            "Showing %s of %s mismatches%s",
            len(page),
            page.total,
            " (more available)" if page.has_more else "",
        )
    elif command == "show":
        log.info(_describe(show_mismatch(args.mismatch_id)))
    elif command == "ignore":
        status = set_mismatch_ignore_status(args.mismatch_id, args.status)
        log.info("Mismatch %s is now %s", args.mismatch_id, status)
    elif command == "add-issue":
        add_mismatch_issue_id(args.mismatch_id, args.issue_id)
    elif command == "set-issue":
        replace_mismatch_issue_id(args.mismatch_id, args.issue_id)
    elif command == "remove-issue":
        remove_mismatch_issue_id(args.mismatch_id, args.issue_id)
    elif command == "clear-issues":
        clear_mismatch_issue_ids(args.mismatch_id)
    else:
        raise ValueError(f"Unsupported mismatch command: {command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "summary":
            _run_summary(parsed_args)
        elif parsed_args.command == "mismatch":
            _run_mismatch(parsed_args)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except InvalidArgumentError:
        log.exception("Invalid request")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
