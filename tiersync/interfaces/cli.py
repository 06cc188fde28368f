"""
interfaces/cli.py
──────────────────────────────────────────────────────────────────────────────
Command-line interface for template reconciliation and tier classification.

Usage:
  # Whole template (tolerates per-category failures)
  tiersync all

  # Index-range batch: categories[0:3], prints the resume command
  tiersync batch 0 3

  # One category, by name or 1-based order index (fail-fast)
  tiersync category "K9 Operations & Integration"
  tiersync category 10

  # Batches with a prompt between them
  tiersync interactive 0 3

  # Read-only alignment report / schema bootstrap
  tiersync verify
  tiersync init-db

  # Tier for one assessment (optionally stored on the assessment)
  tiersync classify 6f1c... --save --json

  # Without installing: python -m tiersync.interfaces.cli all

Exit codes:
  0 — success (tolerant runs: at least one category reconciled)
  1 — fatal error, every category failed, or verify found drift
  2 — argument error
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Callable

from tiersync.domain.exceptions import TierSyncError
from tiersync.domain.models import AlignmentReport, RunReport, TierResult
from tiersync.services.container import (
    get_driver,
    get_repository,
    get_tier_service,
    get_verifier,
)

logger = logging.getLogger(__name__)


# ── Argument parser ────────────────────────────────────────────────────────

def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="tiersync",
        description="Keep the tier assessment questionnaire in sync and classify assessments.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output results as JSON.",
    )
    p.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging.",
    )
    sub = p.add_subparsers(dest="command", metavar="COMMAND")

    sub.add_parser("all", help="Reconcile every category of the template.")

    for name, text in (
        ("batch", "Reconcile categories[START:START+COUNT]."),
        ("interactive", "Like batch, asking before each following batch."),
    ):
        b = sub.add_parser(name, help=text)
        b.add_argument("start", type=int, help="0-based index of the first category.")
        b.add_argument(
            "count",
            type=int,
            nargs="?",
            default=None,
            help="Categories per batch. (default: BATCH_SIZE)",
        )

    c = sub.add_parser("category", help="Reconcile one category (fail-fast).")
    c.add_argument("identifier", help="Category name or 1-based order index.")

    sub.add_parser("verify", help="Report drift between the store and the template.")
    sub.add_parser("init-db", help="Create tables, columns and constraints.")

    k = sub.add_parser("classify", help="Compute the tier of one assessment.")
    k.add_argument("assessment_id", help="Assessment id.")
    k.add_argument(
        "--save",
        action="store_true",
        help="Store the tier on the assessment.",
    )
    return p


# ── Formatting helpers ─────────────────────────────────────────────────────

def _print_run_text(report: RunReport) -> None:
    """Pretty-print a RunReport to stdout."""
    print(f"\n{'─' * 60}")
    print(f"Mode     : {report.mode}  |  Template: {report.template_version}")
    print(
        f"Categories created: {report.categories_created}  "
        f"reordered: {report.categories_updated}"
    )
    print(f"{'─' * 60}")
    for o in report.outcomes:
        if o.ok:
            r = o.result
            print(
                f"  ✓ {o.order_index:>2}. {o.name}  "
                f"(+{r.created} ~{r.updated} -{r.deleted} deprecated {r.deprecated})"
            )
        else:
            print(f"  ✗ {o.order_index:>2}. {o.name}  ERROR: {o.error}")
    if report.count is not None:
        if report.next_start is None:
            print("\nAll categories have been processed!")
        else:
            print(
                f"\nTo continue with the next batch, run: "
                f"tiersync {report.mode} {report.next_start} {report.count}"
            )
    print()


def _print_alignment_text(report: AlignmentReport) -> None:
    print(f"\n{'─' * 60}")
    print(f"Template {report.template_version}")
    print(f"{'─' * 60}")
    for c in report.categories:
        status = "✓ ALIGNED" if c.aligned else "✗ MISALIGNED"
        print(f"  {c.order_index:>2}. {c.name}")
        print(f"      Questions: {c.actual} (Expected: {c.expected}) - {status}")
        if not c.exists:
            print("      Category missing from store")
        elif not c.order_matches:
            print("      Category order index differs")
        for label, texts in (("missing", c.missing), ("extra", c.extra), ("drifted", c.drifted)):
            for text in texts:
                print(f"      {label}: {text}")
    print(f"\nTotal questions: {report.actual_total} (Expected: {report.expected_total})")
    print("✓ ALIGNED" if report.aligned else "✗ MISALIGNED")
    print()


def _print_tier_text(assessment_id: str, result: TierResult) -> None:
    print(f"\n{'─' * 60}")
    print(f"Assessment : {assessment_id}")
    print(f"Tier       : {int(result.tier)}")
    print(
        f"Compliance : {result.affirmative}/{result.impacting} "
        f"({result.ratio:.0%}) tier-impacting requirements met"
    )
    print(f"{'─' * 60}")
    if result.gaps:
        print("Areas to focus on:")
        for text in result.gaps:
            print(f"  - {text}")
    print()


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _report_printer(json_output: bool) -> Callable[[RunReport], None]:
    if json_output:
        return lambda report: _print_json(report.to_dict())
    return _print_run_text


def _ask_continue(next_start: int, count: int) -> bool:
    """Prompt the operator before the next interactive batch."""
    try:
        reply = input(
            f"Continue with categories {next_start + 1}-{next_start + count}? [y/N] "
        )
    except EOFError:
        return False
    return reply.strip().lower() in ("y", "yes")


# ── Main logic ─────────────────────────────────────────────────────────────

def _exit_code(reports: list[RunReport]) -> int:
    """Tolerant runs fail only when no selected category succeeded."""
    outcomes = [o for r in reports for o in r.outcomes]
    if outcomes and not any(o.ok for o in outcomes):
        print("ERROR: every category failed; see log for details", file=sys.stderr)
        return 1
    return 0


def run(args: argparse.Namespace) -> int:
    """Execute the selected command.

    Returns:
        Exit code (0 = success, 1 = error, 2 = argument error).
    """
    try:
        if args.command == "init-db":
            get_repository().ensure_schema()
            print("Schema ready.")
            return 0

        if args.command == "verify":
            report = get_verifier().verify()
            if args.json_output:
                _print_json({**report.model_dump(mode="json"), "aligned": report.aligned})
            else:
                _print_alignment_text(report)
            return 0 if report.aligned else 1

        if args.command == "classify":
            result = get_tier_service().classify_assessment(
                args.assessment_id, save=args.save
            )
            if args.json_output:
                _print_json({"assessment_id": args.assessment_id, **result.to_dict()})
            else:
                _print_tier_text(args.assessment_id, result)
            return 0

        show = _report_printer(args.json_output)
        driver = get_driver()
        if args.command == "interactive":
            reports = driver.run_interactive(
                args.start, args.count, confirm=_ask_continue, on_report=show
            )
            return _exit_code(reports)
        if args.command == "all":
            reports = [driver.run_all()]
        elif args.command == "batch":
            reports = [driver.run_batch(args.start, args.count)]
        else:
            reports = [driver.run_single(args.identifier)]
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2
    except TierSyncError as exc:
        logger.exception("%s failed", args.command)
        print(f"ERROR [{args.command}]: {exc}", file=sys.stderr)
        return 1

    for report in reports:
        show(report)
    return _exit_code(reports)


def main() -> None:
    """Entry point for the tiersync console script."""
    parser = _build_parser()
    args = parser.parse_args()

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )

    if not args.command:
        parser.print_help()
        sys.exit(2)

    sys.exit(run(args))


if __name__ == "__main__":
    main()
