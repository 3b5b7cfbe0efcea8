"""CLI for the ``grant_ledger`` package.

Command handlers (``cmd_*``) hold the behavior and return a process exit code;
the Typer commands below only parse options and delegate. A ledger on disk is
a CSV in the ledger export format with a trailing ``Funder`` column, so every
command reads it through the same importer used for uploads.

The root callback loads a local ``.env`` (without overriding the environment)
and configures logging once.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated, cast

import typer
from dotenv import load_dotenv
from typer.models import OptionInfo

from .aggregation import (
    PeriodDelta,
    month_over_month,
    quarter_over_quarter,
    select_records,
    top_transactions,
    totals_by_category,
    totals_by_item,
    totals_by_month,
    totals_by_quarter,
    totals_by_subcategory,
    totals_by_vendor,
)
from .budget import category_budget_lines, portfolio_totals, summarize_funders
from .config import get_settings, load_funders
from .export import (
    export_category_budget_csv,
    export_funder_report_csv,
    export_funder_summary_csv,
    export_ledger_csv,
    import_template_csv,
)
from .ingest.csv_importer import ImportOutcome, import_ledger_file
from .logging_setup import configure_logging
from .models import QUARTERS, Funder, LedgerRecord, Quarter
from .records import append_records

# ---- Small helpers -----------------------------------------------------------


def _err(msg: str) -> None:
    print(f"Error: {msg}", file=sys.stderr)


def _load_ledger(path: Path) -> list[LedgerRecord] | None:
    """Read a ledger CSV; ``None`` (after printing why) when it is unusable."""

    result = import_ledger_file(path)
    if result.outcome is ImportOutcome.ERROR:
        _err(result.message)
        return None
    # An empty ledger is a valid ledger.
    return list(result.records)


def _load_funder_config(funders_file: Path | None) -> tuple[Funder, ...] | None:
    try:
        return load_funders(funders_file)
    except (OSError, ValueError) as e:
        _err(f"failed to load funder configuration: {e}")
        return None


def _write_or_print(text: str, output: Path | None) -> None:
    if output is None:
        sys.stdout.write(text)
        return
    output.write_text(text, encoding="utf-8")
    print(f"Wrote {output}")


def _fmt_delta(d: PeriodDelta) -> str:
    if d.percent_change is None or d.change is None:
        return f"{d.name:<6}{d.total:>14,.2f}   (no prior period)"
    trend = "REVIEW" if d.flagged else "stable"
    sign = "+" if d.change > 0 else ""
    return (
        f"{d.name:<6}{d.total:>14,.2f}   vs {d.previous}: "
        f"{sign}{d.percent_change:.1f}% ({sign}{d.change:,.2f})  {trend}"
    )


# ---- Command handlers --------------------------------------------------------


def cmd_import_csv(csv_path: Path, *, ledger: Path | None = None) -> int:
    """Import ``csv_path``; append the records into ``ledger`` when given."""

    result = import_ledger_file(csv_path)
    if result.outcome is ImportOutcome.ERROR:
        _err(result.message)
        return 1
    if result.outcome is ImportOutcome.WARNING:
        print(f"Warning: {result.message}", file=sys.stderr)
        return 0

    if ledger is None:
        # stdout carries only the ledger CSV so it can be redirected to a file.
        print(result.message, file=sys.stderr)
        sys.stdout.write(export_ledger_csv(result.records, include_funder=True))
        return 0

    print(result.message)

    existing: list[LedgerRecord] = []
    if ledger.exists():
        loaded = _load_ledger(ledger)
        if loaded is None:
            return 1
        existing = loaded
    merged = append_records(existing, result.records)
    ledger.write_text(export_ledger_csv(merged, include_funder=True), encoding="utf-8")
    print(f"Ledger {ledger} now holds {len(merged)} entries.")
    return 0


def cmd_monthly(ledger: Path, *, year: int | None = None, funder: str | None = None) -> int:
    records = _load_ledger(ledger)
    if records is None:
        return 1
    threshold = get_settings().fluctuation_threshold
    buckets = totals_by_month(records, year=year, funder=funder)
    for b in buckets:
        print(f"{b.name:<6}{b.total:>14,.2f}  ({b.count} entries)")
    print(f"{'Total':<6}{sum(b.total for b in buckets):>14,.2f}")
    print()
    print("Month-over-month:")
    for d in month_over_month(records, year=year, funder=funder, threshold_pct=threshold):
        print(_fmt_delta(d))
    return 0


def cmd_quarterly(ledger: Path, *, year: int | None = None, funder: str | None = None) -> int:
    records = _load_ledger(ledger)
    if records is None:
        return 1
    threshold = get_settings().fluctuation_threshold
    for b in totals_by_quarter(records, year=year, funder=funder):
        print(f"{b.name:<6}{b.total:>14,.2f}  ({b.count} entries)")
    print()
    print("Quarter-over-quarter:")
    for d in quarter_over_quarter(records, year=year, funder=funder, threshold_pct=threshold):
        print(_fmt_delta(d))
    return 0


_TOP_DIMENSIONS = ("category", "subcategory", "vendor", "item", "transactions")


def cmd_top(
    ledger: Path, *, by: str = "vendor", limit: int = 5, year: int | None = None
) -> int:
    if by not in _TOP_DIMENSIONS:
        _err(f"--by must be one of: {', '.join(_TOP_DIMENSIONS)}")
        return 1
    records = _load_ledger(ledger)
    if records is None:
        return 1

    if by == "transactions":
        for r in top_transactions(records, limit, year=year):
            print(f"{r.pay_date}  {r.name:<40}{r.amount or 0:>14,.2f}")
        return 0
    if by in ("category", "subcategory"):
        fn = totals_by_category if by == "category" else totals_by_subcategory
        for c in fn(records, limit=limit, year=year):
            print(f"{c.name:<40}{c.total:>14,.2f}  ({c.count})")
        return 0
    fn_ranked = totals_by_vendor if by == "vendor" else totals_by_item
    for label, total in fn_ranked(records, limit=limit, year=year):
        print(f"{label:<40}{total:>14,.2f}")
    return 0


def cmd_funders(
    ledger: Path,
    *,
    funders_file: Path | None = None,
    year: int | None = None,
    output: Path | None = None,
) -> int:
    records = _load_ledger(ledger)
    funders = _load_funder_config(funders_file)
    if records is None or funders is None:
        return 1

    summaries = summarize_funders(funders, records, year=year)
    if output is not None:
        _write_or_print(export_funder_summary_csv(summaries), output)
        return 0

    for s in summaries:
        print(
            f"{s.name:<40}{s.approved:>12,.2f}{s.spent:>12,.2f}{s.remaining:>12,.2f}"
            f"{s.percent_used:>8.1f}%  {s.status.value} ({s.transaction_count})"
        )
    totals = portfolio_totals(funders, records, year=year)
    print(
        f"{'Portfolio':<40}{totals.approved:>12,.2f}{totals.spent:>12,.2f}"
        f"{totals.remaining:>12,.2f}{totals.percent_used:>8.1f}%"
    )
    return 0


def cmd_funder_report(
    ledger: Path,
    funder_id: str,
    *,
    funders_file: Path | None = None,
    quarter: str | None = None,
    year: int | None = None,
    category_budget: bool = False,
    output: Path | None = None,
) -> int:
    records = _load_ledger(ledger)
    funders = _load_funder_config(funders_file)
    if records is None or funders is None:
        return 1
    funder = next((f for f in funders if f.id == funder_id), None)
    if funder is None:
        _err(f"unknown funder id: {funder_id!r}")
        return 1
    if quarter is not None and quarter not in QUARTERS:
        _err("--quarter must be one of Q1, Q2, Q3, Q4")
        return 1

    if category_budget:
        if not funder.category_budgets:
            _err(f"funder {funder_id!r} has no category budget lines")
            return 1
        scoped = [
            r
            for r in select_records(records, year=year, funder=funder.name)
            if quarter is None or r.quarter == quarter
        ]
        text = export_category_budget_csv(category_budget_lines(scoped, funder.category_budgets))
    else:
        text = export_funder_report_csv(
            records, funder, quarter=cast("Quarter | None", quarter), year=year
        )
    _write_or_print(text, output)
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="Import expense CSVs and report spending against grant budgets.",
)

# Module-level option objects keep calls out of parameter defaults (ruff B008).
LEDGER_OPTION: OptionInfo = typer.Option(
    ...,
    "--ledger",
    help="Path to a ledger CSV (ledger export format).",
    dir_okay=False,
)
YEAR_OPTION: OptionInfo = typer.Option(None, "--year", help="Only include this year.")
FUNDERS_FILE_OPTION: OptionInfo = typer.Option(
    None,
    "--funders-file",
    help="Funder configuration JSON (defaults to GRANT_LEDGER_FUNDERS_FILE or the bundled file).",
    dir_okay=False,
)
OUTPUT_OPTION: OptionInfo = typer.Option(
    None, "--output", help="Write CSV here instead of stdout.", dir_okay=False
)


@app.command("import-csv")
def import_csv_cmd(
    csv_path: Annotated[Path, typer.Option("--csv-path", help="CSV file to import.")],
    ledger: Path | None = typer.Option(
        None, "--ledger", help="Ledger CSV to append to (created when missing)."
    ),
) -> None:
    """Import a CSV and print it in ledger format, or append it to a ledger."""

    raise typer.Exit(cmd_import_csv(csv_path, ledger=ledger))


@app.command("monthly")
def monthly_cmd(
    ledger: Annotated[Path, LEDGER_OPTION],
    year: int | None = YEAR_OPTION,
    funder: str | None = typer.Option(None, "--funder", help="Exact funder name."),
) -> None:
    """Monthly totals with month-over-month changes."""

    raise typer.Exit(cmd_monthly(ledger, year=year, funder=funder))


@app.command("quarterly")
def quarterly_cmd(
    ledger: Annotated[Path, LEDGER_OPTION],
    year: int | None = YEAR_OPTION,
    funder: str | None = typer.Option(None, "--funder", help="Exact funder name."),
) -> None:
    """Quarterly totals with quarter-over-quarter changes."""

    raise typer.Exit(cmd_quarterly(ledger, year=year, funder=funder))


@app.command("top")
def top_cmd(
    ledger: Annotated[Path, LEDGER_OPTION],
    by: str = typer.Option("vendor", "--by", help=f"One of: {', '.join(_TOP_DIMENSIONS)}."),
    limit: int = typer.Option(5, "--limit", min=1),
    year: int | None = YEAR_OPTION,
) -> None:
    """Largest spending by dimension, or the largest single transactions."""

    raise typer.Exit(cmd_top(ledger, by=by, limit=limit, year=year))


@app.command("funders")
def funders_cmd(
    ledger: Annotated[Path, LEDGER_OPTION],
    funders_file: Path | None = FUNDERS_FILE_OPTION,
    year: int | None = YEAR_OPTION,
    output: Path | None = OUTPUT_OPTION,
) -> None:
    """Budget status of every configured funder."""

    raise typer.Exit(cmd_funders(ledger, funders_file=funders_file, year=year, output=output))


@app.command("funder-report")
def funder_report_cmd(
    ledger: Annotated[Path, LEDGER_OPTION],
    funder_id: str = typer.Option(..., "--funder-id", help="Funder id from the configuration."),
    funders_file: Path | None = FUNDERS_FILE_OPTION,
    quarter: str | None = typer.Option(None, "--quarter", help="Q1..Q4"),
    year: int | None = YEAR_OPTION,
    category_budget: bool = typer.Option(
        False, "--category-budget", help="Report against the funder's category budget lines."
    ),
    output: Path | None = OUTPUT_OPTION,
) -> None:
    """Period report for a single funder."""

    raise typer.Exit(
        cmd_funder_report(
            ledger,
            funder_id,
            funders_file=funders_file,
            quarter=quarter,
            year=year,
            category_budget=category_budget,
            output=output,
        )
    )


@app.command("template")
def template_cmd(output: Path | None = OUTPUT_OPTION) -> None:
    """Print (or write) the import template."""

    _write_or_print(import_template_csv(), output)


@app.callback()
def _root(
    log_level: str | None = typer.Option(
        None, "--log-level", help="Logging level (falls back to GRANT_LEDGER_LOG_LEVEL)."
    ),
) -> None:
    """Load ``.env`` from the working directory and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level)


def main() -> None:  # pragma: no cover - console script entrypoint
    app()


if __name__ == "__main__":  # pragma: no cover
    app()
