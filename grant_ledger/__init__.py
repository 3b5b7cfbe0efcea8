"""Public interface for the ``grant_ledger`` package.

Re-exports the record model, taxonomy, importer, aggregation, budget and
export functions as the stable import surface. There is no runtime logic
here.
"""

from .aggregation import (
    CategoryTotal,
    MonthBucket,
    PeriodDelta,
    QuarterBucket,
    RankedTotal,
    date_range_preset,
    filter_records,
    funder_spend,
    funder_transaction_count,
    month_over_month,
    period_deltas,
    quarter_over_quarter,
    top_transactions,
    total_amount,
    totals_by_category,
    totals_by_funder,
    totals_by_item,
    totals_by_month,
    totals_by_quarter,
    totals_by_subcategory,
    totals_by_vendor,
)
from .budget import (
    BudgetStatus,
    CategoryBudgetLine,
    FunderSummary,
    LineStatus,
    PortfolioTotals,
    category_budget_lines,
    classify_budget,
    portfolio_totals,
    summarize_funder,
    summarize_funders,
)
from .config import LedgerSettings, default_funders, get_settings, load_funders, load_settings
from .export import (
    export_category_budget_csv,
    export_funder_report_csv,
    export_funder_summary_csv,
    export_ledger_csv,
    import_template_csv,
)
from .ingest import (
    ImportOutcome,
    ImportResult,
    import_ledger_file,
    import_ledger_text,
    parse_ledger_csv,
    resolve_column,
)
from .models import QUARTERS, Funder, LedgerRecord, ManualEntry, Quarter
from .records import (
    EntryValidationError,
    append_records,
    build_record,
    clear_records,
    create_record,
    derive_quarter,
    derive_year,
    remove_record,
)
from .taxonomy import (
    CATEGORY_TAXONOMY,
    DEFAULT_CATEGORY,
    MAIN_CATEGORIES,
    is_valid_main_category,
    normalize_category,
    subcategories_for,
)

__all__ = [
    # Models / types
    "LedgerRecord",
    "Funder",
    "ManualEntry",
    "Quarter",
    "QUARTERS",
    # Taxonomy
    "CATEGORY_TAXONOMY",
    "DEFAULT_CATEGORY",
    "MAIN_CATEGORIES",
    "is_valid_main_category",
    "normalize_category",
    "subcategories_for",
    # Records
    "EntryValidationError",
    "append_records",
    "build_record",
    "clear_records",
    "create_record",
    "derive_quarter",
    "derive_year",
    "remove_record",
    # Configuration
    "LedgerSettings",
    "default_funders",
    "get_settings",
    "load_funders",
    "load_settings",
    # Import
    "ImportOutcome",
    "ImportResult",
    "import_ledger_file",
    "import_ledger_text",
    "parse_ledger_csv",
    "resolve_column",
    # Aggregation
    "CategoryTotal",
    "MonthBucket",
    "PeriodDelta",
    "QuarterBucket",
    "RankedTotal",
    "date_range_preset",
    "filter_records",
    "funder_spend",
    "funder_transaction_count",
    "month_over_month",
    "period_deltas",
    "quarter_over_quarter",
    "top_transactions",
    "total_amount",
    "totals_by_category",
    "totals_by_funder",
    "totals_by_item",
    "totals_by_month",
    "totals_by_quarter",
    "totals_by_subcategory",
    "totals_by_vendor",
    # Budget
    "BudgetStatus",
    "CategoryBudgetLine",
    "FunderSummary",
    "LineStatus",
    "PortfolioTotals",
    "category_budget_lines",
    "classify_budget",
    "portfolio_totals",
    "summarize_funder",
    "summarize_funders",
    # Export
    "export_category_budget_csv",
    "export_funder_report_csv",
    "export_funder_summary_csv",
    "export_ledger_csv",
    "import_template_csv",
]
