from payout_planner.rates.rate_table import (
    EMPLOYER_ZONES,
    Bracket,
    MinimumDeductionRule,
    RateTable,
    available_tax_years,
    get_rate_table,
    resolve_rates,
)

__all__ = [
    "EMPLOYER_ZONES",
    "Bracket",
    "MinimumDeductionRule",
    "RateTable",
    "available_tax_years",
    "get_rate_table",
    "resolve_rates",
]
