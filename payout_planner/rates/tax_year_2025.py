"""
Norwegian rates and thresholds — tax year 2025.
Source of truth for the 2025 RateTable (rate_table._build_2025). Review annually: new rates are announced
with the national budget in October and confirmed in December.

Sources:
  Skatteetaten  https://www.skatteetaten.no/satser/
  Lovdata       https://lovdata.no
"""
from __future__ import annotations

TAX_YEAR = 2025

# ===========================================================================
# CORPORATE TAX (selskapsskatt): 22% since 2019
# ===========================================================================

CORPORATE_TAX_RATE = 0.22

# ===========================================================================
# EMPLOYER CONTRIBUTION (arbeidsgiveravgift): by registered zone
# Standard rates; no industry reductions, company within state-aid limits.
# ===========================================================================

ZONE_1_RATE  = 0.141   # Major cities and surrounding areas
ZONE_1A_RATE = 0.141   # Same rate as zone 1
ZONE_2_RATE  = 0.106
ZONE_3_RATE  = 0.064
ZONE_4_RATE  = 0.054
ZONE_4A_RATE = 0.079
ZONE_5_RATE  = 0.000   # Finnmark and Nord-Troms

EMPLOYER_CONTRIBUTION_RATES: dict[str, float] = {
    "1":  ZONE_1_RATE,
    "1a": ZONE_1A_RATE,
    "2":  ZONE_2_RATE,
    "3":  ZONE_3_RATE,
    "4":  ZONE_4_RATE,
    "4a": ZONE_4A_RATE,
    "5":  ZONE_5_RATE,
}

ZONE_DESCRIPTIONS: dict[str, str] = {
    "1":  "Zone 1 - Major urban areas (Oslo, Bergen, Trondheim, Stavanger and others)",
    "1a": "Zone 1a - Same rate as zone 1",
    "2":  "Zone 2 - Medium-sized towns",
    "3":  "Zone 3 - Rural municipalities",
    "4":  "Zone 4 - Sparsely populated districts",
    "4a": "Zone 4a - Special areas",
    "5":  "Zone 5 - Finnmark and Nord-Troms (0% contribution)",
}

# ===========================================================================
# PERSONAL TAX
# ===========================================================================

PERSONAL_TAX_RATE = 0.22   # Tax on ordinary income (alminnelig inntekt)

# Bracket tax (trinnskatt): list[tuple[threshold, rate]], marginal above threshold
BRACKET_TAX_2025: list[tuple[float, float]] = [
    (217_400,   0.017),   # Step 1
    (306_050,   0.040),   # Step 2
    (697_150,   0.137),   # Step 3
    (942_400,   0.167),   # Step 4
    (1_410_750, 0.176),   # Step 5
]

# Employee social security contribution (trygdeavgift) on salary.
# Charged on the WHOLE salary once it exceeds the threshold; nothing below it.
EMPLOYEE_CONTRIBUTION_RATE      = 0.078
EMPLOYEE_CONTRIBUTION_THRESHOLD = 69_650

# Minimum standard deduction (minstefradrag)
MINIMUM_DEDUCTION_RATE  = 0.46
MINIMUM_DEDUCTION_FLOOR = 4_000
MINIMUM_DEDUCTION_CAP   = 114_950

PERSONAL_ALLOWANCE = 73_150   # personfradrag

# ===========================================================================
# DIVIDENDS (shareholder model)
# ===========================================================================

# Gross-up factor history: 2022 1.44, 2023 1.60, 2024 1.72, 2025 1.72
DIVIDEND_GROSS_UP_FACTOR = 1.72

# Skjermingsrente: estimate; verify against the rate Skatteetaten publishes in January
SHAREHOLDER_ALLOWANCE_RATE = 0.05

# ===========================================================================
# OCCUPATIONAL PENSION (OTP)
# ===========================================================================

PENSION_MIN_RATE = 0.02   # Statutory minimum
PENSION_MAX_RATE = 0.07   # Maximum tax-deductible contribution

# ===========================================================================
# VALIDATION LIMITS
# ===========================================================================

MAX_PROFIT = 100_000_000_000   # 100 billion NOK sanity bound

SOURCES: list[dict[str, str]] = [
    {
        "name": "Skatteetaten",
        "url": "https://www.skatteetaten.no",
        "description": "Norwegian Tax Administration - official tax rates and rules",
    },
    {
        "name": "Lovdata",
        "url": "https://lovdata.no",
        "description": "Norwegian legal database - tax laws and regulations",
    },
    {
        "name": "NAV",
        "url": "https://www.nav.no",
        "description": "Norwegian Labour and Welfare Administration - G and benefits",
    },
]

NOTES: list[str] = [
    "All rates apply to tax year 2025",
    "Bracket tax thresholds are adjusted annually for inflation",
    "Skjermingsrente is published by Skatteetaten in January for the previous year",
    "G (grunnbeløpet) is adjusted annually on May 1st",
]
