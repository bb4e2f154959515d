"""Tax rate configuration.

State top marginal rates, the federal ordinary-to-LTCG tier mapping, NIIT,
AMT safe-harbor exemptions and planning defaults. Never hardcode rates in
computation functions.

Sources:
  - State rates: Tax Foundation, "State Individual Income Tax Rates and
    Brackets, 2025" (top marginal rate per state, surtaxes included)
  - LTCG tiers: IRC Section 1(h), IRS Rev. Proc. 2024-40
  - AMT exemption: IRS Rev. Proc. 2023-34 (2024 exemption amounts)
"""

from decimal import Decimal

from equityplan.models.enums import FilingStatus, RiskLevel

# ---------------------------------------------------------------------------
# State top marginal personal income tax rates, as fractions.
# States without a broad income tax map to 0.
# ---------------------------------------------------------------------------
STATE_TAX_RATES: dict[str, Decimal] = {
    "AL": Decimal("0.05"),
    "AK": Decimal("0"),
    "AZ": Decimal("0.025"),
    "AR": Decimal("0.039"),
    "CA": Decimal("0.133"),
    "CO": Decimal("0.044"),
    "CT": Decimal("0.0699"),
    "DE": Decimal("0.066"),
    "DC": Decimal("0.1075"),
    "FL": Decimal("0"),
    "GA": Decimal("0.0539"),
    "HI": Decimal("0.11"),
    "ID": Decimal("0.05695"),
    "IL": Decimal("0.0495"),
    "IN": Decimal("0.03"),
    "IA": Decimal("0.038"),
    "KS": Decimal("0.0558"),
    "KY": Decimal("0.04"),
    "LA": Decimal("0.03"),
    "ME": Decimal("0.0715"),
    "MD": Decimal("0.0575"),
    "MA": Decimal("0.09"),
    "MI": Decimal("0.0425"),
    "MN": Decimal("0.0985"),
    "MS": Decimal("0.044"),
    "MO": Decimal("0.047"),
    "MT": Decimal("0.059"),
    "NE": Decimal("0.052"),
    "NV": Decimal("0"),
    "NH": Decimal("0"),
    "NJ": Decimal("0.1075"),
    "NM": Decimal("0.059"),
    "NY": Decimal("0.109"),
    "NC": Decimal("0.0425"),
    "ND": Decimal("0.025"),
    "OH": Decimal("0.035"),
    "OK": Decimal("0.0475"),
    "OR": Decimal("0.099"),
    "PA": Decimal("0.0307"),
    "RI": Decimal("0.0599"),
    "SC": Decimal("0.062"),
    "SD": Decimal("0"),
    "TN": Decimal("0"),
    "TX": Decimal("0"),
    "UT": Decimal("0.0455"),
    "VT": Decimal("0.0875"),
    "VA": Decimal("0.0575"),
    "WA": Decimal("0"),
    "WV": Decimal("0.0512"),
    "WI": Decimal("0.0765"),
    "WY": Decimal("0"),
}

# ---------------------------------------------------------------------------
# Federal ordinary bracket (percent) -> LTCG rate: [(max_bracket, rate), ...]
# The 10/12% brackets fall in the 0% LTCG band, 22-35% in the 15% band,
# and the 37% bracket in the 20% band.
# ---------------------------------------------------------------------------
FEDERAL_LTCG_TIERS: list[tuple[Decimal | None, Decimal]] = [
    (Decimal("12"), Decimal("0.00")),
    (Decimal("35"), Decimal("0.15")),
    (None, Decimal("0.20")),
]

# Net Investment Income Tax (IRC Section 1411)
NIIT_RATE = Decimal("0.038")

# ---------------------------------------------------------------------------
# AMT safe harbor: ISO spread recognizable per year before AMT exceeds regular
# tax. Flat exemption heuristic, no income phase-out.
# ---------------------------------------------------------------------------
AMT_SAFE_HARBOR: dict[FilingStatus, Decimal] = {
    FilingStatus.SINGLE: Decimal("85700"),
    FilingStatus.MARRIED_JOINT: Decimal("133300"),
}

# Flat AMT rate applied to spread above the safe harbor
AMT_FLAT_RATE = Decimal("0.28")

# ---------------------------------------------------------------------------
# Planning defaults
# ---------------------------------------------------------------------------
DEFAULT_WITHHOLDING_RATE = Decimal("22")  # federal supplemental rate, percent
DEFAULT_ESPP_DISCOUNT = Decimal("15")  # percent
ESPP_DEFAULT_OFFERING_MONTHS = 6

MIN_PLANNING_YEARS = 2
MAX_PLANNING_YEARS = 5

# Estimated payment buckets: (label, due date, month numbers 1-12)
ESTIMATED_PAYMENT_QUARTERS: list[tuple[str, str, tuple[int, int, int]]] = [
    ("Q1", "April 15", (1, 2, 3)),
    ("Q2", "June 15", (4, 5, 6)),
    ("Q3", "September 15", (7, 8, 9)),
    ("Q4", "January 15 (next year)", (10, 11, 12)),
]

# Breakeven price-decline scenarios, percent
BREAKEVEN_DECLINE_STEPS: list[int] = [0, 5, 10, 15, 20, 25, 30, 40, 50]

# Concentration risk thresholds, percent of portfolio: [(min, level), ...]
CONCENTRATION_RISK_THRESHOLDS: list[tuple[Decimal, RiskLevel]] = [
    (Decimal("75"), RiskLevel.EXTREME),
    (Decimal("50"), RiskLevel.HIGH),
    (Decimal("25"), RiskLevel.MODERATE),
]
