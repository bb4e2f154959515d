"""Data models for the equity planning engine."""

from equityplan.models.client import (
    CamelModel,
    Client,
    CustomVestingDate,
    Grant,
    PlannedExercise,
    StockSale,
    VestingPrice,
)
from equityplan.models.enums import (
    DispositionType,
    EquityType,
    ExerciseStrategy,
    FilingStatus,
    PriceSource,
    RiskLevel,
    VestingSchedule,
)
from equityplan.models.results import (
    AggregatedVestingEvent,
    AMTUsage,
    BreakevenAnalysis,
    BreakevenScenario,
    ConcentrationReport,
    ESPPQualification,
    ExercisePlan,
    GrantStatus,
    GrantWithholding,
    HoldingsSummary,
    ISOQualification,
    ISOScenario,
    ISOScenarioTaxes,
    QuarterlyBreakdown,
    QuarterlyEvent,
    QuarterlyTotals,
    StockConcentration,
    TaxBreakdown,
    TaxRates,
    VestingEvent,
    WithholdingAnalysis,
    YearPlan,
)

__all__ = [
    "AggregatedVestingEvent",
    "AMTUsage",
    "BreakevenAnalysis",
    "BreakevenScenario",
    "CamelModel",
    "Client",
    "ConcentrationReport",
    "CustomVestingDate",
    "DispositionType",
    "EquityType",
    "ESPPQualification",
    "ExercisePlan",
    "ExerciseStrategy",
    "FilingStatus",
    "Grant",
    "GrantStatus",
    "GrantWithholding",
    "HoldingsSummary",
    "ISOQualification",
    "ISOScenario",
    "ISOScenarioTaxes",
    "PlannedExercise",
    "PriceSource",
    "QuarterlyBreakdown",
    "QuarterlyEvent",
    "QuarterlyTotals",
    "RiskLevel",
    "StockConcentration",
    "StockSale",
    "TaxBreakdown",
    "TaxRates",
    "VestingEvent",
    "VestingPrice",
    "VestingSchedule",
    "WithholdingAnalysis",
    "YearPlan",
]
