"""Tax planning engines."""

from equityplan.engines.amt import AMTRoomCalculator
from equityplan.engines.breakeven import BreakevenAnalyzer
from equityplan.engines.concentration import ConcentrationAnalyzer
from equityplan.engines.disposition import DispositionQualificationEngine
from equityplan.engines.exercise_plan import MultiYearExerciseOptimizer
from equityplan.engines.quarterly import QuarterlyTaxAggregator
from equityplan.engines.rates import RateResolver
from equityplan.engines.status import GrantStatusResolver, HoldingsCalculator
from equityplan.engines.vesting import VestingScheduleGenerator
from equityplan.engines.withholding import WithholdingAnalyzer

__all__ = [
    "AMTRoomCalculator",
    "BreakevenAnalyzer",
    "ConcentrationAnalyzer",
    "DispositionQualificationEngine",
    "GrantStatusResolver",
    "HoldingsCalculator",
    "MultiYearExerciseOptimizer",
    "QuarterlyTaxAggregator",
    "RateResolver",
    "VestingScheduleGenerator",
    "WithholdingAnalyzer",
]
