"""Enumerations for the equity planning engine."""

from enum import StrEnum


class EquityType(StrEnum):
    RSU = "RSU"
    ISO = "ISO"
    NSO = "NSO"
    ESPP = "ESPP"


class FilingStatus(StrEnum):
    SINGLE = "single"
    MARRIED_JOINT = "married_joint"


class VestingSchedule(StrEnum):
    STANDARD_4Y_1Y_CLIFF = "standard_4y_1y_cliff"
    STANDARD_4Y_QUARTERLY = "standard_4y_quarterly"
    IMMEDIATE = "immediate"
    CUSTOM = "custom"


class DispositionType(StrEnum):
    QUALIFYING = "QUALIFYING"
    DISQUALIFYING = "DISQUALIFYING"


class PriceSource(StrEnum):
    API = "api"
    MANUAL = "manual"
    DOCUMENT = "document"


class ExerciseStrategy(StrEnum):
    BUY_HOLD = "buy_hold"
    CASHLESS = "cashless"


class RiskLevel(StrEnum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    EXTREME = "extreme"
