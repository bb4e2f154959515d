"""Validation boundary for AI-extracted grant data.

Raw extraction output is untrusted JSON. ``ExtractionNormalizer`` coerces it
field by field into ``ExtractedGrantData``: values that fail type or range
checks are dropped and reported as issues, and plausibility problems with the
remaining values are reported as warnings for the advisor to review.
"""

import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from dateutil.relativedelta import relativedelta
from pydantic import BaseModel

from equityplan.engines.brackets import DEFAULT_WITHHOLDING_RATE
from equityplan.exceptions import DataValidationError
from equityplan.models.client import Grant
from equityplan.models.enums import EquityType, VestingSchedule

logger = logging.getLogger(__name__)

GRANT_TYPE_SYNONYMS: dict[str, EquityType] = {
    "RSU": EquityType.RSU,
    "RSUS": EquityType.RSU,
    "RESTRICTED STOCK UNIT": EquityType.RSU,
    "RESTRICTED STOCK UNITS": EquityType.RSU,
    "ISO": EquityType.ISO,
    "ISOS": EquityType.ISO,
    "INCENTIVE STOCK OPTION": EquityType.ISO,
    "INCENTIVE STOCK OPTIONS": EquityType.ISO,
    "NSO": EquityType.NSO,
    "NQSO": EquityType.NSO,
    "NON-QUALIFIED STOCK OPTION": EquityType.NSO,
    "NON QUALIFIED STOCK OPTION": EquityType.NSO,
    "NON-QUALIFIED STOCK OPTIONS": EquityType.NSO,
    "NON-STATUTORY STOCK OPTION": EquityType.NSO,
    "ESPP": EquityType.ESPP,
    "EMPLOYEE STOCK PURCHASE PLAN": EquityType.ESPP,
}

GRANT_INDICATORS = [
    re.compile(r"grant\s*(?:id|number|#)[\s:]*[\w\-]+", re.IGNORECASE),
    re.compile(r"award\s*(?:id|number|#)[\s:]*[\w\-]+", re.IGNORECASE),
    re.compile(r"plan\s*(?:id|number|#)[\s:]*[\w\-]+", re.IGNORECASE),
]
MAX_INDICATED_GRANTS = 20

MAX_PLAUSIBLE_SHARES = Decimal("1000000")
MAX_GRANT_AGE_YEARS = 10
MAX_CLIFF_MONTHS = 48
MAX_VESTING_MONTHS = 120

DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%m-%d-%Y", "%m/%d/%y", "%B %d, %Y", "%b %d, %Y")

# raw key -> (field name, kind)
RAW_FIELDS: dict[str, tuple[str, str]] = {
    "shares": ("total_shares", "positive"),
    "strikePrice": ("strike_price", "money"),
    "grantDate": ("grant_date", "date"),
    "companyName": ("company_name", "text"),
    "ticker": ("ticker", "ticker"),
    "cliffMonths": ("cliff_months", "months"),
    "vestingMonths": ("vesting_months", "months"),
    "grantId": ("external_grant_id", "text"),
    "esppDiscountPercent": ("espp_discount_percent", "percent"),
    "esppPurchasePrice": ("espp_purchase_price", "money"),
    "esppOfferingStartDate": ("espp_offering_start_date", "date"),
    "esppOfferingEndDate": ("espp_offering_end_date", "date"),
    "esppFmvAtOfferingStart": ("espp_fmv_at_offering_start", "money"),
    "esppFmvAtPurchase": ("espp_fmv_at_purchase", "money"),
}


class ExtractedGrantData(BaseModel):
    """A partial grant record that passed type and range checks."""

    type: EquityType | None = None
    total_shares: Decimal | None = None
    strike_price: Decimal | None = None
    grant_date: date | None = None
    company_name: str | None = None
    ticker: str | None = None
    cliff_months: int | None = None
    vesting_months: int | None = None
    external_grant_id: str | None = None
    espp_discount_percent: Decimal | None = None
    espp_purchase_price: Decimal | None = None
    espp_offering_start_date: date | None = None
    espp_offering_end_date: date | None = None
    espp_fmv_at_offering_start: Decimal | None = None
    espp_fmv_at_purchase: Decimal | None = None

    @property
    def vesting_schedule(self) -> VestingSchedule:
        """Map cliff/vesting months onto a standard schedule."""
        if self.vesting_months == 48 and self.cliff_months == 0:
            return VestingSchedule.STANDARD_4Y_QUARTERLY
        return VestingSchedule.STANDARD_4Y_1Y_CLIFF

    def to_grant(
        self,
        grant_id: str | None = None,
        current_price: Decimal | None = None,
    ) -> Grant:
        """Build a Grant once the advisor has reviewed the extraction.

        Raises:
            DataValidationError: a required field is missing.
        """
        for name in ("type", "total_shares", "grant_date"):
            if getattr(self, name) is None:
                raise DataValidationError(name, "required to create a grant")

        if current_price is None:
            current_price = self.strike_price or self.espp_purchase_price or Decimal("0")

        grant_price = self.strike_price
        if self.type == EquityType.ESPP:
            grant_price = self.espp_purchase_price

        return Grant(
            id=grant_id or uuid.uuid4().hex,
            type=self.type,
            ticker=self.ticker or "",
            company_name=self.company_name or "",
            current_price=current_price,
            grant_price=grant_price,
            strike_price=self.strike_price,
            grant_date=self.grant_date,
            total_shares=self.total_shares,
            vesting_schedule=self.vesting_schedule,
            withholding_rate=DEFAULT_WITHHOLDING_RATE if self.type == EquityType.RSU else None,
            external_grant_id=self.external_grant_id,
            espp_discount_percent=self.espp_discount_percent,
            espp_purchase_price=self.espp_purchase_price,
            espp_offering_start_date=self.espp_offering_start_date,
            espp_offering_end_date=self.espp_offering_end_date,
            espp_fmv_at_offering_start=self.espp_fmv_at_offering_start,
            espp_fmv_at_purchase=self.espp_fmv_at_purchase,
        )


@dataclass
class ExtractionResult:
    """Normalized grants plus everything the advisor should double-check."""

    grants: list[ExtractedGrantData] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    issues: list[str] = field(default_factory=list)


class ExtractionNormalizer:
    """Converts raw extraction JSON into validated ``ExtractedGrantData``."""

    def normalize(self, raw: Any, as_of: date, source_text: str = "") -> ExtractionResult:
        """Normalize ``raw`` (``{"grants": [...]}``, a list, or one grant object).

        Args:
            raw: Parsed JSON from the extraction service.
            as_of: Evaluation date for the future/age plausibility checks.
            source_text: Document text, used to estimate how many grants the
                document holds.

        Raises:
            DataValidationError: ``raw`` is not a JSON object or array.
        """
        if isinstance(raw, dict):
            items = raw["grants"] if "grants" in raw else [raw]
        elif isinstance(raw, list):
            items = raw
        else:
            raise DataValidationError("grants", f"expected an object or array, got {type(raw).__name__}")
        if not isinstance(items, list):
            raise DataValidationError("grants", "'grants' must be an array")

        result = ExtractionResult()
        for index, item in enumerate(items, start=1):
            if not isinstance(item, dict):
                result.issues.append(f"Grant {index}: not an object, skipped")
                continue
            grant = self._normalize_grant(item, index, result.issues)
            result.grants.append(grant)
            result.warnings.extend(self.plausibility_warnings(grant, index, as_of))

        if not result.grants:
            result.warnings.append("No grants were found in the document")

        estimated = self.estimate_grant_count(source_text)
        if len(result.grants) < estimated <= MAX_INDICATED_GRANTS:
            result.warnings.append(
                f"Document appears to contain approximately {estimated} grants, but only "
                f"{len(result.grants)} were extracted. Please verify the document manually."
            )

        for message in result.issues:
            logger.debug("Extraction issue: %s", message)
        return result

    def _normalize_grant(
        self, item: dict[str, Any], index: int, issues: list[str]
    ) -> ExtractedGrantData:
        values: dict[str, Any] = {}

        raw_type = item.get("grantType", item.get("type"))
        if raw_type not in (None, ""):
            values["type"] = self.normalize_grant_type(str(raw_type))
            if str(raw_type).strip().upper() not in GRANT_TYPE_SYNONYMS:
                issues.append(f"Grant {index}: unrecognized grant type {raw_type!r}, assuming RSU")

        for raw_key, (name, kind) in RAW_FIELDS.items():
            raw_value = item.get(raw_key)
            if raw_value is None or raw_value == "":
                continue
            value = self._coerce(raw_value, kind)
            if value is None:
                issues.append(f"Grant {index}: dropped {raw_key}={raw_value!r} ({kind} check failed)")
                continue
            values[name] = value

        return ExtractedGrantData(**values)

    @staticmethod
    def normalize_grant_type(value: str) -> EquityType:
        """Map a free-text grant type onto EquityType. Unknown text maps to RSU."""
        return GRANT_TYPE_SYNONYMS.get(value.strip().upper(), EquityType.RSU)

    def _coerce(self, value: Any, kind: str) -> Any:
        if kind == "date":
            return self._parse_date(value)
        if kind in ("text", "ticker"):
            if not isinstance(value, (str, int)):
                return None
            text = str(value).strip()
            if not text:
                return None
            return text.upper() if kind == "ticker" else text

        number = self._parse_decimal(value)
        if number is None:
            return None
        if kind == "positive":
            return number if number > 0 else None
        if kind == "money":
            return number if number >= 0 else None
        if kind == "percent":
            return number if 0 <= number <= 100 else None
        if kind == "months":
            if number < 0 or number != number.to_integral_value():
                return None
            return int(number)
        raise ValueError(f"Unknown field kind: {kind}")

    @staticmethod
    def _parse_decimal(value: Any) -> Decimal | None:
        """Parse a number, tolerating $, commas and surrounding whitespace."""
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            number = Decimal(str(value))
        elif isinstance(value, str):
            cleaned = value.strip().replace("$", "").replace(",", "").rstrip("%").strip()
            try:
                number = Decimal(cleaned)
            except InvalidOperation:
                return None
        else:
            return None
        return number if number.is_finite() else None

    @staticmethod
    def _parse_date(value: Any) -> date | None:
        if not isinstance(value, str) or not value.strip():
            return None
        value = value.strip()
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(value, fmt).date()
            except ValueError:
                continue
        return None

    @staticmethod
    def estimate_grant_count(text: str) -> int:
        """Largest number of grant/award/plan ID mentions of any one kind."""
        if not text:
            return 0
        return max(len(pattern.findall(text)) for pattern in GRANT_INDICATORS)

    def plausibility_warnings(
        self, grant: ExtractedGrantData, index: int, as_of: date
    ) -> list[str]:
        label = f"Grant {index} ({grant.external_grant_id or 'no ID'})"
        warnings: list[str] = []

        if grant.grant_date is None:
            warnings.append(f"{label}: No grant date found - please verify manually")
        elif grant.grant_date > as_of:
            warnings.append(
                f"{label}: Grant date is in the future ({grant.grant_date}). "
                "This is likely a vesting date, not a grant date."
            )
        elif grant.grant_date < as_of - relativedelta(years=MAX_GRANT_AGE_YEARS):
            warnings.append(
                f"{label}: Grant date is more than {MAX_GRANT_AGE_YEARS} years old "
                f"({grant.grant_date}). Verify this is correct."
            )

        if grant.total_shares is None:
            warnings.append(f"{label}: No shares found - please verify manually")
        elif grant.total_shares > MAX_PLAUSIBLE_SHARES:
            warnings.append(
                f"{label}: Very large share count ({grant.total_shares:,}). "
                "Verify this is the correct total."
            )
        elif grant.total_shares < 1:
            warnings.append(
                f"{label}: Unusually small share count ({grant.total_shares}). Verify this is correct."
            )

        if not grant.company_name and not grant.ticker:
            warnings.append(
                f"{label}: No company name or ticker found. "
                "Check the document header/footer for this information."
            )

        if grant.type is None:
            warnings.append(f"{label}: Missing grant type. Must be ISO, NSO, RSU, or ESPP.")

        if grant.type in (EquityType.RSU, EquityType.ISO, EquityType.NSO):
            if grant.cliff_months is None and grant.vesting_months is None:
                warnings.append(
                    f"{label}: No vesting schedule months found. This may need to be added manually."
                )
            if grant.cliff_months is not None and grant.cliff_months > MAX_CLIFF_MONTHS:
                warnings.append(
                    f"{label}: Unusual cliff period ({grant.cliff_months} months). "
                    "Common values are 12 or 0."
                )
            if grant.vesting_months is not None and grant.vesting_months > MAX_VESTING_MONTHS:
                warnings.append(
                    f"{label}: Unusual vesting period ({grant.vesting_months} months). "
                    "Common values are 48 or 16."
                )
            if (
                grant.cliff_months is not None
                and grant.vesting_months is not None
                and grant.vesting_months < grant.cliff_months
            ):
                warnings.append(
                    f"{label}: Vesting months ({grant.vesting_months}) is less than "
                    f"cliff months ({grant.cliff_months})."
                )

        if grant.type in (EquityType.ISO, EquityType.NSO) and grant.strike_price is None:
            warnings.append(
                f"{label}: Stock option ({grant.type}) is missing strike/exercise price."
            )

        return warnings
