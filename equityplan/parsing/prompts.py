"""Prompt templates for AI grant extraction."""

SYSTEM_PROMPT = """\
You are an expert in analyzing equity compensation documents \
(grant agreements, award notices, brokerage equity statements).

Rules:
- Return ONLY valid JSON with a top-level "grants" array. No commentary, no markdown fences.
- All dates in ISO format: YYYY-MM-DD.
- Numbers as plain numerics without currency symbols or thousands separators.
- If a field is not present in the document, omit it or set it to null.
"""

EXTRACTION_PROMPT = """\
Extract every equity grant from the document text below.

STEP 1: Count the distinct grants. Each grant usually has its own grant ID,
award number or plan ID. A single grant with many vest dates is ONE grant.

STEP 2: For each grant, verify:
- grantDate is the AWARD date ("Award Date", "Grant Date", "Date of Grant"),
  NOT a vest date. Vest dates usually appear in tables later in the document.
- shares is the TOTAL of all vesting tranches of the grant.
- grantType keywords:
  * ISO = "Incentive Stock Option", "ISO"
  * NSO = "Non-Qualified Stock Option", "NSO", "NQSO", "Non-Statutory"
  * RSU = "Restricted Stock Unit", "RSU"
  * ESPP = "Employee Stock Purchase Plan", "ESPP"
- cliffMonths = months from grantDate to the FIRST vest date (commonly 12).
- vestingMonths = months from grantDate to the LAST vest date (commonly 48).

Company name and ticker are usually in the header, footer or letterhead,
often as "Company Inc. (TICK)".

Fields per grant:
- companyName
- ticker
- grantId: external grant ID, award number or plan ID (string)
- grantType: exactly one of "ISO", "NSO", "RSU", "ESPP"
- shares
- strikePrice (ISO/NSO only)
- grantDate
- cliffMonths
- vestingMonths

ESPP grants also:
- esppDiscountPercent (typically 15)
- esppPurchasePrice
- esppOfferingStartDate
- esppOfferingEndDate
- esppFmvAtOfferingStart
- esppFmvAtPurchase

Return JSON in this exact format:
{{"grants": [{{"companyName": "...", "ticker": "...", "grantType": "RSU", "shares": 4000, "grantDate": "2024-03-15"}}]}}

Document text:
{text}
"""
