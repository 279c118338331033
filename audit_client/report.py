# audit_client/report.py
"""
Audit report model, parsing and metrics.

The model's answer arrives as JSON text inside the provider response
(candidates[0].content.parts[0].text). parse_report turns that into a
validated Report; nothing is counted against the user's quota unless
this succeeds.
"""
from __future__ import annotations

import json
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from audit_client.errors import ReportParseError

_logger = logging.getLogger(__name__)


# =============================================================================
# Models
# =============================================================================


class CommercialSummary(BaseModel):
    model_config = ConfigDict(extra="ignore")

    paymentTerms: Optional[str] = None
    warrantyPeriod: Optional[str] = None
    validityPeriod: Optional[str] = None


class ChecklistItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    item: str = ""
    status: str = "FAIL"


class Finding(BaseModel):
    model_config = ConfigDict(extra="ignore")

    requirementFromRFQ: str = ""
    vendorResponse: str = ""
    complianceScore: Optional[float] = None
    flag: str = "NON-COMPLIANT"
    category: str = "OTHER"
    procurementAction: Optional[str] = None


class Report(BaseModel):
    """A complete procurement audit report."""

    model_config = ConfigDict(extra="ignore")

    projectTitle: str
    vendorName: str
    totalBidValue: str
    commercialSummary: CommercialSummary = Field(default_factory=CommercialSummary)
    riskScore: float
    riskLevel: str
    redLineAlerts: List[str] = Field(default_factory=list)
    mandatoryChecklist: List[ChecklistItem] = Field(default_factory=list)
    executiveSummary: str
    findings: List[Finding] = Field(default_factory=list)


# =============================================================================
# Parsing
# =============================================================================


def extract_report_text(response: Dict[str, Any]) -> str:
    """
    Pull the model's JSON text out of a generateContent response.

    Raises:
        ReportParseError: If the response has no candidate text
    """
    try:
        text = response["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        text = None

    if not isinstance(text, str) or not text.strip():
        raise ReportParseError("AI Analysis Failed: the model returned no report")
    return text


def parse_report(response: Dict[str, Any]) -> Report:
    """
    Parse and validate the report inside a provider response.

    Raises:
        ReportParseError: If the text is missing, not JSON, or not a report
    """
    text = extract_report_text(response)

    try:
        data = json.loads(text)
    except ValueError as e:
        raise ReportParseError(f"AI Analysis Failed: report is not valid JSON ({e})") from e

    try:
        return Report.model_validate(data)
    except ValidationError as e:
        _logger.warning(f"Report failed validation: {e.error_count()} error(s)")
        raise ReportParseError(f"AI Analysis Failed: report does not match the schema ({e.error_count()} errors)") from e


# =============================================================================
# Metrics
# =============================================================================


def compliance_percentage(findings: List[Finding]) -> float:
    """
    Average compliance across findings, as a percentage with one decimal.

    Scores above 1 are taken to be on a 0-100 scale. Missing scores count
    as 0. No findings gives 0.0. Ties round half up (6.25 gives 6.3).
    """
    if not findings:
        return 0.0

    total = 0.0
    for finding in findings:
        score = finding.complianceScore or 0
        if score > 1:
            score = score / 100
        total += score

    percentage = Decimal(str(total / len(findings) * 100))
    return float(percentage.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def risk_color(risk_level: str) -> str:
    if risk_level in ("CRITICAL", "HIGH RISK"):
        return "red"
    if risk_level == "MEDIUM RISK":
        return "amber"
    return "green"
