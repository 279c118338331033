# audit_client/render.py
"""
Report rendering: plain text for the terminal, standalone HTML for sharing.

All model-provided strings are escaped in the HTML output.
"""
from __future__ import annotations

from html import escape
from typing import List, Optional

from audit_client.report import Finding, Report, compliance_percentage, risk_color

NOT_AVAILABLE = "N/A"

_RISK_CSS = {
    "red": "#ef4444",
    "amber": "#f59e0b",
    "green": "#22c55e",
}

_FLAG_CSS = {
    "COMPLIANT": "#166534",
    "PARTIAL": "#92400e",
}
_FLAG_CSS_DEFAULT = "#991b1b"


def _or_na(value: Optional[str]) -> str:
    return value if value else NOT_AVAILABLE


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _shows_action(finding: Finding) -> bool:
    return finding.flag != "COMPLIANT"


# =============================================================================
# Text
# =============================================================================


def render_text(report: Report) -> str:
    """Render the report for a terminal."""
    lines: List[str] = []

    lines.append("VENDOR EVALUATION REPORT")
    lines.append(f"Project: {report.projectTitle}")
    lines.append(f"Vendor:  {report.vendorName or 'Unknown'}")
    lines.append("")

    lines.append(f"Compliance Match: {compliance_percentage(report.findings)}%")
    lines.append(f"Risk Assessment:  {report.riskLevel} (score {_format_number(report.riskScore)}/100)")
    lines.append(f"Total Bid Value:  {report.totalBidValue or 'Not Found'}")
    lines.append("")

    lines.append("AUDITOR'S SUMMARY")
    lines.append(report.executiveSummary)
    lines.append("")

    terms = report.commercialSummary
    lines.append("COMMERCIAL TERMS")
    lines.append(f"  Payment Terms: {_or_na(terms.paymentTerms)}")
    lines.append(f"  Warranty:      {_or_na(terms.warrantyPeriod)}")
    lines.append(f"  Bid Validity:  {_or_na(terms.validityPeriod)}")
    lines.append("")

    lines.append("MANDATORY CHECKLIST")
    for item in report.mandatoryChecklist:
        status = "PASS" if item.status == "PASS" else "FAIL"
        lines.append(f"  [{status}] {item.item}")
    lines.append("")

    if report.redLineAlerts:
        lines.append("CRITICAL RED LINES DETECTED")
        for alert in report.redLineAlerts:
            lines.append(f"  - {alert}")
        lines.append("")

    lines.append("COMPLIANCE GAP ANALYSIS")
    for index, finding in enumerate(report.findings, start=1):
        lines.append(f"{index}. [{finding.flag}] {finding.category}")
        lines.append(f"   Requirement (RFQ): {finding.requirementFromRFQ}")
        lines.append(f"   Vendor Response:   {finding.vendorResponse}")
        if _shows_action(finding):
            lines.append(f"   Recommended Action: {_or_na(finding.procurementAction)}")

    return "\n".join(lines).rstrip() + "\n"


# =============================================================================
# HTML
# =============================================================================

_HTML_STYLE = """
body { font-family: system-ui, sans-serif; background: #0f172a; color: #e2e8f0; margin: 2rem; }
h1, h2, h3 { color: #fff; }
.cards { display: flex; gap: 1rem; margin-bottom: 2rem; }
.card { flex: 1; padding: 1rem; border: 1px solid #334155; border-radius: 0.75rem; text-align: center; }
.card .value { font-size: 2rem; font-weight: 800; }
.section { margin-bottom: 2rem; padding: 1rem; border: 1px solid #334155; border-radius: 0.75rem; }
.redlines { border-color: #dc2626; }
.flag { padding: 0.1rem 0.5rem; border-radius: 0.25rem; font-size: 0.75rem; font-weight: 700; color: #fff; }
.finding { margin-bottom: 1rem; padding: 1rem; border: 1px solid #334155; border-radius: 0.75rem; }
.action { margin-top: 0.5rem; color: #bfdbfe; }
"""


def _render_finding_html(finding: Finding) -> str:
    color = _FLAG_CSS.get(finding.flag, _FLAG_CSS_DEFAULT)
    action = ""
    if _shows_action(finding):
        action = (
            f'<p class="action"><strong>Recommended Action:</strong> '
            f"{escape(_or_na(finding.procurementAction))}</p>"
        )
    return (
        '<div class="finding">'
        f'<span class="flag" style="background:{color}">{escape(finding.flag)}</span> '
        f"<small>{escape(finding.category)}</small>"
        f"<p><strong>Requirement (RFQ):</strong> &ldquo;{escape(finding.requirementFromRFQ)}&rdquo;</p>"
        f"<p><strong>Vendor Response:</strong> {escape(finding.vendorResponse)}</p>"
        f"{action}"
        "</div>"
    )


def render_html(report: Report) -> str:
    """Render the report as a standalone HTML page."""
    risk_css = _RISK_CSS[risk_color(report.riskLevel)]
    terms = report.commercialSummary

    checklist = "".join(
        f"<li>{escape(item.item)}: <strong>{'PASS' if item.status == 'PASS' else 'FAIL'}</strong></li>"
        for item in report.mandatoryChecklist
    )

    redlines = ""
    if report.redLineAlerts:
        alerts = "".join(f"<li>{escape(alert)}</li>" for alert in report.redLineAlerts)
        redlines = (
            '<div class="section redlines">'
            "<h3>Critical Red Lines Detected</h3>"
            f"<ul>{alerts}</ul>"
            "</div>"
        )

    findings = "".join(_render_finding_html(f) for f in report.findings)

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Vendor Evaluation Report - {escape(report.vendorName)}</title>
<style>{_HTML_STYLE}</style>
</head>
<body>
<h1>Vendor Evaluation Report</h1>
<p>Project: <strong>{escape(report.projectTitle)}</strong><br>Vendor: <strong>{escape(report.vendorName or "Unknown")}</strong></p>
<div class="cards">
<div class="card"><div>Compliance Match</div><div class="value">{compliance_percentage(report.findings)}%</div></div>
<div class="card"><div>Risk Assessment</div><div class="value" style="color:{risk_css}">{escape(report.riskLevel)}</div><small>Score: {escape(_format_number(report.riskScore))}/100</small></div>
<div class="card"><div>Total Bid Value</div><div class="value">{escape(report.totalBidValue or "Not Found")}</div></div>
</div>
<div class="section"><h3>Auditor's Summary</h3><p><em>{escape(report.executiveSummary)}</em></p></div>
<div class="section"><h3>Commercial Terms</h3><ul>
<li>Payment Terms: {escape(_or_na(terms.paymentTerms))}</li>
<li>Warranty: {escape(_or_na(terms.warrantyPeriod))}</li>
<li>Bid Validity: {escape(_or_na(terms.validityPeriod))}</li>
</ul></div>
<div class="section"><h3>Mandatory Checklist</h3><ul>{checklist}</ul></div>
{redlines}
<h2>Compliance Gap Analysis</h2>
{findings}
</body>
</html>
"""
