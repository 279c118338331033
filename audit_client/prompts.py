# audit_client/prompts.py
"""
Auditor prompt and Gemini response schema.

The schema uses Gemini's OpenAPI subset (upper-case type names). Changing
field names here means changing audit_client.report.Report too.
"""
from __future__ import annotations

from typing import Any, Dict

# =============================================================================
# Enums
# =============================================================================

RISK_LEVELS = ["LOW RISK", "MEDIUM RISK", "HIGH RISK", "CRITICAL"]
CHECKLIST_STATUSES = ["PASS", "FAIL"]
FINDING_FLAGS = ["COMPLIANT", "PARTIAL", "NON-COMPLIANT"]
FINDING_CATEGORIES = [
    "MANDATORY",
    "COMMERCIAL",
    "TECHNICAL",
    "LEGAL",
    "HSE/QUALITY",
    "TIMELINE",
    "OTHER",
]


# =============================================================================
# Prompt
# =============================================================================

SYSTEM_PROMPT = """You are the SmartProcure AI Auditor.
Your goal is to protect the Buyer by finding risks, deviations, and non-compliance in the Vendor's Proposal.

INPUTS:
1. <rfq_document>: The Buyer's Requirements.
2. <bid_document>: The Vendor's Response.

TASK:
1. EXTRACT Vendor Name, Total Bid Value, and Payment Terms.
2. CALCULATE a 'Risk Score' (0-100) based on non-compliance and vague language (e.g. "we aim to", "best effort").
3. IDENTIFY 'Red Line Alerts' -> Any legal deviations (Liability, Indemnity, Termination).
4. AUDIT Mandatory Requirements (NDA, Timeline, Validity).
5. COMPARE Line-by-Line: Does the Bid meet the RFQ?

OUTPUT: JSON matching the schema provided."""


def build_user_query(rfq_text: str, bid_text: str) -> str:
    """Wrap both documents in the tags the system prompt refers to."""
    return (
        f"<rfq_document>{rfq_text}</rfq_document>"
        f"<bid_document>{bid_text}</bid_document> Perform Procurement Audit."
    )


# =============================================================================
# Response Schema
# =============================================================================

COMPREHENSIVE_REPORT_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "description": "Procurement Audit Report analyzing Vendor Proposal against RFQ.",
    "properties": {
        # Header
        "projectTitle": {"type": "STRING", "description": "Project Name from RFQ."},
        "vendorName": {"type": "STRING", "description": "Name of the Vendor/Bidder."},
        "totalBidValue": {"type": "STRING", "description": "Total Cost of Ownership (TCO) proposed."},
        # Commercial
        "commercialSummary": {
            "type": "OBJECT",
            "properties": {
                "paymentTerms": {"type": "STRING", "description": "Vendor's proposed payment terms (e.g. Net 30)."},
                "warrantyPeriod": {"type": "STRING", "description": "Proposed warranty duration."},
                "validityPeriod": {"type": "STRING", "description": "How long the quote is valid."},
            },
        },
        # Risk
        "riskScore": {
            "type": "NUMBER",
            "description": "0-100 Score. 0 = Safe, 100 = High Risk. Based on deviations and vague language.",
        },
        "riskLevel": {"type": "STRING", "enum": RISK_LEVELS},
        "redLineAlerts": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "List of legal/commercial deviations (e.g., 'Vendor rejected Liability Cap').",
        },
        # Mandatory checks
        "mandatoryChecklist": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "item": {"type": "STRING"},
                    "status": {"type": "STRING", "enum": CHECKLIST_STATUSES},
                },
            },
            "description": "Checklist: NDA Signed? Timeline Met? ISO Cert Attached?",
        },
        # Findings
        "executiveSummary": {
            "type": "STRING",
            "description": "3-sentence summary for the CPO (Chief Procurement Officer).",
        },
        "findings": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "requirementFromRFQ": {"type": "STRING"},
                    "vendorResponse": {"type": "STRING"},
                    "complianceScore": {"type": "NUMBER", "description": "0 = Non-Compliant, 1 = Compliant"},
                    "flag": {"type": "STRING", "enum": FINDING_FLAGS},
                    "category": {"type": "STRING", "enum": FINDING_CATEGORIES},
                    "procurementAction": {
                        "type": "STRING",
                        "description": (
                            "Advice for the Buyer: e.g., 'Reject', 'Clarify', or 'Accept'. "
                            "If Partial, suggest specific clarification question."
                        ),
                    },
                },
            },
        },
    },
    "required": [
        "projectTitle",
        "vendorName",
        "totalBidValue",
        "riskScore",
        "riskLevel",
        "commercialSummary",
        "redLineAlerts",
        "mandatoryChecklist",
        "executiveSummary",
        "findings",
    ],
}


def build_payload(rfq_text: str, bid_text: str) -> Dict[str, Any]:
    """Request body for POST /api/analyze."""
    return {
        "contents": [{"parts": [{"text": build_user_query(rfq_text, bid_text)}]}],
        "systemInstruction": {"parts": [{"text": SYSTEM_PROMPT}]},
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema": COMPREHENSIVE_REPORT_SCHEMA,
        },
    }
