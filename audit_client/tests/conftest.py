# audit_client/tests/conftest.py
"""Shared fixtures for audit client tests."""
import json

import pytest


def make_report_dict(**overrides):
    report = {
        "projectTitle": "Warehouse Racking Supply",
        "vendorName": "Acme Storage Ltd",
        "totalBidValue": "$120,000",
        "commercialSummary": {
            "paymentTerms": "Net 30",
            "warrantyPeriod": "24 months",
            "validityPeriod": "90 days",
        },
        "riskScore": 35,
        "riskLevel": "MEDIUM RISK",
        "redLineAlerts": ["Vendor rejected Liability Cap"],
        "mandatoryChecklist": [
            {"item": "NDA Signed", "status": "PASS"},
            {"item": "ISO Cert Attached", "status": "FAIL"},
        ],
        "executiveSummary": "Acme meets most requirements but rejects the liability cap.",
        "findings": [
            {
                "requirementFromRFQ": "Delivery within 6 weeks",
                "vendorResponse": "Delivery in 6 weeks",
                "complianceScore": 1,
                "flag": "COMPLIANT",
                "category": "TIMELINE",
                "procurementAction": "Accept",
            },
            {
                "requirementFromRFQ": "Liability capped at contract value",
                "vendorResponse": "We aim to limit liability where possible",
                "complianceScore": 0,
                "flag": "NON-COMPLIANT",
                "category": "LEGAL",
                "procurementAction": "Reject unless the cap is accepted",
            },
        ],
    }
    report.update(overrides)
    return report


def make_provider_response(report=None, text=None):
    if text is None:
        text = json.dumps(report if report is not None else make_report_dict())
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


@pytest.fixture
def report_dict():
    return make_report_dict()


@pytest.fixture
def provider_response():
    return make_provider_response()


@pytest.fixture
def documents(tmp_path):
    """An RFQ and a bid as plain-text files."""
    rfq = tmp_path / "rfq.txt"
    bid = tmp_path / "bid.txt"
    rfq.write_text("Supply racking. Delivery within 6 weeks. Liability capped.")
    bid.write_text("Acme Storage Ltd offers racking for $120,000. Delivery in 6 weeks.")
    return rfq, bid
