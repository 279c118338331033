# audit_client/tests/test_render.py
"""Tests for text and HTML report rendering."""
from audit_client.render import render_html, render_text
from audit_client.report import Report


def _report(report_dict, **overrides):
    data = dict(report_dict)
    data.update(overrides)
    return Report.model_validate(data)


class TestRenderText:
    def test_scorecards(self, report_dict):
        text = render_text(_report(report_dict))

        assert "Compliance Match: 50.0%" in text
        assert "MEDIUM RISK (score 35/100)" in text
        assert "Total Bid Value:  $120,000" in text

    def test_commercial_terms_default_to_na(self, report_dict):
        text = render_text(_report(report_dict, commercialSummary={"paymentTerms": "Net 60"}))

        assert "Payment Terms: Net 60" in text
        assert "Warranty:      N/A" in text
        assert "Bid Validity:  N/A" in text

    def test_checklist(self, report_dict):
        text = render_text(_report(report_dict))

        assert "[PASS] NDA Signed" in text
        assert "[FAIL] ISO Cert Attached" in text

    def test_red_lines_shown_when_present(self, report_dict):
        text = render_text(_report(report_dict))

        assert "CRITICAL RED LINES DETECTED" in text
        assert "- Vendor rejected Liability Cap" in text

    def test_red_lines_omitted_when_empty(self, report_dict):
        text = render_text(_report(report_dict, redLineAlerts=[]))
        assert "RED LINES" not in text

    def test_action_only_for_non_compliant(self, report_dict):
        text = render_text(_report(report_dict))

        assert "Recommended Action: Reject unless the cap is accepted" in text
        assert "Recommended Action: Accept" not in text

    def test_partial_finding_shows_action(self, report_dict):
        finding = dict(report_dict["findings"][0], flag="PARTIAL", procurementAction="Clarify delivery date")
        text = render_text(_report(report_dict, findings=[finding]))

        assert "Recommended Action: Clarify delivery date" in text

    def test_no_findings(self, report_dict):
        text = render_text(_report(report_dict, findings=[]))
        assert "Compliance Match: 0.0%" in text


class TestRenderHtml:
    def test_is_standalone_page(self, report_dict):
        html = render_html(_report(report_dict))

        assert html.startswith("<!DOCTYPE html>")
        assert "Acme Storage Ltd" in html
        assert "50.0%" in html

    def test_escapes_model_text(self, report_dict):
        html = render_html(
            _report(
                report_dict,
                vendorName="<script>alert(1)</script>",
                redLineAlerts=["<img src=x onerror=alert(1)>"],
            )
        )

        assert "<script>alert(1)</script>" not in html
        assert "&lt;script&gt;" in html
        assert "<img src=x" not in html

    def test_red_lines_omitted_when_empty(self, report_dict):
        html = render_html(_report(report_dict, redLineAlerts=[]))
        assert "Critical Red Lines Detected" not in html

    def test_risk_color_applied(self, report_dict):
        critical = render_html(_report(report_dict, riskLevel="CRITICAL"))
        low = render_html(_report(report_dict, riskLevel="LOW RISK"))

        assert "color:#ef4444" in critical
        assert "color:#22c55e" in low

    def test_action_only_for_non_compliant(self, report_dict):
        html = render_html(_report(report_dict))

        assert html.count("Recommended Action:") == 1
        assert "Reject unless the cap is accepted" in html
