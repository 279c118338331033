# audit_client/tests/test_cli.py
"""Tests for the smartprocure-audit command."""
from unittest.mock import MagicMock, patch

import pytest

from audit_client.cli import main
from audit_client.client import AuditResult
from audit_client.errors import AuditLimitReachedError, ServiceError, UsageNotRecordedError
from audit_client.report import Report

ARGS = ["--email", "buyer@example.com", "--password", "tender2024"]


@pytest.fixture
def mock_client(report_dict):
    client = MagicMock()
    client.__enter__.return_value = client
    client.run_audit.return_value = AuditResult(
        report=Report.model_validate(report_dict),
        usage={"auditCount": 1, "isSubscribed": False, "remainingFreeAudits": 2},
    )
    with patch("audit_client.cli.AuditClient", return_value=client):
        yield client


class TestCli:
    def test_prints_text_report(self, mock_client, documents, capsys):
        rfq, bid = documents

        assert main(ARGS + [str(rfq), str(bid)]) == 0

        out = capsys.readouterr().out
        assert "VENDOR EVALUATION REPORT" in out
        assert "Free audits remaining: 2" in out
        mock_client.login.assert_called_once_with("buyer@example.com", "tender2024")

    def test_writes_html(self, mock_client, documents, tmp_path, capsys):
        rfq, bid = documents
        out_path = tmp_path / "report.html"

        assert main(ARGS + [str(rfq), str(bid), "--html", str(out_path)]) == 0

        assert out_path.read_text(encoding="utf-8").startswith("<!DOCTYPE html>")
        assert "Report written to" in capsys.readouterr().out

    def test_limit_reached_prints_upgrade_link(self, mock_client, documents, capsys):
        rfq, bid = documents
        mock_client.run_audit.side_effect = AuditLimitReachedError("Audit limit reached.", upgrade_url="https://pay")

        assert main(ARGS + [str(rfq), str(bid)]) == 1

        err = capsys.readouterr().err
        assert "Error: Audit limit reached." in err
        assert "Upgrade: https://pay" in err

    def test_service_error_is_single_line(self, mock_client, documents, capsys):
        rfq, bid = documents
        mock_client.run_audit.side_effect = ServiceError("Analysis failed: Google API Error", status_code=500)

        assert main(ARGS + [str(rfq), str(bid)]) == 1

        err = capsys.readouterr().err
        assert err.strip() == "Error: Analysis failed: Google API Error"

    def test_portal(self, mock_client, capsys):
        mock_client.portal_url.return_value = "https://billing.stripe.com/p/1"

        assert main(ARGS + ["--portal"]) == 0

        assert capsys.readouterr().out.strip() == "https://billing.stripe.com/p/1"
        mock_client.run_audit.assert_not_called()

    def test_documents_required(self, mock_client):
        with pytest.raises(SystemExit):
            main(ARGS)

    def test_credentials_required(self, mock_client, documents, monkeypatch):
        monkeypatch.delenv("SMARTPROCURE_EMAIL", raising=False)
        monkeypatch.delenv("SMARTPROCURE_PASSWORD", raising=False)
        rfq, bid = documents
        with pytest.raises(SystemExit):
            main([str(rfq), str(bid)])

    def test_unwritable_html_path_is_single_line(self, mock_client, documents, tmp_path, capsys):
        rfq, bid = documents
        out_path = tmp_path / "missing" / "report.html"

        assert main(ARGS + [str(rfq), str(bid), "--html", str(out_path)]) == 1

        err = capsys.readouterr().err
        assert err.startswith("Error: could not write")
        assert "Traceback" not in err
        assert len(err.strip().splitlines()) == 1

    def test_usage_not_recorded_still_prints_report(self, mock_client, documents, report_dict, capsys):
        rfq, bid = documents
        mock_client.run_audit.side_effect = UsageNotRecordedError(
            "Audit finished but usage was not recorded: Failed to update usage",
            report=Report.model_validate(report_dict),
        )

        assert main(ARGS + [str(rfq), str(bid)]) == 1

        captured = capsys.readouterr()
        assert "VENDOR EVALUATION REPORT" in captured.out
        assert "usage was not recorded" in captured.err
