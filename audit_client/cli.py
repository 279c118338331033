# audit_client/cli.py
"""
Command-line audit runner.

    smartprocure-audit --email me@corp.com --password ... rfq.pdf bid.docx
    smartprocure-audit ... rfq.pdf bid.docx --html report.html
    smartprocure-audit ... --portal
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from audit_client.client import DEFAULT_SERVER_URL, AuditClient
from audit_client.errors import AuditClientError, AuditLimitReachedError, UsageNotRecordedError
from audit_client.render import render_html, render_text


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="smartprocure-audit",
        description="Audit a vendor bid against an RFQ with SmartProcure.",
    )
    parser.add_argument(
        "--server",
        default=os.environ.get("SMARTPROCURE_SERVER_URL", DEFAULT_SERVER_URL),
        help="Edge service URL (default: %(default)s)",
    )
    parser.add_argument("--email", default=os.environ.get("SMARTPROCURE_EMAIL"), help="Account email")
    parser.add_argument(
        "--password",
        default=os.environ.get("SMARTPROCURE_PASSWORD"),
        help="Account password (or set SMARTPROCURE_PASSWORD)",
    )
    parser.add_argument("rfq", nargs="?", type=Path, help="Buyer's RFQ (.txt, .pdf, .docx)")
    parser.add_argument("bid", nargs="?", type=Path, help="Vendor's bid (.txt, .pdf, .docx)")
    parser.add_argument("--html", type=Path, metavar="OUT", help="Write the report as HTML to OUT")
    parser.add_argument("--portal", action="store_true", help="Print the billing portal link and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log HTTP and retry details")
    return parser


def _output_report(report, html_path: Optional[Path]) -> bool:
    """Print the text report, or write the HTML one. False if the file could not be written."""
    if html_path:
        try:
            html_path.write_text(render_html(report), encoding="utf-8")
        except OSError as e:
            print(f"Error: could not write {html_path}: {e.strerror or e}", file=sys.stderr)
            return False
        print(f"Report written to {html_path}")
    else:
        print(render_text(report), end="")
    return True


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if not args.email or not args.password:
        parser.error("--email and --password are required")
    if not args.portal and (args.rfq is None or args.bid is None):
        parser.error("rfq and bid documents are required")

    try:
        with AuditClient(server_url=args.server) as client:
            client.login(args.email, args.password)

            if args.portal:
                print(client.portal_url())
                return 0

            result = client.run_audit(args.rfq, args.bid)
    except UsageNotRecordedError as e:
        if e.report is not None:
            _output_report(e.report, args.html)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except AuditLimitReachedError as e:
        print(f"Error: {e}", file=sys.stderr)
        if e.upgrade_url:
            print(f"Upgrade: {e.upgrade_url}", file=sys.stderr)
        return 1
    except AuditClientError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not _output_report(result.report, args.html):
        return 1

    usage = result.usage
    if not usage.get("isSubscribed"):
        print(f"Free audits remaining: {usage.get('remainingFreeAudits')}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
