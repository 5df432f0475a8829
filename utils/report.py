# =============================================================================
# utils/report.py - Run reports
# =============================================================================

import html
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from core.models import ProcessingOutcome, RunCounters
from core.pipeline import RunResult
from utils.csv_utils import CSVHandler


REPORT_FIELDS = [
    'username', 'display_name', 'email', 'department', 'action',
    'status', 'error_detail', 'home_directory', 'notes',
]
CREDENTIAL_FIELDS = ['username', 'display_name', 'email', 'generated_password']


class ReportWriter:
    """Writes the outcome list as CSV and HTML, plus a credentials file for new accounts"""

    def __init__(self, output_dir: str = "reports"):
        self.output_dir = Path(output_dir)
        self.logger = logging.getLogger(self.__class__.__name__)

    @staticmethod
    def outcome_to_dict(outcome: ProcessingOutcome) -> Dict[str, Any]:
        """Convert an outcome to a report row; the password is never included"""
        return {
            'username': outcome.username,
            'display_name': outcome.display_name,
            'email': outcome.email,
            'department': outcome.department,
            'action': outcome.action.value,
            'status': outcome.status.value,
            'error_detail': outcome.error_detail or '',
            'home_directory': outcome.home_directory or '',
            'notes': '; '.join(outcome.notes),
        }

    @staticmethod
    def summary_to_dict(counters: RunCounters) -> Dict[str, int]:
        return {
            'succeeded': counters.success_count,
            'failed': counters.failure_count,
            'warnings': counters.warning_count,
        }

    def write(self, result: RunResult, timestamp: Optional[str] = None) -> Dict[str, str]:
        """Write all report artifacts for a run and return their paths by kind"""
        timestamp = timestamp or datetime.now().strftime("%Y%m%d_%H%M%S")
        self.output_dir.mkdir(parents=True, exist_ok=True)
        prefix = f"{result.action.value}{'_dryrun' if result.dry_run else ''}_{timestamp}"

        rows = [self.outcome_to_dict(outcome) for outcome in result.outcomes]
        paths = {}

        csv_path = self.output_dir / f"{prefix}_report.csv"
        CSVHandler.write_csv(rows, str(csv_path), REPORT_FIELDS)
        if rows:
            paths['csv'] = str(csv_path)

        html_path = self.output_dir / f"{prefix}_report.html"
        self.write_html(rows, result, html_path)
        paths['html'] = str(html_path)

        if rows:
            excel_path = self.output_dir / f"{prefix}_report.xlsx"
            self.write_excel(rows, result, excel_path)
            paths['xlsx'] = str(excel_path)

        credentials = self.credential_rows(result.outcomes)
        if credentials:
            credentials_path = self.output_dir / f"{prefix}_credentials.csv"
            CSVHandler.write_csv(credentials, str(credentials_path), CREDENTIAL_FIELDS)
            self.logger.warning(f"Initial passwords written to {credentials_path} - "
                                f"distribute securely and delete the file")
            paths['credentials'] = str(credentials_path)

        return paths

    @staticmethod
    def credential_rows(outcomes) -> List[Dict[str, Any]]:
        return [
            {
                'username': outcome.username,
                'display_name': outcome.display_name,
                'email': outcome.email,
                'generated_password': outcome.generated_password,
            }
            for outcome in outcomes if outcome.generated_password
        ]

    def write_html(self, rows: List[Dict[str, Any]], result: RunResult, path: Path) -> None:
        summary = pd.DataFrame([self.summary_to_dict(result.counters)])
        details = pd.DataFrame(rows, columns=REPORT_FIELDS)

        title = f"User provisioning report - {result.action.value}"
        if result.dry_run:
            title += " (dry run)"

        document = "\n".join([
            "<!DOCTYPE html>",
            "<html><head><meta charset=\"utf-8\">",
            f"<title>{html.escape(title)}</title>",
            "<style>table{border-collapse:collapse}td,th{border:1px solid #ccc;padding:4px 8px}</style>",
            "</head><body>",
            f"<h1>{html.escape(title)}</h1>",
            f"<p>Generated {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}</p>",
            "<h2>Summary</h2>",
            summary.to_html(index=False),
            "<h2>Details</h2>",
            details.to_html(index=False, na_rep=""),
            "</body></html>",
        ])

        path.write_text(document, encoding='utf-8')
        self.logger.info(f"Wrote HTML report with {len(rows)} rows to {path}")

    def write_excel(self, rows: List[Dict[str, Any]], result: RunResult, path: Path) -> None:
        """Export the run to an Excel workbook with one sheet per view"""
        details = pd.DataFrame(rows, columns=REPORT_FIELDS)

        with pd.ExcelWriter(path, engine='openpyxl') as writer:
            pd.DataFrame([self.summary_to_dict(result.counters)]).to_excel(
                writer, sheet_name='Summary', index=False)
            details.to_excel(writer, sheet_name='Details', index=False)

            errors = details[details['status'] == 'error']
            if not errors.empty:
                errors.to_excel(writer, sheet_name='Errors', index=False)

        self.logger.info(f"Wrote Excel report to {path}")
