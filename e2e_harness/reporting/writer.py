"""
Writes a finished RunReport to disk.

Artifacts, all inside the run directory:
    report.json       full pydantic dump
    TestReport.xlsx   one row per step
    TestReport.html   rendered from templates/report_template.html
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd
from jinja2 import Environment, FileSystemLoader, select_autoescape
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE

from ..models import RunReport, StepStatus, TestStatus

logger = logging.getLogger(__name__)

TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), "templates")
TEMPLATE_NAME = "report_template.html"

JSON_NAME = "report.json"
EXCEL_NAME = "TestReport.xlsx"
HTML_NAME = "TestReport.html"

STEP_COLUMNS = ["TestName", "Attempt", "StepNo", "Description", "Status",
                "Error", "Timestamp", "Screenshot"]


def steps_frame(report: RunReport) -> pd.DataFrame:
    """Flatten all entries into one row per step."""
    rows: List[Dict[str, Any]] = []
    for entry in report.entries:
        for idx, step in enumerate(entry.steps, 1):
            if step.screenshot_path:
                screenshot = step.screenshot_path
            elif step.screenshot_base64:
                screenshot = "embedded"
            else:
                screenshot = None
            rows.append({
                "TestName": entry.name,
                "Attempt": entry.attempt,
                "StepNo": idx,
                "Description": step.message,
                "Status": step.status.value.upper(),
                "Error": entry.error_message if step.status is StepStatus.FAIL else None,
                "Timestamp": step.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                "Screenshot": screenshot,
            })
    return pd.DataFrame(rows, columns=STEP_COLUMNS)


def excel_safe(df: pd.DataFrame) -> pd.DataFrame:
    """Strip control characters that openpyxl refuses to store in a cell."""
    clean = df.copy()
    for column in clean.columns:
        clean[column] = clean[column].map(
            lambda v: ILLEGAL_CHARACTERS_RE.sub("", v) if isinstance(v, str) else v
        )
    return clean


def summarize(report: RunReport, df: pd.DataFrame) -> Dict[str, int]:
    verdicts = [e.status for e in report.entries]
    return {
        "total_tests": len({e.name for e in report.entries}),
        "total_entries": len(report.entries),
        "total_steps": len(df),
        "passed": sum(1 for v in verdicts if v == TestStatus.PASSED),
        "failed": sum(1 for v in verdicts if v == TestStatus.FAILED),
        "skipped": sum(1 for v in verdicts if v == TestStatus.SKIPPED),
        "failed_steps": int((df["Status"] == "FAIL").sum()) if len(df) else 0,
    }


def render_html(report: RunReport, summary: Dict[str, int]) -> str:
    env = Environment(
        loader=FileSystemLoader(TEMPLATE_DIR),
        autoescape=select_autoescape(["html"]),
    )
    template = env.get_template(TEMPLATE_NAME)
    return template.render(
        report_title="Automation Test Results",
        generation_date=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        system_info=report.system_info,
        entries=report.entries,
        **summary,
    )


def write_report(report: RunReport, run_dir: Path) -> Dict[str, Path]:
    """
    Write every artifact. Each one is attempted even if an earlier one failed;
    the first error is re-raised afterwards.
    """
    run_dir = Path(run_dir)
    run_dir.mkdir(parents=True, exist_ok=True)
    written: Dict[str, Path] = {}
    errors = []

    json_path = run_dir / JSON_NAME
    try:
        json_path.write_text(report.model_dump_json(indent=2), encoding="utf-8")
        written["json"] = json_path
    except Exception as e:
        logger.error(f"[ERR] Could not write {json_path}: {e}")
        errors.append(e)

    df = steps_frame(report)

    excel_path = run_dir / EXCEL_NAME
    try:
        excel_safe(df).to_excel(excel_path, index=False, engine="openpyxl")
        written["excel"] = excel_path
    except Exception as e:
        logger.error(f"[ERR] Could not write {excel_path}: {e}")
        errors.append(e)

    html_path = run_dir / HTML_NAME
    try:
        html_path.write_text(render_html(report, summarize(report, df)), encoding="utf-8")
        written["html"] = html_path
    except Exception as e:
        logger.error(f"[ERR] Could not write {html_path}: {e}")
        errors.append(e)

    if errors:
        raise errors[0]

    logger.info(f"[OK] HTML report generated at: {html_path}")
    return written
