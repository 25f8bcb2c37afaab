"""
Reporting

Per-test step recording and the on-disk run report.
"""

from .sink import ReportSink, ReportContext, run_directory
from .writer import write_report

__all__ = [
    "ReportSink",
    "ReportContext",
    "run_directory",
    "write_report",
]
