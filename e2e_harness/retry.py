"""
Retry policy for flaky tests.

One instance per test invocation: the counter is never shared between
methods, data rows or concurrently running copies of the same test.
"""

import logging
from typing import Optional

from .reporting import ReportContext

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 1


class RetryPolicy:
    """Decides whether a failed attempt is re-executed."""

    def __init__(self, max_retries: int = DEFAULT_MAX_RETRIES):
        self.max_retries = max(0, max_retries)
        self.retry_count = 0

    @classmethod
    def from_settings(cls, settings) -> "RetryPolicy":
        return cls(settings.retry_count)

    @property
    def exhausted(self) -> bool:
        return self.retry_count >= self.max_retries

    def should_retry(self, test_name: str, error: Optional[BaseException] = None,
                     report: Optional[ReportContext] = None) -> bool:
        if self.exhausted:
            return False

        self.retry_count += 1
        message = (
            f"Retrying test [{test_name}] - Attempt {self.retry_count} "
            f"of {self.max_retries}"
        )
        logger.info(f"{message}: {error}" if error else message)
        if report is not None:
            report.step_info(message)
        return True
