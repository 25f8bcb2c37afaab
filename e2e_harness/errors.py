"""
Harness exceptions.

Only ConfigError and BrowserLaunchError are allowed to abort a run.
Everything else is contained at the boundary of a single test.
"""


class HarnessError(Exception):
    """Base class for harness errors"""


class ConfigError(HarnessError):
    """Configuration could not be loaded"""


class BrowserLaunchError(HarnessError):
    """The browser engine failed to start"""


class DataSourceError(HarnessError):
    """A test data sheet could not be read"""


class TeardownError(HarnessError):
    """Browser shutdown or report flush failed at the end of a run"""

    def __init__(self, failures):
        self.failures = list(failures)
        details = "; ".join(f"{step}: {err}" for step, err in self.failures)
        super().__init__(f"Teardown incomplete ({details})")


class TestSkipped(Exception):
    """Raised by a test body to mark the test as skipped."""

    __test__ = False
