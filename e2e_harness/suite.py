"""
Test suites.

A suite groups async test functions the way a test class groups methods.
Each test receives a TestContext as its first argument, followed by one
data row when the test is data-driven.
"""

from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple, Union

TestFunc = Callable[..., Awaitable[None]]
DataRows = Union[Sequence[Tuple[str, ...]], Callable[[object], Sequence[Tuple[str, ...]]]]


@dataclass
class TestCase:
    """A registered test function."""
    __test__ = False

    name: str
    func: TestFunc
    description: str = ""
    data: Optional[DataRows] = None

    def invocations(self, settings) -> List["TestInvocation"]:
        """
        One invocation per data row, or a single one without data.

        ``data`` may be a callable taking the run settings so that rows can
        come from a data file named in configuration.
        """
        if self.data is None:
            return [TestInvocation(self, self.name, ())]

        rows = self.data(settings) if callable(self.data) else self.data
        return [
            TestInvocation(self, f"{self.name}[{idx}]", tuple(row))
            for idx, row in enumerate(rows)
        ]


@dataclass
class TestInvocation:
    """A test case bound to one row of parameters."""
    __test__ = False

    case: TestCase
    name: str
    params: Tuple[str, ...] = ()

    @property
    def description(self) -> str:
        return self.case.description


@dataclass
class TestSuite:
    """Named group of tests, run in registration order."""
    __test__ = False

    name: str
    tests: List[TestCase] = field(default_factory=list)

    def test(self, name: Optional[str] = None, description: str = "",
             data: Optional[DataRows] = None):
        """Decorator registering an async test function."""
        def decorator(func: TestFunc) -> TestFunc:
            self.tests.append(TestCase(
                name=name or func.__name__,
                func=func,
                description=description or (func.__doc__ or "").strip(),
                data=data,
            ))
            return func
        return decorator

    def invocations(self, settings) -> List[TestInvocation]:
        result: List[TestInvocation] = []
        for case in self.tests:
            result.extend(case.invocations(settings))
        return result

