"""Progress logging for test suites and cases, filling an xUnit report."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Mapping

from loadtools.queues import annotations
from loadtools.xunit import Property, Report, TestCase, TestError, TestSuite, dashify

logger = logging.getLogger(__name__)

TestCaseNamer = Callable[[Mapping[str, Any]], str]


def _elapsed(start: datetime | None, end: datetime | None) -> timedelta:
    if start is None or end is None:
        return timedelta(0)
    return end - start


def _format(fmt: str, args: tuple) -> str:
    return fmt % args if args else fmt


class Reporter:
    """Logs the progress of test suites and fills a report if one is given."""

    def __init__(self, report: Report | None = None) -> None:
        self.report = report
        self._start: datetime | None = None
        self._end: datetime | None = None

    def start(self, when: datetime) -> None:
        """Record when the test suites as a whole started."""
        self._start = when

    def finish(self, when: datetime) -> None:
        """Record when the test suites as a whole finished."""
        self._end = when
        if self.report is None:
            return
        self.report.time_in_seconds = _elapsed(self._start, when).total_seconds()

    def duration(self) -> timedelta:
        """Time between start and finish, or zero if either is unset."""
        return _elapsed(self._start, self._end)

    def new_test_suite_reporter(
        self, q_name: str, log_prefix_fmt: str, test_case_name: TestCaseNamer
    ) -> "TestSuiteReporter":
        """Create a reporter for the tests of one queue."""
        test_suite = None
        if self.report is not None:
            test_suite = TestSuite(name=q_name)
            self.report.suites.append(test_suite)
        return TestSuiteReporter(q_name, log_prefix_fmt, test_case_name, test_suite)


class TestSuiteReporter:
    """Manages reports for tests that share a runner queue."""

    __test__ = False

    def __init__(
        self,
        q_name: str,
        log_prefix_fmt: str,
        test_case_name: TestCaseNamer,
        test_suite: TestSuite | None = None,
    ) -> None:
        self.queue = q_name
        self.test_suite = test_suite
        self._log_prefix_fmt = log_prefix_fmt
        self._test_case_name = test_case_name
        self._test_count = 0
        self._start: datetime | None = None
        self._end: datetime | None = None

    def start(self, when: datetime) -> None:
        """Record when the suite started."""
        self._start = when

    def finish(self, when: datetime) -> None:
        """Record when the suite finished."""
        self._end = when
        if self.test_suite is None:
            return
        self.test_suite.time_in_seconds = self.duration().total_seconds()

    def duration(self) -> timedelta:
        """Time between start and finish, or zero if either is unset."""
        return _elapsed(self._start, self._end)

    def new_test_case_reporter(self, config: Mapping[str, Any]) -> "TestCaseReporter":
        """Create a reporter for the next test in this suite."""
        index = self._test_count
        self._test_count += 1
        log_prefix = self._log_prefix_fmt.format(self.queue, index)
        test_case = None
        if self.test_suite is not None:
            test_case = TestCase(name=self._test_case_name(config))
            self.test_suite.cases.append(test_case)
        return TestCaseReporter(index, log_prefix, test_case)


class TestCaseReporter:
    """Collects events for logging and reporting during a test."""

    __test__ = False

    def __init__(
        self, index: int, log_prefix: str = "", test_case: TestCase | None = None
    ) -> None:
        self.index = index
        self.test_case = test_case
        self._log_prefix = log_prefix
        self._start: datetime | None = None
        self._end: datetime | None = None

    def _log(self, level: int, fmt: str, args: tuple) -> None:
        logger.log(level, "%s%s", self._log_prefix, _format(fmt, args))

    def info(self, fmt: str, *args: Any) -> None:
        """Log an informational message."""
        self._log(logging.INFO, fmt, args)

    def warning(self, fmt: str, *args: Any) -> None:
        """Log a warning message."""
        self._log(logging.WARNING, fmt, args)

    def error(self, fmt: str, *args: Any) -> None:
        """Log an error and record it on the test case."""
        self._log(logging.ERROR, fmt, args)
        if self.test_case is None:
            return
        self.test_case.errors.append(TestError(message=_format(fmt, args)))

    def start(self, when: datetime) -> None:
        """Record when the test started."""
        self._start = when

    def finish(self, when: datetime) -> None:
        """Record when the test finished."""
        self._end = when
        if self.test_case is None:
            return
        self.test_case.time_in_seconds = self.duration().total_seconds()

    def duration(self) -> timedelta:
        """Time between start and finish, or zero if either is unset."""
        return _elapsed(self._start, self._end)

    def add_property(self, key: str, value: str) -> None:
        """Attach a key-value property to the test case."""
        if self.test_case is None:
            return
        self.test_case.properties.append(Property(key=key, value=value))


def test_case_name_from_annotations(*args: str) -> TestCaseNamer:
    """Return a function naming test cases from the given annotation values."""

    def name(config: Mapping[str, Any]) -> str:
        values = annotations(config)
        return "-".join(
            dashify(values[key]).lower() for key in args if values.get(key)
        )

    return name


test_case_name_from_annotations.__test__ = False