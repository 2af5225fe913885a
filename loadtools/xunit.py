"""JUnit-style XML reports for collections of load test results."""

from __future__ import annotations

import io
import json
import math
import posixpath
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, NamedTuple


class ReportWriteError(Exception):
    """Raised when a report cannot be written to its stream."""


@dataclass
class Property:
    """A named value attached to a test case."""

    key: str
    value: str


@dataclass
class TestError:
    """An error recorded while running a test case."""

    __test__ = False

    message: str = ""
    text: str = ""


@dataclass
class TestCase:
    """Metadata for a single test."""

    __test__ = False

    name: str = ""
    time_in_seconds: float = 0.0
    errors: list[TestError] = field(default_factory=list)
    properties: list[Property] = field(default_factory=list)

    def _sort_properties(self) -> None:
        self.properties.sort(key=lambda prop: prop.key)


@dataclass
class TestSuite:
    """A collection of test cases that share a queue."""

    __test__ = False

    name: str = ""
    id: str = ""
    test_count: int = 0
    error_count: int = 0
    time_in_seconds: float = 0.0
    cases: list[TestCase] = field(default_factory=list)


@dataclass
class ReportWritingOptions:
    """Settings that control how a report is written."""

    indent_size: int = 0
    max_retries: int = 0


class _Node(NamedTuple):
    tag: str
    attrs: list[tuple[str, str]]
    children: list["_Node"]
    text: str = ""


_ESCAPES = {
    '"': "&#34;",
    "'": "&#39;",
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    "\t": "&#x9;",
    "\n": "&#xA;",
    "\r": "&#xD;",
}


def _is_xml_char(ch: str) -> bool:
    code = ord(ch)
    return (
        code in (0x9, 0xA, 0xD)
        or 0x20 <= code <= 0xD7FF
        or 0xE000 <= code <= 0xFFFD
        or 0x10000 <= code <= 0x10FFFF
    )


def _escape(text: str) -> str:
    return "".join(
        _ESCAPES.get(ch, ch if _is_xml_char(ch) else "\ufffd") for ch in text
    )


def _format_float(value: float) -> str:
    """Format a float using the shortest representation, %g style."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"
    sign, digit_tuple, exponent = Decimal(repr(value)).as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    stripped = digits.rstrip("0")
    exponent += len(digits) - len(stripped)
    digits = stripped
    nd = len(digits)
    dp = nd + exponent
    exp = dp - 1
    prefix = "-" if sign else ""
    if exp < -4 or exp >= 6:
        mantissa = digits[0] + ("." + digits[1:] if nd > 1 else "")
        exp_sign = "-" if exp < 0 else "+"
        return f"{prefix}{mantissa}e{exp_sign}{abs(exp):02d}"
    if dp <= 0:
        return f"{prefix}0.{'0' * -dp}{digits}"
    if dp >= nd:
        return f"{prefix}{digits}{'0' * (dp - nd)}"
    return f"{prefix}{digits[:dp]}.{digits[dp:]}"


def _render(node: _Node, depth: int, out: list[tuple[int, str]]) -> None:
    attrs = "".join(f' {key}="{_escape(value)}"' for key, value in node.attrs)
    start = f"<{node.tag}{attrs}>"
    end = f"</{node.tag}>"
    if node.children:
        out.append((depth, start))
        for child in node.children:
            _render(child, depth + 1, out)
        out.append((depth, end))
    else:
        out.append((depth, start + _escape(node.text) + end))


def _case_node(case: TestCase) -> _Node:
    children = [
        _Node("error", [("message", err.message)] if err.message else [], [], err.text)
        for err in case.errors
    ]
    if case.properties:
        props = [
            _Node("property", [("name", prop.key), ("value", prop.value)], [])
            for prop in case.properties
        ]
        children.append(_Node("properties", [], props))
    attrs = [("name", case.name), ("time", _format_float(case.time_in_seconds))]
    return _Node("testcase", attrs, children)


def _suite_node(suite: TestSuite) -> _Node:
    attrs = [
        ("id", suite.id),
        ("name", suite.name),
        ("tests", str(suite.test_count)),
        ("errors", str(suite.error_count)),
        ("time", _format_float(suite.time_in_seconds)),
    ]
    return _Node("testsuite", attrs, [_case_node(case) for case in suite.cases])


@dataclass
class Report:
    """The root of an xUnit XML report."""

    name: str = ""
    test_count: int = 0
    error_count: int = 0
    time_in_seconds: float = 0.0
    suites: list[TestSuite] = field(default_factory=list)

    def finalize(self) -> None:
        """Recompute ids and counters from the test cases; sort properties."""
        self.test_count = 0
        for index, suite in enumerate(self.suites):
            suite.id = str(index)
            suite.error_count = 0
            suite.test_count = len(suite.cases)
            for case in suite.cases:
                case._sort_properties()
                suite.error_count += len(case.errors)
            self.error_count += suite.error_count
            self.test_count += suite.test_count

    def split(self) -> dict[str, "Report"]:
        """Return one finalized report per test suite, keyed by suite name."""
        reports: dict[str, Report] = {}
        for suite in self.suites:
            report = Report(
                name=suite.name,
                time_in_seconds=suite.time_in_seconds,
                suites=[suite],
            )
            report.finalize()
            reports[suite.name] = report
        return reports

    def to_xml(self, indent_size: int = 0) -> str:
        """Serialize the report; no line breaks are used when indent_size is 0."""
        attrs = [
            ("name", self.name),
            ("tests", str(self.test_count)),
            ("errors", str(self.error_count)),
            ("time", _format_float(self.time_in_seconds)),
        ]
        root = _Node("testsuites", attrs, [_suite_node(s) for s in self.suites])
        lines: list[tuple[int, str]] = []
        _render(root, 0, lines)
        indent = " " * indent_size
        if not indent:
            return "".join(text for _, text in lines)
        return "\n".join(indent * depth + text for depth, text in lines)

    def write_to_stream(self, stream, options: ReportWritingOptions | None = None) -> None:
        """Write the report, followed by a newline, to a binary or text stream."""
        options = options or ReportWritingOptions()
        data = self.to_xml(options.indent_size) + "\n"
        payload = data if isinstance(stream, io.TextIOBase) else data.encode("utf-8")
        written = 0
        retries = 0
        while written < len(payload):
            try:
                count = stream.write(payload[written:])
            except OSError as exc:
                if retries >= options.max_retries:
                    raise ReportWriteError(
                        f"failed to write {len(payload) - written} bytes of "
                        "xUnit report to stream"
                    ) from exc
                retries += 1
                continue
            if count is None:
                count = len(payload) - written
            if count == 0:
                if retries >= options.max_retries:
                    raise ReportWriteError(
                        f"failed to write {len(payload) - written} bytes of "
                        "xUnit report to stream"
                    )
                retries += 1
                continue
            written += count


def dashify(s: str) -> str:
    """Replace whitespace and underscores with dashes; drop other symbols."""
    out = []
    for ch in s:
        if ch == "_" or ch.isspace():
            out.append("-")
        elif ch == "-" or ch.isalpha() or ch.isnumeric():
            out.append(ch)
    return "".join(out)


def _join(*elems: str) -> str:
    parts = [elem for elem in elems if elem]
    if not parts:
        return ""
    joined = posixpath.normpath("/".join(parts))
    if joined.startswith("//"):
        joined = "/" + joined.lstrip("/")
    return joined


def output_path(template: str) -> Callable[[str], str]:
    """Return a function that maps a prefix to a report file path."""
    head, _, tail = template.rpartition("/")
    directory = head + "/" if "/" in template else ""
    if not tail:
        return lambda prefix: _join(directory, prefix, prefix)

    def path_for(prefix: str) -> str:
        if prefix:
            return _join(directory, prefix, f"{prefix}_{tail}")
        return _join(directory, tail)

    return path_for


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)