"""Parsing of JUnit/xunit XML reports written by nose and pytest."""

import logging
import xml.etree.ElementTree as ET

from testpilot.models.records import Outcome, RunOutcome, RunParse

log = logging.getLogger(__name__)


def parse_junit_report(xml_text: str) -> RunParse:
    """Return one outcome per ``testcase`` element.

    A report that is not well-formed XML yields no outcomes. Test cases
    without a name are skipped.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        log.warning("Ignoring unparsable report: %s", e)
        return RunParse(outcomes=(), malformed=1)

    outcomes: list[RunOutcome] = []
    malformed = 0
    for case in root.iter("testcase"):
        name = case.attrib.get("name")
        if not name:
            log.warning("Skipping testcase without a name: %s", case.attrib)
            malformed += 1
            continue
        outcome, message = _case_outcome(case)
        outcomes.append(
            RunOutcome(
                class_name=case.attrib.get("classname") or None,
                name=name,
                outcome=outcome,
                duration=_parse_time(case.attrib.get("time")),
                message=message,
            )
        )
    return RunParse(outcomes=outcomes, malformed=malformed)


_OUTCOME_TAGS: tuple[tuple[str, Outcome], ...] = (
    ("error", "error"),
    ("failure", "fail"),
    ("skipped", "skipped"),
)


def _case_outcome(case: ET.Element) -> tuple[Outcome, str | None]:
    for tag, outcome in _OUTCOME_TAGS:
        if (element := case.find(tag)) is not None:
            return outcome, element.attrib.get("message") or (element.text or None)
    return "pass", None


def _parse_time(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None
