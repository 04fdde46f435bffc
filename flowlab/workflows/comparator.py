"""Outcome comparator: expected test-case effects vs. a simulation trace."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterator

from flowlab.types import (
    AssertionResult,
    ComparisonResult,
    EffectTrace,
    EffectType,
    ExpectedOutcome,
    TraceStatus,
)

from .conditions import normalize_value

logger = logging.getLogger(__name__)

NOT_FOUND = "not found"
DID_NOT_FIRE = "test case did not fire"
ABORTED = "simulation aborted"

_Check = tuple[EffectType, str, dict[str, Any], Callable[[Any], bool]]


def _has_all(haystack: str, needles: list[str]) -> bool:
    folded = haystack.casefold()
    return all(n.casefold() in folded for n in needles)


def _same_tag(a: str, b: str) -> bool:
    return a.strip().casefold() == b.strip().casefold()


def _quoted(values: list[str]) -> str:
    return ", ".join(f"'{v}'" for v in values)


def _expand(expected: ExpectedOutcome) -> Iterator[_Check]:
    """(kind, label, expected dict, predicate) per assertion, in field order."""
    for m in expected.messages:
        label = f"{m.channel} containing {_quoted(m.contains)}" if m.contains else f"{m.channel} sent"
        yield (
            EffectType.MESSAGE_SENT, label, m.model_dump(),
            lambda e, m=m: e.channel.casefold() == m.channel.casefold()
            and _has_all(f"{e.subject}\n{e.body}", m.contains),
        )
    for tag in expected.tags_added:
        yield EffectType.TAG_ADDED, f"tag '{tag}' added", {"tag": tag}, lambda e, t=tag: _same_tag(e.tag, t)
    for tag in expected.tags_removed:
        yield EffectType.TAG_REMOVED, f"tag '{tag}' removed", {"tag": tag}, lambda e, t=tag: _same_tag(e.tag, t)
    for f in expected.fields_equal:
        yield (
            EffectType.FIELD_SET, f"field '{f.field_key}' set to '{normalize_value(f.value)}'", f.model_dump(),
            lambda e, f=f: e.field_key.strip() == f.field_key.strip()
            and normalize_value(e.value) == normalize_value(f.value),
        )
    for prefix, items in (("task", expected.tasks_created), ("system task", expected.system_tasks_created)):
        for t in items:
            yield (
                EffectType.TASK_CREATED, f"{prefix} containing {_quoted(t.contains)}", t.model_dump(),
                lambda e, t=t: _has_all(e.title, t.contains),
            )
    for prefix, items in (("notification", expected.notifications), ("system notification", expected.system_notifications)):
        for n in items:
            yield (
                EffectType.NOTIFICATION_SENT, f"{prefix} containing {_quoted(n.contains)}", n.model_dump(),
                lambda e, n=n: _has_all(e.message, n.contains),
            )
    for w in expected.webhooks_fired:
        yield (
            EffectType.WEBHOOK_FIRED, f"webhook to URL containing {_quoted(w.url_contains)}", w.model_dump(),
            lambda e, w=w: _has_all(e.url, w.url_contains),
        )


def compare(trace: EffectTrace, expected: ExpectedOutcome) -> ComparisonResult:
    """
    Check every expected effect against a trace.

    An assertion passes when at least one effect of the same kind satisfies
    it; effects nobody asked about are ignored.  A trace that did not
    complete fails every assertion, and fails the comparison even when there
    are no assertions at all.

    Args:
        trace:    Output of simulate().
        expected: The test case's expect block.

    Returns:
        ComparisonResult with one AssertionResult per assertion, each carrying
        the same-kind observed effects for diffing.
    """
    assertions: list[AssertionResult] = []

    if trace.status != TraceStatus.COMPLETED:
        reason = DID_NOT_FIRE if trace.status == TraceStatus.TRIGGER_MISMATCH else ABORTED
        for kind, label, exp, _ in _expand(expected):
            assertions.append(AssertionResult(kind=kind, label=label, passed=False, reason=reason, expected=exp))
        logger.debug("Trace status %s; %d assertion(s) failed", trace.status.value, len(assertions))
        return ComparisonResult(passed=False, status=trace.status, assertions=assertions)

    for kind, label, exp, predicate in _expand(expected):
        observed = [e for e in trace.effects if e.type == kind.value]
        passed = any(predicate(e) for e in observed)
        assertions.append(AssertionResult(
            kind=kind,
            label=label,
            passed=passed,
            reason=None if passed else NOT_FOUND,
            expected=exp,
            observed=[e.model_dump() for e in observed],
        ))

    return ComparisonResult(
        passed=all(a.passed for a in assertions),
        status=trace.status,
        assertions=assertions,
    )
