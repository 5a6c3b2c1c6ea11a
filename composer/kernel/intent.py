"""
Composer Kernel — Intent Parser

Turns a free-form edit instruction into a structured Intent using a fixed,
versioned table of pattern → value rules. Pure and deterministic: no model,
no state, same text in, same Intent out.

Rule semantics:
  action    first matching rule wins (add → remove → move → pin), else "unknown"
  targets   every matching rule contributes
  widgets   every matching rule contributes (one sentence may name several)
  metrics   every occurrence of a known metric, lower-cased, in text order
  viz       first matching rule wins
  position  first matching rule wins (top → bottom → left → right)

Swapping in a different parser only requires producing the same Intent shape;
the mutator never sees the text.
"""

from __future__ import annotations

import re

from composer.kernel.types import Intent

INTENT_RULES_VERSION = "1"

Rule = tuple[re.Pattern[str], str]


def _rules(*pairs: tuple[str, str]) -> tuple[Rule, ...]:
    return tuple((re.compile(pattern, re.IGNORECASE), value) for pattern, value in pairs)


ACTION_RULES = _rules(
    (r"add|create|new", "add"),
    (r"remove|delete", "remove"),
    (r"move|reorder", "move"),
    (r"pin|fix|lock", "pin"),
)

TARGET_RULES = _rules(
    (r"tab", "tab"),
)

WIDGET_RULES = _rules(
    (r"kpi|metric", "kpi"),
    (r"chart|graph", "chart"),
    (r"table|list", "table"),
    (r"button|action", "action"),
)

METRIC_PATTERN = re.compile(r"(reply rate|conversion|revenue|leads|campaigns|workflows)", re.IGNORECASE)

VIZ_RULES = _rules(
    (r"bar chart", "bar"),
    (r"line chart|trend", "line"),
    (r"pie chart|distribution", "pie"),
)

POSITION_RULES = _rules(
    (r"top|first", "top"),
    (r"bottom|last", "bottom"),
    (r"left", "left"),
    (r"right", "right"),
)


def _first(rules: tuple[Rule, ...], text: str) -> str | None:
    for pattern, value in rules:
        if pattern.search(text):
            return value
    return None


def _all(rules: tuple[Rule, ...], text: str) -> list[str]:
    return [value for pattern, value in rules if pattern.search(text)]


class IntentParser:
    """Rule-table parser. Subclass or replace to change the vocabulary."""

    version = INTENT_RULES_VERSION

    def parse(self, text: str) -> Intent:
        return Intent(
            action=_first(ACTION_RULES, text) or "unknown",
            targets=_all(TARGET_RULES, text),
            widgets=_all(WIDGET_RULES, text),
            metrics=[m.lower() for m in METRIC_PATTERN.findall(text)],
            viz=_first(VIZ_RULES, text),
            position=_first(POSITION_RULES, text),
        )


_default_parser = IntentParser()


def parse_intent(text: str) -> Intent:
    """Parse with the default rule table."""
    return _default_parser.parse(text)
