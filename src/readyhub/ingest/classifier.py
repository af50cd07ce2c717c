"""Filename → classification rule resolution."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from readyhub.ingest.rules import RULES, ClassificationRule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassifiedFile:
    """A source file paired with the rule it resolved to."""

    name: str
    content: str
    rule: ClassificationRule


class Classifier:
    """Resolve filenames against an ordered rule table.

    The first rule whose match token occurs in the filename and none of
    whose exclude tokens do, wins. A rule voided by an exclude token does
    not stop the scan; later rules are still tried. ``priority`` plays no
    part in matching.
    """

    def __init__(self, rules: Sequence[ClassificationRule] = RULES) -> None:
        seen: dict[int, ClassificationRule] = {}
        for rule in rules:
            if rule.priority in seen:
                raise ValueError(
                    f"Duplicate priority {rule.priority}: "
                    f"{seen[rule.priority].match_token!r} and {rule.match_token!r}"
                )
            seen[rule.priority] = rule
        self._rules = tuple(rules)

    @property
    def rules(self) -> tuple[ClassificationRule, ...]:
        return self._rules

    def classify(self, filename: str) -> ClassificationRule | None:
        """Return the matching rule for *filename*, or None if no rule applies."""
        for rule in self._rules:
            if rule.match_token not in filename:
                continue
            if any(token in filename for token in rule.exclude_tokens):
                logger.debug(
                    "Rule %r excluded for %s; continuing scan", rule.match_token, filename
                )
                continue
            return rule
        logger.info("No classification rule matches %s — skipped", filename)
        return None


# Shared instance over the built-in rule table.
DEFAULT_CLASSIFIER = Classifier()


def classify(filename: str) -> ClassificationRule | None:
    """Classify *filename* against the built-in rule table."""
    return DEFAULT_CLASSIFIER.classify(filename)
