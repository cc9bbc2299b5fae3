# (c) Copyright Datacraft, 2026
"""
Routing rule evaluator.

Pure functions over their inputs: no I/O, no side effects. Given the same
letter and rule set, `select_rule` always returns the same rule.

Selection strategy:
1. Keep active rules of the source department whose conditions all hold
2. Pick the highest priority
3. Break priority ties with the lowest rule id (earliest created)
"""
from typing import Iterable

from registrar.core.features.letters.schema import Letter

from .schema import RoutingRule, RuleConditions


def _contains(haystack: str | None, needle: str) -> bool:
	return needle.casefold() in (haystack or "").casefold()


def matches_conditions(conditions: RuleConditions, letter: Letter) -> bool:
	"""Check that every configured condition holds; unset ones always do."""
	if conditions.title and not _contains(letter.title, conditions.title):
		return False

	if conditions.reference and not _contains(letter.reference, conditions.reference):
		return False

	for keyword in conditions.keywords:
		keyword = keyword.strip()
		if not keyword:
			continue
		if not (_contains(letter.title, keyword) or _contains(letter.content, keyword)):
			return False

	if conditions.status is not None and letter.status != conditions.status:
		return False

	return True


def _rank(rule: RoutingRule) -> tuple[int, int]:
	return (-rule.priority, rule.id)


def matching_rules(
	letter: Letter,
	source_department: str,
	active_rules: Iterable[RoutingRule],
) -> list[RoutingRule]:
	"""All applicable rules, best first."""
	candidates = [
		rule for rule in active_rules
		if rule.is_active
		and rule.source_department == source_department
		and matches_conditions(rule.conditions, letter)
	]
	return sorted(candidates, key=_rank)


def select_rule(
	letter: Letter,
	source_department: str,
	active_rules: Iterable[RoutingRule],
) -> RoutingRule | None:
	"""Return the rule that routes the letter, or None when nothing matches."""
	candidates = matching_rules(letter, source_department, active_rules)
	return candidates[0] if candidates else None
