# (c) Copyright Datacraft, 2026
"""Rule store: administration of department routing rules.

Rules are never deleted. Disabling a rule keeps the historical meaning of
routings that reference it.
"""
import logging

from registrar.core.config import Settings
from registrar.core.exceptions import InvalidTransition, ValidationError
from registrar.core.features.audit import ledger
from registrar.core.features.auth import ActorContext, RolePolicy
from registrar.core.repositories import UnitOfWorkFactory
from registrar.core.utils.tz import utc_now

from .evaluator import select_rule
from .schema import (
	MAX_PRIORITY,
	MIN_PRIORITY,
	RoutingRule,
	RuleConditions,
	RuleCreate,
	RuleUpdate,
)

logger = logging.getLogger(__name__)

# fields a PATCH may clear by sending null
NULLABLE_FIELDS = {"description"}


def validate_rule(rule: RoutingRule) -> None:
	"""Raises ValidationError for a malformed rule."""
	if not rule.name.strip():
		raise ValidationError("Rule name is required")
	if not rule.source_department.strip() or not rule.target_department.strip():
		raise ValidationError("Source and target departments are required")
	if rule.source_department == rule.target_department:
		raise ValidationError("Target department must differ from source department")
	if not MIN_PRIORITY <= rule.priority <= MAX_PRIORITY:
		raise ValidationError(
			f"Priority must be between {MIN_PRIORITY} and {MAX_PRIORITY}"
		)


def _clean_conditions(conditions: RuleConditions) -> RuleConditions:
	keywords: list[str] = []
	for keyword in conditions.keywords:
		keyword = keyword.strip()
		if keyword and keyword not in keywords:
			keywords.append(keyword)
	return conditions.model_copy(update={
		"title": (conditions.title or "").strip() or None,
		"reference": (conditions.reference or "").strip() or None,
		"keywords": keywords,
	})


class RuleStore:
	"""Create, edit, disable and dry-run routing rules."""

	def __init__(
		self,
		uow_factory: UnitOfWorkFactory,
		policy: RolePolicy,
		settings: Settings,
	):
		self.uow_factory = uow_factory
		self.policy = policy
		self.settings = settings

	async def list_rules(
		self,
		department: str | None = None,
		include_inactive: bool = False,
	) -> list[RoutingRule]:
		async with self.uow_factory() as uow:
			return await uow.rules.list_rules(department, include_inactive)

	async def active_rules_for(self, department: str) -> list[RoutingRule]:
		async with self.uow_factory() as uow:
			return await uow.rules.find_active_by_source_department(department)

	async def create_rule(self, actor: ActorContext, data: RuleCreate) -> RoutingRule:
		rule = RoutingRule(
			name=data.name.strip(),
			description=data.description,
			source_department=data.source_department.strip(),
			target_department=data.target_department.strip(),
			conditions=_clean_conditions(data.conditions),
			priority=data.priority,
			is_active=True,
			created_at=utc_now(),
			created_by=actor.actor_id,
		)
		validate_rule(rule)
		self.policy.require_rule_admin(actor, rule.source_department)

		async with self.uow_factory() as uow:
			rule = await uow.rules.save(rule)
			await uow.audit.append(ledger.new_entry(
				ledger.RULE_CREATED,
				ledger.ENTITY_RULE,
				rule.id,
				actor.actor_id,
				{
					"name": rule.name,
					"source_department": rule.source_department,
					"target_department": rule.target_department,
					"priority": rule.priority,
					"conditions": rule.conditions.model_dump(mode="json", exclude_none=True),
				},
			))
			await uow.commit()

		logger.info(f"Created routing rule {rule.id} ({rule.name}) by {actor.actor_id}")
		return rule

	async def update_rule(
		self,
		actor: ActorContext,
		rule_id: int,
		changes: RuleUpdate,
	) -> RoutingRule:
		update_data = changes.model_dump(exclude_unset=True)
		if changes.conditions is not None:
			update_data["conditions"] = _clean_conditions(changes.conditions)
		for field in ("name", "source_department", "target_department"):
			if update_data.get(field) is not None:
				update_data[field] = update_data[field].strip()
		if "description" in update_data:
			update_data["description"] = (update_data["description"] or "").strip() or None
		update_data = {
			k: v for k, v in update_data.items()
			if v is not None or k in NULLABLE_FIELDS
		}

		async with self.uow_factory() as uow:
			current = await uow.rules.load(rule_id)
			self.policy.require_rule_admin(actor, current.source_department)

			updated = current.model_copy(update={**update_data, "updated_at": utc_now()})
			validate_rule(updated)
			if updated.source_department != current.source_department:
				self.policy.require_rule_admin(actor, updated.source_department)

			changed = sorted(
				field for field in update_data
				if getattr(updated, field) != getattr(current, field)
			)
			updated = await uow.rules.save(updated)
			await uow.audit.append(ledger.new_entry(
				ledger.RULE_UPDATED,
				ledger.ENTITY_RULE,
				updated.id,
				actor.actor_id,
				{"changed": changed},
			))
			await uow.commit()

		logger.info(f"Updated routing rule {rule_id}: {', '.join(changed) or 'no changes'}")
		return updated

	async def set_rule_active(
		self,
		actor: ActorContext,
		rule_id: int,
		active: bool,
	) -> RoutingRule:
		"""Enable or disable a rule. Routings created from it are unaffected."""
		try:
			async with self.uow_factory() as uow:
				rule = await uow.rules.load(rule_id)
				self.policy.require_rule_admin(actor, rule.source_department)
				if rule.is_active == active:
					raise InvalidTransition(
						ledger.ENTITY_RULE,
						rule.id,
						"active" if rule.is_active else "disabled",
						"enable" if active else "disable",
					)

				rule = await uow.rules.save(
					rule.model_copy(update={"is_active": active, "updated_at": utc_now()})
				)
				await uow.audit.append(ledger.new_entry(
					ledger.RULE_ENABLED if active else ledger.RULE_DISABLED,
					ledger.ENTITY_RULE,
					rule.id,
					actor.actor_id,
					{"name": rule.name},
				))
				await uow.commit()
		except InvalidTransition as exc:
			await ledger.transition_denied(
				self.uow_factory, self.settings, actor.actor_id, exc
			)
			raise

		logger.info(f"Routing rule {rule_id} {'enabled' if active else 'disabled'}")
		return rule

	async def test_rules(self, letter_id: int) -> RoutingRule | None:
		"""Rule the evaluator would select for the letter right now; no side effects."""
		async with self.uow_factory() as uow:
			letter = await uow.letters.load(letter_id)
			rules = await uow.rules.find_active_by_source_department(letter.department)
		return select_rule(letter, letter.department, rules)
