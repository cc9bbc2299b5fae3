# (c) Copyright Datacraft, 2026
"""Routing Pydantic schemas."""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from registrar.core.features.letters.schema import LetterStatus

MIN_PRIORITY = 0
MAX_PRIORITY = 10
DEFAULT_PRIORITY = 5


class RoutingStatus(str, Enum):
	"""Delivery status of a document routing."""
	PENDING = "pending"
	IN_TRANSIT = "in_transit"
	DELIVERED = "delivered"
	REJECTED = "rejected"

	@property
	def is_terminal(self) -> bool:
		return self in (RoutingStatus.DELIVERED, RoutingStatus.REJECTED)


ACTIVE_ROUTING_STATUSES = (RoutingStatus.PENDING, RoutingStatus.IN_TRANSIT)


class RuleConditions(BaseModel):
	"""Match conditions of a routing rule; unset fields always match."""
	title: str | None = None
	reference: str | None = None
	keywords: list[str] = Field(default_factory=list)
	status: LetterStatus | None = None

	@property
	def is_catch_all(self) -> bool:
		return (
			not self.title
			and not self.reference
			and not any(k.strip() for k in self.keywords)
			and self.status is None
		)


class RoutingRule(BaseModel):
	"""Department-owned routing policy."""
	id: int | None = None
	name: str
	description: str | None = None
	source_department: str
	target_department: str
	conditions: RuleConditions = Field(default_factory=RuleConditions)
	priority: int = DEFAULT_PRIORITY
	is_active: bool = True
	created_at: datetime | None = None
	created_by: str | None = None
	updated_at: datetime | None = None

	model_config = ConfigDict(from_attributes=True)


class RuleCreate(BaseModel):
	"""Schema for creating a routing rule."""
	name: str = Field(..., max_length=255)
	description: str | None = None
	source_department: str = Field(..., max_length=255)
	target_department: str = Field(..., max_length=255)
	conditions: RuleConditions = Field(default_factory=RuleConditions)
	priority: int = DEFAULT_PRIORITY


class RuleUpdate(BaseModel):
	"""Schema for updating a routing rule."""
	name: str | None = None
	description: str | None = None
	source_department: str | None = None
	target_department: str | None = None
	conditions: RuleConditions | None = None
	priority: int | None = None


class DocumentRouting(BaseModel):
	"""One delivery attempt of a letter between two departments."""
	id: int | None = None
	letter_id: int
	from_department: str
	to_department: str
	routing_rule_id: int | None = None
	status: RoutingStatus = RoutingStatus.PENDING
	routed_at: datetime | None = None
	delivered_at: datetime | None = None
	notes: str | None = None
	routed_by: str

	model_config = ConfigDict(from_attributes=True)

	@property
	def is_active(self) -> bool:
		return not self.status.is_terminal


@dataclass(frozen=True)
class NoRuleMatched:
	"""Routing outcome when no active rule matches a letter.

	Not an error: the letter stays verified and can be routed later.
	"""
	letter_id: int
	source_department: str
	rules_evaluated: int


class ManualRouteRequest(BaseModel):
	target_department: str
	notes: str | None = None


class AdvanceRequest(BaseModel):
	# status the client last saw; a repeated submission no longer matches it
	expected_status: RoutingStatus
	notes: str | None = None


class RejectRoutingRequest(BaseModel):
	notes: str


class RouteResponse(BaseModel):
	"""Response from a routing request."""
	matched: bool
	routing: DocumentRouting | None = None
	message: str


class TestRuleResponse(BaseModel):
	"""Rule the evaluator would select for a letter, without routing it."""
	matched: bool
	matching_rule: RoutingRule | None = None
