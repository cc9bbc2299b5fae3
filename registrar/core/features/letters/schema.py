# (c) Copyright Datacraft, 2026
"""Letter schemas."""
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class LetterStatus(str, Enum):
	"""Verification status of a letter."""
	PENDING = "pending"
	VERIFIED = "verified"
	REJECTED = "rejected"


class Letter(BaseModel):
	"""A submitted document record."""
	id: int | None = None
	reference: str
	title: str
	content: str | None = None
	folder_id: int | None = None
	department: str
	status: LetterStatus = LetterStatus.PENDING
	requires_passcode: bool = False
	verification_code: str | None = None
	uploaded_by: str
	uploaded_at: datetime | None = None
	verified_by: str | None = None
	verified_at: datetime | None = None
	rejection_reason: str | None = None
	doc_metadata: dict = Field(default_factory=dict)

	model_config = ConfigDict(from_attributes=True)


class LetterSubmit(BaseModel):
	"""Submit letter request."""
	reference: str = Field(..., max_length=255)
	title: str = Field(..., max_length=500)
	content: str | None = None
	folder_id: int | None = None
	# defaults to the submitting actor's department
	department: str | None = Field(None, max_length=255)
	requires_passcode: bool = False
	doc_metadata: dict = Field(default_factory=dict)


class LetterInfo(BaseModel):
	"""Letter as exposed to callers; never carries the passcode."""
	id: int
	reference: str
	title: str
	department: str
	status: LetterStatus
	requires_passcode: bool
	uploaded_by: str
	uploaded_at: datetime | None = None

	model_config = ConfigDict(from_attributes=True)


class LetterSubmitted(BaseModel):
	"""Response to a submission.

	The passcode is disclosed only here, once, to the submitter.
	"""
	letter: LetterInfo
	verification_code: str | None = None


class LetterStatusInfo(BaseModel):
	"""Read-only status view of a letter."""
	id: int
	reference: str
	department: str
	status: LetterStatus
	verified_by: str | None = None
	verified_at: datetime | None = None
	rejection_reason: str | None = None
	active_routing_id: int | None = None


class VerifyRequest(BaseModel):
	passcode: str | None = None


class RejectRequest(BaseModel):
	reason: str


class VerificationResponse(BaseModel):
	"""Outcome of a successful verification."""
	letter: LetterInfo
	routed: bool
	routing_id: int | None = None
	to_department: str | None = None
	message: str
