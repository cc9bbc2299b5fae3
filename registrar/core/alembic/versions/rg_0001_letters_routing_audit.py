# (c) Copyright Datacraft, 2026
"""Letters, routing rules, document routings and audit logs.

Revision ID: rg_0001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = 'rg_0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONType = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def upgrade() -> None:
	# Letters
	op.create_table(
		'letters',
		sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
		sa.Column('reference', sa.String(255), nullable=False, unique=True),
		sa.Column('title', sa.String(500), nullable=False),
		sa.Column('content', sa.Text, nullable=True),
		sa.Column('folder_id', sa.Integer, nullable=True),
		sa.Column('department', sa.String(255), nullable=False),
		sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
		sa.Column('requires_passcode', sa.Boolean, server_default=sa.false()),
		sa.Column('verification_code', sa.String(64), nullable=True, unique=True),
		sa.Column('uploaded_by', sa.String(255), nullable=False),
		sa.Column('uploaded_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
		sa.Column('verified_by', sa.String(255), nullable=True),
		sa.Column('verified_at', sa.DateTime(timezone=True), nullable=True),
		sa.Column('rejection_reason', sa.Text, nullable=True),
		sa.Column('metadata', JSONType, nullable=True),
	)
	op.create_index('idx_letters_department_status', 'letters', ['department', 'status'])

	# Routing rules
	op.create_table(
		'routing_rules',
		sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
		sa.Column('name', sa.String(255), nullable=False),
		sa.Column('description', sa.Text, nullable=True),
		sa.Column('source_department', sa.String(255), nullable=False),
		sa.Column('target_department', sa.String(255), nullable=False),
		sa.Column('conditions', JSONType, nullable=False),
		sa.Column('priority', sa.Integer, nullable=False, server_default='5'),
		sa.Column('is_active', sa.Boolean, nullable=False, server_default=sa.true()),
		sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
		sa.Column('created_by', sa.String(255), nullable=True),
		sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
		sa.CheckConstraint('priority BETWEEN 0 AND 10', name='routing_rule_priority_range'),
		sa.CheckConstraint('source_department <> target_department', name='routing_rule_distinct_departments'),
	)
	op.create_index('idx_routing_rules_active', 'routing_rules', ['source_department', 'is_active', 'priority'])

	# Document routings
	op.create_table(
		'document_routings',
		sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
		sa.Column('letter_id', sa.Integer, sa.ForeignKey('letters.id', ondelete='CASCADE'), nullable=False),
		sa.Column('from_department', sa.String(255), nullable=False),
		sa.Column('to_department', sa.String(255), nullable=False),
		sa.Column('routing_rule_id', sa.Integer, sa.ForeignKey('routing_rules.id', ondelete='SET NULL'), nullable=True),
		sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
		sa.Column('routed_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
		sa.Column('delivered_at', sa.DateTime(timezone=True), nullable=True),
		sa.Column('notes', sa.Text, nullable=True),
		sa.Column('routed_by', sa.String(255), nullable=False),
		sa.CheckConstraint('from_department <> to_department', name='document_routing_distinct_departments'),
	)
	op.create_index('idx_document_routings_letter', 'document_routings', ['letter_id', 'status'])

	# Audit logs
	op.create_table(
		'audit_logs',
		sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
		sa.Column('action', sa.String(100), nullable=False),
		sa.Column('entity_type', sa.String(50), nullable=False),
		sa.Column('entity_id', sa.String(64), nullable=False),
		sa.Column('actor_id', sa.String(255), nullable=False),
		sa.Column('details', JSONType, nullable=False),
		sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
		sa.Column('checksum', sa.String(64), nullable=False),
	)
	op.create_index('idx_audit_logs_entity', 'audit_logs', ['entity_type', 'entity_id'])
	op.create_index('idx_audit_logs_timestamp', 'audit_logs', ['timestamp', 'id'])


def downgrade() -> None:
	op.drop_table('audit_logs')
	op.drop_table('document_routings')
	op.drop_table('routing_rules')
	op.drop_table('letters')
