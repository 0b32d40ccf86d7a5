"""workflow_tables

Revision ID: 0001_workflow_tables
Revises:
Create Date: 2026-10-19

Creates the placement workflow tables:
- stage_offers: Hospital offers with position accounting
- applications: Student applications to offers
- internships: Placements created from accepted applications
- logbook_entries, attendance, evaluations: Per-internship records
- notifications: Outbox written in the same transaction as each transition
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '0001_workflow_tables'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _base_columns():
    return [
        sa.Column('id', sa.UUID(), nullable=False, primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('version', sa.Integer(), server_default='0', nullable=False),
    ]


def upgrade() -> None:
    """Create workflow tables."""

    op.create_table(
        'stage_offers',
        *_base_columns(),
        sa.Column('hospital_id', sa.UUID(), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('positions', sa.Integer(), server_default='1', nullable=False),
        sa.Column('filled_positions', sa.Integer(), server_default='0', nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(32), server_default='published', nullable=False),
        sa.CheckConstraint('filled_positions <= positions', name='ck_stage_offers_capacity'),
    )
    op.create_index('ix_stage_offers_hospital_id', 'stage_offers', ['hospital_id'])
    op.create_index('ix_stage_offers_status', 'stage_offers', ['status'])

    op.create_table(
        'applications',
        *_base_columns(),
        sa.Column('student_id', sa.UUID(), nullable=False),
        sa.Column('offer_id', sa.UUID(), sa.ForeignKey('stage_offers.id'), nullable=False),
        sa.Column('cover_letter', sa.Text(), nullable=True),
        sa.Column('status', sa.String(32), server_default='pending', nullable=False),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('reviewed_by', sa.UUID(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('student_id', 'offer_id', name='uq_application_student_offer'),
    )
    op.create_index('ix_applications_student_id', 'applications', ['student_id'])
    op.create_index('ix_applications_offer_id', 'applications', ['offer_id'])
    op.create_index('ix_applications_status', 'applications', ['status'])

    op.create_table(
        'internships',
        *_base_columns(),
        sa.Column('student_id', sa.UUID(), nullable=False),
        sa.Column('hospital_id', sa.UUID(), nullable=False),
        sa.Column('application_id', sa.UUID(), sa.ForeignKey('applications.id'), nullable=True, unique=True),
        sa.Column('offer_id', sa.UUID(), sa.ForeignKey('stage_offers.id'), nullable=True),
        sa.Column('tutor_id', sa.UUID(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(32), server_default='upcoming', nullable=False),
        sa.Column('completed_hours', sa.Float(), server_default='0', nullable=False),
        sa.CheckConstraint('start_date < end_date', name='ck_internships_dates'),
    )
    op.create_index('ix_internships_student_id', 'internships', ['student_id'])
    op.create_index('ix_internships_hospital_id', 'internships', ['hospital_id'])
    op.create_index('ix_internships_offer_id', 'internships', ['offer_id'])
    op.create_index('ix_internships_tutor_id', 'internships', ['tutor_id'])
    op.create_index('ix_internships_status', 'internships', ['status'])
    op.create_index('ix_internships_start_date', 'internships', ['start_date'])
    op.create_index('ix_internships_end_date', 'internships', ['end_date'])

    op.create_table(
        'logbook_entries',
        *_base_columns(),
        sa.Column('internship_id', sa.UUID(), sa.ForeignKey('internships.id'), nullable=False),
        sa.Column('student_id', sa.UUID(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('title', sa.String(255), nullable=True),
        sa.Column('activities', sa.Text(), nullable=True),
        sa.Column('skills_learned', sa.Text(), nullable=True),
        sa.Column('reflections', sa.Text(), nullable=True),
        sa.Column('status', sa.String(32), server_default='draft', nullable=False),
        sa.Column('supervisor_comments', sa.Text(), nullable=True),
        sa.Column('reviewed_by', sa.UUID(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_logbook_entries_internship_id', 'logbook_entries', ['internship_id'])
    op.create_index('ix_logbook_entries_student_id', 'logbook_entries', ['student_id'])
    op.create_index('ix_logbook_entries_status', 'logbook_entries', ['status'])

    op.create_table(
        'attendance',
        *_base_columns(),
        sa.Column('internship_id', sa.UUID(), sa.ForeignKey('internships.id'), nullable=False),
        sa.Column('student_id', sa.UUID(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('check_in', sa.Time(), nullable=True),
        sa.Column('check_out', sa.Time(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(32), server_default='pending', nullable=False),
        sa.Column('hours_worked', sa.Float(), nullable=True),
        sa.Column('validated_by', sa.UUID(), nullable=True),
        sa.Column('validated_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('internship_id', 'date', name='uq_attendance_internship_date'),
    )
    op.create_index('ix_attendance_internship_id', 'attendance', ['internship_id'])
    op.create_index('ix_attendance_student_id', 'attendance', ['student_id'])
    op.create_index('ix_attendance_status', 'attendance', ['status'])

    op.create_table(
        'evaluations',
        *_base_columns(),
        sa.Column('internship_id', sa.UUID(), sa.ForeignKey('internships.id'), nullable=False),
        sa.Column('student_id', sa.UUID(), nullable=False),
        sa.Column('evaluator_id', sa.UUID(), nullable=False),
        sa.Column('type', sa.String(32), server_default='mid-term', nullable=False),
        sa.Column('technical_skills_score', sa.Float(), nullable=True),
        sa.Column('patient_relations_score', sa.Float(), nullable=True),
        sa.Column('teamwork_score', sa.Float(), nullable=True),
        sa.Column('professionalism_score', sa.Float(), nullable=True),
        sa.Column('overall_score', sa.Float(), nullable=True),
        sa.Column('feedback', sa.Text(), nullable=True),
        sa.Column('status', sa.String(32), server_default='draft', nullable=False),
    )
    op.create_index('ix_evaluations_internship_id', 'evaluations', ['internship_id'])
    op.create_index('ix_evaluations_student_id', 'evaluations', ['student_id'])
    op.create_index('ix_evaluations_evaluator_id', 'evaluations', ['evaluator_id'])
    op.create_index('ix_evaluations_status', 'evaluations', ['status'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.UUID(), nullable=False, primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('data', postgresql.JSONB(), nullable=True),
        sa.Column('is_read', sa.Boolean(), server_default='false', nullable=False),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])


def downgrade() -> None:
    """Drop workflow tables."""
    op.drop_index('ix_notifications_user_id', table_name='notifications')
    op.drop_table('notifications')
    op.drop_table('evaluations')
    op.drop_table('attendance')
    op.drop_table('logbook_entries')
    op.drop_table('internships')
    op.drop_table('applications')
    op.drop_table('stage_offers')
