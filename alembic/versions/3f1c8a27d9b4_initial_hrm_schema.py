"""initial hrm schema

Revision ID: 3f1c8a27d9b4
Revises:
Create Date: 2026-01-12 09:14:03.418227

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c8a27d9b4'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'hrm_people',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False, unique=True),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('role', sa.String(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_hrm_people_id', 'hrm_people', ['id'])

    op.create_table(
        'hrm_assignments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('marker_id', sa.Integer(), sa.ForeignKey('hrm_people.id'), nullable=False),
        sa.Column('subject_id', sa.Integer(), sa.ForeignKey('hrm_people.id'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_by_id', sa.Integer(), sa.ForeignKey('hrm_people.id'), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('marker_id', 'subject_id', name='uq_assignment_marker_subject'),
    )
    op.create_index('ix_hrm_assignments_id', 'hrm_assignments', ['id'])

    op.create_table(
        'hrm_criteria',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('key', sa.String(), nullable=False, unique=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('default_scale_max', sa.Integer(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_hrm_criteria_id', 'hrm_criteria', ['id'])

    op.create_table(
        'hrm_criteria_sets',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('subject_id', sa.Integer(), sa.ForeignKey('hrm_people.id'), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('active_from', sa.DateTime(timezone=True), nullable=False),
        sa.Column('active_to', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by_id', sa.Integer(), sa.ForeignKey('hrm_people.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('subject_id', 'version', name='uq_criteria_set_subject_version'),
    )
    op.create_index('ix_hrm_criteria_sets_id', 'hrm_criteria_sets', ['id'])
    op.create_index(
        'uq_criteria_set_one_active',
        'hrm_criteria_sets',
        ['subject_id'],
        unique=True,
        postgresql_where=sa.text('active_to IS NULL'),
        sqlite_where=sa.text('active_to IS NULL'),
    )

    op.create_table(
        'hrm_criteria_set_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('criteria_set_id', sa.Integer(), sa.ForeignKey('hrm_criteria_sets.id'), nullable=False),
        sa.Column('criterion_id', sa.Integer(), sa.ForeignKey('hrm_criteria.id'), nullable=False),
        sa.Column('weight', sa.Integer(), nullable=False),
        sa.Column('scale_max', sa.Integer(), nullable=False),
        sa.UniqueConstraint('criteria_set_id', 'criterion_id', name='uq_criteria_set_item'),
    )
    op.create_index('ix_hrm_criteria_set_items_id', 'hrm_criteria_set_items', ['id'])

    op.create_table(
        'hrm_weeks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('week_key', sa.String(10), nullable=False, unique=True),
        sa.Column('friday_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('unlocked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('unlocked_by_id', sa.Integer(), sa.ForeignKey('hrm_people.id'), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_hrm_weeks_id', 'hrm_weeks', ['id'])

    op.create_table(
        'hrm_submissions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('week_id', sa.Integer(), sa.ForeignKey('hrm_weeks.id'), nullable=False),
        sa.Column('marker_id', sa.Integer(), sa.ForeignKey('hrm_people.id'), nullable=False),
        sa.Column('subject_id', sa.Integer(), sa.ForeignKey('hrm_people.id'), nullable=False),
        sa.Column('criteria_set_id', sa.Integer(), sa.ForeignKey('hrm_criteria_sets.id'), nullable=False),
        sa.Column('total_score', sa.Float(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('week_id', 'marker_id', 'subject_id', name='uq_submission_week_marker_subject'),
    )
    op.create_index('ix_hrm_submissions_id', 'hrm_submissions', ['id'])

    op.create_table(
        'hrm_submission_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('submission_id', sa.Integer(), sa.ForeignKey('hrm_submissions.id'), nullable=False),
        sa.Column('criterion_id', sa.Integer(), sa.ForeignKey('hrm_criteria.id'), nullable=False),
        sa.Column('score_raw', sa.Float(), nullable=False),
    )
    op.create_index('ix_hrm_submission_items_id', 'hrm_submission_items', ['id'])

    op.create_table(
        'hrm_weekly_results',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('week_id', sa.Integer(), sa.ForeignKey('hrm_weeks.id'), nullable=False),
        sa.Column('subject_id', sa.Integer(), sa.ForeignKey('hrm_people.id'), nullable=False),
        sa.Column('weekly_avg_score', sa.Float(), nullable=False),
        sa.Column('expected_markers_count', sa.Integer(), nullable=False),
        sa.Column('submitted_markers_count', sa.Integer(), nullable=False),
        sa.Column('is_complete', sa.Boolean(), nullable=False),
        sa.Column('computed_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('week_id', 'subject_id', name='uq_weekly_result_week_subject'),
    )
    op.create_index('ix_hrm_weekly_results_id', 'hrm_weekly_results', ['id'])

    op.create_table(
        'hrm_marker_compliance',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('week_id', sa.Integer(), sa.ForeignKey('hrm_weeks.id'), nullable=False),
        sa.Column('marker_id', sa.Integer(), sa.ForeignKey('hrm_people.id'), nullable=False),
        sa.Column('expected_count', sa.Integer(), nullable=False),
        sa.Column('submitted_count', sa.Integer(), nullable=False),
        sa.Column('missed_count', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('computed_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('week_id', 'marker_id', name='uq_marker_compliance_week_marker'),
    )
    op.create_index('ix_hrm_marker_compliance_id', 'hrm_marker_compliance', ['id'])

    op.create_table(
        'hrm_months',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('month_key', sa.String(7), nullable=False, unique=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_hrm_months_id', 'hrm_months', ['id'])

    op.create_table(
        'hrm_monthly_results',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('subject_id', sa.Integer(), sa.ForeignKey('hrm_people.id'), nullable=False),
        sa.Column('month_id', sa.Integer(), sa.ForeignKey('hrm_months.id'), nullable=False),
        sa.Column('monthly_score', sa.Float(), nullable=False),
        sa.Column('tier', sa.String(), nullable=False),
        sa.Column('action_type', sa.String(), nullable=False),
        sa.Column('base_fine', sa.Float(), nullable=False),
        sa.Column('month_fine_count', sa.Integer(), nullable=False),
        sa.Column('final_fine', sa.Float(), nullable=False),
        sa.Column('gift_type', sa.String(), nullable=True),
        sa.Column('gift_amount', sa.Float(), nullable=False),
        sa.Column('weeks_count_used', sa.Integer(), nullable=False),
        sa.Column('expected_weeks_count', sa.Integer(), nullable=False),
        sa.Column('is_complete_month', sa.Boolean(), nullable=False),
        sa.Column('computed_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('subject_id', 'month_id', name='uq_monthly_result_subject_month'),
    )
    op.create_index('ix_hrm_monthly_results_id', 'hrm_monthly_results', ['id'])

    op.create_table(
        'hrm_fund_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('monthly_result_id', sa.Integer(), sa.ForeignKey('hrm_monthly_results.id'), nullable=False),
        sa.Column('month_id', sa.Integer(), sa.ForeignKey('hrm_months.id'), nullable=False),
        sa.Column('subject_id', sa.Integer(), sa.ForeignKey('hrm_people.id'), nullable=False),
        sa.Column('entry_type', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('expected_amount', sa.Float(), nullable=False),
        sa.Column('actual_amount', sa.Float(), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('marked_by_id', sa.Integer(), sa.ForeignKey('hrm_people.id'), nullable=True),
        sa.Column('marked_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('monthly_result_id', 'entry_type', name='uq_fund_log_result_type'),
    )
    op.create_index('ix_hrm_fund_logs_id', 'hrm_fund_logs', ['id'])

    op.create_table(
        'hrm_notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('person_id', sa.Integer(), sa.ForeignKey('hrm_people.id'), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('link', sa.String(), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_hrm_notifications_id', 'hrm_notifications', ['id'])

    op.create_table(
        'hrm_email_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('subject_id', sa.Integer(), sa.ForeignKey('hrm_people.id'), nullable=False),
        sa.Column('month_id', sa.Integer(), sa.ForeignKey('hrm_months.id'), nullable=False),
        sa.Column('email_type', sa.String(), nullable=False),
        sa.Column('delivery_status', sa.String(), nullable=False),
        sa.Column('recipient_email', sa.String(), nullable=True),
        sa.Column('subject_line', sa.String(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('sent_by_id', sa.Integer(), sa.ForeignKey('hrm_people.id'), nullable=True),
        sa.Column('sent_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_hrm_email_logs_id', 'hrm_email_logs', ['id'])


def downgrade() -> None:
    # reverse dependency order
    for table in (
        'hrm_email_logs',
        'hrm_notifications',
        'hrm_fund_logs',
        'hrm_monthly_results',
        'hrm_months',
        'hrm_marker_compliance',
        'hrm_weekly_results',
        'hrm_submission_items',
        'hrm_submissions',
        'hrm_weeks',
        'hrm_criteria_set_items',
        'hrm_criteria_sets',
        'hrm_criteria',
        'hrm_assignments',
        'hrm_people',
    ):
        op.drop_table(table)
