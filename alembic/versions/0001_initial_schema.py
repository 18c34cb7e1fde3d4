"""initial schema: users, applications, stages, stage templates, reminders

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(120), nullable=False),
        sa.Column('email', sa.String(320), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'stage_templates',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(120), nullable=False, unique=True),
        sa.Column('description', sa.String(512), nullable=True),
    )
    op.create_table(
        'template_stages',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('template_id', sa.Integer(), sa.ForeignKey('stage_templates.id', ondelete='CASCADE'), nullable=False),
        sa.Column('stage_name', sa.String(120), nullable=False),
        sa.Column('stage_order', sa.Integer(), nullable=False),
        sa.UniqueConstraint('template_id', 'stage_order', name='uq_template_stages_order'),
    )
    op.create_index('ix_template_stages_template_id', 'template_stages', ['template_id'])

    # current_stage_id gets its FK once stages exists
    op.create_table(
        'applications',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('company_name', sa.String(255), nullable=False),
        sa.Column('job_title', sa.String(255), nullable=False),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('application_date', sa.Date(), nullable=False),
        sa.Column('salary_min', sa.Float(), nullable=True),
        sa.Column('salary_max', sa.Float(), nullable=True),
        sa.Column('job_link', sa.String(2048), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('final_result', sa.String(16), nullable=False, server_default='pending'),
        sa.Column('current_stage_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_applications_user_id', 'applications', ['user_id'])
    op.create_index('ix_applications_application_date', 'applications', ['application_date'])
    op.create_index('ix_applications_final_result', 'applications', ['final_result'])

    op.create_table(
        'stages',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('application_id', sa.Integer(), sa.ForeignKey('applications.id', ondelete='CASCADE'), nullable=False),
        sa.Column('stage_name', sa.String(255), nullable=False),
        sa.Column('stage_order', sa.Integer(), nullable=False),
        sa.Column('feedback_notes', sa.Text(), nullable=True),
        sa.Column('result', sa.String(16), nullable=False, server_default='pending'),
        sa.Column('is_completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('application_id', 'stage_order', name='uq_stages_application_order'),
    )
    op.create_index('ix_stages_application_id', 'stages', ['application_id'])

    with op.batch_alter_table('applications') as batch:
        batch.create_foreign_key(
            'fk_applications_current_stage_id', 'stages', ['current_stage_id'], ['id'], ondelete='SET NULL'
        )

    op.create_table(
        'reminders',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('application_id', sa.Integer(), sa.ForeignKey('applications.id', ondelete='CASCADE'), nullable=False),
        sa.Column('reminder_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('message', sa.String(512), nullable=True),
        sa.Column('is_sent', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_reminders_application_id', 'reminders', ['application_id'])
    op.create_index('ix_reminders_reminder_date', 'reminders', ['reminder_date'])
    op.create_index('ix_reminders_is_sent', 'reminders', ['is_sent'])


def downgrade() -> None:
    op.drop_table('reminders')
    with op.batch_alter_table('applications') as batch:
        batch.drop_constraint('fk_applications_current_stage_id', type_='foreignkey')
    op.drop_table('stages')
    op.drop_table('applications')
    op.drop_table('template_stages')
    op.drop_table('stage_templates')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
