"""marketplace_baseline

Revision ID: 5c1e7a9d2b40
Revises: 
Create Date: 2026-10-18 09:12:41.118204

Creates the marketplace schema. Tables that already exist are left alone so
the migration can be applied to a database bootstrapped with init_db().
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '5c1e7a9d2b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ENUM_TYPES = {
    'user_role': ('STUDENT', 'COMPANY'),
    'campaign_status': ('ACTIVE', 'PAUSED', 'COMPLETED', 'EXPIRED'),
    'payment_status': ('PENDING', 'COMPLETED', 'FAILED', 'REFUNDED'),
    'internship_type': ('REMOTE', 'IN_OFFICE', 'HYBRID'),
    'application_status': ('PENDING', 'SHORTLISTED', 'ACCEPTED', 'REJECTED'),
    'subscription_status': ('ACTIVE', 'CANCELED', 'EXPIRED'),
    'plan_cycle': ('MONTHLY', 'YEARLY', 'FREE'),
}


def enum_column_type(name: str) -> postgresql.ENUM:
    """Column type for an enum created up front (payment_status is shared by two tables)."""
    return postgresql.ENUM(*ENUM_TYPES[name], name=name, create_type=False)


def table_exists(table_name: str) -> bool:
    """Check if a table exists in the database."""
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def upgrade() -> None:
    bind = op.get_bind()
    for name, values in ENUM_TYPES.items():
        sa.Enum(*values, name=name).create(bind, checkfirst=True)

    if not table_exists('companies'):
        op.create_table('companies',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('website', sa.String(), nullable=True),
            sa.Column('logo_url', sa.String(), nullable=True),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_companies_id'), 'companies', ['id'], unique=False)
        op.create_index(op.f('ix_companies_name'), 'companies', ['name'], unique=False)

    if not table_exists('users'):
        op.create_table('users',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('email', sa.String(), nullable=False),
            sa.Column('password_hash', sa.String(), nullable=False),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('role', enum_column_type('user_role'), nullable=False),
            sa.Column('company_id', sa.Integer(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='SET NULL'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
        op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
        op.create_index(op.f('ix_users_company_id'), 'users', ['company_id'], unique=False)

    if not table_exists('campaigns'):
        op.create_table('campaigns',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('company_id', sa.Integer(), nullable=False),
            sa.Column('title', sa.String(), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('budget', sa.Float(), nullable=False),
            sa.Column('status', enum_column_type('campaign_status'), nullable=False),
            sa.Column('start_date', sa.DateTime(), nullable=False),
            sa.Column('end_date', sa.DateTime(), nullable=False),
            sa.Column('max_internships', sa.Integer(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_campaigns_id'), 'campaigns', ['id'], unique=False)
        op.create_index(op.f('ix_campaigns_company_id'), 'campaigns', ['company_id'], unique=False)
        op.create_index(op.f('ix_campaigns_created_at'), 'campaigns', ['created_at'], unique=False)
        op.create_index('idx_campaign_company_status', 'campaigns', ['company_id', 'status'], unique=False)

    if not table_exists('campaign_payments'):
        op.create_table('campaign_payments',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('campaign_id', sa.Integer(), nullable=False),
            sa.Column('amount', sa.Float(), nullable=False),
            sa.Column('payment_method', sa.String(), nullable=False),
            sa.Column('transaction_id', sa.String(), nullable=True),
            sa.Column('status', enum_column_type('payment_status'), nullable=False),
            sa.Column('paid_at', sa.DateTime(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['campaign_id'], ['campaigns.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('campaign_id')
        )
        op.create_index(op.f('ix_campaign_payments_id'), 'campaign_payments', ['id'], unique=False)

    for label_table in ('skills', 'tags'):
        if not table_exists(label_table):
            op.create_table(label_table,
                sa.Column('id', sa.Integer(), nullable=False),
                sa.Column('name', sa.String(), nullable=False),
                sa.PrimaryKeyConstraint('id'),
                sa.UniqueConstraint('name')
            )
            op.create_index(op.f(f'ix_{label_table}_id'), label_table, ['id'], unique=False)

    if not table_exists('internships'):
        op.create_table('internships',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('company_id', sa.Integer(), nullable=False),
            sa.Column('campaign_id', sa.Integer(), nullable=False),
            sa.Column('title', sa.String(), nullable=False),
            sa.Column('description', sa.Text(), nullable=False),
            sa.Column('location', sa.String(), nullable=False),
            sa.Column('type', enum_column_type('internship_type'), nullable=False),
            sa.Column('stipend', sa.Integer(), nullable=True),
            sa.Column('duration', sa.String(), nullable=False),
            sa.Column('posted_at', sa.DateTime(), nullable=False),
            sa.Column('deadline', sa.DateTime(), nullable=False),
            sa.Column('is_active', sa.Boolean(), nullable=False),
            sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['campaign_id'], ['campaigns.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_internships_id'), 'internships', ['id'], unique=False)
        op.create_index(op.f('ix_internships_company_id'), 'internships', ['company_id'], unique=False)
        op.create_index(op.f('ix_internships_campaign_id'), 'internships', ['campaign_id'], unique=False)
        op.create_index(op.f('ix_internships_title'), 'internships', ['title'], unique=False)
        op.create_index(op.f('ix_internships_posted_at'), 'internships', ['posted_at'], unique=False)
        op.create_index(op.f('ix_internships_deadline'), 'internships', ['deadline'], unique=False)
        op.create_index('idx_internship_active_deadline', 'internships', ['is_active', 'deadline'], unique=False)

    if not table_exists('internship_skills'):
        op.create_table('internship_skills',
            sa.Column('internship_id', sa.Integer(), nullable=False),
            sa.Column('skill_id', sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(['internship_id'], ['internships.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['skill_id'], ['skills.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('internship_id', 'skill_id')
        )

    if not table_exists('internship_tags'):
        op.create_table('internship_tags',
            sa.Column('internship_id', sa.Integer(), nullable=False),
            sa.Column('tag_id', sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(['internship_id'], ['internships.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['tag_id'], ['tags.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('internship_id', 'tag_id')
        )

    if not table_exists('applications'):
        op.create_table('applications',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('internship_id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('cover_letter', sa.Text(), nullable=False),
            sa.Column('status', enum_column_type('application_status'), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['internship_id'], ['internships.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('internship_id', 'user_id', name='uq_application_internship_user')
        )
        op.create_index(op.f('ix_applications_id'), 'applications', ['id'], unique=False)
        op.create_index(op.f('ix_applications_internship_id'), 'applications', ['internship_id'], unique=False)
        op.create_index(op.f('ix_applications_user_id'), 'applications', ['user_id'], unique=False)
        op.create_index(op.f('ix_applications_status'), 'applications', ['status'], unique=False)
        op.create_index(op.f('ix_applications_created_at'), 'applications', ['created_at'], unique=False)
        op.create_index('idx_application_user_created', 'applications', ['user_id', 'created_at'], unique=False)

    if not table_exists('student_plans'):
        op.create_table('student_plans',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(), nullable=False),
            sa.Column('price', sa.Float(), nullable=False),
            sa.Column('billing_cycle', enum_column_type('plan_cycle'), nullable=False),
            sa.Column('features', sa.JSON(), nullable=False),
            sa.Column('max_applications_per_month', sa.Integer(), nullable=True),
            sa.Column('is_active', sa.Boolean(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('name')
        )
        op.create_index(op.f('ix_student_plans_id'), 'student_plans', ['id'], unique=False)

    if not table_exists('student_subscriptions'):
        op.create_table('student_subscriptions',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('plan_id', sa.Integer(), nullable=False),
            sa.Column('status', enum_column_type('subscription_status'), nullable=False),
            sa.Column('started_at', sa.DateTime(), nullable=False),
            sa.Column('ends_at', sa.DateTime(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['plan_id'], ['student_plans.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('user_id', 'plan_id', name='uq_subscription_user_plan')
        )
        op.create_index(op.f('ix_student_subscriptions_id'), 'student_subscriptions', ['id'], unique=False)
        op.create_index(op.f('ix_student_subscriptions_user_id'), 'student_subscriptions', ['user_id'], unique=False)
        op.create_index('idx_subscription_user_status', 'student_subscriptions', ['user_id', 'status', 'ends_at'], unique=False)

    if not table_exists('subscription_payments'):
        op.create_table('subscription_payments',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('subscription_id', sa.Integer(), nullable=False),
            sa.Column('amount', sa.Float(), nullable=False),
            sa.Column('payment_method', sa.String(), nullable=False),
            sa.Column('transaction_id', sa.String(), nullable=True),
            sa.Column('status', enum_column_type('payment_status'), nullable=False),
            sa.Column('paid_at', sa.DateTime(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['subscription_id'], ['student_subscriptions.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('subscription_id')
        )
        op.create_index(op.f('ix_subscription_payments_id'), 'subscription_payments', ['id'], unique=False)


def downgrade() -> None:
    """Drop every marketplace table (indexes go with them), then the enum types."""
    for table in (
        'subscription_payments',
        'student_subscriptions',
        'student_plans',
        'applications',
        'internship_tags',
        'internship_skills',
        'internships',
        'tags',
        'skills',
        'campaign_payments',
        'campaigns',
        'users',
        'companies',
    ):
        if table_exists(table):
            op.drop_table(table)

    bind = op.get_bind()
    for name, values in ENUM_TYPES.items():
        sa.Enum(*values, name=name).drop(bind, checkfirst=True)
