"""Initial recruitment schema

Revision ID: 001_initial_recruitment_schema
Revises: 
Create Date: 2026-10-17 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_initial_recruitment_schema'
down_revision = None
branch_labels = None
depends_on = None


def _section_columns():
    return [
        sa.Column('personal_info', sa.JSON(), nullable=True),
        sa.Column('education', sa.JSON(), nullable=False),
        sa.Column('current_experience', sa.JSON(), nullable=True),
        sa.Column('previous_experience', sa.JSON(), nullable=False),
        sa.Column('training', sa.JSON(), nullable=False),
        sa.Column('languages', sa.JSON(), nullable=False),
        sa.Column('additional_info', sa.Text(), nullable=True),
    ]


def upgrade() -> None:
    """Create users, vacancy ledger, vacancies, profiles and applications."""
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='user'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table(
        'vacancynumbers',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('vacancy_number', sa.String(length=32), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='draft'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_vacancynumbers_vacancy_number', 'vacancynumbers', ['vacancy_number'], unique=True)

    op.create_table(
        'vacancies',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('vacancy_number', sa.String(length=32), nullable=False),
        sa.Column('position', sa.String(length=255), nullable=False),
        sa.Column('department', sa.String(length=100), nullable=True),
        sa.Column('place_of_work', sa.String(length=255), nullable=False),
        sa.Column('required_number', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('salary', sa.String(length=100), nullable=False),
        sa.Column('education', sa.Text(), nullable=False),
        sa.Column('experience', sa.Text(), nullable=False),
        sa.Column('purpose', sa.Text(), nullable=False),
        sa.Column('responsibilities', sa.Text(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='draft'),
        sa.Column('created_by', sa.String(length=36), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_vacancies_vacancy_number', 'vacancies', ['vacancy_number'], unique=True)
    op.create_index('ix_vacancies_status', 'vacancies', ['status'])
    op.create_index('idx_vacancies_status_created', 'vacancies', ['status', 'created_at'])

    op.create_table(
        'userProfiles',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        *_section_columns(),
        sa.Column('schema_version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('last_updated', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_userProfiles_user_id', 'userProfiles', ['user_id'], unique=True)

    op.create_table(
        'applications',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('vacancy_id', sa.String(length=36), nullable=False),
        sa.Column('vacancy_number', sa.String(length=32), nullable=True),
        sa.Column('position', sa.String(length=255), nullable=True),
        *_section_columns(),
        sa.Column('terms_agreement', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='draft'),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('schema_version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('last_updated', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['vacancy_id'], ['vacancies.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    # One live application per applicant and vacancy; withdrawn ones may repeat
    op.create_index(
        'uq_application_user_vacancy_active',
        'applications',
        ['user_id', 'vacancy_id'],
        unique=True,
        postgresql_where=sa.text("status <> 'withdrawn'"),
    )
    op.create_index('idx_application_user_updated', 'applications', ['user_id', 'last_updated'])
    op.create_index('idx_application_vacancy', 'applications', ['vacancy_id'])
    op.create_index('idx_application_status', 'applications', ['status'])


def downgrade() -> None:
    """Drop the recruitment schema."""
    op.drop_index('idx_application_status', table_name='applications')
    op.drop_index('idx_application_vacancy', table_name='applications')
    op.drop_index('idx_application_user_updated', table_name='applications')
    op.drop_index('uq_application_user_vacancy_active', table_name='applications')
    op.drop_table('applications')
    op.drop_index('ix_userProfiles_user_id', table_name='userProfiles')
    op.drop_table('userProfiles')
    op.drop_index('idx_vacancies_status_created', table_name='vacancies')
    op.drop_index('ix_vacancies_status', table_name='vacancies')
    op.drop_index('ix_vacancies_vacancy_number', table_name='vacancies')
    op.drop_table('vacancies')
    op.drop_index('ix_vacancynumbers_vacancy_number', table_name='vacancynumbers')
    op.drop_table('vacancynumbers')
    op.drop_index('ix_users_role', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
