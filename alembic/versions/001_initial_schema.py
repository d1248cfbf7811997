"""Initial recruitment schema

Revision ID: 001_initial_schema
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _created_at() -> sa.Column:
    return sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())


def upgrade() -> None:
    """Create companies, users, departments, positions and candidates."""
    op.create_table(
        'companies',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_companies_name'),
    )
    op.create_index('ix_companies_name', 'companies', ['name'])

    op.create_table(
        'users',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('company_id', sa.BigInteger(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_company_id', 'users', ['company_id'])

    op.create_table(
        'departments',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('company_id', sa.BigInteger(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['company_id'], ['companies.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('company_id', 'name', name='uq_departments_company_name'),
    )
    op.create_index('ix_departments_company_id', 'departments', ['company_id'])

    op.create_table(
        'positions',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('education', sa.String(length=255), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('min_work_exp', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('qualification', sa.Text(), nullable=True),
        sa.Column('department_id', sa.BigInteger(), nullable=False),
        sa.Column('is_resolved', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('is_trash', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('is_archive', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('removed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('qualified_candidates', sa.Text(), nullable=True),
        sa.Column('uploaded_cv', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('filtered_cv', sa.Integer(), nullable=False, server_default='0'),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['department_id'], ['departments.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('department_id', 'name', name='uq_positions_department_name'),
    )
    op.create_index('ix_positions_department_id', 'positions', ['department_id'])

    op.create_table(
        'candidates',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('domicile', sa.String(length=255), nullable=True),
        sa.Column('position_id', sa.BigInteger(), nullable=False),
        sa.Column('cv_file', sa.String(length=512), nullable=False, server_default=''),
        sa.Column('cv_file_url', sa.String(length=1024), nullable=True),
        sa.Column('score', sa.Float(), nullable=False, server_default='0'),
        sa.Column('skills', sa.Text(), nullable=True),
        sa.Column('is_qualified', sa.Boolean(), nullable=False, server_default='false'),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['position_id'], ['positions.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('email', 'position_id', name='uq_candidates_email_position'),
    )
    op.create_index('ix_candidates_email', 'candidates', ['email'])
    op.create_index('ix_candidates_position_id', 'candidates', ['position_id'])


def downgrade() -> None:
    """Drop the recruitment schema."""
    op.drop_index('ix_candidates_position_id', table_name='candidates')
    op.drop_index('ix_candidates_email', table_name='candidates')
    op.drop_table('candidates')
    op.drop_index('ix_positions_department_id', table_name='positions')
    op.drop_table('positions')
    op.drop_index('ix_departments_company_id', table_name='departments')
    op.drop_table('departments')
    op.drop_index('ix_users_company_id', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    op.drop_index('ix_companies_name', table_name='companies')
    op.drop_table('companies')
