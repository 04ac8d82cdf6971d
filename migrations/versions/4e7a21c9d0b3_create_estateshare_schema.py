"""Create users, properties, investments, reviews, tokenomics and property_stats

Revision ID: 4e7a21c9d0b3
Revises: 
Create Date: 2026-10-19 10:12:41.118302

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4e7a21c9d0b3'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=120), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'properties',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('owner_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('category', sa.JSON(), nullable=True),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('total_investment_goal', sa.Numeric(precision=14, scale=2), nullable=True),
        sa.Column('minimum_investment_amount', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('price_to_rent_ratio', sa.Numeric(precision=8, scale=2), nullable=True),
        sa.Column('listing_start', sa.DateTime(), nullable=True),
        sa.Column('listing_end', sa.DateTime(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['owner_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_properties_owner_id', 'properties', ['owner_id'], unique=False)

    op.create_table(
        'investments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('investor_id', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('date', sa.DateTime(), nullable=False),
        sa.Column('shares_assigned', sa.Integer(), nullable=False),
        sa.Column('estimated_returns', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('property_owner', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['investor_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_investments_property_id', 'investments', ['property_id'], unique=False)
    op.create_index('ix_investments_investor_id', 'investments', ['investor_id'], unique=False)
    op.create_index('ix_investments_status', 'investments', ['status'], unique=False)

    op.create_table(
        'reviews',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('reviewer_id', sa.Integer(), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['reviewer_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('property_id', 'reviewer_id', name='uix_review_property_reviewer')
    )
    op.create_index('ix_reviews_property_id', 'reviews', ['property_id'], unique=False)
    op.create_index('ix_reviews_reviewer_id', 'reviews', ['reviewer_id'], unique=False)

    op.create_table(
        'tokenomics',
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('total_token_supply', sa.Integer(), nullable=True),
        sa.Column('remaining_tokens', sa.Integer(), nullable=True),
        sa.Column('token_price', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('team_percent', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('advisors_percent', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('investors_percent', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('other_percent', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('distribution_description', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('property_id')
    )

    # Derived cache; rebuildable with `flask stats rebuild`
    op.create_table(
        'property_stats',
        sa.Column('property_id', sa.Integer(), nullable=False),
        sa.Column('yield', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('total_investment_amount', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('total_estimated_returns', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column('number_of_investors', sa.Integer(), nullable=False),
        sa.Column('overall_rating', sa.Float(), nullable=False),
        sa.Column('rating_count', sa.Integer(), nullable=False),
        sa.Column('visit_count', sa.Integer(), nullable=False),
        sa.Column('last_calculated', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('property_id')
    )


def downgrade():
    op.drop_table('property_stats')
    op.drop_table('tokenomics')
    op.drop_index('ix_reviews_reviewer_id', table_name='reviews')
    op.drop_index('ix_reviews_property_id', table_name='reviews')
    op.drop_table('reviews')
    op.drop_index('ix_investments_status', table_name='investments')
    op.drop_index('ix_investments_investor_id', table_name='investments')
    op.drop_index('ix_investments_property_id', table_name='investments')
    op.drop_table('investments')
    op.drop_index('ix_properties_owner_id', table_name='properties')
    op.drop_table('properties')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
