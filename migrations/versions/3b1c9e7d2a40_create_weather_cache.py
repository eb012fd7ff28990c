"""Create weather cache table

Revision ID: 3b1c9e7d2a40
Revises:
Create Date: 2026-10-17 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3b1c9e7d2a40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'weather_cache',
        sa.Column('id', sa.BigInteger().with_variant(sa.Integer(), 'sqlite'), autoincrement=True, nullable=False),
        sa.Column('latitude', sa.Numeric(precision=10, scale=7), nullable=False),
        sa.Column('longitude', sa.Numeric(precision=10, scale=7), nullable=False),
        sa.Column('city', sa.String(length=255), nullable=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('text', sa.String(length=100), nullable=True),
        sa.Column('temp_min', sa.String(length=20), nullable=True),
        sa.Column('temp_max', sa.String(length=20), nullable=True),
        sa.Column('wind', sa.String(length=50), nullable=True),
        sa.Column('sunrise', sa.String(length=20), nullable=True),
        sa.Column('sunset', sa.String(length=20), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('latitude', 'longitude', 'date', name='uq_weather_cache_lat_lon_date'),
    )
    with op.batch_alter_table('weather_cache', schema=None) as batch_op:
        batch_op.create_index('ix_weather_cache_lat_lon', ['latitude', 'longitude'], unique=False)
        batch_op.create_index('ix_weather_cache_date', ['date'], unique=False)


def downgrade():
    with op.batch_alter_table('weather_cache', schema=None) as batch_op:
        batch_op.drop_index('ix_weather_cache_date')
        batch_op.drop_index('ix_weather_cache_lat_lon')

    op.drop_table('weather_cache')
