"""Create requests table

Revision ID: b41d7c0e92fa
Revises:
Create Date: 2026-10-12 09:20:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'b41d7c0e92fa'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'requests',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('location_input', sa.String(length=256), nullable=False),
        sa.Column('target_date', sa.Date(), nullable=False),
        sa.Column('time_of_day', sa.String(length=64), nullable=False),
        sa.Column('image_path', sa.String(length=1024), nullable=False),
        sa.Column('location_name', sa.String(length=256), nullable=True),
        sa.Column('country', sa.String(length=64), nullable=True),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('weather_condition', sa.String(length=64), nullable=True),
        sa.Column('weather_description', sa.String(length=256), nullable=True),
        sa.Column('temperature', sa.Float(), nullable=True),
        sa.Column('feels_like', sa.Float(), nullable=True),
        sa.Column('pressure', sa.Integer(), nullable=True),
        sa.Column('humidity', sa.Integer(), nullable=True),
        sa.Column('clouds', sa.Integer(), nullable=True),
        sa.Column('wind_speed', sa.Float(), nullable=True),
        sa.Column('visibility', sa.Integer(), nullable=True),
        sa.Column('precipitation', sa.String(length=64), nullable=True),
        sa.Column('prompt', sa.Text(), nullable=True),
        sa.Column('job_id', sa.String(length=128), nullable=True),
        sa.Column('result_image_path', sa.String(length=1024), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    with op.batch_alter_table('requests', schema=None) as batch_op:
        batch_op.create_index('ix_requests_user_id', ['user_id'], unique=False)
        batch_op.create_index('ix_requests_status', ['status'], unique=False)
        batch_op.create_index('ix_requests_job_id', ['job_id'], unique=False)


def downgrade():
    with op.batch_alter_table('requests', schema=None) as batch_op:
        batch_op.drop_index('ix_requests_job_id')
        batch_op.drop_index('ix_requests_status')
        batch_op.drop_index('ix_requests_user_id')

    op.drop_table('requests')
