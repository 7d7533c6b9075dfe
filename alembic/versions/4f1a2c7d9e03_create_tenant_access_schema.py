"""create tenant access schema

Revision ID: 4f1a2c7d9e03
Revises:
Create Date: 2026-10-18 10:12:41.208317

"""
import uuid
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4f1a2c7d9e03'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id():
    return sa.Column('id', sa.String(36), primary_key=True)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _tenant_fk(index=True):
    return sa.Column(
        'tenant_id', sa.String(36), sa.ForeignKey('tenants.id', ondelete='CASCADE'),
        nullable=False, index=index,
    )


def upgrade() -> None:
    """Upgrade schema."""
    role = sa.Enum('owner', 'member', name='tenant_role')
    visibility = sa.Enum('public', 'private', name='event_visibility')

    price_tiers = op.create_table(
        'price_tiers',
        _id(),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('user_limit', sa.Integer(), nullable=False),
        sa.Column('group_limit', sa.Integer(), nullable=False),
        sa.Column('event_limit', sa.Integer(), nullable=False),
        sa.Column('price_monthly', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('price_yearly', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        'tenants',
        _id(),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('slug', sa.String(100), nullable=False, unique=True),
        sa.Column('price_tier_id', sa.String(36), sa.ForeignKey('price_tiers.id'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_tenant_slug', 'tenants', ['slug'])

    op.create_table(
        'tenant_members',
        _id(),
        _tenant_fk(index=False),
        sa.Column('user_id', sa.String(36), nullable=False, index=True),
        sa.Column('role', role, nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('tenant_id', 'user_id', name='uq_tenant_member'),
    )
    op.create_index('ix_tenant_member_role', 'tenant_members', ['tenant_id', 'role'])

    op.create_table(
        'invitations',
        _id(),
        _tenant_fk(index=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('role', role, nullable=False),
        sa.Column('token', sa.String(128), nullable=False, unique=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False, index=True),
        *_timestamps(),
    )
    op.create_index('ix_invitation_lookup', 'invitations', ['tenant_id', 'token'])

    op.create_table(
        'groups',
        _id(),
        _tenant_fk(),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        'group_members',
        _id(),
        sa.Column('group_id', sa.String(36), sa.ForeignKey('groups.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('user_id', sa.String(36), nullable=False, index=True),
        *_timestamps(),
        sa.UniqueConstraint('group_id', 'user_id', name='uq_group_member'),
    )
    op.create_table(
        'events',
        _id(),
        _tenant_fk(),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=True),
        sa.Column('end_time', sa.Time(), nullable=True),
        sa.Column('event_link', sa.String(500), nullable=True),
        sa.Column('visibility', visibility, nullable=False, server_default='private'),
        sa.Column('created_by', sa.String(36), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        'resources',
        _id(),
        _tenant_fk(),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('url', sa.String(500), nullable=False),
        sa.Column('icon', sa.String(100), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        'services',
        _id(),
        _tenant_fk(),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('default_start_time', sa.Time(), nullable=True),
        sa.Column('default_end_time', sa.Time(), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        'service_admins',
        _id(),
        sa.Column('service_id', sa.String(36), sa.ForeignKey('services.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('user_id', sa.String(36), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('service_id', 'user_id', name='uq_service_admin'),
    )
    op.create_table(
        'service_groups',
        _id(),
        sa.Column('service_id', sa.String(36), sa.ForeignKey('services.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('group_id', sa.String(36), sa.ForeignKey('groups.id', ondelete='CASCADE'), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('service_id', 'group_id', name='uq_service_group'),
    )
    op.create_table(
        'service_notes',
        _id(),
        _tenant_fk(index=False),
        sa.Column('service_id', sa.String(36), sa.ForeignKey('services.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('link', sa.String(500), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        'service_roles',
        _id(),
        _tenant_fk(index=False),
        sa.Column('service_id', sa.String(36), sa.ForeignKey('services.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        'service_events',
        _id(),
        _tenant_fk(index=False),
        sa.Column('service_id', sa.String(36), sa.ForeignKey('services.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('subtitle', sa.String(200), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        'service_event_owners',
        _id(),
        _tenant_fk(index=False),
        sa.Column('service_event_id', sa.String(36), sa.ForeignKey('service_events.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('service_role_id', sa.String(36), sa.ForeignKey('service_roles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        *_timestamps(),
    )

    # Default tier new tenants are placed on
    op.bulk_insert(
        price_tiers,
        [
            {
                'id': str(uuid.uuid4()),
                'name': 'Free',
                'description': 'Free plan',
                'user_limit': 10,
                'group_limit': 3,
                'event_limit': 20,
                'price_monthly': 0,
                'price_yearly': 0,
                'is_active': True,
            }
        ],
    )


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        'service_event_owners',
        'service_events',
        'service_roles',
        'service_notes',
        'service_groups',
        'service_admins',
        'services',
        'resources',
        'events',
        'group_members',
        'groups',
        'invitations',
        'tenant_members',
        'tenants',
        'price_tiers',
    ):
        op.drop_table(table)
    sa.Enum(name='event_visibility').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='tenant_role').drop(op.get_bind(), checkfirst=True)
