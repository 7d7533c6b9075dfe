"""add quota triggers

Revision ID: 8b3e6d0f2a57
Revises: 4f1a2c7d9e03
Create Date: 2026-10-18 10:31:05.677190

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8b3e6d0f2a57'
down_revision: Union[str, None] = '4f1a2c7d9e03'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

QUOTA_TABLES = (
    ('tenant_members', 'user'),
    ('groups', 'group'),
    ('events', 'event'),
)


def upgrade() -> None:
    """Enforce tier limits at insert time on PostgreSQL."""
    # The services check quotas under a tenant row lock; this is the same
    # check at the storage layer for writers that bypass them.
    if op.get_bind().dialect.name != 'postgresql':
        return

    op.execute(
        """
        CREATE OR REPLACE FUNCTION enforce_tenant_quota() RETURNS trigger AS $$
        DECLARE
            tier_limit integer;
            current_count integer;
        BEGIN
            PERFORM 1 FROM tenants WHERE id = NEW.tenant_id FOR UPDATE;

            SELECT CASE TG_ARGV[0]
                       WHEN 'user' THEN pt.user_limit
                       WHEN 'group' THEN pt.group_limit
                       WHEN 'event' THEN pt.event_limit
                   END
              INTO tier_limit
              FROM tenants t
              JOIN price_tiers pt ON pt.id = t.price_tier_id
             WHERE t.id = NEW.tenant_id;

            EXECUTE format('SELECT count(*) FROM %I WHERE tenant_id = $1', TG_TABLE_NAME)
               INTO current_count
              USING NEW.tenant_id;

            IF current_count >= tier_limit THEN
                RAISE EXCEPTION '% limit of % reached for tenant %',
                    TG_ARGV[0], tier_limit, NEW.tenant_id
                    USING ERRCODE = 'check_violation';
            END IF;
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql
        """
    )
    for table, kind in QUOTA_TABLES:
        op.execute(
            f"CREATE TRIGGER {table}_quota BEFORE INSERT ON {table} "
            f"FOR EACH ROW EXECUTE FUNCTION enforce_tenant_quota('{kind}')"
        )


def downgrade() -> None:
    """Drop the quota triggers."""
    if op.get_bind().dialect.name != 'postgresql':
        return
    for table, _ in QUOTA_TABLES:
        op.execute(f"DROP TRIGGER IF EXISTS {table}_quota ON {table}")
    op.execute("DROP FUNCTION IF EXISTS enforce_tenant_quota()")
