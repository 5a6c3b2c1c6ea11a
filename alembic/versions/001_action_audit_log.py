"""Action audit log for gateway-executed dashboard actions.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

from alembic import op


# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.execute("""
        CREATE TABLE action_audit_log (
            id          BIGSERIAL PRIMARY KEY,
            namespace   TEXT NOT NULL,
            action      TEXT NOT NULL,
            params      JSONB NOT NULL DEFAULT '{}'::jsonb,
            user_id     TEXT NOT NULL,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)

    op.execute("CREATE INDEX idx_action_audit_namespace_ts ON action_audit_log(namespace, created_at DESC);")
    op.execute("CREATE INDEX idx_action_audit_user_ts ON action_audit_log(user_id, created_at DESC);")

    # Written through system_conn(); not tenant-scoped, so no RLS
    op.execute("GRANT SELECT, INSERT ON action_audit_log TO composer_app;")
    op.execute("GRANT USAGE, SELECT ON SEQUENCE action_audit_log_id_seq TO composer_app;")


def downgrade():
    op.execute("DROP TABLE IF EXISTS action_audit_log CASCADE;")
