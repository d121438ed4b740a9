"""World-tagged schema with world isolation policies.

Every world-scoped table carries a nullable world_id (NULL = production).
Policies admit a row only when its world_id equals app.world_id, or when
app.bypass_world is on (seeding and cleanup via system_conn).

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

WORLD_TABLES = ("users", "artifacts", "chats", "messages", "suggestions")

WORLD_PREDICATE = """
    current_setting('app.bypass_world', true) = 'on'
    OR world_id IS NOT DISTINCT FROM NULLIF(current_setting('app.world_id', true), '')
"""


def upgrade():
    op.execute("""
        CREATE TABLE users (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            email TEXT NOT NULL,
            name TEXT,
            role TEXT DEFAULT 'hr-manager' CHECK (role IN ('hr-manager', 'admin', 'viewer')),
            created_at TIMESTAMPTZ DEFAULT now(),
            world_id TEXT,
            UNIQUE NULLS NOT DISTINCT (email, world_id)
        );
    """)

    op.execute("""
        CREATE TABLE artifacts (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            title TEXT NOT NULL,
            kind TEXT NOT NULL CHECK (kind IN ('text', 'code', 'sheet', 'image', 'site')),
            user_id UUID NOT NULL REFERENCES users(id),
            author_id UUID REFERENCES users(id),
            content_text TEXT,
            content_url TEXT,
            content_site_definition JSONB,
            summary TEXT,
            tags JSONB DEFAULT '[]'::jsonb,
            is_published BOOLEAN DEFAULT false,
            published_until TIMESTAMPTZ,
            created_at TIMESTAMPTZ DEFAULT now(),
            deleted_at TIMESTAMPTZ,
            world_id TEXT
        );
    """)

    op.execute("""
        CREATE TABLE chats (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            title TEXT NOT NULL,
            user_id UUID NOT NULL REFERENCES users(id),
            is_published BOOLEAN DEFAULT false,
            published_until TIMESTAMPTZ,
            created_at TIMESTAMPTZ DEFAULT now(),
            deleted_at TIMESTAMPTZ,
            world_id TEXT
        );
    """)

    op.execute("""
        CREATE TABLE messages (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            chat_id UUID NOT NULL REFERENCES chats(id),
            role TEXT NOT NULL,
            parts JSONB NOT NULL DEFAULT '[]'::jsonb,
            attachments JSONB NOT NULL DEFAULT '[]'::jsonb,
            created_at TIMESTAMPTZ DEFAULT now(),
            world_id TEXT
        );
    """)

    op.execute("""
        CREATE TABLE suggestions (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            document_id UUID NOT NULL REFERENCES artifacts(id),
            user_id UUID NOT NULL REFERENCES users(id),
            original_text TEXT,
            suggested_text TEXT,
            created_at TIMESTAMPTZ DEFAULT now(),
            world_id TEXT
        );
    """)

    for table in WORLD_TABLES:
        # Cleanup deletes by world; every lookup filters by it
        op.execute(f"CREATE INDEX idx_{table}_world_id ON {table}(world_id)")
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")
        op.execute(f"ALTER TABLE {table} FORCE ROW LEVEL SECURITY")
        op.execute(f"""
            CREATE POLICY {table}_world_isolation
            ON {table}
            FOR ALL
            USING ({WORLD_PREDICATE})
            WITH CHECK ({WORLD_PREDICATE});
        """)

    op.execute("CREATE INDEX idx_messages_chat_id ON messages(chat_id, created_at)")
    op.execute("CREATE INDEX idx_artifacts_user_id ON artifacts(user_id)")


def downgrade():
    for table in reversed(WORLD_TABLES):
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE")
