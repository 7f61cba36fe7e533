"""001 – Initial schema: organisation, vacation requests, quotas, notifications.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000+00:00
"""

from alembic import op

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ── Extensions ───────────────────────────────────────────────────────
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── 1. organizational_units ──────────────────────────────────────────
    op.execute("""
        CREATE TABLE organizational_units (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name        VARCHAR(150) NOT NULL,
            unit_type   VARCHAR(50) DEFAULT 'DEPARTMENT',
            parent_id   UUID REFERENCES organizational_units(id),
            manager_id  UUID,
            created_at  TIMESTAMPTZ DEFAULT NOW(),
            updated_at  TIMESTAMPTZ DEFAULT NOW()
        )
    """)

    # ── 2. users ─────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE users (
            id                      UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            login                   VARCHAR(100) UNIQUE NOT NULL,
            full_name               VARCHAR(255) NOT NULL,
            organizational_unit_id  UUID REFERENCES organizational_units(id),
            is_admin                BOOLEAN DEFAULT FALSE,
            is_manager              BOOLEAN DEFAULT FALSE,
            vacation_limit_default  INTEGER,
            created_at              TIMESTAMPTZ DEFAULT NOW(),
            updated_at              TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX idx_users_unit ON users(organizational_unit_id)")

    # Deferred FK: units ↔ users reference each other
    op.execute("""
        ALTER TABLE organizational_units
            ADD CONSTRAINT fk_unit_manager
            FOREIGN KEY (manager_id) REFERENCES users(id)
    """)

    # ── 3. vacation_limits ───────────────────────────────────────────────
    op.execute("""
        CREATE TABLE vacation_limits (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id     UUID NOT NULL REFERENCES users(id),
            year        INTEGER NOT NULL,
            total_days  INTEGER NOT NULL,
            used_days   INTEGER NOT NULL DEFAULT 0,
            created_at  TIMESTAMPTZ DEFAULT NOW(),
            updated_at  TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_vacation_limit_user_year UNIQUE (user_id, year),
            CONSTRAINT ck_vacation_limit_used_non_negative CHECK (used_days >= 0),
            CONSTRAINT ck_vacation_limit_total_non_negative CHECK (total_days >= 0)
        )
    """)

    # ── 4. vacation_requests ─────────────────────────────────────────────
    # status_id: 1 draft, 2 pending, 3 approved, 4 rejected, 5 cancelled
    op.execute("""
        CREATE TABLE vacation_requests (
            id                UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id           UUID NOT NULL REFERENCES users(id),
            year              INTEGER NOT NULL,
            status_id         SMALLINT NOT NULL DEFAULT 1,
            days_requested    INTEGER NOT NULL DEFAULT 0,
            comment           TEXT,
            reviewed_by       UUID REFERENCES users(id),
            reviewed_at       TIMESTAMPTZ,
            reviewer_remarks  TEXT,
            created_at        TIMESTAMPTZ DEFAULT NOW(),
            updated_at        TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute(
        "CREATE INDEX ix_vacation_requests_user_year ON vacation_requests(user_id, year)"
    )
    op.execute(
        "CREATE INDEX ix_vacation_requests_status ON vacation_requests(status_id)"
    )

    # ── 5. vacation_periods ──────────────────────────────────────────────
    op.execute("""
        CREATE TABLE vacation_periods (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            request_id  UUID NOT NULL REFERENCES vacation_requests(id) ON DELETE CASCADE,
            start_date  DATE NOT NULL,
            end_date    DATE NOT NULL,
            days_count  INTEGER NOT NULL,
            created_at  TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT ck_vacation_period_dates CHECK (end_date >= start_date)
        )
    """)
    op.execute(
        "CREATE INDEX idx_vacation_periods_request ON vacation_periods(request_id, start_date)"
    )

    # ── 6. notifications ─────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE notifications (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id     UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            type        VARCHAR(15) DEFAULT 'info',
            title       VARCHAR(200) NOT NULL,
            message     TEXT NOT NULL,
            entity_id   UUID,
            is_read     BOOLEAN DEFAULT FALSE,
            read_at     TIMESTAMPTZ,
            created_at  TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute(
        "CREATE INDEX ix_notifications_user_unread ON notifications(user_id, is_read)"
    )


def downgrade() -> None:
    # Drop tables in reverse dependency order
    tables = [
        "notifications",
        "vacation_periods",
        "vacation_requests",
        "vacation_limits",
    ]
    for t in tables:
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")

    # Drop deferred FK before dropping users / units
    op.execute(
        "ALTER TABLE organizational_units DROP CONSTRAINT IF EXISTS fk_unit_manager"
    )
    op.execute("DROP TABLE IF EXISTS users CASCADE")
    op.execute("DROP TABLE IF EXISTS organizational_units CASCADE")

    op.execute('DROP EXTENSION IF EXISTS "uuid-ossp"')
