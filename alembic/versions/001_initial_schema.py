"""Initial schema: users, savings targets, activities, statistics, achievements.

activities.savings_target_id deliberately has no foreign key so the log
survives target deletion.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id UUID PRIMARY KEY,
            full_name VARCHAR(100) NOT NULL,
            email VARCHAR(320) UNIQUE NOT NULL,
            password_hash VARCHAR(256) NOT NULL,
            avatar TEXT,
            is_admin BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE UNIQUE INDEX IF NOT EXISTS idx_users_email_lower
        ON users(lower(email))
    """)

    # --- Savings targets ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS savings_targets (
            id UUID PRIMARY KEY,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            name VARCHAR(100) NOT NULL,
            target_amount NUMERIC(15, 2) NOT NULL CHECK (target_amount > 0),
            current_amount NUMERIC(15, 2) NOT NULL DEFAULT 0 CHECK (current_amount >= 0),
            icon VARCHAR(16) NOT NULL,
            icon_color VARCHAR(32) NOT NULL,
            target_date DATE,
            is_completed BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_savings_targets_user
        ON savings_targets(user_id)
    """)

    # --- Activities ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS activities (
            id BIGSERIAL PRIMARY KEY,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            savings_target_id UUID,
            activity_type VARCHAR(32) NOT NULL,
            title VARCHAR(256) NOT NULL,
            description TEXT,
            amount NUMERIC(15, 2) NOT NULL DEFAULT 0,
            icon VARCHAR(16) NOT NULL,
            icon_color VARCHAR(32) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_activities_user_created
        ON activities(user_id, created_at)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_activities_created
        ON activities(created_at)
    """)

    # --- User statistics ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_statistics (
            id BIGSERIAL PRIMARY KEY,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            total_saved NUMERIC(15, 2) NOT NULL DEFAULT 0,
            streak_days INTEGER NOT NULL DEFAULT 0,
            daily_average NUMERIC(15, 2) NOT NULL DEFAULT 0,
            achievements_count INTEGER NOT NULL DEFAULT 0,
            last_deposit_date DATE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT user_statistics_user_id_key UNIQUE (user_id)
        )
    """)

    # --- Achievements ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS achievements (
            id BIGSERIAL PRIMARY KEY,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            title VARCHAR(128) NOT NULL,
            description TEXT NOT NULL,
            icon VARCHAR(16) NOT NULL,
            icon_color VARCHAR(32) NOT NULL,
            earned_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT achievements_user_id_title_key UNIQUE (user_id, title)
        )
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS achievements CASCADE")
    op.execute("DROP TABLE IF EXISTS user_statistics CASCADE")
    op.execute("DROP TABLE IF EXISTS activities CASCADE")
    op.execute("DROP TABLE IF EXISTS savings_targets CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")
