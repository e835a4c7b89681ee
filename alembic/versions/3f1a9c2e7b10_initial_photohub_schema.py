"""initial photohub schema

Revision ID: 3f1a9c2e7b10
Revises:
Create Date: 2026-10-19 09:12:44.118203

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '3f1a9c2e7b10'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

user_role = sa.Enum("ENTERPRISE", "CLIENT", name="userrole")
project_status = sa.Enum("DRAFT", "ACTIVE", "COMPLETED", "ARCHIVED", name="projectstatus")
accessibility = sa.Enum("VIEW_ONLY", "EDIT", "ADMIN", name="accessibility")
invite_type = sa.Enum("PROJECT_INVITE", "PROJECT_INVITE_AND_REGISTER", name="emailinvitetype")
invite_status = sa.Enum("PENDING", "ACCEPTED", name="emailinvitestatus")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def _soft_delete() -> list[sa.Column]:
    return [
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("deleted_by", sa.Uuid(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "tenants",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(120), nullable=False),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_tenants_slug", "tenants", ["slug"], unique=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone_number", sa.String(50), nullable=True),
        sa.Column("password_hash", sa.String(), nullable=True),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "user_profiles",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_user_profiles_user_id", "user_profiles", ["user_id"])
    op.create_index("ix_user_profiles_tenant_id", "user_profiles", ["tenant_id"])

    op.create_table(
        "projects",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("project_uuid", sa.String(36), nullable=False, unique=True),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("event_date", sa.DateTime(), nullable=True),
        sa.Column("status", project_status, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_by", sa.Uuid(), sa.ForeignKey("user_profiles.id"), nullable=False),
        sa.Column("updated_by", sa.Uuid(), nullable=True),
        *_soft_delete(),
        *_timestamps(),
    )
    op.create_index("ix_projects_tenant_id", "projects", ["tenant_id"])
    op.create_index("ix_projects_deleted_at", "projects", ["deleted_at"])

    op.create_table(
        "project_user_profiles",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("user_profile_id", sa.Uuid(), sa.ForeignKey("user_profiles.id"), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("accessibility", accessibility, nullable=False),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("project_id", "user_profile_id", name="uq_project_user_profile"),
    )
    op.create_index("ix_project_user_profiles_project_id", "project_user_profiles", ["project_id"])
    op.create_index(
        "ix_project_user_profiles_user_profile_id", "project_user_profiles", ["user_profile_id"],
    )
    op.create_index("ix_project_user_profiles_tenant_id", "project_user_profiles", ["tenant_id"])

    op.create_table(
        "albums",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("cover_image", sa.String(2048), nullable=True),
        sa.Column("created_by", sa.Uuid(), sa.ForeignKey("user_profiles.id"), nullable=False),
        sa.Column("updated_by", sa.Uuid(), nullable=True),
        *_soft_delete(),
        *_timestamps(),
    )
    op.create_index("ix_albums_project_id", "albums", ["project_id"])
    op.create_index("ix_albums_tenant_id", "albums", ["tenant_id"])
    op.create_index("ix_albums_deleted_at", "albums", ["deleted_at"])

    op.create_table(
        "photos",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("album_id", sa.Uuid(), sa.ForeignKey("albums.id"), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("storage_key", sa.String(1024), nullable=False, unique=True),
        sa.Column("url", sa.String(2048), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False),
        sa.Column("mime_type", sa.String(100), nullable=False),
        sa.Column("width", sa.Integer(), nullable=True),
        sa.Column("height", sa.Integer(), nullable=True),
        sa.Column("created_by", sa.Uuid(), sa.ForeignKey("user_profiles.id"), nullable=False),
        *_soft_delete(),
        *_timestamps(),
    )
    op.create_index("ix_photos_album_id", "photos", ["album_id"])
    op.create_index("ix_photos_tenant_id", "photos", ["tenant_id"])
    op.create_index("ix_photos_deleted_at", "photos", ["deleted_at"])

    op.create_table(
        "email_invites",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("token", sa.String(128), nullable=False),
        sa.Column("type", invite_type, nullable=False),
        sa.Column("status", invite_status, nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("details", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("invite_link", sa.String(2048), nullable=False),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_email_invites_email", "email_invites", ["email"])
    op.create_index("ix_email_invites_project_id", "email_invites", ["project_id"])
    op.create_index("ix_email_invites_token", "email_invites", ["token"], unique=True)

    op.create_table(
        "refresh_tokens",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("token_hash", sa.String(64), nullable=False),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("user_profile_id", sa.Uuid(), sa.ForeignKey("user_profiles.id"), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_refresh_tokens_token_hash", "refresh_tokens", ["token_hash"], unique=True)
    op.create_index("ix_refresh_tokens_user_id", "refresh_tokens", ["user_id"])


def downgrade() -> None:
    op.drop_table("refresh_tokens")
    op.drop_table("email_invites")
    op.drop_table("photos")
    op.drop_table("albums")
    op.drop_table("project_user_profiles")
    op.drop_table("projects")
    op.drop_table("user_profiles")
    op.drop_table("users")
    op.drop_table("tenants")
    for enum in (invite_status, invite_type, accessibility, project_status, user_role):
        enum.drop(op.get_bind(), checkfirst=True)
