"""create survey tables

Revision ID: 5c2e9a1f7b30
Revises:
Create Date: 2026-10-18 09:12:44.210517

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from cough_survey.models.types import IntegerList

# revision identifiers, used by Alembic.
revision: str = "5c2e9a1f7b30"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

selection_enum = sa.Enum("cough", "throat-clear", "other", name="selection")


def upgrade() -> None:
    """Create snippets, participants, evaluation_sessions and responses."""
    op.create_table(
        "snippets",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("filename", sa.String(length=255), nullable=False),
        sa.Column("original_name", sa.String(length=255), nullable=False),
        sa.Column("mime_type", sa.String(length=100), nullable=False),
        sa.Column("duration_ms", sa.Integer(), nullable=False),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_snippets_id", "snippets", ["id"])
    op.create_index("ix_snippets_uploaded_at", "snippets", ["uploaded_at"])

    op.create_table(
        "participants",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("token", sa.String(length=64), nullable=False),
        sa.Column("label", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_participants_id", "participants", ["id"])
    op.create_index("ix_participants_token", "participants", ["token"], unique=True)

    op.create_table(
        "evaluation_sessions",
        sa.Column("participant_id", sa.Integer(), nullable=False),
        sa.Column("snippet_ids", IntegerList(), nullable=False),
        sa.Column("current_position", sa.Integer(), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("current_position >= 0", name="ck_sessions_position"),
        sa.ForeignKeyConstraint(
            ["participant_id"], ["participants.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("participant_id"),
    )

    op.create_table(
        "responses",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("participant_id", sa.Integer(), nullable=False),
        # No foreign key to snippets: responses outlive deleted snippets
        sa.Column("snippet_id", sa.Integer(), nullable=False),
        sa.Column("selection", selection_enum, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["participant_id"], ["participants.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "participant_id", "snippet_id", name="uq_responses_participant_snippet"
        ),
    )
    op.create_index("ix_responses_id", "responses", ["id"])
    op.create_index("ix_responses_participant_id", "responses", ["participant_id"])
    op.create_index("ix_responses_snippet_id", "responses", ["snippet_id"])
    op.create_index("ix_responses_created_at", "responses", ["created_at"])


def downgrade() -> None:
    """Drop all survey tables."""
    op.drop_index("ix_responses_created_at", table_name="responses")
    op.drop_index("ix_responses_snippet_id", table_name="responses")
    op.drop_index("ix_responses_participant_id", table_name="responses")
    op.drop_index("ix_responses_id", table_name="responses")
    op.drop_table("responses")
    op.drop_table("evaluation_sessions")
    op.drop_index("ix_participants_token", table_name="participants")
    op.drop_index("ix_participants_id", table_name="participants")
    op.drop_table("participants")
    op.drop_index("ix_snippets_uploaded_at", table_name="snippets")
    op.drop_index("ix_snippets_id", table_name="snippets")
    op.drop_table("snippets")
    if op.get_bind().dialect.name == "postgresql":
        selection_enum.drop(op.get_bind(), checkfirst=True)
