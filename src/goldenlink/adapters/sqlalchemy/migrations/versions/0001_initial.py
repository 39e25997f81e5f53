"""Initial MDM schema: records, identifiers, links and merge audit.

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

_RESOURCE_KIND = ("PATIENT", "PRACTITIONER", "RELATED_PERSON", "PERSON")
_GENDER = ("MALE", "FEMALE", "OTHER", "UNKNOWN")


def _record_columns() -> list[sa.Column[object]]:
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "kind",
            sa.Enum(*_RESOURCE_KIND, name="resourcekind", native_enum=False),
            nullable=False,
        ),
        sa.Column("active", sa.Boolean(), nullable=False),
        sa.Column("names", sa.Text(), nullable=False),
        sa.Column("addresses", sa.Text(), nullable=False),
        sa.Column("telecom", sa.Text(), nullable=False),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column(
            "gender",
            sa.Enum(*_GENDER, name="administrativesex", native_enum=False),
            nullable=True,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "source_record",
        *_record_columns(),
        sa.Column("photos", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_source_record"),
    )

    op.create_table(
        "golden_record",
        *_record_columns(),
        sa.Column("photo", sa.Text(), nullable=True),
        sa.Column("tags", sa.Text(), nullable=False),
        sa.Column("person_links", sa.Text(), nullable=False),
        sa.Column("redirect_id", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_golden_record"),
    )

    op.create_table(
        "identifier",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("system", sa.String(), nullable=False),
        sa.Column("value", sa.String(), nullable=False),
        sa.Column(
            "use",
            sa.Enum(
                "USUAL", "OFFICIAL", "SECONDARY", "OLD", name="identifieruse", native_enum=False
            ),
            nullable=False,
        ),
        sa.Column(
            "owner_type",
            sa.Enum("SOURCE_RECORD", "GOLDEN_RECORD", name="ownertype", native_enum=False),
            nullable=False,
        ),
        sa.Column("owner_id", sa.Uuid(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_identifier"),
        sa.UniqueConstraint(
            "system", "value", "owner_type", "owner_id", name="uq_identifier_system"
        ),
    )
    op.create_index("ix_identifier_owner", "identifier", ["owner_type", "owner_id"])
    op.create_index("ix_identifier_system_value", "identifier", ["system", "value"])

    op.create_table(
        "mdm_link",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("golden_id", sa.Uuid(), nullable=False),
        sa.Column("source_id", sa.Uuid(), nullable=False),
        sa.Column(
            "match_result",
            sa.Enum(
                "MATCH",
                "POSSIBLE_MATCH",
                "NO_MATCH",
                "REDIRECT",
                name="matchresult",
                native_enum=False,
            ),
            nullable=False,
        ),
        sa.Column(
            "link_source",
            sa.Enum("AUTO", "MANUAL", name="linksource", native_enum=False),
            nullable=False,
        ),
        sa.Column(
            "assurance_level",
            sa.Enum(
                "LEVEL1", "LEVEL2", "LEVEL3", "LEVEL4", name="assurancelevel", native_enum=False
            ),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_mdm_link"),
    )
    op.create_index("ix_mdm_link_golden", "mdm_link", ["golden_id"])
    op.create_index("ix_mdm_link_source", "mdm_link", ["source_id"])
    op.create_index(
        "uq_mdm_link_pair",
        "mdm_link",
        ["golden_id", "source_id"],
        unique=True,
        sqlite_where=sa.text("match_result != 'REDIRECT'"),
        postgresql_where=sa.text("match_result != 'REDIRECT'"),
    )

    op.create_table(
        "golden_record_merge",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("from_id", sa.Uuid(), nullable=False),
        sa.Column("to_id", sa.Uuid(), nullable=False),
        sa.Column("repointed_links", sa.Integer(), nullable=False),
        sa.Column("copied_identifiers", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_golden_record_merge"),
    )
    op.create_index("ix_golden_record_merge_from", "golden_record_merge", ["from_id"])
    op.create_index("ix_golden_record_merge_to", "golden_record_merge", ["to_id"])


def downgrade() -> None:
    op.drop_table("golden_record_merge")
    op.drop_index("uq_mdm_link_pair", table_name="mdm_link")
    op.drop_table("mdm_link")
    op.drop_table("identifier")
    op.drop_table("golden_record")
    op.drop_table("source_record")
