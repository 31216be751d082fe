"""baseline schema for companies, offers, requests, matches and deal status history

Revision ID: 20261016_0001
Revises:
Create Date: 2026-10-16 00:00:01
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261016_0001"
down_revision = None
branch_labels = None
depends_on = None

WAGON_TYPES = ("TANK", "HOPPER", "FLATCAR", "BOXCAR", "GONDOLA", "REFRIGERATOR", "PLATFORM")
CARGO_TYPES = ("COAL", "OIL", "GRAIN", "METAL", "CHEMICAL", "TIMBER", "CONTAINER", "BULK", "OTHER")
DEAL_STATUSES = ("PENDING", "NEGOTIATING", "ACCEPTED", "REJECTED", "COMPLETED", "CANCELLED")


def _enum(values: tuple[str, ...], name: str) -> sa.Enum:
    return sa.Enum(*values, name=name, native_enum=False, length=20)


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "companies",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("inn", sa.String(length=12), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_operator", sa.Boolean(), nullable=False),
        sa.Column("is_seeker", sa.Boolean(), nullable=False),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("inn"),
    )

    op.create_table(
        "offers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("wagon_type", _enum(WAGON_TYPES, "wagontype"), nullable=False),
        sa.Column("cargo_type", _enum(CARGO_TYPES, "cargotype"), nullable=False),
        sa.Column("wagon_count", sa.Integer(), nullable=False),
        sa.Column("departure_station", sa.String(length=100), nullable=False),
        sa.Column("departure_region", sa.String(length=100), nullable=False),
        sa.Column("arrival_station", sa.String(length=100), nullable=False),
        sa.Column("arrival_region", sa.String(length=100), nullable=False),
        sa.Column("available_from", sa.DateTime(timezone=True), nullable=False),
        sa.Column("available_until", sa.DateTime(timezone=True), nullable=False),
        sa.Column("price_per_wagon", sa.Float(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_archived", sa.Boolean(), nullable=False),
        *_audit_columns(),
        sa.CheckConstraint("available_from <= available_until", name="ck_offers_window"),
        sa.CheckConstraint("wagon_count >= 1", name="ck_offers_wagon_count"),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_offers_archived", "offers", ["is_archived"])
    op.create_index("idx_offers_company", "offers", ["company_id"])

    op.create_table(
        "requests",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("cargo_type", _enum(CARGO_TYPES, "cargotype"), nullable=False),
        sa.Column("wagon_type", _enum(WAGON_TYPES, "wagontype"), nullable=True),
        sa.Column("cargo_weight", sa.Float(), nullable=False),
        sa.Column("departure_station", sa.String(length=100), nullable=False),
        sa.Column("departure_region", sa.String(length=100), nullable=False),
        sa.Column("arrival_station", sa.String(length=100), nullable=False),
        sa.Column("arrival_region", sa.String(length=100), nullable=False),
        sa.Column("loading_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("required_by_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("max_price_per_wagon", sa.Float(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        *_audit_columns(),
        sa.CheckConstraint("required_by_date > loading_date", name="ck_requests_window"),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_requests_company", "requests", ["company_id"])

    op.create_table(
        "matches",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("offer_id", sa.Integer(), nullable=False),
        sa.Column("request_id", sa.Integer(), nullable=False),
        sa.Column("score", sa.Float(), nullable=False),
        sa.Column("metadata", sa.Text(), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["offer_id"], ["offers.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["request_id"], ["requests.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("offer_id", "request_id", name="uq_matches_offer_request"),
    )
    op.create_index("idx_matches_request_score", "matches", ["request_id", "score"])

    op.create_table(
        "deal_status_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("match_id", sa.Integer(), nullable=True),
        sa.Column("request_id", sa.Integer(), nullable=True),
        sa.Column("status", _enum(DEAL_STATUSES, "dealstatus"), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "(match_id IS NULL) <> (request_id IS NULL)",
            name="ck_deal_status_history_single_target",
        ),
        sa.ForeignKeyConstraint(["match_id"], ["matches.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["request_id"], ["requests.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_deal_status_history_match", "deal_status_history", ["match_id", "created_at"])
    op.create_index("idx_deal_status_history_request", "deal_status_history", ["request_id", "created_at"])


def downgrade() -> None:
    op.drop_index("idx_deal_status_history_request", table_name="deal_status_history")
    op.drop_index("idx_deal_status_history_match", table_name="deal_status_history")
    op.drop_table("deal_status_history")

    op.drop_index("idx_matches_request_score", table_name="matches")
    op.drop_table("matches")

    op.drop_index("idx_requests_company", table_name="requests")
    op.drop_table("requests")

    op.drop_index("idx_offers_company", table_name="offers")
    op.drop_index("idx_offers_archived", table_name="offers")
    op.drop_table("offers")

    op.drop_table("companies")
