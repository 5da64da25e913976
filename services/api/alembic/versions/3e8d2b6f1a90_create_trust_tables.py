"""create_trust_tables

Revision ID: 3e8d2b6f1a90
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3e8d2b6f1a90"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


verification_status = sa.Enum("PENDING", "VERIFIED", "REJECTED", "EXPIRED", name="verificationstatus")
listing_status = sa.Enum(
    "DRAFT", "PENDING_REVIEW", "ACTIVE", "PAUSED", "REJECTED", "ARCHIVED", name="listingstatus"
)
lead_status = sa.Enum("NEW", "VIEWED", "CONTACTED", "CONVERTED", "CLOSED", name="leadstatus")
review_rating = sa.Enum("EXCELLENT", "GOOD", "FAIR", "POOR", "VERY_POOR", name="reviewrating")
review_status = sa.Enum("PENDING", "SUBMITTED", "RESPONDED", "FLAGGED", name="reviewstatus")


def upgrade() -> None:
    op.create_table(
        "owners",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone_verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("business_verification_status", verification_status, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_owners_phone"), "owners", ["phone"], unique=False)
    op.create_index(op.f("ix_owners_email"), "owners", ["email"], unique=False)

    op.create_table(
        "listings",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("owner_id", sa.String(length=36), nullable=False),
        sa.Column("title_en", sa.String(length=200), nullable=False),
        sa.Column("title_ar", sa.String(length=200), nullable=True),
        sa.Column("description_en", sa.Text(), nullable=False),
        sa.Column("description_ar", sa.Text(), nullable=True),
        sa.Column("specifications_json", sa.Text(), nullable=True),
        sa.Column("image_count", sa.Integer(), nullable=False),
        sa.Column("status", listing_status, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["owner_id"], ["owners.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_listings_owner_id"), "listings", ["owner_id"], unique=False)
    op.create_index(op.f("ix_listings_status"), "listings", ["status"], unique=False)

    op.create_table(
        "leads",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("listing_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("status", lead_status, nullable=False),
        sa.Column("owner_responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["listing_id"], ["listings.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_leads_listing_id"), "leads", ["listing_id"], unique=False)
    op.create_index(op.f("ix_leads_created_at"), "leads", ["created_at"], unique=False)

    op.create_table(
        "review_requests",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("lead_id", sa.String(length=36), nullable=False),
        sa.Column("reviewer_phone", sa.String(length=32), nullable=True),
        sa.Column("reviewer_email", sa.String(length=255), nullable=True),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expired_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["lead_id"], ["leads.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    # Unique: the idempotency guarantee for concurrent request creation
    op.create_index(op.f("ix_review_requests_lead_id"), "review_requests", ["lead_id"], unique=True)
    op.create_index(op.f("ix_review_requests_reviewer_phone"), "review_requests", ["reviewer_phone"], unique=False)
    op.create_index(op.f("ix_review_requests_reviewer_email"), "review_requests", ["reviewer_email"], unique=False)
    op.create_index(op.f("ix_review_requests_sent_at"), "review_requests", ["sent_at"], unique=False)

    op.create_table(
        "owner_reviews",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("lead_id", sa.String(length=36), nullable=False),
        sa.Column("owner_id", sa.String(length=36), nullable=False),
        sa.Column("reviewer_id", sa.String(length=36), nullable=False),
        sa.Column("rating", review_rating, nullable=False),
        sa.Column("title", sa.String(length=100), nullable=True),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("status", review_status, nullable=False),
        sa.Column("flagged_reason", sa.Text(), nullable=True),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("response_time_hours", sa.Integer(), nullable=True),
        sa.Column("did_owner_respond", sa.Boolean(), nullable=False),
        sa.Column("owner_response", sa.Text(), nullable=True),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["lead_id"], ["leads.id"]),
        sa.ForeignKeyConstraint(["owner_id"], ["owners.id"]),
        sa.ForeignKeyConstraint(["reviewer_id"], ["owners.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_owner_reviews_lead_id"), "owner_reviews", ["lead_id"], unique=True)
    op.create_index(op.f("ix_owner_reviews_owner_id"), "owner_reviews", ["owner_id"], unique=False)
    op.create_index(op.f("ix_owner_reviews_reviewer_id"), "owner_reviews", ["reviewer_id"], unique=False)
    op.create_index(op.f("ix_owner_reviews_status"), "owner_reviews", ["status"], unique=False)
    op.create_index(op.f("ix_owner_reviews_submitted_at"), "owner_reviews", ["submitted_at"], unique=False)

    op.create_table(
        "listing_quality_scores",
        sa.Column("listing_id", sa.String(length=36), nullable=False),
        sa.Column("photo_score", sa.Integer(), nullable=False),
        sa.Column("description_score", sa.Integer(), nullable=False),
        sa.Column("specification_score", sa.Integer(), nullable=False),
        sa.Column("overall_score", sa.Integer(), nullable=False),
        sa.Column("calculated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["listing_id"], ["listings.id"]),
        sa.PrimaryKeyConstraint("listing_id"),
    )
    op.create_index(
        op.f("ix_listing_quality_scores_overall_score"),
        "listing_quality_scores",
        ["overall_score"],
        unique=False,
    )

    op.create_table(
        "owner_trust_metrics",
        sa.Column("owner_id", sa.String(length=36), nullable=False),
        sa.Column("trust_score", sa.Integer(), nullable=False),
        sa.Column("badges_json", sa.Text(), nullable=False),
        sa.Column("total_leads", sa.Integer(), nullable=False),
        sa.Column("responded_leads", sa.Integer(), nullable=False),
        sa.Column("response_rate", sa.Float(), nullable=False),
        sa.Column("avg_response_time_hours", sa.Float(), nullable=True),
        sa.Column("total_reviews", sa.Integer(), nullable=False),
        sa.Column("average_rating", sa.Float(), nullable=True),
        sa.Column("excellent_count", sa.Integer(), nullable=False),
        sa.Column("good_count", sa.Integer(), nullable=False),
        sa.Column("fair_count", sa.Integer(), nullable=False),
        sa.Column("poor_count", sa.Integer(), nullable=False),
        sa.Column("very_poor_count", sa.Integer(), nullable=False),
        sa.Column("total_listings", sa.Integer(), nullable=False),
        sa.Column("active_listings", sa.Integer(), nullable=False),
        sa.Column("avg_listing_quality", sa.Float(), nullable=True),
        sa.Column("last_calculated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["owner_id"], ["owners.id"]),
        sa.PrimaryKeyConstraint("owner_id"),
    )
    op.create_index(
        op.f("ix_owner_trust_metrics_trust_score"),
        "owner_trust_metrics",
        ["trust_score"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_owner_trust_metrics_trust_score"), table_name="owner_trust_metrics")
    op.drop_table("owner_trust_metrics")

    op.drop_index(op.f("ix_listing_quality_scores_overall_score"), table_name="listing_quality_scores")
    op.drop_table("listing_quality_scores")

    op.drop_index(op.f("ix_owner_reviews_submitted_at"), table_name="owner_reviews")
    op.drop_index(op.f("ix_owner_reviews_status"), table_name="owner_reviews")
    op.drop_index(op.f("ix_owner_reviews_reviewer_id"), table_name="owner_reviews")
    op.drop_index(op.f("ix_owner_reviews_owner_id"), table_name="owner_reviews")
    op.drop_index(op.f("ix_owner_reviews_lead_id"), table_name="owner_reviews")
    op.drop_table("owner_reviews")

    op.drop_index(op.f("ix_review_requests_sent_at"), table_name="review_requests")
    op.drop_index(op.f("ix_review_requests_reviewer_email"), table_name="review_requests")
    op.drop_index(op.f("ix_review_requests_reviewer_phone"), table_name="review_requests")
    op.drop_index(op.f("ix_review_requests_lead_id"), table_name="review_requests")
    op.drop_table("review_requests")

    op.drop_index(op.f("ix_leads_created_at"), table_name="leads")
    op.drop_index(op.f("ix_leads_listing_id"), table_name="leads")
    op.drop_table("leads")

    op.drop_index(op.f("ix_listings_status"), table_name="listings")
    op.drop_index(op.f("ix_listings_owner_id"), table_name="listings")
    op.drop_table("listings")

    op.drop_index(op.f("ix_owners_email"), table_name="owners")
    op.drop_index(op.f("ix_owners_phone"), table_name="owners")
    op.drop_table("owners")

    bind = op.get_bind()
    for enum_type in (review_status, review_rating, lead_status, listing_status, verification_status):
        enum_type.drop(bind, checkfirst=True)
