"""Initial schema — clients, cars, upload tokens, upload sessions, scan audit.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _token_table(name: str, parent: str, fk_column: str) -> None:
    op.create_table(
        name,
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(fk_column, UUID(as_uuid=True), sa.ForeignKey(f"{parent}.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("token", sa.String(64), nullable=False, unique=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def _scan_table(name: str, parent: str, fk_column: str, token_table: str) -> None:
    op.create_table(
        name,
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(fk_column, UUID(as_uuid=True), sa.ForeignKey(f"{parent}.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("qr_token_id", UUID(as_uuid=True), sa.ForeignKey(f"{token_table}.id", ondelete="CASCADE"), nullable=True),
        sa.Column("document_type", sa.String(30), nullable=False),
        sa.Column("storage_path", sa.Text, nullable=False),
        sa.Column("public_url", sa.Text, nullable=False),
        sa.Column("mime_type", sa.String(100), nullable=True),
        sa.Column("size_bytes", sa.Integer, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def upgrade() -> None:
    op.create_table(
        "clients",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("first_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("last_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("email", sa.String(255), nullable=True, unique=True),
        sa.Column("gender", sa.String(20), nullable=True),
        sa.Column("nationality", sa.String(100), nullable=True),
        sa.Column("date_of_birth", sa.Date, nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("address", sa.Text, nullable=True),
        sa.Column("id_number", sa.String(50), nullable=True),
        sa.Column("id_issue_date", sa.Date, nullable=True),
        sa.Column("id_expiry_date", sa.Date, nullable=True),
        sa.Column("id_front_image_url", sa.Text, nullable=True),
        sa.Column("id_back_image_url", sa.Text, nullable=True),
        sa.Column("license_number", sa.String(50), nullable=True),
        sa.Column("license_issue_date", sa.Date, nullable=True),
        sa.Column("license_expiry_date", sa.Date, nullable=True),
        sa.Column("license_categories", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("license_front_image_url", sa.Text, nullable=True),
        sa.Column("license_back_image_url", sa.Text, nullable=True),
        sa.Column("emergency_contact_name", sa.String(200), nullable=True),
        sa.Column("emergency_contact_phone", sa.String(50), nullable=True),
        sa.Column("emergency_contact_relationship", sa.String(100), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        *_timestamps(),
    )

    op.create_table(
        "cars",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("brand", sa.String(100), nullable=False),
        sa.Column("model", sa.String(100), nullable=False),
        sa.Column("plate_number", sa.String(50), nullable=False),
        sa.Column("year", sa.Integer, nullable=True),
        sa.Column("price_per_day", sa.Float, nullable=True),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("features", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("image_url", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="available"),
        sa.Column("carte_grise_url", sa.Text, nullable=True),
        sa.Column("insurance_url", sa.Text, nullable=True),
        sa.Column("technical_inspection_url", sa.Text, nullable=True),
        sa.Column("rental_agreement_url", sa.Text, nullable=True),
        sa.Column("other_documents_url", sa.Text, nullable=True),
        sa.Column("carte_grise_issue_date", sa.Date, nullable=True),
        sa.Column("carte_grise_expiry_date", sa.Date, nullable=True),
        sa.Column("insurance_issue_date", sa.Date, nullable=True),
        sa.Column("insurance_expiry_date", sa.Date, nullable=True),
        sa.Column("technical_inspection_issue_date", sa.Date, nullable=True),
        sa.Column("technical_inspection_expiry_date", sa.Date, nullable=True),
        sa.Column("rental_agreement_start_date", sa.Date, nullable=True),
        sa.Column("rental_agreement_end_date", sa.Date, nullable=True),
        *_timestamps(),
    )

    _token_table("client_upload_tokens", "clients", "client_id")
    _token_table("car_upload_tokens", "cars", "car_id")

    op.create_table(
        "client_uploads",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("client_id", UUID(as_uuid=True), sa.ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("qr_token_id", UUID(as_uuid=True), sa.ForeignKey("client_upload_tokens.id", ondelete="CASCADE"), nullable=False),
        sa.Column("id_front_url", sa.Text, nullable=True),
        sa.Column("id_back_url", sa.Text, nullable=True),
        sa.Column("license_front_url", sa.Text, nullable=True),
        sa.Column("license_back_url", sa.Text, nullable=True),
        sa.Column("upload_status", sa.String(30), nullable=False, server_default="pending"),
        sa.Column("processing_status", sa.String(30), nullable=False, server_default="pending"),
        sa.Column("parsed_data", sa.JSON, nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("client_id", "qr_token_id"),
    )

    op.create_table(
        "car_uploads",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("car_id", UUID(as_uuid=True), sa.ForeignKey("cars.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("qr_token_id", UUID(as_uuid=True), sa.ForeignKey("car_upload_tokens.id", ondelete="CASCADE"), nullable=False),
        sa.Column("carte_grise_url", sa.Text, nullable=True),
        sa.Column("insurance_url", sa.Text, nullable=True),
        sa.Column("inspection_url", sa.Text, nullable=True),
        sa.Column("rental_agreement_url", sa.Text, nullable=True),
        sa.Column("other_url", sa.Text, nullable=True),
        sa.Column("upload_status", sa.String(30), nullable=False, server_default="pending"),
        sa.Column("processing_status", sa.String(30), nullable=False, server_default="pending"),
        sa.Column("parsed_data", sa.JSON, nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("car_id", "qr_token_id"),
    )

    _scan_table("client_document_scans", "clients", "client_id", "client_upload_tokens")
    _scan_table("car_document_scans", "cars", "car_id", "car_upload_tokens")


def downgrade() -> None:
    op.drop_table("car_document_scans")
    op.drop_table("client_document_scans")
    op.drop_table("car_uploads")
    op.drop_table("client_uploads")
    op.drop_table("car_upload_tokens")
    op.drop_table("client_upload_tokens")
    op.drop_table("cars")
    op.drop_table("clients")
