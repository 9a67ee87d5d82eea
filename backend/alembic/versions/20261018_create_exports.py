"""Create exports table

Revision ID: 20261018_create_exports
Revises: 
Create Date: 2026-10-18 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261018_create_exports"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "exports",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("declaration_id", sa.String(), nullable=False),
        sa.Column("exporter_name", sa.String(), nullable=True),
        sa.Column("consignee_name", sa.String(), nullable=True),
        sa.Column("product_description", sa.String(), nullable=True),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("hs_code", sa.String(), nullable=True),
        sa.Column("quantity", sa.Numeric(18, 3), nullable=True),
        sa.Column("unit", sa.String(), nullable=True),
        sa.Column("fob_value", sa.Numeric(18, 2), nullable=True),
        sa.Column("fob_currency", sa.String(), nullable=True),
        sa.Column("port_of_loading", sa.String(), nullable=True),
        sa.Column("port_of_discharge", sa.String(), nullable=True),
        sa.Column("country_of_destination", sa.String(), nullable=True),
        sa.Column("shipment_date", sa.Date(), nullable=True),
        sa.Column("month_year", sa.String(7), nullable=True),
        sa.Column("upload_batch", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint(
            "declaration_id",
            "shipment_date",
            "product_description",
            "hs_code",
            "quantity",
            "fob_value",
            name="uq_exports_identity",
        ),
    )
    op.create_index("idx_exports_exporter", "exports", ["exporter_name"])
    op.create_index("idx_exports_consignee", "exports", ["consignee_name"])
    op.create_index("idx_exports_date", "exports", ["shipment_date"])
    op.create_index("idx_exports_month", "exports", ["month_year"])
    op.create_index("idx_exports_declaration", "exports", ["declaration_id"])


def downgrade():
    op.drop_index("idx_exports_declaration", table_name="exports")
    op.drop_index("idx_exports_month", table_name="exports")
    op.drop_index("idx_exports_date", table_name="exports")
    op.drop_index("idx_exports_consignee", table_name="exports")
    op.drop_index("idx_exports_exporter", table_name="exports")
    op.drop_table("exports")
