"""
Export record model - one normalized customs shipment line.
"""
from sqlalchemy import Column, String, DateTime, Numeric, Date, Integer, UniqueConstraint, Index
from datetime import datetime
from tradeintel.db.database import Base


class ExportRecord(Base):
    __tablename__ = "exports"
    __table_args__ = (
        # Re-imported rows collapse on this tuple instead of raising
        UniqueConstraint(
            "declaration_id",
            "shipment_date",
            "product_description",
            "hs_code",
            "quantity",
            "fob_value",
            name="uq_exports_identity",
        ),
        Index("idx_exports_exporter", "exporter_name"),
        Index("idx_exports_consignee", "consignee_name"),
        Index("idx_exports_date", "shipment_date"),
        Index("idx_exports_month", "month_year"),
        Index("idx_exports_declaration", "declaration_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    declaration_id = Column(String, nullable=False)  # Shipping bill no. or synthesized AUTO- key

    exporter_name = Column(String, nullable=True)
    consignee_name = Column(String, nullable=True)
    product_description = Column(String, nullable=True)
    category = Column(String, nullable=False)  # "fruits", "vegetables"
    hs_code = Column(String, nullable=True)
    quantity = Column(Numeric(18, 3), default=0)
    unit = Column(String, default="KGS")
    fob_value = Column(Numeric(18, 2), default=0)
    fob_currency = Column(String, default="USD")
    port_of_loading = Column(String, nullable=True)
    port_of_discharge = Column(String, nullable=True)
    country_of_destination = Column(String, nullable=True)

    shipment_date = Column(Date, nullable=True)
    month_year = Column(String(7), nullable=True)  # YYYY-MM
    upload_batch = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
