from sqlalchemy import Column, Integer, String, Text, Boolean, Date, DateTime, Numeric, JSON, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from app.db.base import BaseModel
from app.models.shared.enums import AssetCategory, AssetCondition, AssetStatus

class Asset(BaseModel):
    __tablename__ = "assets"

    asset_tag = Column(String(20), nullable=False, unique=True, index=True)
    name = Column(String(200), nullable=False)
    category = Column(SQLEnum(AssetCategory), nullable=False, index=True)
    brand = Column(String(100), nullable=True)
    model = Column(String(100), nullable=True)
    serial_number = Column(String(100), nullable=True, unique=True)
    description = Column(Text, nullable=True)
    purchase_date = Column(Date, nullable=True)
    purchase_price = Column(Numeric(12, 2), nullable=True)
    warranty_expiry = Column(Date, nullable=True)
    status = Column(SQLEnum(AssetStatus), nullable=False, default=AssetStatus.AVAILABLE, index=True)
    condition = Column(SQLEnum(AssetCondition), nullable=False, default=AssetCondition.NEW)
    location = Column(String(200), nullable=True)
    notes = Column(Text, nullable=True)
    specifications = Column(JSON, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    assigned_to_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    assigned_at = Column(DateTime(timezone=True), nullable=True)

    assigned_to = relationship("User")
    assignments = relationship(
        "AssetAssignment",
        back_populates="asset",
        order_by="AssetAssignment.assigned_at.desc()",
    )
