from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from app.db.base import BaseModel, utcnow
from app.models.shared.enums import AssetCondition

class AssetAssignment(BaseModel):
    """One hand-over of an asset; open while ``returned_at`` is null"""
    __tablename__ = "asset_assignments"

    asset_id = Column(Integer, ForeignKey("assets.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    assigned_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    assigned_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    condition = Column(SQLEnum(AssetCondition), nullable=False)
    notes = Column(Text, nullable=True)

    returned_at = Column(DateTime(timezone=True), nullable=True)
    returned_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    return_condition = Column(SQLEnum(AssetCondition), nullable=True)
    return_notes = Column(Text, nullable=True)

    asset = relationship("Asset", back_populates="assignments")
    user = relationship("User", foreign_keys=[user_id])
