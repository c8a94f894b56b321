from sqlalchemy import Column, String, Boolean, Text, Numeric
from sqlalchemy.orm import relationship
from app.db.base import BaseModel

class LeaveType(BaseModel):
    __tablename__ = "leave_types"

    name = Column(String(100), nullable=False)
    code = Column(String(20), nullable=False, unique=True, index=True)
    description = Column(Text)
    default_days = Column(Numeric(5, 1), nullable=False, default=0)
    is_paid = Column(Boolean, default=True, nullable=False)
    is_carry_forward = Column(Boolean, default=False, nullable=False)
    max_carry_forward = Column(Numeric(5, 1), nullable=False, default=0)
    is_active = Column(Boolean, default=True, nullable=False)

    allocations = relationship("LeaveAllocation", back_populates="leave_type")
