from decimal import Decimal
from sqlalchemy import Column, Integer, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.db.base import BaseModel

class LeaveAllocation(BaseModel):
    __tablename__ = "leave_allocations"
    __table_args__ = (
        UniqueConstraint("user_id", "leave_type_id", "year", name="uq_leave_allocation_user_type_year"),
    )

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    leave_type_id = Column(Integer, ForeignKey("leave_types.id"), nullable=False, index=True)
    year = Column(Integer, nullable=False)
    allocated = Column(Numeric(5, 1), nullable=False, default=0)
    used = Column(Numeric(5, 1), nullable=False, default=0)
    carried_over = Column(Numeric(5, 1), nullable=False, default=0)
    adjusted = Column(Numeric(5, 1), nullable=False, default=0)

    user = relationship("User")
    leave_type = relationship("LeaveType", back_populates="allocations")

    @property
    def balance(self) -> Decimal:
        return (
            Decimal(self.allocated or 0)
            + Decimal(self.carried_over or 0)
            + Decimal(self.adjusted or 0)
            - Decimal(self.used or 0)
        )
