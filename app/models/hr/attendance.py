from sqlalchemy import Column, Integer, Date, DateTime, Text, Numeric, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.db.base import BaseModel

class Attendance(BaseModel):
    __tablename__ = 'attendances'
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_attendance_user_date"),
    )

    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    check_in = Column(DateTime(timezone=True), nullable=True)
    check_out = Column(DateTime(timezone=True), nullable=True)
    total_hours = Column(Numeric(5, 2), nullable=True)
    check_in_ip = Column(Text, nullable=True)
    check_out_ip = Column(Text, nullable=True)

    # Relationships
    user = relationship("User")
