from sqlalchemy import Column, Integer, String, Boolean, Text, ForeignKey
from sqlalchemy.orm import relationship
from app.db.base import BaseModel

class Department(BaseModel):
    __tablename__ = 'departments'

    name = Column(String(100), nullable=False)
    code = Column(String(20), nullable=False, unique=True, index=True)
    description = Column(Text)
    is_active = Column(Boolean, default=True, nullable=False)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=True, index=True)
    head_id = Column(Integer, ForeignKey("users.id", use_alter=True, name="fk_departments_head_id"), nullable=True)

    # Relationships
    branch = relationship("Branch", back_populates="departments")
    head = relationship("User", foreign_keys=[head_id])
    users = relationship("User", back_populates="department", foreign_keys="User.department_id")
    teams = relationship("Team", back_populates="department")
