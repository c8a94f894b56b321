from sqlalchemy import Column, String, Boolean, Text
from sqlalchemy.orm import relationship
from app.db.base import BaseModel

class Branch(BaseModel):
    __tablename__ = "branches"

    name = Column(String(100), nullable=False)
    code = Column(String(20), nullable=False, unique=True, index=True)
    address = Column(Text)
    phone = Column(String(20))
    email = Column(String(255))
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    departments = relationship("Department", back_populates="branch")
    users = relationship("User", back_populates="branch")
