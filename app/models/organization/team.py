from sqlalchemy import Column, Integer, String, Boolean, Text, ForeignKey
from sqlalchemy.orm import relationship
from app.db.base import BaseModel

class Team(BaseModel):
    __tablename__ = 'teams'

    name = Column(String(100), nullable=False)
    code = Column(String(20), nullable=False, unique=True, index=True)
    description = Column(Text)
    is_active = Column(Boolean, default=True, nullable=False)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True, index=True)
    lead_id = Column(Integer, ForeignKey("users.id", use_alter=True, name="fk_teams_lead_id"), nullable=True)

    # Relationships
    department = relationship("Department", back_populates="teams")
    lead = relationship("User", foreign_keys=[lead_id])
    members = relationship("User", back_populates="team", foreign_keys="User.team_id")
