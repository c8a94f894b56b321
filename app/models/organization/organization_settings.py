from sqlalchemy import Column, String, JSON
from app.db.base import BaseModel

class OrganizationSettings(BaseModel):
    """Singleton row; `config` is only read and written through OrganizationConfig"""
    __tablename__ = 'organization_settings'

    name = Column(String(200), nullable=True)
    config = Column(JSON, nullable=False, default=dict)
