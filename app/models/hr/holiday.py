from sqlalchemy import Column, String, Text, Boolean, Date, Enum as SQLEnum
from app.db.base import BaseModel
from app.models.shared.enums import HolidayType

class Holiday(BaseModel):
    __tablename__ = "holidays"

    name = Column(String(200), nullable=False)
    date = Column(Date, nullable=False, index=True)
    type = Column(SQLEnum(HolidayType), nullable=False, default=HolidayType.PUBLIC)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
