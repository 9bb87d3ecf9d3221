"""Schools and their sales points"""

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from app.models.base import BaseModel, SchoolScopedMixin, StatusMixin


class School(BaseModel, StatusMixin):
    """
    Tenant/School model - the multi-tenant anchor.
    Every wallet record is scoped to exactly one school.
    """
    __tablename__ = "schools"

    name = Column(String(255), nullable=False)

    users = relationship("User", back_populates="school", cascade="all, delete-orphan")
    operating_units = relationship("OperatingUnit", back_populates="school", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<School {self.name}>"


class OperatingUnit(BaseModel, SchoolScopedMixin, StatusMixin):
    """Sales point inside a school (cafeteria station, store, kiosk)"""
    __tablename__ = "operating_units"

    name = Column(String(255), nullable=False)

    school = relationship("School", back_populates="operating_units")

    def __repr__(self) -> str:
        return f"<OperatingUnit {self.name}>"
