# hrm/models/person.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, func
from hrm.database import Base
from hrm.models.enums import Role

class Person(Base):
    __tablename__ = "hrm_people"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False)
    full_name = Column(String, nullable=True)
    role = Column(String, nullable=False, default=Role.EMPLOYEE.value)  # SUPER_ADMIN, ADMIN, EMPLOYEE
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
