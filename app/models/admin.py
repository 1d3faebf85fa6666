from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, func
from app.database.session import Base
from enum import Enum as PyEnum


class AdminRoleEnum(str, PyEnum):
    ADMIN = "admin"
    STAFF = "staff"


class Admin(Base):
    __tablename__ = "admins"
    __table_args__ = (
        {"extend_existing": True}
    )

    admin_id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(150), unique=True, nullable=False, index=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    contact_no = Column(String(20), nullable=True, index=True)
    password = Column(String(255), nullable=False)
    role = Column(Enum(AdminRoleEnum, native_enum=False), default=AdminRoleEnum.STAFF, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Admin(admin_id={self.admin_id}, username='{self.username}', role='{self.role}')>"
