from sqlalchemy import Column, Integer, String, Boolean, DateTime, func
from app.database.session import Base


class VerificationCode(Base):
    __tablename__ = "verification_codes"
    __table_args__ = (
        {"extend_existing": True}
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False)
    user_type = Column(String(20), nullable=False)  # customer, admin, driver
    identifier = Column(String(150), nullable=False, index=True)  # user email
    code = Column(String(6), nullable=False)
    type = Column(String(10), nullable=False, default="email")  # email, sms
    purpose = Column(String(30), nullable=False, default="password_reset")
    attempts = Column(Integer, nullable=False, default=0)
    max_attempts = Column(Integer, nullable=False, default=3)
    verified = Column(Boolean, nullable=False, default=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=func.now(), nullable=False, index=True)


class PasswordResetToken(Base):
    __tablename__ = "password_reset_tokens"
    __table_args__ = (
        {"extend_existing": True}
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False)
    user_type = Column(String(20), nullable=False)
    email = Column(String(150), nullable=False)
    token = Column(String(128), unique=True, nullable=False, index=True)
    used = Column(Boolean, nullable=False, default=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)
