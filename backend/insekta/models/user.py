from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Boolean
from insekta.database import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)  # login id
    password_hash = Column(String, nullable=False)
    role = Column(String, default="client", nullable=False)  # 'admin' or 'client'
    avatar = Column(String, default="")
    company_name = Column(String, default="")  # clients only
    is_active = Column(Boolean, default=True)
    is_first_login = Column(Boolean, default=False)  # forces a password change
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"
