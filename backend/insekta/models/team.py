from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from insekta.database import Base

class TeamMember(Base):
    __tablename__ = "team_members"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    role = Column(String, default="Teknisi")  # Teknisi, Supervisor, ...
    phone = Column(String, nullable=False)
    area = Column(String, nullable=False, index=True)
    outlets = Column(Text, default="")  # free text, e.g. "Outlet A, Outlet B"
    photo = Column(String, default="")
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
