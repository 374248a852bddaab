from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, JSON, ForeignKey
from insekta.database import Base

CHART_TYPES = ("bar", "line", "pie", "area")

class Chart(Base):
    """Chart definition only; rows are fetched live from the sheet on every render"""
    __tablename__ = "charts"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    type = Column(String, default="bar")
    sheet_url = Column(String, nullable=False)
    description = Column(String, nullable=True)
    config = Column(JSON, default=dict)  # {"xAxisKey": str, "dataKeys": [str]}
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
