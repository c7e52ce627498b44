# app/models/escalation.py
from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, Text, func

from app.db.base import Base


class Escalation(Base):
    __tablename__ = "escalations"
    __table_args__ = (
        CheckConstraint("aging >= 0", name="ck_escalations_aging_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    # stored as text, either YYYY-MM-DD or DD-MM-YYYY
    date = Column(String(32), nullable=False)
    case_id = Column(String(100), nullable=False, index=True)  # not unique
    branch = Column(String(100), nullable=False, index=True)
    brand = Column(String(255), nullable=True)
    service_type = Column(String(255), nullable=True)
    reason = Column(Text, nullable=True)
    city = Column(String(255), nullable=True)
    aging = Column(Integer, nullable=False, default=0)
    status = Column(String(50), nullable=False, default="Open")
    remark = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
