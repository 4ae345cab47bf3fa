"""Landing page model definitions."""

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, func
from backend.database import Base


class LandingPage(Base):
    """Public booking page of a professional.

    Also holds the professional's availability configuration: the default
    appointment duration, trailing buffer, working hours, and per-service
    overrides inside ``services``.
    """
    __tablename__ = "landing_pages"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    professional_name = Column(String, nullable=False)
    title = Column(String)
    description = Column(String)
    services = Column(JSON, default=list)  # [{id, name, description, price, duration, buffer_time}]
    show_calendar = Column(Boolean, default=True)
    appointment_duration = Column(Integer, default=60)
    buffer_time = Column(Integer, default=0)
    work_start_hour = Column(Integer, default=9)
    work_end_hour = Column(Integer, default=18)
    is_published = Column(Boolean, default=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
