from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Float,
    Integer,
    Uuid,
    func,
)

from app.db.base_class import Base


class DailyAnalytics(Base):
    __tablename__ = "daily_analytics"

    day = Column(Date, primary_key=True)
    total_catches = Column(Integer, nullable=False, default=0)
    total_weight = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    last_updated = Column(DateTime, server_default=func.now(), nullable=False)


class UserStatistics(Base):
    __tablename__ = "user_statistics"

    user_id = Column(Uuid(as_uuid=True), primary_key=True)
    emergency_activations = Column(Integer, nullable=False, default=0)
    catch_reports = Column(Integer, nullable=False, default=0)
    total_catch = Column(Float, nullable=False, default=0.0)
    last_updated = Column(DateTime, server_default=func.now(), nullable=False)
