from sqlalchemy import Column, Integer, String, Boolean, DateTime, func
from app.db.base_class import Base

class CronSetting(Base):
    __tablename__ = "cron_setting"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    uuid = Column(String(36), unique=True, nullable=False)
    key = Column(String(50), unique=True, index=True, nullable=False)
    value = Column(String(100), nullable=False)
    is_deleted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<CronSetting(key='{self.key}', value='{self.value}')>"
