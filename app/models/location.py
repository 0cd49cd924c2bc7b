from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from app.db.base_class import Base

class Region(Base):
    __tablename__ = "region"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    uuid = Column(String(36), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    is_deleted = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    cities = relationship("City", back_populates="region")

    def __repr__(self):
        return f"<Region(id={self.id}, name='{self.name}')>"


class City(Base):
    __tablename__ = "city"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    uuid = Column(String(36), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    region_id = Column(Integer, ForeignKey("region.id"), nullable=True, index=True)
    priority = Column(Integer, default=999999, nullable=False)
    status = Column(Boolean, default=True, nullable=False)  # active flag shown in pickers
    is_deleted = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    region = relationship("Region", back_populates="cities")

    def __repr__(self):
        return f"<City(id={self.id}, name='{self.name}', region_id={self.region_id})>"
