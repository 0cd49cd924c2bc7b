from sqlalchemy import Column, Integer, String, Boolean, DateTime, Numeric, ForeignKey, func
from sqlalchemy.orm import relationship
from app.db.base_class import Base
from app.models.enums import SimStatus

class NumberType(Base):
    __tablename__ = "number_type"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    uuid = Column(String(36), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=False)  # e.g. "Gold", "Platinum", "Regular"
    is_deleted = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<NumberType(id={self.id}, name='{self.name}')>"


class SimInventory(Base):
    __tablename__ = "sim_inventory"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    uuid = Column(String(36), unique=True, index=True, nullable=False)
    number_type_id = Column(Integer, ForeignKey("number_type.id"), nullable=True)
    number = Column(String(20), nullable=False, index=True)
    sim_price = Column(Numeric(10, 2), nullable=False, default=0)
    discount = Column(Numeric(10, 2), nullable=False, default=0)
    final_sim_price = Column(Numeric(10, 2), nullable=False, default=0)
    city_id = Column(Integer, ForeignKey("city.id"), nullable=True)

    # Available <-> Sold is driven by sales orders only; see app.crud.crud_sim_inventory
    status = Column(String(20), nullable=False, default=SimStatus.AVAILABLE.value, index=True)

    is_deleted = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    number_type = relationship("NumberType")
    city = relationship("City")

    def __repr__(self):
        return f"<SimInventory(id={self.id}, number='{self.number}', status='{self.status}')>"
