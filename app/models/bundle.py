from sqlalchemy import Column, Integer, String, Boolean, DateTime, Numeric, func
from app.db.base_class import Base

class Bundle(Base):
    __tablename__ = "bundle"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    uuid = Column(String(36), unique=True, index=True, nullable=False)
    bundle_code = Column("bundleId", String(10), nullable=True, index=True)
    bundle_name = Column("bundleName", String(100), nullable=False)
    bundle_price = Column("bundlePrice", Numeric(10, 2), nullable=False, default=0)
    discount = Column(Numeric(10, 2), nullable=False, default=0)
    bundle_final_price = Column("bundleFinalPrice", Numeric(10, 2), nullable=False, default=0)
    offer_id = Column("offerId", String(50), nullable=True)
    status = Column(Boolean, default=True, nullable=False)
    is_deleted = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Bundle(id={self.id}, bundle_code='{self.bundle_code}', name='{self.bundle_name}')>"
