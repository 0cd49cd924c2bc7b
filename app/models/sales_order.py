from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Numeric, ForeignKey, func
from sqlalchemy.orm import relationship
from app.db.base_class import Base
from app.models.enums import PaymentStatus

class SalesOrder(Base):
    __tablename__ = "sales_order"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    uuid = Column(String(36), unique=True, index=True, nullable=False)
    order_id = Column("orderId", String(20), unique=True, index=True, nullable=False)  # "SO-1000", "SO-1001", ...

    customer_name = Column("customerName", String(100), nullable=True)
    cnic = Column(Text, nullable=True)  # AES encrypted, see app.core.encryption
    personal_phone = Column("personalPhone", String(20), nullable=False)
    alternate_phone = Column("alternatePhone", String(20), nullable=True)
    address = Column(Text, nullable=True)
    notes = Column(Text, nullable=True, default="")

    msisdn_id = Column(Integer, ForeignKey("sim_inventory.id"), nullable=True, index=True)
    bundle_id = Column(Integer, ForeignKey("bundle.id"), nullable=True)
    city_id = Column(Integer, ForeignKey("city.id"), nullable=True, index=True)
    order_status_id = Column(Integer, ForeignKey("order_status.id"), nullable=False, index=True)

    total_transaction_price = Column(Numeric(10, 2), nullable=True, default=0)
    payment_method = Column(String(50), nullable=True)
    transaction_ref = Column(String(100), nullable=True)
    transaction_created_date = Column(DateTime, nullable=True)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.UNPAID.value, index=True)

    created_date = Column(DateTime, nullable=False, index=True)
    is_deleted = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    sim_inventory = relationship("SimInventory")
    bundle = relationship("Bundle")
    city = relationship("City")
    order_status = relationship("OrderStatus")

    def __repr__(self):
        return f"<SalesOrder(id={self.id}, order_id='{self.order_id}', msisdn_id={self.msisdn_id}, payment_status='{self.payment_status}')>"
