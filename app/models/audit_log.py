from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from app.db.base_class import Base
from app.models.enums import DoneBy

class SalesOrderAuditLog(Base):
    __tablename__ = "sales_order_audit_log"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    uuid = Column(String(36), unique=True, index=True, nullable=False)
    sales_order_id = Column(Integer, ForeignKey("sales_order.id"), nullable=False, index=True)
    sales_order_uuid = Column(String(36), nullable=False, index=True)

    user_full_name = Column(String(255), nullable=False)
    user_email = Column(String(255), nullable=True)  # empty for system actions
    done_by = Column(String(10), nullable=False, default=DoneBy.USER.value)

    action = Column(String(50), nullable=False, index=True)
    previous_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    details = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, index=True)
    is_deleted = Column(Boolean, default=False, nullable=False)

    sales_order = relationship("SalesOrder")

    def __repr__(self):
        return f"<SalesOrderAuditLog(id={self.id}, sales_order_id={self.sales_order_id}, action='{self.action}')>"
