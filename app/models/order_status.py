from sqlalchemy import Column, Integer, String, Boolean, DateTime, Index, func
from app.db.base_class import Base

class OrderStatus(Base):
    __tablename__ = "order_status"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    uuid = Column(String(36), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=False)
    event = Column(String(50), nullable=True)  # one of OrderEvent, held by at most one live status
    is_deleted = Column(Boolean, default=False, nullable=False)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<OrderStatus(id={self.id}, name='{self.name}', event={self.event})>"


# Uniqueness only applies to non-deleted rows
Index(
    "uq_order_status_name_active",
    OrderStatus.name,
    unique=True,
    sqlite_where=OrderStatus.is_deleted.is_(False),
    postgresql_where=OrderStatus.is_deleted.is_(False),
)
Index(
    "uq_order_status_event_active",
    OrderStatus.event,
    unique=True,
    sqlite_where=OrderStatus.is_deleted.is_(False) & OrderStatus.event.isnot(None),
    postgresql_where=OrderStatus.is_deleted.is_(False) & OrderStatus.event.isnot(None),
)
