from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class SalesOrderAuditLog(BaseModel):
    uuid: str
    sales_order_uuid: str
    user_full_name: str
    user_email: Optional[str] = None
    done_by: str
    action: str
    previous_value: Optional[str] = None
    new_value: Optional[str] = None
    details: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
