from .common import Actor, DataAccessFilter, Pagination
from .order_status import (
    OrderStatusBase,
    OrderStatusCreate,
    OrderStatusUpdate,
    EventMappingUpdate,
    OrderStatus,
    OrderStatusNested
)
from .sim_inventory import (
    SimInventoryBase,
    SimInventoryCreate,
    SimInventory,
    SimInventoryNested
)
from .sales_order import (
    SalesOrderBase,
    SalesOrderCreate,
    OrderStatusChange,
    PaymentStatusChange,
    TransactionUpdate,
    MsisdnChange,
    NotesUpdate,
    CnicUpdate,
    CityChange,
    SalesOrderDetailsUpdate,
    SalesOrder,
    SalesOrderPage,
    OrderStatusInfo,
    ReleasedOrder
)
from .audit_log import SalesOrderAuditLog
from .cron_setting import CronSetting, CronScheduleUpdate, CronScheduleUpdated
