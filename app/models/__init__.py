from app.models.location import Region, City
from app.models.sim_inventory import NumberType, SimInventory
from app.models.bundle import Bundle
from app.models.order_status import OrderStatus
from app.models.sales_order import SalesOrder
from app.models.audit_log import SalesOrderAuditLog
from app.models.cron_setting import CronSetting
