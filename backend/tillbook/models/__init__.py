from .inventory import InventoryItem
from .layaway import Layaway
from .audit import AuditLogEntry
from .timekeeping import TimePunch

__all__ = [
    'InventoryItem',
    'Layaway',
    'AuditLogEntry',
    'TimePunch',
]
