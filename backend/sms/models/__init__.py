from .inventory import Product, Alert, ALERT_STATUS_ACTIVE
from .documents import GoodsReceivedNote, GrnLine, IssueOrder, IssueOrderLine
from .sales import SalesInvoice, SalesInvoiceLine, CreditNote, CreditNoteLine
from .customers import Customer
from .auth import User, ROLES, ROLE_ADMIN, ROLE_INVENTORY_MANAGER, ROLE_REP

__all__ = [
    'Product', 'Alert', 'ALERT_STATUS_ACTIVE',
    'GoodsReceivedNote', 'GrnLine', 'IssueOrder', 'IssueOrderLine',
    'SalesInvoice', 'SalesInvoiceLine', 'CreditNote', 'CreditNoteLine',
    'Customer',
    'User', 'ROLES', 'ROLE_ADMIN', 'ROLE_INVENTORY_MANAGER', 'ROLE_REP',
]
