"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from money_flow.models.base import Base
from money_flow.models.enums import FlowType, Granularity, OrderStatus
from money_flow.models.audit_log import AuditLog
from money_flow.models.ledger_entry import LedgerEntry
from money_flow.models.ledger_head import LedgerHead
from money_flow.models.customer import Customer
from money_flow.models.order import Order
from money_flow.models.order_item import OrderItem
from money_flow.models.category import Category
from money_flow.models.product import Product

__all__ = [
    "Base",
    "FlowType",
    "Granularity",
    "OrderStatus",
    "AuditLog",
    "LedgerEntry",
    "LedgerHead",
    "Customer",
    "Order",
    "OrderItem",
    "Category",
    "Product",
]
