"""
Shared enumerations for database models and services.

Enums mapped to database enums ensure that only valid
values can be stored.
"""

import enum


class FlowType(str, enum.Enum):
    """Direction of a money flow entry."""
    IN = "IN"
    OUT = "OUT"


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    RETURNED = "RETURNED"


class Granularity(str, enum.Enum):
    """Width of an aggregation bucket, smallest first."""
    MINUTE = "minute"
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    @property
    def includes_transactions(self) -> bool:
        """Fine-grained buckets carry their constituent entries."""
        return self in (Granularity.MINUTE, Granularity.HOUR)
