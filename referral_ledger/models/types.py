"""
Standard type definitions for database models.

Provides consistent types for monetary and JSON fields across all models.
"""

from sqlalchemy import DECIMAL, JSON
from sqlalchemy.dialects.postgresql import JSONB

# Standard money type for deposits, payments and aggregates
# Precision: 18 digits total, 2 after decimal point (currency minor unit)
# Range: up to 9,999,999,999,999,999.99
MoneyType = DECIMAL(18, 2)

# JSON payloads (audit before/after snapshots); JSONB on PostgreSQL
JSONType = JSON().with_variant(JSONB(), "postgresql")
