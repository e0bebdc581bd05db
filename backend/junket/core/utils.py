"""
Utility functions for the application.
"""
from typing import Any, Dict, Optional
from decimal import Decimal


def apply_updates(instance: Any, updates: Dict[str, Any]) -> Any:
    """Copy the given field values onto an ORM instance."""
    for field, value in updates.items():
        setattr(instance, field, value)
    return instance


def money(value: Optional[Decimal]) -> Decimal:
    """Quantize an amount to cents for storage and display."""
    if value is None:
        return Decimal("0.00")
    return Decimal(value).quantize(Decimal("0.01"))
