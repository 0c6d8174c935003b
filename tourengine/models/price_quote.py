"""
PriceQuote - immutable result of a pricing call.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class AppliedModifier:
    """Discount (negative amount) or surcharge applied to a subtotal."""
    name: str
    modifier_type: str
    amount: Decimal


@dataclass(frozen=True)
class PriceQuote:
    """
    Priced line item with the labels used to compute it.

    units is billable hours for hourly services and the guest count for
    per-person services. subtotal already includes any adjustments.
    """
    service: str
    units: Decimal
    unit_rate: Decimal
    subtotal: Decimal
    tax: Decimal
    deposit: Decimal
    total: Decimal
    day_type: Optional[str] = None
    rate_tier: Optional[str] = None
    minimum_hours: Optional[Decimal] = None
    adjustments: Tuple[AppliedModifier, ...] = ()

    @property
    def balance_due(self) -> Decimal:
        """Amount remaining after the deposit is collected."""
        return self.total - self.deposit

    @property
    def adjustment_total(self) -> Decimal:
        return sum((adjustment.amount for adjustment in self.adjustments), Decimal('0'))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-safe dictionary (amounts as strings)."""
        data = {
            'service': self.service,
            'units': str(self.units),
            'unit_rate': str(self.unit_rate),
            'subtotal': str(self.subtotal),
            'tax': str(self.tax),
            'deposit': str(self.deposit),
            'total': str(self.total),
            'balance_due': str(self.balance_due),
            'day_type': self.day_type,
            'rate_tier': self.rate_tier,
            'minimum_hours': str(self.minimum_hours) if self.minimum_hours is not None else None,
        }
        if self.adjustments:
            data['adjustments'] = [
                {'name': a.name, 'modifier_type': a.modifier_type, 'amount': str(a.amount)}
                for a in self.adjustments
            ]
            data['adjustment_total'] = str(self.adjustment_total)
        return data
