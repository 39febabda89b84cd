"""
Line item amount calculation.

    base     = (quantity / per_unit_basis) * unit_rate
    discount = base * discount_percent / 100
    taxable  = base - discount
    tax      = taxable * gst_tax_rate / 100
    total    = taxable + tax

All arithmetic is done on Decimals; every figure is rounded half-up to
paise only at the end, so identical inputs always give identical amounts.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

from django.core.exceptions import ValidationError

HUNDRED = Decimal('100')
PAISE = Decimal('0.01')


@dataclass(frozen=True)
class LineAmount:
    base_amount: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal

    def as_dict(self):
        return {
            'base_amount': self.base_amount,
            'discount_amount': self.discount_amount,
            'taxable_amount': self.taxable_amount,
            'tax_amount': self.tax_amount,
            'total_amount': self.total_amount,
        }


def to_decimal(value, field):
    if isinstance(value, Decimal):
        return value
    try:
        # str() first so 0.1 becomes Decimal('0.1'), not its binary expansion
        return Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError({field: f"'{value}' is not a valid number"})


def validate_pricing(quantity, unit_rate, per_unit_basis=1, discount_percent=0, gst_tax_rate=0):
    """Raise ValidationError for inputs the calculator must not accept."""
    errors = {}
    if to_decimal(quantity, 'quantity') <= 0:
        errors['quantity'] = 'Quantity must be greater than zero'
    if to_decimal(unit_rate, 'unit_rate') <= 0:
        errors['unit_rate'] = 'Unit rate must be greater than zero'
    if to_decimal(per_unit_basis, 'per_unit_basis') <= 0:
        errors['per_unit_basis'] = 'Per-unit basis must be greater than zero'
    if not (0 <= to_decimal(discount_percent, 'discount_percent') <= HUNDRED):
        errors['discount_percent'] = 'Discount must be between 0 and 100'
    if not (0 <= to_decimal(gst_tax_rate, 'gst_tax_rate') <= HUNDRED):
        errors['gst_tax_rate'] = 'GST rate must be between 0 and 100'
    if errors:
        raise ValidationError(errors)


def calculate_amount(quantity, unit_rate, per_unit_basis=1, discount_percent=0, gst_tax_rate=0):
    """
    Amounts for one line item.

    >>> calculate_amount(10, 100, 1, 10, 18).total_amount
    Decimal('1062.00')
    """
    validate_pricing(quantity, unit_rate, per_unit_basis, discount_percent, gst_tax_rate)
    quantity = to_decimal(quantity, 'quantity')
    unit_rate = to_decimal(unit_rate, 'unit_rate')
    per_unit_basis = to_decimal(per_unit_basis, 'per_unit_basis')
    discount_percent = to_decimal(discount_percent, 'discount_percent')
    gst_tax_rate = to_decimal(gst_tax_rate, 'gst_tax_rate')

    base = quantity / per_unit_basis * unit_rate
    discount = base * discount_percent / HUNDRED
    taxable = base - discount
    tax = taxable * gst_tax_rate / HUNDRED
    total = taxable + tax

    return LineAmount(
        base_amount=_round(base),
        discount_amount=_round(discount),
        taxable_amount=_round(taxable),
        tax_amount=_round(tax),
        total_amount=_round(total),
    )


def _round(value):
    return value.quantize(PAISE, rounding=ROUND_HALF_UP)
