"""
Tests for the line amount calculator.
"""
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import SimpleTestCase

from procurement.po.amounts import calculate_amount, validate_pricing


class CalculateAmountTests(SimpleTestCase):

    def test_discount_then_tax(self):
        amount = calculate_amount(Decimal('10'), Decimal('100'), 1, Decimal('10'), Decimal('18'))
        self.assertEqual(amount.base_amount, Decimal('1000.00'))
        self.assertEqual(amount.discount_amount, Decimal('100.00'))
        self.assertEqual(amount.taxable_amount, Decimal('900.00'))
        self.assertEqual(amount.tax_amount, Decimal('162.00'))
        self.assertEqual(amount.total_amount, Decimal('1062.00'))

    def test_per_unit_basis(self):
        """Rate quoted per 100 units"""
        amount = calculate_amount('250', '1200', '100')
        self.assertEqual(amount.total_amount, Decimal('3000.00'))

    def test_rounds_half_up_at_the_end(self):
        amount = calculate_amount('3', '0.335', 1, 0, 0)
        self.assertEqual(amount.total_amount, Decimal('1.01'))

    def test_identical_inputs_identical_amounts(self):
        first = calculate_amount('7.5', '412.37', '1', '2.5', '28')
        second = calculate_amount(Decimal('7.5'), Decimal('412.37'), Decimal('1'), Decimal('2.5'), Decimal('28'))
        self.assertEqual(first, second)

    def test_float_inputs_do_not_leak_binary_noise(self):
        self.assertEqual(calculate_amount(0.1, 3, 1, 0, 0).total_amount, Decimal('0.30'))


class ValidatePricingTests(SimpleTestCase):

    def assertInvalid(self, field, *args):
        with self.assertRaises(ValidationError) as ctx:
            validate_pricing(*args)
        self.assertIn(field, ctx.exception.message_dict)

    def test_rejects_non_positive_quantity(self):
        self.assertInvalid('quantity', 0, 100)

    def test_rejects_non_positive_rate(self):
        self.assertInvalid('unit_rate', 1, -5)

    def test_rejects_out_of_range_gst(self):
        self.assertInvalid('gst_tax_rate', 1, 100, 1, 0, 101)

    def test_rejects_negative_discount(self):
        self.assertInvalid('discount_percent', 1, 100, 1, -1, 18)

    def test_rejects_garbage(self):
        self.assertInvalid('unit_rate', 1, 'abc')

    def test_accepts_bounds(self):
        validate_pricing(1, 1, 1, 100, 0)
        validate_pricing(1, 1, 1, 0, 100)
