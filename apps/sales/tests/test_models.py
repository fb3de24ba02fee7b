"""
Tests for sales models: coupons, order totals and customer totals
"""
from datetime import timedelta
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase
from django.utils import timezone

from apps.sales.models import Coupon, Order
from apps.test_utils import TestDataFactory


class CouponModelTests(TestCase):

    def test_code_stored_upper_case(self):
        coupon = TestDataFactory.create_coupon(code=' summer10 ')
        self.assertEqual(coupon.code, 'SUMMER10')

    def test_percentage_discount(self):
        coupon = TestDataFactory.create_coupon(discount_value=Decimal('15'))
        self.assertEqual(coupon.apply(Decimal('80.00')), Decimal('68.00'))
        self.assertEqual(coupon.discount_for(Decimal('19.99')), Decimal('3.00'))

    def test_fixed_discount_never_below_zero(self):
        coupon = TestDataFactory.create_coupon(
            discount_type=Coupon.TYPE_FIXED, discount_value=Decimal('25.00')
        )
        self.assertEqual(coupon.apply(Decimal('100.00')), Decimal('75.00'))
        self.assertEqual(coupon.apply(Decimal('10.00')), Decimal('0.00'))

    def test_is_expired(self):
        today = timezone.localdate()
        self.assertFalse(TestDataFactory.create_coupon().is_expired)
        self.assertFalse(TestDataFactory.create_coupon(expiry_date=today).is_expired)
        self.assertTrue(
            TestDataFactory.create_coupon(expiry_date=today - timedelta(days=1)).is_expired
        )

    def test_percentage_over_100_invalid(self):
        coupon = Coupon(code='TOOMUCH', discount_value=Decimal('120'))
        with self.assertRaises(ValidationError):
            coupon.full_clean()


class OrderModelTests(TestCase):

    def test_total_from_items(self):
        order = TestDataFactory.create_order(items=[
            ('Tee', 2, '19.90'),
            ('Cap', 1, '12.00'),
        ])
        self.assertEqual(order.total_amount, Decimal('51.80'))
        self.assertEqual(order.item_count, 2)

    def test_customer_snapshot(self):
        customer = TestDataFactory.create_customer(name='Ana', email='ana@test.com')
        order = TestDataFactory.create_order(customer=customer)

        self.assertEqual(order.customer_name, 'Ana')
        self.assertEqual(order.customer_email, 'ana@test.com')

        customer.delete()
        order.refresh_from_db()
        self.assertIsNone(order.customer)
        self.assertEqual(order.customer_name, 'Ana')


class CustomerTotalsTests(TestCase):

    def setUp(self):
        self.customer = TestDataFactory.create_customer()

    def test_totals_follow_orders(self):
        TestDataFactory.create_order(customer=self.customer, items=[('Tee', 1, '20.00')])
        order = TestDataFactory.create_order(customer=self.customer, items=[('Coat', 1, '80.00')])

        self.customer.refresh_from_db()
        self.assertEqual(self.customer.total_orders, 2)
        self.assertEqual(self.customer.total_spent, Decimal('100.00'))

        order.delete()
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.total_orders, 1)
        self.assertEqual(self.customer.total_spent, Decimal('20.00'))

    def test_cancelled_orders_not_spent(self):
        order = TestDataFactory.create_order(customer=self.customer, items=[('Tee', 1, '20.00')])
        order.status = Order.STATUS_CANCELLED
        order.save()

        self.customer.refresh_from_db()
        self.assertEqual(self.customer.total_orders, 1)
        self.assertEqual(self.customer.total_spent, Decimal('0.00'))

    def test_reassigned_order_moves_totals(self):
        other = TestDataFactory.create_customer()
        order = TestDataFactory.create_order(customer=self.customer, items=[('Tee', 1, '20.00')])

        order.customer = other
        order.save()

        self.customer.refresh_from_db()
        other.refresh_from_db()
        self.assertEqual(self.customer.total_orders, 0)
        self.assertEqual(other.total_spent, Decimal('20.00'))
