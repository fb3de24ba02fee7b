"""
API tests for customers, orders and coupons
"""
from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from apps.sales.models import Coupon, Order
from apps.test_utils import AuthenticatedAPIClient, TestDataFactory


class SalesAPITestCase(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user())


class CustomerAPITests(SalesAPITestCase):

    def test_best_customers_first(self):
        small = TestDataFactory.create_customer(name='Small')
        big = TestDataFactory.create_customer(name='Big')
        TestDataFactory.create_order(customer=small, items=[('Tee', 1, '10.00')])
        TestDataFactory.create_order(customer=big, items=[('Coat', 1, '200.00')])

        response = self.client.get('/api/v1/customers/')

        self.assertEqual([c['name'] for c in response.data['results']], ['Big', 'Small'])
        self.assertEqual(response.data['results'][0]['total_spent'], '200.00')

    def test_totals_are_read_only(self):
        response = self.client.post('/api/v1/customers/', {
            'name': 'Ana', 'email': 'ana@test.com', 'total_spent': '999.00'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['total_spent'], '0.00')


class OrderAPITests(SalesAPITestCase):

    def setUp(self):
        super().setUp()
        self.customer = TestDataFactory.create_customer(name='Ana', email='ana@test.com')
        self.product = TestDataFactory.create_product(
            name='Linen Tee', price=Decimal('30.00'), discount_price=Decimal('25.00')
        )

    def test_create_order_snapshots_product(self):
        response = self.client.post('/api/v1/orders/', {
            'customer': str(self.customer.pk),
            'payment_status': 'paid',
            'items': [
                {'product': str(self.product.pk), 'quantity': 2},
                {'product_name': 'Gift wrap', 'price': '3.50'},
            ]
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data['total_amount'], '53.50')
        self.assertEqual(response.data['customer_name'], 'Ana')
        items = {item['product_name']: item for item in response.data['items']}
        self.assertEqual(items['Linen Tee']['price'], '25.00')
        self.assertEqual(items['Linen Tee']['line_total'], '50.00')
        self.assertEqual(items['Gift wrap']['quantity'], 1)

        self.customer.refresh_from_db()
        self.assertEqual(self.customer.total_orders, 1)
        self.assertEqual(self.customer.total_spent, Decimal('53.50'))

    def test_order_needs_items(self):
        response = self.client.post('/api/v1/orders/', {
            'customer': str(self.customer.pk), 'items': []
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_item_without_product_needs_price(self):
        response = self.client.post('/api/v1/orders/', {
            'items': [{'product_name': 'Mystery'}]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_set_status(self):
        order = TestDataFactory.create_order(customer=self.customer, payment_status=Order.PAYMENT_UNPAID)

        response = self.client.post(
            f'/api/v1/orders/{order.pk}/set_status/',
            {'status': 'shipped', 'payment_status': 'paid'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        order.refresh_from_db()
        self.assertEqual(order.status, Order.STATUS_SHIPPED)
        self.assertEqual(order.payment_status, Order.PAYMENT_PAID)

    def test_cancel_updates_customer_total(self):
        order = TestDataFactory.create_order(customer=self.customer, items=[('Tee', 1, '40.00')])

        self.client.post(f'/api/v1/orders/{order.pk}/set_status/', {'status': 'cancelled'}, format='json')

        self.customer.refresh_from_db()
        self.assertEqual(self.customer.total_spent, Decimal('0.00'))

    def test_set_status_rejects_unknown(self):
        order = TestDataFactory.create_order()
        response = self.client.post(
            f'/api/v1/orders/{order.pk}/set_status/', {'status': 'lost'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filter_by_status(self):
        TestDataFactory.create_order(status=Order.STATUS_DELIVERED)
        TestDataFactory.create_order()

        response = self.client.get('/api/v1/orders/', {'status': 'delivered'})
        self.assertEqual(response.data['count'], 1)


class CouponAPITests(SalesAPITestCase):

    def test_create_coupon(self):
        response = self.client.post('/api/v1/coupons/', {
            'code': 'summer10', 'discount_type': 'percentage', 'discount_value': '10'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['code'], 'SUMMER10')

    def test_duplicate_code_any_case(self):
        TestDataFactory.create_coupon(code='SUMMER10')
        response = self.client.post('/api/v1/coupons/', {
            'code': 'Summer10', 'discount_type': 'fixed', 'discount_value': '5'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_percentage_over_100(self):
        response = self.client.post('/api/v1/coupons/', {
            'code': 'HALFOFF', 'discount_type': 'percentage', 'discount_value': '150'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('discount_value', response.data)

    def test_validate_coupon(self):
        TestDataFactory.create_coupon(code='SUMMER10', discount_value=Decimal('10'))

        response = self.client.post('/api/v1/coupons/validate/', {
            'code': 'summer10', 'amount': '120.00'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['valid'])
        self.assertEqual(response.data['discounted_amount'], Decimal('108.00'))

    def test_validate_expired_coupon(self):
        TestDataFactory.create_coupon(
            code='OLD', expiry_date=timezone.localdate() - timedelta(days=1)
        )
        response = self.client.post('/api/v1/coupons/validate/', {
            'code': 'OLD', 'amount': '50.00'
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['valid'])

    def test_validate_unknown_coupon(self):
        response = self.client.post('/api/v1/coupons/validate/', {
            'code': 'NOPE', 'amount': '50.00'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_newest_first(self):
        first = TestDataFactory.create_coupon(code='FIRST')
        second = TestDataFactory.create_coupon(code='SECOND')
        Coupon.objects.filter(pk=first.pk).update(created_at=timezone.now() - timedelta(days=1))

        response = self.client.get('/api/v1/coupons/')
        self.assertEqual([c['code'] for c in response.data['results']], [second.code, first.code])
