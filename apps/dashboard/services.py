"""
Dashboard metrics: headline totals, revenue over the last week and the
latest orders.
"""

from datetime import timedelta
from decimal import Decimal

from django.db.models import Sum
from django.db.models.functions import TruncDate
from django.utils import timezone

from apps.catalog.models import Product
from apps.sales.models import Customer, Order

REVENUE_DAYS = 7
RECENT_ORDERS = 5


def _revenue_orders():
    # Cancelled orders never count as revenue
    return Order.objects.exclude(status=Order.STATUS_CANCELLED)


def daily_revenue(days=REVENUE_DAYS, today=None):
    """
    Revenue per day for the last `days` days, oldest first, today included.
    Days without orders are reported as zero.
    """
    today = today or timezone.localdate()
    start = today - timedelta(days=days - 1)
    totals = {
        row['day']: row['total']
        for row in _revenue_orders()
        .filter(created_at__date__gte=start, created_at__date__lte=today)
        .annotate(day=TruncDate('created_at'))
        .values('day')
        .annotate(total=Sum('total_amount'))
        .order_by('day')
    }
    return [
        {
            'date': start + timedelta(days=offset),
            'revenue': totals.get(start + timedelta(days=offset)) or Decimal('0.00'),
        }
        for offset in range(days)
    ]


def get_metrics(today=None):
    revenue = _revenue_orders().aggregate(total=Sum('total_amount'))['total']
    recent = Order.objects.order_by('-created_at')[:RECENT_ORDERS]
    return {
        'total_revenue': revenue or Decimal('0.00'),
        'total_orders': Order.objects.count(),
        'total_products': Product.objects.count(),
        'total_customers': Customer.objects.count(),
        'revenue_last_7_days': daily_revenue(REVENUE_DAYS, today=today),
        'recent_orders': [
            {
                'id': order.id,
                'customer_name': order.customer_name,
                'total_amount': order.total_amount,
                'status': order.status,
                'payment_status': order.payment_status,
                'created_at': order.created_at,
            }
            for order in recent
        ],
    }
