"""
Django signals for the sales app.
Keeps customer order totals in step with their orders.
"""

from django.db.models.signals import post_delete, post_save, pre_save
from django.dispatch import receiver

from .models import Customer, Order


def _refresh(customer_id):
    if customer_id is None:
        return
    customer = Customer.objects.filter(pk=customer_id).first()
    if customer is not None:
        customer.refresh_totals()


@receiver(pre_save, sender=Order)
def remember_previous_customer(sender, instance, **kwargs):
    """
    Remember who the order belonged to before the save, so a reassigned
    order is taken off the old customer's totals.
    """
    instance._previous_customer_id = None
    if instance.pk:
        instance._previous_customer_id = (
            Order.objects.filter(pk=instance.pk).values_list('customer_id', flat=True).first()
        )


@receiver(post_save, sender=Order)
def update_customer_totals(sender, instance, **kwargs):
    _refresh(instance.customer_id)
    previous = getattr(instance, '_previous_customer_id', None)
    if previous and previous != instance.customer_id:
        _refresh(previous)


@receiver(post_delete, sender=Order)
def remove_from_customer_totals(sender, instance, **kwargs):
    _refresh(instance.customer_id)
