from rest_framework.response import Response
from rest_framework.views import APIView

from .services import get_metrics


class DashboardMetricsView(APIView):
    """
    Dashboard overview.

    Returns total revenue, order/product/customer counts, revenue for each
    of the last seven days and the five most recent orders.
    """

    def get(self, request):
        return Response(get_metrics())
