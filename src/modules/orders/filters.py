import django_filters

from modules.orders.constants import OrderStatus, PaymentMethod, PaymentStatus
from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(field_name="status", choices=OrderStatus.choices)
    paymentStatus = django_filters.ChoiceFilter(
        field_name="payment_status", choices=PaymentStatus.choices
    )
    paymentMethod = django_filters.ChoiceFilter(
        field_name="payment_method", choices=PaymentMethod.choices
    )
    userId = django_filters.CharFilter(field_name="user_id")
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")
    min_total = django_filters.NumberFilter(
        field_name="total_amount", lookup_expr="gte"
    )
    max_total = django_filters.NumberFilter(
        field_name="total_amount", lookup_expr="lte"
    )

    class Meta:
        model = Order
        fields = [
            "status",
            "paymentStatus",
            "paymentMethod",
            "userId",
            "start_date",
            "end_date",
            "min_total",
            "max_total",
        ]
