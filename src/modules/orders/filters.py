import django_filters

from modules.orders.models import Order


class CharInFilter(django_filters.BaseInFilter, django_filters.CharFilter):
    pass


class OrderFilter(django_filters.FilterSet):
    status = CharInFilter(field_name="status", lookup_expr="in")
    customer = django_filters.UUIDFilter(field_name="customer_id")
    delivery = django_filters.UUIDFilter(field_name="delivery_id")
    start = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="gte")
    end = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="lte")
    min_total = django_filters.NumberFilter(field_name="total", lookup_expr="gte")
    max_total = django_filters.NumberFilter(field_name="total", lookup_expr="lte")

    class Meta:
        model = Order
        fields = [
            "status",
            "customer",
            "delivery",
            "start",
            "end",
            "min_total",
            "max_total",
        ]
