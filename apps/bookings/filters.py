import django_filters  # type: ignore

from .models import Booking


class BookingFilter(django_filters.FilterSet):
    """Narrow a booking listing by van, owner or a day the booking covers."""

    van = django_filters.UUIDFilter(field_name="van_id")
    user = django_filters.UUIDFilter(field_name="user_id")
    date = django_filters.DateFilter(method="filter_on_date")

    class Meta:
        model = Booking
        fields = ["van", "user", "date"]

    def filter_on_date(self, queryset, name, value):  # type: ignore
        return queryset.filter(start_date__lte=value, end_date__gte=value)
