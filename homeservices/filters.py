"""Query filters for the public listings."""
import django_filters

from .models import Booking, User, WorkerProfile


class WorkerFilter(django_filters.FilterSet):
    profession = django_filters.CharFilter(field_name='profession', lookup_expr='icontains')
    min_rating = django_filters.NumberFilter(field_name='rating', lookup_expr='gte')
    max_price = django_filters.NumberFilter(field_name='hourly_rate', lookup_expr='lte')
    is_verified = django_filters.BooleanFilter(field_name='is_verified')

    class Meta:
        model = WorkerProfile
        fields = ['profession', 'min_rating', 'max_price', 'is_verified']


class OpenJobFilter(django_filters.FilterSet):
    # Workers look for jobs matching their trade through the service category.
    profession = django_filters.CharFilter(field_name='service__category', lookup_expr='icontains')

    class Meta:
        model = Booking
        fields = ['profession']


class AdminUserFilter(django_filters.FilterSet):
    role = django_filters.ChoiceFilter(choices=User.ROLE_CHOICES)

    class Meta:
        model = User
        fields = ['role']
