"""Serializers for the marketplace API."""
from __future__ import annotations

from typing import Any

from rest_framework import serializers

from .models import (
    Address,
    Booking,
    Complaint,
    CustomerProfile,
    Review,
    Service,
    User,
    WorkerProfile,
    round_rating,
)

WEEKDAYS = ('monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday')


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'email', 'name', 'phone', 'role', 'date_joined']


class AuthUserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'email', 'name', 'role']


class ContactSerializer(serializers.ModelSerializer):
    """Customer projection joined onto bookings and complaints."""

    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'phone']


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(min_length=6, write_only=True)
    name = serializers.CharField(min_length=2, max_length=150)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True, default='')
    role = serializers.ChoiceField(choices=[User.ROLE_CUSTOMER, User.ROLE_WORKER], default=User.ROLE_CUSTOMER)
    profession = serializers.CharField(max_length=100, required=False, allow_blank=True)
    experience = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    hourly_rate = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True)

    def validate_email(self, value: str) -> str:
        return User.objects.normalize_email(value)


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES, required=False)

    def validate_email(self, value: str) -> str:
        return User.objects.normalize_email(value)


class ProfileUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=2, max_length=150, required=False)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True)
    profession = serializers.CharField(max_length=100, required=False)
    experience = serializers.IntegerField(min_value=0, required=False)
    hourly_rate = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    skills = serializers.ListField(child=serializers.CharField(max_length=100), required=False)


class ServiceSerializer(serializers.ModelSerializer):
    name = serializers.CharField(min_length=2, max_length=100)
    description = serializers.CharField(min_length=10)
    base_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)

    class Meta:
        model = Service
        fields = ['id', 'name', 'category', 'description', 'base_price', 'is_active', 'created_at']
        read_only_fields = ['id', 'is_active', 'created_at']


class AddressSerializer(serializers.ModelSerializer):
    class Meta:
        model = Address
        fields = ['id', 'type', 'street', 'city', 'state', 'zip_code', 'is_default', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']


class CustomerProfileSerializer(serializers.ModelSerializer):
    addresses = AddressSerializer(many=True, read_only=True)

    class Meta:
        model = CustomerProfile
        fields = ['id', 'addresses', 'created_at']


class WorkerUserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'phone', 'date_joined']


class WorkerProfileSerializer(serializers.ModelSerializer):
    user = WorkerUserSerializer(read_only=True)

    class Meta:
        model = WorkerProfile
        fields = [
            'id',
            'user',
            'profession',
            'experience',
            'hourly_rate',
            'kyc_status',
            'is_verified',
            'is_available',
            'rating',
            'total_jobs',
            'skills',
            'portfolio',
            'availability',
            'kyc_submitted_at',
            'created_at',
        ]


class WorkerSummarySerializer(serializers.ModelSerializer):
    """Worker projection joined onto bookings."""

    name = serializers.CharField(source='user.name', read_only=True)
    phone = serializers.CharField(source='user.phone', read_only=True)

    class Meta:
        model = WorkerProfile
        fields = ['id', 'name', 'phone', 'profession', 'rating', 'is_verified']


class WorkerUpdateSerializer(serializers.ModelSerializer):
    skills = serializers.ListField(child=serializers.CharField(max_length=100), required=False)
    portfolio = serializers.ListField(child=serializers.URLField(), required=False)
    availability = serializers.DictField(required=False)

    class Meta:
        model = WorkerProfile
        fields = ['profession', 'experience', 'hourly_rate', 'skills', 'portfolio', 'availability']

    def validate_availability(self, value: dict[str, Any]) -> dict[str, Any]:
        cleaned = {}
        for day, slot in value.items():
            day = day.lower()
            if day not in WEEKDAYS:
                raise serializers.ValidationError(f'Unknown weekday: {day}')
            if not isinstance(slot, dict):
                raise serializers.ValidationError(f'Availability for {day} must be an object')
            cleaned[day] = {
                'available': bool(slot.get('available', False)),
                'start_time': slot.get('start_time', ''),
                'end_time': slot.get('end_time', ''),
            }
        return cleaned


class KYCSubmitSerializer(serializers.Serializer):
    aadhar_card = serializers.CharField(max_length=255)
    pan_card = serializers.CharField(max_length=255)
    profile_photo = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


class KYCDecisionSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=WorkerProfile.KYC_STATUS_CHOICES)


class KYCStatusByUserSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    kyc_status = serializers.ChoiceField(choices=WorkerProfile.KYC_STATUS_CHOICES)


class BookingSerializer(serializers.ModelSerializer):
    service = ServiceSerializer(read_only=True)
    customer = ContactSerializer(read_only=True)
    worker = WorkerSummarySerializer(read_only=True)

    class Meta:
        model = Booking
        fields = [
            'id',
            'service',
            'customer',
            'worker',
            'status',
            'scheduled_at',
            'completed_at',
            'total_amount',
            'address',
            'notes',
            'created_at',
            'updated_at',
        ]


class BookingAddressSerializer(serializers.Serializer):
    street = serializers.CharField()
    city = serializers.CharField()
    state = serializers.CharField(required=False, allow_blank=True)
    zip_code = serializers.CharField(required=False, allow_blank=True)
    type = serializers.CharField(required=False, allow_blank=True)


class BookingCreateSerializer(serializers.Serializer):
    service_id = serializers.PrimaryKeyRelatedField(queryset=Service.objects.all(), source='service')
    worker_id = serializers.PrimaryKeyRelatedField(
        queryset=WorkerProfile.objects.all(), source='worker', required=False, allow_null=True
    )
    scheduled_at = serializers.DateTimeField()
    total_amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    address = BookingAddressSerializer()
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def create(self, validated_data: dict[str, Any]) -> Booking:
        worker = validated_data.get('worker')
        # A pre-assigned worker skips the open job pool.
        status = Booking.STATUS_CONFIRMED if worker else Booking.STATUS_PENDING
        return Booking.objects.create(status=status, **validated_data)


class BookingStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Booking.STATUS_CHOICES)


class ReviewSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.name', read_only=True)
    worker_name = serializers.CharField(source='worker.user.name', read_only=True)

    class Meta:
        model = Review
        fields = ['id', 'booking', 'worker', 'customer', 'customer_name', 'worker_name', 'rating', 'comment', 'created_at']
        read_only_fields = ['id', 'booking', 'worker', 'customer', 'rating', 'comment', 'created_at']


class ReviewCreateSerializer(serializers.Serializer):
    worker_id = serializers.PrimaryKeyRelatedField(queryset=WorkerProfile.objects.all(), source='worker')
    booking_id = serializers.PrimaryKeyRelatedField(queryset=Booking.objects.all(), source='booking')
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')

    def create(self, validated_data: dict[str, Any]) -> Review:
        return Review.objects.create(customer=self.context['request'].user, **validated_data)


class ComplaintSerializer(serializers.ModelSerializer):
    customer = ContactSerializer(read_only=True)
    title = serializers.CharField(min_length=5, max_length=200, trim_whitespace=True)
    description = serializers.CharField(min_length=20, trim_whitespace=True)

    class Meta:
        model = Complaint
        fields = ['id', 'customer', 'title', 'description', 'priority', 'status', 'created_at', 'updated_at']
        read_only_fields = ['id', 'customer', 'status', 'created_at', 'updated_at']


class ComplaintStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Complaint.STATUS_CHOICES)
    priority = serializers.ChoiceField(choices=Complaint.PRIORITY_CHOICES, required=False)


# Worker directory and profile projections


def _review_rows(reviews) -> list[dict[str, Any]]:
    return [
        {
            'id': r.id,
            'rating': r.rating,
            'comment': r.comment,
            'customer_name': r.customer.name,
            'created_at': r.created_at,
        }
        for r in reviews
    ]


class WorkerListSerializer(WorkerProfileSerializer):
    reviews = serializers.SerializerMethodField()
    completed_jobs = serializers.SerializerMethodField()

    class Meta(WorkerProfileSerializer.Meta):
        fields = WorkerProfileSerializer.Meta.fields + ['reviews', 'completed_jobs']

    def get_reviews(self, obj: WorkerProfile):
        return _review_rows(obj.reviews.select_related('customer')[:5])

    def get_completed_jobs(self, obj: WorkerProfile) -> int:
        return obj.bookings.filter(status=Booking.STATUS_COMPLETED).count()


class WorkerDetailSerializer(WorkerProfileSerializer):
    reviews = serializers.SerializerMethodField()
    bookings = serializers.SerializerMethodField()
    stats = serializers.SerializerMethodField()

    recent_bookings = 10
    recent_reviews = None

    class Meta(WorkerProfileSerializer.Meta):
        fields = WorkerProfileSerializer.Meta.fields + ['reviews', 'bookings', 'stats']

    def get_reviews(self, obj: WorkerProfile):
        reviews = obj.reviews.select_related('customer')
        if self.recent_reviews:
            reviews = reviews[: self.recent_reviews]
        return _review_rows(reviews)

    def get_bookings(self, obj: WorkerProfile):
        qs = obj.bookings.select_related('service', 'customer')
        if self.recent_bookings:
            qs = qs[: self.recent_bookings]
        return BookingSerializer(qs, many=True).data

    def get_stats(self, obj: WorkerProfile) -> dict[str, Any]:
        ratings = list(obj.reviews.values_list('rating', flat=True))
        average = sum(ratings) / len(ratings) if ratings else 0
        return {
            'completed_jobs': obj.bookings.filter(status=Booking.STATUS_COMPLETED).count(),
            'avg_rating': round_rating(average),
            'total_reviews': len(ratings),
        }


class AccountWorkerSerializer(WorkerDetailSerializer):
    """Worker block embedded in the account profile."""

    recent_reviews = 10


class OwnWorkerProfileSerializer(WorkerDetailSerializer):
    """The worker's own profile: every booking plus earnings."""

    recent_bookings = None

    class Meta(WorkerDetailSerializer.Meta):
        fields = WorkerDetailSerializer.Meta.fields + ['aadhar_card', 'pan_card', 'profile_photo']

    def get_stats(self, obj: WorkerProfile) -> dict[str, Any]:
        stats = super().get_stats(obj)
        completed = obj.bookings.filter(status=Booking.STATUS_COMPLETED)
        stats['total_earnings'] = sum((b.total_amount for b in completed), 0)
        return stats


class AdminWorkerSerializer(WorkerProfileSerializer):
    stats = serializers.SerializerMethodField()

    class Meta(WorkerProfileSerializer.Meta):
        fields = WorkerProfileSerializer.Meta.fields + ['stats']

    def get_stats(self, obj: WorkerProfile) -> dict[str, Any]:
        completed = obj.bookings.filter(status=Booking.STATUS_COMPLETED)
        ratings = list(obj.reviews.values_list('rating', flat=True))
        return {
            'total_earnings': sum((b.total_amount for b in completed), 0),
            'completed_jobs': completed.count(),
            'average_rating': sum(ratings) / len(ratings) if ratings else obj.rating,
        }


class AdminUserSerializer(UserSerializer):
    customer_profile = CustomerProfileSerializer(read_only=True)
    worker_profile = WorkerProfileSerializer(read_only=True)
    bookings = serializers.SerializerMethodField()

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + ['customer_profile', 'worker_profile', 'bookings']

    def get_bookings(self, obj: User):
        return [{'id': b['id'], 'status': b['status']} for b in obj.bookings.values('id', 'status')]
