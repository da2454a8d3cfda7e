"""Domain models for the home services marketplace."""
from __future__ import annotations

import logging
import math
import uuid
from decimal import Decimal

from django.conf import settings
from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.core.validators import MaxLengthValidator, MaxValueValidator, MinValueValidator
from django.db import models, transaction
from django.db.models import Avg, F
from django.utils import timezone

logger = logging.getLogger(__name__)


class BaseModel(models.Model):
    """Base model that uses UUID primary keys for consistency."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    class Meta:
        abstract = True


class TimestampedModel(BaseModel):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class UserManager(BaseUserManager):
    use_in_migrations = True

    @classmethod
    def normalize_email(cls, email):
        """Emails are matched case-insensitively, so store them lowercased."""
        return super().normalize_email(email).lower()

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('The email must be set')
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', User.ROLE_ADMIN)
        return self.create_user(email, password, **extra_fields)


class User(AbstractUser):
    ROLE_CUSTOMER = 'CUSTOMER'
    ROLE_WORKER = 'WORKER'
    ROLE_ADMIN = 'ADMIN'
    ROLE_CHOICES = [
        (ROLE_CUSTOMER, 'Customer'),
        (ROLE_WORKER, 'Worker'),
        (ROLE_ADMIN, 'Admin'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    username = None
    first_name = None
    last_name = None
    email = models.EmailField(unique=True)
    name = models.CharField(max_length=150)
    phone = models.CharField(max_length=30, blank=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_CUSTOMER, db_index=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['name']

    objects = UserManager()

    class Meta:
        ordering = ['-date_joined']

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.email

    @property
    def is_customer(self) -> bool:
        return self.role == self.ROLE_CUSTOMER

    @property
    def is_worker(self) -> bool:
        return self.role == self.ROLE_WORKER

    @property
    def is_admin(self) -> bool:
        return self.role == self.ROLE_ADMIN


class CustomerProfile(BaseModel):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='customer_profile')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"CustomerProfile({self.user.email})"

    @transaction.atomic
    def set_default_address(self, address: 'Address') -> 'Address':
        """Make ``address`` the only default address of this customer.

        The customer's address rows are locked for the duration of the
        unset/set pair so concurrent callers serialize on them.
        """
        list(self.addresses.select_for_update())
        self.addresses.exclude(pk=address.pk).update(is_default=False)
        address.is_default = True
        address.save(update_fields=['is_default', 'updated_at'])
        return address


class WorkerProfile(BaseModel):
    KYC_PENDING = 'PENDING'
    KYC_VERIFIED = 'VERIFIED'
    KYC_REJECTED = 'REJECTED'
    KYC_STATUS_CHOICES = [
        (KYC_PENDING, 'Pending'),
        (KYC_VERIFIED, 'Verified'),
        (KYC_REJECTED, 'Rejected'),
    ]

    DEFAULT_PROFESSION = 'General Service'
    DEFAULT_HOURLY_RATE = Decimal('50.00')

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='worker_profile')
    profession = models.CharField(max_length=100, default=DEFAULT_PROFESSION)
    experience = models.PositiveIntegerField(default=0)
    hourly_rate = models.DecimalField(max_digits=10, decimal_places=2, default=DEFAULT_HOURLY_RATE)
    kyc_status = models.CharField(max_length=20, choices=KYC_STATUS_CHOICES, default=KYC_PENDING, db_index=True)
    is_verified = models.BooleanField(default=False)
    is_available = models.BooleanField(default=True)
    rating = models.FloatField(default=0, validators=[MinValueValidator(0), MaxValueValidator(5)])
    total_jobs = models.PositiveIntegerField(default=0)
    skills = models.JSONField(default=list, blank=True)
    portfolio = models.JSONField(default=list, blank=True)
    availability = models.JSONField(default=dict, blank=True)
    aadhar_card = models.CharField(max_length=255, blank=True)
    pan_card = models.CharField(max_length=255, blank=True)
    profile_photo = models.CharField(max_length=500, blank=True)
    kyc_submitted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-rating', '-total_jobs']

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"WorkerProfile({self.user.email})"

    @transaction.atomic
    def recalc_rating(self) -> float:
        """Recompute the cached rating as the plain mean of every review."""
        locked = WorkerProfile.objects.select_for_update().get(pk=self.pk)
        average = Review.objects.filter(worker=locked).aggregate(avg=Avg('rating'))['avg']
        locked.rating = float(average) if average is not None else 0.0
        locked.save(update_fields=['rating', 'updated_at'])
        self.rating = locked.rating
        return self.rating

    def decide_kyc(self, kyc_status: str) -> None:
        self.kyc_status = kyc_status
        self.is_verified = kyc_status == self.KYC_VERIFIED
        self.save(update_fields=['kyc_status', 'is_verified', 'updated_at'])
        logger.info("KYC for worker %s set to %s", self.pk, kyc_status)


class Address(TimestampedModel):
    customer = models.ForeignKey(CustomerProfile, on_delete=models.CASCADE, related_name='addresses')
    type = models.CharField(max_length=30, blank=True, default='HOME')
    street = models.CharField(max_length=255)
    city = models.CharField(max_length=100)
    state = models.CharField(max_length=100, blank=True)
    zip_code = models.CharField(max_length=20, blank=True)
    is_default = models.BooleanField(default=False)

    class Meta:
        ordering = ['-is_default', '-created_at']

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.street}, {self.city}"


class Service(TimestampedModel):
    name = models.CharField(max_length=100)
    category = models.CharField(max_length=100, db_index=True)
    description = models.TextField(blank=True)
    base_price = models.DecimalField(max_digits=10, decimal_places=2)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self) -> str:  # pragma: no cover
        return self.name


class InvalidTransition(Exception):
    """Raised when a status change is outside the booking transition table."""


class Booking(TimestampedModel):
    STATUS_PENDING = 'PENDING'
    STATUS_CONFIRMED = 'CONFIRMED'
    STATUS_IN_PROGRESS = 'IN_PROGRESS'
    STATUS_COMPLETED = 'COMPLETED'
    STATUS_CANCELLED = 'CANCELLED'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_CONFIRMED, 'Confirmed'),
        (STATUS_IN_PROGRESS, 'In progress'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]
    ACTIVE_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_IN_PROGRESS)

    customer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='bookings')
    worker = models.ForeignKey(
        WorkerProfile, on_delete=models.SET_NULL, null=True, blank=True, related_name='bookings'
    )
    service = models.ForeignKey(Service, on_delete=models.PROTECT, related_name='bookings')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    scheduled_at = models.DateTimeField(db_index=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2)
    address = models.JSONField(default=dict)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [models.Index(fields=['status', 'scheduled_at'], name='booking_status_sched_idx')]

    ALLOWED_TRANSITIONS = {
        STATUS_PENDING: {STATUS_CONFIRMED, STATUS_CANCELLED},
        STATUS_CONFIRMED: {STATUS_IN_PROGRESS, STATUS_COMPLETED, STATUS_CANCELLED},
        STATUS_IN_PROGRESS: {STATUS_COMPLETED, STATUS_CANCELLED},
    }

    def __str__(self) -> str:  # pragma: no cover
        return f"Booking({self.service_id}, {self.status})"

    def change_status(self, new_status: str, enforce: bool | None = None) -> None:
        """Move the booking to ``new_status``.

        Completing a booking stamps ``completed_at`` and bumps the assigned
        worker's job counter in the same transaction.
        """
        if enforce is None:
            enforce = getattr(settings, 'BOOKING_ENFORCE_TRANSITIONS', False)
        if enforce and new_status not in self.ALLOWED_TRANSITIONS.get(self.status, set()):
            raise InvalidTransition(f"Invalid transition from {self.status} to {new_status}")

        with transaction.atomic():
            self.status = new_status
            update_fields = ['status', 'updated_at']
            if new_status == self.STATUS_COMPLETED:
                self.completed_at = timezone.now()
                update_fields.append('completed_at')
            self.save(update_fields=update_fields)
            if new_status == self.STATUS_COMPLETED and self.worker_id:
                WorkerProfile.objects.filter(pk=self.worker_id).update(total_jobs=F('total_jobs') + 1)
        logger.info("Booking %s moved to %s", self.pk, new_status)


class Review(TimestampedModel):
    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name='reviews')
    customer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='reviews_written')
    worker = models.ForeignKey(WorkerProfile, on_delete=models.CASCADE, related_name='reviews')
    rating = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(5)])
    comment = models.TextField(blank=True, validators=[MaxLengthValidator(500)])

    class Meta:
        ordering = ['-created_at']

    def save(self, *args, **kwargs):
        is_new = self._state.adding
        with transaction.atomic():
            super().save(*args, **kwargs)
            if is_new:
                self.worker.recalc_rating()


class Complaint(TimestampedModel):
    PRIORITY_LOW = 'LOW'
    PRIORITY_MEDIUM = 'MEDIUM'
    PRIORITY_HIGH = 'HIGH'
    PRIORITY_URGENT = 'URGENT'
    PRIORITY_CHOICES = [
        (PRIORITY_LOW, 'Low'),
        (PRIORITY_MEDIUM, 'Medium'),
        (PRIORITY_HIGH, 'High'),
        (PRIORITY_URGENT, 'Urgent'),
    ]

    STATUS_OPEN = 'OPEN'
    STATUS_IN_PROGRESS = 'IN_PROGRESS'
    STATUS_RESOLVED = 'RESOLVED'
    STATUS_CLOSED = 'CLOSED'
    STATUS_CHOICES = [
        (STATUS_OPEN, 'Open'),
        (STATUS_IN_PROGRESS, 'In progress'),
        (STATUS_RESOLVED, 'Resolved'),
        (STATUS_CLOSED, 'Closed'),
    ]

    customer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='complaints')
    title = models.CharField(max_length=200)
    description = models.TextField()
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default=PRIORITY_MEDIUM)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_OPEN, db_index=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self) -> str:  # pragma: no cover
        return self.title


# Utility functions


def round_rating(value) -> float:
    """Display rounding for ratings: one decimal place."""
    return math.floor(float(value or 0) * 10 + 0.5) / 10
