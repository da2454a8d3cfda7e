from datetime import timedelta
from decimal import Decimal

from django.utils import timezone
from rest_framework.test import APIClient

from homeservices.models import Booking, CustomerProfile, Service, User, WorkerProfile
from homeservices.tokens import issue_token

PASSWORD = 'secret123'


def make_customer(email='customer@example.com', name='Casey Customer'):
    user = User.objects.create_user(email=email, password=PASSWORD, name=name, role=User.ROLE_CUSTOMER)
    CustomerProfile.objects.create(user=user)
    return user


def make_worker(email='worker@example.com', name='Wren Worker', **profile):
    user = User.objects.create_user(email=email, password=PASSWORD, name=name, role=User.ROLE_WORKER)
    profile.setdefault('profession', 'Plumber')
    WorkerProfile.objects.create(user=user, **profile)
    return user


def make_admin(email='admin@example.com'):
    return User.objects.create_user(email=email, password=PASSWORD, name='Ada Admin', role=User.ROLE_ADMIN)


def make_service(name='Plumbing', category='Maintenance', price='80.00'):
    return Service.objects.create(
        name=name,
        category=category,
        description='Professional plumbing services',
        base_price=Decimal(price),
    )


def make_booking(customer, service, worker=None, status=Booking.STATUS_PENDING, amount='100.00', **extra):
    return Booking.objects.create(
        customer=customer,
        service=service,
        worker=worker,
        status=status,
        scheduled_at=timezone.now() + timedelta(days=1),
        total_amount=Decimal(amount),
        address={'street': '1 Main St', 'city': 'Springfield'},
        **extra,
    )


def client_for(user=None):
    client = APIClient()
    if user is not None:
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_token(user)}')
    return client
