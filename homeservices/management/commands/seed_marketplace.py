from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from homeservices.models import (
    Address,
    Booking,
    CustomerProfile,
    Review,
    Service,
    User,
    WorkerProfile,
)

SERVICES = [
    ('House Cleaning', 'Cleaning', 'Complete house cleaning service', Decimal('50.00')),
    ('Plumbing', 'Maintenance', 'Professional plumbing services', Decimal('80.00')),
    ('Electrical Work', 'Maintenance', 'Licensed electrical services', Decimal('90.00')),
    ('Gardening', 'Outdoor', 'Garden maintenance and landscaping', Decimal('40.00')),
]

WEEKDAY_HOURS = {'available': True, 'start_time': '09:00', 'end_time': '18:00'}


class Command(BaseCommand):
    help = 'Seed the catalog with demo services, an admin, a customer and a verified worker.'

    @transaction.atomic
    def handle(self, *args, **options):
        services = []
        for name, category, description, price in SERVICES:
            service, _ = Service.objects.get_or_create(
                name=name,
                defaults={'category': category, 'description': description, 'base_price': price},
            )
            services.append(service)

        admin = self._user('admin@homeservice.com', 'admin123', 'Admin User', User.ROLE_ADMIN)
        admin.is_staff = True
        admin.is_superuser = True
        admin.save(update_fields=['is_staff', 'is_superuser'])

        customer = self._user('customer@example.com', 'customer123', 'John Doe', User.ROLE_CUSTOMER, '+1234567890')
        profile, _ = CustomerProfile.objects.get_or_create(user=customer)
        if not profile.addresses.exists():
            Address.objects.create(
                customer=profile,
                street='123 Main St',
                city='New York',
                state='NY',
                zip_code='10001',
                is_default=True,
            )

        worker_user = self._user('worker@example.com', 'worker123', 'Jane Smith', User.ROLE_WORKER, '+1234567891')
        worker, created = WorkerProfile.objects.get_or_create(
            user=worker_user,
            defaults={
                'profession': 'AC Technician',
                'experience': 5,
                'hourly_rate': Decimal('500.00'),
                'kyc_status': WorkerProfile.KYC_VERIFIED,
                'is_verified': True,
                'skills': ['AC Installation', 'Gas Refill', 'Copper Piping', 'Electrical Work'],
                'availability': {
                    **{day: dict(WEEKDAY_HOURS) for day in ('monday', 'tuesday', 'wednesday', 'thursday', 'friday')},
                    'saturday': {'available': True, 'start_time': '10:00', 'end_time': '16:00'},
                    'sunday': {'available': False, 'start_time': '', 'end_time': ''},
                },
            },
        )

        if created:
            now = timezone.now()
            history = [
                (services[1], 7, Decimal('850.00'), '123 Main St', 'Fixed kitchen sink leak', 5,
                 'Excellent work! Very professional and quick.'),
                (services[2], 3, Decimal('1200.00'), '456 Oak Ave', 'Installed new ceiling fan', 4,
                 'Good service, arrived on time.'),
            ]
            for service, days_ago, amount, street, notes, stars, comment in history:
                scheduled = now - timedelta(days=days_ago)
                booking = Booking.objects.create(
                    customer=customer,
                    worker=worker,
                    service=service,
                    status=Booking.STATUS_COMPLETED,
                    scheduled_at=scheduled,
                    completed_at=scheduled + timedelta(hours=2),
                    total_amount=amount,
                    address={'street': street, 'city': 'New York', 'state': 'NY', 'zip_code': '10001'},
                    notes=notes,
                )
                Review.objects.create(booking=booking, customer=customer, worker=worker, rating=stars, comment=comment)
            WorkerProfile.objects.filter(pk=worker.pk).update(total_jobs=len(history))

        self.stdout.write(self.style.SUCCESS('Marketplace seeded.'))
        self.stdout.write(f'Admin: {admin.email} / admin123')
        self.stdout.write(f'Customer: {customer.email} / customer123')
        self.stdout.write(f'Worker: {worker_user.email} / worker123')

    def _user(self, email, password, name, role, phone=''):
        user, created = User.objects.get_or_create(email=email, defaults={'name': name, 'role': role, 'phone': phone})
        if created:
            user.set_password(password)
            user.save(update_fields=['password'])
        return user
