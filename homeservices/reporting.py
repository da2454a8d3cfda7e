"""Read-side projections: dashboards, notifications and analytics.

Each role gets one report class. The class is picked once from the caller's
role by :func:`report_for` and every method recomputes its numbers from the
current rows. Nothing here writes to the database, and notifications are
never stored: "read" state does not exist beyond a single response.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from typing import Any

from django.conf import settings
from django.db.models import Avg, Count, Q, Sum
from django.db.models.functions import Coalesce, TruncDate
from django.utils import timezone
from rest_framework.exceptions import NotFound

from .models import Booking, Complaint, Review, Service, User, WorkerProfile, round_rating
from .serializers import (
    BookingSerializer,
    ComplaintSerializer,
    ReviewSerializer,
    ServiceSerializer,
    WorkerProfileSerializer,
)

ZERO = Decimal('0.00')
EPOCH = datetime(1970, 1, 1, tzinfo=dt_timezone.utc)
LIVE_STATUSES = (Booking.STATUS_CONFIRMED, Booking.STATUS_IN_PROGRESS)


def _money(qs) -> Decimal:
    return qs.aggregate(total=Coalesce(Sum('total_amount'), ZERO))['total']


def _status_label(status: str) -> str:
    return status.lower().replace('_', ' ')


def _notification(key, kind, title, message, data, created_at) -> dict[str, Any]:
    return {
        'id': key,
        'type': kind,
        'title': title,
        'message': message,
        'data': data,
        'created_at': created_at,
        'read': False,
    }


def _by_day(rows) -> dict[str, Decimal]:
    result: dict[str, Decimal] = {}
    for row in rows:
        result[row['day'].isoformat()] = row['total']
    return result


def window_start(days: int):
    return timezone.now() - timedelta(days=days)


class RoleReport:
    """Common contract for per-role dashboards and notifications."""

    role: str = ''

    def __init__(self, user: User):
        self.user = user

    def dashboard(self) -> dict[str, Any]:
        raise NotImplementedError

    def stats(self) -> dict[str, Any]:
        raise NotImplementedError

    def notification_items(self) -> list[dict[str, Any]]:
        raise NotImplementedError

    def notifications(self) -> dict[str, Any]:
        items = self.notification_items()
        # Items without a timestamp sink to the bottom.
        items.sort(key=lambda n: n['created_at'] or EPOCH, reverse=True)
        limit = getattr(settings, 'NOTIFICATIONS_LIMIT', 20)
        return {
            'notifications': items[:limit],
            'unread_count': sum(1 for n in items if not n['read']),
        }


class CustomerReport(RoleReport):
    role = User.ROLE_CUSTOMER

    def _bookings(self):
        return Booking.objects.filter(customer=self.user)

    def stats(self) -> dict[str, Any]:
        bookings = self._bookings()
        return {
            'total_bookings': bookings.count(),
            'active_bookings': bookings.filter(status__in=Booking.ACTIVE_STATUSES).count(),
            'completed_bookings': bookings.filter(status=Booking.STATUS_COMPLETED).count(),
            'total_spent': _money(bookings.filter(status=Booking.STATUS_COMPLETED)),
        }

    def dashboard(self) -> dict[str, Any]:
        recent = self._bookings().select_related('service', 'customer', 'worker__user')[:5]
        services = Service.objects.filter(is_active=True).order_by('-created_at')[:6]
        return {
            'stats': self.stats(),
            'recent_bookings': BookingSerializer(recent, many=True).data,
            'available_services': ServiceSerializer(services, many=True).data,
        }

    def notification_items(self) -> list[dict[str, Any]]:
        bookings = (
            self._bookings()
            .filter(status__in=[Booking.STATUS_CONFIRMED, Booking.STATUS_IN_PROGRESS, Booking.STATUS_COMPLETED])
            .select_related('service', 'customer', 'worker__user')
            .order_by('-updated_at')[:10]
        )
        return [
            _notification(
                str(b.id),
                'booking_update',
                f'Booking {_status_label(b.status)}',
                f'Your {b.service.name} booking is {_status_label(b.status)}',
                BookingSerializer(b).data,
                b.updated_at,
            )
            for b in bookings
        ]


class WorkerReport(RoleReport):
    role = User.ROLE_WORKER

    def __init__(self, user: User):
        super().__init__(user)
        try:
            self.worker = user.worker_profile
        except WorkerProfile.DoesNotExist as exc:
            raise NotFound('Worker profile not found') from exc

    def _jobs(self):
        return Booking.objects.filter(worker=self.worker)

    def stats(self) -> dict[str, Any]:
        jobs = self._jobs()
        return {
            'total_jobs': jobs.count(),
            'active_jobs': jobs.filter(status__in=LIVE_STATUSES).count(),
            'completed_jobs': jobs.filter(status=Booking.STATUS_COMPLETED).count(),
            'total_earnings': _money(jobs.filter(status=Booking.STATUS_COMPLETED)),
            'rating': self.worker.rating,
            'is_verified': self.worker.is_verified,
        }

    def dashboard(self) -> dict[str, Any]:
        recent = self._jobs().select_related('service', 'customer', 'worker__user')[:10]
        open_jobs = (
            Booking.objects.filter(status=Booking.STATUS_PENDING, worker__isnull=True)
            .select_related('service', 'customer')[:5]
        )
        return {
            'stats': self.stats(),
            'recent_jobs': BookingSerializer(recent, many=True).data,
            'available_jobs': BookingSerializer(open_jobs, many=True).data,
        }

    def notification_items(self) -> list[dict[str, Any]]:
        new_jobs = (
            Booking.objects.filter(status=Booking.STATUS_PENDING, worker__isnull=True)
            .select_related('service', 'customer')
            .order_by('-created_at')[:5]
        )
        completed = (
            self._jobs()
            .filter(status=Booking.STATUS_COMPLETED)
            .select_related('service', 'customer', 'worker__user')
            .order_by('-completed_at')[:5]
        )
        items = [
            _notification(
                f'new_{b.id}',
                'new_job',
                'New Job Available',
                f'{b.service.name} job available for ₹{b.total_amount}',
                BookingSerializer(b).data,
                b.created_at,
            )
            for b in new_jobs
        ]
        items += [
            _notification(
                f'completed_{b.id}',
                'job_completed',
                'Job Completed',
                f'You earned ₹{b.total_amount} from {b.service.name}',
                BookingSerializer(b).data,
                b.completed_at,
            )
            for b in completed
        ]
        return items

    def analytics(self, days: int) -> dict[str, Any]:
        start = window_start(days)
        earnings = self._jobs().filter(status=Booking.STATUS_COMPLETED, completed_at__gte=start)
        by_day = (
            earnings.annotate(day=TruncDate('completed_at'))
            .values('day')
            .annotate(total=Sum('total_amount'))
            .order_by('day')
        )
        booking_stats = (
            self._jobs().filter(created_at__gte=start)
            .values('status')
            .annotate(count=Count('id'))
            .order_by('status')
        )
        reviews = Review.objects.filter(worker=self.worker, created_at__gte=start).select_related('customer', 'worker__user')
        average = reviews.aggregate(avg=Avg('rating'))['avg']
        return {
            'earnings_by_day': _by_day(by_day),
            'booking_stats': list(booking_stats),
            'recent_reviews': ReviewSerializer(reviews, many=True).data,
            'total_earnings': _money(earnings),
            'avg_rating': float(average) if average is not None else 0,
        }


class AdminReport(RoleReport):
    role = User.ROLE_ADMIN

    def users_by_role(self) -> dict[str, int]:
        counts = {row['role']: row['count'] for row in User.objects.values('role').annotate(count=Count('id'))}
        return {role: counts.get(role, 0) for role, _ in User.ROLE_CHOICES}

    def stats(self) -> dict[str, Any]:
        by_role = self.users_by_role()
        return {
            'total_users': sum(by_role.values()),
            'customers': by_role[User.ROLE_CUSTOMER],
            'workers': by_role[User.ROLE_WORKER],
            'total_bookings': Booking.objects.count(),
            'total_revenue': _money(Booking.objects.filter(status=Booking.STATUS_COMPLETED)),
            'pending_complaints': Complaint.objects.filter(status=Complaint.STATUS_OPEN).count(),
        }

    def dashboard(self) -> dict[str, Any]:
        limit = getattr(settings, 'DASHBOARD_RECENT_LIMIT', 10)
        recent = Booking.objects.select_related('service', 'customer', 'worker__user')[:limit]
        complaints = Complaint.objects.filter(status=Complaint.STATUS_OPEN).select_related('customer')[:5]
        top_workers = WorkerProfile.objects.select_related('user').order_by('-rating')[:5]
        return {
            'stats': self.stats(),
            'recent_bookings': BookingSerializer(recent, many=True).data,
            'pending_complaints': ComplaintSerializer(complaints, many=True).data,
            'top_workers': WorkerProfileSerializer(top_workers, many=True).data,
        }

    def overview(self) -> dict[str, Any]:
        """Platform wide counters for the admin stats page."""
        by_role = self.users_by_role()
        worker_stats = WorkerProfile.objects.aggregate(count=Count('id'), avg=Avg('rating'))
        by_status = {}
        for row in Booking.objects.values('status').annotate(count=Count('id'), revenue=Sum('total_amount')):
            by_status[row['status'].lower()] = {'count': row['count'], 'revenue': row['revenue'] or ZERO}
        completed = Booking.objects.filter(status=Booking.STATUS_COMPLETED)
        recent = Booking.objects.select_related('service', 'customer', 'worker__user')[:10]
        return {
            'users': {
                'total': sum(by_role.values()),
                'customers': by_role[User.ROLE_CUSTOMER],
                'workers': by_role[User.ROLE_WORKER],
                'admins': by_role[User.ROLE_ADMIN],
            },
            'workers': {
                'total': worker_stats['count'],
                'average_rating': round_rating(worker_stats['avg']),
            },
            'bookings': {
                'total': sum(s['count'] for s in by_status.values()),
                'by_status': by_status,
            },
            'revenue': {
                'total': _money(completed),
                'completed_bookings': completed.count(),
            },
            'recent_activity': BookingSerializer(recent, many=True).data,
        }

    def notification_items(self) -> list[dict[str, Any]]:
        pending_workers = WorkerProfile.objects.filter(is_verified=False).select_related('user')[:5]
        complaints = (
            Complaint.objects.filter(status=Complaint.STATUS_OPEN).select_related('customer').order_by('-created_at')[:5]
        )
        revenue = (
            Booking.objects.filter(status=Booking.STATUS_COMPLETED)
            .select_related('service', 'customer', 'worker__user')
            .order_by('-completed_at')[:5]
        )
        items = [
            _notification(
                f'verify_{w.id}',
                'worker_verification',
                'Worker Verification Pending',
                f'{w.user.name} is waiting for verification',
                WorkerProfileSerializer(w).data,
                w.user.date_joined,
            )
            for w in pending_workers
        ]
        items += [
            _notification(
                f'complaint_{c.id}',
                'new_complaint',
                'New Complaint Filed',
                f'{c.customer.name}: {c.title}',
                ComplaintSerializer(c).data,
                c.created_at,
            )
            for c in complaints
        ]
        items += [
            _notification(
                f'revenue_{b.id}',
                'revenue_update',
                'New Revenue',
                f'₹{b.total_amount} earned from {b.service.name}',
                BookingSerializer(b).data,
                b.completed_at,
            )
            for b in revenue
        ]
        return items

    def analytics(self, days: int) -> dict[str, Any]:
        start = window_start(days)
        user_growth = (
            User.objects.filter(date_joined__gte=start)
            .values('role')
            .annotate(count=Count('id'))
            .order_by('role')
        )
        booking_trends = (
            Booking.objects.filter(created_at__gte=start)
            .values('status')
            .annotate(count=Count('id'), revenue=Coalesce(Sum('total_amount'), ZERO))
            .order_by('status')
        )
        revenue = Booking.objects.filter(status=Booking.STATUS_COMPLETED, completed_at__gte=start)
        revenue_by_day = (
            revenue.annotate(day=TruncDate('completed_at'))
            .values('day')
            .annotate(total=Sum('total_amount'))
            .order_by('day')
        )
        revenue_by_category = {
            row['service__category']: row['total']
            for row in revenue.values('service__category').annotate(total=Sum('total_amount')).order_by('service__category')
        }

        workers = WorkerProfile.objects.select_related('user').order_by('-rating')[:10]
        performance = []
        for worker in workers:
            earned = _money(worker.bookings.filter(status=Booking.STATUS_COMPLETED, completed_at__gte=start))
            average = worker.reviews.aggregate(avg=Avg('rating'))['avg']
            row = WorkerProfileSerializer(worker).data
            row['total_earnings'] = earned
            row['avg_rating'] = float(average) if average is not None else 0
            performance.append(row)

        services = (
            Service.objects.annotate(
                total_bookings=Count('bookings', filter=Q(bookings__created_at__gte=start)),
                total_revenue=Coalesce(Sum('bookings__total_amount', filter=Q(bookings__created_at__gte=start)), ZERO),
            )
            .order_by('-total_bookings', 'name')[:10]
        )
        service_stats = []
        for service in services:
            row = ServiceSerializer(service).data
            row['total_bookings'] = service.total_bookings
            row['total_revenue'] = service.total_revenue
            service_stats.append(row)

        return {
            'user_growth': list(user_growth),
            'booking_trends': list(booking_trends),
            'revenue_by_day': _by_day(revenue_by_day),
            'revenue_by_category': revenue_by_category,
            'worker_performance': performance,
            'service_stats': service_stats,
        }


REPORTS = {report.role: report for report in (CustomerReport, WorkerReport, AdminReport)}


def report_for(user: User) -> RoleReport:
    return REPORTS[user.role](user)
