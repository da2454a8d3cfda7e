from datetime import timedelta
from unittest import mock

from django.test import TestCase, override_settings
from django.utils import timezone

from homeservices.models import Booking, Complaint, Review, WorkerProfile
from homeservices.reporting import AdminReport, CustomerReport, WorkerReport, report_for

from .helpers import client_for, make_admin, make_booking, make_customer, make_service, make_worker


class ReportDispatchTests(TestCase):
    def test_report_for_role(self):
        self.assertIsInstance(report_for(make_customer()), CustomerReport)
        self.assertIsInstance(report_for(make_worker()), WorkerReport)
        self.assertIsInstance(report_for(make_admin()), AdminReport)


class DashboardTests(TestCase):
    def setUp(self):
        self.customer = make_customer()
        self.worker_user = make_worker()
        self.worker = self.worker_user.worker_profile
        self.service = make_service()
        make_booking(self.customer, self.service)
        make_booking(self.customer, self.service, worker=self.worker, status=Booking.STATUS_IN_PROGRESS)
        self.done = make_booking(
            self.customer, self.service, worker=self.worker, status=Booking.STATUS_COMPLETED, amount='250.00',
            completed_at=timezone.now(),
        )

    def test_customer_dashboard(self):
        response = client_for(self.customer).get('/api/dashboard/')
        self.assertEqual(response.status_code, 200)
        stats = response.data['stats']
        self.assertEqual(stats['total_bookings'], 3)
        self.assertEqual(stats['active_bookings'], 2)
        self.assertEqual(stats['completed_bookings'], 1)
        self.assertEqual(stats['total_spent'], 250)
        self.assertEqual(len(response.data['recent_bookings']), 3)
        self.assertEqual(len(response.data['available_services']), 1)

    def test_worker_dashboard(self):
        response = client_for(self.worker_user).get('/api/dashboard/')
        stats = response.data['stats']
        self.assertEqual(stats['total_jobs'], 2)
        self.assertEqual(stats['active_jobs'], 1)
        self.assertEqual(stats['total_earnings'], 250)
        self.assertEqual(len(response.data['available_jobs']), 1)

    def test_admin_dashboard(self):
        Complaint.objects.create(customer=self.customer, title='Broken', description='Something went badly wrong')
        response = client_for(make_admin()).get('/api/dashboard/')
        stats = response.data['stats']
        self.assertEqual(stats['total_users'], 3)
        self.assertEqual(stats['customers'], 1)
        self.assertEqual(stats['workers'], 1)
        self.assertEqual(stats['total_bookings'], 3)
        self.assertEqual(stats['pending_complaints'], 1)
        self.assertEqual(len(response.data['top_workers']), 1)

    def test_dashboard_stats_endpoint(self):
        customer = client_for(self.customer).get('/api/users/dashboard-stats/')
        self.assertEqual(customer.data['total_bookings'], 3)
        admin = client_for(make_admin()).get('/api/users/dashboard-stats/')
        self.assertEqual(admin.data, {})

    def test_unexpected_error_is_reported(self):
        with mock.patch('homeservices.views.report_for', side_effect=RuntimeError('boom')):
            response = client_for(self.customer).get('/api/dashboard/')
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data, {'error': 'boom'})

    def test_worker_without_profile_is_not_found(self):
        WorkerProfile.objects.filter(pk=self.worker.pk).delete()
        self.worker_user.refresh_from_db()
        response = client_for(self.worker_user).get('/api/dashboard/')
        self.assertEqual(response.status_code, 404)


class NotificationTests(TestCase):
    def setUp(self):
        self.customer = make_customer()
        self.worker_user = make_worker()
        self.service = make_service()

    def test_customer_booking_updates(self):
        make_booking(self.customer, self.service)
        make_booking(self.customer, self.service, status=Booking.STATUS_CONFIRMED)
        response = client_for(self.customer).get('/api/notifications/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['unread_count'], 1)
        note = response.data['notifications'][0]
        self.assertEqual(note['type'], 'booking_update')
        self.assertFalse(note['read'])

    def test_worker_feed_sorted_newest_first(self):
        worker = self.worker_user.worker_profile
        now = timezone.now()
        make_booking(self.customer, self.service)
        make_booking(
            self.customer, self.service, worker=worker, status=Booking.STATUS_COMPLETED,
            completed_at=now - timedelta(days=3),
        )
        response = client_for(self.worker_user).get('/api/notifications/')
        kinds = [n['type'] for n in response.data['notifications']]
        self.assertEqual(kinds, ['new_job', 'job_completed'])

    @override_settings(NOTIFICATIONS_LIMIT=2)
    def test_limit_and_unread_count(self):
        for _ in range(3):
            make_booking(self.customer, self.service)
        response = client_for(self.worker_user).get('/api/notifications/')
        self.assertEqual(len(response.data['notifications']), 2)
        self.assertEqual(response.data['unread_count'], 3)

    def test_admin_feed(self):
        make_worker(email='fresh@example.com')
        Complaint.objects.create(customer=self.customer, title='Rude staff', description='Rude and dismissive worker')
        response = client_for(make_admin()).get('/api/notifications/')
        kinds = {n['type'] for n in response.data['notifications']}
        self.assertEqual(kinds, {'worker_verification', 'new_complaint'})

    def test_mark_read_is_acknowledged(self):
        response = client_for(self.customer).put('/api/notifications/new_123/read/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, {'success': True})


class AnalyticsTests(TestCase):
    def setUp(self):
        self.customer = make_customer()
        self.worker_user = make_worker()
        self.worker = self.worker_user.worker_profile
        self.service = make_service()
        booking = make_booking(
            self.customer, self.service, worker=self.worker, status=Booking.STATUS_COMPLETED, amount='300.00',
            completed_at=timezone.now(),
        )
        Review.objects.create(booking=booking, customer=self.customer, worker=self.worker, rating=4)
        self.admin = make_admin()

    def test_admin_overview(self):
        response = client_for(self.admin).get('/api/analytics/overview/', {'time_range': '7'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['revenue_by_category'], {'Maintenance': 300})
        self.assertEqual(sum(response.data['revenue_by_day'].values()), 300)
        performance = response.data['worker_performance'][0]
        self.assertEqual(performance['total_earnings'], 300)
        self.assertEqual(performance['avg_rating'], 4.0)
        self.assertEqual(response.data['service_stats'][0]['total_bookings'], 1)

    def test_bad_time_range(self):
        response = client_for(self.admin).get('/api/analytics/overview/', {'time_range': 'week'})
        self.assertEqual(response.status_code, 400)

    def test_time_range_upper_bound(self):
        client = client_for(self.admin)
        self.assertEqual(client.get('/api/analytics/overview/', {'time_range': '1000000'}).status_code, 400)
        self.assertEqual(client.get('/api/analytics/overview/', {'time_range': '36500'}).status_code, 200)

    def test_worker_analytics(self):
        response = client_for(self.worker_user).get('/api/analytics/worker/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['total_earnings'], 300)
        self.assertEqual(response.data['avg_rating'], 4.0)
        self.assertEqual(len(response.data['recent_reviews']), 1)

    def test_analytics_is_admin_only(self):
        response = client_for(self.customer).get('/api/analytics/overview/')
        self.assertEqual(response.status_code, 403)

    def test_admin_stats(self):
        response = client_for(self.admin).get('/api/admin/stats/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['users']['total'], 3)
        self.assertEqual(response.data['bookings']['by_status']['completed']['count'], 1)
        self.assertEqual(response.data['revenue']['total'], 300)
        self.assertEqual(response.data['workers']['average_rating'], 4.0)
