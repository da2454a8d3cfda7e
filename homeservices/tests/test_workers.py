from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from homeservices.models import Booking, Review, Service, User, WorkerProfile

from .helpers import client_for, make_admin, make_booking, make_customer, make_service, make_worker


class WorkerDirectoryTests(TestCase):
    def setUp(self):
        self.plumber = make_worker(email='p@example.com', profession='Plumber', hourly_rate=Decimal('40.00'))
        self.electrician = make_worker(
            email='e@example.com', profession='Electrician', hourly_rate=Decimal('90.00'), is_verified=True
        )
        WorkerProfile.objects.filter(user=self.plumber).update(rating=4.8)
        make_worker(email='off@example.com', is_available=False)

    def test_lists_available_workers_best_first(self):
        response = client_for().get('/api/workers/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual([w['user']['email'] for w in response.data], ['p@example.com', 'e@example.com'])
        self.assertIn('reviews', response.data[0])
        self.assertEqual(response.data[0]['completed_jobs'], 0)

    def test_filters(self):
        by_profession = client_for().get('/api/workers/', {'profession': 'elec'})
        self.assertEqual([w['profession'] for w in by_profession.data], ['Electrician'])

        by_price = client_for().get('/api/workers/', {'max_price': '50'})
        self.assertEqual([w['profession'] for w in by_price.data], ['Plumber'])

        by_rating = client_for().get('/api/workers/', {'min_rating': '4.5'})
        self.assertEqual([w['profession'] for w in by_rating.data], ['Plumber'])

        verified = client_for().get('/api/workers/', {'is_verified': 'true'})
        self.assertEqual([w['profession'] for w in verified.data], ['Electrician'])

    def test_open_jobs_filtered_by_category(self):
        customer = make_customer()
        make_booking(customer, make_service())
        make_booking(customer, make_service(name='Gardening', category='Outdoor'))
        response = client_for().get('/api/workers/jobs/available/', {'profession': 'outdoor'})
        self.assertEqual([b['service']['name'] for b in response.data], ['Gardening'])


class WorkerSelfServiceTests(TestCase):
    def setUp(self):
        self.user = make_worker()
        self.worker = self.user.worker_profile
        self.client = client_for(self.user)

    def test_own_profile_includes_earnings(self):
        make_booking(make_customer(), make_service(), worker=self.worker, status=Booking.STATUS_COMPLETED, amount='75.50')
        response = self.client.get('/api/workers/profile/me/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['stats']['total_earnings'], Decimal('75.50'))
        self.assertEqual(len(response.data['bookings']), 1)

    def test_update_availability(self):
        response = self.client.put(
            '/api/workers/profile/me/',
            {'availability': {'Monday': {'available': True, 'start_time': '09:00', 'end_time': '17:00'}}},
            format='json',
        )
        self.assertEqual(response.status_code, 200)
        self.worker.refresh_from_db()
        self.assertEqual(self.worker.availability['monday']['start_time'], '09:00')

    def test_unknown_weekday_rejected(self):
        response = self.client.put('/api/workers/profile/me/', {'availability': {'funday': {}}}, format='json')
        self.assertEqual(response.status_code, 400)

    def test_kyc_submit_then_admin_decision(self):
        submitted = self.client.post(
            '/api/workers/kyc/submit/', {'aadhar_card': 'aadhar.png', 'pan_card': 'pan.png'}, format='json'
        )
        self.assertEqual(submitted.status_code, 200)
        self.worker.refresh_from_db()
        self.assertIsNotNone(self.worker.kyc_submitted_at)

        admin = client_for(make_admin())
        pending = admin.get('/api/admin/kyc/pending/')
        self.assertEqual([w['id'] for w in pending.data], [str(self.worker.id)])

        decided = admin.put(f'/api/admin/kyc/{self.worker.id}/status/', {'status': 'VERIFIED'}, format='json')
        self.assertEqual(decided.status_code, 200)
        self.worker.refresh_from_db()
        self.assertTrue(self.worker.is_verified)
        self.assertEqual(self.worker.kyc_status, WorkerProfile.KYC_VERIFIED)

        rejected = admin.put(
            '/api/workers/kyc/status/', {'user_id': str(self.user.id), 'kyc_status': 'REJECTED'}, format='json'
        )
        self.assertEqual(rejected.status_code, 200)
        self.worker.refresh_from_db()
        self.assertFalse(self.worker.is_verified)

    def test_customers_cannot_use_worker_profile(self):
        response = client_for(make_customer()).get('/api/workers/profile/me/')
        self.assertEqual(response.status_code, 403)


class AdminListingTests(TestCase):
    def setUp(self):
        self.admin = make_admin()
        self.client = client_for(self.admin)
        for idx in range(3):
            make_customer(email=f'c{idx}@example.com')
        self.worker = make_worker().worker_profile

    def test_users_are_paginated(self):
        response = self.client.get('/api/admin/users/', {'page': 1, 'limit': 2})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data['items']), 2)
        self.assertEqual(response.data['pagination'], {'total': 5, 'page': 1, 'limit': 2, 'pages': 3})

    def test_page_past_the_end_is_empty(self):
        response = self.client.get('/api/admin/users/', {'page': 5, 'limit': 2})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['items'], [])
        self.assertEqual(response.data['pagination'], {'total': 5, 'page': 5, 'limit': 2, 'pages': 3})

    def test_users_filtered_by_role_and_search(self):
        workers = self.client.get('/api/admin/users/', {'role': 'WORKER'})
        self.assertEqual([u['role'] for u in workers.data['items']], [User.ROLE_WORKER])

        found = self.client.get('/api/admin/users/', {'search': 'c1@'})
        self.assertEqual([u['email'] for u in found.data['items']], ['c1@example.com'])

    def test_workers_listing_has_stats(self):
        response = self.client.get('/api/admin/workers/')
        self.assertEqual(response.data['pagination']['total'], 1)
        self.assertEqual(response.data['items'][0]['stats']['completed_jobs'], 0)

    def test_verify_and_suspend(self):
        verified = self.client.put(f'/api/admin/workers/{self.worker.id}/verify/')
        self.assertTrue(verified.data['is_verified'])
        suspended = self.client.put(f'/api/admin/workers/{self.worker.id}/suspend/')
        self.assertFalse(suspended.data['is_available'])

    def test_non_admins_are_denied(self):
        customer = client_for(User.objects.get(email='c0@example.com'))
        self.assertEqual(customer.get('/api/admin/users/').status_code, 403)
        self.assertEqual(customer.get('/api/admin/bookings/').status_code, 403)


class CommandTests(TestCase):
    def test_seed_is_repeatable(self):
        call_command('seed_marketplace', stdout=StringIO())
        call_command('seed_marketplace', stdout=StringIO())
        self.assertEqual(Service.objects.count(), 4)
        self.assertEqual(User.objects.filter(role=User.ROLE_ADMIN).count(), 1)
        worker = WorkerProfile.objects.get(user__email='worker@example.com')
        self.assertEqual(worker.rating, 4.5)
        self.assertEqual(worker.total_jobs, 2)
        self.assertEqual(worker.availability['monday'], {'available': True, 'start_time': '09:00', 'end_time': '18:00'})
        self.assertFalse(worker.availability['sunday']['available'])

    def test_recalc_ratings(self):
        customer = make_customer()
        worker = make_worker().worker_profile
        booking = make_booking(customer, make_service(), worker=worker, status=Booking.STATUS_COMPLETED)
        Review.objects.create(booking=booking, customer=customer, worker=worker, rating=3)
        WorkerProfile.objects.filter(pk=worker.pk).update(rating=0)

        call_command('recalc_worker_ratings', stdout=StringIO())
        worker.refresh_from_db()
        self.assertEqual(worker.rating, 3.0)
