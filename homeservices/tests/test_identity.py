from django.test import TestCase

from homeservices.models import Booking, CustomerProfile, Review, User, WorkerProfile

from .helpers import PASSWORD, client_for, make_admin, make_booking, make_customer, make_service, make_worker


class RegisterTests(TestCase):
    def setUp(self):
        self.client = client_for()

    def test_register_customer_creates_profile_and_token(self):
        response = self.client.post(
            '/api/auth/register/',
            {'email': 'New@Example.com', 'password': 'hunter22', 'name': 'Nina New'},
            format='json',
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['user']['email'], 'new@example.com')
        self.assertEqual(response.data['user']['role'], User.ROLE_CUSTOMER)
        self.assertTrue(response.data['token'])
        user = User.objects.get(email='new@example.com')
        self.assertTrue(CustomerProfile.objects.filter(user=user).exists())
        self.assertNotEqual(user.password, 'hunter22')

    def test_register_worker_uses_profile_defaults(self):
        response = self.client.post(
            '/api/auth/register/',
            {'email': 'w@example.com', 'password': 'hunter22', 'name': 'Will', 'role': 'WORKER'},
            format='json',
        )
        self.assertEqual(response.status_code, 201)
        worker = WorkerProfile.objects.get(user__email='w@example.com')
        self.assertEqual(worker.profession, 'General Service')
        self.assertEqual(worker.kyc_status, WorkerProfile.KYC_PENDING)
        self.assertFalse(worker.is_verified)

    def test_duplicate_email_conflicts(self):
        make_customer(email='taken@example.com')
        response = self.client.post(
            '/api/auth/register/',
            {'email': 'taken@example.com', 'password': 'hunter22', 'name': 'Other'},
            format='json',
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data, {'error': 'User already exists'})

    def test_invalid_payload_reports_details(self):
        response = self.client.post(
            '/api/auth/register/', {'email': 'not-an-email', 'password': '123', 'name': 'X'}, format='json'
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['error'], 'Validation failed')
        self.assertIn('email', response.data['details'])
        self.assertIn('password', response.data['details'])
        self.assertFalse(User.objects.exists())

    def test_admin_role_cannot_be_self_assigned(self):
        response = self.client.post(
            '/api/auth/register/',
            {'email': 'a@example.com', 'password': 'hunter22', 'name': 'Sneaky', 'role': 'ADMIN'},
            format='json',
        )
        self.assertEqual(response.status_code, 400)


class LoginTests(TestCase):
    def setUp(self):
        self.client = client_for()
        self.customer = make_customer()
        self.admin = make_admin()

    def test_login_returns_token_for_same_user(self):
        response = self.client.post(
            '/api/auth/login/', {'email': self.customer.email, 'password': PASSWORD}, format='json'
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['user']['id'], str(self.customer.id))

        client = client_for()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['token']}")
        profile = client.get('/api/users/profile/')
        self.assertEqual(profile.status_code, 200)
        self.assertEqual(profile.data['email'], self.customer.email)

    def test_email_case_is_ignored(self):
        user = User.objects.create_user(email='Mixed.Case@Example.COM', password=PASSWORD, name='Mo')
        self.assertEqual(user.email, 'mixed.case@example.com')
        response = self.client.post(
            '/api/auth/login/', {'email': 'MIXED.case@example.com', 'password': PASSWORD}, format='json'
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['user']['id'], str(user.id))

    def test_wrong_password(self):
        response = self.client.post(
            '/api/auth/login/', {'email': self.customer.email, 'password': 'nope'}, format='json'
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.data['error'], 'Invalid credentials')

    def test_role_gate(self):
        response = self.client.post(
            '/api/auth/login/',
            {'email': self.customer.email, 'password': PASSWORD, 'role': 'WORKER'},
            format='json',
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.data['error'], 'Invalid credentials for worker login')

    def test_admin_login(self):
        ok = self.client.post('/api/auth/admin/login/', {'email': self.admin.email, 'password': PASSWORD}, format='json')
        self.assertEqual(ok.status_code, 200)
        self.assertEqual(ok.data['user']['role'], User.ROLE_ADMIN)

        denied = self.client.post(
            '/api/auth/admin/login/', {'email': self.customer.email, 'password': PASSWORD}, format='json'
        )
        self.assertEqual(denied.status_code, 403)
        self.assertEqual(denied.data['error'], 'Access denied. Admin privileges required.')

    def test_missing_or_bad_token(self):
        self.assertEqual(self.client.get('/api/users/profile/').status_code, 401)
        self.client.credentials(HTTP_AUTHORIZATION='Bearer not-a-token')
        response = self.client.get('/api/users/profile/')
        self.assertEqual(response.status_code, 401)
        self.assertIn('error', response.data)


class ProfileTests(TestCase):
    def test_worker_profile_update(self):
        user = make_worker()
        client = client_for(user)
        response = client.put(
            '/api/users/profile/', {'name': 'Renamed', 'profession': 'Electrician', 'skills': ['wiring']}, format='json'
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['name'], 'Renamed')
        user.worker_profile.refresh_from_db()
        self.assertEqual(user.worker_profile.profession, 'Electrician')
        self.assertEqual(user.worker_profile.skills, ['wiring'])

    def test_profile_embeds_role_profiles(self):
        user = make_customer()
        response = client_for(user).get('/api/users/profile/')
        self.assertIsNotNone(response.data['customer_profile'])
        self.assertIsNone(response.data['worker_profile'])
        self.assertEqual(response.data['bookings'], [])

    def test_worker_profile_shows_latest_reviews_only(self):
        user = make_worker()
        worker = user.worker_profile
        customer = make_customer()
        service = make_service()
        for _ in range(12):
            booking = make_booking(customer, service, worker=worker, status=Booking.STATUS_COMPLETED)
            Review.objects.create(booking=booking, customer=customer, worker=worker, rating=5)
        response = client_for(user).get('/api/users/profile/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data['worker_profile']['reviews']), 10)
        self.assertEqual(response.data['worker_profile']['stats']['total_reviews'], 12)


class HealthTests(TestCase):
    def test_health(self):
        response = client_for().get('/api/health/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, {'status': 'OK', 'message': 'Server is running'})
