import uuid

from django.test import TestCase, override_settings

from homeservices.models import Service

from .helpers import client_for, make_admin, make_customer, make_service

NEW_SERVICE = {
    'name': 'Pest Control',
    'category': 'Maintenance',
    'description': 'Safe removal of household pests',
    'base_price': '65.00',
}


class CatalogTests(TestCase):
    def setUp(self):
        self.service = make_service()
        Service.objects.create(
            name='Retired', category='Misc', description='No longer offered', base_price=10, is_active=False
        )

    def test_list_shows_active_services_anonymously(self):
        response = client_for().get('/api/services/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual([s['name'] for s in response.data], ['Plumbing'])
        self.assertEqual(response.data[0]['base_price'], 80.0)

    def test_get_single_and_missing(self):
        ok = client_for().get(f'/api/services/{self.service.id}/')
        self.assertEqual(ok.status_code, 200)
        self.assertEqual(ok.data['category'], 'Maintenance')

        missing = client_for().get(f'/api/services/{uuid.uuid4()}/')
        self.assertEqual(missing.status_code, 404)
        self.assertIn('error', missing.data)

    def test_open_creation(self):
        response = client_for().post('/api/services/', NEW_SERVICE, format='json')
        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.data['is_active'])

    def test_short_description_rejected(self):
        payload = dict(NEW_SERVICE, description='short')
        response = client_for().post('/api/services/', payload, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertIn('description', response.data['details'])

    @override_settings(CATALOG_OPEN_SERVICE_CREATION=False)
    def test_restricted_creation(self):
        denied = client_for(make_customer()).post('/api/services/', NEW_SERVICE, format='json')
        self.assertEqual(denied.status_code, 403)

        allowed = client_for(make_admin()).post('/api/services/', NEW_SERVICE, format='json')
        self.assertEqual(allowed.status_code, 201)
