"""
Tests for User Account API Views.
Covers login, token refresh and the acting user's profile.
"""
from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.test import APITestCase, APIClient

from core.user_accounts.models import Role
from procurement.catalog.models import Site

User = get_user_model()


class LoginAPITest(APITestCase):
    """Test user login endpoint"""

    def setUp(self):
        self.client = APIClient()
        self.url = '/auth/login/'
        self.user = User.objects.create_user(
            email='testuser@example.com',
            name='Test User',
            phone_number='+1234567890',
            password='TestPass123',
            role=Role.MANAGER
        )

    def test_login_success(self):
        response = self.client.post(self.url, {'email': 'testuser@example.com', 'password': 'TestPass123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'success')
        self.assertEqual(response.data['data']['user']['role'], 'manager')
        self.assertIn('access', response.data['data']['tokens'])
        self.assertIn('refresh', response.data['data']['tokens'])

    def test_login_wrong_password(self):
        response = self.client.post(self.url, {'email': 'testuser@example.com', 'password': 'nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['status'], 'error')

    def test_login_missing_fields(self):
        response = self.client.post(self.url, {'email': 'testuser@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_inactive_user_cannot_login(self):
        self.user.is_active = False
        self.user.save()
        response = self.client.post(self.url, {'email': 'testuser@example.com', 'password': 'TestPass123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_access_token_authenticates(self):
        response = self.client.post(self.url, {'email': 'testuser@example.com', 'password': 'TestPass123'}, format='json')
        access = response.data['data']['tokens']['access']
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
        response = self.client.get('/accounts/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['email'], 'testuser@example.com')

    def test_token_refresh(self):
        response = self.client.post(self.url, {'email': 'testuser@example.com', 'password': 'TestPass123'}, format='json')
        refresh = response.data['data']['tokens']['refresh']
        response = self.client.post('/auth/token/refresh/', {'refresh': refresh}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)


class UserProfileAPITest(APITestCase):
    """Test the acting user's profile endpoint"""

    def setUp(self):
        self.client = APIClient()
        self.url = '/accounts/me/'
        self.site = Site.objects.create(code='SITE-A', name='Tower A')
        self.user = User.objects.create_user(
            email='engineer@example.com',
            name='Site Engineer',
            phone_number='9800000000',
            password='TestPass123'
        )
        self.user.assigned_sites.add(self.site)

    def test_profile_lists_role_and_sites(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['role'], 'site_engineer')
        self.assertEqual(data['role_display'], 'Site Engineer')
        self.assertEqual(data['assigned_sites'], [{'id': self.site.id, 'code': 'SITE-A', 'name': 'Tower A'}])

    def test_profile_requires_authentication(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
