"""
Test suite for core module
Tests: admin shared-secret auth, image upload, slug and pagination helpers
"""
import shutil
import tempfile

from django.conf import settings
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APIClient

from eshop.catalog.models import Category
from eshop.core.test_utils import AdminAPIClient, TestDataFactory
from eshop.core.utils import create_slug, unique_slug, parse_int

TEST_MEDIA_ROOT = tempfile.mkdtemp()


class SlugUtilsTests(TestCase):
    """Test slug helpers"""

    def test_create_slug_folds_accents(self):
        """Test accented names become ASCII slugs"""
        self.assertEqual(create_slug('Příslušenství'), 'prislusenstvi')
        self.assertEqual(create_slug('Łódź Ünïcode'), 'lodz-unicode')

    def test_create_slug_collapses_separators(self):
        """Test punctuation and spaces collapse into single dashes"""
        self.assertEqual(create_slug('  Home & Garden -- Tools!  '), 'home-garden-tools')
        self.assertEqual(create_slug(''), '')

    def test_unique_slug_adds_suffix(self):
        """Test a taken slug gets a numeric suffix"""
        TestDataFactory.create_category(name='Phones', slug='phones')
        TestDataFactory.create_category(name='Phones 2', slug='phones-2')
        self.assertEqual(unique_slug(Category, 'Phones'), 'phones-3')

    def test_unique_slug_excludes_self(self):
        """Test the edited row does not collide with itself"""
        category = TestDataFactory.create_category(name='Phones', slug='phones')
        self.assertEqual(unique_slug(Category, 'Phones', exclude_pk=category.pk), 'phones')

    def test_parse_int_bounds(self):
        """Test parse_int clamps and falls back"""
        self.assertEqual(parse_int('abc', 5), 5)
        self.assertEqual(parse_int('500', 5, maximum=100), 100)
        self.assertEqual(parse_int('-3', 5, minimum=1), 1)


class AdminAuthTests(TestCase):
    """Test admin login, logout and route protection"""

    def setUp(self):
        self.client = APIClient()

    def test_admin_route_requires_token(self):
        """Test admin routes answer 401 without credentials"""
        response = self.client.get('/api/admin/products/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_admin_route_rejects_wrong_token(self):
        """Test a wrong bearer token is rejected"""
        self.client.credentials(HTTP_AUTHORIZATION='Bearer wrong-token')
        response = self.client.get('/api/admin/products/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_bearer_token_grants_access(self):
        """Test the shared secret as bearer token"""
        client = AdminAPIClient().authenticate_admin()
        response = client.get('/api/admin/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_legacy_cookie_grants_access(self):
        """Test the legacy adminToken cookie"""
        self.client.cookies[settings.ADMIN_LEGACY_COOKIE_NAME] = settings.ADMIN_TOKEN
        response = self.client.get('/api/admin/categories/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_login_sets_session_cookie(self):
        """Test login with the admin password sets the session cookie"""
        response = self.client.post('/api/admin/auth/', {'password': settings.ADMIN_PASSWORD}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn(settings.ADMIN_COOKIE_NAME, response.cookies)
        self.assertTrue(response.cookies[settings.ADMIN_COOKIE_NAME]['httponly'])

        # The cookie now authenticates admin routes
        response = self.client.get('/api/admin/categories/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_login_wrong_password(self):
        """Test login with a wrong password"""
        response = self.client.post('/api/admin/auth/', {'password': 'nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'Invalid password')

    def test_logout_clears_cookie(self):
        """Test logout expires the admin cookies"""
        self.client.post('/api/admin/auth/', {'password': settings.ADMIN_PASSWORD}, format='json')
        response = self.client.post('/api/admin/logout/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.cookies[settings.ADMIN_COOKIE_NAME].value, '')

        response = self.client.get('/api/admin/categories/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_delete_auth_logs_out(self):
        """Test DELETE on the auth route also logs out"""
        response = self.client.delete('/api/admin/auth/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.cookies[settings.ADMIN_COOKIE_NAME].value, '')

    def test_public_routes_stay_open(self):
        """Test storefront routes need no token"""
        response = self.client.get('/api/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)


@override_settings(MEDIA_ROOT=TEST_MEDIA_ROOT)
class UploadTests(TestCase):
    """Test admin image upload"""

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(TEST_MEDIA_ROOT, ignore_errors=True)
        super().tearDownClass()

    def setUp(self):
        self.client = AdminAPIClient().authenticate_admin()

    def test_upload_png(self):
        """Test uploading a PNG stores it under uploads/"""
        upload = SimpleUploadedFile('photo.png', b'\x89PNG\r\n\x1a\nfake', content_type='image/png')
        response = self.client.post('/api/admin/upload/', {'file': upload}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])
        self.assertIn('/media/uploads/', response.data['url'])
        self.assertTrue(response.data['filename'].endswith('.png'))

    def test_upload_rejects_other_types(self):
        """Test non-image uploads are rejected"""
        upload = SimpleUploadedFile('notes.txt', b'hello', content_type='text/plain')
        response = self.client.post('/api/admin/upload/', {'file': upload}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_upload_without_file(self):
        """Test upload without a file"""
        response = self.client.post('/api/admin/upload/', {}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_upload_requires_admin(self):
        """Test upload is admin only"""
        upload = SimpleUploadedFile('photo.png', b'\x89PNG', content_type='image/png')
        response = APIClient().post('/api/admin/upload/', {'file': upload}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
