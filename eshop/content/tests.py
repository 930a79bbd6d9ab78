"""
Test suite for storefront content (banners and feature icons)
"""
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from eshop.content.models import Banner, FeatureIcon
from eshop.core.test_utils import AdminAPIClient, TestDataFactory


class PublicContentAPITests(TestCase):
    """Test storefront banner and feature icon lists"""

    def setUp(self):
        self.client = APIClient()

    def test_banner_list_active_only(self):
        """Test inactive banners are hidden and order is respected"""
        second = TestDataFactory.create_banner(title='Second', order=2)
        first = TestDataFactory.create_banner(title='First', order=1)
        TestDataFactory.create_banner(title='Hidden', order=0, is_active=False)
        response = self.client.get('/api/banners/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([b['id'] for b in response.data], [first.pk, second.pk])

    def test_banner_type_filter(self):
        """Test filtering banners by type"""
        TestDataFactory.create_banner(title='Hero')
        promo = TestDataFactory.create_banner(title='Promo', type='promo')
        response = self.client.get('/api/banners/?type=promo')
        self.assertEqual([b['id'] for b in response.data], [promo.pk])

    def test_feature_icons_active_only(self):
        """Test inactive feature icons are hidden"""
        TestDataFactory.create_feature_icon(key='visible')
        TestDataFactory.create_feature_icon(key='hidden', is_active=False)
        response = self.client.get('/api/feature-icons/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([i['key'] for i in response.data], ['visible'])


class AdminContentAPITests(TestCase):
    """Test admin banner and feature icon CRUD"""

    def setUp(self):
        self.client = AdminAPIClient().authenticate_admin()

    def test_requires_admin(self):
        """Test admin content routes reject anonymous requests"""
        response = APIClient().get('/api/admin/banners/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_admin_list_includes_inactive(self):
        """Test the admin list shows inactive banners too"""
        TestDataFactory.create_banner(is_active=False)
        response = self.client.get('/api/admin/banners/')
        self.assertEqual(len(response.data), 1)

    def test_banner_crud(self):
        """Test create, update and delete a banner"""
        response = self.client.post('/api/admin/banners/', {
            'title': 'Summer sale',
            'image_url': '/media/uploads/summer.jpg',
            'link': '/sale',
            'type': 'promo',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        banner_id = response.data['id']

        response = self.client.patch(f'/api/admin/banners/{banner_id}/', {'is_active': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_active'])
        self.assertEqual(response.data['title'], 'Summer sale')

        response = self.client.delete(f'/api/admin/banners/{banner_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Banner.objects.filter(pk=banner_id).exists())

    def test_banner_invalid_type(self):
        """Test unknown banner types are rejected"""
        response = self.client.post('/api/admin/banners/', {
            'title': 'X', 'image_url': '/x.jpg', 'type': 'popup',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_feature_icon_crud(self):
        """Test create, update and delete a feature icon"""
        response = self.client.post('/api/admin/feature-icons/', {
            'key': ' free_returns ',
            'title': 'Free returns',
            'title_cs': 'Vrácení zdarma',
            'emoji': '↩️',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['key'], 'free_returns')
        icon_id = response.data['id']

        response = self.client.put(f'/api/admin/feature-icons/{icon_id}/', {'order': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['order'], 5)

        response = self.client.delete(f'/api/admin/feature-icons/{icon_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_feature_icon_duplicate_key(self):
        """Test feature icon keys are unique"""
        TestDataFactory.create_feature_icon(key='taken')
        response = self.client.post('/api/admin/feature-icons/', {
            'key': 'taken', 'title': 'X', 'title_cs': 'X',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_missing_banner(self):
        """Test updating a missing banner"""
        response = self.client.patch('/api/admin/banners/99999/', {'title': 'X'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class SeedFeatureIconsCommandTests(TestCase):
    """Test the seed_feature_icons management command"""

    def test_seed_skips_existing_keys(self):
        """Test existing icons are left untouched on re-run"""
        FeatureIcon.objects.create(key='doprava_zdarma', title='Custom', title_cs='Vlastni')
        call_command('seed_feature_icons', stdout=StringIO())
        call_command('seed_feature_icons', stdout=StringIO())
        self.assertEqual(FeatureIcon.objects.count(), 8)
        self.assertEqual(FeatureIcon.objects.get(key='doprava_zdarma').title, 'Custom')
