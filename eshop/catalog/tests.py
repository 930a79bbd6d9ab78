"""
Comprehensive test suite for Catalog module
Tests: category ordering and hierarchy, product CRUD, storefront listing,
reviews, search, spreadsheet import/export and the shopping feed
"""
from decimal import Decimal
from io import BytesIO, StringIO
import xml.etree.ElementTree as ET

from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.test import TestCase
from openpyxl import Workbook, load_workbook
from rest_framework import status
from rest_framework.test import APIClient

from eshop.catalog.models import Category, Product, ProductVariant
from eshop.catalog.spreadsheet import PRODUCT_COLUMNS, VARIANT_COLUMNS
from eshop.catalog.utils import (
    CategoryOrderError, apply_bulk_order, move_category, reorder_category, would_create_cycle,
)
from eshop.core.test_utils import AdminAPIClient, TestDataFactory


class ProductModelTests(TestCase):
    """Test Product and ProductVariant model methods"""

    def test_code_defaults_to_id(self):
        """Test a product without code gets its id as code"""
        product = TestDataFactory.create_product()
        product.refresh_from_db()
        self.assertEqual(product.code, str(product.pk))

    def test_explicit_code_kept(self):
        """Test an explicit code is not overwritten"""
        product = TestDataFactory.create_product(code='ABC-1')
        product.refresh_from_db()
        self.assertEqual(product.code, 'ABC-1')

    def test_variant_display_name(self):
        """Test variant display name joins color and size"""
        variant = TestDataFactory.create_variant(color_name='Red', size_name='L')
        self.assertEqual(variant.display_name, 'Red / L')
        variant.size_name = ''
        self.assertEqual(variant.display_name, 'Red')

    def test_display_price_uses_cheapest_in_stock_variant(self):
        """Test listing price is the lowest in-stock variant override"""
        product = TestDataFactory.create_product(price=Decimal('1000.00'))
        TestDataFactory.create_variant(product=product, price=Decimal('900.00'), stock=3, size_name='S')
        TestDataFactory.create_variant(product=product, price=Decimal('800.00'), stock=0, size_name='M')
        TestDataFactory.create_variant(product=product, price=Decimal('950.00'), stock=1, size_name='L')
        price, _ = product.get_display_prices()
        self.assertEqual(price, Decimal('900.00'))

    def test_display_price_falls_back_to_product(self):
        """Test product price is used without priced variants"""
        product = TestDataFactory.create_product(price=Decimal('500.00'), regular_price=Decimal('600.00'))
        TestDataFactory.create_variant(product=product, price=None, stock=5)
        self.assertEqual(product.get_display_prices(), (Decimal('500.00'), Decimal('600.00')))


class CategoryOrderingTests(TestCase):
    """Test sibling ordering helpers"""

    def setUp(self):
        self.parent = TestDataFactory.create_category(name='Parent', slug='parent')
        self.children = [
            TestDataFactory.create_category(name=f'Child {i}', slug=f'child-{i}', parent=self.parent, order=i)
            for i in range(4)
        ]
        self.other_root = TestDataFactory.create_category(name='Other', slug='other', order=2)

    def _orders(self):
        return list(
            Category.objects.filter(parent=self.parent).order_by('order').values_list('slug', 'order')
        )

    def test_reorder_up_shifts_siblings(self):
        """Test moving the last child to the top"""
        reorder_category(self.children[3], 0)
        self.assertEqual(self._orders(), [('child-3', 0), ('child-0', 1), ('child-1', 2), ('child-2', 3)])

    def test_reorder_down_shifts_siblings(self):
        """Test moving the first child to the bottom"""
        reorder_category(self.children[0], 3)
        self.assertEqual(self._orders(), [('child-1', 0), ('child-2', 1), ('child-3', 2), ('child-0', 3)])

    def test_reorder_keeps_sequence_contiguous(self):
        """Test repeated reorders keep a contiguous strictly increasing sequence"""
        reorder_category(self.children[2], 0)
        reorder_category(self.children[0], 3)
        reorder_category(self.children[3], 1)
        orders = [order for _, order in self._orders()]
        self.assertEqual(orders, [0, 1, 2, 3])

    def test_reorder_ignores_other_parents(self):
        """Test categories under other parents are not shifted"""
        reorder_category(self.children[3], 0)
        self.other_root.refresh_from_db()
        self.assertEqual(self.other_root.order, 2)

    def test_move_up_swaps_with_neighbour(self):
        """Test move up swaps order with the previous sibling"""
        changed = move_category(self.children[2], 'up')
        self.assertEqual({c.slug: c.order for c in changed}, {'child-2': 1, 'child-1': 2})

    def test_move_down_at_bottom_fails(self):
        """Test moving the last sibling down is rejected"""
        with self.assertRaises(CategoryOrderError):
            move_category(self.children[3], 'down')

    def test_move_with_equal_orders_uses_step(self):
        """Test equal order values are separated by the move step"""
        a = TestDataFactory.create_category(name='A', slug='a', parent=self.other_root, order=5)
        b = TestDataFactory.create_category(name='B', slug='b', parent=self.other_root, order=5)
        move_category(b, 'up')
        a.refresh_from_db()
        b.refresh_from_db()
        self.assertEqual(b.order, -5)
        self.assertEqual(a.order, 5)

    def test_bulk_order_rejects_unknown_ids(self):
        """Test bulk update with unknown ids changes nothing"""
        with self.assertRaises(CategoryOrderError):
            apply_bulk_order([{'id': self.children[0].pk, 'order': 9}, {'id': 999999, 'order': 1}])
        self.children[0].refresh_from_db()
        self.assertEqual(self.children[0].order, 0)

    def test_cycle_detection(self):
        """Test a category cannot move below its own descendant"""
        grandchild = TestDataFactory.create_category(name='GC', slug='gc', parent=self.children[0])
        self.assertTrue(would_create_cycle(self.parent, grandchild))
        self.assertTrue(would_create_cycle(self.parent, self.parent))
        self.assertFalse(would_create_cycle(grandchild, self.other_root))


class AdminCategoryAPITests(TestCase):
    """Test admin category endpoints"""

    def setUp(self):
        self.client = AdminAPIClient().authenticate_admin()
        self.root = TestDataFactory.create_category(name='Electronics', slug='electronics')
        self.child = TestDataFactory.create_category(name='Phones', slug='phones', parent=self.root)

    def test_create_category_derives_slug(self):
        """Test creating a category without slug"""
        response = self.client.post('/api/admin/categories/', {'name': 'Home & Garden'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['slug'], 'home-garden')

    def test_create_duplicate_slug(self):
        """Test creating a category with a duplicate slug should fail"""
        response = self.client.post('/api/admin/categories/', {'name': 'Other', 'slug': 'phones'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('slug', response.data)

    def test_update_duplicate_slug(self):
        """Test renaming a slug onto an existing one should fail"""
        response = self.client.patch(f'/api/admin/categories/{self.child.pk}/', {'slug': 'electronics'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_parent_cycle_rejected(self):
        """Test setting a descendant as parent should fail"""
        response = self.client.patch(f'/api/admin/categories/{self.root.pk}/', {'parent': self.child.pk}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('parent', response.data)
        self.root.refresh_from_db()
        self.assertIsNone(self.root.parent)

    def test_self_parent_rejected(self):
        """Test a category cannot be its own parent"""
        response = self.client.patch(f'/api/admin/categories/{self.root.pk}/', {'parent': self.root.pk}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_with_products_blocked(self):
        """Test deleting a category that still has products"""
        TestDataFactory.create_product(category=self.child)
        response = self.client.delete(f'/api/admin/categories/{self.child.pk}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Category.objects.filter(pk=self.child.pk).exists())

    def test_delete_with_children_blocked(self):
        """Test deleting a category that has subcategories"""
        response = self.client.delete(f'/api/admin/categories/{self.root.pk}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_empty_category(self):
        """Test deleting an empty leaf category"""
        response = self.client.delete(f'/api/admin/categories/{self.child.pk}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_bulk_patch_order(self):
        """Test bulk reorder via PATCH"""
        response = self.client.patch(
            '/api/admin/categories/',
            [{'id': self.root.pk, 'order': 7}, {'id': self.child.pk, 'order': 3}],
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['updated'], 2)
        self.root.refresh_from_db()
        self.assertEqual(self.root.order, 7)

    def test_bulk_order_refreshes_storefront_tree(self):
        """Test the public category tree reflects a bulk reorder"""
        cache.clear()
        TestDataFactory.create_category(name='Tablets', slug='tablets', parent=self.root, order=1)
        response = APIClient().get('/api/categories/')
        self.assertEqual([c['slug'] for c in response.data[0]['children']], ['phones', 'tablets'])

        tablets = Category.objects.get(slug='tablets')
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.patch(
                '/api/admin/categories/',
                [{'id': self.child.pk, 'order': 5}, {'id': tablets.pk, 'order': 0}],
                format='json'
            )
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = APIClient().get('/api/categories/')
        self.assertEqual([c['slug'] for c in response.data[0]['children']], ['tablets', 'phones'])

    def test_order_endpoint(self):
        """Test the single reorder endpoint"""
        sibling = TestDataFactory.create_category(name='Tablets', slug='tablets', parent=self.root, order=1)
        response = self.client.put(
            '/api/admin/categories/order/',
            {'category_id': sibling.pk, 'new_order': 0},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.child.refresh_from_db()
        self.assertEqual(self.child.order, 1)

    def test_order_endpoint_rejects_non_numeric_id(self):
        """Test the single reorder endpoint with a non-numeric category id"""
        response = self.client.put(
            '/api/admin/categories/order/',
            {'category_id': 'abc', 'new_order': 0},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_move_endpoint(self):
        """Test move endpoint validates direction"""
        response = self.client.post(f'/api/admin/categories/{self.child.pk}/move/', {'direction': 'sideways'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_includes_counts(self):
        """Test the admin list carries product and children counts"""
        TestDataFactory.create_product(category=self.child)
        response = self.client.get('/api/admin/categories/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        by_slug = {c['slug']: c for c in response.data}
        self.assertEqual(by_slug['phones']['product_count'], 1)
        self.assertEqual(by_slug['electronics']['children_count'], 1)


class AdminProductAPITests(TestCase):
    """Test admin product endpoints"""

    def setUp(self):
        self.client = AdminAPIClient().authenticate_admin()
        self.category = TestDataFactory.create_category(name='Phones', slug='phones')

    def test_create_product_with_variants(self):
        """Test creating a product with images and variants"""
        data = {
            'name': 'Phone Case',
            'price': '299.00',
            'stock': 10,
            'category_id': self.category.pk,
            'images': [{'url': '/media/uploads/a.jpg'}, {'url': '/media/uploads/b.jpg'}],
            'variants': [
                {'color_name': 'Black', 'size_name': 'S', 'stock': 3},
                {'color_name': 'Red', 'size_name': 'S', 'stock': 2, 'price': '279.00'},
            ],
        }
        response = self.client.post('/api/admin/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['slug'], 'phone-case')
        self.assertEqual(len(response.data['images']), 2)
        self.assertEqual(len(response.data['variants']), 2)
        self.assertEqual(response.data['category']['id'], self.category.pk)
        self.assertEqual(Decimal(str(response.data['display_price'])), Decimal('279.00'))

    def test_create_duplicate_slug(self):
        """Test creating a product with a taken slug should fail"""
        TestDataFactory.create_product(slug='taken')
        response = self.client.post('/api/admin/products/', {'name': 'X', 'slug': 'taken', 'price': '1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_negative_price_rejected(self):
        """Test negative prices are rejected"""
        response = self.client.post('/api/admin/products/', {'name': 'X', 'price': '-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_syncs_variants(self):
        """Test variant sync updates matched ids and removes the rest"""
        product = TestDataFactory.create_product()
        keep = TestDataFactory.create_variant(product=product, size_name='S', stock=1)
        TestDataFactory.create_variant(product=product, size_name='M', stock=1)
        response = self.client.patch(
            f'/api/admin/products/{product.pk}/',
            {'variants': [{'id': keep.pk, 'color_name': 'Black', 'size_name': 'S', 'stock': 9}]},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(list(product.variants.values_list('pk', 'stock')), [(keep.pk, 9)])

    def test_filter_by_category_and_search(self):
        """Test admin list filters"""
        TestDataFactory.create_product(name='Blue Phone', category=self.category)
        TestDataFactory.create_product(name='Blue Lamp')
        response = self.client.get(f'/api/admin/products/?category={self.category.pk}&search=blue')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['name'], 'Blue Phone')

    def test_duplicate_product(self):
        """Test duplicating a product copies variants under a new slug"""
        product = TestDataFactory.create_product(name='Lamp', slug='lamp')
        TestDataFactory.create_variant(product=product)
        response = self.client.post(f'/api/admin/products/{product.pk}/duplicate/')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'Lamp (copy)')
        self.assertNotEqual(response.data['slug'], 'lamp')
        self.assertEqual(len(response.data['variants']), 1)

    def test_bulk_delete(self):
        """Test bulk delete"""
        products = [TestDataFactory.create_product() for _ in range(3)]
        response = self.client.post(
            '/api/admin/products/bulk-delete/', {'ids': [p.pk for p in products[:2]]}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['deleted'], 2)
        self.assertEqual(Product.objects.count(), 1)

    def test_bulk_move(self):
        """Test bulk move to another category"""
        products = [TestDataFactory.create_product() for _ in range(2)]
        response = self.client.post(
            '/api/admin/products/bulk-move/',
            {'ids': [p.pk for p in products], 'category_id': self.category.pk},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Product.objects.filter(category=self.category).count(), 2)

    def test_bulk_move_unknown_category(self):
        """Test bulk move to a missing category"""
        product = TestDataFactory.create_product()
        response = self.client.post(
            '/api/admin/products/bulk-move/', {'ids': [product.pk], 'category_id': 999999}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class SpreadsheetAPITests(TestCase):
    """Test XLSX export and import"""

    def setUp(self):
        self.client = AdminAPIClient().authenticate_admin()

    def _workbook_upload(self, product_rows, variant_rows=()):
        wb = Workbook()
        ws = wb.active
        ws.title = 'Products'
        ws.append(PRODUCT_COLUMNS)
        for row in product_rows:
            ws.append(row)
        ws_variants = wb.create_sheet('Variants')
        ws_variants.append(VARIANT_COLUMNS)
        for row in variant_rows:
            ws_variants.append(row)
        buffer = BytesIO()
        wb.save(buffer)
        return SimpleUploadedFile(
            'products.xlsx', buffer.getvalue(),
            content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
        )

    def test_export_contains_products(self):
        """Test the export workbook lists products and variants"""
        product = TestDataFactory.create_product(name='Exported')
        TestDataFactory.create_variant(product=product)
        response = self.client.get('/api/admin/products/export/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        wb = load_workbook(BytesIO(response.content))
        rows = list(wb['Products'].iter_rows(values_only=True))
        self.assertEqual(list(rows[0]), PRODUCT_COLUMNS)
        self.assertEqual(rows[1][1], 'Exported')
        self.assertEqual(wb['Variants'].max_row, 2)

    def test_export_template_is_empty(self):
        """Test the template has headers only"""
        TestDataFactory.create_product()
        response = self.client.get('/api/admin/products/export/?template=true')
        wb = load_workbook(BytesIO(response.content))
        self.assertEqual(wb['Products'].max_row, 1)

    def test_import_creates_and_updates(self):
        """Test import creates new rows and updates matched ones"""
        existing = TestDataFactory.create_product(name='Old name', slug='existing', price=Decimal('10.00'))
        upload = self._workbook_upload(
            [
                [existing.pk, 'New name', 'existing', None, None, None, 25, None, 4, None, None, None, None],
                [None, 'Brand new', None, 'BN-1', 'Lamps', 'Acme', '199,50', None, 7, 'Short', None, None, None],
            ],
            [[None, 'Brand new', 'White', '#fff', 'L', 3, None, None]],
        )
        response = self.client.post('/api/admin/products/import/', {'file': upload}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['created'], 1)
        self.assertEqual(response.data['updated'], 1)
        self.assertEqual(response.data['variants'], 1)

        existing.refresh_from_db()
        self.assertEqual(existing.name, 'New name')
        self.assertEqual(existing.price, Decimal('25.00'))

        created = Product.objects.get(name='Brand new')
        self.assertEqual(created.price, Decimal('199.50'))
        self.assertEqual(created.category.name, 'Lamps')
        self.assertTrue(ProductVariant.objects.filter(product=created, color_name='White', size_name='L').exists())

    def test_import_reports_row_errors(self):
        """Test rows without a name are reported, not fatal"""
        upload = self._workbook_upload([[None, None, None, None, None, None, 5, None, 1, None, None, None, None]])
        response = self.client.post('/api/admin/products/import/', {'file': upload}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['created'], 0)
        self.assertEqual(len(response.data['errors']), 1)

    def test_import_rejects_negative_values(self):
        """Test negative price or stock fails the row"""
        upload = self._workbook_upload([
            [None, 'Cheap', None, None, None, None, -5, None, 1, None, None, None, None],
            [None, 'Oversold', None, None, None, None, 10, None, -3, None, None, None, None],
        ])
        response = self.client.post('/api/admin/products/import/', {'file': upload}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['created'], 0)
        self.assertEqual(len(response.data['errors']), 2)
        self.assertFalse(Product.objects.exists())

    def test_import_reports_oversized_number(self):
        """Test a number too large for a price fails only its row"""
        upload = self._workbook_upload([
            [None, 'Huge', None, None, None, None, 1e30, None, 1, None, None, None, None],
            [None, 'Normal', None, None, None, None, 99, None, 1, None, None, None, None],
        ])
        response = self.client.post('/api/admin/products/import/', {'file': upload}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['created'], 1)
        self.assertEqual(len(response.data['errors']), 1)
        self.assertIn('Row 2', response.data['errors'][0])

    def test_import_rejects_non_xlsx(self):
        """Test uploading a non-Excel file"""
        upload = SimpleUploadedFile('products.csv', b'a,b', content_type='text/csv')
        response = self.client.post('/api/admin/products/import/', {'file': upload}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class StorefrontAPITests(TestCase):
    """Test public catalog endpoints"""

    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.root = TestDataFactory.create_category(name='Clothing', slug='clothing', order=1)
        self.child = TestDataFactory.create_category(name='Shirts', slug='shirts', parent=self.root)
        self.shirt = TestDataFactory.create_product(
            name='Linen Shirt', slug='linen-shirt', category=self.child,
            price=Decimal('1200.00'), image='/media/uploads/shirt.jpg', brand='Acme'
        )
        self.jacket = TestDataFactory.create_product(
            name='Rain Jacket', slug='rain-jacket', category=self.root, price=Decimal('3000.00')
        )
        TestDataFactory.create_product(name='Garden Hose', slug='garden-hose', price=Decimal('500.00'))

    def test_product_list_by_category_includes_descendants(self):
        """Test category filter covers subcategories"""
        response = self.client.get('/api/products/?category=clothing')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual({p['slug'] for p in response.data['results']}, {'linen-shirt', 'rain-jacket'})

    def test_product_list_unknown_category(self):
        """Test listing an unknown category"""
        response = self.client.get('/api/products/?category=nope')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_product_list_sort_by_price(self):
        """Test price sorting"""
        response = self.client.get('/api/products/?sort=price_asc')
        prices = [Decimal(str(p['price'])) for p in response.data['results']]
        self.assertEqual(prices, sorted(prices))

    def test_product_by_slug(self):
        """Test resolving category/product slugs with breadcrumbs"""
        response = self.client.get('/api/products/by-slug/shirts/linen-shirt/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id'], self.shirt.pk)
        self.assertEqual([c['slug'] for c in response.data['breadcrumbs']], ['clothing', 'shirts'])

    def test_product_by_slug_wrong_category(self):
        """Test a product under the wrong category slug is not found"""
        response = self.client.get('/api/products/by-slug/clothing/linen-shirt/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_related_products(self):
        """Test related products come from the same category"""
        other = TestDataFactory.create_product(category=self.child)
        response = self.client.get(f'/api/products/{self.shirt.pk}/related/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p['id'] for p in response.data], [other.pk])

    def test_review_updates_average(self):
        """Test adding reviews recomputes the rating"""
        for rating in (5, 4, 4):
            response = self.client.post(
                f'/api/products/{self.shirt.pk}/reviews/',
                {'rating': rating, 'author_name': 'Eva', 'comment': 'Nice'},
                format='json'
            )
            self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.shirt.refresh_from_db()
        self.assertEqual(self.shirt.average_rating, Decimal('4.3'))
        self.assertEqual(self.shirt.total_ratings, 3)

        response = self.client.get(f'/api/products/{self.shirt.pk}/reviews/')
        self.assertEqual(len(response.data), 3)

    def test_review_refreshes_cached_listing(self):
        """Test a new review shows up in the cached product list"""
        response = self.client.get('/api/products/')
        listed = {p['id']: p for p in response.data['results']}
        self.assertEqual(listed[self.shirt.pk]['average_rating'], 0)

        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(
                f'/api/products/{self.shirt.pk}/reviews/',
                {'rating': 5, 'author_name': 'Eva'},
                format='json'
            )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.get('/api/products/')
        listed = {p['id']: p for p in response.data['results']}
        self.assertEqual(listed[self.shirt.pk]['average_rating'], Decimal('5.0'))

    def test_review_rating_out_of_range(self):
        """Test ratings outside 1..5 are rejected"""
        response = self.client.post(
            f'/api/products/{self.shirt.pk}/reviews/', {'rating': 6, 'author_name': 'Eva'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_category_tree(self):
        """Test nested category tree"""
        response = self.client.get('/api/categories/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['slug'], 'clothing')
        self.assertEqual(response.data[0]['children'][0]['slug'], 'shirts')

    def test_category_detail_paginates_products(self):
        """Test category detail carries children and products"""
        response = self.client.get('/api/categories/clothing/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['children'][0]['slug'], 'shirts')
        self.assertEqual(response.data['products']['count'], 2)

    def test_search_min_length(self):
        """Test one-character queries return nothing"""
        response = self.client.get('/api/search/?q=a')
        self.assertEqual(response.data, {'products': [], 'total_results': 0})

    def test_search_matches_name_and_brand(self):
        """Test search across name and brand"""
        response = self.client.get('/api/search/?q=acme')
        self.assertEqual(response.data['total_results'], 1)
        response = self.client.get('/api/search/?q=JACKET')
        self.assertEqual(response.data['products'][0]['slug'], 'rain-jacket')

    def test_instant_search_returns_categories(self):
        """Test instant search includes matching categories and honours limit"""
        response = self.client.get('/api/search/?q=shirt&instant=true&limit=1')
        self.assertEqual(len(response.data['products']), 1)
        self.assertEqual([c['slug'] for c in response.data['categories']], ['shirts'])

    def test_google_shopping_feed(self):
        """Test feed lists products with image and category"""
        response = self.client.get('/api/feeds/google-shopping/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('application/xml', response['Content-Type'])
        root = ET.fromstring(response.content)
        items = root.findall('./channel/item')
        self.assertEqual(len(items), 1)
        ns = {'g': 'http://base.google.com/ns/1.0'}
        self.assertEqual(items[0].find('g:id', ns).text, str(self.shirt.pk))


class SeedCategoriesCommandTests(TestCase):
    """Test the seed_categories management command"""

    def test_seed_is_idempotent(self):
        """Test running the command twice creates the tree once"""
        call_command('seed_categories', stdout=StringIO())
        call_command('seed_categories', stdout=StringIO())
        self.assertEqual(Category.objects.filter(parent__isnull=True).count(), 4)
        self.assertEqual(Category.objects.count(), 14)
        phones = Category.objects.get(slug='mobile-phones')
        self.assertEqual(phones.parent.slug, 'electronics')

    def test_clear_keeps_categories_with_products(self):
        """Test --clear only removes empty categories"""
        kept = TestDataFactory.create_category(name='Legacy', slug='legacy')
        TestDataFactory.create_product(category=kept)
        TestDataFactory.create_category(name='Empty', slug='empty')
        call_command('seed_categories', '--clear', stdout=StringIO())
        self.assertTrue(Category.objects.filter(slug='legacy').exists())
        self.assertFalse(Category.objects.filter(slug='empty').exists())
