"""
API tests for the catalog endpoints
"""
import json
from decimal import Decimal

from django.db import connection
from django.test import TestCase, override_settings
from django.test.utils import CaptureQueriesContext
from rest_framework import status

from apps.catalog.models import Color, Product, ProductVariant
from apps.test_utils import AuthenticatedAPIClient, IN_MEMORY_STORAGES, TestDataFactory


class CatalogAPITestCase(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())
        self.red = TestDataFactory.create_color(name='Red', hex='#FF0000')
        self.blue = TestDataFactory.create_color(name='Blue', hex='#0000FF')

    def matrix(self, draft, operation, **values):
        response = self.client.post(
            '/api/v1/products/matrix/',
            {'draft': draft, 'operation': operation, **values},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        return response.data

    def product_payload(self, **overrides):
        draft = self.matrix({'sku_prefix': 'TEE', 'sizes': ['S', 'M']}, 'colors',
                            colors=[str(self.red.pk), str(self.blue.pk)])
        payload = {
            'name': 'Linen Tee',
            'sku': 'tee',
            'price': '29.90',
            'fabrics': ['Linen', ' linen ', 'Cotton', 'Linen'],
            'colors': draft['colors'],
            'sizes': draft['sizes'],
            'variants': draft['variants'],
        }
        payload.update(overrides)
        return payload


class PermissionTests(TestCase):

    def test_anonymous_rejected(self):
        response = AuthenticatedAPIClient().get('/api/v1/products/')
        self.assertIn(response.status_code, [status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN])

    def test_non_staff_rejected(self):
        client = AuthenticatedAPIClient().authenticate_user(
            TestDataFactory.create_user(is_staff=False)
        )
        response = client.get('/api/v1/products/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class MatrixActionTests(CatalogAPITestCase):

    def test_colors_then_sizes(self):
        draft = self.matrix({'sizes': ['S', 'M']}, 'colors', colors=[str(self.red.pk), str(self.blue.pk)])
        self.assertEqual(len(draft['variants']), 4)
        self.assertEqual(draft['color_names'][str(self.red.pk)], 'Red')

        draft = self.matrix(draft, 'sizes', sizes=['S'])
        self.assertEqual(
            [(v['color_id'], v['size']) for v in draft['variants']],
            [(str(self.red.pk), 'S'), (str(self.blue.pk), 'S')]
        )

    def test_edits_survive_transition(self):
        draft = self.matrix({'sizes': ['S', 'M']}, 'colors', colors=[str(self.red.pk)])
        draft['variants'][0]['stock_quantity'] = 12
        draft['variants'][0]['price'] = '15.00'

        draft = self.matrix(draft, 'colors', colors=[str(self.red.pk), str(self.blue.pk)])
        self.assertEqual(len(draft['variants']), 4)
        self.assertEqual(draft['variants'][0]['stock_quantity'], 12)
        self.assertEqual(draft['variants'][0]['price'], '15.00')
        self.assertEqual(draft['variants'][2]['stock_quantity'], 0)
        self.assertIsNone(draft['variants'][2]['price'])

    def test_primary(self):
        draft = self.matrix({'sizes': ['S']}, 'colors', colors=[str(self.red.pk), str(self.blue.pk)])
        draft = self.matrix(draft, 'primary', primary=str(self.blue.pk))
        self.assertEqual([v['is_primary'] for v in draft['variants']], [False, True])

    def test_unknown_color(self):
        response = self.client.post('/api/v1/products/matrix/', {
            'draft': {'sizes': ['S']},
            'operation': 'colors',
            'colors': ['00000000-0000-0000-0000-000000000000'],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_operation_value_required(self):
        response = self.client.post('/api/v1/products/matrix/', {
            'draft': {}, 'operation': 'sizes',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('sizes', response.data)


class ProductAPITests(CatalogAPITestCase):

    def test_create_product(self):
        response = self.client.post('/api/v1/products/', self.product_payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data['sku'], 'TEE')
        self.assertEqual(response.data['fabrics'], ['Linen', 'linen', 'Cotton'])
        self.assertEqual(len(response.data['variants']), 4)
        self.assertEqual(response.data['sizes'], ['S', 'M'])
        self.assertEqual([c['name'] for c in response.data['colors']], ['Red', 'Blue'])
        self.assertTrue(response.data['variants'][0]['is_primary'])
        self.assertTrue(response.data['variants'][0]['sku'].startswith('TEE-RED-S-'))

    def test_colors_without_variants_rejected(self):
        payload = self.product_payload(variants=[])
        response = self.client.post('/api/v1/products/', payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Product.objects.exists())

    def test_discount_must_be_below_price(self):
        payload = self.product_payload(discount_price='40.00')
        response = self.client.post('/api/v1/products/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('discount_price', response.data)

    def test_list_and_filters(self):
        self.client.post('/api/v1/products/', self.product_payload(), format='json')
        TestDataFactory.create_product(name='Wool Coat', status=Product.STATUS_INACTIVE)

        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/v1/products/', {'status': 'inactive'})
        self.assertEqual([p['name'] for p in response.data['results']], ['Wool Coat'])

        response = self.client.get('/api/v1/products/', {'search': 'linen'})
        self.assertEqual([p['name'] for p in response.data['results']], ['Linen Tee'])

        response = self.client.get('/api/v1/products/', {'low_stock': 'true'})
        self.assertEqual(response.data['count'], 2)

    def test_status_patch_keeps_variants(self):
        created = self.client.post('/api/v1/products/', self.product_payload(), format='json').data

        response = self.client.patch(
            f"/api/v1/products/{created['id']}/",
            {'status': 'inactive', 'expected_version': created['version']},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data['status'], 'inactive')
        self.assertEqual(response.data['version'], 2)
        self.assertEqual(
            [v['sku'] for v in response.data['variants']],
            [v['sku'] for v in created['variants']]
        )

    def test_stale_version_conflict(self):
        created = self.client.post('/api/v1/products/', self.product_payload(), format='json').data
        url = f"/api/v1/products/{created['id']}/"
        self.client.patch(url, {'name': 'First', 'expected_version': 1}, format='json')

        response = self.client.patch(url, {'name': 'Second', 'expected_version': 1}, format='json')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(Product.objects.get().name, 'First')

    def test_update_sizes_via_put(self):
        created = self.client.post('/api/v1/products/', self.product_payload(), format='json').data
        draft = self.client.get(f"/api/v1/products/{created['id']}/draft/").data
        draft = self.matrix(draft, 'sizes', sizes=['M', 'L'])

        payload = self.product_payload(
            sizes=draft['sizes'], variants=draft['variants'], colors=draft['colors']
        )
        response = self.client.put(f"/api/v1/products/{created['id']}/", payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data['sizes'], ['M', 'L'])
        self.assertEqual(ProductVariant.objects.count(), 4)
        kept = {v['sku'] for v in created['variants'] if v['size'] == 'M'}
        self.assertTrue(kept <= {v['sku'] for v in response.data['variants']})

    def test_duplicate_sku_any_case(self):
        self.client.post('/api/v1/products/', self.product_payload(sku='TEE'), format='json')

        response = self.client.post('/api/v1/products/', self.product_payload(sku='tee'), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('sku', response.data)
        self.assertEqual(Product.objects.count(), 1)

    def test_update_keeps_own_sku(self):
        created = self.client.post('/api/v1/products/', self.product_payload(), format='json').data

        response = self.client.patch(
            f"/api/v1/products/{created['id']}/", {'sku': 'tee', 'name': 'Tee'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data['sku'], 'TEE')

    def test_patch_sizes_only_reconciles_variants(self):
        created = self.client.post('/api/v1/products/', self.product_payload(), format='json').data

        response = self.client.patch(
            f"/api/v1/products/{created['id']}/", {'sizes': ['S']}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data['sizes'], ['S'])
        self.assertEqual(len(response.data['variants']), 2)
        kept = {v['sku'] for v in created['variants'] if v['size'] == 'S'}
        self.assertEqual({v['sku'] for v in response.data['variants']}, kept)

    def test_patch_colors_only_adds_missing_pairs(self):
        payload = self.product_payload()
        payload['variants'] = [
            v for v in payload['variants'] if v['color_id'] == str(self.red.pk)
        ]
        payload['colors'] = [str(self.red.pk)]
        created = self.client.post('/api/v1/products/', payload, format='json').data

        response = self.client.patch(
            f"/api/v1/products/{created['id']}/",
            {'colors': [str(self.red.pk), str(self.blue.pk)]},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(len(response.data['variants']), 4)
        added = [v for v in response.data['variants'] if str(v['color']) == str(self.blue.pk)]
        self.assertEqual([v['size'] for v in added], ['S', 'M'])
        self.assertTrue(all(v['sku'].startswith('TEE-BLU-') for v in added))

    def test_list_queries_do_not_grow_with_products(self):
        self.client.post('/api/v1/products/', self.product_payload(), format='json')
        with CaptureQueriesContext(connection) as single:
            self.client.get('/api/v1/products/')

        for sku in ('POLO', 'SHIRT'):
            self.client.post('/api/v1/products/', self.product_payload(sku=sku), format='json')
        with CaptureQueriesContext(connection) as several:
            response = self.client.get('/api/v1/products/')

        self.assertEqual(response.data['count'], 3)
        self.assertEqual(len(several), len(single))
        self.assertEqual({p['variant_count'] for p in response.data['results']}, {4})

    def test_delete_product(self):
        created = self.client.post('/api/v1/products/', self.product_payload(), format='json').data
        response = self.client.delete(f"/api/v1/products/{created['id']}/")

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(ProductVariant.objects.exists())

    @override_settings(STORAGES=IN_MEMORY_STORAGES)
    def test_multipart_create_with_images(self):
        payload = self.product_payload()
        payload['variants'][0]['pending_images'] = ['front']

        response = self.client.post('/api/v1/products/', {
            'payload': json.dumps(payload),
            'front': TestDataFactory.create_image_file('front.png'),
        }, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(len(response.data['variants'][0]['image_urls']), 1)
        self.assertEqual(response.data['thumbnail_url'], response.data['variants'][0]['image_urls'][0])

    def test_multipart_missing_file(self):
        payload = self.product_payload()
        payload['variants'][0]['pending_images'] = ['front']

        response = self.client.post('/api/v1/products/', {
            'payload': json.dumps(payload),
        }, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Product.objects.exists())

    def test_bad_payload_json(self):
        response = self.client.post('/api/v1/products/', {'payload': '{nope'}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class VariantAPITests(CatalogAPITestCase):

    def test_filter_by_product_and_stock(self):
        product = TestDataFactory.create_product()
        TestDataFactory.create_variant(product, self.red, size='S', stock_quantity=3)
        TestDataFactory.create_variant(product, self.blue, size='S', stock_quantity=0)
        TestDataFactory.create_variant(TestDataFactory.create_product(), self.red)

        response = self.client.get('/api/v1/variants/', {'product': str(product.pk)})
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/v1/variants/', {'product': str(product.pk), 'in_stock': 'true'})
        self.assertEqual([v['color_name'] for v in response.data['results']], ['Red'])

    def test_variants_are_read_only(self):
        response = self.client.post('/api/v1/variants/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)


class LibraryAPITests(CatalogAPITestCase):

    def test_create_color_uppercases_hex(self):
        response = self.client.post('/api/v1/colors/', {'name': 'Teal', 'hex': '#00aaaa'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Color.objects.get(name='Teal').hex, '#00AAAA')

    def test_invalid_hex(self):
        response = self.client.post('/api/v1/colors/', {'name': 'Teal', 'hex': 'teal'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_category_slug(self):
        response = self.client.post('/api/v1/categories/', {'name': 'Summer Dresses'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['slug'], 'summer-dresses')
        self.assertEqual(response.data['description'], '')

    def test_category_description(self):
        response = self.client.post('/api/v1/categories/', {
            'name': 'Outerwear', 'description': 'Coats and jackets'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        category_id = response.data['id']
        response = self.client.patch(
            f'/api/v1/categories/{category_id}/', {'description': 'Coats only'}, format='json'
        )
        self.assertEqual(response.data['description'], 'Coats only')

    def test_collection_requires_image(self):
        response = self.client.post('/api/v1/collections/', {'name': 'Spring'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_collection_with_image_url(self):
        response = self.client.post('/api/v1/collections/', {
            'name': 'Spring', 'image_url': 'https://cdn.test/spring.jpg'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['product_count'], 0)

    @override_settings(STORAGES=IN_MEMORY_STORAGES)
    def test_collection_image_upload(self):
        response = self.client.post('/api/v1/collections/', {
            'name': 'Spring',
            'image': TestDataFactory.create_image_file('cover.png'),
        }, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertTrue(response.data['image_url'].endswith('.jpg'))
        self.assertNotIn('image', response.data)


class InventoryAPITests(CatalogAPITestCase):

    def setUp(self):
        super().setUp()
        self.product = TestDataFactory.create_product(name='Tee')
        self.variant = TestDataFactory.create_variant(self.product, self.red, stock_quantity=30)
        self.other = TestDataFactory.create_product(name='Coat')
        TestDataFactory.create_variant(self.other, self.blue, stock_quantity=2)

    def test_lowest_stock_first(self):
        response = self.client.get('/api/v1/inventory/')
        self.assertEqual([p['name'] for p in response.data['results']], ['Coat', 'Tee'])
        self.assertTrue(response.data['results'][0]['is_low_stock'])
        self.assertEqual(response.data['results'][1]['variants'][0]['color'], 'Red')

    def test_update_stock(self):
        response = self.client.post('/api/v1/inventory/update_stock/', {
            'updates': [{'id': str(self.variant.pk), 'stock_quantity': 4}]
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['updated'], 1)
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 4)

    def test_update_stock_rejects_negative(self):
        response = self.client.post('/api/v1/inventory/update_stock/', {
            'updates': [{'id': str(self.variant.pk), 'stock_quantity': -4}]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_stock_requires_updates(self):
        response = self.client.post('/api/v1/inventory/update_stock/', {'updates': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
