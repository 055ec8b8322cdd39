# -*- coding: utf-8 -*-
from datetime import date
from decimal import Decimal
from unittest import mock

import requests
from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase
from rest_framework import status
from rest_framework.test import APIClient

from inventory.exceptions import InvalidCategory, InventoryError
from inventory.models import Account, Drug

from . import exceptions as order_exceptions
from .cart import Cart, CartLine
from .exceptions import EmptyCart, GatewayFailure, NoInstitute, OutOfRange
from .gateway import HttpDrugCatalog, HttpOrderGateway, LocalOrderGateway, OrderGateway, submit_cart
from .models import Order, OrderItem
from .validation import build_order_payload


def make_account(username, role, **fields):
    user = get_user_model().objects.create_user(username=username, password='secret123')
    return Account.objects.create(user=user, name=fields.pop('name', username.title()), role=role, **fields)


def make_drug(owner, **fields):
    values = {
        'drug_type': 'Tablet',
        'name': 'Paracetamol 500mg',
        'batch_no': 'PCM-001',
        'stock': 50,
        'mfg_date': date(2024, 1, 1),
        'exp_date': date(2027, 1, 1),
        'price': Decimal('2.50'),
    }
    values.update(fields)
    return Drug.objects.create(created_by=owner, **values)


def drug_dict(drug_id=1, stock=10, price='2.50', name='Paracetamol 500mg'):
    return {
        'id': drug_id,
        'name': name,
        'stock': stock,
        'price': price,
        'batch_no': f'B-{drug_id}',
        'exp_date': '2026-12-31',
        'created_by': 7,
        'creator_name': 'District Institute',
    }


class FakeInstitute:
    pk = 7
    is_institute = True


class CartTestCase(SimpleTestCase):
    """Tests pour le panier"""

    def test_repeated_adds_merge_into_one_line(self):
        cart = Cart()
        for _ in range(3):
            self.assertTrue(cart.add_item(drug_dict()))

        self.assertEqual(len(cart.lines), 1)
        self.assertEqual(cart.lines[0].quantity, 3)

    def test_out_of_stock_add_is_ignored(self):
        cart = Cart()
        cart.add_item(drug_dict(drug_id=1))
        with self.assertLogs('orders.cart', level='WARNING'):
            self.assertFalse(cart.add_item(drug_dict(drug_id=1, stock=0)))
            self.assertFalse(cart.add_item(drug_dict(drug_id=2, stock=0)))

        self.assertEqual(len(cart.lines), 1)
        self.assertEqual(cart.lines[0].quantity, 1)

    def test_line_keeps_first_snapshot(self):
        cart = Cart()
        cart.add_item(drug_dict(price='2.50'))
        cart.add_item(drug_dict(price='9.99'))

        line = cart.lines[0]
        self.assertEqual(line.price, Decimal('2.50'))
        self.assertEqual(line.batch_no, 'B-1')
        self.assertEqual(line.seller_id, 7)
        self.assertEqual(line.seller_name, 'District Institute')
        self.assertIsNone(line.category)

    def test_total_follows_mutations(self):
        cart = Cart()
        cart.add_item(drug_dict(drug_id=1, price='2.50'))
        cart.add_item(drug_dict(drug_id=2, price='1.25'))
        self.assertEqual(cart.total(), Decimal('3.75'))

        cart.set_quantity(0, 4)
        self.assertEqual(cart.total(), Decimal('11.25'))

        cart.remove_item(1)
        self.assertEqual(cart.total(), Decimal('10.00'))

    def test_display_total_rounds_half_up(self):
        cart = Cart(lines=[CartLine(drug_id=1, name='X', quantity=1, price=Decimal('0.005'))])
        self.assertEqual(cart.display_total(), Decimal('0.01'))

    def test_set_quantity_below_one_is_refused(self):
        cart = Cart()
        cart.add_item(drug_dict())
        self.assertFalse(cart.set_quantity(0, 0))
        self.assertEqual(cart.lines[0].quantity, 1)

    def test_out_of_range_index(self):
        cart = Cart()
        cart.add_item(drug_dict())
        with self.assertRaises(OutOfRange):
            cart.remove_item(1)
        with self.assertRaises(OutOfRange):
            cart.set_quantity(-1, 2)
        with self.assertRaises(OutOfRange):
            cart.set_category(5, 'OPD')

    def test_category_is_not_checked_when_set(self):
        cart = Cart()
        cart.add_item(drug_dict())
        cart.set_category(0, 'SOMETHING')
        self.assertEqual(cart.lines[0].category, 'SOMETHING')

    def test_clear(self):
        cart = Cart(notes='urgent')
        cart.add_item(drug_dict())
        cart.clear()
        self.assertEqual(cart.lines, [])
        self.assertEqual(cart.notes, '')

    def test_dict_round_trip_keeps_decimal_price(self):
        cart = Cart(notes='n')
        cart.add_item(drug_dict(price='3.10'))
        restored = Cart.from_dict(cart.to_dict())
        self.assertEqual(restored, cart)
        self.assertEqual(Cart.from_dict(None), Cart())


class OrderValidationTestCase(SimpleTestCase):

    def setUp(self):
        self.cart = Cart(notes='for ward 3')
        self.cart.add_item(drug_dict(drug_id=1))
        self.cart.add_item(drug_dict(drug_id=2))

    def test_empty_cart_comes_first(self):
        with self.assertRaises(EmptyCart):
            build_order_payload(Cart(), None)

    def test_no_institute(self):
        with self.assertRaises(NoInstitute):
            build_order_payload(self.cart, None)

    def test_missing_category_reports_lines(self):
        self.cart.set_category(0, 'OPD')
        with self.assertRaises(InvalidCategory) as ctx:
            build_order_payload(self.cart, FakeInstitute())
        self.assertEqual(ctx.exception.line_indexes, [1])
        self.assertEqual(ctx.exception.message, 'Please select a valid category for all items')

    def test_lowercase_category_is_invalid(self):
        self.cart.set_category(0, 'OPD')
        self.cart.set_category(1, 'opd')
        with self.assertRaises(InvalidCategory):
            build_order_payload(self.cart, FakeInstitute())

    def test_category_error_is_only_defined_in_inventory(self):
        self.assertFalse(hasattr(order_exceptions, 'InvalidCategory'))
        self.cart.set_category(0, 'OPD')
        with self.assertRaises(InventoryError):
            build_order_payload(self.cart, FakeInstitute())

    def test_payload_carries_no_price(self):
        self.cart.set_category(0, 'OPD')
        self.cart.set_category(1, 'OUTREACH')
        self.cart.set_quantity(1, 3)

        payload = build_order_payload(self.cart, FakeInstitute())

        self.assertEqual(payload.as_json(), {
            'recipient_id': 7,
            'items': [
                {'drug_id': 1, 'quantity': 1, 'category': 'OPD'},
                {'drug_id': 2, 'quantity': 3, 'category': 'OUTREACH'},
            ],
            'notes': 'for ward 3',
        })


class SubmitCartTestCase(SimpleTestCase):

    def setUp(self):
        self.cart = Cart(notes='urgent')
        self.cart.add_item(drug_dict(drug_id=1))
        self.cart.add_item(drug_dict(drug_id=1))
        self.cart.add_item(drug_dict(drug_id=2))
        self.gateway = mock.Mock(spec=OrderGateway)

    def test_invalid_category_makes_no_call(self):
        self.cart.set_category(0, 'IPD')
        with self.assertRaises(InvalidCategory):
            submit_cart(self.cart, FakeInstitute(), self.gateway)
        self.gateway.submit.assert_not_called()

    def test_failed_submission_leaves_cart_untouched(self):
        self.cart.set_category(0, 'IPD')
        self.cart.set_category(1, 'OPD')
        before = self.cart.snapshot()
        self.gateway.submit.side_effect = GatewayFailure('Service unavailable', status_code=503)

        with self.assertRaises(GatewayFailure):
            submit_cart(self.cart, FakeInstitute(), self.gateway)

        self.assertEqual(self.cart, before)
        self.assertEqual(self.cart.to_dict(), before.to_dict())
        self.assertEqual(self.gateway.submit.call_count, 1)

    def test_successful_submission_clears_cart(self):
        self.cart.set_category(0, 'IPD')
        self.cart.set_category(1, 'OPD')
        self.gateway.submit.return_value = {'status': True, 'order': {'id': 1}}

        result = submit_cart(self.cart, FakeInstitute(), self.gateway)

        self.assertEqual(result['order']['id'], 1)
        self.assertEqual(len(self.cart.lines), 0)
        self.assertEqual(self.cart.notes, '')


class OrderGatewayInterfaceTestCase(SimpleTestCase):

    def test_gateway_without_submit_cannot_be_built(self):
        class NoSubmitGateway(OrderGateway):
            pass

        with self.assertRaises(TypeError):
            NoSubmitGateway()

    def test_base_gateway_is_abstract(self):
        with self.assertRaises(TypeError):
            OrderGateway()


class HttpOrderGatewayTestCase(SimpleTestCase):
    """Tests pour le client HTTP (requests mocké)"""

    def setUp(self):
        self.session = mock.Mock()
        self.gateway = HttpOrderGateway('http://orders.local/api/', session=self.session, timeout=5)
        cart = Cart(notes='n')
        cart.add_item(drug_dict(drug_id=4))
        cart.set_category(0, 'OPD')
        self.payload = build_order_payload(cart, FakeInstitute())

    def test_posts_payload_once(self):
        self.session.post.return_value = mock.Mock(
            status_code=201, json=mock.Mock(return_value={'status': True, 'order': {'id': 9}})
        )

        body = self.gateway.submit(self.payload)

        self.assertEqual(body['order']['id'], 9)
        self.session.post.assert_called_once_with(
            'http://orders.local/api/pharmacy/orders/',
            json=self.payload.as_json(),
            auth=None,
            timeout=5,
        )

    def test_refusal_becomes_gateway_failure(self):
        self.session.post.return_value = mock.Mock(
            status_code=400, json=mock.Mock(return_value={'status': False, 'message': 'Insufficient stock'})
        )
        with self.assertRaises(GatewayFailure) as ctx:
            self.gateway.submit(self.payload)
        self.assertEqual(ctx.exception.message, 'Insufficient stock')
        self.assertEqual(ctx.exception.status_code, 400)

    def test_non_json_error(self):
        self.session.post.return_value = mock.Mock(
            status_code=500, json=mock.Mock(side_effect=ValueError('no json'))
        )
        with self.assertRaises(GatewayFailure) as ctx:
            self.gateway.submit(self.payload)
        self.assertEqual(ctx.exception.message, 'Order service returned HTTP 500')

    def test_network_error_is_not_retried(self):
        self.session.post.side_effect = requests.exceptions.ConnectionError('refused')
        with self.assertRaises(GatewayFailure):
            self.gateway.submit(self.payload)
        self.assertEqual(self.session.post.call_count, 1)


class HttpDrugCatalogTestCase(SimpleTestCase):

    def test_only_drugs_in_stock(self):
        session = mock.Mock()
        session.get.return_value = mock.Mock(
            status_code=200,
            json=mock.Mock(return_value={'status': True, 'drugs': [drug_dict(1, stock=3), drug_dict(2, stock=0)]}),
        )
        catalog = HttpDrugCatalog('http://orders.local/api', session=session, timeout=5)

        drugs = catalog.available_drugs(7)

        self.assertEqual([d['id'] for d in drugs], [1])
        session.get.assert_called_once_with(
            'http://orders.local/api/drugs/', params={'created_by': 7}, auth=None, timeout=5
        )

    def test_error_status(self):
        session = mock.Mock()
        session.get.return_value = mock.Mock(status_code=503)
        catalog = HttpDrugCatalog('http://orders.local/api', session=session, timeout=5)
        with self.assertRaises(GatewayFailure):
            catalog.available_drugs(7)


class OrderTestMixin:

    def setUp(self):
        self.client = APIClient()
        self.institute = make_account('institute', Account.ROLE_INSTITUTE, name='District Institute')
        self.pharmacy = make_account('pharmacy', Account.ROLE_PHARMACY, parent=self.institute)
        self.paracetamol = make_drug(self.institute)
        self.amoxicillin = make_drug(
            self.institute, name='Amoxicillin 500mg', batch_no='AMX-001', stock=5, price=Decimal('1.20')
        )
        self.client.force_authenticate(user=self.pharmacy.user)

    def order_data(self, **overrides):
        data = {
            'recipient_id': self.institute.id,
            'items': [
                {'drug_id': self.paracetamol.id, 'quantity': 3, 'category': 'OPD'},
                {'drug_id': self.amoxicillin.id, 'quantity': 2, 'category': 'IPD'},
            ],
            'notes': 'monthly indent',
        }
        data.update(overrides)
        return data


class PharmacyOrderAPITestCase(OrderTestMixin, TestCase):
    """Tests pour POST /api/pharmacy/orders/"""

    def test_create_order(self):
        response = self.client.post('/api/pharmacy/orders/', self.order_data(), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['status'])
        self.assertEqual(response.data['message'], 'Order created successfully')
        self.assertTrue(response.data['order']['order_no'].startswith('PHARM-ORD-'))
        self.assertEqual(response.data['order']['total_amount'], '9.90')

        order = Order.objects.get(pk=response.data['order']['id'])
        self.assertEqual(order.items.count(), 2)
        self.assertEqual(order.notes, 'monthly indent')
        self.assertTrue(all(item.status == 'pending' for item in order.items.all()))
        self.assertTrue(all(item.seller_id == self.institute.id for item in order.items.all()))

    def test_prices_come_from_the_drug_record(self):
        data = self.order_data(items=[
            {'drug_id': self.paracetamol.id, 'quantity': 2, 'category': 'OPD', 'unit_price': '0.01'},
        ])

        response = self.client.post('/api/pharmacy/orders/', data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        item = OrderItem.objects.get(order_id=response.data['order']['id'])
        self.assertEqual(item.unit_price, Decimal('2.50'))
        self.assertEqual(response.data['order']['total_amount'], '5.00')

    def test_stock_is_untouched_until_approval(self):
        self.client.post('/api/pharmacy/orders/', self.order_data(), format='json')
        self.paracetamol.refresh_from_db()
        self.assertEqual(self.paracetamol.stock, 50)

    def test_insufficient_stock_rolls_back(self):
        data = self.order_data(items=[
            {'drug_id': self.paracetamol.id, 'quantity': 1, 'category': 'OPD'},
            {'drug_id': self.amoxicillin.id, 'quantity': 3, 'category': 'IPD'},
            {'drug_id': self.amoxicillin.id, 'quantity': 3, 'category': 'OPD'},
        ])

        response = self.client.post('/api/pharmacy/orders/', data, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['status'])
        self.assertIn('Insufficient stock for drug Amoxicillin 500mg', response.data['message'])
        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(OrderItem.objects.count(), 0)

    def test_recipient_must_be_an_institute(self):
        response = self.client.post(
            '/api/pharmacy/orders/', self.order_data(recipient_id=self.pharmacy.id), format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Recipient must be a valid institute.')

    def test_drug_must_belong_to_recipient(self):
        other = make_account('other', Account.ROLE_INSTITUTE)
        foreign = make_drug(other, batch_no='FOREIGN')
        data = self.order_data(items=[{'drug_id': foreign.id, 'quantity': 1, 'category': 'OPD'}])

        response = self.client.post('/api/pharmacy/orders/', data, format='json')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(Order.objects.count(), 0)

    def test_invalid_payloads(self):
        bad_category = self.order_data(items=[{'drug_id': self.paracetamol.id, 'quantity': 1, 'category': 'ICU'}])
        bad_quantity = self.order_data(items=[{'drug_id': self.paracetamol.id, 'quantity': 0, 'category': 'OPD'}])
        for data in (self.order_data(items=[]), bad_category, bad_quantity):
            response = self.client.post('/api/pharmacy/orders/', data, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Order.objects.count(), 0)

    def test_institute_cannot_order(self):
        self.client.force_authenticate(user=self.institute.user)
        response = self.client.post('/api/pharmacy/orders/', self.order_data(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_history_and_details(self):
        first = self.client.post('/api/pharmacy/orders/', self.order_data(), format='json').data['order']
        self.client.post('/api/pharmacy/orders/', self.order_data(), format='json')

        response = self.client.get('/api/pharmacy/orders/history/?page=1&limit=1')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 2)
        self.assertEqual(response.data['total_pages'], 2)
        self.assertEqual(len(response.data['orders']), 1)
        self.assertEqual(response.data['orders'][0]['overall_status'], 'pending')

        response = self.client.get(f"/api/pharmacy/orders/history/?search={first['order_no']}")
        self.assertEqual(response.data['total'], 1)

        response = self.client.get('/api/pharmacy/orders/history/?status=approved')
        self.assertEqual(response.data['total'], 0)

        response = self.client.get(f"/api/pharmacy/orders/{first['id']}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['order']['item_count'], 2)
        self.assertEqual(response.data['order']['recipient_name'], 'District Institute')

    def test_details_are_private(self):
        order_id = self.client.post('/api/pharmacy/orders/', self.order_data(), format='json').data['order']['id']
        other = make_account('other-pharmacy', Account.ROLE_PHARMACY, parent=self.institute)
        self.client.force_authenticate(user=other.user)

        response = self.client.get(f'/api/pharmacy/orders/{order_id}/')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class CartAPITestCase(OrderTestMixin, TestCase):
    """Tests pour le panier de session et le checkout"""

    def add(self, drug):
        return self.client.post('/api/cart/items/', {'drug_id': drug.id}, format='json')

    def test_add_and_merge(self):
        self.assertEqual(self.add(self.paracetamol).status_code, status.HTTP_201_CREATED)
        response = self.add(self.paracetamol)

        cart = response.data['cart']
        self.assertEqual(cart['line_count'], 1)
        self.assertEqual(cart['lines'][0]['quantity'], 2)
        self.assertEqual(cart['lines'][0]['seller_name'], 'District Institute')
        self.assertEqual(cart['total'], '5.00')

    def test_out_of_stock_add_warns(self):
        self.paracetamol.stock = 0
        self.paracetamol.save()

        response = self.add(self.paracetamol)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('out of stock', response.data['warning'])
        self.assertEqual(response.data['cart']['line_count'], 0)

    def test_unknown_drug(self):
        other = make_account('other', Account.ROLE_INSTITUTE)
        foreign = make_drug(other, batch_no='FOREIGN')
        self.assertEqual(self.add(foreign).status_code, status.HTTP_404_NOT_FOUND)

    def test_pharmacy_without_institute(self):
        lonely = make_account('lonely', Account.ROLE_PHARMACY)
        self.client.force_authenticate(user=lonely.user)
        response = self.add(self.paracetamol)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'No institute associated with your pharmacy.')

    def test_edit_lines_and_notes(self):
        self.add(self.paracetamol)
        self.add(self.amoxicillin)

        response = self.client.patch('/api/cart/items/0/', {'quantity': 4, 'category': 'OPD'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['cart']['lines'][0]['quantity'], 4)
        self.assertEqual(response.data['cart']['lines'][0]['category'], 'OPD')

        self.assertEqual(self.client.patch('/api/cart/items/0/', {'quantity': 0}, format='json').status_code, 400)
        self.assertEqual(self.client.patch('/api/cart/items/9/', {'quantity': 1}, format='json').status_code, 404)

        response = self.client.delete('/api/cart/items/1/')
        self.assertEqual(response.data['cart']['line_count'], 1)
        self.assertEqual(self.client.delete('/api/cart/items/1/').status_code, 404)

        response = self.client.patch('/api/cart/', {'notes': 'deliver before friday'}, format='json')
        self.assertEqual(response.data['cart']['notes'], 'deliver before friday')

        response = self.client.get('/api/cart/')
        self.assertEqual(response.data['cart']['total'], '10.00')
        self.assertEqual(response.data['cart']['notes'], 'deliver before friday')

    def test_checkout_empty_cart(self):
        response = self.client.post('/api/cart/checkout/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Please add items to your cart.')

    def test_checkout_requires_categories(self):
        self.add(self.paracetamol)
        self.add(self.amoxicillin)
        self.client.patch('/api/cart/items/0/', {'category': 'IPD'}, format='json')

        response = self.client.post('/api/cart/checkout/')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['line_indexes'], [1])
        self.assertEqual(Order.objects.count(), 0)

    def test_checkout_prices_at_submission_time(self):
        self.add(self.paracetamol)
        self.client.patch('/api/cart/items/0/', {'quantity': 2, 'category': 'OPD'}, format='json')
        self.paracetamol.price = Decimal('3.00')
        self.paracetamol.save()

        response = self.client.post('/api/cart/checkout/')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['order']['total_amount'], '6.00')
        self.assertEqual(OrderItem.objects.get().unit_price, Decimal('3.00'))
        self.assertEqual(self.client.get('/api/cart/').data['cart']['line_count'], 0)

    def test_refused_checkout_keeps_cart(self):
        self.add(self.amoxicillin)
        self.client.patch('/api/cart/items/0/', {'quantity': 4, 'category': 'IPD'}, format='json')
        self.client.patch('/api/cart/', {'notes': 'keep me'}, format='json')
        before = self.client.get('/api/cart/').data['cart']
        self.amoxicillin.stock = 1
        self.amoxicillin.save()

        response = self.client.post('/api/cart/checkout/')

        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(response.data['upstream_status'], 400)
        self.assertEqual(self.client.get('/api/cart/').data['cart'], before)
        self.assertEqual(Order.objects.count(), 0)

    def test_local_gateway_directly(self):
        cart = Cart()
        cart.add_item(self.paracetamol, seller_name=self.institute.name)
        cart.set_category(0, 'OUTREACH')

        result = submit_cart(cart, self.pharmacy.institute, LocalOrderGateway(self.pharmacy))

        self.assertTrue(result['status'])
        self.assertEqual(Order.objects.get().pharmacy, self.pharmacy)
        self.assertEqual(len(cart), 0)


class SellerOrderItemTestCase(OrderTestMixin, TestCase):
    """Tests pour le traitement des lignes par l'institut"""

    def setUp(self):
        super().setUp()
        response = self.client.post('/api/pharmacy/orders/', self.order_data(), format='json')
        self.order = Order.objects.get(pk=response.data['order']['id'])
        self.item = self.order.items.get(drug=self.amoxicillin)
        self.client.force_authenticate(user=self.institute.user)

    def set_status(self, value, item=None):
        item = item or self.item
        return self.client.patch(f'/api/seller/order-items/{item.id}/', {'status': value}, format='json')

    def stock(self):
        self.amoxicillin.refresh_from_db()
        return self.amoxicillin.stock

    def test_seller_list(self):
        response = self.client.get('/api/seller/orders/?status=pending')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 2)
        self.assertEqual(response.data['items'][0]['order_no'], self.order.order_no)

    def test_approve_then_ship(self):
        response = self.set_status('approved')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['item']['status'], 'approved')
        self.assertEqual(self.stock(), 3)

        self.assertEqual(self.set_status('shipped').status_code, status.HTTP_200_OK)
        self.assertEqual(self.stock(), 3)
        self.assertEqual(self.set_status('pending').status_code, status.HTTP_400_BAD_REQUEST)

    def test_rejecting_approved_item_restores_stock(self):
        self.set_status('approved')
        self.assertEqual(self.set_status('rejected').status_code, status.HTTP_200_OK)
        self.assertEqual(self.stock(), 5)

        response = self.set_status('approved')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Cannot change status of rejected item')

    def test_back_to_pending_restores_stock(self):
        self.set_status('approved')
        self.set_status('pending')
        self.assertEqual(self.stock(), 5)

    def test_only_approved_items_ship(self):
        response = self.set_status('shipped')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Can only ship approved items')

    def test_approval_refused_without_stock(self):
        self.amoxicillin.stock = 1
        self.amoxicillin.save()

        response = self.set_status('approved')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(self.stock(), 1)
        self.item.refresh_from_db()
        self.assertEqual(self.item.status, 'pending')

    def test_invalid_status(self):
        self.assertEqual(self.set_status('lost').status_code, status.HTTP_400_BAD_REQUEST)

    def test_other_institute_cannot_update(self):
        other = make_account('other', Account.ROLE_INSTITUTE)
        self.client.force_authenticate(user=other.user)
        self.assertEqual(self.set_status('approved').status_code, status.HTTP_404_NOT_FOUND)

    def test_pharmacy_cannot_update(self):
        self.client.force_authenticate(user=self.pharmacy.user)
        self.assertEqual(self.set_status('approved').status_code, status.HTTP_403_FORBIDDEN)
