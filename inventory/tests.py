# -*- coding: utf-8 -*-
import io
import os
import tempfile
from datetime import date, timedelta
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.test import SimpleTestCase, TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from .importer import (
    CSV_COLUMNS,
    DrugImporter,
    ParsedRow,
    RowError,
    read_csv_rows,
    validate_row,
)
from .models import Account, Drug, DrugName, DrugType
from .search import fuzzy_search, normalize_text

CSV_HEADER = ','.join(CSV_COLUMNS)


def make_account(username, role, **fields):
    user = get_user_model().objects.create_user(username=username, password='secret123')
    return Account.objects.create(user=user, name=fields.pop('name', username.title()), role=role, **fields)


def make_drug(owner, **fields):
    values = {
        'drug_type': 'Tablet',
        'name': 'Paracetamol 500mg',
        'batch_no': 'PCM-001',
        'stock': 100,
        'mfg_date': date(2024, 1, 1),
        'exp_date': date(2027, 1, 1),
        'price': Decimal('2.50'),
        'category': 'OPD',
    }
    values.update(fields)
    return Drug.objects.create(created_by=owner, **values)


def raw_row(**overrides):
    row = {
        'Drug Type': 'Tablet',
        'Name': 'Paracetamol 500mg',
        'Batch No': 'PCM-001',
        'Description': 'Antalgique',
        'Stock': '100',
        'Manufacturing Date': '2024-01-01',
        'Expiration Date': '2026-01-01',
        'Price': '2.50',
        'Category': 'OPD',
    }
    row.update(overrides)
    return row


def csv_upload(lines, name='drugs.csv'):
    content = '\n'.join([CSV_HEADER] + lines) + '\n'
    return SimpleUploadedFile(name, content.encode('utf-8'), content_type='text/csv')


class ValidateRowTestCase(SimpleTestCase):
    """Tests pour la validation pure d'une ligne CSV"""

    def test_valid_row_is_parsed(self):
        result = validate_row(1, raw_row())
        self.assertIsInstance(result, ParsedRow)
        self.assertEqual(result.row, 1)
        self.assertEqual(result.stock, 100)
        self.assertEqual(result.price, Decimal('2.50'))
        self.assertEqual(result.mfg_date, date(2024, 1, 1))
        self.assertEqual(result.category, 'OPD')

    def test_missing_batch_number(self):
        result = validate_row(3, raw_row(**{'Batch No': '  '}))
        self.assertIsInstance(result, RowError)
        self.assertEqual(result.row, 3)
        self.assertEqual(result.code, 'missing_required_field')
        self.assertEqual(result.error, 'Missing required field: batch number')

    def test_required_fields_are_checked_first(self):
        # Missing name and a broken date: the missing field is reported
        result = validate_row(1, raw_row(Name='', **{'Expiration Date': '2020-01-01'}))
        self.assertEqual(result.code, 'missing_required_field')
        self.assertEqual(result.error, 'Missing required field: name')

    def test_date_range_checked_before_numbers(self):
        result = validate_row(1, raw_row(
            Stock='-4',
            **{'Manufacturing Date': '2024-06-01', 'Expiration Date': '2024-01-01'}
        ))
        self.assertEqual(result.code, 'invalid_date_range')
        self.assertEqual(result.error, 'Manufacturing date must be before expiration date.')

    def test_equal_dates_are_rejected(self):
        result = validate_row(1, raw_row(**{'Manufacturing Date': '2024-06-01', 'Expiration Date': '2024-06-01'}))
        self.assertEqual(result.code, 'invalid_date_range')

    def test_day_first_dates_are_accepted(self):
        result = validate_row(1, raw_row(**{'Manufacturing Date': '15-03-2024', 'Expiration Date': '15-03-2026'}))
        self.assertIsInstance(result, ParsedRow)
        self.assertEqual(result.mfg_date, date(2024, 3, 15))

    def test_unparseable_date(self):
        result = validate_row(1, raw_row(**{'Expiration Date': 'next year'}))
        self.assertEqual(result.code, 'invalid_date_range')
        self.assertIn('Invalid date format', result.error)

    def test_negative_stock(self):
        result = validate_row(1, raw_row(Stock='-1'))
        self.assertEqual(result.code, 'invalid_numeric_field')

    def test_blank_stock_defaults_to_zero(self):
        result = validate_row(1, raw_row(Stock=''))
        self.assertIsInstance(result, ParsedRow)
        self.assertEqual(result.stock, 0)

    def test_fractional_stock(self):
        result = validate_row(1, raw_row(Stock='2.5'))
        self.assertEqual(result.code, 'invalid_numeric_field')
        self.assertEqual(result.error, 'Stock must be a whole number')

    def test_stock_above_column_limit(self):
        result = validate_row(1, raw_row(Stock='99999999999999999999'))
        self.assertIsInstance(result, RowError)
        self.assertEqual(result.code, 'invalid_numeric_field')
        self.assertEqual(result.error, 'Stock must not exceed 2147483647')

    def test_largest_stock_is_accepted(self):
        self.assertEqual(validate_row(1, raw_row(Stock='2147483647')).stock, 2147483647)

    def test_huge_price_is_a_row_error(self):
        result = validate_row(1, raw_row(Price='1e30'))
        self.assertIsInstance(result, RowError)
        self.assertEqual(result.code, 'invalid_numeric_field')
        self.assertEqual(result.error, 'Price must not exceed 99999999.99')

    def test_price_is_required_and_numeric(self):
        self.assertEqual(validate_row(1, raw_row(Price='')).error, 'Price is required')
        self.assertEqual(validate_row(1, raw_row(Price='abc')).code, 'invalid_numeric_field')

    def test_numbers_checked_before_category(self):
        result = validate_row(1, raw_row(Price='-3', Category='XYZ'))
        self.assertEqual(result.code, 'invalid_numeric_field')

    def test_category_is_case_insensitive(self):
        self.assertEqual(validate_row(1, raw_row(Category='outreach')).category, 'OUTREACH')

    def test_blank_category_is_none(self):
        self.assertIsNone(validate_row(1, raw_row(Category='')).category)

    def test_unknown_category(self):
        result = validate_row(1, raw_row(Category='ICU'))
        self.assertEqual(result.code, 'invalid_category')
        self.assertIn('ICU', result.error)

    def test_positional_row(self):
        values = ['Syrup', 'Cough Syrup', 'CS-1', '', '5', '2024-01-01', '2025-01-01', '3', 'IPD']
        result = validate_row(2, values)
        self.assertIsInstance(result, ParsedRow)
        self.assertEqual(result.batch_no, 'CS-1')

    def test_error_keeps_raw_data(self):
        result = validate_row(4, raw_row(Name=''))
        self.assertEqual(result.as_dict()['row'], 4)
        self.assertEqual(result.as_dict()['data']['Batch No'], 'PCM-001')


class ReadCsvRowsTestCase(SimpleTestCase):

    def test_reads_bytes_with_bom(self):
        content = ('\ufeff' + CSV_HEADER + '\nTablet,A,B1,,1,2024-01-01,2025-01-01,1,OPD\n').encode('utf-8')
        rows = read_csv_rows(io.BytesIO(content))
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]['Drug Type'], 'Tablet')

    def test_undecodable_file(self):
        with self.assertRaises(ValueError):
            read_csv_rows(io.BytesIO(b'\xff\xfe\x00\x81'))


class DrugImporterTestCase(TestCase):
    """Tests pour la réconciliation ligne par ligne"""

    def setUp(self):
        self.institute = make_account('institute', Account.ROLE_INSTITUTE)

    def test_malformed_third_row_does_not_stop_import(self):
        rows = [raw_row(**{'Batch No': f'B{i}'}) for i in range(1, 6)]
        rows[2]['Batch No'] = ''

        outcome = DrugImporter(self.institute).reconcile(rows)

        self.assertEqual(outcome.success_count, 4)
        self.assertEqual(len(outcome.errors), 1)
        self.assertEqual(outcome.errors[0].row, 3)
        self.assertEqual(Drug.objects.filter(created_by=self.institute).count(), 4)
        self.assertEqual(outcome.message, 'CSV import completed with 4 successful records and 1 errors')

    def test_invalid_date_range_never_reaches_the_store(self):
        rows = [
            raw_row(**{'Batch No': 'OK-1'}),
            raw_row(**{'Batch No': 'BAD-1', 'Manufacturing Date': '2024-06-01', 'Expiration Date': '2024-01-01'}),
        ]
        importer = DrugImporter(self.institute)

        with mock.patch.object(importer, 'create_drug', wraps=importer.create_drug) as create_drug:
            outcome = importer.reconcile(rows)

        self.assertEqual(create_drug.call_count, 1)
        self.assertEqual(create_drug.call_args[0][0].batch_no, 'OK-1')
        self.assertEqual(outcome.errors[0].code, 'invalid_date_range')
        self.assertFalse(Drug.objects.filter(batch_no='BAD-1').exists())

    def test_duplicate_batch_is_a_row_error(self):
        make_drug(self.institute, batch_no='DUP-1')
        rows = [raw_row(**{'Batch No': 'DUP-1'}), raw_row(**{'Batch No': 'NEW-1'})]

        outcome = DrugImporter(self.institute).reconcile(rows)

        self.assertEqual(outcome.success_count, 1)
        self.assertEqual(outcome.errors[0].row, 1)
        self.assertEqual(outcome.errors[0].code, 'store_conflict')
        self.assertEqual(outcome.errors[0].error, "Batch number 'DUP-1' already exists for this account")
        self.assertTrue(Drug.objects.filter(batch_no='NEW-1').exists())

    def test_same_batch_for_other_account_is_allowed(self):
        other = make_account('other', Account.ROLE_INSTITUTE)
        make_drug(other, batch_no='SHARED')

        outcome = DrugImporter(self.institute).reconcile([raw_row(**{'Batch No': 'SHARED'})])

        self.assertEqual(outcome.success_count, 1)
        self.assertEqual(outcome.errors, [])

    def test_created_drug_fields(self):
        outcome = DrugImporter(self.institute).reconcile([raw_row(Category='ipd', Description='x')])
        drug = Drug.objects.get(pk=outcome.created_ids[0])
        self.assertEqual(drug.created_by, self.institute)
        self.assertEqual(drug.category, 'IPD')
        self.assertEqual(drug.exp_date, date(2026, 1, 1))

    def test_out_of_range_numbers_do_not_stop_import(self):
        rows = [
            raw_row(**{'Batch No': 'B1'}),
            raw_row(Price='1e30', **{'Batch No': 'B2'}),
            raw_row(Stock='99999999999999999999', **{'Batch No': 'B3'}),
            raw_row(**{'Batch No': 'B4'}),
        ]

        outcome = DrugImporter(self.institute).reconcile(rows)

        self.assertEqual(outcome.success_count, 2)
        self.assertEqual([error.row for error in outcome.errors], [2, 3])
        self.assertEqual({error.code for error in outcome.errors}, {'invalid_numeric_field'})
        self.assertEqual(
            sorted(Drug.objects.filter(created_by=self.institute).values_list('batch_no', flat=True)),
            ['B1', 'B4']
        )

    def test_store_overflow_is_a_row_error(self):
        original_create = Drug.objects.create

        def create(**fields):
            if fields['batch_no'] == 'BIG':
                raise OverflowError('Python int too large to convert to SQLite INTEGER')
            return original_create(**fields)

        rows = [raw_row(**{'Batch No': 'BIG'}), raw_row(**{'Batch No': 'NEXT'})]
        with mock.patch.object(Drug.objects, 'create', side_effect=create):
            outcome = DrugImporter(self.institute).reconcile(rows)

        self.assertEqual(outcome.success_count, 1)
        self.assertEqual(outcome.errors[0].row, 1)
        self.assertEqual(outcome.errors[0].code, 'store_conflict')
        self.assertIn('Could not store drug', outcome.errors[0].error)
        self.assertTrue(Drug.objects.filter(batch_no='NEXT').exists())


class DrugImportAPITestCase(TestCase):
    """Tests pour POST /api/drugs/import/"""

    def setUp(self):
        self.client = APIClient()
        self.institute = make_account('institute', Account.ROLE_INSTITUTE)
        self.client.force_authenticate(user=self.institute.user)

    def test_import_reports_errors_per_row(self):
        upload = csv_upload([
            'Tablet,Paracetamol,B1,,10,2024-01-01,2026-01-01,2.5,OPD',
            'Tablet,Ibuprofen,B2,,10,01-01-2024,01-01-2026,1.2,',
            'Tablet,Aspirin,,,10,2024-01-01,2026-01-01,1,OPD',
        ])

        response = self.client.post('/api/drugs/import/', {'file': upload}, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['status'])
        self.assertEqual(response.data['successCount'], 2)
        self.assertEqual(len(response.data['errors']), 1)
        self.assertEqual(response.data['errors'][0]['row'], 3)
        self.assertEqual(response.data['errors'][0]['error'], 'Missing required field: batch number')
        self.assertEqual(response.data['message'], 'CSV import completed with 2 successful records and 1 errors')

    def test_import_without_file(self):
        response = self.client.post('/api/drugs/import/', {}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'No file uploaded')

    def test_import_unreadable_file(self):
        upload = SimpleUploadedFile('drugs.csv', b'\xff\xfe\x00\x81', content_type='text/csv')
        response = self.client.post('/api/drugs/import/', {'file': upload}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_import_row_limit(self):
        lines = [f'Tablet,Drug {i},B{i},,1,2024-01-01,2026-01-01,1,OPD' for i in range(3)]
        with self.settings(DRUG_IMPORT_MAX_ROWS=2):
            response = self.client.post('/api/drugs/import/', {'file': csv_upload(lines)}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Drug.objects.count(), 0)

    def test_import_requires_authentication(self):
        client = APIClient()
        response = client.post('/api/drugs/import/', {'file': csv_upload([])}, format='multipart')
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))


class DrugAPITestCase(TestCase):
    """Tests pour API Médicaments"""

    def setUp(self):
        self.client = APIClient()
        self.institute = make_account('institute', Account.ROLE_INSTITUTE)
        self.pharmacy = make_account('pharmacy', Account.ROLE_PHARMACY, parent=self.institute)
        self.paracetamol = make_drug(self.institute)
        self.ibuprofen = make_drug(
            self.institute, name='Ibuprofen 400mg', batch_no='IBU-001', stock=0, mfg_date=date(2023, 6, 1)
        )
        self.client.force_authenticate(user=self.institute.user)

    def test_list_own_drugs(self):
        response = self.client.get('/api/drugs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['status'])
        # Oldest manufacturing date first
        self.assertEqual([d['id'] for d in response.data['drugs']], [self.ibuprofen.id, self.paracetamol.id])

    def test_pharmacy_browses_institute_stock(self):
        self.client.force_authenticate(user=self.pharmacy.user)
        response = self.client.get(f'/api/drugs/?created_by={self.institute.id}&in_stock=1')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([d['id'] for d in response.data['drugs']], [self.paracetamol.id])
        self.assertEqual(response.data['drugs'][0]['creator_name'], self.institute.name)

    def test_created_by_must_be_an_id(self):
        response = self.client.get('/api/drugs/?created_by=abc')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_fuzzy_search(self):
        response = self.client.get('/api/drugs/?search=paracetmol')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([d['id'] for d in response.data['drugs']], [self.paracetamol.id])

    def test_create_drug(self):
        data = {
            'drug_type': 'Capsule',
            'name': 'Amoxicillin 500mg',
            'batch_no': 'AMX-1',
            'stock': 20,
            'mfg_date': '2024-02-01',
            'exp_date': '2026-02-01',
            'price': '1.20',
            'category': '',
        }
        response = self.client.post('/api/drugs/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        drug = Drug.objects.get(batch_no='AMX-1')
        self.assertEqual(drug.created_by, self.institute)
        self.assertIsNone(drug.category)

    def test_create_rejects_bad_dates_and_duplicate_batch(self):
        data = {
            'drug_type': 'Tablet', 'name': 'X', 'batch_no': 'PCM-001', 'stock': 1,
            'mfg_date': '2024-01-01', 'exp_date': '2026-01-01', 'price': '1.00',
        }
        response = self.client.post('/api/drugs/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('batch_no', response.data)

        data.update(batch_no='NEW', exp_date='2023-01-01')
        response = self.client.post('/api/drugs/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('exp_date', response.data)

    def test_update_stock(self):
        response = self.client.patch(f'/api/drugs/{self.paracetamol.id}/', {'stock': 7}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.paracetamol.refresh_from_db()
        self.assertEqual(self.paracetamol.stock, 7)

    def test_delete_drug(self):
        response = self.client.delete(f'/api/drugs/{self.paracetamol.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['deletedDrug']['batch_no'], 'PCM-001')
        self.assertFalse(Drug.objects.filter(pk=self.paracetamol.id).exists())

    def test_cannot_modify_other_account_drug(self):
        self.client.force_authenticate(user=self.pharmacy.user)
        response = self.client.delete(f'/api/drugs/{self.paracetamol.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertTrue(Drug.objects.filter(pk=self.paracetamol.id).exists())

    def test_user_without_account_is_refused(self):
        user = get_user_model().objects.create_user(username='nobody', password='secret123')
        self.client.force_authenticate(user=user)
        response = self.client.get('/api/drugs/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class ExpiringDrugsTestCase(TestCase):
    """Tests pour GET /api/drugs/expiring/"""

    def setUp(self):
        self.client = APIClient()
        self.institute = make_account('institute', Account.ROLE_INSTITUTE)
        today = timezone.localdate()
        self.soon = make_drug(self.institute, batch_no='SOON', exp_date=today + timedelta(days=10))
        make_drug(self.institute, batch_no='LATER', exp_date=today + timedelta(days=90))
        make_drug(self.institute, batch_no='EMPTY', stock=0, exp_date=today + timedelta(days=5))
        self.client.force_authenticate(user=self.institute.user)

    def test_expiring_within_threshold(self):
        response = self.client.get('/api/drugs/expiring/?days=30')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 1)
        self.assertEqual(response.data['days_threshold'], 30)
        self.assertEqual(response.data['drugs'][0]['batch_no'], 'SOON')
        self.assertEqual(response.data['drugs'][0]['days_until_expiry'], 10)

    def test_invalid_days(self):
        self.assertEqual(self.client.get('/api/drugs/expiring/?days=abc').status_code, 400)
        self.assertEqual(self.client.get('/api/drugs/expiring/?days=-1').status_code, 400)


class AccountMeTestCase(TestCase):

    def test_pharmacy_sees_its_institute(self):
        institute = make_account('institute', Account.ROLE_INSTITUTE)
        pharmacy = make_account('pharmacy', Account.ROLE_PHARMACY, parent=institute)
        client = APIClient()
        client.force_authenticate(user=pharmacy.user)

        response = client.get('/api/accounts/me/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['account']['role'], 'pharmacy')
        self.assertEqual(response.data['institute']['id'], institute.id)


class SearchTestCase(TestCase):

    def setUp(self):
        owner = make_account('institute', Account.ROLE_INSTITUTE)
        self.paracetamol = make_drug(owner)
        self.amoxicillin = make_drug(owner, name='Amoxicilline 500mg', batch_no='AMX-77')

    def test_normalize_text(self):
        self.assertEqual(normalize_text('  Amoxicilline   Éphédrine '), 'amoxicilline ephedrine')

    def test_batch_number_match(self):
        self.assertEqual(fuzzy_search(Drug.objects.all(), 'amx-77'), [self.amoxicillin])

    def test_blank_term_keeps_everything(self):
        self.assertEqual(len(fuzzy_search(Drug.objects.all(), '  ')), 2)


class ManagementCommandsTestCase(TestCase):

    def setUp(self):
        self.institute = make_account('institute', Account.ROLE_INSTITUTE)

    def test_import_drugs_command(self):
        content = '\n'.join([
            CSV_HEADER,
            'Tablet,Paracetamol,B1,,10,2024-01-01,2026-01-01,2.5,OPD',
            'Tablet,Broken,B2,,10,2024-06-01,2024-01-01,2.5,OPD',
        ]) + '\n'
        with tempfile.NamedTemporaryFile('wb', suffix='.csv', delete=False) as f:
            f.write(content.encode('utf-8'))
        self.addCleanup(os.remove, f.name)

        out = io.StringIO()
        call_command('import_drugs', f.name, owner=str(self.institute.id), stdout=out)

        self.assertIn('1 successful records and 1 errors', out.getvalue())
        self.assertIn('Row 2', out.getvalue())
        self.assertEqual(Drug.objects.filter(created_by=self.institute).count(), 1)

    def test_list_stocks(self):
        make_drug(self.institute)
        out = io.StringIO()
        call_command('list_stocks', stdout=out)
        self.assertIn('Paracetamol 500mg (PCM-001)', out.getvalue())

    def test_seed_is_skipped_when_data_exists(self):
        out = io.StringIO()
        call_command('seed_data_safe', stdout=out)
        self.assertIn('Seeding aborted', out.getvalue())
        self.assertEqual(Drug.objects.count(), 0)


class DrugCatalogueAPITestCase(TestCase):
    """Tests pour /api/drug-types/ et /api/drug-names/"""

    def setUp(self):
        self.admin = make_account('admin', Account.ROLE_ADMIN)
        self.pharmacy = make_account('pharmacy', Account.ROLE_PHARMACY)
        self.client = APIClient()
        self.client.force_authenticate(user=self.admin.user)
        self.tablet = DrugType.objects.create(type_name='Tablet')

    def test_admin_adds_type_and_name(self):
        response = self.client.post('/api/drug-types/', {'type_name': ' Syrup '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['drugType']['type_name'], 'Syrup')
        syrup_id = response.data['drugType']['id']

        response = self.client.post('/api/drug-names/', {'type_id': syrup_id, 'name': 'Cough Syrup'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['message'], 'Drug name added successfully')
        self.assertEqual(response.data['drugName']['type_id'], syrup_id)

    def test_any_account_lists_types_and_names(self):
        DrugName.objects.create(drug_type=self.tablet, name='Paracetamol 500mg')
        client = APIClient()
        client.force_authenticate(user=self.pharmacy.user)

        response = client.get('/api/drug-types/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([t['type_name'] for t in response.data['drugTypes']], ['Tablet'])

        response = client.get(f'/api/drug-types/{self.tablet.id}/names/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([n['name'] for n in response.data['drugNames']], ['Paracetamol 500mg'])

    def test_only_admin_can_change_catalogue(self):
        client = APIClient()
        client.force_authenticate(user=self.pharmacy.user)

        response = client.post('/api/drug-types/', {'type_name': 'Syrup'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = client.delete(f'/api/drug-types/{self.tablet.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(DrugType.objects.filter(pk=self.tablet.id).exists())

    def test_missing_and_duplicate_type_name(self):
        response = self.client.post('/api/drug-types/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['type_name'][0], 'Type name is required')

        response = self.client.post('/api/drug-types/', {'type_name': 'tablet'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(DrugType.objects.count(), 1)

    def test_name_needs_existing_type(self):
        response = self.client.post('/api/drug-names/', {'name': 'Paracetamol'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Type ID and name are required')

        response = self.client.post('/api/drug-names/', {'type_id': 999, 'name': 'Paracetamol'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Drug type not found')

    def test_duplicate_name_in_same_type(self):
        DrugName.objects.create(drug_type=self.tablet, name='Paracetamol 500mg')
        response = self.client.post(
            '/api/drug-names/', {'type_id': self.tablet.id, 'name': 'paracetamol 500mg'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(DrugName.objects.count(), 1)

    def test_type_with_names_cannot_be_deleted(self):
        name = DrugName.objects.create(drug_type=self.tablet, name='Paracetamol 500mg')

        response = self.client.delete(f'/api/drug-types/{self.tablet.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Cannot delete drug type that has associated drugs')

        response = self.client.delete(f'/api/drug-names/{name.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['deletedDrug']['name'], 'Paracetamol 500mg')

        response = self.client.delete(f'/api/drug-types/{self.tablet.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['deletedType']['type_name'], 'Tablet')
        self.assertFalse(DrugType.objects.exists())


class HealthCheckTestCase(TestCase):

    def test_health(self):
        response = self.client.get('/health/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'healthy')
