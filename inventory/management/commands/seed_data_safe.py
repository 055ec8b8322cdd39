"""
Command de seed SÉCURISÉ - Ne supprime PAS les données existantes
Utiliser : python manage.py seed_data_safe
"""

from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from inventory.models import Account, Drug, DrugName, DrugType

DEFAULT_PASSWORD = 'changeme123'


class Command(BaseCommand):
    help = 'Seeds demo accounts and drugs ONLY if the database is empty (safe for production).'

    def add_arguments(self, parser):
        parser.add_argument(
            '--password',
            default=DEFAULT_PASSWORD,
            help='Password given to the seeded users',
        )

    def create_account(self, username, password, **fields):
        user = get_user_model().objects.create_user(username=username, password=password)
        return Account.objects.create(user=user, **fields)

    def handle(self, *args, **options):
        self.stdout.write(self.style.SUCCESS('Checking database...'))

        # Vérifier si la base contient déjà des données
        account_count = Account.objects.count()
        drug_count = Drug.objects.count()

        if account_count > 0 or drug_count > 0:
            self.stdout.write(self.style.WARNING(
                f'Database already contains data ({account_count} accounts, {drug_count} drugs).'
            ))
            self.stdout.write(self.style.WARNING('Seeding aborted to prevent data loss.'))
            return

        self.stdout.write(self.style.SUCCESS('Database is empty. Starting safe seed...'))
        password = options['password']

        with transaction.atomic():
            # --- Accounts ---
            self.create_account('admin', password, name='Administrator', role=Account.ROLE_ADMIN)
            institute = self.create_account(
                'institute', password,
                name='District Medical Institute',
                role=Account.ROLE_INSTITUTE,
                license_number='INST-0001',
                address='1 Hospital Road',
            )
            self.create_account(
                'pharmacy', password,
                name='Community Pharmacy',
                role=Account.ROLE_PHARMACY,
                parent=institute,
                license_number='PH-0001',
                address='12 Market Street',
            )
            self.stdout.write(self.style.SUCCESS('Created 3 accounts (admin, institute, pharmacy).'))

            # --- Drug type / name catalogue ---
            catalogue = {
                'Tablet': ['Paracetamol 500mg', 'Ibuprofen 400mg', 'Albendazole 400mg'],
                'Capsule': ['Amoxicillin 500mg'],
                'Injection': ['Ceftriaxone 1g'],
                'Sachet': ['ORS'],
            }
            for type_name, names in catalogue.items():
                drug_type = DrugType.objects.create(type_name=type_name)
                for name in names:
                    DrugName.objects.create(drug_type=drug_type, name=name)
            self.stdout.write(self.style.SUCCESS(f'Created {len(catalogue)} drug types.'))

            # --- Drugs (institute stock) ---
            drugs_data = [
                {'drug_type': 'Tablet', 'name': 'Paracetamol 500mg', 'batch_no': 'PCM-2401', 'stock': 500, 'price': Decimal('0.50'), 'category': 'OPD'},
                {'drug_type': 'Tablet', 'name': 'Ibuprofen 400mg', 'batch_no': 'IBU-2402', 'stock': 300, 'price': Decimal('0.80'), 'category': 'OPD'},
                {'drug_type': 'Capsule', 'name': 'Amoxicillin 500mg', 'batch_no': 'AMX-2403', 'stock': 200, 'price': Decimal('1.20'), 'category': 'IPD'},
                {'drug_type': 'Injection', 'name': 'Ceftriaxone 1g', 'batch_no': 'CEF-2404', 'stock': 80, 'price': Decimal('4.75'), 'category': 'IPD'},
                {'drug_type': 'Sachet', 'name': 'ORS', 'batch_no': 'ORS-2405', 'stock': 1000, 'price': Decimal('0.25'), 'category': 'OUTREACH'},
                {'drug_type': 'Tablet', 'name': 'Albendazole 400mg', 'batch_no': 'ALB-2406', 'stock': 0, 'price': Decimal('0.40'), 'category': 'OUTREACH'},
            ]
            for data in drugs_data:
                Drug.objects.create(
                    created_by=institute,
                    mfg_date=date(2024, 1, 15),
                    exp_date=date(2027, 1, 15),
                    **data
                )
            self.stdout.write(self.style.SUCCESS(f'Created {len(drugs_data)} drugs for {institute.name}.'))

        self.stdout.write(self.style.SUCCESS('Safe seeding complete!'))
