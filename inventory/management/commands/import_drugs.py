"""
Import de médicaments depuis un fichier CSV, mêmes règles que POST /api/drugs/import/
Utiliser : python manage.py import_drugs stock.csv --owner 3
"""
import os

from django.core.management.base import BaseCommand, CommandError

from inventory.importer import DrugImporter, read_csv_rows
from inventory.models import Account


class Command(BaseCommand):
    help = 'Imports drugs from a CSV file into the stock of an account'

    def add_arguments(self, parser):
        parser.add_argument('csv_file', type=str, help='Path to the CSV file')
        parser.add_argument(
            '--owner',
            required=True,
            help='Id or exact name of the account that will own the drugs',
        )

    def get_owner(self, value):
        queryset = Account.objects.filter(pk=value) if value.isdigit() else Account.objects.filter(name=value)
        owner = queryset.first()
        if owner is None:
            raise CommandError(f'Account not found: {value}')
        return owner

    def handle(self, *args, **options):
        csv_file = options['csv_file']
        if not os.path.exists(csv_file):
            raise CommandError(f'CSV file not found at {csv_file}')

        owner = self.get_owner(options['owner'])

        with open(csv_file, 'rb') as f:
            try:
                rows = read_csv_rows(f)
            except ValueError as e:
                raise CommandError(f'Failed to read CSV file: {e}')

        self.stdout.write(f'CSV File: {csv_file} ({len(rows)} rows) -> {owner.name}')

        outcome = DrugImporter(owner).reconcile(rows)

        for error in outcome.errors:
            self.stdout.write(self.style.WARNING(f'  Row {error.row}: {error.error}'))

        style = self.style.SUCCESS if not outcome.errors else self.style.WARNING
        self.stdout.write(style(outcome.message))
