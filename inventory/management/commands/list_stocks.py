from django.core.management.base import BaseCommand
from inventory.models import Drug


class Command(BaseCommand):
    help = 'Lists the drugs in stock, for all accounts or only one'

    def add_arguments(self, parser):
        parser.add_argument('--owner', type=int, help='Only list the drugs of this account id')

    def handle(self, *args, **options):
        drugs = Drug.objects.select_related('created_by').filter(stock__gt=0)
        if options.get('owner'):
            drugs = drugs.filter(created_by_id=options['owner'])

        if drugs.exists():
            self.stdout.write(self.style.SUCCESS('--- Drug Stock Report ---'))
            for drug in drugs:
                self.stdout.write(
                    f'Owner: {drug.created_by.name} | '
                    f'Drug: {drug.name} ({drug.batch_no}) | '
                    f'Stock: {drug.stock} | '
                    f'Expires: {drug.exp_date}'
                )
            self.stdout.write(self.style.SUCCESS('--- End of Report ---'))
        else:
            self.stdout.write(self.style.WARNING('No stock information found in the database.'))
