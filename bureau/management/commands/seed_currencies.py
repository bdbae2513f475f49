from django.core.management.base import BaseCommand, CommandError
from bureau.db_utils import DEFAULT_CURRENCIES, DatabaseManager


class Command(BaseCommand):
    help = 'Insert or update the branch default currency table (rates and stock).'

    def add_arguments(self, parser):
        parser.add_argument('--database', default='default', help='Database alias to seed.')

    def handle(self, *args, **options):
        if not DatabaseManager.save_currencies(DEFAULT_CURRENCIES, using=options['database']):
            raise CommandError('Seeding currencies failed, see log for details')
        self.stdout.write(self.style.SUCCESS(f"Seeded {len(DEFAULT_CURRENCIES)} currencies"))
