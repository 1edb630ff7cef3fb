from decimal import Decimal

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from products.services import RecipeStoreService


class Command(BaseCommand):
    help = 'Load the built-in recipe catalog into the recipe store'

    def add_arguments(self, parser):
        parser.add_argument(
            '--base-liters',
            type=str,
            default=None,
            help='Base volume the stored quantities are expressed for (default: RECIPE_BASE_LITERS)'
        )
        parser.add_argument(
            '--skip-zero',
            action='store_true',
            help='Do not store ingredients whose factor is 0'
        )

    def handle(self, *args, **options):
        raw_value = options['base_liters'] or settings.FORMCAPTURE_SETTINGS.get('RECIPE_BASE_LITERS', '100')
        try:
            base_liters = Decimal(str(raw_value))
        except ArithmeticError:
            raise CommandError(f"Invalid --base-liters value: {raw_value}")
        if base_liters <= 0:
            raise CommandError('--base-liters must be greater than 0')

        self.stdout.write(f'Syncing recipe catalog with base {base_liters} L...')
        products_created, recipes_written = RecipeStoreService.sync_catalog(
            base_liters=base_liters,
            skip_zero=options['skip_zero']
        )

        self.stdout.write(
            self.style.SUCCESS(
                f'Done: {products_created} products created, {recipes_written} recipes written'
            )
        )
