from django.core.management.base import BaseCommand
from django.db import transaction

from authentication.models import CustomUser
from utils.enums import UserRoleChoices


class Command(BaseCommand):
    help = 'Create one demo user per role for testing the production workflow'

    def add_arguments(self, parser):
        parser.add_argument(
            '--password',
            type=str,
            default='demo1234',
            help='Password assigned to every demo user (default: demo1234)'
        )
        parser.add_argument(
            '--domain',
            type=str,
            default='planta.local',
            help='Email domain for demo users'
        )

    def handle(self, *args, **options):
        password = options['password']
        domain = options['domain']

        user_templates = [
            (UserRoleChoices.SUPERADMIN, 'Super', 'Admin'),
            (UserRoleChoices.ADMIN, 'Ana', 'Administradora'),
            (UserRoleChoices.GERENTE_PRODUCCION, 'Jorge', 'Producción'),
            (UserRoleChoices.PRODUCCION, 'Juan', 'Operador'),
            (UserRoleChoices.CALIDAD, 'Lucía', 'Calidad'),
            (UserRoleChoices.GERENTE_CALIDAD, 'Marta', 'Gerente Calidad'),
        ]

        created_count = 0
        with transaction.atomic():
            for role, first_name, last_name in user_templates:
                email = f'{role}@{domain}'
                user, created = CustomUser.objects.get_or_create(
                    email=email,
                    defaults={
                        'username': role,
                        'first_name': first_name,
                        'last_name': last_name,
                        'role': role,
                        'is_staff': role == UserRoleChoices.SUPERADMIN,
                        'is_superuser': role == UserRoleChoices.SUPERADMIN,
                    }
                )
                if created:
                    user.set_password(password)
                    user.save()
                    created_count += 1
                    self.stdout.write(f'  Created {email} ({role})')
                else:
                    self.stdout.write(f'  Skipped {email}, already exists')

        self.stdout.write(
            self.style.SUCCESS(f'Successfully created {created_count} demo users')
        )
