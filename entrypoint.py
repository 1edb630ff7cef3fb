#!/usr/bin/env python3
"""
Container entrypoint: applies migrations, loads the recipe catalog and
starts Gunicorn with gunicorn_config.py.
"""
import os
import sys
from pathlib import Path

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'formcapture_system.docker_settings')

for directory in ['/app/logs', '/app/media']:
    Path(directory).mkdir(parents=True, exist_ok=True)


def prepare():
    import django
    from django.core.management import call_command

    django.setup()
    call_command('migrate', interactive=False)
    if os.environ.get('SYNC_RECIPES_ON_START', 'True').lower() == 'true':
        call_command('sync_recipes')


if __name__ == '__main__':
    prepare()

    import gunicorn.app.wsgiapp as wsgi

    sys.argv = [
        'gunicorn',
        '--config', str(Path(__file__).resolve().parent / 'gunicorn_config.py'),
        'formcapture_system.wsgi:application',
    ]
    wsgi.run()
