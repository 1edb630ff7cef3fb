"""
Folio Service
Issues sequential folio numbers per scope. Each issue locks the counter row
so concurrent creates never receive the same number.
"""
import logging

from django.conf import settings
from django.db import transaction, IntegrityError, OperationalError

from .exceptions import ConcurrencyConflict
from .models import FolioCounter

logger = logging.getLogger(__name__)

PRODUCTION_FORM_SCOPE = 'production-form'


def _retry_attempts():
    return settings.FORMCAPTURE_SETTINGS.get('FOLIO_RETRY_ATTEMPTS', 5)


class FolioService:

    @staticmethod
    def next_number(scope):
        """
        Increment and return the counter for ``scope``.

        A collision while creating the counter row, or a lock error from the
        database, is retried. ConcurrencyConflict is raised only once every
        attempt failed.
        """
        attempts = _retry_attempts()
        for attempt in range(1, attempts + 1):
            try:
                with transaction.atomic():
                    counter = FolioCounter.objects.select_for_update().filter(scope=scope).first()
                    if counter is None:
                        counter = FolioCounter.objects.create(scope=scope, last_value=0)
                    counter.last_value += 1
                    counter.save(update_fields=['last_value', 'updated_at'])
                    return counter.last_value
            except (IntegrityError, OperationalError) as e:
                logger.warning(f"Folio counter conflict on {scope} (attempt {attempt}/{attempts}): {e}")

        raise ConcurrencyConflict(scope, attempts)

    @staticmethod
    def production_folio(number):
        return f"PR-{number:04d}"

    @staticmethod
    def template_scope(template):
        return f"template-{template.id}"

    @staticmethod
    def entry_folio(template, number):
        """{formCode}-F{n} when the template name carries a document code"""
        form_code = template.form_code
        if form_code:
            return f"{form_code}-F{number}"
        return f"F-{number:04d}"

    @staticmethod
    def issue_unique(scope, formatter, exists):
        """
        Issue the next folio for ``scope`` that ``exists`` reports as free.

        Numbers already taken by manually assigned folios are skipped.
        """
        while True:
            folio = formatter(FolioService.next_number(scope))
            if not exists(folio):
                return folio
            logger.warning(f"Folio {folio} already in use, issuing the next one")
