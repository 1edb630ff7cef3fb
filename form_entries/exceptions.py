from rest_framework.exceptions import NotFound


class FormEntryNotFound(NotFound):
    default_detail = 'Form entry not found.'
    default_code = 'form_entry_not_found'


class ConcurrencyConflict(Exception):
    """The folio counter could not issue a number after all retries"""

    def __init__(self, scope, attempts):
        super().__init__(f"Could not issue a folio for {scope} after {attempts} attempts")
        self.scope = scope
        self.attempts = attempts
