from rest_framework.exceptions import NotFound, PermissionDenied


class WorkflowPermissionError(PermissionDenied):
    """The acting role may not edit a section or perform a status transition"""
    default_detail = 'You do not have permission to perform this action on the production form.'
    default_code = 'workflow_permission_denied'


class ProductionFormNotFound(NotFound):
    default_detail = 'Production form not found.'
    default_code = 'production_form_not_found'


class DerivationFailure(Exception):
    """A recipe strategy could not compute the ingredient list"""

    def __init__(self, message, product_code=None, liters=None):
        super().__init__(message)
        self.product_code = product_code
        self.liters = liters
