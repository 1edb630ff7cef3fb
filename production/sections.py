"""
Section Permission Gate
Maps production form fields to sections and decides which roles may edit them
"""
import logging
import re

from utils.enums import ProductionSectionChoices, WorkflowRoleChoices
from .roles import is_superadmin, user_workflow_role

logger = logging.getLogger(__name__)

PROCESS_TRACKING_ROWS = 7
QUALITY_VERIFICATION_ROWS = 8
DESTINATION_ROWS = 4

EXTRA_PREFIX = 'extra.'

SECTION_ALLOWED_ROLES = {
    ProductionSectionChoices.GENERAL_INFO: {
        WorkflowRoleChoices.PRODUCTION_MANAGER,
    },
    ProductionSectionChoices.RAW_MATERIALS: {
        WorkflowRoleChoices.PRODUCTION_MANAGER,
    },
    ProductionSectionChoices.PROCESS_TRACKING: {
        WorkflowRoleChoices.OPERATOR,
        WorkflowRoleChoices.PRODUCTION_MANAGER,
    },
    ProductionSectionChoices.QUALITY_VERIFICATION: {
        WorkflowRoleChoices.OPERATOR,
        WorkflowRoleChoices.PRODUCTION_MANAGER,
    },
    ProductionSectionChoices.PRODUCT_DESTINATION: {
        WorkflowRoleChoices.OPERATOR,
        WorkflowRoleChoices.PRODUCTION_MANAGER,
    },
    ProductionSectionChoices.FINAL_STRAINER: {
        WorkflowRoleChoices.PRODUCTION_MANAGER,
        WorkflowRoleChoices.QUALITY_MANAGER,
    },
    ProductionSectionChoices.LIBERATION_DATA: {
        WorkflowRoleChoices.QUALITY_MANAGER,
    },
}

# field -> (section, kind, fixed length for arrays)
# kinds: scalar, decimal, date, state, array, ingredients
FIELD_REGISTRY = {
    # General info
    'folio': (ProductionSectionChoices.GENERAL_INFO, 'scalar', None),
    'product_code': (ProductionSectionChoices.GENERAL_INFO, 'scalar', None),
    'liters': (ProductionSectionChoices.GENERAL_INFO, 'decimal', None),
    'date': (ProductionSectionChoices.GENERAL_INFO, 'date', None),
    'responsible': (ProductionSectionChoices.GENERAL_INFO, 'scalar', None),
    'lot_number': (ProductionSectionChoices.GENERAL_INFO, 'scalar', None),
    'marmita': (ProductionSectionChoices.GENERAL_INFO, 'scalar', None),
    'expiry_date': (ProductionSectionChoices.GENERAL_INFO, 'date', None),
    'internal_folio': (ProductionSectionChoices.GENERAL_INFO, 'scalar', None),
    'rm_deduction_folio': (ProductionSectionChoices.GENERAL_INFO, 'scalar', None),
    'fg_folio': (ProductionSectionChoices.GENERAL_INFO, 'scalar', None),

    # Raw materials
    'ingredients': (ProductionSectionChoices.RAW_MATERIALS, 'ingredients', None),
    'ingredient_times': (ProductionSectionChoices.RAW_MATERIALS, 'array', None),

    # Process tracking
    'start_time': (ProductionSectionChoices.PROCESS_TRACKING, 'scalar', None),
    'end_time': (ProductionSectionChoices.PROCESS_TRACKING, 'scalar', None),
    'hour_tracking': (ProductionSectionChoices.PROCESS_TRACKING, 'array', PROCESS_TRACKING_ROWS),
    'temperature': (ProductionSectionChoices.PROCESS_TRACKING, 'array', PROCESS_TRACKING_ROWS),
    'pressure': (ProductionSectionChoices.PROCESS_TRACKING, 'array', PROCESS_TRACKING_ROWS),

    # Quality verification
    'quality_times': (ProductionSectionChoices.QUALITY_VERIFICATION, 'array', QUALITY_VERIFICATION_ROWS),
    'brix': (ProductionSectionChoices.QUALITY_VERIFICATION, 'array', QUALITY_VERIFICATION_ROWS),
    'quality_temp': (ProductionSectionChoices.QUALITY_VERIFICATION, 'array', QUALITY_VERIFICATION_ROWS),
    'texture': (ProductionSectionChoices.QUALITY_VERIFICATION, 'array', QUALITY_VERIFICATION_ROWS),
    'color': (ProductionSectionChoices.QUALITY_VERIFICATION, 'array', QUALITY_VERIFICATION_ROWS),
    'viscosity': (ProductionSectionChoices.QUALITY_VERIFICATION, 'array', QUALITY_VERIFICATION_ROWS),
    'smell': (ProductionSectionChoices.QUALITY_VERIFICATION, 'array', QUALITY_VERIFICATION_ROWS),
    'taste': (ProductionSectionChoices.QUALITY_VERIFICATION, 'array', QUALITY_VERIFICATION_ROWS),
    'foreign_material': (ProductionSectionChoices.QUALITY_VERIFICATION, 'array', QUALITY_VERIFICATION_ROWS),
    'status_check': (ProductionSectionChoices.QUALITY_VERIFICATION, 'array', QUALITY_VERIFICATION_ROWS),
    'quality_notes': (ProductionSectionChoices.QUALITY_VERIFICATION, 'scalar', None),

    # Product destination
    'destination_type': (ProductionSectionChoices.PRODUCT_DESTINATION, 'array', DESTINATION_ROWS),
    'destination_kilos': (ProductionSectionChoices.PRODUCT_DESTINATION, 'array', DESTINATION_ROWS),
    'destination_product': (ProductionSectionChoices.PRODUCT_DESTINATION, 'array', DESTINATION_ROWS),
    'destination_estimation': (ProductionSectionChoices.PRODUCT_DESTINATION, 'array', DESTINATION_ROWS),

    # Final strainer
    'total_kilos': (ProductionSectionChoices.FINAL_STRAINER, 'scalar', None),
    'yield_amount': (ProductionSectionChoices.FINAL_STRAINER, 'scalar', None),
    'start_state': (ProductionSectionChoices.FINAL_STRAINER, 'state', None),
    'end_state': (ProductionSectionChoices.FINAL_STRAINER, 'state', None),

    # Liberation
    'liberation_folio': (ProductionSectionChoices.LIBERATION_DATA, 'scalar', None),
    'c_p': (ProductionSectionChoices.LIBERATION_DATA, 'scalar', None),
    'cm_consistometer': (ProductionSectionChoices.LIBERATION_DATA, 'scalar', None),
    'final_brix': (ProductionSectionChoices.LIBERATION_DATA, 'scalar', None),
    'signature_url': (ProductionSectionChoices.LIBERATION_DATA, 'scalar', None),
}

# Names used by the web client and by the persisted row
FIELD_ALIASES = {
    'productId': 'product_code',
    'product_id': 'product_code',
    'product': 'product_code',
    'lotNumber': 'lot_number',
    'caducidad': 'expiry_date',
    'expiryDate': 'expiry_date',
    'internalFolio': 'internal_folio',
    'rmDeductionFolio': 'rm_deduction_folio',
    'fgFolio': 'fg_folio',
    'ingredientTimes': 'ingredient_times',
    'startTime': 'start_time',
    'endTime': 'end_time',
    'hourTracking': 'hour_tracking',
    'qualityTimes': 'quality_times',
    'qualityTemp': 'quality_temp',
    'foreignMaterial': 'foreign_material',
    'statusCheck': 'status_check',
    'qualityNotes': 'quality_notes',
    'destinationType': 'destination_type',
    'destinationKilos': 'destination_kilos',
    'destinationProduct': 'destination_product',
    'destinationEstimation': 'destination_estimation',
    'totalKilos': 'total_kilos',
    'yield': 'yield_amount',
    'startState': 'start_state',
    'endState': 'end_state',
    'liberationFolio': 'liberation_folio',
    'cP': 'c_p',
    'cmConsistometer': 'cm_consistometer',
    'finalBrix': 'final_brix',
    'signatureUrl': 'signature_url',
}

_INDEXED_FIELD = re.compile(r'^(?P<name>[A-Za-z_]+)\[(?P<index>\d+)\]$')


class FieldRef:
    """A resolved field identifier, optionally pointing at one array cell"""

    def __init__(self, name, section, kind, length=None, index=None, extra_key=None):
        self.name = name
        self.section = section
        self.kind = kind
        self.length = length
        self.index = index
        self.extra_key = extra_key

    @property
    def is_cell(self):
        return self.index is not None

    def __repr__(self):
        if self.extra_key:
            return f"FieldRef({EXTRA_PREFIX}{self.extra_key})"
        if self.is_cell:
            return f"FieldRef({self.name}[{self.index}])"
        return f"FieldRef({self.name})"


def resolve_field(identifier):
    """
    Resolve a client field identifier to a FieldRef.

    Accepts column names, camelCase aliases, array cells such as
    ``temperature[3]`` and extension keys such as ``extra.observaciones``.
    Returns None for identifiers that do not belong to any section.
    """
    if not isinstance(identifier, str) or not identifier:
        return None

    if identifier.startswith(EXTRA_PREFIX):
        key = identifier[len(EXTRA_PREFIX):]
        if not key:
            return None
        return FieldRef('extra_data', ProductionSectionChoices.GENERAL_INFO, 'extra', extra_key=key)

    index = None
    match = _INDEXED_FIELD.match(identifier)
    if match:
        identifier = match.group('name')
        index = int(match.group('index'))

    name = FIELD_ALIASES.get(identifier, identifier)
    if name not in FIELD_REGISTRY:
        return None

    section, kind, length = FIELD_REGISTRY[name]
    if index is not None and kind not in ('array', 'ingredients'):
        return None
    return FieldRef(name, section, kind, length=length, index=index)


def section_for_field(identifier):
    ref = resolve_field(identifier)
    return ref.section if ref else None


def fields_in_section(section):
    return [name for name, (field_section, _, _) in FIELD_REGISTRY.items() if field_section == section]


def can_edit_section(user, section, read_only=False):
    """
    Decide whether ``user`` may edit ``section``.

    Read-only contexts deny everyone, superadmin bypasses the table,
    everybody else needs their workflow role in the section's allowed roles.
    """
    if read_only:
        return False

    if not user or not getattr(user, 'is_authenticated', False):
        return False

    if is_superadmin(user):
        return True

    allowed_roles = SECTION_ALLOWED_ROLES.get(section)
    if not allowed_roles:
        logger.warning(f"Unknown production form section requested: {section}")
        return False

    return user_workflow_role(user) in allowed_roles


def section_permissions(user, read_only=False):
    """Editable flag for every section, keyed by section identifier"""
    return {
        section.value: can_edit_section(user, section, read_only=read_only)
        for section in ProductionSectionChoices
    }
