"""
Inference component - mandatory-field validation and status inference.
"""

from .component import (
    DEFAULT_MANDATORY,
    MandatoryFields,
    circular_violations,
    infer_status,
    popup_violations,
    validate_fields,
)
from .models import FieldViolation, InvalidStatusError, StatusInference

__all__ = [
    # Entry points
    "infer_status",
    "validate_fields",
    "popup_violations",
    "circular_violations",
    # Configuration
    "MandatoryFields",
    "DEFAULT_MANDATORY",
    # Models
    "FieldViolation",
    "InvalidStatusError",
    "StatusInference",
]
