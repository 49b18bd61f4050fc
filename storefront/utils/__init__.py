# Utilities Module
from .validators import (
    AddressForm,
    SUPPORTED_COUNTRIES,
    validate_address,
)

__all__ = [
    "AddressForm",
    "SUPPORTED_COUNTRIES",
    "validate_address",
]
