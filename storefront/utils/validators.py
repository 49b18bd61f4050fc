"""Billing address validation."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from storefront.errors import AddressValidationError

# ISO 3166-1 alpha-2 codes offered in the address form
SUPPORTED_COUNTRIES: dict[str, str] = {
    "DE": "Germany",
    "US": "United States",
    "GB": "United Kingdom",
    "FR": "France",
    "ES": "Spain",
    "IT": "Italy",
    "HR": "Croatia",
    "AT": "Austria",
    "CH": "Switzerland",
    "NL": "Netherlands",
}

REQUIRED_MESSAGES: dict[str, str] = {
    "label": "Label is required",
    "line1": "Address line 1 is required",
    "city": "City is required",
    "postal_code": "Postal code is required",
}

COUNTRY_MESSAGE = "Select a country"


class AddressForm(BaseModel):
    """Billing address as submitted from the address form."""
    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        validate_default=True,
    )

    label: str = ""
    line1: str = ""
    line2: Optional[str] = None
    city: str = ""
    postal_code: str = Field("", alias="postalCode")
    state: Optional[str] = None
    country: str = "DE"
    is_default: bool = Field(False, alias="isDefault")

    @field_validator("label", "line1", "city", "postal_code")
    @classmethod
    def _required(cls, value: str, info: ValidationInfo) -> str:
        if not value:
            raise ValueError(REQUIRED_MESSAGES[info.field_name])
        return value

    @field_validator("country")
    @classmethod
    def _country(cls, value: str) -> str:
        code = value.upper()
        if len(code) != 2 or code not in SUPPORTED_COUNTRIES:
            raise ValueError(COUNTRY_MESSAGE)
        return code


def _form_key(name: str) -> str:
    """Report errors under the form (camelCase) key, whichever spelling pydantic used."""
    field = AddressForm.model_fields.get(name)
    if field is not None and field.alias:
        return field.alias
    return name


def validate_address(data: dict) -> AddressForm:
    """
    Validate an address submission.

    Args:
        data: Raw form values (camelCase or snake_case keys)

    Returns:
        The validated address

    Raises:
        AddressValidationError: with one message per invalid field
    """
    try:
        return AddressForm.model_validate(data)
    except ValidationError as e:
        errors: dict[str, str] = {}
        for issue in e.errors():
            field = _form_key(str(issue["loc"][0])) if issue["loc"] else "address"
            message = issue["msg"]
            # pydantic prefixes custom messages with "Value error, "
            if message.startswith("Value error, "):
                message = message[len("Value error, "):]
            errors.setdefault(field, message)
        raise AddressValidationError(errors) from e
