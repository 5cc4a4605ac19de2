from decimal import Decimal
from typing import Any, Type

from pydantic import BaseModel, Field, field_validator, ValidationError

from rentals.database.errors import InvalidValueError


class AmountModel(BaseModel):
    amount: Decimal = Field(ge=0, max_digits=12, decimal_places=2, description="Non-negative money amount")

    @field_validator('amount', mode='before')
    def parse_decimal(cls, v):
        if isinstance(v, float):
            # Go through str so 0.1 stays 0.1
            return Decimal(str(v))
        if isinstance(v, str):
            # Replace common separators
            v = v.replace(',', '').replace(' ', '')
        return v

class AreaModel(BaseModel):
    area: Decimal = Field(ge=0, max_digits=8, decimal_places=2)

    @field_validator('area', mode='before')
    def parse_decimal(cls, v):
        if isinstance(v, float):
            return Decimal(str(v))
        return v

class PhoneModel(BaseModel):
    phone: str = Field(pattern=r'^\+?[\d\s-]{7,20}$', max_length=30)

class EmailModel(BaseModel):
    email: str = Field(pattern=r'^[^@\s]+@[^@\s]+\.[^@\s]+$', max_length=150)


def validated(model: Type[BaseModel], field: str, value: Any) -> Any:
    """Run a single value through a model, raising InvalidValueError on rejection."""
    try:
        return getattr(model(**{field: value}), field)
    except ValidationError as e:
        raise InvalidValueError(f"Invalid {field}: {value!r}") from e


def money(value: Any) -> Decimal:
    return validated(AmountModel, "amount", value)

def optional_money(value: Any):
    return None if value is None else money(value)

def area(value: Any):
    return None if value is None else validated(AreaModel, "area", value)

def phone(value: Any):
    return None if value is None else validated(PhoneModel, "phone", value)

def email(value: Any):
    return None if value is None else validated(EmailModel, "email", value)
