"""
Request value types for every pricing and offer flow.

Payloads are validated here, at the boundary, so the pricing core only
ever sees well-formed values. Pydantic collects every violation; they are
reported together as one ValidationError, one message per offending field
("Line 2: quantity must be greater than 0").

Amounts are limited to the precision they are stored with (2 decimal
places, quantities 3) so a saved line always reproduces its own amounts.
"""
from datetime import date
from decimal import Decimal
from typing import Annotated, Any, ClassVar, Dict, List, Optional

from pydantic import (
    BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator,
    ValidationError as PydanticValidationError,
)
from pydantic_core import PydanticCustomError

from quotedesk.exceptions import ValidationError
from quotedesk.services.offer_status import OfferStatus, parse_status, recognized_statuses
from quotedesk.utils.money import to_decimal

NO_LINES_MESSAGE = 'An offer must contain at least one line'

# Custom errors whose message already names what is wrong
_SENTENCE_ERRORS = {'unknown_status', 'pricing_inputs'}


def _decimal(places: int, gt=None, ge=None, le=None):
    """Number parsed with to_decimal: at most `places` fractional digits, within bounds."""
    def parse(value):
        try:
            value = to_decimal(value)
        except ValueError:
            raise PydanticCustomError('number', 'must be a number')
        if value.normalize().as_tuple().exponent < -places:
            raise PydanticCustomError('decimal_places', 'must have at most {places} decimal places',
                                      {'places': places})
        if gt is not None and value <= gt:
            raise PydanticCustomError('greater_than', 'must be greater than {gt}', {'gt': gt})
        if ge is not None and value < ge:
            raise PydanticCustomError('greater_than_equal', 'must be at least {ge}', {'ge': ge})
        if le is not None and value > le:
            raise PydanticCustomError('less_than_equal', 'must not exceed {le}', {'le': le})
        return value
    return BeforeValidator(parse)


Money = Annotated[Decimal, _decimal(2, ge=0)]
Quantity = Annotated[Decimal, _decimal(3, gt=0)]
Percent = Annotated[Decimal, _decimal(2, ge=0, le=100)]
SignedPercent = Annotated[Decimal, _decimal(2)]


def _without_blanks(data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop null and blank values so they count as omitted."""
    return {
        key: value for key, value in data.items()
        if value is not None and not (isinstance(value, str) and not value.strip())
    }


def _describe(error) -> str:
    kind = error['type']
    ctx = error.get('ctx') or {}
    if kind == 'missing':
        return 'is required'
    if kind == 'greater_than':
        return f"must be greater than {ctx['gt']}"
    if kind == 'greater_than_equal':
        return 'must not be negative' if ctx['ge'] == 0 else f"must be at least {ctx['ge']}"
    if kind == 'less_than_equal':
        return f"must not exceed {ctx['le']}"
    if kind.startswith('int_'):
        return 'must be an integer'
    if kind.startswith('date'):
        return 'must be a date (YYYY-MM-DD)'
    if kind == 'string_type':
        return 'must be text'
    if kind in ('model_type', 'model_attributes_type', 'dict_type'):
        return 'must be an object'
    return error['msg']


def error_messages(exc: PydanticValidationError) -> List[str]:
    """Human messages for a pydantic error, one per offending field."""
    messages = []
    for error in exc.errors():
        loc = error['loc']
        prefix = ''
        if loc and loc[0] == 'items':
            if len(loc) == 1 or error['type'] in ('list_type', 'too_short'):
                message = NO_LINES_MESSAGE
                if message not in messages:
                    messages.append(message)
                continue
            prefix = f"Line {loc[1] + 1}: "
            loc = loc[2:]

        field = '.'.join(str(part) for part in loc)
        description = _describe(error)
        if error['type'] in _SENTENCE_ERRORS or not field:
            message = f"{prefix}{description}"
        else:
            message = f"{prefix}{field} {description}"
        if message not in messages:
            messages.append(message)
    return messages


class RequestModel(BaseModel):
    """Base for request bodies: immutable, blanks count as omitted."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    label: ClassVar[str] = 'Request'

    @model_validator(mode='before')
    @classmethod
    def _drop_blanks(cls, data):
        if isinstance(data, dict):
            return _without_blanks(data)
        return data

    @classmethod
    def from_dict(cls, data):
        """Validate a JSON body, raising the application's ValidationError."""
        if not isinstance(data, dict):
            raise ValidationError(f"{cls.label} must be a JSON object")
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError.from_errors(error_messages(e)) from e


class OfferLineInput(RequestModel):
    label: ClassVar[str] = 'Offer line'

    product_name: str
    unit: str
    quantity: Quantity
    unit_price: Money
    vat_rate: Percent
    product_id: Optional[int] = None
    cost_price: Money = Decimal('0')
    margin_percent: SignedPercent = Decimal('0')
    discount_percent: Percent = Decimal('0')
    original_price: Optional[Money] = None


class CreateOfferInput(RequestModel):
    label: ClassVar[str] = 'Offer'

    client_name: str
    client_id: Optional[int] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    delivery_days: int = Field(ge=0)
    valid_days: int = Field(ge=0)
    additional_costs: Money = Decimal('0')
    additional_costs_description: Optional[str] = None
    notes: Optional[str] = None
    items: List[OfferLineInput] = Field(min_length=1)

    @classmethod
    def from_dict(cls, data, default_valid_days=30, default_delivery_days=14) -> 'CreateOfferInput':
        if isinstance(data, dict):
            data = {
                'valid_days': default_valid_days,
                'delivery_days': default_delivery_days,
                **_without_blanks(data),
            }
        return super().from_dict(data)


class ReplaceItemsInput(RequestModel):
    label: ClassVar[str] = 'Offer items'

    items: List[OfferLineInput] = Field(min_length=1)
    additional_costs: Optional[Money] = None


class PricingConfigInput(RequestModel):
    """
    Pricing settings for one product.

    Any two of cost_price, margin_percent and sale_price are enough; the
    third is derived when the settings are saved.
    """
    label: ClassVar[str] = 'Pricing'

    product_id: int
    cost_price: Optional[Money] = None
    margin_percent: Optional[SignedPercent] = None
    sale_price: Optional[Money] = None
    min_margin_percent: Optional[SignedPercent] = None
    max_discount_percent: Optional[Percent] = None

    @model_validator(mode='after')
    def _two_of_three(self):
        given = [v for v in (self.cost_price, self.margin_percent, self.sale_price) if v is not None]
        if len(given) < 2:
            raise PydanticCustomError(
                'pricing_inputs', 'Provide at least two of cost_price, margin_percent and sale_price')
        return self


class ClientDiscountInput(RequestModel):
    label: ClassVar[str] = 'Discount'

    client_id: int
    product_id: int
    discount_percent: Percent
    valid_until: Optional[date] = None
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data, client_id: int) -> 'ClientDiscountInput':
        if isinstance(data, dict):
            data = {**_without_blanks(data), 'client_id': client_id}
        return super().from_dict(data)


class StatusUpdateInput(RequestModel):
    label: ClassVar[str] = 'Status update'

    status: OfferStatus

    @field_validator('status', mode='before')
    @classmethod
    def _known_status(cls, value):
        try:
            return parse_status(value)
        except ValidationError:
            raise PydanticCustomError(
                'unknown_status', "Unknown status '{value}'. Allowed: {allowed}",
                {'value': str(value), 'allowed': ', '.join(recognized_statuses())},
            )
