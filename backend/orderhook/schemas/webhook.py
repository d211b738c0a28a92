from dataclasses import dataclass, field
from decimal import Decimal
from typing import Annotated, Any, Mapping, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    WrapValidator,
    field_validator,
)
from starlette.datastructures import Headers

from orderhook.errors import ConfigurationError

SUPPORTED_ALGORITHMS = frozenset({"sha1", "sha256", "sha384", "sha512"})


@dataclass(frozen=True)
class RawRequest:
    """Verbatim request body plus the inbound headers."""

    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        # header lookups are case-insensitive
        object.__setattr__(self, "headers", Headers(headers=dict(self.headers.items())))

    def header(self, name: str) -> str | None:
        return self.headers.get(name)


class ProviderConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    algorithm: str
    signature_header: str
    secret: str = ""

    @field_validator("algorithm")
    @classmethod
    def _known_algorithm(cls, value: str) -> str:
        value = value.lower()
        if value not in SUPPORTED_ALGORITHMS:
            raise ConfigurationError(f"Unsupported digest algorithm: {value}")
        return value


# Order fields are best effort: a value of the wrong type becomes None.
def _or_none(value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
    try:
        return handler(value)
    except ValidationError:
        return None


def _scalar_to_text(value: Any) -> Any:
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return str(value)
    return value


Text = Annotated[
    str | None, BeforeValidator(_scalar_to_text), WrapValidator(_or_none)
]
Amount = Annotated[Decimal | None, WrapValidator(_or_none)]
JsonObject = Annotated[dict[str, Any] | None, WrapValidator(_or_none)]


# ---------- LemonSqueezy ----------
class LemonSqueezyAttributes(BaseModel, extra="allow"):
    user_email: Text = None
    customer_email: Text = None
    currency: Text = None
    total: Amount = None
    custom: JsonObject = None


class LemonSqueezyData(BaseModel, extra="allow"):
    attributes: Annotated[LemonSqueezyAttributes | None, WrapValidator(_or_none)] = None


class LemonSqueezyMeta(BaseModel, extra="allow"):
    event_name: Text = None
    custom_data: JsonObject = None


class LemonSqueezyEvent(BaseModel, extra="allow"):
    meta: Annotated[LemonSqueezyMeta | None, WrapValidator(_or_none)] = None
    event: Text = Field(None, description="Legacy top-level event name")
    data: Annotated[LemonSqueezyData | None, WrapValidator(_or_none)] = None

    @property
    def event_name(self) -> str | None:
        if self.meta and self.meta.event_name:
            return self.meta.event_name
        return self.event

    @property
    def attributes(self) -> LemonSqueezyAttributes:
        if self.data and self.data.attributes:
            return self.data.attributes
        return LemonSqueezyAttributes()

    @property
    def custom_data(self) -> dict[str, Any]:
        if self.meta and self.meta.custom_data:
            return self.meta.custom_data
        return {}


# ---------- NOWPayments ----------
class NowPaymentsEvent(BaseModel, extra="allow"):
    payment_status: Text = None
    customer_email: Text = None
    price_amount: Amount = None
    price_currency: Text = None
    order_description: Any = None


WebhookEvent = Union[LemonSqueezyEvent, NowPaymentsEvent]


class OrderNotification(BaseModel):
    model_config = ConfigDict(frozen=True)

    buyer_email: str | None = None
    website_type: str = "unknown"
    # None when the provider did not report an amount
    amount: Decimal | None = Decimal(0)
    currency: str = "USD"
    raw: dict[str, Any] = Field(default_factory=dict)
