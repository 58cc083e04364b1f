"""Domain models (Pydantic v2).

Why Pydantic in the domain:
- Strict validation and self-documenting fields (Field) without coupling the
  core to I/O libraries.
- The provider speaks camelCase JSON; aliases keep the Python side snake_case.

Note:
- These models describe *what* the information is, not *how* it is fetched.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

NOT_AVAILABLE = "N/A"

UNAVAILABLE_STATES: frozenset[str] = frozenset({"unavailable", "unknown"})

ENDPOINTS: dict[str, str] = {
    "ovh-eu": "eu.api.ovh.com",
    "ovh-ca": "ca.api.ovh.com",
    "ovh-us": "api.us.ovhcloud.com",
}

SUBSIDIARIES: tuple[str, ...] = (
    "FR", "GB", "DE", "ES", "PT", "IT", "PL", "IE", "FI", "LT", "CZ", "NL", "CA",
)


class Credentials(BaseModel):
    """API identity used for every order-API call.

    Immutable for the lifetime of a run.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    app_key: str = Field(
        ...,
        alias="appKey",
        description="Application key (X-Ovh-Application).",
    )
    app_secret: str = Field(
        default="",
        alias="appSecret",
        description="Application secret, only used by an external signer.",
    )
    consumer_key: str = Field(
        ...,
        alias="consumerKey",
        description="Consumer key (X-Ovh-Consumer).",
    )
    endpoint: str = Field(
        default=ENDPOINTS["ovh-eu"],
        min_length=1,
        description="API host, e.g. 'eu.api.ovh.com'.",
    )


class TaskSpec(BaseModel):
    """What to buy and how to configure it."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    iam: str = Field(
        default="",
        description="Free-form label prefixed to notifications.",
    )
    zone: str = Field(
        default="IE",
        min_length=1,
        description="OVH subsidiary used for the cart (ovhSubsidiary).",
    )
    plan_code: str = Field(
        ...,
        min_length=1,
        alias="planCode",
        description="Product plan code to watch and order.",
    )
    os: str = Field(
        default="none_64.en",
        description="OS image applied as dedicated_os.",
    )
    duration: str = Field(
        default="P1M",
        description="Contract duration (ISO-8601 period).",
    )
    options: tuple[str, ...] = Field(
        default=(),
        description="Add-on plan codes, in attachment order.",
    )


class TelegramConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str = ""
    chat_id: str = Field(default="", alias="chatId")
    enabled: bool = False

    @property
    def is_complete(self) -> bool:
        return self.enabled and bool(self.token.strip()) and bool(self.chat_id.strip())


class ConfigBundle(BaseModel):
    """The saved bundle the CLI hands to the controller at start-up."""

    model_config = ConfigDict(populate_by_name=True)

    credentials: Credentials
    task: TaskSpec
    telegram: TelegramConfig = Field(default_factory=TelegramConfig)


class DatacenterAvailability(BaseModel):
    model_config = ConfigDict(extra="ignore")

    datacenter: str
    availability: str | None = None

    @property
    def is_eligible(self) -> bool:
        # Any state other than the two negative literals counts as in stock.
        return bool(self.availability) and self.availability not in UNAVAILABLE_STATES


class AvailabilityRecord(BaseModel):
    """Per-product stock snapshot, locations in provider order."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    fqn: str
    plan_code: str | None = Field(default=None, alias="planCode")
    datacenters: list[DatacenterAvailability] = Field(default_factory=list)


class AvailabilitySelection(BaseModel):
    model_config = ConfigDict(frozen=True)

    fqn: str
    datacenter: str
    availability: str


class ScanResult(BaseModel):
    records: list[AvailabilityRecord] = Field(default_factory=list)
    selection: AvailabilitySelection | None = None

    @property
    def found(self) -> bool:
        return self.selection is not None


class Cart(BaseModel):
    cart_id: str
    item_id: int | str | None = None


class ConfigurationEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    value: str | None = None


class RequiredConfiguration(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    label: str
    required: bool = False
    allowed_values: list[str] = Field(default_factory=list, alias="allowedValues")


class CheckoutResult(BaseModel):
    """Outcome of the checkout call.

    Absent fields are rendered with an explicit marker, never as ``None``.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    order_id: int | str | None = Field(default=None, alias="orderId")
    url: str | None = None

    @property
    def order_id_display(self) -> str:
        if self.order_id is None or self.order_id == "":
            return NOT_AVAILABLE
        return str(self.order_id)

    @property
    def url_display(self) -> str:
        return self.url or NOT_AVAILABLE


class CatalogPlan(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    plan_code: str = Field(..., alias="planCode")
    display_name: str = Field(default="", alias="invoiceName")
    product: str | None = None


class LogLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class LogEvent(BaseModel):
    """One line of the run's audit trail. Never mutated after emission."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    level: LogLevel
    message: str


class PipelineState(str, Enum):
    IDLE = "idle"
    CART_CREATED = "cart_created"
    CART_ASSIGNED = "cart_assigned"
    ITEM_ADDED = "item_added"
    CONFIGURED = "configured"
    CHECKOUT_READY = "checkout_ready"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class RunOutcome(str, Enum):
    COMPLETED = "completed"
    NOT_FOUND = "not_found"
    FAILED = "failed"
    CANCELLED = "cancelled"


class TaskStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class TaskResult(BaseModel):
    """Snapshot returned by `TaskController.start`."""

    succeeded: bool
    outcome: RunOutcome
    events: tuple[LogEvent, ...] = ()
    records: list[AvailabilityRecord] = Field(default_factory=list)
    selection: AvailabilitySelection | None = None
    checkout: CheckoutResult | None = None
    reason: str | None = None
