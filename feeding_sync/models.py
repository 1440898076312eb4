"""Domain types for Feeding Sync.

FeedingRecord is the single entity. PendingMutation wraps a record with the
action waiting to be applied remotely. Both serialize to plain dicts tagged
with SCHEMA_VERSION so persisted formats can be migrated later.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union

from feeding_sync.errors import ValidationFailure

SCHEMA_VERSION = 1


class MutationAction(Enum):
    """Mutation intents that can wait in the pending queue."""
    CREATE = "create"
    DELETE = "delete"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """Parse an ISO-8601 timestamp and normalize it to UTC.

    Naive values are taken to be UTC. A trailing ``Z`` is accepted.

    Raises:
        ValidationFailure: If the value is not a parseable timestamp
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise ValidationFailure(f"Invalid timestamp {value!r}: {e}") from e
    else:
        raise ValidationFailure(f"Invalid timestamp {value!r}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Format an aware datetime as ISO-8601 in UTC."""
    return value.astimezone(timezone.utc).isoformat()


def validate_amount(amount: Any) -> int:
    """Check that a feeding amount is a positive whole number of milliliters.

    Raises:
        ValidationFailure: If the amount is not a positive int
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationFailure(f"Amount must be an integer, got {amount!r}")
    if amount <= 0:
        raise ValidationFailure(f"Amount must be positive, got {amount}")
    return amount


@dataclass(frozen=True)
class FeedingRecord:
    """A single feeding event.

    Attributes:
        id: Client-generated unique id, used as idempotency key remotely and locally
        amount: Volume in milliliters (positive)
        created_at: When the feeding happened (aware, UTC)
    """
    id: str
    amount: int
    created_at: datetime

    def __post_init__(self):
        """Validate fields and normalize the timestamp to UTC."""
        if not self.id or not isinstance(self.id, str):
            raise ValidationFailure(f"Feeding id must be a non-empty string, got {self.id!r}")
        validate_amount(self.amount)
        object.__setattr__(self, "created_at", parse_timestamp(self.created_at))

    @classmethod
    def new(cls, amount: int, created_at: Optional[datetime] = None) -> "FeedingRecord":
        """Build a record with a fresh id, timestamped now unless given."""
        return cls(
            id=str(uuid.uuid4()),
            amount=validate_amount(amount),
            created_at=created_at or utc_now(),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for on-device storage."""
        return {
            "v": SCHEMA_VERSION,
            "id": self.id,
            "amount": self.amount,
            "created_at": format_timestamp(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FeedingRecord":
        """Deserialize from on-device storage.

        Raises:
            ValidationFailure: On an unknown schema version or bad fields
        """
        if not isinstance(data, dict):
            raise ValidationFailure(f"Record must be an object, got {type(data).__name__}")
        version = data.get("v", SCHEMA_VERSION)
        if version != SCHEMA_VERSION:
            raise ValidationFailure(f"Unsupported record schema version: {version}")
        try:
            return cls(id=data["id"], amount=data["amount"], created_at=data["created_at"])
        except KeyError as e:
            raise ValidationFailure(f"Record is missing field {e}") from e

    def to_row(self, timestamp_column: str = "fed_at") -> Dict[str, Any]:
        """Row shape for the remote feedings table."""
        return {
            "id": self.id,
            "amount": self.amount,
            timestamp_column: format_timestamp(self.created_at),
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any], timestamp_column: str = "fed_at") -> "FeedingRecord":
        """Build a record from a remote row.

        Falls back to ``created_at`` when the configured column is absent.
        """
        timestamp = row.get(timestamp_column) or row.get("created_at")
        if timestamp is None:
            raise ValidationFailure(f"Row {row.get('id')!r} has no timestamp")
        amount = row.get("amount")
        # numeric columns may come back as floats
        if isinstance(amount, float) and amount.is_integer():
            amount = int(amount)
        return cls(id=str(row.get("id") or ""), amount=amount, created_at=timestamp)


@dataclass
class PendingMutation:
    """A create or delete waiting to be applied to the remote store.

    Removed from the queue once applied, so ``synced`` is only ever True
    transiently.
    """
    record: FeedingRecord
    action: MutationAction
    synced: bool = False
    queued_at: datetime = field(default_factory=utc_now)

    @property
    def id(self) -> str:
        return self.record.id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "v": SCHEMA_VERSION,
            "record": self.record.to_dict(),
            "action": self.action.value,
            "synced": self.synced,
            "queued_at": format_timestamp(self.queued_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PendingMutation":
        if not isinstance(data, dict):
            raise ValidationFailure(f"Pending mutation must be an object, got {type(data).__name__}")
        version = data.get("v", SCHEMA_VERSION)
        if version != SCHEMA_VERSION:
            raise ValidationFailure(f"Unsupported mutation schema version: {version}")
        try:
            return cls(
                record=FeedingRecord.from_dict(data["record"]),
                action=MutationAction(data["action"]),
                synced=bool(data.get("synced", False)),
                queued_at=parse_timestamp(data.get("queued_at") or utc_now()),
            )
        except ValidationFailure:
            raise
        except (KeyError, ValueError) as e:
            raise ValidationFailure(f"Malformed pending mutation: {e}") from e
