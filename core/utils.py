import logging
import uuid
from typing import Any, Iterable, List, Optional

from core.exceptions import InvalidRequestError

logger = logging.getLogger(__name__)


def as_uuid(value: Any, field: str = "id") -> uuid.UUID:
    """Parse an id coming from a caller; malformed ids are an InvalidRequestError."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError) as e:
        raise InvalidRequestError(f"Invalid {field}: {value!r}") from e


def as_uuid_list(values: Optional[Iterable[Any]], field: str = "id") -> List[uuid.UUID]:
    if not values:
        return []
    return [as_uuid(v, field) for v in values]
