import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.core.errors import ConcurrencyConflictError

logger = logging.getLogger(__name__)


def versioned_update(
    db: Session,
    row: Any,
    values: Dict[str, Any],
    expected_version: Optional[int] = None,
) -> Any:
    """
    UPDATE ... SET <values>, version = version + 1
    WHERE id = :id AND version = :read_version

    ``read_version`` is the version the caller last saw (``expected_version``)
    or, by default, the one loaded with ``row``. Zero rows affected means
    someone else changed the row first.
    """
    model = type(row)
    read_version = row.version if expected_version is None else expected_version

    updated = (
        db.query(model)
        .filter(model.id == row.id, model.version == read_version)
        .update({**values, "version": read_version + 1}, synchronize_session=False)
    )
    if updated == 0:
        logger.warning("Version conflict on %s %s (read version %s)", model.__tablename__, row.id, read_version)
        raise ConcurrencyConflictError(
            f"{model.__name__} {row.id} was modified concurrently; reload and retry"
        )

    db.refresh(row)
    return row
