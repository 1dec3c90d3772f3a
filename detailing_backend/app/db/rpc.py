"""
Remote procedure calls against the data platform.

Business rules (status transitions, availability search, payout batching,
membership changes) live in database functions. This module is the only
place that invokes them, and the only place that turns their raw rows into
validated result types.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from detailing_backend.app.core.exceptions import ContractViolationError, UpstreamServiceError

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")

ModelT = TypeVar("ModelT", bound=BaseModel)


def _build_statement(name: str, params: Dict[str, Any]):
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid procedure name: {name!r}")
    for key in params:
        if not _IDENTIFIER.match(key):
            raise ValueError(f"Invalid parameter name: {key!r}")
    # Named notation so the call does not depend on declared argument order
    arguments = ", ".join(f"{key} => :{key}" for key in params)
    return text(f"SELECT * FROM {name}({arguments})")


async def call_rpc(
    db: AsyncSession,
    name: str,
    params: Optional[Dict[str, Any]] = None,
    commit: bool = False,
) -> List[Dict[str, Any]]:
    """
    Execute a database function and return its rows as dicts.

    Args:
        db: Request-scoped session
        name: Function name, e.g. "update_booking_status"
        params: Named arguments (p_booking_id, ...)
        commit: Commit after a mutating procedure

    Raises:
        UpstreamServiceError: if the platform rejects the call or is unreachable
    """
    params = params or {}
    statement = _build_statement(name, params)
    try:
        result = await db.execute(statement, params)
        rows = [dict(row._mapping) for row in result]
        if commit:
            await db.commit()
        return rows
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Remote procedure %s failed: %s", name, e)
        raise UpstreamServiceError(f"Remote procedure {name} failed", details={"procedure": name, "error": str(e)})


async def call_rpc_scalar(
    db: AsyncSession,
    name: str,
    params: Optional[Dict[str, Any]] = None,
) -> Any:
    """Execute a scalar-returning function and return its value (or None)."""
    rows = await call_rpc(db, name, params)
    if not rows:
        return None
    return next(iter(rows[0].values()), None)


def unwrap_record(rows: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Return the single record produced by a procedure.

    Procedures returning json/jsonb yield one row with one dict column;
    procedures returning a table row yield the columns directly.
    """
    if not rows:
        return None
    row = rows[0]
    if len(row) == 1:
        value = next(iter(row.values()))
        if isinstance(value, dict):
            return value
        if value is None:
            return None
    return row


def parse_result(procedure: str, model: Type[ModelT], data: Any) -> ModelT:
    """Validate one procedure result against its schema."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.error("Contract violation in %s: %s", procedure, e)
        raise ContractViolationError(procedure, str(e))


def parse_results(procedure: str, model: Type[ModelT], rows: Any) -> List[ModelT]:
    """Validate a list of procedure rows against their schema."""
    if rows is None:
        return []
    if not isinstance(rows, list):
        raise ContractViolationError(procedure, "expected a list of rows")
    return [parse_result(procedure, model, row) for row in rows]
