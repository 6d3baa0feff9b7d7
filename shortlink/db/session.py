"""Request-scoped sessions and the route transaction decorator."""

from typing import AsyncGenerator, Callable, Optional, Tuple, TypeVar
import logging
import inspect
from functools import wraps

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from shortlink.db.base import get_session

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one session per request.

    Anything left uncommitted when the request fails is rolled back.
    """
    async with get_session() as session:
        try:
            yield session
        except SQLAlchemyError:
            logger.exception("Database error during request")
            await session.rollback()
            raise
        except Exception:
            await session.rollback()
            raise


def _locate_session_param(func: Callable, db_param_name: Optional[str]) -> Tuple[Optional[str], Optional[int]]:
    """Name and position of the session parameter of ``func``.

    With ``db_param_name`` the parameter is found by name, otherwise the
    first parameter annotated as AsyncSession is used.
    """
    for position, (name, param) in enumerate(inspect.signature(func).parameters.items()):
        if db_param_name is not None:
            if name != db_param_name:
                continue
            if param.annotation is not AsyncSession:
                logger.warning(
                    f"Parameter '{name}' of '{func.__name__}' is not annotated as AsyncSession"
                )
            return name, position
        if param.annotation is AsyncSession:
            return name, position

    logger.warning(f"No database session parameter found on '{func.__name__}'")
    return None, None


def db_transaction(db_param_name: Optional[str] = None) -> Callable:
    """Run a route handler inside a transaction on its session.

    The transaction is committed when the handler returns and rolled back
    when it raises. HTTPException is an expected outcome (404, 400) and is
    re-raised without logging; anything else is logged with its traceback.

    Args:
        db_param_name: Name of the session parameter; by default the first
            parameter annotated as AsyncSession

    Example:
        ```python
        @router.post("/shorten")
        @db_transaction()
        async def shorten_url(payload: ShortenRequest, db: AsyncSession = Depends(get_db)):
            ...
        ```
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        param_key, param_pos = _locate_session_param(func, db_param_name)

        @wraps(func)
        async def wrapper(*args, **kwargs):
            if param_key is not None and param_key in kwargs:
                db = kwargs[param_key]
            elif param_pos is not None and len(args) > param_pos:
                db = args[param_pos]
            else:
                db = next(
                    (value for value in (*args, *kwargs.values()) if isinstance(value, AsyncSession)),
                    None,
                )

            if db is None:
                raise ValueError(f"No database session passed to '{func.__name__}'")

            try:
                result = await func(*args, **kwargs)
                await db.commit()
                return result
            except HTTPException:
                await db.rollback()
                raise
            except Exception as e:
                await db.rollback()
                logger.exception(f"Transaction failed in '{func.__name__}': {e}")
                raise

        return wrapper
    return decorator
