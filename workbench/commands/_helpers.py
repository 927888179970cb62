"""Shared command helpers.

This module provides:
- current_store(): the lazily opened process-wide store
- resolve_id(): accept a full id or a unique prefix of one
- @handle_command_error: consistent error handling decorator
"""

from functools import wraps
from typing import Any, Callable, Iterable, TypeVar

import typer

from ..database import Store, get_store
from ..exceptions import NotFoundError, WorkbenchError
from ..utils.output import console

F = TypeVar("F", bound=Callable[..., Any])

SHORT_ID = 8


def current_store() -> Store:
    return get_store()


def short_id(value: str) -> str:
    return value[:SHORT_ID]


def resolve_id(prefix: str, ids: Iterable[str], entity: str) -> str:
    """Return the id equal to ``prefix`` or the only one starting with it.

    Raises:
        NotFoundError: No id matches, or the prefix is ambiguous.
    """
    candidates = list(ids)
    if prefix in candidates:
        return prefix
    matches = [c for c in candidates if c.startswith(prefix)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        raise NotFoundError(f"No {entity} matches '{prefix}'", entity=entity, record_id=prefix)
    raise NotFoundError(
        f"'{prefix}' matches {len(matches)} {entity}s; use more characters",
        entity=entity,
        record_id=prefix,
    )


def handle_command_error(operation: str) -> Callable[[F], F]:
    """Decorator printing store errors in red and exiting with status 1.

    Example:
        @app.command()
        @handle_command_error("deleting item")
        def delete(item_id: str):
            ...
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except typer.Exit:
                raise
            except typer.Abort:
                console.print("[yellow]Cancelled[/yellow]")
                raise typer.Exit(0) from None
            except WorkbenchError as e:
                console.print(f"[red]Error {operation}: {e.message}[/red]")
                raise typer.Exit(1) from e

        return wrapper  # type: ignore[return-value]

    return decorator
