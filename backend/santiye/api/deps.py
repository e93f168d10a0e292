"""FastAPI dependency injection — store access and error translation."""
from contextlib import contextmanager
from typing import Iterator

from fastapi import Depends, HTTPException, status
from pydantic import ValidationError

from santiye.models.domain import Project
from santiye.store import NotFoundError, SiteStore, get_store


@contextmanager
def store_errors() -> Iterator[None]:
    """
    Translate store/engine exceptions into HTTP errors.

    NotFoundError → 404, ValidationError → 422, any other ValueError → 400.
    ValidationError is itself a ValueError, so it is matched first.
    """
    try:
        yield
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.errors(include_url=False, include_context=False, include_input=False),
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def get_project_or_404(project_id: str, store: SiteStore = Depends(get_store)) -> Project:
    with store_errors():
        return store.get_project(project_id)
