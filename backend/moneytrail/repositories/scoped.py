"""Base class for repositories bound to a single user."""
from sqlalchemy import ColumnElement, Select, select
from sqlalchemy.ext.asyncio import AsyncSession


class UserScopedRepository:
    """Data access handle constructed for one user id.

    Queries are built through ``_owned``/``_select`` so every statement carries
    the ``user_id`` filter. A row owned by someone else is indistinguishable
    from a row that does not exist.
    """

    def __init__(self, db: AsyncSession, user_id: int) -> None:
        self.db = db
        self.user_id = user_id

    def _owned(self, model) -> ColumnElement[bool]:
        return model.user_id == self.user_id

    def _select(self, model) -> Select:
        return select(model).where(self._owned(model))
