"""Default directory table."""

from sqlmodel import Field, SQLModel


class UserTable(SQLModel, table=True):
    """Reference schema matching the default directory queries.

    Deployments usually point the provider at an existing table; this model is
    used by ``init-db`` and the tests.
    """

    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    username: str = Field(unique=True, index=True, nullable=False)
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    password_hash: str | None = None
