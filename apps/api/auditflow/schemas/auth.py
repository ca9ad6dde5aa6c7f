"""Identity schemas supplied by the upstream identity provider."""

from pydantic import BaseModel, Field


class Actor(BaseModel):
    """Who is performing an action.

    The engine records these values on reviews and events; it does not
    authenticate them.
    """

    user_id: str | None = Field(None, max_length=255)
    name: str = Field(..., min_length=1, max_length=255)
    avatar_ref: str | None = Field(None, max_length=1000)
