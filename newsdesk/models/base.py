"""Base model class for all database models."""

from pydantic import BaseModel


class DBModel(BaseModel):
    """Base model for all database models."""

    class Config:
        """Pydantic config."""

        from_attributes = True
