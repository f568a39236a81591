"""Entity base model."""

from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class Entity(BaseModel):
    """Base for every persisted entity.

    Gives each entity a uniform string identity so the recorder never
    needs to know how a concrete type stores its key.
    """

    id: UUID = Field(default_factory=uuid4, description="Unique identifier")

    def get_id(self) -> str:
        """Identity of this entity as text."""
        return str(self.id)
