"""Base resource class for SquareScale resources."""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, computed_field


class Resource(BaseModel):
    """Base class for all SquareScale resources.

    Resources are pure data - they define the desired state.
    Handlers know how to read and converge them through the sqsc CLI.
    """

    model_config = ConfigDict(extra="forbid")

    resource_type: ClassVar[str]

    name: str = Field(min_length=1)

    @computed_field
    @property
    def address(self) -> str:
        """Unique address for this resource (e.g., 'sqsc_service.rabbitmq')."""
        return f"{self.resource_type}.{self.name}"
