"""
Definition file data models with validation.
"""

from typing import Dict, Any, Optional, List
from pydantic import BaseModel, Field, field_validator, model_validator


class SourceDefinition(BaseModel):
    """A child configuration declared in a definition file."""
    type: str = Field(pattern="^(yaml|env|mapping)$")
    path: Optional[str] = None
    prefix: str = ""
    properties: Dict[str, Any] = Field(default_factory=dict)
    name: Optional[str] = Field(default=None, min_length=1)
    at: Optional[str] = None
    optional: bool = False

    @model_validator(mode='after')
    def validate_path(self):
        """YAML sources need a file path."""
        if self.type == 'yaml' and not self.path:
            raise ValueError("path is required for sources of type 'yaml'")
        return self


class CombinedDefinition(BaseModel):
    """Declaration of a combined configuration."""
    combiner: str = Field(default="union", pattern="^(union|override)$")
    list_nodes: List[str] = Field(default_factory=list)
    sources: List[SourceDefinition] = Field(default_factory=list)

    @field_validator('list_nodes')
    @classmethod
    def validate_list_nodes(cls, v):
        """List node names must not be empty."""
        for name in v:
            if not name:
                raise ValueError("List node names must not be empty")
        return v

    @field_validator('sources')
    @classmethod
    def validate_unique_names(cls, v):
        """Source names must be unique."""
        names = [source.name for source in v if source.name is not None]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate source names: {', '.join(duplicates)}")
        return v
