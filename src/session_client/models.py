"""
Data models for identity and search payloads.

Provides Pydantic models for the responses returned by the identity and
search endpoints. Both camelCase and snake_case keys are accepted.
"""

from typing import List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class User(BaseModel):
    """Authenticated user profile returned by the identity endpoint."""

    id: Union[int, str] = Field(..., description="Unique identifier")
    email: str = Field(..., description="Primary email address")
    first_name: str = Field(
        ...,
        validation_alias=AliasChoices("firstName", "first_name"),
        description="Given name",
    )
    last_name: str = Field(
        ...,
        validation_alias=AliasChoices("lastName", "last_name"),
        description="Family name",
    )
    username: Optional[str] = Field(None, description="Optional display handle")

    @property
    def display_name(self) -> str:
        full_name = f"{self.first_name} {self.last_name}".strip()
        return full_name or self.username or self.email


class SearchHit(BaseModel):
    """A single search hit. Unknown fields are preserved."""

    model_config = ConfigDict(extra="allow")

    object_id: str = Field(
        ...,
        validation_alias=AliasChoices("objectID", "object_id", "id"),
        description="Identifier of the matched record",
    )
    title: str = Field(..., description="Display title")
    description: Optional[str] = Field(None, description="Short description")
    url: Optional[str] = Field(None, description="Link to the matched record")


class SearchResult(BaseModel):
    """Search response for a single query."""

    hits: List[SearchHit] = Field(default_factory=list, description="Matched records")
    total_hits: int = Field(
        0,
        ge=0,
        validation_alias=AliasChoices("nbHits", "totalHits", "total_hits"),
        description="Total number of matches on the server",
    )
    query: str = Field("", description="Query the result was produced for")

    @classmethod
    def empty(cls, query: str = "") -> "SearchResult":
        return cls(hits=[], total_hits=0, query=query)
