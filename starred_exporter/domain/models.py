from datetime import datetime
from typing import Dict, Any, Optional, Tuple
from pydantic import BaseModel, Field, ConfigDict

# Maximum number of records GitHub returns for a single page of the starred listing.
PAGE_SIZE = 100

class RepositoryRecord(BaseModel):
    """
    Immutable snapshot of one starred GitHub repository, as returned by the REST API.
    """
    # Enforces immutability: once created, fields cannot be modified.
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int = Field(0, description="Numeric repository ID from GitHub")
    name: str = Field(..., description="Name of the repository")
    full_name: str = Field(..., description="owner/name")
    html_url: str = Field(..., description="Web URL of the repository")
    description: str = Field("", description="Repository description, empty if unset")
    stargazers_count: int = Field(0, ge=0, description="Total number of stargazers")
    forks_count: int = Field(0, ge=0, description="Total number of forks")
    topics: Tuple[str, ...] = Field(default_factory=tuple, description="Topic labels in API order")
    language: str = Field("", description="Primary language, empty if unknown")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Timestamp of the last update")
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Remaining wire fields (owner, license, URLs, visibility flags)"
    )

class ApiErrorPayload(BaseModel):
    """Error body GitHub returns alongside a non-success status."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    message: str
    documentation_url: Optional[str] = ""
