import re
from enum import Enum
from pydantic import (
    AnyUrl, BaseModel, ConfigDict, Field, TypeAdapter, ValidationInfo,
    field_validator, model_validator
)
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticCustomError
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from datetime import datetime
from uuid import UUID

MAX_LEETCODE_LINKS = 5

_TECHNOLOGY_RE = re.compile(r"^[a-zA-Z0-9\s.\-_]+$")
_URL_ADAPTER = TypeAdapter(AnyUrl)


class TopicStatus(str, Enum):
    TO_DO = "to_do"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


def _check_technology(value: str) -> str:
    if not _TECHNOLOGY_RE.match(value):
        raise PydanticCustomError(
            "technology_pattern",
            "Technology must contain only alphanumeric characters, spaces, dots, hyphens, and underscores",
        )
    return value


Title = Annotated[str, Field(min_length=1, max_length=200)]
Description = Annotated[str, Field(max_length=1000)]
Technology = Annotated[str, Field(min_length=1, max_length=100)]


class LeetCodeLink(BaseModel):
    title: str = Field(min_length=1)
    url: str
    difficulty: Difficulty

    @field_validator("url")
    @classmethod
    def url_must_parse(cls, value: str) -> str:
        # validated as a URL but stored exactly as sent
        try:
            _URL_ADAPTER.validate_python(value)
        except PydanticValidationError:
            raise PydanticCustomError("url", "LeetCode URL must be valid")
        return value


LeetCodeLinks = Annotated[List[LeetCodeLink], Field(max_length=MAX_LEETCODE_LINKS)]


class TopicUpdate(BaseModel):
    """Partial update of a topic.

    Every field is optional but at least one must be sent. Unknown keys are
    rejected. ``description`` is the only field that may be set to null.
    """

    model_config = ConfigDict(extra="forbid")

    title: Optional[Title] = None
    description: Optional[Description] = None
    status: Optional[TopicStatus] = None
    technology: Optional[Technology] = None
    leetcode_links: Optional[LeetCodeLinks] = None

    @field_validator("title", "status", "technology", "leetcode_links", mode="before")
    @classmethod
    def reject_null(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            raise PydanticCustomError(
                "null_not_allowed", "{field} must not be null", {"field": info.field_name}
            )
        return value

    @field_validator("technology")
    @classmethod
    def technology_charset(cls, value: Optional[str]) -> Optional[str]:
        return _check_technology(value) if value is not None else value

    @model_validator(mode="after")
    def require_one_field(self):
        if not self.model_fields_set:
            raise PydanticCustomError(
                "empty_update", "At least one field must be provided for update"
            )
        return self

    def to_update_fields(self) -> Dict[str, Any]:
        """Only the fields the client sent, explicit nulls included."""
        return self.model_dump(mode="json", exclude_unset=True)


class TopicCreate(BaseModel):
    title: Title
    technology: Technology
    parent_id: Optional[UUID] = None
    description: Optional[Description] = None
    status: TopicStatus = TopicStatus.TO_DO
    leetcode_links: LeetCodeLinks = Field(default_factory=list)

    @field_validator("technology")
    @classmethod
    def technology_charset(cls, value: str) -> str:
        return _check_technology(value)


class TopicListQuery(BaseModel):
    status: Optional[TopicStatus] = None
    technology: Optional[str] = Field(None, min_length=1)
    parent_id: Optional[Union[Literal["null"], UUID]] = None  # "null" selects root topics
    sort: Literal["created_at", "updated_at", "title", "status"] = "created_at"
    order: Literal["asc", "desc"] = "desc"
    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1, le=100)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class TopicResponse(BaseModel):
    id: str
    user_id: str
    parent_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    status: TopicStatus
    technology: str
    leetcode_links: List[dict] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TopicListItem(TopicResponse):
    children_count: int = 0

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "TopicListItem":
        """Row selected with the ``children:topics!parent_id(count)`` embed."""
        children = row.get("children") or []
        count = children[0].get("count", 0) if children else 0
        fields = {k: v for k, v in row.items() if k != "children"}
        return cls(**fields, children_count=count)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class TopicListResponse(BaseModel):
    data: List[TopicListItem]
    pagination: Pagination


class TopicChildrenResponse(BaseModel):
    data: List[TopicListItem]


class GenerateTopicsRequest(BaseModel):
    technology: Technology
    parent_id: Optional[UUID] = None

    @field_validator("technology")
    @classmethod
    def technology_charset(cls, value: str) -> str:
        return _check_technology(value)


class GeneratedTopic(BaseModel):
    """One topic as proposed by the AI provider, before it is stored."""
    title: Title
    description: Annotated[str, Field(min_length=1, max_length=1000)]
    leetcode_links: LeetCodeLinks = Field(default_factory=list)


class GenerateTopicsResponse(BaseModel):
    data: List[TopicResponse]
    count: int
