from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Any, Literal

Tone = Literal["professional", "casual", "technical", "friendly"]
Length = Literal["short", "medium", "long"]

class UserBrief(BaseModel):
    id: int
    name: str | None = None
    email: str | None = None
    role: str
    class Config:
        from_attributes = True

class IdeaOut(BaseModel):
    id: int
    user_id: int
    title: str
    description: str | None = None
    status: str
    priority: str
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    class Config:
        from_attributes = True

class ArtifactOut(BaseModel):
    id: int
    user_id: int
    idea_id: int | None = None
    post_id: int | None = None
    type: str
    title: str
    content: Any = None
    status: str
    approved: bool | None = None
    approved_at: datetime | None = None
    meta: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime
    class Config:
        from_attributes = True

class ArtifactDetailOut(ArtifactOut):
    user: UserBrief | None = None
    idea: IdeaOut | None = None

class IdeaWithArtifactsOut(IdeaOut):
    artifacts: list[ArtifactOut] = Field(default_factory=list)

class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

# --- AI generation inputs ---

class GenerateOutlineIn(BaseModel):
    topic: str = Field(min_length=1)
    keywords: list[str] | None = None
    target_audience: str | None = Field(default=None, alias="targetAudience")
    tone: Tone = "professional"
    length: Length = "medium"
    idea_id: int | None = Field(default=None, alias="ideaId")
    class Config:
        populate_by_name = True

class GenerateFactsIn(BaseModel):
    topic: str = Field(min_length=1)
    outline: str | None = None
    sources: list[str] | None = None
    fact_count: int = Field(default=10, ge=1, le=20, alias="factCount")
    idea_id: int | None = Field(default=None, alias="ideaId")
    class Config:
        populate_by_name = True

class GenerateDraftIn(BaseModel):
    idea_id: int = Field(alias="ideaId")
    tone: Tone = "professional"
    length: int = Field(default=1000, ge=100, le=5000)
    class Config:
        populate_by_name = True

class AITaskOut(BaseModel):
    id: str
    type: str
    status: str
    input: dict[str, Any]
    output: Any = None
    error: str | None = None
    created_at: datetime
    updated_at: datetime

class GenerateIdeaOut(BaseModel):
    success: bool = True
    idea: IdeaOut
    task: AITaskOut
    artifact: ArtifactOut

class GenerateArtifactOut(BaseModel):
    success: bool = True
    task: AITaskOut
    artifact: ArtifactOut

# --- HITL review ---

class ChooseOutlineIn(BaseModel):
    artifact_id: int = Field(alias="artifactId")
    approved: bool
    feedback: str | None = None
    class Config:
        populate_by_name = True

class ReviewedFact(BaseModel):
    id: str | None = None
    statement: str
    source: str | None = None
    confidence: float = Field(ge=0, le=1)
    category: str
    approved: bool

class ApproveFactsIn(BaseModel):
    artifact_id: int = Field(alias="artifactId")
    approved_facts: list[ReviewedFact] = Field(alias="approvedFacts")
    feedback: str | None = None
    class Config:
        populate_by_name = True

class ReviewOut(BaseModel):
    success: bool = True
    artifact: ArtifactOut
    idea: IdeaOut | None = None
    message: str

class FactsReviewOut(ReviewOut):
    approved_count: int
    total_count: int

class ReviewQueueOut(BaseModel):
    items: list[ArtifactDetailOut]
    count: int

# --- Posts ---

class PostCreate(BaseModel):
    title: str = Field(min_length=1)
    slug: str | None = None
    content: str | None = None
    risk_level: Literal["LOW", "MEDIUM", "HIGH"] = Field(default="LOW", alias="riskLevel")
    meta_description: str | None = Field(default=None, alias="metaDescription")
    focus_keyword: str | None = Field(default=None, alias="focusKeyword")
    idea_id: int | None = Field(default=None, alias="ideaId")
    class Config:
        populate_by_name = True

class PostUpdate(BaseModel):
    title: str | None = None
    slug: str | None = None
    content: str | None = None
    status: Literal["DRAFT", "READY", "SCHEDULED", "PUBLISHED", "ARCHIVED"] | None = None
    risk_level: Literal["LOW", "MEDIUM", "HIGH"] | None = Field(default=None, alias="riskLevel")
    meta_description: str | None = Field(default=None, alias="metaDescription")
    focus_keyword: str | None = Field(default=None, alias="focusKeyword")
    idea_id: int | None = Field(default=None, alias="ideaId")
    scheduled_at: datetime | None = Field(default=None, alias="scheduledAt")
    class Config:
        populate_by_name = True

class PostOut(BaseModel):
    id: int
    author_id: int
    idea_id: int | None = None
    title: str
    slug: str
    content: str | None = None
    status: str
    risk_level: str
    meta_description: str | None = None
    focus_keyword: str | None = None
    flags: dict[str, Any] = Field(default_factory=dict)
    scheduled_at: datetime | None = None
    published_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    class Config:
        from_attributes = True

class PostEnvelope(BaseModel):
    post: PostOut
    message: str | None = None

class PostSeoOut(PostEnvelope):
    seo: dict[str, Any]

# --- Media ---

class MediaOut(BaseModel):
    id: int
    url: str
    key: str | None = None
    filename: str
    mimetype: str
    size: int
    width: int | None = None
    height: int | None = None
    provider: str
    alt_text: str | None = None
    meta: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    issues: list[str] = Field(default_factory=list)
    class Config:
        from_attributes = True

class MediaListOut(BaseModel):
    media: list[MediaOut]
    pagination: Pagination

# --- Leads ---

class LeadCreate(BaseModel):
    email: str
    name: str | None = None
    company: str | None = None
    message: str | None = None
    source: str | None = None
    utm_source: str | None = None

    @field_validator("email")
    @classmethod
    def email_must_be_valid(cls, v: str) -> str:
        v = v.strip().lower()
        local, _, domain = v.partition("@")
        if not local or "." not in domain or " " in v or domain.startswith(".") or domain.endswith("."):
            raise ValueError("Please enter a valid email address")
        return v

class LeadUpdate(BaseModel):
    status: Literal["NEW", "CONTACTED", "QUALIFIED", "CONVERTED", "LOST"] | None = None
    notes: str | None = None

class LeadOut(BaseModel):
    id: int
    email: str
    name: str | None = None
    company: str | None = None
    message: str | None = None
    source: str
    status: str
    notes: str | None = None
    created_at: datetime
    updated_at: datetime
    class Config:
        from_attributes = True

class LeadCaptureOut(BaseModel):
    success: bool = True
    already_subscribed: bool = False
    lead: LeadOut
    message: str
