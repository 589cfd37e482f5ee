# Copyright (c) 2026 Mohammed Hassan. All rights reserved.
# Proprietary and confidential. Unauthorized copying, modification, distribution, or use is prohibited.

import enum
from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, ForeignKey, Boolean
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()

class Role(str, enum.Enum):
    ADMIN = "ADMIN"
    EDITOR = "EDITOR"
    VIEWER = "VIEWER"

class IdeaStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"

class ArtifactType(str, enum.Enum):
    OUTLINE = "OUTLINE"
    FACTS = "FACTS"
    FACTS_FINAL = "FACTS_final"
    DRAFT = "DRAFT"

FACTS_TYPES = (ArtifactType.FACTS.value, ArtifactType.FACTS_FINAL.value)

class ArtifactStatus(str, enum.Enum):
    PENDING_REVIEW = "PENDING_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

class PostStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    READY = "READY"
    SCHEDULED = "SCHEDULED"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"

class RiskLevel(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

class LeadStatus(str, enum.Enum):
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    QUALIFIED = "QUALIFIED"
    CONVERTED = "CONVERTED"
    LOST = "LOST"

class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    # `sub` claim from the identity provider
    auth_subject = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, index=True, nullable=True)
    name = Column(String, nullable=True)
    role = Column(String, nullable=False, default=Role.VIEWER.value)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    ideas = relationship("Idea", back_populates="user")
    artifacts = relationship("AIArtifact", back_populates="user")

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

class Idea(Base):
    __tablename__ = "ideas"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String, nullable=False, default=IdeaStatus.DRAFT.value, index=True)
    priority = Column(String, nullable=False, default="MEDIUM")
    tags = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    user = relationship("User", back_populates="ideas")
    artifacts = relationship("AIArtifact", back_populates="idea", order_by="AIArtifact.created_at")
    posts = relationship("Post", back_populates="idea")

class AIArtifact(Base):
    __tablename__ = "ai_artifacts"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    idea_id = Column(Integer, ForeignKey("ideas.id"), nullable=True, index=True)
    post_id = Column(Integer, ForeignKey("posts.id"), nullable=True, index=True)

    type = Column(String, nullable=False, index=True) # OUTLINE, FACTS, FACTS_final, DRAFT
    title = Column(String, nullable=False)
    # AI output as produced, rewritten by reviews
    content = Column(JSON, nullable=True)
    status = Column(String, nullable=False, default=ArtifactStatus.PENDING_REVIEW.value, index=True)
    approved = Column(Boolean, nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    # `metadata` is reserved on declarative classes
    meta = Column("metadata", JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    user = relationship("User", back_populates="artifacts")
    idea = relationship("Idea", back_populates="artifacts")
    post = relationship("Post", back_populates="artifacts")

class Post(Base):
    __tablename__ = "posts"
    id = Column(Integer, primary_key=True, index=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    idea_id = Column(Integer, ForeignKey("ideas.id"), nullable=True, index=True)

    title = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    content = Column(Text, nullable=True)
    status = Column(String, nullable=False, default=PostStatus.DRAFT.value, index=True)
    risk_level = Column(String, nullable=False, default=RiskLevel.LOW.value)

    meta_description = Column(Text, nullable=True)
    focus_keyword = Column(String, nullable=True)
    # SEO guardrail results, recomputed on every save
    flags = Column(JSON, nullable=False, default=dict)

    scheduled_at = Column(DateTime(timezone=True), nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    author = relationship("User")
    idea = relationship("Idea", back_populates="posts")
    artifacts = relationship("AIArtifact", back_populates="post")

class Media(Base):
    __tablename__ = "media"
    id = Column(Integer, primary_key=True, index=True)
    uploaded_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    url = Column(Text, nullable=False)
    key = Column(String, nullable=True) # provider object key / public id
    filename = Column(String, nullable=False)
    mimetype = Column(String, nullable=False, index=True)
    size = Column(Integer, nullable=False)
    width = Column(Integer, nullable=True)
    height = Column(Integer, nullable=True)
    provider = Column(String, nullable=False, index=True)
    alt_text = Column(Text, nullable=True)
    meta = Column("metadata", JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    uploaded_by = relationship("User")

class Lead(Base):
    __tablename__ = "leads"
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False) # stored lowercased
    name = Column(String, nullable=True)
    company = Column(String, nullable=True)
    message = Column(Text, nullable=True)
    source = Column(String, nullable=False, default="website")
    status = Column(String, nullable=False, default=LeadStatus.NEW.value, index=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
