# schemas.py (Pydantic v2)
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict
from datetime import datetime


# ---------- Users ----------
class UserBase(BaseModel):
    uid: str
    email: str = ""
    display_name: str = ""
    photo_url: str = ""
    handle: str = ""
    bio: str = ""
    tagline: str = ""
    website: str = ""
    tools: List[str] = []
    social_links: Dict[str, str] = {}

class UserUpdate(BaseModel):
    """Partial update for the caller's own profile"""
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    handle: Optional[str] = None
    bio: Optional[str] = None
    tagline: Optional[str] = None
    website: Optional[str] = None
    tools: Optional[List[str]] = None
    social_links: Optional[Dict[str, str]] = None

class UserRead(UserBase):
    project_count: int
    follower_count: int
    following_count: int
    total_likes: int
    is_featured: bool
    is_profile_complete: bool
    created_at: datetime
    updated_at: datetime
    last_login_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class UserProfileRead(UserRead):
    """Extended user profile with follow status"""
    published_project_count: int = 0  # project_count counts drafts too
    is_following: Optional[bool] = None  # True if current user follows this user
    is_followed_by: Optional[bool] = None  # True if this user follows current user

class HandleAvailability(BaseModel):
    handle: str
    available: bool


# ---------- Projects ----------
class ProjectBase(BaseModel):
    title: str = ""
    description: str = ""
    short_description: str = ""
    demo_url: str = ""
    github_url: str = ""
    thumbnail_url: str = ""
    screenshots: List[str] = []
    tool: str = ""
    category: str = "Other"
    tags: List[str] = []

class ProjectCreate(ProjectBase):
    title: str = Field(..., min_length=1, max_length=150)
    is_published: bool = True

class ProjectUpdate(BaseModel):
    """Schema for partial updates (PATCH) - all fields optional, counters excluded"""
    title: Optional[str] = Field(None, min_length=1, max_length=150)
    description: Optional[str] = None
    short_description: Optional[str] = None
    demo_url: Optional[str] = None
    github_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    screenshots: Optional[List[str]] = None
    tool: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    is_published: Optional[bool] = None

class ProjectRead(ProjectBase):
    id: str
    user_id: str
    likes: int
    views: int
    liked_by: List[str]
    is_featured: bool
    is_published: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

class ProjectPage(BaseModel):
    items: List[ProjectRead]
    cursor: Optional[str] = None
    has_more: bool

class ProjectOptions(BaseModel):
    tools: List[str]
    categories: List[str]


# ---------- Follows / Likes ----------
class FollowResult(BaseModel):
    following: bool
    changed: bool

class LikeResult(BaseModel):
    liked: bool
    changed: bool


# ---------- Files ----------
class UploadRead(BaseModel):
    url: str
    path: str
    content_type: str
    size: int


# ---------- Stats / Maintenance ----------
class PlatformStats(BaseModel):
    total_users: int
    total_projects: int
    all_projects: int

class CleanupReport(BaseModel):
    processed: int
    succeeded: int
    failed: int

class ReconcileReport(BaseModel):
    """Drift found as actual - stored; empty dicts mean the counters were consistent"""
    user: Dict[str, int]
    projects: Dict[str, int]
