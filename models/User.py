from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, JSON
from database import Base, server_timestamp

class User(Base):
    __tablename__ = "users"

    uid = Column(String(128), primary_key=True, index=True)  # Firebase uid
    email = Column(String(255), nullable=False, default="")
    display_name = Column(String(120), nullable=False, default="")
    photo_url = Column(String(500), nullable=False, default="")
    handle = Column(String(50), index=True, nullable=False, default="")  # lowercase, see HandleReservation
    bio = Column(Text, nullable=False, default="")
    tagline = Column(String(200), nullable=False, default="")
    website = Column(String(500), nullable=False, default="")
    tools = Column(JSON, nullable=False, default=list)
    social_links = Column(JSON, nullable=False, default=dict)

    # Denormalized counters, written only through the follow/project services
    project_count = Column(Integer, default=0, nullable=False)
    follower_count = Column(Integer, default=0, nullable=False)
    following_count = Column(Integer, default=0, nullable=False)
    total_likes = Column(Integer, default=0, nullable=False)

    is_featured = Column(Boolean, default=False, nullable=False)
    is_profile_complete = Column(Boolean, default=False, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), default=server_timestamp, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=server_timestamp, nullable=False)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
