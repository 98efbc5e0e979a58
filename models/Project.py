from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Boolean, JSON
from sqlalchemy.orm import relationship
from database import Base, server_timestamp

class Project(Base):
    __tablename__ = "projects"

    id = Column(String(32), primary_key=True, index=True)
    user_id = Column(String(128), ForeignKey("users.uid"), nullable=False, index=True)

    # Content
    title = Column(String(150), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    short_description = Column(String(300), nullable=False, default="")
    demo_url = Column(String(500), nullable=False, default="")
    github_url = Column(String(500), nullable=False, default="")
    thumbnail_url = Column(String(500), nullable=False, default="")
    screenshots = Column(JSON, nullable=False, default=list)

    # Categorización
    tool = Column(String(50), nullable=False, default="", index=True)
    category = Column(String(50), nullable=False, default="Other", index=True)
    tags = Column(JSON, nullable=False, default=list)

    # Engagement metrics, likes == len(like_rows)
    likes = Column(Integer, default=0, nullable=False)
    views = Column(Integer, default=0, nullable=False)

    # Estado
    is_featured = Column(Boolean, default=False, nullable=False)
    is_published = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=server_timestamp, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=server_timestamp, nullable=False)

    # Relationships
    owner = relationship("User")
    like_rows = relationship("ProjectLike", back_populates="project", cascade="all, delete-orphan")

    @property
    def liked_by(self):
        return [like.user_id for like in self.like_rows]
