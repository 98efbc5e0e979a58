from sqlalchemy import Column, String, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from database import Base, server_timestamp

class ProjectLike(Base):
    """One row per (project, user) pair; together they form the project's likedBy set."""
    __tablename__ = "project_likes"

    project_id = Column(String(32), ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String(128), ForeignKey("users.uid"), primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), default=server_timestamp, nullable=False)

    # Relationships
    project = relationship("Project", back_populates="like_rows")
