from sqlalchemy import Column, Integer, String, Text, DateTime
from database import Base, server_timestamp

class MediaCleanupTask(Base):
    __tablename__ = "media_cleanup_tasks"

    entity_id = Column(String(128), primary_key=True)
    storage_prefix = Column(String(500), nullable=False)
    attempts = Column(Integer, default=0, nullable=False)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=server_timestamp, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True, index=True)
