from sqlalchemy import Column, String, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base, server_timestamp

class Follow(Base):
    __tablename__ = "follows"
    __table_args__ = (
        CheckConstraint("follower_id <> following_id", name="ck_follow_no_self"),
    )

    # "{follower_id}_{following_id}", see services.follows.follow_key
    id = Column(String(260), primary_key=True)
    follower_id = Column(String(128), ForeignKey("users.uid"), nullable=False, index=True)
    following_id = Column(String(128), ForeignKey("users.uid"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=server_timestamp, nullable=False, index=True)

    follower = relationship("User", foreign_keys=[follower_id])
    following_user = relationship("User", foreign_keys=[following_id])
