from sqlalchemy import Column, String, ForeignKey, DateTime
from database import Base, server_timestamp

class HandleReservation(Base):
    __tablename__ = "handle_reservations"

    handle = Column(String(50), primary_key=True)  # normalized
    owner_id = Column(String(128), ForeignKey("users.uid"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=server_timestamp, nullable=False)
