from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from legalsite.db.base import Base


class ContactSubmission(Base):
    """
    A contact-form submission. Rows are insert-only; nothing updates or
    deletes them.
    """

    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    subject = Column(String(255))
    message = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<ContactSubmission(id={self.id}, subject={self.subject})>"
