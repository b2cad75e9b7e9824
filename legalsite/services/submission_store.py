import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from legalsite.core.errors import StoreFailure
from legalsite.models.submission import ContactSubmission
from legalsite.schemas.contact import StoredSubmission, ValidatedSubmission

logger = logging.getLogger(__name__)


class SubmissionStore:
    """Insert-only persistence for contact submissions."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def insert(self, record: ValidatedSubmission) -> StoredSubmission:
        row = ContactSubmission(
            name=record.name,
            email=record.email,
            phone=record.phone,
            subject=record.subject,
            message=record.message,
        )
        try:
            self.db.add(row)
            self.db.commit()
            # id and created_at are assigned by the database
            self.db.refresh(row)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreFailure("Could not store contact submission") from exc

        logger.info("Contact submission stored id=%s", row.id)
        return StoredSubmission.model_validate(row)
