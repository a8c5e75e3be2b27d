"""Contact request management utilities.

Contact requests are how a new institution asks to be onboarded. Approving a
request creates the institution from the request's fields.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from core.exceptions import (
    ContactRequestNotFoundError,
    InvalidStatusError,
    MissingFieldsError,
)
from models.contact_request import ContactRequestModel
from models.institution import InstitutionModel
from schemas.contact_request import ContactRequestCreate
from utils.institution_manager import InstitutionManager

logger = logging.getLogger(__name__)

CONTACT_REQUEST_STATUSES = ("pending", "approved", "rejected")


class ContactRequestManager:
    """Manages contact requests and their approval."""

    def __init__(self, db: Session):
        self.db = db

    def create_request(self, req: ContactRequestCreate) -> ContactRequestModel:
        """Store a new pending request.

        Raises:
            MissingFieldsError: If institution name, contact name, contact
                email or either suffix is blank.
        """
        required = (
            req.institution_name,
            req.contact_name,
            req.contact_email,
            req.student_email_suffix,
            req.teacher_email_suffix,
        )
        if any(not value or not value.strip() for value in required):
            raise MissingFieldsError()

        model = ContactRequestModel(
            institution_name=req.institution_name.strip(),
            contact_name=req.contact_name.strip(),
            contact_email=req.contact_email.strip(),
            contact_phone=req.contact_phone or None,
            website=req.website or None,
            student_email_suffix=req.student_email_suffix.strip(),
            teacher_email_suffix=req.teacher_email_suffix.strip(),
            message=req.message or None,
            estimated_students=req.estimated_students,
            estimated_teachers=req.estimated_teachers,
            status="pending",
        )
        self.db.add(model)
        self.db.commit()
        self.db.refresh(model)
        logger.info(
            "Institution access request %s saved for %s (pending approval)",
            model.id,
            model.institution_name,
        )
        return model

    def get_request(self, request_id: int) -> ContactRequestModel:
        model = (
            self.db.query(ContactRequestModel)
            .filter(ContactRequestModel.id == request_id)
            .first()
        )
        if not model:
            raise ContactRequestNotFoundError(request_id)
        return model

    def list_requests(self) -> List[ContactRequestModel]:
        return (
            self.db.query(ContactRequestModel)
            .order_by(ContactRequestModel.created_at.desc(), ContactRequestModel.id.desc())
            .all()
        )

    def institution_for_request(self, request_id: int) -> Optional[InstitutionModel]:
        return (
            self.db.query(InstitutionModel)
            .filter(InstitutionModel.contact_request_id == request_id)
            .first()
        )

    def set_status(self, request_id: Optional[int], status: Optional[str]) -> ContactRequestModel:
        """Change a request's status, creating its institution on approval.

        Approval is idempotent: the institution is linked back to the
        request, so approving the same request again does not create a
        second one.

        Args:
            request_id: Contact request ID.
            status: One of 'pending', 'approved' or 'rejected'.

        Returns:
            The updated request.

        Raises:
            MissingFieldsError: If ID or status is missing.
            InvalidStatusError: If status is not allowed.
            ContactRequestNotFoundError: If the request does not exist.
        """
        if not request_id or not status:
            raise MissingFieldsError("Request ID and status are required")
        if status not in CONTACT_REQUEST_STATUSES:
            raise InvalidStatusError(status)

        model = self.get_request(request_id)
        model.status = status

        if status == "approved" and self.institution_for_request(model.id) is None:
            institution = InstitutionManager(self.db).create_institution(
                name=model.institution_name,
                student_email_suffix=model.student_email_suffix,
                teacher_email_suffix=model.teacher_email_suffix,
                address=model.website,
                contact_request_id=model.id,
                commit=False,
            )
            logger.info(
                "Approved contact request %s, created institution %s",
                model.id,
                institution.id,
            )

        self.db.commit()
        self.db.refresh(model)
        logger.info("Contact request %s set to %s", model.id, status)
        return model
