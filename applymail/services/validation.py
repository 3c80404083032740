"""
Validation utilities for application submissions.
"""

import logging
from typing import List

from applymail.core.errors import ValidationError
from applymail.schemas.application import ApplicationSubmission

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("last_name", "first_name", "target_role")


def missing_required_fields(submission: ApplicationSubmission) -> List[str]:
    """Return the form names of required fields that are blank after trimming"""
    fields = ApplicationSubmission.model_fields
    return [
        fields[name].alias
        for name in REQUIRED_FIELDS
        if not getattr(submission, name).strip()
    ]


def validate_submission(submission: ApplicationSubmission) -> ApplicationSubmission:
    """
    Check that last name, first name and target role are present.

    Args:
        submission: Applicant fields as received

    Returns:
        The same submission, for chaining

    Raises:
        ValidationError: when at least one required field is blank
    """
    missing = missing_required_fields(submission)
    if missing:
        logger.warning(f"Submission rejected, missing fields: {', '.join(missing)}")
        raise ValidationError("Champs obligatoires manquants", detail=", ".join(missing))
    return submission
