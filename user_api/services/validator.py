"""
User Validator

Checks a candidate user against format rules and against the current store
contents for case-insensitive uniqueness of usernames and emails.
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from email_validator import EmailNotValidError, validate_email

from ..models import User, UserPayload
from .user_store import UserStore

USERNAME_PATTERN = re.compile(r"[A-Za-z0-9]+")
USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30
EMAIL_MAX_LENGTH = 254

USERNAME_INVALID = (
    "Username is required, should be between 3 and 30 characters "
    "and only contain letters and numbers."
)
EMAIL_REQUIRED = "Email is required and should be less than 254 characters."
EMAIL_INVALID = "Invalid email format."
USERNAME_TAKEN = "Username is already in use by another user."
EMAIL_TAKEN = "Email is already in use by another user."


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    error: str = ""


VALID = ValidationResult(True)

# A rule gets the candidate and every stored user except the one being
# updated, and returns True when the candidate passes.
Rule = Callable[[UserPayload, List[User]], bool]


def _username_well_formed(candidate: UserPayload, others: List[User]) -> bool:
    username = candidate.username
    return (
        bool(username)
        and USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH
        and USERNAME_PATTERN.fullmatch(username) is not None
    )


def _email_present(candidate: UserPayload, others: List[User]) -> bool:
    email = candidate.email
    return bool(email) and bool(email.strip()) and len(email) <= EMAIL_MAX_LENGTH


def _email_well_formed(candidate: UserPayload, others: List[User]) -> bool:
    try:
        validate_email(
            candidate.email,
            check_deliverability=False,
            globally_deliverable=False,
            allow_domain_literal=True,
        )
    except EmailNotValidError:
        return False
    return True


def _username_unique(candidate: UserPayload, others: List[User]) -> bool:
    username = candidate.username.lower()
    return all(user.username.lower() != username for user in others)


def _email_unique(candidate: UserPayload, others: List[User]) -> bool:
    email = candidate.email.lower()
    return all(user.email.lower() != email for user in others)


# Evaluated in order; the first failing rule decides the message.
RULES: List[Tuple[Rule, str]] = [
    (_username_well_formed, USERNAME_INVALID),
    (_email_present, EMAIL_REQUIRED),
    (_email_well_formed, EMAIL_INVALID),
    (_username_unique, USERNAME_TAKEN),
    (_email_unique, EMAIL_TAKEN),
]


def validate_user(
    candidate: UserPayload, store: UserStore, user_id: Optional[int] = None
) -> ValidationResult:
    """
    Validate a user before it is added to or updated in the store.

    Args:
        candidate: Username and email submitted by the client
        store: Store whose current contents define uniqueness
        user_id: Id of the record being updated, excluded from uniqueness
            checks so a user can resubmit its own username and email.
            None when creating.

    Returns:
        ValidationResult: valid, or invalid with the first failing rule's message
    """
    others = [user for user in store.get_all() if user.id != user_id]

    for rule, message in RULES:
        if not rule(candidate, others):
            return ValidationResult(False, message)

    return VALID
