from email_validator import EmailNotValidError
from email_validator import validate_email as check_email_syntax

from fitclub.core.modules.user.models import MEMBER_ROLES, STAFF_ROLES, UserRole, UserType
from fitclub.errors import ValidationError


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_email(email: str) -> None:
    """Validate the syntax of an already normalized email, without DNS lookups."""
    try:
        check_email_syntax(email, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError(f"Invalid email address: {e}") from e


def validate_password(password: str) -> None:
    """Validate password meets requirements.

    Requirements:
    - No whitespace characters
    - Minimum length of 6 characters

    Raises:
        ValidationError: If password doesn't meet requirements
    """
    if len(password) < 6:
        raise ValidationError("Password must be at least 6 characters long")

    if any(char.isspace() for char in password):
        raise ValidationError("Password cannot contain whitespace characters")


def validate_role(user_type: UserType, role: UserRole) -> None:
    allowed = STAFF_ROLES if user_type == UserType.STAFF else MEMBER_ROLES
    if role not in allowed:
        raise ValidationError(f"Role '{role}' is not allowed for {user_type} accounts")
