from fold.errors import ValidationError

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128


def validate_password(password: str) -> None:
    """Validate password meets requirements.

    Requirements:
    - Between 8 and 128 characters

    Raises:
        ValidationError: If password doesn't meet requirements
    """
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError("Password too short")

    if len(password) > MAX_PASSWORD_LENGTH:
        raise ValidationError("Password too long")


def normalize_email(email: str) -> str:
    return email.strip().lower()
