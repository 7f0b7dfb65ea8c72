import re
from typing import Optional, Tuple

MIN_LENGTH = 8
MAX_LENGTH = 128


def validate_password_strength(password: str, email: Optional[str] = None) -> Tuple[bool, str]:
    """
    Validate password strength against required policy:
      - Between 8 and 128 characters
      - At least one uppercase letter
      - At least one lowercase letter
      - At least one digit
      - Does not contain the local part of the account's email
    Returns a tuple (is_valid, message). Message is empty when valid.
    """
    if not isinstance(password, str) or not password:
        return False, "Password is required."
    if len(password) < MIN_LENGTH:
        return False, f"Password must be at least {MIN_LENGTH} characters long."
    if len(password) > MAX_LENGTH:
        return False, f"Password must be at most {MAX_LENGTH} characters long."
    if not re.search(r"[A-Z]", password):
        return False, "Password must include at least one uppercase letter."
    if not re.search(r"[a-z]", password):
        return False, "Password must include at least one lowercase letter."
    if not re.search(r"[0-9]", password):
        return False, "Password must include at least one numeric digit."
    if email:
        local_part = email.split("@", 1)[0].lower()
        if len(local_part) >= 3 and local_part in password.lower():
            return False, "Password must not contain your email address."
    return True, ""
