from typing import Optional

from lending_library.models import UserType

NAME_MIN, NAME_MAX = 3, 100
TEXT_MIN, TEXT_MAX = 2, 150


class TextValidator:
    """Field checks for user and book forms.

    Each check returns an error message, or None when the value is
    acceptable. Values are compared after trimming.
    """

    @staticmethod
    def clean(text: Optional[str]) -> str:
        if text is None:
            return ""
        return str(text).strip()

    @staticmethod
    def validate_name(name: Optional[str]) -> Optional[str]:
        v = TextValidator.clean(name)
        if len(v) < NAME_MIN:
            return f"Name must be at least {NAME_MIN} characters"
        if len(v) > NAME_MAX:
            return "Name is too long"
        # letters of any script (accented Latin included) and spaces
        if not all(ch.isalpha() or ch == " " for ch in v):
            return "Name may only contain letters and spaces"
        return None

    @staticmethod
    def validate_title_or_author(value: Optional[str], field_name: str = "Field") -> Optional[str]:
        v = TextValidator.clean(value)
        if len(v) < TEXT_MIN:
            return f"{field_name} must be at least {TEXT_MIN} characters"
        if len(v) > TEXT_MAX:
            return f"{field_name} must be at most {TEXT_MAX} characters"
        return None

    @staticmethod
    def validate_user_type(user_type) -> Optional[str]:
        if UserType.parse(user_type) is None:
            return "Select a valid user type"
        return None

    @staticmethod
    def missing(*values) -> bool:
        """True if any required value is absent or blank."""
        return any(v is None or not str(v).strip() for v in values)
