"""Validation utilities for AI Gallery API inputs."""

MAX_LENGTH = 100

NAME_BLACKLIST = "&<>/{}().'\""
PROMPT_BLACKLIST = NAME_BLACKLIST + ";"


class ValidationError(Exception):
    """User-friendly validation error.

    The message is intended to be displayed directly to the user.
    """

    pass


def sanitize(value: str, blacklist: str) -> str:
    """Remove blacklisted characters and surrounding whitespace."""
    return value.translate({ord(char): None for char in blacklist}).strip()


def _validate_text(value: str, blacklist: str, required: str, too_long: str) -> str:
    cleaned = sanitize(value or "", blacklist)
    if not cleaned:
        raise ValidationError(required)
    if len(cleaned) > MAX_LENGTH:
        raise ValidationError(too_long)
    return cleaned


def validate_album_name(value: str) -> str:
    """Return the cleaned album name.

    Raises:
        ValidationError: If the name is empty or longer than 100 characters
    """
    return _validate_text(
        value,
        NAME_BLACKLIST,
        "Album name is required.",
        "Album name must be less than 100 characters.",
    )


def validate_caption(value: str) -> str:
    """Return the cleaned image caption.

    Raises:
        ValidationError: If the caption is empty or longer than 100 characters
    """
    return _validate_text(
        value,
        NAME_BLACKLIST,
        "Image caption is required.",
        "Image caption must be less than 100 characters.",
    )


def validate_prompt(value: str) -> str:
    """Return the cleaned generation prompt.

    Raises:
        ValidationError: If the prompt is empty or longer than 100 characters
    """
    return _validate_text(
        value,
        PROMPT_BLACKLIST,
        "A prompt is required to generate an image.",
        "Prompt must be less than 100 characters long.",
    )
