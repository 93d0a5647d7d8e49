"""File name validation and sanitization for the local storage driver."""

import re

MAX_FILE_NAME_BYTES = 255

# Characters rejected by at least one common platform, plus control characters
INVALID_CHARACTERS = re.compile(r'[\x00-\x1f\x7f<>:"/\\|?*]')


def is_valid_file_name(name: str) -> bool:
    """Check that ``name`` is a single, portable path segment."""
    if not isinstance(name, str) or not name:
        return False
    if name in ('.', '..'):
        return False
    if INVALID_CHARACTERS.search(name):
        return False
    if name.endswith(('.', ' ')):
        return False
    if len(name.encode('utf-8')) > MAX_FILE_NAME_BYTES:
        return False
    return True


def sanitize_file_name(name: str) -> str:
    """Replace characters the storage can't hold with underscores."""
    cleaned = INVALID_CHARACTERS.sub('_', name).rstrip('. ')
    if not cleaned or cleaned in ('.', '..'):
        return '_'
    return cleaned
