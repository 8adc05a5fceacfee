import re
from typing import Optional

PROFANITY_PATTERN = re.compile(r"\b(badword1|badword2|badword3)\b", re.IGNORECASE)


def contains_profanity(text: Optional[str]) -> bool:
    if text is None:
        return False
    return PROFANITY_PATTERN.search(text) is not None


def sanitize(text: Optional[str]) -> Optional[str]:
    """Trim and collapse runs of whitespace to a single space."""
    if text is None:
        return None
    return re.sub(r"\s+", " ", text.strip())


def is_valid_review_content(title: Optional[str], content: Optional[str]) -> bool:
    """Title is required; content is optional but may not be blank when given."""
    if title is None or not title.strip():
        return False
    return content is None or bool(content.strip())
