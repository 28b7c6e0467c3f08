"""Tag path validation and merging.

Tags are hierarchical facet paths such as ``/projects/alpha``. A path must
start with ``/`` (the root ``/`` alone is accepted); a backslash escapes the
next character, so a path may not end on a lone backslash.
"""

import re

# "/" followed by plain or backslash-escaped characters
TAG_PATH_PATTERN = re.compile(r"/(?:[^\\]|\\.)*", re.DOTALL)


class TagValidationError(ValueError):
    """Raised when a candidate tag does not match the tag path grammar."""


def normalize_tag(candidate: str) -> str:
    """Trim and lower-case a candidate tag."""
    return candidate.strip().lower()


def validate_tag(path: str) -> None:
    """Check a normalized tag path against the grammar.

    Raises:
        TagValidationError: With a human-readable reason
    """
    if not path:
        raise TagValidationError("Tag path cannot be empty")
    if not path.startswith("/"):
        raise TagValidationError("Tag path must start with '/'")
    if not TAG_PATH_PATTERN.fullmatch(path):
        raise TagValidationError("Tag path has unmatched escape character at the end")


def parse_tag(candidate: str) -> str:
    """Normalize and validate user input, returning the tag to store."""
    tag = normalize_tag(candidate)
    validate_tag(tag)
    return tag


def merge_tag(tags: list[str], candidate: str) -> list[str]:
    """Return ``tags`` with ``candidate`` appended if not already present.

    The input list is not modified. A tag that is already present is ignored
    rather than reported.

    Raises:
        TagValidationError: If the candidate is invalid
    """
    tag = parse_tag(candidate)
    if tag in tags:
        return list(tags)
    return [*tags, tag]
