"""
Comment adjacency detection.

Works on raw file bytes rather than decoded text so that attribute byte
offsets from the parser line up exactly, whatever the file's encoding.
"""

from typing import Optional

from commentcheck.parser import Attribute

COMMENT_MARKERS = (b"#", b"//")


def previous_line(file_bytes: bytes, offset: int) -> Optional[bytes]:
    """
    Return the physical line above the line containing offset.

    None when offset is on the first line of the file.
    """
    line_start = file_bytes.rfind(b"\n", 0, offset)
    if line_start < 0:
        return None
    prev_start = file_bytes.rfind(b"\n", 0, line_start) + 1
    return file_bytes[prev_start:line_start]


def is_comment_line(line: bytes) -> bool:
    """True for a single-line comment with some text after its marker."""
    line = line.strip()
    return any(line.startswith(marker) and len(line) > len(marker)
               for marker in COMMENT_MARKERS)


def is_preceded_by_comment(attribute: Attribute, file_bytes: Optional[bytes]) -> bool:
    """Whether the line directly above the attribute's name is a non-empty comment."""
    if file_bytes is None:
        return False
    line = previous_line(file_bytes, attribute.range.start.byte)
    return line is not None and is_comment_line(line)
