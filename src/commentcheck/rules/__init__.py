"""
commentcheck.rules - Lint Rules

- base: Rule base class
- config: rule section decoding (FieldSpec, RuleConfig)
- comments: comment adjacency detection on raw bytes
- module_attribute_comments: requires comments above configured module attributes
"""

from .base import Rule
from .config import ConfigShape, FieldSpec, RuleConfig
from .comments import is_comment_line, is_preceded_by_comment, previous_line
from .module_attribute_comments import (
    ModuleAttributeCommentsRule,
    evaluate,
    format_message,
    locate_blocks,
)

__all__ = [
    "Rule",
    "ConfigShape",
    "FieldSpec",
    "RuleConfig",
    "is_comment_line",
    "is_preceded_by_comment",
    "previous_line",
    "ModuleAttributeCommentsRule",
    "evaluate",
    "format_message",
    "locate_blocks",
]
