"""
commentcheck - HCL attribute comment checker

Requires that configured attributes of module calls in Terraform/HCL files
are documented by a comment on the line directly above them.
"""

__version__ = "0.1.0"

from commentcheck.errors import (
    CommentCheckError,
    ConfigurationError,
    DocumentRetrievalError,
    SinkError,
)
from commentcheck.issues import Issue, Severity
from commentcheck.parser import parse_file, parse_source
