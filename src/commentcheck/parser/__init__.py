"""
commentcheck.parser - HCL Source Reader

Lexer and parser for HCL native syntax (.tf / .hcl files).
Converts source into bodies, blocks and attributes with precise ranges.
"""

from commentcheck.parser.lexer import Lexer, Token, TokenType, LexerError, tokenize_file
from commentcheck.parser.parser import (
    Parser,
    ParseError,
    parse_file,
    parse_source,
    # Tree types
    Pos,
    Range,
    Expression,
    Attribute,
    Body,
    Block,
    File,
)

__all__ = [
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    "LexerError",
    "tokenize_file",
    # Parser
    "Parser",
    "ParseError",
    "parse_file",
    "parse_source",
    # Tree types
    "Pos",
    "Range",
    "Expression",
    "Attribute",
    "Body",
    "Block",
    "File",
]
