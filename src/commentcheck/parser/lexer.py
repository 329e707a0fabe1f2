"""
HCL Lexer (Tokenizer)

Converts raw .tf/.hcl source into a stream of tokens.
Handles: identifiers, quoted templates, heredocs, numbers, punctuation,
operators and all three comment styles (#, //, /* */).

Every token carries its start and end position as line, column and byte
offset into the original file bytes, so ranges can be matched back against
the raw content later.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, List, Optional, Tuple


class TokenType(Enum):
    """Types of tokens in HCL native syntax."""
    IDENTIFIER = auto()      # module, source, instance_type, true, null
    STRING = auto()          # "quoted string" without interpolation
    TEMPLATE = auto()        # "quoted ${interpolated} string"
    HEREDOC = auto()         # <<EOF ... EOF
    NUMBER = auto()          # 123, 0.5, 1e10
    EQUALS = auto()          # =
    LBRACE = auto()          # {
    RBRACE = auto()          # }
    LBRACKET = auto()        # [
    RBRACKET = auto()        # ]
    LPAREN = auto()          # (
    RPAREN = auto()          # )
    COMMA = auto()           # ,
    COLON = auto()           # :
    DOT = auto()             # .
    ELLIPSIS = auto()        # ...
    QUESTION = auto()        # ?
    ARROW = auto()           # =>
    OPERATOR = auto()        # == != < > <= >= && || ! + - * / %
    COMMENT = auto()         # # ..., // ..., /* ... */
    NEWLINE = auto()         # \n
    EOF = auto()             # End of file


@dataclass
class Token:
    """A single token from the lexer."""
    type: TokenType
    value: str
    line: int
    column: int
    byte: int
    end_line: int = 0
    end_column: int = 0
    end_byte: int = 0

    def __repr__(self):
        if self.type == TokenType.NEWLINE:
            return f"Token({self.type.name}, '\\n', L{self.line}:{self.column})"
        return f"Token({self.type.name}, {self.value!r}, L{self.line}:{self.column})"


class LexerError(Exception):
    """Error during lexical analysis."""
    def __init__(self, message: str, line: int, column: int, filename: str = "<unknown>"):
        self.line = line
        self.column = column
        self.filename = filename
        self.message = message
        super().__init__(f"{filename}:{line}:{column}: lexer error: {message}")


UTF8_BOM = b"\xef\xbb\xbf"


def decode_source(data: bytes) -> Tuple[str, str, int]:
    """
    Decode raw file bytes for lexing.

    Returns (text, encoding, byte_offset) where byte_offset is the number of
    leading bytes (a UTF-8 BOM) that are not part of the text.
    """
    if data.startswith(UTF8_BOM):
        return data[len(UTF8_BOM):].decode("utf-8"), "utf-8", len(UTF8_BOM)
    try:
        return data.decode("utf-8"), "utf-8", 0
    except UnicodeDecodeError:
        # latin-1 always succeeds and keeps one byte per character
        return data.decode("latin-1"), "latin-1", 0


class Lexer:
    """
    Tokenizer for HCL native syntax.

    Usage:
        lexer = Lexer(source_text, "main.tf")
        tokens = list(lexer.tokenize())
    """

    SINGLE_CHAR = {
        '{': TokenType.LBRACE,
        '}': TokenType.RBRACE,
        '[': TokenType.LBRACKET,
        ']': TokenType.RBRACKET,
        '(': TokenType.LPAREN,
        ')': TokenType.RPAREN,
        ',': TokenType.COMMA,
        ':': TokenType.COLON,
        '?': TokenType.QUESTION,
    }

    # Longest operators first
    OPERATORS = ('==', '!=', '<=', '>=', '&&', '||', '<', '>', '!', '+', '-', '*', '/', '%')

    @staticmethod
    def _is_ident_start(ch: str) -> bool:
        """Check if character can start an identifier (letter or underscore)."""
        return ch == '_' or ch.isalpha()

    @staticmethod
    def _is_ident_cont(ch: str) -> bool:
        """Check if character can continue an identifier."""
        return ch.isalnum() or ch in ('_', '-')

    def __init__(self, source: str, filename: str = "<unknown>",
                 encoding: str = "utf-8", byte_offset: int = 0):
        self.source = source
        self.filename = filename
        self.encoding = encoding
        self.pos = 0
        self.line = 1
        self.column = 1
        self.byte = byte_offset
        self.length = len(source)

    @classmethod
    def from_bytes(cls, data: bytes, filename: str = "<unknown>") -> "Lexer":
        """Build a lexer over raw file bytes, keeping byte offsets aligned with them."""
        text, encoding, offset = decode_source(data)
        return cls(text, filename, encoding=encoding, byte_offset=offset)

    def _error(self, message: str, line: int = None, column: int = None) -> LexerError:
        return LexerError(message, line or self.line, column or self.column, self.filename)

    def _current(self) -> Optional[str]:
        """Get current character or None if at end."""
        if self.pos >= self.length:
            return None
        return self.source[self.pos]

    def _peek(self, offset: int = 1) -> Optional[str]:
        """Peek ahead by offset characters."""
        pos = self.pos + offset
        if pos >= self.length:
            return None
        return self.source[pos]

    def _char_width(self, ch: str) -> int:
        if ch < '\x80':
            return 1
        return len(ch.encode(self.encoding))

    def _advance(self) -> Optional[str]:
        """Advance one character and return it."""
        ch = self._current()
        if ch is not None:
            self.pos += 1
            self.byte += self._char_width(ch)
            if ch == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        return ch

    def _skip_whitespace(self) -> None:
        """Skip spaces and tabs (but not newlines)."""
        while self._current() in (' ', '\t', '\r'):
            self._advance()

    def _read_escape(self, result: List[str]) -> None:
        """Read a backslash escape inside a quoted string."""
        line, column = self.line, self.column
        self._advance()  # backslash
        esc = self._advance()
        if esc is None:
            raise self._error("Unterminated string", line, column)
        simple = {'n': '\n', 'r': '\r', 't': '\t', '"': '"', '\\': '\\'}
        if esc in simple:
            result.append(simple[esc])
            return
        if esc in ('u', 'U'):
            width = 4 if esc == 'u' else 8
            digits = []
            for _ in range(width):
                ch = self._current()
                if ch is None or ch not in '0123456789abcdefABCDEF':
                    raise self._error(f"Invalid unicode escape \\{esc}", line, column)
                digits.append(self._advance())
            result.append(chr(int(''.join(digits), 16)))
            return
        raise self._error(f"Invalid escape sequence \\{esc}", line, column)

    def _read_interpolation(self, result: List[str]) -> None:
        """Read a ${ ... } or %{ ... } sequence verbatim, including nested braces and strings."""
        line, column = self.line, self.column
        result.append(self._advance())  # $ or %
        result.append(self._advance())  # {
        depth = 1
        while depth:
            ch = self._current()
            if ch is None:
                raise self._error("Unterminated template interpolation", line, column)
            if ch == '"':
                inner, _ = self._read_quoted()
                result.append('"' + inner + '"')
                continue
            if ch == '{':
                depth += 1
            elif ch == '}':
                depth -= 1
            result.append(self._advance())

    def _read_quoted(self) -> Tuple[str, bool]:
        """
        Read a quoted template.

        Returns (value, is_template). Escapes are decoded; interpolation
        sequences are kept as written.
        """
        start_line = self.line
        start_col = self.column
        self._advance()  # opening quote

        result = []
        is_template = False
        while True:
            ch = self._current()
            if ch is None or ch == '\n':
                raise self._error("Unterminated string", start_line, start_col)
            if ch == '"':
                self._advance()
                break
            if ch == '\\':
                self._read_escape(result)
            elif ch in ('$', '%') and self._peek() == ch and self._peek(2) == '{':
                # $${ and %%{ are literal
                self._advance()
                result.append(self._advance())
                result.append(self._advance())
            elif ch in ('$', '%') and self._peek() == '{':
                is_template = True
                self._read_interpolation(result)
            else:
                result.append(self._advance())

        return ''.join(result), is_template

    def _read_heredoc(self) -> str:
        """Read a heredoc (<<EOF or <<-EOF) through its closing marker line."""
        start_line = self.line
        start_col = self.column
        self._advance()
        self._advance()  # <<
        indented = False
        if self._current() == '-':
            indented = True
            self._advance()
        marker = self._read_identifier()
        if not marker:
            raise self._error("Heredoc marker expected after <<", start_line, start_col)
        self._skip_whitespace()
        if self._current() != '\n':
            raise self._error("Heredoc marker must be followed by a newline", start_line, start_col)
        self._advance()

        lines = []
        while True:
            if self._current() is None:
                raise self._error(f"Unterminated heredoc {marker}", start_line, start_col)
            line_chars = []
            while self._current() not in (None, '\n'):
                line_chars.append(self._advance())
            text = ''.join(line_chars)
            if text.strip() == marker:
                break
            lines.append(text.rstrip('\r'))
            self._advance()  # newline

        if indented:
            widths = [len(l) - len(l.lstrip(' \t')) for l in lines if l.strip()]
            strip = min(widths) if widths else 0
            lines = [l[strip:] for l in lines]
        return ''.join(l + '\n' for l in lines)

    def _read_identifier(self) -> str:
        """Read an identifier."""
        result = []
        while True:
            ch = self._current()
            if ch is None or not self._is_ident_cont(ch):
                break
            result.append(self._advance())
        return ''.join(result)

    def _read_number(self) -> str:
        """Read a number (integer, decimal or exponent form)."""
        result = []
        while self._current() is not None and self._current().isdigit():
            result.append(self._advance())
        if self._current() == '.' and self._peek() is not None and self._peek().isdigit():
            result.append(self._advance())
            while self._current() is not None and self._current().isdigit():
                result.append(self._advance())
        if self._current() in ('e', 'E'):
            nxt = self._peek()
            if nxt is not None and (nxt.isdigit() or (nxt in '+-' and (self._peek(2) or '').isdigit())):
                result.append(self._advance())
                if self._current() in ('+', '-'):
                    result.append(self._advance())
                while self._current() is not None and self._current().isdigit():
                    result.append(self._advance())
        return ''.join(result)

    def _read_line_comment(self) -> str:
        """Read a # or // comment up to (not including) the end of line."""
        result = []
        while True:
            ch = self._current()
            if ch is None or ch == '\n':
                break
            result.append(self._advance())
        return ''.join(result).rstrip('\r')

    def _read_block_comment(self) -> str:
        """Read a /* ... */ comment, which may span lines."""
        start_line = self.line
        start_col = self.column
        result = [self._advance(), self._advance()]
        while True:
            ch = self._current()
            if ch is None:
                raise self._error("Unterminated block comment", start_line, start_col)
            if ch == '*' and self._peek() == '/':
                result.append(self._advance())
                result.append(self._advance())
                break
            result.append(self._advance())
        return ''.join(result)

    def _make(self, token_type: TokenType, value: str, line: int, column: int, byte: int) -> Token:
        return Token(token_type, value, line, column, byte, self.line, self.column, self.byte)

    def tokenize(self, include_comments: bool = False) -> Iterator[Token]:
        """
        Generate tokens from the source.

        NEWLINE tokens are always emitted because they terminate attributes.

        Args:
            include_comments: If True, emit COMMENT tokens. Otherwise skip them.
        """
        while True:
            self._skip_whitespace()

            ch = self._current()
            start_line = self.line
            start_col = self.column
            start_byte = self.byte

            if ch is None:
                yield self._make(TokenType.EOF, '', start_line, start_col, start_byte)
                break

            if ch == '\n':
                self._advance()
                yield self._make(TokenType.NEWLINE, '\n', start_line, start_col, start_byte)
                continue

            # Comments
            if ch == '#' or (ch == '/' and self._peek() == '/'):
                comment = self._read_line_comment()
                if include_comments:
                    yield self._make(TokenType.COMMENT, comment, start_line, start_col, start_byte)
                continue

            if ch == '/' and self._peek() == '*':
                comment = self._read_block_comment()
                if include_comments:
                    yield self._make(TokenType.COMMENT, comment, start_line, start_col, start_byte)
                continue

            if ch == '"':
                value, is_template = self._read_quoted()
                token_type = TokenType.TEMPLATE if is_template else TokenType.STRING
                yield self._make(token_type, value, start_line, start_col, start_byte)
                continue

            if ch == '<' and self._peek() == '<':
                value = self._read_heredoc()
                yield self._make(TokenType.HEREDOC, value, start_line, start_col, start_byte)
                continue

            if ch == '=':
                self._advance()
                if self._current() == '=':
                    self._advance()
                    yield self._make(TokenType.OPERATOR, '==', start_line, start_col, start_byte)
                elif self._current() == '>':
                    self._advance()
                    yield self._make(TokenType.ARROW, '=>', start_line, start_col, start_byte)
                else:
                    yield self._make(TokenType.EQUALS, '=', start_line, start_col, start_byte)
                continue

            if ch == '.':
                if self._peek() == '.' and self._peek(2) == '.':
                    self._advance()
                    self._advance()
                    self._advance()
                    yield self._make(TokenType.ELLIPSIS, '...', start_line, start_col, start_byte)
                else:
                    self._advance()
                    yield self._make(TokenType.DOT, '.', start_line, start_col, start_byte)
                continue

            if ch in self.SINGLE_CHAR:
                self._advance()
                yield self._make(self.SINGLE_CHAR[ch], ch, start_line, start_col, start_byte)
                continue

            operator = next(
                (op for op in self.OPERATORS if self.source.startswith(op, self.pos)),
                None,
            )
            if operator is not None:
                for _ in operator:
                    self._advance()
                yield self._make(TokenType.OPERATOR, operator, start_line, start_col, start_byte)
                continue

            if ch.isdigit():
                value = self._read_number()
                yield self._make(TokenType.NUMBER, value, start_line, start_col, start_byte)
                continue

            if self._is_ident_start(ch):
                value = self._read_identifier()
                yield self._make(TokenType.IDENTIFIER, value, start_line, start_col, start_byte)
                continue

            raise self._error(f"Unexpected character {ch!r}", start_line, start_col)

    def tokenize_all(self, include_comments: bool = False) -> List[Token]:
        """Convenience method to get all tokens as a list."""
        return list(self.tokenize(include_comments))


def tokenize_file(filepath: str, **kwargs) -> List[Token]:
    """Tokenize a file and return all tokens. Handles BOM and encoding fallback."""
    with open(filepath, 'rb') as f:
        data = f.read()
    return Lexer.from_bytes(data, filename=filepath).tokenize_all(**kwargs)
