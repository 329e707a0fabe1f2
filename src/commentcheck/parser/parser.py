"""
HCL Parser

Converts a token stream from the lexer into a tree of bodies, blocks and
attributes. Every node carries a source range with line, column and byte
offsets so that callers can match nodes back against the raw file bytes.

Only the structure is interpreted. Attribute expressions are kept as token
runs; literal expressions (strings, numbers, bools, null, tuples and objects)
can be evaluated on demand, which is enough for reading configuration files.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from commentcheck.parser.lexer import Lexer, Token, TokenType


@dataclass(frozen=True)
class Pos:
    """A position in a source file. Line and column are 1-based, byte is 0-based."""
    line: int
    column: int
    byte: int

    def to_dict(self) -> Dict[str, int]:
        return {'line': self.line, 'column': self.column, 'byte': self.byte}


@dataclass(frozen=True)
class Range:
    """A span of a source file; end is exclusive."""
    filename: str
    start: Pos
    end: Pos

    def __str__(self):
        if self.start.line == self.end.line:
            return f"{self.filename}:{self.start.line},{self.start.column}-{self.end.column}"
        return (f"{self.filename}:{self.start.line},{self.start.column}"
                f"-{self.end.line},{self.end.column}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'filename': self.filename,
            'start': self.start.to_dict(),
            'end': self.end.to_dict(),
        }


class ParseError(Exception):
    """Error during parsing."""
    def __init__(self, message: str, token: Token = None, filename: str = "<unknown>"):
        self.token = token
        self.filename = filename
        self.line = token.line if token else 0
        self.column = token.column if token else 0
        self.message = message
        if token:
            super().__init__(f"{filename}:{token.line}:{token.column}: parse error: {message}")
        else:
            super().__init__(f"{filename}: parse error: {message}")


def _token_start(token: Token) -> Pos:
    return Pos(token.line, token.column, token.byte)


def _token_end(token: Token) -> Pos:
    return Pos(token.end_line, token.end_column, token.end_byte)


@dataclass
class Expression:
    """The token run making up an attribute's value."""
    tokens: List[Token]
    range: Range

    def value(self) -> Any:
        """
        Evaluate a literal expression.

        Raises ParseError for anything that needs an evaluation context
        (references, function calls, operators, template interpolation).
        """
        evaluator = _LiteralEvaluator(self.tokens, self.range.filename)
        result = evaluator.evaluate()
        if evaluator.pos < len(evaluator.tokens):
            raise ParseError("Only literal values are allowed here",
                             evaluator.tokens[evaluator.pos], self.range.filename)
        return result


@dataclass
class Attribute:
    """A name = expression pair."""
    name: str
    expr: Expression
    range: Range
    name_range: Range

    def __repr__(self):
        return f"Attribute({self.name} @ {self.range})"

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'range': self.range.to_dict()}


@dataclass
class Body:
    """The contents of a file or of a block: attributes by name plus nested blocks."""
    attributes: Dict[str, Attribute] = field(default_factory=dict)
    blocks: List['Block'] = field(default_factory=list)
    range: Optional[Range] = None

    def get_blocks(self, block_type: str = None) -> List['Block']:
        """Get nested blocks, optionally filtered by type."""
        if block_type is None:
            return list(self.blocks)
        return [b for b in self.blocks if b.type == block_type]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'attributes': [a.to_dict() for a in self.attributes.values()],
            'blocks': [b.to_dict() for b in self.blocks],
        }


@dataclass
class Block:
    """A block: type "label" ... { body }"""
    type: str
    labels: List[str]
    body: Body
    def_range: Range
    type_range: Range
    label_ranges: List[Range] = field(default_factory=list)
    range: Optional[Range] = None

    def __repr__(self):
        labels = ' '.join(f'"{l}"' for l in self.labels)
        return f"Block({self.type} {labels}, {len(self.body.attributes)} attributes)"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'labels': list(self.labels),
            'range': self.range.to_dict() if self.range else None,
            'body': self.body.to_dict(),
        }


@dataclass
class File:
    """A parsed source file together with its raw bytes."""
    filename: str
    bytes: bytes
    body: Body

    def __repr__(self):
        return f"File({self.filename}, {len(self.body.blocks)} blocks)"


class Parser:
    """
    Parser for HCL native syntax.

    Usage:
        parser = Parser(tokens, "main.tf")
        body = parser.parse()
    """

    OPENERS = (TokenType.LBRACE, TokenType.LBRACKET, TokenType.LPAREN)
    CLOSERS = (TokenType.RBRACE, TokenType.RBRACKET, TokenType.RPAREN)

    def __init__(self, tokens: List[Token], filename: str = "<unknown>"):
        self.tokens = [t for t in tokens if t.type != TokenType.COMMENT]
        self.filename = filename
        self.pos = 0
        self.length = len(self.tokens)

    def _error(self, message: str, token: Token = None) -> ParseError:
        return ParseError(message, token, self.filename)

    def _range(self, start: Token, end: Token) -> Range:
        return Range(self.filename, _token_start(start), _token_end(end))

    def _current(self) -> Optional[Token]:
        """Get current token or None if at end."""
        if self.pos >= self.length:
            return None
        return self.tokens[self.pos]

    def _peek(self, offset: int = 1) -> Optional[Token]:
        """Peek ahead by offset tokens."""
        pos = self.pos + offset
        if pos >= self.length:
            return None
        return self.tokens[pos]

    def _advance(self) -> Optional[Token]:
        """Advance one token and return the previous one."""
        token = self._current()
        if token is not None:
            self.pos += 1
        return token

    def _expect(self, token_type: TokenType, message: str = None) -> Token:
        """Expect a specific token type, raise error if not found."""
        token = self._current()
        if token is None:
            raise self._error(message or f"Expected {token_type.name}, got end of file")
        if token.type != token_type:
            raise self._error(message or f"Expected {token_type.name}, got {token.type.name}", token)
        return self._advance()

    def parse(self) -> Body:
        """Parse the token stream into the file's root body."""
        first = self._current()
        body = self._parse_body(closing=None)
        last = self._current() or first
        if first is not None:
            body.range = self._range(first, last)
        return body

    def _parse_body(self, closing: Optional[TokenType]) -> Body:
        """Parse attributes and blocks until the closing token (or EOF for the root body)."""
        body = Body()

        while True:
            token = self._current()

            if token is None or token.type == TokenType.EOF:
                if closing is not None:
                    raise self._error("Unclosed configuration block", token)
                break

            if token.type == TokenType.NEWLINE:
                self._advance()
                continue

            if token.type == TokenType.RBRACE:
                if closing == TokenType.RBRACE:
                    break
                self._advance()
                raise self._error("Unexpected closing brace '}' (unbalanced braces?)", token)

            if token.type != TokenType.IDENTIFIER:
                raise self._error("An argument or block definition is required here", token)

            item = self._parse_body_item()
            if isinstance(item, Attribute):
                if item.name in body.attributes:
                    previous = body.attributes[item.name]
                    raise self._error(
                        f"Duplicate argument {item.name!r}; it was already set at "
                        f"line {previous.range.start.line}",
                        token,
                    )
                body.attributes[item.name] = item
            else:
                body.blocks.append(item)

        return body

    def _parse_body_item(self) -> Union[Attribute, Block]:
        """Parse an attribute (name = expr) or a block (type labels { body })."""
        name_token = self._advance()
        next_token = self._current()

        if next_token is not None and next_token.type == TokenType.EQUALS:
            self._advance()
            return self._parse_attribute(name_token, next_token)

        if next_token is not None and next_token.type in (
                TokenType.STRING, TokenType.TEMPLATE, TokenType.IDENTIFIER, TokenType.LBRACE):
            return self._parse_block(name_token)

        raise self._error(
            f"An argument or block definition is required here; "
            f"expected '=' or a block after {name_token.value!r}",
            next_token,
        )

    def _parse_attribute(self, name_token: Token, equals: Token) -> Attribute:
        tokens = self._parse_expression_tokens()
        if not tokens:
            raise self._error(f"Missing expression for {name_token.value!r}", equals)
        expr = Expression(tokens=tokens, range=self._range(tokens[0], tokens[-1]))
        return Attribute(
            name=name_token.value,
            expr=expr,
            range=self._range(name_token, tokens[-1]),
            name_range=self._range(name_token, name_token),
        )

    def _parse_expression_tokens(self) -> List[Token]:
        """
        Collect the tokens of an expression.

        The expression ends at a newline (or EOF, or the closing brace of a
        single-line block) outside any brackets; inside brackets newlines are
        insignificant.
        """
        tokens = []
        stack = []
        pairs = dict(zip(self.CLOSERS, self.OPENERS))

        while True:
            token = self._current()
            if token is None or token.type == TokenType.EOF:
                if stack:
                    raise self._error("Unclosed bracket in expression", token)
                break

            if token.type == TokenType.NEWLINE:
                if not stack:
                    break
                self._advance()
                continue

            if token.type in self.OPENERS:
                stack.append(token.type)
            elif token.type in self.CLOSERS:
                if not stack:
                    if token.type == TokenType.RBRACE:
                        break
                    raise self._error(f"Unexpected {token.value!r} in expression", token)
                if stack[-1] != pairs[token.type]:
                    raise self._error(f"Mismatched {token.value!r} in expression", token)
                stack.pop()
            elif (not stack and tokens and token.type == TokenType.IDENTIFIER
                    and self._peek() is not None and self._peek().type == TokenType.EQUALS):
                raise self._error(
                    "Missing newline after argument; each argument must be on its own line",
                    token)

            tokens.append(self._advance())

        return tokens

    def _parse_block(self, type_token: Token) -> Block:
        labels = []
        label_ranges = []
        while True:
            token = self._current()
            if token.type == TokenType.TEMPLATE:
                raise self._error("Block labels may not contain template sequences", token)
            if token.type not in (TokenType.STRING, TokenType.IDENTIFIER):
                break
            self._advance()
            labels.append(token.value)
            label_ranges.append(self._range(token, token))

        open_brace = self._expect(
            TokenType.LBRACE, f"Expected '{{' to open the {type_token.value!r} block")
        body = self._parse_body(closing=TokenType.RBRACE)
        close_brace = self._expect(TokenType.RBRACE)
        body.range = self._range(open_brace, close_brace)

        return Block(
            type=type_token.value,
            labels=labels,
            body=body,
            def_range=self._range(type_token, open_brace),
            type_range=self._range(type_token, type_token),
            label_ranges=label_ranges,
            range=self._range(type_token, close_brace),
        )


class _LiteralEvaluator:
    """Evaluates literal expressions from a token run."""

    KEYWORDS = {'true': True, 'false': False, 'null': None}

    def __init__(self, tokens: List[Token], filename: str):
        self.tokens = [t for t in tokens if t.type != TokenType.NEWLINE]
        self.filename = filename
        self.pos = 0

    def _current(self) -> Optional[Token]:
        if self.pos >= len(self.tokens):
            return None
        return self.tokens[self.pos]

    def _advance(self) -> Token:
        token = self._current()
        self.pos += 1
        return token

    def _error(self, message: str, token: Token = None) -> ParseError:
        return ParseError(message, token or self._current(), self.filename)

    def evaluate(self) -> Any:
        token = self._current()
        if token is None:
            raise self._error("Expected a value")

        if token.type in (TokenType.STRING, TokenType.HEREDOC):
            self._advance()
            if token.type == TokenType.HEREDOC and ('${' in token.value or '%{' in token.value):
                raise self._error("Template sequences are not allowed here", token)
            return token.value
        if token.type == TokenType.NUMBER:
            self._advance()
            return _number(token.value)
        if token.type == TokenType.OPERATOR and token.value == '-':
            self._advance()
            number = self._current()
            if number is None or number.type != TokenType.NUMBER:
                raise self._error("Only literal values are allowed here", token)
            self._advance()
            return -_number(number.value)
        if token.type == TokenType.IDENTIFIER and token.value in self.KEYWORDS:
            self._advance()
            return self.KEYWORDS[token.value]
        if token.type == TokenType.LBRACKET:
            return self._evaluate_tuple()
        if token.type == TokenType.LBRACE:
            return self._evaluate_object()
        if token.type == TokenType.TEMPLATE:
            raise self._error("Template sequences are not allowed here", token)
        raise self._error("Variables and function calls are not allowed here", token)

    def _evaluate_tuple(self) -> List[Any]:
        self._advance()  # [
        items = []
        while True:
            token = self._current()
            if token is None:
                raise self._error("Unclosed tuple")
            if token.type == TokenType.RBRACKET:
                self._advance()
                return items
            items.append(self.evaluate())
            separator = self._current()
            if separator is not None and separator.type == TokenType.COMMA:
                self._advance()
            elif separator is None or separator.type != TokenType.RBRACKET:
                raise self._error("Expected ',' or ']' in tuple", separator)

    def _evaluate_object(self) -> Dict[str, Any]:
        self._advance()  # {
        result = {}
        while True:
            token = self._current()
            if token is None:
                raise self._error("Unclosed object")
            if token.type == TokenType.RBRACE:
                self._advance()
                return result
            if token.type == TokenType.COMMA:
                self._advance()
                continue
            if token.type not in (TokenType.IDENTIFIER, TokenType.STRING):
                raise self._error("Object keys must be names or strings", token)
            self._advance()
            separator = self._current()
            if separator is None or separator.type not in (TokenType.EQUALS, TokenType.COLON):
                raise self._error("Expected '=' or ':' after object key", separator)
            self._advance()
            result[token.value] = self.evaluate()


def _number(text: str) -> Union[int, float]:
    try:
        return int(text)
    except ValueError:
        return float(text)


def parse_source(source: Union[str, bytes], filename: str = "<unknown>") -> File:
    """Parse source text or raw bytes into a File."""
    data = source.encode('utf-8') if isinstance(source, str) else source
    lexer = Lexer.from_bytes(data, filename)
    tokens = lexer.tokenize_all()
    body = Parser(tokens, filename).parse()
    return File(filename=filename, bytes=data, body=body)


def parse_file(filepath: str) -> File:
    """Parse a file into a File. Handles BOM and encoding fallback."""
    with open(filepath, 'rb') as f:
        data = f.read()
    return parse_source(data, filepath)
