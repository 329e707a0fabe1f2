"""
Tests for the commentcheck parser module.
"""

import pytest
from commentcheck.parser import (
    Lexer,
    LexerError,
    ParseError,
    Pos,
    TokenType,
    parse_file,
    parse_source,
    tokenize_file,
)


class TestBasicParsing:
    """Test basic parsing functionality."""

    def test_empty_source(self):
        """Parse empty source."""
        file = parse_source("")
        assert file.body.attributes == {}
        assert file.body.blocks == []

    def test_simple_attribute(self):
        """Parse simple name = value."""
        file = parse_source('name = "Test"')
        assert list(file.body.attributes) == ["name"]
        assert file.body.attributes["name"].expr.value() == "Test"

    def test_block_with_label(self):
        """Parse a labelled block."""
        file = parse_source('module "example" {\n  source = "./x"\n}\n')
        assert len(file.body.blocks) == 1
        block = file.body.blocks[0]
        assert block.type == "module"
        assert block.labels == ["example"]
        assert list(block.body.attributes) == ["source"]

    def test_multiple_labels(self):
        """Resources carry two labels."""
        file = parse_source('resource "aws_instance" "web" {\n  ami = "abc"\n}\n')
        block = file.body.blocks[0]
        assert block.labels == ["aws_instance", "web"]
        assert len(block.label_ranges) == 2

    def test_single_line_block(self):
        """Parse a block written on one line."""
        file = parse_source('locals { region = "eu-west-1" }')
        block = file.body.blocks[0]
        assert block.labels == []
        assert block.body.attributes["region"].expr.value() == "eu-west-1"

    def test_nested_blocks(self):
        """Parse nested blocks."""
        source = '''
resource "aws_instance" "web" {
  ami = "abc"
  lifecycle {
    create_before_destroy = true
  }
}
'''
        file = parse_source(source)
        outer = file.body.blocks[0]
        assert list(outer.body.attributes) == ["ami"]
        inner = outer.body.blocks[0]
        assert inner.type == "lifecycle"
        assert inner.body.attributes["create_before_destroy"].expr.value() is True

    def test_get_blocks_by_type(self):
        """Test filtering blocks by type."""
        source = '''
module "a" {}
variable "b" {}
module "c" {}
'''
        file = parse_source(source)
        modules = file.body.get_blocks("module")
        assert [b.labels[0] for b in modules] == ["a", "c"]
        assert len(file.body.get_blocks()) == 3

    def test_comments_ignored(self):
        """Comments of every style should be ignored."""
        source = '''
# hash comment
// slash comment
/* block
   comment */
value = 42 # inline comment
'''
        file = parse_source(source)
        assert list(file.body.attributes) == ["value"]
        assert file.body.attributes["value"].expr.value() == 42


class TestRanges:
    """Attribute ranges must line up with the raw bytes."""

    SOURCE = '''
module "example" {
  source = "./modules/example"
  instance_type = "t2.micro"
}'''

    def test_attribute_range(self):
        file = parse_source(self.SOURCE, "resource.tf")
        attribute = file.body.blocks[0].body.attributes["instance_type"]
        assert attribute.range.filename == "resource.tf"
        assert attribute.range.start == Pos(line=4, column=3, byte=53)
        assert attribute.range.end == Pos(line=4, column=29, byte=79)

    def test_range_slices_raw_bytes(self):
        file = parse_source(self.SOURCE, "resource.tf")
        attribute = file.body.blocks[0].body.attributes["instance_type"]
        text = file.bytes[attribute.range.start.byte:attribute.range.end.byte]
        assert text == b'instance_type = "t2.micro"'

    def test_name_range(self):
        file = parse_source(self.SOURCE, "resource.tf")
        attribute = file.body.blocks[0].body.attributes["instance_type"]
        assert attribute.name_range.start.column == 3
        assert attribute.name_range.end.column == 16

    def test_range_str(self):
        file = parse_source(self.SOURCE, "resource.tf")
        attribute = file.body.blocks[0].body.attributes["instance_type"]
        assert str(attribute.range) == "resource.tf:4,3-29"

    def test_multiline_expression_range(self):
        source = 'tags = {\n  Name = "web"\n}\nnext = 1\n'
        file = parse_source(source)
        tags = file.body.attributes["tags"]
        assert tags.range.start == Pos(1, 1, 0)
        assert tags.range.end.line == 3
        assert tags.range.end.column == 2
        assert file.body.attributes["next"].range.start.line == 4

    def test_crlf_line_endings(self):
        file = parse_source('module "a" {\r\n  x = 1\r\n}\r\n')
        attribute = file.body.blocks[0].body.attributes["x"]
        assert attribute.range.start == Pos(line=2, column=3, byte=16)

    def test_multibyte_characters(self):
        """Byte offsets count encoded bytes, columns count characters."""
        file = parse_source('# café\nx = "é"\n')
        attribute = file.body.attributes["x"]
        assert attribute.range.start == Pos(line=2, column=1, byte=8)
        assert attribute.range.end.column == 8
        assert attribute.range.end.byte == 8 + len('x = "é"'.encode("utf-8"))

    def test_utf8_bom(self):
        file = parse_source(b'\xef\xbb\xbfx = 1\n')
        attribute = file.body.attributes["x"]
        assert attribute.range.start == Pos(line=1, column=1, byte=3)

    def test_latin1_fallback(self):
        file = parse_source(b'# caf\xe9\nx = 1\n')
        attribute = file.body.attributes["x"]
        assert attribute.range.start == Pos(line=2, column=1, byte=7)

    def test_block_ranges(self):
        file = parse_source('module "a" {\n  x = 1\n}\n')
        block = file.body.blocks[0]
        assert block.range.start == Pos(1, 1, 0)
        assert block.range.end.line == 3
        assert block.type_range.end.column == 7
        assert block.label_ranges[0].start.column == 8


class TestExpressions:
    """Test expression extents and literal evaluation."""

    def test_literal_values(self):
        source = '''
s = "text"
n = 5
f = 0.25
e = 1e3
neg = -3
t = true
no = false
nothing = null
'''
        attrs = parse_source(source).body.attributes
        assert attrs["s"].expr.value() == "text"
        assert attrs["n"].expr.value() == 5
        assert attrs["f"].expr.value() == 0.25
        assert attrs["e"].expr.value() == 1000.0
        assert attrs["neg"].expr.value() == -3
        assert attrs["t"].expr.value() is True
        assert attrs["no"].expr.value() is False
        assert attrs["nothing"].expr.value() is None

    def test_tuple_and_object(self):
        source = '''
names = ["a", "b",
  "c",
]
tags = {
  Name = "web"
  "team" : "infra",
}
empty = []
'''
        attrs = parse_source(source).body.attributes
        assert attrs["names"].expr.value() == ["a", "b", "c"]
        assert attrs["tags"].expr.value() == {"Name": "web", "team": "infra"}
        assert attrs["empty"].expr.value() == []

    def test_string_escapes(self):
        attrs = parse_source(r'x = "say \"hi\"\né"').body.attributes
        assert attrs["x"].expr.value() == 'say "hi"\né'

    def test_escaped_interpolation_is_literal(self):
        attrs = parse_source('x = "$${not_a_template}"').body.attributes
        assert attrs["x"].expr.value() == "${not_a_template}"

    def test_references_are_not_literals(self):
        attrs = parse_source('x = var.region').body.attributes
        with pytest.raises(ParseError):
            attrs["x"].expr.value()

    def test_template_is_not_literal(self):
        attrs = parse_source('x = "${var.env}-app"').body.attributes
        assert attrs["x"].expr.tokens[0].type == TokenType.TEMPLATE
        with pytest.raises(ParseError):
            attrs["x"].expr.value()

    def test_template_with_nested_braces(self):
        source = 'x = "${merge({a = 1}, {b = "}"})}"\ny = 2\n'
        attrs = parse_source(source).body.attributes
        assert list(attrs) == ["x", "y"]
        assert attrs["y"].range.start.line == 2

    def test_function_call_spanning_lines(self):
        source = 'x = concat(\n  ["a"],\n  ["b"],\n)\ny = 1\n'
        attrs = parse_source(source).body.attributes
        assert attrs["x"].range.end.line == 4
        assert attrs["y"].range.start.line == 5

    def test_conditional_and_for_expressions(self):
        source = '''
count = var.enabled ? 1 : 0
ids = [for s in var.list : upper(s) if s != ""]
m = {for k, v in var.map : k => v...}
'''
        attrs = parse_source(source).body.attributes
        assert list(attrs) == ["count", "ids", "m"]

    def test_heredoc(self):
        source = 'x = <<EOF\nhello\n  world\nEOF\ny = 2\n'
        attrs = parse_source(source).body.attributes
        assert attrs["x"].expr.value() == "hello\n  world\n"
        assert attrs["y"].range.start.line == 5

    def test_indented_heredoc(self):
        source = 'x = <<-EOT\n    one\n      two\n    EOT\n'
        attrs = parse_source(source).body.attributes
        assert attrs["x"].expr.value() == "one\n  two\n"


class TestErrors:
    """Malformed input raises with positions."""

    def test_duplicate_attribute(self):
        with pytest.raises(ParseError) as exc_info:
            parse_source('module "a" {\n  x = 1\n  x = 2\n}\n', "main.tf")
        assert exc_info.value.line == 3
        assert "Duplicate argument" in str(exc_info.value)

    def test_two_arguments_on_one_line(self):
        with pytest.raises(ParseError) as exc_info:
            parse_source('module "m" {\n  a = 1 b = 2\n}\n', "main.tf")
        assert exc_info.value.line == 2
        assert exc_info.value.column == 9
        assert "Missing newline after argument" in str(exc_info.value)

    def test_object_keys_on_one_line_are_fine(self):
        attrs = parse_source('tags = { a = 1, b = 2 }\n').body.attributes
        assert attrs["tags"].expr.value() == {"a": 1, "b": 2}

    def test_unclosed_block(self):
        with pytest.raises(ParseError):
            parse_source('module "a" {\n  x = 1\n')

    def test_unbalanced_closing_brace(self):
        with pytest.raises(ParseError):
            parse_source('x = 1\n}\n')

    def test_missing_expression(self):
        with pytest.raises(ParseError):
            parse_source('x =\n')

    def test_unclosed_bracket(self):
        with pytest.raises(ParseError):
            parse_source('x = [1, 2\n')

    def test_template_label_rejected(self):
        with pytest.raises(ParseError):
            parse_source('module "${var.x}" {}\n')

    def test_unterminated_string(self):
        with pytest.raises(LexerError) as exc_info:
            parse_source('x = "abc\n', "main.tf")
        assert exc_info.value.line == 1
        assert exc_info.value.filename == "main.tf"


class TestLexer:
    """Token level checks."""

    def test_token_positions(self):
        tokens = Lexer('a = "b"\n').tokenize_all()
        assert [t.type for t in tokens] == [
            TokenType.IDENTIFIER, TokenType.EQUALS, TokenType.STRING,
            TokenType.NEWLINE, TokenType.EOF,
        ]
        string = tokens[2]
        assert (string.line, string.column, string.byte) == (1, 5, 4)
        assert (string.end_column, string.end_byte) == (8, 7)

    def test_comment_tokens(self):
        tokens = Lexer('# one\n// two\n/* three */\n').tokenize_all(include_comments=True)
        comments = [t.value for t in tokens if t.type == TokenType.COMMENT]
        assert comments == ["# one", "// two", "/* three */"]

    def test_operators(self):
        tokens = Lexer('a == b && c != d || !e => f ...').tokenize_all()
        values = [t.value for t in tokens if t.type in (TokenType.OPERATOR, TokenType.ARROW, TokenType.ELLIPSIS)]
        assert values == ["==", "&&", "!=", "||", "!", "=>", "..."]

    def test_identifiers_with_dashes(self):
        tokens = Lexer('my-name_1 = 1').tokenize_all()
        assert tokens[0].value == "my-name_1"

    def test_unexpected_character(self):
        with pytest.raises(LexerError):
            Lexer('x = ~').tokenize_all()


class TestParseFile:

    def test_parse_file(self, tmp_path):
        path = tmp_path / "main.tf"
        path.write_bytes(b'module "m" {\r\n  source = "./m"\r\n}\r\n')
        file = parse_file(str(path))
        assert file.filename == str(path)
        assert file.bytes == path.read_bytes()
        assert file.body.blocks[0].labels == ["m"]

    def test_tokenize_file(self, tmp_path):
        path = tmp_path / "main.tf"
        path.write_bytes(b'\xef\xbb\xbf# doc\nx = 1\n')
        tokens = tokenize_file(str(path), include_comments=True)
        assert tokens[0].type == TokenType.COMMENT
        assert tokens[0].byte == 3
        assert [t.value for t in tokens if t.type == TokenType.IDENTIFIER] == ["x"]
