"""Tests for the C++ lexer."""
import pytest

from scan.lexer import Lexer, TokenType, tokenize


def values(source):
    return [t.value for t in tokenize(source)]


class TestBasicTokens:
    def test_declaration(self):
        tokens = tokenize("int x = 42;")
        assert [(t.type, t.value) for t in tokens] == [
            (TokenType.IDENTIFIER, "int"),
            (TokenType.IDENTIFIER, "x"),
            (TokenType.PUNCT, "="),
            (TokenType.NUMBER, "42"),
            (TokenType.PUNCT, ";"),
        ]

    def test_positions_are_one_based(self):
        tokens = tokenize("int\n  foo;")
        foo = tokens[1]
        assert (foo.line, foo.column) == (2, 3)
        assert foo.offset == 6
        assert foo.end == 9

    def test_comments_are_skipped(self):
        assert values("a // line comment\n/* block\ncomment */ b") == ["a", "b"]

    def test_longest_punctuator_wins(self):
        assert values("a->b :: c <=> d ...") == ["a", "->", "b", "::", "c", "<=>", "d", "..."]

    def test_shift_is_two_closers(self):
        """'>>' stays split so nested template argument lists close one at a time."""
        assert values("A<B<int>>") == ["A", "<", "B", "<", "int", ">", ">"]


class TestLiterals:
    def test_prefixed_string(self):
        tokens = tokenize('u8"hi"')
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.STRING
        assert tokens[0].value == 'u8"hi"'

    def test_prefixed_char(self):
        tokens = tokenize("L'x'")
        assert tokens[0].type == TokenType.CHAR
        assert tokens[0].value == "L'x'"

    def test_raw_string_keeps_inner_quotes_and_parens(self):
        tokens = tokenize('R"(a)b")";')
        assert tokens[0].type == TokenType.STRING
        assert tokens[0].value == 'R"(a)b")"'
        assert tokens[1].value == ";"

    def test_prefixed_raw_string(self):
        tokens = tokenize('u8R"x(")x" y')
        assert tokens[0].type == TokenType.STRING
        assert tokens[0].value == 'u8R"x(")x"'
        assert tokens[1].value == "y"

    def test_escaped_quote(self):
        tokens = tokenize(r'"a\"b" x')
        assert tokens[0].value == r'"a\"b"'
        assert tokens[1].value == "x"

    def test_digit_separators(self):
        assert values("1'000'000") == ["1'000'000"]

    def test_suffixes_stay_in_number(self):
        assert values("42uz 1.5f16 2.0bf16") == ["42uz", "1.5f16", "2.0bf16"]

    def test_signed_exponent(self):
        assert values("1e+5f") == ["1e+5f"]

    def test_hex_digit_e_is_not_an_exponent(self):
        assert values("0x1E+1") == ["0x1E", "+", "1"]


class TestDirectives:
    def test_directive_is_one_token(self):
        tokens = tokenize('#warning "old"\nint x;')
        assert tokens[0].type == TokenType.DIRECTIVE
        assert tokens[0].value == '#warning "old"'
        assert tokens[1].value == "int"
        assert tokens[1].line == 2

    def test_indented_directive_with_trailing_comment(self):
        tokens = tokenize("  #  elifdef FOO // note\n")
        assert tokens[0].type == TokenType.DIRECTIVE
        assert tokens[0].value == "#  elifdef FOO"

    def test_line_continuation(self):
        tokens = tokenize("#define X \\\n  1\nint")
        assert tokens[0].type == TokenType.DIRECTIVE
        assert tokens[0].value.startswith("#define X")
        assert tokens[0].value.endswith("1")
        assert tokens[1].value == "int"
        assert tokens[1].line == 3

    def test_hash_inside_line_is_punctuation(self):
        tokens = tokenize("a # b")
        assert tokens[1].type == TokenType.PUNCT
        assert tokens[1].value == "#"


class TestDiagnostics:
    def test_unterminated_string_recovers_at_next_line(self):
        lexer = Lexer('const char* s = "abc;\nint y;')
        tokens = list(lexer.tokenize())
        assert [t.value for t in tokens][-3:] == ["int", "y", ";"]
        assert len(lexer.diagnostics) == 1
        diag = lexer.diagnostics[0]
        assert diag.line == 1
        assert diag.column == 17
        assert "Unterminated string" in diag.message

    def test_unexpected_character(self):
        lexer = Lexer("int @ x;\nint y;")
        tokens = list(lexer.tokenize())
        assert [t.value for t in tokens] == ["int", "int", "y", ";"]
        assert len(lexer.diagnostics) == 1
        assert (lexer.diagnostics[0].line, lexer.diagnostics[0].column) == (1, 5)

    def test_unterminated_block_comment(self):
        lexer = Lexer("int x; /* never closed")
        tokens = list(lexer.tokenize())
        assert [t.value for t in tokens] == ["int", "x", ";"]
        assert "Unterminated block comment" in lexer.diagnostics[0].message

    @pytest.mark.parametrize("source", ["", "   \n\t", "// only a comment"])
    def test_empty_inputs(self, source):
        lexer = Lexer(source)
        assert list(lexer.tokenize()) == []
        assert lexer.diagnostics == []
