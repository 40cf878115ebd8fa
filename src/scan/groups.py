"""
Bracket-group utilities shared by the scanner and the matchers.

All helpers are single linear passes over a token sequence; look-ahead is
always bounded by a precomputed bracket pair, never by backtracking search.
"""

from typing import Dict, List, Optional, Sequence, Set, Tuple

from core.errors import ScanPartialFailure
from scan.lexer import Token, TokenType

OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = {")": "(", "]": "[", "}": "{"}

# Keywords that take a parenthesized operand but never start a parameter list
NON_DECLARATOR_KEYWORDS = {
    "explicit",
    "alignas",
    "decltype",
    "noexcept",
    "requires",
    "sizeof",
    "alignof",
    "static_assert",
    "__attribute__",
    "__declspec",
    "throw",
    "typeid",
}


def is_punct(token: Optional[Token], value: str) -> bool:
    return token is not None and token.type == TokenType.PUNCT and token.value == value


def is_word(token: Optional[Token], value: str) -> bool:
    return token is not None and token.type == TokenType.IDENTIFIER and token.value == value


def is_identifier(token: Optional[Token]) -> bool:
    return token is not None and token.type == TokenType.IDENTIFIER


def match_groups(
    tokens: Sequence[Token], diagnostics: Optional[List[ScanPartialFailure]] = None
) -> Dict[int, int]:
    """
    Pair every opening bracket with its closer (both directions).

    Mismatched closers are skipped; unclosed openers are left unpaired.
    When a diagnostics list is given, each mismatch is recorded there.
    """
    pairs: Dict[int, int] = {}
    stack: List[int] = []

    for i, tok in enumerate(tokens):
        if tok.type != TokenType.PUNCT:
            continue
        if tok.value in OPENERS:
            stack.append(i)
        elif tok.value in CLOSERS:
            opener = CLOSERS[tok.value]
            if stack and tokens[stack[-1]].value == opener:
                j = stack.pop()
                pairs[j] = i
                pairs[i] = j
                continue
            # Recover: close the nearest matching opener, abandoning the ones above it
            depth = len(stack) - 1
            while depth >= 0 and tokens[stack[depth]].value != opener:
                depth -= 1
            if diagnostics is not None:
                diagnostics.append(ScanPartialFailure(tok.line, tok.column, f"Unbalanced '{tok.value}'"))
            if depth >= 0:
                for abandoned in stack[depth + 1 :]:
                    if diagnostics is not None:
                        t = tokens[abandoned]
                        diagnostics.append(ScanPartialFailure(t.line, t.column, f"Unclosed '{t.value}'"))
                j = stack[depth]
                del stack[depth:]
                pairs[j] = i
                pairs[i] = j

    if diagnostics is not None:
        for j in stack:
            t = tokens[j]
            diagnostics.append(ScanPartialFailure(t.line, t.column, f"Unclosed '{t.value}'"))
    return pairs


def skip_angle_group(tokens: Sequence[Token], start: int, pairs: Dict[int, int]) -> Optional[int]:
    """
    Given tokens[start] == '<', return the index of its closing '>'.

    Nested brackets are skipped through their pairs. Returns None when the
    group is not closed before a ';', '{' or an unpaired closer.
    """
    depth = 0
    i = start
    n = len(tokens)
    while i < n:
        tok = tokens[i]
        if tok.type == TokenType.PUNCT:
            if tok.value == "<":
                depth += 1
            elif tok.value == ">":
                depth -= 1
                if depth == 0:
                    return i
            elif tok.value in ("(", "["):
                if i not in pairs:
                    return None
                i = pairs[i]
            elif tok.value in (";", "{", "}", ")", "]"):
                return None
        i += 1
    return None


def split_top_level(
    tokens: Sequence[Token], separator: str = ",", track_angles: bool = False
) -> List[List[Token]]:
    """
    Split tokens on separators that are not nested inside brackets.

    With track_angles, '<' following an identifier opens a template argument
    list and commas inside it do not split.
    """
    parts: List[List[Token]] = [[]]
    depth = 0
    angle = 0
    prev: Optional[Token] = None
    for tok in tokens:
        if tok.type == TokenType.PUNCT:
            if tok.value in OPENERS:
                depth += 1
            elif tok.value in CLOSERS:
                depth -= 1
            elif track_angles and depth == 0 and tok.value == "<" and is_identifier(prev):
                angle += 1
            elif track_angles and depth == 0 and tok.value == ">" and angle > 0:
                angle -= 1
            elif tok.value == separator and depth == 0 and angle == 0:
                parts.append([])
                prev = tok
                continue
        parts[-1].append(tok)
        prev = tok
    if len(parts) == 1 and not parts[0]:
        return []
    return parts


def template_parameter_names(tokens: Sequence[Token]) -> Set[str]:
    """Names declared by a template parameter list (the tokens between < and >)."""
    names: Set[str] = set()
    for param in split_top_level(tokens, ",", track_angles=True):
        declared = []
        for t in param:
            if is_punct(t, "="):
                break
            declared.append(t)
        for t in reversed(declared):
            if t.type == TokenType.IDENTIFIER and t.value not in ("typename", "class", "auto"):
                names.add(t.value)
                break
    return names


def find_parameter_list(tokens: Sequence[Token], pairs: Dict[int, int]) -> Optional[Tuple[int, int]]:
    """
    Locate the parameter list of a function declarator in a declaration head.

    Returns (open_index, close_index) of the first top-level '(' that follows a
    declarator name: an identifier that is not a keyword taking a parenthesized
    operand, a template-id '>', or an operator-function-id such as
    'operator()' or 'operator[]'.
    """
    i = 0
    n = len(tokens)
    while i < n:
        tok = tokens[i]
        if is_word(tok, "operator"):
            # operator() / operator[] / operator+ ... : parameters follow the name
            j = i + 1
            if j < n and tokens[j].type == TokenType.PUNCT and tokens[j].value in ("(", "[") and j in pairs:
                j = pairs[j] + 1
            else:
                while j < n and not is_punct(tokens[j], "("):
                    j += 1
            if j < n and is_punct(tokens[j], "(") and j in pairs:
                return j, pairs[j]
            return None
        if tok.type == TokenType.PUNCT and tok.value in ("(", "[", "{"):
            if i not in pairs:
                return None
            prev = tokens[i - 1] if i > 0 else None
            if tok.value == "(":
                if is_identifier(prev) and prev.value not in NON_DECLARATOR_KEYWORDS:
                    return i, pairs[i]
                if is_punct(prev, ">"):
                    return i, pairs[i]
            i = pairs[i] + 1
            continue
        if is_punct(tok, "<") and i > 0 and is_word(tokens[i - 1], "template"):
            close = skip_angle_group(tokens, i, pairs)
            if close is None:
                return None
            i = close + 1
            continue
        if is_punct(tok, "=") or is_punct(tok, ";"):
            return None
        i += 1
    return None


def text_of(tokens: Sequence[Token], source: str) -> str:
    """Raw source text spanned by a token sequence."""
    if not tokens:
        return ""
    return source[tokens[0].offset : tokens[-1].end]


def joined(tokens: Sequence[Token]) -> str:
    """Token values joined by single spaces (normalised text)."""
    return " ".join(t.value for t in tokens)
