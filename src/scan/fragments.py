"""
Source fragments: bounded token spans the scanner hands to feature matchers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from scan.lexer import Token


@dataclass(frozen=True)
class SourceLocation:
    """Source code location: file, line, column (1-indexed for display)."""

    file: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


class FragmentKind(Enum):
    """Syntactic shapes the scanner extracts."""

    CALL_EXPR = "call-expr"  # auto(x), auto{x}
    DECLARATION = "declaration"  # statement head at namespace/record scope
    OPERATOR_DEF = "operator-def"  # declaration naming operator() or operator[]
    CAPTURE_LIST = "capture-list"  # lambda introducer through its declarator
    UNION_MEMBER = "union-member"  # data member declared directly in a union
    STATIC_ASSERT = "static-assert"  # static_assert( ... )
    TRY_BLOCK = "try-block"  # try {
    BRANCH = "branch"  # if [constexpr | ! consteval | consteval]
    SIZE_QUERY = "size-query"  # sizeof( ... ), alignof( ... )
    LITERAL = "literal"  # numeric literal
    DIRECTIVE = "directive"  # preprocessor line
    ATTRIBUTE = "attribute"  # [[ ... ]]
    LABEL = "label"  # name: / case X: / default:


@dataclass(frozen=True)
class FragmentContext:
    """What the scanner knew about the enclosing scopes when it cut a fragment."""

    in_template: bool = False
    in_constant_function: bool = False
    constant_context: bool = False
    at_statement_start: bool = False
    # `auto(` or `auto{` names a placeholder type: a trailing return type or a parameter
    placeholder_type: bool = False
    # Template parameter names declared by the enclosing template headers
    template_params: FrozenSet[str] = field(default_factory=frozenset)
    # Record names that are incomplete at this point (forward-declared or still open)
    incomplete_types: FrozenSet[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class SourceFragment:
    kind: FragmentKind
    start_offset: int
    end_offset: int
    text: str
    line: int
    column: int
    tokens: Tuple[Token, ...]
    file: str = "<input>"
    prev_token: Optional[Token] = None
    next_token: Optional[Token] = None
    context: FragmentContext = field(default_factory=FragmentContext)

    @property
    def location(self) -> SourceLocation:
        return SourceLocation(self.file, self.line, self.column)

    def __repr__(self):
        return f"SourceFragment({self.kind.value}, {self.text!r}, L{self.line}:{self.column})"
