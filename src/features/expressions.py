"""
Expression matchers: decay-copy with auto and size queries in constant context.
"""

from features.base import NO_MATCH, FeatureMatcher, Outcome
from scan.fragments import FragmentKind, SourceFragment
from scan.groups import is_identifier, is_punct
from scan.lexer import TokenType

# Tokens before `auto` that make it a type, never a decay-copy
NOT_DECAY_COPY_AFTER = {"new", "operator", "->"}

# Decl-specifiers: `static auto (x) = ...` declares x
DECL_SPECIFIERS = {
    "static",
    "const",
    "constexpr",
    "constinit",
    "inline",
    "extern",
    "thread_local",
    "volatile",
    "typedef",
    "friend",
    "mutable",
    "register",
}

# After `auto(x)` at statement start these tokens continue a declarator
DECLARATOR_FOLLOWERS = {"=", ";", ",", "(", "[", "{"}

# After `auto(x)` at statement start these tokens continue an expression
EXPRESSION_FOLLOWERS = {
    ".",
    "->",
    "++",
    "--",
    "+",
    "-",
    "*",
    "/",
    "%",
    "==",
    "!=",
    "<",
    ">",
    "<=",
    ">=",
    "<=>",
    "&&",
    "||",
    "&",
    "|",
    "^",
    "<<",
    "?",
    ".*",
    "->*",
    "+=",
    "-=",
    "*=",
    "/=",
    "%=",
    "&=",
    "|=",
    "^=",
    "<<=",
}


class DecayCopyMatcher(FeatureMatcher):
    """auto(x) / auto{x} as an expression."""

    feature_id = "copy-initialized-deduced-parameter"
    kinds = frozenset({FragmentKind.CALL_EXPR})

    def examine(self, fragment: SourceFragment) -> Outcome:
        prev = fragment.prev_token
        if prev is not None and prev.value in NOT_DECAY_COPY_AFTER:
            return NO_MATCH
        if fragment.context.placeholder_type:
            return NO_MATCH

        opener = fragment.tokens[1]
        if is_punct(opener, "{"):
            return self.found(fragment)

        declaration_position = fragment.context.at_statement_start or (
            is_identifier(prev) and prev.value in DECL_SPECIFIERS
        )
        if not declaration_position:
            return self.found(fragment)

        nxt = fragment.next_token
        if nxt is not None and nxt.type == TokenType.PUNCT:
            if nxt.value in DECLARATOR_FOLLOWERS:
                return NO_MATCH
            if nxt.value in EXPRESSION_FOLLOWERS:
                return self.found(fragment)
        return self.ambiguous(
            fragment,
            "auto(...) at statement start may begin a declaration",
            candidates=(self.feature_id,),
        )


class IncompleteSizeQueryMatcher(FeatureMatcher):
    """sizeof/alignof of a record that is incomplete at that point, in a constant context."""

    feature_id = "incomplete-type-size-query-in-constant-context"
    kinds = frozenset({FragmentKind.SIZE_QUERY})

    def examine(self, fragment: SourceFragment) -> Outcome:
        context = fragment.context
        if not context.constant_context or not context.incomplete_types:
            return NO_MATCH
        operand = list(fragment.tokens[2:-1])
        if operand and operand[0].value in ("struct", "class", "union"):
            operand = operand[1:]
        if len(operand) != 1 or not is_identifier(operand[0]):
            return NO_MATCH
        if operand[0].value in context.incomplete_types:
            return self.found(fragment)
        return NO_MATCH
