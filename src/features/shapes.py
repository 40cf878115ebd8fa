"""
Shape parsers shared by matchers.

Each helper reads the tokens of a single fragment and returns a small record
describing its declarator shape, or None when the fragment does not have that
shape. Bracket pairs are recomputed per fragment, so helpers never look past
the fragment's own tokens.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set

from scan.fragments import SourceFragment
from scan.groups import (
    find_parameter_list,
    is_identifier,
    is_punct,
    is_word,
    match_groups,
    skip_angle_group,
    split_top_level,
    template_parameter_names,
)
from scan.lexer import Token, TokenType

CV_QUALIFIERS = {"const", "volatile"}


def fragment_pairs(fragment: SourceFragment) -> Dict[int, int]:
    return match_groups(fragment.tokens)


def top_level_indices(tokens: Sequence[Token], pairs: Dict[int, int], start: int = 0, end: Optional[int] = None):
    """Indices of tokens in [start, end) that are not nested in a bracket group."""
    end = len(tokens) if end is None else end
    k = start
    while k < end:
        t = tokens[k]
        if t.type == TokenType.PUNCT and t.value in ("(", "[", "{") and k in pairs:
            yield k
            k = pairs[k] + 1
            continue
        yield k
        k += 1


def skip_template_headers(tokens: Sequence[Token], pairs: Dict[int, int]) -> int:
    """Index of the first token after leading template<...> headers and [[attributes]]."""
    k = 0
    n = len(tokens)
    while k < n:
        if is_word(tokens[k], "template") and k + 1 < n and is_punct(tokens[k + 1], "<"):
            close = skip_angle_group(tokens, k + 1, pairs)
            if close is None:
                return k
            k = close + 1
            continue
        if is_punct(tokens[k], "[") and k + 1 < n and is_punct(tokens[k + 1], "[") and k in pairs:
            k = pairs[k] + 1
            continue
        break
    return k


def template_header_names(tokens: Sequence[Token], pairs: Dict[int, int]) -> Set[str]:
    """Parameter names declared by the leading template<...> headers of tokens."""
    names: Set[str] = set()
    k = 0
    n = len(tokens)
    while k + 1 < n and is_word(tokens[k], "template") and is_punct(tokens[k + 1], "<"):
        close = skip_angle_group(tokens, k + 1, pairs)
        if close is None:
            break
        names |= template_parameter_names(tokens[k + 2 : close])
        k = close + 1
    return names


def parameters(tokens: Sequence[Token]) -> List[List[Token]]:
    """Split the tokens between a parameter list's parentheses into parameters."""
    return split_top_level(tokens, ",", track_angles=True)


def is_void_list(params: List[List[Token]]) -> bool:
    return len(params) == 1 and len(params[0]) == 1 and is_word(params[0][0], "void")


def strip_attributes(param: Sequence[Token]) -> List[Token]:
    """Drop leading [[...]] attribute groups from a parameter."""
    tokens = list(param)
    while len(tokens) >= 2 and is_punct(tokens[0], "[") and is_punct(tokens[1], "["):
        depth = 0
        for k, t in enumerate(tokens):
            if is_punct(t, "["):
                depth += 1
            elif is_punct(t, "]"):
                depth -= 1
                if depth == 0:
                    tokens = tokens[k + 1 :]
                    break
        else:
            break
    return tokens


# ----------------------------------------------------------------------
# Explicit object parameters
# ----------------------------------------------------------------------


@dataclass
class ObjectParameter:
    """A leading `this` parameter: `this Type&& name`."""

    tokens: List[Token]
    type_tokens: List[Token]
    placeholder: bool
    base_name: Optional[str]


def object_parameter(params: List[List[Token]]) -> Optional[ObjectParameter]:
    """The explicit object parameter of a parameter list, if any."""
    if not params:
        return None
    param = strip_attributes(params[0])
    if not param or not is_word(param[0], "this"):
        return None
    type_tokens = [t for t in param[1:] if not is_punct(t, "=")]
    placeholder = any(is_word(t, "auto") for t in type_tokens) or any(
        is_word(t, "decltype") for t in type_tokens
    )
    base_name = None
    for t in type_tokens:
        if is_identifier(t) and t.value not in CV_QUALIFIERS and t.value != "typename":
            base_name = t.value
            break
    return ObjectParameter(param, type_tokens, placeholder, base_name)


# ----------------------------------------------------------------------
# operator() / operator[]
# ----------------------------------------------------------------------


@dataclass
class OperatorSignature:
    """Declaration of a call or subscript operator."""

    symbol: str  # "()" or "[]"
    specifiers: List[Token]  # top-level tokens before `operator`
    name_tokens: List[Token]  # operator ( ) / operator [ ]
    param_tokens: List[Token]
    params: List[List[Token]] = field(default_factory=list)


def operator_signature(fragment: SourceFragment) -> Optional[OperatorSignature]:
    tokens = fragment.tokens
    pairs = fragment_pairs(fragment)
    start = skip_template_headers(tokens, pairs)

    for k in top_level_indices(tokens, pairs, start):
        if not is_word(tokens[k], "operator") or k + 3 >= len(tokens):
            continue
        a, b = tokens[k + 1], tokens[k + 2]
        if is_punct(a, "(") and is_punct(b, ")"):
            symbol = "()"
        elif is_punct(a, "[") and is_punct(b, "]"):
            symbol = "[]"
        else:
            continue
        if k > 0 and tokens[k - 1].type == TokenType.PUNCT and tokens[k - 1].value in (".", "->"):
            return None
        open_ = k + 3
        if not is_punct(tokens[open_], "(") or open_ not in pairs:
            return None
        close = pairs[open_]
        specifiers = [tokens[j] for j in top_level_indices(tokens, pairs, start, k)]
        param_tokens = list(tokens[open_ + 1 : close])
        return OperatorSignature(
            symbol=symbol,
            specifiers=specifiers,
            name_tokens=list(tokens[k : k + 3]),
            param_tokens=param_tokens,
            params=parameters(param_tokens),
        )
    return None


# ----------------------------------------------------------------------
# Function declarators
# ----------------------------------------------------------------------


@dataclass
class FunctionDeclarator:
    name: Optional[Token]
    open_index: int
    close_index: int
    params: List[List[Token]]


def function_declarator(fragment: SourceFragment) -> Optional[FunctionDeclarator]:
    tokens = fragment.tokens
    pairs = fragment_pairs(fragment)
    start = skip_template_headers(tokens, pairs)
    local = {k - start: v - start for k, v in pairs.items() if k >= start and v >= start}
    found = find_parameter_list(tokens[start:], local)
    if found is None:
        return None
    open_index, close_index = found[0] + start, found[1] + start
    name = tokens[open_index - 1] if open_index > 0 else None
    return FunctionDeclarator(
        name=name if is_identifier(name) else None,
        open_index=open_index,
        close_index=close_index,
        params=parameters(tokens[open_index + 1 : close_index]),
    )


# ----------------------------------------------------------------------
# Lambda declarators
# ----------------------------------------------------------------------


@dataclass
class LambdaDeclarator:
    """The part of a lambda expression before its body."""

    captures: List[List[Token]]
    template_params: List[Token]
    params: Optional[List[List[Token]]]  # None: no parameter list
    specifiers: List[Token]  # tokens between the parameters (or introducer) and the body


def lambda_declarator(fragment: SourceFragment) -> Optional[LambdaDeclarator]:
    tokens = fragment.tokens
    if not tokens or not is_punct(tokens[0], "["):
        return None
    pairs = fragment_pairs(fragment)
    if 0 not in pairs:
        return None
    close = pairs[0]
    captures = split_top_level(tokens[1:close], ",")
    j = close + 1
    n = len(tokens)

    template_params: List[Token] = []
    if j < n and is_punct(tokens[j], "<"):
        gt = skip_angle_group(tokens, j, pairs)
        if gt is None:
            return None
        template_params = list(tokens[j + 1 : gt])
        j = gt + 1
        if j < n and is_word(tokens[j], "requires"):
            # A requires-clause after the template parameters runs up to '(' or the body
            while j < n and not is_punct(tokens[j], "("):
                j = pairs[j] + 1 if tokens[j].value in ("(", "[") and j in pairs else j + 1

    params: Optional[List[List[Token]]] = None
    if j < n and is_punct(tokens[j], "(") and j in pairs:
        params = parameters(tokens[j + 1 : pairs[j]])
        j = pairs[j] + 1

    return LambdaDeclarator(captures, template_params, params, list(tokens[j:]))
