"""
Fragment scanner - turns C++ source into a stream of SourceFragments.

This is not a parser. A single left-to-right pass keeps just enough structure
to cut fragments at the right boundaries:

- a bracket pair table (computed once) so every look-ahead is bounded;
- a scope stack of structural braces (namespace, record, union, enum,
  function, lambda, block);
- an expression nest of parentheses, brackets and brace-initializers;
- a statement head cursor: the tokens since the last ';', structural '{' or
  '}' at the current scope, which is classified whenever a statement ends.

Fragments carry the raw text, the original line/column, their neighbouring
tokens and a FragmentContext describing the enclosing scopes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterator, List, Optional, Sequence, Set, Tuple

from core.errors import ScanPartialFailure
from core.utils import debug
from scan.fragments import FragmentContext, FragmentKind, SourceFragment
from scan.groups import (
    find_parameter_list,
    is_identifier,
    is_punct,
    is_word,
    match_groups,
    skip_angle_group,
    template_parameter_names,
)
from scan.lexer import Lexer, Token, TokenType


class ScopeKind(Enum):
    FILE = "file"
    NAMESPACE = "namespace"
    RECORD = "record"
    UNION = "union"
    ENUM = "enum"
    FUNCTION = "function"
    LAMBDA = "lambda"
    BLOCK = "block"


# Scopes whose statements are declarations
DECLARATION_SCOPES = {ScopeKind.FILE, ScopeKind.NAMESPACE, ScopeKind.RECORD, ScopeKind.UNION}
# Scopes whose statements are executable code
CODE_SCOPES = {ScopeKind.FUNCTION, ScopeKind.LAMBDA, ScopeKind.BLOCK}

CLASS_KEYS = {"struct", "class", "union"}
CONTROL_KEYWORDS = {"if", "else", "for", "while", "switch", "do", "try", "catch", "case", "default"}
ACCESS_SPECIFIERS = {"public", "private", "protected"}
SIZE_QUERIES = {"sizeof", "alignof", "_Alignof", "__alignof__"}
# Keywords after which '[' opens a lambda rather than a subscript
LAMBDA_AFTER_KEYWORDS = {"return", "co_return", "co_yield", "co_await", "throw", "case", "else", "do"}
# Keywords that can never label a statement
NON_LABEL_WORDS = ACCESS_SPECIFIERS | {"case", "default"}
LEADING_SPECIFIERS = {"export", "typedef", "inline", "friend"}
# Last token of a control-statement head that opens a block
BLOCK_HEAD_ENDINGS = {"else", "do", "try", "consteval"}

# Keywords whose parenthesized operand is an expression, never a parameter list
OPERAND_KEYWORDS = {"decltype", "sizeof", "alignof", "alignas", "noexcept", "typeid", "static_assert", "requires"}

# A single lambda declarator is never longer than this many tokens past its parameters
MAX_LAMBDA_SPECIFIER_TOKENS = 64


@dataclass
class Scope:
    kind: ScopeKind
    opener: int = -1
    name: Optional[str] = None
    constant: bool = False
    template: bool = False
    template_params: FrozenSet[str] = field(default_factory=frozenset)
    # Expression state of the enclosing statement, restored when a lambda body closes
    saved_nest: Optional[List["Nest"]] = None
    saved_head: int = 0


@dataclass
class Nest:
    opener: int
    constant: bool


@dataclass
class HeadInfo:
    """Classification of a statement head."""

    kind: Optional[ScopeKind]  # None: brace-initializer or plain statement
    body_start: int
    name: Optional[str] = None
    constant: bool = False
    template: bool = False
    template_params: FrozenSet[str] = field(default_factory=frozenset)


class Scanner:
    """
    Restartable fragment scanner.

    Usage:
        scanner = scan(source_text, "file.cpp")
        for fragment in scanner:
            ...
        scanner.diagnostics  # ScanPartialFailure records of the last pass
    """

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename
        self.diagnostics: List[ScanPartialFailure] = []

    def __iter__(self) -> Iterator[SourceFragment]:
        diagnostics: List[ScanPartialFailure] = []
        self.diagnostics = diagnostics
        yield from _ScanPass(self.source, self.filename, diagnostics).run()


def scan(source: str, filename: str = "<input>") -> Scanner:
    """Return a restartable, lazy fragment sequence for source."""
    return Scanner(source, filename)


class _ScanPass:
    """One traversal of a source text. Owns all mutable scanning state."""

    def __init__(self, source: str, filename: str, diagnostics: List[ScanPartialFailure]):
        self.source = source
        self.filename = filename
        self.diagnostics = diagnostics
        self.tokens: List[Token] = []
        self.directives: List[Token] = []
        self.pairs: Dict[int, int] = {}
        self.stack: List[Scope] = [Scope(ScopeKind.FILE)]
        self.nest: List[Nest] = []
        self.head = 0
        self.forward: Set[str] = set()
        self.defined: Set[str] = set()
        self.lambda_bodies: Dict[int, Scope] = {}
        self.constant_openers: Set[int] = set()
        self.lambda_parameter_lists: Set[int] = set()

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    def run(self) -> Iterator[SourceFragment]:
        lexer = Lexer(self.source, self.filename)
        for tok in lexer.tokenize():
            if tok.type == TokenType.DIRECTIVE:
                self.directives.append(tok)
            else:
                self.tokens.append(tok)
        self.diagnostics.extend(lexer.diagnostics)
        self.pairs = match_groups(self.tokens, self.diagnostics)

        debug(f"Scanner[{self.filename}]: {len(self.tokens)} tokens, {len(self.directives)} directives")

        pending = iter(self.directives)
        next_directive = next(pending, None)

        i = 0
        n = len(self.tokens)
        while i < n:
            tok = self.tokens[i]
            while next_directive is not None and next_directive.offset < tok.offset:
                yield self._directive_fragment(next_directive)
                next_directive = next(pending, None)

            fragments: List[SourceFragment] = []
            i = self._step(i, fragments)
            yield from fragments

        while next_directive is not None:
            yield self._directive_fragment(next_directive)
            next_directive = next(pending, None)

        if len(self.stack) > 1:
            debug(f"Scanner[{self.filename}]: {len(self.stack) - 1} scope(s) left open at end of input")

    def _step(self, i: int, out: List[SourceFragment]) -> int:
        """Process tokens[i] and return the index of the next token to process."""
        tok = self.tokens[i]

        if tok.type == TokenType.NUMBER:
            out.append(self._fragment(FragmentKind.LITERAL, i, i))
            return i + 1

        if tok.type == TokenType.IDENTIFIER:
            return self._identifier(i, out)

        if tok.type != TokenType.PUNCT:
            return i + 1

        value = tok.value
        if value == "[":
            return self._open_bracket(i, out)
        if value == "(":
            self._push_nest(i)
            return i + 1
        if value in (")", "]"):
            self._pop_nest(i)
            return i + 1
        if value == "{":
            self._open_brace(i, out)
            return i + 1
        if value == "}":
            self._close_brace(i)
            return i + 1
        if value == ";" and not self.nest:
            self._end_statement(i, out)
            self.head = i + 1
        return i + 1

    # ------------------------------------------------------------------
    # Token handlers
    # ------------------------------------------------------------------

    def _identifier(self, i: int, out: List[SourceFragment]) -> int:
        tokens = self.tokens
        tok = tokens[i]
        word = tok.value
        nxt = tokens[i + 1] if i + 1 < len(tokens) else None
        scope = self.stack[-1]

        if self.head == i and not self.nest:
            if scope.kind in (ScopeKind.RECORD, ScopeKind.UNION) and word in ACCESS_SPECIFIERS and is_punct(nxt, ":"):
                self.head = i + 2
                return i + 2
            if scope.kind in CODE_SCOPES:
                label_end = self._label_end(i)
                if label_end is not None:
                    out.append(self._fragment(FragmentKind.LABEL, i, label_end))
                    self.head = label_end + 1
                    return label_end + 1

        if word == "static_assert" and is_punct(nxt, "(") and (i + 1) in self.pairs:
            self.constant_openers.add(i + 1)
            out.append(self._fragment(FragmentKind.STATIC_ASSERT, i, self.pairs[i + 1]))
        elif word in SIZE_QUERIES and is_punct(nxt, "(") and (i + 1) in self.pairs:
            out.append(
                self._fragment(
                    FragmentKind.SIZE_QUERY,
                    i,
                    self.pairs[i + 1],
                    constant_context=self._in_constant_context(i),
                )
            )
        elif word == "alignas" and is_punct(nxt, "("):
            self.constant_openers.add(i + 1)
        elif word == "if":
            out.append(self._branch_fragment(i))
        elif word == "try" and is_punct(nxt, "{"):
            constant = self._in_constant_function()
            if not constant and self.stack[-1].kind in DECLARATION_SCOPES:
                # Function-try-block: the function scope is not open yet
                constant = self._head_declares_constant_function(self.head, i)
            out.append(self._fragment(FragmentKind.TRY_BLOCK, i, i + 1, in_constant_function=constant))
        elif word == "auto" and nxt is not None and nxt.type == TokenType.PUNCT and nxt.value in ("(", "{"):
            if (i + 1) in self.pairs:
                out.append(
                    self._fragment(
                        FragmentKind.CALL_EXPR,
                        i,
                        self.pairs[i + 1],
                        placeholder_type=self._after_trailing_arrow(i) or self._starts_parameter(i),
                    )
                )
        return i + 1

    def _label_end(self, i: int) -> Optional[int]:
        """Return the index of the ':' ending a label that starts at tokens[i]."""
        tokens = self.tokens
        n = len(tokens)
        word = tokens[i].value
        if word == "default" or (word not in NON_LABEL_WORDS and word not in CONTROL_KEYWORDS):
            if i + 1 < n and is_punct(tokens[i + 1], ":"):
                return i + 1
            return None
        if word == "case":
            j = i + 1
            while j < n:
                t = tokens[j]
                if t.type == TokenType.PUNCT:
                    if t.value == ":":
                        return j
                    if t.value in ("(", "[") and j in self.pairs:
                        j = self.pairs[j] + 1
                        continue
                    if t.value in (";", "{", "}"):
                        return None
                j += 1
        return None

    def _open_bracket(self, i: int, out: List[SourceFragment]) -> int:
        tokens = self.tokens
        if i + 1 < len(tokens) and is_punct(tokens[i + 1], "[") and i in self.pairs:
            close = self.pairs[i]
            out.append(self._fragment(FragmentKind.ATTRIBUTE, i, close))
            return close + 1

        if self._is_lambda_introducer(i):
            lambda_scope = self._parse_lambda(i)
            if lambda_scope is not None:
                body = lambda_scope.opener
                self.lambda_bodies[body] = lambda_scope
                out.append(self._fragment(FragmentKind.CAPTURE_LIST, i, body - 1))

        constant = False
        prev = tokens[i - 1] if i > 0 else None
        if not self.nest and self.stack[-1].kind in DECLARATION_SCOPES:
            # Array bound in a declaration
            constant = is_identifier(prev) or is_punct(prev, "]")
        self._push_nest(i, constant)
        return i + 1

    def _push_nest(self, i: int, constant: bool = False) -> None:
        if i not in self.pairs:
            return
        inherited = bool(self.nest) and self.nest[-1].constant
        self.nest.append(Nest(i, constant or inherited or i in self.constant_openers))

    def _pop_nest(self, i: int) -> None:
        opener = self.pairs.get(i)
        if opener is None:
            return
        while self.nest:
            top = self.nest.pop()
            if top.opener == opener:
                return

    def _open_brace(self, i: int, out: List[SourceFragment]) -> None:
        if i not in self.pairs:
            return

        lambda_scope = self.lambda_bodies.pop(i, None)
        if lambda_scope is not None:
            lambda_scope.saved_nest = self.nest
            lambda_scope.saved_head = self.head
            self.stack.append(lambda_scope)
            self.nest = []
            self.head = i + 1
            return

        if self.nest:
            self._push_nest(i)
            return

        info = self._classify_head(self.head, i)
        if info.kind is None:
            constant = self._head_declares_constant_variable(self.head, i, require_equals=False)
            self._push_nest(i, constant)
            return

        scope = self.stack[-1]
        if info.kind == ScopeKind.FUNCTION and scope.kind in DECLARATION_SCOPES:
            self._emit_declaration(self.head, i, out)

        constant = info.constant
        if info.kind == ScopeKind.BLOCK:
            constant = self._in_constant_function()
        self.stack.append(
            Scope(
                info.kind,
                opener=i,
                name=info.name,
                constant=constant,
                template=info.template,
                template_params=info.template_params,
            )
        )
        self.head = i + 1

    def _close_brace(self, i: int) -> None:
        opener = self.pairs.get(i)
        if opener is None:
            # Stray closer: whatever preceded it is not part of the next statement
            if not self.nest:
                self.head = i + 1
            return

        if self.nest:
            if any(n.opener == opener for n in self.nest):
                self._pop_nest(i)
                return
            # Structural close inside an unfinished expression: drop the expression
            self.nest = []

        if not any(s.opener == opener for s in self.stack[1:]):
            return
        while len(self.stack) > 1:
            scope = self.stack.pop()
            if scope.kind in (ScopeKind.RECORD, ScopeKind.UNION) and scope.name:
                self.defined.add(scope.name)
                self.forward.discard(scope.name)
            if scope.opener == opener:
                break

        if scope.kind == ScopeKind.LAMBDA and scope.saved_nest is not None:
            self.nest = scope.saved_nest
            self.head = scope.saved_head
        else:
            self.head = i + 1

    def _end_statement(self, i: int, out: List[SourceFragment]) -> None:
        scope = self.stack[-1]
        if scope.kind not in DECLARATION_SCOPES or self.head >= i:
            return

        self._record_forward_declaration(self.head, i)

        info = self._classify_head(self.head, i)
        start = info.body_start
        if start >= i:
            return
        first = self.tokens[start]
        if is_word(first, "static_assert") or is_word(first, "using"):
            return

        if scope.kind == ScopeKind.UNION and self._is_data_member(start, i):
            out.append(self._fragment(FragmentKind.UNION_MEMBER, self.head, i - 1))
            return
        self._emit_declaration(self.head, i, out)

    def _emit_declaration(self, start: int, end: int, out: List[SourceFragment]) -> None:
        """Emit DECLARATION (and OPERATOR_DEF) fragments for tokens[start:end]."""
        if start >= end:
            return
        last = end - 1
        if is_word(self.tokens[last], "try"):
            last -= 1
        if last < start:
            return
        out.append(self._fragment(FragmentKind.DECLARATION, start, last))
        if self._names_call_or_subscript_operator(start, last + 1):
            out.append(self._fragment(FragmentKind.OPERATOR_DEF, start, last))

    # ------------------------------------------------------------------
    # Head analysis
    # ------------------------------------------------------------------

    def _strip_head_prefix(self, start: int, end: int):
        """Skip template headers, attributes and leading specifiers of a head."""
        tokens = self.tokens
        params: Set[str] = set()
        template = False
        k = start
        while k < end:
            t = tokens[k]
            if is_word(t, "template") and k + 1 < end and is_punct(tokens[k + 1], "<"):
                close = skip_angle_group(tokens, k + 1, self.pairs)
                if close is None or close >= end:
                    break
                params |= template_parameter_names(tokens[k + 2 : close])
                template = True
                k = close + 1
                continue
            if is_punct(t, "[") and k + 1 < end and is_punct(tokens[k + 1], "[") and k in self.pairs:
                k = self.pairs[k] + 1
                continue
            if t.type == TokenType.IDENTIFIER and t.value in LEADING_SPECIFIERS:
                k += 1
                continue
            break
        return k, template, frozenset(params)

    def _classify_head(self, start: int, end: int) -> HeadInfo:
        tokens = self.tokens
        scope = self.stack[-1]
        body_start, template, params = self._strip_head_prefix(start, end)
        template = template or scope.template
        params = params | scope.template_params

        last = end - 1
        if last >= body_start and is_word(tokens[last], "try"):
            last -= 1
        if body_start > last:
            return HeadInfo(ScopeKind.BLOCK, body_start, template=template, template_params=params)

        first = tokens[body_start]
        if is_word(first, "namespace") or (is_word(first, "inline") and is_word(tokens[body_start + 1], "namespace")):
            return HeadInfo(ScopeKind.NAMESPACE, body_start)
        if is_word(first, "extern") and body_start + 1 <= last and tokens[body_start + 1].type == TokenType.STRING:
            return HeadInfo(ScopeKind.NAMESPACE, body_start)
        if first.type == TokenType.IDENTIFIER and first.value in CONTROL_KEYWORDS:
            tail = tokens[last]
            if is_punct(tail, ")") or is_punct(tail, ":") or tail.value in BLOCK_HEAD_ENDINGS:
                return HeadInfo(ScopeKind.BLOCK, body_start, template=template, template_params=params)
            return HeadInfo(None, body_start)

        has_equals = self._has_top_level_equals(body_start, last + 1)
        if first.type == TokenType.IDENTIFIER and first.value in CLASS_KEYS | {"enum"} and not has_equals:
            kind = {"union": ScopeKind.UNION, "enum": ScopeKind.ENUM}.get(first.value, ScopeKind.RECORD)
            name = self._record_name(body_start + 1, last + 1)
            return HeadInfo(kind, body_start, name=name, template=template, template_params=params)

        if scope.kind in CODE_SCOPES:
            if is_punct(tokens[last], ":"):
                return HeadInfo(ScopeKind.BLOCK, body_start, template=template, template_params=params)
            return HeadInfo(None, body_start)

        if has_equals:
            return HeadInfo(None, body_start)

        head_tokens = tokens[body_start : last + 1]
        local_pairs = _local_pairs(self.pairs, body_start, last + 1)
        plist = find_parameter_list(head_tokens, local_pairs)
        if plist is not None:
            if self._brace_follows_member_initializer(body_start + plist[1] + 1, last + 1):
                return HeadInfo(None, body_start)
            constant = any(
                t.type == TokenType.IDENTIFIER and t.value in ("constexpr", "consteval")
                for t in _top_level(head_tokens[: plist[0]], local_pairs)
            )
            return HeadInfo(
                ScopeKind.FUNCTION, body_start, constant=constant, template=template, template_params=params
            )
        return HeadInfo(None, body_start)

    def _brace_follows_member_initializer(self, after_params: int, end: int) -> bool:
        """True when '{' at end continues a constructor's mem-initializer list."""
        tokens = self.tokens
        seen_colon = False
        k = after_params
        while k < end:
            t = tokens[k]
            if is_punct(t, ":"):
                seen_colon = True
            elif t.type == TokenType.PUNCT and t.value in ("(", "[", "{") and k in self.pairs:
                k = self.pairs[k] + 1
                continue
            k += 1
        if not seen_colon:
            return False
        prev = tokens[end - 1]
        return is_identifier(prev) or is_punct(prev, ">")

    def _has_top_level_equals(self, start: int, end: int) -> bool:
        tokens = self.tokens
        k = start
        while k < end:
            t = tokens[k]
            if t.type == TokenType.PUNCT:
                if t.value in ("(", "[", "{") and k in self.pairs:
                    k = self.pairs[k] + 1
                    continue
                if t.value == "=" and not (k > start and is_word(tokens[k - 1], "operator")):
                    return True
            k += 1
        return False

    def _record_name(self, start: int, end: int) -> Optional[str]:
        tokens = self.tokens
        k = start
        while k < end:
            t = tokens[k]
            if t.type == TokenType.PUNCT and t.value in ("(", "[") and k in self.pairs:
                k = self.pairs[k] + 1
                continue
            if t.type == TokenType.IDENTIFIER:
                if t.value in ("alignas", "class", "struct", "__declspec", "__attribute__"):
                    k += 1
                    continue
                return t.value
            return None
        return None

    def _record_forward_declaration(self, start: int, end: int) -> None:
        body_start, _, _ = self._strip_head_prefix(start, end)
        words = self.tokens[body_start:end]
        if len(words) == 2 and words[0].value in CLASS_KEYS and is_identifier(words[1]):
            name = words[1].value
            if name not in self.defined and not self._record_is_open(name):
                self.forward.add(name)

    def _record_is_open(self, name: str) -> bool:
        return any(s.kind in (ScopeKind.RECORD, ScopeKind.UNION) and s.name == name for s in self.stack)

    def _is_data_member(self, start: int, end: int) -> bool:
        tokens = self.tokens
        first = tokens[start]
        if first.type == TokenType.IDENTIFIER and first.value in CLASS_KEYS | {"enum", "static", "friend"}:
            return False
        local_pairs = _local_pairs(self.pairs, start, end)
        head_tokens = tokens[start:end]
        if any(is_word(t, "static") for t in _top_level(head_tokens, local_pairs)):
            return False
        return find_parameter_list(head_tokens, local_pairs) is None

    def _names_call_or_subscript_operator(self, start: int, end: int) -> bool:
        tokens = self.tokens
        for k in range(start, end - 2):
            if not is_word(tokens[k], "operator"):
                continue
            if k > start and tokens[k - 1].type == TokenType.PUNCT and tokens[k - 1].value in (".", "->"):
                continue
            a, b = tokens[k + 1], tokens[k + 2]
            if (is_punct(a, "(") and is_punct(b, ")")) or (is_punct(a, "[") and is_punct(b, "]")):
                return True
        return False

    def _head_declares_constant_function(self, start: int, end: int) -> bool:
        body_start, _, _ = self._strip_head_prefix(start, end)
        head_tokens = self.tokens[body_start:end]
        local_pairs = _local_pairs(self.pairs, body_start, end)
        plist = find_parameter_list(head_tokens, local_pairs)
        if plist is None:
            return False
        return any(
            t.type == TokenType.IDENTIFIER and t.value in ("constexpr", "consteval")
            for t in _top_level(head_tokens[: plist[0]], local_pairs)
        )

    def _head_declares_constant_variable(self, start: int, end: int, require_equals: bool = True) -> bool:
        """A constexpr/constinit variable whose initializer starts before tokens[end]."""
        body_start, _, _ = self._strip_head_prefix(start, end)
        head_tokens = self.tokens[body_start:end]
        local_pairs = _local_pairs(self.pairs, body_start, end)
        top = _top_level(head_tokens, local_pairs)
        if not any(t.type == TokenType.IDENTIFIER and t.value in ("constexpr", "constinit") for t in top):
            return False
        eq = next((k for k, t in enumerate(head_tokens) if is_punct(t, "=") and t in top), None)
        if eq is None:
            return not require_equals and find_parameter_list(head_tokens, local_pairs) is None
        return find_parameter_list(head_tokens[:eq], local_pairs) is None

    def _after_trailing_arrow(self, i: int) -> bool:
        """True when the `auto` at tokens[i] ends a trailing return type (`-> C<int> auto`)."""
        tokens = self.tokens
        k = i - 1
        while k >= 0:
            t = tokens[k]
            if t.type == TokenType.IDENTIFIER or is_punct(t, "::"):
                k -= 1
                continue
            if is_punct(t, ">"):
                # Type-constraint arguments
                depth = 0
                while k >= 0:
                    v = tokens[k]
                    if v.type == TokenType.PUNCT:
                        if v.value == ">":
                            depth += 1
                        elif v.value == "<":
                            depth -= 1
                            if depth == 0:
                                break
                        elif v.value in (";", "{", "}"):
                            return False
                    k -= 1
                k -= 1
                continue
            return is_punct(t, "->")
        return False

    def _starts_parameter(self, i: int) -> bool:
        """True when the `auto` at tokens[i] begins a parameter declaration."""
        tokens = self.tokens
        if i == 0 or not self.nest:
            return False
        if not (is_punct(tokens[i - 1], "(") or is_punct(tokens[i - 1], ",")):
            return False
        opener = self.nest[-1].opener
        if not is_punct(tokens[opener], "("):
            return False
        if opener in self.lambda_parameter_lists:
            return True
        if len(self.nest) != 1 or self.stack[-1].kind not in DECLARATION_SCOPES:
            return False
        if opener <= self.head:
            return False
        last = tokens[opener - 1]
        if not (is_identifier(last) or is_punct(last, ">")) or last.value in OPERAND_KEYWORDS:
            return False
        # An initializer before the parentheses makes them a call
        k = self.head
        angle = 0
        while k < opener:
            t = tokens[k]
            if t.type == TokenType.PUNCT:
                if t.value in ("(", "[", "{") and k in self.pairs:
                    k = self.pairs[k] + 1
                    continue
                if t.value == "<" and k > 0 and is_identifier(tokens[k - 1]):
                    angle += 1
                elif t.value == ">" and angle:
                    angle -= 1
                elif t.value == "=" and not angle and not is_word(tokens[k - 1], "operator"):
                    return False
            k += 1
        return True

    # ------------------------------------------------------------------
    # Lambdas
    # ------------------------------------------------------------------

    def _is_lambda_introducer(self, i: int) -> bool:
        tokens = self.tokens
        if i == 0 or i not in self.pairs:
            return False
        prev = tokens[i - 1]
        if prev.type == TokenType.IDENTIFIER:
            return prev.value in LAMBDA_AFTER_KEYWORDS
        if prev.type != TokenType.PUNCT:
            return False
        if prev.value in (")", "]", "[", ">"):
            return False
        if prev.value in ("&", "&&"):
            # auto& [a, b] = ... is a structured binding
            k = i - 1
            while k >= 0 and (
                tokens[k].value in ("&", "&&", "const", "volatile")
                and tokens[k].type in (TokenType.PUNCT, TokenType.IDENTIFIER)
            ):
                k -= 1
            if k >= 0 and is_word(tokens[k], "auto"):
                return False
        return True

    def _parse_lambda(self, i: int) -> Optional[Scope]:
        """Parse a lambda declarator starting at '['; return its body scope or None."""
        tokens = self.tokens
        n = len(tokens)
        j = self.pairs[i] + 1
        template = False
        params: Set[str] = set()

        if j < n and is_punct(tokens[j], "<"):
            close = skip_angle_group(tokens, j, self.pairs)
            if close is None:
                return None
            params |= template_parameter_names(tokens[j + 1 : close])
            template = True
            j = close + 1
            if j < n and is_word(tokens[j], "requires"):
                while j < n and not (is_punct(tokens[j], "(") or is_punct(tokens[j], "{")):
                    j += 1

        if j < n and is_punct(tokens[j], "("):
            if j not in self.pairs:
                return None
            self.lambda_parameter_lists.add(j)
            if any(is_word(t, "auto") for t in tokens[j + 1 : self.pairs[j]]):
                template = True
            j = self.pairs[j] + 1

        constant = False
        seen_arrow = False
        budget = MAX_LAMBDA_SPECIFIER_TOKENS
        while j < n and budget > 0:
            t = tokens[j]
            budget -= 1
            if is_punct(t, "{"):
                break
            if t.type == TokenType.PUNCT:
                if t.value in ("(", "[") and j in self.pairs:
                    j = self.pairs[j] + 1
                    continue
                if t.value == "->":
                    seen_arrow = True
                elif t.value in (";", ")", "]", "}", "="):
                    return None
                elif t.value == "," and not seen_arrow:
                    return None
            elif t.type == TokenType.IDENTIFIER and t.value in ("constexpr", "consteval") and not seen_arrow:
                constant = True
            elif t.type != TokenType.IDENTIFIER:
                return None
            j += 1
        else:
            return None

        if j >= n or j not in self.pairs:
            return None
        enclosing = self.stack[-1]
        return Scope(
            ScopeKind.LAMBDA,
            opener=j,
            constant=constant,
            template=template or enclosing.template,
            template_params=frozenset(params) | enclosing.template_params,
        )

    # ------------------------------------------------------------------
    # Context
    # ------------------------------------------------------------------

    def _template_scope(self) -> Tuple[bool, FrozenSet[str]]:
        """Whether the current position is templated, and the template parameter names in scope."""
        _, template, params = self._strip_head_prefix(self.head, len(self.tokens))
        names: Set[str] = set(params)
        for s in self.stack:
            template = template or s.template
            names |= s.template_params
        return template, frozenset(names)

    def _in_constant_function(self) -> bool:
        for scope in reversed(self.stack):
            if scope.kind == ScopeKind.BLOCK:
                continue
            if scope.kind in (ScopeKind.FUNCTION, ScopeKind.LAMBDA):
                return scope.constant
            return False
        return False

    def _in_constant_context(self, i: int) -> bool:
        if self.nest and self.nest[-1].constant:
            return True
        scope = self.stack[-1]
        if scope.kind == ScopeKind.ENUM:
            return True
        if not self.nest and scope.kind in DECLARATION_SCOPES | CODE_SCOPES:
            return self._head_declares_constant_variable(self.head, i)
        return False

    def _incomplete_types(self) -> FrozenSet[str]:
        names = set(self.forward - self.defined)
        for scope in reversed(self.stack):
            if scope.kind in (ScopeKind.FUNCTION, ScopeKind.LAMBDA):
                break
            if scope.kind in (ScopeKind.RECORD, ScopeKind.UNION) and scope.name:
                names.add(scope.name)
        return frozenset(names)

    # ------------------------------------------------------------------
    # Fragment construction
    # ------------------------------------------------------------------

    def _branch_fragment(self, i: int) -> SourceFragment:
        tokens = self.tokens
        n = len(tokens)
        end = i
        if end + 1 < n and (is_punct(tokens[end + 1], "!") or is_word(tokens[end + 1], "not")):
            if end + 2 < n and is_word(tokens[end + 2], "consteval"):
                end += 2
        elif end + 1 < n and tokens[end + 1].value in ("consteval", "constexpr"):
            end += 1
            if tokens[end].value == "constexpr" and end + 1 < n and is_punct(tokens[end + 1], "("):
                self.constant_openers.add(end + 1)
        return self._fragment(FragmentKind.BRANCH, i, end)

    def _directive_fragment(self, tok: Token) -> SourceFragment:
        return SourceFragment(
            kind=FragmentKind.DIRECTIVE,
            start_offset=tok.offset,
            end_offset=tok.end,
            text=tok.value,
            line=tok.line,
            column=tok.column,
            tokens=(tok,),
            file=self.filename,
        )

    def _fragment(
        self,
        kind: FragmentKind,
        first: int,
        last: int,
        constant_context: bool = False,
        in_constant_function: Optional[bool] = None,
        placeholder_type: bool = False,
    ) -> SourceFragment:
        tokens = self.tokens
        span: Sequence[Token] = tokens[first : last + 1]
        start, end = span[0].offset, span[-1].end
        if in_constant_function is None:
            in_constant_function = self._in_constant_function()
        in_template, template_params = self._template_scope()
        context = FragmentContext(
            in_template=in_template,
            in_constant_function=in_constant_function,
            constant_context=constant_context,
            at_statement_start=(self.head == first and not self.nest),
            placeholder_type=placeholder_type,
            template_params=template_params,
            incomplete_types=self._incomplete_types() if kind == FragmentKind.SIZE_QUERY else frozenset(),
        )
        return SourceFragment(
            kind=kind,
            start_offset=start,
            end_offset=end,
            text=self.source[start:end],
            line=span[0].line,
            column=span[0].column,
            tokens=tuple(span),
            file=self.filename,
            prev_token=tokens[first - 1] if first > 0 else None,
            next_token=tokens[last + 1] if last + 1 < len(tokens) else None,
            context=context,
        )


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------


def _local_pairs(pairs: Dict[int, int], start: int, end: int) -> Dict[int, int]:
    """Re-base the bracket pairs that lie entirely inside tokens[start:end]."""
    local: Dict[int, int] = {}
    for k in range(start, end):
        other = pairs.get(k)
        if other is not None and start <= other < end:
            local[k - start] = other - start
    return local


def _top_level(tokens: Sequence[Token], local_pairs: Dict[int, int]) -> List[Token]:
    """Tokens not nested inside any bracket group."""
    result: List[Token] = []
    k = 0
    while k < len(tokens):
        t = tokens[k]
        if t.type == TokenType.PUNCT and t.value in ("(", "[", "{") and k in local_pairs:
            k = local_pairs[k] + 1
            continue
        result.append(t)
        k += 1
    return result

