"""
C++ source scanning: lexer, bracket groups and fragment extraction.
"""

from scan.fragments import FragmentContext, FragmentKind, SourceFragment, SourceLocation
from scan.lexer import Lexer, Token, TokenType, tokenize
from scan.scanner import Scanner, scan

__all__ = [
    "FragmentContext",
    "FragmentKind",
    "SourceFragment",
    "SourceLocation",
    "Lexer",
    "Token",
    "TokenType",
    "tokenize",
    "Scanner",
    "scan",
]
