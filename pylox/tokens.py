from __future__ import annotations
from dataclasses import dataclass
from typing import Any
import enum

class TokenType(enum.Enum):
    LEFT_PAREN="("
    RIGHT_PAREN=")"
    LEFT_BRACE="{"
    RIGHT_BRACE="}"
    COMMA=","
    DOT="."
    MINUS="-"
    PLUS="+"
    SEMICOLON=";"
    SLASH="/"
    STAR="*"
    QUESTION="?"
    COLON=":"

    BANG="!"
    BANG_EQUAL="!="
    EQUAL="="
    EQUAL_EQUAL="=="
    GREATER=">"
    GREATER_EQUAL=">="
    LESS="<"
    LESS_EQUAL="<="

    IDENTIFIER="IDENT"
    STRING="STRING"
    NUMBER="NUMBER"

    AND="and"
    BREAK="break"
    CLASS="class"
    ELSE="else"
    FALSE="false"
    FOR="for"
    FUN="fun"
    IF="if"
    NIL="nil"
    OR="or"
    PRINT="print"
    RETURN="return"
    SUPER="super"
    THIS="this"
    TRUE="true"
    VAR="var"
    WHILE="while"

    EOF="EOF"

KEYWORDS = {t.value:t for t in [
    TokenType.AND, TokenType.BREAK, TokenType.CLASS, TokenType.ELSE, TokenType.FALSE,
    TokenType.FOR, TokenType.FUN, TokenType.IF, TokenType.NIL, TokenType.OR,
    TokenType.PRINT, TokenType.RETURN, TokenType.SUPER, TokenType.THIS, TokenType.TRUE,
    TokenType.VAR, TokenType.WHILE
]}

@dataclass(frozen=True)
class Token:
    type: TokenType
    lexeme: str
    literal: Any
    line: int
