from __future__ import annotations
from typing import Any, List

from pylox.diagnostics import Diagnostics
from pylox.tokens import KEYWORDS, Token, TokenType

SINGLE_CHAR_TOKENS = {
    "(": TokenType.LEFT_PAREN,
    ")": TokenType.RIGHT_PAREN,
    "{": TokenType.LEFT_BRACE,
    "}": TokenType.RIGHT_BRACE,
    ",": TokenType.COMMA,
    ".": TokenType.DOT,
    "-": TokenType.MINUS,
    "+": TokenType.PLUS,
    ";": TokenType.SEMICOLON,
    "*": TokenType.STAR,
    "?": TokenType.QUESTION,
    ":": TokenType.COLON,
}

# one-char operator -> (two-char form, one-char form)
EQUAL_SUFFIXED = {
    "!": (TokenType.BANG_EQUAL, TokenType.BANG),
    "=": (TokenType.EQUAL_EQUAL, TokenType.EQUAL),
    "<": (TokenType.LESS_EQUAL, TokenType.LESS),
    ">": (TokenType.GREATER_EQUAL, TokenType.GREATER),
}

def is_digit(c:str)->bool:
    return "0"<=c<="9"

def is_alpha(c:str)->bool:
    return "a"<=c<="z" or "A"<=c<="Z" or c=="_"

def is_alphanumeric(c:str)->bool:
    return is_alpha(c) or is_digit(c)

class Scanner:
    """Turns source text into a flat token list ending with a single EOF token.

    Errors are reported to ``diagnostics`` and scanning carries on with the
    next character, so one pass surfaces every lexical problem in the input.
    """

    def __init__(self, source:str, diagnostics:Diagnostics):
        self.source=source
        self.diagnostics=diagnostics
        self.tokens: List[Token]=[]
        self.start=0
        self.current=0
        self.line=1

    def scan_tokens(self)->List[Token]:
        while not self.is_at_end():
            self.start=self.current
            self.scan_token()
        self.tokens.append(Token(TokenType.EOF,"",None,self.line))
        return self.tokens

    def is_at_end(self)->bool:
        return self.current>=len(self.source)

    def advance(self)->str:
        ch=self.source[self.current]
        self.current+=1
        return ch

    def add_token(self, type_:TokenType, literal:Any=None):
        text=self.source[self.start:self.current]
        self.tokens.append(Token(type_, text, literal, self.line))

    def match(self, expected:str)->bool:
        if self.is_at_end(): return False
        if self.source[self.current]!=expected: return False
        self.current+=1
        return True

    def peek(self)->str:
        if self.is_at_end(): return "\0"
        return self.source[self.current]

    def peek_next(self)->str:
        if self.current+1>=len(self.source): return "\0"
        return self.source[self.current+1]

    def scan_token(self):
        c=self.advance()
        if c in SINGLE_CHAR_TOKENS:
            self.add_token(SINGLE_CHAR_TOKENS[c])
        elif c in EQUAL_SUFFIXED:
            double, single=EQUAL_SUFFIXED[c]
            self.add_token(double if self.match("=") else single)
        elif c=="/":
            if self.match("/"):
                while self.peek()!="\n" and not self.is_at_end():
                    self.advance()
            elif self.match("*"):
                self.block_comment()
            else:
                self.add_token(TokenType.SLASH)
        elif c in (" ", "\r", "\t"):
            return
        elif c=="\n":
            self.line+=1
        elif c=="\"":
            self.string()
        elif is_digit(c):
            self.number()
        elif is_alpha(c):
            self.identifier()
        else:
            self.diagnostics.error(self.line, "Unexpected character.")

    def block_comment(self):
        # the opening /* has been consumed; comments nest
        depth=1
        while depth>0 and not self.is_at_end():
            if self.peek()=="/" and self.peek_next()=="*":
                self.current+=2
                depth+=1
            elif self.peek()=="*" and self.peek_next()=="/":
                self.current+=2
                depth-=1
            else:
                if self.advance()=="\n":
                    self.line+=1

    def string(self):
        while self.peek()!="\"" and not self.is_at_end():
            if self.peek()=="\n":
                self.line+=1
            self.advance()
        if self.is_at_end():
            self.diagnostics.error(self.line, "Unterminated string.")
            return
        self.advance() # closing "
        value=self.source[self.start+1:self.current-1]
        self.add_token(TokenType.STRING, value)

    def number(self):
        while is_digit(self.peek()):
            self.advance()
        if self.peek()=="." and is_digit(self.peek_next()):
            self.advance()
            while is_digit(self.peek()):
                self.advance()
        value=float(self.source[self.start:self.current])
        self.add_token(TokenType.NUMBER, value)

    def identifier(self):
        while is_alphanumeric(self.peek()):
            self.advance()
        text=self.source[self.start:self.current]
        type_=KEYWORDS.get(text, TokenType.IDENTIFIER)
        self.add_token(type_)
