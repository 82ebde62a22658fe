"""
Error reporting shared by every pipeline stage.

A Diagnostics value is created per run (or per REPL session) and handed to the
scanner, parser, resolver and interpreter. The driver inspects its flags once
a stage has finished instead of consulting process-wide state.
"""

from __future__ import annotations
from typing import List, Optional, TextIO, TYPE_CHECKING

from pylox.tokens import Token, TokenType

if TYPE_CHECKING:
    from pylox.runtime import LoxRuntimeError

class Diagnostics:
    def __init__(self, stream:Optional[TextIO]=None):
        self.stream=stream
        self.messages: List[str]=[]
        self.had_error=False
        self.had_runtime_error=False

    def error(self, line:int, message:str):
        self.report(line, "", message)

    def error_at(self, token:Token, message:str):
        if token.type==TokenType.EOF:
            self.report(token.line, " at end", message)
        else:
            self.report(token.line, f" at '{token.lexeme}'", message)

    def report(self, line:int, where:str, message:str):
        self._emit(f"[line {line}] Error{where}: {message}")
        self.had_error=True

    def runtime_error(self, error:'LoxRuntimeError'):
        self._emit(f"{error.message}\n[line {error.token.line}]")
        self.had_runtime_error=True

    def reset(self):
        """Starts a new execution unit with no recorded errors."""
        self.messages.clear()
        self.had_error=False
        self.had_runtime_error=False

    def _emit(self, text:str):
        self.messages.append(text)
        if self.stream is not None:
            print(text, file=self.stream)
