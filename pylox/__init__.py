"""
pylox: a tree-walking interpreter for the Lox scripting language.

Pipeline: Scanner -> Parser -> Resolver -> Interpreter, sharing one
Diagnostics accumulator per run.
"""

from pylox.cli import run_source
from pylox.diagnostics import Diagnostics
from pylox.interpreter import Interpreter
from pylox.parser import Parser
from pylox.resolver import Resolver
from pylox.scanner import Scanner

__all__ = ["Diagnostics", "Interpreter", "Parser", "Resolver", "Scanner", "run_source"]
