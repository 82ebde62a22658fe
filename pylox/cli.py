from __future__ import annotations
from typing import List, Optional
import argparse
import json
import sys

from pylox.diagnostics import Diagnostics
from pylox.interpreter import Interpreter
from pylox.parser import Parser
from pylox.resolver import Resolver
from pylox.scanner import Scanner

EXIT_STATIC_ERROR=65
EXIT_NO_INPUT=66
EXIT_RUNTIME_ERROR=70

# each script-level call costs several interpreter frames
RECURSION_LIMIT=10000

def run_source(source:str, interpreter:Interpreter, diagnostics:Diagnostics):
    tokens=Scanner(source, diagnostics).scan_tokens()
    statements=Parser(tokens, diagnostics).parse()
    if diagnostics.had_error:
        return

    bindings=Resolver(diagnostics).resolve(statements)
    if diagnostics.had_error:
        return

    interpreter.interpret(statements, diagnostics, bindings)

def exit_code(diagnostics:Diagnostics)->int:
    if diagnostics.had_error:
        return EXIT_STATIC_ERROR
    if diagnostics.had_runtime_error:
        return EXIT_RUNTIME_ERROR
    return 0

def run_file(path:str, trace_path:Optional[str]=None)->int:
    try:
        with open(path, "r", encoding="utf-8") as f:
            source=f.read()
    except OSError as e:
        print(f"Could not read '{path}': {e.strerror}", file=sys.stderr)
        return EXIT_NO_INPUT

    interpreter=Interpreter(trace=trace_path is not None)
    diagnostics=Diagnostics(stream=sys.stderr)
    run_source(source, interpreter, diagnostics)

    if trace_path:
        with open(trace_path, "w", encoding="utf-8") as f:
            json.dump(interpreter.trace, f, indent=2)
    return exit_code(diagnostics)

def repl(interpreter:Optional[Interpreter]=None):
    interpreter=interpreter or Interpreter()
    diagnostics=Diagnostics(stream=sys.stderr)
    while True:
        try:
            line=input("> ")
        except (EOFError, KeyboardInterrupt):
            print()
            return
        if not line.strip():
            continue
        run_source(line+"\n", interpreter, diagnostics)
        diagnostics.reset()

def main(argv:Optional[List[str]]=None)->int:
    p=argparse.ArgumentParser(prog="pylox", description="Run Lox scripts or start an interactive prompt.")
    p.add_argument("file", nargs="?", help="Path to the script to run.")
    p.add_argument("--trace", dest="trace", help="Write execution trace JSON to this file.")
    p.add_argument("--repl", action="store_true", help="Start a REPL.")
    args=p.parse_args(argv)

    sys.setrecursionlimit(max(sys.getrecursionlimit(), RECURSION_LIMIT))
    if args.repl or not args.file:
        repl()
        return 0
    return run_file(args.file, trace_path=args.trace)
