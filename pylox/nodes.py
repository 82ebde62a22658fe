"""
Syntax tree produced by the parser.

Nodes are frozen and compare by identity, so the resolver can key its binding
table on the node objects themselves without touching the tree.
"""

from __future__ import annotations
from dataclasses import dataclass, fields
from typing import Any, List, Optional

from pylox.tokens import Token

class Expr: pass
class Stmt: pass

node=dataclass(frozen=True, eq=False)

@node
class Literal(Expr):
    value: Any

@node
class Grouping(Expr):
    expression: Expr

@node
class Unary(Expr):
    operator: Token
    right: Expr

@node
class Binary(Expr):
    left: Expr
    operator: Token
    right: Expr

@node
class Ternary(Expr):
    condition: Expr
    then_branch: Expr
    else_branch: Expr

@node
class Logical(Expr):
    left: Expr
    operator: Token
    right: Expr

@node
class Variable(Expr):
    name: Token

@node
class Assign(Expr):
    name: Token
    value: Expr

@node
class Call(Expr):
    callee: Expr
    paren: Token
    arguments: List[Expr]

@node
class Function(Expr):
    keyword: Token
    params: List[Token]
    body: List[Stmt]

@node
class Get(Expr):
    object: Expr
    name: Token

@node
class SetExpr(Expr):
    object: Expr
    name: Token
    value: Expr

@node
class This(Expr):
    keyword: Token

@node
class EmptyStmt(Stmt):
    """Stands in for a statement dropped during error recovery."""

@node
class ExpressionStmt(Stmt):
    expression: Expr

@node
class PrintStmt(Stmt):
    expression: Expr

@node
class VarStmt(Stmt):
    name: Token
    initializer: Optional[Expr]

@node
class BlockStmt(Stmt):
    statements: List[Stmt]

@node
class IfStmt(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt]

@node
class WhileStmt(Stmt):
    condition: Expr
    body: Stmt

@node
class BreakStmt(Stmt):
    keyword: Token

@node
class FunctionStmt(Stmt):
    name: Token
    function: Function

@node
class ReturnStmt(Stmt):
    keyword: Token
    value: Optional[Expr]

@node
class ClassStmt(Stmt):
    name: Token
    methods: List[FunctionStmt]

def first_line(tree:Any, default:int=0)->int:
    """Line of the leftmost token under ``tree``.

    Walks with an explicit stack so it still works on trees too deep to recurse over.
    """
    pending=[tree]
    while pending:
        item=pending.pop()
        if isinstance(item, Token):
            return item.line
        if isinstance(item, list):
            pending.extend(reversed(item))
        elif isinstance(item, (Expr, Stmt)):
            pending.extend(reversed([getattr(item, f.name) for f in fields(item)]))
    return default
