"""
Static scope resolution.

The resolver walks the tree once before execution and records, for each
variable reference, how many environments lie between the reference and the
one declaring it. References that match no enclosing scope are left out of
the table and looked up among the globals at runtime.
"""

from __future__ import annotations
from typing import Dict, List, Union
import enum

from pylox.diagnostics import Diagnostics
from pylox.nodes import (
    Assign, Binary, BlockStmt, BreakStmt, Call, ClassStmt, EmptyStmt, Expr,
    ExpressionStmt, Function, FunctionStmt, Get, Grouping, IfStmt, Literal,
    Logical, PrintStmt, ReturnStmt, SetExpr, Stmt, Ternary, This, Unary,
    VarStmt, Variable, WhileStmt, first_line,
)
from pylox.tokens import Token

class FunctionType(enum.Enum):
    NONE=enum.auto()
    FUNCTION=enum.auto()

class ClassType(enum.Enum):
    NONE=enum.auto()
    CLASS=enum.auto()

class Resolver:
    def __init__(self, diagnostics:Diagnostics):
        self.diagnostics=diagnostics
        # name -> True once its initializer has been resolved
        self.scopes: List[Dict[str, bool]]=[]
        self.locals: Dict[Expr, int]={}
        self.current_function=FunctionType.NONE
        self.current_class=ClassType.NONE
        self.loop_depth=0

    def resolve(self, statements:List[Stmt])->Dict[Expr, int]:
        for stmt in statements:
            try:
                self.resolve_stmt(stmt)
            except RecursionError:
                self.diagnostics.error(first_line(stmt), "Expression nesting too deep.")
        return self.locals

    def resolve_statements(self, statements:List[Stmt]):
        for stmt in statements:
            self.resolve_stmt(stmt)

    def resolve_stmt(self, stmt:Stmt):
        if isinstance(stmt, (ExpressionStmt, PrintStmt)):
            self.resolve_expr(stmt.expression)
        elif isinstance(stmt, VarStmt):
            self.declare(stmt.name)
            if stmt.initializer is not None:
                self.resolve_expr(stmt.initializer)
            self.define(stmt.name)
        elif isinstance(stmt, BlockStmt):
            self.begin_scope()
            try:
                self.resolve_statements(stmt.statements)
            finally:
                self.end_scope()
        elif isinstance(stmt, IfStmt):
            self.resolve_expr(stmt.condition)
            self.resolve_stmt(stmt.then_branch)
            if stmt.else_branch is not None:
                self.resolve_stmt(stmt.else_branch)
        elif isinstance(stmt, WhileStmt):
            self.resolve_expr(stmt.condition)
            self.loop_depth+=1
            try:
                self.resolve_stmt(stmt.body)
            finally:
                self.loop_depth-=1
        elif isinstance(stmt, BreakStmt):
            if self.loop_depth==0:
                self.diagnostics.error_at(stmt.keyword, "Can't use 'break' outside of a loop.")
        elif isinstance(stmt, FunctionStmt):
            # defined before the body so the function can call itself
            self.declare(stmt.name)
            self.define(stmt.name)
            self.resolve_function(stmt.function, FunctionType.FUNCTION)
        elif isinstance(stmt, ReturnStmt):
            if self.current_function==FunctionType.NONE:
                self.diagnostics.error_at(stmt.keyword, "Can't return from top-level code.")
            if stmt.value is not None:
                self.resolve_expr(stmt.value)
        elif isinstance(stmt, ClassStmt):
            self.resolve_class(stmt)
        elif isinstance(stmt, EmptyStmt):
            pass
        else:
            raise TypeError(f"Unknown statement type: {stmt!r}")

    def resolve_class(self, stmt:ClassStmt):
        enclosing=self.current_class
        self.current_class=ClassType.CLASS
        self.declare(stmt.name)
        self.define(stmt.name)

        self.begin_scope()
        self.scopes[-1]["this"]=True
        try:
            for method in stmt.methods:
                self.resolve_function(method.function, FunctionType.FUNCTION)
        finally:
            self.end_scope()
            self.current_class=enclosing

    def resolve_function(self, function:Function, kind:FunctionType):
        enclosing_function=self.current_function
        enclosing_loops=self.loop_depth
        self.current_function=kind
        # a break inside the body can't reach a loop outside the function
        self.loop_depth=0
        self.begin_scope()
        try:
            for param in function.params:
                self.declare(param)
                self.define(param)
            self.resolve_statements(function.body)
        finally:
            self.end_scope()
            self.current_function=enclosing_function
            self.loop_depth=enclosing_loops

    def resolve_expr(self, expr:Expr):
        if isinstance(expr, Variable):
            if self.scopes and self.scopes[-1].get(expr.name.lexeme) is False:
                self.diagnostics.error_at(expr.name, "Can't read local variable in its own initializer.")
            self.resolve_local(expr, expr.name)
        elif isinstance(expr, Assign):
            self.resolve_expr(expr.value)
            self.resolve_local(expr, expr.name)
        elif isinstance(expr, (Binary, Logical)):
            self.resolve_expr(expr.left)
            self.resolve_expr(expr.right)
        elif isinstance(expr, Ternary):
            self.resolve_expr(expr.condition)
            self.resolve_expr(expr.then_branch)
            self.resolve_expr(expr.else_branch)
        elif isinstance(expr, Unary):
            self.resolve_expr(expr.right)
        elif isinstance(expr, Grouping):
            self.resolve_expr(expr.expression)
        elif isinstance(expr, Call):
            self.resolve_expr(expr.callee)
            for argument in expr.arguments:
                self.resolve_expr(argument)
        elif isinstance(expr, Get):
            self.resolve_expr(expr.object)
        elif isinstance(expr, SetExpr):
            self.resolve_expr(expr.value)
            self.resolve_expr(expr.object)
        elif isinstance(expr, This):
            if self.current_class==ClassType.NONE:
                self.diagnostics.error_at(expr.keyword, "Can't use 'this' outside of a class.")
                return
            self.resolve_local(expr, expr.keyword)
        elif isinstance(expr, Function):
            self.resolve_function(expr, FunctionType.FUNCTION)
        elif isinstance(expr, Literal):
            pass
        else:
            raise TypeError(f"Unknown expression type: {expr!r}")

    def resolve_local(self, expr:Union[Variable, Assign, This], name:Token):
        for depth, scope in enumerate(reversed(self.scopes)):
            if name.lexeme in scope:
                self.locals[expr]=depth
                return

    def declare(self, name:Token):
        if not self.scopes:
            return
        scope=self.scopes[-1]
        if name.lexeme in scope:
            self.diagnostics.error_at(name, "Already a variable with this name in this scope.")
        scope[name.lexeme]=False

    def define(self, name:Token):
        if not self.scopes:
            return
        self.scopes[-1][name.lexeme]=True

    def begin_scope(self):
        self.scopes.append({})

    def end_scope(self):
        self.scopes.pop()
