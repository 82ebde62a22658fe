from __future__ import annotations
from typing import Any, Dict, List, Optional
import time

from pylox.diagnostics import Diagnostics
from pylox.nodes import (
    Assign, Binary, BlockStmt, BreakStmt, Call, ClassStmt, EmptyStmt, Expr,
    ExpressionStmt, Function, FunctionStmt, Get, Grouping, IfStmt, Literal,
    Logical, PrintStmt, ReturnStmt, SetExpr, Stmt, Ternary, This, Unary,
    VarStmt, Variable, WhileStmt, first_line,
)
from pylox.runtime import (
    BREAK, NORMAL, UNASSIGNED, Completion, Environment, LoxCallable, LoxClass,
    LoxFunction, LoxInstance, LoxRuntimeError, NativeFunction, Signal, Value,
    returning,
)
from pylox.tokens import Token, TokenType

class Interpreter:
    def __init__(self, trace:bool=False):
        self.globals=Environment()
        self.environment=self.globals
        self.locals: Dict[Expr, int]={}
        self.tracing=trace
        self.trace: List[Dict[str,Any]]=[]
        self._step=0
        self._next_obj_id=1

        self.globals.define("clock", NativeFunction("clock", 0, lambda interp: time.time()))

    # ---------------------------
    # Trace
    # ---------------------------

    def record_event(self, type_:str, line:Optional[int], **details:Any):
        self._step+=1
        event={"type": type_, "step": self._step, "line": line}
        event.update(details)
        self.trace.append(event)

    def make_instance(self, klass:LoxClass)->LoxInstance:
        obj=LoxInstance(klass, self._next_obj_id)
        self._next_obj_id+=1
        if self.tracing:
            self.record_event("new", None, object=obj.label())
        return obj

    # ---------------------------
    # Entry point
    # ---------------------------

    def interpret(self, statements:List[Stmt], diagnostics:Diagnostics,
                  bindings:Optional[Dict[Expr, int]]=None):
        """Runs one execution unit, reporting the first runtime error to ``diagnostics``."""
        if bindings:
            self.locals.update(bindings)
        stmt=None
        try:
            for stmt in statements:
                self.execute(stmt)
        except LoxRuntimeError as e:
            self.report(e, diagnostics)
        except RecursionError:
            # nesting too deep to evaluate, outside any call
            line=first_line(stmt)
            self.report(LoxRuntimeError(Token(TokenType.IDENTIFIER, "", None, line), "Stack overflow."), diagnostics)

    def report(self, error:LoxRuntimeError, diagnostics:Diagnostics):
        if self.tracing:
            self.record_event("error", error.token.line, message=error.message)
        diagnostics.runtime_error(error)

    # ---------------------------
    # Statements
    # ---------------------------

    def execute(self, stmt:Stmt)->Completion:
        if isinstance(stmt, ExpressionStmt):
            self.evaluate(stmt.expression)
        elif isinstance(stmt, PrintStmt):
            value=self.evaluate(stmt.expression)
            print(self.stringify(value))
        elif isinstance(stmt, VarStmt):
            value=UNASSIGNED
            if stmt.initializer is not None:
                value=self.evaluate(stmt.initializer)
            self.environment.define(stmt.name.lexeme, value)
        elif isinstance(stmt, BlockStmt):
            return self.execute_block(stmt.statements, Environment(self.environment))
        elif isinstance(stmt, IfStmt):
            if self.is_truthy(self.evaluate(stmt.condition)):
                return self.execute(stmt.then_branch)
            elif stmt.else_branch is not None:
                return self.execute(stmt.else_branch)
        elif isinstance(stmt, WhileStmt):
            while self.is_truthy(self.evaluate(stmt.condition)):
                completion=self.execute(stmt.body)
                if completion.signal is Signal.BREAK:
                    break
                if completion.signal is Signal.RETURN:
                    return completion
        elif isinstance(stmt, BreakStmt):
            return BREAK
        elif isinstance(stmt, FunctionStmt):
            func=LoxFunction(stmt.name.lexeme, stmt.function, self.environment)
            self.environment.define(stmt.name.lexeme, func)
        elif isinstance(stmt, ReturnStmt):
            value=None
            if stmt.value is not None:
                value=self.evaluate(stmt.value)
            return returning(value)
        elif isinstance(stmt, ClassStmt):
            self.environment.define(stmt.name.lexeme)
            methods={}
            for method in stmt.methods:
                is_init=(method.name.lexeme=="init")
                methods[method.name.lexeme]=LoxFunction(method.name.lexeme, method.function,
                                                        self.environment, is_initializer=is_init)
            klass=LoxClass(stmt.name.lexeme, methods)
            self.environment.assign(stmt.name, klass)
        elif isinstance(stmt, EmptyStmt):
            pass
        else:
            raise TypeError(f"Unknown statement type: {stmt!r}")
        return NORMAL

    def execute_block(self, statements:List[Stmt], env:Environment)->Completion:
        previous=self.environment
        try:
            self.environment=env
            for stmt in statements:
                completion=self.execute(stmt)
                if completion.signal is not Signal.NORMAL:
                    return completion
            return NORMAL
        finally:
            self.environment=previous

    # ---------------------------
    # Expressions
    # ---------------------------

    def evaluate(self, expr:Expr)->Value:
        if isinstance(expr, Literal):
            return expr.value
        if isinstance(expr, Grouping):
            return self.evaluate(expr.expression)
        if isinstance(expr, Unary):
            return self.evaluate_unary(expr)
        if isinstance(expr, Binary):
            return self.evaluate_binary(expr)
        if isinstance(expr, Ternary):
            if self.is_truthy(self.evaluate(expr.condition)):
                return self.evaluate(expr.then_branch)
            return self.evaluate(expr.else_branch)
        if isinstance(expr, Variable):
            return self.look_up_variable(expr.name, expr)
        if isinstance(expr, Assign):
            value=self.evaluate(expr.value)
            distance=self.locals.get(expr)
            if distance is not None:
                self.environment.assign_at(distance, expr.name, value)
            else:
                self.globals.assign(expr.name, value)
            return value
        if isinstance(expr, Logical):
            left=self.evaluate(expr.left)
            if expr.operator.type==TokenType.OR:
                if self.is_truthy(left):
                    return left
            else:
                if not self.is_truthy(left):
                    return left
            return self.evaluate(expr.right)
        if isinstance(expr, Call):
            return self.evaluate_call(expr)
        if isinstance(expr, Function):
            return LoxFunction(None, expr, self.environment)
        if isinstance(expr, Get):
            obj=self.evaluate(expr.object)
            if isinstance(obj, LoxInstance):
                return obj.get(expr.name)
            raise LoxRuntimeError(expr.name, "Only instances have properties.")
        if isinstance(expr, SetExpr):
            obj=self.evaluate(expr.object)
            if not isinstance(obj, LoxInstance):
                raise LoxRuntimeError(expr.name, "Only instances have fields.")
            value=self.evaluate(expr.value)
            obj.set(expr.name, value, self)
            return value
        if isinstance(expr, This):
            return self.look_up_variable(expr.keyword, expr)
        raise TypeError(f"Unknown expression type: {expr!r}")

    def evaluate_unary(self, expr:Unary)->Value:
        right=self.evaluate(expr.right)
        if expr.operator.type==TokenType.MINUS:
            self.check_number_operand(expr.operator, right)
            return -right
        return not self.is_truthy(right)

    def evaluate_binary(self, expr:Binary)->Value:
        t=expr.operator.type
        if t==TokenType.COMMA:
            self.evaluate(expr.left)
            return self.evaluate(expr.right)

        left=self.evaluate(expr.left)
        right=self.evaluate(expr.right)
        if t==TokenType.PLUS:
            if isinstance(left, float) and isinstance(right, float):
                return left+right
            if isinstance(left, str) or isinstance(right, str):
                return self.stringify(left)+self.stringify(right)
            raise LoxRuntimeError(expr.operator, "Operands of '+' must be two numbers or include a string.")
        if t==TokenType.EQUAL_EQUAL:
            return self.is_equal(left, right)
        if t==TokenType.BANG_EQUAL:
            return not self.is_equal(left, right)

        self.check_number_operands(expr.operator, left, right)
        if t==TokenType.MINUS:
            return left-right
        if t==TokenType.STAR:
            return left*right
        if t==TokenType.SLASH:
            if right==0:
                raise LoxRuntimeError(expr.operator, "Division by zero.")
            return left/right
        if t==TokenType.GREATER:
            return left>right
        if t==TokenType.GREATER_EQUAL:
            return left>=right
        if t==TokenType.LESS:
            return left<right
        if t==TokenType.LESS_EQUAL:
            return left<=right
        raise TypeError(f"Unknown binary operator: {expr.operator.lexeme!r}")

    def evaluate_call(self, expr:Call)->Value:
        callee=self.evaluate(expr.callee)
        args=[self.evaluate(a) for a in expr.arguments]
        if not isinstance(callee, LoxCallable):
            raise LoxRuntimeError(expr.paren, "Can only call functions and classes.")
        ar=callee.arity()
        if len(args)!=ar:
            raise LoxRuntimeError(expr.paren, f"Expected {ar} arguments but got {len(args)}.")
        if self.tracing:
            self.record_event("call", expr.paren.line,
                              callee=self.stringify(callee),
                              arguments=[self.stringify(a) for a in args])
        try:
            return callee.call(self, args)
        except RecursionError:
            raise LoxRuntimeError(expr.paren, "Stack overflow.") from None

    def look_up_variable(self, name:Token, expr:Expr)->Value:
        distance=self.locals.get(expr)
        if distance is not None:
            return self.environment.get_at(distance, name)
        return self.globals.get(name)

    # ---------------------------
    # Value semantics
    # ---------------------------

    def stringify(self, v:Any)->str:
        if v is UNASSIGNED:
            return "<undefined>"
        if v is None: return "nil"
        if isinstance(v, bool): return "true" if v else "false"
        if isinstance(v, float):
            if v.is_integer():
                return str(int(v))
            return repr(v)
        if isinstance(v, str): return v
        if isinstance(v, (LoxInstance, LoxClass, LoxFunction, NativeFunction)):
            return str(v)
        raise TypeError(f"Not a runtime value: {v!r}")

    def is_truthy(self, v:Value)->bool:
        if v is None: return False
        if isinstance(v, bool): return v
        return True

    def is_equal(self, a:Value, b:Value)->bool:
        if a is None or b is None:
            return a is b
        # True == 1.0 in Python, but a boolean never equals a number here
        if type(a) is not type(b):
            return False
        return a==b

    def check_number_operand(self, operator:Token, operand:Value):
        if isinstance(operand, float): return
        raise LoxRuntimeError(operator, f"Operand of '{operator.lexeme}' must be a number.")

    def check_number_operands(self, operator:Token, left:Value, right:Value):
        if isinstance(left, float) and isinstance(right, float): return
        raise LoxRuntimeError(operator, f"Operands of '{operator.lexeme}' must be numbers.")
