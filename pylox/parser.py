from __future__ import annotations
from typing import Callable, List, Optional

from pylox.diagnostics import Diagnostics
from pylox.nodes import (
    Assign, Binary, BlockStmt, BreakStmt, Call, ClassStmt, EmptyStmt, Expr,
    ExpressionStmt, Function, FunctionStmt, Get, Grouping, IfStmt, Literal,
    Logical, PrintStmt, ReturnStmt, SetExpr, Stmt, Ternary, This, Unary,
    VarStmt, Variable, WhileStmt,
)
from pylox.tokens import Token, TokenType

MAX_ARGS=255

# tokens that start a new declaration or statement
STATEMENT_STARTS = (
    TokenType.CLASS, TokenType.FUN, TokenType.VAR, TokenType.FOR,
    TokenType.IF, TokenType.WHILE, TokenType.PRINT, TokenType.RETURN,
)

LITERAL_KEYWORDS = {TokenType.FALSE: False, TokenType.TRUE: True, TokenType.NIL: None}

class ParseError(Exception):
    pass

class Parser:
    """Recursive-descent parser, one method per precedence level.

    Precedence, lowest first: comma, assignment, ternary, or, and, equality,
    comparison, term, factor, unary, call, primary.
    """

    def __init__(self, tokens:List[Token], diagnostics:Diagnostics):
        self.tokens=tokens
        self.diagnostics=diagnostics
        self.current=0
        # statement keyword -> parser for the rest of the statement
        self.statements={
            TokenType.PRINT: self.print_statement,
            TokenType.LEFT_BRACE: self.block_statement,
            TokenType.IF: self.if_statement,
            TokenType.WHILE: self.while_statement,
            TokenType.FOR: self.for_statement,
            TokenType.RETURN: self.return_statement,
            TokenType.BREAK: self.break_statement,
        }

    def parse(self)->List[Stmt]:
        program=[]
        while not self.is_at_end():
            try:
                program.append(self.declaration())
            except RecursionError:
                self.diagnostics.error_at(self.peek(), "Expression nesting too deep.")
                self.synchronize()
                program.append(EmptyStmt())
        return program

    def declaration(self)->Stmt:
        try:
            if self.match(TokenType.CLASS):
                return self.class_declaration()
            if self.check(TokenType.FUN) and self.peek_type(1)==TokenType.IDENTIFIER:
                self.advance()
                return self.function("function")
            if self.match(TokenType.VAR):
                return self.var_declaration()
            return self.statement()
        except ParseError:
            self.synchronize()
            return EmptyStmt()

    def class_declaration(self)->Stmt:
        name=self.consume(TokenType.IDENTIFIER, "Expect class name.")
        self.consume(TokenType.LEFT_BRACE, "Expect '{' before class body.")
        methods=[]
        while not self.check(TokenType.RIGHT_BRACE, TokenType.EOF):
            methods.append(self.function("method"))
        self.consume(TokenType.RIGHT_BRACE, "Expect '}' after class body.")
        return ClassStmt(name, methods)

    def function(self, kind:str)->FunctionStmt:
        name=self.consume(TokenType.IDENTIFIER, f"Expect {kind} name.")
        return FunctionStmt(name, self.function_body(kind, name))

    def function_body(self, kind:str, keyword:Token)->Function:
        """Parameter list and body shared by declarations, methods and ``fun`` literals."""
        self.consume(TokenType.LEFT_PAREN, f"Expect '(' after {kind} name.")
        params=self.comma_list(
            lambda: self.consume(TokenType.IDENTIFIER, "Expect parameter name."), "parameters")
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after parameters.")
        self.consume(TokenType.LEFT_BRACE, f"Expect '{{' before {kind} body.")
        return Function(keyword, params, self.block())

    def var_declaration(self)->VarStmt:
        name=self.consume(TokenType.IDENTIFIER, "Expect variable name.")
        initializer=self.expression() if self.match(TokenType.EQUAL) else None
        self.consume(TokenType.SEMICOLON, "Expect ';' after variable declaration.")
        return VarStmt(name, initializer)

    def statement(self)->Stmt:
        parse_rest=self.statements.get(self.peek().type)
        if parse_rest is None:
            return self.expression_statement()
        self.advance()
        return parse_rest()

    def block_statement(self)->Stmt:
        return BlockStmt(self.block())

    def return_statement(self)->Stmt:
        keyword=self.previous()
        value=self.optional_clause(TokenType.SEMICOLON, "Expect ';' after return value.")
        return ReturnStmt(keyword, value)

    def break_statement(self)->Stmt:
        keyword=self.previous()
        self.consume(TokenType.SEMICOLON, "Expect ';' after 'break'.")
        return BreakStmt(keyword)

    def if_statement(self)->Stmt:
        condition=self.parenthesized("if", "Expect ')' after if condition.")
        then_branch=self.statement()
        else_branch=self.statement() if self.match(TokenType.ELSE) else None
        return IfStmt(condition, then_branch, else_branch)

    def while_statement(self)->Stmt:
        condition=self.parenthesized("while", "Expect ')' after condition.")
        return WhileStmt(condition, self.statement())

    def for_statement(self)->Stmt:
        """Desugars ``for (init; cond; incr) body`` into a block holding a while loop."""
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'for'.")
        initializer: Optional[Stmt]=None
        if self.match(TokenType.VAR):
            initializer=self.var_declaration()
        elif not self.match(TokenType.SEMICOLON):
            initializer=self.expression_statement()
        condition=self.optional_clause(TokenType.SEMICOLON, "Expect ';' after loop condition.")
        increment=self.optional_clause(TokenType.RIGHT_PAREN, "Expect ')' after for clauses.")

        loop: Stmt=self.statement()
        if increment is not None:
            loop=BlockStmt([loop, ExpressionStmt(increment)])
        loop=WhileStmt(Literal(True) if condition is None else condition, loop)
        return loop if initializer is None else BlockStmt([initializer, loop])

    def block(self)->List[Stmt]:
        statements=[]
        while not self.check(TokenType.RIGHT_BRACE, TokenType.EOF):
            statements.append(self.declaration())
        self.consume(TokenType.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    def print_statement(self)->Stmt:
        value=self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after value.")
        return PrintStmt(value)

    def expression_statement(self)->Stmt:
        expr=self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after expression.")
        return ExpressionStmt(expr)

    def parenthesized(self, keyword:str, closing:str)->Expr:
        self.consume(TokenType.LEFT_PAREN, f"Expect '(' after '{keyword}'.")
        expr=self.expression()
        self.consume(TokenType.RIGHT_PAREN, closing)
        return expr

    def optional_clause(self, terminator:TokenType, message:str)->Optional[Expr]:
        """An expression that may be left out, followed by ``terminator``."""
        expr=None if self.check(terminator) else self.expression()
        self.consume(terminator, message)
        return expr

    def comma_list(self, item:Callable, what:str)->list:
        """Items separated by commas, stopping before a closing ')'.

        Going past MAX_ARGS is reported but parsing carries on.
        """
        items=[]
        if self.check(TokenType.RIGHT_PAREN):
            return items
        while True:
            if len(items)>=MAX_ARGS:
                self.error(self.peek(), f"Can't have more than {MAX_ARGS} {what}.")
            items.append(item())
            if not self.match(TokenType.COMMA):
                return items

    # ---------------------------
    # Expressions
    # ---------------------------

    def expression(self)->Expr:
        return self.binary(self.assignment, TokenType.COMMA)

    def assignment(self)->Expr:
        target=self.ternary()
        if not self.match(TokenType.EQUAL):
            return target
        equals=self.previous()
        value=self.assignment()
        if isinstance(target, Variable):
            return Assign(target.name, value)
        if isinstance(target, Get):
            return SetExpr(target.object, target.name, value)
        self.error(equals, "Invalid assignment target.")
        return target

    def ternary(self)->Expr:
        condition=self.logical(self.and_, TokenType.OR)
        if not self.match(TokenType.QUESTION):
            return condition
        then_branch=self.expression()
        self.consume(TokenType.COLON, "Expect ':' after then branch of conditional expression.")
        return Ternary(condition, then_branch, self.ternary())

    def and_(self)->Expr:
        return self.logical(self.equality, TokenType.AND)

    def logical(self, operand:Callable[[], Expr], type_:TokenType)->Expr:
        expr=operand()
        while self.match(type_):
            expr=Logical(expr, self.previous(), operand())
        return expr

    def equality(self)->Expr:
        return self.binary(self.comparison, TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL)

    def comparison(self)->Expr:
        return self.binary(self.term, TokenType.GREATER, TokenType.GREATER_EQUAL,
                           TokenType.LESS, TokenType.LESS_EQUAL)

    def term(self)->Expr:
        # a leading '-' is negation, so only '+' lacks a left operand
        return self.binary(self.factor, TokenType.MINUS, TokenType.PLUS,
                           leading=(TokenType.PLUS,))

    def factor(self)->Expr:
        return self.binary(self.unary, TokenType.SLASH, TokenType.STAR)

    def binary(self, operand:Callable[[], Expr], *types:TokenType,
               leading:Optional[tuple]=None)->Expr:
        """Parses a left-associative run of ``types`` over ``operand``.

        An operator with no left operand is reported, and its right operand is
        parsed anyway so the rest of the expression still gets checked.
        """
        if self.match(*(types if leading is None else leading)):
            op=self.previous()
            self.error(op, f"Binary operator '{op.lexeme}' without left operand.")
        expr=operand()
        while self.match(*types):
            op=self.previous()
            expr=Binary(expr, op, operand())
        return expr

    def unary(self)->Expr:
        if self.match(TokenType.BANG, TokenType.MINUS):
            op=self.previous()
            return Unary(op, self.unary())
        return self.call()

    def call(self)->Expr:
        expr=self.primary()
        while self.match(TokenType.LEFT_PAREN, TokenType.DOT):
            if self.previous().type==TokenType.DOT:
                expr=Get(expr, self.consume(TokenType.IDENTIFIER, "Expect property name after '.'."))
                continue
            args=self.comma_list(self.assignment, "arguments")
            paren=self.consume(TokenType.RIGHT_PAREN, "Expect ')' after arguments.")
            expr=Call(expr, paren, args)
        return expr

    def primary(self)->Expr:
        token=self.peek()
        if token.type in LITERAL_KEYWORDS:
            self.advance()
            return Literal(LITERAL_KEYWORDS[token.type])
        if self.match(TokenType.NUMBER, TokenType.STRING):
            return Literal(token.literal)
        if self.match(TokenType.THIS):
            return This(token)
        if self.match(TokenType.IDENTIFIER):
            return Variable(token)
        if self.match(TokenType.FUN):
            return self.function_body("function", token)
        if self.match(TokenType.LEFT_PAREN):
            inner=self.expression()
            self.consume(TokenType.RIGHT_PAREN, "Expect ')' after expression.")
            return Grouping(inner)
        if token.type==TokenType.SUPER:
            raise self.error(token, "Inheritance is not supported; 'super' is reserved.")
        raise self.error(token, "Expect expression.")

    def synchronize(self):
        """Skips tokens until just past a ';' or just before a statement keyword."""
        self.advance()
        while not self.is_at_end():
            if self.previous().type==TokenType.SEMICOLON or self.peek().type in STATEMENT_STARTS:
                return
            self.advance()

    # helpers
    def match(self, *types:TokenType)->bool:
        if self.check(*types):
            self.advance()
            return True
        return False

    def consume(self, type_:TokenType, message:str)->Token:
        if not self.check(type_):
            raise self.error(self.peek(), message)
        return self.advance()

    def check(self, *types:TokenType)->bool:
        return self.peek().type in types

    def peek_type(self, offset:int)->TokenType:
        index=min(self.current+offset, len(self.tokens)-1)
        return self.tokens[index].type

    def advance(self)->Token:
        if not self.is_at_end():
            self.current+=1
        return self.previous()

    def is_at_end(self)->bool:
        return self.peek().type==TokenType.EOF

    def peek(self)->Token:
        return self.tokens[self.current]

    def previous(self)->Token:
        return self.tokens[self.current-1]

    def error(self, token:Token, message:str)->ParseError:
        self.diagnostics.error_at(token, message)
        return ParseError(message)
