from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, Union, TYPE_CHECKING, runtime_checkable
import enum

from pylox.nodes import Function
from pylox.tokens import Token

if TYPE_CHECKING:
    from pylox.interpreter import Interpreter

# Every runtime value is one of: None (nil), bool, float, str, LoxCallable, LoxInstance.
Value = Union[None, bool, float, str, "LoxCallable", "LoxInstance"]

class LoxRuntimeError(Exception):
    def __init__(self, token:Token, message:str):
        super().__init__(message)
        self.token=token
        self.message=message
    def __str__(self):
        return f"{self.message}\n[line {self.token.line}]"

# ---------------------------
# Statement completion
# ---------------------------

class Signal(enum.Enum):
    NORMAL=enum.auto()
    BREAK=enum.auto()
    RETURN=enum.auto()

@dataclass(frozen=True)
class Completion:
    """Outcome of executing a statement.

    Loops consume BREAK, calls consume RETURN; every other statement passes a
    non-NORMAL completion straight back to its caller.
    """
    signal: Signal
    value: Any=None

NORMAL=Completion(Signal.NORMAL)
BREAK=Completion(Signal.BREAK)

def returning(value:Value)->Completion:
    return Completion(Signal.RETURN, value)

# ---------------------------
# Environments
# ---------------------------

# slot value of a variable declared without an initializer
UNASSIGNED=object()

class Environment:
    def __init__(self, enclosing:Optional['Environment']=None):
        self.enclosing=enclosing
        self.values: Dict[str, Any]={}

    def define(self, name:str, value:Any=UNASSIGNED):
        self.values[name]=value

    def get(self, name_token:Token)->Value:
        name=name_token.lexeme
        if name in self.values:
            return self._read(name_token, self.values[name])
        if self.enclosing is not None:
            return self.enclosing.get(name_token)
        raise LoxRuntimeError(name_token, f"Undefined variable '{name}'.")

    def assign(self, name_token:Token, value:Value):
        name=name_token.lexeme
        if name in self.values:
            self.values[name]=value
            return
        if self.enclosing is not None:
            self.enclosing.assign(name_token, value)
            return
        raise LoxRuntimeError(name_token, f"Undefined variable '{name}'.")

    def ancestor(self, distance:int)->'Environment':
        env=self
        for _ in range(distance):
            env=env.enclosing
        return env

    def get_at(self, distance:int, name_token:Token)->Value:
        values=self.ancestor(distance).values
        if name_token.lexeme not in values:
            raise LoxRuntimeError(name_token, f"Undefined variable '{name_token.lexeme}'.")
        return self._read(name_token, values[name_token.lexeme])

    def assign_at(self, distance:int, name_token:Token, value:Value):
        self.ancestor(distance).values[name_token.lexeme]=value

    @staticmethod
    def _read(name_token:Token, value:Any)->Value:
        if value is UNASSIGNED:
            raise LoxRuntimeError(name_token, f"Variable '{name_token.lexeme}' has not been assigned.")
        return value

# ---------------------------
# Callables
# ---------------------------

@runtime_checkable
class LoxCallable(Protocol):
    def arity(self)->int: ...
    def call(self, interpreter:'Interpreter', arguments:List[Value])->Value: ...

class NativeFunction:
    def __init__(self, name:str, arity_:int, func:Callable[..., Value]):
        self.name=name
        self._arity=arity_
        self._func=func
    def arity(self)->int:
        return self._arity
    def call(self, interpreter:'Interpreter', arguments:List[Value])->Value:
        return self._func(interpreter, *arguments)
    def __str__(self)->str:
        return f"<native fn {self.name}>"

class LoxFunction:
    def __init__(self, name:Optional[str], declaration:Function, closure:Environment, is_initializer:bool=False):
        self.name=name
        self.declaration=declaration
        self.closure=closure
        self.is_initializer=is_initializer

    def bind(self, instance:'LoxInstance')->'LoxFunction':
        env=Environment(self.closure)
        env.define("this", instance)
        return LoxFunction(self.name, self.declaration, env, self.is_initializer)

    def arity(self)->int:
        return len(self.declaration.params)

    def call(self, interpreter:'Interpreter', arguments:List[Value])->Value:
        env=Environment(self.closure)
        for param, arg in zip(self.declaration.params, arguments):
            env.define(param.lexeme, arg)
        completion=interpreter.execute_block(self.declaration.body, env)
        if self.is_initializer:
            return self.closure.values["this"]
        if completion.signal is Signal.RETURN:
            return completion.value
        return None

    def __str__(self)->str:
        if self.name is None:
            return "<fn>"
        return f"<fn {self.name}>"

class LoxClass:
    def __init__(self, name:str, methods:Dict[str, LoxFunction]):
        self.name=name
        self.methods=methods

    def find_method(self, name:str)->Optional[LoxFunction]:
        return self.methods.get(name)

    def arity(self)->int:
        initializer=self.find_method("init")
        if initializer:
            return initializer.arity()
        return 0

    def call(self, interpreter:'Interpreter', arguments:List[Value])->Value:
        instance=interpreter.make_instance(self)
        initializer=self.find_method("init")
        if initializer:
            initializer.bind(instance).call(interpreter, arguments)
        return instance

    def __str__(self)->str:
        return self.name

class LoxInstance:
    def __init__(self, klass:LoxClass, obj_id:int):
        self.klass=klass
        self.id=obj_id
        self.fields: Dict[str, Value]={}

    def get(self, name_token:Token)->Value:
        name=name_token.lexeme
        if name in self.fields:
            return self.fields[name]
        method=self.klass.find_method(name)
        if method:
            return method.bind(self)
        raise LoxRuntimeError(name_token, f"Undefined property '{name}'.")

    def set(self, name_token:Token, value:Value, interpreter:'Interpreter'):
        field=name_token.lexeme
        old=self.fields.get(field, UNASSIGNED)
        self.fields[field]=value
        if interpreter.tracing:
            interpreter.record_event("set", name_token.line,
                                     object=self.label(),
                                     field=field,
                                     old=interpreter.stringify(old),
                                     new=interpreter.stringify(value))

    def label(self)->str:
        return f"{self.klass.name}#{self.id}"

    def __str__(self):
        return f"{self.klass.name} instance"
