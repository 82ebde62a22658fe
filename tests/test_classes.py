import io
import unittest
from contextlib import redirect_stdout

from pylox.cli import run_source
from pylox.diagnostics import Diagnostics
from pylox.interpreter import Interpreter
from pylox.runtime import LoxClass, LoxInstance


def run(source, interpreter=None):
    interpreter = interpreter or Interpreter()
    diagnostics = Diagnostics()
    out = io.StringIO()
    with redirect_stdout(out):
        run_source(source, interpreter, diagnostics)
    return out.getvalue().splitlines(), diagnostics


class TestClasses(unittest.TestCase):
    def assertPrints(self, source, *lines):
        output, diagnostics = run(source)
        self.assertEqual(diagnostics.messages, [])
        self.assertEqual(output, list(lines))

    def assertRuntimeError(self, source, message, line=1):
        _, diagnostics = run(source)
        self.assertEqual(diagnostics.messages, [f"{message}\n[line {line}]"])

    def test_init_and_method(self):
        self.assertPrints("""
            class Foo { init(x) { this.x = x; } getX() { return this.x; } }
            print Foo(5).getX();
        """, "5")

    def test_init_arity(self):
        self.assertRuntimeError("""class Foo { init(x) { this.x = x; } }
            Foo(1, 2);""", "Expected 1 arguments but got 2.", line=2)

    def test_class_without_init_takes_no_arguments(self):
        self.assertRuntimeError("class A {} A(1);", "Expected 0 arguments but got 1.")

    def test_fields_created_on_assignment(self):
        self.assertPrints("""
            class Point {}
            var p = Point();
            p.x = 1; p.y = 2;
            p.x = p.x + p.y;
            print p.x;
        """, "3")

    def test_field_shadows_method(self):
        self.assertPrints("""
            class A { m() { return "method"; } }
            var a = A();
            print a.m();
            a.m = fun () { return "field"; };
            print a.m();
        """, "method", "field")

    def test_bound_method_remembers_instance(self):
        self.assertPrints("""
            class Person { init(name) { this.name = name; } greet() { return "hi " + this.name; } }
            var greet = Person("ada").greet;
            print greet();
        """, "hi ada")

    def test_methods_are_bound_at_access_time(self):
        self.assertPrints("""
            class A { who() { return this.tag; } }
            var a = A(); a.tag = "a";
            var b = A(); b.tag = "b";
            b.who = a.who;
            print b.who();
        """, "a")

    def test_instances_share_class_but_not_fields(self):
        self.assertPrints("""
            class Counter { init() { this.n = 0; } inc() { this.n = this.n + 1; return this; } }
            var a = Counter(); var b = Counter();
            a.inc().inc();
            b.inc();
            print a.n; print b.n;
        """, "2", "1")

    def test_init_returns_instance(self):
        self.assertPrints("""
            class A { init() { this.v = 1; return; } }
            var a = A();
            print a.init();
            print a.init() == a;
        """, "A instance", "true")

    def test_explicit_return_value_in_init_yields_instance(self):
        self.assertPrints("""
            class A { init() { return 42; } }
            print A();
        """, "A instance")

    def test_this_captured_by_closure(self):
        self.assertPrints("""
            class Box {
              init(v) { this.v = v; }
              getter() { fun get() { return this.v; } return get; }
            }
            print Box("inside").getter()();
        """, "inside")

    def test_class_is_callable_value(self):
        self.assertPrints("""
            class A {}
            fun make(k) { return k(); }
            print make(A);
        """, "A instance")

    def test_method_can_reference_class_by_name(self):
        self.assertPrints("""
            class Node { init(n) { this.n = n; } next() { return Node(this.n + 1); } }
            print Node(1).next().next().n;
        """, "3")

    def test_undefined_property(self):
        self.assertRuntimeError("class A {} A().nope;", "Undefined property 'nope'.")

    def test_property_on_non_instance(self):
        self.assertRuntimeError('var s = "str"; print s.length;', "Only instances have properties.")

    def test_set_on_non_instance(self):
        self.assertRuntimeError("var n = 1; n.x = 2;", "Only instances have fields.")

    def test_set_evaluates_object_before_value(self):
        self.assertRuntimeError("nil.x = missing;", "Only instances have fields.")

    def test_instances_in_runtime(self):
        interpreter = Interpreter()
        run("class A { init() { this.k = 7; } } var a = A();", interpreter)
        a = interpreter.globals.values["a"]
        self.assertIsInstance(a, LoxInstance)
        self.assertIsInstance(a.klass, LoxClass)
        self.assertEqual(a.fields, {"k": 7.0})
        self.assertIs(interpreter.globals.values["A"], a.klass)


if __name__ == "__main__":
    unittest.main()
