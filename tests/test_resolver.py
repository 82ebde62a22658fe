import unittest

from pylox.diagnostics import Diagnostics
from pylox.nodes import Assign, Variable
from pylox.parser import Parser
from pylox.resolver import Resolver
from pylox.scanner import Scanner


def resolve(source):
    diagnostics = Diagnostics()
    tokens = Scanner(source, diagnostics).scan_tokens()
    statements = Parser(tokens, diagnostics).parse()
    assert not diagnostics.had_error, diagnostics.messages
    bindings = Resolver(diagnostics).resolve(statements)
    return statements, bindings, diagnostics


class TestBindings(unittest.TestCase):
    def test_globals_are_not_annotated(self):
        statements, bindings, diagnostics = resolve("var a = 1; print a;")
        self.assertFalse(diagnostics.had_error)
        self.assertEqual(bindings, {})

    def test_distance_counts_enclosing_scopes(self):
        statements, bindings, _ = resolve("{ var a = 1; { { print a; } } }")
        inner = statements[0].statements[1].statements[0].statements[0]
        self.assertIsInstance(inner.expression, Variable)
        self.assertEqual(bindings[inner.expression], 2)

    def test_innermost_declaration_wins(self):
        statements, bindings, _ = resolve("{ var a = 1; { var a = 2; print a; } }")
        inner = statements[0].statements[1].statements[1]
        self.assertEqual(bindings[inner.expression], 0)

    def test_assignment_is_annotated(self):
        statements, bindings, _ = resolve("{ var a; { a = 2; } }")
        assign = statements[0].statements[1].statements[0].expression
        self.assertIsInstance(assign, Assign)
        self.assertEqual(bindings[assign], 1)

    def test_parameters_and_closures(self):
        statements, bindings, diagnostics = resolve(
            "fun outer(x) { fun inner() { return x; } return inner; }")
        self.assertFalse(diagnostics.had_error)
        inner = statements[0].function.body[0]
        returned = inner.function.body[0].value
        self.assertEqual(bindings[returned], 1)

    def test_this_resolves_through_method_scope(self):
        statements, bindings, diagnostics = resolve("class A { m() { return this; } }")
        self.assertFalse(diagnostics.had_error)
        this = statements[0].methods[0].function.body[0].value
        self.assertEqual(bindings[this], 1)

    def test_identical_nodes_get_separate_entries(self):
        statements, bindings, _ = resolve("{ var a = 1; print a; print a; }")
        first = statements[0].statements[1].expression
        second = statements[0].statements[2].expression
        self.assertIsNot(first, second)
        self.assertEqual(len(bindings), 2)


class TestErrors(unittest.TestCase):
    def assertErrors(self, source, *messages):
        _, _, diagnostics = resolve(source)
        self.assertEqual(diagnostics.messages, list(messages))

    def test_self_reference_in_initializer(self):
        self.assertErrors('var a = "x"; { var a = a; }',
                          "[line 1] Error at 'a': Can't read local variable in its own initializer.")

    def test_global_self_reference_is_allowed(self):
        self.assertErrors("var a = a;")

    def test_duplicate_declaration(self):
        self.assertErrors("{ var a = 1; var a = 2; }",
                          "[line 1] Error at 'a': Already a variable with this name in this scope.")

    def test_duplicate_parameter(self):
        self.assertErrors("fun f(a, a) {}",
                          "[line 1] Error at 'a': Already a variable with this name in this scope.")

    def test_global_redeclaration_is_allowed(self):
        self.assertErrors("var a = 1; var a = 2;")

    def test_return_at_top_level(self):
        self.assertErrors("return 1;",
                          "[line 1] Error at 'return': Can't return from top-level code.")

    def test_break_outside_loop(self):
        self.assertErrors("break;",
                          "[line 1] Error at 'break': Can't use 'break' outside of a loop.")

    def test_break_in_function_inside_loop(self):
        self.assertErrors("while (true) { fun f() { break; } }",
                          "[line 1] Error at 'break': Can't use 'break' outside of a loop.")

    def test_loop_depth_restored_after_loop(self):
        self.assertErrors("while (true) { break; } break;",
                          "[line 1] Error at 'break': Can't use 'break' outside of a loop.")

    def test_function_kind_restored_after_function(self):
        self.assertErrors("fun f() { return 1; } return 2;",
                          "[line 1] Error at 'return': Can't return from top-level code.")

    def test_this_outside_class(self):
        self.assertErrors("print this;",
                          "[line 1] Error at 'this': Can't use 'this' outside of a class.")

    def test_this_in_function_outside_class(self):
        self.assertErrors("fun f() { return this; }",
                          "[line 1] Error at 'this': Can't use 'this' outside of a class.")

    def test_resolution_continues_after_error(self):
        self.assertErrors("return 1;\n{ var b = 1; var b = 2; }",
                          "[line 1] Error at 'return': Can't return from top-level code.",
                          "[line 2] Error at 'b': Already a variable with this name in this scope.")


if __name__ == "__main__":
    unittest.main()
