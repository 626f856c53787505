"""
Tests for the MinJ interpreter: declarations, invocation, control flow,
operators and the object model, run end to end from source.
"""

import io
import logging
import textwrap

import pytest
from minj import (
    run_source, execute, tokenize, parse, Interpreter, InterpreterConfig, Tag,
    UndefinedVariableError, ImmutableReassignmentError, TypeMismatchError,
    ArityMismatchError, UnknownClassError, UnknownCallableError,
    UnknownMethodError, NotIterableError, OperatorError,
)


def run(source: str, stdin: str = ""):
    """Run source; return (output, context)."""
    out = io.StringIO()
    ctx = run_source(textwrap.dedent(source), stdout=out, stdin=io.StringIO(stdin))
    return out.getvalue(), ctx


def output(source: str, stdin: str = "") -> str:
    return run(source, stdin)[0]


def lines(source: str):
    return output(source).splitlines()


class TestProperties:
    """End-to-end behaviours every implementation must show."""

    def test_val_reassignment_fails_even_with_same_type(self):
        """Writing a val fails even when the type matches."""
        with pytest.raises(ImmutableReassignmentError):
            run("""
                val x = 1
                x = 2
            """)

    def test_static_var_rejects_other_tag(self):
        """A typed var refuses a value of another type."""
        with pytest.raises(TypeMismatchError):
            run("""
                var int x = 1
                x = "s"
            """)

    def test_static_var_accepts_same_tag(self):
        """A typed var takes a value of its own type."""
        assert lines("""
            var int x = 1
            x = 5
            print(x)
        """) == ["5"]

    def test_multi_value_bind(self):
        """Two returned values bind to two names."""
        _, ctx = run("""
            def pair() do: return 1, 2 end
            var p, q = pair()
        """)
        assert ctx.get_global("p").data == 1
        assert ctx.get_global("q").data == 2

    def test_multi_value_to_single_name_fails(self):
        """Two returned values cannot bind to one name."""
        with pytest.raises(ArityMismatchError):
            run("""
                def pair() do: return 1, 2 end
                var r = pair()
            """)

    def test_multi_value_count_must_match(self):
        """Three returned values cannot bind to two names."""
        with pytest.raises(ArityMismatchError):
            run("""
                def triple() do: return 1, 2, 3 end
                var a, b = triple()
            """)

    def test_single_value_to_two_names_fails(self):
        """One returned value cannot bind to two names."""
        with pytest.raises(ArityMismatchError):
            run("""
                def one() do: return 1 end
                var a, b = one()
            """)

    def test_for_counts_up(self):
        """A for loop includes both bounds."""
        assert lines("for i = 1 to 5 do: print(i) end") == ["1", "2", "3", "4", "5"]

    def test_for_empty_range(self):
        """A for loop whose start exceeds the bound never runs."""
        assert output("for i = 5 to 1 do: print(i) end") == ""

    def test_foreach_squares(self):
        """foreach visits list elements in order."""
        assert lines("foreach x in [1,2,3] do: print(x*x) end") == ["1", "4", "9"]

    def test_instances_are_isolated(self):
        """Writing one instance's field leaves another alone."""
        assert lines("""
            class C { var n = 0 }
            var a = new C()
            var b = new C()
            a.n = 5
            print(b.n)
            print(a.n)
        """) == ["0", "5"]

    def test_integer_and_double_division(self):
        """int / int truncates; a double operand divides exactly."""
        assert lines("""
            print(23 / 5)
            print(23.0 / 5)
        """) == ["4", "4.6"]

    def test_string_concatenation_both_sides(self):
        """+ concatenates when either side is a String."""
        assert lines("""
            print(1 + "x")
            print("x" + 1)
        """) == ["1x", "x1"]


class TestDeclarations:
    """Test declarations, defaults and scoping."""

    def test_defaults(self):
        """Bare declarations take their type's default."""
        assert lines("""
            int i
            double d
            boolean b
            String s
            var u
            print(i)
            print(d)
            print(b)
            print("[" + s + "]")
            print("[" + u + "]")
        """) == ["0", "0.0", "false", "[]", "[]"]

    def test_float_default_keeps_tag(self):
        """A float declaration defaults to a float zero."""
        _, ctx = run("float f")
        assert ctx.get_global("f").tag == Tag.FLOAT

    def test_declared_type_checked_on_initializer(self):
        """A typed initializer must match the type."""
        with pytest.raises(TypeMismatchError):
            run('var int x = "no"')

    def test_dynamic_var_changes_type(self):
        """An untyped var can change type."""
        assert lines("""
            var x = 1
            x = "now a string"
            print(x)
        """) == ["now a string"]

    def test_val_infers_static_type(self):
        """An untyped val takes its initializer's type."""
        _, ctx = run("val pi = 3.14")
        assert ctx.get_global("pi").tag == Tag.DOUBLE

    def test_untyped_val_without_initializer(self):
        """An untyped val without a value holds the empty string."""
        _, ctx = run("val s")
        assert ctx.get_global("s").data == ""

    def test_parallel_declaration(self):
        """Several names declare from several values."""
        _, ctx = run("var a, b = 1, 2")
        assert ctx.get_global("a").data == 1
        assert ctx.get_global("b").data == 2

    def test_swap(self):
        """Parallel assignment evaluates every value first."""
        assert lines("""
            var a, b = 1, 2
            a, b = b, a
            print(a)
            print(b)
        """) == ["2", "1"]

    def test_list_destructuring(self):
        """A list spreads across several names."""
        assert lines("""
            var a, b = [10, 20]
            print(a + b)
        """) == ["30"]

    def test_undefined_variable(self):
        """Reading an unknown name raises E401."""
        with pytest.raises(UndefinedVariableError) as exc_info:
            run("print(nope)")
        assert exc_info.value.code == "E401"

    def test_method_locals_do_not_leak(self):
        """Method locals vanish after the call."""
        with pytest.raises(UndefinedVariableError):
            run("""
                def f() do: var inner = 1 end
                f()
                print(inner)
            """)

    def test_methods_see_globals(self):
        """Method bodies read globals."""
        assert lines("""
            var g = 7
            def show() do: print(g) end
            show()
        """) == ["7"]

    def test_method_writes_global(self):
        """Method bodies write globals in place."""
        assert lines("""
            var count = 0
            def bump() do: count = count + 1 end
            bump()
            bump()
            print(count)
        """) == ["2"]


class TestInvocation:
    """Test calls and returns."""

    def test_recursion(self):
        """Methods may call themselves."""
        assert lines("""
            def fib(n) do:
                if n < 2 then: return n end
                return fib(n - 1) + fib(n - 2)
            end
            print(fib(15))
        """) == ["610"]

    def test_no_return_gives_void(self):
        """A method without return yields void."""
        assert lines("""
            def nothing() do: end
            print(nothing())
        """) == ["null"]

    def test_return_unwinds_loops(self):
        """return leaves every enclosing loop."""
        assert lines("""
            def first_over(limit) do:
                foreach x in [1, 5, 9, 12] do:
                    while true do:
                        if x > limit then: return x end
                        x = 0
                        return -1
                    end
                end
                return 0
            end
            print(first_over(0))
            print(first_over(100))
        """) == ["1", "-1"]

    def test_return_restores_caller_frame(self):
        """The caller's locals survive a nested call."""
        assert lines("""
            def inner() do:
                var x = "inner"
                return x
            end
            def outer() do:
                var x = "outer"
                var y = inner()
                return x + "/" + y
            end
            print(outer())
        """) == ["outer/inner"]

    def test_parameters_are_static(self):
        """A parameter keeps the type of its argument."""
        with pytest.raises(TypeMismatchError):
            run("""
                def f(n) do: n = "s" end
                f(1)
            """)

    def test_parameters_are_mutable(self):
        """Parameters may be reassigned."""
        assert lines("""
            def f(n) do:
                n = n + 1
                return n
            end
            print(f(1))
        """) == ["2"]

    def test_call_arity_checked(self):
        """Argument count must equal parameter count."""
        with pytest.raises(ArityMismatchError):
            run("""
                def f(a, b) do: end
                f(1)
            """)

    def test_unknown_function(self):
        """Calling an unknown name raises E406."""
        with pytest.raises(UnknownCallableError) as exc_info:
            run("missing(1)")
        assert exc_info.value.code == "E406"

    def test_unknown_function_fails_before_arguments(self):
        """Arguments are not evaluated for an unknown callable."""
        out = io.StringIO()
        with pytest.raises(UnknownCallableError):
            run_source('missing(print("side effect"))', stdout=out)
        assert out.getvalue() == ""

    def test_user_method_shadows_builtin(self):
        """A global def named print replaces the builtin."""
        assert lines("""
            def print(x) do: end
            print(1)
        """) == []

    def test_class_methods_are_not_global(self):
        """Class methods are not callable without a receiver."""
        with pytest.raises(UnknownCallableError):
            run("""
                class C { def m() do: end }
                m()
            """)

    def test_return_value_reused_as_argument(self):
        """A multi-value result passes as a single list argument."""
        assert lines("""
            def pair() do: return 3, 4 end
            def count(xs) do:
                var n = 0
                foreach x in xs do: n = n + 1 end
                return n
            end
            print(count(pair()))
        """) == ["2"]


class TestControlFlow:
    """Test if, while, for and foreach."""

    def test_if_elif_else(self):
        """The first true guard wins; else runs otherwise."""
        source = """
            def sign(x) do:
                if x < 0 then: return "neg"
                elif x == 0 then: return "zero"
                else: return "pos"
                end
            end
            print(sign(-3))
            print(sign(0))
            print(sign(8))
        """
        assert lines(source) == ["neg", "zero", "pos"]

    def test_if_guard_must_be_boolean_true(self):
        """A non-Boolean guard is simply not taken."""
        assert lines("""
            if 1 then: print("taken") else: print("skipped") end
        """) == ["skipped"]

    def test_while(self):
        """while repeats until its condition is false."""
        assert lines("""
            var i = 0
            while i < 3 do:
                print(i)
                i = i + 1
            end
        """) == ["0", "1", "2"]

    def test_while_condition_must_be_boolean(self):
        """A non-Boolean while condition raises E403."""
        with pytest.raises(TypeMismatchError):
            run("while 1 do: end")

    def test_for_step_expression(self):
        """A step expression is added on each advance."""
        assert lines("for i = 0 to 10 step 4 do: print(i) end") == ["0", "4", "8"]

    def test_for_step_assignment(self):
        """A step assignment replaces the default advance."""
        assert lines("for var i = 1 to 20 step i = i * 3 do: print(i) end") == ["1", "3", "9"]

    def test_for_double_loop(self):
        """A double loop variable advances by 1.0."""
        assert lines("for double x = 0.5 to 1.5 do: print(x) end") == ["0.5", "1.5"]

    def test_for_bounds_compare_as_doubles(self):
        """Loop bounds compare numerically across types."""
        assert lines("for i = 1 to 2.5 do: print(i) end") == ["1", "2"]

    def test_for_upper_bound_evaluated_once(self):
        """The upper bound is fixed when the loop starts."""
        assert lines("""
            var n = 3
            for i = 1 to n do:
                n = 100
                print(i)
            end
        """) == ["1", "2", "3"]

    def test_for_body_sees_cell_updates(self):
        """Body writes to the loop variable affect the count."""
        assert lines("""
            for i = 1 to 10 do:
                print(i)
                i = i + 4
            end
        """) == ["1", "6"]

    def test_for_shadows_val_of_same_name(self):
        """An undeclared loop variable replaces a val of the same name."""
        assert lines("""
            val i = 0
            for i = 1 to 3 do: print(i) end
        """) == ["1", "2", "3"]

    def test_for_ignores_declared_type_of_existing_name(self):
        """An undeclared loop variable is dynamic, whatever the old binding was."""
        assert lines("""
            var int i = 0
            for i = 0.5 to 2 do: print(i) end
        """) == ["0.5", "1.5"]

    def test_for_in_method_leaves_field_alone(self):
        """Inside a method the loop variable is local, not the field."""
        assert lines("""
            class C {
                var i = 10
                def run() do:
                    for i = 1 to 2 do: end
                    print(this.i)
                    print(i)
                end
            }
            new C().run()
        """) == ["10", "3"]

    def test_for_in_method_leaves_global_alone(self):
        """Inside a method the loop variable does not touch the global."""
        assert lines("""
            var i = 100
            def f() do:
                for i = 1 to 2 do: end
            end
            f()
            print(i)
        """) == ["100"]

    def test_for_non_numeric_bound(self):
        """A non-numeric bound raises E403."""
        with pytest.raises(TypeMismatchError):
            run('for i = 1 to "x" do: end')

    def test_for_val_cannot_advance(self):
        """A val loop variable fails on the first advance."""
        with pytest.raises(ImmutableReassignmentError):
            run("for val i = 1 to 3 do: end")

    def test_foreach_requires_list(self):
        """foreach over a non-list raises E408."""
        with pytest.raises(NotIterableError) as exc_info:
            run("foreach x in 5 do: end")
        assert exc_info.value.code == "E408"

    def test_foreach_variable_is_dynamic(self):
        """The foreach variable accepts any type."""
        assert lines("""
            foreach x in [1, "a", true] do:
                x = 2.5
                print(x)
            end
        """) == ["2.5", "2.5", "2.5"]


class TestOperators:
    """Test operator semantics."""

    def test_int_arithmetic_stays_int(self):
        """int op int gives int."""
        _, ctx = run("var r = 7 * 6 - 2 % 3")
        assert ctx.get_global("r").tag == Tag.INT
        assert ctx.get_global("r").data == 40

    def test_mixed_arithmetic_promotes_to_double(self):
        """int op float gives double."""
        _, ctx = run("var r = 1 + 1.5f")
        assert ctx.get_global("r").tag == Tag.DOUBLE

    def test_float_arithmetic_stays_float(self):
        """float op float gives float."""
        _, ctx = run("var r = 1.5f + 1.5f")
        assert ctx.get_global("r").tag == Tag.FLOAT

    def test_int_overflow_wraps(self):
        """int arithmetic wraps at 32 bits."""
        assert lines("print(2147483647 + 1)") == ["-2147483648"]

    def test_truncating_division_and_remainder(self):
        """Division and remainder truncate toward zero."""
        assert lines("""
            print(-7 / 2)
            print(-7 % 2)
        """) == ["-3", "-1"]

    def test_integer_division_by_zero(self):
        """Integer division by zero raises E409."""
        with pytest.raises(OperatorError) as exc_info:
            run("print(1 / 0)")
        assert exc_info.value.code == "E409"

    def test_double_division_by_zero(self):
        """Double division by zero gives an infinity."""
        assert lines("""
            print(1.0 / 0)
            print(-1 / 0.0)
        """) == ["Infinity", "-Infinity"]

    def test_comparisons_promote(self):
        """Comparisons work across numeric types."""
        assert lines("""
            print(1 < 1.5)
            print(2 >= 2.0)
        """) == ["true", "true"]

    def test_equality_is_tag_strict(self):
        """== compares tag and data; lists compare deeply."""
        assert lines("""
            print(1 == 1)
            print(1 == 1.0)
            print("a" != "b")
            print([1, [2]] == [1, [2]])
        """) == ["true", "false", "true", "true"]

    def test_object_equality_is_identity(self):
        """Objects are equal only to themselves."""
        assert lines("""
            class P { }
            var a = new P()
            var b = new P()
            print(a == a)
            print(a == b)
        """) == ["true", "false"]

    def test_logical_operators(self):
        """and, or, xor and not follow Boolean logic."""
        assert lines("""
            print(true and false)
            print(true or false)
            print(true xor true)
            print(not false)
            print(!true)
        """) == ["false", "true", "false", "true", "false"]

    def test_logical_operators_do_not_short_circuit(self):
        """Both operands of and/or are always evaluated."""
        assert lines("""
            def t(label) do:
                print(label)
                return true
            end
            var r = false and t("right side ran")
            var s = true or t("also ran")
        """) == ["right side ran", "also ran"]

    def test_logical_operands_must_be_boolean(self):
        """A non-Boolean logical operand raises E409."""
        with pytest.raises(OperatorError):
            run("var r = 1 and true")

    def test_not_requires_boolean(self):
        """not on a non-Boolean raises E409."""
        with pytest.raises(OperatorError):
            run("var r = not 1")

    def test_negation_keeps_tag(self):
        """Unary minus keeps the operand's numeric type."""
        _, ctx = run("""
            var a = -5
            var b = -2.5f
        """)
        assert ctx.get_global("a").tag == Tag.INT
        assert ctx.get_global("b").tag == Tag.FLOAT

    def test_negation_of_string(self):
        """Unary minus on a String raises E409."""
        with pytest.raises(OperatorError):
            run('var r = -"s"')

    def test_arithmetic_on_strings(self):
        """Arithmetic other than + on Strings raises E409."""
        with pytest.raises(OperatorError):
            run('var r = "a" * 2')

    def test_char_concatenation(self):
        """A char concatenates with a number as text."""
        assert lines("print('a' + 1)") == ["a1"]

    def test_list_literal_display(self):
        """Lists print their elements comma-separated."""
        assert lines('print([1, 2.0, "x", true])') == ["[1, 2.0, x, true]"]


class TestClasses:
    """Test classes, fields and methods."""

    def test_method_uses_this_and_fields(self):
        """Methods read and write fields bare or through this."""
        assert lines("""
            class Counter {
                var n = 0
                def inc(by) do:
                    n = n + by
                    return this.n
                end
            }
            var c = new Counter()
            c.inc(2)
            print(c.inc(3))
        """) == ["5"]

    def test_this_method_call(self):
        """this.m() calls another method on the receiver."""
        assert lines("""
            class A {
                def twice(x) do: return this.once(x) + this.once(x) end
                def once(x) do: return x end
            }
            print(new A().twice(4))
        """) == ["8"]

    def test_static_block_runs_once_at_registration(self):
        """Class-body statements run once, when the class is declared."""
        assert lines("""
            print("before")
            class S {
                var v = 1
                print("static")
            }
            var a = new S()
            var b = new S()
            print("after")
        """) == ["before", "static", "after"]

    def test_field_type_enforced(self):
        """A typed field refuses other types."""
        with pytest.raises(TypeMismatchError):
            run("""
                class P { var int x = 0 }
                var p = new P()
                p.x = "s"
            """)

    def test_val_field_is_immutable(self):
        """A val field cannot be written."""
        with pytest.raises(ImmutableReassignmentError):
            run("""
                class P { val id = 1 }
                var p = new P()
                p.id = 2
            """)

    def test_list_fields_not_shared(self):
        """List fields are copied per instance."""
        assert lines("""
            class Bag {
                var items = [1]
                def add(x) do: items = [items, x] end
            }
            var a = new Bag()
            var b = new Bag()
            a.add(2)
            print(a.items)
            print(b.items)
        """) == ["[[1], 2]", "[1]"]

    def test_unknown_class(self):
        """new of an unknown class raises E405."""
        with pytest.raises(UnknownClassError) as exc_info:
            run("var x = new Nope()")
        assert exc_info.value.code == "E405"

    def test_unknown_method(self):
        """Calling an undefined method raises E407."""
        with pytest.raises(UnknownMethodError):
            run("""
                class C { }
                new C().m()
            """)

    def test_missing_field(self):
        """Reading an undefined field raises E401."""
        with pytest.raises(UndefinedVariableError):
            run("""
                class C { }
                print(new C().x)
            """)

    def test_field_access_on_non_object(self):
        """Field access on a non-object raises E403."""
        with pytest.raises(TypeMismatchError):
            run("""
                var n = 1
                print(n.x)
            """)

    def test_this_outside_method(self):
        """this is undefined at top level."""
        with pytest.raises(UndefinedVariableError):
            run("print(this)")

    def test_object_display(self):
        """Objects print as ClassName@hex."""
        out = output("""
            class Point { }
            print(new Point())
        """)
        assert out.startswith("Point@")


class TestBuiltins:
    """Test print and input."""

    def test_print_without_argument(self):
        """print() writes an empty line."""
        assert output("print()") == "\n"

    def test_print_double_formatting(self):
        """Doubles print in Java notation."""
        assert lines("""
            print(1.0E20)
            print(0.0001)
            print(10.0 / 4)
        """) == ["1.0E20", "1.0E-4", "2.5"]

    def test_input_reads_line(self):
        """input writes the prompt and returns the line without its newline."""
        out, ctx = run("""
            var name = input("name? ")
            print("hi " + name)
        """, stdin="Ada\n")
        assert out == "name? hi Ada\n"
        assert ctx.get_global("name").tag == Tag.STRING

    def test_input_at_eof(self):
        """input at end of input returns the empty string."""
        _, ctx = run("var s = input()", stdin="")
        assert ctx.get_global("s").data == ""

    def test_input_prompt_must_be_string(self):
        """A non-String prompt raises E403."""
        with pytest.raises(TypeMismatchError):
            run("var s = input(1)")

    def test_builtin_arity(self):
        """print takes at most one argument."""
        with pytest.raises(ArityMismatchError):
            run("print(1, 2)")


class TestExecuteApi:
    """Test the public entry points."""

    def test_execute_returns_state(self):
        """execute returns the final interpreter state."""
        program = parse(tokenize("""
            class C { }
            def f() do: end
            var x = 1
        """))
        ctx = execute(program, stdout=io.StringIO())
        assert "C" in ctx.classes
        assert "f" in ctx.methods
        assert ctx.get_global("x").data == 1

    def test_runs_are_independent(self):
        """Each run starts from a fresh state."""
        interp = Interpreter(stdout=io.StringIO())
        program = parse(tokenize("var x = 1"))
        first = interp.execute(program)
        second = interp.execute(program)
        assert first.globals is not second.globals

    def test_runtime_error_has_source_line(self):
        """Runtime errors carry the offending source line."""
        with pytest.raises(UndefinedVariableError) as exc_info:
            run_source("var a = 1\nprint(b)", stdout=io.StringIO())
        assert exc_info.value.diagnostic.source_line == "print(b)"
        assert "^" in str(exc_info.value)

    def test_trace_calls_logs_invocations(self, caplog):
        """trace_calls logs every invocation at DEBUG."""
        config = InterpreterConfig(trace_calls=True)
        with caplog.at_level(logging.DEBUG, logger="minj"):
            run_source("def f() do: end\nf()", config=config, stdout=io.StringIO())
        assert any("invoke f/0" in r.getMessage() for r in caplog.records)
