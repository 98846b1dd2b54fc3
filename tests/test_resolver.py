"""Tests for flat and deep resolution."""

import warnings

import pytest

from sigil.ast import (
    Action,
    Array,
    Bool,
    Difference,
    Existence,
    Member,
    Null,
    Number,
    Object,
    Product,
    Reference,
    Similarity,
    String,
)
from sigil.errors import (
    BudgetExceededError,
    DefinitionError,
    EscalatedWarning,
    FieldNotFoundError,
    NestingError,
    NotStructuredError,
    ResolutionError,
)
from sigil.models import ResolveOptions
from sigil.parser import parse_expression
from sigil.registry import BUILTINS, Registry
from sigil.resolver import MAX_RESULT_NESTING, resolve
from sigil.warning_policy import SigilWarning, WarningPolicy


def _resolve(text, registry, mode="deep", **kwargs):
    options = ResolveOptions(**kwargs) if kwargs else None
    return resolve(parse_expression(text), registry, mode, options)


class TestBaseCases:
    @pytest.mark.parametrize("text", ["null", "true", "false", "0", "-1.5", '"s"', "?"])
    @pytest.mark.parametrize("mode", ["flat", "deep"])
    def test_literals_unchanged(self, text, mode, id_registry):
        node = parse_expression(text)
        assert resolve(node, id_registry, mode) == node
        assert resolve(node, Registry(), mode) == node

    def test_undefined_reference_stays_symbolic(self):
        assert _resolve("$nowhere", Registry()) == Reference("nowhere")
        assert _resolve("$nowhere", Registry(), "flat") == Reference("nowhere")

    def test_undefined_action_stays_symbolic(self):
        assert _resolve("!launch", BUILTINS) == Action("launch")


class TestFlat:
    def test_one_layer(self, id_registry):
        assert _resolve("$id", id_registry, "flat") == Product(
            Reference("int"), Reference("unique")
        )

    def test_every_reference_in_tree_expanded_once(self, id_registry):
        assert _resolve("[$int, $unique]", id_registry, "flat") == Array(
            (Number(0.0), Reference("string"))
        )

    def test_action_expands_like_reference(self):
        reg = Registry({"save": "$store -> $ok"})
        node = _resolve("!save", reg, "flat")
        assert node == parse_expression("$store -> $ok")

    def test_cycle_is_harmless(self, cycle_registry):
        assert _resolve("$a", cycle_registry, "flat") == Reference("b")

    def test_no_warnings(self, cycle_registry):
        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always")
            _resolve("$a", cycle_registry, "flat")
        assert len(w) == 0


class TestDeep:
    def test_fixed_point(self, id_registry):
        assert _resolve("$id", id_registry) == Product(Number(0.0), String(""))

    def test_default_mode_is_deep(self, id_registry):
        assert resolve(parse_expression("$id"), id_registry) == Product(Number(0.0), String(""))

    def test_mode_argument_overrides_options(self, id_registry):
        options = ResolveOptions(mode="deep")
        node = resolve(parse_expression("$id"), id_registry, "flat", options)
        assert node == Product(Reference("int"), Reference("unique"))

    def test_options_mode_used_without_argument(self, id_registry):
        node = resolve(parse_expression("$id"), id_registry, options=ResolveOptions(mode="flat"))
        assert node == Product(Reference("int"), Reference("unique"))

    def test_structures_rebuilt(self, id_registry):
        node = _resolve('{"k": [$int, {$unique}], "s": [$id]}', id_registry)
        assert node == Object(
            (
                ("k", Array((Number(0.0), Difference(String(""))))),
                ("s", Similarity(Product(Number(0.0), String("")))),
            )
        )

    def test_two_cycle_terminates_symbolic(self, cycle_registry):
        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always")
            node = _resolve("$a", cycle_registry)
        assert node == Reference("a")
        assert any(getattr(x.message, "code", None) == "W02" for x in w)

    def test_self_cycle(self):
        reg = Registry({"list": '{"head": $int, "tail": $list | null}', "int": "0"})
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            node = _resolve("$list", reg)
        assert node.get("head") == Number(0.0)
        assert node.get("tail") == parse_expression("$list | null")

    def test_sibling_branches_do_not_share_visited(self):
        reg = Registry({"pair": "$x * $x", "x": "1"})
        assert _resolve("$pair", reg) == Product(Number(1.0), Number(1.0))

    def test_registry_not_modified(self, id_registry):
        before = dict(id_registry)
        _resolve("$id", id_registry)
        assert dict(id_registry) == before

    def test_cycle_warning_suppressed(self, cycle_registry):
        policy = WarningPolicy(suppress=frozenset({"W02"}))
        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always")
            _resolve("$a", cycle_registry, warning_policy=policy)
        assert len(w) == 0

    def test_cycle_warning_as_error(self, cycle_registry):
        policy = WarningPolicy(warn_as_error=frozenset({"W02"}))
        with pytest.raises(ResolutionError, match=r"\[W02\]"):
            _resolve("$a", cycle_registry, warning_policy=policy)


class TestBudget:
    def _chain(self, length):
        entries = {f"n{i}": f"$n{i + 1}" for i in range(length)}
        entries[f"n{length}"] = "true"
        return Registry(entries)

    def test_within_budget(self):
        assert _resolve("$n0", self._chain(5), max_passes=10) == Bool(True)

    def test_exact_budget(self):
        assert _resolve("$n0", self._chain(5), max_passes=6) == Bool(True)

    def test_partial_result_with_warning(self):
        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always")
            node = _resolve("$n0", self._chain(5), max_passes=3)
        assert node == Reference("n3")
        assert len(w) == 1
        assert issubclass(w[0].category, SigilWarning)
        assert "[W01]" in str(w[0].message)

    def test_single_pass_matches_flat(self, id_registry):
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            deep = _resolve("$id", id_registry, max_passes=1)
        assert deep == _resolve("$id", id_registry, "flat")

    def test_fail_policy(self):
        with pytest.raises(BudgetExceededError, match="3 passes") as exc:
            _resolve("$n0", self._chain(5), max_passes=3, on_budget_exhausted="fail")
        assert exc.value.max_passes == 3

    def test_longest_chain_the_options_allow(self):
        assert _resolve("$n0", self._chain(127), max_passes=128) == Bool(True)

    def test_warning_names_budget_and_partial_result(self):
        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always")
            _resolve("[$n0]", self._chain(5), max_passes=2)
        assert str(w[0].message) == (
            "[W01] Pass budget of 2 exhausted; returning partial result [$n2:ref]:similarity"
        )

    def test_budget_warning_as_error(self):
        policy = WarningPolicy(warn_as_error=frozenset({"W01"}))
        with pytest.raises(EscalatedWarning) as exc:
            _resolve("$n0", self._chain(5), max_passes=2, warning_policy=policy)
        assert exc.value.code == "W01"

    def test_undefined_name_does_not_consume_budget(self):
        reg = Registry({"a": "$missing"})
        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always")
            node = _resolve("$a", reg, max_passes=1)
        assert node == Reference("missing")
        assert len(w) == 0


class TestNesting:
    def _nested_chain(self, length, brackets):
        entries = {
            f"n{i}": "[" * brackets + f"$n{i + 1}" + "]" * brackets for i in range(length)
        }
        entries[f"n{length}"] = "true"
        return Registry(entries)

    def test_deep_result_within_limit(self):
        node = _resolve("$n0", self._nested_chain(10, 4))
        for _ in range(40):
            node = node.inner
        assert node == Bool(True)

    def test_expansion_past_limit_raises(self):
        with pytest.raises(NestingError, match=str(MAX_RESULT_NESTING)) as exc:
            _resolve("$n0", self._nested_chain(40, 4))
        assert exc.value.limit == MAX_RESULT_NESTING

    def test_nesting_error_is_resolution_error(self):
        with pytest.raises(ResolutionError):
            _resolve("$n0", self._nested_chain(40, 4))

    def test_flat_unaffected(self):
        node = _resolve("$n0", self._nested_chain(40, 4), "flat")
        assert node == parse_expression("[[[[$n1]]]]")

class TestMemberAccess:
    def test_field_found(self, entity_registry):
        assert _resolve("$entity.id", entity_registry) == Number(0.0)

    def test_field_missing(self, entity_registry):
        with pytest.raises(FieldNotFoundError, match="missing") as exc:
            _resolve("$entity.missing", entity_registry)
        assert exc.value.field == "missing"
        assert exc.value.available == ["id", "gen"]

    def test_flat_leaves_value_as_returned(self, entity_registry):
        assert _resolve("$entity.id", entity_registry, "flat") == Reference("int")

    def test_chained(self):
        reg = Registry({"outer": '{"inner": {"leaf": $v}}', "v": "true"})
        assert _resolve("$outer.inner.leaf", reg) == Bool(True)

    def test_chained_through_reference(self):
        reg = Registry({"outer": '{"inner": $box}', "box": '{"leaf": 7}'})
        assert _resolve("$outer.inner.leaf", reg) == Number(7.0)

    def test_not_structured(self, entity_registry):
        with pytest.raises(NotStructuredError, match="'id'"):
            _resolve("$int.id", entity_registry)

    def test_not_structured_array(self):
        with pytest.raises(NotStructuredError):
            _resolve("[1, 2].x", Registry())

    def test_symbolic_object_keeps_member(self):
        assert _resolve("$ghost.id", Registry()) == Member(Reference("ghost"), "id")
        assert _resolve("$ghost.a.b", Registry()) == Member(Member(Reference("ghost"), "a"), "b")

    def test_literal_object(self):
        assert _resolve('{"a": null}.a', Registry()) == Null()


class TestDefinitionErrors:
    def test_bad_definition_text(self):
        reg = Registry({"broken": "$a *"})
        with pytest.raises(DefinitionError, match="'broken'") as exc:
            _resolve("$broken", reg)
        assert exc.value.name == "broken"

    def test_lex_error_in_definition(self):
        reg = Registry({"broken": "%"})
        with pytest.raises(DefinitionError):
            _resolve("$broken", reg, "flat")

    def test_unused_bad_definition_ignored(self):
        reg = Registry({"broken": "%", "ok": "1"})
        assert _resolve("$ok", reg) == Number(1.0)

    def test_existence_builtin(self):
        assert _resolve("$any", BUILTINS) == Existence()
