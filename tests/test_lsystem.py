import os
import sys

import numpy as np
import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import config
import presets
from lsystem import Grammar, GrammarError, expand, max_expanded_length, compile_rules

AXIOM = "FF[+F^FF]FF[-F^FF]FF"


def test_no_rules_is_identity():
    for iterations in range(config.GRAMMAR_MAX_ITERATIONS + 6):
        assert expand(AXIOM, {}, iterations) == AXIOM
    assert expand(AXIOM, {}, 1) == AXIOM


def test_zero_iterations_returns_axiom():
    rules = {'F': ['F[+F]', 'FF'], 'X': 'F[-X]'}
    for axiom in [AXIOM, "X", "FX[L]"]:
        assert expand(axiom, rules, 0) == axiom


def test_fixed_rule_growth():
    assert expand("F", {'F': 'FF'}, 3) == "F" * 8
    assert expand("A", {'A': 'AB', 'B': 'A'}, 4) == "ABAABABA"


def test_weighted_choice_is_seeded():
    rules = {'F': [('F[+F]', 3), ('F[-F]', 1)]}
    g = Grammar("FFFF", rules, 3)
    a = g.generate(np.random.default_rng(5))
    b = g.generate(np.random.default_rng(5))
    assert a == b
    assert g.generate() == g.generate()
    assert set(a) <= set("F[+-]")


def test_dict_weight_form():
    rules = {'X': [{'rule': 'FX', 'w': 1}, {'rule': 'L', 'w': 2}]}
    g = Grammar("X", rules, 2)
    assert g.compiled['X'].cumulative[-1] == pytest.approx(1.0)
    out = g.generate(np.random.default_rng(0))
    assert out in ("FFX", "FL", "L")


def test_worst_case_length():
    compiled = compile_rules({'F': ['F', 'FFF'], 'X': 'F[X]'})
    assert max_expanded_length("X", compiled, 2) == len("FFF[F[X]]")


@pytest.mark.parametrize("axiom, rules, iterations", [
    ("F*", {}, 1),
    ("F", {'F': 'Fq'}, 1),
    ("F", {'FF': 'F'}, 1),
    ("F", {'F': 5}, 1),
    ("F", {'F': []}, 1),
    ("F", {'F': [('F', 0)]}, 1),
    ("F", {'F': [('F', -2), ('FF', 1)]}, 1),
    ("F", {'F': ['F', ('FF', 1)]}, 1),
    ("F", {'F': 'F'}, 5),
    ("F", {}, -1),
    ("F", {'F': 'F' * 20}, 4),
])
def test_invalid_grammars_raise(axiom, rules, iterations):
    with pytest.raises(GrammarError):
        Grammar(axiom, rules, iterations)


def test_grammar_error_is_value_error():
    assert issubclass(GrammarError, ValueError)


def test_presets_registered():
    assert len(presets.FLOWER_PRESETS) == 8
    assert len(presets.CACTUS_PRESETS) == 8
    for name in ['tree_deciduous', 'tree_pine', 'bush', 'fern', 'daisy', 'cactus_classic']:
        assert name in presets.PRESETS
    for grammar in presets.PRESETS.values():
        assert grammar.max_length <= config.GRAMMAR_MAX_LENGTH
        assert len(grammar.generate()) <= grammar.max_length


def test_register_bad_preset_raises():
    with pytest.raises(GrammarError):
        presets.register_preset('broken', 'F', {'F': 'F?'})
    assert 'broken' not in presets.PRESETS


def test_get_preset_default():
    assert presets.get_preset('no_such_plant', 'bush') is presets.PRESETS['bush']
    assert presets.get_preset('no_such_plant') is None


def test_random_tree_grammar():
    oak = presets.random_tree_lsystem(123456, 'FOREST')
    pine = presets.random_tree_lsystem(123456, 'SNOW')
    assert oak.name == 'oak' and oak.option('wood_type') == 'oak_wood'
    assert pine.name == 'pine' and pine.option('leaf_type') == 'pine_leaves'
    again = presets.random_tree_lsystem(123456, 'FOREST')
    assert oak.axiom == again.axiom and oak.rules == again.rules
    assert oak.generate(np.random.default_rng(1)) == again.generate(np.random.default_rng(1))
    rng = np.random.RandomState(3)
    for seed in rng.randint(-2**31, 2**31 - 1, size=20):
        g = presets.random_tree_lsystem(int(seed), 'FIELD')
        assert g.name in ('oak', 'pine')
        assert 25 <= g.option('angle') < 33
