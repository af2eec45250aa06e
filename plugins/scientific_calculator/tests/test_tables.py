import math

import pytest

from plugins.scientific_calculator.core import ExpressionArithmeticError
from plugins.scientific_calculator.core.tables import (
    CONSTANT_NAMES,
    FUNCTION_NAMES,
    FUNCTIONS,
    factorial,
    match_constant,
    match_function,
)


@pytest.mark.parametrize("names", [FUNCTION_NAMES, CONSTANT_NAMES])
def test_longer_names_come_before_their_prefixes(names):
    for index, name in enumerate(names):
        for later in names[index + 1 :]:
            assert not later.startswith(name) or later == name, f"{later} is shadowed by {name}"


def test_every_function_is_listed():
    assert set(FUNCTION_NAMES) == set(FUNCTIONS)
    assert {"sin", "sinh", "asinh", "log", "log10", "log2", "ln", "cbrt", "fact"} <= set(FUNCTION_NAMES)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("sinh(0)", "sinh"),
        ("sin(0)", "sin"),
        ("log10(1)", "log10"),
        ("LOG2(8)", "log2"),
        ("log(1)", "log"),
        ("asin(1)", "asin"),
        ("Exp(1)", "exp"),
    ],
)
def test_match_function_prefers_longest(text, expected):
    spec = match_function(text, 0)
    assert spec is not None
    assert spec.name == expected


def test_match_function_respects_position():
    assert match_function("2*cos(0)", 2).name == "cos"
    assert match_function("2*cos(0)", 0) is None
    assert match_function("si", 0) is None


def test_angle_roles():
    assert FUNCTIONS["sin"].angle == "input"
    assert FUNCTIONS["atan"].angle == "output"
    assert FUNCTIONS["tanh"].angle is None


def test_match_constant():
    assert match_constant("pi*2", 0) == ("pi", math.pi)
    name, value = match_constant("PHI", 0)
    assert name == "phi"
    assert value == pytest.approx(1.618033988749895)
    assert match_constant("π", 0) == ("π", math.pi)
    assert match_constant("x", 0) is None


def test_factorial_limits():
    assert factorial(0) == 1
    assert factorial(170.9) == float(math.factorial(170))
    with pytest.raises(ExpressionArithmeticError, match="negative"):
        factorial(-0.5)
    with pytest.raises(ExpressionArithmeticError, match="overflow"):
        factorial(171)
