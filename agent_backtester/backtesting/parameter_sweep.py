"""
Parameter sweep combinations.
"""

import itertools
from collections.abc import Mapping, Sequence
from typing import Any


def combination_key(parameters: Mapping[str, Any]) -> str:
    """Order-independent key: sorted ``name=value`` pairs joined by commas.

    Examples:
        >>> combination_key({"b": 2, "a": 1})
        'a=1,b=2'
    """
    return ",".join(f"{name}={parameters[name]}" for name in sorted(parameters))


def generate_combinations(
    parameter_ranges: Mapping[str, Sequence[Any]],
) -> dict[str, dict[str, Any]]:
    """Cartesian product of the candidate values, keyed by ``combination_key``.

    An empty mapping yields a single empty combination. A parameter with
    no candidate values yields no combinations at all.
    """
    names = list(parameter_ranges)
    combinations: dict[str, dict[str, Any]] = {}
    for values in itertools.product(*(parameter_ranges[name] for name in names)):
        parameters = dict(zip(names, values, strict=True))
        combinations[combination_key(parameters)] = parameters
    return combinations
