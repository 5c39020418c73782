"""
NEvA Sampling Module

Roulette-wheel samplers used to bias structural mutations by node activity.
Nodes that carried more signal are more likely to receive new structure;
when deleting, the preference is inverted so that dormant structure is
pruned first.

Both samplers consume exactly one draw from the generator they are given,
so they are deterministic for a fixed random stream and node ordering.

Functions:
    roulette(values, rng):                  Index drawn proportionally to 'values'
    select_by_activity(nodes, rng):         Node drawn proportionally to its activity
    reverse_select_by_activity(nodes, rng): Node drawn with an inverted activity preference
"""

from typing import Sequence, TypeVar, TYPE_CHECKING

if TYPE_CHECKING:
    from neva.phenotype import Node

T = TypeVar('T')

# keeps nodes without any activity selectable
ACTIVITY_EPSILON = 0.1

def roulette(values: Sequence[float], rng) -> int:
    """
    Roulette-wheel selection.

    Parameters:
        values: Non-negative weights
        rng:    numpy Generator

    Returns:
        The selected index (the last index if rounding leaves the wheel unspent)
    """
    if len(values) == 0:
        raise ValueError("cannot spin a roulette wheel without slots")

    temp = rng.random() * sum(values)
    for i, value in enumerate(values):
        temp -= value
        if temp <= 0:
            return i
    return len(values) - 1

def select_by_activity(nodes: Sequence['Node'], rng) -> 'Node':
    """Pick a node with probability proportional to 'total_activity + ACTIVITY_EPSILON'."""
    values = [node.total_activity + ACTIVITY_EPSILON for node in nodes]
    return nodes[roulette(values, rng)]

def reverse_select_by_activity(nodes: Sequence['Node'], rng) -> 'Node':
    """Pick a node with weight 'max - activity + min', favoring low-activity nodes."""
    activity = [node.total_activity for node in nodes]
    hi, lo   = max(activity), min(activity)
    values   = [hi - value + lo for value in activity]

    # all-zero activity leaves an empty wheel, fall back to uniform
    if sum(values) <= 0:
        values = [1.0] * len(values)
    return nodes[roulette(values, rng)]

def uniform_choice(items: Sequence[T], rng) -> T:
    return items[int(rng.random() * len(items))]
