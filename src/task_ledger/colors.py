"""Curated module color palette."""

from __future__ import annotations

import random

MODULE_COLORS: tuple[str, ...] = (
    "#5BA4E6",  # sky blue
    "#4ECBA0",  # mint green
    "#F59E5F",  # warm peach
    "#F06F8E",  # coral pink
    "#9B85E8",  # soft violet
    "#E6B84D",  # golden yellow
    "#3CBFDC",  # turquoise
    "#7AC46F",  # fresh green
    "#F07C5C",  # salmon coral
    "#7A8FE8",  # periwinkle blue
    "#D67BE8",  # orchid purple
    "#4FC9C4",  # teal
)


def random_module_color() -> str:
    return random.choice(MODULE_COLORS)
