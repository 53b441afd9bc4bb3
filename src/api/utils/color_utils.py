"""Утилиты для работы с цветами привычек."""

import re

HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")


def darken_color(color: str, amount: float) -> str:
    """
    Затемняет цвет #RRGGBB на долю `amount` (0.3 - на 30%).

    Некорректный цвет возвращается без изменений.

    Args:
        color (str): Цвет в формате #RRGGBB.
        amount (float): Доля затемнения от 0 до 1.

    Returns:
        str: Затемненный цвет в формате #RRGGBB (в нижнем регистре).
    """
    if not HEX_COLOR_PATTERN.match(color):
        return color

    factor = 1 - min(max(amount, 0.0), 1.0)
    channels = (int(color[index : index + 2], 16) for index in (1, 3, 5))

    return "#" + "".join(f"{round(channel * factor):02x}" for channel in channels)
