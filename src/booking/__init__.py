"""
Модуль контекста бронирования (Booking Context).

Отвечает за управление объектами эко-жилья и их бронированием, включая:
- Календарь объекта на 30 дней и экологические модификаторы дней
- Расчет стоимости с учетом типа объекта и уровня гостя
- Создание и отмену бронирований без пересечений
"""

from . import application, domain, infrastructure, interfaces, pricing

__all__ = [
    "domain",
    "pricing",
    "application",
    "infrastructure",
    "interfaces",
]
