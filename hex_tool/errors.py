# errors.py
"""
Ошибки редактора. Все они восстановимые: ловятся на границе
обработки команды и превращаются в уведомление для пользователя.
"""
from __future__ import annotations


class HexToolError(Exception):
    """Базовая ошибка редактора."""


class IoError(HexToolError):
    """Сбой открытия/чтения/записи/сохранения файла."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class InvalidInput(HexToolError, ValueError):
    """Некорректный ввод: отклоняется до изменения состояния."""


class InvalidHex(InvalidInput):
    def __init__(self, char: str):
        super().__init__(f"Неверная HEX-цифра: {char!r}")
        self.char = char


class Unencodable(InvalidInput):
    def __init__(self, char: str):
        super().__init__(f"Символ не кодируется одним байтом: {char!r}")
        self.char = char


class InvalidPattern(InvalidInput):
    pass


class NotFound(HexToolError):
    """Навигация по совпадениям, когда совпадений нет."""


class ScanCancelled(HexToolError):
    """Поиск прерван новой командой."""
