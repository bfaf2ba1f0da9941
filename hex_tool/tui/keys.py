# tui/keys.py
"""
Строчный ввод -> команды документа. Никакой логики редактора здесь нет,
только разбор текста.

    h l k j / left right up down   курсор (префикс "v" - с выделением)
    home end pgup pgdn             строка / страница
    hex | text                     активная панель
    w <символы>                    перезапись (HEX-цифры или текст)
    i [xx]                         вставить байт (по умолчанию 00)
    x | del, bs                    удалить под курсором / перед курсором
    + | -                          длина файла +1 / -1 байт
    b+ | b-                        длина битового потока меток
    g <смещение>                   переход (десятичное или 0x...)
    e                              порядок байт big/little
    / <шаблон>, n, N               поиск, следующее, предыдущее
    u | r                          отмена / повтор
    s | q                          сохранить / выйти
    y | yl <метка>                 копировать выделение / метку
"""
from __future__ import annotations
from typing import List

from ..codec.decoder import Pane, hex_to_bytes
from ..codec.labels import LabelKind
from ..editor import commands as cmd
from ..errors import InvalidInput

MOVES = {
    "h": cmd.Direction.LEFT, "left": cmd.Direction.LEFT,
    "l": cmd.Direction.RIGHT, "right": cmd.Direction.RIGHT,
    "k": cmd.Direction.UP, "up": cmd.Direction.UP,
    "j": cmd.Direction.DOWN, "down": cmd.Direction.DOWN,
    "home": cmd.Direction.HOME, "end": cmd.Direction.END,
    "pgup": cmd.Direction.PAGE_UP, "pgdn": cmd.Direction.PAGE_DOWN,
}

SIMPLE = {
    "hex": cmd.SetPaneFocus(Pane.HEX),
    "text": cmd.SetPaneFocus(Pane.TEXT),
    "x": cmd.DeleteByte(), "del": cmd.DeleteByte(),
    "bs": cmd.Backspace(),
    "+": cmd.IncreaseStreamLength(), "-": cmd.DecreaseStreamLength(),
    "b+": cmd.IncreaseBitStream(), "b-": cmd.DecreaseBitStream(),
    "e": cmd.ToggleByteOrder(),
    "n": cmd.NextMatch(), "N": cmd.PrevMatch(),
    "u": cmd.Undo(), "r": cmd.Redo(),
    "s": cmd.Save(), "q": cmd.Quit(),
    "y": cmd.CopySelection(),
}


def parse_offset(text: str) -> int:
    """Смещение: '0x1F' - шестнадцатеричное, иначе десятичное."""
    s = text.strip().lower()
    try:
        value = int(s[2:], 16) if s.startswith("0x") else int(s, 10)
    except ValueError:
        raise InvalidInput(f"Неверное число: {text!r}") from None
    if value < 0:
        raise InvalidInput(f"Отрицательное смещение: {text!r}")
    return value


def parse_command(line: str) -> "cmd.Command":
    raw = line.strip()
    if not raw:
        raise InvalidInput("Пустая команда")
    if raw.startswith("/"):
        pattern = raw[1:].strip()
        if not pattern:
            raise InvalidInput("Пустой поисковый запрос")
        return cmd.Search(pattern)

    head, _, rest = raw.partition(" ")
    if head in SIMPLE and not rest:
        return SIMPLE[head]
    if head in MOVES and not rest:
        return cmd.MoveCursor(MOVES[head])
    if head == "v" and rest.strip() in MOVES:
        return cmd.MoveCursor(MOVES[rest.strip()], extend=True)
    if head == "w":
        # значение берём как есть: в тексте пробел - тоже символ
        value = line.lstrip()[2:]
        if not value:
            raise InvalidInput("w: нужно значение")
        return cmd.Overwrite(value)
    if head == "i":
        if not rest.strip():
            return cmd.InsertByte()
        data = hex_to_bytes(rest.strip())
        if len(data) != 1:
            raise InvalidInput("i: ожидается один байт, например 'i ff'")
        return cmd.InsertByte(data[0])
    if head == "g" and rest.strip():
        return cmd.JumpToOffset(parse_offset(rest))
    if head == "yl" and rest.strip():
        try:
            return cmd.CopyLabel(LabelKind.from_name(rest))
        except ValueError as e:
            raise InvalidInput(str(e)) from None
    raise InvalidInput(f"Неизвестная команда: {raw!r}")


def parse_script(text: str) -> List["cmd.Command"]:
    """Несколько команд через ';' (для --exec)."""
    return [parse_command(part) for part in text.split(";") if part.strip()]
