# tui/app.py
"""
Главный цикл терминального редактора: строчный ввод -> команда ->
документ -> перерисовка. Долгий ввод-вывод (поиск, запись временного
файла, подгрузка чанков) уходит в фоновый поток IoWorker.
"""
from __future__ import annotations
from typing import Iterable, Optional

import pyperclip
from rich.console import Console
from rich.prompt import Confirm, Prompt

from ..editor import commands as cmd
from ..editor.document import Document
from ..errors import HexToolError, InvalidInput, IoError
from ..journal import log_event
from ..storage.worker import IoWorker, RequestKind
from .keys import parse_command
from .screen import render


class EditorApp:
    def __init__(self, document: Document, console: Optional[Console] = None):
        self.doc = document
        self.console = console or Console()
        self.worker = IoWorker(document.buffer)
        self._view_offset: Optional[int] = None

    # ---------- команды ----------
    def handle(self, command: "cmd.Command") -> None:
        if isinstance(command, cmd.Search):
            self._search(command.pattern)
        elif isinstance(command, cmd.Save):
            self._save()
        elif isinstance(command, (cmd.CopySelection, cmd.CopyLabel)):
            self._copy(command)
        else:
            self.doc.dispatch(command)
        self._prefetch()

    def _fail(self, command, error: HexToolError):
        self.doc.notification = str(error)
        log_event("error", {"command": type(command).__name__, "error": type(error).__name__,
                            "message": str(error), "path": str(self.doc.path)})

    def _run_request(self, kind: RequestKind, message: str, **payload):
        """Запрос в фоновый поток; Ctrl+C отменяет его. None - запрос отменён."""
        rid = self.worker.submit(kind, **payload)
        try:
            with self.console.status(message):
                res = self.worker.wait(rid)
        except KeyboardInterrupt:
            self.worker.cancel(kind)
            self.doc.notification = "Операция прервана"
            return None
        if res is None:
            return None
        if not res.ok:
            raise res.error
        return res.value

    def _search(self, text: str):
        command = cmd.Search(text)
        try:
            pattern = self.doc.prepare_search(text)
            matches = self._run_request(RequestKind.SCAN, f"Поиск {text!r}...", pattern=pattern)
            if matches is not None:
                self.doc.finish_search(pattern, matches)
        except HexToolError as e:
            self._fail(command, e)

    def _save(self):
        command = cmd.Save()
        self.worker.cancel(RequestKind.LOAD)
        try:
            exported = self._run_request(RequestKind.SAVE, f"Сохранение {self.doc.path}...")
            if exported is not None:
                tmp, generation = exported
                self.doc.finish_save(tmp, generation)
        except IoError as e:
            self.doc.save_failed = True
            self._fail(command, e)
        except HexToolError as e:
            self._fail(command, e)

    def _copy(self, command):
        if not self.doc.dispatch(command):
            return
        try:
            pyperclip.copy(self.doc.clipboard)
        except pyperclip.PyperclipException as e:
            self.doc.notification = "Буфер обмена недоступен"
            log_event("error", {"command": type(command).__name__, "error": "clipboard",
                                "message": str(e), "path": str(self.doc.path)})
            return
        self.doc.notification = f"Скопировано: {self.doc.clipboard}"

    def _drain(self):
        """Результаты подгрузки никому не нужны: забираем и выбрасываем, ошибки - в журнал."""
        for res in self.worker.poll():
            if not res.ok:
                log_event("error", {"command": res.kind.value, "error": type(res.error).__name__,
                                    "message": str(res.error), "path": str(self.doc.path)})

    def _prefetch(self):
        self._drain()
        view = self.doc.view
        if view.offset != self._view_offset:
            self._view_offset = view.offset
            self.worker.submit(RequestKind.LOAD, offset=view.offset, length=view.length)

    # ---------- циклы ----------
    def draw(self):
        self.console.print(render(self.doc.snapshot()))

    def run_script(self, commands: Iterable["cmd.Command"]) -> int:
        """Выполнить заранее разобранные команды (--exec) и вернуть код выхода."""
        for command in commands:
            self.handle(command)
            if self.doc.quit_requested:
                break
        return self.exit_code

    def run(self) -> int:
        """Интерактивный режим. Возвращает код выхода."""
        self._prefetch()
        while not self.doc.quit_requested:
            self.draw()
            try:
                line = Prompt.ask("[bold cyan]>[/]", console=self.console)
            except (EOFError, KeyboardInterrupt):
                line = "q"
            try:
                command = parse_command(line)
            except InvalidInput as e:
                self.doc.notification = str(e)
                continue
            self.handle(command)
            if self.doc.quit_requested and self.doc.dirty:
                if not Confirm.ask("Есть несохранённые изменения. Выйти без сохранения?",
                                   console=self.console, default=False):
                    self.doc.quit_requested = False
        return self.exit_code

    @property
    def exit_code(self) -> int:
        return 1 if self.doc.save_failed else 0

    def close(self):
        self.worker.close()
        self.doc.close()
