from __future__ import annotations
import sys
from pathlib import Path

import typer
from rich import print
from rich.console import Console

from . import config
from .config import BYTES_PER_ROW, CACHE_BUDGET, CHUNK_SIZE, DEFAULT_ROWS
from .editor.commands import JumpToOffset
from .editor.document import Document
from .errors import InvalidInput, IoError
from .journal import log_event
from .tui.app import EditorApp
from .tui.keys import parse_offset, parse_script
from .tui.screen import render

app = typer.Typer(add_completion=False, help="HEX Tool: просмотр и правка двоичных файлов в терминале.")


@app.command()
def edit(
    file: Path = typer.Argument(..., help="Файл для открытия"),
    offset: str = typer.Option("0", "--offset", "-o", help="Начальное смещение: 1024 или 0x400"),
    chunk_size: int = typer.Option(CHUNK_SIZE, min=1, help="Размер чанка чтения, байт"),
    cache_mb: int = typer.Option(CACHE_BUDGET // (1024 * 1024), min=1, help="Лимит кэша чанков, МБ"),
    rows: int = typer.Option(DEFAULT_ROWS, min=1, help="Строк по 16 байт на экране"),
    exec_: str = typer.Option(None, "--exec", "-x", help="Команды через ';' без интерактива, напр. \"g 0x10; w FF; s\""),
):
    """
    Открыть файл в HEX-редакторе. С --exec команды выполняются по очереди,
    итоговый экран печатается один раз.
    """
    try:
        start = parse_offset(offset)
        script = parse_script(exec_) if exec_ is not None else None
    except InvalidInput as e:
        print(f"[red]{e}[/]")
        raise typer.Exit(code=2)

    if script is None and not sys.stdout.isatty():
        print("[red]Нет терминала: используй --exec для пакетного режима.[/]")
        raise typer.Exit(code=2)

    try:
        doc = Document.open(file, chunk_size=chunk_size,
                            cache_budget=max(cache_mb * 1024 * 1024, chunk_size), rows=rows)
    except IoError as e:
        print(f"[red]Не удалось открыть файл:[/] {e}")
        log_event("open_failed", {"path": str(file), "error": str(e)})
        raise typer.Exit(code=1)

    log_event("open", {"path": str(file), "bytes": doc.length, "chunk_size": chunk_size,
                       "rows": rows, "bytes_per_row": BYTES_PER_ROW})
    if start:
        doc.dispatch(JumpToOffset(start))

    editor = EditorApp(doc)
    try:
        if script is not None:
            code = editor.run_script(script)
            Console().print(render(doc.snapshot()))
        else:
            code = editor.run()
    finally:
        editor.close()

    if code:
        print(f"[red]Последнее сохранение не удалось.[/] Журнал: {config.LOG_FILE}")
        raise typer.Exit(code=code)


if __name__ == "__main__":
    app()
