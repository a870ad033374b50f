"""Builtin command definitions."""

from __future__ import annotations

import os
from pathlib import Path

from pipeshell.commands.registry import BuiltinContext, BuiltinRegistry
from pipeshell.errors import HistoryError

HISTORY_FILE_FLAGS = ("-r", "-w", "-a")
USAGE_STATUS = 2


def register_builtin_commands(registry: BuiltinRegistry) -> None:
    """Register echo, cd, pwd, type, history and exit."""

    register = registry.register

    @register(name="echo")
    def echo(context: BuiltinContext) -> int:
        """Write arguments joined by spaces, followed by a newline."""
        context.write(" ".join(context.args) + "\n")
        return 0

    @register(name="cd")
    def cd(context: BuiltinContext) -> int:
        if not context.args:
            context.write("cd: missing argument\n")
            return 1

        raw = context.args[0]
        target = Path(raw).expanduser() if raw == "~" or raw.startswith("~/") else Path(raw)
        try:
            os.chdir(target)
        except OSError:
            context.write(f"cd: {raw}: No such file or directory\n")
            return 1
        return 0

    @register(name="pwd")
    def pwd(context: BuiltinContext) -> int:
        context.write(os.getcwd() + "\n")
        return 0

    @register(name="type")
    def type_(context: BuiltinContext) -> int:
        status = 0
        for name in context.args:
            resolution = context.session.resolver.resolve(name)
            if resolution.executable is not None:
                context.write(f"{name} is {resolution.executable}\n")
            elif resolution.found:
                context.write(f"{name} is a shell builtin\n")
            else:
                context.write(f"{name}: not found\n")
                status = 1
        return status

    @register(name="history")
    def history(context: BuiltinContext) -> int:
        """Print the last N entries, or read/write/append a history file."""
        log = context.session.history
        args = context.args

        if args and args[0] in HISTORY_FILE_FLAGS:
            if len(args) < 2:
                context.error(f"history: {args[0]}: option requires an argument")
                return USAGE_STATUS
            flag, path = args[0], args[1]
            try:
                if flag == "-r":
                    log.load_from(path)
                elif flag == "-w":
                    log.save_all_to(path)
                else:
                    log.append_unsaved_to(path)
            except HistoryError as exc:
                context.error(str(exc))
                return 1
            return 0

        count: int | None = None
        if args:
            try:
                count = int(args[0])
            except ValueError:
                context.error(f"history: {args[0]}: numeric argument required")
                return USAGE_STATUS

        for number, entry in log.tail(count):
            context.write(f"    {number}  {entry}\n")
        return 0

    @register(name="exit")
    def exit_(context: BuiltinContext) -> int:
        """Flush history when configured and end the session."""
        status = 0
        if context.args:
            try:
                status = int(context.args[0])
            except ValueError:
                context.error(f"exit: {context.args[0]}: numeric argument required")
                return USAGE_STATUS
        # Inside a pipeline the command runs as a stage, not as the session.
        if not context.in_pipeline:
            context.session.request_exit(status)
        return status
