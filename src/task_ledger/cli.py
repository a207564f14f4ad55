from __future__ import annotations

import argparse
import json
import re
import sys
from datetime import date
from pathlib import Path
from typing import Any, Optional

from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import load_ledger_config, resolve_state_dir
from .errors import LedgerError
from .logging_utils import configure_logging
from .service import LedgerService
from .storage.store import open_or_throw
from .summary import ItemMode, ViewMode, render_summary

_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")


def _ctx(args: argparse.Namespace) -> LedgerService:
    state_dir = resolve_state_dir(args.state_dir)
    config, err = load_ledger_config(state_dir)
    configure_logging(args.log_level or config.log_level)
    if err:
        logger.warning("Ignoring ledger config: {}", err)
    service = LedgerService(open_or_throw(state_dir, lock_timeout=config.lock_timeout), config)
    service.ensure_baseline()
    return service


def _emit(key: str, record: Any) -> None:
    payload = record.to_dict() if record is not None else None
    sys.stdout.write(json.dumps({key: payload}, indent=2) + '\n')


def _missing(kind: str, record_id: str) -> int:
    sys.stderr.write(f"{kind} not found: {record_id}\n")
    return 1


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def _server(args: argparse.Namespace) -> int:
    import uvicorn

    from .server import create_app

    state_dir = resolve_state_dir(args.state_dir)
    config, err = load_ledger_config(state_dir)
    configure_logging(args.log_level or config.log_level)
    if err:
        logger.warning("Ignoring ledger config: {}", err)
    dist_dir = Path(args.dist_dir) if args.dist_dir else None
    app = create_app(state_dir=state_dir, dist_dir=dist_dir, config=config)
    logger.info("Task Ledger running at http://{}:{}", args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def _board(args: argparse.Namespace) -> int:
    service = _ctx(args)
    console = Console()
    for lane in service.get_board():
        module = lane['module']
        swatch = f"[{module.color}]■[/]" if _HEX_COLOR.match(module.color) else "■"
        table = Table(title=f"{swatch} {escape(module.name)}", title_justify='left', show_header=True)
        table.add_column('', width=1)
        table.add_column('Task')
        table.add_column('ID', style='dim')
        for task in lane['pending']:
            table.add_row('○', escape(task.title), task.id)
        for task in lane['done']:
            table.add_row('✓', f"[strike]{escape(task.title)}[/]", task.id)
        console.print(table)
    return 0


def _module_add(args: argparse.Namespace) -> int:
    _emit('module', _ctx(args).create_module(args.name, color=args.color))
    return 0


def _module_rename(args: argparse.Namespace) -> int:
    module = _ctx(args).update_module(args.module_id, name=args.name)
    if module is None:
        return _missing('Module', args.module_id)
    _emit('module', module)
    return 0


def _module_recolor(args: argparse.Namespace) -> int:
    module = _ctx(args).update_module(args.module_id, color=args.color)
    if module is None:
        return _missing('Module', args.module_id)
    _emit('module', module)
    return 0


def _module_rm(args: argparse.Namespace) -> int:
    deleted = _ctx(args).delete_module(args.module_id)
    sys.stdout.write(json.dumps({'deleted': deleted, 'module_id': args.module_id}) + '\n')
    return 0


def _module_reorder(args: argparse.Namespace) -> int:
    modules = _ctx(args).reorder_modules(args.module_ids)
    sys.stdout.write(json.dumps({'modules': [m.to_dict() for m in modules]}, indent=2) + '\n')
    return 0


def _task_add(args: argparse.Namespace) -> int:
    _emit('task', _ctx(args).create_task(args.module_id, args.title, args.detail))
    return 0


def _task_edit(args: argparse.Namespace) -> int:
    task = _ctx(args).update_task(args.task_id, title=args.title, detail=args.detail)
    if task is None:
        return _missing('Task', args.task_id)
    _emit('task', task)
    return 0


def _task_done(args: argparse.Namespace) -> int:
    task = _ctx(args).set_task_completion(args.task_id, True)
    if task is None:
        return _missing('Task', args.task_id)
    _emit('task', task)
    return 0


def _task_reopen(args: argparse.Namespace) -> int:
    task = _ctx(args).set_task_completion(args.task_id, False)
    if task is None:
        return _missing('Task', args.task_id)
    _emit('task', task)
    return 0


def _task_rm(args: argparse.Namespace) -> int:
    deleted = _ctx(args).delete_task(args.task_id)
    sys.stdout.write(json.dumps({'deleted': deleted, 'task_id': args.task_id}) + '\n')
    return 0


def _task_move(args: argparse.Namespace) -> int:
    task = _ctx(args).move_and_reorder_task(
        args.task_id,
        args.from_container,
        args.to_container,
        args.order,
        args.from_order,
    )
    if task is None:
        return _missing('Task', args.task_id)
    _emit('task', task)
    return 0


def _summary(args: argparse.Namespace) -> int:
    service = _ctx(args)
    modules, tasks = service.store.read_snapshot()
    text = render_summary(
        modules,
        tasks,
        view=args.view,
        item_mode=args.items,
        count=args.count,
        start=args.start or service.config.summary_start_date(),
        week_starts_on=service.config.week_starts_on,
    )
    sys.stdout.write((text or 'Nothing to report.') + '\n')
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Task Ledger: ordered modules and tasks')
    parser.add_argument('--state-dir', default=None, help='Ledger state directory (default: $TASK_LEDGER_HOME or ~/.task_ledger)')
    parser.add_argument('--log-level', default=None, help='Log level (default: from config, else INFO)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    server = subparsers.add_parser('server', help='Start the web server')
    server.add_argument('--host', default='127.0.0.1')
    server.add_argument('--port', default=4173, type=int)
    server.add_argument('--dist-dir', default=None, help='UI build directory (default: $TASK_LEDGER_DIST_DIR or ./dist)')
    server.set_defaults(func=_server)

    board = subparsers.add_parser('board', help='Print every module with its tasks')
    board.set_defaults(func=_board)

    module = subparsers.add_parser('module', help='Manage modules')
    module_sub = module.add_subparsers(dest='module_cmd', required=True)
    madd = module_sub.add_parser('add', help='Append a module')
    madd.add_argument('name')
    madd.add_argument('--color', default=None)
    madd.set_defaults(func=_module_add)
    mrename = module_sub.add_parser('rename', help='Rename a module')
    mrename.add_argument('module_id')
    mrename.add_argument('name')
    mrename.set_defaults(func=_module_rename)
    mrecolor = module_sub.add_parser('recolor', help='Change a module color')
    mrecolor.add_argument('module_id')
    mrecolor.add_argument('color')
    mrecolor.set_defaults(func=_module_recolor)
    mrm = module_sub.add_parser('rm', help='Delete a module and its tasks')
    mrm.add_argument('module_id')
    mrm.set_defaults(func=_module_rm)
    mreorder = module_sub.add_parser('reorder', help='Set the module order')
    mreorder.add_argument('module_ids', nargs='+')
    mreorder.set_defaults(func=_module_reorder)

    task = subparsers.add_parser('task', help='Manage tasks')
    task_sub = task.add_subparsers(dest='task_cmd', required=True)
    tadd = task_sub.add_parser('add', help='Add a task at the top of a module')
    tadd.add_argument('module_id')
    tadd.add_argument('title')
    tadd.add_argument('--detail', default='')
    tadd.set_defaults(func=_task_add)
    tedit = task_sub.add_parser('edit', help='Edit a task')
    tedit.add_argument('task_id')
    tedit.add_argument('--title', default=None)
    tedit.add_argument('--detail', default=None)
    tedit.set_defaults(func=_task_edit)
    tdone = task_sub.add_parser('done', help='Mark a task done')
    tdone.add_argument('task_id')
    tdone.set_defaults(func=_task_done)
    treopen = task_sub.add_parser('reopen', help='Move a task back to pending')
    treopen.add_argument('task_id')
    treopen.set_defaults(func=_task_reopen)
    trm = task_sub.add_parser('rm', help='Delete a task')
    trm.add_argument('task_id')
    trm.set_defaults(func=_task_rm)
    tmove = task_sub.add_parser('move', help='Move a task into a container at a given position')
    tmove.add_argument('task_id')
    tmove.add_argument('--from', dest='from_container', required=True, help='Source, e.g. pending:<module_id>')
    tmove.add_argument('--to', dest='to_container', required=True, help='Destination, e.g. done:<module_id>')
    tmove.add_argument('--order', nargs='+', required=True, help='Final task ids of the destination, in order')
    tmove.add_argument('--from-order', nargs='+', default=None, help='Final task ids of the source, in order')
    tmove.set_defaults(func=_task_move)

    summary = subparsers.add_parser('summary', help='Print a period summary')
    summary.add_argument('--view', default='month', choices=[v.value for v in ViewMode])
    summary.add_argument('--items', default='completed', choices=[i.value for i in ItemMode])
    summary.add_argument('--count', default=12, type=int)
    summary.add_argument('--start', default=None, type=date.fromisoformat, help='First day, YYYY-MM-DD (default: from config)')
    summary.set_defaults(func=_summary)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    handler = getattr(args, 'func', None)
    if handler is None:
        parser.print_help()
        return 1
    try:
        return int(handler(args) or 0)
    except LedgerError as exc:
        sys.stderr.write(str(exc) + '\n')
        return 1


if __name__ == '__main__':
    raise SystemExit(main())
