"""Command-line interface."""

from __future__ import annotations

import argparse
import re
import sys
from collections.abc import Sequence
from datetime import timedelta
from pathlib import Path
from typing import Any

from . import ui
from .audit import ack, audit
from .builtin_ops import register_builtin_ops
from .commands import CommandError, Session
from .errors import RnaclError
from .registry import Registry

_UNITS: dict[str, timedelta] = {}
for _names, _unit in (
    (("nsec", "ns", "nanos"), timedelta(microseconds=0.001)),
    (("usec", "us", "micros"), timedelta(microseconds=1)),
    (("msec", "ms", "millis"), timedelta(milliseconds=1)),
    (("seconds", "second", "sec", "secs", "s"), timedelta(seconds=1)),
    (("minutes", "minute", "min", "mins", "m"), timedelta(minutes=1)),
    (("hours", "hour", "hr", "hrs", "h"), timedelta(hours=1)),
    (("days", "day", "d"), timedelta(days=1)),
    (("weeks", "week", "w"), timedelta(weeks=1)),
    (("months", "month", "M"), timedelta(days=30.44)),
    (("years", "year", "y"), timedelta(days=365.25)),
):
    for _name in _names:
        _UNITS[_name] = _unit

_DURATION = re.compile(r"\s*(?:\d+\s*[A-Za-z]+\s*)+")
_PART = re.compile(r"(\d+)\s*([A-Za-z]+)")


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as '5m', '1h 30min' or '2days'."""
    if not _DURATION.fullmatch(text):
        raise ValueError(f"invalid duration: {text!r}")
    total = timedelta()
    for amount, unit in _PART.findall(text):
        try:
            total += int(amount) * _UNITS[unit]
        except KeyError:
            raise ValueError(f"unknown time unit {unit!r} in {text!r}") from None
    return total


# Handlers


def _ledger_init(args: argparse.Namespace, session: Session) -> Any:
    return session.init_ledger(args.dir)


def _node_use(args: argparse.Namespace, session: Session) -> Any:
    if args.unset and args.node_id is not None:
        raise CommandError("'unset' cannot be used with a node ID")
    if args.duration is not None and args.node_id is None:
        raise CommandError("'duration' requires a node ID")
    return session.reuse_node(args.node_id, args.unset, args.duration)


def _node_add(args: argparse.Namespace, session: Session) -> Any:
    return session.add_node(args.id, args.description, args.no_use)


def _node_edit(args: argparse.Namespace, session: Session) -> Any:
    return session.edit_node(args.node_id, args.description, args.unset_description)


def _node_remove(args: argparse.Namespace, session: Session) -> Any:
    return session.remove_node(args.node_id)


def _node_list(args: argparse.Namespace, session: Session) -> Any:
    return session.list_nodes()


def _node_show(args: argparse.Namespace, session: Session) -> Any:
    return session.show_node(args.node_id, args.raw, args.path)


def _dep_add(args: argparse.Namespace, session: Session) -> Any:
    return session.add_dependencies(args.node_ids, args.dependency, args.sources, args.mirror)


def _dep_remove(args: argparse.Namespace, session: Session) -> Any:
    return session.remove_dependencies()


def _pipeline_push(args: argparse.Namespace, session: Session) -> Any:
    return session.push_stage(args.node_id, args.operation_id, args.options, args.index)


def _pipeline_pop(args: argparse.Namespace, session: Session) -> Any:
    return session.pop_stage(args.node_id, args.index, args.all)


def _pipeline_eval(args: argparse.Namespace, session: Session) -> Any:
    return session.eval_pipeline(args.node_id, args.show, args.show_all, args.indices)


def _pipeline_list(args: argparse.Namespace, session: Session) -> Any:
    return session.list_pipeline(args.node_id)


def _operation_eval(args: argparse.Namespace, session: Session) -> Any:
    return session.eval_operation(args.operation_id, args.head, args.options)


def _operation_list(args: argparse.Namespace, session: Session) -> Any:
    return session.list_operations()


def _audit(args: argparse.Namespace, session: Session) -> Any:
    return audit(session, args.dry)


def _ack(args: argparse.Namespace, session: Session) -> Any:
    return ack(session, args.node_id, args.dependency, args.all)


# Parser


def _subcommands(parser: argparse.ArgumentParser, dest: str) -> argparse._SubParsersAction:
    subparsers = parser.add_subparsers(dest=dest, metavar="COMMAND")
    subparsers.required = True
    return subparsers


def _add_ledger(commands: argparse._SubParsersAction) -> None:
    ledger = commands.add_parser("ledger", aliases=["l"], help="manage the ledger")
    sub = _subcommands(ledger, "ledger_command")

    init = sub.add_parser("init", help="set up a ledger")
    init.add_argument("--dir", type=Path, help="where to place the ledger directory")
    init.set_defaults(handler=_ledger_init)


def _add_node(commands: argparse._SubParsersAction) -> None:
    node = commands.add_parser("node", aliases=["n"], help="manage nodes")
    sub = _subcommands(node, "node_command")

    use = sub.add_parser(
        "use", help="select a node, allowing you to omit the node ID in the following commands"
    )
    use.add_argument("node_id", nargs="?")
    use.add_argument("-u", "--unset", action="store_true", help="unset")
    use.add_argument("-d", "--duration", type=parse_duration, help="time until reuse expires")
    use.set_defaults(handler=_node_use)

    add = sub.add_parser("add", help="create a node")
    add.add_argument("--id", help="choose the new node's ID instead of generating one")
    add.add_argument("--description", help="describe the node")
    add.add_argument("--no-use", action="store_true", help="skip automatic node reuse")
    add.set_defaults(handler=_node_add)

    edit = sub.add_parser("edit", help="edit a node")
    edit.add_argument("node_id", nargs="?", help="ID of node to edit")
    description = edit.add_mutually_exclusive_group()
    description.add_argument("--description", help="change the description")
    description.add_argument(
        "--unset-description", action="store_true", help="remove the description"
    )
    edit.set_defaults(handler=_node_edit)

    remove = sub.add_parser("remove", help="remove a node")
    remove.add_argument("node_id", nargs="?", help="ID of node to remove")
    remove.set_defaults(handler=_node_remove)

    listing = sub.add_parser("list", help="list nodes")
    listing.set_defaults(handler=_node_list)

    show = sub.add_parser("show", aliases=["s"], help="show details about a node")
    show.add_argument("node_id", nargs="?", help="ID of node to show")
    display = show.add_mutually_exclusive_group()
    display.add_argument("-r", "--raw", action="store_true", help="show the node's raw JSON object")
    display.add_argument("-p", "--path", action="store_true", help="show the node's path")
    show.set_defaults(handler=_node_show)


def _add_dependency(commands: argparse._SubParsersAction) -> None:
    dep = commands.add_parser("dep", aliases=["d"], help="manage dependencies")
    sub = _subcommands(dep, "dep_command")

    add = sub.add_parser("add", help="create one or more dependencies")
    add.add_argument("node_ids", nargs="+", help="IDs of nodes to add the dependencies to")
    add.add_argument(
        "-d", "--dependency", action="append", default=[], help="ID of a node to add as dependency"
    )
    add.add_argument(
        "--from",
        dest="sources",
        action="append",
        default=[],
        help="ID of a node to copy all dependencies from",
    )
    add.add_argument(
        "--mirror", action="store_true", help="make the dependents dependencies of each other"
    )
    add.set_defaults(handler=_dep_add)

    remove = sub.add_parser("remove", help="remove one or more dependencies")
    remove.set_defaults(handler=_dep_remove)


def _add_pipeline(commands: argparse._SubParsersAction) -> None:
    pipeline = commands.add_parser("pipeline", aliases=["p"], help="manage pipelines")
    sub = _subcommands(pipeline, "pipeline_command")

    push = sub.add_parser("push", help="add a stage to a pipeline")
    push.add_argument("node_id", help="ID of node")
    push.add_argument("operation_id", help="ID of operation")
    push.add_argument("-o", "--options", help="options to pass to the operation, in JSON")
    push.add_argument("-i", "--index", type=int, help="insert at a position instead of at the end")
    push.set_defaults(handler=_pipeline_push)

    pop = sub.add_parser("pop", help="remove a stage from a pipeline")
    pop.add_argument("node_id", nargs="?", help="ID of node")
    which = pop.add_mutually_exclusive_group()
    which.add_argument("-i", "--index", type=int, help="remove at a position instead of at the end")
    which.add_argument("--all", action="store_true", help="remove all stages")
    pop.set_defaults(handler=_pipeline_pop)

    evaluate = sub.add_parser("eval", help="evaluate a pipeline")
    evaluate.add_argument("node_id", nargs="?", help="ID of node")
    shown = evaluate.add_mutually_exclusive_group()
    shown.add_argument("-s", "--show", type=int, action="append", help="show the output of this stage")
    shown.add_argument(
        "-a", "--show-all", action="store_true", help="show the output of all stages"
    )
    evaluate.add_argument(
        "-i", "--indices", type=int, action="append", help="only evaluate these stages"
    )
    evaluate.set_defaults(handler=_pipeline_eval)

    listing = sub.add_parser("list", help="list a pipeline's stages")
    listing.add_argument("node_id", nargs="?", help="ID of node")
    listing.set_defaults(handler=_pipeline_list)


def _add_operation(commands: argparse._SubParsersAction) -> None:
    operation = commands.add_parser("operation", aliases=["o"], help="inspect operations")
    sub = _subcommands(operation, "operation_command")

    evaluate = sub.add_parser("eval", help="evaluate an operation")
    evaluate.add_argument("operation_id", help="ID of operation to evaluate")
    evaluate.add_argument(
        "--head", action="store_true", help="feed an empty batch instead of reading from stdin"
    )
    evaluate.add_argument("-o", "--options", help="options to pass to the operation, in JSON")
    evaluate.set_defaults(handler=_operation_eval)

    listing = sub.add_parser("list", help="list registered operations")
    listing.set_defaults(handler=_operation_list)


def build_parser() -> argparse.ArgumentParser:
    """Return the parser of the whole command line."""
    parser = argparse.ArgumentParser(prog="rnacl")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="more log output")
    commands = _subcommands(parser, "command")

    _add_ledger(commands)
    _add_node(commands)
    _add_dependency(commands)
    _add_pipeline(commands)
    _add_operation(commands)

    audit_parser = commands.add_parser("audit", aliases=["a"], help="audit every node")
    audit_parser.add_argument(
        "--dry", action="store_true", help="don't set the audit as pending state"
    )
    audit_parser.set_defaults(handler=_audit)

    ack_parser = commands.add_parser("ack", help="acknowledge audited changes")
    ack_parser.add_argument("node_id", nargs="*", help="ID of node to ack")
    ack_parser.add_argument(
        "-d",
        "--dependency",
        action="append",
        default=[],
        help="ID of dependency node to ack, instead of acking the node itself",
    )
    ack_parser.add_argument(
        "-a", "--all", action="store_true", help="ack all samples instead of selecting interactively"
    )
    ack_parser.set_defaults(handler=_ack)
    return parser


def dispatch(args: argparse.Namespace, session: Session | None = None) -> Any:
    """Run the command that ``args`` names in ``session``."""
    session = session if session is not None else Session()
    return args.handler(args, session)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line and return the exit status."""
    args = build_parser().parse_args(argv)
    ui.init_logging(args.verbose)
    session = Session(registry=register_builtin_ops(Registry()))
    try:
        dispatch(args, session)
    except (RnaclError, OSError, ValueError) as exc:
        ui.error(str(exc))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())