from __future__ import annotations

from collections.abc import Callable
from logging import DEBUG, INFO, Logger, StreamHandler, basicConfig, getLogger
from pathlib import Path

from click import Path as PathArg
from click import argument, command, get_current_context, group, option, version_option

from .address import AddressDescriptor
from .input import BadInput, ErrorCollector, InputLocation, LocationFormatter
from .parser.reference_parser import (
    parse_dereference,
    parse_reference,
    parse_value_address,
)
from .references import load_program_references


def setup_logging(root_level: int) -> Logger:
    handler = StreamHandler()
    handler.setFormatter(LocationFormatter())
    # Replace handlers from earlier invocations within the same process.
    basicConfig(level=root_level, handlers=[handler], force=True)
    return getLogger()


@command()
@option(
    "--dereference",
    "kind",
    flag_value="dereference",
    help="Parse all expressions as dereferenced expressions.",
)
@option(
    "--reference",
    "kind",
    flag_value="reference",
    help="Parse all expressions as bare reference expressions.",
)
@argument("expressions", nargs=-1, type=str)
def parse(kind: str | None, expressions: tuple[str, ...]) -> None:
    """
    Parse reference address expressions and print the results.

    Unless a kind is forced, expressions starting with "[" are parsed
    as dereferenced expressions.
    """

    logger = setup_logging(INFO)
    collector = ErrorCollector(logger)

    parser: Callable[[InputLocation], AddressDescriptor]
    if kind == "dereference":
        parser = parse_dereference
    elif kind == "reference":
        parser = parse_reference
    else:
        parser = parse_value_address

    for index, expression in enumerate(expressions, 1):
        location = InputLocation.from_string(expression, f"<expression {index:d}>")
        try:
            descriptor = parser(location)
        except BadInput as ex:
            collector.report(ex)
        else:
            print(_format_descriptor(descriptor))

    get_current_context().exit(1 if collector.problem_counter.num_errors else 0)


def _format_descriptor(descriptor: AddressDescriptor) -> str:
    fields = [
        f"register={descriptor.register}",
        f"offset1={descriptor.offset1:d}",
        f"offset2={descriptor.offset2:d}",
        f"immediate={descriptor.immediate}",
        f"dereference={descriptor.dereference}",
    ]
    return "  ".join(fields)


@command()
@option("-v", "--verbose", is_flag=True, help="Also log debug messages.")
@argument("programs", nargs=-1, type=PathArg(exists=True, dir_okay=False))
def refs(verbose: bool, programs: tuple[str, ...]) -> None:
    """
    List the reference tables of compiled programs.

    PROGRAMS are compiled program files in JSON format.
    """

    logger = setup_logging(DEBUG if verbose else INFO)

    errors = False
    for program in programs:
        path = Path(program)
        collector = ErrorCollector(logger)
        try:
            table = load_program_references(path, collector)
        except OSError as ex:
            logger.error('Failed to read program "%s": %s', program, ex.strerror)
            errors = True
            continue
        except ValueError as ex:
            logger.error('Failed to decode program "%s": %s', program, ex)
            errors = True
            continue

        logger.debug("%s: loaded %d of %d references", path, len(table), table.size)
        print(f"{path}:")
        for index, reference in table.items():
            pc = "-" if reference.pc is None else f"{reference.pc:d}"
            print(f"{index:5d}  {pc:>6}  {reference.value}")
        collector.summarize(str(path))
        errors |= collector.problem_counter.num_errors > 0

    get_current_context().exit(1 if errors else 0)


@group()
@version_option(prog_name="refaddr", message="%(prog)s version %(version)s")
def main() -> None:
    """Command line interface to the reference address parser."""


main.add_command(parse)
main.add_command(refs)
