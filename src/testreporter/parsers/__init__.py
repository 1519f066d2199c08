"""Test result parser registry.

This module provides:
- PARSER_FACTORIES: reporter name -> parser factory
- REPORTERS: all supported reporter names
- get_parser: Select a parser by reporter name (no auto-detection)
"""

from collections.abc import Callable

from testreporter.core.errors import UnsupportedFormatError

from .base import ParseOptions, TestParser
from .dart_json import DartJsonParser
from .dotnet_trx import DotnetTrxParser
from .junit import JavaJunitParser, JestJunitParser
from .mocha_json import MochaJsonParser, MochawesomeJsonParser

ParserFactory = Callable[[ParseOptions], TestParser]

# Reporter name to parser factory mapping, in the order reporters are listed
PARSER_FACTORIES: dict[str, ParserFactory] = {
    "dart-json": lambda o: DartJsonParser(o, sdk="dart"),
    "dotnet-trx": DotnetTrxParser,
    "flutter-json": lambda o: DartJsonParser(o, sdk="flutter"),
    "java-junit": JavaJunitParser,
    "jest-junit": JestJunitParser,
    "mocha-json": MochaJsonParser,
    "mochawesome-json": MochawesomeJsonParser,
}

REPORTERS: list[str] = sorted(PARSER_FACTORIES)

__all__ = [
    "PARSER_FACTORIES",
    "REPORTERS",
    "get_parser",
    "ParseOptions",
    "TestParser",
    "DartJsonParser",
    "DotnetTrxParser",
    "JavaJunitParser",
    "JestJunitParser",
    "MochaJsonParser",
    "MochawesomeJsonParser",
]


def get_parser(reporter: str, options: ParseOptions | None = None) -> TestParser:
    """Create the parser for a reporter name.

    Args:
        reporter: Reporter name, e.g. "java-junit". Matched case-insensitively.
        options: Tracked files and working directory for location resolution.

    Raises:
        UnsupportedFormatError: If no parser exists for the name.
    """
    factory = PARSER_FACTORIES.get(reporter.strip().lower())
    if factory is None:
        raise UnsupportedFormatError.unknown_reporter(reporter, REPORTERS)
    return factory(options or ParseOptions())
