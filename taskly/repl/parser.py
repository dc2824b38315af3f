"""
FILE: taskly/repl/parser.py
PURPOSE: Split a REPL line into a command word, positional arguments and --flags
EXPORTS:
  - ParseResult (dataclass)
  - parse_command(input_str) -> ParseResult
DEPENDENCIES:
  - shlex (quoted titles)
  - dataclasses, typing (stdlib)
NOTES:
  - add story "Pay by card" --parent 1 --points 5
  - Flag names are lower-cased; --flag=value and --flag value both work
  - A --flag with nothing after it (or another flag) is a switch: True
  - A line with an unbalanced quote is split on whitespace instead
"""

import shlex
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass
class ParseResult:
    """
    One parsed REPL line.

    `command` is the first word, lower-cased ("" for a blank line). Flags
    map to their string value, or True for switches like --force.
    """
    command: str
    args: List[str] = field(default_factory=list)
    flags: Dict[str, str | bool] = field(default_factory=dict)
    raw_input: str = ""

    def flag_int(self, name: str) -> Optional[int]:
        """
        Integer value of a flag, or None if it wasn't given.

        Raises:
            ValueError: If the flag has no value or it isn't an integer
        """
        value = self.flags.get(name)
        if value is None:
            return None
        if value is True:
            raise ValueError(f"--{name} needs a number")
        try:
            return int(value)
        except ValueError:
            raise ValueError(f"--{name} must be a number, got '{value}'")


def _tokenize(line: str) -> List[str]:
    try:
        return shlex.split(line)
    except ValueError:
        return line.split()


def _is_flag(token: str) -> bool:
    return token.startswith("--") and len(token) > 2


def _split_flag(token: str) -> Tuple[str, Optional[str]]:
    name, sep, value = token[2:].partition("=")
    return name.lower(), (value if sep else None)


def parse_command(input_str: str) -> ParseResult:
    """
    Parse a REPL line.

    >>> parse_command('add story "Pay by card" --parent 1').flags
    {'parent': '1'}
    >>> parse_command("rm 3,4 --force").args
    ['3,4']
    """
    line = input_str.strip()
    tokens = _tokenize(line) if line else []
    if not tokens:
        return ParseResult(command="", raw_input=line)

    result = ParseResult(command=tokens[0].lower(), raw_input=line)
    rest = tokens[1:]
    i = 0
    while i < len(rest):
        token = rest[i]
        i += 1
        if not _is_flag(token):
            result.args.append(token)
            continue

        name, value = _split_flag(token)
        if value is None and i < len(rest) and not _is_flag(rest[i]):
            value = rest[i]
            i += 1
        result.flags[name] = True if value is None else value

    return result
