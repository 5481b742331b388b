from typing import List


class ReplSyntaxError(Exception):
    def __init__(self, column, message):
        self.column = column
        self.message = message

        super().__init__(f"{message} at column {column}")


def parse_args(line: str) -> List[str]:
    """Split a line on spaces like the shell does, honouring "double quotes"."""
    parsed = []
    accum = None  # None until a word starts, so "" is a valid empty argument
    quote_start = None
    escape = False

    for i, token in enumerate(line):
        if quote_start is None:
            if token == ' ':
                if accum is not None:
                    parsed.append(accum)
                    accum = None
            elif token == '"':
                quote_start = i
                accum = accum or ''
            else:
                accum = (accum or '') + token
        elif escape:
            if token not in '\\"':
                raise ReplSyntaxError(i, f"Cannot escape {token!r}")
            accum += token
            escape = False
        elif token == '\\':
            escape = True
        elif token == '"':
            quote_start = None
        else:
            accum += token

    if quote_start is not None:
        raise ReplSyntaxError(quote_start, "Unterminated quote")

    if accum is not None:
        parsed.append(accum)

    return parsed


def parse_int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        if value == '...':
            raise ReplSyntaxError(0, "Ellipsis (...) is used in a wrong way") from None
        raise ReplSyntaxError(0, f"{value!r} is not an integer value") from None


def parse_pages(value: str) -> List[int]:
    """
    Parse a page list: `3`, `1,4,7`, or the inclusive range `2,...,6`.
    """
    parts = value.split(',')

    if len(parts) == 3 and parts[1] == '...':
        start, end = parse_int(parts[0]), parse_int(parts[2])
        if start > end:
            raise ReplSyntaxError(0, f"Range {start},...,{end} is backwards")
        return list(range(start, end + 1))

    return [parse_int(part) for part in parts]
