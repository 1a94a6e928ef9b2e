"""
Quote-aware CSV line tokenizer.

Handles double-quoted fields, commas inside quotes and doubled-quote
escaping. Malformed quoting never raises: a stray quote simply toggles the
quote state.
"""


def parse_csv_line(line: str) -> list[str]:
    """
    Split one CSV line into whitespace-trimmed fields.

    Args:
        line: A single line of CSV text (no trailing newline)

    Returns:
        List of field strings; an empty line yields [""]
    """
    fields = []
    current = []
    in_quotes = False
    i = 0

    while i < len(line):
        char = line[i]

        if char == '"':
            if in_quotes and i + 1 < len(line) and line[i + 1] == '"':
                current.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
        elif char == ',' and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1

    fields.append("".join(current).strip())
    return fields
