from typing import List

_QUOTES = ("'", '"', "`")


def mask_quoted_sql(sql: str) -> str:
    """Blank out string literals, quoted identifiers and comments.

    The result has the same length as ``sql`` so offsets found in it map back
    onto the original text. Quote characters themselves are kept.
    """
    chars = list(sql)
    i = 0
    length = len(sql)
    while i < length:
        ch = sql[i]
        if ch in _QUOTES:
            i += 1
            while i < length:
                if sql[i] == ch:
                    # A doubled quote character is an escape, not a terminator.
                    if i + 1 < length and sql[i + 1] == ch:
                        chars[i] = chars[i + 1] = " "
                        i += 2
                        continue
                    break
                chars[i] = " "
                i += 1
            i += 1
            continue
        if sql.startswith("--", i):
            end = sql.find("\n", i)
            end = length if end == -1 else end
            chars[i:end] = " " * (end - i)
            i = end
            continue
        if sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            end = length if end == -1 else end + 2
            chars[i:end] = " " * (end - i)
            i = end
            continue
        i += 1
    return "".join(chars)


def qmark_positions(sql: str) -> List[int]:
    """Return offsets of ``?`` placeholders outside literals, quoted names and comments."""
    masked = mask_quoted_sql(sql)
    return [i for i, ch in enumerate(masked) if ch == "?"]


def count_qmark_placeholders(sql: str) -> int:
    """Count positional ``?`` placeholders using the same lexical rules as translation."""
    return len(qmark_positions(sql))


def translate_qmark_params_to_postgres(sql: str) -> str:
    """Translate positional ``?`` placeholders to Postgres ``$1..$n``, left to right.

    Only the statement text is rewritten; parameters keep their order, so the
    n-th ``?`` binds to the n-th parameter exactly as it would in SQLite.
    """
    positions = qmark_positions(sql)
    if not positions:
        return sql

    parts: List[str] = []
    cursor = 0
    for index, position in enumerate(positions, start=1):
        parts.append(sql[cursor:position])
        parts.append(f"${index}")
        cursor = position + 1
    parts.append(sql[cursor:])
    return "".join(parts)
