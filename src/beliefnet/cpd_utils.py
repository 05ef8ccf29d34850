from __future__ import annotations

from typing import List, Optional, Sequence

from .belief import Belief, ConditionalTable


def _format_table(rows: List[List[str]]) -> str:
    widths: List[int] = []
    for row in rows:
        for i, cell in enumerate(row):
            if i >= len(widths):
                widths.append(len(cell))
            else:
                widths[i] = max(widths[i], len(cell))

    def horiz() -> str:
        parts = ["+" + "-" * (w + 2) for w in widths]
        return "".join(parts) + "+"

    def fmt_row(row: List[str]) -> str:
        cells = [f" {cell.ljust(w)} " for cell, w in zip(row, widths)]
        return "|" + "|".join(cells) + "|"

    out: List[str] = []
    out.append(horiz())
    for r in rows:
        out.append(fmt_row(r))
        out.append(horiz())
    return "\n".join(out)


def belief_to_ascii_table(name: str, belief: Belief, digits: int = 4) -> str:
    rows: List[List[str]] = [["Node(Value)", "Probability"]]
    for outcome, prob in belief.items():
        rows.append([f"{name}({outcome})", f"{prob:.{digits}f}"])
    return _format_table(rows)


def table_to_ascii(
    name: str,
    parents: Sequence[str],
    table: ConditionalTable,
    digits: int = 4,
    outcomes: Optional[Sequence] = None,
) -> str:
    """Render a conditional table with one column per parent assignment.

    Header rows list the parent values of each column; child rows hold
    P(name=value | column).
    """
    if len(parents) != table.arity:
        raise ValueError(f"Table for '{name}' has {table.arity} parent(s), got names {list(parents)}")
    outcomes = list(outcomes) if outcomes is not None else list(table.outcomes)
    table_rows = table.rows
    keys = list(table_rows)
    assignments = [k if table.arity == 2 else (k,) for k in keys]

    rows: List[List[str]] = []
    for pos, parent in enumerate(parents):
        rows.append([parent] + [f"{parent}({assign[pos]})" for assign in assignments])

    for outcome in outcomes:
        row = [f"{name}({outcome})"]
        for key in keys:
            row.append(f"{table_rows[key].chance(outcome):.{digits}f}")
        rows.append(row)

    return _format_table(rows)


__all__ = ["belief_to_ascii_table", "table_to_ascii"]
