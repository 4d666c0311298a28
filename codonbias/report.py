"""Plain-text and tab-separated rendering of analysis results."""

import logging
import math
from pathlib import Path

import pandas as pd

from codonbias.core.genetic_code import GeneticCode

logger = logging.getLogger(__name__)

MISSING = "*****"

# two decimals for Nc, three for other indices, six for protein properties
_PRECISION = {"Enc": 2, "Hydropathicity": 6, "Aromaticity": 6}
_INTEGER_FIELDS = {"L_sym", "L_aa", "Len_aa", "Len_sym"}


def format_value(name: str, value) -> str:
    """Fixed-width text for one index value; missing values become *****."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return MISSING
    if name in _INTEGER_FIELDS:
        return f"{int(value):3d}"
    return f"{float(value):5.{_PRECISION.get(name, 3)}f}"


def format_indices(results: pd.DataFrame) -> pd.DataFrame:
    """Render every index column of a ``run_indices`` table as text."""
    out = results.copy()
    for column in out.columns:
        if column == "title":
            continue
        out[column] = [format_value(column, v) for v in results[column]]
    return out


def codon_rows(values, fmt: str = "{:.3f}", sep: str = "\t") -> list[str]:
    """Lay out 64 per-codon values in codon-id order as four rows of 16."""
    values = list(values)
    if len(values) != 64:
        raise ValueError(f"Expected 64 codon values, got {len(values)}")
    return [
        sep.join(fmt.format(v) for v in values[start : start + 16])
        for start in range(0, 64, 16)
    ]


def codon_count_block(counts, title: str, code: GeneticCode, sep: str = "\t") -> str:
    """Machine-readable codon counts: four rows of 16, trailed by the codon
    total, the genetic code and the title."""
    counts = [int(n) for n in counts]
    trailers = ["", f"Codons={sum(counts)}", code.description[:30], title[:20]]
    rows = codon_rows(counts, "{:d}", sep)
    return "".join(f"{row}{sep}{trailer}\n" for row, trailer in zip(rows, trailers))


def rscu_block(values, title: str, sep: str = "\t") -> str:
    """Machine-readable RSCU: four rows of 16, the last trailed by the title."""
    trailers = ["", "", "", title[:20]]
    rows = codon_rows(values, "{:5.3f}", sep)
    return "".join(f"{row}{sep}{trailer}\n" for row, trailer in zip(rows, trailers))


def tabulate_codon_usage(table: pd.DataFrame, title: str, code: GeneticCode) -> str:
    """Human-readable codon usage with RSCU, four codon columns per row.

    ``table`` is one gene's ``codon_usage_table``.  The amino acid name is
    printed only where it changes within a column.
    """
    lines: list[str] = []
    cells: list[str] = []
    last_in_column = [None] * 4
    for codon_id, row in table.iterrows():
        column = codon_id % 4
        codon = row["codon"].replace("T", "U")
        label = row["amino_acid"] if last_in_column[column] != row["amino_acid"] else ""
        last_in_column[column] = row["amino_acid"]
        cells.append(f"{label:<3s} {codon} {int(row['count']):4d} {row['rscu']:.2f}")
        if codon_id % 4 == 0:
            lines.append("  ".join(cells))
            cells = []
        if codon_id % 16 == 0:
            lines.append("")
    total = int(table["count"].sum())
    lines.append(f"{total} codons in {title[:16]} (used {code.description[:22]})")
    return "\n".join(lines) + "\n"


def write_text(text: str, path: str | Path | None) -> None:
    """Write plain text to ``path`` (stdout if None)."""
    if path is None:
        print(text, end="")
        return
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    logger.info("Wrote %s", path)


def write_table(df: pd.DataFrame, path: str | Path | None, index: bool = False) -> None:
    """Write a table as tab-separated text to ``path`` (stdout if None)."""
    if path is None:
        print(df.to_csv(sep="\t", index=index), end="")
        return
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, sep="\t", index=index)
    logger.info("Wrote %s", path)
