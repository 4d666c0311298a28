"""Reference tables: CAI adaptiveness weights and optimal-codon classes.

A table holds one value per codon id (index 0 unused).  CAI tables hold
relative adaptiveness values w in [0, 1]; Fop/CBI tables classify each codon
as 1 (non-optimal / rare), 2 (common) or 3 (optimal).

Built-in tables are for *E. coli* under the universal code.  Any other
organism can be supplied as a 64-value file:

- CAI: 64 whitespace or newline separated floats.
- Fop/CBI: a stream of exactly 64 digits, each 1, 2 or 3; characters that
  are not digits are ignored, so the digits may be laid out freely.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import IO

import numpy as np

from codonbias.core.codons import CODON_NAMES

logger = logging.getLogger(__name__)

CAI = "cai"
FOP = "fop"
CBI = "cbi"
_KINDS = (CAI, FOP, CBI)

NON_OPTIMAL = 1
COMMON = 2
OPTIMAL = 3


class ReferenceTableError(ValueError):
    """Malformed reference table input; the table is unusable."""


@dataclass(frozen=True, eq=False)
class ReferenceTable:
    kind: str
    values: np.ndarray  # shape (65,), index 0 unused
    description: str
    reference: str = "No reference"

    def __repr__(self) -> str:
        return f"ReferenceTable({self.kind!r}, {self.description!r})"


# Sharp & Li (1987) relative adaptiveness of E. coli codons
_ECOLI_CAI = {
    "TTT": 0.296, "TTC": 1.000,
    "TTA": 0.020, "TTG": 0.020, "CTT": 0.042, "CTC": 0.037, "CTA": 0.007, "CTG": 1.000,
    "ATT": 0.185, "ATC": 1.000, "ATA": 0.003,
    "ATG": 1.000,
    "GTT": 1.000, "GTC": 0.066, "GTA": 0.495, "GTG": 0.221,
    "TCT": 1.000, "TCC": 0.744, "TCA": 0.077, "TCG": 0.017, "AGT": 0.085, "AGC": 0.410,
    "CCT": 0.070, "CCC": 0.012, "CCA": 0.135, "CCG": 1.000,
    "ACT": 0.965, "ACC": 1.000, "ACA": 0.076, "ACG": 0.099,
    "GCT": 1.000, "GCC": 0.122, "GCA": 0.586, "GCG": 0.424,
    "TAT": 0.239, "TAC": 1.000,
    "CAT": 0.291, "CAC": 1.000,
    "CAA": 0.124, "CAG": 1.000,
    "AAT": 0.051, "AAC": 1.000,
    "AAA": 1.000, "AAG": 0.253,
    "GAT": 0.434, "GAC": 1.000,
    "GAA": 1.000, "GAG": 0.259,
    "TGT": 0.500, "TGC": 1.000,
    "TGG": 1.000,
    "CGT": 1.000, "CGC": 0.356, "CGA": 0.004, "CGG": 0.004, "AGA": 0.004, "AGG": 0.002,
    "GGT": 1.000, "GGC": 0.724, "GGA": 0.010, "GGG": 0.019,
}

# Ikemura (1985) optimal codons of E. coli; rare codons after Sharp & Li
_ECOLI_OPTIMAL = {
    "TTC", "CTG", "ATC", "GTT", "GTA", "TCT", "TCC", "AGC", "CCG", "ACT",
    "ACC", "GCT", "GCA", "GCG", "TAC", "CAC", "CAG", "AAC", "AAA", "AAG",
    "GAC", "GAA", "TGC", "CGT", "CGC", "GGT", "GGC",
}
_ECOLI_RARE = {"CTA", "ATA", "CCC", "CGA", "CGG", "AGA", "AGG", "GGA"}


def _cai_array(weights: dict[str, float]) -> np.ndarray:
    values = np.zeros(65, dtype=np.float64)
    for codon_id in range(1, 65):
        values[codon_id] = weights.get(CODON_NAMES[codon_id], 0.0)
    values.setflags(write=False)
    return values


def _class_array(optimal: set[str], rare: set[str]) -> np.ndarray:
    values = np.zeros(65, dtype=np.int64)
    for codon_id in range(1, 65):
        codon = CODON_NAMES[codon_id]
        if codon in optimal:
            values[codon_id] = OPTIMAL
        elif codon in rare:
            values[codon_id] = NON_OPTIMAL
        else:
            values[codon_id] = COMMON
    values.setflags(write=False)
    return values


_BUILTIN: dict[str, dict[str, ReferenceTable]] = {
    CAI: {
        "ecoli": ReferenceTable(
            CAI, _cai_array(_ECOLI_CAI), "Escherichia coli", "Sharp and Li (1987)"
        ),
    },
    FOP: {
        "ecoli": ReferenceTable(
            FOP, _class_array(_ECOLI_OPTIMAL, _ECOLI_RARE), "Escherichia coli",
            "Ikemura (1985)",
        ),
    },
}
_BUILTIN[CBI] = {
    species: ReferenceTable(CBI, table.values, table.description, table.reference)
    for species, table in _BUILTIN[FOP].items()
}


def _check_kind(kind: str) -> str:
    kind = kind.lower()
    if kind not in _KINDS:
        raise ValueError(f"Unknown reference table kind {kind!r}; expected one of {_KINDS}")
    return kind


def builtin_species(kind: str) -> list[str]:
    return sorted(_BUILTIN[_check_kind(kind)])


def get_builtin_table(kind: str, species: str = "ecoli") -> ReferenceTable:
    """Return a built-in reference table.

    Raises:
        ValueError: If no built-in table exists for ``species``.
    """
    tables = _BUILTIN[_check_kind(kind)]
    try:
        return tables[species.lower()]
    except KeyError:
        raise ValueError(
            f"No built-in {kind} table for {species!r}; available: {sorted(tables)}"
        ) from None


def parse_reference_table(kind: str, text: str) -> ReferenceTable:
    """Parse and validate the text of a user-supplied reference table.

    Raises:
        ReferenceTableError: On a wrong number of entries or any value that
            is out of range.  Nothing is padded or truncated.
    """
    kind = _check_kind(kind)
    if kind == CAI:
        return _parse_cai(text)
    return _parse_classes(kind, text)


def _parse_cai(text: str) -> ReferenceTable:
    values = [0.0]
    for token in text.split():
        try:
            w = float(token)
        except ValueError:
            raise ReferenceTableError(f"CAI value {token!r} is not a number") from None
        if not 0.0 <= w <= 1.0:
            raise ReferenceTableError(f"CAI value {w} out of range [0, 1]")
        values.append(w)

    if len(values) != 65:
        raise ReferenceTableError(
            f"Found {len(values) - 1} CAI values, expected 64"
        )
    arr = np.array(values, dtype=np.float64)
    arr.setflags(write=False)
    return ReferenceTable(CAI, arr, "User supplied CAI adaptation values")


def _parse_classes(kind: str, text: str) -> ReferenceTable:
    label = kind.upper() if kind == CBI else "Fop"
    values = [0]
    for ch in text:
        if ch not in "0123456789":
            continue
        digit = int(ch)
        if digit not in (NON_OPTIMAL, COMMON, OPTIMAL):
            raise ReferenceTableError(
                f"Illegal {label} value {ch!r} at codon {len(values)}; permissible "
                "values are 1 (non-optimal), 2 (common) and 3 (optimal)"
            )
        values.append(digit)

    if len(values) != 65:
        raise ReferenceTableError(
            f"Found {len(values) - 1} {label} digits, expected 64"
        )
    arr = np.array(values, dtype=np.int64)
    arr.setflags(write=False)
    return ReferenceTable(kind, arr, "User supplied choice")


def load_reference_table(kind: str, source: str | Path | IO[str]) -> ReferenceTable:
    """Load a reference table from a file path or an open text handle."""
    if hasattr(source, "read"):
        text = source.read()
    else:
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Reference table not found: {path}")
        text = path.read_text()
    table = parse_reference_table(kind, text)
    logger.info("Loaded %s table from %s", kind, getattr(source, "name", source))
    return table
