"""Codon usage, RSCU and amino acid usage tables.

Codon tables are ordered by codon id (TTT, TCT, TAT, TGT, TTC, ...), amino
acid tables by amino acid id (X, Phe, Leu, ... Gly).  Downstream writers rely
on this fixed ordering.
"""

from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

from codonbias.core.codons import CODON_NAMES
from codonbias.core.counting import CountState
from codonbias.core.genetic_code import STOP

if TYPE_CHECKING:
    from codonbias.core.indices import IndexTables


def rscu_values(state: CountState, tables: "IndexTables") -> np.ndarray:
    """RSCU for codon ids 1..64: observed count over the count expected if
    all synonyms of the amino acid were used equally.  0 where the amino
    acid was not seen.
    """
    ca = tables.code.amino_acids[1:]
    ds = tables.degeneracy.ds[1:]
    ncod = state.ncod[1:].astype(np.float64)
    naa = state.naa[ca].astype(np.float64)
    return np.divide(ncod * ds, naa, out=np.zeros(64), where=naa > 0)


def rscu(state: CountState, tables: "IndexTables") -> pd.Series:
    return pd.Series(rscu_values(state, tables), index=CODON_NAMES[1:], name="RSCU")


def codon_usage_table(state: CountState, tables: "IndexTables") -> pd.DataFrame:
    """Codon usage with RSCU, one row per codon id."""
    ca = tables.code.amino_acids[1:]
    names = tables.properties.three_letter
    return pd.DataFrame({
        "codon_id": np.arange(1, 65),
        "codon": CODON_NAMES[1:],
        "amino_acid": [names[a] for a in ca],
        "count": state.ncod[1:].copy(),
        "rscu": rscu_values(state, tables),
    }).set_index("codon_id")


def aa_usage(state: CountState, tables: "IndexTables") -> pd.Series:
    """Amino acid counts for ids 0..21, the "X" bucket and stops included."""
    return pd.Series(
        state.naa.copy(), index=list(tables.properties.three_letter), name="count"
    )


def relative_aa_usage(state: CountState, tables: "IndexTables") -> pd.Series | None:
    """Amino acid frequencies normalised by protein length.

    Stops are reported as 0 and, like untranslatable "X" codons, left out
    of the length.  Returns None if no amino acid was translated.
    """
    naa = state.naa.astype(np.float64)
    total = naa[1:].sum() - naa[STOP]
    if not total:
        return None
    freqs = naa / total
    freqs[STOP] = 0.0
    return pd.Series(freqs, index=list(tables.properties.three_letter), name="RAAU")
