"""Codon usage, RSCU, amino acid usage and dinucleotide tables per gene."""

import logging
from collections.abc import Iterable

import pandas as pd

from codonbias.config import AnalysisOptions, build_tables
from codonbias.core.codons import CODON_NAMES
from codonbias.core.indices import IndexTables, dinucleotide_frequencies
from codonbias.core.usage import aa_usage, codon_usage_table, relative_aa_usage, rscu_values
from codonbias.core.validation import SequenceWarning, WarningTally, too_short_warning
from codonbias.modes.batch import iter_counted_sequences

logger = logging.getLogger(__name__)


def run_usage(
    sequences: Iterable[tuple[str, str]],
    options: AnalysisOptions | None = None,
    tables: IndexTables | None = None,
) -> dict:
    """Tabulate codon and amino acid usage for a batch of sequences.

    Returns:
        dict with keys:
            "codon_usage": DataFrame indexed by (title, codon_id) with codon,
                amino_acid, count and rscu columns
            "rscu": DataFrame, one row per gene, 64 codon columns in id order
            "aa_usage": DataFrame, one row per gene, 22 amino acid columns
            "raau": DataFrame of relative amino acid usage (genes with no
                translated amino acid are left out)
            "dinucleotides": DataFrame indexed by (title, frame)
            "warnings": list of SequenceWarning
            "tally": WarningTally
    """
    options = options or AnalysisOptions()
    tables = tables or build_tables(options)

    tally = WarningTally()
    warnings: list[SequenceWarning] = []
    codon_tables: dict[str, pd.DataFrame] = {}
    rscu_rows: list[pd.Series] = []
    aa_rows: list[pd.Series] = []
    raau_rows: list[pd.Series] = []
    dinuc_tables: dict[str, pd.DataFrame] = {}
    titles: list[str] = []

    for title, state in iter_counted_sequences(sequences, tables, options, tally, warnings):
        # repeated titles get a numeric suffix so table keys stay unique
        key = title if title not in codon_tables else f"{title}_{state.sequence_number}"
        titles.append(key)
        codon_tables[key] = codon_usage_table(state, tables)
        rscu_rows.append(pd.Series(rscu_values(state, tables), index=CODON_NAMES[1:], name=key))
        aa_rows.append(aa_usage(state, tables).rename(key))
        raau = relative_aa_usage(state, tables)
        if raau is None:
            warnings.extend(too_short_warning(
                state, title, "RAAU",
                warn=options.warn, totals=options.totals, tally=tally,
            ))
        else:
            raau_rows.append(raau.rename(key))
        dinuc_tables[key] = dinucleotide_frequencies(state.dinuc)

    if options.totals:
        warnings.extend(tally.summary())

    logger.info("Tabulated codon usage for %d sequences", len(titles))
    return {
        "codon_usage": pd.concat(codon_tables, names=["title"]) if codon_tables else pd.DataFrame(),
        "rscu": pd.DataFrame(rscu_rows),
        "aa_usage": pd.DataFrame(aa_rows),
        "raau": pd.DataFrame(raau_rows),
        "dinucleotides": (
            pd.concat(dinuc_tables, names=["title", "frame"]) if dinuc_tables else pd.DataFrame()
        ),
        "warnings": warnings,
        "tally": tally,
    }
