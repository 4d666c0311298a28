"""Per-gene codon bias indices.

For every gene (or the pooled batch in totals mode) computes the requested
indices and returns them as one table row.
"""

import logging
from collections.abc import Iterable

import pandas as pd

from codonbias.config import AnalysisOptions, build_tables
from codonbias.core.counting import CountState
from codonbias.core.indices import (
    RECORD_FIELDS,
    IndexTables,
    canonical_index_name,
    compute_index,
    enc_shortfall,
)
from codonbias.core.validation import (
    CheckLevel,
    SequenceWarning,
    WarningTally,
    too_short_warning,
    validate,
)
from codonbias.modes.batch import iter_counted_sequences

logger = logging.getLogger(__name__)

DEFAULT_INDICES = [
    "CAI", "CBI", "Fop", "Enc", "GC3s", "GC", "L_sym", "L_aa",
    "Hydropathicity", "Aromaticity",
]
# indices that yield one number, or a flat record expanded into columns
ROW_INDICES = {
    "CAI", "CBI", "Fop", "Enc", "GC", "GC3s", "GCFull", "L_sym", "L_aa",
    "SilentBase", "Hydropathicity", "Aromaticity",
}


def _resolve(indices: Iterable[str]) -> list[str]:
    names = [canonical_index_name(name) for name in indices]
    tabular = [name for name in names if name not in ROW_INDICES]
    if tabular:
        raise ValueError(
            f"{tabular} produce tables, not per-gene values; use run_usage()"
        )
    return names


def _gene_row(
    title: str,
    state: CountState,
    names: list[str],
    tables: IndexTables,
    options: AnalysisOptions,
    tally: WarningTally,
) -> tuple[dict, list[SequenceWarning]]:
    row: dict = {"title": title}
    warnings: list[SequenceWarning] = []
    for name in names:
        value = compute_index(name, state, tables)
        if value is None:
            if name == "Enc":
                fold, observed = enc_shortfall(state, tables)
                _total, found = validate(
                    state, CheckLevel.NC, title, tables.code,
                    warn=options.warn, totals=options.totals, tally=tally,
                    fold=fold, observed=observed,
                )
            else:
                found = too_short_warning(
                    state, title, name,
                    warn=options.warn, totals=options.totals, tally=tally,
                )
            warnings.extend(found)
            row.update(dict.fromkeys(RECORD_FIELDS.get(name, [name])))
        elif isinstance(value, dict):
            row.update(value)
        else:
            row[name] = value
    return row, warnings


def run_indices(
    sequences: Iterable[tuple[str, str]],
    indices: Iterable[str] | None = None,
    options: AnalysisOptions | None = None,
    tables: IndexTables | None = None,
) -> dict:
    """Compute codon bias indices for a batch of sequences.

    Args:
        sequences: (title, nucleotide sequence) pairs.
        indices: Index names (default: CAI, CBI, Fop, Enc, GC3s, GC, L_sym,
            L_aa, Hydropathicity, Aromaticity).
        options: Run options; defaults to the universal code and E. coli
            reference tables.
        tables: Prepared reference data, built from ``options`` if omitted.

    Returns:
        dict with keys:
            "results": DataFrame, one row per gene (or one "totals" row)
            "warnings": list of SequenceWarning
            "tally": WarningTally
            "n_sequences": int
    """
    options = options or AnalysisOptions()
    tables = tables or build_tables(options)
    names = _resolve(indices or DEFAULT_INDICES)

    tally = WarningTally()
    warnings: list[SequenceWarning] = []
    rows: list[dict] = []
    n_sequences = 0

    for title, state in iter_counted_sequences(sequences, tables, options, tally, warnings):
        row, found = _gene_row(title, state, names, tables, options, tally)
        rows.append(row)
        warnings.extend(found)
        n_sequences = state.sequence_number

    if options.totals:
        warnings.extend(tally.summary())

    logger.info("Computed %d indices for %d sequences", len(names), n_sequences)
    return {
        "results": pd.DataFrame(rows),
        "warnings": warnings,
        "tally": tally,
        "n_sequences": n_sequences,
    }
