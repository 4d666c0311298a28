"""Shared sequence loop for the analysis modes.

Each gene is counted into a fresh ``CountState``; in totals mode all genes
are pooled into one state that is checked and yielded once at the end.
"""

import logging
from collections.abc import Iterable, Iterator

from codonbias.config import AnalysisOptions
from codonbias.core.counting import CountState, count_dinucleotides, count_sequence
from codonbias.core.indices import IndexTables
from codonbias.core.validation import CheckLevel, SequenceWarning, WarningTally, validate

logger = logging.getLogger(__name__)

TOTALS_TITLE = "totals"


def _check(
    state: CountState,
    title: str,
    tables: IndexTables,
    options: AnalysisOptions,
    tally: WarningTally,
) -> list[SequenceWarning]:
    found: list[SequenceWarning] = []
    for level in (CheckLevel.INTERNAL_STOP, CheckLevel.TRANSLATABILITY):
        _total, warnings = validate(
            state, level, title, tables.code,
            warn=options.warn, totals=options.totals, tally=tally,
        )
        found.extend(warnings)
    return found


def iter_counted_sequences(
    sequences: Iterable[tuple[str, str]],
    tables: IndexTables,
    options: AnalysisOptions,
    tally: WarningTally,
    warnings: list[SequenceWarning],
) -> Iterator[tuple[str, CountState]]:
    """Yield (title, counts) per gene, or once for the pooled batch.

    The yielded state is only valid until the next iteration; callers must
    compute what they need before advancing.  Validation warnings are
    appended to ``warnings``.
    """
    state = CountState()
    for title, sequence in sequences:
        state.next_sequence(title)
        count_sequence(sequence, state, tables.code)
        count_dinucleotides(sequence, state.dinuc)
        if options.totals:
            continue
        warnings.extend(_check(state, title, tables, options, tally))
        yield title, state
        state.reset()

    if options.totals and state.sequence_number:
        logger.info("Pooled %d sequences", state.sequence_number)
        state.title = TOTALS_TITLE
        warnings.extend(_check(state, TOTALS_TITLE, tables, options, tally))
        yield TOTALS_TITLE, state
