"""Post-count sequence checks: internal stops, translatability, Nc data.

``validate`` never changes the counts.  It returns the number of recognised
codons together with any warnings; the warnings are also logged.  In totals
mode the per-sequence messages are replaced by counters on a
``WarningTally`` that is summarised once the whole batch has been read.
"""

import enum
import logging
from dataclasses import dataclass, field

from codonbias.core.counting import CountState
from codonbias.core.genetic_code import STOP, GeneticCode

logger = logging.getLogger(__name__)


class CheckLevel(enum.IntEnum):
    INTERNAL_STOP = 1
    TRANSLATABILITY = 2
    NC = 3
    SILENT = 4


class Severity(str, enum.Enum):
    WARNING = "warning"
    NOTICE = "notice"


@dataclass(frozen=True)
class SequenceWarning:
    severity: Severity
    kind: str
    message: str
    sequence_number: int = 0
    title: str = ""

    def __str__(self) -> str:
        return self.message


@dataclass
class WarningTally:
    """Batch-level warning counters used in place of per-sequence messages."""

    internal_stop_sequences: int = 0
    internal_stop_codons: int = 0
    non_translatable_codons: int = 0
    unterminated_sequences: int = 0
    nc_not_calculated: int = 0
    too_short: dict[str, int] = field(default_factory=dict)

    def add_too_short(self, statistic: str) -> None:
        self.too_short[statistic] = self.too_short.get(statistic, 0) + 1

    def summary(self) -> list[SequenceWarning]:
        """End-of-batch warnings for every counter that is non-zero."""
        out: list[SequenceWarning] = []
        if self.internal_stop_codons:
            out.append(SequenceWarning(
                Severity.WARNING, "internal_stop",
                f"some sequences had internal stop codons "
                f"(found {self.internal_stop_codons} such codons in "
                f"{self.internal_stop_sequences} sequence(s))",
            ))
        if self.non_translatable_codons:
            out.append(SequenceWarning(
                Severity.WARNING, "non_translatable",
                f"some sequences had non translatable codons "
                f"(found {self.non_translatable_codons} such codons)",
            ))
        if self.unterminated_sequences:
            out.append(SequenceWarning(
                Severity.WARNING, "no_stop",
                f"{self.unterminated_sequences} sequence(s) were not terminated "
                "by a stop codon",
            ))
        if self.nc_not_calculated:
            out.append(SequenceWarning(
                Severity.NOTICE, "nc",
                f"Nc was not calculated for {self.nc_not_calculated} sequence(s)",
            ))
        for statistic, n in sorted(self.too_short.items()):
            out.append(SequenceWarning(
                Severity.WARNING, "too_short",
                f"{n} sequence(s) too short to calculate {statistic}",
            ))
        for w in out:
            logger.warning(w.message)
        return out


def _label(state: CountState, title: str) -> str:
    return f"Sequence {state.sequence_number:3d} \"{title[:20]}\""


def _has_valid_start(state: CountState) -> bool:
    # Start codon checking is switched off; every sequence is accepted.
    return True


def validate(
    state: CountState,
    level: CheckLevel,
    title: str,
    code: GeneticCode,
    *,
    warn: bool = True,
    totals: bool = False,
    tally: WarningTally | None = None,
    fold: int = 0,
    observed: int = 0,
) -> tuple[int, list[SequenceWarning]]:
    """Check the counts in ``state`` at the requested level.

    Args:
        state: Counts for the sequence just read.
        level: Which check to run.
        title: Sequence title used in messages.
        code: The genetic code the counts were made under.
        warn: If False, no messages are produced (counters still update).
        totals: Aggregated mode; per-sequence messages are suppressed in
            favour of ``tally``.
        tally: Batch counters, required to aggregate in totals mode.
        fold: For ``CheckLevel.NC``, the family size lacking data.
        observed: For ``CheckLevel.NC``, amino acids seen with that size.

    Returns:
        (codon_total, warnings) where codon_total is ``sum(ncod[1..64])``.
    """
    ca = code.amino_acids
    codon_total = int(state.ncod[1:].sum())
    stops = int(state.ncod[1:][ca[1:] == STOP].sum())
    warnings: list[SequenceWarning] = []
    label = _label(state, title)
    last = state.last_codon

    if level == CheckLevel.INTERNAL_STOP:
        internal = stops - state.valid_stops
        if not _has_valid_start(state) and warn:
            warnings.append(SequenceWarning(
                Severity.WARNING, "start",
                f"{label} does not begin with a recognised start codon",
                state.sequence_number, title,
            ))
        if internal and warn:
            if tally is not None:
                tally.internal_stop_sequences += 1
                tally.internal_stop_codons += internal
            if not totals:
                warnings.append(SequenceWarning(
                    Severity.WARNING, "internal_stop",
                    f"{label} has {internal} internal stop codon(s)",
                    state.sequence_number, title,
                ))

    elif level == CheckLevel.TRANSLATABILITY:
        ncod0 = int(state.ncod[0])
        if ncod0 == 1 and ca[last] != STOP:
            if warn and not totals:
                warnings.append(SequenceWarning(
                    Severity.WARNING, "partial",
                    f"{label} last codon was partial",
                    state.sequence_number, title,
                ))
        else:
            if ncod0 and warn:
                if tally is not None:
                    tally.non_translatable_codons += ncod0
                if not totals:
                    warnings.append(SequenceWarning(
                        Severity.WARNING, "non_translatable",
                        f"{label} has {ncod0} non translatable codon(s)",
                        state.sequence_number, title,
                    ))
            if ca[last] != STOP and warn:
                if tally is not None:
                    tally.unterminated_sequences += 1
                if not totals:
                    warnings.append(SequenceWarning(
                        Severity.WARNING, "no_stop",
                        f"{label} is not terminated by a stop codon",
                        state.sequence_number, title,
                    ))

    elif level == CheckLevel.NC:
        # a missing 3-fold class means neither 3- nor 4-fold data exist
        if fold == 3:
            fold = 4
        if warn:
            if tally is not None:
                tally.nc_not_calculated += 1
            if not totals:
                have = f"only {observed}" if observed else "no"
                warnings.append(SequenceWarning(
                    Severity.NOTICE, "nc",
                    f"{label} contains {have} amino acids with {fold} synonymous "
                    "codons; Nc was not calculated",
                    state.sequence_number, title,
                ))

    elif level != CheckLevel.SILENT:
        raise ValueError(f"Unknown check level {level!r}")

    for w in warnings:
        logger.warning(w.message)
    return codon_total, warnings


def too_short_warning(
    state: CountState,
    title: str,
    statistic: str,
    *,
    warn: bool = True,
    totals: bool = False,
    tally: WarningTally | None = None,
) -> list[SequenceWarning]:
    """Warning for a statistic skipped because its denominator was zero."""
    if not warn:
        return []
    if tally is not None:
        tally.add_too_short(statistic)
    if totals:
        return []
    w = SequenceWarning(
        Severity.WARNING, "too_short",
        f"{_label(state, title)} appears to be too short; "
        f"{statistic} was not calculated",
        state.sequence_number, title,
    )
    logger.warning(w.message)
    return [w]
