"""Codon, amino acid and dinucleotide occurrence counting.

All counts live in explicit state objects passed by the caller; nothing here
keeps module-level state, so independent genes may be counted in parallel.
"""

import logging
from dataclasses import dataclass, field

import numpy as np

from codonbias.core.codons import base_code, codon_index
from codonbias.core.genetic_code import N_AMINO_ACIDS, N_CODONS, STOP, GeneticCode

logger = logging.getLogger(__name__)


@dataclass
class DinucState:
    """Dinucleotide counts in the three reading-frame phases.

    ``din[frame, pair]`` where pair = ``(first-1)*4 + second - 1`` on the
    T=1, C=2, A=3, G=4 base codes.  ``last_base`` and ``frame`` carry over
    between ``count_dinucleotides`` calls so a sequence may be fed in pieces.
    """

    din: np.ndarray = field(default_factory=lambda: np.zeros((3, 16), dtype=np.int64))
    last_base: int = 0
    frame: int = 0

    def reset(self) -> None:
        self.din[:] = 0
        self.last_base = 0
        self.frame = 0


@dataclass
class CountState:
    """Running codon and amino acid usage for one gene or a batch total."""

    ncod: np.ndarray = field(default_factory=lambda: np.zeros(N_CODONS + 1, dtype=np.int64))
    naa: np.ndarray = field(default_factory=lambda: np.zeros(N_AMINO_ACIDS + 1, dtype=np.int64))
    codon_tot: int = 0
    valid_stops: int = 0
    last_codon: int = 0
    sequence_number: int = 0
    title: str = ""
    dinuc: DinucState = field(default_factory=DinucState)

    def next_sequence(self, title: str) -> None:
        """Advance the sequence ordinal and record the title of the next gene."""
        self.sequence_number += 1
        self.title = title

    def reset(self) -> None:
        """Zero every counter; the sequence ordinal and title are kept."""
        self.ncod[:] = 0
        self.naa[:] = 0
        self.codon_tot = 0
        self.valid_stops = 0
        self.last_codon = 0
        self.dinuc.reset()


def count_sequence(sequence: str, state: CountState, code: GeneticCode) -> int:
    """Add the codons of ``sequence`` to ``state``.

    Triplets are read from offset 0.  A trailing 1-2 bases counts as one
    untranslated codon in ``ncod[0]`` and leaves the amino acid counts alone.
    If the final codon is a stop, ``valid_stops`` is incremented so that it is
    not reported later as an internal stop.

    Returns:
        The id of the last codon read, 0 if it was partial or unreadable.
    """
    ca = code.amino_acids
    icode = 0
    seqlen = len(sequence)

    for i in range(0, seqlen - 2, 3):
        icode = codon_index(sequence[i : i + 3])
        state.ncod[icode] += 1
        state.naa[ca[icode]] += 1
        if icode:
            state.codon_tot += 1

    if seqlen % 3:
        icode = 0
        state.ncod[0] += 1

    if icode and ca[icode] == STOP:
        state.valid_stops += 1

    state.last_codon = icode
    return icode


def count_dinucleotides(sequence: str, dinuc: DinucState) -> None:
    """Count adjacent base pairs of ``sequence`` in all three frame phases.

    Pairs involving a non-TCAG symbol are skipped without advancing the
    frame.  The last base and frame are carried into the next call.
    """
    a = dinuc.last_base
    for symbol in sequence:
        last_base = a
        a = base_code(symbol)
        if not a or not last_base:
            continue
        dinuc.din[dinuc.frame, (last_base - 1) * 4 + a - 1] += 1
        dinuc.frame += 1
        if dinuc.frame == 3:
            dinuc.frame = 0
    dinuc.last_base = a
