"""Tests for codon, amino acid and dinucleotide counting."""

import numpy as np

from codonbias.core.codons import codon_index
from codonbias.core.counting import CountState, DinucState, count_dinucleotides, count_sequence
from codonbias.core.genetic_code import AA_THREE_LETTER, STOP, load_genetic_code

UNIVERSAL = load_genetic_code(0)
_AA = {name: i for i, name in enumerate(AA_THREE_LETTER)}


def _counted(sequence):
    state = CountState()
    count_sequence(sequence, state, UNIVERSAL)
    return state


class TestCountSequence:
    def test_simple_gene(self):
        """ATG GCT TAA: Met, Ala, stop."""
        state = CountState()
        last = count_sequence("ATGGCTTAA", state, UNIVERSAL)
        assert last == codon_index("TAA")
        assert state.ncod[codon_index("ATG")] == 1
        assert state.ncod[codon_index("GCT")] == 1
        assert state.ncod[codon_index("TAA")] == 1
        assert state.naa[_AA["Met"]] == 1
        assert state.naa[_AA["Ala"]] == 1
        assert state.naa[STOP] == 1
        assert state.codon_tot == 3
        assert state.valid_stops == 1
        assert state.last_codon == last

    def test_trailing_partial_codon(self):
        state = _counted("ATGGC")
        assert state.ncod[0] == 1
        assert state.naa[1:].sum() == 1
        assert state.codon_tot == 1
        assert state.last_codon == 0
        assert state.valid_stops == 0

    def test_too_short_for_a_codon(self):
        state = _counted("AT")
        assert state.ncod[0] == 1
        assert state.ncod[1:].sum() == 0
        assert state.codon_tot == 0

    def test_empty_sequence(self):
        state = _counted("")
        assert state.ncod.sum() == 0
        assert state.naa.sum() == 0
        assert state.last_codon == 0

    def test_unreadable_codon(self):
        """An ambiguous triplet goes to ncod[0] and the X bucket."""
        state = _counted("ATGNNNTAA")
        assert state.ncod[0] == 1
        assert state.naa[0] == 1
        assert state.codon_tot == 2
        assert state.naa[1:].sum() == 2

    def test_stop_not_last_is_not_valid(self):
        state = _counted("TAAATG")
        assert state.valid_stops == 0

    def test_count_invariants(self):
        """sum(ncod[1..64]) == sum(naa[1..21]) == codon_tot."""
        rng = np.random.default_rng(0)
        sequence = "".join(rng.choice(list("ACGT"), size=300))
        state = _counted(sequence)
        assert state.ncod[1:].sum() == 100
        assert state.naa[1:].sum() == state.ncod[1:].sum()
        assert state.codon_tot == 100

    def test_accumulates_across_calls(self):
        state = CountState()
        count_sequence("ATGTAA", state, UNIVERSAL)
        count_sequence("ATGTAA", state, UNIVERSAL)
        assert state.ncod[codon_index("ATG")] == 2
        assert state.valid_stops == 2

    def test_reset_keeps_ordinal(self):
        state = CountState()
        state.next_sequence("gene1")
        count_sequence("ATGTAA", state, UNIVERSAL)
        state.reset()
        assert state.ncod.sum() == 0
        assert state.codon_tot == 0
        assert state.sequence_number == 1
        assert state.title == "gene1"


class TestCountDinucleotides:
    def test_frames(self):
        """AT in frame 1:2, TG in 2:3, GC in 3:1."""
        dinuc = DinucState()
        count_dinucleotides("ATGC", dinuc)
        at = (3 - 1) * 4 + 1 - 1
        tg = (1 - 1) * 4 + 4 - 1
        gc = (4 - 1) * 4 + 2 - 1
        assert dinuc.din[0, at] == 1
        assert dinuc.din[1, tg] == 1
        assert dinuc.din[2, gc] == 1
        assert dinuc.din.sum() == 3
        assert dinuc.frame == 0

    def test_state_carries_between_calls(self):
        whole = DinucState()
        count_dinucleotides("ATGCCA", whole)
        pieces = DinucState()
        count_dinucleotides("ATG", pieces)
        count_dinucleotides("CCA", pieces)
        assert np.array_equal(whole.din, pieces.din)
        assert whole.frame == pieces.frame

    def test_ambiguous_base_breaks_pairs(self):
        dinuc = DinucState()
        count_dinucleotides("ANT", dinuc)
        assert dinuc.din.sum() == 0
        assert dinuc.frame == 0

    def test_reset(self):
        dinuc = DinucState()
        count_dinucleotides("ATGCA", dinuc)
        dinuc.reset()
        assert dinuc.din.sum() == 0
        assert dinuc.last_base == 0
        assert dinuc.frame == 0
