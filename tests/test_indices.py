"""Tests for codon usage indices and usage tables."""

import math

import numpy as np
import pandas as pd
import pytest

from codonbias.core.codons import CODON_NAMES, codon_index
from codonbias.core.counting import CountState, count_dinucleotides, count_sequence
from codonbias.core.genetic_code import STOP, AA_THREE_LETTER, activate_genetic_code
from codonbias.core.indices import (
    ENC_MAX,
    GC_FULL_FIELDS,
    INDEX_NAMES,
    aromaticity,
    base_composition,
    canonical_index_name,
    cai,
    cbi,
    compute_index,
    dinucleotide_frequencies,
    enc,
    enc_shortfall,
    fop,
    gc_content,
    hydropathicity,
    prepare_tables,
    silent_base_usage,
)
from codonbias.core.reference import CAI, CBI, FOP, get_builtin_table, parse_reference_table
from codonbias.core.usage import aa_usage, codon_usage_table, relative_aa_usage, rscu, rscu_values

CODE, DEGENERACY = activate_genetic_code(0)
_AA = {name: i for i, name in enumerate(AA_THREE_LETTER)}


def _tables(**kwargs):
    kwargs.setdefault("cai", get_builtin_table(CAI))
    kwargs.setdefault("fop", get_builtin_table(FOP))
    kwargs.setdefault("cbi", get_builtin_table(CBI))
    return prepare_tables(CODE, DEGENERACY, **kwargs)


TABLES = _tables()


def _counted(sequence):
    state = CountState()
    state.next_sequence("test")
    count_sequence(sequence, state, CODE)
    count_dinucleotides(sequence, state.dinuc)
    return state


def _sense_codons():
    return [x for x in range(1, 65) if CODE.amino_acids[x] != STOP]


def _one_codon_per_aa(skip=()):
    """Each amino acid encoded twice by its first codon."""
    seen = {}
    for x in _sense_codons():
        aa = CODE.amino_acids[x]
        if aa not in seen and AA_THREE_LETTER[aa] not in skip:
            seen[aa] = CODON_NAMES[x]
    return "".join(codon * 2 for codon in seen.values())


# ═══════════════════════════════════════════════════════════════════════════════
# Table setup
# ═══════════════════════════════════════════════════════════════════════════════

class TestPrepareTables:
    def test_mismatched_degeneracy(self):
        other_code, _ = activate_genetic_code(1)
        with pytest.raises(ValueError, match="Degeneracy tables belong"):
            prepare_tables(other_code, DEGENERACY)

    def test_informative_families(self):
        """Phe has an optimal codon; Met and stops never count."""
        assert TABLES.fop_families[_AA["Phe"]] == 1
        assert TABLES.fop_families[_AA["Met"]] == 0
        assert TABLES.fop_families[STOP] == 0

    def test_missing_table(self):
        tables = prepare_tables(CODE, DEGENERACY)
        with pytest.raises(ValueError, match="No CAI reference table"):
            cai(_counted("TTT"), tables)


# ═══════════════════════════════════════════════════════════════════════════════
# CAI / Fop / CBI
# ═══════════════════════════════════════════════════════════════════════════════

class TestCAI:
    def test_geometric_mean(self):
        assert np.isclose(cai(_counted("TTTTTC"), TABLES), math.sqrt(0.296))

    def test_all_preferred_codons(self):
        assert np.isclose(cai(_counted("CTGCTGAAATAA"), TABLES), 1.0)

    def test_no_eligible_codons(self):
        """Met, Trp and stops are excluded."""
        assert cai(_counted("ATGATGTGGTAA"), TABLES) == 0.0

    def test_zero_weight_floor(self):
        values = ["1.0"] * 64
        values[codon_index("TTT") - 1] = "0"
        tables = _tables(cai=parse_reference_table(CAI, " ".join(values)))
        assert np.isclose(cai(_counted("TTT"), tables), 0.01)

    def test_range(self):
        rng = np.random.default_rng(1)
        sequence = "".join(rng.choice(list("ACGT"), size=600))
        value = cai(_counted(sequence), TABLES)
        assert 0.0 <= value <= 1.0


class TestFop:
    def test_fraction_optimal(self):
        assert np.isclose(fop(_counted("TTCTTT"), TABLES), 0.5)

    def test_no_eligible_codons(self):
        assert fop(_counted("ATGTGG"), TABLES) == 0.0

    def test_all_common_table(self):
        tables = _tables(fop=parse_reference_table(FOP, "2" * 64))
        assert fop(_counted("TTCTTTCTG"), tables) == 0.0

    def test_modified(self):
        """Rare codons count against the modified index."""
        tables = _tables(modified_fop=True)
        assert np.isclose(fop(_counted("CTGCTGCTA"), TABLES), 2 / 3)
        assert np.isclose(fop(_counted("CTGCTGCTA"), tables), 1 / 3)
        assert np.isclose(fop(_counted("CTGCTA"), tables), 0.0)

    def test_modified_never_negative(self):
        """Only rare codons: the modified index stops at zero."""
        assert fop(_counted("CTACTA"), TABLES) == 0.0
        assert fop(_counted("CTACTA"), _tables(modified_fop=True)) == 0.0


class TestCBI:
    def test_all_optimal(self):
        assert np.isclose(cbi(_counted("TTCTTC"), TABLES), 1.0)

    def test_below_random_is_negative(self):
        assert np.isclose(cbi(_counted("TTTTTT"), TABLES), -1.0)

    def test_random_usage_is_zero(self):
        assert np.isclose(cbi(_counted("TTCTTT"), TABLES), 0.0)

    def test_several_optimal_codons(self):
        """Val has two optimal codons out of four."""
        assert np.isclose(cbi(_counted("GTTGTC"), TABLES), 0.0)

    def test_no_eligible_codons(self):
        assert cbi(_counted("ATGTGG"), TABLES) == 0.0


# ═══════════════════════════════════════════════════════════════════════════════
# Effective number of codons
# ═══════════════════════════════════════════════════════════════════════════════

class TestEnc:
    def test_capped_at_61(self):
        """Even use of every sense codon."""
        sequence = "".join(CODON_NAMES[x] * 2 for x in _sense_codons())
        assert enc(_counted(sequence), TABLES) == ENC_MAX

    def test_one_codon_per_amino_acid(self):
        assert np.isclose(enc(_counted(_one_codon_per_aa()), TABLES), 20.0)

    def test_three_fold_interpolated(self):
        """Ile missing: its class is averaged from the 2- and 4-fold classes."""
        state = _counted(_one_codon_per_aa(skip=("Ile",)))
        assert np.isclose(enc(state, TABLES), 20.0)
        assert enc_shortfall(state, TABLES) is None

    def test_missing_class(self):
        state = _counted("ATGATGATG")
        assert enc(state, TABLES) is None
        assert enc_shortfall(state, TABLES) == (2, 0)

    def test_missing_six_fold(self):
        state = _counted(_one_codon_per_aa(skip=("Leu", "Ser", "Arg")))
        assert enc(state, TABLES) is None
        assert enc_shortfall(state, TABLES) == (6, 0)

    def test_range(self):
        rng = np.random.default_rng(2)
        sequence = "".join(rng.choice(list("ACGT"), size=3000))
        value = enc(_counted(sequence), TABLES)
        assert value is not None
        assert 20.0 <= value <= 61.0


# ═══════════════════════════════════════════════════════════════════════════════
# Base composition
# ═══════════════════════════════════════════════════════════════════════════════

class TestBaseComposition:
    def test_gc_rich(self):
        state = _counted("GCCGCGTAA")
        assert np.isclose(gc_content(state, TABLES, "gc"), 1.0)
        assert np.isclose(gc_content(state, TABLES, "gc3s"), 1.0)
        assert gc_content(state, TABLES, "l_sym") == 2
        assert gc_content(state, TABLES, "l_aa") == 2

    def test_positions(self):
        record = base_composition(_counted("GCTGCA"), TABLES)
        assert list(record) == GC_FULL_FIELDS
        assert np.isclose(record["GC"], 4 / 6)
        assert np.isclose(record["GC3s"], 0.0)
        assert np.isclose(record["GCn3s"], 1.0)
        assert np.isclose(record["GC1"], 1.0)
        assert np.isclose(record["T3"], 0.5)
        assert np.isclose(record["A3"], 0.5)

    def test_too_short(self):
        """Only non-synonymous codons: no denominator for GC3s."""
        state = _counted("ATGTGG")
        assert gc_content(state, TABLES, "gc3s") is None
        assert gc_content(state, TABLES, "full") is None

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            gc_content(_counted("GCT"), TABLES, "gc4")


class TestSilentBase:
    def test_four_fold(self):
        values = silent_base_usage(_counted("GCTGCA"), TABLES)
        assert values == {"T3s": 0.5, "C3s": 0.0, "A3s": 0.5, "G3s": 0.0}

    def test_two_fold(self):
        """Phe can only end in T or C."""
        values = silent_base_usage(_counted("TTTTTT"), TABLES)
        assert values["T3s"] == 1.0
        assert values["C3s"] == 0.0
        assert values["A3s"] == 0.0

    def test_empty(self):
        assert set(silent_base_usage(_counted(""), TABLES).values()) == {0.0}


class TestDinucleotides:
    def test_rows_sum_to_one(self):
        freqs = dinucleotide_frequencies(_counted("ATGCCATTGA").dinuc)
        assert list(freqs.index) == ["1:2", "2:3", "3:1", "all"]
        assert np.allclose(freqs.sum(axis=1), 1.0)

    def test_frame_values(self):
        freqs = dinucleotide_frequencies(_counted("ATGC").dinuc)
        assert freqs.loc["1:2", "AT"] == 1.0
        assert freqs.loc["2:3", "TG"] == 1.0
        assert np.isclose(freqs.loc["all", "GC"], 1 / 3)

    def test_empty(self):
        freqs = dinucleotide_frequencies(_counted("").dinuc)
        assert (freqs.to_numpy() == 0).all()


class TestProteinProperties:
    def test_aromatic_protein(self):
        state = _counted("TTTTGG")
        assert np.isclose(aromaticity(state, TABLES), 1.0)
        assert np.isclose(hydropathicity(state, TABLES), (2.8 - 0.9) / 2)

    def test_stops_excluded(self):
        state = _counted("GCTAAATAA")
        assert np.isclose(hydropathicity(state, TABLES), (1.8 - 3.9) / 2)
        assert aromaticity(state, TABLES) == 0.0

    def test_no_amino_acids(self):
        state = _counted("TAA")
        assert hydropathicity(state, TABLES) is None
        assert aromaticity(state, TABLES) is None


# ═══════════════════════════════════════════════════════════════════════════════
# Usage tables
# ═══════════════════════════════════════════════════════════════════════════════

class TestUsage:
    def test_rscu(self):
        values = rscu_values(_counted("TTTTTTTTC"), TABLES)
        assert np.isclose(values[codon_index("TTT") - 1], 4 / 3)
        assert np.isclose(values[codon_index("TTC") - 1], 2 / 3)
        assert values[codon_index("GCT") - 1] == 0.0

    def test_rscu_family_sums(self):
        """RSCU over a used family sums to the family size."""
        sequence = "".join(CODON_NAMES[x] for x in range(1, 65) if CODE.amino_acids[x] == _AA["Leu"])
        series = rscu(_counted(sequence + "CTG"), TABLES)
        leu = [CODON_NAMES[x] for x in range(1, 65) if CODE.amino_acids[x] == _AA["Leu"]]
        assert np.isclose(series[leu].sum(), 6.0)

    def test_codon_usage_table(self):
        table = codon_usage_table(_counted("ATGGCTTAA"), TABLES)
        assert list(table.index) == list(range(1, 65))
        assert table.loc[codon_index("ATG"), "amino_acid"] == "Met"
        assert table.loc[codon_index("ATG"), "count"] == 1
        assert table.loc[1, "codon"] == "TTT"

    def test_aa_usage(self):
        counts = aa_usage(_counted("ATGGCTTAA"), TABLES)
        assert len(counts) == 22
        assert counts["Met"] == 1
        assert counts["TER"] == 1

    def test_relative_aa_usage(self):
        freqs = relative_aa_usage(_counted("ATGGCTGCTTAA"), TABLES)
        assert np.isclose(freqs["Ala"], 2 / 3)
        assert freqs["TER"] == 0.0
        assert relative_aa_usage(_counted("TAA"), TABLES) is None


# ═══════════════════════════════════════════════════════════════════════════════
# Dispatch
# ═══════════════════════════════════════════════════════════════════════════════

class TestComputeIndex:
    def test_case_insensitive(self):
        assert canonical_index_name("cai") == "CAI"
        assert canonical_index_name("gc3S") == "GC3s"

    def test_unknown(self):
        with pytest.raises(KeyError):
            canonical_index_name("tAI")

    def test_table_results(self):
        state = _counted("ATGGCTTAA")
        assert isinstance(compute_index("CodonUsageTable", state, TABLES), pd.DataFrame)
        assert len(compute_index("RSCU", state, TABLES)) == 64
        assert len(compute_index("AAUsage", state, TABLES)) == 22
        assert isinstance(compute_index("Dinuc", state, TABLES), pd.DataFrame)

    def test_order_independent(self):
        """Calculators never change the counts, so order does not matter."""
        rng = np.random.default_rng(3)
        state = _counted("".join(rng.choice(list("ACGT"), size=900)))
        scalar = ["CAI", "CBI", "Fop", "Enc", "GC", "GC3s", "Hydropathicity", "Aromaticity"]
        forward = {name: compute_index(name, state, TABLES) for name in scalar}
        ncod = state.ncod.copy()
        for name in INDEX_NAMES:
            compute_index(name, state, TABLES)
        backward = {name: compute_index(name, state, TABLES) for name in reversed(scalar)}
        assert forward == backward
        assert np.array_equal(state.ncod, ncod)
