"""Codon usage indices computed from codon and amino acid counts.

Every calculator is a pure function of a ``CountState`` and an
``IndexTables`` bundle.  Counts are never modified, so calculators may be
called in any order.  A statistic whose denominator is zero returns ``None``
("too short"); Enc also returns ``None`` when a degeneracy class has no data
and cannot be interpolated.

References:
    CAI  Sharp & Li (1987) Nucleic Acids Res 15:1281
    Fop  Ikemura (1981) J Mol Biol 151:389
    CBI  Bennetzen & Hall (1982) J Biol Chem 257:3026
    Nc   Wright (1990) Gene 87:23
    GRAVY  Kyte & Doolittle (1982) J Mol Biol 157:105
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
import pandas as pd

from codonbias.core import usage
from codonbias.core.codons import BASES, CODON_NAMES, base_code
from codonbias.core.counting import CountState, DinucState
from codonbias.core.genetic_code import (
    N_AMINO_ACIDS,
    STOP,
    AminoAcidProperties,
    Degeneracy,
    GeneticCode,
    amino_acid_properties,
)
from codonbias.core.reference import (
    COMMON,
    NON_OPTIMAL,
    OPTIMAL,
    ReferenceTable,
    ReferenceTableError,
)

logger = logging.getLogger(__name__)

ENC_MAX = 61.0
_MIN_CAI_WEIGHT = 0.0001
_CAI_WEIGHT_FLOOR = 0.01
_MIN_HOMOZYGOSITY = 0.0000001
_MAX_FOLD = 8

# base code (1-4) at each codon position, indexed by codon id - 1
_POS1 = np.array([base_code(c[0]) for c in CODON_NAMES[1:]])
_POS2 = np.array([base_code(c[1]) for c in CODON_NAMES[1:]])
_POS3 = np.array([base_code(c[2]) for c in CODON_NAMES[1:]])

DINUCLEOTIDES = [a + b for a in BASES for b in BASES]
DINUC_FRAMES = ["1:2", "2:3", "3:1", "all"]

GC_FULL_FIELDS = [
    "Len_aa", "Len_sym", "GC", "GC3s", "GCn3s", "GC1", "GC2", "GC3",
    "T1", "T2", "T3", "C1", "C2", "C3", "A1", "A2", "A3", "G1", "G2", "G3",
]
SILENT_BASE_FIELDS = [f"{base}3s" for base in BASES]


@dataclass(frozen=True, eq=False)
class IndexTables:
    """Read-only reference data shared by all calculators for one run.

    Build with ``prepare_tables``, which also derives which amino acids carry
    optimal-codon information for Fop and CBI.
    """

    code: GeneticCode
    degeneracy: Degeneracy
    properties: AminoAcidProperties
    cai: ReferenceTable | None
    fop: ReferenceTable | None
    cbi: ReferenceTable | None
    modified_fop: bool
    fop_families: np.ndarray  # shape (22,), codons per aa counted as informative
    cbi_families: np.ndarray


def _informative_families(
    code: GeneticCode,
    degeneracy: Degeneracy,
    table: ReferenceTable | None,
    count_rare: bool = False,
) -> np.ndarray:
    families = np.zeros(N_AMINO_ACIDS + 1, dtype=np.int64)
    if table is None:
        return families
    ca = code.amino_acids
    for x in range(1, 65):
        if ca[x] == STOP or degeneracy.ds[x] == 1:
            continue
        if table.values[x] == OPTIMAL:
            families[ca[x]] += 1
        elif count_rare and table.values[x] == NON_OPTIMAL:
            families[ca[x]] += 1
    families.setflags(write=False)
    return families


def prepare_tables(
    code: GeneticCode,
    degeneracy: Degeneracy,
    cai: ReferenceTable | None = None,
    fop: ReferenceTable | None = None,
    cbi: ReferenceTable | None = None,
    properties: AminoAcidProperties | None = None,
    modified_fop: bool = False,
) -> IndexTables:
    """Bundle the reference data for one run.

    Raises:
        ValueError: If ``degeneracy`` was derived from a different code.
    """
    if degeneracy.code.code_id != code.code_id:
        raise ValueError(
            f"Degeneracy tables belong to {degeneracy.code!r}, not {code!r}"
        )
    if cai is not None:
        logger.info("Using %s (%s) w values to calculate CAI", cai.description, cai.reference)
    if fop is not None:
        logger.info("Using %s (%s) optimal codons to calculate Fop", fop.description, fop.reference)
    if cbi is not None:
        logger.info("Using %s (%s) optimal codons to calculate CBI", cbi.description, cbi.reference)
    return IndexTables(
        code=code,
        degeneracy=degeneracy,
        properties=properties or amino_acid_properties(),
        cai=cai,
        fop=fop,
        cbi=cbi,
        modified_fop=modified_fop,
        fop_families=_informative_families(code, degeneracy, fop, count_rare=modified_fop),
        cbi_families=_informative_families(code, degeneracy, cbi),
    )


def _require(table: ReferenceTable | None, name: str) -> ReferenceTable:
    if table is None:
        raise ValueError(f"No {name} reference table was loaded")
    return table


def _synonymous_mask(tables: IndexTables) -> np.ndarray:
    """Boolean mask over codon ids 1..64: non-stop codons with synonyms."""
    ca = tables.code.amino_acids[1:]
    ds = tables.degeneracy.ds[1:]
    return (ca != STOP) & (ds > 1)


# ── CAI / Fop / CBI ───────────────────────────────────────────────────────


def cai(state: CountState, tables: IndexTables) -> float:
    """Codon Adaptation Index: geometric mean of w over synonymous codons.

    Weights below 0.0001 are treated as 0.01 so that one unused reference
    codon cannot force the index to zero.  Returns 0.0 when no eligible
    codon was counted.
    """
    table = _require(tables.cai, "CAI")
    mask = _synonymous_mask(tables)
    counts = state.ncod[1:][mask]
    weights = table.values[1:][mask]
    weights = np.where(weights < _MIN_CAI_WEIGHT, _CAI_WEIGHT_FLOOR, weights)

    total = int(counts.sum())
    if total == 0:
        return 0.0
    sigma = float(np.sum(counts * np.log(weights)))
    return math.exp(sigma / total)


def _classify(table: ReferenceTable, codon_id: int, name: str) -> int:
    value = int(table.values[codon_id])
    if value not in (NON_OPTIMAL, COMMON, OPTIMAL):
        raise ReferenceTableError(
            f"Illegal {name} value {value} for codon {codon_id}; permissible "
            "values are 1 (non-optimal), 2 (common) and 3 (optimal)"
        )
    return value


def fop(state: CountState, tables: IndexTables) -> float:
    """Frequency of optimal codons.

    Only amino acids with at least one optimal codon contribute.  With
    ``modified_fop`` the index is ``(optimal - non-optimal) / total``, with
    negative values set to zero.
    """
    table = _require(tables.fop, "Fop")
    ca = tables.code.amino_acids
    opt = common = nonopt = 0
    for x in range(1, 65):
        if not tables.fop_families[ca[x]]:
            continue
        n = int(state.ncod[x])
        cls = _classify(table, x, "Fop")
        if cls == OPTIMAL:
            opt += n
        elif cls == COMMON:
            common += n
        else:
            nonopt += n

    total = opt + common + nonopt
    if not total:
        return 0.0
    if tables.modified_fop:
        return max(0.0, (opt - nonopt) / total)
    return opt / total


def cbi(state: CountState, tables: IndexTables) -> float:
    """Codon Bias Index, ``(N_opt - N_rand) / (N_tot - N_rand)``.

    N_rand is the number of optimal codons expected if each synonym of an
    amino acid were used equally often.  Negative when optimal codons are
    used less than expected.
    """
    table = _require(tables.cbi, "CBI")
    ca = tables.code.amino_acids
    da = tables.degeneracy.da
    opt = tot = 0
    expected = 0.0
    for x in range(1, 65):
        aa = ca[x]
        if not tables.cbi_families[aa]:
            continue
        n = int(state.ncod[x])
        cls = _classify(table, x, "CBI")
        if cls == OPTIMAL:
            opt += n
            expected += state.naa[aa] / da[aa]
        tot += n

    denominator = tot - expected
    if not denominator:
        return 0.0
    return float((opt - expected) / denominator)


# ── Effective number of codons ────────────────────────────────────────────


def _enc_terms(state: CountState, tables: IndexTables) -> tuple[float | None, int, int]:
    """Return (Nc, failed_fold, observed) where Nc is None on failure."""
    ca = tables.code.amino_acids
    da = tables.degeneracy.da
    numaa = [0] * (_MAX_FOLD + 1)
    fold = [0] * (_MAX_FOLD + 1)
    totb = [0.0] * (_MAX_FOLD + 1)

    for i in range(1, N_AMINO_ACIDS + 1):
        if i == STOP:
            continue
        n = int(state.naa[i])
        size = int(da[i])
        if n <= 1:
            bb = 0.0
        else:
            p = state.ncod[1:][ca[1:] == i] / n
            bb = (n * float(np.sum(p * p)) - 1.0) / (n - 1.0)
        if bb > _MIN_HOMOZYGOSITY:
            totb[size] += bb
            numaa[size] += 1
        fold[size] += 1

    enc = float(fold[1])
    for z in range(2, _MAX_FOLD + 1):
        if not fold[z]:
            continue
        if numaa[z] and totb[z] > 0:
            averb = totb[z] / numaa[z]
        elif z == 3 and numaa[2] and numaa[4] and fold[z] == 1:
            averb = (totb[2] / numaa[2] + totb[4] / numaa[4]) * 0.5
        else:
            return None, z, numaa[z]
        enc += fold[z] / averb

    return min(enc, ENC_MAX), 0, 0


def enc(state: CountState, tables: IndexTables) -> float | None:
    """Effective number of codons, at most 61.

    Returns None when a synonymous family class present in the genetic code
    has no amino acid with usable data.  A single missing 3-fold amino acid
    (Ile in the universal code) is interpolated from the 2- and 4-fold
    averages.
    """
    value, _fold, _observed = _enc_terms(state, tables)
    return value


def enc_shortfall(state: CountState, tables: IndexTables) -> tuple[int, int] | None:
    """(fold, observed) for the family class that stopped Nc, else None."""
    value, failed, observed = _enc_terms(state, tables)
    if value is None:
        return failed, observed
    return None


# ── Base composition ──────────────────────────────────────────────────────


def base_composition(state: CountState, tables: IndexTables) -> dict[str, float] | None:
    """GC content, GC3s and per-position base usage over non-stop codons.

    Returns None if no translatable or no synonymous codon was counted.
    """
    ca = tables.code.amino_acids[1:]
    counts = state.ncod[1:]
    sense = ca != STOP
    synonymous = _synonymous_mask(tables)

    def tally(pos: np.ndarray, mask: np.ndarray) -> np.ndarray:
        return np.bincount(pos[mask], weights=counts[mask], minlength=5)

    base_1 = tally(_POS1, sense)
    base_2 = tally(_POS2, sense)
    base_3 = tally(_POS3, sense)
    base_tot = base_1 + base_2 + base_3
    bases = tally(_POS3, synonymous)
    totalaa = int(counts[sense].sum())
    tot_s = int(counts[synonymous].sum())

    if not tot_s or not totalaa:
        return None

    gc_all = base_tot[2] + base_tot[4]
    gc3s = bases[2] + bases[4]
    record = {
        "Len_aa": totalaa,
        "Len_sym": tot_s,
        "GC": gc_all / (totalaa * 3),
        "GC3s": gc3s / tot_s,
        "GCn3s": (gc_all - gc3s) / (totalaa * 3 - tot_s),
        "GC1": (base_1[2] + base_1[4]) / totalaa,
        "GC2": (base_2[2] + base_2[4]) / totalaa,
        "GC3": (base_3[2] + base_3[4]) / totalaa,
    }
    for code, base in enumerate(BASES, start=1):
        for pos, tallied in enumerate((base_1, base_2, base_3), start=1):
            record[f"{base}{pos}"] = tallied[code] / totalaa
    for key in GC_FULL_FIELDS[2:]:
        record[key] = float(record[key])
    return {key: record[key] for key in GC_FULL_FIELDS}


def gc_content(state: CountState, tables: IndexTables, mode: str = "gc"):
    """One statistic from ``base_composition``.

    Args:
        mode: ``"full"`` (whole record), ``"gc"``, ``"gc3s"``, ``"l_sym"``
            (synonymous codon count) or ``"l_aa"`` (translated length).
    """
    keys = {"gc": "GC", "gc3s": "GC3s", "l_sym": "Len_sym", "l_aa": "Len_aa"}
    if mode != "full" and mode not in keys:
        raise ValueError(f"Unknown GC mode {mode!r}")
    record = base_composition(state, tables)
    if record is None or mode == "full":
        return record
    return record[keys[mode]]


def silent_base_usage(state: CountState, tables: IndexTables) -> dict[str, float]:
    """T3s, C3s, A3s, G3s: third-position usage at silent sites.

    Each value is the number of synonymous codons ending in the base over the
    number of codons whose amino acid could have ended in that base.
    """
    ca = tables.code.amino_acids
    da = tables.degeneracy.da
    counts = state.ncod[1:]
    synonymous = _synonymous_mask(tables)
    bases_s = np.bincount(_POS3[synonymous], weights=counts[synonymous], minlength=5)[1:]

    could_be = np.zeros(4, dtype=np.int64)
    for i in range(1, N_AMINO_ACIDS + 1):
        if i == STOP or da[i] == 1:
            continue
        endings = set(_POS3[ca[1:] == i].tolist())
        for z in endings:
            could_be[z - 1] += state.naa[i]

    return {
        key: (float(bases_s[k] / could_be[k]) if could_be[k] > 0 else 0.0)
        for k, key in enumerate(SILENT_BASE_FIELDS)
    }


# ── Dinucleotides ─────────────────────────────────────────────────────────


def dinucleotide_frequencies(dinuc: DinucState) -> pd.DataFrame:
    """Relative dinucleotide usage per frame phase plus all frames pooled.

    Rows "1:2", "2:3", "3:1" and "all"; columns TT, TC, ... GG.  A row with
    no counted pairs is all zeros.
    """
    counts = np.vstack([dinuc.din, dinuc.din.sum(axis=0)]).astype(np.float64)
    totals = counts.sum(axis=1, keepdims=True)
    freqs = np.divide(counts, totals, out=np.zeros_like(counts), where=totals > 0)
    return pd.DataFrame(freqs, index=DINUC_FRAMES, columns=DINUCLEOTIDES)


# ── Protein properties ────────────────────────────────────────────────────


def _protein_mean(state: CountState, values: np.ndarray) -> float | None:
    naa = state.naa.astype(np.float64).copy()
    naa[0] = 0
    naa[STOP] = 0
    total = naa.sum()
    if not total:
        return None
    return float(np.sum(naa / total * values))


def hydropathicity(state: CountState, tables: IndexTables) -> float | None:
    """GRAVY score: mean Kyte-Doolittle hydropathy of the translated protein."""
    return _protein_mean(state, tables.properties.hydropathy)


def aromaticity(state: CountState, tables: IndexTables) -> float | None:
    """Frequency of Phe, Tyr and Trp in the translated protein."""
    return _protein_mean(state, tables.properties.aromaticity)


# ── Dispatch ──────────────────────────────────────────────────────────────

_CALCULATORS = {
    "CAI": cai,
    "CBI": cbi,
    "Fop": fop,
    "Enc": enc,
    "GC": lambda s, t: gc_content(s, t, "gc"),
    "GC3s": lambda s, t: gc_content(s, t, "gc3s"),
    "GCFull": lambda s, t: gc_content(s, t, "full"),
    "L_sym": lambda s, t: gc_content(s, t, "l_sym"),
    "L_aa": lambda s, t: gc_content(s, t, "l_aa"),
    "SilentBase": silent_base_usage,
    "Dinuc": lambda s, t: dinucleotide_frequencies(s.dinuc),
    "Hydropathicity": hydropathicity,
    "Aromaticity": aromaticity,
    "CodonUsageTable": usage.codon_usage_table,
    "RSCU": usage.rscu,
    "AAUsage": usage.aa_usage,
    "RAAU": usage.relative_aa_usage,
}
INDEX_NAMES = list(_CALCULATORS)
# indices that return a flat record instead of a single number
RECORD_FIELDS = {"GCFull": GC_FULL_FIELDS, "SilentBase": SILENT_BASE_FIELDS}
_BY_LOWER = {name.lower(): name for name in _CALCULATORS}


def canonical_index_name(name: str) -> str:
    """Resolve ``name`` case-insensitively to a known index name."""
    try:
        return _BY_LOWER[name.lower()]
    except KeyError:
        raise KeyError(f"Unknown index {name!r}; choose from {INDEX_NAMES}") from None


def compute_index(name: str, state: CountState, tables: IndexTables):
    """Compute one named index or table for ``state``."""
    return _CALCULATORS[canonical_index_name(name)](state, tables)
