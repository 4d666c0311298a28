"""Genetic code tables, synonymous-codon degeneracy and amino acid properties.

Codons are numbered 1-64 by ``codon_index`` (T=1, C=2, A=3, G=4,
``id = (b1-1)*16 + b2 + (b3-1)*4``); 0 is reserved for anything that could
not be read.  Amino acids are numbered 1-21 in the order below, 11 being the
stop signal and 0 the "X" bucket for untranslatable codons.
"""

import logging
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

STOP = 11
N_CODONS = 64
N_AMINO_ACIDS = 21

AA_THREE_LETTER = [
    "X", "Phe", "Leu", "Ile", "Met", "Val", "Ser", "Pro", "Thr", "Ala", "Tyr",
    "TER", "His", "Gln", "Asn", "Lys", "Asp", "Glu", "Cys", "Trp", "Arg", "Gly",
]
AA_ONE_LETTER = [
    "X", "F", "L", "I", "M", "V", "S", "P", "T", "A", "Y",
    "*", "H", "Q", "N", "K", "D", "E", "C", "W", "R", "G",
]
_AA_ID = {letter: i for i, letter in enumerate(AA_ONE_LETTER)}

# Kyte & Doolittle (1982) hydropathic index
HYDROPATHY = [
    0.0, 2.8, 3.8, 4.5, 1.9, 4.2, -0.8, -1.6, -0.7, 1.8, -1.3,
    0.0, -3.2, -3.5, -3.5, -3.9, -3.5, -3.5, 2.5, -0.9, -4.5, -0.4,
]
AROMATICITY = [
    0, 1, 0, 0, 0, 0, 0, 0, 0, 0, 1,
    0, 0, 0, 0, 0, 0, 0, 0, 1, 0, 0,
]

# NCBI translation strings, codons in TCAG order (first base slowest)
_BUILTIN_CODES: dict[int, tuple[str, str, str]] = {
    0: ("Universal Genetic code", "TypeOf: NCBI trans_table 1",
        "FFLLSSSSYY**CC*WLLLLPPPPHHQQRRRRIIIMTTTTNNKKSSRRVVVVAAAADDEEGGGG"),
    1: ("Vertebrate Mitochondrial code", "TypeOf: NCBI trans_table 2",
        "FFLLSSSSYY**CCWWLLLLPPPPHHQQRRRRIIMMTTTTNNKKSS**VVVVAAAADDEEGGGG"),
    2: ("Yeast Mitochondrial code", "TypeOf: NCBI trans_table 3",
        "FFLLSSSSYY**CCWWTTTTPPPPHHQQRRRRIIMMTTTTNNKKSSRRVVVVAAAADDEEGGGG"),
    3: ("Filamentous fungi Mitochondrial code", "TypeOf: NCBI trans_table 4",
        "FFLLSSSSYY**CCWWLLLLPPPPHHQQRRRRIIIMTTTTNNKKSSRRVVVVAAAADDEEGGGG"),
    4: ("Insects and Platyhelminthes Mitochondrial code", "TypeOf: NCBI trans_table 5",
        "FFLLSSSSYY**CCWWLLLLPPPPHHQQRRRRIIMMTTTTNNKKSSSSVVVVAAAADDEEGGGG"),
    5: ("Nuclear code of Ciliata", "TypeOf: NCBI trans_table 6",
        "FFLLSSSSYYQQCC*WLLLLPPPPHHQQRRRRIIIMTTTTNNKKSSRRVVVVAAAADDEEGGGG"),
    6: ("Nuclear code of Euplotes", "TypeOf: NCBI trans_table 10",
        "FFLLSSSSYY**CCCWLLLLPPPPHHQQRRRRIIIMTTTTNNKKSSRRVVVVAAAADDEEGGGG"),
    7: ("Mitochondrial code of Echinoderms", "TypeOf: NCBI trans_table 9",
        "FFLLSSSSYY**CCWWLLLLPPPPHHQQRRRRIIIMTTTTNNNKSSSSVVVVAAAADDEEGGGG"),
}


@dataclass(frozen=True, eq=False)
class GeneticCode:
    """Codon id (1-64) to amino acid id (1-21) translation for one code."""

    code_id: int
    description: str
    type_label: str
    amino_acids: np.ndarray  # shape (65,), index 0 -> 0

    def translate(self, codon_id: int) -> int:
        return int(self.amino_acids[codon_id])

    def is_stop(self, codon_id: int) -> bool:
        return codon_id != 0 and self.amino_acids[codon_id] == STOP

    def __repr__(self) -> str:
        return f"GeneticCode({self.code_id}, {self.description!r})"


@dataclass(frozen=True, eq=False)
class Degeneracy:
    """Synonymous family sizes, valid only together with ``code``.

    ``ds[x]``: number of codons translating to the same amino acid as codon x.
    ``da[a]``: number of codons translating to amino acid a.
    """

    code: GeneticCode
    ds: np.ndarray  # shape (65,)
    da: np.ndarray  # shape (22,)


@dataclass(frozen=True, eq=False)
class AminoAcidProperties:
    """Per amino acid reference values, indexed by amino acid id 0-21."""

    three_letter: tuple[str, ...]
    one_letter: tuple[str, ...]
    hydropathy: np.ndarray
    aromaticity: np.ndarray


def _frozen(values, dtype) -> np.ndarray:
    arr = np.array(values, dtype=dtype)
    arr.setflags(write=False)
    return arr


def _ncbi_to_codon_ids(translation: str) -> np.ndarray:
    """Re-order an NCBI 64-letter translation string into codon-id order."""
    amino_acids = np.zeros(N_CODONS + 1, dtype=np.int64)
    for n, letter in enumerate(translation):
        b1, b2, b3 = n // 16, (n // 4) % 4, n % 4
        codon_id = b1 * 16 + (b2 + 1) + b3 * 4
        amino_acids[codon_id] = _AA_ID[letter]
    amino_acids.setflags(write=False)
    return amino_acids


def available_codes() -> dict[int, str]:
    """Return {code_id: description} for every built-in genetic code."""
    return {code_id: desc for code_id, (desc, _typ, _tr) in _BUILTIN_CODES.items()}


def load_genetic_code(code_id: int) -> GeneticCode:
    """Build one of the built-in genetic codes.

    Raises:
        ValueError: If ``code_id`` is not a built-in code.
    """
    try:
        description, type_label, translation = _BUILTIN_CODES[code_id]
    except KeyError:
        raise ValueError(
            f"Unknown genetic code {code_id!r}; choose one of "
            f"{sorted(_BUILTIN_CODES)}"
        ) from None
    return GeneticCode(
        code_id=code_id,
        description=description,
        type_label=type_label,
        amino_acids=_ncbi_to_codon_ids(translation),
    )


def compute_degeneracy(code: GeneticCode) -> Degeneracy:
    """Derive codon synonym counts and amino acid family sizes for ``code``."""
    ca = code.amino_acids
    ds = np.zeros(N_CODONS + 1, dtype=np.int64)
    for x in range(1, N_CODONS + 1):
        for i in range(1, N_CODONS + 1):
            if ca[x] == ca[i]:
                ds[x] += 1

    da = np.zeros(N_AMINO_ACIDS + 1, dtype=np.int64)
    for x in range(1, N_CODONS + 1):
        da[ca[x]] += 1

    ds.setflags(write=False)
    da.setflags(write=False)
    return Degeneracy(code=code, ds=ds, da=da)


def activate_genetic_code(code_id: int = 0) -> tuple[GeneticCode, Degeneracy]:
    """Load a genetic code and the degeneracy tables paired with it."""
    code = load_genetic_code(code_id)
    degeneracy = compute_degeneracy(code)
    logger.info("Genetic code set to %s %s", code.description, code.type_label)
    return code, degeneracy


def amino_acid_properties() -> AminoAcidProperties:
    return AminoAcidProperties(
        three_letter=tuple(AA_THREE_LETTER),
        one_letter=tuple(AA_ONE_LETTER),
        hydropathy=_frozen(HYDROPATHY, np.float64),
        aromaticity=_frozen(AROMATICITY, np.float64),
    )
