"""Codon numbering: 3-base symbols to ids 1-64, 0 for unreadable codons."""

BASES = "TCAG"

_BASE_CODE = {
    "T": 1, "t": 1, "U": 1, "u": 1,
    "C": 2, "c": 2,
    "A": 3, "a": 3,
    "G": 4, "g": 4,
}


def base_code(symbol: str) -> int:
    """Return 1-4 for T/U, C, A, G (any case) and 0 for anything else."""
    return _BASE_CODE.get(symbol, 0)


def codon_index(codon: str) -> int:
    """Convert a codon into its numeric id.

    Args:
        codon: Three nucleotide symbols.  A shorter string marks the end of
            input and yields 0 without inspecting the remaining bases.

    Returns:
        ``(b1-1)*16 + b2 + (b3-1)*4`` in 1..64, or 0 if any base is not
        one of T/U, C, A, G.
    """
    if len(codon) < 3:
        return 0
    b1, b2, b3 = (_BASE_CODE.get(s, 0) for s in codon[:3])
    if b1 * b2 * b3 == 0:
        return 0
    return (b1 - 1) * 16 + b2 + (b3 - 1) * 4


def codon_name(codon_id: int) -> str:
    """Inverse of ``codon_index`` using the DNA alphabet (1 -> "TTT")."""
    if not 1 <= codon_id <= 64:
        raise ValueError(f"Codon id must be in 1..64, got {codon_id}")
    n = codon_id - 1
    return BASES[n // 16] + BASES[n % 4] + BASES[(n // 4) % 4]


CODON_NAMES = ["---"] + [codon_name(i) for i in range(1, 65)]

