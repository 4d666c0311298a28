"""Run options and the one-time setup of reference data."""

import logging
from dataclasses import dataclass
from pathlib import Path

from codonbias.core.genetic_code import activate_genetic_code
from codonbias.core.indices import IndexTables, prepare_tables
from codonbias.core.reference import (
    CAI,
    CBI,
    FOP,
    ReferenceTable,
    get_builtin_table,
    load_reference_table,
)

logger = logging.getLogger(__name__)


@dataclass
class AnalysisOptions:
    """Options for one analysis run.

    Attributes:
        genetic_code: Built-in genetic code id (0 = universal).
        cai_species, fop_species, cbi_species: Built-in reference tables.
        cai_file, fop_file, cbi_file: User tables that replace the built-ins.
        totals: Pool every sequence into one set of counts and aggregate
            warnings into end-of-batch totals.
        warn: Emit sequence warnings at all.
        modified_fop: Use ``(opt - rare) / total`` for Fop.
    """

    genetic_code: int = 0
    cai_species: str = "ecoli"
    fop_species: str = "ecoli"
    cbi_species: str = "ecoli"
    cai_file: str | Path | None = None
    fop_file: str | Path | None = None
    cbi_file: str | Path | None = None
    totals: bool = False
    warn: bool = True
    modified_fop: bool = False


def _reference(kind: str, path: str | Path | None, species: str) -> ReferenceTable:
    if path is not None:
        return load_reference_table(kind, path)
    return get_builtin_table(kind, species)


def build_tables(options: AnalysisOptions) -> IndexTables:
    """Activate the genetic code and load every reference table once.

    Raises:
        ReferenceTableError: If a user-supplied table is malformed.
    """
    code, degeneracy = activate_genetic_code(options.genetic_code)
    return prepare_tables(
        code,
        degeneracy,
        cai=_reference(CAI, options.cai_file, options.cai_species),
        fop=_reference(FOP, options.fop_file, options.fop_species),
        cbi=_reference(CBI, options.cbi_file, options.cbi_species),
        modified_fop=options.modified_fop,
    )
