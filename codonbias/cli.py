"""codonbias CLI entry point."""

import argparse
import logging
import sys

from codonbias import __version__
from codonbias.config import AnalysisOptions
from codonbias.core.reference import CAI, CBI, FOP, builtin_species


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "input", help="FASTA file of protein-coding sequences (may be gzipped)",
    )
    parser.add_argument(
        "--code", type=int, default=0,
        help="Genetic code id (default: 0, universal); see `codonbias codes`",
    )
    parser.add_argument(
        "--totals", action="store_true",
        help="Pool all sequences and report batch totals",
    )
    parser.add_argument(
        "--no-warnings", action="store_true",
        help="Suppress sequence warnings",
    )
    parser.add_argument(
        "--output", type=str, default=None,
        help="Output file (default: stdout)",
    )


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="codonbias",
        description="codonbias: codon usage bias indices for coding sequences",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # ── indices ───────────────────────────────────────────────────────────
    idx_parser = subparsers.add_parser(
        "indices", help="Per-gene codon bias indices (CAI, CBI, Fop, Nc, GC3s, ...)"
    )
    _add_common_options(idx_parser)
    idx_parser.add_argument(
        "--indices", nargs="+", default=None,
        help="Indices to compute (default: CAI CBI Fop Enc GC3s GC L_sym L_aa "
             "Hydropathicity Aromaticity)",
    )
    idx_parser.add_argument(
        "--cai-species", default="ecoli", choices=builtin_species(CAI),
        help="Built-in CAI weights (default: ecoli)",
    )
    idx_parser.add_argument(
        "--fop-species", default="ecoli", choices=builtin_species(FOP),
        help="Built-in optimal codons for Fop (default: ecoli)",
    )
    idx_parser.add_argument(
        "--cbi-species", default="ecoli", choices=builtin_species(CBI),
        help="Built-in optimal codons for CBI (default: ecoli)",
    )
    idx_parser.add_argument(
        "--cai-file", default=None, help="File of 64 CAI adaptiveness values",
    )
    idx_parser.add_argument(
        "--fop-file", default=None, help="File of 64 Fop codon classes (1, 2 or 3)",
    )
    idx_parser.add_argument(
        "--cbi-file", default=None, help="File of 64 CBI codon classes (1, 2 or 3)",
    )
    idx_parser.add_argument(
        "--modified-fop", action="store_true",
        help="Count rare codons against Fop: (opt - rare) / total",
    )

    # ── usage ─────────────────────────────────────────────────────────────
    use_parser = subparsers.add_parser(
        "usage", help="Codon, RSCU, amino acid or dinucleotide usage tables"
    )
    _add_common_options(use_parser)
    use_parser.add_argument(
        "--table", default="cutab",
        choices=["cutab", "codons", "rscu", "aa", "raau", "dinuc"],
        help="Table to write (default: cutab, readable codon usage with RSCU; "
             "codons and rscu are written as rows of 16 per gene)",
    )

    # ── codes ─────────────────────────────────────────────────────────────
    subparsers.add_parser("codes", help="List the built-in genetic codes")

    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "indices":
        return _cmd_indices(args)
    elif args.command == "usage":
        return _cmd_usage(args)
    elif args.command == "codes":
        return _cmd_codes(args)
    else:
        parser.print_help()
        return 1


# ═══════════════════════════════════════════════════════════════════════════════
# Command handlers
# ═══════════════════════════════════════════════════════════════════════════════

def _options(args: argparse.Namespace) -> AnalysisOptions:
    return AnalysisOptions(
        genetic_code=args.code,
        cai_species=getattr(args, "cai_species", "ecoli"),
        fop_species=getattr(args, "fop_species", "ecoli"),
        cbi_species=getattr(args, "cbi_species", "ecoli"),
        cai_file=getattr(args, "cai_file", None),
        fop_file=getattr(args, "fop_file", None),
        cbi_file=getattr(args, "cbi_file", None),
        totals=args.totals,
        warn=not args.no_warnings,
        modified_fop=getattr(args, "modified_fop", False),
    )


def _cmd_indices(args: argparse.Namespace) -> int:
    """Handle the indices subcommand."""
    from codonbias.config import build_tables
    from codonbias.core.sequences import read_fasta
    from codonbias.modes.indices import run_indices
    from codonbias.report import format_indices, write_table

    options = _options(args)
    try:
        tables = build_tables(options)
        sequences = read_fasta(args.input)
        result = run_indices(sequences, indices=args.indices, options=options, tables=tables)
    except (OSError, ValueError, KeyError) as exc:
        logging.error("%s", exc)
        return 1

    write_table(format_indices(result["results"]), args.output)
    return 0


def _cmd_usage(args: argparse.Namespace) -> int:
    """Handle the usage subcommand."""
    from codonbias.config import build_tables
    from codonbias.core.sequences import read_fasta
    from codonbias.modes.usage import run_usage
    from codonbias.report import (
        codon_count_block,
        rscu_block,
        tabulate_codon_usage,
        write_table,
        write_text,
    )

    options = _options(args)
    try:
        tables = build_tables(options)
        sequences = read_fasta(args.input)
        result = run_usage(sequences, options=options, tables=tables)
    except (OSError, ValueError) as exc:
        logging.error("%s", exc)
        return 1

    codon_usage = result["codon_usage"]
    titles = list(codon_usage.index.unique(level="title")) if len(codon_usage) else []
    if args.table == "cutab":
        write_text("".join(
            tabulate_codon_usage(codon_usage.loc[title], title, tables.code) + "\n"
            for title in titles
        ), args.output)
        return 0
    if args.table == "codons":
        write_text("".join(
            codon_count_block(codon_usage.loc[title]["count"], title, tables.code)
            for title in titles
        ), args.output)
        return 0
    if args.table == "rscu":
        write_text("".join(
            rscu_block(result["rscu"].loc[title], title) for title in titles
        ), args.output)
        return 0

    key = {"aa": "aa_usage", "raau": "raau", "dinuc": "dinucleotides"}[args.table]
    write_table(result[key], args.output, index=True)
    return 0


def _cmd_codes(args: argparse.Namespace) -> int:
    """Handle the codes subcommand."""
    from codonbias.core.genetic_code import available_codes

    for code_id, description in available_codes().items():
        print(f"{code_id}\t{description}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
