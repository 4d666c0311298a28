"""Minimal FASTA input for the command line."""

import gzip
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def read_fasta(path: str | Path) -> list[tuple[str, str]]:
    """Read (title, sequence) pairs from a plain or gzipped FASTA file.

    The title is the first word of the header line.  Records are returned in
    file order; repeated titles are kept.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Sequence file not found: {path}")

    opener = gzip.open if path.suffix == ".gz" else open
    records: list[tuple[str, str]] = []
    current_name: str | None = None
    current_parts: list[str] = []

    with opener(path, "rt") as fh:
        for line in fh:
            line = line.strip()
            if not line:
                continue
            if line.startswith(">"):
                if current_name is not None:
                    records.append((current_name, "".join(current_parts)))
                fields = line[1:].split()
                current_name = fields[0] if fields else ""
                current_parts = []
            else:
                current_parts.append(line)
        if current_name is not None:
            records.append((current_name, "".join(current_parts)))

    logger.info("Read %d sequences from %s", len(records), path)
    return records
