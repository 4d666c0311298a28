"""codonbias: codon usage bias indices for protein-coding sequences."""

__version__ = "0.1.0"
