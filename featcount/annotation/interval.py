# -*- coding: utf-8 -*-

# This file is part of Featcount.
# Annotation and alignment handling derived from Polymerase by Duane Storey (https://github.com/duanestorey)
#
# Licensed under MIT License.

"""Genomic interval value type."""

from dataclasses import dataclass

STRANDS = ('+', '-', '.')


@dataclass(frozen=True)
class GenomicInterval:
    """Region on a chromosome, 1-based with both ends included.

    ``strand`` is ``'+'``, ``'-'`` or ``'.'`` when unknown.
    """
    chromosome: str
    start: int
    end: int
    strand: str = '.'

    def __post_init__(self):
        if not self.chromosome:
            raise ValueError('chromosome cannot be empty')
        if self.start < 1:
            raise ValueError(f'start must be >= 1: {self.start}')
        if self.end < self.start:
            raise ValueError(f'end ({self.end}) is lower than start ({self.start})')
        if self.strand not in STRANDS:
            raise ValueError(f'invalid strand: {self.strand!r}')

    @property
    def length(self):
        return self.end - self.start + 1

    def include(self, position):
        return self.start <= position <= self.end

    def intersects(self, other):
        """True if both intervals share at least one base on the same chromosome."""
        return (
            self.chromosome == other.chromosome
            and self.start <= other.end
            and other.start <= self.end
        )

    @classmethod
    def from_annotation(cls, record, save_strand=True):
        """Build an interval from a GFF record.

        Args:
            record: ``GFFRecord`` from :mod:`featcount.annotation.gff`.
            save_strand: if False the strand is recorded as unknown.
        """
        return cls(record.seqid, record.start, record.end, record.strand if save_strand else '.')

    def __str__(self):
        return f'{self.chromosome}:{self.start}-{self.end}{self.strand}'
