# -*- coding: utf-8 -*-

# This file is part of Featcount.
# Annotation and alignment handling derived from Polymerase by Duane Storey (https://github.com/duanestorey)
#
# Licensed under MIT License.

"""Conversion of alignments to the genomic intervals they cover."""

import pysam

from ..annotation.interval import GenomicInterval
from ..modes import StrandUsage

MATCH_OPS = frozenset((pysam.CMATCH, pysam.CEQUAL, pysam.CDIFF))


def parse_cigar(cigartuples, chromosome, start, strand):
    """Intervals of the reference covered by the match operations of a CIGAR.

    Insertions never move the reference position. Any other non-match
    operation moves it, except when it comes before the first match (the
    position is still ``start``): leading clips and deletions are ignored.

    Args:
        cigartuples: ``[(operation, length), ...]`` as given by pysam.
        chromosome (str): reference name.
        start (int): 1-based alignment start.
        strand (str): strand of the returned intervals.

    Returns:
        (list of GenomicInterval)
    """
    result = []
    if cigartuples is None:
        return result

    pos = start
    for op, length in cigartuples:
        if op in MATCH_OPS:
            result.append(GenomicInterval(chromosome, pos, pos + length - 1, strand))
            pos += length
        elif pos != start and op != pysam.CINS:
            pos += length
    return result


def is_second_mate(aln):
    return aln.is_paired and not aln.is_read1


def effective_strand(aln, strand_usage):
    """Strand used to match features for one alignment.

    The second mate is sequenced from the opposite strand, so its physical
    strand is inverted. ``reverse`` usage inverts the result again.
    """
    minus = aln.is_reverse
    if is_second_mate(aln):
        minus = not minus
    if strand_usage is StrandUsage.REVERSE:
        minus = not minus
    return '-' if minus else '+'


def add_intervals(aln, strand_usage):
    """Match intervals of one alignment with the strand given by the strand usage.

    Args:
        aln (pysam.AlignedSegment): alignment.
        strand_usage (StrandUsage): strand policy.

    Returns:
        (list of GenomicInterval): empty for unmapped alignments.
    """
    if aln.is_unmapped or aln.cigartuples is None:
        return []
    return parse_cigar(aln.cigartuples, aln.reference_name, aln.reference_start + 1,
                       effective_strand(aln, strand_usage))
