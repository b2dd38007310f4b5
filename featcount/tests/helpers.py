# -*- coding: utf-8 -*-

# This file is part of Featcount.
# Annotation and alignment handling derived from Polymerase by Duane Storey (https://github.com/duanestorey)
#
# Licensed under MIT License.

"""Small in-memory annotation and alignment builders shared by the tests."""

import io
import re

import pysam

from featcount.counters.htseq import HTSeqCounter

# geneA: two '+' exons, geneB: '-' exon overlapping the second exon of geneA,
# geneC: '+' exon further down chr1, geneD: '-' exon on chr2.
GTF = '\n'.join([
    '#!genome-build test',
    'chr1\ttest\texon\t100\t199\t.\t+\t.\tgene_id "geneA"; transcript_id "tA";',
    'chr1\ttest\texon\t300\t399\t.\t+\t.\tgene_id "geneA"; transcript_id "tA";',
    'chr1\ttest\texon\t350\t449\t.\t-\t.\tgene_id "geneB"; transcript_id "tB";',
    'chr1\ttest\texon\t1000\t1099\t.\t+\t.\tgene_id "geneC"; transcript_id "tC";',
    'chr1\ttest\tCDS\t100\t150\t.\t+\t0\tgene_id "geneA"; transcript_id "tA";',
    'chr2\ttest\texon\t500\t599\t.\t-\t.\tgene_id "geneD"; transcript_id "tD";',
]) + '\n'

FEATURE_STRANDS = {'geneA': '+', 'geneB': '-', 'geneC': '+', 'geneD': '-'}

_QUERY_OPS_RE = re.compile(r'(\d+)([MIS=X])')

FPAIRED = 0x1
FUNMAP = 0x4
FREVERSE = 0x10
FREAD1 = 0x40
FREAD2 = 0x80
FSECONDARY = 0x100
FSUPPLEMENTARY = 0x800


def make_header(sort_order='queryname'):
    return pysam.AlignmentHeader.from_dict({
        'HD': {'VN': '1.6', 'SO': sort_order},
        'SQ': [
            {'SN': 'chr1', 'LN': 100000},
            {'SN': 'chr2', 'LN': 100000},
            {'SN': 'chrU', 'LN': 5000},
        ],
    })


HEADER = make_header()


def make_read(name, start=1, cigar='50M', chrom='chr1', reverse=False, mapq=30, nh=None, paired=False,
              read1=True, unmapped=False, secondary=False, supplementary=False, header=HEADER):
    """Build an alignment record; ``start`` is 1-based."""
    aln = pysam.AlignedSegment(header)
    aln.query_name = name

    flag = 0
    if paired:
        flag |= FPAIRED | (FREAD1 if read1 else FREAD2)
    if reverse:
        flag |= FREVERSE
    if secondary:
        flag |= FSECONDARY
    if supplementary:
        flag |= FSUPPLEMENTARY

    if unmapped:
        aln.flag = flag | FUNMAP
        aln.reference_id = -1
        aln.reference_start = -1
        aln.mapping_quality = 0
        aln.query_sequence = 'A' * 50
    else:
        aln.flag = flag
        aln.reference_name = chrom
        aln.reference_start = start - 1
        aln.mapping_quality = mapq
        aln.query_sequence = 'A' * sum(int(n) for n, _op in _QUERY_OPS_RE.findall(cigar))
        aln.cigarstring = cigar

    if nh is not None:
        aln.set_tag('NH', nh, value_type='i')
    return aln


def make_pair(name, start1, start2, cigar='50M', chrom='chr1', **kwargs):
    """Mates of a fragment from the '+' strand: first mate forward, second reverse."""
    mate1 = make_read(name, start1, cigar, chrom, reverse=False, paired=True, read1=True, **kwargs)
    mate2 = make_read(name, start2, cigar, chrom, reverse=True, paired=True, read1=False, **kwargs)
    return [mate1, mate2]


def make_counter(gtf=GTF, **params):
    """Initialized counter; keyword names use '_' for '.' in parameter names."""
    counter = HTSeqCounter()
    counter.set_parameters({k.replace('_', '.'): v for k, v in params.items()})
    counter.init(io.StringIO(gtf))
    return counter


def write_sam(path, alignments, header=HEADER):
    with pysam.AlignmentFile(str(path), 'w', header=header) as outsam:
        for aln in alignments:
            outsam.write(aln)
    return str(path)
