# -*- coding: utf-8 -*-

# This file is part of Featcount.
# Annotation and alignment handling derived from Polymerase by Duane Storey (https://github.com/duanestorey)
#
# Licensed under MIT License.

"""Tests for the resolution of overlapped features."""

import io

import pytest

from featcount.alignment.intervals import add_intervals
from featcount.annotation.genomic_array import GenomicArray
from featcount.annotation.gff import read_annotation
from featcount.annotation.builder import store_annotation
from featcount.annotation.interval import GenomicInterval
from featcount.counters.overlap import features_overlapped
from featcount.errors import FeatcountError, UnknownChromosomeError
from featcount.modes import OverlapMode, StrandUsage

from .helpers import FEATURE_STRANDS, GTF, make_read

UNION = OverlapMode.UNION
STRICT = OverlapMode.INTERSECTION_STRICT
NONEMPTY = OverlapMode.INTERSECTION_NONEMPTY


def _index(strand_usage):
    ga = GenomicArray()
    store_annotation(ga, read_annotation(io.StringIO(GTF)), 'exon', strand_usage, 'gene_id')
    ga.add_chromosome('chrU')
    return ga


@pytest.fixture(scope='module')
def unstranded():
    return _index(StrandUsage.NO)


@pytest.fixture(scope='module')
def stranded():
    return _index(StrandUsage.YES)


def _resolve(features, start, end, mode, usage=StrandUsage.NO, strand='.', chrom='chr1'):
    return features_overlapped([GenomicInterval(chrom, start, end, strand)], features, mode, usage)


class TestModes:
    def test_inside_one_feature(self, unstranded):
        for mode in (UNION, STRICT, NONEMPTY):
            assert _resolve(unstranded, 120, 169, mode) == {'geneA'}

    def test_two_features(self, unstranded):
        for mode in (UNION, STRICT, NONEMPTY):
            assert _resolve(unstranded, 350, 399, mode) == {'geneA', 'geneB'}

    def test_partly_outside_feature(self, unstranded):
        assert _resolve(unstranded, 150, 249, UNION) == {'geneA'}
        assert _resolve(unstranded, 150, 249, STRICT) == set()
        assert _resolve(unstranded, 150, 249, NONEMPTY) == {'geneA'}

    def test_across_feature_boundary(self, unstranded):
        assert _resolve(unstranded, 330, 369, UNION) == {'geneA', 'geneB'}
        assert _resolve(unstranded, 330, 369, STRICT) == {'geneA'}
        assert _resolve(unstranded, 330, 369, NONEMPTY) == {'geneA'}

    def test_past_end_of_track(self, unstranded):
        assert _resolve(unstranded, 1050, 1149, UNION) == {'geneC'}
        assert _resolve(unstranded, 1050, 1149, STRICT) == set()
        assert _resolve(unstranded, 1050, 1149, NONEMPTY) == {'geneC'}

    def test_after_last_feature(self, unstranded):
        for mode in (UNION, STRICT, NONEMPTY):
            assert _resolve(unstranded, 2000, 2049, mode) == set()

    def test_interval_without_zone_empties_intersection(self, unstranded):
        ivs = [GenomicInterval('chr1', 120, 169), GenomicInterval('chr1', 5000, 5049)]
        assert features_overlapped(ivs, unstranded, UNION, StrandUsage.NO) == {'geneA'}
        assert features_overlapped(ivs, unstranded, STRICT, StrandUsage.NO) == set()
        assert features_overlapped(ivs, unstranded, NONEMPTY, StrandUsage.NO) == set()

    def test_spliced_read(self, unstranded):
        aln = make_read('r', 150, cigar='50M100N50M')
        ivs = add_intervals(aln, StrandUsage.NO)
        for mode in (UNION, STRICT, NONEMPTY):
            assert features_overlapped(ivs, unstranded, mode, StrandUsage.NO) == {'geneA'}

    def test_no_intervals(self, unstranded):
        for mode in (UNION, STRICT, NONEMPTY):
            assert features_overlapped([], unstranded, mode, StrandUsage.NO) == set()

    def test_illegal_mode(self, unstranded):
        with pytest.raises(FeatcountError, match='Illegal overlap mode'):
            _resolve(unstranded, 120, 169, 'threshold')

    def test_unknown_chromosome(self, unstranded):
        with pytest.raises(UnknownChromosomeError):
            _resolve(unstranded, 1, 10, UNION, chrom='chrZ')

    def test_known_chromosome_without_features(self, unstranded):
        assert _resolve(unstranded, 1, 10, UNION, chrom='chrU') == set()


class TestStrands:
    def test_same_strand_only(self, stranded):
        assert _resolve(stranded, 350, 399, UNION, StrandUsage.YES, '+') == {'geneA'}
        assert _resolve(stranded, 350, 399, UNION, StrandUsage.YES, '-') == {'geneB'}
        assert _resolve(stranded, 120, 169, UNION, StrandUsage.YES, '-') == set()

    def test_reverse_usage(self, stranded):
        aln = make_read('r', 350, reverse=False)
        ivs = add_intervals(aln, StrandUsage.REVERSE)
        assert features_overlapped(ivs, stranded, UNION, StrandUsage.REVERSE) == {'geneB'}

    def test_strand_filter_exclusivity(self, stranded):
        for usage in (StrandUsage.YES, StrandUsage.REVERSE):
            for start in range(50, 1150, 25):
                for reverse in (False, True):
                    aln = make_read('r', start, cigar='60M', reverse=reverse)
                    ivs = add_intervals(aln, usage)
                    read_strand = ivs[0].strand
                    for mode in (UNION, STRICT, NONEMPTY):
                        for fid in features_overlapped(ivs, stranded, mode, usage):
                            assert FEATURE_STRANDS[fid] == read_strand


class TestMonotonicity:
    def test_union_contains_nonempty_contains_strict(self, unstranded):
        cigars = ['50M', '100M', '30M200N30M', '20M5D20M', '150M']
        for start in range(1, 1200, 17):
            for cigar in cigars:
                ivs = add_intervals(make_read('r', start, cigar=cigar), StrandUsage.NO)
                union = features_overlapped(ivs, unstranded, UNION, StrandUsage.NO)
                nonempty = features_overlapped(ivs, unstranded, NONEMPTY, StrandUsage.NO)
                strict = features_overlapped(ivs, unstranded, STRICT, StrandUsage.NO)
                assert union >= nonempty >= strict


class TestBuffer:
    def test_fresh_set_by_default(self, unstranded):
        first = _resolve(unstranded, 120, 169, UNION)
        second = _resolve(unstranded, 120, 169, UNION)
        assert first == second
        assert first is not second

    def test_reuse_buffer(self, unstranded):
        buf = {'stale'}
        ivs = [GenomicInterval('chr1', 350, 399)]
        ret = features_overlapped(ivs, unstranded, UNION, StrandUsage.NO, out=buf)
        assert ret is buf
        assert buf == {'geneA', 'geneB'}
        features_overlapped([GenomicInterval('chr1', 2000, 2010)], unstranded, UNION, StrandUsage.NO, out=buf)
        assert buf == set()
