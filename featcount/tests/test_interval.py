# -*- coding: utf-8 -*-

# This file is part of Featcount.
# Annotation and alignment handling derived from Polymerase by Duane Storey (https://github.com/duanestorey)
#
# Licensed under MIT License.

"""Tests for GenomicInterval and the strand/overlap policies."""

import dataclasses

import pytest

from featcount.annotation.gff import GFFRecord
from featcount.annotation.interval import GenomicInterval
from featcount.errors import ConfigurationError
from featcount.modes import OverlapMode, StrandUsage


class TestGenomicInterval:
    def test_fields_and_length(self):
        iv = GenomicInterval('chr1', 10, 19, '+')
        assert iv.length == 10
        assert str(iv) == 'chr1:10-19+'

    def test_default_strand_unknown(self):
        assert GenomicInterval('chr1', 1, 1).strand == '.'

    @pytest.mark.parametrize('args', [
        ('', 1, 10, '+'),
        ('chr1', 0, 10, '+'),
        ('chr1', 10, 9, '+'),
        ('chr1', 1, 10, '*'),
    ])
    def test_invalid(self, args):
        with pytest.raises(ValueError):
            GenomicInterval(*args)

    def test_frozen(self):
        iv = GenomicInterval('chr1', 1, 10)
        with pytest.raises(dataclasses.FrozenInstanceError):
            iv.start = 2

    def test_include(self):
        iv = GenomicInterval('chr1', 10, 20)
        assert iv.include(10)
        assert iv.include(20)
        assert not iv.include(9)
        assert not iv.include(21)

    def test_intersects(self):
        iv = GenomicInterval('chr1', 10, 20)
        assert iv.intersects(GenomicInterval('chr1', 20, 30))
        assert iv.intersects(GenomicInterval('chr1', 1, 10))
        assert not iv.intersects(GenomicInterval('chr1', 21, 30))
        assert not iv.intersects(GenomicInterval('chr2', 10, 20))

    def test_from_annotation(self):
        rec = GFFRecord('chr2', 'src', 'exon', 5, 50, '.', '-', '.', {})
        assert GenomicInterval.from_annotation(rec) == GenomicInterval('chr2', 5, 50, '-')
        assert GenomicInterval.from_annotation(rec, save_strand=False).strand == '.'


class TestModes:
    def test_strand_usage_from_name(self):
        assert StrandUsage.from_name('YES') is StrandUsage.YES
        assert StrandUsage.from_name(' reverse ') is StrandUsage.REVERSE
        assert StrandUsage.from_name(StrandUsage.NO) is StrandUsage.NO

    def test_save_strand(self):
        assert not StrandUsage.NO.save_strand
        assert StrandUsage.YES.save_strand
        assert StrandUsage.REVERSE.save_strand

    def test_overlap_mode_from_name(self):
        assert OverlapMode.from_name('intersection-nonempty') is OverlapMode.INTERSECTION_NONEMPTY
        assert str(OverlapMode.UNION) == 'union'

    def test_unknown_name(self):
        with pytest.raises(ConfigurationError, match='Allowed'):
            OverlapMode.from_name('threshold')
        with pytest.raises(ConfigurationError):
            StrandUsage.from_name('maybe')
