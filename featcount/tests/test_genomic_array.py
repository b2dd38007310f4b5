# -*- coding: utf-8 -*-

# This file is part of Featcount.
# Annotation and alignment handling derived from Polymerase by Duane Storey (https://github.com/duanestorey)
#
# Licensed under MIT License.

"""Tests for the genomic array of features."""

import random

import pytest

from featcount.annotation.genome import GenomeDescription
from featcount.annotation.genomic_array import GenomicArray
from featcount.annotation.interval import GenomicInterval
from featcount.errors import UnknownChromosomeError


def _iv(start, end, strand='.', chrom='chr1'):
    return GenomicInterval(chrom, start, end, strand)


@pytest.fixture
def overlapping():
    ga = GenomicArray()
    ga.add_entry(_iv(10, 20), 'A')
    ga.add_entry(_iv(15, 30), 'B')
    return ga


class TestZones:
    def test_split_and_merge(self, overlapping):
        entries = overlapping.get_entries('chr1', 1, 40)
        assert entries == [
            (_iv(1, 9), frozenset()),
            (_iv(10, 14), frozenset({'A'})),
            (_iv(15, 20), frozenset({'A', 'B'})),
            (_iv(21, 30), frozenset({'B'})),
            (_iv(31, 40), frozenset()),
        ]

    def test_sub_range(self, overlapping):
        entries = overlapping.get_entries('chr1', 12, 16)
        assert [(z.start, z.end) for z, _fs in entries] == [(10, 14), (15, 20)]
        assert [fs for _z, fs in entries] == [frozenset({'A'}), frozenset({'A', 'B'})]

    def test_query_past_end(self, overlapping):
        assert overlapping.get_entries('chr1', 31, 50) == []

    def test_overhang_segment(self, overlapping):
        entries = overlapping.get_entries('chr1', 25, 35)
        assert entries[-1] == (_iv(31, 35), frozenset())

    def test_same_interval_twice(self):
        ga = GenomicArray()
        ga.add_entry(_iv(10, 20), 'A')
        ga.add_entry(_iv(10, 20), 'A')
        assert ga.get_entries('chr1', 10, 20) == [(_iv(10, 20), frozenset({'A'}))]

    def test_result_is_new_list(self, overlapping):
        first = overlapping.get_entries('chr1', 1, 40)
        first.clear()
        assert len(overlapping.get_entries('chr1', 1, 40)) == 5

    def test_zones_cover_track(self):
        ga = GenomicArray()
        for start, end, fid in [(50, 60, 'x'), (5, 8, 'y'), (55, 120, 'z'), (1, 3, 'w')]:
            ga.add_entry(_iv(start, end), fid)
        entries = ga.get_entries('chr1', 1, 120)
        assert entries[0][0].start == 1
        assert entries[-1][0].end == 120
        for (prev, _a), (nxt, _b) in zip(entries, entries[1:]):
            assert nxt.start == prev.end + 1


class TestStrands:
    def test_tracks_are_separate(self):
        ga = GenomicArray()
        ga.add_entry(_iv(10, 20, '+'), 'A')
        ga.add_entry(_iv(10, 20, '-'), 'B')
        assert ga.get_entries('chr1', 10, 20) == [
            (_iv(10, 20, '+'), frozenset({'A'})),
            (_iv(10, 20, '-'), frozenset({'B'})),
        ]

    def test_unknown_strand_on_plus_track(self):
        ga = GenomicArray()
        ga.add_entry(_iv(10, 20, '+'), 'A')
        ga.add_entry(_iv(10, 20, '.'), 'B')
        entries = ga.get_entries('chr1', 10, 20)
        assert len(entries) == 1
        assert entries[0][1] == frozenset({'A', 'B'})


class TestUnionInvariant:
    def test_random_insertions(self):
        rng = random.Random(1234)
        inserted = []
        ga = GenomicArray()
        for i in range(40):
            start = rng.randint(1, 180)
            end = start + rng.randint(0, 40)
            iv = _iv(start, end)
            fid = f'f{i % 25}'
            ga.add_entry(iv, fid)
            inserted.append((iv, fid))

        for _ in range(200):
            qstart = rng.randint(1, 230)
            query = _iv(qstart, qstart + rng.randint(0, 30))
            found = set()
            for _zone, fs in ga.get_interval_entries(query):
                found.update(fs)
            expected = {fid for iv, fid in inserted if iv.intersects(query)}
            assert found == expected


class TestChromosomes:
    def test_unknown_chromosome(self, overlapping):
        with pytest.raises(UnknownChromosomeError) as exc:
            overlapping.get_entries('chrX', 1, 10)
        assert exc.value.chromosome == 'chrX'
        assert 'chrX' in str(exc.value)

    def test_registered_empty_chromosome(self):
        gd = GenomeDescription()
        gd.add_sequence('chr9', 1000)
        ga = GenomicArray(gd)
        assert ga.contains_chromosome('chr9')
        assert ga.get_entries('chr9', 1, 10) == []

    def test_chromosome_names(self, overlapping):
        overlapping.add_entry(_iv(1, 5, chrom='chr2'), 'C')
        assert overlapping.chromosome_names == frozenset({'chr1', 'chr2'})
        assert len(overlapping) == 2

    def test_clear(self, overlapping):
        overlapping.clear()
        assert not overlapping.contains_chromosome('chr1')
        assert overlapping.get_feature_ids() == []


class TestFeatures:
    def test_feature_ids_sorted(self, overlapping):
        overlapping.add_entry(_iv(40, 45), 'AA')
        assert overlapping.get_feature_ids() == ['A', 'AA', 'B']

    def test_feature_lengths(self, overlapping):
        lengths = overlapping.feature_lengths()
        assert lengths['A'] == 11
        assert lengths['B'] == 16

    def test_none_value(self):
        with pytest.raises(ValueError):
            GenomicArray().add_entry(_iv(1, 2), None)

    def test_save_load(self, overlapping, tmp_path):
        path = str(tmp_path / 'index.pkl')
        overlapping.save(path)
        loaded = GenomicArray.load(path)
        assert loaded.get_entries('chr1', 1, 40) == overlapping.get_entries('chr1', 1, 40)
        assert loaded.get_feature_ids() == ['A', 'B']
