# -*- coding: utf-8 -*-

# This file is part of Featcount.
# Annotation and alignment handling derived from Polymerase by Duane Storey (https://github.com/duanestorey)
#
# Licensed under MIT License.

"""Genomic array: per-chromosome zones tagged with the set of features covering them.

Each chromosome holds two strand tracks (``'+'`` and ``'.'`` share the plus
track). A track is an ``IntervalTree`` of contiguous, non-overlapping zones
covering ``[1, length]`` where ``length`` is the largest end inserted so far.
Zones are stored half-open (``end + 1``) in the tree; the public API uses
1-based inclusive coordinates.
"""

import logging as lg
import pickle
from collections import Counter, namedtuple

from intervaltree import IntervalTree

from ..errors import UnknownChromosomeError
from .interval import GenomicInterval

_Zone = namedtuple('_Zone', ['strand', 'features'])

_EMPTY = frozenset()


class _StrandedZones:
    def __init__(self, chromosome):
        self.chromosome = chromosome
        self.length = 0
        self.tree = IntervalTree()

    def add_entry(self, interval, value):
        start, end = interval.start, interval.end

        # Extend the track with an empty zone up to the end of the interval
        if end > self.length:
            self.tree.addi(self.length + 1, end + 1, _Zone(interval.strand, _EMPTY))
            self.length = end

        # Zone boundaries at start and end + 1
        self.tree.slice(start)
        self.tree.slice(end + 1)

        for iv in list(self.tree.envelop(start, end + 1)):
            if value in iv.data.features:
                continue
            self.tree.remove(iv)
            self.tree.addi(iv.begin, iv.end, iv.data._replace(features=iv.data.features | {value}))

    def get_entries(self, start, end):
        if self.length == 0 or start > self.length:
            return []

        result = []
        for iv in sorted(self.tree.overlap(start, end + 1), key=lambda x: x.begin):
            result.append((GenomicInterval(self.chromosome, iv.begin, iv.end - 1, iv.data.strand), iv.data.features))

        # Part of the query past the last zone
        if end > self.length:
            _strand = result[-1][0].strand
            result.append((GenomicInterval(self.chromosome, self.length + 1, end, _strand), _EMPTY))

        return result

    def zones(self):
        return sorted(self.tree, key=lambda x: x.begin)


class _ChromosomeZones:
    def __init__(self, chromosome):
        self.plus = _StrandedZones(chromosome)
        self.minus = _StrandedZones(chromosome)

    def add_entry(self, interval, value):
        if interval.strand == '-':
            self.minus.add_entry(interval, value)
        else:
            self.plus.add_entry(interval, value)

    def get_entries(self, start, end):
        return self.plus.get_entries(start, end) + self.minus.get_entries(start, end)

    def zones(self):
        return self.plus.zones() + self.minus.zones()


class GenomicArray:
    """Interval index mapping genomic zones to the feature ids that cover them.

    Chromosomes are registered on first insertion, or up front from a
    genome description. Querying a chromosome that was never registered
    raises :class:`UnknownChromosomeError`.
    """

    def __init__(self, genome_description=None):
        self._chromosomes = {}
        if genome_description is not None:
            self.add_chromosomes(genome_description)

    def add_chromosome(self, name):
        if not name:
            raise ValueError('chromosome name cannot be empty')
        if name not in self._chromosomes:
            self._chromosomes[name] = _ChromosomeZones(name)

    def add_chromosomes(self, genome_description):
        """Register every sequence of a :class:`GenomeDescription`."""
        for name in genome_description.sequence_names:
            self.add_chromosome(name)

    def add_entry(self, interval, value):
        """Associate ``value`` with every base of ``interval``.

        Args:
            interval (GenomicInterval): interval to cover.
            value (str): feature id.
        """
        if value is None:
            raise ValueError('value cannot be None')
        self.add_chromosome(interval.chromosome)
        self._chromosomes[interval.chromosome].add_entry(interval, value)

    def get_entries(self, chromosome, start, end):
        """Get the zones intersecting ``[start, end]``.

        Returns:
            (list of (GenomicInterval, frozenset)): a new list, zones of the
            plus track first, then the minus track, each sorted by start.
            Zones without features carry an empty set.
        """
        try:
            zones = self._chromosomes[chromosome]
        except KeyError:
            raise UnknownChromosomeError(chromosome) from None
        return zones.get_entries(start, end)

    def get_interval_entries(self, interval):
        return self.get_entries(interval.chromosome, interval.start, interval.end)

    def contains_chromosome(self, name):
        return name in self._chromosomes

    @property
    def chromosome_names(self):
        return frozenset(self._chromosomes)

    def get_feature_ids(self):
        """Sorted list of every feature id stored in the array."""
        ret = set()
        for chrom in self._chromosomes.values():
            for iv in chrom.zones():
                ret.update(iv.data.features)
        return sorted(ret)

    def feature_lengths(self):
        """Get feature lengths

        Returns:
            (dict of str: int): Feature ids to number of covered bases

        """
        ret = Counter()
        for chrom in self._chromosomes.values():
            for iv in chrom.zones():
                for feat_id in iv.data.features:
                    ret[feat_id] += iv.length()
        return ret

    def clear(self):
        self._chromosomes.clear()

    def save(self, filename):
        with open(filename, 'wb') as outh:
            pickle.dump({'chromosomes': self._chromosomes}, outh)

    @classmethod
    def load(cls, filename):
        with open(filename, 'rb') as fh:
            loader = pickle.load(fh)
        obj = cls.__new__(cls)
        obj._chromosomes = loader['chromosomes']
        lg.debug(f'Loaded genomic array with {len(obj._chromosomes)} chromosomes from {filename}')
        return obj

    def __len__(self):
        return len(self._chromosomes)

    def __repr__(self):
        return f'<GenomicArray chromosomes={len(self._chromosomes)}>'
