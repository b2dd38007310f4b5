# -*- coding: utf-8 -*-

# This file is part of Featcount.
# Annotation and alignment handling derived from Polymerase by Duane Storey (https://github.com/duanestorey)
#
# Licensed under MIT License.

"""Resolution of the features overlapped by the intervals of one read."""

from ..errors import FeatcountError, UnknownChromosomeError
from ..modes import OverlapMode, StrandUsage

_EMPTY = frozenset()


def _query(features, iv, stranded):
    if not features.contains_chromosome(iv.chromosome):
        raise UnknownChromosomeError(iv.chromosome)
    entries = features.get_entries(iv.chromosome, iv.start, iv.end)
    if stranded:
        entries = [(zone, fs) for zone, fs in entries if zone.strand == iv.strand]
    return entries


def features_overlapped(intervals, features, overlap_mode, strand_usage, out=None):
    """Determine the features overlapped by the intervals of a read.

    Args:
        intervals (list of GenomicInterval): match intervals of the read (both
            mates for a pair).
        features (GenomicArray): feature index.
        overlap_mode (OverlapMode): ``union`` takes every feature touched;
            ``intersection-strict`` keeps features covering every zone;
            ``intersection-nonempty`` ignores zones without any feature.
            In both intersection modes an interval with no zone at all
            empties the result.
        strand_usage (StrandUsage): for ``yes`` and ``reverse``, zones on
            another strand than the interval are dropped.
        out (set, optional): reuse buffer. It is cleared, filled and
            returned instead of a new set. Never share one buffer between
            concurrent callers.

    Returns:
        (set of str): overlapped feature ids, possibly empty.

    Raises:
        UnknownChromosomeError: an interval lies on a chromosome absent from
            the index.
        FeatcountError: unknown overlap mode.
    """
    stranded = strand_usage in (StrandUsage.YES, StrandUsage.REVERSE)

    if overlap_mode is OverlapMode.UNION:
        fs = set()
        for iv in intervals:
            for _zone, zone_fs in _query(features, iv, stranded):
                fs.update(zone_fs)

    elif overlap_mode in (OverlapMode.INTERSECTION_STRICT, OverlapMode.INTERSECTION_NONEMPTY):
        strict = overlap_mode is OverlapMode.INTERSECTION_STRICT
        fs = None
        for iv in intervals:
            entries = _query(features, iv, stranded)
            if not entries:
                fs = set()
                continue
            for _zone, zone_fs in entries:
                if zone_fs or strict:
                    if fs is None:
                        fs = set(zone_fs)
                    else:
                        fs &= zone_fs
        if fs is None:
            fs = set()

    else:
        raise FeatcountError(f'Illegal overlap mode: {overlap_mode}')

    if out is not None:
        out.clear()
        out.update(fs)
        return out
    return fs
