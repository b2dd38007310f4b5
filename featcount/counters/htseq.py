# -*- coding: utf-8 -*-

# This file is part of Featcount.
# Annotation and alignment handling derived from Polymerase by Duane Storey (https://github.com/duanestorey)
#
# Licensed under MIT License.

"""HTSeq-count compatible counter.

Alignments must be grouped by read name (mates of a pair next to each
other). Each read, or pair of mates, is classified in this order:

1. not aligned (every record unmapped)
2. secondary alignment, when secondary alignments are removed
3. supplementary alignment, when supplementary alignments are removed
4. not unique (``NH`` > 1); removed unless non-unique alignments are kept
5. mapping quality below the minimum
6. otherwise the features overlapped by the match intervals decide: none,
   exactly one, or several (ambiguous).
"""

import logging as lg
import re
from collections import OrderedDict
from enum import Enum

import pysam

from ..alignment.intervals import add_intervals
from ..alignment.records import is_coordinate_sorted, is_multimapped, open_alignment_file
from ..annotation.builder import FeatureAnnotation
from ..errors import ConfigurationError, SortOrderError, UnknownChromosomeError
from ..modes import OverlapMode, StrandUsage
from .abc import ExpressionCounter, parse_bool, parse_int
from .overlap import features_overlapped

# Parameters
GENOMIC_TYPE_PARAMETER_NAME = 'genomic.type'
ATTRIBUTE_ID_PARAMETER_NAME = 'attribute.id'
STRANDED_PARAMETER_NAME = 'stranded'
OVERLAP_MODE_PARAMETER_NAME = 'overlap.mode'
REMOVE_AMBIGUOUS_CASES_PARAMETER_NAME = 'remove.ambiguous.cases'
SPLIT_ATTRIBUTE_VALUES_PARAMETER_NAME = 'split.attribute.values'
MINIMUM_ALIGNMENT_QUALITY_PARAMETER_NAME = 'minimum.alignment.quality'
REMOVE_NON_UNIQUE_ALIGNMENTS_PARAMETER_NAME = 'remove.non.unique.alignments'
REMOVE_SECONDARY_ALIGNMENTS_PARAMETER_NAME = 'remove.secondary.alignments'
REMOVE_SUPPLEMENTARY_ALIGNMENTS_PARAMETER_NAME = 'remove.supplementary.alignments'
REMOVE_NON_ASSIGNED_FEATURES_SAM_TAGS_PARAMETER_NAME = 'remove.non.assigned.feature.sam.tags'
SAM_TAG_TO_USE_PARAMETER_NAME = 'sam.tag.to.use'

SAM_TAG_DEFAULT = 'XF'
_SAM_TAG_RE = re.compile(r'^[X-Z][A-Z]$')

DEFAULT_COUNTER_GROUP = 'expression'

# Diagnostic counters
TOTAL_ALIGNMENTS_COUNTER = 'total_alignments'
EMPTY_ALIGNMENTS_COUNTER = 'no_feature'
AMBIGUOUS_ALIGNMENTS_COUNTER = 'ambiguous'
NOT_ALIGNED_ALIGNMENTS_COUNTER = 'not_aligned'
LOW_QUAL_ALIGNMENTS_COUNTER = 'too_low_aqual'
NOT_UNIQUE_ALIGNMENTS_COUNTER = 'alignment_not_unique'
SECONDARY_ALIGNMENTS_COUNTER = 'secondary_alignments'
SUPPLEMENTARY_ALIGNMENTS_COUNTER = 'supplementary_alignments'
MISSING_MATES_COUNTER = 'missing_mates'
ELIMINATED_READS_COUNTER = 'eliminated_reads'

COUNTER_NAMES = (
    TOTAL_ALIGNMENTS_COUNTER,
    EMPTY_ALIGNMENTS_COUNTER,
    AMBIGUOUS_ALIGNMENTS_COUNTER,
    NOT_ALIGNED_ALIGNMENTS_COUNTER,
    LOW_QUAL_ALIGNMENTS_COUNTER,
    NOT_UNIQUE_ALIGNMENTS_COUNTER,
    SECONDARY_ALIGNMENTS_COUNTER,
    SUPPLEMENTARY_ALIGNMENTS_COUNTER,
    MISSING_MATES_COUNTER,
    ELIMINATED_READS_COUNTER,
)

# Outcome tags
NO_FEATURE_TAG = '__no_feature'
AMBIGUOUS_TAG = '__ambiguous'
TOO_LOW_AQUAL_TAG = '__too_low_aQual'
NOT_ALIGNED_TAG = '__not_aligned'
NOT_UNIQUE_TAG = '__alignment_not_unique'


def ambiguous_tag(feature_ids):
    return '{}[{}]'.format(AMBIGUOUS_TAG, '+'.join(sorted(feature_ids)))


def _print_progress(nrecords, infolev=10000000):
    msg = f'...processed {nrecords / 1e6:.1f}M alignments'
    if nrecords % infolev == 0:
        lg.info(msg)
    else:
        lg.debug(msg)


class PairState(Enum):
    SINGLE_END = 'single-end'
    PAIRED_AWAITING_MATE = 'awaiting-mate'
    PAIRED_READY = 'ready'
    PAIRED_MISMATCH = 'mismatch'


class MateBuffer:
    """Holds the pending mates of the current pair.

    :meth:`push` returns the new state and the records dropped as orphans.
    When the two mates have different names the newest record is kept as
    the pending mate.
    """

    def __init__(self):
        self.sam1 = None
        self.sam2 = None

    def push(self, aln):
        dropped = []
        if aln.is_read1:
            if self.sam1 is not None:
                dropped.append(self.sam1)
            self.sam1 = aln
        else:
            if self.sam2 is not None:
                dropped.append(self.sam2)
            self.sam2 = aln

        if self.sam1 is None or self.sam2 is None:
            if any(d.query_name != aln.query_name for d in dropped):
                return PairState.PAIRED_MISMATCH, dropped
            return PairState.PAIRED_AWAITING_MATE, dropped

        if self.sam1.query_name != self.sam2.query_name:
            if aln is self.sam1:
                dropped.append(self.sam2)
                self.sam2 = None
            else:
                dropped.append(self.sam1)
                self.sam1 = None
            return PairState.PAIRED_MISMATCH, dropped

        return PairState.PAIRED_READY, dropped

    def take(self, newest):
        """Remove the ready pair, returned in arrival order."""
        older = self.sam2 if newest is self.sam1 else self.sam1
        self.sam1 = self.sam2 = None
        return [older, newest]

    def flush(self):
        pending = [a for a in (self.sam1, self.sam2) if a is not None]
        self.sam1 = self.sam2 = None
        return pending


class HTSeqCounter(ExpressionCounter):
    """Counts reads per feature with the htseq-count rules."""

    COUNTER_NAME = 'htseq-count'

    def __init__(self):
        super().__init__()
        self.genomic_type = 'exon'
        self.attribute_id = 'gene_id'
        self.stranded = StrandUsage.NO
        self.overlap_mode = OverlapMode.UNION
        self.remove_ambiguous_cases = True
        self.split_attribute_values = False
        self.minimal_quality = 0
        self.remove_non_unique = True
        self.remove_secondary = False
        self.remove_supplementary = False
        self.remove_non_assigned_tags = False
        self.sam_tag = SAM_TAG_DEFAULT
        self.annotation = None
        self._features = None

    @property
    def name(self):
        return self.COUNTER_NAME

    @property
    def description(self):
        return 'HTSeq-count compatible read counting'

    # -- Configuration -------------------------------------------------------

    def set_parameter(self, key, value):
        if key == GENOMIC_TYPE_PARAMETER_NAME:
            self.genomic_type = self._non_empty(key, value)
        elif key == ATTRIBUTE_ID_PARAMETER_NAME:
            self.attribute_id = self._non_empty(key, value)
        elif key == STRANDED_PARAMETER_NAME:
            self.stranded = StrandUsage.from_name(value)
        elif key == OVERLAP_MODE_PARAMETER_NAME:
            self.overlap_mode = OverlapMode.from_name(value)
        elif key == REMOVE_AMBIGUOUS_CASES_PARAMETER_NAME:
            self.remove_ambiguous_cases = parse_bool(key, value)
        elif key == SPLIT_ATTRIBUTE_VALUES_PARAMETER_NAME:
            self.split_attribute_values = parse_bool(key, value)
        elif key == MINIMUM_ALIGNMENT_QUALITY_PARAMETER_NAME:
            self.minimal_quality = parse_int(key, value, minimum=0)
        elif key == REMOVE_NON_UNIQUE_ALIGNMENTS_PARAMETER_NAME:
            self.remove_non_unique = parse_bool(key, value)
        elif key == REMOVE_SECONDARY_ALIGNMENTS_PARAMETER_NAME:
            self.remove_secondary = parse_bool(key, value)
        elif key == REMOVE_SUPPLEMENTARY_ALIGNMENTS_PARAMETER_NAME:
            self.remove_supplementary = parse_bool(key, value)
        elif key == REMOVE_NON_ASSIGNED_FEATURES_SAM_TAGS_PARAMETER_NAME:
            self.remove_non_assigned_tags = parse_bool(key, value)
        elif key == SAM_TAG_TO_USE_PARAMETER_NAME:
            _tag = str(value).strip()
            if not _SAM_TAG_RE.match(_tag):
                raise ConfigurationError(f'Invalid SAM tag for parameter "{key}": {value!r} (expected [X-Z][A-Z])')
            self.sam_tag = _tag
        else:
            raise ConfigurationError(f'Unknown parameter for {self.COUNTER_NAME}: "{key}"')

    @staticmethod
    def _non_empty(key, value):
        _v = '' if value is None else str(value).strip()
        if not _v:
            raise ConfigurationError(f'Parameter "{key}" cannot be empty')
        return _v

    # -- Annotation ----------------------------------------------------------

    def init(self, annotation, genome_description=None, gtf=True):
        """Build the feature index.

        Args:
            annotation: path, open handle or iterable of ``GFFRecord``.
            genome_description (GenomeDescription, optional): chromosomes
                registered before the annotation is read.
            gtf (bool): attribute syntax when ``annotation`` is a file.

        Raises:
            ConfigurationError: no feature of the configured type was found.
        """
        annotation = FeatureAnnotation(
            annotation, self.attribute_id, self.stranded, self.genomic_type, self.split_attribute_values,
            genome_description=genome_description, gtf=gtf,
        )
        if not annotation.feature_ids:
            raise ConfigurationError(f"No features of type '{self.genomic_type}' found.")

        lg.info(f'Loaded {len(annotation.feature_ids)} features of type "{self.genomic_type}".')
        self.annotation = annotation
        self.set_features(annotation.features)

    def load_index(self, filename):
        """Use a feature index written by :meth:`save_index`.

        Raises:
            ConfigurationError: the index was built with another feature
                type, attribute or strandedness than this counter uses.
        """
        annotation = FeatureAnnotation.load(filename)
        annotation.check_settings(self.attribute_id, self.stranded, self.genomic_type, self.split_attribute_values)
        self.annotation = annotation
        self.set_features(annotation.features)

    def save_index(self, filename):
        if self.annotation is None:
            raise ConfigurationError(f'Counter {self.name} has no annotation to save')
        self.annotation.save(filename)

    def set_features(self, features):
        """Use an already built genomic array, shared read-only."""
        self._features = features
        self.initialized = True

    @property
    def features(self):
        return self._features

    def get_feature_ids(self):
        if not self.initialized:
            raise ConfigurationError(f'Counter {self.name} is not initialized')
        return self._features.get_feature_ids()

    # -- Counting ------------------------------------------------------------

    def count(self, alignments, reporter, counter_group=DEFAULT_COUNTER_GROUP, output=None):
        """Count alignments grouped by read name.

        Args:
            alignments: iterable of ``pysam.AlignedSegment``.
            reporter (Reporter): receives the diagnostic counters once the
                stream is exhausted.
            counter_group (str): reporter group.
            output (pysam.AlignmentFile, optional): every record is written
                here after tagging.

        Returns:
            (dict of str: int): counts of the features with at least one read.

        Raises:
            SortOrderError: paired-end alignments sorted by coordinate.
        """
        if not self.initialized:
            raise ConfigurationError(f'Counter {self.name} is not initialized')

        counts = {}
        stats = OrderedDict((name, 0) for name in COUNTER_NAMES)
        mates = MateBuffer()
        paired = None

        def _write(records):
            if output is not None:
                for a in records:
                    output.write(a)

        for aln in alignments:
            stats[TOTAL_ALIGNMENTS_COUNTER] += 1
            if stats[TOTAL_ALIGNMENTS_COUNTER] % 1000000 == 0:
                _print_progress(stats[TOTAL_ALIGNMENTS_COUNTER])

            if paired is None:
                paired = aln.is_paired
                if paired and is_coordinate_sorted(getattr(aln, 'header', None)):
                    raise SortOrderError(
                        'Paired-end alignments are sorted by coordinate, they must be grouped by read name '
                        '(e.g. samtools sort -n or samtools collate).'
                    )
                lg.debug('Counting {} alignments'.format('paired-end' if paired else 'single-end'))

            if not paired or not aln.is_paired:
                self._tag([aln], self._process([aln], counts, stats))
                _write([aln])
                continue

            if self._skip_before_pairing(aln, stats):
                _write([aln])
                continue

            state, dropped = mates.push(aln)
            for orphan in dropped:
                if orphan.query_name != aln.query_name:
                    stats[MISSING_MATES_COUNTER] += 1
                _write([orphan])

            if state is PairState.PAIRED_READY:
                pair = mates.take(aln)
                self._tag(pair, self._process(pair, counts, stats))
                _write(pair)

        pending = mates.flush()
        stats[MISSING_MATES_COUNTER] += len(pending)
        _write(pending)

        for name, value in stats.items():
            reporter.incr_counter(counter_group, name, value)
        lg.info(
            'Counted {} alignments: {} no feature, {} ambiguous, {} not aligned, {} low quality, '
            '{} not unique, {} missing mates'.format(
                stats[TOTAL_ALIGNMENTS_COUNTER], stats[EMPTY_ALIGNMENTS_COUNTER], stats[AMBIGUOUS_ALIGNMENTS_COUNTER],
                stats[NOT_ALIGNED_ALIGNMENTS_COUNTER], stats[LOW_QUAL_ALIGNMENTS_COUNTER],
                stats[NOT_UNIQUE_ALIGNMENTS_COUNTER], stats[MISSING_MATES_COUNTER],
            )
        )
        return counts

    def count_file(self, samfile, reporter, counter_group=DEFAULT_COUNTER_GROUP, samout=None, threads=1):
        """Count a SAM/BAM file, optionally writing a tagged copy to ``samout``."""
        with open_alignment_file(samfile, threads=threads) as sf:
            outsam = pysam.AlignmentFile(samout, 'wb', template=sf) if samout else None
            try:
                return self.count(sf.fetch(until_eof=True), reporter, counter_group, output=outsam)
            finally:
                if outsam is not None:
                    outsam.close()

    def _skip_before_pairing(self, aln, stats):
        """Mapped secondary/supplementary records are removed before pairing."""
        if aln.is_unmapped:
            return False
        if self.remove_secondary and aln.is_secondary:
            stats[SECONDARY_ALIGNMENTS_COUNTER] += 1
            return True
        if self.remove_supplementary and aln.is_supplementary:
            stats[SUPPLEMENTARY_ALIGNMENTS_COUNTER] += 1
            return True
        return False

    def _process(self, records, counts, stats):
        """Classify one read (or pair) and update the counts.

        Returns:
            (str or None): outcome tag, None when the read is skipped.
        """
        mapped = [a for a in records if not a.is_unmapped]

        if not mapped:
            stats[NOT_ALIGNED_ALIGNMENTS_COUNTER] += 1
            stats[ELIMINATED_READS_COUNTER] += 1
            return NOT_ALIGNED_TAG

        if self.remove_secondary and any(a.is_secondary for a in records):
            stats[SECONDARY_ALIGNMENTS_COUNTER] += 1
            return None

        if self.remove_supplementary and any(a.is_supplementary for a in records):
            stats[SUPPLEMENTARY_ALIGNMENTS_COUNTER] += 1
            return None

        if any(is_multimapped(a) for a in records):
            stats[NOT_UNIQUE_ALIGNMENTS_COUNTER] += 1
            if self.remove_non_unique:
                stats[ELIMINATED_READS_COUNTER] += 1
                return NOT_UNIQUE_TAG

        if any(a.mapping_quality < self.minimal_quality for a in mapped):
            stats[LOW_QUAL_ALIGNMENTS_COUNTER] += 1
            stats[ELIMINATED_READS_COUNTER] += 1
            return TOO_LOW_AQUAL_TAG

        intervals = []
        for a in mapped:
            intervals.extend(add_intervals(a, self.stranded))

        try:
            fs = features_overlapped(intervals, self._features, self.overlap_mode, self.stranded)
        except UnknownChromosomeError as exc:
            lg.debug(f'{records[0].query_name}: {exc}')
            fs = set()

        if not fs:
            stats[EMPTY_ALIGNMENTS_COUNTER] += 1
            stats[ELIMINATED_READS_COUNTER] += 1
            return NO_FEATURE_TAG

        if len(fs) == 1:
            feature_id = next(iter(fs))
            counts[feature_id] = counts.get(feature_id, 0) + 1
            return feature_id

        stats[AMBIGUOUS_ALIGNMENTS_COUNTER] += 1
        if self.remove_ambiguous_cases:
            stats[ELIMINATED_READS_COUNTER] += 1
        else:
            for feature_id in fs:
                counts[feature_id] = counts.get(feature_id, 0) + 1
        return ambiguous_tag(fs)

    def _tag(self, records, value):
        if value is None:
            return
        if self.remove_non_assigned_tags and value.startswith('__'):
            return
        for a in records:
            a.set_tag(self.sam_tag, value, value_type='Z')
