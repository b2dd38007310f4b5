# -*- coding: utf-8 -*-

# This file is part of Featcount.
# Annotation and alignment handling derived from Polymerase by Duane Storey (https://github.com/duanestorey)
#
# Licensed under MIT License.

""" Featcount count

"""
import sys
import os
from time import time
import logging as lg

from featcount import __version__
from . import SubcommandOptions, configure_logging, format_minutes as fmtmins
from ..alignment.records import is_paired_data
from ..annotation.genome import GenomeDescription
from ..core.reporter import Reporter, output_counts, output_stats
from ..core.shards import count_shards
from ..counters import get_counter_class
from ..counters import htseq
from ..errors import ConfigurationError, FeatcountError


class CountOptions(SubcommandOptions):

    OPTS = """
    - Input Options:
        - samfile:
            positional: True
            help: Path to alignment file. Alignment file can be in SAM or BAM
                  format. Paired-end files must be grouped by read name so
                  that the mates of a pair appear next to each other.
        - gtffile:
            positional: True
            nargs: "?"
            help: Path to annotation file (GTF or GFF3). Not needed when a
                  prebuilt index is given with --index.
        - format:
            default: gtf
            choices:
                - gtf
                - gff3
            help: Attribute syntax of the annotation file.
        - type:
            default: exon
            help: Feature type (3rd column of the annotation) to count. All
                  other features are ignored.
        - idattr:
            default: gene_id
            help: Attribute used as feature id. Features sharing the same
                  value are counted together.
        - split_attribute_values:
            action: store_true
            help: Split comma separated attribute values into several
                  feature ids.
        - genome_desc:
            help: Genome description file (genome.sequence.<name>=<length>)
                  used to register the chromosomes before the annotation is
                  read.
        - index:
            help: Load a feature index saved with --save_index instead of
                  reading the annotation.
        - shards:
            nargs: "*"
            help: Additional alignment files counted with samfile against the
                  same index. Results are summed.
        - ncpu:
            default: 1
            type: int
            help: Number of processes used to count shards, or decompression
                  threads for a single file.
    - Counting Options:
        - counter:
            default: htseq-count
            help: Counter implementation (see list-counters).
        - stranded:
            default: "no"
            choices:
                - "yes"
                - "no"
                - reverse
            help: Whether the data is from a strand-specific assay. "reverse"
                  means the read (first mate for pairs) is on the opposite
                  strand of the feature.
        - mode:
            default: union
            choices:
                - union
                - intersection-strict
                - intersection-nonempty
            help: Overlap mode. The method used to resolve the features
                  overlapped by a read.
        - minaqual:
            default: 0
            type: int
            help: Skip reads with a mapping quality lower than this value.
        - keep_nonunique:
            action: store_true
            help: Classify reads aligned to several locations (NH > 1) instead
                  of discarding them. They are still reported as not unique.
        - keep_ambiguous:
            action: store_true
            help: Count reads overlapping several features for every one of
                  them.
        - ignore_secondary:
            action: store_true
            help: Skip secondary alignments.
        - ignore_supplementary:
            action: store_true
            help: Skip supplementary alignments.
    - Reporting Options:
        - quiet:
            action: store_true
            help: Silence (most) output.
        - verbose:
            action: store_true
            help: Show detailed progress.
        - debug:
            action: store_true
            help: Print debug messages.
        - logfile:
            type: argparse.FileType('w')
            help: Log output to this file.
        - outdir:
            default: .
            help: Output directory.
        - exp_tag:
            default: featcount
            help: Experiment tag
        - save_index:
            help: Save the feature index built from the annotation to this
                  file.
        - samout:
            help: Write the alignments, tagged with their assignment, to this
                  BAM file.
        - samtag:
            default: XF
            help: Tag used for the assignment in --samout.
        - no_unassigned_tags:
            action: store_true
            help: Do not tag alignments that were not assigned to a feature.
    """

    def __init__(self, args):
        super().__init__(args)
        self.version = __version__
        if self.logfile is None:
            self.logfile = sys.stderr
        if self.shards is None:
            self.shards = []

    def outfile_path(self, suffix):
        basename = '%s-%s' % (self.exp_tag, suffix)
        return os.path.join(self.outdir, basename)

    def counter_parameters(self):
        """Counter parameters for the options given on the command line."""
        return {
            htseq.GENOMIC_TYPE_PARAMETER_NAME: self.type,
            htseq.ATTRIBUTE_ID_PARAMETER_NAME: self.idattr,
            htseq.STRANDED_PARAMETER_NAME: self.stranded,
            htseq.OVERLAP_MODE_PARAMETER_NAME: self.mode,
            htseq.REMOVE_AMBIGUOUS_CASES_PARAMETER_NAME: not self.keep_ambiguous,
            htseq.SPLIT_ATTRIBUTE_VALUES_PARAMETER_NAME: self.split_attribute_values,
            htseq.MINIMUM_ALIGNMENT_QUALITY_PARAMETER_NAME: self.minaqual,
            htseq.REMOVE_NON_UNIQUE_ALIGNMENTS_PARAMETER_NAME: not self.keep_nonunique,
            htseq.REMOVE_SECONDARY_ALIGNMENTS_PARAMETER_NAME: self.ignore_secondary,
            htseq.REMOVE_SUPPLEMENTARY_ALIGNMENTS_PARAMETER_NAME: self.ignore_supplementary,
            htseq.REMOVE_NON_ASSIGNED_FEATURES_SAM_TAGS_PARAMETER_NAME: self.no_unassigned_tags,
            htseq.SAM_TAG_TO_USE_PARAMETER_NAME: self.samtag,
        }


def run(args):
    """Count the reads of an alignment file per feature.

    Args:
        args: Parsed argparse namespace.
    """
    opts = CountOptions(args)
    console = configure_logging(opts)
    lg.info('\n{}\n'.format(opts))
    try:
        _run(opts, console)
    except FeatcountError as exc:
        lg.debug('featcount count failed', exc_info=True)
        print(f'Error: {exc}', file=sys.stderr)
        sys.exit(1)


def _run(opts, console):
    total_time = time()
    console.banner(opts.version)

    if opts.index is None and opts.gtffile is None:
        raise ConfigurationError('An annotation file or a feature index (--index) is required.')
    if opts.shards and opts.samout:
        raise ConfigurationError('--samout cannot be used with --shards.')

    counter = get_counter_class(opts.counter)()
    counter.set_parameters(opts.counter_parameters())

    console.section('Input')
    console.item('Alignments', os.path.basename(opts.samfile))
    for shard in opts.shards:
        console.item('Shard', os.path.basename(shard))
    console.item('Annotation', os.path.basename(opts.index or opts.gtffile))
    console.item('Counter', counter.name)
    console.blank()

    """ Feature index """
    stime = time()
    if opts.index is not None:
        lg.info('Loading feature index...')
        counter.load_index(opts.index)
    else:
        lg.info('Loading annotation...')
        genome_description = GenomeDescription.load(opts.genome_desc) if opts.genome_desc else None
        counter.init(opts.gtffile, genome_description, gtf=(opts.format == 'gtf'))
        if opts.save_index:
            counter.save_index(opts.save_index)
    lg.info('Loaded feature index in {}'.format(fmtmins(time() - stime)))
    console.verbose('Loaded {:,} features ({:.1f}s)'.format(len(counter.get_feature_ids()), time() - stime))

    """ Count """
    stime = time()
    if opts.shards:
        result = count_shards(
            [opts.samfile] + list(opts.shards),
            opts.counter_parameters(),
            counter.features,
            ncpu=opts.ncpu,
            counter_name=counter.name,
            counter_group=htseq.DEFAULT_COUNTER_GROUP,
        )
        counts, reporter = result.counts, result.reporter
    else:
        lg.info('Counting {} alignments...'.format('paired-end' if is_paired_data(opts.samfile) else 'single-end'))
        reporter = Reporter()
        counts = counter.count_file(
            opts.samfile, reporter, htseq.DEFAULT_COUNTER_GROUP, samout=opts.samout, threads=opts.ncpu,
        )
    counter.add_zero_count_features(counts)
    console.status('Counting alignments... done ({:.1f}s)'.format(time() - stime))
    console.blank()

    """ Reports """
    console.section('Summary')
    for name, value in reporter.items(htseq.DEFAULT_COUNTER_GROUP):
        console.counter(name, value)
    console.blank()

    os.makedirs(opts.outdir, exist_ok=True)
    counts_file = opts.outfile_path('counts.tsv')
    stats_file = opts.outfile_path('stats.tsv')
    output_counts(counts, counts_file)
    output_stats(reporter, htseq.DEFAULT_COUNTER_GROUP, stats_file)

    console.section('Output')
    for path in (counts_file, stats_file, opts.samout, opts.save_index):
        if path:
            console.output_file(path)
    console.blank()

    lg.info('featcount count complete (%s)' % fmtmins(time() - total_time))


def list_counters(args):
    """List the available counters."""
    from ..counters import COUNTERS

    print('Counters:')
    for name, cls in sorted(COUNTERS.items()):
        print(f'  {name:20s} {cls().description}')
