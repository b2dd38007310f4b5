# This file is part of Featcount.
# Annotation and alignment handling derived from Polymerase by Duane Storey (https://github.com/duanestorey)
#
# Licensed under MIT License.

"""Counting several alignment files (shards) against one feature index.

Each shard is counted by its own counter instance. The index is built once
and handed to every worker, which only reads it. Results are merged by
summing counts and diagnostic counters, so the merge order does not matter.
"""

import functools
import logging as lg
from dataclasses import dataclass, field
from multiprocessing import Pool

from .reporter import Reporter


@dataclass
class CountResult:
    """Counts and diagnostic counters of one shard."""
    counts: dict = field(default_factory=dict)
    reporter: Reporter = field(default_factory=Reporter)


def merge_results(results):
    """Sum a sequence of :class:`CountResult` into a new one."""
    merged = CountResult()
    for res in results:
        for feature_id, n in res.counts.items():
            merged.counts[feature_id] = merged.counts.get(feature_id, 0) + n
        merged.reporter.merge(res.reporter)
    return merged


def count_shard(samfile, counter_name, counter_params, counter_group, features):
    """Count one alignment file with a fresh counter."""
    from ..counters import get_counter_class

    counter = get_counter_class(counter_name)()
    counter.set_parameters(counter_params)
    counter.set_features(features)

    reporter = Reporter()
    lg.debug(f'Counting shard {samfile}')
    counts = counter.count_file(samfile, reporter, counter_group)
    return CountResult(counts, reporter)


def count_shards(samfiles, counter_params, features, ncpu=1, counter_name='htseq-count',
                 counter_group='expression'):
    """Count every shard and merge the results.

    Args:
        samfiles (list of str): alignment files, each grouped by read name.
        counter_params (dict): counter parameters, applied to every shard.
        features (GenomicArray): feature index built once by the caller.
        ncpu (int): worker processes. With 1 the shards are counted in
            this process.

    Returns:
        (CountResult): merged counts and counters.
    """
    if ncpu <= 1 or len(samfiles) <= 1:
        results = [
            count_shard(f, counter_name, counter_params, counter_group, features=features)
            for f in samfiles
        ]
        return merge_results(results)

    lg.info(f'Counting {len(samfiles)} shards with {ncpu} processes...')
    _countfunc = functools.partial(
        count_shard,
        counter_name=counter_name,
        counter_params=counter_params,
        counter_group=counter_group,
        features=features,
    )
    with Pool(processes=ncpu) as pool:
        result = pool.map_async(_countfunc, samfiles)
        return merge_results(result.get())
