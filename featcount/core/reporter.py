# This file is part of Featcount.
# Annotation and alignment handling derived from Polymerase by Duane Storey (https://github.com/duanestorey)
#
# Licensed under MIT License.

"""Counter sink and TSV reports.

Functions accept plain data (count dicts, a :class:`Reporter`) rather than
counter objects, so they can be called after merging shard results.
"""

from collections import OrderedDict

import pandas as pd


class Reporter:
    """Named integer counters, organised by group."""

    def __init__(self):
        self._groups = OrderedDict()  # {group: OrderedDict(counter_name: value)}

    def incr_counter(self, group, name, value=1):
        _g = self._groups.setdefault(group, OrderedDict())
        _g[name] = _g.get(name, 0) + int(value)

    def set_counter(self, group, name, value):
        self._groups.setdefault(group, OrderedDict())[name] = int(value)

    def get_counter_value(self, group, name):
        """Value of a counter, -1 if the counter was never set."""
        return self._groups.get(group, {}).get(name, -1)

    def counter_names(self, group):
        return list(self._groups.get(group, {}))

    @property
    def groups(self):
        return list(self._groups)

    def items(self, group):
        return list(self._groups.get(group, {}).items())

    def merge(self, other):
        """Add every counter of ``other`` to this reporter."""
        for group in other.groups:
            for name, value in other.items(group):
                self.incr_counter(group, name, value)
        return self

    def __repr__(self):
        return f'<Reporter groups={self.groups}>'


def output_counts(counts, counts_filename):
    """Write feature counts as a TSV sorted by feature id.

    Args:
        counts: dict {feature_id: count}
        counts_filename: Path for counts TSV output
    """
    _counts = pd.DataFrame({'Id': list(counts), 'Count': [int(c) for c in counts.values()]})
    _counts.sort_values('Id', inplace=True)
    with open(counts_filename, 'w') as outh:
        _counts.to_csv(outh, sep='\t', index=False)


def output_stats(reporter, group, stats_filename):
    """Write the counters of one group as a two column TSV."""
    _stats = pd.DataFrame(reporter.items(group), columns=['Counter', 'Value'])
    with open(stats_filename, 'w') as outh:
        _stats.to_csv(outh, sep='\t', index=False)


def read_counts(counts_filename):
    """Read a counts TSV written by :func:`output_counts`."""
    _df = pd.read_csv(counts_filename, sep='\t', dtype={'Id': str, 'Count': int})
    return dict(zip(_df['Id'], _df['Count']))
