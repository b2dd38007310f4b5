# -*- coding: utf-8 -*-

# This file is part of Featcount.
# Annotation and alignment handling derived from Polymerase by Duane Storey (https://github.com/duanestorey)
#
# Licensed under MIT License.

"""Abstract base class for expression counters."""

from abc import ABC, abstractmethod

from ..errors import ConfigurationError


def parse_bool(name, value):
    if isinstance(value, bool):
        return value
    _v = str(value).strip().lower()
    if _v in ('true', 'yes', '1'):
        return True
    if _v in ('false', 'no', '0'):
        return False
    raise ConfigurationError(f'Invalid boolean value for parameter "{name}": {value!r}')


def parse_int(name, value, minimum=None):
    try:
        _v = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f'Invalid integer value for parameter "{name}": {value!r}') from None
    if minimum is not None and _v < minimum:
        raise ConfigurationError(f'Parameter "{name}" must be >= {minimum}: {_v}')
    return _v


class ExpressionCounter(ABC):
    """Counts the alignments overlapping the features of an annotation.

    The life cycle is: :meth:`set_parameter` (validated immediately),
    :meth:`init` with the annotation, then :meth:`count` on one or several
    alignment streams.
    """

    def __init__(self):
        self.initialized = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier used in the counter registry and the CLI."""

    @property
    def description(self) -> str:
        return ""

    # -- Configuration -------------------------------------------------------

    @abstractmethod
    def set_parameter(self, key, value) -> None:
        """Set one parameter, raising :class:`ConfigurationError` if invalid."""

    def set_parameters(self, params):
        for key, value in params.items():
            self.set_parameter(key, value)

    # -- Annotation ----------------------------------------------------------

    @abstractmethod
    def init(self, annotation, genome_description=None) -> None:
        """Build the feature index from the annotation."""

    @abstractmethod
    def get_feature_ids(self) -> list:
        """All feature ids known to the index."""

    # -- Counting ------------------------------------------------------------

    @abstractmethod
    def count(self, alignments, reporter, counter_group) -> dict:
        """Count a stream of alignments, returning {feature_id: count}."""

    def add_zero_count_features(self, counts):
        """Add every known feature missing from ``counts`` with a count of 0."""
        if not self.initialized:
            raise ConfigurationError(f'Counter {self.name} is not initialized')
        for feature_id in self.get_feature_ids():
            counts.setdefault(feature_id, 0)
        return counts
