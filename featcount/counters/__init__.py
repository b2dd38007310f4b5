# This file is part of Featcount.
# Annotation and alignment handling derived from Polymerase by Duane Storey (https://github.com/duanestorey)
#
# Licensed under MIT License.

"""Expression counters and their registry."""

from ..errors import ConfigurationError
from .abc import ExpressionCounter  # noqa: F401
from .htseq import HTSeqCounter
from .overlap import features_overlapped  # noqa: F401

COUNTERS = {
    HTSeqCounter.COUNTER_NAME: HTSeqCounter,
}


def get_counter_class(name):
    if name not in COUNTERS:
        raise ConfigurationError(
            f'Unknown counter: "{name}". Available: {", ".join(sorted(COUNTERS))}'
        )
    return COUNTERS[name]
