# This file is part of Featcount.
# Annotation and alignment handling derived from Polymerase by Duane Storey (https://github.com/duanestorey)
#
# Licensed under MIT License.

from .intervals import add_intervals, parse_cigar  # noqa: F401
