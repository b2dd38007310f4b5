# This file is part of Featcount.
# Annotation and alignment handling derived from Polymerase by Duane Storey (https://github.com/duanestorey)
#
# Licensed under MIT License.

"""Annotation loading and the genomic array of features."""

from .builder import FeatureAnnotation, store_annotation  # noqa: F401
from .genome import GenomeDescription  # noqa: F401
from .genomic_array import GenomicArray  # noqa: F401
from .interval import GenomicInterval  # noqa: F401
