# This file is part of Featcount.
# Annotation and alignment handling derived from Polymerase by Duane Storey (https://github.com/duanestorey)
#
# Licensed under MIT License.

"""Exception hierarchy for Featcount."""


class FeatcountError(Exception):
    """Base class for errors raised by Featcount."""


class ConfigurationError(FeatcountError):
    """Invalid parameter value or unusable annotation for the requested setup."""


class SortOrderError(ConfigurationError):
    """Paired-end alignments are not grouped by read name."""


class AnnotationFormatError(FeatcountError):
    """Malformed annotation line."""

    def __init__(self, message, lineno=None):
        if lineno is not None:
            message = f'line {lineno}: {message}'
        super().__init__(message)
        self.lineno = lineno


class AlignmentFormatError(FeatcountError):
    """Malformed alignment record or attribute."""


class UnknownChromosomeError(FeatcountError):
    """Chromosome is not registered in the genomic array."""

    def __init__(self, chromosome):
        super().__init__(f'Unknown chromosome: {chromosome}')
        self.chromosome = chromosome
