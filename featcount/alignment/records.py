# -*- coding: utf-8 -*-

# This file is part of Featcount.
# Annotation and alignment handling derived from Polymerase by Duane Storey (https://github.com/duanestorey)
#
# Licensed under MIT License.

"""Typed access to pysam alignment records and files."""

import pysam

from ..errors import AlignmentFormatError

MULTIMAP_TAG = 'NH'


def get_int_tag(aln, tag, default=None):
    """Integer value of an optional field.

    Args:
        aln (pysam.AlignedSegment): alignment.
        tag (str): two letter tag.
        default: returned when the tag is absent.

    Raises:
        AlignmentFormatError: the value cannot be read as an integer.
    """
    if not aln.has_tag(tag):
        return default
    value = aln.get_tag(tag)
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise AlignmentFormatError(f'{aln.query_name}: tag {tag} is not an integer: {value!r}')
    if isinstance(value, int):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        raise AlignmentFormatError(f'{aln.query_name}: tag {tag} is not an integer: {value!r}') from None


def get_bool_tag(aln, tag, default=None):
    """Boolean value of an optional field (``0``/``1`` or ``true``/``false``)."""
    if not aln.has_tag(tag):
        return default
    value = aln.get_tag(tag)
    if isinstance(value, str):
        _v = value.strip().lower()
        if _v in ('true', '1', 'yes'):
            return True
        if _v in ('false', '0', 'no'):
            return False
        raise AlignmentFormatError(f'{aln.query_name}: tag {tag} is not a boolean: {value!r}')
    if value in (0, 1):
        return bool(value)
    raise AlignmentFormatError(f'{aln.query_name}: tag {tag} is not a boolean: {value!r}')


def multimap_count(aln):
    return get_int_tag(aln, MULTIMAP_TAG)


def is_multimapped(aln):
    nh = multimap_count(aln)
    return nh is not None and nh > 1


def is_coordinate_sorted(header):
    """True if a SAM header declares ``SO:coordinate``.

    Args:
        header: ``pysam.AlignmentHeader`` or header dict.
    """
    if header is None:
        return False
    _d = header if isinstance(header, dict) else header.to_dict()
    return _d.get('HD', {}).get('SO') == 'coordinate'


def open_alignment_file(samfile, threads=1):
    return pysam.AlignmentFile(samfile, check_sq=False, threads=threads)


def is_paired_data(samfile):
    """True if the first record of an alignment file is paired."""
    with open_alignment_file(samfile) as sf:
        for aln in sf.fetch(until_eof=True):
            return aln.is_paired
    return False
