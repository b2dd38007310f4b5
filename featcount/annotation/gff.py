# -*- coding: utf-8 -*-

# This file is part of Featcount.
# Annotation and alignment handling derived from Polymerase by Duane Storey (https://github.com/duanestorey)
#
# Licensed under MIT License.

"""GFF3/GTF reading."""

import re
from collections import namedtuple
from urllib.parse import unquote

from ..errors import AnnotationFormatError

GFFRecord = namedtuple(
    'GFFRecord', ['seqid', 'source', 'type', 'start', 'end', 'score', 'strand', 'frame', 'attributes']
)

_GTF_ATTR_RE = re.compile(r'\s*([^\s;]+)\s+("[^"]*"|[^;]*)\s*;?')


def parse_gtf_attributes(field):
    """Parse a GTF attribute column (``key "value";``).

    A key seen several times gets its values joined with ``,``.
    """
    attrs = {}
    if field in ('', '.'):
        return attrs
    for key, value in _GTF_ATTR_RE.findall(field):
        value = value.strip().strip('"').strip()
        if key in attrs:
            attrs[key] = attrs[key] + ',' + value
        else:
            attrs[key] = value
    return attrs


def parse_gff3_attributes(field):
    """Parse a GFF3 attribute column (``key=value;``)."""
    attrs = {}
    if field in ('', '.'):
        return attrs
    for item in field.strip().split(';'):
        key, sep, value = item.partition('=')
        if not sep:
            continue
        attrs[unquote(key.strip())] = unquote(value.strip())
    return attrs


def parse_line(line, gtf=True, lineno=None):
    fields = line.rstrip('\r\n').split('\t')
    if len(fields) != 9:
        raise AnnotationFormatError(f'found {len(fields)} fields, 9 expected', lineno)
    seqid, source, ftype, start, end, score, strand, frame, attr_field = fields
    try:
        start, end = int(start), int(end)
    except ValueError:
        raise AnnotationFormatError(f'invalid coordinates: {start}-{end}', lineno) from None
    if strand not in ('+', '-', '.'):
        raise AnnotationFormatError(f'invalid strand: {strand!r}', lineno)
    attrs = parse_gtf_attributes(attr_field) if gtf else parse_gff3_attributes(attr_field)
    return GFFRecord(seqid, source, ftype, start, end, score, strand, frame, attrs)


def read_annotation(gff_file, gtf=True):
    """Iterate over the records of a GFF3 or GTF file.

    Args:
        gff_file: path or open text handle.
        gtf (bool): parse attributes with the GTF syntax.

    Yields:
        GFFRecord
    """
    _opened = isinstance(gff_file, str)
    fh = open(gff_file) if _opened else gff_file  # noqa: SIM115
    try:
        for lineno, line in enumerate(fh, start=1):
            if line.startswith('#') or not line.strip():
                continue
            yield parse_line(line, gtf=gtf, lineno=lineno)
    finally:
        if _opened:
            fh.close()


def get_attribute(record, key, default=None):
    return record.attributes.get(key, default)
