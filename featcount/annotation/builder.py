# -*- coding: utf-8 -*-

# This file is part of Featcount.
# Annotation and alignment handling derived from Polymerase by Duane Storey (https://github.com/duanestorey)
#
# Licensed under MIT License.

"""Population of the genomic array from an annotation stream."""

import logging as lg
import pickle

from ..errors import ConfigurationError
from ..modes import StrandUsage
from .genomic_array import GenomicArray
from .gff import get_attribute, read_annotation
from .interval import GenomicInterval


def split_attribute(value):
    return [v.strip() for v in value.split(',') if v.strip()]


def store_annotation(features, records, feature_type, strand_usage, attribute_id, split_attribute_values=False):
    """Add the annotation records of one type to a genomic array.

    Args:
        features (GenomicArray): array to populate.
        records: iterable of ``GFFRecord``.
        feature_type (str): record type to keep (e.g. ``exon``).
        strand_usage (StrandUsage): strand information is kept only for
            stranded usages.
        attribute_id (str): attribute holding the feature id.
        split_attribute_values (bool): a comma separated attribute value
            gives several feature ids.

    Returns:
        (set of str): feature ids stored.

    Raises:
        ConfigurationError: a record of the requested type lacks the
            attribute, or has no strand while counting in stranded mode.
    """
    strand_usage = StrandUsage.from_name(strand_usage)
    ids = set()
    for rec in records:
        if rec.type != feature_type:
            continue

        feature_id = get_attribute(rec, attribute_id)
        if feature_id is None:
            raise ConfigurationError(f'Feature {feature_type} does not contain a {attribute_id} attribute')

        if strand_usage.save_strand and rec.strand == '.':
            raise ConfigurationError(
                f'Feature {feature_type} does not have strand information but counting is stranded '
                f'({strand_usage}).'
            )

        feature_ids = split_attribute(feature_id) if split_attribute_values else [feature_id]

        iv = GenomicInterval.from_annotation(rec, strand_usage.save_strand)
        for f in feature_ids:
            features.add_entry(iv, f)
            ids.add(f)
    return ids


class FeatureAnnotation:
    """Genomic array of features together with the settings it was built with.

    A saved annotation can only be reused by a counter whose feature type,
    attribute, attribute splitting and strandedness match.
    """

    def __init__(self, gtf_file, attribute_name, strand_usage, feature_type='exon', split_attribute_values=False,
                 genome_description=None, gtf=True):
        lg.debug('Building genomic array for annotation.')
        self.key = attribute_name
        self.feature_type = feature_type
        self.strand_usage = StrandUsage.from_name(strand_usage)
        self.split_attribute_values = split_attribute_values
        self.features = GenomicArray(genome_description)

        if isinstance(gtf_file, str) or hasattr(gtf_file, 'read'):
            records = read_annotation(gtf_file, gtf=gtf)
        else:
            records = gtf_file

        self.feature_ids = store_annotation(
            self.features, records, feature_type, self.strand_usage, attribute_name, split_attribute_values,
        )
        lg.info(f'Stored {len(self.feature_ids)} features of type "{feature_type}" ({attribute_name}).')

    def check_settings(self, attribute_name, strand_usage, feature_type, split_attribute_values):
        """Raise ConfigurationError if the annotation was built differently.

        Only the presence of strand information matters, so an index built
        with ``yes`` serves ``reverse`` and the other way around.
        """
        strand_usage = StrandUsage.from_name(strand_usage)
        mismatches = []
        if self.feature_type != feature_type:
            mismatches.append(f'type {self.feature_type!r} (requested {feature_type!r})')
        if self.key != attribute_name:
            mismatches.append(f'attribute {self.key!r} (requested {attribute_name!r})')
        if self.split_attribute_values != split_attribute_values:
            mismatches.append(f'split attribute values {self.split_attribute_values} '
                              f'(requested {split_attribute_values})')
        if self.strand_usage.save_strand != strand_usage.save_strand:
            mismatches.append(f'stranded {self.strand_usage} (requested {strand_usage})')
        if mismatches:
            raise ConfigurationError('Feature index was built with ' + ', '.join(mismatches))

    def save(self, filename):
        with open(filename, 'wb') as outh:
            pickle.dump(
                {
                    'key': self.key,
                    'feature_type': self.feature_type,
                    'strand_usage': self.strand_usage.value,
                    'split_attribute_values': self.split_attribute_values,
                    'feature_ids': self.feature_ids,
                    'features': self.features,
                },
                outh,
            )

    @classmethod
    def load(cls, filename):
        with open(filename, 'rb') as fh:
            loader = pickle.load(fh)
        if not isinstance(loader, dict) or 'features' not in loader:
            raise ConfigurationError(f'{filename} is not a feature index')
        obj = cls.__new__(cls)
        obj.key = loader['key']
        obj.feature_type = loader['feature_type']
        obj.strand_usage = StrandUsage.from_name(loader['strand_usage'])
        obj.split_attribute_values = loader['split_attribute_values']
        obj.feature_ids = loader['feature_ids']
        obj.features = loader['features']
        lg.debug(f'Loaded {len(obj.feature_ids)} features of type "{obj.feature_type}" from {filename}')
        return obj
