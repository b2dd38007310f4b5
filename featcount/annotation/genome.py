# -*- coding: utf-8 -*-

# This file is part of Featcount.
# Annotation and alignment handling derived from Polymerase by Duane Storey (https://github.com/duanestorey)
#
# Licensed under MIT License.

"""Genome description: names and lengths of the reference sequences."""

import logging as lg
from collections import OrderedDict

import pysam

_PREFIX = 'genome.'
_NAME_KEY = _PREFIX + 'name'
_LENGTH_KEY = _PREFIX + 'length'
_SEQUENCE_PREFIX = _PREFIX + 'sequence.'
_SEQUENCES_COUNT_KEY = _PREFIX + 'sequences'


class GenomeDescription:
    def __init__(self, name=None):
        self.name = name
        self.sequences = OrderedDict()  # {sequence_name: length}

    def add_sequence(self, name, length):
        if not name:
            raise ValueError('sequence name cannot be empty')
        if length < 0:
            raise ValueError(f'invalid length for sequence {name}: {length}')
        self.sequences[name] = int(length)

    def contains_sequence(self, name):
        return name in self.sequences

    def sequence_length(self, name):
        """Length of a sequence, -1 if unknown."""
        return self.sequences.get(name, -1)

    @property
    def sequence_names(self):
        return list(self.sequences)

    @property
    def genome_length(self):
        return sum(self.sequences.values())

    def save(self, filename):
        with open(filename, 'w') as outh:
            if self.name is not None:
                outh.write(f'{_NAME_KEY}={self.name}\n')
            outh.write(f'{_SEQUENCES_COUNT_KEY}={len(self.sequences)}\n')
            outh.write(f'{_LENGTH_KEY}={self.genome_length}\n')
            for seq_name, seq_len in self.sequences.items():
                outh.write(f'{_SEQUENCE_PREFIX}{seq_name}={seq_len}\n')

    @classmethod
    def load(cls, filename):
        """Load a genome description saved with :meth:`save`.

        Lines are ``key=value`` pairs; sequence lines with a length that is
        not an integer are skipped.
        """
        obj = cls()
        with open(filename) as fh:
            for line in fh:
                key, sep, value = line.rstrip('\n').partition('=')
                if not sep:
                    continue
                key = key.strip()
                if key == _NAME_KEY:
                    obj.name = value
                elif key.startswith(_SEQUENCE_PREFIX):
                    try:
                        obj.add_sequence(key[len(_SEQUENCE_PREFIX):], int(value))
                    except ValueError:
                        lg.debug(f'Skipping invalid sequence line: {line.strip()}')
        return obj

    @classmethod
    def from_fai(cls, filename):
        """Read sequence names and lengths from a samtools ``.fai`` index."""
        obj = cls()
        with open(filename) as fh:
            for line in fh:
                fields = line.rstrip('\n').split('\t')
                if len(fields) < 2:
                    continue
                obj.add_sequence(fields[0], int(fields[1]))
        return obj

    @classmethod
    def from_alignment_header(cls, samfile):
        """Read the reference sequences declared in a SAM/BAM header."""
        obj = cls()
        with pysam.AlignmentFile(samfile, check_sq=False) as sf:
            for name, length in zip(sf.references, sf.lengths):
                obj.add_sequence(name, length)
        return obj

    def __len__(self):
        return len(self.sequences)

    def __repr__(self):
        return f'<GenomeDescription name={self.name} sequences={len(self.sequences)}>'
