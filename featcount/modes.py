# -*- coding: utf-8 -*-

# This file is part of Featcount.
# Annotation and alignment handling derived from Polymerase by Duane Storey (https://github.com/duanestorey)
#
# Licensed under MIT License.

"""Strand usage and overlap mode policies."""

from enum import Enum

from .errors import ConfigurationError


class _NamedEnum(Enum):
    @classmethod
    def from_name(cls, name):
        if isinstance(name, cls):
            return name
        _name = str(name).strip().lower()
        for member in cls:
            if member.value == _name:
                return member
        _allowed = ', '.join(m.value for m in cls)
        raise ConfigurationError(f'Unknown {cls.__name__} "{name}". Allowed: {_allowed}')

    def __str__(self):
        return self.value


class StrandUsage(_NamedEnum):
    """How the strand of a feature must relate to the strand of a read."""
    NO = 'no'
    YES = 'yes'
    REVERSE = 'reverse'

    @property
    def save_strand(self):
        """True when feature strands have to be kept in the index."""
        return self is not StrandUsage.NO


class OverlapMode(_NamedEnum):
    """How the intervals of one read are combined."""
    UNION = 'union'
    INTERSECTION_STRICT = 'intersection-strict'
    INTERSECTION_NONEMPTY = 'intersection-nonempty'
