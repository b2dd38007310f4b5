# -*- coding: utf-8 -*-

# This file is part of Featcount.
# Annotation and alignment handling derived from Polymerase by Duane Storey (https://github.com/duanestorey)
#
# Licensed under MIT License.

__version__ = '1.0.0'
