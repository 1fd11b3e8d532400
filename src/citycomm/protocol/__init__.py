"""
citycomm Protocol Layer
=======================

Transport-agnostic message structures and the per-family semantics that
sit on top of them. Nothing in this package depends on a transport.

    family.py     Topic pairs, registries, and enrichment rules
    message.py    Message and Response, wire dictionary conversion
    fields.py     Canonical wire keys and type tags
"""

from . import fields
from . import message
from . import family

from .message import Message, Response, build
from .family import Family
