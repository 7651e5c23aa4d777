#!/usr/bin/python3
"""Marker type for SQL text that has to be emitted verbatim.

The Escaper and Formatter pass Literal values through untouched: no escaping,
no quoting. Use them for function calls and expressions:

  connection.Query('UPDATE `post` SET `views` = :views WHERE `id` = :id',
                   {'views': Literal('`views` + 1'), 'id': 12})
"""
__version__ = '0.2'


class Literal(str):
  """SQL text that is already safe and must not be escaped."""

  def __repr__(self):
    return '%s(%s)' % (self.__class__.__name__, super().__repr__())
