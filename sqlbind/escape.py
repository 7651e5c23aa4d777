#!/usr/bin/python3
"""Value escaping for SQL templates.

Escape() turns Python values into text that can be placed in a SQL statement.
Without `sqlize` the result is the driver-escaped raw value, with `sqlize` the
result is a complete SQL literal (quoted strings, the text null).

Escaping of string content is never done here; it is handed to the
`escape_string` function of the database driver.
"""
__version__ = '0.4'

# Standard modules
import collections.abc
import datetime
import decimal
import numbers

# Third-party modules
import pytz
from pymysql import converters

# Application specific modules
from .errors import UnsupportedValue
from .literal import Literal

NUMBER_TYPES = numbers.Real, decimal.Decimal
TEMPORAL_TYPES = datetime.date, datetime.time


def Escape(value, sqlize=False, escape_string=converters.escape_string):
  """Escapes a value, or the contents of a sequence or mapping, for SQL use.

  Arguments:
    @ value: obj
      The value to escape. Supported are None, bool, numbers, str, Literal,
      date/time objects, and sequences or mappings of those.
    % sqlize: bool ~~ False
      Return SQL literals (quoted strings, 'null') instead of raw escapes.
    % escape_string: function ~~ pymysql.converters.escape_string
      Driver function that escapes the characters of a string.

  Raises:
    UnsupportedValue: The value (or an element of it) cannot be escaped.

  Returns:
    str / number / None for scalars, a list for sequences and a dict with the
    same keys for mappings.
  """
  if value is None:
    return 'null' if sqlize else None
  if isinstance(value, Literal):
    return str(value)
  if isinstance(value, str):
    escaped = escape_string(value)
    return "'%s'" % escaped if sqlize else escaped
  if isinstance(value, bool):
    flag = '1' if value else '0'
    return "'%s'" % flag if sqlize else flag
  if isinstance(value, NUMBER_TYPES):
    return value
  if isinstance(value, TEMPORAL_TYPES):
    return Escape(TemporalText(value), sqlize, escape_string)
  if isinstance(value, collections.abc.Mapping):
    return {key: Escape(item, sqlize, escape_string)
            for key, item in value.items()}
  if (isinstance(value, collections.abc.Iterable) and
      not isinstance(value, (bytes, bytearray))):
    return [Escape(item, sqlize, escape_string) for item in value]
  raise UnsupportedValue(
      'supplied data is not supported: %s' % type(value).__name__)


def IsScalar(value):
  """Returns whether the value can be escaped to a single SQL literal."""
  return value is None or isinstance(
      value, (str, bool) + NUMBER_TYPES + TEMPORAL_TYPES)


def TemporalText(value):
  """Formats a date, time or datetime object as MySQL accepts them.

  Timezone aware datetimes are converted to UTC first, naive ones are taken
  as they are.
  """
  if isinstance(value, datetime.datetime):
    if value.tzinfo is not None:
      value = value.astimezone(pytz.utc).replace(tzinfo=None)
    return value.isoformat(' ')
  if isinstance(value, datetime.time):
    return value.replace(tzinfo=None).isoformat()
  return value.isoformat()
