#!/usr/bin/python3
"""SQL templating with named placeholders and optional fragments.

Placeholders are written as `:name` and are replaced by the escaped value bound
to that name. Parts of a template can be marked optional by wrapping them in
square brackets; such a fragment only survives when every placeholder inside it
has a binding. Fragments nest:

  SELECT * FROM `post` WHERE 1 [AND `title` = :title [AND `body` = :body]]

With only `title` bound, the inner fragment is removed and the outer one stays.
Without `title` the whole outer fragment is removed, regardless of `body`.

Functions:
  Format: Strips a template and substitutes all bound placeholders.
  Placeholders: Returns the set of placeholder names used in a template.
  Strip: Removes optional fragments whose placeholders are not all bound.
"""
__version__ = '0.5'

# Standard modules
import collections.abc
import re

# Third-party modules
from pymysql import converters

# Application specific modules
from .errors import MalformedTemplate, UnsupportedValue
from .escape import Escape, IsScalar

PLACEHOLDER = re.compile(r':([a-zA-Z_][a-zA-Z0-9_]*)\b', re.ASCII)
FRAGMENT_OPEN = '['
FRAGMENT_CLOSE = ']'


def Placeholders(template):
  """Returns the set of placeholder names that occur in the template."""
  return set(PLACEHOLDER.findall(template))


def Strip(template, keys):
  """Removes optional fragments that have placeholders without a binding.

  The template is scanned once, left to right. Every open bracket starts a new
  buffer on top of a stack; on a closing bracket the top buffer is popped and
  decided on. A kept buffer is appended to the buffer below it (or the output),
  a dropped one disappears together with everything nested inside it.

  Placeholders are looked up in the text of the buffer as it is at the closing
  bracket. This text includes the contents of nested fragments that were kept,
  so their names count for the enclosing fragment as well.

  Arguments:
    @ template: str
      SQL template with optional `[ ... ]` fragments.
    @ keys: iterable of str
      Names of the placeholders that have a binding.

  Raises:
    MalformedTemplate: The brackets in the template do not balance.

  Returns:
    str: The template without the removed fragments and without brackets,
    stripped of surrounding whitespace.
  """
  keys = set(keys)
  output = []
  stack = []
  for char in template:
    if char == FRAGMENT_OPEN:
      stack.append([])
    elif char == FRAGMENT_CLOSE:
      if not stack:
        raise MalformedTemplate('unmatched [ and ] characters')
      fragment = ''.join(stack.pop())
      if Placeholders(fragment) <= keys:
        (stack[-1] if stack else output).append(fragment)
    else:
      (stack[-1] if stack else output).append(char)
  if stack:
    raise MalformedTemplate('unmatched [ and ] characters')
  return ''.join(output).strip()


def Format(template, bindings=None, escape_string=converters.escape_string):
  """Returns the SQL for the template, with placeholders replaced by values.

  The template is first passed through Strip() using the binding names. After
  that, every `:name` occurrence with a binding is replaced by the SQL literal
  for its value. All placeholders are replaced in a single pass, so text that
  a replacement introduces is never substituted again. Placeholders without a
  binding are left untouched.

  Arguments:
    @ template: str
      SQL template with `:name` placeholders and optional fragments.
    % bindings: dict ~~ None
      Mapping of placeholder name to value. Sequences are formatted as a comma
      separated list of their escaped elements.
    % escape_string: function ~~ pymysql.converters.escape_string
      Driver function that escapes the characters of a string.

  Raises:
    MalformedTemplate: The brackets in the template do not balance.
    UnsupportedValue: A bound value cannot be formatted.

  Returns:
    str: SQL statement ready for execution.
  """
  bindings = bindings or {}
  sql = Strip(template, bindings)
  if not bindings:
    return sql
  replacements = {name: _Replacement(value, escape_string)
                  for name, value in bindings.items()}

  def _Substitute(match):
    return replacements.get(match.group(1), match.group(0))

  return PLACEHOLDER.sub(_Substitute, sql)


def _Replacement(value, escape_string):
  """Returns the SQL text that replaces a placeholder for the given value."""
  if IsScalar(value):
    return str(Escape(value, True, escape_string))
  if isinstance(value, collections.abc.Mapping):
    value = value.values()
  if (isinstance(value, collections.abc.Iterable) and
      not isinstance(value, (bytes, bytearray))):
    elements = list(value)
    if not all(map(IsScalar, elements)):
      raise UnsupportedValue('could not format non-scalar value')
    return ','.join(str(Escape(element, True, escape_string))
                    for element in elements)
  raise UnsupportedValue(
      'could not format value of type %s' % type(value).__name__)
