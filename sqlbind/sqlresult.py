#!/usr/bin/python3
"""SQL result abstraction module.

Classes:
  Pagination: Paging details derived from the text of a query.
  Result: Cursor over the rows of an executed query.
  RowSet: Buffered in-memory row set with a DB-API like cursor interface.
"""
__version__ = '2.0'

# Standard modules
import contextlib
import math
import re
from typing import NamedTuple, Optional

# Third-party modules
from pymysql import err

# Application specific modules
from .errors import NotSupportedError, OutOfRange

FOUND_ROWS_REQUEST = re.compile(r'^\s*SELECT\s+SQL_CALC_FOUND_ROWS\b', re.I)
LIMIT_CLAUSE = re.compile(
    r'\bLIMIT\s+(\d+)(?:\s*,\s*(\d+)|\s+OFFSET\s+(\d+))?\s*;?\s*$', re.I)
DESCRIPTION_KEYS = ('name', 'type_code', 'display_size', 'internal_size',
                    'precision', 'scale', 'null_ok')


class Pagination(NamedTuple):
  """Paging details of a query result.

  These are read from the trailing LIMIT clause of the executed query. This is
  a best-effort heuristic, not a SQL parser: a LIMIT that is followed by other
  clauses (FOR UPDATE, a closing parenthesis of a subquery) is not recognized.
  """
  found_rows: int
  limit: Optional[int]
  offset: int
  num_pages: int
  page: int

  @classmethod
  def FromQuery(cls, query, row_count, found_rows=None):
    """Returns the Pagination for a query that returned `row_count` rows.

    Arguments:
      @ query: str
        The executed SQL statement.
      @ row_count: int
        Number of rows the statement returned.
      % found_rows: int ~~ None
        Total number of matching rows as reported by FOUND_ROWS(). Only used
        when the query requested this count using SQL_CALC_FOUND_ROWS.
    """
    if found_rows is None or not FOUND_ROWS_REQUEST.search(query):
      found_rows = row_count
    found_rows = int(found_rows)
    limit = None
    offset = 0
    match = LIMIT_CLAUSE.search(query)
    if match:
      first, second, offset_value = match.groups()
      if second is not None:
        # LIMIT offset, count
        offset, limit = int(first), int(second)
      else:
        limit = int(first)
        offset = int(offset_value or 0)
    if not limit:
      return cls(found_rows, limit, offset, 1, 1)
    return cls(found_rows, limit, offset,
               math.ceil(found_rows / limit), offset // limit + 1)


class RowSet:
  """Buffered row set for rows that are already in memory.

  This offers the cursor methods that Result uses on PyMySQL's buffered
  cursors, so that pre-fetched or constructed rows can be wrapped in a Result.
  """

  def __init__(self, rows, fields=None):
    """Initializes the RowSet.

    Arguments:
      @ rows: iterable of mappings
        The rows of the set, fieldname to value.
      % fields: iterable of str ~~ None
        The fieldnames. Taken from the first row when not given.
    """
    self._rows = list(rows)
    if fields is None:
      fields = list(self._rows[0]) if self._rows else []
    self.description = tuple((name, None, None, None, None, None, None)
                             for name in fields)
    self.rowcount = len(self._rows)
    self.rownumber = 0

  def close(self):
    """Releases the buffered rows."""
    self._rows = []

  def fetchall(self):
    rows = self._rows[self.rownumber:]
    self.rownumber = len(self._rows)
    return rows

  def fetchone(self):
    if self.rownumber >= len(self._rows):
      return None
    row = self._rows[self.rownumber]
    self.rownumber += 1
    return row

  def scroll(self, value, mode='relative'):
    if mode == 'relative':
      target = self.rownumber + value
    elif mode == 'absolute':
      target = value
    else:
      raise err.ProgrammingError('unknown scroll mode %s' % mode)
    if not 0 <= target < len(self._rows):
      raise IndexError('out of range')
    self.rownumber = target


class Result:
  """Cursor over the rows of an executed query.

  The Result keeps a current row position. Fetch() returns the row at that
  position and moves it forward, Seek() moves it explicitly. All bulk reading
  methods (FetchAll, FetchPairs, First, Slice, iteration, ...) read from the
  first row and put the position back where it was when they are done.

  Members:
    @ query - str
      The executed query that gave this result.
    @ num_rows - int
      Number of rows in the result, as it was on construction.
    % found_rows, limit, offset, num_pages, page (read-only)
      Pagination details, see the Pagination class.
  """

  def __init__(self, rowset, query='', found_rows=None):
    """Initializes a new Result.

    Arguments:
      @ rowset: buffered cursor
        Executed PyMySQL buffered cursor (or RowSet) holding the rows.
      % query: str ~~ ''
        The query that was executed for this result.
      % found_rows: int ~~ None
        Total row count as returned by SELECT FOUND_ROWS().
    """
    self._rowset = rowset
    self._description = tuple(rowset.description or ())
    self._position = 0
    self._transform = None
    self.query = query
    self.num_rows = max(rowset.rowcount or 0, 0)
    self._pagination = Pagination.FromQuery(query, self.num_rows, found_rows)

  def __bool__(self):
    return bool(len(self))

  def __call__(self, callback=None):
    """Returns the underlying row set, or the callback's result for it."""
    if callback is None:
      return self._rowset
    return callback(self._rowset)

  def __delitem__(self, index):
    raise NotSupportedError('Result rows cannot be removed.')

  def __enter__(self):
    return self

  def __exit__(self, _exc_type, _exc_value, _exc_traceback):
    self.Free()

  def __getitem__(self, index):
    """Returns the row at the given index, or a list of rows for a slice.

    Raises:
      OutOfRange: There is no row at the given index.
    """
    if isinstance(index, slice):
      with self._KeepPosition():
        return [self.Fetch(row) for row in range(len(self))[index]]
    count = len(self)
    if index < 0:
      index += count
    if not 0 <= index < count:
      raise OutOfRange('Bad row index: %r.' % index)
    with self._KeepPosition():
      return self.Fetch(index)

  def __iter__(self):
    """Yields all rows from the first, leaving the position untouched."""
    with self._KeepPosition():
      index = 0
      while index < len(self):
        yield self.Fetch(index)
        index += 1

  def __len__(self):
    """Returns the number of rows available, 0 once the result is freed."""
    return 0 if self._rowset is None else self.num_rows

  def __repr__(self):
    return '%s instance: %d row%s' % (
        self.__class__.__name__, len(self), 's'[len(self) == 1:])

  def __setitem__(self, index, value):
    raise NotSupportedError('Result rows are read-only.')

  # ############################################################################
  # Cursor primitives
  #
  def Seek(self, row=0):
    """Moves the current position to the given row.

    Returns:
      bool: True on success, False if the row does not exist.
    """
    if (self._rowset is None or isinstance(row, bool) or
        not isinstance(row, int) or not 0 <= row < self.num_rows):
      return False
    self._rowset.scroll(row, mode='absolute')
    self._position = row
    return True

  def Fetch(self, row=None, column=None):
    """Fetches a row, or a single field of a row, and advances the position.

    Arguments:
      % row: int ~~ None
        Row to seek to first. Without it, the row at the current position.
      % column: str ~~ None
        Return only the value of this field.

    Returns:
      dict / obj / None: The row as passed through the Map() function, the
      raw value of the requested field, or None if there is no such row or
      field.
    """
    if not len(self):
      return None
    if row is not None and not self.Seek(row):
      return None
    record = self._rowset.fetchone()
    if record is None:
      return None
    self._position += 1
    if column is not None:
      return record.get(column)
    return self._Transform(record)

  def FetchOne(self, column=None):
    """Fetches the row at the current position, see Fetch()."""
    return self.Fetch(None, column)

  def Free(self):
    """Releases the row set. Later fetches behave as if there are no rows.

    Returns:
      bool: True if the row set was released, False if that already happened.
    """
    if self._rowset is None:
      return False
    rowset, self._rowset = self._rowset, None
    self._position = 0
    rowset.close()
    return True

  def Map(self, function):
    """Sets the function that every fetched row is passed through.

    Arguments:
      @ function: callable / None
        Receives the row dict, its return value is what fetches return.
        None removes a previously set function.

    Returns:
      Result: self, to allow chaining.
    """
    if function is not None and not callable(function):
      raise TypeError('Row mapping must be callable or None.')
    self._transform = function
    return self

  # ############################################################################
  # Bulk reads, these restore the position when done
  #
  def FetchAll(self, column=None):
    """Returns all rows, or all values of one field, as a list."""
    with self._KeepPosition():
      if column is None:
        return [self._Transform(record) for record in self._Records()]
      return [record[column] for record in self._Records() if column in record]

  def FetchFields(self, names_only=False):
    """Returns the fields of the result.

    Arguments:
      % names_only: bool ~~ False
        Return a list of fieldnames instead of descriptions.

    Returns:
      list: fieldnames, or dicts with the DB-API description of each field.
    """
    if names_only:
      return list(self.fieldnames)
    return [dict(zip(DESCRIPTION_KEYS, column)) for column in self._description]

  def FetchGroups(self, key, column=None):
    """Returns rows, or values of one field, grouped by the value of `key`.

    Rows that lack the key field (or the requested column) are skipped.
    """
    groups = {}
    with self._KeepPosition():
      for record in self._Records():
        if key not in record or (column is not None and column not in record):
          continue
        value = self._Transform(record) if column is None else record[column]
        groups.setdefault(record[key], []).append(value)
    return groups

  def FetchPairs(self, key, column=None):
    """Returns a dict of `key` field value to row, or to the `column` value.

    Rows that lack the key field (or the requested column) are skipped. With
    duplicate keys the last row wins.
    """
    pairs = {}
    with self._KeepPosition():
      for record in self._Records():
        if key not in record or (column is not None and column not in record):
          continue
        pairs[record[key]] = (
            self._Transform(record) if column is None else record[column])
    return pairs

  def FetchTranspose(self, key=None):
    """Returns the result column-wise.

    Without a key, this is a dict of fieldname to the list of its values. With
    a key, every fieldname maps to a dict of the row's key value to the field
    value instead.
    """
    empty = list if key is None else dict
    transposed = {field: empty() for field in self.fieldnames} if self else {}
    with self._KeepPosition():
      for record in self._Records():
        if key is not None and key not in record:
          continue
        for field, value in record.items():
          if key is None:
            transposed.setdefault(field, []).append(value)
          else:
            transposed.setdefault(field, {})[record[key]] = value
    return transposed

  def First(self, column=None):
    """Returns the first row, or a field of it; None if there are no rows."""
    with self._KeepPosition():
      return self.Fetch(0, column)

  def Last(self, column=None):
    """Returns the last row, or a field of it; None if there are no rows."""
    with self._KeepPosition():
      return self.Fetch(len(self) - 1, column)

  def Slice(self, offset=0, length=None, preserve_keys=False):
    """Returns a range of rows. Out of range arguments are clamped.

    Arguments:
      % offset: int ~~ 0
        First row of the slice. A negative offset counts from the end.
      % length: int ~~ None
        Maximum number of rows. None for all remaining rows, a negative length
        stops that many rows before the end.
      % preserve_keys: bool ~~ False
        Return a dict keyed by the absolute row index instead of a list.
    """
    count = len(self)
    if offset < 0:
      offset = max(count + offset, 0)
    offset = min(offset, count)
    if length is None:
      stop = count
    elif length < 0:
      stop = max(count + length, offset)
    else:
      stop = min(offset + length, count)
    with self._KeepPosition():
      rows = [(index, self.Fetch(index)) for index in range(offset, stop)]
    if preserve_keys:
      return dict(rows)
    return [row for _index, row in rows]

  # ############################################################################
  # Properties
  #
  @property
  def fieldnames(self):
    """Returns a tuple of the fieldnames that are in this Result."""
    return tuple(column[0] for column in self._description)

  @property
  def found_rows(self):
    return self._pagination.found_rows

  @property
  def freed(self):
    return self._rowset is None

  @property
  def limit(self):
    return self._pagination.limit

  @property
  def num_pages(self):
    return self._pagination.num_pages

  @property
  def offset(self):
    return self._pagination.offset

  @property
  def page(self):
    return self._pagination.page

  @property
  def position(self):
    """The current row index; equal to the row count when exhausted."""
    return self._position

  # ############################################################################
  # Private methods
  #
  @contextlib.contextmanager
  def _KeepPosition(self):
    """Restores the current position after the block, also on errors."""
    position = self._position
    try:
      yield
    finally:
      self._Restore(position)

  def _Records(self):
    """Yields the raw rows, starting at the first one."""
    if not self.Seek(0):
      return
    while self._rowset is not None:
      record = self._rowset.fetchone()
      if record is None:
        return
      self._position += 1
      yield record

  def _Restore(self, position):
    """Puts the row set back at the given position."""
    if self._rowset is None:
      return
    if position < self.num_rows:
      self.Seek(position)
    elif self.num_rows:
      # Exhausted: move past the last row.
      self._rowset.scroll(self.num_rows - 1, mode='absolute')
      self._rowset.fetchone()
      self._position = self.num_rows

  def _Transform(self, record):
    record = dict(record)
    if self._transform is None:
      return record
    return self._transform(record)
