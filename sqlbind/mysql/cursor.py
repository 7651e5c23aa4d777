#!/usr/bin/python3
"""sqlbind MySQL Cursor class.

The cursor builds common statements from table names and mappings of column
names to values. Values always travel as bindings, so they are escaped by the
connection; table and field names are quoted with backticks.
"""
__version__ = '0.5'

# Standard modules
import weakref

# Application specific modules
from ..errors import Error


class Cursor:
  """Cursor to execute database interaction with, within a transaction."""

  def __init__(self, connection):
    self._connection = weakref.ref(connection)

  def Delete(self, table, where=None, bindings=None):
    """Deletes rows from a table.

    Arguments:
      table:    string. Name of the table to delete rows from.
      where:    string/dict (optional). SQL template for the where clause, or a
                mapping of column name to the value it must have.
                Without it, all rows are deleted.
      bindings: dict (optional). Values for placeholders in `where`.

    Returns:
      int: number of deleted rows.
    """
    sql = 'DELETE FROM %s' % self.connection.EscapeField(table)
    bindings = dict(bindings or {})
    if where is not None:
      sql += ' WHERE ' + self._Conditions(where, bindings)
    return self.connection.Query(sql, bindings)

  def Execute(self, sql, bindings=None):
    """Executes a query template, see Connection.Query."""
    return self.connection.Query(sql, bindings)

  def Insert(self, table, data):
    """Inserts a row into a table.

    Arguments:
      table: string. Name of the table to insert into.
      data:  dict. Column name for key, content for value.

    Returns:
      int: the auto-increment ID of the new row.
    """
    return self._InsertStatement('INSERT', table, data)

  def Replace(self, table, data):
    """Replaces a row: inserts it, removing a row with the same key first.

    Returns:
      int: the auto-increment ID of the new row.
    """
    return self._InsertStatement('REPLACE', table, data)

  def Select(self, table, fields=None, conditions=None, bindings=None,
             order=None, group=None, limit=None, offset=0, escape=True,
             totalcount=False, distinct=False):
    """Select fields from table that match the conditions, ordered and limited.

    Arguments:
      table:      string/list/tuple. Table(s) to select fields out of.
      fields:     string/list/tuple (optional). Fields to select. Default '*'.
                  As string, single field name. (autoquoted)
                  As list/tuple, one field name per element. (autoquoted)
                  If the fieldname itself is supplied as a tuple,
                  `field` as `name` will be returned where name is the second
                  item in the tuple. (autoquoted)
      conditions: string/list/tuple (optional). SQL template for the 'where'
                  statement. AND'd if list/tuple. Placeholders in it are
                  filled from `bindings`, optional fragments are stripped.
      bindings:   dict (optional). Values for placeholders in `conditions`.
      order:      (nested) list/tuple (optional).
                  Defines sorting of the result, elements can be:
                    string: a field to order by (in default database order).
                    list/tuple of two elements:
                      1) string, field name to order by
                      2) bool, reverse; set this to True to reverse the order
      group:      str (optional). Field name or function to group result by.
      limit:      integer (optional). Defines output size in rows.
      offset:     integer (optional). Number of rows to skip, requires limit.
      escape:     boolean. Defines whether table and field names should be
                  escaped. Set this to False if you want to make use of MySQL
                  functions on this query. Default True.
      totalcount: boolean. If this is set to True, queries with a LIMIT applied
                  will have the full number of matching rows in the
                  found_rows attribute of the result.
      distinct:   bool (optional). Performs a DISTINCT query if set to True.

    Returns:
      sqlresult.Result object.
    """
    field_escape = self._FieldEscape if escape else self._NoEscapeField
    sql = ' '.join(part for part in (
        'SELECT',
        'SQL_CALC_FOUND_ROWS' if totalcount and limit is not None else '',
        'DISTINCT' if distinct else '',
        self._StringFields(fields, field_escape),
        'FROM',
        self._StringTable(table, field_escape),
        'WHERE',
        self._StringConditions(conditions),
        self._StringGroup(group, field_escape),
        self._StringOrder(order, field_escape),
        self._StringLimit(limit, offset)) if part)
    return self.connection.Query(sql, bindings)

  def Truncate(self, table, auto_increment=1):
    """Truncate table in database, reducing it to 0 rows.

    Arguments:
      table:          string, name of the table to truncate.
      auto_increment: integer (optional). Next auto-increment value for the
                      table. None leaves the counter alone. Default 1.
    """
    table = self.connection.EscapeField(table)
    self.connection.Query('TRUNCATE %s' % table)
    if auto_increment is not None:
      self.connection.Query('ALTER TABLE %s AUTO_INCREMENT = :number' % table,
                            {'number': auto_increment})
    return True

  def Update(self, table, data, where=None, bindings=None):
    """Updates table records to the new values where conditions are met.

    Arguments:
      table:    string. Name of table to update values in.
      data:     dict. Column name for key, new content for value.
      where:    string/dict (optional). SQL template for the where clause, or a
                mapping of column name to the value it must have.
                Without it, all rows are updated.
      bindings: dict (optional). Values for placeholders in `where`.

    Returns:
      int: number of affected rows.
    """
    bindings = dict(bindings or {})
    sql = 'UPDATE %s SET %s' % (self.connection.EscapeField(table),
                                self._Assignments(data, 'set', bindings))
    if where is not None:
      sql += ' WHERE ' + self._Conditions(where, bindings)
    return self.connection.Query(sql, bindings)

  def Upsert(self, table, data, duplicate=None, bindings=None):
    """Inserts a row, or updates the existing row on a duplicate key.

    Arguments:
      table:     string. Name of the table to insert into.
      data:      dict. Column name for key, content for value.
      duplicate: string/dict (optional). SQL template for the assignments of
                 the ON DUPLICATE KEY UPDATE clause, or a mapping of column
                 name to new value.
      bindings:  dict (optional). Values for placeholders in `duplicate`.

    Returns:
      int: the auto-increment ID of the inserted or updated row.
    """
    bindings = dict(bindings or {})
    columns, values = self._Values(data, bindings)
    sql = 'INSERT INTO %s (%s) VALUES (%s)' % (
        self.connection.EscapeField(table), columns, values)
    if duplicate is not None:
      if not isinstance(duplicate, str):
        duplicate = self._Assignments(duplicate, 'dup', bindings)
      sql += ' ON DUPLICATE KEY UPDATE ' + duplicate
    self.connection.Query(sql, bindings)
    return self.connection.InsertId()

  def _Assignments(self, data, prefix, bindings):
    """Returns `field` = :placeholder pairs, adding values to the bindings."""
    if not data:
      raise Error('No values given to assign.')
    pairs = []
    for index, (column, value) in enumerate(data.items()):
      name = '_%s%d' % (prefix, index)
      bindings[name] = value
      pairs.append('%s = :%s' % (self.connection.EscapeField(column), name))
    return ', '.join(pairs)

  def _Conditions(self, where, bindings):
    """Returns the where clause for a template or a column-value mapping."""
    if isinstance(where, str):
      return where
    conditions = []
    for index, (column, value) in enumerate(where.items()):
      field = self.connection.EscapeField(column)
      if value is None:
        conditions.append('%s IS NULL' % field)
      else:
        name = '_where%d' % index
        bindings[name] = value
        conditions.append('%s = :%s' % (field, name))
    return ' AND '.join(conditions) or '1'

  def _FieldEscape(self, field, multiple=False):
    """Returns escaped field names, `field` as `name` for tuples."""
    if isinstance(field, str):
      return self.connection.EscapeField(field)
    elif not multiple and isinstance(field, tuple):
      return '%s as %s' % (self.connection.EscapeField(field[0]),
                           self.connection.EscapeField(field[1]))
    return [self._FieldEscape(item) for item in field]

  def _InsertStatement(self, verb, table, data):
    bindings = {}
    columns, values = self._Values(data, bindings)
    self.connection.Query('%s INTO %s (%s) VALUES (%s)' % (
        verb, self.connection.EscapeField(table), columns, values), bindings)
    return self.connection.InsertId()

  def _Values(self, data, bindings):
    """Returns the column list and placeholder list for an insert."""
    if not data:
      raise Error('No values given to insert.')
    columns = []
    values = []
    for index, (column, value) in enumerate(data.items()):
      name = '_value%d' % index
      bindings[name] = value
      columns.append(self.connection.EscapeField(column))
      values.append(':' + name)
    return ', '.join(columns), ', '.join(values)

  @staticmethod
  def _NoEscapeField(field, multiple=False):
    """Returns unescaped field names, `field` as `name` for tuples."""
    if isinstance(field, str):
      return field
    elif not multiple and isinstance(field, tuple):
      return '%s as %s' % (field[0], field[1])
    return [Cursor._NoEscapeField(item) for item in field]

  @staticmethod
  def _StringConditions(conditions):
    if not conditions:
      return '1'
    elif not isinstance(conditions, str):
      return ' AND '.join(conditions)
    return conditions

  @staticmethod
  def _StringFields(fields, field_escape):
    if fields is None:
      return '*'
    elif isinstance(fields, str):
      return field_escape(fields)
    return ', '.join(field_escape(fields, True))

  @staticmethod
  def _StringGroup(group, field_escape):
    if group is None:
      return ''
    elif isinstance(group, str):
      return 'GROUP BY ' + field_escape(group)
    return 'GROUP BY ' + ', '.join(field_escape(group, True))

  @staticmethod
  def _StringLimit(limit, offset):
    if limit is None:
      return ''
    elif offset:
      return 'LIMIT %d OFFSET %d' % (limit, offset)
    return 'LIMIT %d' % limit

  @staticmethod
  def _StringOrder(order, field_escape):
    if order is None:
      return ''
    orders = []
    for rule in order:
      if isinstance(rule, str):
        orders.append(field_escape(rule))
      else:
        orders.append('%s %s' % (field_escape(rule[0]), ('ASC', 'DESC')[rule[1]]))
    return 'ORDER BY ' + ', '.join(orders)

  @staticmethod
  def _StringTable(table, field_escape):
    if isinstance(table, str):
      return field_escape(table)
    return ', '.join(field_escape(table, True))

  @property
  def connection(self):
    """Returns the connection that this cursor belongs to."""
    connection = self._connection()
    if connection is None:
      raise Error('Connection for this cursor closed.')
    return connection
