#!/usr/bin/python3
"""This module implements the Connection class, which sets up a connection to
a MySQL database. Queries are written as templates with `:name` placeholders
and optional `[ ... ]` fragments; the connection formats them using its own
escaping and returns Result objects for the rows they produce.

From this connection, cursor objects can be created in a transaction block,
which offer helpers to build common statements:

  with connection as cursor:
    post_id = cursor.Insert('post', {'title': 'Hello', 'body': 'World'})
"""
__version__ = '0.6'

# Standard modules
import collections
import contextlib
import logging

# Third-party modules
import pymysql
from pymysql import converters
from pymysql.constants import SERVER_STATUS

# Application specific modules
from . import cursor
from .. import escape
from .. import logger
from .. import literal
from .. import sqlresult
from .. import template
from ..errors import DriverError, TransactionError

FOUND_ROWS_QUERY = 'SELECT FOUND_ROWS() AS `total`'
QUERY_LOG_SIZE = 100


class Connection(pymysql.connections.Connection):
  """MySQL Database Connection Object"""

  def __init__(self, user, password='', **kwargs):
    """Create a connection object for the database. It is strongly
    recommended that you only use keyword parameters. The connection is opened
    when it is first needed, unless `defer_connect` is set to False.

    Arguments:
      user:               string, user to connect as.
      password:           string, password to use.
      database:           string, database to use. Default same as user.
      host:               string, host to connect to. Default 'localhost'.
      port:               integer, TCP/IP port to connect to.
      unix_socket:        string, location of unix_socket to use.
      charset:            string, connection character set. Default utf8mb4.
      connect_timeout:    number of seconds to wait before the connection
                          attempt fails.
      autocommit:         bool, autocommit mode of the connection.
      defer_connect:      bool, postpone connecting until the first use.
                          Default True.
      debug:              bool, log all queries at DEBUG level.
      disable_log:        bool, disables the logger of this connection.
      logfile:            string, file to write the query log to.
      errorlog:           string, file to write errors to.
      debug_stream:       bool, print log records to stderr in color.

    Remaining arguments are passed on to pymysql.connections.Connection.
    """
    self.counter_transactions = 0
    self.counter_queries = 0
    self.queries = collections.deque(maxlen=QUERY_LOG_SIZE)
    self.last_query = None
    self.last_affected = None
    self.last_error = None
    self.last_errno = None
    self.transaction = False

    kwargs['user'] = user
    kwargs['password'] = password
    kwargs['host'] = kwargs.get('host') or 'localhost'
    kwargs['database'] = kwargs.get('database') or user
    kwargs.setdefault('charset', 'utf8mb4')
    kwargs.setdefault('defer_connect', True)
    kwargs['cursorclass'] = pymysql.cursors.DictCursor

    self.logger = logging.getLogger('mysql_%s' % kwargs['database'])
    if kwargs.pop('debug', False):
      self.debug = True
      self.logger.setLevel(logging.DEBUG)
    else:
      self.debug = False
      self.logger.setLevel(logging.WARNING)
    if kwargs.pop('disable_log', False):
      self.logger.disabled = True
    logfile = kwargs.pop('logfile', None)
    if logfile and not logger.has_file_handler(self.logger, logfile):
      self.logger.addHandler(logger.setup_query_logger(logfile))
    errorlog = kwargs.pop('errorlog', None)
    if errorlog and not logger.has_file_handler(self.logger, errorlog):
      self.logger.addHandler(logger.setup_error_logger(errorlog))
    if kwargs.pop('debug_stream', False) and not logger.has_stream_handler(
        self.logger):
      self.logger.addHandler(logger.setup_debug_stream_logger())

    with self._DriverCall():
      super().__init__(**kwargs)

  def __call__(self, sql, bindings=None):
    """Alias for Query()."""
    return self.Query(sql, bindings)

  def __enter__(self):
    """Starts a transaction and returns a cursor to work with."""
    self.Begin()
    return cursor.Cursor(self)

  def __exit__(self, exc_type, exc_value, _exc_traceback):
    """End of transaction: commits on success, or rolls back on failure."""
    if exc_type:
      self.Rollback()
      self.logger.warning(
          'The transaction was rolled back after %s: %s\n'
          'Queries in transaction (last one triggered):\n\n%s',
          exc_type.__name__, exc_value, self._TransactionLog())
      return
    try:
      self.Commit()
    except DriverError as error:
      self.logger.error(
          'The transaction could not be committed: %s\n'
          'Queries in transaction:\n\n%s', error, self._TransactionLog())
      if self.transaction:
        try:
          self.Rollback()
        except DriverError as rollback_error:
          self.logger.error('Rollback after failed commit failed: %s',
                            rollback_error)
      raise
    self.logger.debug('Transaction committed (server: %r).', self.host)

  def Begin(self):
    """Starts a new transaction.

    Raises:
      TransactionError: A transaction is already in progress.
    """
    if self.transaction:
      raise TransactionError('database transaction in progress')
    self.queries.clear()
    self.Query('START TRANSACTION')
    self.transaction = True
    self.counter_transactions += 1
    return True

  def Close(self):
    """Closes the connection.

    Returns:
      bool: True if the connection was closed, False if it was not open.
    """
    if not self.open:
      return False
    with self._DriverCall():
      self.close()
    return True

  def Commit(self):
    """Commits the current transaction.

    Raises:
      TransactionError: There is no transaction in progress.
    """
    if not self.transaction:
      raise TransactionError('database commit not in transaction')
    with self._DriverCall():
      self.commit()
    self.transaction = False
    return True

  def Escape(self, value, sqlize=False):
    """Escapes a value using the connection's escaping, see escape.Escape."""
    return escape.Escape(value, sqlize, self.EscapeString)

  @staticmethod
  def EscapeField(field):
    """Returns a SQL escaped field or table name.

    Dotted names have every part quoted separately, a `*` part is left alone.
    """
    if not field:
      return ''
    fields = '.'.join('`%s`' % f.replace('`', '``') for f in field.split('.'))
    return fields.replace('`*`', '*')

  def EscapeString(self, text):
    """Escapes the characters of a string like the connected server expects."""
    self.Open()
    if self.server_status & SERVER_STATUS.SERVER_STATUS_NO_BACKSLASH_ESCAPES:
      return text.replace("'", "''")
    return converters.escape_string(text)

  def Format(self, sql, bindings=None):
    """Returns the SQL for a template and bindings, see template.Format."""
    return template.Format(sql, bindings, self.EscapeString)

  def Info(self):
    """Returns a dictionary of connection info and statistics.

    Returns
      dictionary: keys: 'db', 'charset', 'server', 'debug', 'autocommit',
                        'querycount', 'transactioncount'
    """
    return {'db': self.db,
            'charset': self.charset,
            'server': self.get_server_info() if self.open else None,
            'debug': self.debug,
            'autocommit': self.autocommit_mode,
            'querycount': self.counter_queries,
            'transactioncount': self.counter_transactions}

  def InsertId(self):
    """Returns the auto-increment ID generated by the last insert."""
    return self.insert_id()

  def Literal(self, sql, bindings=None):
    """Returns a Literal, formatting the SQL with the bindings if given."""
    if bindings is not None:
      sql = self.Format(sql, bindings)
    return literal.Literal(sql)

  def Open(self):
    """Opens the database connection if that did not happen yet.

    Raises:
      DriverError: The server could not be connected to.
    """
    if self.open:
      return True
    try:
      with self._DriverCall():
        self.connect()
    except DriverError as error:
      self.logger.error('could not connect to %s: %s', self.db, error)
      raise
    return True

  def Ping(self):
    """Returns whether the server is alive."""
    self.Open()
    try:
      self.ping(reconnect=False)
    except pymysql.Error as error:
      self.logger.warning('Ping to %s failed: %s', self.host, error)
      return False
    return True

  def Query(self, sql, bindings=None):
    """Formats and executes a query.

    Arguments:
      @ sql: str
        SQL template, see template.Format.
      % bindings: dict ~~ None
        Values for the placeholders in the template.

    Raises:
      DriverError: The server failed to execute the statement.

    Returns:
      sqlresult.Result for statements that produce rows, the number of
      affected rows for all others.
    """
    self.Open()
    self.last_query = sql
    sql = self.Format(sql, bindings)
    self.last_query = sql
    self.queries.append(sql)
    self.counter_queries += 1
    self.last_affected = None
    self.logger.debug(sql)
    cur = self.cursor()
    try:
      with self._DriverCall():
        cur.execute(sql)
    except DriverError as error:
      self.logger.warning('%s\nQuery: %s', error, sql)
      cur.close()
      raise
    if cur.description is None:
      self.last_affected = cur.rowcount
      cur.close()
      return self.last_affected
    found_rows = None
    if sqlresult.FOUND_ROWS_REQUEST.search(sql):
      with self.Query(FOUND_ROWS_QUERY) as total:
        found_rows = total.First('total')
      self.last_query = sql
    return sqlresult.Result(cur, query=sql, found_rows=found_rows)

  def Rollback(self):
    """Rolls back the current transaction.

    Raises:
      TransactionError: There is no transaction in progress.
    """
    if not self.transaction:
      raise TransactionError('database rollback not in transaction')
    try:
      with self._DriverCall():
        self.rollback()
    finally:
      # The transaction is over, also when the rollback failed.
      self.transaction = False
    return True

  def SelectDatabase(self, database):
    """Switches to a different database than the one connected with."""
    self.Open()
    with self._DriverCall():
      self.select_db(database)
    self.db = database
    return True

  def Strip(self, sql, keys):
    """Removes unsatisfied optional fragments, see template.Strip."""
    return template.Strip(sql, keys)

  def Transact(self, callback):
    """Runs the callback within a transaction.

    The callback receives this connection. When it returns, the transaction is
    committed. Any exception from the callback or the commit rolls back the
    transaction; the exception is logged and not raised.

    Raises:
      TransactionError: A transaction is already in progress.

    Returns:
      bool: True if the transaction was committed, False if rolled back.
    """
    self.Begin()
    try:
      callback(self)
      self.Commit()
    except Exception:
      self.logger.exception(
          'The transaction was rolled back after an exception.\n'
          'Queries in transaction (last one triggered):\n\n%s',
          self._TransactionLog())
      if self.transaction:
        self.Rollback()
      return False
    return True

  @contextlib.contextmanager
  def _DriverCall(self):
    """Translates PyMySQL errors into DriverError, remembering the error."""
    try:
      yield
    except pymysql.Error as error:
      failure = DriverError.FromDriver(error)
      self.last_errno, self.last_error = failure.code, failure.message
      raise failure from error

  def _TransactionLog(self):
    return '\n\n'.join(self.queries)
