#!/usr/bin/python3
"""Exception classes for sqlbind.

Classes:
  Error: Exception base class.
  MalformedTemplate: Optional fragment brackets do not balance.
  UnsupportedValue: A value cannot be escaped for use in SQL.
  OutOfRange: Row index beyond the bounds of a result.
  NotSupportedError: Operation is not supported.
  TransactionError: Transaction verbs used out of order.
  DriverError: The database driver reported a failure.
"""
__version__ = '0.3'


class Error(Exception):
  """Exception base class."""


class MalformedTemplate(Error, ValueError):
  """A template has unmatched [ and ] characters."""


class UnsupportedValue(Error, TypeError):
  """The supplied value has a shape that cannot be escaped."""


class OutOfRange(Error, IndexError):
  """Row index does not exist in the result."""


class NotSupportedError(Error, TypeError):
  """Operation is not supported."""


class TransactionError(Error):
  """A transaction is already in progress, or there is none to end."""


class DriverError(Error):
  """Failure reported by the database driver.

  Members:
    @ code: int
      Error number as given by the server or client library.
    @ message: str
      Error message belonging to the code.
  """
  def __init__(self, code, message):
    super().__init__(code, message)
    self.code = code
    self.message = message

  def __str__(self):
    return '%s (%d)' % (self.message, self.code)

  @classmethod
  def FromDriver(cls, error):
    """Builds a DriverError out of a PyMySQL exception instance."""
    if len(error.args) >= 2 and isinstance(error.args[0], int):
      return cls(error.args[0], str(error.args[1]))
    return cls(0, str(error) or type(error).__name__)
