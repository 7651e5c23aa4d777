#!/usr/bin/python3
"""sqlbind MySQL interface package.

Functions:
  Connect: Returns a connection object for a MySQL server.
           Refer to the documentation enclosed in the connection module for
           argument information.
  ConnectFromConfig: Returns a connection configured from an ini file section.
"""
__version__ = '0.4'

# Application specific modules
from .. import config
from . import connection


def Connect(*args, **kwargs):
  """Factory function for connection.Connection."""
  return connection.Connection(*args, **kwargs)


def ConnectFromConfig(filename, section='mysql', path=None, **kwargs):
  """Returns a Connection using the arguments from a settings file section.

  Keyword arguments given here override those from the file.
  """
  arguments = config.Settings(filename, path=path).ConnectArguments(section)
  arguments.update(kwargs)
  if not arguments.get('user'):
    raise config.ConfigError('No user configured in section [%s].' % section)
  return connection.Connection(
      arguments.pop('user'), arguments.pop('password', ''), **arguments)
