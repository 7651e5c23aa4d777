#!/usr/bin/python3
"""Connection settings stored in ini files.

An example file for the default `mysql` section:

  [mysql]
  host = localhost
  user = blog
  password = secret
  database = blog
  charset = utf8mb4
  debug = yes
"""
__version__ = '0.2'

# Standard modules
import configparser
import os

# Application specific modules
from .errors import Error

STRING_OPTIONS = 'host', 'user', 'password', 'database', 'charset', 'unix_socket'
INTEGER_OPTIONS = 'port', 'connect_timeout'
BOOLEAN_OPTIONS = 'debug', 'autocommit'


class ConfigError(Error):
  """The settings file is missing, unreadable or has bad values."""


class Settings:
  """Read-only view on an ini settings file.

  The file is read again when its modification time changes.
  """

  def __init__(self, filename, path=None):
    """Opens the settings file.

    Arguments:
      @ filename: str
        Name of the file, the extension defaults to .ini when omitted.
      % path: str ~~ None
        Directory of the file, used when the filename is relative.

    Raises:
      ConfigError: The file does not exist or cannot be read.
    """
    extension = '' if filename.endswith(('.ini', '.conf')) else '.ini'
    self.filename = filename + extension
    if path and not os.path.isabs(self.filename):
      self.file_location = os.path.join(path, self.filename)
    else:
      self.file_location = self.filename
    if not os.path.isfile(self.file_location):
      raise ConfigError('Settings file %r does not exist.' % self.file_location)
    if not os.access(self.file_location, os.R_OK):
      raise ConfigError(
          'Missing permissions to read settings file: %s' % self.file_location)
    self.mtime = None
    self.config = configparser.ConfigParser()
    self.options = {}
    self.Read()

  def Read(self):
    """Reads the file if it changed since the last read.

    Returns:
      bool: whether the file was (re)read.
    """
    curtime = os.path.getmtime(self.file_location)
    if self.mtime == curtime:
      return False
    config = configparser.ConfigParser()
    try:
      config.read(self.file_location)
    except configparser.Error as error:
      raise ConfigError('Bad settings file %s: %s' % (
          self.file_location, error)) from error
    self.config = config
    self.options = {section: dict(config[section])
                    for section in config.sections()}
    self.mtime = curtime
    return True

  def ConnectArguments(self, section='mysql'):
    """Returns the keyword arguments for a Connection from a section.

    Raises:
      ConfigError: The section is missing, or holds a badly typed value.
    """
    self.Read()
    if not self.config.has_section(section):
      raise ConfigError('No section [%s] in %s.' % (section, self.file_location))
    options = self.config[section]
    arguments = {key: options.get(key)
                 for key in STRING_OPTIONS if key in options}
    try:
      for key in INTEGER_OPTIONS:
        if key in options:
          arguments[key] = options.getint(key)
      for key in BOOLEAN_OPTIONS:
        if key in options:
          arguments[key] = options.getboolean(key)
    except ValueError as error:
      raise ConfigError('Bad value in section [%s]: %s' % (
          section, error)) from error
    return arguments
