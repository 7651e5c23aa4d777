#!/usr/bin/python3
"""SQL templating on top of PyMySQL.

Queries are templates with named `:placeholders` and optional fragments in
square brackets. A fragment is only kept when all of its placeholders have a
binding, which makes building queries with optional filters easy:

  from sqlbind import mysql
  connection = mysql.Connect('blog', 'secret')
  posts = connection.Query(
      'SELECT SQL_CALC_FOUND_ROWS * FROM `post` WHERE 1'
      ' [AND `author` = :author] [AND `tag` IN (:tags)]'
      ' ORDER BY `id` DESC LIMIT 10 OFFSET :offset',
      {'author': 'elmer', 'offset': 20})
  print(posts.page, posts.num_pages)
  for post in posts:
    print(post['title'])

Returns Result objects that hold the rows, keep a row cursor, and offer bulk
fetching, grouping, transposing and pagination details.
"""
__version__ = '1.0.0'

# Application specific modules
from .errors import (
    DriverError, Error, MalformedTemplate, NotSupportedError, OutOfRange,
    TransactionError, UnsupportedValue)
from .escape import Escape
from .literal import Literal
from .sqlresult import Pagination, Result, RowSet
from .template import Format, Placeholders, Strip
