#!/usr/bin/python3
"""Testsuite for the SQL Result abstraction module."""
__version__ = '1.0'

# Too many public methods
# pylint: disable=R0904

# Access to a protected member % of a client class
# pylint: disable=W0212

# Standard modules
import types
import unittest

# Third-party modules
import pymysql

# Unittest target
from . import errors
from . import sqlresult

FIELDS = 'id', 'title', 'body'
QUERY = 'SELECT * FROM `post` ORDER BY `id` ASC'


def Posts():
  """Returns the rows of three blog posts."""
  return [{'id': num, 'title': 'Title #%d' % num, 'body': 'Body #%d' % num}
          for num in (1, 2, 3)]


def PostResult(rows=None):
  if rows is None:
    rows = Posts()
  return sqlresult.Result(sqlresult.RowSet(rows, FIELDS), query=QUERY)


class RowSetTests(unittest.TestCase):
  """The in-memory row set offers a DB-API like cursor."""

  def testDescription(self):
    """[RowSet] RowSet describes its fields, taken from the first row by default"""
    rowset = sqlresult.RowSet(Posts())
    self.assertEqual([column[0] for column in rowset.description], list(FIELDS))
    self.assertEqual(rowset.rowcount, 3)
    self.assertEqual(sqlresult.RowSet([]).description, ())

  def testFetching(self):
    """[RowSet] RowSet fetches rows in order and returns None when exhausted"""
    rowset = sqlresult.RowSet(Posts())
    self.assertEqual(rowset.fetchone()['id'], 1)
    self.assertEqual([row['id'] for row in rowset.fetchall()], [2, 3])
    self.assertIsNone(rowset.fetchone())

  def testScroll(self):
    """[RowSet] RowSet scrolls absolute and relative, and refuses bad targets"""
    rowset = sqlresult.RowSet(Posts())
    rowset.scroll(2, mode='absolute')
    self.assertEqual(rowset.fetchone()['id'], 3)
    rowset.scroll(-2)
    self.assertEqual(rowset.fetchone()['id'], 2)
    self.assertRaises(IndexError, rowset.scroll, 3, mode='absolute')
    self.assertRaises(IndexError, rowset.scroll, -5)
    self.assertRaises(pymysql.err.ProgrammingError, rowset.scroll, 0,
                      mode='sideways')

  def testClose(self):
    """[RowSet] RowSet has no rows after closing"""
    rowset = sqlresult.RowSet(Posts())
    rowset.close()
    self.assertIsNone(rowset.fetchone())


class ResultBasicTests(unittest.TestCase):
  """Size, truth, representation and container behavior."""

  def setUp(self):
    self.result = PostResult()

  def testLength(self):
    """[Result] Result knows its row count"""
    self.assertEqual(len(self.result), 3)
    self.assertEqual(self.result.num_rows, 3)
    self.assertEqual(len(PostResult([])), 0)

  def testTruth(self):
    """[Result] Result is True with rows and False without"""
    self.assertTrue(self.result)
    self.assertFalse(PostResult([]))

  def testRepresentation(self):
    """[Result] Result has a readable representation"""
    self.assertEqual(repr(self.result), 'Result instance: 3 rows')
    self.assertEqual(repr(PostResult(Posts()[:1])), 'Result instance: 1 row')

  def testQuery(self):
    """[Result] Result remembers the query that produced it"""
    self.assertEqual(self.result.query, QUERY)

  def testFieldnames(self):
    """[Result] Result provides its fieldnames and field descriptions"""
    self.assertEqual(self.result.fieldnames, FIELDS)
    self.assertEqual(self.result.FetchFields(True), list(FIELDS))
    fields = self.result.FetchFields()
    self.assertEqual([field['name'] for field in fields], list(FIELDS))
    self.assertIn('type_code', fields[0])

  def testIndex(self):
    """[Result] Result rows can be retrieved by index, negative ones included"""
    self.assertEqual(self.result[0]['id'], 1)
    self.assertEqual(self.result[-1]['id'], 3)
    self.assertEqual([row['id'] for row in self.result[1:]], [2, 3])
    self.assertEqual(self.result.position, 0)

  def testIndexOutOfRange(self):
    """[Result] Result raises OutOfRange, an IndexError, for bad indices"""
    self.assertRaises(errors.OutOfRange, self.result.__getitem__, 3)
    self.assertRaises(IndexError, self.result.__getitem__, -4)

  def testReadOnly(self):
    """[Result] Result rows cannot be assigned or removed"""
    self.assertRaises(errors.NotSupportedError,
                      self.result.__setitem__, 0, {'id': 9})
    self.assertRaises(errors.NotSupportedError, self.result.__delitem__, 0)

  def testCall(self):
    """[Result] Calling the result gives access to the underlying row set"""
    self.assertIsInstance(self.result(), sqlresult.RowSet)
    self.assertEqual(self.result(lambda rowset: rowset.rowcount), 3)


class ResultCursorTests(unittest.TestCase):
  """Seek and Fetch move the current position."""

  def setUp(self):
    self.result = PostResult()

  def testSeek(self):
    """[Cursor] Seek moves to existing rows only"""
    self.assertTrue(self.result.Seek(1))
    self.assertEqual(self.result.Fetch(None, 'id'), 2)
    self.assertTrue(self.result.Seek())
    self.assertEqual(self.result.Fetch(None, 'id'), 1)
    self.assertFalse(self.result.Seek(3))
    self.assertFalse(self.result.Seek(-1))

  def testSeekBadTypes(self):
    """[Cursor] Seek refuses positions that are not integers"""
    self.assertFalse(self.result.Seek('1'))
    self.assertFalse(self.result.Seek(1.0))
    self.assertFalse(self.result.Seek(True))

  def testSeekEmpty(self):
    """[Cursor] Seek fails on a result without rows"""
    self.assertFalse(PostResult([]).Seek())

  def testFetch(self):
    """[Cursor] Fetch returns consecutive rows and None when exhausted"""
    self.assertEqual(self.result.Fetch(), Posts()[0])
    self.assertEqual(self.result.Fetch(None, 'id'), 2)
    self.assertEqual(self.result.Fetch()['title'], 'Title #3')
    self.assertIsNone(self.result.Fetch())
    self.assertEqual(self.result.position, 3)

  def testFetchRow(self):
    """[Cursor] Fetch seeks to a given row first"""
    self.assertEqual(self.result.Fetch(2, 'id'), 3)
    self.assertEqual(self.result.Fetch(0, 'title'), 'Title #1')
    self.assertEqual(self.result.position, 1)

  def testFetchBadRow(self):
    """[Cursor] Fetch of a row that does not exist returns None"""
    self.assertIsNone(self.result.Fetch(5))
    self.assertIsNone(self.result.Fetch(-1))
    self.assertEqual(self.result.position, 0)

  def testFetchMissingColumn(self):
    """[Cursor] Fetch of a field that does not exist returns None"""
    self.assertIsNone(self.result.Fetch(0, 'author'))

  def testFetchEmpty(self):
    """[Cursor] Fetch on an empty result returns None"""
    self.assertIsNone(PostResult([]).Fetch())

  def testFetchOne(self):
    """[Cursor] FetchOne reads at the current position"""
    self.result.Seek(1)
    self.assertEqual(self.result.FetchOne('id'), 2)
    self.assertEqual(self.result.FetchOne()['id'], 3)

  def testFetchReturnsCopies(self):
    """[Cursor] Changing a fetched row does not change the result"""
    row = self.result.Fetch(0)
    row['title'] = 'Changed'
    self.assertEqual(self.result.Fetch(0, 'title'), 'Title #1')


class ResultBulkTests(unittest.TestCase):
  """Bulk reads return everything and keep the position."""

  def setUp(self):
    self.result = PostResult()

  def testFetchAll(self):
    """[Bulk] FetchAll returns all rows, or all values of a field"""
    self.assertEqual(self.result.FetchAll(), Posts())
    self.assertEqual(self.result.FetchAll('id'), [1, 2, 3])
    self.assertEqual(self.result.FetchAll('author'), [])
    self.assertEqual(PostResult([]).FetchAll(), [])

  def testFetchAllKeepsPosition(self):
    """[Bulk] FetchAll does not move the current position"""
    self.result.Seek(1)
    self.result.FetchAll()
    self.assertEqual(self.result.position, 1)
    self.assertEqual(self.result.Fetch(None, 'id'), 2)

  def testExhaustedPositionKept(self):
    """[Bulk] An exhausted result stays exhausted after a bulk read"""
    self.result.Seek(2)
    self.result.Fetch()
    self.result.FetchAll()
    self.assertEqual(self.result.position, 3)
    self.assertIsNone(self.result.Fetch())

  def testFetchPairs(self):
    """[Bulk] FetchPairs maps a key field to rows, or to another field"""
    self.assertEqual(self.result.FetchPairs('id'),
                     {post['id']: post for post in Posts()})
    self.assertEqual(self.result.FetchPairs('id', 'title'),
                     {1: 'Title #1', 2: 'Title #2', 3: 'Title #3'})
    self.assertEqual(self.result.FetchPairs('author'), {})

  def testFetchPairsDuplicates(self):
    """[Bulk] FetchPairs keeps the last row for a duplicate key"""
    result = PostResult([{'id': 1, 'title': 'a', 'body': ''},
                         {'id': 1, 'title': 'b', 'body': ''}])
    self.assertEqual(result.FetchPairs('id', 'title'), {1: 'b'})

  def testFetchGroups(self):
    """[Bulk] FetchGroups collects rows, or field values, per key value"""
    rows = [{'id': 1, 'author': 'elmer'}, {'id': 2, 'author': 'jan'},
            {'id': 3, 'author': 'elmer'}]
    result = sqlresult.Result(sqlresult.RowSet(rows))
    self.assertEqual(result.FetchGroups('author', 'id'),
                     {'elmer': [1, 3], 'jan': [2]})
    self.assertEqual(result.FetchGroups('author')['jan'],
                     [{'id': 2, 'author': 'jan'}])
    self.assertEqual(self.result.FetchGroups('id', 'title'),
                     {1: ['Title #1'], 2: ['Title #2'], 3: ['Title #3']})

  def testSkipRowsWithoutKey(self):
    """[Bulk] Rows without the key or column field are left out of keyed reads"""
    rows = [{'id': 1, 'tag': 'a'}, {'id': 2}]
    result = sqlresult.Result(sqlresult.RowSet(rows, ['id', 'tag']))
    self.assertEqual(result.FetchPairs('id', 'tag'), {1: 'a'})
    self.assertEqual(result.FetchGroups('tag'), {'a': [{'id': 1, 'tag': 'a'}]})
    self.assertEqual(result.FetchAll('tag'), ['a'])

  def testFetchTranspose(self):
    """[Bulk] FetchTranspose returns the values per field"""
    self.assertEqual(self.result.FetchTranspose(), {
        'id': [1, 2, 3],
        'title': ['Title #1', 'Title #2', 'Title #3'],
        'body': ['Body #1', 'Body #2', 'Body #3']})

  def testFetchTransposeKeyed(self):
    """[Bulk] FetchTranspose with a key indexes every field by the key value"""
    self.assertEqual(self.result.FetchTranspose('id'), {
        'id': {1: 1, 2: 2, 3: 3},
        'title': {1: 'Title #1', 2: 'Title #2', 3: 'Title #3'},
        'body': {1: 'Body #1', 2: 'Body #2', 3: 'Body #3'}})

  def testFetchTransposeEmpty(self):
    """[Bulk] FetchTranspose of an empty result is an empty dict"""
    self.assertEqual(PostResult([]).FetchTranspose(), {})

  def testFirstAndLast(self):
    """[Bulk] First and Last return the outer rows without moving the position"""
    self.result.Seek(1)
    self.assertEqual(self.result.First(), Posts()[0])
    self.assertEqual(self.result.First('id'), 1)
    self.assertEqual(self.result.Last()['id'], 3)
    self.assertEqual(self.result.Last('title'), 'Title #3')
    self.assertEqual(self.result.position, 1)

  def testFirstAndLastEmpty(self):
    """[Bulk] First and Last return None without rows"""
    result = PostResult([])
    self.assertIsNone(result.First())
    self.assertIsNone(result.Last('id'))

  def testIteration(self):
    """[Bulk] Iteration yields all rows and keeps the position"""
    self.result.Seek(2)
    self.assertEqual([row['id'] for row in self.result], [1, 2, 3])
    self.assertEqual(self.result.position, 2)

  def testFetchingWhileIterating(self):
    """[Bulk] Reads inside a loop over the result do not disturb the loop"""
    seen = []
    for index, row in enumerate(self.result):
      self.assertEqual(row['id'], index + 1)
      self.assertEqual(len(self.result.FetchAll()), 3)
      self.assertEqual(self.result.First('id'), 1)
      self.assertEqual(self.result.Fetch(1, 'id'), 2)
      self.assertEqual(self.result.Last('id'), 3)
      seen.append(row['id'])
    self.assertEqual(seen, [1, 2, 3])

  def testPositionRestoredOnError(self):
    """[Bulk] The position is put back when a bulk read fails"""
    def _Fail(row):
      if row['id'] == 2:
        raise ValueError('bad row')
      return row
    self.result.Seek(1)
    self.result.Map(_Fail)
    self.assertRaises(ValueError, self.result.FetchAll)
    self.assertEqual(self.result.position, 1)
    self.assertEqual(self.result.Fetch(None, 'id'), 2)


class ResultSliceTests(unittest.TestCase):
  """Slice takes clamped ranges of rows."""

  def setUp(self):
    self.result = PostResult()

  def Ids(self, rows):
    return [row['id'] for row in rows]

  def testDefault(self):
    """[Slice] Slice without arguments returns all rows"""
    self.assertEqual(self.Ids(self.result.Slice()), [1, 2, 3])

  def testOffset(self):
    """[Slice] Slice starts at the offset, negative offsets count from the end"""
    self.assertEqual(self.Ids(self.result.Slice(1)), [2, 3])
    self.assertEqual(self.Ids(self.result.Slice(-1)), [3])
    self.assertEqual(self.Ids(self.result.Slice(-5)), [1, 2, 3])
    self.assertEqual(self.result.Slice(3), [])
    self.assertEqual(self.result.Slice(10), [])

  def testLength(self):
    """[Slice] Slice returns at most length rows"""
    self.assertEqual(self.Ids(self.result.Slice(0, 2)), [1, 2])
    self.assertEqual(self.Ids(self.result.Slice(1, 1)), [2])
    self.assertEqual(self.Ids(self.result.Slice(1, 10)), [2, 3])
    self.assertEqual(self.result.Slice(0, 0), [])

  def testNegativeLength(self):
    """[Slice] Slice stops that many rows before the end for a negative length"""
    self.assertEqual(self.Ids(self.result.Slice(0, -1)), [1, 2])
    self.assertEqual(self.Ids(self.result.Slice(1, -1)), [2])
    self.assertEqual(self.result.Slice(2, -2), [])

  def testPreserveKeys(self):
    """[Slice] Slice can return rows keyed by their index"""
    self.assertEqual(
        {index: row['id'] for index, row in
         self.result.Slice(1, 2, preserve_keys=True).items()},
        {1: 2, 2: 3})

  def testNeverFails(self):
    """[Slice] Slice clamps every combination of arguments"""
    for offset in range(-5, 6):
      for length in [None] + list(range(-5, 6)):
        rows = self.result.Slice(offset, length)
        self.assertLessEqual(len(rows), 3)

  def testKeepsPosition(self):
    """[Slice] Slice does not move the current position"""
    self.result.Seek(2)
    self.result.Slice(0, 2)
    self.assertEqual(self.result.position, 2)


class ResultMapTests(unittest.TestCase):
  """Map transforms the rows that fetches return."""

  def setUp(self):
    self.result = PostResult()

  def testMapRows(self):
    """[Map] Mapped rows are returned by every row fetching method"""
    self.assertIs(self.result.Map(lambda row: types.SimpleNamespace(**row)),
                  self.result)
    self.assertEqual(self.result.Fetch(0).title, 'Title #1')
    self.assertEqual(self.result.First().id, 1)
    self.assertEqual(self.result.FetchAll()[2].body, 'Body #3')
    self.assertEqual(self.result.FetchPairs('id')[2].title, 'Title #2')
    self.assertEqual([row.id for row in self.result], [1, 2, 3])

  def testMapLeavesColumns(self):
    """[Map] Single field reads bypass the mapping"""
    self.result.Map(lambda row: types.SimpleNamespace(**row))
    self.assertEqual(self.result.First('id'), 1)
    self.assertEqual(self.result.FetchAll('title')[0], 'Title #1')

  def testMapReset(self):
    """[Map] Mapping None restores plain rows"""
    self.result.Map(tuple).Map(None)
    self.assertEqual(self.result.First(), Posts()[0])

  def testMapNotCallable(self):
    """[Map] Map refuses values that cannot be called"""
    self.assertRaises(TypeError, self.result.Map, 'title')


class ResultFreeTests(unittest.TestCase):
  """Free releases the row set."""

  def setUp(self):
    self.result = PostResult()

  def testFreeOnce(self):
    """[Free] Free succeeds once"""
    self.assertFalse(self.result.freed)
    self.assertTrue(self.result.Free())
    self.assertFalse(self.result.Free())
    self.assertTrue(self.result.freed)

  def testFreedBehavesEmpty(self):
    """[Free] A freed result acts as if it has no rows"""
    self.result.Free()
    self.assertEqual(len(self.result), 0)
    self.assertFalse(self.result)
    self.assertFalse(self.result.Seek())
    self.assertIsNone(self.result.Fetch())
    self.assertIsNone(self.result.First())
    self.assertEqual(self.result.FetchAll(), [])
    self.assertEqual(self.result.Slice(), [])
    self.assertEqual(list(self.result), [])
    self.assertEqual(self.result.num_rows, 3)

  def testContextManager(self):
    """[Free] Leaving a with block frees the result"""
    with self.result as result:
      self.assertEqual(result.First('id'), 1)
    self.assertTrue(self.result.freed)


if __name__ == '__main__':
  unittest.main(testRunner=unittest.TextTestRunner(verbosity=2))
