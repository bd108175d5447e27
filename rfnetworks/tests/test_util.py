import io
import unittest
from pathlib import Path

import rfnetworks as rn


class UtilTestCase(unittest.TestCase):

    def test_get_fid_passes_file_objects(self):
        buf = io.StringIO('text')
        self.assertIs(rn.get_fid(buf), buf)

    def test_get_fid_opens_paths(self):
        path = Path(__file__)
        with rn.get_fid(path) as fid:
            self.assertFalse(fid.closed)
        with rn.get_fid(str(path)) as fid:
            self.assertTrue(fid.readable())

    def test_get_extn(self):
        self.assertEqual(rn.get_extn('dir/ntwk.s2p'), 's2p')
        self.assertEqual(rn.get_extn(Path('file.ts')), 'ts')
        self.assertIsNone(rn.get_extn('noextension'))

    def test_basename_noext(self):
        self.assertEqual(rn.basename_noext('/tmp/dir/ntwk.s2p'), 'ntwk')

    def test_touchstone_nports_from_extn(self):
        self.assertEqual(rn.touchstone_nports_from_extn('a.s1p'), 1)
        self.assertEqual(rn.touchstone_nports_from_extn('a.S12P'), 12)
        self.assertIsNone(rn.touchstone_nports_from_extn('a.ts'))
        self.assertIsNone(rn.touchstone_nports_from_extn('a'))
