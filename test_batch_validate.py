import io
import os
import tempfile
import unittest
from contextlib import redirect_stdout

from msh_io.batch_validate import find_msh_files, validate_msh, main
from msh_fixtures import minimal_file, msh_file, model, material_list, material, geometry, segment, mati, posl, ndxt, TRIANGLE


class TestBatchValidate(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = self.tmp.name

    def tearDown(self):
        self.tmp.cleanup()

    def write(self, rel_path, data):
        path = os.path.join(self.root, rel_path)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'wb') as f:
            f.write(data)
        return path

    def test_find_files_recursively(self):
        self.write('a.msh', minimal_file())
        self.write('sub/b.msh', minimal_file())
        self.write('sub/notes.txt', b'')
        files = find_msh_files([self.root])
        self.assertEqual([os.path.basename(f) for f in files], ['a.msh', 'b.msh'])

    def test_pass(self):
        result = validate_msh(self.write('ok.msh', minimal_file()))
        self.assertEqual(result['status'], 'PASS')
        self.assertEqual(result['model_count'], 1)
        self.assertEqual(result['vertex_count'], 3)
        self.assertEqual(result['bounds']['size'], [1.0, 1.0, 0.0])

    def test_warn_on_issues(self):
        bad_material = msh_file(material_list(material('m')),
                                model('body', 1, geometry=geometry(segment(mati(3), posl(TRIANGLE), ndxt([0, 1, 2])))))
        result = validate_msh(self.write('warn.msh', bad_material))
        self.assertEqual(result['status'], 'WARN')
        self.assertEqual(len(result['warnings']), 1)

    def test_fail_without_models(self):
        result = validate_msh(self.write('empty.msh', b'not an msh file'))
        self.assertEqual(result['status'], 'FAIL')

    def test_fail_on_missing_file(self):
        result = validate_msh(os.path.join(self.root, 'missing.msh'))
        self.assertEqual(result['status'], 'FAIL')

    def test_main_exit_status(self):
        self.write('ok.msh', minimal_file())
        out = io.StringIO()
        with redirect_stdout(out):
            self.assertEqual(main([self.root]), 0)
        self.assertIn('PASS: 1', out.getvalue())

        self.write('broken.msh', b'')
        out = io.StringIO()
        with redirect_stdout(out):
            self.assertEqual(main([self.root]), 1)
        self.assertIn('FAIL: 1', out.getvalue())


if __name__ == '__main__':
    unittest.main()
