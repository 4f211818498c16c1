import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from dupaudit.utils.profiling import PROFILE_ENV, get_profile_dir, profile_function, profile_main


class ProfilingTest(unittest.TestCase):
    def test_disabled_without_environment(self):
        with mock.patch.dict(os.environ) as environ:
            environ.pop(PROFILE_ENV, None)

            self.assertIsNone(get_profile_dir())
            self.assertEqual(42, profile_function(lambda: 42)())

    def test_profile_written_when_enabled(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with mock.patch.dict(os.environ, {PROFILE_ENV: tmpdir}):
                @profile_main
                def main():
                    return 'done'

                self.assertEqual('done', main())

            profiles = list(Path(tmpdir).glob('*/main_*.prof'))
            self.assertEqual(1, len(profiles))


if __name__ == '__main__':
    unittest.main()
