from __future__ import annotations

import py_compile
import unittest
from pathlib import Path


REPO_ROOT = Path(__file__).resolve().parent.parent


def _sources(*dirs: str):
    for d in dirs:
        yield from sorted((REPO_ROOT / d).rglob("*.py"))


class TestSourcesCompileContract(unittest.TestCase):
    def test_package_and_tests_compile(self) -> None:
        files = list(_sources("pollgrid", "tests"))
        self.assertTrue(any(p.name == "api.py" for p in files), "pollgrid/api.py not found")
        for path in files:
            with self.subTest(path=str(path.relative_to(REPO_ROOT))):
                # doraise turns syntax errors into PyCompileError instead of printing them
                py_compile.compile(str(path), cfile=None, doraise=True, optimize=0)

    def test_util_modules_are_present(self) -> None:
        names = {p.stem for p in (REPO_ROOT / "pollgrid" / "util").glob("*.py")}
        self.assertLessEqual({"datekeys", "timeparse", "timers", "console"}, names)


if __name__ == "__main__":
    unittest.main(verbosity=2)
