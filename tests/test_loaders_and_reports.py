import contextlib
import dataclasses
import io
import os
import tempfile
import unittest
from pathlib import Path

import pandas as pd
import yaml
from scipy.io import loadmat

from init_FragmentLoader.core.model import PlatformFacts
from init_FragmentLoader.core.reports import build_dataframe, write_report
from init_FragmentLoader.core.plotting import save_timing_plot
from init_FragmentLoader.core.runlog import RunLog
from init_FragmentLoader.core.session import run_session
from init_FragmentLoader.core.settings import LoaderSettings, parse_visibility, settings_from_config
from init_FragmentLoader.loaders import python_loader, yaml_loader
from init_FragmentLoader.main import main
from init_FragmentLoader.utils.detect import apply_overrides, detect_platform


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


class PythonLoaderTests(unittest.TestCase):
    def _settings(self, compile_enabled):
        return LoaderSettings(compile=compile_enabled)

    def test_fragments_share_a_namespace(self):
        with tempfile.TemporaryDirectory() as tmp:
            d = Path(tmp)
            _write(d / "00_util.py", "def greet(name):\n    return 'hi ' + name\n")
            _write(d / "10_use.py", "message = greet('there')\n")
            loader = python_loader.PythonFragmentLoader()
            session = run_session(d, PlatformFacts(), self._settings(False), loader=loader)
            self.assertEqual("hi there", loader.namespace["message"])
            self.assertFalse(session.run_log.has_failures)

    def test_compile_enabled_builds_pyc_and_reuses_it(self):
        with tempfile.TemporaryDirectory() as tmp:
            d = Path(tmp)
            src = _write(d / "00_value.py", "value = 41 + 1\n")
            os.utime(src, (1_000_000, 1_000_000))
            loader = python_loader.PythonFragmentLoader()
            first = run_session(d, PlatformFacts(), self._settings(True),
                                loader=loader, compiler=python_loader.compile_fragment)
            self.assertEqual(42, loader.namespace["value"])
            self.assertTrue((d / "00_value.pyc").is_file())
            self.assertTrue(first.run_log.successes[0].name.endswith("00_value.pyc"))

            calls = []

            def spy(source, compiled):
                calls.append(source)
                python_loader.compile_fragment(source, compiled)

            second = run_session(d, PlatformFacts(), self._settings(True),
                                 loader=python_loader.PythonFragmentLoader(), compiler=spy)
            self.assertEqual([], calls)
            self.assertEqual(1, len(second.run_log.successes))

    def test_syntax_error_is_recorded_and_others_still_load(self):
        with tempfile.TemporaryDirectory() as tmp:
            d = Path(tmp)
            _write(d / "00_ok.py", "a = 1\n")
            _write(d / "10_broken.py", "def oops(:\n")
            _write(d / "20_ok.py", "b = a + 1\n")
            for compile_enabled in (False, True):
                loader = python_loader.PythonFragmentLoader()
                session = run_session(d, PlatformFacts(), self._settings(compile_enabled),
                                      loader=loader, compiler=python_loader.compile_fragment)
                self.assertEqual(2, loader.namespace["b"])
                self.assertEqual(1, len(session.run_log.failures))
                self.assertIn("10_broken", session.run_log.failures[0].name)

    def test_runtime_error_message_is_kept_verbatim(self):
        with tempfile.TemporaryDirectory() as tmp:
            d = Path(tmp)
            _write(d / "00_raise.py", "raise ValueError('bad setting: colour')\n")
            session = run_session(d, PlatformFacts(), self._settings(False),
                                  loader=python_loader.PythonFragmentLoader())
            self.assertEqual("bad setting: colour", session.run_log.failures[0].message)


class YamlLoaderTests(unittest.TestCase):
    def _settings(self, compile_enabled):
        return settings_from_config({"loader": {"kind": "yaml", "compile": compile_enabled}})

    def test_later_fragments_override_earlier_keys(self):
        with tempfile.TemporaryDirectory() as tmp:
            d = Path(tmp)
            _write(d / "00_base.yaml", "a: 1\nb: 2\n")
            _write(d / "10_over.yaml", "b: 3\n")
            _write(d / "linux-only.yaml", "os: linux\n")
            loader = yaml_loader.YamlFragmentLoader()
            run_session(d, PlatformFacts(linux=True), self._settings(False), loader=loader)
            self.assertEqual({"a": 1, "b": 3, "os": "linux"}, loader.namespace)

    def test_compile_enabled_writes_pickle(self):
        with tempfile.TemporaryDirectory() as tmp:
            d = Path(tmp)
            _write(d / "00_base.yaml", "name: demo\n")
            loader = yaml_loader.YamlFragmentLoader()
            session = run_session(d, PlatformFacts(), self._settings(True),
                                  loader=loader, compiler=yaml_loader.compile_fragment)
            self.assertTrue((d / "00_base.pkl").is_file())
            self.assertEqual({"name": "demo"}, loader.namespace)
            self.assertTrue(session.run_log.successes[0].name.endswith("00_base.pkl"))

    def test_non_mapping_fragment_fails(self):
        with tempfile.TemporaryDirectory() as tmp:
            d = Path(tmp)
            _write(d / "00_list.yaml", "- a\n- b\n")
            _write(d / "01_empty.yaml", "")
            loader = yaml_loader.YamlFragmentLoader()
            session = run_session(d, PlatformFacts(), self._settings(False), loader=loader)
            self.assertEqual(1, len(session.run_log.failures))
            self.assertIn("must be a mapping", session.run_log.failures[0].message)
            self.assertEqual(1, len(session.run_log.successes))


class SettingsTests(unittest.TestCase):
    def test_defaults(self):
        s = settings_from_config({})
        self.assertEqual("python", s.kind)
        self.assertEqual((".py", ".pyc"), (s.source_suffix, s.compiled_suffix))
        self.assertFalse(s.compile)
        self.assertEqual("always", s.show_log)
        self.assertTrue(s.default_pattern.search("00_util.py"))
        self.assertFalse(s.default_pattern.search("0_util.py"))
        self.assertEqual(7, len(s.platform_patterns))

    def test_partial_platform_override(self):
        s = settings_from_config({"loader": {"platform_patterns": {"linux": "^gnu-"}}})
        self.assertEqual("^gnu-", s.platform_patterns["linux"].pattern)
        self.assertEqual("^bsd-", s.platform_patterns["bsd"].pattern)

    def test_visibility_aliases(self):
        self.assertEqual("errors_only", parse_visibility("errorsOnly"))
        self.assertEqual("errors_only", parse_visibility("error-only"))
        self.assertEqual("always", parse_visibility(True))
        self.assertEqual("never", parse_visibility(False))
        self.assertEqual("never", parse_visibility(None))
        with self.assertRaises(ValueError):
            parse_visibility("sometimes")

    def test_invalid_values_raise(self):
        for loader in ({"kind": "toml"},
                       {"default_pattern": "("},
                       {"platform_patterns": {"solaris": "^sun-"}},
                       {"source_suffix": ".x", "compiled_suffix": ".x"}):
            with self.assertRaises(ValueError):
                settings_from_config({"loader": loader})


class DetectTests(unittest.TestCase):
    def test_headless_linux(self):
        facts = detect_platform(env={}, platform="linux")
        self.assertTrue(facts.linux)
        self.assertFalse(facts.graphical_display)
        self.assertFalse(facts.windows or facts.darwin or facts.bsd)

    def test_linux_with_display(self):
        self.assertTrue(detect_platform(env={"DISPLAY": ":0"}, platform="linux").graphical_display)

    def test_bsd_and_windows(self):
        self.assertTrue(detect_platform(env={}, platform="freebsd14").bsd)
        win = detect_platform(env={}, platform="win32")
        self.assertTrue(win.windows)
        self.assertTrue(win.graphical_display)

    def test_darwin_over_ssh_is_not_cocoa(self):
        facts = detect_platform(env={"SSH_CONNECTION": "1 2 3 4"}, platform="darwin")
        self.assertTrue(facts.darwin)
        self.assertFalse(facts.cocoa)
        self.assertFalse(facts.graphical_display)

    def test_overrides(self):
        facts = apply_overrides(PlatformFacts(), {"platform": {"windows": True, "meadow": 1}})
        self.assertEqual(PlatformFacts(windows=True, meadow=True), facts)
        with self.assertRaises(ValueError):
            apply_overrides(PlatformFacts(), {"platform": {"amiga": True}})


class ReportTests(unittest.TestCase):
    def _log(self):
        log = RunLog()
        log.record_success("/inits/00_a.py", 0.002)
        log.record_failure("/inits/05_bad.py", "NameError: x")
        log.record_success("/inits/10_b.py", 0.010)
        return log

    def test_dataframe_rows(self):
        df = build_dataframe(self._log())
        self.assertEqual(["ok", "ok", "error", "TOTAL"], df["status"].tolist())
        self.assertEqual("/inits/10_b.py", df["fragment"].iloc[1])
        self.assertAlmostEqual(0.012, df["elapsed_s"].iloc[-1])
        self.assertIn("10_b.py", df["message"].iloc[-1])

    def test_csv_and_mat(self):
        with tempfile.TemporaryDirectory() as tmp, contextlib.redirect_stdout(io.StringIO()):
            base = Path(tmp) / "out" / "init_log"
            write_report(self._log(), base, "init log", fmt="both", mat_variable="runs")
            df = pd.read_csv(base.with_suffix(".csv"))
            self.assertEqual(4, len(df))
            self.assertIn("NameError: x", df["message"].fillna("").tolist())
            self.assertIn("runs", loadmat(base.with_suffix(".mat")))

    def test_empty_log_writes_nothing(self):
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp) / "init_log"
            write_report(RunLog(), base, "init log")
            self.assertFalse(base.with_suffix(".csv").exists())

    def test_timing_plot(self):
        with tempfile.TemporaryDirectory() as tmp, contextlib.redirect_stdout(io.StringIO()):
            out = save_timing_plot(self._log(), Path(tmp))
            self.assertTrue(out.is_file())
            self.assertIsNone(save_timing_plot(RunLog(), Path(tmp) / "none"))


class MainTests(unittest.TestCase):
    def _run(self, tmp: Path, fragments: dict, **loader_cfg):
        inits = tmp / "inits"
        inits.mkdir()
        for name, text in fragments.items():
            _write(inits / name, text)
        cfg = {
            "loader": dict({"directory": str(inits), "show_log": "errors_only"}, **loader_cfg),
            "platform": {"windows": False, "linux": False, "bsd": False, "darwin": False,
                         "cocoa": False, "graphical_display": True},
            "reports": {"output": str(tmp / "reports"), "format": "csv", "timing_plot": False},
            "logging": {"verbose": False},
        }
        cfg_path = _write(tmp / "config.yaml", yaml.safe_dump(cfg))
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            code = main([str(cfg_path)])
        return code, out.getvalue()

    def test_clean_run(self):
        with tempfile.TemporaryDirectory() as tmp:
            code, out = self._run(Path(tmp), {"00_a.py": "a = 1\n"})
            self.assertEqual(0, code)
            self.assertTrue((Path(tmp) / "reports" / "init_log.csv").is_file())
            self.assertNotIn("error log", out)

    def test_failures_show_log_and_exit_nonzero(self):
        with tempfile.TemporaryDirectory() as tmp:
            code, out = self._run(Path(tmp), {"00_a.py": "a = 1\n", "01_b.py": "raise KeyError('k')\n"})
            self.assertEqual(1, code)
            self.assertIn("------- error log -------", out)
            self.assertIn("01_b.py", out)

    def test_show_log_never_keeps_failures_quiet(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertNoLogs("init_FragmentLoader", level="WARNING"):
                code, out = self._run(Path(tmp), {"00_bad.py": "raise RuntimeError('quiet-boom')\n"},
                                      show_log="never")
            self.assertEqual(1, code)
            self.assertNotIn("quiet-boom", out)
            self.assertNotIn("00_bad.py", out)

    def test_missing_directory(self):
        with tempfile.TemporaryDirectory() as tmp:
            cfg_path = _write(Path(tmp) / "config.yaml",
                              yaml.safe_dump({"loader": {"directory": str(Path(tmp) / "missing")},
                                              "logging": {"verbose": False}}))
            with contextlib.redirect_stdout(io.StringIO()):
                self.assertEqual(2, main([str(cfg_path)]))


if __name__ == "__main__":
    unittest.main()
