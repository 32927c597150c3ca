import os

import pytest

import run


@pytest.mark.skipif(os.name == "nt", reason="named mutex is exercised on Windows only")
def test_single_instance_is_always_first_off_windows():
    with run.single_instance() as first:
        assert first
        with run.single_instance() as second:
            assert second


def test_main_reports_second_instance(monkeypatch, capsys):
    from contextlib import contextmanager

    @contextmanager
    def taken():
        yield False

    monkeypatch.setattr(run, "single_instance", taken)
    monkeypatch.setattr(run, "_setup_logging", lambda: None)
    with pytest.raises(SystemExit) as exc:
        run.main()
    assert exc.value.code == 0
    assert "already running" in capsys.readouterr().err
