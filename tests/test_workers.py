"""ConvertWorker / ProbeWorker 테스트.

Qt 이벤트 루프 없이 worker.run()을 일반 스레드에서 실행하고
시그널을 DirectConnection 람다로 수집한다.
"""

from __future__ import annotations

import subprocess
import threading

import pytest
from PySide6.QtCore import Qt

from conftest import FAIL_SCRIPT, SLOW_SCRIPT, SUCCESS_SCRIPT, make_media, make_runner
from convertify.models.conversion import JobState
from convertify.services.conversion_log import LogStore
from convertify.services.convert_service import ConvertService
from convertify.workers.convert_worker import ConvertWorker
from convertify.workers.probe_worker import ProbeWorker

JOIN_TIMEOUT = 15.0


def _service(script=SUCCESS_SCRIPT) -> ConvertService:
    return ConvertService(runner=make_runner(script), log_store=LogStore())


class _Recorder:
    def __init__(self, worker: ConvertWorker):
        self.progress, self.finished, self.errors, self.cancelled, self.status = [], [], [], [], []
        worker.progress.connect(lambda s: self.progress.append(s), Qt.ConnectionType.DirectConnection)
        worker.finished.connect(lambda r: self.finished.append(r), Qt.ConnectionType.DirectConnection)
        worker.error.connect(lambda e: self.errors.append(e), Qt.ConnectionType.DirectConnection)
        worker.cancelled.connect(lambda r: self.cancelled.append(r), Qt.ConnectionType.DirectConnection)
        worker.status_update.connect(lambda m: self.status.append(m), Qt.ConnectionType.DirectConnection)

    @property
    def terminal_count(self) -> int:
        return len(self.finished) + len(self.errors) + len(self.cancelled)


def _run(worker: ConvertWorker) -> None:
    t = threading.Thread(target=worker.run)
    t.start()
    t.join(timeout=JOIN_TIMEOUT)
    assert not t.is_alive(), "Worker 스레드가 제한 시간 내에 종료되어야 함"


class TestConvertWorker:
    def test_success(self, tmp_path):
        worker = ConvertWorker(_service(), str(tmp_path / "in.mov"), str(tmp_path / "out.mp4"),
                               preset_id="mp4_h264", media=make_media())
        rec = _Recorder(worker)
        _run(worker)

        assert rec.terminal_count == 1
        assert len(rec.finished) == 1
        assert rec.finished[0].state is JobState.COMPLETED
        assert [s.percent for s in rec.progress] == pytest.approx([20.0, 40.0, 60.0, 80.0])
        assert rec.status

    def test_failure_emits_error(self, tmp_path):
        worker = ConvertWorker(_service(FAIL_SCRIPT), str(tmp_path / "in.mov"),
                               str(tmp_path / "out.mp4"), preset_id="mp4_h264", media=make_media())
        rec = _Recorder(worker)
        _run(worker)

        assert rec.terminal_count == 1
        assert "Unknown encoder" in rec.errors[0]

    def test_probe_failure_emits_error(self, tmp_path):
        worker = ConvertWorker(_service(), str(tmp_path / "missing.mov"),
                               str(tmp_path / "out.mp4"), preset_id="mp4_h264")
        rec = _Recorder(worker)
        _run(worker)

        assert rec.terminal_count == 1
        assert "File not found" in rec.errors[0]

    def test_build_failure_emits_error(self, tmp_path):
        service = _service()
        worker = ConvertWorker(service, str(tmp_path / "in.mov"), str(tmp_path / "out.mp4"),
                               preset_id="betamax", media=make_media())
        rec = _Recorder(worker)
        _run(worker)

        assert rec.terminal_count == 1
        assert "betamax" in rec.errors[0]
        service.runner.run_async.assert_not_called()

    def test_cancel_before_run(self, tmp_path):
        service = _service()
        worker = ConvertWorker(service, str(tmp_path / "in.mov"), str(tmp_path / "out.mp4"),
                               preset_id="mp4_h264", media=make_media())
        rec = _Recorder(worker)
        worker.cancel()
        _run(worker)

        assert rec.terminal_count == 1
        assert rec.cancelled[0].cancelled
        service.runner.run_async.assert_not_called()

    def test_cancel_during_conversion(self, tmp_path):
        worker = ConvertWorker(_service(SLOW_SCRIPT), str(tmp_path / "in.mov"),
                               str(tmp_path / "out.mp4"), preset_id="mp4_h264", media=make_media())
        first_progress = threading.Event()
        rec = _Recorder(worker)
        worker.progress.connect(lambda _s: first_progress.set(), Qt.ConnectionType.DirectConnection)

        t = threading.Thread(target=worker.run)
        t.start()
        assert first_progress.wait(JOIN_TIMEOUT)
        worker.cancel()
        t.join(timeout=JOIN_TIMEOUT)

        assert not t.is_alive()
        assert rec.terminal_count == 1
        assert len(rec.cancelled) == 1
        assert not (tmp_path / "out.mp4").exists()


class TestProbeWorker:
    def test_success(self, tmp_path):
        path = tmp_path / "movie.mov"
        path.write_bytes(b"\x00")
        service = _service()
        service.runner.run_ffprobe.return_value = subprocess.CompletedProcess(
            args=[], returncode=0, stdout='{"format": {"duration": "3.5"}, "streams": []}', stderr=""
        )
        worker = ProbeWorker(service, path)
        results, errors = [], []
        worker.finished.connect(lambda m: results.append(m))
        worker.error.connect(lambda e: errors.append(e))

        worker.run()

        assert errors == []
        assert results[0].duration == 3.5

    def test_error(self, tmp_path):
        worker = ProbeWorker(_service(), tmp_path / "missing.mov")
        results, errors = [], []
        worker.finished.connect(lambda m: results.append(m))
        worker.error.connect(lambda e: errors.append(e))

        worker.run()

        assert results == []
        assert "File not found" in errors[0]
