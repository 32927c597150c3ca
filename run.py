import os
import sys
import ctypes
import logging
from contextlib import contextmanager

log = logging.getLogger("clipkeep")

_MUTEX_NAME = "Local\\ClipKeep.SingleInstance"
_ERROR_ALREADY_EXISTS = 183


def _setup_logging(level: int = logging.WARNING) -> None:
    stream = sys.stderr or open(os.devnull, "w")
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=stream,
    )


@contextmanager
def single_instance(name: str = _MUTEX_NAME):
    """Yield True when no other ClipKeep process holds the named mutex."""
    if os.name != "nt":
        yield True
        return
    kernel32 = ctypes.WinDLL("kernel32", use_last_error=True)
    kernel32.CreateMutexW.argtypes = [ctypes.c_void_p, ctypes.c_bool, ctypes.c_wchar_p]
    kernel32.CreateMutexW.restype = ctypes.c_void_p
    kernel32.CloseHandle.argtypes = [ctypes.c_void_p]

    handle = kernel32.CreateMutexW(None, False, name)
    if not handle:
        log.warning("CreateMutexW failed (error %d)", ctypes.get_last_error())
        yield True
        return
    try:
        yield ctypes.get_last_error() != _ERROR_ALREADY_EXISTS
    finally:
        kernel32.CloseHandle(handle)


def main() -> None:
    _setup_logging()
    with single_instance() as first:
        if not first:
            sys.stderr.write("ClipKeep is already running.\n")
            raise SystemExit(0)
        try:
            from clipkeep.qt_app import ClipKeepApp
        except ModuleNotFoundError as e:
            sys.stderr.write(f"missing dependency {e.name!r}; run: {sys.executable} -m pip install -e .\n")
            raise
        raise SystemExit(ClipKeepApp().run())


if __name__ == "__main__":
    main()
