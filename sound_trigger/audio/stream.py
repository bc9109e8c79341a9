from __future__ import annotations

import abc
import contextlib
import logging
from typing import Any, Callable, Iterator, Optional

log = logging.getLogger(__name__)

__all__ = ["PermissionDenied", "open_input", "select_backend"]


class PermissionDenied(RuntimeError):
    """The microphone could not be opened (denied, missing or in use)."""


class InputBackend(abc.ABC):
    """Host-API specific way of opening an input stream."""

    #: Higher priority back-ends are preferred when multiple match.
    priority: int = 0

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(priority={self.priority})"

    @abc.abstractmethod
    def matches_hostapi(self, hostapi_info: dict[str, Any]) -> bool:
        """Return ``True`` if this backend supports ``hostapi_info``."""

    def attempts(self, kwargs: dict[str, Any]) -> Iterator[dict[str, Any]]:
        """Yield stream arguments to try, most preferred first."""
        yield kwargs


class WasapiBackend(InputBackend):
    """Exclusive mode first, shared mode if the device refuses."""

    priority = 20

    def matches_hostapi(self, hostapi_info: dict[str, Any]) -> bool:
        return "WASAPI" in hostapi_info.get("name", "")

    def attempts(self, kwargs: dict[str, Any]) -> Iterator[dict[str, Any]]:
        import sounddevice as sd

        yield dict(kwargs, extra_settings=sd.WasapiSettings(exclusive=True))
        yield kwargs


class AlsaBackend(InputBackend):
    """Requested device first, then ``sysdefault``."""

    priority = 10

    def matches_hostapi(self, hostapi_info: dict[str, Any]) -> bool:
        return "ALSA" in hostapi_info.get("name", "")

    def attempts(self, kwargs: dict[str, Any]) -> Iterator[dict[str, Any]]:
        yield kwargs
        if kwargs.get("device") != "sysdefault":
            yield dict(kwargs, device="sysdefault")


class DefaultBackend(InputBackend):
    priority = 0

    def matches_hostapi(self, hostapi_info: dict[str, Any]) -> bool:
        return True


_BACKENDS: list[InputBackend] = sorted(
    (WasapiBackend(), AlsaBackend(), DefaultBackend()),
    key=lambda b: b.priority,
    reverse=True,
)


def select_backend(device: Optional[int | str] = None) -> InputBackend:
    """Return the best backend for the host API of ``device``."""
    import sounddevice as sd

    try:
        if device is None:
            hostapi_idx = sd.default.hostapi
        else:
            hostapi_idx = sd.query_devices(device, "input").get(
                "hostapi", sd.default.hostapi
            )
        info = sd.query_hostapis(hostapi_idx)
    except Exception as exc:
        log.debug("Host API lookup failed (%s); using default backend", exc)
        return _BACKENDS[-1]

    for b in _BACKENDS:
        if b.matches_hostapi(info):
            log.debug("Selected backend %s for host API %s", b, info.get("name"))
            return b
    return _BACKENDS[-1]


@contextlib.contextmanager
def open_input(
    *,
    samplerate: int,
    blocksize: int,
    callback: Callable[..., None],
    channels: int = 1,
    dtype: str = "float32",
    device: Optional[int | str] = None,
) -> Iterator[Any]:
    """Yield a started :class:`sounddevice.InputStream`.

    Raises :class:`PermissionDenied` when every attempt fails.
    """
    import sounddevice as sd

    kwargs = dict(
        samplerate=samplerate,
        blocksize=blocksize,
        channels=channels,
        dtype=dtype,
        device=device,
        callback=callback,
    )
    backend = select_backend(device)
    stream = None
    last_exc: Exception | None = None
    for attempt in backend.attempts(kwargs):
        try:
            stream = sd.InputStream(**attempt)
            stream.start()
            break
        except sd.PortAudioError as exc:
            log.debug("%s open failed for %s: %s", backend, attempt.get("device") or "<default>", exc)
            last_exc = exc
            stream = None
    if stream is None:
        raise PermissionDenied("Failed to open audio input device") from last_exc
    try:
        yield stream
    finally:
        with contextlib.suppress(Exception):
            stream.stop()
            stream.close()
