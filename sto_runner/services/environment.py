"""Target service lifecycle: detect, start, prime and stop the HTTP service."""

from __future__ import annotations

import logging
import os
import signal
import socket
import subprocess
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
from urllib import error, request

from sto_common.errors import ServiceUnavailableError
from sto_runner.models.config import OrchestratorConfig

logger = logging.getLogger(__name__)


class PrimeStatus(str, Enum):
    CLEARED = "cleared"
    ENDPOINT_MISSING = "endpoint_missing"
    UNREACHABLE = "unreachable"
    FAILED = "failed"


@dataclass
class PrimeResult:
    """Outcome of the cache-invalidation attempts."""

    status: PrimeStatus
    attempts: int
    http_status: int | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status in {PrimeStatus.CLEARED, PrimeStatus.ENDPOINT_MISSING}


def port_in_use(host: str, port: int, timeout: float = 1.0) -> bool:
    """Return True when something accepts TCP connections on host:port."""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


class EnvironmentLifecycle:
    """Own or reuse the target service and invalidate its cache before a run."""

    def __init__(
        self,
        config: OrchestratorConfig,
        *,
        probe: Callable[[str, int, float], bool] = port_in_use,
        spawn: Callable[..., subprocess.Popen] = subprocess.Popen,
        opener: Callable[..., Any] = request.urlopen,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self._probe = probe
        self._spawn = spawn
        self._opener = opener
        self._sleep = sleep
        self._process: subprocess.Popen | None = None

    @property
    def owns_service(self) -> bool:
        return self._process is not None

    def prepare(self) -> PrimeResult:
        """Start the service when needed, then prime its cache.

        Raises ServiceUnavailableError when the service this lifecycle started
        cannot be reached at all.
        """
        host = self.config.service_host
        port = int(self.config.port or 0)
        if self._probe(host, port, self.config.probe_timeout_seconds):
            logger.info("Service already listening on %s:%s; reusing it", host, port)
        elif self.config.skip_service:
            logger.info("Service not detected on %s:%s and start is skipped", host, port)
        else:
            self.start_service()

        result = self.prime_cache()
        if result.status == PrimeStatus.UNREACHABLE and self.owns_service:
            raise ServiceUnavailableError(
                "Managed service is unreachable",
                context={
                    "url": self.config.cache_clear_url,
                    "attempts": result.attempts,
                    "errors": result.errors,
                },
            )
        if not result.ok:
            logger.warning(
                "Cache clear did not succeed (%s); continuing with an externally managed service",
                result.status.value,
            )
        return result

    def start_service(self) -> None:
        """Spawn the service detached from the orchestrator's process group."""
        cmd = list(self.config.service_command)
        logger.info("Starting service: %s (cwd=%s)", " ".join(cmd), self.config.project_root)
        try:
            self._process = self._spawn(
                cmd,
                cwd=self.config.project_root,
                stdin=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as exc:
            raise ServiceUnavailableError(
                "Failed to start service", context={"command": cmd}, cause=exc
            ) from exc
        if self.config.service_warmup_seconds > 0:
            logger.info("Waiting %.1fs for service warm-up", self.config.service_warmup_seconds)
            self._sleep(self.config.service_warmup_seconds)

    def prime_cache(self) -> PrimeResult:
        """POST the cache-invalidation endpoint with bounded retries."""
        url = self.config.cache_clear_url
        attempts = self.config.prime_attempts
        errors: list[str] = []
        last_status: int | None = None
        for attempt in range(1, attempts + 1):
            try:
                req = request.Request(url, data=b"", method="POST")
                with self._opener(  # nosec B310
                    req, timeout=self.config.prime_timeout_seconds
                ) as resp:
                    status = resp.status
                if 200 <= status < 300:
                    logger.info("Service cache cleared via %s", url)
                    return PrimeResult(PrimeStatus.CLEARED, attempt, status, errors)
                last_status = status
                errors.append(f"HTTP {status}")
            except error.HTTPError as exc:
                if exc.code == 404:
                    logger.info("Cache clear endpoint not present (404); continuing")
                    return PrimeResult(PrimeStatus.ENDPOINT_MISSING, attempt, 404, errors)
                last_status = exc.code
                errors.append(f"HTTP {exc.code}")
            except (error.URLError, OSError) as exc:
                errors.append(str(getattr(exc, "reason", exc)))
            logger.debug("Cache clear attempt %s/%s failed: %s", attempt, attempts, errors[-1])
            if attempt < attempts:
                self._sleep(self.config.prime_backoff_seconds)

        status = PrimeStatus.UNREACHABLE if last_status is None else PrimeStatus.FAILED
        return PrimeResult(status, attempts, last_status, errors)

    def stop_service(self) -> None:
        """Terminate the service process group if this lifecycle started it."""
        proc = self._process
        self._process = None
        if proc is None or proc.poll() is not None:
            return
        logger.info("Stopping managed service (pid %s)", proc.pid)
        terminate_process_group(proc, signal.SIGTERM, self.config.service_stop_grace_seconds)


def terminate_process_group(
    proc: subprocess.Popen, sig: int, grace_seconds: float
) -> None:
    """Signal a child's process group, escalating to SIGKILL after a grace period.

    An exception raised while waiting (a signal handler interrupting the
    teardown, for instance) kills the group before propagating.
    """
    try:
        os.killpg(os.getpgid(proc.pid), sig)
    except (ProcessLookupError, PermissionError, OSError):
        try:
            proc.send_signal(sig)
        except OSError:
            return
    try:
        proc.wait(timeout=grace_seconds)
    except subprocess.TimeoutExpired:
        _kill_group(proc)
        proc.wait()
    except BaseException:
        _kill_group(proc)
        raise


def _kill_group(proc: subprocess.Popen) -> None:
    try:
        os.killpg(os.getpgid(proc.pid), signal.SIGKILL)
    except OSError:
        try:
            proc.kill()
        except OSError:
            pass
