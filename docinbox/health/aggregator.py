"""Health aggregation: probe each dependency in isolation, roll up one status."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping
from typing import TYPE_CHECKING

from docinbox.health.probes import CredentialProbe, DatabaseProbe, Probe
from docinbox.models import HealthReport, HealthStatus, ProbeResult, ServiceStatus

if TYPE_CHECKING:
    from docinbox.config import AppConfig
    from docinbox.observability.logger import StructuredLogger


def default_probes(config: AppConfig) -> dict[str, Probe]:
    return {
        "database": DatabaseProbe(config.supabase_url, config.supabase_anon_key),
        "ai": CredentialProbe(config.ai_configured),
        "sms": CredentialProbe(config.sms_configured),
    }


class HealthAggregator:
    """Builds a fresh HealthReport per call.

    Probes run concurrently; one failing probe marks only its own service
    unhealthy. If the roll-up itself breaks, the report is ``unhealthy``.
    """

    def __init__(
        self,
        probes: Mapping[str, Probe],
        logger: StructuredLogger,
        environment: str,
        version: str,
        started_at: float | None = None,
    ) -> None:
        self._probes = dict(probes)
        self._logger = logger
        self._environment = environment
        self._version = version
        self._started_at = time.monotonic() if started_at is None else started_at

    async def check(self) -> HealthReport:
        report = HealthReport(
            uptime=round(time.monotonic() - self._started_at, 3),
            environment=self._environment,
            version=self._version,
            services={name: ServiceStatus.UNKNOWN for name in self._probes},
            checks={name: False for name in self._probes},
        )

        try:
            names = list(self._probes)
            results = await asyncio.gather(
                *(self._run_probe(name, self._probes[name]) for name in names),
            )
            for name, result in zip(names, results, strict=True):
                report.services[name] = result.status
                report.checks[name] = result.ok

            all_ok = all(report.checks.values())
            report.status = HealthStatus.HEALTHY if all_ok else HealthStatus.DEGRADED
        except Exception as exc:
            self._logger.error("Health check failed", error=exc)
            report.status = HealthStatus.UNHEALTHY

        return report

    async def _run_probe(self, name: str, probe: Probe) -> ProbeResult:
        try:
            return await probe.check()
        except Exception as exc:
            self._logger.error(
                f"{_label(name)} health check failed", {"service": name}, exc,
            )
            return ProbeResult(status=ServiceStatus.UNHEALTHY, ok=False)


def _label(name: str) -> str:
    return {"database": "Database", "ai": "AI service", "sms": "SMS service"}.get(
        name, name,
    )
