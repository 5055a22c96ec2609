"""
Health-Monitor Reaper

Background loop, one per monitored application, that collects the results of
finished health-check jobs and reclaims them.

Each iteration:
1. List jobs labeled HEALTH_CHECK_LABEL={label}
2. For every finished job, read the logs of its pods and extract the last
   HTTP status line printed by the probe
3. Delete the job (background propagation) whatever the probe said
4. Wait for the poll interval, or until stopped

Errors on individual jobs, pods or deletions are logged and skipped; nothing
inside an iteration stops the loop.
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from .client import KubernetesClient
from ...exceptions import ResourceKind
from ...utils.resource_naming import HEALTH_CHECK_LABEL

logger = logging.getLogger(__name__)

STATUS_LINE = re.compile(rb"HTTP/\d(?:\.\d)?\s+(\d{3})")


class HealthStatus(str, Enum):
    """Outcome of a health probe"""
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


@dataclass
class JobLogRecord:
    """Result extracted from one finished health-check job"""
    job_name: str
    pod_names: List[str] = field(default_factory=list)
    status: HealthStatus = HealthStatus.UNKNOWN


def parse_health_status(log: bytes) -> HealthStatus:
    """
    Classify a probe log by its last HTTP status line.

    2xx and 3xx are healthy, any other code is unhealthy. A log without a
    recognizable status line is unknown.
    """
    matches = STATUS_LINE.findall(log or b"")
    if not matches:
        return HealthStatus.UNKNOWN
    code = int(matches[-1])
    return HealthStatus.HEALTHY if 200 <= code < 400 else HealthStatus.UNHEALTHY


def combine_statuses(statuses: List[HealthStatus]) -> HealthStatus:
    """Any unhealthy pod makes the job unhealthy; otherwise any healthy pod makes it healthy."""
    if HealthStatus.UNHEALTHY in statuses:
        return HealthStatus.UNHEALTHY
    if HealthStatus.HEALTHY in statuses:
        return HealthStatus.HEALTHY
    return HealthStatus.UNKNOWN


def is_job_finished(job) -> bool:
    status = job.status
    if status is None:
        return False
    return bool(status.succeeded or status.failed or status.completion_time)


class HealthMonitorReaper:
    """Polls and reclaims the health-check jobs of one application."""

    def __init__(self, k8s_client: KubernetesClient, label: str, interval: float = 30.0):
        self.k8s_client = k8s_client
        self.label = label
        self.interval = interval
        self.last_status: HealthStatus = HealthStatus.UNKNOWN
        self.last_checked_at: Optional[datetime] = None
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def label_selector(self) -> str:
        return f"{HEALTH_CHECK_LABEL}={self.label}"

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the polling loop on the running event loop."""
        if self.running:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self.run(), name=f"reaper-{self.label}")
        logger.info(f"[REAPER] Started health monitor for {self.label}")

    async def stop(self) -> None:
        """Signal the loop to stop and wait for it to finish."""
        self._stop_event.set()
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info(f"[REAPER] Stopped health monitor for {self.label}")

    async def run(self) -> None:
        while not self.stopped:
            try:
                await self.reap_once()
            except Exception as e:
                logger.error(f"[REAPER] Poll iteration for {self.label} failed: {e}", exc_info=True)
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass

    async def reap_once(self) -> List[JobLogRecord]:
        """Run one poll iteration and return the records of the jobs reclaimed."""
        try:
            jobs = await self.k8s_client.list(ResourceKind.JOB, label_selector=self.label_selector)
        except Exception as e:
            logger.error(f"[REAPER] Failed to list health-check jobs for {self.label}: {e}")
            return []

        records = []
        for job in jobs:
            if self.stopped:
                break
            if not is_job_finished(job):
                continue

            record = await self._inspect_job(job.metadata.name)
            records.append(record)
            self.last_status = record.status
            self.last_checked_at = datetime.utcnow()
            logger.info(f"[REAPER] {self.label}: job {record.job_name} reported {record.status.value}")

            try:
                await self.k8s_client.delete(ResourceKind.JOB, record.job_name, propagation_policy="Background")
            except Exception as e:
                logger.error(f"[REAPER] Failed to delete job {record.job_name}: {e}")

        return records

    async def _inspect_job(self, job_name: str) -> JobLogRecord:
        record = JobLogRecord(job_name=job_name)
        try:
            pods = await self.k8s_client.list(ResourceKind.POD, label_selector=f"job-name={job_name}")
        except Exception as e:
            logger.error(f"[REAPER] Failed to list pods of job {job_name}: {e}")
            return record

        statuses = []
        for pod in pods:
            if self.stopped:
                break
            pod_name = pod.metadata.name
            record.pod_names.append(pod_name)
            try:
                log = await self.k8s_client.read_pod_log(pod_name)
            except Exception as e:
                logger.error(f"[REAPER] Failed to read logs of pod {pod_name}: {e}")
                continue
            statuses.append(parse_health_status(log))

        record.status = combine_statuses(statuses)
        return record


class ReaperRegistry:
    """Keeps one HealthMonitorReaper per monitored application."""

    def __init__(self, k8s_client: KubernetesClient, interval: float = 30.0):
        self.k8s_client = k8s_client
        self.interval = interval
        self._reapers: Dict[str, HealthMonitorReaper] = {}

    def start(self, label: str) -> HealthMonitorReaper:
        """Start monitoring an application; a no-op if it is already monitored."""
        reaper = self._reapers.get(label)
        if reaper is not None and reaper.running:
            return reaper

        reaper = HealthMonitorReaper(self.k8s_client, label, self.interval)
        self._reapers[label] = reaper
        reaper.start()
        return reaper

    def get(self, label: str) -> Optional[HealthMonitorReaper]:
        return self._reapers.get(label)

    async def stop(self, label: str) -> bool:
        """Stop monitoring an application. Returns False if it was not monitored."""
        reaper = self._reapers.pop(label, None)
        if reaper is None:
            return False
        await reaper.stop()
        return True

    async def stop_all(self) -> None:
        for label in list(self._reapers):
            await self.stop(label)
