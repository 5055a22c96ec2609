"""
Tests for the health-monitor reaper.

Covers log classification, reclaiming of finished health-check jobs, and the
start/stop lifecycle of the background loop.
"""

import asyncio
from unittest.mock import AsyncMock
import pytest

pytest.importorskip("kubernetes")

from kubernetes import client

from kaas.exceptions import ResourceKind
from kaas.services.provisioning.reaper import (
    HealthMonitorReaper,
    HealthStatus,
    combine_statuses,
    is_job_finished,
    parse_health_status,
)
from kaas.utils.resource_naming import HEALTH_CHECK_LABEL


def job(name, label="demo", succeeded=1, active=0):
    return client.V1Job(
        metadata=client.V1ObjectMeta(name=name, labels={HEALTH_CHECK_LABEL: label}),
        status=client.V1JobStatus(succeeded=succeeded or None, active=active or None)
    )


def pod(name, job_name):
    return client.V1Pod(
        metadata=client.V1ObjectMeta(name=name, labels={"job-name": job_name}),
        status=client.V1PodStatus(phase="Succeeded")
    )


@pytest.mark.unit
class TestParseHealthStatus:
    """Test suite for probe log classification."""

    def test_ok_is_healthy(self):
        assert parse_health_status(b"HTTP/1.1 200 OK\r\n") == HealthStatus.HEALTHY

    def test_redirect_is_healthy(self):
        assert parse_health_status(b"HTTP/2 301\r\n") == HealthStatus.HEALTHY

    def test_server_error_is_unhealthy(self):
        assert parse_health_status(b"HTTP/1.1 503 Service Unavailable\r\n") == HealthStatus.UNHEALTHY

    def test_last_status_line_wins(self):
        log = b"HTTP/1.1 500 Internal Server Error\r\nHTTP/1.1 200 OK\r\n"
        assert parse_health_status(log) == HealthStatus.HEALTHY

    def test_empty_log_is_unknown(self):
        assert parse_health_status(b"") == HealthStatus.UNKNOWN

    def test_no_status_line_is_unknown(self):
        assert parse_health_status(b"curl: (7) Failed to connect\n") == HealthStatus.UNKNOWN

    def test_combine(self):
        assert combine_statuses([HealthStatus.HEALTHY, HealthStatus.UNHEALTHY]) == HealthStatus.UNHEALTHY
        assert combine_statuses([HealthStatus.UNKNOWN, HealthStatus.HEALTHY]) == HealthStatus.HEALTHY
        assert combine_statuses([]) == HealthStatus.UNKNOWN

    def test_is_job_finished(self):
        assert is_job_finished(job("a", succeeded=1))
        assert not is_job_finished(job("b", succeeded=0, active=1))
        assert not is_job_finished(client.V1Job(metadata=client.V1ObjectMeta(name="c")))


@pytest.mark.unit
class TestReapOnce:
    """Test suite for a single reaper iteration."""

    @pytest.mark.asyncio
    async def test_finished_job_is_read_and_deleted(self, fake_k8s):
        fake_k8s.put(ResourceKind.JOB, job("demo-cronjob-1"))
        fake_k8s.put(ResourceKind.POD, pod("demo-cronjob-1-abcde", "demo-cronjob-1"))
        fake_k8s.logs["demo-cronjob-1-abcde"] = b"HTTP/1.1 200 OK\r\n" * 6

        reaper = HealthMonitorReaper(fake_k8s, "demo")
        records = await reaper.reap_once()

        assert len(records) == 1
        assert records[0].job_name == "demo-cronjob-1"
        assert records[0].pod_names == ["demo-cronjob-1-abcde"]
        assert records[0].status == HealthStatus.HEALTHY
        assert reaper.last_status == HealthStatus.HEALTHY
        assert reaper.last_checked_at is not None
        assert fake_k8s.names(ResourceKind.JOB) == []

    @pytest.mark.asyncio
    async def test_running_job_is_left_alone(self, fake_k8s):
        fake_k8s.put(ResourceKind.JOB, job("demo-cronjob-2", succeeded=0, active=1))

        records = await HealthMonitorReaper(fake_k8s, "demo").reap_once()

        assert records == []
        assert fake_k8s.names(ResourceKind.JOB) == ["demo-cronjob-2"]

    @pytest.mark.asyncio
    async def test_only_own_jobs_are_reaped(self, fake_k8s):
        fake_k8s.put(ResourceKind.JOB, job("demo-cronjob-1", label="demo"))
        fake_k8s.put(ResourceKind.JOB, job("shop-cronjob-1", label="shop"))

        await HealthMonitorReaper(fake_k8s, "demo").reap_once()

        assert fake_k8s.names(ResourceKind.JOB) == ["shop-cronjob-1"]

    @pytest.mark.asyncio
    async def test_unhealthy_job_is_still_deleted(self, fake_k8s):
        fake_k8s.put(ResourceKind.JOB, job("demo-cronjob-3"))
        fake_k8s.put(ResourceKind.POD, pod("demo-cronjob-3-xyz", "demo-cronjob-3"))
        fake_k8s.logs["demo-cronjob-3-xyz"] = b"HTTP/1.1 502 Bad Gateway\r\n"

        reaper = HealthMonitorReaper(fake_k8s, "demo")
        records = await reaper.reap_once()

        assert records[0].status == HealthStatus.UNHEALTHY
        assert reaper.last_status == HealthStatus.UNHEALTHY
        assert fake_k8s.names(ResourceKind.JOB) == []

    @pytest.mark.asyncio
    async def test_log_failure_is_absorbed(self, fake_k8s):
        fake_k8s.put(ResourceKind.JOB, job("demo-cronjob-4"))
        fake_k8s.put(ResourceKind.POD, pod("demo-cronjob-4-pod", "demo-cronjob-4"))
        fake_k8s.fail("log", "pod", "demo-cronjob-4-pod")

        records = await HealthMonitorReaper(fake_k8s, "demo").reap_once()

        assert records[0].status == HealthStatus.UNKNOWN
        assert fake_k8s.names(ResourceKind.JOB) == []

    @pytest.mark.asyncio
    async def test_delete_failure_is_absorbed(self, fake_k8s):
        fake_k8s.put(ResourceKind.JOB, job("demo-cronjob-5"))
        fake_k8s.put(ResourceKind.JOB, job("demo-cronjob-6"))
        fake_k8s.fail("delete", ResourceKind.JOB, "demo-cronjob-5")

        records = await HealthMonitorReaper(fake_k8s, "demo").reap_once()

        assert len(records) == 2
        assert fake_k8s.names(ResourceKind.JOB) == ["demo-cronjob-5"]

    @pytest.mark.asyncio
    async def test_list_failure_is_absorbed(self, fake_k8s):
        fake_k8s.fail("list", ResourceKind.JOB)

        assert await HealthMonitorReaper(fake_k8s, "demo").reap_once() == []

    @pytest.mark.asyncio
    async def test_job_deleted_with_background_propagation(self, fake_k8s):
        fake_k8s.put(ResourceKind.JOB, job("demo-cronjob-7"))
        fake_k8s.delete = AsyncMock()

        await HealthMonitorReaper(fake_k8s, "demo").reap_once()

        fake_k8s.delete.assert_awaited_once_with(
            ResourceKind.JOB, "demo-cronjob-7", propagation_policy="Background"
        )


@pytest.mark.unit
class TestReaperLifecycle:
    """Test suite for the background loop and the registry."""

    @pytest.mark.asyncio
    async def test_loop_reaps_until_stopped(self, fake_k8s):
        fake_k8s.put(ResourceKind.JOB, job("demo-cronjob-1"))
        reaper = HealthMonitorReaper(fake_k8s, "demo", interval=0.01)

        reaper.start()
        assert reaper.running
        for _ in range(100):
            if not fake_k8s.names(ResourceKind.JOB):
                break
            await asyncio.sleep(0.01)
        await reaper.stop()

        assert fake_k8s.names(ResourceKind.JOB) == []
        assert reaper.stopped
        assert not reaper.running

    @pytest.mark.asyncio
    async def test_loop_survives_failed_iteration(self, fake_k8s):
        reaper = HealthMonitorReaper(fake_k8s, "demo", interval=0.01)
        calls = []

        async def flaky_reap_once():
            calls.append(1)
            if len(calls) == 1:
                raise AttributeError("'NoneType' object has no attribute 'name'")
            return []

        reaper.reap_once = flaky_reap_once
        reaper.start()
        for _ in range(100):
            if len(calls) >= 2:
                break
            await asyncio.sleep(0.01)

        try:
            assert len(calls) >= 2
            assert reaper.running
        finally:
            await reaper.stop()

    @pytest.mark.asyncio
    async def test_stop_is_prompt(self, fake_k8s):
        reaper = HealthMonitorReaper(fake_k8s, "demo", interval=3600)
        reaper.start()
        await asyncio.sleep(0)

        await asyncio.wait_for(reaper.stop(), timeout=1)

        assert not reaper.running

    @pytest.mark.asyncio
    async def test_registry_start_is_idempotent(self, reapers):
        try:
            first = reapers.start("demo")
            second = reapers.start("demo")
            assert first is second
        finally:
            await reapers.stop_all()

    @pytest.mark.asyncio
    async def test_registry_stop_unknown(self, reapers):
        assert await reapers.stop("missing") is False
