"""Tests for the distribution coordinator."""

import threading

import pytest

from imc_distribution.adapter import Channel, ChannelAdapter, DistributionStatus, Posted
from imc_distribution.delivery_log import DeliveryLog
from imc_distribution.distributor import EventDistributor
from imc_distribution.errors import InvalidRequest, NoRunnableChannels

from conftest import ScriptedSession


class StubAdapter(ChannelAdapter):
    """Adapter whose primary strategy is a plain callable."""

    def __init__(self, channel, action=None, ready=True):
        super().__init__(ScriptedSession())
        self.channel = channel
        self.provider = f"stub {channel.value}"
        self._action = action or (lambda: Posted(external_id=f"{channel.value}-1"))
        self._ready = ready
        self.calls = 0

    def missing_settings(self):
        return [] if self._ready else [f"{self.channel.value}.token"]

    def _primary(self, event, venue, content, images):
        self.calls += 1
        return self._action()


class ExplodingAdapter(StubAdapter):
    def distribute(self, event, venue, content=None, images=None):
        raise RuntimeError("adapter bug")


class TestDistributeAll:
    def test_failure_is_isolated(self, event, venue):
        distributor = EventDistributor([
            StubAdapter(Channel.FACEBOOK),
            ExplodingAdapter(Channel.LINKEDIN),
            StubAdapter(Channel.PRESS),
        ])
        report = distributor.distribute_all(event, venue)

        assert report.total == 3
        assert report.succeeded == 2
        assert report.failed == ["linkedin"]
        assert "adapter bug" in report.get("linkedin").error

    def test_results_follow_selection_order(self, event, venue):
        distributor = EventDistributor([
            StubAdapter(Channel.FACEBOOK), StubAdapter(Channel.LINKEDIN), StubAdapter(Channel.PRESS),
        ])
        report = distributor.distribute_all(event, venue, channels=["press", "facebook"])
        assert [r.channel for r in report.results] == ["press", "facebook"]

    def test_channels_run_concurrently(self, event, venue):
        barrier = threading.Barrier(2, timeout=5)

        def wait_for_sibling():
            barrier.wait()
            return Posted(external_id="x")

        distributor = EventDistributor([
            StubAdapter(Channel.FACEBOOK, wait_for_sibling),
            StubAdapter(Channel.LINKEDIN, wait_for_sibling),
        ])
        report = distributor.distribute_all(event, venue)
        assert report.succeeded == 2

    def test_all_skips_unconfigured_channels(self, event, venue):
        distributor = EventDistributor([
            StubAdapter(Channel.FACEBOOK), StubAdapter(Channel.INSTAGRAM, ready=False),
        ])
        report = distributor.distribute_all(event, venue)
        assert [r.channel for r in report.results] == ["facebook"]

    def test_explicit_unconfigured_channel_is_reported(self, event, venue):
        distributor = EventDistributor([
            StubAdapter(Channel.FACEBOOK), StubAdapter(Channel.INSTAGRAM, ready=False),
        ])
        report = distributor.distribute_all(event, venue, channels="facebook,instagram")
        assert report.get("instagram").status is DistributionStatus.SKIPPED
        assert report.to_dict()["success"] is True

    def test_unknown_channel_fails_alone(self, event, venue):
        distributor = EventDistributor([StubAdapter(Channel.FACEBOOK)])
        report = distributor.distribute_all(event, venue, channels=["facebook", "myspace"])
        assert report.get("facebook").success
        assert report.get("myspace").error == "Unknown channel: myspace"

    def test_nothing_runnable_raises(self, event, venue):
        distributor = EventDistributor([StubAdapter(Channel.FACEBOOK, ready=False)])
        with pytest.raises(NoRunnableChannels):
            distributor.distribute_all(event, venue)
        with pytest.raises(NoRunnableChannels):
            distributor.distribute_all(event, venue, channels=["myspace"])

    def test_report_dict(self, event, venue):
        distributor = EventDistributor([StubAdapter(Channel.FACEBOOK)])
        data = distributor.distribute_all(event, venue).to_dict()
        assert data["success"] is True
        assert data["succeeded"] == 1
        assert data["total"] == 1
        assert data["results"][0] == {
            "channel": "facebook", "success": True, "status": "published",
            "usedFallback": False, "id": "facebook-1", "url": None,
        }


class TestIdempotency:
    def test_second_run_is_duplicate(self, event, venue):
        adapter = StubAdapter(Channel.FACEBOOK)
        log = DeliveryLog()
        distributor = EventDistributor([adapter], delivery_log=log)

        first = distributor.distribute("facebook", event, venue)
        second = distributor.distribute("facebook", event, venue)

        assert first.status is DistributionStatus.PUBLISHED
        assert second.status is DistributionStatus.DUPLICATE
        assert second.external_id == "facebook-1"
        assert second.success
        assert adapter.calls == 1
        assert log.total_records == 1

    def test_failures_are_not_recorded(self, event, venue):
        def fail():
            from imc_distribution.errors import ChannelError
            raise ChannelError("facebook", "Service unavailable", 2)

        log = DeliveryLog()
        distributor = EventDistributor([StubAdapter(Channel.FACEBOOK, fail)], delivery_log=log)
        assert distributor.distribute("facebook", event, venue).status is DistributionStatus.FAILED
        assert log.total_records == 0

    def test_unwritable_log_keeps_results(self, event, venue):
        class FullDiskLog(DeliveryLog):
            def _save(self):
                raise OSError("disk full")

        log = FullDiskLog()
        distributor = EventDistributor(
            [StubAdapter(Channel.FACEBOOK), StubAdapter(Channel.PRESS)], delivery_log=log,
        )
        report = distributor.distribute_all(event, venue)

        assert report.total == 2
        assert report.succeeded == 2
        assert log.total_records == 0

    def test_changed_time_is_a_new_event(self, event, venue):
        from dataclasses import replace

        adapter = StubAdapter(Channel.FACEBOOK)
        distributor = EventDistributor([adapter], delivery_log=DeliveryLog())
        distributor.distribute("facebook", event, venue)
        distributor.distribute("facebook", replace(event, time="9:00 PM"), venue)
        assert adapter.calls == 2


class TestChannelSelection:
    def test_aliases_and_dedupe(self):
        distributor = EventDistributor([StubAdapter(Channel.PRESS), StubAdapter(Channel.FACEBOOK)])
        assert distributor.resolve_channels("Email, facebook,press-release") == ["press", "facebook"]

    def test_all_keyword(self):
        distributor = EventDistributor([StubAdapter(Channel.PRESS), StubAdapter(Channel.FACEBOOK)])
        assert distributor.resolve_channels(None) == ["press", "facebook"]
        assert distributor.resolve_channels(["all"]) == ["press", "facebook"]

    @pytest.mark.parametrize("channels", [[1], ["facebook", None], 5])
    def test_malformed_selection_is_rejected(self, channels):
        distributor = EventDistributor([StubAdapter(Channel.FACEBOOK)])
        with pytest.raises(InvalidRequest):
            distributor.resolve_channels(channels)

    def test_single_unknown_channel_raises(self, event, venue):
        distributor = EventDistributor([StubAdapter(Channel.FACEBOOK)])
        with pytest.raises(NoRunnableChannels):
            distributor.distribute("myspace", event, venue)

    def test_check_status(self):
        distributor = EventDistributor([
            StubAdapter(Channel.FACEBOOK), StubAdapter(Channel.LINKEDIN, ready=False),
        ])
        status = distributor.check_status()
        assert status["facebook"].to_dict() == {"ready": True, "provider": "stub facebook"}
        assert status["linkedin"].ready is False
        assert status["linkedin"].missing == ["linkedin.token"]
