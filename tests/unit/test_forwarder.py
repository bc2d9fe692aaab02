"""
Unit tests for forwarder wiring
"""

from unittest.mock import Mock

import pytest

from docker_logentries.core.exceptions import NoChannelEnabledError
from docker_logentries.models.event import EventKind
from docker_logentries.services.collectors import (
    ContainerEventsCollector,
    ContainerLogsCollector,
    ContainerStatsCollector,
)
from docker_logentries.services.forwarder import (
    Forwarder,
    build_collectors,
    enabled_channels,
    source_handles,
)


class TestChannelSelection:
    
    def test_channel_needs_flag_and_token(self, make_settings):
        settings = make_settings(logstoken="L", statstoken="S", eventstoken="", stats=False)
        assert enabled_channels(settings) == [EventKind.LOG]
    
    def test_all_channels(self, make_settings):
        settings = make_settings(logstoken="L", statstoken="S", eventstoken="E")
        assert enabled_channels(settings) == [EventKind.LOG, EventKind.STATS, EventKind.LIFECYCLE]
    
    def test_no_channel(self, make_settings):
        assert enabled_channels(make_settings(token="T")) == []
    
    def test_build_collectors(self, make_settings):
        settings = make_settings(
            logstoken="L", statstoken="S", eventstoken="E",
            parse_json=True, newline=False, statsinterval=5,
        )
        logs, stats, events = build_collectors(settings, Mock())
        
        assert isinstance(logs, ContainerLogsCollector)
        assert logs.parse_json and not logs.newline
        assert isinstance(stats, ContainerStatsCollector)
        assert stats.interval == 5
        assert isinstance(events, ContainerEventsCollector)
    
    def test_build_collectors_without_channel_is_fatal(self, make_settings):
        with pytest.raises(NoChannelEnabledError):
            build_collectors(make_settings(logstoken="L", logs=False), Mock())
    
    def test_source_handles(self, make_settings):
        collectors = build_collectors(make_settings(logstoken="L", eventstoken="E"), Mock())
        handles = source_handles(collectors)
        assert [(h.name, h.kind) for h in handles] == [
            ("logs", EventKind.LOG),
            ("events", EventKind.LIFECYCLE),
        ]
        assert not any(h.closed for h in handles)


class TestForwarderWiring:
    
    def test_components_share_settings(self, make_settings):
        settings = make_settings(logstoken="L", server="collector.local", port=10000)
        handle = Mock(name="handle")
        forwarder = Forwarder(settings, [handle])
        
        assert forwarder.output.endpoint == "collector.local:10000"
        assert forwarder.coordinator.output is forwarder.output
        assert forwarder.multiplexer.output is forwarder.output
        assert forwarder.multiplexer.open_count == 1
