"""
Unit tests for the routing policy filter
"""

import itertools

import pytest

from docker_logentries.models.event import Event, EventKind, classify
from docker_logentries.services.policy_filter import PolicyFilter, RoutingPolicy


def log_event(name="web-1", image="nginx:1.25"):
    return classify({"line": "hello", "name": name, "image": image})


class TestTokenRouting:
    """Token selection by event kind"""
    
    @pytest.fixture
    def policy_filter(self):
        return PolicyFilter(RoutingPolicy.build(logstoken="LT1"))
    
    def test_log_event_gets_logs_token(self, policy_filter):
        event = log_event()
        assert policy_filter.route(event) == ("LT1", event)
    
    def test_stats_event_dropped_without_stats_token(self, policy_filter):
        event = classify({"stats": {"cpu": 1}, "name": "web-1", "image": "nginx"})
        assert policy_filter.route(event) is None
    
    def test_lifecycle_event_dropped_without_events_token(self, policy_filter):
        event = classify({"type": "start", "name": "web-1", "image": "nginx"})
        assert policy_filter.route(event) is None
    
    def test_each_kind_uses_its_own_token(self):
        policy_filter = PolicyFilter(RoutingPolicy.build(
            logstoken="L", statstoken="S", eventstoken="E"
        ))
        assert policy_filter.route(classify({"line": "x"}))[0] == "L"
        assert policy_filter.route(classify({"stats": {}}))[0] == "S"
        assert policy_filter.route(classify({"type": "die"}))[0] == "E"


class TestIdentityPatterns:
    """Include/exclude patterns against container name and image"""
    
    # (option, pattern matching "web-1"/"nginx:1.25", pattern not matching)
    PATTERNS = {
        "match_by_name": ("^web", "^db"),
        "match_by_image": ("nginx", "postgres"),
        "skip_by_name": ("^web", "^db"),
        "skip_by_image": ("nginx", "postgres"),
    }
    
    @pytest.mark.parametrize(
        "states",
        list(itertools.product(["unset", "matching", "non_matching"], repeat=4)),
    )
    def test_truth_table(self, states):
        """Passes iff every set include matches and no set exclude matches"""
        patterns = {}
        expected = True
        for option, state in zip(self.PATTERNS, states):
            matching, non_matching = self.PATTERNS[option]
            if state == "unset":
                continue
            patterns[option] = matching if state == "matching" else non_matching
            if option.startswith("match") and state == "non_matching":
                expected = False
            if option.startswith("skip") and state == "matching":
                expected = False
        
        policy_filter = PolicyFilter(RoutingPolicy.build(logstoken="T", **patterns))
        assert (policy_filter.route(log_event()) is not None) is expected
    
    def test_match_by_name_example(self):
        policy_filter = PolicyFilter(RoutingPolicy.build(logstoken="T", match_by_name="^web"))
        assert policy_filter.route(log_event(name="web-1")) is not None
        assert policy_filter.route(log_event(name="db-1")) is None
    
    def test_failing_check_drops_regardless_of_others(self):
        policy_filter = PolicyFilter(RoutingPolicy.build(
            logstoken="T",
            match_by_name="^web",
            match_by_image="nginx",
            skip_by_image="1\\.25",
        ))
        assert policy_filter.route(log_event()) is None
    
    def test_patterns_search_anywhere(self):
        policy_filter = PolicyFilter(RoutingPolicy.build(logstoken="T", match_by_image="nginx"))
        assert policy_filter.route(log_event(image="library/nginx:latest")) is not None
    
    def test_missing_identity_is_empty_text(self):
        event = classify({"line": "no identity"})
        include = PolicyFilter(RoutingPolicy.build(logstoken="T", match_by_name="."))
        exclude = PolicyFilter(RoutingPolicy.build(logstoken="T", skip_by_name="^$"))
        assert include.route(event) is None
        assert exclude.route(event) is None
    
    def test_non_string_identity_is_coerced(self):
        event = classify({"line": "x", "name": 42, "image": "nginx"})
        policy_filter = PolicyFilter(RoutingPolicy.build(logstoken="T", match_by_name="^42$"))
        assert policy_filter.route(event) is not None
    
    def test_patterns_compiled_once(self):
        policy = RoutingPolicy.build(logstoken="T", match_by_name="^web")
        assert policy.match_by_name.pattern == "^web"
        assert policy.skip_by_name is None


class TestRoutingPolicy:
    
    def test_from_settings(self, make_settings):
        settings = make_settings(logstoken="L", skip_by_image="^busybox")
        policy = RoutingPolicy.from_settings(settings)
        assert policy.logstoken == "L"
        assert policy.statstoken == ""
        assert policy.skip_by_image.pattern == "^busybox"
        assert policy.match_by_name is None
    
    def test_token_for_every_kind(self):
        policy = RoutingPolicy.build(logstoken="L", statstoken="S", eventstoken="E")
        assert [policy.token_for(kind) for kind in EventKind] == ["L", "S", "E"]
    
    def test_route_returns_same_event(self):
        event = Event(kind=EventKind.LOG, fields={"line": "x"})
        token, routed = PolicyFilter(RoutingPolicy.build(logstoken="T")).route(event)
        assert routed is event
