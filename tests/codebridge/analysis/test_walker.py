"""Tests for the breadth-first frontier walker."""

import asyncio

import pytest
from codebridge.analysis import (
    DEFAULT_SYMBOL_KINDS,
    DiscoveryContext,
    FrontierWalker,
    RelationAggregator,
    Strategy,
    TargetFilter,
    WalkBudget,
    build_providers,
)
from codebridge.backends import SymbolKind
from codebridge.workspace import Workspace

WS = "/ws"
A, B, C, D, E = (f"{WS}/{name}.ts" for name in "abcde")


def make_walker(
    host,
    strategy=Strategy.SHALLOW,
    max_files=0,
    excludes=(),
    timeout=None,
    cancel_event=None,
    workspace=None,
):
    budget = WalkBudget.for_strategy(strategy, max_files, excludes)
    context = DiscoveryContext(host=host, symbol_kinds=DEFAULT_SYMBOL_KINDS)
    aggregator = RelationAggregator(build_providers(strategy, context), timeout)
    target_filter = TargetFilter(workspace or Workspace([WS]), budget.exclude_patterns)
    return FrontierWalker(aggregator, budget, target_filter.is_allowed, cancel_event)


class TestWalkBasics:
    @pytest.mark.asyncio
    async def test_seed_is_not_a_result(self, host):
        host.add_links(A, B)
        host.add_links(B, A)

        related = await make_walker(host, Strategy.DEEP).walk(A)

        assert related == [B]

    @pytest.mark.asyncio
    async def test_cycle_terminates(self, host):
        host.add_links(A, B)
        host.add_links(B, A)

        related = await make_walker(host, Strategy.DEEP).walk(A)

        assert related == [B]
        # b is expanded once; a is never expanded a second time
        assert host.calls.count(("document_links", A)) == 1
        assert host.calls.count(("document_links", B)) == 1

    @pytest.mark.asyncio
    async def test_breadth_first_order(self, host):
        host.add_links(A, B, C)
        host.add_links(B, D)
        host.add_links(C, E)

        related = await make_walker(host, Strategy.DEEP).walk(A)

        assert related == [B, C, D, E]

    @pytest.mark.asyncio
    async def test_link_then_symbol_reference(self, host):
        host.add_links(A, B)
        host.add_symbol(B, "Widget", SymbolKind.CLASS, referenced_by=[C])

        related = await make_walker(host, Strategy.DEEP).walk(A)

        assert related == [B, C]

    @pytest.mark.asyncio
    async def test_duplicates_emitted_once(self, host):
        host.add_links(A, B, B, C)
        host.add_links(C, B)

        related = await make_walker(host, Strategy.DEEP).walk(A)

        assert related == [B, C]

    @pytest.mark.asyncio
    async def test_walker_is_reusable(self, host):
        host.add_links(A, B)
        walker = make_walker(host)

        first = await walker.walk(A)
        second = await walker.walk(A)

        assert first == second == [B]


class TestDepthLimit:
    @pytest.mark.asyncio
    async def test_shallow_stops_after_one_hop(self, host):
        host.add_links(A, B)
        host.add_links(B, C)

        related = await make_walker(host, Strategy.SHALLOW).walk(A)

        assert related == [B]
        assert ("document_links", B) not in host.calls

    @pytest.mark.asyncio
    async def test_deep_stops_after_five_hops(self, host):
        chain = [f"{WS}/n{i}.ts" for i in range(8)]
        for src, dst in zip(chain, chain[1:]):
            host.add_links(src, dst)

        related = await make_walker(host, Strategy.DEEP).walk(chain[0])

        assert related == chain[1:6]


class TestBudget:
    @pytest.mark.asyncio
    async def test_max_files_caps_results(self, host):
        host.add_links(A, B, C)

        related = await make_walker(host, Strategy.SHALLOW, max_files=1).walk(A)

        assert related == [B]

    @pytest.mark.asyncio
    async def test_budget_stops_expansion(self, host):
        host.add_links(A, B, C)
        host.add_links(B, D)

        related = await make_walker(host, Strategy.DEEP, max_files=2).walk(A)

        assert related == [B, C]
        assert ("document_links", B) not in host.calls

    @pytest.mark.asyncio
    async def test_zero_means_unlimited(self, host):
        targets = [f"{WS}/t{i}.ts" for i in range(40)]
        host.add_links(A, *targets)

        related = await make_walker(host, Strategy.SHALLOW, max_files=0).walk(A)

        assert related == targets


class TestFiltering:
    @pytest.mark.asyncio
    async def test_excluded_candidates_are_pruned(self, host):
        host.add_links(A, f"{WS}/node_modules/lib.ts", B)
        host.add_links(f"{WS}/node_modules/lib.ts", C)

        related = await make_walker(host, Strategy.DEEP, excludes=["node_modules"]).walk(A)

        assert related == [B]
        assert ("document_links", f"{WS}/node_modules/lib.ts") not in host.calls

    @pytest.mark.asyncio
    async def test_outside_workspace_is_pruned(self, host):
        host.add_links(A, "/elsewhere/x.ts", B)

        related = await make_walker(host).walk(A)

        assert related == [B]

    @pytest.mark.asyncio
    async def test_non_file_links_and_self_links_dropped(self, host):
        host.add_links(A, "https://example.com/docs", A, None, f"file://{B}")

        related = await make_walker(host).walk(A)

        assert related == [B]


class TestFailureHandling:
    @pytest.mark.asyncio
    async def test_failing_node_does_not_abort_walk(self, host):
        host.add_links(A, B, C)
        host.add_links(B, D)
        host.add_links(C, E)
        host.fail(B)

        related = await make_walker(host, Strategy.DEEP).walk(A)

        assert related == [B, C, E]

    @pytest.mark.asyncio
    async def test_failing_provider_does_not_hide_others(self, host):
        host.add_links(A, B)
        host.add_symbol(A, "helper", SymbolKind.FUNCTION, referenced_by=[C])
        host.fail(A, "document_links")

        related = await make_walker(host, Strategy.DEEP).walk(A)

        assert related == [C]

    @pytest.mark.asyncio
    async def test_timeout_counts_as_failure(self, host):
        host.add_links(A, B, C)
        host.add_links(B, D)
        host.add_links(C, E)
        host.set_delay(B, 1.0)

        related = await make_walker(host, Strategy.DEEP, timeout=0.05).walk(A)

        assert related == [B, C, E]


class TestOrdering:
    @pytest.mark.asyncio
    async def test_merge_follows_provider_order_not_latency(self, host):
        host.add_links(A, B)
        host.add_symbol(A, "Widget", SymbolKind.CLASS, referenced_by=[C])
        host.set_delay(A, 0.05, "document_links")

        related = await make_walker(host, Strategy.DEEP).walk(A)

        assert related == [B, C]


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancel_before_start_returns_nothing(self, host):
        host.add_links(A, B)
        event = asyncio.Event()
        event.set()

        related = await make_walker(host, cancel_event=event).walk(A)

        assert related == []

    @pytest.mark.asyncio
    async def test_cancel_finishes_current_node(self, host):
        host.add_links(A, B, C)
        host.add_links(B, D)
        host.set_delay(A, 0.05)
        event = asyncio.Event()

        async def cancel_soon():
            await asyncio.sleep(0.01)
            event.set()

        walker = make_walker(host, Strategy.DEEP, cancel_event=event)
        related, _ = await asyncio.gather(walker.walk(A), cancel_soon())

        assert related == [B, C]
        assert ("document_links", B) not in host.calls
