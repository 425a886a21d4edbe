"""Tests for relation providers and the aggregator."""

import asyncio

import pytest
from codebridge.analysis import (
    DiscoveryContext,
    DiscoveryError,
    ImportResolver,
    LinkScanner,
    ReferenceResolver,
    RelationAggregator,
    Strategy,
    build_providers,
)
from codebridge.analysis.providers import symbol_positions
from codebridge.backends import (
    DocumentSymbol,
    Location,
    Position,
    SymbolInformation,
    SymbolKind,
)


class TestLinkScanner:
    @pytest.mark.asyncio
    async def test_relative_targets_resolve_against_file_directory(self, host):
        host.add_links("/ws/docs/guide.md", "../src/app.ts", "./img.png")

        found = await LinkScanner(DiscoveryContext(host=host)).discover("/ws/docs/guide.md")

        assert found == ["/ws/src/app.ts", "/ws/docs/img.png"]

    @pytest.mark.asyncio
    async def test_drops_unresolved_and_non_file_links(self, host):
        host.add_links("/ws/a.md", None, "mailto:me@example.com", "https://x.dev", "/ws/b.md")

        found = await LinkScanner(DiscoveryContext(host=host)).discover("/ws/a.md")

        assert found == ["/ws/b.md"]

    @pytest.mark.asyncio
    async def test_drops_self_link(self, host):
        host.add_links("/ws/a.md", "a.md", "file:///ws/a.md")

        found = await LinkScanner(DiscoveryContext(host=host)).discover("/ws/a.md")

        assert found == []


class TestImportResolver:
    @pytest.mark.asyncio
    async def test_queries_inside_each_specifier(self, host, ref):
        source = "import { a } from './a';\nconst b = require(\"../lib/b\");\nimport x from 'pkg';\n"
        app = ref("src/app.ts", source)
        first = source.index("./a")
        second = source.index("../lib/b")
        host.add_definition(app, first, "/ws/src/a.ts")
        host.add_definition(app, second, "/ws/lib/b.ts")

        found = await ImportResolver(DiscoveryContext(host=host)).discover(app)

        assert found == ["/ws/src/a.ts", "/ws/lib/b.ts"]
        # bare package specifiers are not looked up
        assert host.calls.count(("definitions", app)) == 2

    @pytest.mark.asyncio
    async def test_accepts_location_links(self, host, ref):
        source = "export * from './types';\n"
        app = ref("src/index.ts", source)
        host.add_definition(app, source.index("./types"), "file:///ws/src/types.ts", as_link=True)

        found = await ImportResolver(DiscoveryContext(host=host)).discover(app)

        assert found == ["/ws/src/types.ts"]

    @pytest.mark.asyncio
    async def test_failed_lookup_skips_only_that_specifier(self, host, ref):
        source = "import './one';\nimport './two';\n"
        app = ref("src/both.ts", source)
        host.add_definition(app, source.index("./two"), "/ws/two.ts")

        lookup = host.definitions

        async def flaky(path, offset):
            if offset == source.index("./one"):
                raise RuntimeError("server restarting")
            return await lookup(path, offset)

        host.definitions = flaky

        found = await ImportResolver(DiscoveryContext(host=host)).discover(app)

        assert found == ["/ws/two.ts"]

    @pytest.mark.asyncio
    async def test_no_specifiers_means_no_lookups(self, host, ref):
        app = ref("src/plain.ts", "export const x = 1;\n")

        found = await ImportResolver(DiscoveryContext(host=host)).discover(app)

        assert found == []
        assert host.calls == []

    @pytest.mark.asyncio
    async def test_unreadable_file_raises(self, host, temp_repo):
        missing = f"{temp_repo.as_posix()}/missing.ts"

        with pytest.raises(DiscoveryError):
            await ImportResolver(DiscoveryContext(host=host)).discover(missing)


class TestSymbolPositions:
    def test_document_symbols_flatten_parents_first(self):
        method = DocumentSymbol("render", SymbolKind.METHOD, Position(2, 4))
        widget = DocumentSymbol("Widget", SymbolKind.CLASS, Position(1, 6), children=[method])
        helper = DocumentSymbol("helper", SymbolKind.FUNCTION, Position(9, 9))

        assert symbol_positions([widget, helper]) == [
            (SymbolKind.CLASS, Position(1, 6)),
            (SymbolKind.METHOD, Position(2, 4)),
            (SymbolKind.FUNCTION, Position(9, 9)),
        ]

    def test_symbol_information_uses_location(self):
        info = SymbolInformation("LIMIT", SymbolKind.CONSTANT, Location("/ws/a.ts", Position(3, 6)))

        assert symbol_positions([info]) == [(SymbolKind.CONSTANT, Position(3, 6))]

    def test_empty(self):
        assert symbol_positions([]) == []


class TestReferenceResolver:
    @pytest.mark.asyncio
    async def test_collects_references_of_matching_kinds(self, host):
        host.add_symbol("/ws/a.ts", "Widget", SymbolKind.CLASS, referenced_by=["/ws/b.ts"])
        host.add_symbol("/ws/a.ts", "value", SymbolKind.PROPERTY, referenced_by=["/ws/c.ts"])
        host.add_symbol("/ws/a.ts", "make", SymbolKind.FUNCTION, referenced_by=["/ws/d.ts"])

        found = await ReferenceResolver(DiscoveryContext(host=host)).discover("/ws/a.ts")

        assert found == ["/ws/b.ts", "/ws/d.ts"]

    @pytest.mark.asyncio
    async def test_nested_symbols_are_considered(self, host):
        inner = DocumentSymbol("Mode", SymbolKind.ENUM, Position(4, 2))
        outer = DocumentSymbol("Shell", SymbolKind.MODULE, Position(0, 0), children=[inner])
        host.set_symbols("/ws/a.ts", [outer])
        host.set_references("/ws/a.ts", Position(4, 2), "/ws/b.ts")

        found = await ReferenceResolver(DiscoveryContext(host=host)).discover("/ws/a.ts")

        assert found == ["/ws/b.ts"]

    @pytest.mark.asyncio
    async def test_symbol_lookups_are_capped(self, host):
        for i in range(30):
            host.add_symbol("/ws/big.ts", f"fn{i}", referenced_by=[f"/ws/user{i}.ts"])

        found = await ReferenceResolver(DiscoveryContext(host=host)).discover("/ws/big.ts")

        assert found == [f"/ws/user{i}.ts" for i in range(25)]
        assert host.calls.count(("references", "/ws/big.ts")) == 25

    @pytest.mark.asyncio
    async def test_custom_cap_and_kinds(self, host):
        host.add_symbol("/ws/a.ts", "A", SymbolKind.CLASS, referenced_by=["/ws/1.ts"])
        host.add_symbol("/ws/a.ts", "B", SymbolKind.CLASS, referenced_by=["/ws/2.ts"])
        context = DiscoveryContext(
            host=host, symbol_kinds=frozenset({SymbolKind.CLASS}), max_symbols_per_file=1
        )

        found = await ReferenceResolver(context).discover("/ws/a.ts")

        assert found == ["/ws/1.ts"]

    @pytest.mark.asyncio
    async def test_empty_kind_set_skips_host(self, host):
        host.add_symbol("/ws/a.ts", "A", SymbolKind.CLASS, referenced_by=["/ws/1.ts"])

        found = await ReferenceResolver(
            DiscoveryContext(host=host, symbol_kinds=frozenset())
        ).discover("/ws/a.ts")

        assert found == []
        assert host.calls == []


class TestBuildProviders:
    def test_strategy_registry(self, host):
        context = DiscoveryContext(host=host)

        assert build_providers(Strategy.NONE, context) == []
        assert [p.name for p in build_providers(Strategy.SHALLOW, context)] == ["links"]
        assert [p.name for p in build_providers(Strategy.DEEP, context)] == [
            "links",
            "imports",
            "references",
        ]


class _Scripted:
    def __init__(self, name, answer, delay=0.0, error=None):
        self.name = name
        self._answer = answer
        self._delay = delay
        self._error = error

    async def discover(self, ref):
        await asyncio.sleep(self._delay)
        if self._error:
            raise self._error
        return list(self._answer)


class TestRelationAggregator:
    @pytest.mark.asyncio
    async def test_merges_in_provider_order(self):
        aggregator = RelationAggregator(
            [_Scripted("slow", ["/ws/a"], delay=0.03), _Scripted("fast", ["/ws/b"])]
        )

        assert await aggregator.discover("/ws/x") == ["/ws/a", "/ws/b"]

    @pytest.mark.asyncio
    async def test_failure_contributes_nothing(self):
        aggregator = RelationAggregator(
            [_Scripted("broken", ["/ws/a"], error=RuntimeError("boom")), _Scripted("ok", ["/ws/b"])]
        )

        assert await aggregator.discover("/ws/x") == ["/ws/b"]

    @pytest.mark.asyncio
    async def test_timeout_contributes_nothing(self):
        aggregator = RelationAggregator(
            [_Scripted("stuck", ["/ws/a"], delay=1.0), _Scripted("ok", ["/ws/b"])],
            timeout=0.05,
        )

        assert await aggregator.discover("/ws/x") == ["/ws/b"]

    @pytest.mark.asyncio
    async def test_zero_timeout_disables_limit(self):
        aggregator = RelationAggregator([_Scripted("slowish", ["/ws/a"], delay=0.02)], timeout=0)

        assert await aggregator.discover("/ws/x") == ["/ws/a"]

    @pytest.mark.asyncio
    async def test_no_providers(self):
        assert await RelationAggregator([]).discover("/ws/x") == []
