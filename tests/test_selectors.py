"""Tests for dependency selection policies."""

from resolution.selectors import (
    AcceptAllSelector,
    AndSelector,
    LegacyCoreWagonSelector,
    OptionalSelector,
    ScopeSelector,
    default_selector,
)

from conftest import coord, dep


class TestScopeSelector:

    def test_direct_declarations_are_never_filtered(self):
        selector = ScopeSelector()
        for scope in ("test", "provided", "system"):
            assert selector.select(dep("g:a:1", scope=scope), (), transitive=False)

    def test_transitive_excluded_scopes_are_filtered(self):
        selector = ScopeSelector()
        for scope in ("test", "provided", "system", "TEST"):
            assert not selector.select(dep("g:a:1", scope=scope), (), transitive=True)

    def test_transitive_compile_runtime_and_default_are_kept(self):
        selector = ScopeSelector()
        assert selector.select(dep("g:a:1"), (), transitive=True)
        assert selector.select(dep("g:a:1", scope="compile"), (), transitive=True)
        assert selector.select(dep("g:a:1", scope="runtime"), (), transitive=True)


def test_optional_selector_only_filters_transitive():
    selector = OptionalSelector()
    assert selector.select(dep("g:a:1", optional=True), (), transitive=False)
    assert not selector.select(dep("g:a:1", optional=True), (), transitive=True)
    assert selector.select(dep("g:a:1"), (), transitive=True)


class TestLegacyCoreWagonSelector:
    """Wagon providers below 2.x core artifacts are dropped."""

    def test_drops_wagon_below_legacy_core(self):
        path = (coord("org.p:plug:1.0"), coord("org.apache.maven:maven-core:2.2.1"))
        wagon = dep("org.apache.maven.wagon:wagon-http:1.0")
        assert not LegacyCoreWagonSelector().select(wagon, path, transitive=True)

    def test_keeps_wagon_below_current_core(self):
        path = (coord("org.p:plug:1.0"), coord("org.apache.maven:maven-core:3.9.6"))
        wagon = dep("org.apache.maven.wagon:wagon-http:3.5.3")
        assert LegacyCoreWagonSelector().select(wagon, path, transitive=True)

    def test_keeps_other_artifacts_below_legacy_core(self):
        path = (coord("org.apache.maven:maven-artifact:2.0.9"),)
        assert LegacyCoreWagonSelector().select(dep("org.codehaus.plexus:plexus-utils:1.5"), path, True)


def test_and_selector_requires_every_selector():
    keep_all = AndSelector(AcceptAllSelector(), AcceptAllSelector())
    assert keep_all.select(dep("g:a:1", scope="test"), (), transitive=True)

    combined = AndSelector(AcceptAllSelector(), ScopeSelector())
    assert not combined.select(dep("g:a:1", scope="test"), (), transitive=True)


def test_default_selector_combines_scope_and_optional():
    selector = default_selector()
    assert not selector.select(dep("g:a:1", scope="provided"), (), transitive=True)
    assert not selector.select(dep("g:a:1", optional=True), (), transitive=True)
    assert selector.select(dep("g:a:1", scope="test", optional=True), (), transitive=False)
