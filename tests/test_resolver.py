"""Tests for yuibuild.resolver."""

from __future__ import annotations

import itertools

from tests._fixtures.doubles import FakeModuleBuilder, descriptor_meta, module_meta
from yuibuild.models import Bundle
from yuibuild.resolver import BuildSetResolver, filter_files_in_bundle
from yuibuild.stores import ModuleRegistry


def _resolver(builder: FakeModuleBuilder) -> tuple[BuildSetResolver, ModuleRegistry]:
    registry = ModuleRegistry()
    return BuildSetResolver(registry, builder), registry


def test_modified_module_is_targeted_and_registered(bundle: Bundle) -> None:
    record = module_meta("foo", "a/foo.js")
    resolver, registry = _resolver(FakeModuleBuilder(modules={"a/foo.js": record}))

    targets = resolver.resolve(bundle, ["a/foo.js"], [])

    assert targets == ["a/foo.js"]
    assert dict(registry.lookup("app")) == {"a/foo.js": record}


def test_modified_descriptor_is_targeted(bundle: Bundle) -> None:
    record = descriptor_meta("a", "a/build.json", {"a": None})
    resolver, registry = _resolver(FakeModuleBuilder(descriptors={"a/build.json": record}))

    targets = resolver.resolve(bundle, ["a/build.json"], ["a/build.json"])

    assert targets == ["a/build.json"]
    assert registry.lookup("app")["a/build.json"] is record


def test_empty_modified_list_yields_no_targets(bundle: Bundle) -> None:
    builder = FakeModuleBuilder(
        descriptors={"/app/a/build.json": descriptor_meta("a", "/app/a/build.json", {"a": None})}
    )
    resolver, registry = _resolver(builder)

    assert resolver.resolve(bundle, [], ["/app/a/build.json"]) == []
    assert resolver.resolve(bundle, None, None) == []
    # descriptors stay known even when nothing triggers them
    assert list(registry.lookup("app")) == ["/app/a/build.json"]


def test_loader_meta_module_is_never_targeted(bundle: Bundle) -> None:
    loader = "/app/build/loader-app.js"
    builder = FakeModuleBuilder(modules={loader: module_meta("loader-app", loader)})
    resolver, registry = _resolver(builder)

    assert resolver.resolve(bundle, [loader], []) == []
    assert builder.module_checks == []
    assert registry.lookup("app") == {}


def test_loader_of_another_bundle_is_still_a_module(bundle: Bundle) -> None:
    other = "/app/lib/loader-admin.js"
    resolver, _ = _resolver(FakeModuleBuilder(modules={other: module_meta("loader-admin", other)}))

    assert resolver.resolve(bundle, [other], []) == [other]


def test_js_change_under_descriptor_directory_targets_descriptor(bundle: Bundle) -> None:
    descriptor = "/app/widgets/build.json"
    builder = FakeModuleBuilder(
        descriptors={descriptor: descriptor_meta("widgets", descriptor, {"widget": None})}
    )
    resolver, _ = _resolver(builder)

    targets = resolver.resolve(bundle, ["/app/widgets/js/widget.js"], [descriptor])

    assert targets == [descriptor]


def test_js_change_inside_build_directory_does_not_target_descriptor(bundle: Bundle) -> None:
    descriptor = "/app/build.json"
    builder = FakeModuleBuilder(
        descriptors={descriptor: descriptor_meta("app", descriptor, {"app": None})}
    )
    resolver, registry = _resolver(builder)

    targets = resolver.resolve(bundle, ["/app/build/app/app.js"], [descriptor])

    assert targets == []
    assert list(registry.lookup("app")) == [descriptor]


def test_bundle_without_build_directory_excludes_nothing() -> None:
    bundle = Bundle(name="app", path="/app", build_directory="")
    descriptor = "/app/build.json"
    builder = FakeModuleBuilder(
        descriptors={descriptor: descriptor_meta("app", descriptor, {"app": None})}
    )
    resolver, _ = _resolver(builder)

    assert resolver.resolve(bundle, ["/app/build/app/app.js"], [descriptor]) == [descriptor]


def test_non_js_change_does_not_target_descriptor(bundle: Bundle) -> None:
    descriptor = "/app/widgets/build.json"
    builder = FakeModuleBuilder(
        descriptors={descriptor: descriptor_meta("widgets", descriptor, {"widget": None})}
    )
    resolver, _ = _resolver(builder)

    assert resolver.resolve(bundle, ["/app/widgets/assets/widget.css"], [descriptor]) == []
    assert builder.module_checks == []


def test_sibling_directory_with_shared_prefix_is_not_contained(bundle: Bundle) -> None:
    descriptor = "/app/widgets/build.json"
    builder = FakeModuleBuilder(
        descriptors={descriptor: descriptor_meta("widgets", descriptor, {"widget": None})}
    )
    resolver, _ = _resolver(builder)

    assert resolver.resolve(bundle, ["/app/widgets-extra/x.js"], [descriptor]) == []


def test_invalid_descriptor_is_skipped_entirely(bundle: Bundle) -> None:
    builder = FakeModuleBuilder()
    resolver, registry = _resolver(builder)

    targets = resolver.resolve(bundle, ["/app/a/build.json"], ["/app/a/build.json"])

    assert targets == []
    assert builder.descriptor_checks == ["/app/a/build.json"]
    assert registry.lookup("app") == {}


def test_only_build_json_files_are_checked_as_descriptors(bundle: Bundle) -> None:
    builder = FakeModuleBuilder()
    resolver, _ = _resolver(builder)

    resolver.resolve(bundle, ["/app/package.json"], ["/app/package.json", "/app/meta/foo.json"])

    assert builder.descriptor_checks == []


def test_failed_module_check_does_not_abort_scan(bundle: Bundle) -> None:
    good = "/app/b/good.js"
    builder = FakeModuleBuilder(modules={good: module_meta("good", good)})
    resolver, registry = _resolver(builder)

    targets = resolver.resolve(bundle, [good, "/app/a/plain.js"], [])

    assert targets == [good]
    assert builder.module_checks == ["/app/a/plain.js", good]
    assert list(registry.lookup("app")) == [good]


def test_module_and_descriptor_targets_are_deduplicated_and_sorted(bundle: Bundle) -> None:
    descriptor = "/app/lib/build.json"
    modules = {
        "/app/lib/z.js": module_meta("z", "/app/lib/z.js"),
        "/app/lib/a.js": module_meta("a", "/app/lib/a.js"),
    }
    builder = FakeModuleBuilder(
        modules=modules,
        descriptors={descriptor: descriptor_meta("lib", descriptor, {"lib": None})},
    )
    resolver, _ = _resolver(builder)

    targets = resolver.resolve(
        bundle,
        ["/app/lib/z.js", descriptor, "/app/lib/a.js"],
        [descriptor, descriptor],
    )

    assert targets == ["/app/lib/a.js", "/app/lib/build.json", "/app/lib/z.js"]


def test_resolution_is_independent_of_input_order(bundle: Bundle) -> None:
    modified = ["/app/b/b.js", "/app/a/a.js", "/app/c/build.json", "/app/c/c.js"]
    descriptors = ["/app/c/build.json", "/app/a/build.json"]
    results = set()
    registration_orders = set()

    for modified_order, descriptor_order in itertools.product(
        itertools.permutations(modified), itertools.permutations(descriptors)
    ):
        builder = FakeModuleBuilder(
            modules={
                "/app/a/a.js": module_meta("a", "/app/a/a.js"),
                "/app/b/b.js": module_meta("b", "/app/b/b.js"),
            },
            descriptors={
                "/app/a/build.json": descriptor_meta("a", "/app/a/build.json", {"a-all": None}),
                "/app/c/build.json": descriptor_meta("c", "/app/c/build.json", {"c": None}),
            },
        )
        resolver, registry = _resolver(builder)
        results.add(tuple(resolver.resolve(bundle, list(modified_order), list(descriptor_order))))
        registration_orders.add(tuple(registry.lookup("app")))

    assert results == {
        (
            "/app/a/a.js",
            "/app/a/build.json",
            "/app/b/b.js",
            "/app/c/build.json",
        )
    }
    assert len(registration_orders) == 1


def test_resolve_does_not_mutate_inputs(bundle: Bundle) -> None:
    resolver, _ = _resolver(FakeModuleBuilder())
    modified = ["/app/b.js", "/app/a.js"]

    resolver.resolve(bundle, modified, [])

    assert modified == ["/app/b.js", "/app/a.js"]


def test_filter_files_in_bundle_uses_relative_paths(bundle: Bundle) -> None:
    seen: list[str] = []

    def predicate(candidate: Bundle, relative_path: str) -> bool:
        assert candidate is bundle
        seen.append(relative_path)
        return relative_path.startswith("src/")

    kept = filter_files_in_bundle(bundle, ["/app/src/a.js", "/app/tests/b.js"], predicate)

    assert kept == ["/app/src/a.js"]
    assert seen == ["src/a.js", "tests/b.js"]


def test_filter_files_in_bundle_without_predicate_keeps_everything(bundle: Bundle) -> None:
    assert filter_files_in_bundle(bundle, ["/app/a.js"], None) == ["/app/a.js"]
    assert filter_files_in_bundle(bundle, None, None) == []
