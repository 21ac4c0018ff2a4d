"""Tests for the signature-exposure resolver."""

from unexported.exposure import resolve_visible
from unexported.model import EntryPoint, Exposure, GlobalId, Item, ItemGraph, Reference


def _graph(names: list[str], edges: list[tuple[str, str, str]]) -> ItemGraph:
    """Items named *names* in package ``demo``; *edges* are (source, label, target)."""
    graph = ItemGraph(target="demo")
    for name in names:
        gid = GlobalId("demo", name)
        graph.items[gid] = Item(gid, "struct", name, "public", ("demo",))
    for source, label, target in edges:
        src, dst = GlobalId("demo", source), GlobalId("demo", target)
        graph.references.setdefault(src, []).append(Reference(src, dst, (label,)))
    return graph


def _entry(name: str) -> EntryPoint:
    return EntryPoint(GlobalId("demo", name), (name,))


def test_signature_cycle_terminates() -> None:
    """A references B and B references A: both visible exactly once."""
    graph = _graph(["A", "B"], [("A", "b", "B"), ("B", "a", "A")])

    visible = resolve_visible(graph, [_entry("A")])

    assert visible == {
        GlobalId("demo", "A"): Exposure(_entry("A")),
        GlobalId("demo", "B"): Exposure(_entry("A"), ((("b",), GlobalId("demo", "B")),)),
    }


def test_self_reference() -> None:
    graph = _graph(["Node"], [("Node", "next", "Node")])

    visible = resolve_visible(graph, [_entry("Node")])

    assert visible == {GlobalId("demo", "Node"): Exposure(_entry("Node"))}


def test_shortest_chain_wins() -> None:
    """Breadth-first order reports the shorter of two chains."""
    graph = _graph(
        ["Config", "Other", "Wrapper", "Secret"],
        [
            ("Config", "inner", "Wrapper"),
            ("Wrapper", "value", "Secret"),
            ("Other", "secret", "Secret"),
        ],
    )

    visible = resolve_visible(graph, [_entry("Config"), _entry("Other")])

    secret = visible[GlobalId("demo", "Secret")]
    assert secret.entry == _entry("Other")
    assert secret.hops == ((("secret",), GlobalId("demo", "Secret")),)


def test_ties_go_to_the_earlier_entry_point() -> None:
    graph = _graph(
        ["A", "B", "Secret"],
        [("A", "x", "Secret"), ("B", "y", "Secret")],
    )

    first = resolve_visible(graph, [_entry("A"), _entry("B")])
    second = resolve_visible(graph, [_entry("B"), _entry("A")])

    assert first[GlobalId("demo", "Secret")].entry == _entry("A")
    assert second[GlobalId("demo", "Secret")].entry == _entry("B")


def test_entry_points_are_visible_at_their_own_path() -> None:
    """An entry point reached through another signature keeps its own path."""
    graph = _graph(["A", "B"], [("A", "b", "B")])

    visible = resolve_visible(graph, [_entry("A"), _entry("B")])

    assert visible[GlobalId("demo", "B")] == Exposure(_entry("B"))


def test_placeholders_dead_end() -> None:
    graph = _graph(["Api"], [])
    missing = GlobalId("dep", "?Thing")
    graph.items[missing] = Item(missing, "unknown", "Thing", "public", ("dep",))
    graph.unresolved.add(missing)
    api = GlobalId("demo", "Api")
    graph.references[api] = [Reference(api, missing, ("get",))]

    visible = resolve_visible(graph, [_entry("Api")])

    assert set(visible) == {api, missing}
