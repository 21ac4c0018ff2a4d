"""Collect the items mentioned by public signatures in rustdoc JSON.

Every reference is reported as ``(label, path)`` where *path* is the rustdoc
``Path`` object (it carries the referenced ``id``) and *label* is a tuple of
segments naming the position it was found at: a field name, a method and
parameter name, ``Wrapper<0>`` for generic argument 0 of ``Wrapper``,
``Iterator<Item>`` for an associated-type binding, ``impl`` for an
implemented trait, ``Self`` for a supertrait.

Generic arguments are tracked by position only. ``Vec<Secret>`` exposes
``Vec`` at the field and ``Secret`` at ``Vec<0>``; nothing is unified.
"""

from __future__ import annotations

from collections import deque

Label = tuple[str, ...]

_KIND_ALIASES = {
    "import": "use",
    "typedef": "type_alias",
    "method": "function",
    "associated_type": "assoc_type",
    "associated_const": "assoc_const",
}

# Kinds whose own signature can expose other items.
SIGNATURE_KINDS = frozenset(
    {
        "struct",
        "union",
        "enum",
        "function",
        "trait",
        "trait_alias",
        "type_alias",
        "constant",
        "static",
    }
)


def item_kind(item: dict) -> tuple[str | None, dict]:
    """Return ``(kind, data)`` for a rustdoc item in either JSON layout.

    Current exports nest the payload as ``{"inner": {"struct": {...}}}``;
    older ones use ``{"kind": "struct", "inner": {...}}``.
    """
    kind = item.get("kind")
    inner = item.get("inner")
    if isinstance(kind, str):
        data = inner if isinstance(inner, dict) else {}
        return _KIND_ALIASES.get(kind, kind), data
    if isinstance(inner, dict) and len(inner) == 1:
        ((kind, data),) = inner.items()
        return _KIND_ALIASES.get(kind, kind), data if isinstance(data, dict) else {}
    if isinstance(inner, str):
        return _KIND_ALIASES.get(inner, inner), {}
    return None, {}


def visibility(item: dict) -> str:
    """Map rustdoc visibility to ``public``/``restricted``/``private``."""
    vis = item.get("visibility", "default")
    if vis == "public":
        return "public"
    if vis in ("crate", "restricted") or isinstance(vis, dict):
        return "restricted"  # pub(crate), pub(super), pub(in path)
    return "private"


def path_name(path: dict) -> str:
    """Last segment of a rustdoc ``Path`` (``path`` or older ``name``)."""
    text = path.get("path") or path.get("name") or ""
    return text.rsplit("::", 1)[-1]


class SignatureWalker:
    """Breadth-first walker over types, bounds and generics."""

    def __init__(self) -> None:
        self._queue: deque[tuple[str, object, Label]] = deque()
        self.found: list[tuple[Label, dict]] = []

    def type(self, ty: object, label: Label) -> None:
        self._queue.append(("type", ty, label))

    def path(self, path: object, label: Label) -> None:
        self._queue.append(("path", path, label))

    def bounds(self, bounds: object, label: Label) -> None:
        for bound in bounds or []:
            self._queue.append(("bound", bound, label))

    def generics(self, generics: object, label: Label) -> None:
        if not isinstance(generics, dict):
            return
        for param in generics.get("params") or []:
            name = param.get("name") or "_"
            kind = param.get("kind") or {}
            if not isinstance(kind, dict):
                continue
            if "type" in kind and isinstance(kind["type"], dict):
                type_param = kind["type"]
                self.bounds(type_param.get("bounds"), label + (name,))
                if type_param.get("default") is not None:
                    self.type(type_param["default"], label + (name,))
            elif "const" in kind and isinstance(kind["const"], dict):
                self.type(kind["const"].get("type"), label + (name,))

        for pred in generics.get("where_predicates") or []:
            if not isinstance(pred, dict):
                continue
            if "bound_predicate" in pred:
                bp = pred["bound_predicate"]
                ty = bp.get("type")
                if isinstance(ty, dict) and "generic" in ty:
                    segment = ty["generic"]
                else:
                    segment = "where"
                    self.type(ty, label + (segment,))
                self.bounds(bp.get("bounds"), label + (segment,))
            elif "eq_predicate" in pred:
                ep = pred["eq_predicate"]
                self.type(ep.get("lhs"), label + ("where",))
                self._term(ep.get("rhs"), label + ("where",))

    def run(self) -> list[tuple[Label, dict]]:
        while self._queue:
            what, node, label = self._queue.popleft()
            if what == "type":
                self._visit_type(node, label)
            elif what == "path":
                self._visit_path(node, label)
            elif what == "bound":
                self._visit_bound(node, label)
        return self.found

    def _term(self, term: object, label: Label) -> None:
        if isinstance(term, dict) and "type" in term:
            self.type(term["type"], label)

    def _visit_path(self, path: object, label: Label) -> None:
        if not isinstance(path, dict):
            return
        if path.get("id") is not None:
            self.found.append((label, path))
        self._args(path.get("args"), path_name(path), label)

    def _visit_bound(self, bound: object, label: Label) -> None:
        if isinstance(bound, dict) and "trait_bound" in bound:
            self.path(bound["trait_bound"].get("trait"), label)

    def _visit_type(self, ty: object, label: Label) -> None:
        if not isinstance(ty, dict):
            return  # "infer" and friends
        if "resolved_path" in ty:
            self.path(ty["resolved_path"], label)
        elif "dyn_trait" in ty:
            for poly in ty["dyn_trait"].get("traits") or []:
                self.path(poly.get("trait"), label)
        elif "impl_trait" in ty:
            self.bounds(ty["impl_trait"], label)
        elif "tuple" in ty:
            for element in ty["tuple"] or []:
                self.type(element, label)
        elif "slice" in ty:
            self.type(ty["slice"], label)
        elif "array" in ty:
            self.type(ty["array"].get("type"), label)
        elif "pat" in ty:
            self.type(ty["pat"].get("type"), label)
        elif "borrowed_ref" in ty:
            self.type(ty["borrowed_ref"].get("type"), label)
        elif "raw_pointer" in ty:
            self.type(ty["raw_pointer"].get("type"), label)
        elif "function_pointer" in ty:
            fp = ty["function_pointer"]
            self._signature(fp.get("sig") or fp.get("decl") or {}, label)
        elif "qualified_path" in ty:
            qp = ty["qualified_path"]
            if qp.get("trait"):
                self.path(qp["trait"], label)
            self.type(qp.get("self_type"), label)

    def _signature(self, sig: dict, label: Label) -> None:
        for entry in sig.get("inputs") or []:
            if isinstance(entry, (list, tuple)) and len(entry) == 2:
                self.type(entry[1], label)
        if sig.get("output") is not None:
            self.type(sig["output"], label)

    def _args(self, args: object, owner: str, label: Label) -> None:
        if not isinstance(args, dict):
            return
        if "angle_bracketed" in args:
            ab = args["angle_bracketed"]
            for position, arg in enumerate(ab.get("args") or []):
                if isinstance(arg, dict) and "type" in arg:
                    self.type(arg["type"], label + (f"{owner}<{position}>",))
            for constraint in ab.get("constraints") or ab.get("bindings") or []:
                segment = label + (f"{owner}<{constraint.get('name')}>",)
                self._args(constraint.get("args"), owner, segment)
                binding = constraint.get("binding") or {}
                if not isinstance(binding, dict):
                    continue
                if "equality" in binding:
                    self._term(binding["equality"], segment)
                elif "constraint" in binding:
                    self.bounds(binding["constraint"], segment)
        elif "parenthesized" in args:
            pa = args["parenthesized"]
            for position, ty in enumerate(pa.get("inputs") or []):
                self.type(ty, label + (f"{owner}<{position}>",))
            if pa.get("output") is not None:
                self.type(pa["output"], label + (f"{owner}<Output>",))


def collect_references(index: dict, item: dict) -> list[tuple[Label, dict]]:
    """Return every ``(label, path)`` exposed by *item*'s public signature.

    Private fields and private inherent methods are skipped: they do not
    make their types part of the API.
    """
    kind, data = item_kind(item)
    walker = SignatureWalker()

    if kind in ("struct", "union"):
        _fields(walker, index, _struct_fields(data), (), public_only=True)
        walker.generics(data.get("generics"), ())
        _impls(walker, index, data.get("impls"))
    elif kind == "enum":
        for variant_id in data.get("variants") or []:
            variant = index.get(str(variant_id))
            if variant is None:
                continue
            _, variant_data = item_kind(variant)
            _fields(
                walker,
                index,
                _variant_fields(variant_data),
                (variant.get("name") or "_",),
                public_only=False,
            )
        walker.generics(data.get("generics"), ())
        _impls(walker, index, data.get("impls"))
    elif kind == "function":
        _function(walker, data, ())
    elif kind == "trait":
        walker.generics(data.get("generics"), ())
        walker.bounds(data.get("bounds"), ("Self",))
        for member_id in data.get("items") or []:
            member = index.get(str(member_id))
            if member is not None:
                _member(walker, member)
    elif kind == "trait_alias":
        walker.generics(data.get("generics"), ())
        walker.bounds(data.get("params") or data.get("bounds"), ())
    elif kind == "type_alias":
        walker.type(data.get("type"), ())
        walker.generics(data.get("generics"), ())
    elif kind in ("constant", "static"):
        walker.type(data.get("type"), ())

    return walker.run()


def _struct_fields(data: dict) -> list:
    kind = data.get("kind")
    if isinstance(kind, dict):
        if "plain" in kind:
            return kind["plain"].get("fields") or []
        if "tuple" in kind:
            return kind["tuple"] or []
        return []
    return data.get("fields") or []


def _variant_fields(data: dict) -> list:
    kind = data.get("kind")
    if isinstance(kind, dict):
        if "tuple" in kind:
            return kind["tuple"] or []
        if "struct" in kind:
            return kind["struct"].get("fields") or []
    return []


def _fields(
    walker: SignatureWalker,
    index: dict,
    field_ids: list,
    prefix: Label,
    *,
    public_only: bool,
) -> None:
    for position, field_id in enumerate(field_ids):
        if field_id is None:
            continue  # stripped
        field_item = index.get(str(field_id))
        if field_item is None:
            continue
        if public_only and visibility(field_item) != "public":
            continue
        _, ty = item_kind(field_item)
        walker.type(ty, prefix + (field_item.get("name") or str(position),))


def _impls(walker: SignatureWalker, index: dict, impl_ids: list | None) -> None:
    for impl_id in impl_ids or []:
        impl_item = index.get(str(impl_id))
        if impl_item is None:
            continue
        kind, data = item_kind(impl_item)
        if kind != "impl":
            continue
        # Auto traits and blanket impls say nothing about this type's API.
        if data.get("is_synthetic") or data.get("synthetic") or data.get("blanket_impl"):
            continue
        if data.get("is_negative") or data.get("negative"):
            continue

        trait = data.get("trait")
        if trait and _local_trait_hidden(index, trait):
            continue
        walker.generics(data.get("generics"), ("impl",))
        if trait:
            walker.path(trait, ("impl",))

        for member_id in data.get("items") or []:
            member = index.get(str(member_id))
            if member is None:
                continue
            # Trait impl items are as public as the trait.
            if not trait and visibility(member) != "public":
                continue
            _member(walker, member)


def _local_trait_hidden(index: dict, trait: dict) -> bool:
    """True for a trait of this export that is not declared ``pub``.

    Such an impl is not part of the API. Traits of other crates, and public
    traits in private modules, still count.
    """
    trait_item = index.get(str(trait.get("id")))
    return trait_item is not None and visibility(trait_item) != "public"


def _member(walker: SignatureWalker, member: dict) -> None:
    kind, data = item_kind(member)
    label = (member.get("name") or "_",)
    if kind == "function":
        _function(walker, data, label)
    elif kind == "assoc_type":
        walker.generics(data.get("generics"), label)
        walker.bounds(data.get("bounds"), label)
        ty = data.get("type", data.get("default"))
        if ty is not None:
            walker.type(ty, label)
    elif kind == "assoc_const":
        walker.type(data.get("type"), label)


def _function(walker: SignatureWalker, data: dict, label: Label) -> None:
    sig = data.get("sig") or data.get("decl") or {}
    for entry in sig.get("inputs") or []:
        if isinstance(entry, (list, tuple)) and len(entry) == 2:
            name, ty = entry
            walker.type(ty, label + (str(name),))
    if sig.get("output") is not None:
        walker.type(sig["output"], label)
    walker.generics(data.get("generics"), label)
